"""Result models produced by the history reconstructor and decision engine.

Field names are snake_case in Python; ``to_dict()`` renders the camelCase
shape that downstream pipeline steps consume as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CategorizedChangedFiles:
    """Paths changed between base and head, split by status.

    ``all`` keeps the provider's order; the other lists are order-preserving
    subsets of it. Copied, changed and unchanged files only appear in ``all``.
    """

    all: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "all": list(self.all),
            "added": list(self.added),
            "modified": list(self.modified),
            "removed": list(self.removed),
            "renamed": list(self.renamed),
        }


@dataclass(frozen=True)
class VersionChange:
    """One transition between two consecutive distinct versions."""

    old_version: str
    new_version: str
    type: str  # "major" | "minor" | "patch" | "pre-release"
    commit: str

    def to_dict(self) -> dict:
        return {
            "oldVersion": self.old_version,
            "newVersion": self.new_version,
            "type": self.type,
            "commit": self.commit,
        }


@dataclass
class VersionMetadataResult:
    """Outcome of reconstructing the version history of a commit range.

    When ``changed`` is False, ``new_version`` equals ``old_version``,
    ``changes`` is empty and ``type``/``commit_responsible`` are None.
    """

    changed: bool
    old_version: str
    new_version: str
    commit_base: str
    commit_head: str
    changed_files: CategorizedChangedFiles = field(default_factory=CategorizedChangedFiles)
    changes: list[VersionChange] = field(default_factory=list)
    type: str | None = None
    commit_responsible: str | None = None

    def to_dict(self) -> dict:
        data = {
            "changed": self.changed,
            "oldVersion": self.old_version,
            "newVersion": self.new_version,
        }
        if self.changed:
            data["type"] = self.type
            data["commitResponsible"] = self.commit_responsible
        data.update(
            {
                "commitBase": self.commit_base,
                "commitHead": self.commit_head,
                "changes": [c.to_dict() for c in self.changes],
                "changedFiles": self.changed_files.to_dict(),
            }
        )
        return data


@dataclass
class PublishDecision:
    """Whether to publish, which version, and a Markdown rationale."""

    publish: bool
    reason: str
    version: str | None = None  # set iff publish is True

    def to_dict(self) -> dict:
        data: dict = {"publish": self.publish}
        if self.version is not None:
            data["version"] = self.version
        data["reason"] = self.reason
        return data
