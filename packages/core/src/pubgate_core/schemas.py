"""Validation of externally supplied inputs.

Everything the decision engine receives from outside (the version metadata
JSON produced by an earlier step, the relevant-file globs, the registry
version, the increment type) is checked here first, so the engine itself can
assume well-formed values.
"""

from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, StringConstraints, TypeAdapter, ValidationError

from pubgate_core.errors import InputValidationError, InvalidVersionError
from pubgate_core.models import CategorizedChangedFiles, VersionChange, VersionMetadataResult
from pubgate_core.semver import DIFF_TYPES, PRE_RELEASE, VERSION_PATTERN, is_valid_version

# The increment algorithm knows all four types; only pre-release is accepted
# as an external request for now.
SUPPORTED_INCREMENT_TYPES = (PRE_RELEASE,)

SemverStr = Annotated[str, StringConstraints(pattern=VERSION_PATTERN)]
DiffType = Literal["major", "minor", "patch", "pre-release"]


class VersionChangeModel(BaseModel):
    oldVersion: SemverStr
    newVersion: SemverStr
    type: DiffType
    commit: str = ""


class ChangedFilesModel(BaseModel):
    all: list[str]
    added: list[str] = []
    modified: list[str] = []
    removed: list[str] = []
    renamed: list[str] = []


class UnchangedMetadataModel(BaseModel):
    changed: Literal[False]
    oldVersion: SemverStr
    newVersion: SemverStr | None = None
    commitBase: str
    commitHead: str
    changedFiles: ChangedFilesModel
    changes: list[VersionChangeModel] = Field(default_factory=list, max_length=0)


class ChangedMetadataModel(BaseModel):
    changed: Literal[True]
    oldVersion: SemverStr
    newVersion: SemverStr
    type: DiffType
    commitResponsible: str
    commitBase: str
    commitHead: str
    changedFiles: ChangedFilesModel
    changes: list[VersionChangeModel]


_metadata_adapter = TypeAdapter(Union[ChangedMetadataModel, UnchangedMetadataModel])
_globs_adapter = TypeAdapter(list[str])


def _load_json(field: str, raw: str):
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise InputValidationError(field, raw, f"invalid JSON: {e}") from e


def parse_version_metadata(raw: str) -> VersionMetadataResult:
    """Parse the JSON emitted by the metadata step back into a result object."""
    data = _load_json("version-metadata-json", raw)
    try:
        model = _metadata_adapter.validate_python(data)
    except ValidationError as e:
        raise InputValidationError("version-metadata-json", raw, str(e)) from e

    files = model.changedFiles
    changed_files = CategorizedChangedFiles(
        all=files.all,
        added=files.added,
        modified=files.modified,
        removed=files.removed,
        renamed=files.renamed,
    )
    if isinstance(model, UnchangedMetadataModel):
        return VersionMetadataResult(
            changed=False,
            old_version=model.oldVersion,
            new_version=model.newVersion or model.oldVersion,
            commit_base=model.commitBase,
            commit_head=model.commitHead,
            changed_files=changed_files,
        )
    return VersionMetadataResult(
        changed=True,
        old_version=model.oldVersion,
        new_version=model.newVersion,
        commit_base=model.commitBase,
        commit_head=model.commitHead,
        changed_files=changed_files,
        changes=[VersionChange(c.oldVersion, c.newVersion, c.type, c.commit) for c in model.changes],
        type=model.type,
        commit_responsible=model.commitResponsible,
    )


def parse_relevant_files(raw: str | list) -> list[str]:
    """Accept the glob list either as a JSON array string or as a list."""
    data = _load_json("relevant-files", raw) if isinstance(raw, str) else raw
    try:
        return _globs_adapter.validate_python(data)
    except ValidationError as e:
        raise InputValidationError("relevant-files", raw, str(e)) from e


def validate_increment_type(value: str) -> str:
    if value not in SUPPORTED_INCREMENT_TYPES:
        known = "known types are " + ", ".join(DIFF_TYPES) if value not in DIFF_TYPES else "not supported yet"
        raise InputValidationError(
            "increment-type",
            value,
            f"expected one of: {', '.join(SUPPORTED_INCREMENT_TYPES)} ({known})",
        )
    return value


def validate_registry_version(value: str) -> str:
    if not is_valid_version(value):
        raise InvalidVersionError(value, field="latest-registry-version")
    return value
