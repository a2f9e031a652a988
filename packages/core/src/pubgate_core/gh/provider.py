"""Abstract git data provider.

The history reconstructor never talks to a git host directly. It depends on
BaseGitProvider, and the caller decides which implementation to inject: the
PyGithub-backed GitHubProvider in CI, an in-memory fake in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

BRANCH_POINT = "branch-point"
INITIAL = "initial"


@dataclass(frozen=True)
class Commit:
    """A commit as reported by the provider.

    ``sha`` is None only for the artificial parent synthesized in front of a
    root commit.
    """

    sha: str | None
    parents: tuple[str, ...] = ()
    message: str = ""

    @property
    def is_sentinel(self) -> bool:
        return self.sha is None

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0].strip()


@dataclass(frozen=True)
class ChangedFile:
    filename: str
    # added | modified | removed | renamed | copied | changed | unchanged
    status: str


@dataclass
class CommitComparison:
    """Diff between two commits.

    ``commits`` lists the commits after ``base_commit`` up to and including
    head, oldest first. ``files`` is None when the provider returned no file
    information at all.
    """

    base_commit: Commit
    commits: list[Commit] = field(default_factory=list)
    files: list[ChangedFile] | None = field(default_factory=list)


@dataclass(frozen=True)
class BranchRef:
    sha: str
    type: str  # BRANCH_POINT | INITIAL


class BaseGitProvider(ABC):
    """Read-only access to commit ranges and historical file content."""

    @abstractmethod
    def compare_commits(self, base: str, head: str) -> CommitComparison:
        """Return changed files and the commit list between base and head.

        Raises ProviderError when the comparison cannot be computed.
        """

    @abstractmethod
    def get_content(self, path: str, ref: str) -> str:
        """Return the decoded text of ``path`` at ``ref``.

        Raises ContentNotFoundError when the file does not exist at that ref
        and ProviderError for any other failure.
        """

    @abstractmethod
    def backtrack_to_first_branch_ref(self, head: str) -> BranchRef:
        """Walk back from head to the commit where its branch forked off.

        Returns a BRANCH_POINT ref when a commit reachable from another ref is
        found, or an INITIAL ref pointing at the root commit otherwise.
        """
