"""GitHub implementation of the git data provider, backed by PyGithub."""

from __future__ import annotations

import logging

from github import Auth, Github, GithubException, UnknownObjectException

from pubgate_core.errors import ContentNotFoundError, ProviderError
from pubgate_core.gh.provider import (
    BRANCH_POINT,
    INITIAL,
    BaseGitProvider,
    BranchRef,
    ChangedFile,
    Commit,
    CommitComparison,
)

logger = logging.getLogger(__name__)

# Upper bound on first-parent steps when looking for a branch point. A new
# branch that is more than this many commits away from every other ref is
# almost certainly a misconfigured checkout rather than real history.
_MAX_BACKTRACK = 1000


def get_repo(repo_name: str, token: str | None = None, base_url: str | None = None):
    auth = Auth.Token(token) if token else None
    kwargs = {"base_url": base_url} if base_url else {}
    return Github(auth=auth, **kwargs).get_repo(repo_name)


def _to_commit(gh_commit) -> Commit:
    return Commit(
        sha=gh_commit.sha,
        parents=tuple(p.sha for p in gh_commit.parents),
        message=gh_commit.commit.message or "",
    )


class GitHubProvider(BaseGitProvider):
    """Answers provider queries through the GitHub REST API.

    Accepts an already-resolved PyGithub Repository so callers (and tests)
    control authentication and the API host.
    """

    def __init__(self, repo, max_backtrack: int = _MAX_BACKTRACK):
        self._repo = repo
        self._max_backtrack = max_backtrack

    @classmethod
    def from_config(cls, repo_name: str, config: dict) -> GitHubProvider:
        try:
            repo = get_repo(repo_name, token=config.get("github_token"), base_url=config.get("github_api_url"))
        except GithubException as e:
            raise ProviderError(f"could not access repository {repo_name}: {e}") from e
        return cls(repo)

    def compare_commits(self, base: str, head: str) -> CommitComparison:
        try:
            comparison = self._repo.compare(base, head)
            files = comparison.files
            return CommitComparison(
                base_commit=_to_commit(comparison.base_commit),
                commits=[_to_commit(c) for c in comparison.commits],
                files=None if files is None else [ChangedFile(f.filename, f.status) for f in files],
            )
        except GithubException as e:
            raise ProviderError(f"could not compare commits {base}...{head}: {e}") from e

    def get_content(self, path: str, ref: str) -> str:
        try:
            contents = self._repo.get_contents(path, ref=ref)
        except UnknownObjectException as e:
            raise ContentNotFoundError(path, ref) from e
        except GithubException as e:
            raise ProviderError(f'could not retrieve "{path}" from commit {ref}: {e}') from e

        if isinstance(contents, list):
            raise ProviderError(f'"{path}" is a directory at commit {ref}, expected a file')
        # Files over 1 MB come back without inline content.
        if contents.encoding != "base64":
            raise ProviderError(f'"{path}" at commit {ref} is too large to be retrieved through the contents API')
        try:
            return contents.decoded_content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProviderError(f'"{path}" at commit {ref} is not valid UTF-8: {e}') from e

    def backtrack_to_first_branch_ref(self, head: str) -> BranchRef:
        try:
            merge_bases = self._merge_bases_with_other_branches(head)
            sha = head
            for _ in range(self._max_backtrack):
                if sha in merge_bases:
                    return BranchRef(sha=sha, type=BRANCH_POINT)
                commit = self._repo.get_commit(sha)
                if not commit.parents:
                    return BranchRef(sha=sha, type=INITIAL)
                sha = commit.parents[0].sha
        except GithubException as e:
            raise ProviderError(f"could not backtrack from {head} to a branch point: {e}") from e

        raise ProviderError(f"no branch point or root commit found within {self._max_backtrack} commits of {head}")

    def _merge_bases_with_other_branches(self, head: str) -> set[str]:
        # Branches already pointing at head are the one being pushed (or an
        # alias of it) and tell us nothing about where it forked off.
        merge_bases: set[str] = set()
        for branch in self._repo.get_branches():
            if branch.commit.sha == head:
                continue
            try:
                comparison = self._repo.compare(branch.commit.sha, head)
            except UnknownObjectException as e:
                # Orphan branches such as gh-pages share no history with head.
                logger.debug("Skipping branch %s, no merge base with %s: %s", branch.name, head, e)
                continue
            merge_bases.add(comparison.merge_base_commit.sha)
            logger.debug("Merge base of %s and %s: %s", branch.name, head, comparison.merge_base_commit.sha)
        return merge_bases
