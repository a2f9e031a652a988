"""Reconstruct the version history of a tracked file across a commit range.

Pipeline for one run:

    compare(base, head) → fold out merge commits → fetch the file at every kept
    commit (concurrently, order preserved) → drop consecutive identical
    contents → extract versions → drop consecutive identical versions →
    pair neighbours into VersionChange records → VersionMetadataResult

Everything runs against a BaseGitProvider, so no git checkout is needed.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar

from rich.console import Console

from pubgate_core.errors import ContentNotFoundError, ProviderError
from pubgate_core.extraction import (
    CommandRunner,
    JsonExtraction,
    VersionExtraction,
    extract_version,
    extract_version_json,
)
from pubgate_core.gh.provider import BaseGitProvider, ChangedFile, Commit
from pubgate_core.models import CategorizedChangedFiles, VersionChange, VersionMetadataResult
from pubgate_core.semver import get_change_type

console = Console(stderr=True)
logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_VERSION = "0.0.0"
# Always read with the JSON extractor, whatever strategy is configured, so a
# missing file never gets mixed up with a broken custom extractor.
FALLBACK_CONTENT = json.dumps({"version": FALLBACK_VERSION})

# Stands in for the (non-existent) parent of a root commit.
SENTINEL_COMMIT = Commit(sha=None, parents=(), message="artificial parent of the root commit")

DEFAULT_MAX_WORKERS = 8

_NOTHING = object()


@dataclass(frozen=True)
class FileIteration:
    """The tracked file's content at one examined commit."""

    commit: Commit
    content: str
    fallback: bool = False


@dataclass(frozen=True)
class VersionAtCommit:
    sha: str | None
    version: str


def categorize_changed_files(files: Iterable[ChangedFile]) -> CategorizedChangedFiles:
    categorized = CategorizedChangedFiles()
    buckets = {
        "added": categorized.added,
        "modified": categorized.modified,
        "removed": categorized.removed,
        "renamed": categorized.renamed,
    }
    for f in files:
        categorized.all.append(f.filename)
        bucket = buckets.get(f.status)
        if bucket is not None:
            bucket.append(f.filename)
    return categorized


def deduplicate_consecutive(items: Iterable[T], key: Callable[[T], object] = lambda x: x) -> list[T]:
    """Collapse runs of items with an equal key, keeping the first of each run.

    Only neighbours are compared, so a value that comes back later is kept:

    >>> deduplicate_consecutive([1, 2, 2, 3, 3, 3, 1, 2])
    [1, 2, 3, 1, 2]
    """
    result: list[T] = []
    last: object = _NOTHING
    for item in items:
        value = key(item)
        if value == last:
            continue
        result.append(item)
        last = value
    return result


def filter_commits(commits: Iterable[Commit], base: str | None) -> list[Commit]:
    """Drop merge commits that would replay a whole branch's changes.

    Walks the commits oldest first, carrying the last kept commit:

    - one parent: always kept.
    - no parent (root commit): kept. When it is the first commit kept it is
      preceded by SENTINEL_COMMIT, so the history starts from
      FALLBACK_VERSION and the sentinel never becomes the newer side of a
      change.
    - several parents: kept only if it is the base commit (matched by prefix,
      so shortened SHAs work) or if its first parent is the previously kept
      commit. The latter admits "merge main into feature" commits, which carry
      an upstream version bump onto the branch, while ordinary PR merges are
      dropped.
    """
    kept: list[Commit] = []
    for commit in commits:
        if len(commit.parents) == 1:
            kept.append(commit)
        elif not commit.parents:
            # A root reached later through an unrelated-histories merge is
            # compared with the commit kept before it instead.
            if not kept:
                kept.append(SENTINEL_COMMIT)
            kept.append(commit)
        elif base and commit.sha and commit.sha.startswith(base):
            kept.append(commit)
        elif kept and commit.parents[0] == kept[-1].sha:
            kept.append(commit)
        else:
            logger.debug("Skipping merge commit %s", commit.sha)
    return kept


def _fetch_iteration(provider: BaseGitProvider, path: str, commit: Commit) -> FileIteration:
    if commit.is_sentinel:
        return FileIteration(commit, FALLBACK_CONTENT, fallback=True)
    try:
        return FileIteration(commit, provider.get_content(path, commit.sha))
    except ContentNotFoundError:
        logger.warning('"%s" not found at %s, assuming version %s', path, commit.sha, FALLBACK_VERSION)
        return FileIteration(commit, FALLBACK_CONTENT, fallback=True)


def fetch_file_iterations(
    provider: BaseGitProvider,
    path: str,
    commits: list[Commit],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[FileIteration]:
    """Fetch ``path`` at every commit, returned in the same order as ``commits``.

    A missing file becomes a FALLBACK_VERSION iteration. Any other failure
    aborts the run once all fetches have settled, listing every failing SHA.
    """
    if not commits:
        return []

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [pool.submit(_fetch_iteration, provider, path, commit) for commit in commits]

    iterations: list[FileIteration] = []
    failed: list[tuple[str | None, ProviderError]] = []
    for commit, future in zip(commits, futures):
        try:
            iterations.append(future.result())
        except ProviderError as e:
            failed.append((commit.sha, e))

    if failed:
        for sha, error in failed:
            logger.debug("Fetching %s at %s failed: %s", path, sha, error)
        failed_shas = ", ".join(sha or "?" for sha, _ in failed)
        raise ProviderError(f'could not retrieve all versions of "{path}" ({failed_shas}), aborting')

    return iterations


def extract_versions(
    iterations: Iterable[FileIteration],
    extraction: VersionExtraction,
    run_command: CommandRunner | None = None,
) -> list[VersionAtCommit]:
    versions = []
    for it in iterations:
        if it.fallback:
            version = extract_version_json(it.content, it.commit.sha or "(root parent)")
        else:
            version = extract_version(it.content, it.commit.sha, extraction, run_command)
        versions.append(VersionAtCommit(it.commit.sha, version))
    return versions


def build_changes(versions: list[VersionAtCommit]) -> list[VersionChange]:
    """Pair neighbouring versions into changes, tagged with the newer commit."""
    return [
        VersionChange(
            old_version=prev.version,
            new_version=curr.version,
            type=get_change_type(prev.version, curr.version),
            commit=curr.sha,
        )
        for prev, curr in zip(versions, versions[1:])
        if prev.version != curr.version
    ]


def compute_result_from_changes(
    changes: list[VersionChange],
    changed_files: CategorizedChangedFiles,
    old_version: str,
    base: str,
    head: str,
) -> VersionMetadataResult:
    unchanged = VersionMetadataResult(
        changed=False,
        old_version=old_version,
        new_version=old_version,
        commit_base=base,
        commit_head=head,
        changed_files=changed_files,
        changes=[],
    )
    if not changes:
        return unchanged

    new_version = changes[-1].new_version
    # Non-linear history can bump and revert within one range; the
    # intermediate changes are dropped rather than reported.
    if new_version == old_version:
        return unchanged

    return VersionMetadataResult(
        changed=True,
        old_version=old_version,
        new_version=new_version,
        commit_base=base,
        commit_head=head,
        changed_files=changed_files,
        changes=changes,
        type=get_change_type(old_version, new_version),
        commit_responsible=changes[-1].commit,
    )


def reconstruct_history(
    provider: BaseGitProvider,
    file_path: str,
    head: str,
    base: str | None = None,
    extraction: VersionExtraction | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    run_command: CommandRunner | None = None,
) -> VersionMetadataResult:
    """Compute how the version in ``file_path`` changed between base and head.

    When ``base`` is None (new branch, initial push) the provider is asked to
    backtrack from head to the commit the branch forked from.
    """
    extraction = extraction or JsonExtraction()

    if base is None:
        ref = provider.backtrack_to_first_branch_ref(head)
        console.print(f"[dim]No base commit given, backtracked to {ref.type} {ref.sha}[/dim]")
        base = ref.sha

    console.print(f"base SHA: {base}")
    console.print(f"head SHA: {head}")

    comparison = provider.compare_commits(base, head)
    if comparison.files is None:
        raise ProviderError(f"could not retrieve files changed in between {base} and {head}, aborting")

    changed_files = categorize_changed_files(comparison.files)

    # The provider lists the base commit separately from the range.
    commits = filter_commits([comparison.base_commit, *comparison.commits], base)

    console.print("[bold]commits[/bold]")
    for commit in commits:
        label = "(artificial root parent)" if commit.is_sentinel else commit.title
        console.print(f"  - {commit.sha or '-' * 7}: {label}")

    iterations = fetch_file_iterations(provider, file_path, commits, max_workers=max_workers)
    # Cheap pre-filter: most commits do not touch the tracked file at all.
    iterations = deduplicate_consecutive(iterations, key=lambda it: it.content)

    versions = deduplicate_consecutive(
        extract_versions(iterations, extraction, run_command),
        key=lambda v: v.version,
    )
    if not versions:
        raise ProviderError(f'no commits left to examine between {base} and {head}, aborting')

    console.print(f"[bold]all versions of {file_path}[/bold]")
    for v in versions:
        console.print(f"  - {v.sha or '-' * 7}: {v.version}")

    changes = build_changes(versions)
    return compute_result_from_changes(changes, changed_files, versions[0].version, base, head)
