"""Markdown rationale attached to every publish decision."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from pubgate_core.models import VersionMetadataResult


@dataclass
class SummaryContext:
    """Facts about the run that are the same for every decision branch."""

    file_path: str
    relevant_globs: list[str] = field(default_factory=list)
    repo: str | None = None  # "owner/name", enables commit links
    package_name: str | None = None


def _relevant_files_block(relevant_files: list[str], globs: list[str], preamble: str = "") -> str:
    files = "\n".join(f"- {f}" for f in relevant_files) or "_none_"
    patterns = ", ".join(f"`{g}`" for g in globs) or "_none configured_"
    lines = ["<details>", "  <summary>Relevant files</summary>", ""]
    if preamble:
        lines.append(f"  {preamble}")
    lines += [
        "  <br />",
        "",
        files,
        "",
        "  <sup>What is considered a relevant change? Anything that matches any of the following file globs:</sup><br />",
        f"  <sup>{patterns}</sup>",
        "",
        "</details>",
    ]
    return "\n".join(lines)


def _commit_ref(repo: str | None, sha: str) -> str:
    short = f"`{sha[:7]}`"
    if not repo:
        return short
    return f"[{short}](https://github.com/{repo}/commit/{sha})"


def render_reason(
    context: SummaryContext,
    relevant_files: list[str],
    metadata: VersionMetadataResult,
    old_version: str,
    new_version: str,
    auto_incremented: bool,
) -> str:
    """Render the rationale for one of three outcomes.

    - ``old_version == new_version``: nothing relevant changed.
    - ``auto_incremented``: relevant files changed, version computed from the registry.
    - otherwise: the version in the tracked file was bumped explicitly.
    """
    if old_version == new_version:
        body = "No relevant changes were made since the last time."
    elif auto_incremented:
        body = (
            f"Relevant files were changed which resulted in a version bump from `{old_version}` to `{new_version}`.\n\n"
            + _relevant_files_block(relevant_files, context.relevant_globs)
        )
    else:
        body = (
            f"Version in `{context.file_path}` was updated from `{old_version}` to `{new_version}`.\n"
            "Thus a new version was published.\n\n"
            + _relevant_files_block(
                relevant_files,
                context.relevant_globs,
                preamble="When incrementing the version number manually the relevant files aren't used "
                "in the decision making process, nevertheless here they are",
            )
        )

    title = f"# publish `{context.package_name}`" if context.package_name else "# publish"
    raw = "\n".join(f"  {line}" for line in json.dumps(metadata.to_dict(), indent=2).splitlines())

    return "\n".join(
        [
            title,
            "",
            body,
            "",
            "<details>",
            "  <summary>Raw JSON data</summary>",
            "",
            "  ```json",
            raw,
            "  ```",
            "</details>",
            "",
            "<sup>",
            f"  Compared {_commit_ref(context.repo, metadata.commit_base)} (base)"
            f" with {_commit_ref(context.repo, metadata.commit_head)} (head)",
            "</sup>",
            "",
        ]
    )
