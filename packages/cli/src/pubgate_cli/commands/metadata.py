"""metadata command: reconstruct version changes across a commit range."""

from __future__ import annotations

import click
from rich.console import Console

from pubgate_cli.commands._common import exit_on_error, range_options, resolve_commit_range
from pubgate_cli.output import emit_outputs, metadata_outputs
from pubgate_core.config import load_config
from pubgate_core.extraction import parse_extraction_override
from pubgate_core.gh.github import GitHubProvider
from pubgate_core.history import reconstruct_history

console = Console(stderr=True)


@click.command("metadata")
@range_options
@click.pass_context
def metadata_cmd(
    ctx,
    repo: str,
    base: str | None,
    head: str | None,
    event_name: str | None,
    event_path: str | None,
    file_path: str | None,
    version_extraction: str | None,
):
    """Detect whether the version in the tracked file changed.

    Walks every commit between base and head, reads the tracked file at each
    one and reports the sequence of version changes found.
    """
    config = load_config(
        ctx.obj["config_path"],
        cli_overrides={"file": file_path, "version_extraction": version_extraction},
    )
    config["github_token"] = ctx.obj.get("github_token")

    with exit_on_error():
        extraction = parse_extraction_override(config["version_extraction"])
        base, head = resolve_commit_range(base, head, event_name, event_path)
        provider = GitHubProvider.from_config(repo, config)
        result = reconstruct_history(
            provider,
            config["file"],
            head,
            base=base,
            extraction=extraction,
            max_workers=config["max_workers"],
        )

    if result.changed:
        console.print(
            f"[green]{result.type} change: {result.old_version} → {result.new_version}[/green] "
            f"(commit {result.commit_responsible[:7]})"
        )
    else:
        console.print(f"[yellow]Version unchanged at {result.old_version}.[/yellow]")

    emit_outputs(metadata_outputs(result))
