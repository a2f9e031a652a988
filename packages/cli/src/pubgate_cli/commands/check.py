"""check command: metadata and publish in one run."""

from __future__ import annotations

import click

from pubgate_cli.commands._common import exit_on_error, range_options, resolve_commit_range
from pubgate_cli.commands.publish import decision_options
from pubgate_cli.output import append_step_summary, emit_outputs, publish_outputs
from pubgate_core.config import load_config
from pubgate_core.decision import decide_publish
from pubgate_core.extraction import parse_extraction_override
from pubgate_core.gh.github import GitHubProvider
from pubgate_core.history import reconstruct_history
from pubgate_core.schemas import parse_relevant_files, validate_increment_type, validate_registry_version
from pubgate_core.summary import SummaryContext


@click.command("check")
@range_options
@decision_options
@click.pass_context
def check_cmd(
    ctx,
    repo: str,
    base: str | None,
    head: str | None,
    event_name: str | None,
    event_path: str | None,
    file_path: str | None,
    version_extraction: str | None,
    latest_registry_version: str,
    increment_type: str | None,
    relevant_files: str | None,
    package_name: str | None,
):
    """Reconstruct version history and decide on publishing in one step."""
    config = load_config(
        ctx.obj["config_path"],
        cli_overrides={
            "file": file_path,
            "version_extraction": version_extraction,
            "increment_type": increment_type,
            "relevant_files": relevant_files,
            "package_name": package_name,
        },
    )
    config["github_token"] = ctx.obj.get("github_token")

    with exit_on_error():
        # Validate every input before touching the API.
        extraction = parse_extraction_override(config["version_extraction"])
        globs = parse_relevant_files(config["relevant_files"])
        increment = validate_increment_type(config["increment_type"])
        registry_version = validate_registry_version(latest_registry_version)
        base, head = resolve_commit_range(base, head, event_name, event_path)

        provider = GitHubProvider.from_config(repo, config)
        metadata = reconstruct_history(
            provider,
            config["file"],
            head,
            base=base,
            extraction=extraction,
            max_workers=config["max_workers"],
        )
        decision = decide_publish(
            metadata,
            registry_version,
            increment,
            globs,
            context=SummaryContext(
                file_path=config["file"],
                relevant_globs=globs,
                repo=repo,
                package_name=config["package_name"],
            ),
        )

    append_step_summary(decision.reason)
    outputs = publish_outputs(decision)
    outputs["metadata"] = metadata.to_dict()
    emit_outputs(outputs)
