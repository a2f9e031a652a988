"""publish command: decide whether and what to publish."""

from __future__ import annotations

from pathlib import Path

import click

from pubgate_cli.commands._common import exit_on_error
from pubgate_cli.output import append_step_summary, emit_outputs, publish_outputs
from pubgate_core.config import load_config
from pubgate_core.decision import decide_publish
from pubgate_core.schemas import (
    parse_relevant_files,
    parse_version_metadata,
    validate_increment_type,
    validate_registry_version,
)
from pubgate_core.summary import SummaryContext


def decision_options(f):
    options = [
        click.option(
            "--latest-registry-version",
            required=True,
            help="Latest version already published to the package registry.",
        ),
        click.option("--increment-type", default=None, help="Increment used for automatic versions. Overrides config."),
        click.option(
            "--relevant-files",
            default=None,
            help='JSON array of globs, e.g. \'["src/**", "package.json"]\'. Overrides config.',
        ),
        click.option("--package-name", default=None, help="Package name shown in the rationale."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


@click.command("publish")
@click.option("--metadata-json", default=None, help="JSON output of the metadata command.")
@click.option(
    "--metadata-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="File containing the JSON output of the metadata command.",
)
@click.option("--file", "file_path", default=None, help="Tracked file, as named in the rationale. Overrides config.")
@click.option("--repo", envvar="GITHUB_REPOSITORY", default=None, help="owner/name, used for commit links.")
@decision_options
@click.pass_context
def publish_cmd(
    ctx,
    metadata_json: str | None,
    metadata_file: str | None,
    file_path: str | None,
    repo: str | None,
    latest_registry_version: str,
    increment_type: str | None,
    relevant_files: str | None,
    package_name: str | None,
):
    """Decide whether to publish, based on version metadata and the registry.

    Publishes an explicit version bump as-is. Without one, changes to
    relevant files lead to an automatically incremented version.
    """
    if (metadata_json is None) == (metadata_file is None):
        raise click.UsageError("Pass exactly one of --metadata-json or --metadata-file.")
    raw_metadata = metadata_json if metadata_json is not None else Path(metadata_file).read_text()

    config = load_config(
        ctx.obj["config_path"],
        cli_overrides={
            "file": file_path,
            "increment_type": increment_type,
            "relevant_files": relevant_files,
            "package_name": package_name,
        },
    )

    with exit_on_error():
        metadata = parse_version_metadata(raw_metadata)
        globs = parse_relevant_files(config["relevant_files"])
        increment = validate_increment_type(config["increment_type"])
        registry_version = validate_registry_version(latest_registry_version)

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
    emit_outputs(publish_outputs(decision))
