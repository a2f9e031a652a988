"""CLI entry point for pubgate.

Commands:
  metadata: reconstruct version changes between two commits
  publish:  decide whether to publish, from metadata JSON and the registry version
  check:    both of the above in one run
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from pubgate_cli.commands.check import check_cmd
from pubgate_cli.commands.metadata import metadata_cmd
from pubgate_cli.commands.publish import publish_cmd

err_console = Console(stderr=True)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=debug)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("pubgate"),
    prog_name="pubgate",
)
@click.option(
    "--config",
    "config_path",
    default=".pubgate.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PUBGATE_CONFIG",
)
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, debug: bool):
    """Detect version bumps and decide what to publish, for CI pipelines."""
    from pubgate_cli.auth import resolve_github_token

    _configure_logging(debug)
    ctx.ensure_object(dict)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if not token:
        logging.getLogger(__name__).debug("No GitHub token found; using anonymous API access.")

    ctx.obj["config_path"] = config_path
    ctx.obj["github_token"] = token


main.add_command(metadata_cmd)
main.add_command(publish_cmd)
main.add_command(check_cmd)
