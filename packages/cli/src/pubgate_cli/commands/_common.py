"""Helpers shared by the pubgate commands."""

from __future__ import annotations

from contextlib import contextmanager

import click

from pubgate_core.errors import InputValidationError, PubgateError
from pubgate_core.gh.event import determine_base_and_head, load_event_payload


@contextmanager
def exit_on_error():
    """Turn pubgate errors into click exits: usage errors for bad input, 1 otherwise."""
    try:
        yield
    except InputValidationError as e:
        raise click.UsageError(str(e)) from e
    except PubgateError as e:
        raise click.ClickException(str(e)) from e


def resolve_commit_range(
    base: str | None,
    head: str | None,
    event_name: str | None,
    event_path: str | None,
) -> tuple[str | None, str]:
    """Explicit --head wins; otherwise the range comes from the CI event payload."""
    if head:
        return base or None, head
    if event_name and event_path:
        return determine_base_and_head(event_name, load_event_payload(event_path))
    raise click.UsageError("Pass --head (and optionally --base), or --event-name with --event-path.")


def range_options(f):
    """Options selecting the commit range and repository, shared by metadata and check."""
    options = [
        click.option(
            "--repo",
            required=True,
            envvar="GITHUB_REPOSITORY",
            help="GitHub repository in owner/name format.",
        ),
        click.option("--base", default=None, help="Base commit SHA. Omit to backtrack from head."),
        click.option("--head", default=None, help="Head commit SHA. Overrides the event payload."),
        click.option("--event-name", envvar="GITHUB_EVENT_NAME", default=None, help="CI event name."),
        click.option("--event-path", envvar="GITHUB_EVENT_PATH", default=None, help="Path to the event payload JSON."),
        click.option("--file", "file_path", default=None, help="Tracked file holding the version. Overrides config."),
        click.option(
            "--version-extraction",
            default=None,
            help='"json", "regex:<pattern>" or "command:<shell command>". Overrides config.',
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f
