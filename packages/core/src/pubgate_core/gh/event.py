"""Resolve the commit range to examine from a CI event payload."""

from __future__ import annotations

import json
from pathlib import Path

from pubgate_core.errors import InputValidationError

# `before` on a push that creates a branch.
NULL_SHA = "0" * 40

SUPPORTED_EVENTS = ("pull_request", "push", "merge_group")


def load_event_payload(path: str) -> dict:
    p = Path(path)
    if not p.exists():
        raise InputValidationError("event-path", path, "file does not exist")
    try:
        return json.loads(p.read_text()) or {}
    except json.JSONDecodeError as e:
        raise InputValidationError("event-path", path, f"invalid JSON: {e}") from e


def determine_base_and_head(event_name: str, payload: dict) -> tuple[str | None, str]:
    """Return ``(base, head)`` for a pull_request, push or merge_group event.

    ``base`` is None when the push created a new branch; the caller then has
    to backtrack from head to find a sensible starting point.
    """
    base: str | None
    head: str | None

    if event_name == "pull_request":
        pr = payload.get("pull_request") or {}
        base = (pr.get("base") or {}).get("sha")
        head = (pr.get("head") or {}).get("sha")
    elif event_name == "push":
        base = payload.get("before")
        head = payload.get("after")
        if base == NULL_SHA:
            base = None
    elif event_name == "merge_group":
        group = payload.get("merge_group") or {}
        base = group.get("base_sha")
        head = group.get("head_sha")
    else:
        raise InputValidationError(
            "event-name",
            event_name,
            f"only {', '.join(SUPPORTED_EVENTS)} events are supported",
        )

    if not head:
        raise InputValidationError(
            "event-payload",
            event_name,
            f"the head commit is missing from the payload for this {event_name} event",
        )

    return base or None, head
