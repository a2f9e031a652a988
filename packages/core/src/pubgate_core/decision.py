"""Decide whether to publish and which version to publish."""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from rich.console import Console

from pubgate_core.models import PublishDecision, VersionMetadataResult
from pubgate_core.semver import increment_version
from pubgate_core.summary import SummaryContext, render_reason

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _split_top_level(body: str) -> list[str]:
    parts, depth, current = [], 0, []
    for ch in body:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return parts


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` sets, including nested ones.

    A set without a comma, such as ``{a}``, is kept as literal text.

    >>> expand_braces("src/**/*.{ts,tsx}")
    ['src/**/*.ts', 'src/**/*.tsx']
    """
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth:
                continue
            options = _split_top_level(pattern[start + 1 : i])
            if len(options) < 2:
                head = pattern[: i + 1]
                return [head + rest for rest in expand_braces(pattern[i + 1 :])]
            prefix, suffix = pattern[:start], pattern[i + 1 :]
            return [expanded for option in options for expanded in expand_braces(prefix + option + suffix)]
    return [pattern]


def _translate_class(pattern: str, i: int) -> tuple[str, int] | None:
    """Translate the ``[...]`` class opening at ``pattern[i]``.

    Returns the regex and the index after ``]``, or None if the class is
    never closed. Classes never match ``/``.
    """
    n = len(pattern)
    j = i + 1
    negate = j < n and pattern[j] in "!^"
    if negate:
        j += 1
    first = j
    if j < n and pattern[j] == "]":
        j += 1
    while j < n and pattern[j] != "]":
        j += 1
    if j >= n:
        return None
    body = "".join("\\" + c if c in "\\^[]" else c for c in pattern[first:j])
    regex = f"[^/{body}]" if negate else f"(?!/)[{body}]"
    return regex, j + 1


def _translate(pattern: str) -> str:
    out = []
    i, n = 0, len(pattern)
    while i < n:
        if pattern.startswith("**", i):
            i += 2
            if i < n and pattern[i] == "/":
                i += 1
                out.append("(?:.*/)?")
            else:
                out.append(".*")
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        elif pattern[i] == "[" and (translated := _translate_class(pattern, i)) is not None:
            regex, i = translated
            out.append(regex)
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into an anchored regex.

    ``**`` spans any number of directories (including none); ``*``, ``?`` and
    ``[...]`` classes stay within one path segment. Brace sets expand into
    alternatives.
    """
    alternatives = [_translate(p.removeprefix("./")) for p in expand_braces(pattern)]
    return re.compile("(?:" + "|".join(alternatives) + r")\Z")


def glob_match(path: str, pattern: str) -> bool:
    return _glob_to_regex(pattern).match(path.removeprefix("./")) is not None


def match_relevant_files(paths: list[str], patterns: list[str]) -> list[str]:
    """Return the paths selected by ``patterns``, in their original order.

    Patterns apply in sequence: a plain pattern adds matching paths, a
    ``!``-prefixed pattern removes matching paths selected so far.
    """
    selected: set[str] = set()
    for pattern in patterns:
        if pattern.startswith("!"):
            selected -= {p for p in selected if glob_match(p, pattern[1:])}
        else:
            selected |= {p for p in paths if glob_match(p, pattern)}
    return [p for p in paths if p in selected]


def decide_publish(
    metadata: VersionMetadataResult,
    latest_registry_version: str,
    increment_type: str,
    relevant_globs: list[str],
    context: SummaryContext | None = None,
) -> PublishDecision:
    """Apply the publish decision table to a reconstructed version history.

    1. An explicit bump that is not already published → publish it.
    2. Relevant files changed without a usable bump, or the detected bump is
       already published (non-linear history) → publish the registry version
       incremented by ``increment_type``.
    3. Otherwise → do not publish.
    """
    context = context or SummaryContext(file_path="package.json", relevant_globs=relevant_globs)
    relevant_files = match_relevant_files(metadata.changed_files.all, relevant_globs)
    old_version = metadata.old_version

    # Example: main 1.0.0; branch A bumps to 1.0.1 and is merged and published;
    # main is merged into branch B; B is merged back. The range for that last
    # merge shows 1.0.0 -> 1.0.1 again, although 1.0.1 is already released.
    detected_non_linear_history = metadata.new_version == latest_registry_version
    if detected_non_linear_history and metadata.changed:
        logger.info("Version %s is already published; treating history as non-linear", metadata.new_version)

    if metadata.changed and not detected_non_linear_history:
        decision = PublishDecision(
            publish=True,
            version=metadata.new_version,
            reason=render_reason(context, relevant_files, metadata, old_version, metadata.new_version, False),
        )
    elif relevant_files or (metadata.changed and detected_non_linear_history):
        incremented = increment_version(latest_registry_version, increment_type)
        decision = PublishDecision(
            publish=True,
            version=incremented,
            reason=render_reason(context, relevant_files, metadata, old_version, incremented, True),
        )
    else:
        decision = PublishDecision(
            publish=False,
            reason=render_reason(context, relevant_files, metadata, old_version, old_version, False),
        )

    if decision.publish:
        console.print(f"[green]Publishing version {decision.version}[/green] ({len(relevant_files)} relevant file(s))")
    else:
        console.print("[yellow]No relevant changes, nothing to publish.[/yellow]")
    return decision
