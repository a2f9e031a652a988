"""Version extraction strategies.

The strategy is chosen once per run from the ``version_extraction`` setting:

    (unset) / "json"        parse the file as JSON and read its "version" field
    "regex:<pattern>"       first capture group of <pattern>, stripped
    "command:<command>"     pipe the file to <command>, read stdout, stripped

Regex and command results must match the major.minor.patch[-N] grammar.
Every failure is an ExtractionError; there is no silent default here.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Callable, Union

from pubgate_core.errors import ExtractionError, InputValidationError
from pubgate_core.semver import is_valid_version

logger = logging.getLogger(__name__)

CommandRunner = Callable[[str, str], "subprocess.CompletedProcess[str]"]


@dataclass(frozen=True)
class JsonExtraction:
    def describe(self) -> str:
        return "json"


@dataclass(frozen=True)
class RegexExtraction:
    pattern: str

    def describe(self) -> str:
        return f"regex:{self.pattern}"


@dataclass(frozen=True)
class CommandExtraction:
    command: str

    def describe(self) -> str:
        return f"command:{self.command}"


VersionExtraction = Union[JsonExtraction, RegexExtraction, CommandExtraction]


def parse_extraction_override(value: str | None) -> VersionExtraction:
    """Turn a ``version_extraction`` setting into an extraction strategy."""
    if value is None or value.strip() in ("", "json"):
        return JsonExtraction()

    kind, sep, argument = value.partition(":")
    if sep and kind == "regex" and argument:
        try:
            re.compile(argument)
        except re.error as e:
            raise InputValidationError("version-extraction", value, f"invalid regular expression: {e}") from e
        return RegexExtraction(argument)
    if sep and kind == "command" and argument.strip():
        return CommandExtraction(argument.strip())

    raise InputValidationError(
        "version-extraction",
        value,
        'expected "json", "regex:<pattern>" or "command:<shell command>"',
    )


def run_shell_command(command: str, stdin: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(command, shell=True, input=stdin, capture_output=True, text=True)


def extract_version(
    content: str,
    sha: str,
    extraction: VersionExtraction,
    run_command: CommandRunner | None = None,
) -> str:
    """Extract the version string from one fetched file using ``extraction``."""
    if isinstance(extraction, JsonExtraction):
        return extract_version_json(content, sha)
    if isinstance(extraction, RegexExtraction):
        return _extract_regex(content, sha, extraction.pattern)
    if isinstance(extraction, CommandExtraction):
        return _extract_command(content, sha, extraction.command, run_command or run_shell_command)
    raise TypeError(f"Unsupported version extraction: {extraction!r}")


def extract_version_json(content: str, sha: str) -> str:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise ExtractionError(f'Failed to parse JSON (sha: {sha}, error: {e}, content: "{content}")') from e

    version = parsed.get("version") if isinstance(parsed, dict) else None
    if not version:
        raise ExtractionError(f"version is undefined, this should not happen (sha: {sha})")
    if not is_valid_version(version):
        raise ExtractionError(f'version field is not a valid version (sha: {sha}, version: "{version}")')
    return version


def _extract_regex(content: str, sha: str, pattern: str) -> str:
    match = re.search(pattern, content)
    if match is None:
        raise ExtractionError(f'Failed to extract version from file contents (sha: {sha}, content: "{content}")')

    candidate = ((match.group(1) if match.re.groups else None) or "").strip()
    if not is_valid_version(candidate):
        raise ExtractionError(
            "Provided regex failed to extract a valid version from file contents "
            f'(sha: {sha}, match: "{candidate}", content: "{content}")'
        )
    return candidate


def _extract_command(content: str, sha: str, command: str, run_command: CommandRunner) -> str:
    try:
        result = run_command(command, content)
    except OSError as e:
        raise ExtractionError(f"Failed to execute command (sha: {sha}, error: {e})") from e

    if result.returncode != 0:
        raise ExtractionError(
            "command exited with non-zero status code "
            f"(sha: {sha}, status: {result.returncode}, stderr: {(result.stderr or '').strip()})"
        )

    candidate = (result.stdout or "").strip()
    if not is_valid_version(candidate):
        raise ExtractionError(
            "Provided command failed to extract a valid version from file contents "
            f'(sha: {sha}, output: "{candidate}", content: "{content}")'
        )
    logger.debug("Command %r extracted version %s at %s", command, candidate, sha)
    return candidate
