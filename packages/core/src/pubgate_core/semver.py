"""The restricted version grammar used throughout pubgate.

Only ``major.minor.patch`` and ``major.minor.patch-N`` are understood, where
``N`` is a non-negative integer. Tags such as ``-beta`` or ``-rc.1`` and build
metadata are not supported.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from pubgate_core.errors import InconsistencyError, InvalidVersionError

VERSION_PATTERN = r"^([0-9]+)\.([0-9]+)\.([0-9]+)(?:-([0-9]+))?$"
_VERSION_RE = re.compile(VERSION_PATTERN)

MAJOR = "major"
MINOR = "minor"
PATCH = "patch"
PRE_RELEASE = "pre-release"
# Only returned by get_diff_type; never part of a result.
EQUAL = "equal"

DIFF_TYPES = (MAJOR, MINOR, PATCH, PRE_RELEASE)


class ParsedVersion(NamedTuple):
    major: int
    minor: int
    patch: int
    pre_release: int | None = None

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return core if self.pre_release is None else f"{core}-{self.pre_release}"


def is_valid_version(version: object) -> bool:
    return isinstance(version, str) and _VERSION_RE.fullmatch(version) is not None


def parse_version(version: str) -> ParsedVersion:
    """Split a version string into its numeric components.

    >>> parse_version("1.2.3")
    ParsedVersion(major=1, minor=2, patch=3, pre_release=None)
    >>> parse_version("1.2.3-4")
    ParsedVersion(major=1, minor=2, patch=3, pre_release=4)
    """
    match = _VERSION_RE.fullmatch(version) if isinstance(version, str) else None
    if match is None:
        raise InvalidVersionError(version)
    major, minor, patch, pre_release = match.groups()
    return ParsedVersion(
        int(major),
        int(minor),
        int(patch),
        int(pre_release) if pre_release is not None else None,
    )


def get_diff_type(version_a: str, version_b: str) -> str:
    """Return the most significant component that differs between two versions.

    Components are compared in the order major, minor, patch, pre-release and
    the first difference wins. Adding or dropping a pre-release suffix is a
    ``pre-release`` change on its own, so ``1.0.0-5 -> 1.0.0`` is
    ``pre-release`` and not ``patch``. Identical versions yield ``equal``.
    """
    a = parse_version(version_a)
    b = parse_version(version_b)

    if a.major != b.major:
        return MAJOR
    if a.minor != b.minor:
        return MINOR
    if a.patch != b.patch:
        return PATCH
    if a.pre_release != b.pre_release:
        return PRE_RELEASE
    return EQUAL


def get_change_type(old_version: str, new_version: str) -> str:
    """Like get_diff_type, for callers that already know the versions differ."""
    diff_type = get_diff_type(old_version, new_version)
    if diff_type == EQUAL:
        raise InconsistencyError(
            f"Could not determine the type of change between '{old_version}' and '{new_version}', "
            "this should not happen"
        )
    return diff_type


def increment_version(version: str, increment_type: str) -> str:
    """Compute the next version for the given increment type.

    - pre-release: ``1.2.3 -> 1.2.4-0``, ``1.2.3-0 -> 1.2.3-1``
    - patch:       ``1.2.3 -> 1.2.4``
    - minor:       ``1.2.3 -> 1.3.0``
    - major:       ``1.2.3 -> 2.0.0``

    patch, minor and major drop any pre-release suffix.
    """
    major, minor, patch, pre_release = parse_version(version)

    if increment_type == PRE_RELEASE:
        if pre_release is None:
            return str(ParsedVersion(major, minor, patch + 1, 0))
        return str(ParsedVersion(major, minor, patch, pre_release + 1))
    if increment_type == PATCH:
        return str(ParsedVersion(major, minor, patch + 1))
    if increment_type == MINOR:
        return str(ParsedVersion(major, minor + 1, 0))
    if increment_type == MAJOR:
        return str(ParsedVersion(major + 1, 0, 0))
    raise ValueError(f"Unknown increment type {increment_type!r}. Choose one of: {', '.join(DIFF_TYPES)}.")
