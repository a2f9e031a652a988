"""Exception hierarchy shared by every pubgate module.

Library code only raises these; the CLI is the single place where they are
turned into exit codes and user-facing messages.
"""

from __future__ import annotations


class PubgateError(Exception):
    """Base class for all errors raised by pubgate."""


class InputValidationError(PubgateError):
    """An externally supplied value is malformed.

    Raised before any core computation starts. The message always names the
    offending field and the value that was received.
    """

    def __init__(self, field: str, received: object, detail: str | None = None):
        self.field = field
        self.received = received
        self.detail = detail
        message = f'Invalid input for "{field}":\n- received: `{received}`'
        if detail:
            message += f"\n- error: {detail}"
        super().__init__(message)


class InvalidVersionError(InputValidationError, ValueError):
    """A version string does not match the major.minor.patch[-N] grammar."""

    def __init__(self, version: object, field: str = "version"):
        super().__init__(field, version, "expected major.minor.patch or major.minor.patch-N")


class ProviderError(PubgateError):
    """The git data provider failed to answer a query."""


class ContentNotFoundError(ProviderError):
    """The tracked file does not exist at the requested ref."""

    def __init__(self, path: str, ref: str):
        self.path = path
        self.ref = ref
        super().__init__(f'"{path}" does not exist at {ref}')


class ExtractionError(PubgateError):
    """A version could not be extracted from fetched file content."""


class InconsistencyError(PubgateError):
    """An internal invariant was violated. Always indicates a bug."""
