"""Exception types raised by the core.

The CLI entry point maps each type to an exit code; nothing below that layer
terminates the process.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .importer import ImportJob


class FeishuDocsError(Exception):
    """Base class for all errors raised by feishu-docs."""

    exit_code = 1


class ConfigError(FeishuDocsError):
    """Missing or invalid configuration or local input."""

    exit_code = 2


class AuthFailure(FeishuDocsError):
    """The app credential exchange failed."""

    exit_code = 3


class TransportFailure(FeishuDocsError):
    """An API call failed at the HTTP layer or returned a non-zero code."""

    exit_code = 4

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __str__(self) -> str:
        parts = []
        if self.status_code is not None:
            parts.append(f"HTTP {self.status_code}")
        if self.code is not None:
            parts.append(f"code {self.code}")
        if parts:
            return f"[{', '.join(parts)}] {self.message}"
        return self.message


class PartialWriteFailure(FeishuDocsError):
    """A chunked block write stopped part way through.

    ``committed`` leading blocks were written and are not rolled back.
    """

    exit_code = 5

    def __init__(self, committed: int, total: int, reason: str) -> None:
        super().__init__(f"wrote {committed}/{total} blocks before failing: {reason}")
        self.committed = committed
        self.total = total
        self.reason = reason


class ImportSubmitFailure(FeishuDocsError):
    """The import job could not be created."""

    exit_code = 6


class PollTimeout(FeishuDocsError):
    """An import job did not reach a terminal status within the attempt ceiling."""

    exit_code = 7

    def __init__(self, job: "ImportJob", attempts: int) -> None:
        super().__init__(
            f"import job {job.ticket} still {job.status.value} after {attempts} polls"
        )
        self.job = job
        self.attempts = attempts


class PollCancelled(FeishuDocsError):
    """Polling was stopped by a cancellation signal; the server job continues."""

    exit_code = 130

    def __init__(self, job: "ImportJob") -> None:
        super().__init__(f"stopped polling import job {job.ticket}")
        self.job = job


__all__ = [
    "FeishuDocsError",
    "ConfigError",
    "AuthFailure",
    "TransportFailure",
    "PartialWriteFailure",
    "ImportSubmitFailure",
    "PollTimeout",
    "PollCancelled",
]
