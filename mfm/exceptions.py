"""Exception types raised by the MFM ingestion and validation services."""

from __future__ import annotations


class MfmError(Exception):
    """Base class for MFM subsystem failures."""


class MfmParseError(MfmError, ValueError):
    """Raised when an MFM source file cannot be interpreted.

    Examples include a bulletin with no `VERSION x.y` declaration or a
    structured `window.MFM_*` file whose object literal is missing or is not
    valid JSON.
    """


class MfmVersionNotFound(MfmError, LookupError):
    """Raised when an operation targets an MFM version that is not stored."""

    def __init__(self, version: str) -> None:
        super().__init__(f"MFM version not found: {version}")
        self.version = version


class MfmReportPathError(MfmError, ValueError):
    """Raised when a report file name points outside the reports directory."""
