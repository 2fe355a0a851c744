#!/usr/bin/env python3
"""
Exception hierarchy for locsync.

Configuration and source-parse errors end a run. Everything else is caught
at locale or leaf granularity by the synchronization engine and reported.
"""

from typing import Optional


class LocSyncError(Exception):
    """Base error with optional code, details and remediation hint."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.hint = hint

    def to_dict(self) -> dict:
        data = {
            "error": self.message,
            "error_type": type(self).__name__,
        }
        if self.code:
            data["code"] = self.code
        if self.hint:
            data["hint"] = self.hint
        if self.details:
            data["details"] = self.details
        return data


class ConfigurationError(LocSyncError):
    """Missing credentials, bad mode/locale/format. Raised before any I/O."""


class DetectionError(LocSyncError):
    """Reserved: format detection always falls back instead of raising."""


class ParseError(LocSyncError):
    """Malformed native document."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        context: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.line = line
        self.column = column
        self.context = context

    def __str__(self) -> str:
        location = ""
        if self.line is not None:
            location = f" (line {self.line}"
            if self.column is not None:
                location += f", column {self.column}"
            location += ")"
        text = f"{self.message}{location}"
        if self.context:
            text += f"\n    {self.context}"
        return text

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["error"] = str(self)
        if self.line is not None:
            data["line"] = self.line
        if self.column is not None:
            data["column"] = self.column
        return data


class ValidationError(LocSyncError):
    """Structural rule violation; blocks serialization of one document."""

    def __init__(self, message: str, result=None, **kwargs):
        super().__init__(message, **kwargs)
        self.result = result


class ProviderError(LocSyncError):
    """Network, auth or vendor failure from a translation provider."""


class RateLimitError(ProviderError):
    """Vendor asked us to slow down (HTTP 429)."""


class SerializeError(LocSyncError):
    """A merged document could not be written back to its native format."""


def line_context(content: str, line: Optional[int]) -> Optional[str]:
    """Return the offending source line (1-based) for error messages."""
    if not line:
        return None
    lines = content.splitlines()
    if 0 < line <= len(lines):
        return lines[line - 1].strip()[:120]
    return None
