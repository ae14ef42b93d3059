"""
Exception taxonomy.

Per-sheet failures (ProviderError, MalformedResponseError, and a late
ConfigurationError) are caught by the orchestrator and recorded on the sheet.
ConfigurationError raised at startup and ParseError are fatal to the action.
"""

from __future__ import annotations

from typing import Optional


class DbDocDiffError(Exception):
    """Base class for all dbdocdiff errors."""


class ConfigurationError(DbDocDiffError):
    """Invalid provider selector, language, credential, or config file."""


class ProviderError(DbDocDiffError):
    def __init__(self, provider: str, message: str, http_status: Optional[int] = None):
        self.provider = provider
        self.http_status = http_status
        self.message = message
        if http_status is not None:
            text = f"{provider} API Error: {http_status} - {message}"
        else:
            text = f"{provider} API Error: {message}"
        super().__init__(text)


class MalformedResponseError(DbDocDiffError):
    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


class ParseError(DbDocDiffError):
    """The spreadsheet loader could not read a file."""

    def __init__(self, file_name: str, message: str):
        self.file_name = file_name
        super().__init__(f"Failed to parse '{file_name}': {message}")
