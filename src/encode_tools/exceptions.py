"""Custom exceptions for encode-tools.

Each exception type represents a category of error.
Catch specific exceptions to handle errors appropriately.

A missing optional module is never an error at the facade level: the call is
routed to the portable backend instead. Errors raised by whichever backend
serves a call reach the caller unchanged.
"""

from typing import Any


class EncodeToolsError(Exception):
    """Base exception for all encode-tools errors."""

    pass


class InvalidFormat(EncodeToolsError):
    """Raised when a format or algorithm is not supported for an operation.

    Attributes:
        format: The offending value, exactly as it was passed in
    """

    def __init__(self, format: Any = None, message: str | None = None):
        self.format = format
        if message is None:
            message = f"Invalid format: {format!r}" if format is not None else "Invalid format"
        super().__init__(message)


class MissingModuleError(EncodeToolsError):
    """Raised when a backend needs a library that cannot be imported."""

    def __init__(self, module: str, message: str | None = None):
        self.module = module
        super().__init__(message or f"Module '{module}' is not installed")


class ImageError(EncodeToolsError):
    """Raised when an image cannot be decoded or processed."""

    pass


class ConfigError(EncodeToolsError):
    """Raised when configuration is invalid or missing."""

    pass
