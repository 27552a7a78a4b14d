"""Custom exception hierarchy for the wall visualizer."""

from __future__ import annotations


class WallVizError(Exception):
    """Base exception for all wall-visualizer errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(WallVizError):
    """Raised when configuration is invalid or missing."""
    pass


class InputError(WallVizError):
    """Raised when the caller supplied a missing or invalid image reference or parameter."""
    pass


class UnsupportedImageError(InputError):
    """Raised when an image payload has an unsupported format or size."""
    pass


class ProcessingError(WallVizError):
    """Raised when an analysis stage fails unexpectedly."""
    pass


class ImageDecodeError(ProcessingError):
    """Raised when an image cannot be fetched or decoded into pixels."""
    pass


class AnalysisTimeoutError(ProcessingError):
    """Raised when an analysis exceeds the caller-side deadline."""
    pass
