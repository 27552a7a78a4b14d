"""Tests for custom exception hierarchy."""

import pytest

from core.exceptions import (
    AnalysisTimeoutError,
    ConfigurationError,
    ImageDecodeError,
    InputError,
    ProcessingError,
    UnsupportedImageError,
    WallVizError,
)
from services.api.exception_handlers import status_for


def test_wallviz_error_base():
    """Test base WallVizError."""
    error = WallVizError("Test error", {"key": "value"})
    assert str(error) == "Test error"
    assert error.message == "Test error"
    assert error.details == {"key": "value"}


def test_details_default_to_empty():
    assert WallVizError("No details").details == {}


def test_configuration_error():
    """Test ConfigurationError."""
    error = ConfigurationError("Config missing", {"setting": "edge_threshold"})
    assert isinstance(error, WallVizError)
    assert error.message == "Config missing"


def test_input_error_family():
    error = UnsupportedImageError("Unsupported image format", {"content_type": "image/gif"})
    assert isinstance(error, InputError)
    assert isinstance(error, WallVizError)
    assert error.details == {"content_type": "image/gif"}


def test_processing_error_family():
    """Decode failures and timeouts are server-side failures."""
    assert issubclass(ImageDecodeError, ProcessingError)
    assert issubclass(AnalysisTimeoutError, ProcessingError)
    assert not issubclass(ProcessingError, InputError)


@pytest.mark.parametrize(
    "error,expected",
    [
        (InputError("bad"), 400),
        (UnsupportedImageError("bad"), 400),
        (ConfigurationError("bad"), 400),
        (ProcessingError("boom"), 500),
        (ImageDecodeError("boom"), 500),
        (AnalysisTimeoutError("slow"), 504),
        (WallVizError("other"), 500),
    ],
)
def test_status_mapping(error, expected):
    assert status_for(error) == expected
