from __future__ import annotations

import numpy as np
import pytest

from core.exceptions import InputError
from core.imaging.pixels import PixelBuffer, as_pixel_buffer, to_grayscale
from tests.utils_images import solid_rgba


def test_from_bytes_builds_read_only_view():
    raw = bytes(range(24))
    pixels = PixelBuffer.from_bytes(raw, width=3, height=2)

    assert pixels.data.shape == (2, 3, 4)
    assert not pixels.data.flags.writeable
    assert pixels.data[1, 2].tolist() == [20, 21, 22, 23]


def test_length_mismatch_is_input_error():
    with pytest.raises(InputError) as excinfo:
        PixelBuffer.from_bytes(bytes(10), width=2, height=2)
    assert excinfo.value.details["expected"] == "16"


@pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 3)])
def test_non_positive_dimensions_rejected(width, height):
    with pytest.raises(InputError):
        PixelBuffer.from_bytes(b"", width=width, height=height)


def test_wrapping_an_array_leaves_caller_array_writable():
    image = solid_rgba(4, 3)
    pixels = as_pixel_buffer(image, 4, 3)

    assert not pixels.data.flags.writeable
    assert image.flags.writeable
    image[0, 0, 0] = 7
    assert pixels.data[0, 0, 0] == 7  # shares memory, no copy


def test_array_shape_must_match_dimensions():
    with pytest.raises(InputError):
        as_pixel_buffer(solid_rgba(4, 3), 3, 4)


def test_flat_array_needs_dimensions():
    flat = solid_rgba(2, 2).reshape(-1)
    with pytest.raises(InputError):
        PixelBuffer.from_array(flat)
    assert PixelBuffer.from_array(flat, 2, 2).data.shape == (2, 2, 4)


def test_non_uint8_arrays_rejected():
    with pytest.raises(InputError):
        PixelBuffer.from_array(np.zeros((2, 2, 4), dtype=np.float32))


def test_unsupported_source_type():
    with pytest.raises(InputError):
        as_pixel_buffer([1, 2, 3, 4], 1, 1)


def test_grayscale_uses_luminance_weights():
    image = np.array(
        [[[255, 0, 0, 255], [0, 255, 0, 255], [0, 0, 255, 255], [128, 128, 128, 255]]],
        dtype=np.uint8,
    )
    gray = to_grayscale(PixelBuffer.from_array(image))

    assert gray.dtype == np.uint8
    assert gray.tolist() == [[76, 150, 29, 128]]
