from __future__ import annotations

from urllib.error import URLError

import cv2
import numpy as np
import pytest

from core.exceptions import ImageDecodeError, InputError, UnsupportedImageError
from core.settings import ImageSettings
from services.api import image_loader
from services.api.image_loader import (
    DefaultImageDecoder,
    decode_image_bytes,
    read_image_source,
    resize_to_fit,
    validate_image_payload,
)
from tests.utils_images import RED, png_bytes, png_data_url, solid_rgba, with_block


def test_decode_png_keeps_rgba_order():
    image = with_block(solid_rgba(6, 4, alpha=200), 0, 0, 3, 4, RED)
    decoded = decode_image_bytes(png_bytes(image))

    assert decoded.shape == (4, 6, 4)
    assert decoded[0, 0].tolist() == [255, 0, 0, 200]
    assert decoded[0, 5].tolist() == [128, 128, 128, 200]


def test_decode_grayscale_png():
    success, encoded = cv2.imencode(".png", np.full((3, 5), 90, dtype=np.uint8))
    assert success
    decoded = decode_image_bytes(encoded.tobytes())

    assert decoded.shape == (3, 5, 4)
    assert decoded[1, 1].tolist() == [90, 90, 90, 255]


def test_decode_garbage_fails():
    with pytest.raises(ImageDecodeError):
        decode_image_bytes(b"definitely not an image")


def test_payload_validation():
    settings = ImageSettings(max_bytes=10)
    validate_image_payload(b"x" * 10, "image/png", settings)
    validate_image_payload(b"x", None, settings)

    with pytest.raises(UnsupportedImageError):
        validate_image_payload(b"", "image/png", settings)
    with pytest.raises(UnsupportedImageError):
        validate_image_payload(b"x" * 11, "image/png", settings)
    with pytest.raises(UnsupportedImageError):
        validate_image_payload(b"x", "image/gif", settings)
    with pytest.raises(UnsupportedImageError):
        validate_image_payload(b"x", "text/plain", settings)


def test_resize_never_enlarges():
    image = solid_rgba(40, 20)
    assert resize_to_fit(image, 100, 100) is image

    smaller = resize_to_fit(solid_rgba(200, 100), 50, 50)
    assert smaller.shape == (25, 50, 4)


def test_data_url_source():
    payload, content_type = read_image_source(png_data_url(solid_rgba(2, 2)), ImageSettings())

    assert content_type == "image/png"
    assert payload.startswith(b"\x89PNG")


@pytest.mark.parametrize(
    "url",
    ["data:image/png;base64", "data:image/png;base64,@@@", "ftp://example.com/wall.png", "   "],
)
def test_bad_references_are_input_errors(url):
    with pytest.raises(InputError):
        read_image_source(url, ImageSettings())


def test_local_paths_and_file_urls(tmp_path):
    path = tmp_path / "wall.png"
    path.write_bytes(png_bytes(solid_rgba(3, 3)))
    settings = ImageSettings(allow_local_paths=True)

    for reference in (str(path), path.as_uri()):
        payload, content_type = read_image_source(reference, settings)
        assert content_type == "image/png"
        assert payload == path.read_bytes()

    with pytest.raises(InputError):
        read_image_source(str(tmp_path / "missing.png"), settings)


def test_local_paths_are_refused_by_default(tmp_path):
    path = tmp_path / "private.png"
    path.write_bytes(png_bytes(solid_rgba(3, 3)))

    for reference in (str(path), path.as_uri()):
        with pytest.raises(InputError) as excinfo:
            read_image_source(reference, ImageSettings())
        assert excinfo.value.message == "Local image paths are not allowed"


def test_local_file_without_image_extension_is_refused(tmp_path):
    path = tmp_path / "secrets.txt"
    path.write_bytes(png_bytes(solid_rgba(3, 3)))

    with pytest.raises(UnsupportedImageError):
        read_image_source(str(path), ImageSettings(allow_local_paths=True))


def test_remote_failure_is_decode_error(monkeypatch):
    def _unreachable(url, timeout):
        raise URLError("unreachable")

    monkeypatch.setattr(image_loader, "urlopen", _unreachable)
    with pytest.raises(ImageDecodeError):
        read_image_source("https://example.com/wall.jpg", ImageSettings())


def test_default_decoder_downscales():
    decoder = DefaultImageDecoder(ImageSettings(max_width=50, max_height=50))
    pixels = decoder(png_data_url(solid_rgba(200, 100)))

    assert (pixels.width, pixels.height) == (50, 25)
    assert not pixels.data.flags.writeable


def test_default_decoder_rejects_unsupported_format():
    decoder = DefaultImageDecoder(ImageSettings(supported_formats=["jpg"]))
    with pytest.raises(UnsupportedImageError):
        decoder(png_data_url(solid_rgba(4, 4)))
