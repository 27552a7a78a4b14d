"""Image reference resolution and decoding for the analysis endpoints.

The analysis core never decodes images itself; routes receive an
``ImageDecoder`` (``str -> PixelBuffer``) through a FastAPI dependency, and
this module provides the default one.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Callable
from urllib.error import URLError
from urllib.parse import unquote, urlparse
from urllib.request import urlopen

import cv2
import numpy as np
from loguru import logger

from core.exceptions import ImageDecodeError, InputError, UnsupportedImageError
from core.imaging.pixels import PixelBuffer
from core.settings import ImageSettings

ImageDecoder = Callable[[str], PixelBuffer]

EXTENSION_CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}


def _format_from_content_type(content_type: str) -> str:
    subtype = content_type.split(";", 1)[0].strip().lower()
    if not subtype.startswith("image/"):
        return ""
    return subtype.split("/", 1)[1]


def validate_image_payload(payload: bytes, content_type: str | None, settings: ImageSettings) -> None:
    """Reject empty, oversized or unsupported image payloads."""
    if not payload:
        raise UnsupportedImageError("Image payload is empty")
    if len(payload) > settings.max_bytes:
        raise UnsupportedImageError(
            f"File size must be less than {settings.max_bytes // (1024 * 1024)}MB",
            {"size": str(len(payload)), "max_bytes": str(settings.max_bytes)},
        )
    if content_type:
        fmt = _format_from_content_type(content_type)
        if fmt not in settings.supported_formats:
            raise UnsupportedImageError(
                "Unsupported image format",
                {"content_type": content_type, "supported": ",".join(settings.supported_formats)},
            )


def decode_image_bytes(payload: bytes) -> np.ndarray:
    """Decode an encoded image into an (H, W, 4) uint8 RGBA array."""
    image = cv2.imdecode(np.frombuffer(payload, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if image is None or image.size == 0:
        raise ImageDecodeError("Image could not be decoded")
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise ImageDecodeError("Unsupported pixel depth", {"dtype": str(image.dtype)})

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2RGBA)
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    raise ImageDecodeError("Unsupported channel count", {"channels": str(channels)})


def resize_to_fit(rgba: np.ndarray, max_width: int, max_height: int) -> np.ndarray:
    """Shrink to fit inside max_width x max_height keeping aspect ratio; never enlarges."""
    h, w = rgba.shape[:2]
    ratio = min(max_width / w, max_height / h)
    if ratio >= 1.0:
        return rgba
    new_w = max(1, int(round(w * ratio)))
    new_h = max(1, int(round(h * ratio)))
    logger.debug("Downscaling image from {w}x{h} to {nw}x{nh}", w=w, h=h, nw=new_w, nh=new_h)
    return cv2.resize(rgba, (new_w, new_h), interpolation=cv2.INTER_AREA)


def _read_data_url(image_url: str) -> tuple[bytes, str | None]:
    header, sep, data = image_url.partition(",")
    if not sep or not header.startswith("data:"):
        raise InputError("Malformed data URL")
    meta = header[len("data:"):]
    content_type = meta.split(";", 1)[0] or None
    try:
        if ";base64" in meta:
            payload = base64.b64decode(data, validate=True)
        else:
            payload = unquote(data).encode("latin-1")
    except (binascii.Error, ValueError, UnicodeEncodeError) as exc:
        raise InputError("Malformed data URL payload") from exc
    return payload, content_type


def _read_remote(image_url: str, settings: ImageSettings) -> tuple[bytes, str | None]:
    try:
        with urlopen(image_url, timeout=settings.fetch_timeout_seconds) as resp:
            payload = resp.read(settings.max_bytes + 1)
            content_type = resp.headers.get_content_type() if resp.headers else None
    except (URLError, OSError, ValueError) as exc:
        raise ImageDecodeError("Image could not be fetched", {"url": image_url}) from exc
    return payload, content_type


def _read_local(path: Path, settings: ImageSettings) -> tuple[bytes, str | None]:
    if not settings.allow_local_paths:
        raise InputError("Local image paths are not allowed")
    content_type = EXTENSION_CONTENT_TYPES.get(path.suffix.lower())
    if content_type is None:
        raise UnsupportedImageError("Unsupported image format", {"extension": path.suffix.lower()})
    if not path.is_file():
        raise InputError("Image file not found", {"path": str(path)})
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise ImageDecodeError("Image file could not be read", {"path": str(path)}) from exc
    return payload, content_type


def read_image_source(image_url: str, settings: ImageSettings) -> tuple[bytes, str | None]:
    """Fetch the encoded bytes behind an image reference.

    Returns:
        Tuple of (payload, content_type); content type is None when unknown.
    """
    if not image_url or not image_url.strip():
        raise InputError("Image URL is required")
    image_url = image_url.strip()
    if image_url.startswith("data:"):
        return _read_data_url(image_url)

    parsed = urlparse(image_url)
    scheme = parsed.scheme.lower()
    # Windows drive letters parse as one-letter schemes
    if not scheme or (len(scheme) == 1 and not parsed.netloc):
        return _read_local(Path(image_url), settings)
    if scheme == "file":
        return _read_local(Path(unquote(parsed.path)), settings)
    if scheme in {"http", "https"}:
        return _read_remote(image_url, settings)
    raise InputError("Unsupported image URL scheme", {"scheme": scheme})


class DefaultImageDecoder:
    """Resolve, validate, decode and downscale an image reference into a PixelBuffer."""

    def __init__(self, settings: ImageSettings | None = None) -> None:
        self.settings = settings or ImageSettings()

    def __call__(self, image_url: str) -> PixelBuffer:
        payload, content_type = read_image_source(image_url, self.settings)
        validate_image_payload(payload, content_type, self.settings)
        rgba = decode_image_bytes(payload)
        rgba = resize_to_fit(rgba, self.settings.max_width, self.settings.max_height)
        return PixelBuffer.from_array(np.ascontiguousarray(rgba))


__all__ = [
    "DefaultImageDecoder",
    "ImageDecoder",
    "decode_image_bytes",
    "read_image_source",
    "resize_to_fit",
    "validate_image_payload",
]
