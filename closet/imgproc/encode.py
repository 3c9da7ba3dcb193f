"""Conversion between image bytes and ``data:`` URLs."""

from __future__ import annotations

import base64
import binascii
from io import BytesIO

from PIL import Image, UnidentifiedImageError


def detect_mime_type(data: bytes) -> str:
    """Return the MIME type of encoded image bytes."""

    try:
        with Image.open(BytesIO(data)) as img:
            image_format = img.format
    except UnidentifiedImageError as exc:
        raise ValueError("Data is not a supported image.") from exc
    mime_type = Image.MIME.get(image_format or "")
    if not mime_type:
        raise ValueError(f"Unsupported image format: {image_format}")
    return mime_type


def to_data_url(data: bytes | str, mime_type: str | None = None) -> str:
    """Build a data URL from raw image bytes or an already base64 encoded payload."""

    if isinstance(data, bytes):
        mime_type = mime_type or detect_mime_type(data)
        data = base64.b64encode(data).decode("ascii")
    elif not mime_type:
        raise ValueError("A MIME type is required for an encoded payload.")
    return f"data:{mime_type};base64,{data}"


def split_data_url(url: str) -> tuple[str, str]:
    """Split a base64 data URL into ``(payload, mime_type)``."""

    if not url.startswith("data:") or "," not in url:
        raise ValueError("Image is not a data URL.")
    header, payload = url[len("data:"):].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise ValueError("Only base64 data URLs are supported.")
    return payload, parts[0] or "application/octet-stream"


def decode_data_url(url: str) -> tuple[bytes, str]:
    """Return the raw bytes and MIME type held by a data URL."""

    payload, mime_type = split_data_url(url)
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (ValueError, binascii.Error) as exc:
        raise ValueError("Data URL payload is not valid base64.") from exc


__all__ = ["decode_data_url", "detect_mime_type", "split_data_url", "to_data_url"]
