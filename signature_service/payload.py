"""Decoding of signature image payloads delivered as text."""

from __future__ import annotations

import base64
import binascii
import enum
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import DecodeError

_DATA_URI = re.compile(r"^\s*data:image/([a-z0-9.+-]+);base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

_JPEG_MAGIC = b"\xff\xd8\xff"
_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class ImageFormat(str, enum.Enum):
    JPEG = "JPEG"
    PNG = "PNG"


_TAG_FORMATS = {
    "jpeg": ImageFormat.JPEG,
    "jpg": ImageFormat.JPEG,
    "pjpeg": ImageFormat.JPEG,
    "png": ImageFormat.PNG,
}


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    format: ImageFormat


def split_payload(raw: str) -> Tuple[Optional[str], str]:
    """Return the lower-cased data URI image type (if any) and the encoded body."""
    match = _DATA_URI.match(raw)
    if match is None:
        return None, raw
    return match.group(1).lower(), raw[match.end():]


def payload_tag(raw: str) -> Optional[str]:
    return split_payload(raw)[0]


def is_supported_tag(tag: str) -> bool:
    return tag in _TAG_FORMATS


def sniff_format(data: bytes) -> Optional[ImageFormat]:
    if data.startswith(_PNG_MAGIC):
        return ImageFormat.PNG
    if data.startswith(_JPEG_MAGIC):
        return ImageFormat.JPEG
    return None


def decode_payload(raw: str) -> DecodedImage:
    """Decode ``raw`` into image bytes and their format.

    The optional ``data:image/<type>;base64,`` prefix is stripped. When the
    content itself is recognisable it wins over the tag; otherwise the tag
    decides. Anything outside JPEG and PNG raises :class:`DecodeError`.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise DecodeError("Empty image payload")

    tag, body = split_payload(raw)
    if tag is not None and not is_supported_tag(tag):
        raise DecodeError(f"Unsupported image type: {tag}")

    try:
        data = base64.b64decode(_WHITESPACE.sub("", body), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Image payload is not valid base64: {exc}") from exc

    if not data:
        raise DecodeError("Image payload decoded to zero bytes")

    detected = sniff_format(data)
    if detected is None and tag is not None:
        detected = _TAG_FORMATS[tag]
    if detected is None:
        raise DecodeError("Image payload is neither JPEG nor PNG")

    return DecodedImage(data=data, format=detected)
