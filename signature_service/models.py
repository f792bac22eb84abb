"""Domain records held by the overlay store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple

DEFAULT_SIGNATURE_WIDTH = 150.0
DEFAULT_SIGNATURE_HEIGHT = 50.0


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float = DEFAULT_SIGNATURE_WIDTH
    height: float = DEFAULT_SIGNATURE_HEIGHT


@dataclass(frozen=True)
class SignatureOverlay:
    """One requested signature placement, in top-left page coordinates."""

    image_data: str
    page: int
    position: Point
    size: Size = field(default_factory=Size)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DocumentRecord:
    identity: str
    base_bytes: bytes
    overlays: Tuple[SignatureOverlay, ...]
    created_at: datetime = field(default_factory=_utcnow)
