"""Coordinate conversion between caller space and PDF native space.

Callers place signatures with the origin at the page's top-left corner and
the y axis pointing down. PDF user space puts the origin at the bottom-left
corner with y pointing up. Units are the page's own (points).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .models import Point, Size


@dataclass(frozen=True)
class NativeRect:
    """Rectangle in PDF native coordinates, anchored at its lower-left corner."""

    x: float
    y: float
    width: float
    height: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


def to_native(position: Point, size: Size, page_height: float) -> NativeRect:
    """Flip a top-left placement so its visual top-left lands on ``position``.

    Rectangles falling partly or fully off the page are returned as-is.
    """
    width = float(size.width)
    height = float(size.height)
    return NativeRect(
        x=float(position.x),
        y=float(page_height) - float(position.y) - height,
        width=width,
        height=height,
    )


def from_native(rect: NativeRect, page_height: float) -> Tuple[Point, Size]:
    position = Point(x=rect.x, y=float(page_height) - rect.y - rect.height)
    return position, Size(width=rect.width, height=rect.height)
