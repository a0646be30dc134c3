"""
Rectangle Geometry

Pure rectangle arithmetic shared by detection and masking:
clamping, padding, intersection and precision scaling.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np


class Size(NamedTuple):
    """Image dimensions in pixels."""
    width: int
    height: int

    @classmethod
    def of(cls, image: np.ndarray) -> "Size":
        h, w = image.shape[:2]
        return cls(int(w), int(h))

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned region in pixel coordinates (x, y = top-left corner)."""
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"Rectangle {name} must be non-negative, got {value}")

    @classmethod
    def from_tuple(cls, box) -> "Rectangle":
        """Build from an (x, y, w, h) tuple as returned by cv2.boundingRect."""
        x, y, w, h = (int(v) for v in box)
        return cls(x, y, w, h)

    @classmethod
    def parse(cls, text: str) -> "Rectangle":
        """Parse "x,y,w,h"."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected x,y,width,height, got {text!r}")
        return cls.from_tuple(int(p) for p in parts)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


def intersect(a: Rectangle, b: Rectangle) -> Rectangle:
    """Overlap of two rectangles; zero-sized if they do not touch."""
    x1 = max(a.x, b.x)
    y1 = max(a.y, b.y)
    x2 = min(a.right, b.right)
    y2 = min(a.bottom, b.bottom)
    if x2 <= x1 or y2 <= y1:
        return Rectangle(x1, y1, 0, 0)
    return Rectangle(x1, y1, x2 - x1, y2 - y1)


def clamp(rect: Rectangle, size: Size) -> Rectangle:
    """Restrict a rectangle to the image bounds."""
    return intersect(rect, Rectangle(0, 0, size.width, size.height))


def pad(rect: Rectangle, size: Size, padding: int) -> Rectangle:
    """
    Grow a rectangle by `padding` pixels on every side, clamped to the image.

    Width and height grow by at most 2 * padding each.
    """
    if padding < 0:
        raise ValueError(f"padding must be non-negative, got {padding}")
    x1 = max(0, rect.x - padding)
    y1 = max(0, rect.y - padding)
    x2 = min(size.width, rect.right + padding)
    y2 = min(size.height, rect.bottom + padding)
    return Rectangle(x1, y1, max(0, x2 - x1), max(0, y2 - y1))


def scale(rect: Rectangle, precision: float, cutoff: float = 0.9) -> Rectangle:
    """
    Shrink width and height by `precision` (floored) when it is below `cutoff`.

    The top-left corner stays fixed. 200x50 at 0.85 becomes 170x42.
    """
    if precision >= cutoff:
        return rect
    if precision <= 0:
        raise ValueError(f"precision must be positive, got {precision}")
    return Rectangle(
        rect.x,
        rect.y,
        math.floor(rect.width * precision),
        math.floor(rect.height * precision),
    )
