"""Integer geometry for image regions: points, sizes and rectangles."""

from __future__ import annotations

from dataclasses import dataclass


def _trunc_div(a: int, b: int) -> int:
    """Integer division that rounds towards zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _clamp(value: int, lo: int, hi: int) -> int:
    if value < lo:
        return lo
    if hi < value:
        return hi
    return value


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0

    def __neg__(self) -> Point:
        return Point(-self.x, -self.y)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Size:
    width: int = 0
    height: int = 0

    def bounded_to_aspect_ratio(self, ratio: Size) -> Size:
        """Largest size within this one that has the aspect ratio of ``ratio``."""
        if not ratio.width or not ratio.height:
            raise ValueError("aspect ratio must have a non-zero width and height")
        ratio1 = self.width * ratio.height
        ratio2 = ratio.width * self.height
        if ratio1 > ratio2:
            return Size(ratio2 // ratio.height, self.height)
        return Size(self.width, ratio1 // ratio.width)

    def centered_to(self, center: Point) -> Rectangle:
        """A rectangle of this size centred on ``center``."""
        return Rectangle(
            center.x - self.width // 2,
            center.y - self.height // 2,
            self.width,
            self.height,
        )

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Rectangle:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def top_left(self) -> Point:
        return Point(self.x, self.y)

    def size(self) -> Size:
        return Size(self.width, self.height)

    def center(self) -> Point:
        return Point(self.x + self.width // 2, self.y + self.height // 2)

    def area(self) -> int:
        return self.width * self.height

    def translated_by(self, point: Point) -> Rectangle:
        return Rectangle(self.x + point.x, self.y + point.y, self.width, self.height)

    def bounded_to(self, bound: Rectangle) -> Rectangle:
        """The intersection with ``bound``; empty if they do not overlap."""
        left = max(self.x, bound.x)
        top = max(self.y, bound.y)
        right = min(self.x + self.width, bound.x + bound.width)
        bottom = min(self.y + self.height, bound.y + bound.height)
        return Rectangle(left, top, max(right - left, 0), max(bottom - top, 0))

    def enclosed_in(self, boundary: Rectangle) -> Rectangle:
        """Shrink and shift this rectangle so that it lies inside ``boundary``."""
        width = min(self.width, boundary.width)
        x = _clamp(self.x, boundary.x, boundary.x + boundary.width - width)
        height = min(self.height, boundary.height)
        y = _clamp(self.y, boundary.y, boundary.y + boundary.height - height)
        return Rectangle(x, y, width, height)

    def scaled_by(self, numerator: Size, denominator: Size) -> Rectangle:
        """Scale position and size by ``numerator / denominator``."""
        return Rectangle(
            _trunc_div(self.x * numerator.width, denominator.width),
            _trunc_div(self.y * numerator.height, denominator.height),
            self.width * numerator.width // denominator.width,
            self.height * numerator.height // denominator.height,
        )

    def __str__(self) -> str:
        return f"({self.x}, {self.y})/{self.width}x{self.height}"