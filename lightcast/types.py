"""Data types for 2D light scenes.

Coordinates are plain ``(x, y)`` float tuples. Occluders are axis-aligned
rectangles; anything that reports its corners and boundary edges and answers
strict point containment satisfies the ``Occluder`` protocol.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .geometry import Segment

Point = tuple[float, float]


class Occluder(Protocol):
    def vertices(self) -> list[Point]: ...

    def edges(self) -> list[Segment]: ...

    def contains(self, px: float, py: float) -> bool: ...


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle anchored at its (x, y) corner."""

    x: float
    y: float
    width: float
    height: float

    @staticmethod
    def from_dict(d: dict) -> Rectangle:
        """Build a rectangle from a dict, normalizing negative sizes.

        Raises ValueError for non-finite values or a zero width/height.
        """
        rect = Rectangle(
            x=float(d.get("x", 0.0)),
            y=float(d.get("y", 0.0)),
            width=float(d["width"]),
            height=float(d["height"]),
        ).normalized()
        rect.validate()
        return rect

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }

    def normalized(self) -> Rectangle:
        """Flip negative width/height so the anchor is the min corner."""
        x, w = self.x, self.width
        y, h = self.y, self.height
        if w < 0:
            x, w = x + w, -w
        if h < 0:
            y, h = y + h, -h
        return Rectangle(x=x, y=y, width=w, height=h)

    def validate(self) -> None:
        values = (self.x, self.y, self.width, self.height)
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"Rectangle has non-finite geometry: {self}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Rectangle must have positive size, got "
                f"{self.width}x{self.height}"
            )

    def moved_to(self, x: float, y: float) -> Rectangle:
        return Rectangle(x=x, y=y, width=self.width, height=self.height)

    def vertices(self) -> list[Point]:
        """Corners clockwise (in screen space, y down) from (x, y)."""
        x, y = self.x, self.y
        return [
            (x, y),
            (x + self.width, y),
            (x + self.width, y + self.height),
            (x, y + self.height),
        ]

    def edges(self) -> list[Segment]:
        from .geometry import segment

        pts = self.vertices()
        return [segment(pts[i], pts[(i + 1) % 4]) for i in range(4)]

    def contains(self, px: float, py: float) -> bool:
        """Strict interior test; boundary points are outside."""
        return (
            self.x < px < self.x + self.width
            and self.y < py < self.y + self.height
        )


@dataclass
class VisibilityParams:
    """Tuning knobs for the visibility sweep.

    epsilon      Angular offset (radians) of the side rays cast around
                 every occluder vertex.
    dead_zone    Hits closer than this to either end of the edge they
                 land on count only where the ray passes through the
                 occluder's interior; grazing corner hits are dropped.
    simplify     Drop duplicate and collinear boundary vertices.
    """

    epsilon: float = 0.01
    dead_zone: float = 0.5
    simplify: bool = True

    @staticmethod
    def from_dict(d: dict | None) -> VisibilityParams:
        """Raises ValueError for epsilon <= 0 or a negative dead zone."""
        if not d:
            return VisibilityParams()
        params = VisibilityParams(
            epsilon=float(d.get("epsilon", 0.01)),
            dead_zone=float(d.get("dead_zone", 0.5)),
            simplify=bool(d.get("simplify", True)),
        )
        if not params.epsilon > 0:
            raise ValueError(f"epsilon must be positive, got {params.epsilon}")
        if not params.dead_zone >= 0:
            raise ValueError(
                f"dead_zone must not be negative, got {params.dead_zone}"
            )
        return params

    def to_dict(self) -> dict:
        return {
            "epsilon": self.epsilon,
            "dead_zone": self.dead_zone,
            "simplify": self.simplify,
        }
