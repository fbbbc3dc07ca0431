"""Point and segment primitives plus the segment-segment intersection solver.

A ``Segment`` is a directed piece of line with its direction angle computed
once at construction. Rays are segments too: ``ray()`` pushes the far
endpoint out to ``RAY_LENGTH`` so that it crosses any occluder edge in the
scene. ``RAY_LENGTH`` must dwarf the scene extent; the demo scene is 750
units across.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .types import Point

RAY_LENGTH = 2147483647.0


def distance_to(a: Point, b: Point) -> float:
    """Euclidean distance. Non-finite inputs propagate NaN/inf."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def normalize_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi]."""
    wrapped = math.remainder(angle, 2.0 * math.pi)
    if wrapped <= -math.pi:
        wrapped += 2.0 * math.pi
    return wrapped


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point
    direction: float
    length: float = field(compare=False)


def segment(p1: Point, p2: Point) -> Segment:
    """Bounded segment from p1 to p2.

    A zero-length segment gets direction atan2(0, 0) == 0.
    """
    direction = normalize_angle(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))
    return Segment(
        start=p1, end=p2, direction=direction, length=distance_to(p1, p2)
    )


def ray(origin: Point, direction: float) -> Segment:
    """Segment from origin towards direction, RAY_LENGTH long."""
    end = (
        origin[0] + math.cos(direction) * RAY_LENGTH,
        origin[1] + math.sin(direction) * RAY_LENGTH,
    )
    return Segment(
        start=origin,
        end=end,
        direction=normalize_angle(direction),
        length=RAY_LENGTH,
    )


def line_intersect(
    p0_x: float,
    p0_y: float,
    p1_x: float,
    p1_y: float,
    p2_x: float,
    p2_y: float,
    p3_x: float,
    p3_y: float,
) -> Point | None:
    """Intersect (p0, p1) with (p2, p3), endpoints included.

    Solves p0 + t*(p1-p0) == p2 + s*(p3-p2) and returns the point iff both
    s and t lie in [0, 1]. Parallel, collinear, and zero-length inputs give
    None.
    """
    s1_x = p1_x - p0_x
    s1_y = p1_y - p0_y
    s2_x = p3_x - p2_x
    s2_y = p3_y - p2_y

    denom = -s2_x * s1_y + s1_x * s2_y
    if denom == 0 or not math.isfinite(denom):
        return None

    s = (-s1_y * (p0_x - p2_x) + s1_x * (p0_y - p2_y)) / denom
    t = (s2_x * (p0_y - p2_y) - s2_y * (p0_x - p2_x)) / denom

    if 0 <= s <= 1 and 0 <= t <= 1:
        return (p0_x + t * s1_x, p0_y + t * s1_y)
    return None


def segment_intersection(a: Segment, b: Segment) -> Point | None:
    return line_intersect(
        a.start[0],
        a.start[1],
        a.end[0],
        a.end[1],
        b.start[0],
        b.start[1],
        b.end[0],
        b.end[1],
    )
