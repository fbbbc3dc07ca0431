"""Visibility polygon for a point light among rectangular occluders.

This module answers the question: which part of the plane can a light at
position X reach? The answer is a polygon whose vertices are ordered by
direction around the light, ready to be drawn as a triangle fan.

The algorithm is a brute-force angular sweep:

  1. For every vertex of every occluder, cast three rays from the light:
     one straight through the vertex and two offset by +/- epsilon radians.
     The side rays slip just past the corner so the polygon wraps around
     occluder silhouettes instead of stopping on them.
  2. Sort all rays by direction, descending.
  3. For every ray, find the nearest intersection with any occluder edge.
     A hit within ``dead_zone`` of either end of its edge is near a corner,
     where a ray that merely grazes the corner registers jittery hits on
     both edges. Such a hit only counts if the ray is inside the occluder
     just before or just after it.
  4. A straight ray records the vertex it was aimed at whenever nothing
     blocks it before that vertex, so the outline follows silhouette
     corners as well as front corners (corner snap). Straight rays along
     one line all stop at the nearest corner any of them records.
  5. A ray that crosses no edge, or whose hit lies beyond its synthetic
     far endpoint, records that endpoint instead, so every ray contributes
     exactly one point.

Steps 3-5 are evaluated for all rays at once as an (R x E) numpy matrix,
using the same arithmetic as ``geometry.line_intersect``.

The returned polygon is the raw boundary (no apex). ``closed_fan`` converts
it to the apex-seeded, closed vertex list used by polygon-fan renderers.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry import box as shapely_box

from .geometry import Segment, distance_to, ray
from .types import Occluder, Point, Rectangle, VisibilityParams

# Side rays before the straight ray, then after it.
RAY_ROLES = (-1, 0, 1)

# Straight rays closer than this (radians) are treated as one line.
COLLINEAR_ANGLE = 1e-12

# Distance along a ray at which inside/outside is sampled around a corner.
INSIDE_STEP = 1e-6

# Relative slack when comparing a vertex distance with a hit distance.
SNAP_TOLERANCE = 1e-9


@dataclass(frozen=True)
class CastRay:
    """A ray plus the vertex and occluder it was generated for."""

    segment: Segment
    vertex: Point
    occluder_index: int
    role: int

    @property
    def direction(self) -> float:
        return self.segment.direction


def vertex_direction(light: Point, vertex: Point) -> float:
    """Direction from the light through the vertex, in (0, 2*pi]."""
    return math.atan2(light[1] - vertex[1], light[0] - vertex[0]) + math.pi


def vertex_rays(
    light: Point, vertex: Point, epsilon: float = 0.01
) -> list[Segment]:
    """The three rays cast around one vertex, in role order (-1, 0, +1)."""
    base = vertex_direction(light, vertex)
    return [ray(light, base + role * epsilon) for role in RAY_ROLES]


def generate_rays(
    light: Point, occluders: Sequence[Occluder], epsilon: float = 0.01
) -> list[CastRay]:
    rays: list[CastRay] = []
    for index, occluder in enumerate(occluders):
        for vertex in occluder.vertices():
            segments = vertex_rays(light, vertex, epsilon)
            for role, seg in zip(RAY_ROLES, segments):
                rays.append(
                    CastRay(
                        segment=seg,
                        vertex=vertex,
                        occluder_index=index,
                        role=role,
                    )
                )
    return rays


def sort_rays(rays: Sequence[CastRay]) -> list[CastRay]:
    """Order rays by direction, descending. Ties keep generation order."""
    return sorted(rays, key=lambda r: r.direction, reverse=True)


def _edge_array(
    occluders: Sequence[Occluder],
) -> tuple[np.ndarray, np.ndarray]:
    """All occluder edges as an (E, 4) array of (x1, y1, x2, y2).

    Also returns the (E,) index of the occluder owning each edge.
    """
    rows = []
    owners = []
    for index, occluder in enumerate(occluders):
        for edge in occluder.edges():
            rows.append((*edge.start, *edge.end))
            owners.append(index)
    edges = np.array(rows, dtype=np.float64).reshape(-1, 4)
    return edges, np.array(owners, dtype=np.intp)


def _blocks_at(
    occluder: Occluder,
    x: float,
    y: float,
    direction: float,
    step: float = INSIDE_STEP,
) -> bool:
    """Whether a ray through (x, y) is inside the occluder next to it."""
    ux = math.cos(direction)
    uy = math.sin(direction)
    return occluder.contains(x - ux * step, y - uy * step) or (
        occluder.contains(x + ux * step, y + uy * step)
    )


def nearest_hits(
    light: Point,
    rays: Sequence[CastRay],
    occluders: Sequence[Occluder],
    dead_zone: float = 0.5,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Nearest blocking hit for every ray.

    Hits within ``dead_zone`` of an edge end are kept only when the ray
    passes through the occluder's interior there (see ``_blocks_at``).

    Returns (hit_x, hit_y, hit_dist), each of shape (R,). Rays without a
    hit have hit_dist == inf and NaN coordinates.
    """
    edges, owners = _edge_array(occluders)
    n_rays = len(rays)
    if n_rays == 0 or len(edges) == 0:
        empty = np.full(n_rays, np.nan)
        return empty, empty.copy(), np.full(n_rays, np.inf)

    p0_x, p0_y = light
    ends = np.array([r.segment.end for r in rays], dtype=np.float64)
    s1_x = (ends[:, 0] - p0_x)[:, None]  # (R, 1)
    s1_y = (ends[:, 1] - p0_y)[:, None]

    p2_x = edges[:, 0]
    p2_y = edges[:, 1]
    p3_x = edges[:, 2]
    p3_y = edges[:, 3]
    s2_x = (p3_x - p2_x)[None, :]  # (1, E)
    s2_y = (p3_y - p2_y)[None, :]
    d_x = (p0_x - p2_x)[None, :]
    d_y = (p0_y - p2_y)[None, :]

    denom = -s2_x * s1_y + s1_x * s2_y  # (R, E)
    valid = (denom != 0) & np.isfinite(denom)
    safe_denom = np.where(valid, denom, 1.0)

    with np.errstate(invalid="ignore", over="ignore"):
        s = (-s1_y * d_x + s1_x * d_y) / safe_denom
        # t numerator is ray-independent: same for every row
        t = (s2_x * d_y - s2_y * d_x) / safe_denom

        valid &= (s >= 0) & (s <= 1) & (t >= 0) & (t <= 1)

        hit_x = p0_x + t * s1_x
        hit_y = p0_y + t * s1_y

        clear_of_start = np.hypot(hit_x - p2_x, hit_y - p2_y) > dead_zone
        clear_of_end = np.hypot(hit_x - p3_x, hit_y - p3_y) > dead_zone
        clear = clear_of_start & clear_of_end
        near_corner = valid & ~clear
        valid &= clear

        for ri, ei in zip(*np.nonzero(near_corner)):
            occluder = occluders[int(owners[ei])]
            if _blocks_at(
                occluder,
                float(hit_x[ri, ei]),
                float(hit_y[ri, ei]),
                rays[ri].direction,
            ):
                valid[ri, ei] = True

        dist = np.where(valid, np.hypot(hit_x - p0_x, hit_y - p0_y), np.inf)

    # argmin keeps the first of equal distances, i.e. scan order
    best = np.argmin(dist, axis=1)
    rows = np.arange(n_rays)
    best_dist = dist[rows, best]
    found = np.isfinite(best_dist)
    best_x = np.where(found, hit_x[rows, best], np.nan)
    best_y = np.where(found, hit_y[rows, best], np.nan)
    return best_x, best_y, best_dist


def _crosses_at_vertex(
    occluder: Occluder, cast: CastRay, step: float = INSIDE_STEP
) -> bool:
    """Whether the ray enters or leaves the occluder at its aimed vertex.

    A ray that only grazes the corner is outside the occluder on both
    sides of the vertex.
    """
    vx, vy = cast.vertex
    ux = math.cos(cast.direction)
    uy = math.sin(cast.direction)
    before = occluder.contains(vx - ux * step, vy - uy * step)
    after = occluder.contains(vx + ux * step, vy + uy * step)
    return before != after


def _no_farther(dist: float, limit: float) -> bool:
    return dist <= limit + SNAP_TOLERANCE * max(1.0, limit)


def _corner_stops(
    light: Point,
    rays: Sequence[CastRay],
    occluders: Sequence[Occluder],
    hit_dist: np.ndarray,
) -> dict[int, tuple[float, Point]]:
    """Nearest corner stopping each straight ray, keyed by ray index.

    A straight ray stops at its vertex when it enters or leaves the
    occluder there, or when it grazes the vertex with nothing in front.
    Straight rays through collinear corners (same direction) all stop at
    the nearest such corner.
    """
    straight = sorted(
        (i for i, cast in enumerate(rays) if cast.role == 0),
        key=lambda i: rays[i].direction,
    )
    groups: list[list[int]] = []
    for i in straight:
        if (
            groups
            and rays[i].direction - rays[groups[-1][-1]].direction
            <= COLLINEAR_ANGLE
        ):
            groups[-1].append(i)
        else:
            groups.append([i])

    stops: dict[int, tuple[float, Point]] = {}
    for group in groups:
        corners = []
        for i in group:
            cast = rays[i]
            to_vertex = distance_to(light, cast.vertex)
            if _no_farther(to_vertex, float(hit_dist[i])) or (
                _crosses_at_vertex(occluders[cast.occluder_index], cast)
            ):
                corners.append((to_vertex, cast.vertex))
        if corners:
            nearest = min(corners)
            for i in group:
                stops[i] = nearest
    return stops


def resolve_rays(
    light: Point,
    rays: Sequence[CastRay],
    occluders: Sequence[Occluder],
    dead_zone: float = 0.5,
) -> list[Point]:
    """One boundary point per ray, in the given ray order."""
    hit_x, hit_y, hit_dist = nearest_hits(light, rays, occluders, dead_zone)
    stops = _corner_stops(light, rays, occluders, hit_dist)

    points: list[Point] = []
    for i, cast in enumerate(rays):
        point: Point = (float(hit_x[i]), float(hit_y[i]))
        dist = float(hit_dist[i])

        if i in stops and _no_farther(stops[i][0], dist):
            dist, point = stops[i]

        if dist > distance_to(light, cast.segment.end):
            point = cast.segment.end

        points.append(point)
    return points


def _is_redundant(a: Point, b: Point, c: Point, tolerance: float) -> bool:
    """b duplicates a neighbour or sits on the straight run a -> c."""
    ab_x, ab_y = b[0] - a[0], b[1] - a[1]
    bc_x, bc_y = c[0] - b[0], c[1] - b[1]
    len_ab = math.hypot(ab_x, ab_y)
    len_bc = math.hypot(bc_x, bc_y)
    if len_ab <= tolerance or len_bc <= tolerance:
        return True
    cross = ab_x * bc_y - ab_y * bc_x
    dot = ab_x * bc_x + ab_y * bc_y
    return abs(cross) <= tolerance * len_ab * len_bc and dot > 0


def simplify_polygon(
    points: Sequence[Point], tolerance: float = 1e-9
) -> list[Point]:
    """Drop duplicate and collinear vertices, treating the list as a ring."""
    pts = list(points)
    changed = True
    while changed and len(pts) >= 3:
        changed = False
        i = 0
        while i < len(pts) and len(pts) >= 3:
            n = len(pts)
            if _is_redundant(pts[i - 1], pts[i], pts[(i + 1) % n], tolerance):
                del pts[i]
                changed = True
            else:
                i += 1
    return pts


def compute_visibility(
    light: Point,
    occluders: Sequence[Occluder],
    params: VisibilityParams | None = None,
) -> list[Point]:
    """Visibility polygon boundary around ``light``, by descending direction.

    Zero occluders give an empty polygon. Without a bounding occluder,
    directions that escape the scene end at the rays' synthetic endpoints.
    """
    if params is None:
        params = VisibilityParams()
    occluders = list(occluders)
    if not occluders:
        return []

    rays = sort_rays(generate_rays(light, occluders, params.epsilon))
    points = resolve_rays(light, rays, occluders, params.dead_zone)
    if params.simplify:
        points = simplify_polygon(points)
    return points


def closed_fan(light: Point, polygon: Sequence[Point]) -> list[Point]:
    """Apex-first, explicitly closed vertex list for polygon-fan drawing."""
    if not polygon:
        return []
    return [light, *polygon, polygon[0]]


def fan_triangles(
    light: Point, polygon: Sequence[Point]
) -> list[tuple[Point, Point, Point]]:
    """(light, p_i, p_i+1) wedges, including the wedge that wraps around."""
    n = len(polygon)
    if n < 2:
        return []
    return [(light, polygon[i], polygon[(i + 1) % n]) for i in range(n)]


def lit_region(polygon: Sequence[Point]) -> ShapelyPolygon:
    """The visibility polygon as a shapely geometry (empty if degenerate)."""
    if len(polygon) < 3:
        return ShapelyPolygon()
    region = ShapelyPolygon(polygon)
    if not region.is_valid:
        region = region.buffer(0)
    return region


def is_lit(polygon: Sequence[Point], point: Point) -> bool:
    """True if ``point`` lies in (or on the boundary of) the lit region."""
    return lit_region(polygon).covers(ShapelyPoint(point))


def lit_fraction(polygon: Sequence[Point], bounds: Rectangle) -> float:
    """Share of ``bounds`` covered by the lit region.

    The region is clipped to ``bounds`` first, so light escaping the
    bounds does not count.
    """
    area = bounds.width * bounds.height
    if area <= 0:
        return 0.0
    box = shapely_box(
        bounds.x, bounds.y, bounds.x + bounds.width, bounds.y + bounds.height
    )
    return lit_region(polygon).intersection(box).area / area
