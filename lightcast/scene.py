"""Lights and occluders that make up a scene, updated once per tick.

A ``Scene`` owns the occluder list and the lights. ``Scene.update`` is the
per-tick entry point: every light whose position changed, or every light
when the occluders changed, recomputes its visibility polygon. Clean lights
keep their cached polygon untouched.

Each light builds its new polygon into a fresh tuple and swaps it in only
once the computation has finished, so a reader never observes a
half-built polygon.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from .types import Occluder, Point, Rectangle, VisibilityParams
from .visibility import RAY_ROLES, compute_visibility

logger = logging.getLogger(__name__)


def _check_position(position: Point) -> Point:
    x, y = position
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Light position must be finite, got {position!r}")
    return (float(x), float(y))


class LightSource:
    def __init__(
        self,
        position: Point = (0.0, 0.0),
        params: VisibilityParams | None = None,
    ) -> None:
        self._position: Point = _check_position(position)
        self.params = params if params is not None else VisibilityParams()
        self._visible: tuple[Point, ...] = ()
        self.dirty = True

    def __repr__(self) -> str:
        return (
            f"LightSource(position={self._position!r}, "
            f"vertices={len(self._visible)}, dirty={self.dirty})"
        )

    @property
    def position(self) -> Point:
        return self._position

    @property
    def x(self) -> float:
        return self._position[0]

    @property
    def y(self) -> float:
        return self._position[1]

    def set_position(self, new_position: Point) -> None:
        """Move the light. The cached polygon is stale until next update."""
        position = _check_position(new_position)
        if position != self._position:
            self._position = position
            self.dirty = True

    def move_to(self, new_position: Point) -> LightSource:
        """Mutating builder: move in place and return self."""
        self.set_position(new_position)
        return self

    def at_position(self, new_position: Point) -> LightSource:
        """Return a new light at ``new_position`` with the same params."""
        return LightSource(new_position, self.params)

    def invalidate(self) -> None:
        self.dirty = True

    def visible_polygon(self) -> list[Point]:
        """Most recently computed visibility polygon."""
        return list(self._visible)

    def update(
        self, occluders: Sequence[Occluder], force: bool = False
    ) -> bool:
        """Recompute the polygon if dirty (or forced).

        Returns True if a recomputation ran.
        """
        if not (self.dirty or force):
            return False
        polygon = tuple(
            compute_visibility(self._position, occluders, self.params)
        )
        self._visible = polygon
        self.dirty = False
        n_rays = len(RAY_ROLES) * sum(len(o.vertices()) for o in occluders)
        logger.debug(
            "Recomputed light at (%.2f, %.2f): %d rays, %d vertices",
            self._position[0],
            self._position[1],
            n_rays,
            len(polygon),
        )
        return True


@dataclass
class Scene:
    """Occluders plus the lights that see them.

    By convention the first occluder is the bounding box enclosing the
    playable area; renderers skip it (see ``render_shapes``).
    """

    occluders: list[Rectangle] = field(default_factory=list)
    lights: list[LightSource] = field(default_factory=list)

    @staticmethod
    def from_dict(d: dict) -> Scene:
        params = VisibilityParams.from_dict(d.get("params"))
        scene = Scene()
        for od in d.get("occluders", []):
            scene.occluders.append(Rectangle.from_dict(od))
        for ld in d.get("lights", []):
            scene.add_light(LightSource((ld["x"], ld["y"]), params))
        return scene

    def to_dict(self) -> dict:
        d: dict = {
            "occluders": [o.to_dict() for o in self.occluders],
            "lights": [{"x": lt.x, "y": lt.y} for lt in self.lights],
        }
        if self.lights:
            d["params"] = self.lights[0].params.to_dict()
        return d

    def add_light(self, light: LightSource) -> LightSource:
        light.invalidate()
        self.lights.append(light)
        return light

    def add_occluder(self, rect: Rectangle) -> int:
        """Append an occluder; returns its index.

        Negative sizes are normalized. Raises ValueError for zero-size or
        non-finite rectangles.
        """
        rect = rect.normalized()
        rect.validate()
        self.occluders.append(rect)
        self.invalidate()
        return len(self.occluders) - 1

    def move_occluder(self, index: int, x: float, y: float) -> None:
        moved = self.occluders[index].moved_to(x, y)
        moved.validate()
        self.occluders[index] = moved
        self.invalidate()

    def remove_occluder(self, index: int) -> Rectangle:
        removed = self.occluders.pop(index)
        self.invalidate()
        return removed

    def invalidate(self) -> None:
        """Mark every light dirty after an occluder change."""
        for light in self.lights:
            light.invalidate()

    def update(self) -> int:
        """Run one tick. Returns how many lights were recomputed."""
        snapshot = tuple(self.occluders)
        recomputed = 0
        for light in self.lights:
            if light.update(snapshot):
                recomputed += 1
        if recomputed == 0 and self.lights:
            logger.debug("Scene clean, %d lights skipped", len(self.lights))
        return recomputed

    def render_shapes(self) -> list[Rectangle]:
        """Occluders worth drawing: everything but the bounding box."""
        return self.occluders[1:]


DEFAULT_SIZE = 750.0


def default_scene() -> Scene:
    """The demo scene: a 750x750 box, three blocks, one light."""
    scene = Scene()
    for rect in (
        Rectangle(0.0, 0.0, DEFAULT_SIZE, DEFAULT_SIZE),
        Rectangle(30.0, 30.0, 80.0, 80.0),
        Rectangle(400.0, 80.0, 60.0, 120.0),
        Rectangle(300.0, 550.0, 350.0, 50.0),
    ):
        scene.add_occluder(rect)
    scene.add_light(LightSource((485.0, 485.0)))
    return scene
