"""Drag-move / drag-resize geometry for a single rectangular field."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .fields import MAX_HEIGHT, MAX_WIDTH
from .geometry import Point


class ResizeDirection(str, Enum):
    MOVE = "move"
    N = "n"
    S = "s"
    E = "e"
    W = "w"
    NE = "ne"
    NW = "nw"
    SE = "se"
    SW = "sw"

    @property
    def moves_left_edge(self) -> bool:
        return "w" in self.value and self is not ResizeDirection.MOVE

    @property
    def moves_top_edge(self) -> bool:
        return "n" in self.value

    @property
    def horizontal(self) -> bool:
        return self is not ResizeDirection.MOVE and ("e" in self.value or "w" in self.value)

    @property
    def vertical(self) -> bool:
        return "n" in self.value or "s" in self.value


@dataclass(frozen=True, slots=True)
class Geometry:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class SizeLimits:
    min_width: float
    min_height: float
    max_width: float = MAX_WIDTH
    max_height: float = MAX_HEIGHT


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ResizableInteraction:
    """One drag gesture. Every update is computed from the captured baseline,
    never from the previous update, so repeated moves cannot drift."""

    def __init__(
        self,
        start_pointer: Point,
        start_geometry: Geometry,
        direction: ResizeDirection,
        limits: SizeLimits,
        on_move: Optional[Callable[[float, float], None]] = None,
        on_resize: Optional[Callable[[float, float], None]] = None,
    ) -> None:
        self.start_pointer = start_pointer
        self.start_geometry = start_geometry
        self.direction = ResizeDirection(direction)
        self.limits = limits
        self._on_move = on_move
        self._on_resize = on_resize

    def compute(self, pointer: Point) -> Geometry:
        start = self.start_geometry
        dx = pointer.x - self.start_pointer.x
        dy = pointer.y - self.start_pointer.y

        if self.direction is ResizeDirection.MOVE:
            return Geometry(max(0.0, start.x + dx), max(0.0, start.y + dy), start.width, start.height)

        lim = self.limits
        x, y, width, height = start.x, start.y, start.width, start.height

        if self.direction.horizontal:
            if self.direction.moves_left_edge:
                width = _clamp(start.width - dx, lim.min_width, lim.max_width)
                x = start.x + (start.width - width)
                if x < 0:
                    # pinned at the document edge; right edge stays put
                    width = start.x + start.width
                    x = 0.0
            else:
                width = _clamp(start.width + dx, lim.min_width, lim.max_width)

        if self.direction.vertical:
            if self.direction.moves_top_edge:
                height = _clamp(start.height - dy, lim.min_height, lim.max_height)
                y = start.y + (start.height - height)
                if y < 0:
                    height = start.y + start.height
                    y = 0.0
            else:
                height = _clamp(start.height + dy, lim.min_height, lim.max_height)

        return Geometry(x, y, width, height)

    def update(self, pointer: Point) -> Geometry:
        geometry = self.compute(pointer)
        if self.direction is not ResizeDirection.MOVE and self._on_resize:
            self._on_resize(geometry.width, geometry.height)
        if self._on_move:
            self._on_move(geometry.x, geometry.y)
        return geometry
