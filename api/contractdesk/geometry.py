"""Screen <-> document coordinate transforms for the field canvas."""

from __future__ import annotations

from dataclasses import dataclass

MIN_ZOOM = 0.1
MAX_ZOOM = 3.0


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, float(zoom)))


@dataclass(frozen=True, slots=True)
class ViewportTransform:
    """Presentation-only zoom and pan. Never persisted with field coordinates."""

    zoom: float = 1.0
    pan: Point = Point(0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "zoom", clamp_zoom(self.zoom))

    def with_zoom(self, zoom: float) -> "ViewportTransform":
        return ViewportTransform(zoom=zoom, pan=self.pan)

    def with_pan(self, pan: Point) -> "ViewportTransform":
        return ViewportTransform(zoom=self.zoom, pan=pan)


def to_document_space(screen: Point, transform: ViewportTransform) -> Point:
    return Point(
        (screen.x - transform.pan.x) / transform.zoom,
        (screen.y - transform.pan.y) / transform.zoom,
    )


def to_screen_space(doc: Point, transform: ViewportTransform) -> Point:
    return Point(
        doc.x * transform.zoom + transform.pan.x,
        doc.y * transform.zoom + transform.pan.y,
    )


def snap_to_grid(value: float, grid_size: float) -> float:
    if grid_size <= 0:
        return value
    return round(value / grid_size) * grid_size


def snap_point(point: Point, grid_size: float) -> Point:
    return Point(snap_to_grid(point.x, grid_size), snap_to_grid(point.y, grid_size))


def zoom_at(transform: ViewportTransform, zoom: float, anchor: Point) -> ViewportTransform:
    """Zoom so the document point under ``anchor`` stays under it."""
    doc = to_document_space(anchor, transform)
    new_zoom = clamp_zoom(zoom)
    pan = Point(anchor.x - doc.x * new_zoom, anchor.y - doc.y * new_zoom)
    return ViewportTransform(zoom=new_zoom, pan=pan)
