"""Field-placement canvas: owns the in-memory field collection and turns pointer
events into placements, moves, resizes and viewport changes.

All field coordinates live in document space. The viewport transform only
affects how pointer positions are interpreted and where fields are drawn, so a
field never drifts when the user zooms or pans.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from .config import GRID_SIZE
from .fields import (
    DEFAULT_SIZES,
    MAX_HEIGHT,
    MAX_WIDTH,
    DocumentKind,
    Field,
    FieldType,
    Position,
    Size,
    clamp_size,
    min_size,
)
from .geometry import (
    Point,
    ViewportTransform,
    snap_point,
    to_document_space,
    to_screen_space,
    zoom_at,
)
from .resizable import Geometry, ResizableInteraction, ResizeDirection, SizeLimits

logger = logging.getLogger(__name__)


class PointerButton(str, Enum):
    PRIMARY = "primary"
    MIDDLE = "middle"
    SECONDARY = "secondary"


@dataclass(slots=True)
class CanvasConfig:
    document_kind: DocumentKind = DocumentKind.HTML
    grid_size: float = GRID_SIZE
    snap_enabled: bool = True
    zoom_modifier: str = "ctrl"
    pan_modifier: str = "space"
    zoom_step: float = 0.1


@dataclass(slots=True)
class _PanState:
    start_pointer: Point
    start_pan: Point


@dataclass(slots=True)
class _DragState:
    field_id: str
    interaction: ResizableInteraction
    start_field: Field


class CanvasController:
    def __init__(
        self,
        config: Optional[CanvasConfig] = None,
        fields: Iterable[Field] = (),
        transform: Optional[ViewportTransform] = None,
    ) -> None:
        self.config = config or CanvasConfig()
        self.transform = transform or ViewportTransform()
        self.active_tool: Optional[FieldType] = None
        self._fields: list[Field] = []
        self._selection: set[str] = set()
        self._pan: Optional[_PanState] = None
        self._drag: Optional[_DragState] = None
        self._listeners: list[Callable[[str], None]] = []
        self._name_counters: dict[FieldType, int] = {}
        for field in fields:
            self._add(field)

    # ---------- state ----------

    @property
    def fields(self) -> list[Field]:
        return list(self._fields)

    @property
    def selection(self) -> frozenset[str]:
        return frozenset(self._selection)

    @property
    def is_panning(self) -> bool:
        return self._pan is not None

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def subscribe(self, callback: Callable[[str], None]) -> None:
        self._listeners.append(callback)

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(event)

    def get_field(self, field_id: str) -> Optional[Field]:
        for field in self._fields:
            if field.id == field_id:
                return field
        return None

    def _index(self, field_id: str) -> Optional[int]:
        for index, field in enumerate(self._fields):
            if field.id == field_id:
                return index
        return None

    def _add(self, field: Field) -> None:
        if self._index(field.id) is not None:
            raise ValueError(f"duplicate field id {field.id}")
        self._fields.append(field)
        prefix, _, number = field.name.rpartition("_")
        if prefix == field.type.value and number.isdigit():
            current = self._name_counters.get(field.type, 0)
            self._name_counters[field.type] = max(current, int(number))

    def _next_name(self, field_type: FieldType) -> str:
        # never reuses a number, even after deletes
        number = self._name_counters.get(field_type, 0) + 1
        self._name_counters[field_type] = number
        return f"{field_type.value}_{number}"

    # ---------- tools and fields ----------

    def select_tool(self, field_type: Optional[FieldType]) -> None:
        self.active_tool = FieldType(field_type) if field_type is not None else None

    def place_field(
        self,
        field_type: FieldType,
        screen_point: Point,
        owner_id: Optional[str] = None,
    ) -> Optional[Field]:
        if self.active_tool is None or self._pan is not None:
            return None
        field_type = FieldType(field_type)
        if field_type is not self.active_tool:
            logger.debug("ignoring %s placement while the %s tool is active", field_type.value, self.active_tool.value)
            return None
        doc = to_document_space(screen_point, self.transform)
        if self.config.snap_enabled:
            doc = snap_point(doc, self.config.grid_size)
        width, height = DEFAULT_SIZES[field_type]
        field = Field(
            type=field_type,
            position=Position(x=max(0.0, doc.x), y=max(0.0, doc.y)),
            size=Size(width=width, height=height),
            owner_id=owner_id,
            name=self._next_name(field_type),
            placeholder=f"Enter {field_type.value}...",
        )
        self._add(field)
        self.active_tool = None
        logger.debug("placed %s field %s at (%s, %s)", field_type.value, field.id, doc.x, doc.y)
        self._emit("placed")
        return field

    def update_field(self, field_id: str, **changes) -> Optional[Field]:
        index = self._index(field_id)
        if index is None:
            # a delete may have landed first
            return None
        current = self._fields[index]
        changes = dict(changes)
        field_type = FieldType(changes.get("type", current.type))

        if "size" in changes or "type" in changes:
            size = changes.get("size", current.size)
            if isinstance(size, Size):
                size = size.model_dump()
            width = size.get("width", current.size.width)
            height = size.get("height", current.size.height)
            width, height = clamp_size(field_type, width, height)
            changes["size"] = {"width": width, "height": height}
        if "position" in changes:
            position = changes["position"]
            if isinstance(position, Position):
                position = position.model_dump()
            changes["position"] = {
                "x": max(0.0, position.get("x", current.position.x)),
                "y": max(0.0, position.get("y", current.position.y)),
            }

        updated = current.merged(changes)
        self._fields[index] = updated
        self._emit("updated")
        return updated

    def delete_field(self, field_id: str) -> bool:
        index = self._index(field_id)
        if index is None:
            return False
        if self._drag is not None and self._drag.field_id == field_id:
            self._drag = None
        self._fields.pop(index)
        self._selection.discard(field_id)
        self._emit("deleted")
        return True

    def select_field(self, field_id: str, additive: bool = False) -> None:
        if self._index(field_id) is None:
            return
        if additive:
            if field_id in self._selection:
                self._selection.remove(field_id)
            else:
                self._selection.add(field_id)
        else:
            self._selection = {field_id}
        self._emit("selection")

    def clear_selection(self) -> None:
        if self._selection:
            self._selection.clear()
            self._emit("selection")

    def delete_selected(self) -> int:
        removed = 0
        for field_id in list(self._selection):
            if self.delete_field(field_id):
                removed += 1
        return removed

    # ---------- viewport ----------

    def set_transform(self, transform: ViewportTransform) -> None:
        self.transform = transform
        self._emit("viewport")

    def set_zoom(self, zoom: float, anchor: Optional[Point] = None) -> None:
        if anchor is None:
            self.set_transform(self.transform.with_zoom(zoom))
        else:
            self.set_transform(zoom_at(self.transform, zoom, anchor))

    def screen_rect(self, field_id: str) -> Optional[Geometry]:
        field = self.get_field(field_id)
        if field is None:
            return None
        top_left = to_screen_space(Point(field.position.x, field.position.y), self.transform)
        zoom = self.transform.zoom
        return Geometry(top_left.x, top_left.y, field.size.width * zoom, field.size.height * zoom)

    # ---------- pointer protocol ----------

    def _is_pan_gesture(self, button: PointerButton, modifiers) -> bool:
        if button is PointerButton.MIDDLE:
            return True
        return button is PointerButton.PRIMARY and self.config.pan_modifier in modifiers

    def pointer_down(
        self,
        screen: Point,
        button: PointerButton = PointerButton.PRIMARY,
        modifiers: Iterable[str] = (),
        field_id: Optional[str] = None,
        handle: Optional[ResizeDirection] = None,
    ) -> str:
        button = PointerButton(button)
        modifiers = frozenset(modifiers)
        if self._pan is not None or self._drag is not None:
            return "ignored"

        if self._is_pan_gesture(button, modifiers):
            self._pan = _PanState(start_pointer=screen, start_pan=self.transform.pan)
            return "pan"

        if button is not PointerButton.PRIMARY:
            return "ignored"

        if self.active_tool is not None:
            placed = self.place_field(self.active_tool, screen)
            return "place" if placed else "ignored"

        if field_id is None:
            self.clear_selection()
            return "clear"

        field = self.get_field(field_id)
        if field is None:
            return "ignored"
        if "shift" in modifiers:
            self.select_field(field_id, additive=True)
        elif field_id not in self._selection:
            self.select_field(field_id)

        direction = ResizeDirection(handle) if handle is not None else ResizeDirection.MOVE
        self._begin_drag(field, direction, screen)
        return "resize" if direction is not ResizeDirection.MOVE else "move"

    def _begin_drag(self, field: Field, direction: ResizeDirection, screen: Point) -> None:
        min_w, min_h = min_size(field.type)
        field_id = field.id

        def on_move(x: float, y: float) -> None:
            if direction is ResizeDirection.MOVE and self.config.snap_enabled:
                snapped = snap_point(Point(x, y), self.config.grid_size)
                x, y = snapped.x, snapped.y
            self.update_field(field_id, position={"x": x, "y": y})

        def on_resize(width: float, height: float) -> None:
            self.update_field(field_id, size={"width": width, "height": height})

        interaction = ResizableInteraction(
            start_pointer=to_document_space(screen, self.transform),
            start_geometry=Geometry(field.position.x, field.position.y, field.size.width, field.size.height),
            direction=direction,
            limits=SizeLimits(min_w, min_h, MAX_WIDTH, MAX_HEIGHT),
            on_move=on_move,
            on_resize=on_resize,
        )
        self._drag = _DragState(field_id=field_id, interaction=interaction, start_field=field)

    def pointer_move(self, screen: Point) -> None:
        if self._pan is not None:
            delta = screen - self._pan.start_pointer
            self.set_transform(self.transform.with_pan(self._pan.start_pan + delta))
            return
        if self._drag is not None:
            self._drag.interaction.update(to_document_space(screen, self.transform))

    def pointer_up(self, screen: Optional[Point] = None) -> None:
        if screen is not None:
            self.pointer_move(screen)
        self._pan = None
        if self._drag is not None:
            self._drag = None
            self._emit("committed")

    def cancel_interaction(self) -> None:
        """Drop the in-flight gesture without committing any partial change."""
        if self._pan is not None:
            self.transform = self.transform.with_pan(self._pan.start_pan)
            self._pan = None
        if self._drag is not None:
            drag = self._drag
            self._drag = None
            index = self._index(drag.field_id)
            if index is not None:
                self._fields[index] = drag.start_field
            self._emit("cancelled")

    def wheel(self, delta_y: float, screen: Point, modifiers: Iterable[str] = ()) -> bool:
        """Zoom about the cursor when the zoom modifier is held; otherwise leave
        the event to the host for ordinary scrolling."""
        if self.config.zoom_modifier not in frozenset(modifiers):
            return False
        if delta_y == 0:
            return True
        step = self.config.zoom_step if delta_y < 0 else -self.config.zoom_step
        self.set_zoom(self.transform.zoom + step, anchor=screen)
        return True

    # ---------- persistence bridge ----------

    def to_records(self, contract_id) -> list[dict]:
        return [field.to_record(contract_id) for field in self._fields]

    def load_records(self, records: Iterable[dict]) -> None:
        self.cancel_interaction()
        self._fields = []
        self._selection.clear()
        for record in records:
            self._add(Field.from_record(record))
        self._emit("loaded")
