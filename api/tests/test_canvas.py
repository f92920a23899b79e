import pytest

from contractdesk.canvas import CanvasConfig, CanvasController, PointerButton
from contractdesk.fields import FieldType
from contractdesk.geometry import Point, ViewportTransform
from contractdesk.resizable import ResizeDirection


@pytest.fixture
def canvas():
    return CanvasController(CanvasConfig(grid_size=10))


def place(canvas, field_type, point):
    canvas.select_tool(field_type)
    assert canvas.pointer_down(point) == "place"
    canvas.pointer_up(point)
    return canvas.fields[-1]


def test_field_does_not_drift_under_zoom_and_pan(canvas):
    field = place(canvas, FieldType.SIGNATURE, Point(120, 80))
    assert (field.position.x, field.position.y) == (120, 80)
    assert (field.size.width, field.size.height) == (200, 60)

    canvas.set_transform(ViewportTransform(zoom=2.0, pan=Point(10, 10)))
    rect = canvas.screen_rect(field.id)
    assert (rect.x, rect.y) == (250, 170)
    assert (rect.width, rect.height) == (400, 120)
    assert canvas.get_field(field.id).position == field.position


def test_placement_snaps_and_clears_tool(canvas):
    field = place(canvas, FieldType.DATE, Point(123, 88))
    assert (field.position.x, field.position.y) == (120, 90)
    assert field.name == "date_1"
    assert canvas.active_tool is None


def test_placement_uses_document_space(canvas):
    canvas.set_transform(ViewportTransform(zoom=2.0, pan=Point(40, 0)))
    field = place(canvas, FieldType.TEXT, Point(240, 100))
    assert (field.position.x, field.position.y) == (100, 50)


def test_drag_move_snaps_and_commits(canvas):
    field = place(canvas, FieldType.SIGNATURE, Point(120, 80))
    events = []
    canvas.subscribe(events.append)
    assert canvas.pointer_down(Point(130, 90), field_id=field.id) == "move"
    canvas.pointer_move(Point(183, 90))
    canvas.pointer_up()
    moved = canvas.get_field(field.id)
    assert (moved.position.x, moved.position.y) == (170, 80)
    assert events[-1] == "committed"
    assert canvas.selection == frozenset({field.id})


def test_resize_at_zoom_uses_document_units(canvas):
    field = place(canvas, FieldType.SIGNATURE, Point(120, 80))
    canvas.set_transform(ViewportTransform(zoom=2.0))
    assert canvas.pointer_down(Point(640, 280), field_id=field.id, handle=ResizeDirection.SE) == "resize"
    canvas.pointer_up(Point(743, 280))
    resized = canvas.get_field(field.id)
    assert resized.size.width == pytest.approx(251.5)
    assert resized.size.height == 60
    assert (resized.position.x, resized.position.y) == (120, 80)


def test_cancel_restores_start_geometry(canvas):
    field = place(canvas, FieldType.NAME, Point(100, 100))
    canvas.pointer_down(Point(110, 110), field_id=field.id)
    canvas.pointer_move(Point(300, 300))
    assert canvas.get_field(field.id).position.x != 100
    canvas.cancel_interaction()
    assert canvas.get_field(field.id) == field
    assert not canvas.is_dragging


def test_pan_gesture_moves_viewport_only(canvas):
    field = place(canvas, FieldType.CHECKBOX, Point(50, 50))
    assert canvas.pointer_down(Point(0, 0), button=PointerButton.MIDDLE) == "pan"
    canvas.select_tool(FieldType.TEXT)
    assert canvas.place_field(FieldType.TEXT, Point(10, 10)) is None
    canvas.pointer_move(Point(30, 40))
    canvas.pointer_up()
    assert canvas.transform.pan == Point(30, 40)
    assert canvas.get_field(field.id).position == field.position
    assert canvas.pointer_down(Point(5, 5), modifiers={"space"}) == "pan"


def test_wheel_zooms_only_with_modifier(canvas):
    assert canvas.wheel(-100, Point(100, 100)) is False
    assert canvas.transform.zoom == 1.0
    assert canvas.wheel(-100, Point(100, 100), modifiers={"ctrl"}) is True
    assert canvas.transform.zoom == pytest.approx(1.1)
    assert canvas.transform.pan.x == pytest.approx(-10)


def test_update_and_delete_missing_field_are_noops(canvas):
    assert canvas.update_field("nope", position={"x": 1, "y": 1}) is None
    assert canvas.delete_field("nope") is False


def test_update_clamps_size_to_type_limits(canvas):
    field = place(canvas, FieldType.SIGNATURE, Point(0, 0))
    updated = canvas.update_field(field.id, size={"width": 10, "height": 999})
    assert (updated.size.width, updated.size.height) == (150, 200)


def test_delete_during_drag_ends_gesture(canvas):
    field = place(canvas, FieldType.TEXT, Point(0, 0))
    canvas.pointer_down(Point(5, 5), field_id=field.id)
    assert canvas.delete_field(field.id)
    canvas.pointer_move(Point(50, 50))
    canvas.pointer_up()
    assert canvas.fields == []


def test_shift_click_extends_selection_and_empty_click_clears(canvas):
    first = place(canvas, FieldType.TEXT, Point(0, 0))
    second = place(canvas, FieldType.TEXT, Point(0, 300))
    canvas.pointer_down(Point(5, 5), field_id=first.id)
    canvas.pointer_up()
    canvas.pointer_down(Point(5, 305), modifiers={"shift"}, field_id=second.id)
    canvas.pointer_up()
    assert canvas.selection == frozenset({first.id, second.id})
    assert canvas.pointer_down(Point(600, 600)) == "clear"
    assert canvas.selection == frozenset()


def test_records_round_trip_through_loader(canvas):
    place(canvas, FieldType.SIGNATURE, Point(120, 80))
    records = canvas.to_records(4)
    assert records[0]["contract_id"] == 4

    other = CanvasController()
    other.load_records(records)
    assert [(f.type, f.position) for f in other.fields] == [(f.type, f.position) for f in canvas.fields]


def test_second_pointer_down_during_drag_is_ignored(canvas):
    field = place(canvas, FieldType.TEXT, Point(0, 0))
    assert canvas.pointer_down(Point(5, 5), field_id=field.id) == "move"
    assert canvas.pointer_down(Point(5, 5), button=PointerButton.MIDDLE) == "ignored"
    assert not canvas.is_panning
    canvas.pointer_up()
    assert not canvas.is_dragging


def test_place_field_requires_matching_tool(canvas):
    canvas.select_tool(FieldType.SIGNATURE)
    assert canvas.place_field(FieldType.CHECKBOX, Point(10, 10)) is None
    assert canvas.fields == []
    assert canvas.active_tool is FieldType.SIGNATURE
    placed = canvas.place_field(FieldType.SIGNATURE, Point(10, 10))
    assert placed.type is FieldType.SIGNATURE


def test_default_names_are_not_reused_after_delete(canvas):
    first = place(canvas, FieldType.TEXT, Point(0, 0))
    second = place(canvas, FieldType.TEXT, Point(0, 100))
    assert (first.name, second.name) == ("text_1", "text_2")
    canvas.delete_field(first.id)
    third = place(canvas, FieldType.TEXT, Point(0, 200))
    assert third.name == "text_3"
    assert place(canvas, FieldType.DATE, Point(0, 300)).name == "date_1"


def test_loaded_names_seed_the_counter(canvas):
    place(canvas, FieldType.NAME, Point(0, 0))
    place(canvas, FieldType.NAME, Point(0, 100))
    other = CanvasController()
    other.load_records(canvas.to_records(1))
    assert place(other, FieldType.NAME, Point(0, 200)).name == "name_3"
