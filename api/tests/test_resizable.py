import pytest

from contractdesk.geometry import Point
from contractdesk.resizable import Geometry, ResizableInteraction, ResizeDirection, SizeLimits

START = Geometry(100, 100, 200, 60)
LIMITS = SizeLimits(150, 40)


def interaction(direction, **callbacks):
    return ResizableInteraction(Point(300, 160), START, direction, LIMITS, **callbacks)


def test_move_keeps_size_and_clamps_to_origin():
    move = interaction(ResizeDirection.MOVE)
    assert move.compute(Point(250, 110)) == Geometry(50, 50, 200, 60)
    assert move.compute(Point(0, 0)) == Geometry(0, 0, 200, 60)


def test_se_grows_and_shrinks_within_limits():
    se = interaction(ResizeDirection.SE)
    assert se.compute(Point(350, 180)) == Geometry(100, 100, 250, 80)
    assert se.compute(Point(100, 100)) == Geometry(100, 100, 150, 40)
    assert se.compute(Point(2000, 2000)) == Geometry(100, 100, 500, 200)


def test_west_resize_keeps_right_edge():
    west = interaction(ResizeDirection.W)
    assert west.compute(Point(250, 160)) == Geometry(50, 100, 250, 60)
    # shrinking past the minimum stops at it, right edge unchanged
    assert west.compute(Point(400, 160)) == Geometry(150, 100, 150, 60)


def test_west_resize_pins_at_document_edge():
    geometry = interaction(ResizeDirection.W).compute(Point(150, 160))
    assert geometry == Geometry(0, 100, 300, 60)
    assert geometry.x + geometry.width == START.x + START.width


def test_north_resize_moves_top_edge():
    assert interaction(ResizeDirection.N).compute(Point(300, 140)) == Geometry(100, 80, 200, 80)
    assert interaction(ResizeDirection.N).compute(Point(300, 0)) == Geometry(100, 0, 200, 160)


def test_updates_are_computed_from_baseline():
    east = interaction(ResizeDirection.E)
    east.update(Point(310, 160))
    assert east.update(Point(320, 160)).width == 220


def test_callbacks_fire_resize_then_move():
    calls = []
    nw = interaction(
        ResizeDirection.NW,
        on_move=lambda x, y: calls.append(("move", x, y)),
        on_resize=lambda w, h: calls.append(("resize", w, h)),
    )
    nw.update(Point(290, 150))
    assert calls == [("resize", 210, 70), ("move", 90, 90)]


def test_move_does_not_report_resize():
    calls = []
    move = interaction(ResizeDirection.MOVE, on_resize=lambda w, h: calls.append((w, h)))
    move.update(Point(320, 170))
    assert calls == []


def test_direction_edges():
    assert ResizeDirection.NE.moves_top_edge and not ResizeDirection.NE.moves_left_edge
    assert ResizeDirection.SW.moves_left_edge and ResizeDirection.SW.vertical
    assert not ResizeDirection.N.horizontal
    assert not ResizeDirection.MOVE.horizontal and not ResizeDirection.MOVE.vertical


@pytest.mark.parametrize("direction", [d for d in ResizeDirection if d is not ResizeDirection.MOVE])
@pytest.mark.parametrize("offset", [-5000, 5000])
def test_extreme_drags_stay_within_size_limits(direction, offset):
    resize = interaction(direction)
    for dx, dy in ((offset, offset), (offset, -offset), (-offset, offset)):
        geometry = resize.compute(Point(300 + dx, 160 + dy))
        assert LIMITS.min_width <= geometry.width <= LIMITS.max_width
        assert LIMITS.min_height <= geometry.height <= LIMITS.max_height
        assert geometry.x >= 0 and geometry.y >= 0
        if not direction.horizontal:
            assert (geometry.x, geometry.width) == (START.x, START.width)
        if not direction.vertical:
            assert (geometry.y, geometry.height) == (START.y, START.height)
