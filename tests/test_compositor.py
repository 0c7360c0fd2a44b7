"""Tests for the pixel buffer compositor."""

import pytest

from snapmark.editor.compositor import (
    apply_brush,
    apply_color,
    draw_shape,
    erase,
    erase_segment,
)
from snapmark.editor.pixel_buffer import PixelBuffer, UndoMap, pack_rgba
from snapmark.editor.rasterizer import InvalidShapeError
from snapmark.editor.shapes import ShapeType

BLUE = pack_rgba(0, 0, 0xFF, 0xFF)
RED = pack_rgba(0xFF, 0, 0, 0xFF)
GREEN = pack_rgba(0, 0xFF, 0, 0xFF)


@pytest.fixture
def blue_buffer():
    return PixelBuffer.filled(8, 8, BLUE)


@pytest.fixture
def undo_map():
    return UndoMap()


def test_draw_then_erase_restores_original(blue_buffer, undo_map):
    apply_color(blue_buffer, {(3, 3)}, RED, undo_map)
    assert blue_buffer.get_pixel(3, 3) == RED
    assert blue_buffer.data[(3 * 8 + 3) * 4:(3 * 8 + 3) * 4 + 4] == bytes([0xFF, 0, 0, 0xFF])

    result = erase(blue_buffer, {(2, 2), (3, 3), (4, 4)}, undo_map)

    assert result is blue_buffer
    assert blue_buffer.get_pixel(3, 3) == BLUE
    assert (3, 3) not in undo_map


def test_apply_color_returns_same_buffer(blue_buffer, undo_map):
    assert apply_color(blue_buffer, {(0, 0)}, RED, undo_map) is blue_buffer


def test_undo_map_keeps_first_recorded_color(blue_buffer, undo_map):
    apply_color(blue_buffer, {(1, 1)}, RED, undo_map)
    apply_color(blue_buffer, {(1, 1)}, GREEN, undo_map)
    assert blue_buffer.get_pixel(1, 1) == GREEN
    assert undo_map.get((1, 1)) == BLUE

    erase(blue_buffer, {(1, 1)}, undo_map)
    assert blue_buffer.get_pixel(1, 1) == BLUE


def test_erase_without_history_returns_none(blue_buffer, undo_map):
    before = blue_buffer.copy()
    assert erase(blue_buffer, {(0, 0), (5, 5)}, undo_map) is None
    assert blue_buffer == before


def test_erase_twice_second_is_noop(blue_buffer, undo_map):
    apply_color(blue_buffer, {(2, 2)}, RED, undo_map)
    assert erase(blue_buffer, {(2, 2)}, undo_map) is not None
    assert erase(blue_buffer, {(2, 2)}, undo_map) is None


def test_out_of_bounds_coordinates_are_ignored(blue_buffer, undo_map):
    before = blue_buffer.copy()
    apply_color(blue_buffer, {(-1, 0), (8, 0), (0, 8), (100, 100)}, RED, undo_map)
    assert blue_buffer == before
    assert len(undo_map) == 0


def test_mixed_bounds_paints_only_inside(blue_buffer, undo_map):
    apply_color(blue_buffer, {(7, 7), (8, 7)}, RED, undo_map)
    assert blue_buffer.get_pixel(7, 7) == RED
    assert set(undo_map) == {(7, 7)}


@pytest.mark.parametrize("center,thickness,expected", [
    ((4, 4), 3, {(x, y) for x in range(3, 6) for y in range(3, 6)}),
    ((4, 4), 4, {(x, y) for x in range(2, 6) for y in range(2, 6)}),
    ((0, 0), 3, {(x, y) for x in range(0, 2) for y in range(0, 2)}),
    ((7, 7), 1, {(7, 7)}),
])
def test_apply_brush_square(blue_buffer, undo_map, center, thickness, expected):
    apply_brush(blue_buffer, center, thickness, RED, undo_map)
    assert set(undo_map) == expected
    for x, y in expected:
        assert blue_buffer.get_pixel(x, y) == RED


def test_draw_shape_rectangle(blue_buffer, undo_map):
    draw_shape(blue_buffer, ShapeType.RECTANGLE, (2, 2), (5, 5), 1, False, RED, undo_map)
    assert len(undo_map) == 12
    assert blue_buffer.get_pixel(2, 2) == RED
    assert blue_buffer.get_pixel(3, 3) == BLUE


def test_draw_shape_invalid_raises(blue_buffer, undo_map):
    with pytest.raises(InvalidShapeError):
        draw_shape(blue_buffer, ShapeType.CUT, (0, 0), (3, 3), 1, False, RED, undo_map)


def test_erase_segment_uses_wider_stencil(blue_buffer, undo_map):
    original = blue_buffer.copy()
    # Thick horizontal stroke on rows 2..6
    draw_shape(blue_buffer, ShapeType.LINE, (0, 4), (7, 4), 5, False, RED, undo_map)
    assert blue_buffer.get_pixel(3, 6) == RED

    # A thin erase along the centre still reaches the stroke edges
    result = erase_segment(blue_buffer, (0, 4), (7, 4), 1, undo_map, margin=12)
    assert result is blue_buffer
    assert blue_buffer == original
    assert len(undo_map) == 0


def test_erase_segment_without_margin_leaves_edges(blue_buffer, undo_map):
    draw_shape(blue_buffer, ShapeType.LINE, (0, 4), (7, 4), 5, False, RED, undo_map)
    erase_segment(blue_buffer, (0, 4), (7, 4), 1, undo_map, margin=0)
    assert blue_buffer.get_pixel(3, 4) == BLUE
    assert blue_buffer.get_pixel(3, 6) == RED
