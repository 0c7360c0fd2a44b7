"""Tests for the area/crop calculator."""

import itertools

import pytest
from PySide6.QtCore import QRect

from snapmark.core.area import Area, calculate_area


def test_clamps_and_normalizes():
    area = calculate_area((100, 100), (120, 50), (80, 20))
    assert area == Area(left_corner=(80, 20), width=20, height=30)


def test_drag_direction_does_not_matter():
    forward = calculate_area((200, 100), (10, 20), (60, 90))
    backward = calculate_area((200, 100), (60, 90), (10, 20))
    mixed = calculate_area((200, 100), (60, 20), (10, 90))
    assert forward == backward == mixed == Area((10, 20), 50, 70)


def test_negative_coordinates_clamp_to_zero():
    area = calculate_area((50, 50), (-30, -5), (20, 10))
    assert area == Area((0, 0), 20, 10)


def test_fully_outside_drag_collapses_to_none():
    assert calculate_area((50, 50), (60, 10), (90, 40)) is None


@pytest.mark.parametrize("start,end", [
    ((10, 10), (10, 10)),
    ((10, 10), (30, 10)),
    ((10, 10), (10, 30)),
])
def test_zero_sized_drag_is_none(start, end):
    assert calculate_area((100, 100), start, end) is None


def test_full_surface_selection():
    assert calculate_area((64, 48), (0, 0), (64, 48)) == Area((0, 0), 64, 48)


def test_result_always_fits_surface():
    surface = (13, 7)
    coords = [-3, 0, 4, 7, 13, 20]
    for sx, sy, ex, ey in itertools.product(coords, repeat=4):
        area = calculate_area(surface, (sx, sy), (ex, ey))
        if area is None:
            continue
        assert area.x + area.width <= surface[0]
        assert area.y + area.height <= surface[1]
        assert area.width > 0 and area.height > 0


def test_area_consumers():
    area = Area((5, 6), 7, 8)
    assert area.as_tuple() == (5, 6, 7, 8)
    assert area.to_qrect() == QRect(5, 6, 7, 8)
    assert area.fits((12, 14))
    assert not area.fits((11, 14))
