"""
Shape rasterizer for the SnapMark editor.

Turns a drag gesture (two corner points, not necessarily ordered) plus a
stroke thickness into the set of integer pixel coordinates the shape covers.
Results are sets so a pixel touched by more than one internal step is
painted, recorded and restored exactly once.

Coordinates are never negative: bands that would start left of or above the
image edge are clamped to 0. Coordinates past the right/bottom edge are left
for the compositor to drop.
"""

import math
from typing import Set, Tuple

from snapmark.editor.shapes import ShapeType

Point = Tuple[int, int]
PixelSet = Set[Point]


class InvalidShapeError(ValueError):
    """Raised when asked to rasterize a shape that has no pixels (None, Cut, ...)."""


def _normalize(start: Point, end: Point) -> Tuple[Point, Point]:
    """Return (top-left, bottom-right) corners of the box spanned by start/end."""
    x0, x1 = sorted((start[0], end[0]))
    y0, y1 = sorted((start[1], end[1]))
    return (x0, y0), (x1, y1)


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _ceil_sqrt(value: int) -> int:
    root = math.isqrt(value)
    return root if root * root == value else root + 1


def line(start: Point, end: Point, thickness: int) -> PixelSet:
    """
    Rasterize a straight line of the given thickness.

    The sweep runs over the normalized corners with one backbone pixel per
    column, y = ceil(m * x + q). Steep lines (|m| > 1) are thickened
    horizontally between consecutive backbone pixels, all others vertically.
    Lines dragged along the anti-diagonal are mirrored back afterwards since
    the normalized sweep always runs top-left to bottom-right.
    """
    if start == end:
        return set()

    dx = end[0] - start[0]
    dy = end[1] - start[1]
    (x0, y0), (x1, y1) = _normalize(start, end)
    half = thickness // 2

    pixels: PixelSet = set()

    if x0 == x1:
        # Vertical: thickness is horizontal around the column
        for x in range(max(x0 - half, 0), x0 + half + 1):
            for y in range(y0, y1 + 1):
                pixels.add((x, y))
    else:
        run = x1 - x0
        rise = y1 - y0
        # Integer form of ceil(m * x + q) so the backbone ends exactly on y1
        backbone = [(x, y0 + _ceil_div(rise * (x - x0), run)) for x in range(x0, x1 + 1)]

        if rise > run:
            for (x, y_from), (_, y_to) in zip(backbone, backbone[1:]):
                for x_th in range(max(x - half, 0), x + half + 1):
                    for y in range(y_from, y_to + 1):
                        pixels.add((x_th, y))
        else:
            for x, y in backbone:
                for y_th in range(max(y - half, 0), y + half + 1):
                    pixels.add((x, y_th))

    if (dx > 0 and dy < 0) or (dx < 0 and dy > 0):
        pixels = {(max(x1 - (x - x0), 0), y) for x, y in pixels}

    return pixels


def rectangle(start: Point, end: Point, thickness: int, filled: bool = False) -> PixelSet:
    """Rasterize a solid box, or its outline as four bands of the given thickness."""
    (x0, y0), (x1, y1) = _normalize(start, end)

    if filled:
        return {(x, y) for y in range(y0, y1 + 1) for x in range(x0, x1 + 1)}

    pixels: PixelSet = set()
    for y in range(y0, y1 + 1):
        for x in range(x0, x1 + 1):
            if (
                y < y0 + thickness
                or y > y1 - thickness
                or x < x0 + thickness
                or x > x1 - thickness
            ):
                pixels.add((x, y))
    return pixels


def circle(start: Point, end: Point, thickness: int, filled: bool = False) -> PixelSet:
    """
    Rasterize a circle inscribed in the dragged box.

    The box is squared up by growing its shorter side from the top-left
    corner, so a drag always produces a circle biased toward the larger
    dimension. The radius never drops below the thickness, which keeps a
    visible ring for tiny drags.
    """
    (x0, y0), (x1, y1) = _normalize(start, end)

    if x1 - x0 < y1 - y0:
        x1 = x0 + (y1 - y0)
    else:
        y1 = y0 + (x1 - x0)

    cx, cy = (x0 + x1) // 2, (y0 + y1) // 2
    radius = max((x1 - x0) // 2, thickness)
    inner = radius - thickness

    pixels: PixelSet = set()
    for x in range(x0, x1 + 1):
        for y in range(y0, y1 + 1):
            distance = _ceil_sqrt((cx - x) ** 2 + (cy - y) ** 2)
            if distance > radius:
                continue
            if filled or distance >= inner:
                pixels.add((x, y))
    return pixels


def rasterize(
    shape: ShapeType,
    start: Point,
    end: Point,
    thickness: int,
    fill: bool = False,
) -> PixelSet:
    """
    Dispatch to the rasterizer for shape.

    Raises:
        InvalidShapeError: shape is not a line, circle or rectangle, or the
            thickness is below 1. Reaching this means the tool state machine
            is out of step with the caller.
    """
    if thickness < 1:
        raise InvalidShapeError(f"Thickness must be at least 1, got {thickness}")
    if shape == ShapeType.LINE:
        return line(start, end, thickness)
    if shape == ShapeType.CIRCLE:
        return circle(start, end, thickness, fill)
    if shape == ShapeType.RECTANGLE:
        return rectangle(start, end, thickness, fill)
    raise InvalidShapeError(f"Unable to rasterize shape: {shape}")
