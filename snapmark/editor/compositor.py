"""
Pixel buffer compositor for the SnapMark editor.

Writes a packed color onto the coordinates produced by the rasterizer and
keeps the session's UndoMap up to date, so the eraser can later put back
what was there before. All functions mutate the buffer passed in and hand
the same object back; nothing here keeps global state.
"""

from typing import Iterable, Optional, Tuple

from snapmark.editor.pixel_buffer import BYTES_PER_PIXEL, PixelBuffer, UndoMap
from snapmark.editor.rasterizer import line, rasterize
from snapmark.editor.shapes import ShapeType
from snapmark.services.logging_service import get_logger

Point = Tuple[int, int]

DEFAULT_ERASER_MARGIN = 12

logger = get_logger(__name__)


def apply_color(
    buffer: PixelBuffer,
    coords: Iterable[Point],
    color: int,
    undo_map: UndoMap,
) -> PixelBuffer:
    """
    Paint color onto every in-bounds coordinate.

    The first time a pixel is touched its previous color goes into
    undo_map; later edits of the same pixel leave that entry alone.
    Coordinates outside the buffer are skipped.
    """
    color_bytes = (color & 0xFFFFFFFF).to_bytes(BYTES_PER_PIXEL, "big")
    width, height, data = buffer.width, buffer.height, buffer.data

    for x, y in coords:
        if not (0 <= x < width and 0 <= y < height):
            continue
        i = (y * width + x) * BYTES_PER_PIXEL
        undo_map.record((x, y), int.from_bytes(data[i:i + BYTES_PER_PIXEL], "big"))
        data[i:i + BYTES_PER_PIXEL] = color_bytes

    return buffer


def brush_coordinates(center: Point, thickness: int) -> Iterable[Point]:
    """Coordinates of a thickness x thickness square centered on center."""
    size = max(thickness, 1)
    left = max(center[0] - size // 2, 0)
    top = max(center[1] - size // 2, 0)
    right = center[0] - size // 2 + size
    bottom = center[1] - size // 2 + size
    return ((x, y) for y in range(top, bottom) for x in range(left, right))


def apply_brush(
    buffer: PixelBuffer,
    center: Point,
    thickness: int,
    color: int,
    undo_map: UndoMap,
) -> PixelBuffer:
    """Paint a single square dab, used when a freehand stroke starts."""
    return apply_color(buffer, brush_coordinates(center, thickness), color, undo_map)


def erase(
    buffer: PixelBuffer,
    coords: Iterable[Point],
    undo_map: UndoMap,
) -> Optional[PixelBuffer]:
    """
    Restore the original color of every recorded coordinate in coords.

    Restored pixels are dropped from undo_map. Returns None when none of
    the coordinates had a recorded entry, so callers can skip the repaint.
    """
    width, data = buffer.width, buffer.data
    restored = 0

    for point in coords:
        original = undo_map.pop(point)
        if original is None:
            continue
        x, y = point
        i = (y * width + x) * BYTES_PER_PIXEL
        data[i:i + BYTES_PER_PIXEL] = original.to_bytes(BYTES_PER_PIXEL, "big")
        restored += 1

    if not restored:
        return None

    logger.debug(f"Restored {restored} pixels")
    return buffer


def draw_shape(
    buffer: PixelBuffer,
    shape: ShapeType,
    start: Point,
    end: Point,
    thickness: int,
    fill: bool,
    color: int,
    undo_map: UndoMap,
) -> PixelBuffer:
    """Rasterize shape between start and end and composite it in color."""
    coords = rasterize(shape, start, end, thickness, fill)
    return apply_color(buffer, coords, color, undo_map)


def erase_segment(
    buffer: PixelBuffer,
    start: Point,
    end: Point,
    thickness: int,
    undo_map: UndoMap,
    margin: int = DEFAULT_ERASER_MARGIN,
) -> Optional[PixelBuffer]:
    """
    Erase along the line from start to end.

    The stencil is margin pixels wider than the drawing thickness so the
    edges of thick strokes are cleared too.
    """
    return erase(buffer, line(start, end, thickness + margin), undo_map)
