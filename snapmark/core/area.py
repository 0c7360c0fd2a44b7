"""
Area calculation shared by area capture and crop.

The same routine turns a drag into a rectangle both before any pixels exist
(asking the capture backend for a sub-region of the screen) and afterwards
(highlighting and cropping an already captured image). Using one routine
keeps the visible highlight and the actual crop in agreement.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from PySide6.QtCore import QRect

Point = Tuple[int, int]
Size = Tuple[int, int]


@dataclass(frozen=True)
class Area:
    """A normalized rectangle inside a surface of known size."""
    left_corner: Point
    width: int
    height: int

    @property
    def x(self) -> int:
        return self.left_corner[0]

    @property
    def y(self) -> int:
        return self.left_corner[1]

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """(x, y, width, height) as the capture backend expects it."""
        return self.x, self.y, self.width, self.height

    def to_qrect(self) -> QRect:
        return QRect(self.x, self.y, self.width, self.height)

    def fits(self, surface_size: Size) -> bool:
        return (
            self.x + self.width <= surface_size[0]
            and self.y + self.height <= surface_size[1]
        )


def _clamp(value: int, upper: int) -> int:
    return min(max(value, 0), upper)


def calculate_area(surface_size: Size, start: Point, end: Point) -> Optional[Area]:
    """
    Normalize two drag corners into an Area clamped to the surface.

    Each coordinate is clamped on its own, so a drag that runs off the
    surface (onto a neighbouring monitor, past the canvas edge) is pulled
    back to the nearest edge rather than rejected.

    Returns:
        The Area, or None when the drag has no width or height or the
        result does not fit the surface. None means "no valid selection";
        callers must not retry with a different rectangle.
    """
    surface_width, surface_height = surface_size

    start_x = _clamp(int(start[0]), surface_width)
    end_x = _clamp(int(end[0]), surface_width)
    start_y = _clamp(int(start[1]), surface_height)
    end_y = _clamp(int(end[1]), surface_height)

    area = Area(
        left_corner=(min(start_x, end_x), min(start_y, end_y)),
        width=abs(start_x - end_x),
        height=abs(start_y - end_y),
    )

    if area.width == 0 or area.height == 0:
        return None
    if not area.fits(surface_size):
        return None
    return area
