"""
Shape variants and tool state for the SnapMark editor.

ShapeType covers the plain tool kinds. The two valued selections, Fill and
Color, are small frozen dataclasses; ToolState.select() accepts any of the
three so toolbar callbacks can hand over whatever the user picked.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union


class ShapeType(Enum):
    """Enum for shape/tool kinds."""
    LINE = auto()
    CIRCLE = auto()
    RECTANGLE = auto()
    FREEHAND = auto()
    ERASER = auto()
    CUT = auto()
    NONE = auto()

    @property
    def is_paintable(self) -> bool:
        """True for shapes the rasterizer can turn into pixels."""
        return self in PAINTABLE_SHAPES

    @property
    def is_stroke(self) -> bool:
        """True for tools driven by a continuous pointer stroke."""
        return self in STROKE_SHAPES


PAINTABLE_SHAPES = frozenset({ShapeType.LINE, ShapeType.CIRCLE, ShapeType.RECTANGLE})
STROKE_SHAPES = frozenset({ShapeType.FREEHAND, ShapeType.ERASER})


@dataclass(frozen=True)
class Fill:
    """Selection toggling solid vs outline circles and rectangles."""
    value: bool


@dataclass(frozen=True)
class Color:
    """Selection changing the packed RGBA drawing color."""
    value: int


ToolSelection = Union[ShapeType, Fill, Color]

DEFAULT_COLOR = 0xFF0000FF
DEFAULT_THICKNESS = 5


@dataclass
class ToolState:
    """
    The user's current tool choices.

    Only toolbar callbacks mutate this; the stroke controller reads it
    each time it emits a segment.
    """
    shape: ShapeType = ShapeType.NONE
    color: int = DEFAULT_COLOR
    thickness: int = DEFAULT_THICKNESS
    fill: bool = False
    stroke_active: bool = False

    def select(self, selection: ToolSelection) -> bool:
        """
        Apply a toolbar selection.

        Returns True when the shape changed, which callers treat as a
        reset point for any in-flight stroke.
        """
        if isinstance(selection, Fill):
            self.fill = selection.value
            return False
        if isinstance(selection, Color):
            self.color = selection.value & 0xFFFFFFFF
            return False
        if isinstance(selection, ShapeType):
            changed = selection != self.shape
            self.shape = selection
            self.stroke_active = False
            return changed
        raise TypeError(f"Unknown tool selection: {selection!r}")

    def set_thickness(self, thickness: int) -> None:
        if thickness < 1:
            raise ValueError(f"Thickness must be positive, got {thickness}")
        self.thickness = thickness
