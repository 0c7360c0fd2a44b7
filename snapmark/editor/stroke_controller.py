"""
Pointer gesture handling for the SnapMark editor.

The StrokeController turns pointer events from the canvas widget into
compositor calls:

- Freehand and eraser strokes: every pointer move is chained to the
  previous sample and emitted as one short line (or erase stencil).
- Line, circle and rectangle: the press position anchors a drag and the
  shape is drawn once on release.
- Cut: the drag is turned into an Area for the crop preview.

Positions arrive in widget space as QPointF and are mapped into image space
with the ratio image.width / widget.width. Drag corners are rounded up to
whole widget pixels first; stroke samples are scaled as they arrive.
"""

import math
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Deque, Optional, Tuple

from PySide6.QtCore import QPointF, QSizeF, Qt

from snapmark.core.area import Area, calculate_area
from snapmark.editor import compositor
from snapmark.editor.pixel_buffer import PixelBuffer, UndoMap
from snapmark.editor.rasterizer import line
from snapmark.editor.shapes import ShapeType, ToolState
from snapmark.services.logging_service import get_logger

Point = Tuple[int, int]

# Positions this close to the top/left edge count as leaving the canvas
EDGE_EPSILON = 0.1


class StrokeState(Enum):
    """Enum for controller states."""
    IDLE = auto()
    DRAWING = auto()


@dataclass
class GestureResult:
    """Outcome of a pointer release."""
    buffer: Optional[PixelBuffer] = None
    area: Optional[Area] = None

    @property
    def changed(self) -> bool:
        return self.buffer is not None


class StrokeController:
    """
    State machine for drawing gestures on one image.

    The tool state is read at the moment each segment is emitted, so a
    tool change never rewrites segments that were already drawn.
    """

    def __init__(
        self,
        tool: ToolState,
        undo_map: UndoMap,
        eraser_margin: int = compositor.DEFAULT_ERASER_MARGIN,
    ) -> None:
        self._logger = get_logger(__name__)
        self._tool = tool
        self._undo_map = undo_map
        self._eraser_margin = eraser_margin

        self._state = StrokeState.IDLE
        self._points: Deque[Point] = deque()
        self._anchor: Optional[QPointF] = None

    @property
    def state(self) -> StrokeState:
        return self._state

    @property
    def pending_points(self) -> Tuple[Point, ...]:
        return tuple(self._points)

    @property
    def undo_map(self) -> UndoMap:
        return self._undo_map

    @undo_map.setter
    def undo_map(self, value: UndoMap) -> None:
        self._undo_map = value

    # ─── Coordinate Mapping ───────────────────────────────────────────────

    @staticmethod
    def _ratio(buffer: PixelBuffer, widget_size: Optional[QSizeF]) -> float:
        if widget_size is None or widget_size.width() <= 0:
            return 1.0
        return buffer.width / widget_size.width()

    def map_to_image(
        self,
        pos: QPointF,
        buffer: PixelBuffer,
        widget_size: Optional[QSizeF] = None,
        offset: int = 0,
    ) -> Point:
        """Map a widget-space position to integer image coordinates."""
        ratio = self._ratio(buffer, widget_size)
        x = max(int(pos.x() * ratio), 0) + offset
        y = max(int(pos.y() * ratio), 0) + offset
        return x, y

    @staticmethod
    def _snap(pos: QPointF) -> QPointF:
        """Round a drag corner up to whole widget pixels before it is scaled."""
        return QPointF(math.ceil(pos.x()), math.ceil(pos.y()))

    @staticmethod
    def _inside_canvas(
        pos: QPointF,
        buffer: PixelBuffer,
        widget_size: Optional[QSizeF],
    ) -> bool:
        if widget_size is None:
            widget_size = QSizeF(buffer.width, buffer.height)
        if pos.x() < EDGE_EPSILON or pos.y() < EDGE_EPSILON:
            return False
        return pos.x() <= widget_size.width() and pos.y() <= widget_size.height()

    # ─── Events ───────────────────────────────────────────────────────────

    def press(
        self,
        pos: QPointF,
        buffer: PixelBuffer,
        widget_size: Optional[QSizeF] = None,
    ) -> Optional[PixelBuffer]:
        """
        Handle pointer-down.

        Returns the buffer when the press itself painted something (the
        first dab of a freehand stroke), otherwise None.
        """
        shape = self._tool.shape

        if shape.is_stroke:
            self._state = StrokeState.DRAWING
            self._tool.stroke_active = True
            self._points.clear()
            self._anchor = None

            if shape == ShapeType.FREEHAND:
                center = self.map_to_image(pos, buffer, widget_size, self._tool.thickness // 2)
                # The first segment starts from the dab
                self._points.append(center)
                return compositor.apply_brush(
                    buffer, center, self._tool.thickness, self._tool.color, self._undo_map
                )
            return None

        if shape == ShapeType.NONE:
            return None

        self._anchor = self._snap(pos)
        return None

    def move(
        self,
        pos: QPointF,
        buttons: Qt.MouseButton,
        buffer: PixelBuffer,
        widget_size: Optional[QSizeF] = None,
    ) -> Optional[PixelBuffer]:
        """
        Handle pointer-move while a stroke is active.

        Returns the buffer when a segment changed pixels, otherwise None.
        """
        if self._state != StrokeState.DRAWING:
            return None

        if not (buttons & Qt.MouseButton.LeftButton):
            self._logger.debug("Primary button released mid-stroke; ending stroke")
            self._end_stroke()
            return None

        if not self._inside_canvas(pos, buffer, widget_size):
            self._logger.debug(f"Pointer left the canvas at ({pos.x()}, {pos.y()})")
            self._end_stroke()
            return None

        point = self.map_to_image(pos, buffer, widget_size, self._tool.thickness // 2)
        self._points.append(point)

        if len(self._points) < 2:
            return None

        p1 = self._points.popleft()
        p2 = self._points[0]
        return self._emit_segment(p1, p2, buffer)

    def release(
        self,
        pos: QPointF,
        buffer: PixelBuffer,
        widget_size: Optional[QSizeF] = None,
    ) -> GestureResult:
        """Handle pointer-up: finish a stroke, draw a dragged shape or report a cut."""
        if self._state == StrokeState.DRAWING:
            self._end_stroke()
            return GestureResult()

        anchor, self._anchor = self._anchor, None
        if anchor is None:
            return GestureResult()

        shape = self._tool.shape
        corner = self._snap(pos)
        start = self.map_to_image(anchor, buffer, widget_size)
        end = self.map_to_image(corner, buffer, widget_size)

        if shape == ShapeType.CUT:
            if anchor == corner:
                return GestureResult()
            return GestureResult(area=calculate_area(buffer.size, start, end))

        if shape.is_paintable:
            self._logger.debug(f"Drawing {shape.name} from {start} to {end}")
            buffer = compositor.draw_shape(
                buffer,
                shape,
                start,
                end,
                self._tool.thickness,
                self._tool.fill,
                self._tool.color,
                self._undo_map,
            )
            return GestureResult(buffer=buffer)

        return GestureResult()

    def cancel(self) -> None:
        """Drop any in-flight stroke or drag."""
        self._end_stroke()
        self._anchor = None

    # ─── Internals ────────────────────────────────────────────────────────

    def _end_stroke(self) -> None:
        self._state = StrokeState.IDLE
        self._tool.stroke_active = False
        self._points.clear()

    def _emit_segment(self, p1: Point, p2: Point, buffer: PixelBuffer) -> Optional[PixelBuffer]:
        shape = self._tool.shape
        thickness = self._tool.thickness

        if shape == ShapeType.FREEHAND:
            self._logger.debug(f"Freehand segment {p1} -> {p2}")
            coords = line(p1, p2, thickness)
            if not coords:
                return None
            return compositor.apply_color(buffer, coords, self._tool.color, self._undo_map)

        if shape == ShapeType.ERASER:
            result = compositor.erase_segment(
                buffer, p1, p2, thickness, self._undo_map, self._eraser_margin
            )
            if result is None:
                self._logger.debug(f"Erase segment {p1} -> {p2} restored nothing")
            return result

        # Tool switched away from a stroke tool mid-gesture
        self._end_stroke()
        return None
