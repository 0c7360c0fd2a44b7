"""
Editing session for one captured image.

An EditSession owns everything that lives as long as a screenshot is being
annotated: the pixel buffer, the tool state, the undo map and the stroke
controller. Replacing the image starts a fresh history.
"""

from typing import Optional, Tuple

from PySide6.QtCore import QPointF, QSizeF, Qt
from PySide6.QtGui import QImage

from snapmark.core.area import Area, calculate_area
from snapmark.editor.compositor import DEFAULT_ERASER_MARGIN
from snapmark.editor.pixel_buffer import PixelBuffer, UndoMap
from snapmark.editor.shapes import ShapeType, ToolSelection, ToolState
from snapmark.editor.stroke_controller import GestureResult, StrokeController
from snapmark.services.config_service import ConfigService
from snapmark.services.logging_service import get_logger

Point = Tuple[int, int]

OPAQUE = 255
DEFAULT_HIGHLIGHT_ALPHA = 150


class EditSession:
    """
    Pixel editing state for a single screenshot.

    Pointer handlers return True when the image changed and needs a repaint.
    """

    def __init__(
        self,
        buffer: Optional[PixelBuffer] = None,
        tool: Optional[ToolState] = None,
        eraser_margin: int = DEFAULT_ERASER_MARGIN,
        highlight_alpha: int = DEFAULT_HIGHLIGHT_ALPHA,
    ) -> None:
        self._logger = get_logger(__name__)
        self._buffer = buffer if buffer is not None else PixelBuffer.empty()
        self._tool = tool or ToolState()
        self._undo_map = UndoMap()
        self._controller = StrokeController(self._tool, self._undo_map, eraser_margin)
        self._highlight_alpha = highlight_alpha
        self._area_to_crop: Optional[Area] = None
        self._saved = False

    @classmethod
    def from_config(
        cls,
        config: ConfigService,
        buffer: Optional[PixelBuffer] = None,
    ) -> "EditSession":
        """Create a session with tool defaults taken from the config service."""
        tool = ToolState(
            color=config.default_color,
            thickness=config.default_thickness,
            fill=config.default_fill,
        )
        return cls(
            buffer,
            tool,
            eraser_margin=config.eraser_margin,
            highlight_alpha=config.highlight_alpha,
        )

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def buffer(self) -> PixelBuffer:
        return self._buffer

    @property
    def tool(self) -> ToolState:
        return self._tool

    @property
    def undo_map(self) -> UndoMap:
        return self._undo_map

    @property
    def controller(self) -> StrokeController:
        return self._controller

    @property
    def area_to_crop(self) -> Optional[Area]:
        return self._area_to_crop

    @property
    def is_saved(self) -> bool:
        return self._saved

    def mark_saved(self) -> None:
        self._saved = True

    # ─── Image Lifecycle ──────────────────────────────────────────────────

    def set_image(self, buffer: PixelBuffer) -> None:
        """Replace the image and start a fresh editing history."""
        self._buffer = buffer
        self._undo_map.reset()
        self._controller.cancel()
        self._area_to_crop = None
        self._saved = False
        self._logger.info(f"New image loaded: {buffer.width}x{buffer.height}")

    def set_qimage(self, image: QImage) -> None:
        self.set_image(PixelBuffer.from_qimage(image))

    def to_qimage(self) -> QImage:
        return self._buffer.to_qimage()

    def reset_image(self) -> None:
        self.set_image(PixelBuffer.empty())

    # ─── Tool Selection ───────────────────────────────────────────────────

    def select_tool(self, selection: ToolSelection) -> None:
        """
        Apply a toolbar choice.

        Changing shape ends any in-flight gesture, and leaving Cut drops the
        crop preview.
        """
        if self._tool.select(selection):
            self._controller.cancel()
            if self._tool.shape != ShapeType.CUT:
                self._drop_highlight()
            self._logger.debug(f"Tool changed to {self._tool.shape.name}")

    # ─── Pointer Events ───────────────────────────────────────────────────

    def press(self, pos: QPointF, widget_size: Optional[QSizeF] = None) -> bool:
        if self._buffer.is_empty():
            return False
        # Undo entries never hold preview alpha
        cleared = self._tool.shape != ShapeType.CUT and self._drop_highlight()
        changed = self._accept(self._controller.press(pos, self._buffer, widget_size))
        return changed or cleared

    def move(
        self,
        pos: QPointF,
        buttons: Qt.MouseButton,
        widget_size: Optional[QSizeF] = None,
    ) -> bool:
        if self._buffer.is_empty():
            return False
        return self._accept(self._controller.move(pos, buttons, self._buffer, widget_size))

    def release(self, pos: QPointF, widget_size: Optional[QSizeF] = None) -> bool:
        if self._buffer.is_empty():
            return False

        result: GestureResult = self._controller.release(pos, self._buffer, widget_size)
        if result.area is not None:
            self._show_highlight(result.area)
            return True
        return self._accept(result.buffer)

    def _accept(self, buffer: Optional[PixelBuffer]) -> bool:
        if buffer is None:
            return False
        self._buffer = buffer
        self._saved = False
        return True

    # ─── Crop ─────────────────────────────────────────────────────────────

    def highlight_area(self, start: Point, end: Point) -> Optional[Area]:
        """
        Mark the selection between start and end (image space) for cropping.

        Pixels inside the area get the highlight alpha, everything else is
        opaque. Returns None and leaves the image alone for an invalid drag.
        """
        area = calculate_area(self._buffer.size, start, end)
        if area is None:
            return None
        self._show_highlight(area)
        return area

    def _show_highlight(self, area: Area) -> None:
        self._buffer.set_alpha(OPAQUE)
        self._buffer.set_alpha_in_rect(area.x, area.y, area.width, area.height, self._highlight_alpha)
        self._area_to_crop = area
        self._logger.debug(f"Crop selection {area.as_tuple()}")

    def clear_highlight(self) -> None:
        """Drop the crop preview and restore full opacity."""
        self._buffer.set_alpha(OPAQUE)
        self._area_to_crop = None

    def _drop_highlight(self) -> bool:
        if self._area_to_crop is None:
            return False
        self._logger.debug("Crop selection dropped")
        self.clear_highlight()
        return True

    def apply_crop(self) -> bool:
        """
        Crop the image to the highlighted area.

        The crop becomes the new image, so the undo history is reset.
        Returns False when there is no pending selection.
        """
        area = self._area_to_crop
        if area is None:
            return False

        cropped = self._buffer.crop(area.x, area.y, area.width, area.height)
        cropped.set_alpha(OPAQUE)
        self._logger.info(f"Cropped image to {area.width}x{area.height} at {area.left_corner}")
        self.set_image(cropped)
        return True

    def cancel_crop(self) -> None:
        if self._area_to_crop is not None:
            self.clear_highlight()
        if self._tool.shape == ShapeType.CUT:
            self._controller.cancel()
