"""
Capture service for SnapMark.

This module schedules screenshot captures and hands the resulting pixels to
the editor. The platform screen grab itself is injected as a callable:

    grabber(x, y, width, height) -> PixelBuffer

The capture flow:
1. A capture is scheduled with a delay (to let menus and the selection
   overlay disappear from the screen).
2. Every schedule call gets a new, strictly increasing token.
3. When the timer fires, the token is compared with the latest one issued.
   Stale timers are dropped, so only the most recent request captures.
4. Area captures run the drag through calculate_area before grabbing.
"""

import itertools
from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, QTimer, Signal

from snapmark.core.area import Area, calculate_area
from snapmark.editor.pixel_buffer import PixelBuffer
from snapmark.services.config_service import ConfigService
from snapmark.services.logging_service import get_logger

Point = Tuple[int, int]
Grabber = Callable[[int, int, int, int], PixelBuffer]
TimerFunc = Callable[[int, Callable[[], None]], None]

DEFAULT_DELAY_MS = 600


class CaptureError(Exception):
    """Raised when the screen grab fails or returns the wrong size."""


class CaptureService(QObject):
    """
    Service for delayed fullscreen and area captures.

    Signals:
        capture_completed: Emitted with the captured PixelBuffer.
        capture_cancelled: Emitted when an area capture has no valid selection
            or the grab failed.
    """

    capture_completed = Signal(object)
    capture_cancelled = Signal()

    def __init__(
        self,
        grabber: Grabber,
        screen_size: Tuple[int, int],
        timer: Optional[TimerFunc] = None,
        parent: Optional[QObject] = None,
        delay_ms: int = DEFAULT_DELAY_MS,
    ) -> None:
        """
        Initialize the capture service.

        Args:
            grabber: Callable returning the pixels of a screen rectangle.
            screen_size: (width, height) of the screen being captured.
            timer: Function scheduling a callback after a delay in ms.
                Defaults to QTimer.singleShot.
            parent: Optional parent QObject.
            delay_ms: Delay used when a schedule call does not pass one.
        """
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._grabber = grabber
        self._screen_size = screen_size
        self._timer = timer or QTimer.singleShot
        self._delay_ms = delay_ms
        self._tokens = itertools.count(1)
        self._current_token: Optional[int] = None

    @classmethod
    def from_config(
        cls,
        config: ConfigService,
        grabber: Grabber,
        screen_size: Tuple[int, int],
        timer: Optional[TimerFunc] = None,
        parent: Optional[QObject] = None,
    ) -> "CaptureService":
        """Create a service whose default delay comes from capture.delay_ms."""
        return cls(grabber, screen_size, timer, parent, delay_ms=config.capture_delay_ms)

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def screen_size(self) -> Tuple[int, int]:
        return self._screen_size

    @screen_size.setter
    def screen_size(self, value: Tuple[int, int]) -> None:
        self._screen_size = value

    @property
    def current_token(self) -> Optional[int]:
        return self._current_token

    def schedule_fullscreen(self, delay_ms: Optional[int] = None) -> int:
        """Capture the whole screen after delay_ms. Returns the request token."""
        width, height = self._screen_size
        return self._schedule(delay_ms, Area((0, 0), width, height))

    def schedule_area(
        self,
        start: Point,
        end: Point,
        delay_ms: Optional[int] = None,
    ) -> Optional[int]:
        """
        Capture the rectangle dragged from start to end after delay_ms.

        Returns the request token, or None (and emits capture_cancelled)
        when the drag is not a valid selection.
        """
        area = calculate_area(self._screen_size, start, end)
        if area is None:
            self._logger.info(f"No valid capture area for drag {start} -> {end}")
            self._current_token = None
            self.capture_cancelled.emit()
            return None
        return self._schedule(delay_ms, area)

    def invalidate(self) -> None:
        """Forget the pending request so its timer does nothing."""
        self._current_token = None

    def _schedule(self, delay_ms: Optional[int], area: Area) -> int:
        if delay_ms is None:
            delay_ms = self._delay_ms
        token = next(self._tokens)
        self._current_token = token
        self._logger.debug(f"Capture {token} scheduled in {delay_ms} ms for {area.as_tuple()}")
        self._timer(delay_ms, lambda: self._on_timeout(token, area))
        return token

    def _on_timeout(self, token: int, area: Area) -> None:
        if token != self._current_token:
            self._logger.debug(f"Discarding stale capture {token}")
            return
        self._current_token = None

        try:
            buffer = self._grabber(*area.as_tuple())
            if buffer.size != (area.width, area.height):
                raise CaptureError(
                    f"Grabber returned {buffer.width}x{buffer.height}, "
                    f"expected {area.width}x{area.height}"
                )
        except CaptureError as e:
            self._logger.error(f"Capture failed: {e}")
            self.capture_cancelled.emit()
            return

        self._logger.info(f"Captured {area.width}x{area.height} at {area.left_corner}")
        self.capture_completed.emit(buffer)
