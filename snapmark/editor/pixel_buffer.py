"""
Pixel buffer model for the SnapMark editor.

A PixelBuffer is the in-memory RGBA image every drawing operation works on:
4 bytes per pixel, row-major, no row padding. Colors travel as a single
packed 32-bit int (0xRRGGBBAA) so they compare cheaply and can be stored
as undo-map values.

The buffer converts to and from QImage for the widgets that display it and
the capture code that produces it.
"""

from typing import Dict, Iterator, Optional, Tuple

from PySide6.QtGui import QImage

BYTES_PER_PIXEL = 4

Point = Tuple[int, int]


def pack_rgba(r: int, g: int, b: int, a: int = 255) -> int:
    """Pack four 8-bit channels into a 0xRRGGBBAA int."""
    for channel in (r, g, b, a):
        if not 0 <= channel <= 255:
            raise ValueError(f"Channel value out of range: {channel}")
    return (r << 24) | (g << 16) | (b << 8) | a


def unpack_rgba(color: int) -> Tuple[int, int, int, int]:
    """Split a packed color into its (r, g, b, a) bytes."""
    return (
        (color >> 24) & 0xFF,
        (color >> 16) & 0xFF,
        (color >> 8) & 0xFF,
        color & 0xFF,
    )


def parse_color(value: str) -> int:
    """
    Parse "#rrggbb" or "#rrggbbaa" into a packed color.

    Six-digit colors are fully opaque.
    """
    text = value.strip().lstrip("#") if isinstance(value, str) else ""
    if len(text) not in (6, 8):
        raise ValueError(f"Invalid color string: {value!r}")
    try:
        packed = int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid color string: {value!r}") from None
    if len(text) == 6:
        packed = (packed << 8) | 0xFF
    return packed


def format_color(color: int) -> str:
    """Format a packed color as "#rrggbbaa"."""
    return f"#{color & 0xFFFFFFFF:08x}"


class PixelBuffer:
    """
    RGBA8 image held as a mutable bytearray.

    Pixel (x, y) lives at data[(y * width + x) * 4 : +4].
    Drawing code mutates the buffer in place and hands the same object
    back to the caller.
    """

    def __init__(self, width: int, height: int, data: Optional[bytes] = None) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Invalid buffer size: {width}x{height}")

        expected = width * height * BYTES_PER_PIXEL
        if data is None:
            data = bytes(expected)
        if len(data) != expected:
            raise ValueError(
                f"Buffer length {len(data)} does not match {width}x{height} RGBA "
                f"({expected} bytes)"
            )

        self.width = width
        self.height = height
        self.data = bytearray(data)

    @classmethod
    def filled(cls, width: int, height: int, color: int) -> "PixelBuffer":
        """Create a buffer with every pixel set to color."""
        return cls(width, height, bytes(unpack_rgba(color)) * (width * height))

    @classmethod
    def empty(cls) -> "PixelBuffer":
        return cls(0, 0)

    @classmethod
    def from_qimage(cls, image: QImage) -> "PixelBuffer":
        """Copy a QImage into a new buffer, converting it to RGBA8888."""
        if image.isNull():
            return cls.empty()

        converted = image.convertToFormat(QImage.Format.Format_RGBA8888)
        width, height = converted.width(), converted.height()
        row_bytes = width * BYTES_PER_PIXEL
        stride = converted.bytesPerLine()
        raw = bytes(converted.constBits())

        if stride == row_bytes:
            return cls(width, height, raw[: row_bytes * height])

        rows = (raw[y * stride: y * stride + row_bytes] for y in range(height))
        return cls(width, height, b"".join(rows))

    def to_qimage(self) -> QImage:
        """Return a detached QImage copy of the buffer."""
        if self.is_empty():
            return QImage()
        image = QImage(
            bytes(self.data),
            self.width,
            self.height,
            self.width * BYTES_PER_PIXEL,
            QImage.Format.Format_RGBA8888,
        )
        # The constructor wraps the Python bytes; copy() owns its memory
        return image.copy()

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def offset(self, x: int, y: int) -> int:
        return (y * self.width + x) * BYTES_PER_PIXEL

    def get_pixel(self, x: int, y: int) -> int:
        """Read the packed color at (x, y)."""
        if not self.contains(x, y):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        i = self.offset(x, y)
        return int.from_bytes(self.data[i:i + BYTES_PER_PIXEL], "big")

    def set_pixel(self, x: int, y: int, color: int) -> None:
        """Overwrite the 4 bytes at (x, y) with the channels of color."""
        if not self.contains(x, y):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        i = self.offset(x, y)
        self.data[i:i + BYTES_PER_PIXEL] = (color & 0xFFFFFFFF).to_bytes(BYTES_PER_PIXEL, "big")

    def set_alpha(self, alpha: int) -> None:
        """Set the alpha byte of every pixel."""
        self.data[3::BYTES_PER_PIXEL] = bytes([alpha]) * (self.width * self.height)

    def set_alpha_in_rect(self, x: int, y: int, width: int, height: int, alpha: int) -> None:
        """Set the alpha byte of every pixel inside the given rectangle."""
        for row in range(y, y + height):
            start = self.offset(x, row) + 3
            stop = self.offset(x + width, row)
            self.data[start:stop:BYTES_PER_PIXEL] = bytes([alpha]) * width

    def crop(self, x: int, y: int, width: int, height: int) -> "PixelBuffer":
        """Copy the given rectangle into a new buffer."""
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise ValueError(
                f"Crop rectangle ({x}, {y}, {width}, {height}) outside "
                f"{self.width}x{self.height} buffer"
            )
        rows = []
        for row in range(y, y + height):
            start = self.offset(x, row)
            rows.append(bytes(self.data[start:start + width * BYTES_PER_PIXEL]))
        return PixelBuffer(width, height, b"".join(rows))

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, bytes(self.data))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and self.data == other.data

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"


class UndoMap:
    """
    History of the colors pixels held before the session first touched them.

    Entries are insert-if-absent, so overlapping edits never lose the
    true original color. The eraser pops entries as it restores pixels.
    """

    def __init__(self) -> None:
        self._entries: Dict[Point, int] = {}

    def record(self, point: Point, color: int) -> bool:
        """Remember color for point unless already recorded. Returns True if stored."""
        if point in self._entries:
            return False
        self._entries[point] = color
        return True

    def pop(self, point: Point) -> Optional[int]:
        return self._entries.pop(point, None)

    def get(self, point: Point) -> Optional[int]:
        return self._entries.get(point)

    def reset(self) -> None:
        self._entries.clear()

    def __contains__(self, point: object) -> bool:
        return point in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._entries)
