"""Tests for PixelBuffer, color packing and UndoMap."""

import pytest
from PySide6.QtGui import QColor, QImage

from snapmark.editor.pixel_buffer import (
    PixelBuffer,
    UndoMap,
    format_color,
    pack_rgba,
    parse_color,
    unpack_rgba,
)


def test_pack_and_unpack():
    color = pack_rgba(0x12, 0x34, 0x56, 0x78)
    assert color == 0x12345678
    assert unpack_rgba(color) == (0x12, 0x34, 0x56, 0x78)
    assert pack_rgba(1, 2, 3) & 0xFF == 0xFF


def test_pack_rejects_out_of_range():
    with pytest.raises(ValueError):
        pack_rgba(256, 0, 0)


@pytest.mark.parametrize("text,expected", [
    ("#ff0000ff", 0xFF0000FF),
    ("#00ff00", 0x00FF00FF),
    ("0000ff80", 0x0000FF80),
    ("  #ABCDEF ", 0xABCDEFFF),
])
def test_parse_color(text, expected):
    assert parse_color(text) == expected


@pytest.mark.parametrize("text", ["", "#fff", "#gggggg", "#1234567", None])
def test_parse_color_invalid(text):
    with pytest.raises(ValueError):
        parse_color(text)


def test_format_color():
    assert format_color(0xFF0000FF) == "#ff0000ff"


def test_buffer_length_must_match_size():
    with pytest.raises(ValueError):
        PixelBuffer(2, 2, bytes(15))


def test_filled_and_pixel_access():
    buf = PixelBuffer.filled(3, 2, 0x11223344)
    assert len(buf.data) == 3 * 2 * 4
    assert buf.get_pixel(2, 1) == 0x11223344

    buf.set_pixel(1, 0, 0xAABBCCDD)
    assert buf.get_pixel(1, 0) == 0xAABBCCDD
    assert buf.data[4:8] == bytes([0xAA, 0xBB, 0xCC, 0xDD])


def test_pixel_access_out_of_bounds():
    buf = PixelBuffer.filled(2, 2, 0)
    with pytest.raises(IndexError):
        buf.get_pixel(2, 0)
    with pytest.raises(IndexError):
        buf.set_pixel(0, -1, 0)


def test_empty_buffer():
    buf = PixelBuffer.empty()
    assert buf.is_empty()
    assert buf.to_qimage().isNull()


def test_set_alpha_in_rect():
    buf = PixelBuffer.filled(4, 4, 0x000000FF)
    buf.set_alpha_in_rect(1, 1, 2, 2, 150)
    assert buf.get_pixel(1, 1) & 0xFF == 150
    assert buf.get_pixel(2, 2) & 0xFF == 150
    assert buf.get_pixel(3, 3) & 0xFF == 255
    assert buf.get_pixel(0, 1) & 0xFF == 255

    buf.set_alpha(255)
    assert all(a == 255 for a in buf.data[3::4])


def test_crop():
    buf = PixelBuffer.filled(4, 3, 0)
    buf.set_pixel(2, 1, 0x01020304)
    cropped = buf.crop(1, 1, 2, 2)
    assert cropped.size == (2, 2)
    assert cropped.get_pixel(1, 0) == 0x01020304
    assert cropped.get_pixel(0, 0) == 0


def test_crop_outside_raises():
    with pytest.raises(ValueError):
        PixelBuffer.filled(4, 3, 0).crop(3, 0, 2, 2)


def test_qimage_round_trip():
    buf = PixelBuffer.filled(3, 2, 0x112233FF)
    buf.set_pixel(0, 1, 0xFF0000FF)

    image = buf.to_qimage()
    assert (image.width(), image.height()) == (3, 2)
    assert image.pixelColor(0, 1).getRgb() == (255, 0, 0, 255)
    assert image.pixelColor(2, 0).getRgb() == (0x11, 0x22, 0x33, 255)

    assert PixelBuffer.from_qimage(image) == buf


def test_from_qimage_converts_format():
    image = QImage(2, 2, QImage.Format.Format_RGB32)
    image.fill(QColor(0, 0, 255))
    buf = PixelBuffer.from_qimage(image)
    assert buf.size == (2, 2)
    assert buf.get_pixel(1, 1) == 0x0000FFFF


def test_undo_map_insert_if_absent():
    undo = UndoMap()
    assert undo.record((1, 1), 5)
    assert not undo.record((1, 1), 9)
    assert undo.get((1, 1)) == 5
    assert undo.pop((1, 1)) == 5
    assert undo.pop((1, 1)) is None
    assert len(undo) == 0


def test_undo_map_reset():
    undo = UndoMap()
    undo.record((0, 0), 1)
    undo.record((0, 1), 2)
    undo.reset()
    assert (0, 0) not in undo
    assert list(undo) == []
