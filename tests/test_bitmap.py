from __future__ import annotations

import pytest
from PIL import Image

from card_report_pdf.bitmap import SourceBitmap, SourceRect, slice_bitmap
from card_report_pdf.errors import GeometryError


@pytest.fixture
def striped() -> SourceBitmap:
    image = Image.new("RGB", (20, 30), (255, 0, 0))
    image.paste((0, 0, 255), (0, 10, 20, 20))
    return SourceBitmap(image)


def test_slice_copies_the_region(striped):
    piece = slice_bitmap(striped, SourceRect(0, 10, 20, 10))
    assert (piece.width, piece.height) == (20, 10)
    assert piece.image.getpixel((0, 0)) == (0, 0, 255)
    assert piece.image.getpixel((19, 9)) == (0, 0, 255)


def test_slice_is_opaque_rgb():
    transparent = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    piece = slice_bitmap(SourceBitmap(transparent), SourceRect(0, 0, 10, 10), background="#ffffff")
    assert piece.image.mode == "RGB"
    assert piece.image.getpixel((5, 5)) == (255, 255, 255)


def test_transparency_is_flattened_onto_background():
    image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
    image.putpixel((0, 0), (255, 0, 0, 255))
    bitmap = SourceBitmap(image, background="#000080")
    assert bitmap.image.getpixel((0, 0)) == (255, 0, 0)
    assert bitmap.image.getpixel((3, 3)) == (0, 0, 128)


def test_slice_does_not_touch_the_source(striped):
    piece = slice_bitmap(striped, SourceRect(0, 0, 20, 10))
    piece.image.paste((0, 255, 0), (0, 0, 20, 10))
    assert striped.image.getpixel((0, 0)) == (255, 0, 0)


@pytest.mark.parametrize(
    "rect",
    [
        SourceRect(-1, 0, 10, 10),
        SourceRect(0, -1, 10, 10),
        SourceRect(0, 25, 20, 10),
        SourceRect(5, 0, 20, 10),
        SourceRect(0, 0, 20, 0),
    ],
)
def test_out_of_range_slices_are_rejected(striped, rect):
    with pytest.raises(GeometryError):
        slice_bitmap(striped, rect)
