"""Source bitmaps and the image slicer."""
from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from .config import DEFAULT_BACKGROUND
from .errors import GeometryError


@dataclass(frozen=True)
class SourceRect:
    """A pixel rectangle inside a source bitmap."""

    x: int
    y: int
    w: int
    h: int


def flatten_image(image: Image.Image, background: str = DEFAULT_BACKGROUND) -> Image.Image:
    """Convert to RGB, compositing any transparency onto `background`."""
    if image.mode in ("RGBA", "LA", "P", "PA") or "transparency" in image.info:
        rgba = image.convert("RGBA")
        flat = Image.new("RGB", rgba.size, background)
        flat.paste(rgba, (0, 0), rgba)
        return flat
    return image.convert("RGB")


class SourceBitmap:
    """Read-only wrapper around a captured RGB image."""

    def __init__(self, image: Image.Image, background: str = DEFAULT_BACKGROUND):
        if image.mode != "RGB":
            image = flatten_image(image, background)
        self._image = image

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def image(self) -> Image.Image:
        """Return a copy so callers cannot mutate the capture."""
        return self._image.copy()

    @property
    def full_rect(self) -> SourceRect:
        return SourceRect(0, 0, self.width, self.height)

    def __repr__(self) -> str:
        return f"SourceBitmap({self.width}x{self.height})"


def check_slice_bounds(width: int, height: int, rect: SourceRect) -> None:
    """
    Validate that `rect` lies fully inside a width x height bitmap.

    Raises:
        GeometryError: If the rectangle is empty or leaves the bitmap
    """
    if rect.w <= 0 or rect.h <= 0:
        raise GeometryError(f"Empty slice {rect}")
    if rect.x < 0 or rect.y < 0 or rect.x + rect.w > width or rect.y + rect.h > height:
        raise GeometryError(f"Slice {rect} falls outside bitmap {width}x{height}")


def slice_bitmap(
    bitmap: SourceBitmap,
    rect: SourceRect,
    background: str = DEFAULT_BACKGROUND,
) -> SourceBitmap:
    """
    Copy `rect` out of `bitmap` into a standalone opaque bitmap.

    The destination is filled with `background` before the region is pasted,
    so the result has no transparent pixels.

    Args:
        bitmap: Source capture
        rect: Region to copy, in bitmap pixels
        background: Fill colour matching the page background

    Returns:
        A new SourceBitmap of size rect.w x rect.h

    Raises:
        GeometryError: If `rect` is not fully inside `bitmap`
    """
    check_slice_bounds(bitmap.width, bitmap.height, rect)

    out = Image.new("RGB", (rect.w, rect.h), background)
    region = bitmap._image.crop((rect.x, rect.y, rect.x + rect.w, rect.y + rect.h))
    out.paste(region, (0, 0))
    return SourceBitmap(out)
