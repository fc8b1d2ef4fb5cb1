"""
Capture of header, content and summary bitmaps.

Every capture step is a callable that receives the render target
explicitly. Steps run strictly one after another and any failure is
reported as a single CaptureError.
"""
from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import fitz  # PyMuPDF - rasterizes PDF pages
from PIL import Image

from .bitmap import SourceBitmap, flatten_image
from .config import DEFAULT_BACKGROUND, DEFAULT_DENSITY
from .errors import CaptureError, ConfigurationError, GeometryError
from .geometry import BlockRegistry, ContentBlock
from .sources import iterate_card_images, load_block_registry


@dataclass(frozen=True)
class RenderTarget:
    """Where and how a capture is rendered."""

    surface_width_px: float
    density: float = DEFAULT_DENSITY
    background: str = DEFAULT_BACKGROUND

    def __post_init__(self) -> None:
        if self.surface_width_px <= 0:
            raise ConfigurationError(f"Rendering surface width must be positive, got {self.surface_width_px}")
        if self.density <= 0:
            raise ConfigurationError(f"Capture density must be positive, got {self.density}")

    @property
    def bitmap_width_px(self) -> int:
        return int(round(self.surface_width_px * self.density))


@dataclass(frozen=True)
class ContentCapture:
    """The stacked card list and the position of every card in it."""

    bitmap: SourceBitmap
    blocks: BlockRegistry
    surface_width_px: float


@dataclass(frozen=True)
class Captures:
    header: SourceBitmap
    content: ContentCapture
    summary: Optional[SourceBitmap] = None


BitmapStep = Callable[[RenderTarget], SourceBitmap]
ContentStep = Callable[[RenderTarget], ContentCapture]


def render_pdf_page(data: bytes, page_index: int = 0, density: float = DEFAULT_DENSITY) -> Tuple[SourceBitmap, float]:
    """
    Rasterize one PDF page with PyMuPDF.

    Args:
        data: Raw PDF bytes
        page_index: Page number (0-indexed)
        density: Resolution multiplier; 2 doubles the resolution

    Returns:
        (bitmap, page width in points). The page width is the rendering
        surface width of the capture.
    """
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        if page_index < 0 or page_index >= doc.page_count:
            raise IndexError(
                f"Page index {page_index} out of range "
                f"(document has {doc.page_count} pages)"
            )
        page = doc.load_page(page_index)
        pix = page.get_pixmap(matrix=fitz.Matrix(density, density), alpha=False)
        image = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)
        return SourceBitmap(image), page.rect.width
    finally:
        doc.close()


def open_image(data: bytes, background: str = DEFAULT_BACKGROUND) -> Image.Image:
    """Decode image bytes to RGB, flattening any alpha onto `background`."""
    image = Image.open(BytesIO(data))
    image.load()
    return flatten_image(image, background)


def load_bitmap(path: Path, target: RenderTarget) -> SourceBitmap:
    """
    Load a capture from an image file, or render the first page of a PDF at
    the target density.
    """
    data = path.read_bytes()
    if path.suffix.lower() == ".pdf":
        bitmap, _ = render_pdf_page(data, 0, target.density)
        return bitmap
    return SourceBitmap(open_image(data, target.background))


def stack_cards(cards: Sequence[Image.Image], target: RenderTarget, gap_px: float = 0.0) -> ContentCapture:
    """
    Render individual card images as one vertical list.

    Each card is scaled to the target bitmap width (aspect ratio kept) and
    stacked top to bottom with `gap_px` surface pixels between cards.

    Returns:
        ContentCapture whose block registry holds each card's position in
        surface pixels
    """
    width = target.bitmap_width_px
    if width <= 0:
        raise ConfigurationError(f"Render target is {width} pixels wide")
    gap = int(round(gap_px * target.density))

    scaled: List[Image.Image] = []
    for card in cards:
        height = max(1, int(round(card.height * width / card.width)))
        scaled.append(flatten_image(card, target.background).resize((width, height), Image.LANCZOS))

    total_height = sum(card.height for card in scaled) + gap * max(len(scaled) - 1, 0)
    sheet = Image.new("RGB", (width, max(total_height, 1)), target.background)

    # Surface pixels per bitmap pixel of the rounded sheet width
    px_to_surface = target.surface_width_px / width
    blocks: List[ContentBlock] = []
    y = 0
    for card in scaled:
        sheet.paste(card, (0, y))
        blocks.append(ContentBlock(top_px=y * px_to_surface, height_px=card.height * px_to_surface))
        y += card.height + gap

    return ContentCapture(
        bitmap=SourceBitmap(sheet),
        blocks=BlockRegistry(blocks),
        surface_width_px=target.surface_width_px,
    )


def image_step(path: Path) -> BitmapStep:
    """Capture step reading a header or summary from `path`."""

    def step(target: RenderTarget) -> SourceBitmap:
        return load_bitmap(path, target)

    return step


def content_file_step(image_path: Path, blocks_path: Path) -> ContentStep:
    """
    Capture step for a pre-rendered card list plus its block registry.

    The surface width comes from the registry file when it records one,
    otherwise from the render target.
    """

    def step(target: RenderTarget) -> ContentCapture:
        blocks, surface_width = load_block_registry(blocks_path)
        bitmap = load_bitmap(image_path, target)
        return ContentCapture(
            bitmap=bitmap,
            blocks=blocks,
            surface_width_px=surface_width if surface_width is not None else target.surface_width_px,
        )

    return step


def card_stack_step(source: Path, gap_px: float = 0.0) -> ContentStep:
    """Capture step stacking every card image in a directory or ZIP."""

    def step(target: RenderTarget) -> ContentCapture:
        cards = [open_image(data, target.background) for _, data in iterate_card_images(source)]
        return stack_cards(cards, target, gap_px=gap_px)

    return step


def capture_sequence(
    target: RenderTarget,
    header: BitmapStep,
    content: ContentStep,
    summary: Optional[BitmapStep] = None,
) -> Captures:
    """
    Run the capture steps in order: header, content, then summary.

    Raises:
        CaptureError: The first step that failed, wrapping its exception
        ConfigurationError, GeometryError: Passed through unwrapped
    """
    stage = "header"
    try:
        header_bitmap = header(target)
        stage = "content"
        content_capture = content(target)
        summary_bitmap = None
        if summary is not None:
            stage = "summary"
            summary_bitmap = summary(target)
    except (CaptureError, ConfigurationError, GeometryError):
        raise
    except Exception as e:
        raise CaptureError(stage, e) from e

    return Captures(header=header_bitmap, content=content_capture, summary=summary_bitmap)
