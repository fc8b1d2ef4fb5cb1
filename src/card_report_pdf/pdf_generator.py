"""PDF output for paginated card reports."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol

from pypdf import PdfReader
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .bitmap import SourceBitmap, slice_bitmap
from .config import DEFAULT_BACKGROUND
from .errors import GeometryError
from .geometry import PageGeometry
from .pagination import PageLayout


class PageSink(Protocol):
    """Receives placements strictly in page order, top to bottom."""

    def place(self, bitmap: SourceBitmap, x: float, y: float, width: float, height: float) -> None:
        ...

    def new_page(self) -> None:
        ...

    def close(self) -> None:
        ...


class ReportLabPageSink:
    """
    Draws placements onto a ReportLab canvas.

    Placement coordinates are page units (millimetres) measured from the
    top-left corner; ReportLab works in points from the bottom-left, so y is
    flipped here.
    """

    def __init__(self, output_path: Path, geometry: PageGeometry):
        self.output_path = output_path
        self.geometry = geometry
        self.page_width = geometry.width_units * mm
        self.page_height = geometry.height_units * mm
        self._canvas = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))

    def place(self, bitmap: SourceBitmap, x: float, y: float, width: float, height: float) -> None:
        self._canvas.drawImage(
            ImageReader(bitmap.image),
            x * mm,
            self.page_height - (y + height) * mm,
            width=width * mm,
            height=height * mm,
        )

    def new_page(self) -> None:
        self._canvas.showPage()

    def close(self) -> None:
        self._canvas.showPage()
        self._canvas.save()


def render_layout(
    layout: PageLayout,
    bitmaps: Mapping[str, SourceBitmap],
    sink: PageSink,
    background: str = DEFAULT_BACKGROUND,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Slice every placement out of its capture and hand it to `sink`.

    Args:
        layout: Result of `paginate`
        bitmaps: Captures keyed by placement source ("header", "content", "summary")
        sink: Page writer
        background: Fill colour for slices
        progress_callback: Optional callback(current_page, total_pages)

    Raises:
        GeometryError: If the layout visits pages out of order
    """
    current_page = 0
    if progress_callback is not None:
        progress_callback(1, layout.page_count)

    for placement in layout.placements:
        if placement.page_index < current_page:
            raise GeometryError(
                f"Placement for page {placement.page_index} after page {current_page}"
            )
        while current_page < placement.page_index:
            sink.new_page()
            current_page += 1
            if progress_callback is not None:
                progress_callback(current_page + 1, layout.page_count)

        piece = slice_bitmap(bitmaps[placement.source], placement.source_rect, background)
        sink.place(
            piece,
            placement.dest_x,
            placement.dest_y,
            placement.dest_width,
            placement.dest_height,
        )

    sink.close()


def write_report_pdf(
    layout: PageLayout,
    bitmaps: Mapping[str, SourceBitmap],
    output_path: Path,
    geometry: PageGeometry,
    background: str = DEFAULT_BACKGROUND,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Write `layout` to a PDF file.

    A partially written file is removed if rendering fails.
    """
    sink = ReportLabPageSink(output_path, geometry)
    try:
        render_layout(layout, bitmaps, sink, background, progress_callback)
    except Exception:
        output_path.unlink(missing_ok=True)
        raise


def count_pdf_pages(file_path: Path) -> int:
    """Number of pages in a written PDF."""
    return len(PdfReader(str(file_path)).pages)


def get_file_size_str(file_path: Path) -> str:
    """
    Get a human-readable file size string.

    Args:
        file_path: Path to the file

    Returns:
        Size string like "1.5 MB" or "256 KB"
    """
    file_size = file_path.stat().st_size
    if file_size >= 1024 * 1024:
        return f"{file_size / (1024 * 1024):.1f} MB"
    else:
        return f"{file_size / 1024:.1f} KB"
