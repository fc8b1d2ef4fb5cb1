"""
Package initialization for card_report_pdf.

This package turns a captured list of cards into a paginated PDF: a header
repeated on every page, every card kept whole on one page, and an optional
summary at the end.

Modules:
    - geometry: Block registry, page geometry and unit conversion
    - bitmap: Source bitmaps and the image slicer
    - pagination: Page layout of header, cards and summary
    - pdf_generator: Page sinks and PDF writing (ReportLab)
    - capture: Capture steps (Pillow images, PyMuPDF page rendering, card stacking)
    - sources: Card image and block registry discovery
    - layout: High-level API orchestrating the above modules
"""

from .bitmap import SourceBitmap, SourceRect, slice_bitmap
from .capture import RenderTarget, capture_sequence
from .errors import CaptureError, ConfigurationError, GeometryError, ReportExportError
from .geometry import BlockRegistry, ContentBlock, PageGeometry, UnitConverter
from .layout import build_report_pdf, report_filename
from .pagination import PageLayout, PlacementInstruction, paginate

__all__ = [
    "SourceBitmap",
    "SourceRect",
    "slice_bitmap",
    "RenderTarget",
    "capture_sequence",
    "CaptureError",
    "ConfigurationError",
    "GeometryError",
    "ReportExportError",
    "BlockRegistry",
    "ContentBlock",
    "PageGeometry",
    "UnitConverter",
    "build_report_pdf",
    "report_filename",
    "PageLayout",
    "PlacementInstruction",
    "paginate",
]
