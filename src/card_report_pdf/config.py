"""Default export settings."""
from __future__ import annotations

from dataclasses import dataclass


# Page geometry (in millimetres, A4 portrait)
DEFAULT_PAGE_WIDTH = 210.0
DEFAULT_PAGE_HEIGHT = 297.0
DEFAULT_MARGIN = 10.0

# Gap below the header, in page units
DEFAULT_HEADER_SPACING = 5.0

# Gap between two cards, in rendering-surface pixels
DEFAULT_BLOCK_SPACING_PX = 30.0

# Capture density multiplier (bitmap pixels per surface pixel)
DEFAULT_DENSITY = 2.0

# Page background; slices are pre-filled with it
DEFAULT_BACKGROUND = "#ffffff"

DEFAULT_REPORT_KIND = "card-report"


@dataclass
class ExportSettings:
    """Settings for a single export run. CLI flags override the defaults."""

    page_width: float = DEFAULT_PAGE_WIDTH
    page_height: float = DEFAULT_PAGE_HEIGHT
    margin: float = DEFAULT_MARGIN
    header_spacing: float = DEFAULT_HEADER_SPACING
    block_spacing_px: float = DEFAULT_BLOCK_SPACING_PX
    density: float = DEFAULT_DENSITY
    background: str = DEFAULT_BACKGROUND
