"""
Raster pagination: turns header, content and summary captures into
page placements.

Cards are never cut across a page boundary. Every page starts with the
header; the optional summary goes last as one indivisible block.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .bitmap import SourceBitmap, SourceRect, check_slice_bounds
from .config import DEFAULT_BLOCK_SPACING_PX, DEFAULT_HEADER_SPACING
from .errors import ConfigurationError
from .geometry import BlockRegistry, PageGeometry, UnitConverter

logger = logging.getLogger(__name__)

# Which capture a placement is cut from
HEADER = "header"
CONTENT = "content"
SUMMARY = "summary"


@dataclass(frozen=True)
class PlacementInstruction:
    """One image to draw: a source rectangle and where it lands on a page."""

    source: str
    source_rect: SourceRect
    page_index: int
    dest_x: float
    dest_y: float
    dest_width: float
    dest_height: float
    block_index: Optional[int] = None


@dataclass
class LayoutCursor:
    """Current page and vertical position, in page units."""

    page_index: int = 0
    y_units: float = 0.0


@dataclass(frozen=True)
class PageLayout:
    """Result of a pagination run."""

    placements: Tuple[PlacementInstruction, ...]
    page_count: int
    scale_factor: float
    density_ratio: float

    def pages(self) -> "OrderedDict[int, List[PlacementInstruction]]":
        """Group placements by page index, keeping their order."""
        grouped: "OrderedDict[int, List[PlacementInstruction]]" = OrderedDict()
        for placement in self.placements:
            grouped.setdefault(placement.page_index, []).append(placement)
        return grouped

    def by_source(self, source: str) -> List[PlacementInstruction]:
        return [p for p in self.placements if p.source == source]

    def cards_per_page(self) -> Dict[int, int]:
        counts = {index: 0 for index in range(self.page_count)}
        for placement in self.by_source(CONTENT):
            counts[placement.page_index] += 1
        return counts


@dataclass
class PaginationEngine:
    """
    Lays out one export.

    Build a fresh engine per export; `run` may only be called once per
    instance because the cursor and placements are accumulated on it.
    """

    header: SourceBitmap
    content: SourceBitmap
    blocks: BlockRegistry
    surface_width_px: float
    summary: Optional[SourceBitmap] = None
    geometry: PageGeometry = field(default_factory=PageGeometry)
    header_spacing_units: float = DEFAULT_HEADER_SPACING
    block_spacing_px: float = DEFAULT_BLOCK_SPACING_PX

    def __post_init__(self) -> None:
        self.cursor = LayoutCursor()
        self.placements: List[PlacementInstruction] = []

    def run(self) -> PageLayout:
        if self.placements:
            raise RuntimeError("PaginationEngine.run() called twice")

        self._validate()
        converter = UnitConverter(
            usable_width_units=self.geometry.usable_width_units,
            bitmap_width_px=self.content.width,
            surface_width_px=self.surface_width_px,
        )
        margin = self.geometry.margin_units
        width = self.geometry.usable_width_units
        header_height = converter.bitmap_to_units(self.header.height)
        block_spacing = converter.surface_to_units(self.block_spacing_px)

        self.cursor.y_units = margin
        self._place_header(header_height)

        for index, block in enumerate(self.blocks):
            block_height = converter.surface_to_units(block.height_px)
            self._ensure_room(block_height, header_height, what=f"card {index}")

            rect = SourceRect(
                x=0,
                y=int(round(converter.surface_to_bitmap(block.top_px))),
                w=self.content.width,
                h=int(round(converter.surface_to_bitmap(block.height_px))),
            )
            check_slice_bounds(self.content.width, self.content.height, rect)
            self._emit(CONTENT, rect, width, block_height, block_index=index)
            self.cursor.y_units += block_height + block_spacing

        if self.summary is not None:
            summary_height = converter.bitmap_to_units(self.summary.height)
            self._ensure_room(summary_height, header_height, what="summary")
            self._emit(SUMMARY, self.summary.full_rect, width, summary_height)
            self.cursor.y_units += summary_height

        layout = PageLayout(
            placements=tuple(self.placements),
            page_count=self.cursor.page_index + 1,
            scale_factor=converter.scale_factor,
            density_ratio=converter.density_ratio,
        )
        logger.debug(
            "Laid out %d cards on %d pages (scale %.5f, density %.2f)",
            len(self.blocks),
            layout.page_count,
            layout.scale_factor,
            layout.density_ratio,
        )
        return layout

    def _validate(self) -> None:
        self.geometry.validate()
        for name, bitmap in ((HEADER, self.header), (CONTENT, self.content), (SUMMARY, self.summary)):
            if bitmap is not None and (bitmap.width <= 0 or bitmap.height <= 0):
                raise ConfigurationError(f"The {name} bitmap is empty: {bitmap.width}x{bitmap.height}")
        if self.header_spacing_units < 0 or self.block_spacing_px < 0:
            raise ConfigurationError("Spacing must not be negative")

    def _ensure_room(self, height: float, header_height: float, what: str) -> None:
        remaining = self.geometry.bottom_limit_units - self.cursor.y_units
        if height <= remaining:
            return
        # Oversized blocks still get a fresh page and are placed in full.
        if height > self.geometry.usable_height_units - header_height - self.header_spacing_units:
            logger.warning(
                "%s is %.1f units tall and cannot fit on any page; it will overflow the bottom margin",
                what.capitalize(),
                height,
            )
        self.cursor.page_index += 1
        logger.debug("Page break before %s -> page %d", what, self.cursor.page_index)
        self._place_header(header_height)

    def _place_header(self, header_height: float) -> None:
        margin = self.geometry.margin_units
        self.cursor.y_units = margin
        self._emit(HEADER, self.header.full_rect, self.geometry.usable_width_units, header_height)
        self.cursor.y_units = margin + header_height + self.header_spacing_units

    def _emit(
        self,
        source: str,
        rect: SourceRect,
        width: float,
        height: float,
        block_index: Optional[int] = None,
    ) -> None:
        self.placements.append(
            PlacementInstruction(
                source=source,
                source_rect=rect,
                page_index=self.cursor.page_index,
                dest_x=self.geometry.margin_units,
                dest_y=self.cursor.y_units,
                dest_width=width,
                dest_height=height,
                block_index=block_index,
            )
        )


def paginate(
    header: SourceBitmap,
    content: SourceBitmap,
    blocks: BlockRegistry,
    surface_width_px: float,
    summary: Optional[SourceBitmap] = None,
    geometry: Optional[PageGeometry] = None,
    header_spacing_units: float = DEFAULT_HEADER_SPACING,
    block_spacing_px: float = DEFAULT_BLOCK_SPACING_PX,
) -> PageLayout:
    """
    Compute the page layout for a card report.

    Args:
        header: Header capture, repeated at the top of every page
        content: Capture of the whole stacked card list
        blocks: Card positions inside `content`, in surface pixels
        surface_width_px: Width of the rendering surface `content` was captured from
        summary: Optional summary capture placed after the last card
        geometry: Page size and margin (default A4, 10 mm margin)
        header_spacing_units: Gap below the header, in page units
        block_spacing_px: Gap between cards, in surface pixels

    Returns:
        PageLayout with placements in page order, top to bottom

    Raises:
        ConfigurationError: Zero-width capture/surface or degenerate geometry
        GeometryError: A card lies outside the content capture
    """
    engine = PaginationEngine(
        header=header,
        content=content,
        blocks=blocks,
        surface_width_px=surface_width_px,
        summary=summary,
        geometry=geometry if geometry is not None else PageGeometry(),
        header_spacing_units=header_spacing_units,
        block_spacing_px=block_spacing_px,
    )
    return engine.run()
