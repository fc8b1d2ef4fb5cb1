"""Block registry, page geometry and unit conversion."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

from .config import DEFAULT_MARGIN, DEFAULT_PAGE_HEIGHT, DEFAULT_PAGE_WIDTH
from .errors import ConfigurationError, GeometryError


@dataclass(frozen=True)
class ContentBlock:
    """A card inside the content capture, in rendering-surface pixels."""

    top_px: float
    height_px: float

    @property
    def bottom_px(self) -> float:
        return self.top_px + self.height_px


@dataclass(frozen=True)
class PageGeometry:
    """Physical page size and margin, fixed for a whole document."""

    width_units: float = DEFAULT_PAGE_WIDTH
    height_units: float = DEFAULT_PAGE_HEIGHT
    margin_units: float = DEFAULT_MARGIN

    @property
    def usable_width_units(self) -> float:
        return self.width_units - 2.0 * self.margin_units

    @property
    def usable_height_units(self) -> float:
        return self.height_units - 2.0 * self.margin_units

    @property
    def bottom_limit_units(self) -> float:
        """Lowest y coordinate content may reach on a page."""
        return self.height_units - self.margin_units

    def validate(self) -> None:
        """
        Reject geometry that leaves no printable area.

        Raises:
            ConfigurationError: If the margin is negative or eats the page
        """
        if self.margin_units < 0:
            raise ConfigurationError(f"Negative page margin: {self.margin_units}")
        if self.usable_width_units <= 0 or self.usable_height_units <= 0:
            raise ConfigurationError(
                f"Page {self.width_units}x{self.height_units} with margin "
                f"{self.margin_units} has no printable area"
            )


class BlockRegistry(Sequence[ContentBlock]):
    """
    Ordered content blocks extracted from the main capture.

    The order is the top-to-bottom render order and is kept as given.
    """

    def __init__(self, blocks: Iterable[ContentBlock] = ()):
        items: Tuple[ContentBlock, ...] = tuple(blocks)
        for index, block in enumerate(items):
            if block.top_px < 0:
                raise GeometryError(f"Block {index} starts above the capture: top={block.top_px}")
            if block.height_px <= 0:
                raise GeometryError(f"Block {index} has non-positive height: {block.height_px}")
        self._blocks = items

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "BlockRegistry":
        """Build a registry from (top, height) pairs."""
        return cls(ContentBlock(top_px=float(top), height_px=float(height)) for top, height in pairs)

    def __getitem__(self, index):  # type: ignore[override]
        return self._blocks[index]

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[ContentBlock]:
        return iter(self._blocks)

    def __repr__(self) -> str:
        return f"BlockRegistry({len(self._blocks)} blocks)"


class UnitConverter:
    """
    Maps rendering-surface and bitmap pixels to page units.

    scale_factor = usable page width / content bitmap width
    density_ratio = content bitmap width / rendering surface width
    """

    def __init__(self, usable_width_units: float, bitmap_width_px: int, surface_width_px: float):
        if bitmap_width_px <= 0:
            raise ConfigurationError(f"Content bitmap width must be positive, got {bitmap_width_px}")
        if surface_width_px <= 0:
            raise ConfigurationError(f"Rendering surface width must be positive, got {surface_width_px}")
        if usable_width_units <= 0:
            raise ConfigurationError(f"Usable page width must be positive, got {usable_width_units}")
        self.scale_factor = usable_width_units / bitmap_width_px
        self.density_ratio = bitmap_width_px / surface_width_px

    def surface_to_bitmap(self, px: float) -> float:
        return px * self.density_ratio

    def bitmap_to_units(self, px: float) -> float:
        return px * self.scale_factor

    def surface_to_units(self, px: float) -> float:
        return self.bitmap_to_units(self.surface_to_bitmap(px))
