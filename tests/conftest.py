"""Test configuration ensuring the local package is importable."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Tuple

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from card_report_pdf.bitmap import SourceBitmap  # noqa: E402


def solid(width: int, height: int, color: str = "#ffffff") -> SourceBitmap:
    return SourceBitmap(Image.new("RGB", (width, height), color))


class RecordingSink:
    """Page sink stub that remembers every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple] = []

    def place(self, bitmap, x, y, width, height) -> None:
        self.calls.append(("place", (bitmap.width, bitmap.height), x, y, width, height))

    def new_page(self) -> None:
        self.calls.append(("new_page",))

    def close(self) -> None:
        self.calls.append(("close",))


@pytest.fixture
def header() -> SourceBitmap:
    # 380 px wide on a 190 mm usable width: 0.5 mm per bitmap pixel
    return solid(380, 40, "#336699")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
