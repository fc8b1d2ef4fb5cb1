from __future__ import annotations

from dataclasses import replace

import pytest
from pypdf import PdfReader

from card_report_pdf.errors import GeometryError
from card_report_pdf.geometry import BlockRegistry, PageGeometry
from card_report_pdf.pagination import CONTENT, HEADER, SUMMARY, paginate
from card_report_pdf.pdf_generator import (
    count_pdf_pages,
    get_file_size_str,
    render_layout,
    write_report_pdf,
)

from conftest import solid


def _two_page_layout(summary=None):
    # 190 px surface, 380 px capture: one surface pixel per millimetre
    return paginate(
        header=solid(380, 40, "#336699"),
        content=solid(380, 900, "#eeeeee"),
        blocks=BlockRegistry.from_pairs([(0, 80), (90, 80), (180, 100), (290, 60), (360, 60)]),
        surface_width_px=190.0,
        summary=summary,
        block_spacing_px=10.0,
    )


def _bitmaps(summary=None):
    bitmaps = {HEADER: solid(380, 40, "#336699"), CONTENT: solid(380, 900, "#eeeeee")}
    if summary is not None:
        bitmaps[SUMMARY] = summary
    return bitmaps


def test_sink_receives_pages_in_order(sink):
    layout = _two_page_layout()
    render_layout(layout, _bitmaps(), sink)

    kinds = [call[0] for call in sink.calls]
    assert kinds == ["place", "place", "place", "new_page", "place", "place", "place", "place", "close"]
    first_card = sink.calls[1]
    assert first_card[1] == (380, 160)
    assert first_card[2:] == (10.0, 35.0, 190.0, 80.0)


def test_progress_callback_reports_each_page(sink):
    seen = []
    render_layout(_two_page_layout(), _bitmaps(), sink, progress_callback=lambda page, total: seen.append((page, total)))
    assert seen == [(1, 2), (2, 2)]


def test_layout_going_back_a_page_is_rejected(sink):
    layout = _two_page_layout()
    swapped = replace(layout, placements=tuple(reversed(layout.placements)))
    with pytest.raises(GeometryError):
        render_layout(swapped, _bitmaps(), sink)


def test_write_report_pdf(tmp_path):
    summary = solid(380, 100, "#ffcc00")
    layout = _two_page_layout(summary=summary)
    output = tmp_path / "report.pdf"

    write_report_pdf(layout, _bitmaps(summary), output, PageGeometry())

    assert count_pdf_pages(output) == layout.page_count
    page = PdfReader(str(output)).pages[0]
    assert float(page.mediabox.width) == pytest.approx(595.28, abs=0.1)
    assert float(page.mediabox.height) == pytest.approx(841.89, abs=0.1)
    assert get_file_size_str(output).endswith("KB")


def test_failed_write_leaves_no_file(tmp_path):
    layout = _two_page_layout(summary=solid(380, 100))
    output = tmp_path / "report.pdf"

    with pytest.raises(KeyError):
        write_report_pdf(layout, _bitmaps(), output, PageGeometry())
    assert not output.exists()
