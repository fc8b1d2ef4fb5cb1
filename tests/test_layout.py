from __future__ import annotations

import json
from dataclasses import replace
from datetime import date

import pytest
from PIL import Image

from card_report_pdf.__main__ import main
from card_report_pdf.capture import RenderTarget, image_step, stack_cards
from card_report_pdf.errors import CaptureError, GeometryError
from card_report_pdf.geometry import BlockRegistry
from card_report_pdf.layout import build_report_pdf, report_filename
from card_report_pdf.pdf_generator import count_pdf_pages

from conftest import solid


def test_report_filename_uses_export_date():
    assert report_filename("Site A", "worker-stats", date(2024, 3, 9)) == "Site A_worker-stats_2024-03-09.pdf"


def test_report_filename_replaces_path_characters():
    assert report_filename("a/b:c", "x", date(2024, 1, 1)) == "a_b_c_x_2024-01-01.pdf"


def test_build_report_pdf(tmp_path):
    target = RenderTarget(surface_width_px=190.0, density=2.0)
    cards = [Image.new("RGB", (380, 120), "#dddddd") for _ in range(6)]

    result = build_report_pdf(
        output_dir=tmp_path,
        subject="Site A",
        target=target,
        header=lambda t: solid(380, 40),
        content=lambda t: stack_cards(cards, t),
        summary=lambda t: solid(380, 100),
        kind="stats",
        export_date=date(2024, 5, 1),
    )

    assert result.output_path == tmp_path / "Site A_stats_2024-05-01.pdf"
    assert count_pdf_pages(result.output_path) == result.layout.page_count
    assert result.layout.page_count == 3


def test_capture_failure_writes_nothing(tmp_path):
    target = RenderTarget(surface_width_px=190.0)

    with pytest.raises(CaptureError):
        build_report_pdf(
            output_dir=tmp_path,
            subject="Site A",
            target=target,
            header=image_step(tmp_path / "missing.png"),
            content=lambda t: stack_cards([], t),
        )
    assert list(tmp_path.glob("*.pdf")) == []


def test_bad_registry_writes_nothing(tmp_path):
    target = RenderTarget(surface_width_px=190.0)

    def content(t):
        capture = stack_cards([Image.new("RGB", (380, 100))], t)
        return replace(capture, blocks=BlockRegistry.from_pairs([(0, 500)]))

    with pytest.raises(GeometryError):
        build_report_pdf(
            output_dir=tmp_path,
            subject="Site A",
            target=target,
            header=lambda t: solid(380, 40),
            content=content,
        )
    assert list(tmp_path.glob("*.pdf")) == []


def test_cli_build_and_plan(tmp_path):
    header = tmp_path / "header.png"
    Image.new("RGB", (750, 60), "white").save(header)
    content = tmp_path / "content.png"
    Image.new("RGB", (750, 600), "#cccccc").save(content)
    blocks = tmp_path / "blocks.json"
    blocks.write_text(json.dumps({"surface_width": 375, "blocks": [{"top": 0, "height": 140}, {"top": 150, "height": 140}]}))
    out_dir = tmp_path / "out"

    common = ["--header", str(header), "--content", str(content), "--blocks", str(blocks)]
    assert main(["plan", *common]) == 0
    assert main(["build", *common, "--subject", "Crew", "--output-dir", str(out_dir)]) == 0

    written = list(out_dir.glob("Crew_card-report_*.pdf"))
    assert len(written) == 1
    assert count_pdf_pages(written[0]) == 1


def test_cli_reports_export_errors(tmp_path):
    header = tmp_path / "header.png"
    Image.new("RGB", (750, 60), "white").save(header)
    content = tmp_path / "content.png"
    Image.new("RGB", (750, 100)).save(content)
    blocks = tmp_path / "blocks.json"
    blocks.write_text(json.dumps([{"top": 0, "height": 400}]))

    code = main([
        "build", "--header", str(header), "--content", str(content), "--blocks", str(blocks),
        "--subject", "Crew", "--output-dir", str(tmp_path / "out"),
    ])

    assert code == 1
    assert not list((tmp_path / "out").glob("*.pdf"))


def _cli_inputs(tmp_path):
    header = tmp_path / "header.png"
    Image.new("RGB", (750, 60), "white").save(header)
    content = tmp_path / "content.png"
    Image.new("RGB", (750, 600), "#cccccc").save(content)
    blocks = tmp_path / "blocks.json"
    blocks.write_text(json.dumps([{"top": 0, "height": 140}]))
    return ["--header", str(header), "--content", str(content), "--blocks", str(blocks)]


def test_cli_rejects_zero_density(tmp_path, capsys):
    code = main(["plan", *_cli_inputs(tmp_path), "--density", "0"])

    assert code == 1
    assert "density must be positive" in capsys.readouterr().out


def test_cli_reports_unwritable_output_dir(tmp_path, capsys):
    blocker = tmp_path / "taken"
    blocker.write_text("not a directory")

    code = main(["build", *_cli_inputs(tmp_path), "--subject", "Crew", "--output-dir", str(blocker)])

    assert code == 1
    out = capsys.readouterr().out
    assert "Export failed" in out
    assert "Traceback" not in out
