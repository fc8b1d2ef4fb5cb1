"""High-level API: capture, paginate and write a card report PDF."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn
from rich.panel import Panel
from rich.table import Table
from rich import box

from .capture import BitmapStep, ContentStep, Captures, RenderTarget, capture_sequence
from .config import DEFAULT_REPORT_KIND, ExportSettings
from .geometry import PageGeometry
from .pagination import CONTENT, HEADER, SUMMARY, PageLayout, paginate
from .pdf_generator import count_pdf_pages, get_file_size_str, write_report_pdf

logger = logging.getLogger(__name__)

# Rich console instance for user-facing output
console = Console()

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass
class ReportResult:
    """What a finished export produced."""

    output_path: Path
    layout: PageLayout


def report_filename(subject: str, kind: str = DEFAULT_REPORT_KIND, export_date: Optional[date] = None) -> str:
    """
    File name for a report: `{subject}_{kind}_{YYYY-MM-DD}.pdf`.

    The date is the export date, not the date of the data.
    """
    day = (export_date or date.today()).isoformat()
    subject = _UNSAFE_FILENAME_CHARS.sub("_", subject.strip()) or "report"
    kind = _UNSAFE_FILENAME_CHARS.sub("_", kind.strip()) or DEFAULT_REPORT_KIND
    return f"{subject}_{kind}_{day}.pdf"


def geometry_from_settings(settings: ExportSettings) -> PageGeometry:
    return PageGeometry(
        width_units=settings.page_width,
        height_units=settings.page_height,
        margin_units=settings.margin,
    )


def plan_report(captures: Captures, settings: ExportSettings) -> PageLayout:
    """Compute the page layout for already captured bitmaps."""
    return paginate(
        header=captures.header,
        content=captures.content.bitmap,
        blocks=captures.content.blocks,
        surface_width_px=captures.content.surface_width_px,
        summary=captures.summary,
        geometry=geometry_from_settings(settings),
        header_spacing_units=settings.header_spacing,
        block_spacing_px=settings.block_spacing_px,
    )


def build_report_pdf(
    output_dir: Path,
    subject: str,
    target: RenderTarget,
    header: BitmapStep,
    content: ContentStep,
    summary: Optional[BitmapStep] = None,
    kind: str = DEFAULT_REPORT_KIND,
    settings: Optional[ExportSettings] = None,
    export_date: Optional[date] = None,
) -> ReportResult:
    """
    High-level helper:
    - Captures header, card list and optional summary (in that order)
    - Lays the cards out on pages without splitting any card
    - Writes the PDF into `output_dir`

    The layout is computed completely before the output file is opened, so
    a failed export never leaves a partial document behind.

    Args:
        output_dir: Directory for the PDF
        subject: Subject name used in the file name
        target: Render target shared by all capture steps
        header: Header capture step
        content: Card list capture step
        summary: Optional summary capture step
        kind: Report kind used in the file name
        settings: Page and spacing settings
        export_date: Date used in the file name (default: today)

    Raises:
        CaptureError: If a capture step fails
        ConfigurationError: Zero-width captures or degenerate page geometry
        GeometryError: Card positions that do not match the capture
    """
    settings = settings or ExportSettings()
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / report_filename(subject, kind, export_date)

    console.print()
    console.print(Panel.fit(
        f"[bold magenta]📋 {subject}[/bold magenta]\n"
        f"[dim]Exporting {kind} to PDF[/dim]",
        border_style="magenta",
    ))
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        capture_task = progress.add_task("[cyan]Capturing...", total=None)
        captures = capture_sequence(target, header, content, summary)
        progress.update(capture_task, total=1, completed=1, description="[cyan]Captured")

        layout = plan_report(captures, settings)

        write_task = progress.add_task("[green]Writing PDF pages...", total=layout.page_count)

        def on_page(page_num: int, total_pages: int) -> None:
            progress.update(
                write_task,
                completed=page_num,
                description=f"[green]Writing page [bold]{page_num}/{total_pages}[/bold]...",
            )

        bitmaps = {HEADER: captures.header, CONTENT: captures.content.bitmap}
        if captures.summary is not None:
            bitmaps[SUMMARY] = captures.summary
        write_report_pdf(
            layout,
            bitmaps,
            output_path,
            geometry_from_settings(settings),
            background=target.background,
            progress_callback=on_page,
        )

    logger.info("Wrote %s (%d pages)", output_path, layout.page_count)
    print_report_summary(output_path, layout)
    return ReportResult(output_path=output_path, layout=layout)


def print_report_summary(output_path: Path, layout: PageLayout) -> None:
    """Print a summary table for a written report."""
    console.print()

    table = Table(box=box.ROUNDED, border_style="green")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("🃏 Cards placed", f"[bold]{len(layout.by_source(CONTENT))}[/bold]")
    table.add_row("📄 Pages created", f"[bold]{count_pdf_pages(output_path)}[/bold]")
    table.add_row("🧾 Summary", "yes" if layout.by_source(SUMMARY) else "no")
    table.add_row("💾 Output file", f"[bold]{output_path}[/bold]")
    table.add_row("📊 File size", f"[bold]{get_file_size_str(output_path)}[/bold]")

    console.print(table)
    console.print()
    console.print("[green]✔[/green] [bold green]Done![/bold green] Your report is ready.")
    console.print()


def print_layout_table(layout: PageLayout) -> None:
    """Print every placement of a layout, page by page."""
    table = Table(box=box.SIMPLE, show_header=True, title="Placements")
    table.add_column("Page", style="cyan", justify="right")
    table.add_column("Source", style="white")
    table.add_column("Card", justify="right")
    table.add_column("Source rect (px)", style="dim")
    table.add_column("y (units)", justify="right")
    table.add_column("Height (units)", justify="right")

    for page_index, placements in layout.pages().items():
        for placement in placements:
            rect = placement.source_rect
            table.add_row(
                str(page_index + 1),
                placement.source,
                "" if placement.block_index is None else str(placement.block_index + 1),
                f"{rect.x},{rect.y} {rect.w}x{rect.h}",
                f"{placement.dest_y:.1f}",
                f"{placement.dest_height:.1f}",
            )

    console.print(table)
    console.print(
        f"[bold]{layout.page_count}[/bold] pages, "
        f"[bold]{len(layout.by_source(CONTENT))}[/bold] cards, "
        f"scale {layout.scale_factor:.5f} units/px"
    )
