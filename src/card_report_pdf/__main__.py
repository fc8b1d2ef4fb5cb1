"""CLI entry point for card_report_pdf."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from card_report_pdf.capture import (
    RenderTarget,
    capture_sequence,
    card_stack_step,
    content_file_step,
    image_step,
)
from card_report_pdf.config import (
    DEFAULT_BLOCK_SPACING_PX,
    DEFAULT_DENSITY,
    DEFAULT_HEADER_SPACING,
    DEFAULT_MARGIN,
    DEFAULT_REPORT_KIND,
    ExportSettings,
)
from card_report_pdf.errors import ReportExportError
from card_report_pdf.layout import build_report_pdf, plan_report, print_layout_table

console = Console()


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--header",
        type=str,
        required=True,
        help="Header image or PDF, repeated at the top of every page.",
    )
    parser.add_argument(
        "--content",
        type=str,
        default=None,
        help="Pre-rendered card list image (requires --blocks).",
    )
    parser.add_argument(
        "--blocks",
        type=str,
        default=None,
        help="JSON file with card offsets/heights in surface pixels.",
    )
    parser.add_argument(
        "--cards",
        type=str,
        default=None,
        help="Directory or ZIP of card images, stacked in alphabetical order.",
    )
    parser.add_argument(
        "--summary",
        type=str,
        default=None,
        help="Optional summary image or PDF placed after the last card.",
    )
    parser.add_argument(
        "--surface-width",
        type=float,
        default=375.0,
        help="Width of the rendering surface in pixels (default: 375).",
    )
    parser.add_argument(
        "--density",
        type=float,
        default=DEFAULT_DENSITY,
        help=f"Capture density multiplier (default: {DEFAULT_DENSITY:g}).",
    )
    parser.add_argument(
        "--margin",
        type=float,
        default=DEFAULT_MARGIN,
        help=f"Page margin in millimetres (default: {DEFAULT_MARGIN:g}).",
    )
    parser.add_argument(
        "--header-spacing",
        type=float,
        default=DEFAULT_HEADER_SPACING,
        help=f"Gap below the header in millimetres (default: {DEFAULT_HEADER_SPACING:g}).",
    )
    parser.add_argument(
        "--block-spacing",
        type=float,
        default=DEFAULT_BLOCK_SPACING_PX,
        help=f"Gap between cards in surface pixels (default: {DEFAULT_BLOCK_SPACING_PX:g}).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging (page breaks, scale factors).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Card Report PDF – Paginate captured cards into a printable PDF"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command - capture, paginate and write the PDF
    build_cmd = subparsers.add_parser(
        "build",
        help="Capture the inputs and write the report PDF"
    )
    _add_input_arguments(build_cmd)
    build_cmd.add_argument(
        "--subject",
        type=str,
        required=True,
        help="Subject name, used in the output file name.",
    )
    build_cmd.add_argument(
        "--kind",
        type=str,
        default=DEFAULT_REPORT_KIND,
        help=f"Report kind, used in the output file name (default: {DEFAULT_REPORT_KIND}).",
    )
    build_cmd.add_argument(
        "--output-dir",
        type=str,
        default="build",
        help="Directory for the output file (default: build).",
    )

    # Plan command - print the page layout only
    plan_cmd = subparsers.add_parser(
        "plan",
        help="Print the page layout without writing a PDF"
    )
    _add_input_arguments(plan_cmd)

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _settings_from_args(args: argparse.Namespace) -> ExportSettings:
    return ExportSettings(
        margin=args.margin,
        header_spacing=args.header_spacing,
        block_spacing_px=args.block_spacing,
        density=args.density,
    )


def _capture_steps(args: argparse.Namespace, parser: argparse.ArgumentParser):
    if args.cards is not None:
        content = card_stack_step(Path(args.cards).resolve())
    elif args.content is not None and args.blocks is not None:
        content = content_file_step(Path(args.content).resolve(), Path(args.blocks).resolve())
    else:
        parser.error("either --cards or both --content and --blocks are required")

    header = image_step(Path(args.header).resolve())
    summary = image_step(Path(args.summary).resolve()) if args.summary is not None else None
    return header, content, summary


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    configure_logging(args.verbose)
    settings = _settings_from_args(args)
    header, content, summary = _capture_steps(args, parser)

    try:
        target = RenderTarget(
            surface_width_px=args.surface_width,
            density=settings.density,
            background=settings.background,
        )
        if args.command == "build":
            build_report_pdf(
                output_dir=Path(args.output_dir).resolve(),
                subject=args.subject,
                target=target,
                header=header,
                content=content,
                summary=summary,
                kind=args.kind,
                settings=settings,
            )
        elif args.command == "plan":
            captures = capture_sequence(target, header, content, summary)
            print_layout_table(plan_report(captures, settings))
    except (ReportExportError, OSError) as e:
        console.print(f"[red]✘[/red] Export failed: {escape(str(e))}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
