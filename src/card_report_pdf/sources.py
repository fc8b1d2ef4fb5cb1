"""Discovery of card images and block registry files."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
import zipfile

from .geometry import BlockRegistry, ContentBlock


# Supported image extensions
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"}


def is_image_file(name: str) -> bool:
    """Check if a filename has a supported image extension."""
    return Path(name).suffix.lower() in IMAGE_EXTENSIONS


def list_image_files(cards_dir: Path) -> List[Path]:
    """
    List all image files directly in a directory, sorted alphabetically.

    Args:
        cards_dir: Directory holding one image per card

    Returns:
        Sorted list of image file paths
    """
    return sorted(
        path for path in cards_dir.iterdir()
        if path.is_file() and is_image_file(path.name)
    )


def list_images_in_zip(zip_path: Path) -> List[str]:
    """
    List all image files in a ZIP archive.

    Filters out:
    - Directory entries (paths ending with /)
    - macOS metadata files (__MACOSX/)

    Args:
        zip_path: Path to the ZIP file

    Returns:
        Sorted list of image file names within the ZIP
    """
    with zipfile.ZipFile(zip_path, "r") as zf:
        return sorted(
            name
            for name in zf.namelist()
            if is_image_file(name)
            and not name.endswith("/")
            and not name.startswith("__MACOSX/")
        )


def iterate_card_images(source: Path) -> Iterator[Tuple[str, bytes]]:
    """
    Yield (name, image bytes) for every card image in a directory or ZIP.

    Cards come in alphabetical order, which is their order in the report.

    Raises:
        FileNotFoundError: If `source` is neither a directory nor a ZIP file
    """
    if source.is_dir():
        for path in list_image_files(source):
            yield path.name, path.read_bytes()
    elif source.is_file() and zipfile.is_zipfile(source):
        names = list_images_in_zip(source)
        with zipfile.ZipFile(source, "r") as zf:
            for name in names:
                yield name, zf.read(name)
    else:
        raise FileNotFoundError(f"No card directory or ZIP archive at {source}")


def load_block_registry(path: Path) -> Tuple[BlockRegistry, Optional[float]]:
    """
    Load card positions from a JSON file.

    Two layouts are accepted:

        {"surface_width": 375, "blocks": [{"top": 0, "height": 120}, ...]}
        [{"top": 0, "height": 120}, ...]

    Offsets and heights are rendering-surface pixels.

    Returns:
        (registry, surface width or None when the file does not say)
    """
    data = json.loads(path.read_text(encoding="utf-8"))

    surface_width: Optional[float] = None
    if isinstance(data, dict):
        if data.get("surface_width") is not None:
            surface_width = float(data["surface_width"])
        entries = data.get("blocks", [])
    else:
        entries = data

    if not isinstance(entries, list):
        raise ValueError(f"{path}: 'blocks' must be a list")

    blocks = [
        ContentBlock(top_px=float(entry["top"]), height_px=float(entry["height"]))
        for entry in entries
    ]
    return BlockRegistry(blocks), surface_width
