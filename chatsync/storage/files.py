"""Backup file export and import."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def download_as(content: str, filename: str, directory: Path) -> Path:
    """
    Write text content to a file in ``directory``.

    Args:
        content: Text to write
        filename: Target file name
        directory: Destination directory, created if missing

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / filename
    path.write_text(content, encoding="utf-8")

    logger.info(f"Wrote {len(content)} characters to {path}")
    return path


def read_from_file(path: Path) -> str:
    """Read a backup file as text."""
    path = Path(path)
    logger.debug(f"Reading {path}")
    return path.read_text(encoding="utf-8")
