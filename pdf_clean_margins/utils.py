"""Utility helpers for PDF Clean Margins."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def configure_logging(verbose: bool = False) -> None:
    """Configure package-wide logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def ensure_path(path: PathLike) -> Path:
    """Return an absolute :class:`~pathlib.Path` for *path*, expanding ``~``."""

    return Path(path).expanduser().resolve(strict=False)


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500 KB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


__all__ = ["PathLike", "configure_logging", "ensure_path", "format_file_size"]
