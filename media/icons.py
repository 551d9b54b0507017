"""Executable icon extraction.

Icon resources can only be read from Windows executables on Windows hosts;
:func:`select_icon_extractor` picks the matching implementation at runtime.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Protocol

from icoextract import IconExtractor as PEIconExtractor

from errors import IconExtractionError, IconExtractionUnsupportedError

logger = logging.getLogger(__name__)


class IconExtractor(Protocol):
    def extract(
        self, exe_path: str | os.PathLike[str], output_path: str | os.PathLike[str]
    ) -> Path:
        """Write the icon embedded in ``exe_path`` to ``output_path``."""


class WindowsIconExtractor:
    """Extract the first icon group of a PE executable as an ``.ico`` file."""

    def extract(
        self, exe_path: str | os.PathLike[str], output_path: str | os.PathLike[str]
    ) -> Path:
        destination = Path(output_path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            extractor = PEIconExtractor(os.fspath(exe_path))
            extractor.export_icon(os.fspath(destination), num=0)
        except Exception as exc:
            raise IconExtractionError(
                f"failed to extract icon from {exe_path}: {exc}"
            ) from exc
        return destination


class UnsupportedIconExtractor:
    """Stand-in used on hosts that cannot read executable icon resources."""

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    def extract(
        self, exe_path: str | os.PathLike[str], output_path: str | os.PathLike[str]
    ) -> Path:
        raise IconExtractionUnsupportedError(
            f"Icon extraction is only supported on Windows (running on {self.platform})"
        )


def select_icon_extractor(platform: str | None = None) -> IconExtractor:
    """Return the icon extractor for ``platform`` (defaults to ``sys.platform``)."""

    current = platform or sys.platform
    if current == "win32":
        return WindowsIconExtractor()
    logger.debug("Executable icon extraction unavailable on %s", current)
    return UnsupportedIconExtractor(current)


__all__ = [
    "IconExtractor",
    "UnsupportedIconExtractor",
    "WindowsIconExtractor",
    "select_icon_extractor",
]
