"""Extraction of the single JSON entry from a downloaded dataset ZIP."""

import logging
import zipfile
from pathlib import Path
from typing import Protocol

from .errors import ArchiveError
from .process import run_bounded

logger = logging.getLogger(__name__)

EXTRACT_MAX_BYTES = 1024 * 1024 * 1024


class ArchiveExtractor(Protocol):
    """Reads one named entry of a ZIP archive as UTF-8 text."""

    def extract(self, zip_path: Path, entry_name: str) -> str: ...


class UnzipExtractor:
    """Extract an entry by piping it through ``unzip -p``."""

    def __init__(self, executable: str = "unzip", max_bytes: int = EXTRACT_MAX_BYTES) -> None:
        self.executable = executable
        self.max_bytes = max_bytes

    def extract(self, zip_path: Path, entry_name: str) -> str:
        try:
            completed = run_bounded([self.executable, "-p", str(zip_path), entry_name], self.max_bytes)
        except OSError as e:
            raise ArchiveError(f"Cannot run {self.executable}: {e}") from e

        if completed.exceeded:
            raise ArchiveError(f"Entry {entry_name} in {zip_path} exceeds {self.max_bytes} bytes")
        # unzip exits 11 when no matching entry exists
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise ArchiveError(
                f"{self.executable} failed for {entry_name} in {zip_path} "
                f"(exit {completed.returncode})" + (f": {stderr}" if stderr else "")
            )
        if not completed.stdout:
            raise ArchiveError(f"Entry {entry_name} not found or empty in {zip_path}")

        try:
            return completed.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArchiveError(f"Entry {entry_name} in {zip_path} is not valid UTF-8") from e


class ZipfileExtractor:
    """Extract an entry in-process with :mod:`zipfile`."""

    def extract(self, zip_path: Path, entry_name: str) -> str:
        try:
            with zipfile.ZipFile(zip_path) as archive:
                data = archive.read(entry_name)
        except KeyError as e:
            raise ArchiveError(f"Entry {entry_name} not found in {zip_path}") from e
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(f"Cannot read archive {zip_path}: {e}") from e

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArchiveError(f"Entry {entry_name} in {zip_path} is not valid UTF-8") from e


def get_extractor(name: str, max_bytes: int = EXTRACT_MAX_BYTES) -> ArchiveExtractor:
    """Return the extractor configured by ``ARCHIVE_TOOL``."""
    if name == "unzip":
        return UnzipExtractor(max_bytes=max_bytes)
    if name == "zipfile":
        return ZipfileExtractor()
    raise ValueError(f"Unknown archive tool: {name}")
