"""
Spreadsheet / CSV record source.

Reads the first existing file among the configured paths (primary export,
then a backup copy). Every cell is read as a string and blanks become "".
"""

import asyncio
import logging
import zipfile
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from publication_scout.config import get_settings
from publication_scout.data_sources.base_client import LoadError, RecordSource

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xls", ".xlsm"}


class SpreadsheetSource(RecordSource):
    """Rows from an .xlsx/.xls workbook (first sheet) or a .csv file."""

    def __init__(self, paths: Sequence[str | Path]):
        if not paths:
            raise ValueError("SpreadsheetSource needs at least one path")
        self.paths = [Path(p) for p in paths]

    @classmethod
    def from_settings(cls) -> "SpreadsheetSource":
        settings = get_settings()
        return cls([settings.data_file, settings.data_backup_file])

    @property
    def _source_name(self) -> str:
        return "spreadsheet"

    def resolve_path(self) -> Path:
        for path in self.paths:
            if path.is_file():
                return path
        raise LoadError(
            self._source_name,
            f"No data file found (tried {', '.join(str(p) for p in self.paths)})",
        )

    def read_rows(self) -> list[dict[str, Any]]:
        """Blocking read; use fetch_rows() from async code."""
        path = self.resolve_path()
        try:
            if path.suffix.lower() in EXCEL_SUFFIXES:
                frame = pd.read_excel(path, sheet_name=0, dtype=str)
            else:
                frame = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise LoadError(self._source_name, f"Could not read {path}: {e}") from e

        frame = frame.fillna("")
        rows = frame.to_dict(orient="records")
        logger.info("Read %d rows from %s", len(rows), path)
        return rows

    async def fetch_rows(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.read_rows)
