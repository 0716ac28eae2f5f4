from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DELIMITED_SUFFIXES = {".csv", ".txt", ".tsv"}
LEGACY_WORKBOOK_SUFFIXES = {".xls"}
WORKBOOK_SUFFIXES = {".xlsx", ".xlsm"}
SUPPORTED_SUFFIXES = DELIMITED_SUFFIXES | LEGACY_WORKBOOK_SUFFIXES | WORKBOOK_SUFFIXES

SNIFF_SAMPLE_SIZE = 8192


class UnreadableFileError(RuntimeError):
    pass


def _read_delimited_rows(path: Path) -> list[list[Any]]:
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            with path.open("r", encoding=encoding, newline="") as handle:
                sample = handle.read(SNIFF_SAMPLE_SIZE)
                handle.seek(0)
                try:
                    dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
                except csv.Error:
                    dialect = csv.excel_tab if path.suffix.lower() == ".tsv" else csv.excel
                return [list(row) for row in csv.reader(handle, dialect)]
        except UnicodeDecodeError:
            continue
    raise UnreadableFileError(f"Unable to decode delimited file: {path.name}")


def _read_legacy_workbook_rows(path: Path) -> list[list[Any]]:
    import xlrd

    book = xlrd.open_workbook(str(path))
    try:
        sheet = book.sheet_by_index(0)
        return [sheet.row_values(index) for index in range(sheet.nrows)]
    finally:
        book.release_resources()


def _read_workbook_rows(path: Path) -> list[list[Any]]:
    from openpyxl import load_workbook

    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.active
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_rows(path: Path) -> list[list[Any]]:
    """Load every row of the first/active sheet as a list of raw cell values."""
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix in DELIMITED_SUFFIXES:
            rows = _read_delimited_rows(path)
        elif suffix in LEGACY_WORKBOOK_SUFFIXES:
            rows = _read_legacy_workbook_rows(path)
        else:
            rows = _read_workbook_rows(path)
    except UnreadableFileError:
        raise
    except Exception as exc:
        raise UnreadableFileError(f"Could not read {path.name}: {exc}") from exc
    logger.debug("Read %d rows from %s", len(rows), path.name)
    return rows
