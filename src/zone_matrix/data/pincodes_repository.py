"""Data access helpers for loading the pincode geography dataset."""

from __future__ import annotations

import csv
import functools
import json
import logging
from pathlib import Path
from typing import Any, Optional

from openpyxl import load_workbook

from ..config import settings
from ..services.geography.index import GeographyIndex

_active_pincode_file: Optional[Path] = None


def _load_json(path: Path) -> list[dict[str, Any]]:
    with path.open(mode="r", encoding="utf-8-sig") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError(f"Pincode file '{path}' must contain a JSON array of records.")
    return [row for row in data if isinstance(row, dict)]


def _load_csv(path: Path) -> list[dict[str, Any]]:
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Pincode file '{path}' is missing a header row.")
        return list(reader)


def _load_xlsx(path: Path) -> list[dict[str, Any]]:
    wb = load_workbook(path, data_only=True, read_only=True)
    sheet = wb.active
    rows = sheet.iter_rows(min_row=1, values_only=True)
    header = next(rows, None)
    if header is None:
        raise ValueError(f"Pincode workbook '{path}' is empty.")
    names = [str(cell).strip() if cell is not None else "" for cell in header]
    records: list[dict[str, Any]] = []
    for row in rows:
        records.append({names[i]: cell for i, cell in enumerate(row) if i < len(names) and names[i]})
    return records


@functools.lru_cache(maxsize=1)
def load_pincode_rows(source: Optional[Path] = None) -> tuple[dict[str, Any], ...]:
    """Load raw pincode rows from the configured JSON, CSV or XLSX file."""

    path = source or _active_pincode_file or settings.pincode_file
    if not path.exists():
        raise FileNotFoundError(f"Pincode file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        rows = _load_json(path)
    elif suffix == ".csv":
        rows = _load_csv(path)
    elif suffix in {".xlsx", ".xlsm"}:
        rows = _load_xlsx(path)
    else:
        raise ValueError(f"Unsupported pincode file type '{suffix}'.")

    logging.info(f"Loaded {len(rows)} raw pincode rows from {path}")
    return tuple(rows)


@functools.lru_cache(maxsize=1)
def get_geography_index(source: Optional[Path] = None) -> GeographyIndex:
    """Build (once) the geography index for the active dataset."""
    return GeographyIndex.from_rows(load_pincode_rows(source))


def set_active_pincode_file(path: Path) -> None:
    global _active_pincode_file
    _active_pincode_file = path
    load_pincode_rows.cache_clear()
    get_geography_index.cache_clear()
