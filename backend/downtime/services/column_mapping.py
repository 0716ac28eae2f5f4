from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Header synonyms per record field, in order of preference.
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "from_date": ("from date", "from_date", "date"),
    "to_date": ("to date", "to_date", "end date"),
    "mo_key": ("mo key", "mo_key", "maintenance object"),
    "ws_key": ("ws key", "ws_key", "workstation"),
    "stop_type": ("stop t", "stop_t", "stop type"),
    "wo_key": ("wo key", "wo_key", "work order key"),
    "wo_name": ("wo name", "wo_name", "work order name"),
    "code1": ("code1 key", "code1_key", "type"),
    "code2": ("code2 key", "code2_key", "cause"),
    "code3": ("code3 key", "code3_key", "component"),
    "stop_duration": ("stop duration", "stop_duration", "duration"),
}

# Positional layout of the plant's standard export, keyed by the preferred header.
DEFAULT_POSITIONS: dict[str, int] = {
    "from date": 0,
    "to date": 1,
    "mo key": 2,
    "ws key": 3,
    "stop t": 4,
    "wo key": 5,
    "wo name": 6,
    "code1 key": 7,
    "code2 key": 8,
    "code3 key": 9,
    "stop duration": 10,
}

ColumnMap = dict[str, int | None]


def _header_label(cell: Any) -> str | None:
    if not isinstance(cell, str):
        return None
    label = cell.strip().lower()
    return label or None


def find_column_index(
    header_row: Sequence[Any],
    synonyms: Sequence[str],
    default_positions: Mapping[str, int] = DEFAULT_POSITIONS,
) -> int | None:
    labels = [_header_label(cell) for cell in header_row]
    for name in synonyms:
        wanted = name.lower()
        for index, label in enumerate(labels):
            if label == wanted:
                return index
    if synonyms:
        return default_positions.get(synonyms[0])
    return None


def resolve_columns(
    header_row: Sequence[Any] | None,
    field_synonyms: Mapping[str, Sequence[str]] = FIELD_SYNONYMS,
    default_positions: Mapping[str, int] = DEFAULT_POSITIONS,
) -> ColumnMap:
    header = list(header_row or [])
    return {
        field: find_column_index(header, synonyms, default_positions)
        for field, synonyms in field_synonyms.items()
    }
