from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from downtime.models.production_stop import ProductionStop
from downtime.services.cell_classifier import MachinePatterns, classify_row
from downtime.services.cell_values import (
    DURATION_FALLBACK_MAX,
    cell_text,
    is_blank,
    normalize_date,
    resolve_duration,
)
from downtime.services.column_mapping import ColumnMap

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "mo_key",
    "ws_key",
    "stop_type",
    "wo_key",
    "wo_name",
    "code1",
    "code2",
    "code3",
)


class SkipReason(str, Enum):
    EMPTY_ROW = "empty_row"
    MISSING_REQUIRED = "missing_required"
    ROW_ERROR = "row_error"


@dataclass
class ImportContext:
    """State shared by every row of one import run."""

    columns: ColumnMap
    patterns: MachinePatterns
    machine_groups: dict[str, str] = field(default_factory=dict)
    dayfirst: bool = False
    duration_fallback_max: float = DURATION_FALLBACK_MAX


@dataclass
class StopCandidate:
    from_date: date | None = None
    to_date: date | None = None
    mo_key: str | None = None
    ws_key: str | None = None
    stop_type: str | None = None
    wo_key: str | None = None
    wo_name: str | None = None
    code1: str | None = None
    code2: str | None = None
    code3: str | None = None
    machine_name: str | None = None
    machine_group: str | None = None
    stop_duration: float | None = None

    @property
    def is_complete(self) -> bool:
        return self.from_date is not None and bool(self.machine_name)

    def to_model(self) -> ProductionStop:
        return ProductionStop(
            from_date=self.from_date,
            to_date=self.to_date,
            mo_key=self.mo_key,
            ws_key=self.ws_key,
            stop_type=self.stop_type,
            wo_key=self.wo_key,
            wo_name=self.wo_name,
            code1=self.code1,
            code2=self.code2,
            code3=self.code3,
            machine_name=self.machine_name,
            machine_group=self.machine_group,
            stop_duration=self.stop_duration,
        )


@dataclass(frozen=True)
class RowResult:
    candidate: StopCandidate | None = None
    skip_reason: SkipReason | None = None

    @classmethod
    def skipped(cls, reason: SkipReason) -> RowResult:
        return cls(skip_reason=reason)


def _cell(row: Sequence[Any], index: int | None) -> Any:
    if index is None or index < 0 or index >= len(row):
        return None
    return row[index]


def _column_length(name: str) -> int | None:
    return getattr(ProductionStop.__table__.c[name].type, "length", None)


def _fit_column_lengths(candidate: StopCandidate, row_number: int) -> None:
    for name in (*TEXT_FIELDS, "machine_name", "machine_group"):
        value = getattr(candidate, name)
        limit = _column_length(name)
        if value is None or limit is None or len(value) <= limit:
            continue
        logger.warning(
            "Row %d: %s is %d characters long, truncated to %d", row_number, name, len(value), limit
        )
        setattr(candidate, name, value[:limit])


def _extract(row: Sequence[Any], context: ImportContext, row_number: int) -> StopCandidate:
    columns = context.columns
    candidate = StopCandidate(
        from_date=normalize_date(
            _cell(row, columns.get("from_date")), dayfirst=context.dayfirst
        ),
        to_date=normalize_date(_cell(row, columns.get("to_date")), dayfirst=context.dayfirst),
    )
    for name in TEXT_FIELDS:
        setattr(candidate, name, cell_text(_cell(row, columns.get(name))))
    candidate.machine_name, candidate.machine_group = classify_row(
        row, context.patterns, context.machine_groups
    )
    candidate.stop_duration = resolve_duration(
        row,
        columns.get("stop_duration"),
        fallback_max=context.duration_fallback_max,
    )
    _fit_column_lengths(candidate, row_number)
    return candidate


def normalize_row(row: Sequence[Any] | None, context: ImportContext, row_number: int) -> RowResult:
    """Turn one data row into a stop candidate, or say why it was skipped.

    Never raises for problems inside the row; ``row_number`` is only used for
    log messages.
    """
    if not row or all(is_blank(cell) for cell in row):
        logger.warning("Skipping row %d: %s", row_number, SkipReason.EMPTY_ROW.value)
        return RowResult.skipped(SkipReason.EMPTY_ROW)
    try:
        candidate = _extract(row, context, row_number)
    except Exception as exc:
        logger.warning("Error processing row %d: %s", row_number, exc)
        return RowResult.skipped(SkipReason.ROW_ERROR)
    return RowResult(candidate=candidate)
