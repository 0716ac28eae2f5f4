from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from downtime.core.config import settings
from downtime.models.production_stop import ProductionStop
from downtime.services.cell_classifier import MachinePatterns
from downtime.services.column_mapping import resolve_columns
from downtime.services.row_normalizer import ImportContext, SkipReason, normalize_row
from downtime.services.tabular_reader import read_rows

logger = logging.getLogger(__name__)

RowReader = Callable[[Path], Iterable[Sequence[Any]]]


class StopImportError(RuntimeError):
    pass


@dataclass(frozen=True)
class ImportSummary:
    processed: int
    skipped: int


def _run_import(
    db: Session,
    path: Path,
    *,
    delete_existing: bool,
    reader: RowReader,
    patterns: MachinePatterns,
) -> ImportSummary:
    if delete_existing:
        result = db.execute(delete(ProductionStop))
        logger.info("Cleared %s existing production stops", result.rowcount)

    rows = iter(reader(path))
    header = next(rows, None)
    context = ImportContext(
        columns=resolve_columns(header),
        patterns=patterns,
        dayfirst=settings.date_dayfirst,
        duration_fallback_max=settings.duration_fallback_max,
    )

    processed = 0
    skipped = 0
    # Row 1 is the header.
    for row_number, row in enumerate(rows, start=2):
        outcome = normalize_row(row, context, row_number)
        if outcome.candidate is None:
            skipped += 1
            continue
        if not outcome.candidate.is_complete:
            missing = [
                name
                for name in ("from_date", "machine_name")
                if not getattr(outcome.candidate, name)
            ]
            logger.warning(
                "Skipping row %d: %s (%s)",
                row_number,
                SkipReason.MISSING_REQUIRED.value,
                ", ".join(missing),
            )
            skipped += 1
            continue
        db.add(outcome.candidate.to_model())
        processed += 1

    db.flush()
    return ImportSummary(processed=processed, skipped=skipped)


def import_production_stops(
    db: Session,
    path: Path,
    *,
    delete_existing: bool = False,
    reader: RowReader = read_rows,
    patterns: MachinePatterns | None = None,
) -> ImportSummary:
    """Load one spreadsheet of production stops inside a single transaction.

    Rows that cannot be used are counted as skipped. Any other failure rolls
    back everything done by this call, including the optional purge, and is
    re-raised as :class:`StopImportError`.
    """
    path = Path(path)
    logger.info("Importing production stops from %s (delete_existing=%s)", path.name, delete_existing)
    try:
        summary = _run_import(
            db,
            path,
            delete_existing=delete_existing,
            reader=reader,
            patterns=patterns or MachinePatterns.from_settings(),
        )
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("Import error: %s", exc)
        raise StopImportError(str(exc)) from exc
    logger.info(
        "Imported %s: %d processed, %d skipped",
        path.name,
        summary.processed,
        summary.skipped,
    )
    return summary
