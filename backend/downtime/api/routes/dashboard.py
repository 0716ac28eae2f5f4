from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from downtime.api.deps import get_db
from downtime.schemas.dashboard import (
    DashboardFilters,
    DashboardStatistics,
    EfficiencyMetrics,
    MachineStatistics,
    PeriodComparison,
    RecurringIssue,
    TopIssues,
)
from downtime.schemas.production_stops import ProductionStopPage
from downtime.services import stop_queries
from downtime.services.stop_queries import StopFilters

router = APIRouter()


def stop_filters(
    year: int | None = Query(None, ge=1900, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    week: int | None = Query(None, ge=0, le=53),
    day: int | None = Query(None, ge=1, le=31),
    from_date: date | None = None,
    to_date: date | None = None,
    machine: str | None = None,
    machine_group: str | None = None,
    code1: str | None = None,
    code2: str | None = None,
    code3: str | None = None,
) -> StopFilters:
    return StopFilters(
        year=year,
        month=month,
        week=week,
        day=day,
        from_date=from_date,
        to_date=to_date,
        machine=machine,
        machine_group=machine_group,
        code1=code1,
        code2=code2,
        code3=code3,
    )


def date_filters(
    year: int | None = Query(None, ge=1900, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    week: int | None = Query(None, ge=0, le=53),
    day: int | None = Query(None, ge=1, le=31),
    from_date: date | None = None,
    to_date: date | None = None,
) -> StopFilters:
    return StopFilters(
        year=year, month=month, week=week, day=day, from_date=from_date, to_date=to_date
    )


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/statistics", response_model=DashboardStatistics)
def get_statistics(
    filters: StopFilters = Depends(stop_filters),
    db: Session = Depends(get_db),
) -> DashboardStatistics:
    return stop_queries.get_statistics(db, filters)


@router.get("/filters", response_model=DashboardFilters)
def get_filters(db: Session = Depends(get_db)) -> DashboardFilters:
    return stop_queries.get_filter_options(db)


@router.get("/detailed-data", response_model=ProductionStopPage)
def get_detailed_data(
    filters: StopFilters = Depends(stop_filters),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=500),
    sort_field: str = "from_date",
    sort_direction: str = "desc",
    db: Session = Depends(get_db),
) -> ProductionStopPage:
    try:
        return stop_queries.get_detailed_data(
            db,
            filters,
            page=page,
            per_page=per_page,
            sort_field=sort_field,
            sort_direction=sort_direction,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc


@router.get("/machine/{machine}", response_model=MachineStatistics)
def get_machine_statistics(
    machine: str,
    filters: StopFilters = Depends(date_filters),
    db: Session = Depends(get_db),
) -> MachineStatistics:
    return stop_queries.get_machine_statistics(db, machine, filters)


@router.get("/comparison", response_model=PeriodComparison)
def get_comparison(
    period1_start: date,
    period1_end: date,
    period2_start: date,
    period2_end: date,
    machine: str | None = None,
    machine_group: str | None = None,
    db: Session = Depends(get_db),
) -> PeriodComparison:
    try:
        return stop_queries.get_comparison(
            db,
            (period1_start, period1_end),
            (period2_start, period2_end),
            machine=machine,
            machine_group=machine_group,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc


@router.get("/top-issues", response_model=TopIssues)
def get_top_issues(
    filters: StopFilters = Depends(stop_filters),
    limit: int = Query(stop_queries.TOP_ISSUES_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
) -> TopIssues:
    return stop_queries.get_top_issues(db, filters, limit=limit)


@router.get("/recurring-issues", response_model=list[RecurringIssue])
def get_recurring_issues(
    filters: StopFilters = Depends(stop_filters),
    min_occurrences: int = Query(stop_queries.RECURRING_MIN_OCCURRENCES, ge=1),
    db: Session = Depends(get_db),
) -> list[RecurringIssue]:
    return stop_queries.get_recurring_issues(db, filters, min_occurrences=min_occurrences)


@router.get("/efficiency", response_model=EfficiencyMetrics)
def get_efficiency(
    filters: StopFilters = Depends(stop_filters),
    db: Session = Depends(get_db),
) -> EfficiencyMetrics:
    try:
        return stop_queries.get_efficiency_metrics(db, filters)
    except ValueError as exc:
        raise _bad_request(exc) from exc
