from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date

from dateutil.relativedelta import relativedelta
from sqlalchemy import Select, delete, extract, func, select
from sqlalchemy.orm import Session

from downtime.models.production_stop import ProductionStop
from downtime.schemas.dashboard import (
    DashboardFilters,
    DashboardStatistics,
    DateRange,
    Difference,
    DurationTotal,
    EfficiencyMetrics,
    MachineEfficiency,
    MachineStatistics,
    MonthlyTotal,
    OverallEfficiency,
    PeriodComparison,
    PeriodData,
    PeriodDifferences,
    PeriodSummary,
    RecurringIssue,
    TopIssue,
    TopIssues,
    TrendPoint,
)
from downtime.schemas.imports import ImportHistoryEntry
from downtime.schemas.production_stops import ProductionStopPage, ProductionStopRead

TOP_ISSUES_LIMIT = 10
MACHINE_BREAKDOWN_LIMIT = 5
RECURRING_MIN_OCCURRENCES = 3
HOURS_PER_DAY = 24

SORTABLE_FIELDS = {
    "from_date": ProductionStop.from_date,
    "to_date": ProductionStop.to_date,
    "machine_name": ProductionStop.machine_name,
    "machine_group": ProductionStop.machine_group,
    "code1": ProductionStop.code1,
    "code2": ProductionStop.code2,
    "code3": ProductionStop.code3,
    "stop_duration": ProductionStop.stop_duration,
    "created_at": ProductionStop.created_at,
}

ISSUE_COLUMNS = (
    ProductionStop.machine_name,
    ProductionStop.code1,
    ProductionStop.code2,
    ProductionStop.code3,
)


@dataclass(frozen=True)
class StopFilters:
    year: int | None = None
    month: int | None = None
    week: int | None = None
    day: int | None = None
    from_date: date | None = None
    to_date: date | None = None
    machine: str | None = None
    machine_group: str | None = None
    code1: str | None = None
    code2: str | None = None
    code3: str | None = None

    def dates_only(self) -> StopFilters:
        return StopFilters(
            year=self.year,
            month=self.month,
            week=self.week,
            day=self.day,
            from_date=self.from_date,
            to_date=self.to_date,
        )

    def without_codes(self) -> StopFilters:
        return replace(self, code1=None, code2=None, code3=None)


def apply_filters(stmt: Select, filters: StopFilters) -> Select:
    # Week numbers follow the database's own week-of-year extraction.
    if filters.year is not None:
        stmt = stmt.where(extract("year", ProductionStop.from_date) == filters.year)
    if filters.month is not None:
        stmt = stmt.where(extract("month", ProductionStop.from_date) == filters.month)
    if filters.week is not None:
        stmt = stmt.where(extract("week", ProductionStop.from_date) == filters.week)
    if filters.day is not None:
        stmt = stmt.where(extract("day", ProductionStop.from_date) == filters.day)
    if filters.from_date is not None:
        stmt = stmt.where(ProductionStop.from_date >= filters.from_date)
    if filters.to_date is not None:
        stmt = stmt.where(ProductionStop.from_date <= filters.to_date)
    if filters.machine:
        stmt = stmt.where(ProductionStop.machine_name == filters.machine)
    if filters.machine_group:
        stmt = stmt.where(ProductionStop.machine_group == filters.machine_group)
    if filters.code1:
        stmt = stmt.where(ProductionStop.code1 == filters.code1)
    if filters.code2:
        stmt = stmt.where(ProductionStop.code2 == filters.code2)
    if filters.code3:
        stmt = stmt.where(ProductionStop.code3 == filters.code3)
    return stmt


def _total_duration():
    return func.coalesce(func.sum(ProductionStop.stop_duration), 0.0)


def _totals_by(
    db: Session,
    column,
    filters: StopFilters,
    *,
    skip_null: bool = False,
    order: str = "duration",
    limit: int | None = None,
) -> list[DurationTotal]:
    total = _total_duration().label("total_duration")
    count = func.count().label("count")
    stmt = select(column, total, count)
    stmt = apply_filters(stmt, filters)
    if skip_null:
        stmt = stmt.where(column.is_not(None))
    stmt = stmt.group_by(column)
    if order == "count":
        stmt = stmt.order_by(count.desc(), total.desc())
    else:
        stmt = stmt.order_by(total.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return [
        DurationTotal(key=key, total_duration=float(duration), count=count)
        for key, duration, count in db.execute(stmt).all()
    ]


def _trend(db: Session, filters: StopFilters) -> list[TrendPoint]:
    stmt = apply_filters(
        select(ProductionStop.from_date, _total_duration()), filters
    ).group_by(ProductionStop.from_date).order_by(ProductionStop.from_date)
    return [
        TrendPoint(day=day, total_duration=float(duration))
        for day, duration in db.execute(stmt).all()
    ]


def _totals(db: Session, filters: StopFilters) -> tuple[float, int]:
    total, count = db.execute(
        apply_filters(select(_total_duration(), func.count()).select_from(ProductionStop), filters)
    ).one()
    return float(total), count


def _top_issues(db: Session, filters: StopFilters, *, limit: int, order: str = "duration") -> list[TopIssue]:
    total = _total_duration().label("total_duration")
    count = func.count().label("count")
    stmt = apply_filters(
        select(*ISSUE_COLUMNS, total, count, func.avg(ProductionStop.stop_duration)),
        filters,
    ).group_by(*ISSUE_COLUMNS)
    if order == "count":
        stmt = stmt.order_by(count.desc(), total.desc())
    else:
        stmt = stmt.order_by(total.desc(), count.desc())
    return [
        TopIssue(
            machine_name=machine_name,
            code1=code1,
            code2=code2,
            code3=code3,
            total_duration=float(duration),
            count=occurrences,
            avg_duration=float(average) if average is not None else None,
        )
        for machine_name, code1, code2, code3, duration, occurrences, average in db.execute(
            stmt.limit(limit)
        ).all()
    ]


def get_statistics(db: Session, filters: StopFilters) -> DashboardStatistics:
    total_stop_time, _ = _totals(db, filters)

    year_col = extract("year", ProductionStop.from_date).label("year")
    month_col = extract("month", ProductionStop.from_date).label("month")
    monthly_stmt = (
        apply_filters(select(year_col, month_col, _total_duration(), func.count()), filters)
        .group_by(year_col, month_col)
        .order_by(year_col, month_col)
    )
    monthly = [
        MonthlyTotal(year=int(year), month=int(month), total_duration=float(duration), count=count)
        for year, month, duration, count in db.execute(monthly_stmt).all()
    ]

    return DashboardStatistics(
        total_stop_time=total_stop_time,
        by_machine=_totals_by(db, ProductionStop.machine_name, filters),
        by_code1=_totals_by(db, ProductionStop.code1, filters),
        by_code2=_totals_by(db, ProductionStop.code2, filters),
        by_code3=_totals_by(db, ProductionStop.code3, filters),
        by_machine_group=_totals_by(db, ProductionStop.machine_group, filters, skip_null=True),
        trend=_trend(db, filters),
        top_issues=_top_issues(db, filters, limit=TOP_ISSUES_LIMIT),
        monthly_comparison=monthly,
    )


def get_machine_statistics(db: Session, machine: str, filters: StopFilters) -> MachineStatistics:
    """Breakdown for one machine. Only the date filters in ``filters`` apply."""
    scoped = replace(filters.dates_only(), machine=machine)
    total_stop_time, stops_count = _totals(db, scoped)
    return MachineStatistics(
        machine=machine,
        total_stop_time=total_stop_time,
        stops_count=stops_count,
        avg_duration=total_stop_time / stops_count if stops_count else 0.0,
        common_causes=_totals_by(
            db, ProductionStop.code2, scoped, order="count", limit=MACHINE_BREAKDOWN_LIMIT
        ),
        time_consuming_components=_totals_by(
            db, ProductionStop.code3, scoped, limit=MACHINE_BREAKDOWN_LIMIT
        ),
        trend=_trend(db, scoped),
    )


def _difference(first: float, second: float) -> Difference:
    return Difference(
        absolute=second - first,
        percentage=(second - first) / first * 100 if first > 0 else None,
    )


def _period_data(db: Session, filters: StopFilters) -> PeriodData:
    total_stop_time, stops_count = _totals(db, filters)
    return PeriodData(
        total_stop_time=total_stop_time,
        stops_count=stops_count,
        by_machine=_totals_by(db, ProductionStop.machine_name, filters),
        by_code1=_totals_by(db, ProductionStop.code1, filters),
        by_code2=_totals_by(db, ProductionStop.code2, filters),
    )


def get_comparison(
    db: Session,
    period1: tuple[date, date],
    period2: tuple[date, date],
    *,
    machine: str | None = None,
    machine_group: str | None = None,
) -> PeriodComparison:
    summaries = []
    for start, end in (period1, period2):
        if end < start:
            raise ValueError(f"Period ending {end} starts after it ends")
        data = _period_data(
            db,
            StopFilters(from_date=start, to_date=end, machine=machine, machine_group=machine_group),
        )
        summaries.append(PeriodSummary(start=start, end=end, data=data))
    first, second = summaries[0].data, summaries[1].data
    return PeriodComparison(
        period1=summaries[0],
        period2=summaries[1],
        differences=PeriodDifferences(
            total_stop_time=_difference(first.total_stop_time, second.total_stop_time),
            stops_count=_difference(first.stops_count, second.stops_count),
        ),
    )


def get_top_issues(db: Session, filters: StopFilters, *, limit: int = TOP_ISSUES_LIMIT) -> TopIssues:
    filters = filters.without_codes()
    return TopIssues(
        top_by_duration=_top_issues(db, filters, limit=limit),
        top_by_frequency=_top_issues(db, filters, limit=limit, order="count"),
    )


def get_recurring_issues(
    db: Session,
    filters: StopFilters,
    *,
    min_occurrences: int = RECURRING_MIN_OCCURRENCES,
) -> list[RecurringIssue]:
    """Machine/code combinations seen at least ``min_occurrences`` times, most frequent first."""
    occurrences = func.count().label("occurrences")
    stmt = (
        apply_filters(
            select(
                *ISSUE_COLUMNS,
                occurrences,
                _total_duration(),
                func.avg(ProductionStop.stop_duration),
                func.min(ProductionStop.from_date),
                func.max(ProductionStop.from_date),
            ),
            filters.without_codes(),
        )
        .group_by(*ISSUE_COLUMNS)
        .having(func.count() >= min_occurrences)
        .order_by(occurrences.desc())
    )
    return [
        RecurringIssue(
            machine_name=machine_name,
            code1=code1,
            code2=code2,
            code3=code3,
            occurrences=count,
            total_duration=float(duration),
            avg_duration=float(average) if average is not None else None,
            first_occurrence=first,
            last_occurrence=last,
        )
        for machine_name, code1, code2, code3, count, duration, average, first, last in db.execute(
            stmt
        ).all()
    ]


def _efficiency(downtime: float, stops_count: int, available: float) -> dict:
    uptime = available - downtime
    return {
        "downtime": downtime,
        "uptime": uptime,
        "uptime_percentage": uptime / available * 100,
        "stops_count": stops_count,
        "mtbf": uptime / stops_count if stops_count else None,
        "mttr": downtime / stops_count if stops_count else None,
    }


def get_efficiency_metrics(
    db: Session, filters: StopFilters, *, today: date | None = None
) -> EfficiencyMetrics:
    """Uptime, MTBF and MTTR against round-the-clock availability.

    The period defaults to the month ending today. Stops outside the period
    are not counted.
    """
    today = today or date.today()
    to_date = filters.to_date or today
    from_date = filters.from_date or to_date - relativedelta(months=1)
    if to_date < from_date:
        raise ValueError("to_date must be on or after from_date")
    available = float(((to_date - from_date).days + 1) * HOURS_PER_DAY)
    scoped = replace(filters.without_codes(), from_date=from_date, to_date=to_date)

    downtime, stops_count = _totals(db, scoped)
    by_machine = [
        MachineEfficiency(machine_name=item.key, **_efficiency(item.total_duration, item.count, available))
        for item in _totals_by(db, ProductionStop.machine_name, scoped)
    ]
    return EfficiencyMetrics(
        from_date=from_date,
        to_date=to_date,
        overall=OverallEfficiency(
            total_available_time=available, **_efficiency(downtime, stops_count, available)
        ),
        by_machine=by_machine,
    )


def _distinct_values(db: Session, column) -> list[str]:
    stmt = select(column).where(column.is_not(None)).distinct().order_by(column)
    return list(db.execute(stmt).scalars())


def get_filter_options(db: Session) -> DashboardFilters:
    year_col = extract("year", ProductionStop.from_date)
    years = [int(year) for year in db.execute(select(year_col).distinct().order_by(year_col)).scalars()]
    min_date, max_date = db.execute(
        select(func.min(ProductionStop.from_date), func.max(ProductionStop.to_date))
    ).one()
    return DashboardFilters(
        years=years,
        machines=_distinct_values(db, ProductionStop.machine_name),
        machine_groups=_distinct_values(db, ProductionStop.machine_group),
        code1_values=_distinct_values(db, ProductionStop.code1),
        code2_values=_distinct_values(db, ProductionStop.code2),
        code3_values=_distinct_values(db, ProductionStop.code3),
        date_range=DateRange(min=min_date, max=max_date),
    )


def get_detailed_data(
    db: Session,
    filters: StopFilters,
    *,
    page: int = 1,
    per_page: int = 10,
    sort_field: str = "from_date",
    sort_direction: str = "desc",
) -> ProductionStopPage:
    if sort_field not in SORTABLE_FIELDS:
        raise ValueError(f"Unsupported sort field: {sort_field}")
    if sort_direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction: {sort_direction}")
    column = SORTABLE_FIELDS[sort_field]
    order = column.asc() if sort_direction == "asc" else column.desc()

    total = db.execute(
        apply_filters(select(func.count()).select_from(ProductionStop), filters)
    ).scalar_one()
    stmt = (
        apply_filters(select(ProductionStop), filters)
        .order_by(order, ProductionStop.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    rows = list(db.execute(stmt).scalars())
    return ProductionStopPage(
        data=[ProductionStopRead.model_validate(row) for row in rows],
        total=total,
        page=page,
        per_page=per_page,
        last_page=max(1, math.ceil(total / per_page)),
    )


def get_import_history(db: Session) -> list[ImportHistoryEntry]:
    import_date = func.date(ProductionStop.created_at).label("import_date")
    stmt = (
        select(
            import_date,
            func.count().label("record_count"),
            func.min(ProductionStop.from_date),
            func.max(ProductionStop.to_date),
        )
        .group_by(import_date)
        .order_by(import_date.desc())
    )
    return [
        ImportHistoryEntry(
            import_date=day,
            record_count=count,
            start_date=start_date,
            end_date=end_date,
        )
        for day, count, start_date, end_date in db.execute(stmt).all()
    ]


def delete_records_between(db: Session, from_date: date, to_date: date) -> int:
    if to_date < from_date:
        raise ValueError("to_date must be on or after from_date")
    result = db.execute(
        delete(ProductionStop).where(ProductionStop.from_date.between(from_date, to_date))
    )
    db.commit()
    return result.rowcount or 0
