from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class DurationTotal(BaseModel):
    key: str | None = None
    total_duration: float = 0.0
    count: int = Field(default=0, ge=0)


class TrendPoint(BaseModel):
    day: date
    total_duration: float = 0.0


class TopIssue(BaseModel):
    machine_name: str | None = None
    code1: str | None = None
    code2: str | None = None
    code3: str | None = None
    total_duration: float = 0.0
    count: int = Field(default=0, ge=0)
    avg_duration: float | None = None


class MonthlyTotal(BaseModel):
    year: int
    month: int
    total_duration: float = 0.0
    count: int = Field(default=0, ge=0)


class DashboardStatistics(BaseModel):
    total_stop_time: float = 0.0
    by_machine: list[DurationTotal] = Field(default_factory=list)
    by_code1: list[DurationTotal] = Field(default_factory=list)
    by_code2: list[DurationTotal] = Field(default_factory=list)
    by_code3: list[DurationTotal] = Field(default_factory=list)
    by_machine_group: list[DurationTotal] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)
    top_issues: list[TopIssue] = Field(default_factory=list)
    monthly_comparison: list[MonthlyTotal] = Field(default_factory=list)


class DateRange(BaseModel):
    min: date | None = None
    max: date | None = None


class DashboardFilters(BaseModel):
    years: list[int] = Field(default_factory=list)
    machines: list[str] = Field(default_factory=list)
    machine_groups: list[str] = Field(default_factory=list)
    code1_values: list[str] = Field(default_factory=list)
    code2_values: list[str] = Field(default_factory=list)
    code3_values: list[str] = Field(default_factory=list)
    date_range: DateRange = Field(default_factory=DateRange)


class MachineStatistics(BaseModel):
    machine: str
    total_stop_time: float = 0.0
    stops_count: int = Field(default=0, ge=0)
    avg_duration: float = 0.0
    common_causes: list[DurationTotal] = Field(default_factory=list)
    time_consuming_components: list[DurationTotal] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)


class PeriodData(BaseModel):
    total_stop_time: float = 0.0
    stops_count: int = Field(default=0, ge=0)
    by_machine: list[DurationTotal] = Field(default_factory=list)
    by_code1: list[DurationTotal] = Field(default_factory=list)
    by_code2: list[DurationTotal] = Field(default_factory=list)


class PeriodSummary(BaseModel):
    start: date
    end: date
    data: PeriodData


class Difference(BaseModel):
    absolute: float
    percentage: float | None = None


class PeriodDifferences(BaseModel):
    total_stop_time: Difference
    stops_count: Difference


class PeriodComparison(BaseModel):
    period1: PeriodSummary
    period2: PeriodSummary
    differences: PeriodDifferences


class TopIssues(BaseModel):
    top_by_duration: list[TopIssue] = Field(default_factory=list)
    top_by_frequency: list[TopIssue] = Field(default_factory=list)


class RecurringIssue(BaseModel):
    machine_name: str | None = None
    code1: str | None = None
    code2: str | None = None
    code3: str | None = None
    occurrences: int = Field(ge=0)
    total_duration: float = 0.0
    avg_duration: float | None = None
    first_occurrence: date
    last_occurrence: date


class EfficiencyFigures(BaseModel):
    downtime: float = 0.0
    uptime: float = 0.0
    uptime_percentage: float = 0.0
    stops_count: int = Field(default=0, ge=0)
    mtbf: float | None = None
    mttr: float | None = None


class MachineEfficiency(EfficiencyFigures):
    machine_name: str | None = None


class OverallEfficiency(EfficiencyFigures):
    total_available_time: float


class EfficiencyMetrics(BaseModel):
    from_date: date
    to_date: date
    overall: OverallEfficiency
    by_machine: list[MachineEfficiency] = Field(default_factory=list)
