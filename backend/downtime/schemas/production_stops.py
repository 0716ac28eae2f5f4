from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class ProductionStopRead(BaseModel):
    id: int
    from_date: date
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
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductionStopPage(BaseModel):
    data: list[ProductionStopRead]
    total: int
    page: int
    per_page: int
    last_page: int
