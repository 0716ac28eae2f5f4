from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from downtime.db.base import Base


class ProductionStop(Base):
    __tablename__ = "production_stops"

    id: Mapped[int] = mapped_column(primary_key=True)
    from_date: Mapped[date] = mapped_column(Date, index=True)
    to_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Maintenance object / workstation keys from the plant ERP export.
    mo_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ws_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stop_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    wo_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    wo_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Intervention type, cause and component.
    code1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code3: Mapped[str | None] = mapped_column(String(255), nullable=True)
    machine_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    machine_group: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    stop_duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
