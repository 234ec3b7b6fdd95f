import uuid
from datetime import date, datetime, time, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Numeric, Integer, Time, Date, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    contract_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, default=0)

    shift_kind: Mapped[str] = mapped_column(
        String(30), default="effective"
    )  # effective | presence_day | presence_night | guard_24h
    night_interventions_count: Mapped[int] = mapped_column(Integer, default=0)
    has_night_action: Mapped[bool] = mapped_column(Boolean, default=False)
    # [{"start_time": "09:00", "kind": "effective", "break_minutes": 20}, ...]
    guard_segments: Mapped[list | None] = mapped_column(JSON, nullable=True)

    status: Mapped[str] = mapped_column(String(30), default="planned")  # planned | completed | cancelled
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Valeurs dérivées, calculées à l'enregistrement
    effective_hours: Mapped[float] = mapped_column(Numeric(5, 2), default=0)
    is_requalified: Mapped[bool] = mapped_column(Boolean, default=False)
    computed_pay: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    contract: Mapped["Contract"] = relationship(back_populates="shifts")
