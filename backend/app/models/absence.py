import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, Numeric, Text, Date
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Absence(Base):
    __tablename__ = "absences"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    absence_type: Mapped[str] = mapped_column(
        String(30), nullable=False
    )  # vacation | sick | family_event | training | unavailable | emergency
    family_event_type: Mapped[str | None] = mapped_column(String(40), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    business_days: Mapped[float] = mapped_column(Numeric(5, 1), default=0)

    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | approved | rejected
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
