import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, Boolean, Numeric, Date
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Contract(Base):
    """Contrat de travail entre un particulier employeur et un(e) auxiliaire."""
    __tablename__ = "contracts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    employer_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)

    weekly_hours: Mapped[float] = mapped_column(Numeric(5, 2), nullable=False)
    hourly_rate: Mapped[float] = mapped_column(Numeric(8, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active")  # active | terminated
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Férié travaillé habituellement (+60%) plutôt qu'exceptionnellement (+100%)
    habitual_holiday_work: Mapped[bool] = mapped_column(Boolean, default=False)

    pch_type: Mapped[str | None] = mapped_column(String(40), nullable=True)
    pch_monthly_hours: Mapped[float | None] = mapped_column(Numeric(6, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    shifts: Mapped[list["Shift"]] = relationship(back_populates="contract")
