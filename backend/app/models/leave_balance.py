import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class LeaveBalance(Base):
    """Solde de congés payés d'un(e) auxiliaire pour une année de congés (juin-mai)."""
    __tablename__ = "leave_balances"
    __table_args__ = (UniqueConstraint("employee_id", "leave_year"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    leave_year: Mapped[str] = mapped_column(String(9), nullable=False)  # "2025-2026"

    acquired_days: Mapped[float] = mapped_column(Numeric(5, 1), default=0)
    taken_days: Mapped[float] = mapped_column(Numeric(5, 1), default=0)
    adjustment_days: Mapped[float] = mapped_column(Numeric(5, 1), default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def remaining_days(self) -> float:
        return float(self.acquired_days) + float(self.adjustment_days) - float(self.taken_days)
