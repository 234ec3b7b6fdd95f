"""
AbsenceService : demandes d'absence, cycle de vie et solde de congés payés.

Seule l'approbation d'un congé payé consomme le solde ; un refus n'y touche pas.
"""
import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.engine import leave
from app.engine.types import AbsenceRecord, LeaveBalance as BalanceData
from app.models.absence import Absence
from app.models.contract import Contract
from app.models.leave_balance import LeaveBalance
from app.schemas.absence import AbsenceCreate
from app.services.errors import AbsenceRejected, NotFoundError

logger = logging.getLogger(__name__)


def balance_data(row: LeaveBalance | None) -> BalanceData | None:
    if row is None:
        return None
    return BalanceData(
        acquired_days=float(row.acquired_days or 0),
        taken_days=float(row.taken_days or 0),
        adjustment_days=float(row.adjustment_days or 0),
    )


class AbsenceService:

    def __init__(self, db: AsyncSession, today: date | None = None):
        self.db = db
        self.today = today or date.today()

    async def get(self, absence_id: uuid.UUID) -> Absence:
        result = await self.db.execute(select(Absence).where(Absence.id == absence_id))
        absence = result.scalar_one_or_none()
        if absence is None:
            raise NotFoundError(f"Absence {absence_id} introuvable")
        return absence

    async def _active_contract(self, employee_id: uuid.UUID) -> Contract:
        result = await self.db.execute(
            select(Contract).where(
                Contract.employee_id == employee_id,
                Contract.status == "active",
            ).order_by(Contract.start_date)
        )
        contract = result.scalars().first()
        if contract is None:
            raise NotFoundError(f"Aucun contrat actif pour l'auxiliaire {employee_id}")
        return contract

    async def get_balance(self, employee_id: uuid.UUID, leave_year: str | None = None) -> LeaveBalance | None:
        year = leave_year or leave.leave_year(self.today)
        result = await self.db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_year == year,
            )
        )
        return result.scalar_one_or_none()

    async def init_balance(
        self,
        employee_id: uuid.UUID,
        months_worked: float | None = None,
        leave_year: str | None = None,
        adjustment_days: float = 0,
    ) -> LeaveBalance:
        """
        Crée (ou recalcule l'acquis) du solde de l'année ; les jours pris sont conservés.
        Sans `months_worked`, les mois sont déduits du début du contrat actif.
        """
        year = leave_year or leave.leave_year(self.today)
        if months_worked is None:
            contract = await self._active_contract(employee_id)
            months_worked = leave.default_months_worked(contract.start_date, self.today, year)
            logger.info("Solde %s initialisé sur %s mois travaillés", year, months_worked)
        row = await self.get_balance(employee_id, year)
        if row is None:
            row = LeaveBalance(employee_id=employee_id, leave_year=year, taken_days=0)
            self.db.add(row)
        row.acquired_days = leave.acquired_from_months(months_worked)
        row.adjustment_days = adjustment_days
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def _existing(self, employee_id: uuid.UUID) -> list[AbsenceRecord]:
        result = await self.db.execute(
            select(Absence).where(
                Absence.employee_id == employee_id,
                Absence.status.in_(["pending", "approved"]),
            )
        )
        return [
            AbsenceRecord(
                id=a.id,
                employee_id=a.employee_id,
                absence_type=a.absence_type,
                start_date=a.start_date,
                end_date=a.end_date,
                status=a.status,
            )
            for a in result.scalars().all()
        ]

    async def request(self, data: AbsenceCreate) -> tuple[Absence, list[str]]:
        req = leave.LeaveRequest(
            employee_id=data.employee_id,
            absence_type=data.absence_type,
            start_date=data.start_date,
            end_date=data.end_date,
            family_event_type=data.family_event_type,
        )
        balance = await self.get_balance(data.employee_id, leave.leave_year(data.start_date))
        decision = leave.request_leave(
            req,
            await self._existing(data.employee_id),
            balance_data(balance),
            today=self.today,
            exclude_holidays=settings.LEAVE_EXCLUDE_PUBLIC_HOLIDAYS,
        )
        if not decision.accepted:
            logger.info("Demande d'absence refusée pour %s : %s", data.employee_id, decision.errors)
            raise AbsenceRejected(decision.errors)

        absence = Absence(
            employee_id=data.employee_id,
            absence_type=data.absence_type,
            family_event_type=data.family_event_type,
            start_date=data.start_date,
            end_date=data.end_date,
            business_days=decision.days_requested,
            status="pending",
            reason=data.reason,
        )
        self.db.add(absence)
        await self.db.commit()
        await self.db.refresh(absence)
        return absence, decision.warnings

    async def approve(self, absence_id: uuid.UUID) -> Absence:
        absence = await self.get(absence_id)
        new_status = leave.transition_absence(absence.status, "approved")

        if absence.absence_type in leave.BALANCE_CONSUMING_TYPES:
            row = await self.get_balance(absence.employee_id, leave.leave_year(absence.start_date))
            req = leave.LeaveRequest(
                employee_id=absence.employee_id,
                absence_type=absence.absence_type,
                start_date=absence.start_date,
                end_date=absence.end_date,
            )
            error = leave.validate_request(
                req, balance_data(row), exclude_holidays=settings.LEAVE_EXCLUDE_PUBLIC_HOLIDAYS
            )
            if error:
                raise AbsenceRejected([error])
            updated = leave.take_days(balance_data(row), float(absence.business_days))
            row.taken_days = updated.taken_days

        absence.status = new_status
        absence.decided_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(absence)
        return absence

    async def reject(self, absence_id: uuid.UUID, reason: str | None = None) -> Absence:
        absence = await self.get(absence_id)
        absence.status = leave.transition_absence(absence.status, "rejected")
        absence.decided_at = datetime.now(timezone.utc)
        if reason:
            absence.reason = reason
        await self.db.commit()
        await self.db.refresh(absence)
        return absence
