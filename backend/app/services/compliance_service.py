"""
Tableau de bord de conformité : vue hebdomadaire par auxiliaire, historique,
alertes critiques.

Une erreur d'accès aux données ne fait jamais tomber le tableau de bord : elle
est journalisée et l'on renvoie une vue vide.
"""
import logging
import uuid
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.engine.timeutils import week_bounds
from app.engine.weekly import (
    ComplianceAlert,
    WeekOverview,
    build_overview,
    employee_week_status,
)
from app.models.contract import Contract
from app.models.shift import Shift
from app.services.shift_service import INACTIVE_STATUSES, shift_to_candidate

logger = logging.getLogger(__name__)


class ComplianceOverviewService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _active_contracts(self, employer_id: uuid.UUID) -> list[Contract]:
        result = await self.db.execute(
            select(Contract).where(
                Contract.employer_id == employer_id,
                Contract.status == "active",
            ).order_by(Contract.employee_name)
        )
        return list(result.scalars().all())

    async def _shifts_between(self, contract_ids: list[uuid.UUID], start: date, end: date) -> list[Shift]:
        result = await self.db.execute(
            select(Shift).where(
                Shift.contract_id.in_(contract_ids),
                Shift.date >= start,
                Shift.date <= end,
                Shift.status.notin_(INACTIVE_STATUSES),
            ).order_by(Shift.date, Shift.start_time)
        )
        return list(result.scalars().all())

    async def overview(self, employer_id: uuid.UUID, reference_date: date | None = None) -> WeekOverview:
        reference_date = reference_date or date.today()
        week = week_bounds(reference_date)

        try:
            contracts = await self._active_contracts(employer_id)
            if not contracts:
                return WeekOverview.empty(week)
            # Semaine précédente + lendemain : repos à la frontière de semaine
            rows = await self._shifts_between(
                [c.id for c in contracts],
                week.start - timedelta(days=7),
                week.end + timedelta(days=1),
            )
        except SQLAlchemyError as e:
            logger.error("Chargement de la vue de conformité impossible : %s", e)
            return WeekOverview.empty(week)

        shifts = [shift_to_candidate(s) for s in rows]
        statuses = [
            employee_week_status(
                employee_id=c.employee_id,
                employee_name=c.employee_name,
                contract_id=c.id,
                contracted_hours=float(c.weekly_hours),
                shifts=shifts,
                reference_date=reference_date,
            )
            for c in contracts
        ]
        return build_overview(reference_date, statuses)

    async def history(
        self, employer_id: uuid.UUID, weeks_back: int = 4, today: date | None = None
    ) -> list[WeekOverview]:
        """Une vue par semaine, de la plus ancienne à la plus récente."""
        today = today or date.today()
        weeks = []
        for i in range(weeks_back):
            weeks.append(await self.overview(employer_id, today - timedelta(days=7 * i)))
        weeks.reverse()
        return weeks

    async def critical_alerts(
        self, employer_id: uuid.UUID, reference_date: date | None = None
    ) -> list[tuple[str, ComplianceAlert]]:
        overview = await self.overview(employer_id, reference_date)
        return [
            (emp.employee_name, alert)
            for emp in overview.employees
            for alert in emp.alerts
            if alert.severity == "critical"
        ]
