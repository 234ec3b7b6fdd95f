"""
ShiftService : charge le contexte d'une intervention (contrat, historique,
absences approuvées), la fait évaluer par le moteur et enregistre le résultat.
"""
import logging
import uuid
from datetime import date, timedelta

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.engine.compliance import (
    AlternativeSlot,
    QuickValidation,
    ShiftEvaluation,
    evaluate_shift,
    quick_validate,
    suggest_alternatives,
)
from app.engine.guard import default_guard_segments
from app.engine.timeutils import format_hhmm, parse_hhmm, week_bounds
from app.engine.types import (
    AbsenceRecord,
    ContractTerms,
    GuardSegment,
    SegmentKind,
    ShiftCandidate,
    ShiftKind,
)
from app.models.absence import Absence
from app.models.contract import Contract
from app.models.shift import Shift
from app.schemas.shift import ShiftCandidateIn, ShiftCreate
from app.services.errors import NotFoundError, ShiftRejected

logger = logging.getLogger(__name__)

# Marge autour de la semaine : repos hebdomadaire, nuits consécutives, amplitude de garde
CONTEXT_MARGIN_DAYS = 7
INACTIVE_STATUSES = ("cancelled",)


# ── Conversions modèle <-> moteur ─────────────────────────────────────────────

def segments_from_json(raw: list[dict] | None) -> list[GuardSegment] | None:
    if not raw:
        return None
    return [
        GuardSegment(
            start_time=parse_hhmm(item["start_time"]),
            kind=SegmentKind(item.get("kind", "effective")),
            break_minutes=int(item.get("break_minutes") or 0),
        )
        for item in raw
    ]


def segments_to_json(segments: list[GuardSegment] | None) -> list[dict] | None:
    if not segments:
        return None
    return [
        {
            "start_time": format_hhmm(seg.start_time),
            "kind": SegmentKind(seg.kind).value,
            "break_minutes": seg.break_minutes,
        }
        for seg in segments
    ]


def shift_to_candidate(shift: Shift) -> ShiftCandidate:
    return ShiftCandidate(
        id=shift.id,
        contract_id=shift.contract_id,
        employee_id=shift.employee_id,
        date=shift.date,
        start_time=shift.start_time,
        end_time=shift.end_time,
        break_minutes=shift.break_minutes or 0,
        shift_kind=ShiftKind(shift.shift_kind or "effective"),
        night_interventions_count=shift.night_interventions_count or 0,
        has_night_action=bool(shift.has_night_action),
        guard_segments=segments_from_json(shift.guard_segments),
    )


def absence_to_record(absence: Absence) -> AbsenceRecord:
    return AbsenceRecord(
        id=absence.id,
        employee_id=absence.employee_id,
        absence_type=absence.absence_type,
        start_date=absence.start_date,
        end_date=absence.end_date,
        status=absence.status,
    )


class ShiftService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_contract(self, contract_id: uuid.UUID) -> Contract:
        result = await self.db.execute(select(Contract).where(Contract.id == contract_id))
        contract = result.scalar_one_or_none()
        if contract is None:
            raise NotFoundError(f"Contrat {contract_id} introuvable")
        return contract

    async def load_existing(self, candidate: ShiftCandidate) -> list[ShiftCandidate]:
        """Interventions du même contrat ou du même auxiliaire autour de la semaine."""
        week = week_bounds(candidate.date)
        result = await self.db.execute(
            select(Shift).where(
                or_(
                    Shift.contract_id == candidate.contract_id,
                    Shift.employee_id == candidate.employee_id,
                ),
                Shift.date >= week.start - timedelta(days=CONTEXT_MARGIN_DAYS),
                Shift.date <= week.end + timedelta(days=CONTEXT_MARGIN_DAYS),
                Shift.status.notin_(INACTIVE_STATUSES),
            ).order_by(Shift.date, Shift.start_time)
        )
        return [shift_to_candidate(s) for s in result.scalars().all()]

    async def load_absences(self, employee_id: uuid.UUID, day: date) -> list[AbsenceRecord]:
        result = await self.db.execute(
            select(Absence).where(
                Absence.employee_id == employee_id,
                Absence.status == "approved",
                Absence.start_date <= day,
                Absence.end_date >= day,
            )
        )
        return [absence_to_record(a) for a in result.scalars().all()]

    async def build_candidate(self, data: ShiftCandidateIn) -> tuple[ShiftCandidate, Contract]:
        contract = await self.get_contract(data.contract_id)
        segments = None
        if data.shift_kind == ShiftKind.GUARD_24H.value:
            if data.guard_segments:
                segments = [
                    GuardSegment(start_time=s.start_time, kind=SegmentKind(s.kind), break_minutes=s.break_minutes)
                    for s in data.guard_segments
                ]
            else:
                segments = default_guard_segments(data.start_time)

        candidate = ShiftCandidate(
            id=data.id,
            contract_id=contract.id,
            employee_id=data.employee_id or contract.employee_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            break_minutes=data.break_minutes,
            shift_kind=ShiftKind(data.shift_kind),
            night_interventions_count=data.night_interventions_count,
            has_night_action=data.has_night_action,
            guard_segments=segments,
        )
        return candidate, contract

    def _terms(self, contract: Contract) -> ContractTerms:
        return ContractTerms(
            weekly_hours=float(contract.weekly_hours),
            hourly_rate=float(contract.hourly_rate),
        )

    async def evaluate(
        self, data: ShiftCandidateIn
    ) -> tuple[ShiftCandidate, ShiftEvaluation, list[AlternativeSlot]]:
        candidate, contract = await self.build_candidate(data)
        existing = await self.load_existing(candidate)
        absences = await self.load_absences(candidate.employee_id, candidate.date)

        evaluation = evaluate_shift(
            candidate,
            existing,
            absences,
            self._terms(contract),
            daily_warning_margin=settings.DAILY_HOURS_WARNING_MARGIN,
            habitual_holiday_work=contract.habitual_holiday_work or settings.HOLIDAY_HABITUAL_WORK,
        )
        alternatives = suggest_alternatives(candidate, existing, evaluation.compliance)
        return candidate, evaluation, alternatives

    async def quick_validate(self, data: ShiftCandidateIn) -> QuickValidation:
        candidate, _ = await self.build_candidate(data)
        existing = await self.load_existing(candidate)
        return quick_validate(candidate, existing)

    async def save(self, data: ShiftCreate) -> Shift:
        """
        Évalue puis enregistre. Refuse (ShiftRejected) sur erreur bloquante,
        saisie incohérente ou avertissement non acquitté.
        """
        candidate, evaluation, alternatives = await self.evaluate(data)
        if not evaluation.can_submit(data.acknowledge_warnings):
            logger.info(
                "Intervention du %s refusée : %s",
                candidate.date, [f.code for f in evaluation.compliance.errors],
            )
            raise ShiftRejected(evaluation, alternatives)

        if data.id is not None:
            result = await self.db.execute(select(Shift).where(Shift.id == data.id))
            shift = result.scalar_one_or_none()
            if shift is None:
                raise NotFoundError(f"Intervention {data.id} introuvable")
        else:
            shift = Shift()
            self.db.add(shift)

        shift.contract_id = candidate.contract_id
        shift.employee_id = candidate.employee_id
        shift.date = candidate.date
        shift.start_time = candidate.start_time
        shift.end_time = candidate.end_time
        shift.break_minutes = candidate.break_minutes
        shift.shift_kind = candidate.shift_kind.value
        shift.night_interventions_count = candidate.night_interventions_count
        shift.has_night_action = candidate.has_night_action
        shift.guard_segments = segments_to_json(candidate.guard_segments)
        shift.notes = data.notes
        shift.effective_hours = evaluation.effective_hours or 0
        shift.is_requalified = evaluation.is_requalified
        shift.computed_pay = evaluation.computed_pay.as_dict() if evaluation.computed_pay else None

        await self.db.commit()
        await self.db.refresh(shift)
        return shift

    async def list_for_contract(
        self, contract_id: uuid.UUID, from_date: date | None = None, to_date: date | None = None
    ) -> list[Shift]:
        query = select(Shift).where(Shift.contract_id == contract_id)
        if from_date:
            query = query.where(Shift.date >= from_date)
        if to_date:
            query = query.where(Shift.date <= to_date)
        result = await self.db.execute(query.order_by(Shift.date, Shift.start_time))
        return list(result.scalars().all())
