"""
Interventions : évaluation à la demande, pré-contrôle rapide, enregistrement.
"""
import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, status

from app.api.deps import DB
from app.engine.compliance import ShiftEvaluation
from app.engine.errors import EngineError
from app.schemas.compliance import (
    AlternativeSlotOut,
    ComplianceResultOut,
    ComputedPayOut,
    QuickValidationOut,
    ShiftEvaluationOut,
)
from app.schemas.shift import ShiftCandidateIn, ShiftCreate, ShiftOut
from app.services.errors import NotFoundError, ShiftRejected
from app.services.shift_service import ShiftService

router = APIRouter(prefix="/shifts", tags=["shifts"])


def evaluation_out(
    evaluation: ShiftEvaluation, alternatives=(), acknowledge_warnings: bool = False
) -> ShiftEvaluationOut:
    return ShiftEvaluationOut(
        compliance=ComplianceResultOut.model_validate(evaluation.compliance),
        validation_error=evaluation.validation_error,
        effective_hours=evaluation.effective_hours,
        is_requalified=evaluation.is_requalified,
        computed_pay=(
            ComputedPayOut.model_validate(evaluation.computed_pay)
            if evaluation.computed_pay else None
        ),
        pay_error=evaluation.pay_error,
        notices=evaluation.notices,
        can_submit=evaluation.can_submit(acknowledge_warnings),
        alternatives=[AlternativeSlotOut.model_validate(a) for a in alternatives],
    )


@router.post("/validate", response_model=ShiftEvaluationOut)
async def validate_shift(payload: ShiftCandidateIn, db: DB):
    """Évaluation complète : conformité, heures effectives, rémunération."""
    try:
        _, evaluation, alternatives = await ShiftService(db).evaluate(payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return evaluation_out(evaluation, alternatives)


@router.post("/quick-validate", response_model=QuickValidationOut)
async def quick_validate_shift(payload: ShiftCandidateIn, db: DB):
    try:
        return await ShiftService(db).quick_validate(payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


async def _save(payload: ShiftCreate, db: DB):
    try:
        return await ShiftService(db).save(payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ShiftRejected as e:
        raise HTTPException(
            status_code=422,
            detail=evaluation_out(e.evaluation, e.alternatives, payload.acknowledge_warnings)
            .model_dump(mode="json"),
        )
    except EngineError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
async def create_shift(payload: ShiftCreate, db: DB):
    """
    Enregistre l'intervention si aucune erreur bloquante n'est relevée.
    Les avertissements exigent acknowledge_warnings=true.
    """
    payload.id = None
    return await _save(payload, db)


@router.put("/{shift_id}", response_model=ShiftOut)
async def update_shift(shift_id: uuid.UUID, payload: ShiftCreate, db: DB):
    payload.id = shift_id
    return await _save(payload, db)


@router.get("", response_model=list[ShiftOut])
async def list_shifts(
    db: DB,
    contract_id: uuid.UUID,
    from_date: date | None = None,
    to_date: date | None = None,
):
    return await ShiftService(db).list_for_contract(contract_id, from_date, to_date)
