import uuid

from fastapi import APIRouter, HTTPException, status

from app.api.deps import DB
from app.engine.errors import InvalidTransition
from app.schemas.absence import AbsenceCreate, AbsenceDecision, AbsenceOut
from app.schemas.leave import LeaveBalanceInit, LeaveBalanceOut
from app.services.absence_service import AbsenceService
from app.services.errors import AbsenceRejected, NotFoundError

# ── Absences ──────────────────────────────────────────────────────────────────

absences_router = APIRouter(prefix="/absences", tags=["absences"])


@absences_router.post("", response_model=AbsenceOut, status_code=status.HTTP_201_CREATED)
async def create_absence(payload: AbsenceCreate, db: DB):
    try:
        absence, warnings = await AbsenceService(db).request(payload)
    except AbsenceRejected as e:
        raise HTTPException(status_code=422, detail=e.errors)
    out = AbsenceOut.model_validate(absence)
    out.warnings = warnings
    return out


async def _decide(absence_id: uuid.UUID, db: DB, approve: bool, reason: str | None = None):
    svc = AbsenceService(db)
    try:
        if approve:
            return await svc.approve(absence_id)
        return await svc.reject(absence_id, reason)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AbsenceRejected as e:
        raise HTTPException(status_code=422, detail=e.errors)


@absences_router.post("/{absence_id}/approve", response_model=AbsenceOut)
async def approve_absence(absence_id: uuid.UUID, db: DB):
    return await _decide(absence_id, db, approve=True)


@absences_router.post("/{absence_id}/reject", response_model=AbsenceOut)
async def reject_absence(absence_id: uuid.UUID, db: DB, payload: AbsenceDecision | None = None):
    return await _decide(absence_id, db, approve=False, reason=payload.reason if payload else None)


# ── Soldes de congés ──────────────────────────────────────────────────────────

leave_balances_router = APIRouter(prefix="/leave-balances", tags=["leave-balances"])


@leave_balances_router.get("/{employee_id}", response_model=LeaveBalanceOut)
async def get_leave_balance(employee_id: uuid.UUID, db: DB, leave_year: str | None = None):
    balance = await AbsenceService(db).get_balance(employee_id, leave_year)
    if balance is None:
        raise HTTPException(status_code=404, detail="Solde de congés non initialisé")
    return balance


@leave_balances_router.post("", response_model=LeaveBalanceOut, status_code=status.HTTP_201_CREATED)
async def init_leave_balance(payload: LeaveBalanceInit, db: DB):
    """Sans `months_worked`, l'acquis est calculé depuis le début du contrat."""
    try:
        return await AbsenceService(db).init_balance(
            payload.employee_id,
            payload.months_worked,
            leave_year=payload.leave_year,
            adjustment_days=payload.adjustment_days,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
