import uuid

from fastapi import APIRouter, HTTPException, Query

from app.api.deps import DB
from app.engine.benefit import PCH_TYPE_LABELS, PchType, benefit_envelope, benefit_rate
from app.engine.errors import StructuralInputError
from app.schemas.benefit import BenefitEnvelopeOut
from app.services.errors import NotFoundError
from app.services.shift_service import ShiftService

router = APIRouter(prefix="/benefits", tags=["benefits"])


@router.get("/envelope", response_model=BenefitEnvelopeOut)
async def get_envelope(
    db: DB,
    hours: float | None = Query(default=None, ge=0),
    kind: str | None = None,
    contract_id: uuid.UUID | None = None,
):
    """
    Enveloppe PCH mensuelle : heures × tarif 2026 du mode d'intervention.
    Avec `contract_id`, les heures et le mode enregistrés sur le contrat
    servent de valeurs par défaut.
    """
    if contract_id is not None:
        try:
            contract = await ShiftService(db).get_contract(contract_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        if hours is None and contract.pch_monthly_hours is not None:
            hours = float(contract.pch_monthly_hours)
        kind = kind or contract.pch_type

    if hours is None:
        raise HTTPException(status_code=422, detail="Nombre d'heures PCH manquant")
    kind = kind or PchType.EMPLOI_DIRECT.value

    try:
        rate = benefit_rate(kind)
        envelope = benefit_envelope(hours, kind)
    except StructuralInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return BenefitEnvelopeOut(
        kind=kind,
        label=PCH_TYPE_LABELS[PchType(kind)],
        hours=hours,
        hourly_rate=rate,
        envelope=envelope,
    )
