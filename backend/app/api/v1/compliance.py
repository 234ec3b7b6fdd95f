"""
Conformité – vue hebdomadaire, historique et alertes critiques par employeur.
"""
import uuid
from datetime import date

from fastapi import APIRouter, Query

from app.api.deps import DB
from app.schemas.compliance import ComplianceAlertOut, WeekOverviewOut
from app.services.compliance_service import ComplianceOverviewService

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.get("/overview", response_model=WeekOverviewOut)
async def get_overview(db: DB, employer_id: uuid.UUID, reference_date: date | None = None):
    return await ComplianceOverviewService(db).overview(employer_id, reference_date)


@router.get("/history", response_model=list[WeekOverviewOut])
async def get_history(
    db: DB,
    employer_id: uuid.UUID,
    weeks_back: int = Query(default=4, ge=1, le=52),
):
    """Semaines de la plus ancienne à la plus récente."""
    return await ComplianceOverviewService(db).history(employer_id, weeks_back)


@router.get("/alerts", response_model=list[dict])
async def get_critical_alerts(db: DB, employer_id: uuid.UUID, reference_date: date | None = None):
    alerts = await ComplianceOverviewService(db).critical_alerts(employer_id, reference_date)
    return [
        {"employee_name": name, **ComplianceAlertOut.model_validate(alert).model_dump()}
        for name, alert in alerts
    ]
