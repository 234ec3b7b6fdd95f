from app.schemas.shift import GuardSegmentIn, ShiftCandidateIn, ShiftCreate, ShiftOut
from app.schemas.absence import AbsenceCreate, AbsenceDecision, AbsenceOut
from app.schemas.compliance import (
    ComplianceResultOut, ComputedPayOut, QuickValidationOut, ShiftEvaluationOut, WeekOverviewOut,
)
from app.schemas.leave import LeaveBalanceInit, LeaveBalanceOut
from app.schemas.benefit import BenefitEnvelopeOut

__all__ = [
    "GuardSegmentIn", "ShiftCandidateIn", "ShiftCreate", "ShiftOut",
    "AbsenceCreate", "AbsenceDecision", "AbsenceOut",
    "ComplianceResultOut", "ComputedPayOut", "QuickValidationOut", "ShiftEvaluationOut", "WeekOverviewOut",
    "LeaveBalanceInit", "LeaveBalanceOut",
    "BenefitEnvelopeOut",
]
