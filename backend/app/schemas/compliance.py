"""
Schemas des endpoints de conformité et d'évaluation.
"""
import uuid
from datetime import date
from typing import Optional

from pydantic import BaseModel


class RuleFindingOut(BaseModel):
    code: str
    message: str
    rule: str
    blocking: bool

    model_config = {"from_attributes": True}


class ComplianceResultOut(BaseModel):
    valid: bool
    errors: list[RuleFindingOut]
    warnings: list[RuleFindingOut]

    model_config = {"from_attributes": True}


class ComputedPayOut(BaseModel):
    base_pay: float
    sunday_majoration: float
    holiday_majoration: float
    night_majoration: float
    overtime_majoration: float
    presence_responsible_pay: float
    night_presence_allowance: float
    total_pay: float

    model_config = {"from_attributes": True}


class AlternativeSlotOut(BaseModel):
    date: date
    start_time: str
    end_time: str
    reason: str

    model_config = {"from_attributes": True}


class ShiftEvaluationOut(BaseModel):
    compliance: ComplianceResultOut
    validation_error: Optional[str] = None
    effective_hours: Optional[float] = None
    is_requalified: bool
    computed_pay: Optional[ComputedPayOut] = None
    pay_error: Optional[str] = None
    notices: list[str] = []
    can_submit: bool
    alternatives: list[AlternativeSlotOut] = []


class QuickValidationOut(BaseModel):
    can_create: bool
    blocking_errors: list[str]

    model_config = {"from_attributes": True}


class ComplianceAlertOut(BaseModel):
    code: str
    severity: str
    message: str

    model_config = {"from_attributes": True}


class WeeklyRestSummaryOut(BaseModel):
    longest_rest_hours: float
    is_compliant: bool

    model_config = {"from_attributes": True}


class EmployeeWeekStatusOut(BaseModel):
    employee_id: uuid.UUID
    employee_name: str
    contract_id: uuid.UUID
    contracted_hours: float
    total_hours: float
    shift_count: int
    remaining_weekly_hours: float
    remaining_daily_hours: float
    weekly_rest: WeeklyRestSummaryOut
    status: str                 # ok | warning | critical
    alerts: list[ComplianceAlertOut]

    model_config = {"from_attributes": True}


class OverviewSummaryOut(BaseModel):
    total_employees: int
    compliant: int
    warnings: int
    critical: int
    total_hours: float

    model_config = {"from_attributes": True}


class WeekOverviewOut(BaseModel):
    week_start: date
    week_end: date
    employees: list[EmployeeWeekStatusOut]
    summary: OverviewSummaryOut

    model_config = {"from_attributes": True}
