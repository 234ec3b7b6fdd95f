"""
Vue hebdomadaire de conformité par auxiliaire.

Orchestration uniquement : chaque intervention de la semaine est revalidée
contre le reste de la fenêtre élargie (semaine précédente + lendemain), puis
les constats sont dédupliqués par code.
"""
import logging
from dataclasses import dataclass, field
from datetime import date

from app.engine.compliance import compliance_summary, run_validation
from app.engine.errors import EngineError
from app.engine.hours import effective_hours
from app.engine.timeutils import WeekBounds, week_bounds
from app.engine.types import ShiftCandidate

logger = logging.getLogger(__name__)

SEVERITY_ORDER = {"ok": 0, "warning": 1, "critical": 2}


@dataclass
class ComplianceAlert:
    code: str
    severity: str  # warning | critical
    message: str


@dataclass
class WeeklyRestSummary:
    longest_rest_hours: float = 0.0
    is_compliant: bool = True


@dataclass
class EmployeeWeekStatus:
    employee_id: object
    employee_name: str
    contract_id: object
    contracted_hours: float
    total_hours: float = 0.0
    shift_count: int = 0
    remaining_weekly_hours: float = 0.0
    remaining_daily_hours: float = 0.0
    weekly_rest: WeeklyRestSummary = field(default_factory=WeeklyRestSummary)
    status: str = "ok"
    alerts: list[ComplianceAlert] = field(default_factory=list)


@dataclass
class OverviewSummary:
    total_employees: int = 0
    compliant: int = 0
    warnings: int = 0
    critical: int = 0
    total_hours: float = 0.0


@dataclass
class WeekOverview:
    week_start: date
    week_end: date
    employees: list[EmployeeWeekStatus] = field(default_factory=list)
    summary: OverviewSummary = field(default_factory=OverviewSummary)

    @classmethod
    def empty(cls, week: WeekBounds) -> "WeekOverview":
        return cls(week_start=week.start, week_end=week.end)


def worst_status(alerts: list[ComplianceAlert]) -> str:
    status = "ok"
    for alert in alerts:
        if SEVERITY_ORDER[alert.severity] > SEVERITY_ORDER[status]:
            status = alert.severity
    return status


def employee_week_status(
    employee_id,
    employee_name: str,
    contract_id,
    contracted_hours: float,
    shifts: list[ShiftCandidate],
    reference_date: date,
) -> EmployeeWeekStatus:
    """`shifts` couvre la fenêtre élargie ; seules celles de la semaine sont revalidées."""
    week = week_bounds(reference_date)
    own = [s for s in shifts if s.employee_id == employee_id]
    in_week = [s for s in own if week.start <= s.date <= week.end]

    status = EmployeeWeekStatus(
        employee_id=employee_id,
        employee_name=employee_name,
        contract_id=contract_id,
        contracted_hours=contracted_hours,
        shift_count=len(in_week),
    )

    total = 0.0
    for shift in in_week:
        try:
            total += effective_hours(shift)
        except EngineError as exc:
            logger.warning("Heures non calculables pour l'intervention %s : %s", shift.id, exc)
    status.total_hours = round(total, 2)

    # Marges restantes au jour de référence, arrondies au dixième
    try:
        summary = compliance_summary(employee_id, reference_date, own)
    except EngineError as exc:
        logger.warning("Marges non calculables pour %s : %s", employee_name, exc)
    else:
        status.remaining_weekly_hours = round(summary.remaining_weekly_hours, 1)
        status.remaining_daily_hours = round(summary.remaining_daily_hours, 1)
        status.weekly_rest = WeeklyRestSummary(
            longest_rest_hours=round(summary.weekly_rest.longest_rest_hours, 1),
            is_compliant=summary.weekly_rest.is_compliant,
        )

    seen = {}
    for shift in in_week:
        others = [s for s in own if s is not shift]
        outcome = run_validation(shift, others)
        for item in outcome.result.errors:
            seen[item.code] = ComplianceAlert(item.code, "critical", item.message)
        for item in outcome.result.warnings:
            seen.setdefault(item.code, ComplianceAlert(item.code, "warning", item.message))

    status.alerts = sorted(
        seen.values(), key=lambda a: (-SEVERITY_ORDER[a.severity], a.code)
    )
    status.status = worst_status(status.alerts)
    return status


def build_overview(reference_date: date, employees: list[EmployeeWeekStatus]) -> WeekOverview:
    week = week_bounds(reference_date)
    overview = WeekOverview(week_start=week.start, week_end=week.end, employees=employees)
    summary = overview.summary
    summary.total_employees = len(employees)
    for emp in employees:
        if emp.status == "critical":
            summary.critical += 1
        elif emp.status == "warning":
            summary.warnings += 1
        else:
            summary.compliant += 1
        summary.total_hours += emp.total_hours
    summary.total_hours = round(summary.total_hours, 2)
    return overview
