"""
Validation complète d'une intervention et façade d'évaluation.

validate_shift() ne lève jamais : une règle en échec est journalisée et
convertie en un constat VALIDATION_ERROR non bloquant, signalé aussi à part
(ValidationOutcome.validation_error) pour que la paie ne soit pas calculée
sur une saisie incohérente.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from app.engine import rules
from app.engine.errors import EngineError
from app.engine.hours import effective_hours, is_requalified
from app.engine.pay import compute_pay
from app.engine.rules import DEFAULT_DAILY_WARNING_MARGIN, RuleContext
from app.engine.timeutils import format_hhmm, shift_duration, shift_interval
from app.engine.types import (
    AbsenceRecord,
    ComplianceRuleResult,
    ComputedPay,
    ContractTerms,
    RuleFinding,
    ShiftCandidate,
)

logger = logging.getLogger(__name__)

RULES = (
    rules.check_structure,
    rules.check_overlap,
    rules.check_daily_rest,
    rules.check_daily_hours,
    rules.check_weekly_hours,
    rules.check_weekly_rest,
    rules.check_absence_conflict,
    rules.check_break,
    rules.check_night_presence_duration,
    rules.check_consecutive_nights,
    rules.check_guard_24h,
    rules.check_guard_amplitude,
)

# Sous-ensemble rapide : chevauchement, repos avant, plafonds jour/semaine
QUICK_RULES = (
    rules.check_overlap,
    rules.check_previous_rest,
    rules.check_daily_hours,
    rules.check_weekly_hours,
)

MAX_SUGGESTIONS = 3


@dataclass
class ValidationOutcome:
    result: ComplianceRuleResult
    validation_error: str | None = None


@dataclass
class QuickValidation:
    can_create: bool
    blocking_errors: list[str] = field(default_factory=list)


def run_validation(
    candidate: ShiftCandidate,
    existing_shifts: list[ShiftCandidate],
    approved_absences: list[AbsenceRecord] = (),
    *,
    daily_warning_margin: float = DEFAULT_DAILY_WARNING_MARGIN,
) -> ValidationOutcome:
    ctx = RuleContext(
        candidate=candidate,
        existing=list(existing_shifts),
        absences=list(approved_absences),
        daily_warning_margin=daily_warning_margin,
    )
    result = ComplianceRuleResult()
    failures = []

    for rule in RULES:
        try:
            findings = rule(ctx)
        except Exception as exc:
            logger.warning("Règle %s en échec pour l'intervention du %s : %s",
                           rule.__name__, candidate.date, exc)
            failures.append(str(exc))
            continue
        for item in findings:
            result.add(item)

    validation_error = None
    if failures:
        validation_error = "; ".join(dict.fromkeys(failures))
        result.add(RuleFinding(
            code=rules.VALIDATION_ERROR,
            message=f"Impossible de vérifier toutes les règles : {validation_error}",
            rule=rules.CITATIONS[rules.VALIDATION_ERROR],
            blocking=False,
        ))

    return ValidationOutcome(result=result, validation_error=validation_error)


def validate_shift(
    candidate: ShiftCandidate,
    existing_shifts: list[ShiftCandidate],
    approved_absences: list[AbsenceRecord] = (),
    *,
    daily_warning_margin: float = DEFAULT_DAILY_WARNING_MARGIN,
) -> ComplianceRuleResult:
    return run_validation(
        candidate, existing_shifts, approved_absences,
        daily_warning_margin=daily_warning_margin,
    ).result


def quick_validate(candidate: ShiftCandidate, existing_shifts: list[ShiftCandidate]) -> QuickValidation:
    """Pré-contrôle rapide : ne bloque jamais là où validate_shift ne bloquerait pas."""
    ctx = RuleContext(candidate=candidate, existing=list(existing_shifts))
    blocking = []
    for rule in QUICK_RULES:
        try:
            findings = rule(ctx)
        except Exception as exc:
            logger.debug("Pré-contrôle %s ignoré : %s", rule.__name__, exc)
            continue
        blocking.extend(f.message for f in findings if f.blocking)
    return QuickValidation(can_create=not blocking, blocking_errors=blocking)


# ── Évaluation à la demande ───────────────────────────────────────────────────

@dataclass
class ShiftEvaluation:
    compliance: ComplianceRuleResult
    validation_error: str | None = None
    effective_hours: float | None = None
    is_requalified: bool = False
    computed_pay: ComputedPay | None = None
    pay_error: str | None = None
    notices: list[str] = field(default_factory=list)

    def can_submit(self, acknowledge_warnings: bool = False) -> bool:
        """Erreurs bloquantes : jamais. Avertissements : seulement après acquittement."""
        if self.validation_error is not None or not self.compliance.valid:
            return False
        return acknowledge_warnings or not self.compliance.has_warnings


def evaluate_shift(
    candidate: ShiftCandidate,
    existing_shifts: list[ShiftCandidate],
    approved_absences: list[AbsenceRecord] = (),
    contract: ContractTerms | None = None,
    *,
    daily_warning_margin: float = DEFAULT_DAILY_WARNING_MARGIN,
    habitual_holiday_work: bool = False,
) -> ShiftEvaluation:
    outcome = run_validation(
        candidate, existing_shifts, approved_absences,
        daily_warning_margin=daily_warning_margin,
    )
    evaluation = ShiftEvaluation(
        compliance=outcome.result,
        validation_error=outcome.validation_error,
        is_requalified=is_requalified(candidate.shift_kind, candidate.night_interventions_count),
    )
    if evaluation.is_requalified:
        evaluation.notices.append(rules.requalification_notice(candidate.night_interventions_count))

    if outcome.validation_error is not None:
        return evaluation

    evaluation.effective_hours = effective_hours(candidate)
    if contract is None:
        return evaluation

    try:
        evaluation.computed_pay = compute_pay(
            candidate,
            contract.hourly_rate,
            weekly_contract_hours=contract.weekly_hours,
            existing_shifts=existing_shifts,
            habitual_holiday_work=habitual_holiday_work,
        )
    except (EngineError, ArithmeticError, ValueError) as exc:
        logger.error("Calcul de paie impossible pour l'intervention du %s : %s", candidate.date, exc)
        evaluation.pay_error = str(exc)
    return evaluation


# ── Résumé et suggestions ─────────────────────────────────────────────────────

@dataclass
class ComplianceSummary:
    remaining_daily_hours: float
    remaining_weekly_hours: float
    weekly_rest: rules.WeeklyRestStatus
    recommendations: list[str] = field(default_factory=list)


def compliance_summary(
    employee_id, day: date, existing_shifts: list[ShiftCandidate]
) -> ComplianceSummary:
    shifts = [s for s in existing_shifts if s.employee_id == employee_id]
    remaining_daily = max(0.0, rules.DAILY_MAX_HOURS - rules.hours_on_date(day, shifts))
    remaining_weekly = max(0.0, rules.WEEKLY_MAX_HOURS - rules.hours_in_week(day, shifts))
    rest = rules.weekly_rest_status(day, shifts)

    recommendations = []
    if remaining_daily <= 2:
        recommendations.append(
            f"Attention : seulement {remaining_daily:.1f}h disponibles aujourd'hui."
        )
    if remaining_weekly <= 8:
        recommendations.append(
            f"Attention : seulement {remaining_weekly:.1f}h disponibles cette semaine."
        )
    if not rest.is_compliant:
        recommendations.append(
            f"Repos hebdomadaire insuffisant : {rest.longest_rest_hours:.1f}h "
            f"(minimum {rules.WEEKLY_REST_HOURS}h)."
        )

    return ComplianceSummary(
        remaining_daily_hours=remaining_daily,
        remaining_weekly_hours=remaining_weekly,
        weekly_rest=rest,
        recommendations=recommendations,
    )


@dataclass
class AlternativeSlot:
    date: date
    start_time: str
    end_time: str
    reason: str


def _slot_from(start: datetime, duration_minutes: int, reason: str) -> AlternativeSlot:
    end = start + timedelta(minutes=duration_minutes)
    return AlternativeSlot(
        date=start.date(),
        start_time=format_hhmm(start.time()),
        end_time=format_hhmm(end.time()),
        reason=reason,
    )


def suggest_alternatives(
    candidate: ShiftCandidate,
    existing_shifts: list[ShiftCandidate],
    result: ComplianceRuleResult,
) -> list[AlternativeSlot]:
    """Jusqu'à trois créneaux de même durée après une erreur de repos ou de chevauchement."""
    duration = shift_duration(candidate.start_time, candidate.end_time)
    employee_shifts = [s for s in existing_shifts if s.employee_id == candidate.employee_id]
    codes = {f.code for f in result.errors}
    suggestions = []

    if rules.DAILY_REST in codes:
        previous = rules.find_previous_shift(candidate, employee_shifts)
        if previous is not None:
            prev_end = shift_interval(previous.date, previous.start_time, previous.end_time)[1]
            suggestions.append(_slot_from(
                prev_end + timedelta(hours=rules.DAILY_REST_HOURS),
                duration,
                f"Respecte le repos quotidien de {rules.DAILY_REST_HOURS}h",
            ))

    if rules.SHIFT_OVERLAP in codes:
        for other in rules.find_overlapping(candidate, existing_shifts):
            other_end = shift_interval(other.date, other.start_time, other.end_time)[1]
            suggestions.append(_slot_from(
                other_end, duration, "Après l'intervention existante",
            ))

    return suggestions[:MAX_SUGGESTIONS]
