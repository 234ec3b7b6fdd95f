"""
Calcul de la rémunération d'une intervention avec ses majorations.
Taux IDCC 3239 : dimanche, jour férié, nuit, heures supplémentaires.

Chaque composante est arrondie au centime ; total_pay est la somme exacte des
composantes arrondies (vérifiée par ComputedPay).
"""
from dataclasses import dataclass
from datetime import date

from app.engine.guard import GuardSegments
from app.engine.hours import effective_hours, effective_minutes, is_requalified, net_minutes
from app.engine.timeutils import minutes_on_day, night_window_overlap, shift_interval, week_bounds
from app.engine.types import PAY_COMPONENTS, ComputedPay, SegmentKind, ShiftCandidate, ShiftKind
from app.utils.french_holidays import is_public_holiday

MAJORATION_RATES = {
    "sunday":              0.30,  # +30% dimanche
    "holiday_habitual":    0.60,  # +60% férié travaillé habituellement
    "holiday_exceptional": 1.00,  # +100% férié travaillé exceptionnellement
    "night":               0.20,  # +20% heures de nuit (21h-6h)
    "overtime_first_8h":   0.25,  # +25% pour les 8 premières heures supplémentaires
    "overtime_beyond_8h":  0.50,  # +50% au-delà
}

# Présence de nuit non requalifiée : indemnité d'au moins 1/4 du taux horaire
NIGHT_PRESENCE_ALLOWANCE_RATIO = 0.25

OVERTIME_FIRST_TIER_HOURS = 8

WEEKS_PER_MONTH = 4.33
EMPLOYER_COST_FACTOR = 1.42


def _cents(amount: float) -> float:
    return round(amount, 2)


def _overlap(a_start: float, a_end: float, b_start: float, b_end: float) -> float:
    return max(0.0, min(a_end, b_end) - max(a_start, b_start))


def _span_minutes(shift: ShiftCandidate) -> int:
    start, end = shift_interval(shift.date, shift.start_time, shift.end_time)
    return int((end - start).total_seconds() // 60)


def qualifying_hours(shift: ShiftCandidate, eff_hours: float, predicate) -> float:
    """
    Part des heures effectives tombant sur un jour qui satisfait `predicate`
    (dimanche, férié), au prorata des minutes passées ce jour-là.
    """
    span = _span_minutes(shift)
    if span <= 0 or eff_hours <= 0:
        return 0.0
    qualifying = 0
    for day in _days_touched(shift):
        if predicate(day):
            qualifying += minutes_on_day(shift.date, shift.start_time, shift.end_time, day)
    return eff_hours * qualifying / span


def _days_touched(shift: ShiftCandidate) -> list[date]:
    start, end = shift_interval(shift.date, shift.start_time, shift.end_time)
    return sorted({start.date(), end.date()})


def _is_sunday(day: date) -> bool:
    return day.weekday() == 6


def night_hours(shift: ShiftCandidate) -> float:
    """Heures de nuit ouvrant droit à la majoration, selon le type d'intervention."""
    kind = ShiftKind(shift.shift_kind)
    requalified = is_requalified(kind, shift.night_interventions_count)

    if kind == ShiftKind.GUARD_24H:
        guard = GuardSegments(shift.start_time, shift.guard_segments)
        segments = guard.segments
        total = 0
        for i, (seg, minutes) in enumerate(zip(segments, guard.durations())):
            counted = seg.kind == SegmentKind.EFFECTIVE or (
                seg.kind == SegmentKind.PRESENCE_NIGHT and requalified
            )
            if not counted:
                continue
            end = segments[(i + 1) % len(segments)].start_time
            overlap = night_window_overlap(seg.start_time, end).minutes
            total += min(overlap, minutes - seg.break_minutes)
        return total / 60

    if kind == ShiftKind.EFFECTIVE and not shift.has_night_action:
        return 0.0
    if kind == ShiftKind.PRESENCE_DAY:
        return 0.0
    if kind == ShiftKind.PRESENCE_NIGHT and not requalified:
        return 0.0

    overlap = night_window_overlap(shift.start_time, shift.end_time).minutes
    return min(overlap, net_minutes(shift)) / 60


def overtime_hours(
    shift: ShiftCandidate,
    eff_hours: float,
    weekly_contract_hours: float,
    existing_shifts: list[ShiftCandidate],
) -> tuple[float, float]:
    """(heures à +25 %, heures à +50 %) apportées par cette intervention dans sa semaine."""
    week = week_bounds(shift.date)
    # Toutes les autres interventions de la semaine, antérieures ou non
    others = sum(
        effective_hours(s) for s in existing_shifts
        if not shift.is_same_shift(s)
        and s.employee_id == shift.employee_id
        and week.start <= s.date <= week.end
    )
    after = others + eff_hours
    tier_limit = weekly_contract_hours + OVERTIME_FIRST_TIER_HOURS
    first = _overlap(others, after, weekly_contract_hours, tier_limit)
    beyond = _overlap(others, after, tier_limit, float("inf"))
    return first, beyond


def compute_pay(
    shift: ShiftCandidate,
    hourly_rate: float,
    weekly_contract_hours: float | None = None,
    existing_shifts: list[ShiftCandidate] = (),
    habitual_holiday_work: bool = False,
) -> ComputedPay:
    kind = ShiftKind(shift.shift_kind)
    requalified = is_requalified(kind, shift.night_interventions_count)
    components = dict.fromkeys(PAY_COMPONENTS, 0.0)

    if kind == ShiftKind.PRESENCE_NIGHT and not requalified:
        raw = net_minutes(shift) / 60
        components["night_presence_allowance"] = raw * hourly_rate * NIGHT_PRESENCE_ALLOWANCE_RATIO
        return _closing(components)

    eff = float(effective_minutes(shift) / 60)
    if kind == ShiftKind.PRESENCE_DAY:
        components["presence_responsible_pay"] = eff * hourly_rate
    else:
        components["base_pay"] = eff * hourly_rate

    sunday = qualifying_hours(shift, eff, _is_sunday)
    components["sunday_majoration"] = sunday * hourly_rate * MAJORATION_RATES["sunday"]

    holiday_rate = MAJORATION_RATES["holiday_habitual" if habitual_holiday_work else "holiday_exceptional"]
    holiday = qualifying_hours(shift, eff, is_public_holiday)
    components["holiday_majoration"] = holiday * hourly_rate * holiday_rate

    components["night_majoration"] = night_hours(shift) * hourly_rate * MAJORATION_RATES["night"]

    if weekly_contract_hours is not None:
        first, beyond = overtime_hours(shift, eff, weekly_contract_hours, list(existing_shifts))
        components["overtime_majoration"] = (
            first * hourly_rate * MAJORATION_RATES["overtime_first_8h"]
            + beyond * hourly_rate * MAJORATION_RATES["overtime_beyond_8h"]
        )

    return _closing(components)


def _closing(components: dict[str, float]) -> ComputedPay:
    rounded = {name: _cents(value) for name, value in components.items()}
    return ComputedPay(**rounded, total_pay=_cents(sum(rounded.values())))


# ── Affichage ─────────────────────────────────────────────────────────────────

@dataclass
class PayLine:
    label: str
    amount: float
    percentage: float | None = None


def pay_breakdown(pay: ComputedPay) -> list[PayLine]:
    lines = []
    if pay.base_pay > 0:
        lines.append(PayLine("Salaire de base", pay.base_pay))
    if pay.presence_responsible_pay > 0:
        lines.append(PayLine("Présence responsable jour (×2/3)", pay.presence_responsible_pay))
    if pay.night_presence_allowance > 0:
        lines.append(PayLine("Indemnité présence de nuit", pay.night_presence_allowance))
    if pay.sunday_majoration > 0:
        lines.append(PayLine("Majoration dimanche", pay.sunday_majoration,
                             MAJORATION_RATES["sunday"] * 100))
    if pay.holiday_majoration > 0:
        lines.append(PayLine("Majoration jour férié", pay.holiday_majoration))
    if pay.night_majoration > 0:
        lines.append(PayLine("Majoration heures de nuit", pay.night_majoration,
                             MAJORATION_RATES["night"] * 100))
    if pay.overtime_majoration > 0:
        lines.append(PayLine("Majoration heures supplémentaires", pay.overtime_majoration))
    return lines


@dataclass
class MonthlyEstimate:
    base_salary: float
    estimated_majorations: float
    total_estimate: float
    employer_cost: float


def monthly_estimate(
    weekly_hours: float,
    hourly_rate: float,
    average_sundays: float = 0,
    average_night_hours: float = 0,
) -> MonthlyEstimate:
    """Estimation mensuelle (4,33 semaines) et coût employeur approximatif."""
    base = weekly_hours * WEEKS_PER_MONTH * hourly_rate
    sunday = (average_sundays * weekly_hours / 7 * hourly_rate) * MAJORATION_RATES["sunday"] * WEEKS_PER_MONTH
    night = average_night_hours * hourly_rate * MAJORATION_RATES["night"] * WEEKS_PER_MONTH
    majorations = sunday + night
    total = base + majorations
    return MonthlyEstimate(
        base_salary=_cents(base),
        estimated_majorations=_cents(majorations),
        total_estimate=_cents(total),
        employer_cost=_cents(total * EMPLOYER_COST_FACTOR),
    )
