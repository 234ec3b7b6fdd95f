"""
Règles de conformité appliquées à une intervention candidate.

Chaque règle reçoit un RuleContext et renvoie la liste (souvent vide) de ses
constats. Une règle peut lever une exception sur une donnée mal formée :
c'est le validateur qui l'isole.

Code du travail + Convention Collective IDCC 3239.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from app.engine.guard import GuardSegments
from app.engine.hours import REQUALIFICATION_THRESHOLD, check_candidate, effective_hours, net_minutes
from app.engine.timeutils import (
    format_hhmm,
    hours_between,
    intervals_overlap,
    shift_duration,
    shift_interval,
    week_bounds,
)
from app.engine.types import (
    PRESENCE_KINDS,
    AbsenceRecord,
    RuleFinding,
    SegmentKind,
    ShiftCandidate,
    ShiftKind,
)

logger = logging.getLogger(__name__)

# ── Seuils légaux ─────────────────────────────────────────────────────────────
DAILY_MAX_HOURS = 10                  # Art. L3121-18
DEFAULT_DAILY_WARNING_MARGIN = 1.0
WEEKLY_MAX_HOURS = 48                 # Art. L3121-20
WEEKLY_WARNING_HOURS = 44
WEEKLY_REST_HOURS = 35                # Art. L3132-2
DAILY_REST_HOURS = 11                 # Art. L3131-1
BREAK_AFTER_MINUTES = 6 * 60          # Art. L3121-16
MIN_BREAK_MINUTES = 20
NIGHT_PRESENCE_MAX_HOURS = 12         # Art. 148 IDCC 3239
MAX_CONSECUTIVE_NIGHTS = 5
GUARD_MAX_EFFECTIVE_HOURS = 12        # Art. 137.2 IDCC 3239
GUARD_NIGHT_WARNING_HOURS = 12
GUARD_MAX_AMPLITUDE_HOURS = 24
GUARD_CHAIN_GAP_HOURS = 2

# ── Codes ─────────────────────────────────────────────────────────────────────
SHIFT_OVERLAP = "SHIFT_OVERLAP"
DAILY_MAX = "DAILY_MAX_HOURS"
WEEKLY_MAX = "WEEKLY_MAX_HOURS"
WEEKLY_REST = "WEEKLY_REST"
DAILY_REST = "DAILY_REST"
ABSENCE_CONFLICT = "ABSENCE_CONFLICT"
MANDATORY_BREAK = "MANDATORY_BREAK"
NIGHT_PRESENCE_MAX_DURATION = "NIGHT_PRESENCE_MAX_DURATION"
CONSECUTIVE_NIGHTS_MAX = "CONSECUTIVE_NIGHTS_MAX"
GUARD_24H_EFFECTIVE_MAX = "GUARD_24H_EFFECTIVE_MAX"
GUARD_MAX_AMPLITUDE = "GUARD_MAX_AMPLITUDE"
VALIDATION_ERROR = "VALIDATION_ERROR"

CITATIONS = {
    SHIFT_OVERLAP: "Une seule intervention à la fois par auxiliaire",
    DAILY_MAX: "Durée maximale de travail de 10h par jour (Art. L3121-18 Code du travail)",
    WEEKLY_MAX: "Durée maximale de travail de 48h par semaine (Art. L3121-20 Code du travail)",
    WEEKLY_REST: "Repos hebdomadaire minimum de 35h consécutives (Art. L3132-2 Code du travail)",
    DAILY_REST: "Repos quotidien minimum de 11h consécutives (Art. L3131-1 Code du travail)",
    ABSENCE_CONFLICT: "Aucune intervention pendant une absence approuvée",
    MANDATORY_BREAK: "Pause de 20 min obligatoire après 6h de travail (Art. L3121-16 Code du travail)",
    NIGHT_PRESENCE_MAX_DURATION: "Présence de nuit limitée à 12h (Art. 148 IDCC 3239)",
    CONSECUTIVE_NIGHTS_MAX: "Maximum 5 nuits consécutives de présence responsable (Art. 148 IDCC 3239)",
    GUARD_24H_EFFECTIVE_MAX: "Garde 24h : 12h de travail effectif maximum (Art. 137.2 IDCC 3239)",
    GUARD_MAX_AMPLITUDE: "Amplitude maximale d'une garde : 24h (Art. 137.2 IDCC 3239)",
    VALIDATION_ERROR: "Contrôle de cohérence des données saisies",
}

ABSENCE_LABELS = {
    "vacation": "Congés payés",
    "sick": "Arrêt maladie",
    "family_event": "Événement familial",
    "training": "Formation",
    "unavailable": "Indisponibilité",
    "emergency": "Urgence",
}


def finding(code: str, message: str, blocking: bool) -> RuleFinding:
    return RuleFinding(code=code, message=message, rule=CITATIONS[code], blocking=blocking)


@dataclass
class RuleContext:
    candidate: ShiftCandidate
    existing: list[ShiftCandidate]
    absences: list[AbsenceRecord] = field(default_factory=list)
    daily_warning_margin: float = DEFAULT_DAILY_WARNING_MARGIN

    def others(self) -> list[ShiftCandidate]:
        """Interventions existantes, hors identité antérieure du candidat."""
        return [s for s in self.existing if not self.candidate.is_same_shift(s)]

    def employee_shifts(self) -> list[ShiftCandidate]:
        return [s for s in self.others() if s.employee_id == self.candidate.employee_id]


def _interval(shift: ShiftCandidate) -> tuple[datetime, datetime]:
    return shift_interval(shift.date, shift.start_time, shift.end_time)


def _fmt_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def _describe(shift: ShiftCandidate) -> str:
    return (
        f"{_fmt_date(shift.date)} de {format_hhmm(shift.start_time)} "
        f"à {format_hhmm(shift.end_time)}"
    )


# ── Structure ─────────────────────────────────────────────────────────────────

def check_structure(ctx: RuleContext) -> list[RuleFinding]:
    check_candidate(ctx.candidate)
    if ctx.candidate.shift_kind != ShiftKind.GUARD_24H:
        net_minutes(ctx.candidate)
    return []


# ── Chevauchement ─────────────────────────────────────────────────────────────

def find_overlapping(candidate: ShiftCandidate, shifts: list[ShiftCandidate]) -> list[ShiftCandidate]:
    """Même contrat ou même auxiliaire, à ±1 jour pour capter les nuits à cheval."""
    window = _interval(candidate)
    overlapping = []
    for shift in shifts:
        if candidate.is_same_shift(shift):
            continue
        if shift.contract_id != candidate.contract_id and shift.employee_id != candidate.employee_id:
            continue
        if abs((shift.date - candidate.date).days) > 1:
            continue
        if intervals_overlap(window, _interval(shift)):
            overlapping.append(shift)
    return overlapping


def check_overlap(ctx: RuleContext) -> list[RuleFinding]:
    overlapping = find_overlapping(ctx.candidate, ctx.existing)
    if not overlapping:
        return []
    first = min(overlapping, key=lambda s: _interval(s)[0])
    return [finding(
        SHIFT_OVERLAP,
        f"Chevauchement avec une intervention existante : {_describe(first)}",
        blocking=True,
    )]


# ── Durées maximales ──────────────────────────────────────────────────────────

def hours_on_date(day: date, shifts: list[ShiftCandidate]) -> float:
    return sum(effective_hours(s) for s in shifts if s.date == day)


def hours_in_week(day: date, shifts: list[ShiftCandidate]) -> float:
    week = week_bounds(day)
    return sum(effective_hours(s) for s in shifts if week.start <= s.date <= week.end)


def check_daily_hours(ctx: RuleContext) -> list[RuleFinding]:
    candidate = ctx.candidate
    # La garde 24h relève de GUARD_24H_EFFECTIVE_MAX
    if candidate.shift_kind == ShiftKind.GUARD_24H:
        return []

    total = hours_on_date(candidate.date, ctx.employee_shifts()) + effective_hours(candidate)
    if total > DAILY_MAX_HOURS:
        return [finding(
            DAILY_MAX,
            f"Durée maximale quotidienne dépassée : {total:.1f}h au lieu de "
            f"{DAILY_MAX_HOURS}h maximum.",
            blocking=True,
        )]
    if ctx.daily_warning_margin > 0 and total > DAILY_MAX_HOURS - ctx.daily_warning_margin:
        return [finding(
            DAILY_MAX,
            f"Attention : {total:.1f}h ce jour, proche du maximum de {DAILY_MAX_HOURS}h.",
            blocking=False,
        )]
    return []


def check_weekly_hours(ctx: RuleContext) -> list[RuleFinding]:
    candidate = ctx.candidate
    total = hours_in_week(candidate.date, ctx.employee_shifts()) + effective_hours(candidate)
    if total > WEEKLY_MAX_HOURS:
        return [finding(
            WEEKLY_MAX,
            f"Durée maximale hebdomadaire dépassée : {total:.1f}h au lieu de "
            f"{WEEKLY_MAX_HOURS}h maximum.",
            blocking=True,
        )]
    if total > WEEKLY_WARNING_HOURS:
        return [finding(
            WEEKLY_MAX,
            f"Attention : {total:.1f}h cette semaine (maximum recommandé : {WEEKLY_WARNING_HOURS}h).",
            blocking=False,
        )]
    return []


# ── Repos ─────────────────────────────────────────────────────────────────────

@dataclass
class RestPeriod:
    start: datetime
    end: datetime

    @property
    def hours(self) -> float:
        return hours_between(self.start, self.end)


@dataclass
class WeeklyRestStatus:
    longest_rest_hours: float
    is_compliant: bool
    rest_periods: list[RestPeriod]


def rest_periods_in_week(day: date, shifts: list[ShiftCandidate]) -> list[RestPeriod]:
    """
    Périodes de repos dans [lundi 00:00, lundi suivant 00:00).

    Les interventions de la veille et du lendemain débordant sur la semaine
    sont prises en compte.
    """
    week = week_bounds(day)
    window_start = datetime.combine(week.start, datetime.min.time())
    window_end = window_start + timedelta(days=7)

    busy = []
    for shift in shifts:
        if not week.start - timedelta(days=1) <= shift.date <= week.end + timedelta(days=1):
            continue
        start, end = _interval(shift)
        start, end = max(start, window_start), min(end, window_end)
        if start < end:
            busy.append((start, end))
    busy.sort()

    periods = []
    cursor = window_start
    for start, end in busy:
        if start > cursor:
            periods.append(RestPeriod(cursor, start))
        cursor = max(cursor, end)
    if cursor < window_end:
        periods.append(RestPeriod(cursor, window_end))
    return periods


def weekly_rest_status(day: date, shifts: list[ShiftCandidate]) -> WeeklyRestStatus:
    periods = rest_periods_in_week(day, shifts)
    longest = max((p.hours for p in periods), default=0.0)
    return WeeklyRestStatus(
        longest_rest_hours=longest,
        is_compliant=longest >= WEEKLY_REST_HOURS,
        rest_periods=periods,
    )


def check_weekly_rest(ctx: RuleContext) -> list[RuleFinding]:
    status = weekly_rest_status(ctx.candidate.date, [*ctx.employee_shifts(), ctx.candidate])
    if status.is_compliant:
        return []
    return [finding(
        WEEKLY_REST,
        f"Repos hebdomadaire insuffisant : {status.longest_rest_hours:.1f}h au lieu de "
        f"{WEEKLY_REST_HOURS}h minimum.",
        blocking=True,
    )]


def find_previous_shift(candidate: ShiftCandidate, shifts: list[ShiftCandidate]) -> ShiftCandidate | None:
    start = _interval(candidate)[0]
    before = [s for s in shifts if not candidate.is_same_shift(s) and _interval(s)[1] <= start]
    return max(before, key=lambda s: _interval(s)[1], default=None)


def find_next_shift(candidate: ShiftCandidate, shifts: list[ShiftCandidate]) -> ShiftCandidate | None:
    end = _interval(candidate)[1]
    after = [s for s in shifts if not candidate.is_same_shift(s) and _interval(s)[0] >= end]
    return min(after, key=lambda s: _interval(s)[0], default=None)


def _rest_between(previous: ShiftCandidate, following: ShiftCandidate) -> float | None:
    """Heures de repos entre deux interventions ; None si exemptées (présence)."""
    # Art. 137.1 / 148 IDCC 3239 : l'enchaînement avec une présence responsable n'est pas soumis aux 11h
    if previous.shift_kind in PRESENCE_KINDS or following.shift_kind in PRESENCE_KINDS:
        return None
    return hours_between(_interval(previous)[1], _interval(following)[0])


def check_previous_rest(ctx: RuleContext) -> list[RuleFinding]:
    previous = find_previous_shift(ctx.candidate, ctx.employee_shifts())
    if previous is None:
        return []
    rest = _rest_between(previous, ctx.candidate)
    if rest is None or rest >= DAILY_REST_HOURS:
        return []
    earliest = _interval(previous)[1] + timedelta(hours=DAILY_REST_HOURS)
    return [finding(
        DAILY_REST,
        f"Repos quotidien insuffisant : {rest:.1f}h au lieu de {DAILY_REST_HOURS}h minimum. "
        f"L'intervention ne peut pas commencer avant le {earliest:%d/%m/%Y à %H:%M}.",
        blocking=True,
    )]


def check_next_rest(ctx: RuleContext) -> list[RuleFinding]:
    following = find_next_shift(ctx.candidate, ctx.employee_shifts())
    if following is None:
        return []
    rest = _rest_between(ctx.candidate, following)
    if rest is None or rest >= DAILY_REST_HOURS:
        return []
    return [finding(
        DAILY_REST,
        f"Le repos avant l'intervention suivante ({_fmt_date(following.date)} à "
        f"{format_hhmm(following.start_time)}) serait insuffisant : {rest:.1f}h.",
        blocking=True,
    )]


def check_daily_rest(ctx: RuleContext) -> list[RuleFinding]:
    return check_previous_rest(ctx) + check_next_rest(ctx)


# ── Absences ──────────────────────────────────────────────────────────────────

def check_absence_conflict(ctx: RuleContext) -> list[RuleFinding]:
    candidate = ctx.candidate
    for absence in ctx.absences:
        if absence.employee_id != candidate.employee_id or absence.status != "approved":
            continue
        if absence.start_date <= candidate.date <= absence.end_date:
            label = ABSENCE_LABELS.get(absence.absence_type, absence.absence_type)
            return [finding(
                ABSENCE_CONFLICT,
                f"L'auxiliaire est absent(e) ({label}) du {_fmt_date(absence.start_date)} "
                f"au {_fmt_date(absence.end_date)}.",
                blocking=True,
            )]
    return []


# ── Pause ─────────────────────────────────────────────────────────────────────

def check_break(ctx: RuleContext) -> list[RuleFinding]:
    candidate = ctx.candidate
    if candidate.shift_kind != ShiftKind.EFFECTIVE:
        return []
    duration = shift_duration(candidate.start_time, candidate.end_time)
    if duration > BREAK_AFTER_MINUTES and (candidate.break_minutes or 0) < MIN_BREAK_MINUTES:
        return [finding(
            MANDATORY_BREAK,
            f"Pause insuffisante : {candidate.break_minutes or 0} min pour une intervention "
            f"de {duration / 60:.1f}h. Une pause de {MIN_BREAK_MINUTES} min minimum est "
            f"obligatoire au-delà de 6h de travail.",
            blocking=False,
        )]
    return []


# ── Présence de nuit ──────────────────────────────────────────────────────────

def check_night_presence_duration(ctx: RuleContext) -> list[RuleFinding]:
    candidate = ctx.candidate
    if candidate.shift_kind != ShiftKind.PRESENCE_NIGHT:
        return []
    hours = shift_duration(candidate.start_time, candidate.end_time) / 60
    if hours > NIGHT_PRESENCE_MAX_HOURS:
        return [finding(
            NIGHT_PRESENCE_MAX_DURATION,
            f"Présence de nuit de {hours:.1f}h : la durée maximale est de "
            f"{NIGHT_PRESENCE_MAX_HOURS}h.",
            blocking=True,
        )]
    return []


def consecutive_nights(candidate: ShiftCandidate, shifts: list[ShiftCandidate]) -> int:
    nights = {s.date for s in shifts if s.shift_kind == ShiftKind.PRESENCE_NIGHT}
    nights.add(candidate.date)
    count = 1
    day = candidate.date - timedelta(days=1)
    while day in nights:
        count += 1
        day -= timedelta(days=1)
    day = candidate.date + timedelta(days=1)
    while day in nights:
        count += 1
        day += timedelta(days=1)
    return count


def check_consecutive_nights(ctx: RuleContext) -> list[RuleFinding]:
    if ctx.candidate.shift_kind != ShiftKind.PRESENCE_NIGHT:
        return []
    count = consecutive_nights(ctx.candidate, ctx.employee_shifts())
    if count > MAX_CONSECUTIVE_NIGHTS:
        return [finding(
            CONSECUTIVE_NIGHTS_MAX,
            f"{count} nuits consécutives de présence : maximum {MAX_CONSECUTIVE_NIGHTS}.",
            blocking=True,
        )]
    return []


# ── Garde 24h ─────────────────────────────────────────────────────────────────

def check_guard_24h(ctx: RuleContext) -> list[RuleFinding]:
    candidate = ctx.candidate
    if candidate.shift_kind != ShiftKind.GUARD_24H:
        return []

    guard = GuardSegments(candidate.start_time, candidate.guard_segments)
    effective_minutes = 0
    longest_night = 0
    for seg, minutes in zip(guard.segments, guard.durations()):
        if seg.kind == SegmentKind.EFFECTIVE:
            effective_minutes += max(0, minutes - seg.break_minutes)
        elif seg.kind == SegmentKind.PRESENCE_NIGHT:
            longest_night = max(longest_night, minutes)

    findings = []
    if effective_minutes / 60 > GUARD_MAX_EFFECTIVE_HOURS:
        findings.append(finding(
            GUARD_24H_EFFECTIVE_MAX,
            f"Garde 24h : {effective_minutes / 60:.1f}h de travail effectif au lieu de "
            f"{GUARD_MAX_EFFECTIVE_HOURS}h maximum.",
            blocking=True,
        ))
    if longest_night / 60 > GUARD_NIGHT_WARNING_HOURS:
        findings.append(finding(
            GUARD_24H_EFFECTIVE_MAX,
            f"Attention : segment de présence de nuit de {longest_night / 60:.1f}h "
            f"(au-delà de {GUARD_NIGHT_WARNING_HOURS}h).",
            blocking=False,
        ))
    return findings


def check_guard_amplitude(ctx: RuleContext) -> list[RuleFinding]:
    """
    Enchaînement effectif + présence : deux interventions sont chaînées si
    l'écart est <= 2h et que l'une des deux est une présence responsable.
    """
    candidate = ctx.candidate
    timeline = sorted(
        [*ctx.employee_shifts(), candidate],
        key=lambda s: _interval(s)[0],
    )

    chain = [timeline[0]]
    chains = []
    for shift in timeline[1:]:
        prev = chain[-1]
        gap = hours_between(_interval(prev)[1], _interval(shift)[0])
        presence = prev.shift_kind in PRESENCE_KINDS or shift.shift_kind in PRESENCE_KINDS
        if gap <= GUARD_CHAIN_GAP_HOURS and presence:
            chain.append(shift)
        else:
            chains.append(chain)
            chain = [shift]
    chains.append(chain)

    for chain in chains:
        if len(chain) < 2 or not any(s is candidate for s in chain):
            continue
        amplitude = hours_between(_interval(chain[0])[0], _interval(chain[-1])[1])
        if amplitude > GUARD_MAX_AMPLITUDE_HOURS:
            return [finding(
                GUARD_MAX_AMPLITUDE,
                f"Amplitude de garde de {amplitude:.1f}h : maximum {GUARD_MAX_AMPLITUDE_HOURS}h "
                f"entre le début du travail effectif et la fin de la présence.",
                blocking=True,
            )]
    return []


def requalification_notice(count: int) -> str:
    return (
        f"{count} interventions de nuit : la présence est requalifiée en travail effectif "
        f"(seuil de {REQUALIFICATION_THRESHOLD}, Art. 148 IDCC 3239)."
    )
