"""
Congés payés et absences : acquisition, solde, contrôle des demandes.
Convention Collective IDCC 3239 (Art. 12 pour les événements familiaux).

Période de référence : du 1er juin au 31 mai. Acquisition de 2,5 jours
ouvrables par mois travaillé, plafonnée à 30 jours.
"""
import math
from dataclasses import dataclass, field, replace
from datetime import date, timedelta

from app.engine.errors import InvalidTransition, StructuralInputError
from app.engine.types import AbsenceRecord, LeaveBalance
from app.utils.french_holidays import get_french_holidays

DAYS_PER_MONTH = 2.5
MAX_ACQUIRED_DAYS = 30
# Art. L3141-4 : 24 jours ouvrables (lundi à samedi) valent un mois de travail
WORKING_DAYS_PER_MONTH = 24
MAX_MONTHS_WORKED = 12

MAIN_LEAVE_MONTHS = range(5, 11)   # mai à octobre
MAIN_LEAVE_MIN_DAYS = 12
SICK_LEAVE_MAX_ADVANCE_DAYS = 30

# Balance consommée uniquement par les congés payés
BALANCE_CONSUMING_TYPES = {"vacation"}

# Jours accordés par événement familial (IDCC 3239 Art. 12)
FAMILY_EVENT_DAYS = {
    "marriage": 4,
    "pacs": 4,
    "birth": 3,
    "adoption": 3,
    "death_spouse": 3,
    "death_parent": 3,
    "death_child": 5,
    "death_sibling": 3,
    "death_in_law": 3,
    "child_marriage": 1,
    "disability_announcement": 2,
}

FAMILY_EVENT_LABELS = {
    "marriage": "Mariage",
    "pacs": "PACS",
    "birth": "Naissance",
    "adoption": "Adoption",
    "death_spouse": "Décès du conjoint",
    "death_parent": "Décès d'un parent",
    "death_child": "Décès d'un enfant",
    "death_sibling": "Décès d'un frère/sœur",
    "death_in_law": "Décès d'un beau-parent",
    "child_marriage": "Mariage d'un enfant",
    "disability_announcement": "Annonce handicap d'un enfant",
}

# Cycle de vie : pending -> approved | rejected (états finaux)
ABSENCE_TRANSITIONS = {
    "pending": {"approved", "rejected"},
    "approved": set(),
    "rejected": set(),
}


@dataclass
class LeaveRequest:
    employee_id: object
    absence_type: str
    start_date: date
    end_date: date
    family_event_type: str | None = None


@dataclass
class AbsenceValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class LeaveDecision:
    accepted: bool
    errors: list[str]
    warnings: list[str]
    days_requested: int
    balance_delta: float = 0.0


# ── Acquisition et solde ──────────────────────────────────────────────────────

def acquired_from_months(months: float) -> int:
    if months <= 0:
        return 0
    return math.ceil(min(months * DAYS_PER_MONTH, MAX_ACQUIRED_DAYS))


def remaining_days(balance: LeaveBalance) -> float:
    return balance.acquired_days + balance.adjustment_days - balance.taken_days


def leave_year(d: date) -> str:
    """Année de congés "2025-2026" : juin à mai."""
    if d.month >= 6:
        return f"{d.year}-{d.year + 1}"
    return f"{d.year - 1}-{d.year}"


def leave_year_bounds(year: str) -> tuple[date, date]:
    start_year, end_year = (int(part) for part in year.split("-"))
    return date(start_year, 6, 1), date(end_year, 5, 31)


def default_months_worked(contract_start: date, as_of: date, year: str | None = None) -> int:
    """
    Mois travaillés depuis le début du contrat, bornés à l'année de congés.
    Les jours ouvrables sont comptés du lundi au samedi, par tranches de 24.
    """
    year_start, year_end = leave_year_bounds(year or leave_year(as_of))
    start = max(contract_start, year_start)
    end = min(as_of, year_end)
    if start > end:
        return 0
    return min(count_working_days(start, end) // WORKING_DAYS_PER_MONTH, MAX_MONTHS_WORKED)


def fractionnement_days(days_outside_main_period: int) -> int:
    """Jours supplémentaires quand le congé principal est pris hors mai-octobre."""
    if days_outside_main_period >= 6:
        return 2
    if days_outside_main_period >= 3:
        return 1
    return 0


def take_days(balance: LeaveBalance, days: float) -> LeaveBalance:
    if days < 0:
        raise StructuralInputError("Nombre de jours négatif")
    return replace(balance, taken_days=balance.taken_days + days)


def restore_days(balance: LeaveBalance, days: float) -> LeaveBalance:
    if days < 0 or days > balance.taken_days:
        raise StructuralInputError(
            f"Impossible de restituer {days} jour(s) : {balance.taken_days} jour(s) pris"
        )
    return replace(balance, taken_days=balance.taken_days - days)


# ── Jours ouvrés ──────────────────────────────────────────────────────────────

def count_working_days(start: date, end: date) -> int:
    """Jours ouvrables (lundi à samedi) entre deux dates incluses."""
    count = 0
    current = start
    while current <= end:
        if current.weekday() != 6:
            count += 1
        current += timedelta(days=1)
    return count


def count_business_days(start: date, end: date, exclude_holidays: bool = True) -> int:
    """Jours du lundi au vendredi entre deux dates incluses, hors fériés si demandé."""
    holidays = set()
    if exclude_holidays:
        for year in range(start.year, end.year + 1):
            holidays.update(get_french_holidays(year))

    count = 0
    current = start
    while current <= end:
        if current.weekday() < 5 and current not in holidays:
            count += 1
        current += timedelta(days=1)
    return count


def in_main_leave_period(d: date) -> bool:
    return d.month in MAIN_LEAVE_MONTHS


# ── Contrôles ─────────────────────────────────────────────────────────────────

def validate_request(
    request: LeaveRequest,
    balance: LeaveBalance | None,
    exclude_holidays: bool = True,
) -> str | None:
    if request.absence_type not in BALANCE_CONSUMING_TYPES:
        return None
    if balance is None:
        return "Le solde de congés n'a pas encore été initialisé."

    requested = count_business_days(request.start_date, request.end_date, exclude_holidays)
    remaining = remaining_days(balance)
    if requested > remaining:
        return (
            f"Solde de congés insuffisant : {requested} jour(s) demandé(s), "
            f"{remaining:.1f} jour(s) disponible(s)."
        )
    return None


def _overlap_error(request: LeaveRequest, existing: list[AbsenceRecord]) -> str | None:
    for absence in existing:
        if absence.status not in ("pending", "approved"):
            continue
        if absence.employee_id != request.employee_id:
            continue
        if request.start_date <= absence.end_date and absence.start_date <= request.end_date:
            return "Une absence est déjà déclarée sur cette période."
    return None


def _sick_leave_error(request: LeaveRequest, today: date) -> str | None:
    if request.absence_type != "sick":
        return None
    if (request.start_date - today).days > SICK_LEAVE_MAX_ADVANCE_DAYS:
        return (
            f"Un arrêt maladie ne peut pas être déclaré plus de "
            f"{SICK_LEAVE_MAX_ADVANCE_DAYS} jours à l'avance."
        )
    return None


def _family_event_error(request: LeaveRequest, exclude_holidays: bool) -> str | None:
    if request.absence_type != "family_event":
        return None
    if not request.family_event_type:
        return "Veuillez sélectionner le type d'événement familial."
    max_days = FAMILY_EVENT_DAYS.get(request.family_event_type)
    if max_days is None:
        return "Type d'événement familial non reconnu."
    requested = count_business_days(request.start_date, request.end_date, exclude_holidays)
    if requested > max_days:
        label = FAMILY_EVENT_LABELS[request.family_event_type]
        return f"{label} : {max_days} jour(s) accordé(s) maximum, {requested} jour(s) demandé(s)."
    return None


def _main_period_warning(request: LeaveRequest, exclude_holidays: bool) -> str | None:
    if request.absence_type != "vacation":
        return None
    days = count_business_days(request.start_date, request.end_date, exclude_holidays)
    if days < MAIN_LEAVE_MIN_DAYS:
        return None
    if in_main_leave_period(request.start_date) and in_main_leave_period(request.end_date):
        return None
    return (
        f"Le congé principal (≥{MAIN_LEAVE_MIN_DAYS} jours) devrait être pris entre mai et "
        f"octobre. Des jours de fractionnement peuvent s'appliquer."
    )


def validate_absence_request(
    request: LeaveRequest,
    existing: list[AbsenceRecord],
    balance: LeaveBalance | None,
    *,
    today: date | None = None,
    exclude_holidays: bool = True,
) -> AbsenceValidationResult:
    today = today or date.today()
    result = AbsenceValidationResult()
    if request.end_date < request.start_date:
        result.errors.append("La date de fin précède la date de début.")
        return result

    for error in (
        _overlap_error(request, existing),
        validate_request(request, balance, exclude_holidays),
        _sick_leave_error(request, today),
        _family_event_error(request, exclude_holidays),
    ):
        if error:
            result.errors.append(error)

    warning = _main_period_warning(request, exclude_holidays)
    if warning:
        result.warnings.append(warning)
    return result


def request_leave(
    request: LeaveRequest,
    existing: list[AbsenceRecord],
    balance: LeaveBalance | None,
    *,
    today: date | None = None,
    exclude_holidays: bool = True,
) -> LeaveDecision:
    """Décision sur une demande ; le delta de solde s'applique à l'approbation."""
    check = validate_absence_request(
        request, existing, balance, today=today, exclude_holidays=exclude_holidays
    )
    days = 0
    if request.end_date >= request.start_date:
        days = count_business_days(request.start_date, request.end_date, exclude_holidays)
    delta = float(days) if check.valid and request.absence_type in BALANCE_CONSUMING_TYPES else 0.0
    return LeaveDecision(
        accepted=check.valid,
        errors=check.errors,
        warnings=check.warnings,
        days_requested=days,
        balance_delta=delta,
    )


def transition_absence(status: str, new_status: str) -> str:
    if new_status not in ABSENCE_TRANSITIONS.get(status, set()):
        raise InvalidTransition(f"Transition {status} → {new_status} non autorisée")
    return new_status
