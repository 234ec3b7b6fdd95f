"""
Structures de données du moteur de conformité et de paie.
Convention Collective IDCC 3239 – Particuliers employeurs.
"""
import enum
import uuid
from dataclasses import dataclass, field
from datetime import date, time

from app.engine.errors import ComputationFailure


class ShiftKind(str, enum.Enum):
    EFFECTIVE = "effective"
    PRESENCE_DAY = "presence_day"
    PRESENCE_NIGHT = "presence_night"
    GUARD_24H = "guard_24h"


class SegmentKind(str, enum.Enum):
    EFFECTIVE = "effective"
    PRESENCE_DAY = "presence_day"
    PRESENCE_NIGHT = "presence_night"


PRESENCE_KINDS = (ShiftKind.PRESENCE_DAY, ShiftKind.PRESENCE_NIGHT)


@dataclass
class GuardSegment:
    start_time: time
    kind: SegmentKind = SegmentKind.EFFECTIVE
    break_minutes: int = 0


@dataclass
class ShiftCandidate:
    """
    Intervention à valider ou à chiffrer.

    Sert aussi pour les interventions déjà planifiées (historique) : la forme
    de lecture est la même. `id` est l'identité existante lors d'une
    modification, exclue des contrôles de conflit avec soi-même.
    """
    contract_id: uuid.UUID | str
    employee_id: uuid.UUID | str
    date: date
    start_time: time
    end_time: time
    break_minutes: int = 0
    shift_kind: ShiftKind = ShiftKind.EFFECTIVE
    night_interventions_count: int = 0
    has_night_action: bool = False
    guard_segments: list[GuardSegment] | None = None
    id: uuid.UUID | str | None = None

    def is_same_shift(self, other: "ShiftCandidate") -> bool:
        return self.id is not None and other.id == self.id


@dataclass
class AbsenceRecord:
    id: uuid.UUID | str
    employee_id: uuid.UUID | str
    absence_type: str
    start_date: date
    end_date: date
    status: str = "approved"


@dataclass
class RuleFinding:
    code: str
    message: str
    rule: str
    blocking: bool


@dataclass
class ComplianceRuleResult:
    errors: list[RuleFinding] = field(default_factory=list)
    warnings: list[RuleFinding] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def add(self, finding: RuleFinding) -> None:
        if finding.blocking:
            self.errors.append(finding)
        else:
            self.warnings.append(finding)

    def codes(self) -> set[str]:
        return {f.code for f in self.errors} | {f.code for f in self.warnings}


@dataclass
class ContractTerms:
    weekly_hours: float
    hourly_rate: float


PAY_COMPONENTS = (
    "base_pay",
    "sunday_majoration",
    "holiday_majoration",
    "night_majoration",
    "overtime_majoration",
    "presence_responsible_pay",
    "night_presence_allowance",
)


@dataclass
class ComputedPay:
    base_pay: float = 0.0
    sunday_majoration: float = 0.0
    holiday_majoration: float = 0.0
    night_majoration: float = 0.0
    overtime_majoration: float = 0.0
    presence_responsible_pay: float = 0.0
    night_presence_allowance: float = 0.0
    total_pay: float = 0.0

    def __post_init__(self):
        expected = round(sum(getattr(self, name) for name in PAY_COMPONENTS), 2)
        if abs(expected - self.total_pay) > 0.005:
            raise ComputationFailure(
                f"total_pay {self.total_pay:.2f} ≠ somme des composantes {expected:.2f}"
            )

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in (*PAY_COMPONENTS, "total_pay")}


@dataclass
class LeaveBalance:
    acquired_days: float = 0.0
    taken_days: float = 0.0
    adjustment_days: float = 0.0

    @property
    def remaining_days(self) -> float:
        return self.acquired_days + self.adjustment_days - self.taken_days
