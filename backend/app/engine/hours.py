"""
Heures effectives par type d'intervention et requalification des présences de nuit.

- effective          : durée nette
- presence_day       : durée × 2/3 (Art. 137.1 IDCC 3239)
- presence_night     : 0, ou durée complète si requalifiée (Art. 148)
- guard_24h          : somme des segments (effectif net, jour × 2/3,
                       nuit complète uniquement si la garde est requalifiée)
"""
from fractions import Fraction

from app.engine.errors import StructuralInputError
from app.engine.guard import GuardSegments
from app.engine.timeutils import shift_duration
from app.engine.types import SegmentKind, ShiftCandidate, ShiftKind

# Art. 148 IDCC 3239 : requalification en travail effectif dès 4 interventions
REQUALIFICATION_THRESHOLD = 4

PRESENCE_DAY_RATIO = Fraction(2, 3)

HOURS_DECIMALS = 2


def is_requalified(shift_kind: ShiftKind | str, night_interventions_count: int | None) -> bool:
    if ShiftKind(shift_kind) not in (ShiftKind.PRESENCE_NIGHT, ShiftKind.GUARD_24H):
        return False
    return (night_interventions_count or 0) >= REQUALIFICATION_THRESHOLD


def check_candidate(shift: ShiftCandidate) -> None:
    """Invariants structurels d'une intervention (lève StructuralInputError)."""
    kind = ShiftKind(shift.shift_kind)
    if kind == ShiftKind.GUARD_24H:
        if shift.end_time != shift.start_time:
            raise StructuralInputError("Une garde 24h se termine à son heure de début")
        if not shift.guard_segments:
            raise StructuralInputError("Une garde 24h doit comporter ses segments")
        GuardSegments(shift.start_time, shift.guard_segments)
    elif shift.end_time == shift.start_time:
        raise StructuralInputError(
            "Heure de fin identique à l'heure de début : réservé à la garde 24h"
        )
    if (shift.break_minutes or 0) < 0:
        raise StructuralInputError("La pause ne peut pas être négative")


def net_minutes(shift: ShiftCandidate) -> int:
    minutes = shift_duration(shift.start_time, shift.end_time, shift.break_minutes)
    if minutes < 0:
        raise StructuralInputError(
            f"Pause de {shift.break_minutes} min supérieure à la durée de l'intervention"
        )
    return minutes


def _guard_effective_minutes(shift: ShiftCandidate) -> Fraction:
    guard = GuardSegments(shift.start_time, shift.guard_segments)
    requalified = is_requalified(shift.shift_kind, shift.night_interventions_count)
    total = Fraction(0)
    for seg, minutes in zip(guard.segments, guard.durations()):
        if seg.kind == SegmentKind.EFFECTIVE:
            net = minutes - seg.break_minutes
            if net < 0:
                raise StructuralInputError("Pause supérieure à la durée du segment")
            total += net
        elif seg.kind == SegmentKind.PRESENCE_DAY:
            total += minutes * PRESENCE_DAY_RATIO
        elif requalified:
            total += minutes
    return total


def effective_minutes(shift: ShiftCandidate) -> Fraction:
    """Exact effective minutes, before any rounding."""
    check_candidate(shift)
    kind = ShiftKind(shift.shift_kind)

    if kind == ShiftKind.GUARD_24H:
        return _guard_effective_minutes(shift)

    minutes = net_minutes(shift)
    if kind == ShiftKind.EFFECTIVE:
        return Fraction(minutes)
    if kind == ShiftKind.PRESENCE_DAY:
        return minutes * PRESENCE_DAY_RATIO
    if is_requalified(kind, shift.night_interventions_count):
        return Fraction(minutes)
    return Fraction(0)


def effective_hours(shift: ShiftCandidate) -> float:
    """Heures effectives, arrondies à 2 décimales (un seul arrondi, en fin de calcul)."""
    return round(float(effective_minutes(shift) / 60), HOURS_DECIMALS)
