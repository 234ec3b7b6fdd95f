"""
Arithmétique des plages horaires : durée nette, passage de minuit, heures de nuit.

Convention unique : si fin <= début, la fin est le lendemain (+24h).
"""
from datetime import date, datetime, time, timedelta
from typing import NamedTuple

from app.engine.errors import StructuralInputError

MINUTES_PER_DAY = 24 * 60

# Plage de nuit légale (IDCC 3239) : 21h–6h
NIGHT_START = time(21, 0)
NIGHT_END = time(6, 0)


class NightOverlap(NamedTuple):
    minutes: int
    touches: bool

    @property
    def hours(self) -> float:
        return self.minutes / 60


def parse_hhmm(value: str | time) -> time:
    """Accepte "HH:MM" (ou un objet time déjà construit)."""
    if isinstance(value, time):
        return value
    try:
        hours, minutes = value.strip().split(":")[:2]
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError) as exc:
        raise StructuralInputError(f"Heure invalide : {value!r}") from exc


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    minutes %= MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def format_hhmm(t: time) -> str:
    return t.strftime("%H:%M")


def shift_duration(start: time, end: time, break_minutes: int = 0) -> int:
    """
    Net minutes between start and end minus the break.

    end <= start crosses midnight (09:00→09:00 is a full day). A negative
    result is returned as is: it signals malformed input, use
    display_minutes() for an explicit floor at 0.
    """
    start_m = to_minutes(start)
    end_m = to_minutes(end)
    if end_m <= start_m:
        end_m += MINUTES_PER_DAY
    return end_m - start_m - (break_minutes or 0)


def display_minutes(minutes: int) -> int:
    return max(0, minutes)


def shift_interval(day: date, start: time, end: time) -> tuple[datetime, datetime]:
    """Début et fin réels (la fin passe au lendemain si end <= start)."""
    start_dt = datetime.combine(day, start)
    end_dt = datetime.combine(day, end)
    if end_dt <= start_dt:
        end_dt += timedelta(days=1)
    return start_dt, end_dt


def intervals_overlap(a: tuple[datetime, datetime], b: tuple[datetime, datetime]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def _overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> int:
    return max(0, min(a_end, b_end) - max(a_start, b_start))


def night_window_overlap(
    start: time,
    end: time,
    window_start: time = NIGHT_START,
    window_end: time = NIGHT_END,
) -> NightOverlap:
    """
    Minutes de la plage [start, end) situées dans la fenêtre de nuit.

    La plage et la fenêtre peuvent toutes deux passer minuit. On projette la
    fenêtre sur la veille, le jour même et le lendemain pour couvrir une
    plage d'au plus 24h.
    """
    s = to_minutes(start)
    e = to_minutes(end)
    if e <= s:
        e += MINUTES_PER_DAY

    ws = to_minutes(window_start)
    we = to_minutes(window_end)
    if we <= ws:
        we += MINUTES_PER_DAY

    minutes = 0
    for day_offset in (-1, 0, 1):
        shift = day_offset * MINUTES_PER_DAY
        minutes += _overlap(s, e, ws + shift, we + shift)

    return NightOverlap(minutes=minutes, touches=minutes > 0)


def minutes_on_day(day: date, start: time, end: time, target: date) -> int:
    """Minutes de l'intervention (datée `day`) tombant sur la date civile `target`."""
    start_dt, end_dt = shift_interval(day, start, end)
    day_start = datetime.combine(target, time(0, 0))
    day_end = day_start + timedelta(days=1)
    seconds = (min(end_dt, day_end) - max(start_dt, day_start)).total_seconds()
    return max(0, int(seconds // 60))


class WeekBounds(NamedTuple):
    start: date
    end: date


def week_bounds(day: date) -> WeekBounds:
    """Semaine civile du lundi au dimanche contenant `day`."""
    start = day - timedelta(days=day.weekday())
    return WeekBounds(start=start, end=start + timedelta(days=6))
