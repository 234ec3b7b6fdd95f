"""
Jours fériés français (métropole) via workalendar.
Utilisés pour la majoration jour férié et le décompte des jours ouvrés.
"""
from datetime import date
from functools import lru_cache

from workalendar.europe import France

_calendar = France()


@lru_cache(maxsize=32)
def get_french_holidays(year: int) -> dict[date, str]:
    """Tous les jours fériés légaux d'une année."""
    return {d: name for d, name in _calendar.holidays(year)}


def is_public_holiday(d: date) -> bool:
    return d in get_french_holidays(d.year)
