"""
Public holiday calendar for the German federal states.

Every holiday is a rule: a function that maps a year to a date, plus the set of
regions that observe it (``None`` = nationwide). Easter-relative, fixed-date and
weekday-relative rules all share the same table.
"""
from datetime import date, timedelta
from functools import lru_cache
from typing import Callable, FrozenSet, Optional, Tuple

from .models import Holiday, Region

R = Region


def easter_sunday(year: int) -> date:
    """Easter Sunday in the Gregorian calendar (Gauss/Meeus closed form)."""
    g = year % 19
    c = year // 100
    h = (c - c // 4 - (8 * c + 13) // 25 + 19 * g + 15) % 30
    i = h - (h // 28) * (1 - (29 // (h + 1)) * ((21 - g) // 11))
    j = (year + year // 4 + i + 2 - c + c // 4) % 7
    l = i - j
    month = 3 + (l + 40) // 44
    day = l + 28 - 31 * (month // 4)
    return date(year, month, day)


def repentance_day(year: int) -> date:
    """Buß- und Bettag: the last Wednesday strictly before 23 November."""
    nov23 = date(year, 11, 23)
    back = (nov23.weekday() - 2) % 7 or 7
    return nov23 - timedelta(days=back)


def _fixed(month: int, day: int) -> Callable[[int], date]:
    return lambda year: date(year, month, day)


def _easter(offset: int) -> Callable[[int], date]:
    return lambda year: easter_sunday(year) + timedelta(days=offset)


# (name, year -> date, observing regions or None for all)
HOLIDAY_RULES: Tuple[Tuple[str, Callable[[int], date], Optional[FrozenSet[Region]]], ...] = (
    ('Neujahr', _fixed(1, 1), None),
    ('Heilige Drei Könige', _fixed(1, 6), frozenset({R.BW, R.BY, R.ST})),
    ('Karfreitag', _easter(-2), None),
    ('Ostermontag', _easter(1), None),
    ('Tag der Arbeit', _fixed(5, 1), None),
    ('Christi Himmelfahrt', _easter(39), None),
    ('Pfingstmontag', _easter(50), None),
    ('Fronleichnam', _easter(60), frozenset({R.BW, R.BY, R.HE, R.NW, R.RP, R.SL})),
    ('Mariä Himmelfahrt', _fixed(8, 15), frozenset({R.BY, R.SL})),
    ('Tag der Deutschen Einheit', _fixed(10, 3), None),
    ('Reformationstag', _fixed(10, 31),
     frozenset({R.BB, R.MV, R.SN, R.ST, R.TH, R.NI, R.SH, R.HH, R.HB})),
    ('Allerheiligen', _fixed(11, 1), frozenset({R.BW, R.BY, R.NW, R.RP, R.SL})),
    ('Buß- und Bettag', repentance_day, frozenset({R.SN})),
    ('1. Weihnachtstag', _fixed(12, 25), None),
    ('2. Weihnachtstag', _fixed(12, 26), None),
)


@lru_cache(maxsize=512)
def compute_holidays(year: int, region: Region) -> Tuple[Holiday, ...]:
    """Return the public holidays of ``region`` in ``year``, sorted by date."""
    region = Region(region)
    result = [
        Holiday(date=rule(year), name=name)
        for name, rule, regions in HOLIDAY_RULES
        if regions is None or region in regions
    ]
    result.sort(key=lambda h: h.date)
    return tuple(result)


def holiday_dates(year: int, region: Region) -> FrozenSet[date]:
    return frozenset(h.date for h in compute_holidays(year, region))


def is_holiday(day: date, region: Region) -> bool:
    return day in holiday_dates(day.year, region)
