"""Orthodox Easter computus.

The feast is computed on the Julian calendar (Meeus' Julian algorithm) and then
shifted onto the Gregorian calendar by the number of days the two calendars
have drifted apart in that century.
"""
from __future__ import annotations

from datetime import date, timedelta

# (first year the offset applies, days to add), newest first
_JULIAN_GREGORIAN_OFFSETS = (
    (2100, 14),
    (1900, 13),
    (1800, 12),
    (1700, 11),
    (1582, 10),
)


def julian_to_gregorian_offset(year: int) -> int:
    """Days to add to a Julian date in ``year`` to get the Gregorian date."""
    for first_year, offset in _JULIAN_GREGORIAN_OFFSETS:
        if year >= first_year:
            return offset
    return 0


def get_orthodox_easter_date(year: int) -> date:
    """Return Orthodox Easter Sunday for ``year`` as a Gregorian date.

    >>> get_orthodox_easter_date(2024)
    datetime.date(2024, 5, 5)
    """
    a = year % 4
    b = year % 7
    c = year % 19
    d = (19 * c + 15) % 30
    e = (2 * a + 4 * b - d + 34) % 7
    month = (d + e + 114) // 31  # 3 = March, 4 = April (Julian)
    day = (d + e + 114) % 31 + 1

    julian = date(year, month, day)
    return julian + timedelta(days=julian_to_gregorian_offset(year))
