from occasions.triggers.easter import get_orthodox_easter_date, julian_to_gregorian_offset
from occasions.triggers.matcher import (
    birthday_matches,
    event_matches,
    find_matching_users,
    is_leap_year,
)

__all__ = [
    "birthday_matches",
    "event_matches",
    "find_matching_users",
    "get_orthodox_easter_date",
    "is_leap_year",
    "julian_to_gregorian_offset",
]
