"""
Calendar helpers for booking requests.

Travel dates reach the service either as Gregorian ISO strings or as
Persian (Jalali) calendar strings, possibly written with Persian digits,
e.g. "۱۴۰۵/۰۷/۲۸". Trip times are stored as times of day and may arrive
as "HH:MM", "HH:MM:SS" or as a full ISO timestamp whose clock part is the
departure time.
"""

import re
from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional, Union

PERSIAN_DIGITS = "۰۱۲۳۴۵۶۷۸۹"
ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"

WEEKDAY_TOKENS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]

DAY_NAMES = {
    "sun": "Sunday",
    "mon": "Monday",
    "tue": "Tuesday",
    "wed": "Wednesday",
    "thu": "Thursday",
    "fri": "Friday",
    "sat": "Saturday",
}

# Jalali years are far below any Gregorian year we would ever book for.
JALALI_YEAR_CEILING = 1700

_DIGIT_TABLE = str.maketrans(
    PERSIAN_DIGITS + ARABIC_INDIC_DIGITS,
    "0123456789" * 2,
)
_YMD_PATTERN = re.compile(r"^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})$")
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")


def convert_to_english_digits(value: str) -> str:
    """Replace Persian and Arabic-Indic digits with ASCII digits"""
    return value.translate(_DIGIT_TABLE)


def convert_to_persian_digits(value: Union[int, str]) -> str:
    """Replace ASCII digits with Persian digits"""
    return re.sub(r"\d", lambda m: PERSIAN_DIGITS[int(m.group())], str(value))


def _jalali_leap_days(jy: int) -> int:
    years = jy + 1595
    return ((years // 33) * 8) + (((years % 33) + 3) // 4)


def is_jalali_leap_year(jy: int) -> bool:
    """Whether Esfand of the given Jalali year has 30 days"""
    return _jalali_leap_days(jy + 1) - _jalali_leap_days(jy) == 1


def jalali_to_gregorian(jy: int, jm: int, jd: int) -> date:
    """
    Convert a Jalali (Solar Hijri) calendar date to a Gregorian date.

    Raises ValueError when the Jalali month or day is out of range.
    """
    if not 1 <= jm <= 12:
        raise ValueError(f"Jalali month out of range: {jm}")
    month_length = 31 if jm <= 6 else 30
    if jm == 12 and not is_jalali_leap_year(jy):
        month_length = 29
    if not 1 <= jd <= month_length:
        raise ValueError(f"Jalali day out of range: {jd}")

    jy += 1595
    days = -355668 + (365 * jy) + ((jy // 33) * 8) + (((jy % 33) + 3) // 4) + jd
    days += (jm - 1) * 31 if jm < 7 else ((jm - 7) * 30) + 186

    gy = 400 * (days // 146097)
    days %= 146097
    if days > 36524:
        days -= 1
        gy += 100 * (days // 36524)
        days %= 36524
        if days >= 365:
            days += 1
    gy += 4 * (days // 1461)
    days %= 1461
    if days > 365:
        gy += (days - 1) // 365
        days = (days - 1) % 365

    gd = days + 1
    leap = (gy % 4 == 0 and gy % 100 != 0) or gy % 400 == 0
    month_days = [0, 31, 29 if leap else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
    gm = 1
    while gm <= 12 and gd > month_days[gm]:
        gd -= month_days[gm]
        gm += 1
    return date(gy, gm, gd)


def convert_persian_date_to_gregorian(value: str) -> str:
    """
    Return a Gregorian ISO date string for a Jalali "YYYY/MM/DD" input.

    Anything that is not a Jalali date is returned with its digits
    normalized and otherwise untouched.
    """
    normalized = convert_to_english_digits(value.strip())
    match = _YMD_PATTERN.match(normalized)
    if not match:
        return normalized
    year, month, day = (int(part) for part in match.groups())
    if year >= JALALI_YEAR_CEILING:
        return f"{year:04d}-{month:02d}-{day:02d}"
    try:
        return jalali_to_gregorian(year, month, day).isoformat()
    except ValueError:
        return normalized


def normalize_travel_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Normalize a travel date to a Gregorian calendar date, or None if invalid"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    converted = convert_persian_date_to_gregorian(value)
    try:
        return date.fromisoformat(converted)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(converted.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_time_of_day(value: Union[str, time, datetime, None]) -> Optional[time]:
    """Extract the hour and minute of a departure time, or None if malformed"""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if not isinstance(value, str):
        return None

    text = convert_to_english_digits(value.strip())
    match = _TIME_PATTERN.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            return None
        return time(hours, minutes)

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parse_time_of_day(parsed)


def format_time_of_day(value: Any) -> Any:
    """"HH:MM" for time and datetime values; anything else is returned unchanged"""
    if isinstance(value, (time, datetime)):
        return parse_time_of_day(value).strftime("%H:%M")
    return value


def weekday_token(day: date) -> str:
    """Weekday token in sun=0 .. sat=6 order"""
    return WEEKDAY_TOKENS[(day.weekday() + 1) % 7]


def format_day_names(tokens: Iterable[str]) -> List[str]:
    return [DAY_NAMES.get(token, token) for token in tokens]
