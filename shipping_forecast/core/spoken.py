"""Spoken renderings of times and dates in broadcast style.

WHY: The introduction names the issue time and date the way an announcer
reads them ("zero five thirty", "Tuesday the second of February"), not as
digits a speech engine would read out as a number.

HOW: Small lookup tables plus two formatting functions. Both take an
aware or naive datetime and read its UTC fields.

RULES:
- Times are UTC, 24-hour, each half spoken separately
- Hours below ten are prefixed "zero"; midnight is "zero zero"
- Whole hours end in "hundred"; minutes below ten are "zero <n>"
- Dates are "<Weekday> the <ordinal> of <Month>"
"""

from __future__ import annotations

from datetime import datetime, timezone

_ONES = (
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight",
    "nine", "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen",
    "sixteen", "seventeen", "eighteen", "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty")

_ORDINALS = (
    "", "first", "second", "third", "fourth", "fifth", "sixth", "seventh",
    "eighth", "ninth", "tenth", "eleventh", "twelfth", "thirteenth",
    "fourteenth", "fifteenth", "sixteenth", "seventeenth", "eighteenth",
    "nineteenth",
)
_TENS_ORDINAL = {20: "twentieth", 30: "thirtieth"}

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def number_to_words(num: int) -> str:
    """Spell 0–59 the way a clock reading is spoken."""
    if not 0 <= num < 60:
        raise ValueError("number_to_words only handles 0-59, got {}".format(num))
    if num < 20:
        return _ONES[num]
    tens, ones = divmod(num, 10)
    if ones == 0:
        return _TENS[tens]
    return "{}-{}".format(_TENS[tens], _ONES[ones])


def ordinal_day(day: int) -> str:
    """Ordinal word for a day of the month (1 → "first", 23 → "twenty-third")."""
    if not 1 <= day <= 31:
        raise ValueError("Day of month out of range: {}".format(day))
    if day < 20:
        return _ORDINALS[day]
    tens, ones = divmod(day, 10)
    if ones == 0:
        return _TENS_ORDINAL[day]
    return "{}-{}".format(_TENS[tens], _ORDINALS[ones])


def spoken_time(moment: datetime) -> str:
    """Render a time as read on air, e.g. 05:30 → "zero five thirty"."""
    moment = _utc(moment)
    if moment.hour == 0:
        hours = "zero zero"
    elif moment.hour < 10:
        hours = "zero " + number_to_words(moment.hour)
    else:
        hours = number_to_words(moment.hour)

    if moment.minute == 0:
        minutes = "hundred"
    elif moment.minute < 10:
        minutes = "zero " + number_to_words(moment.minute)
    else:
        minutes = number_to_words(moment.minute)
    return "{} {}".format(hours, minutes)


def spoken_date(moment: datetime, include_on: bool = False) -> str:
    """Render a date as read on air, e.g. "Tuesday the second of February"."""
    moment = _utc(moment)
    text = "{} the {} of {}".format(
        _WEEKDAYS[moment.weekday()], ordinal_day(moment.day), _MONTHS[moment.month - 1]
    )
    return "on " + text if include_on else text
