"""Cron expression parsing for APScheduler triggers.

Accepts two dialects:

- Quartz (6 or 7 fields): ``sec min hour day-of-month month day-of-week [year]``,
  with ``?`` as "no specific value" and day-of-week numbers 1-7 meaning SUN-SAT.
- crontab (5 fields): ``min hour day-of-month month day-of-week``, with
  day-of-week numbers 0-7 where both 0 and 7 mean Sunday.

Weekday fields are expanded to explicit day names because APScheduler numbers
weekdays from Monday. Quartz ``L``, ``W`` and ``#`` modifiers are rejected.
"""

from __future__ import annotations

import re

from apscheduler.triggers.cron import CronTrigger  # type: ignore[import-untyped]

_DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
_DAY_OF_MONTH_MODIFIERS = re.compile(r"[LW]", re.IGNORECASE)
_DAY_OF_WEEK_LAST = re.compile(r"^\d*L$", re.IGNORECASE)


def _weekday_name(number: int, *, quartz: bool) -> str:
    if quartz:
        if not 1 <= number <= 7:
            msg = f"Day-of-week {number} is out of range 1-7"
            raise ValueError(msg)
        return _DAY_NAMES[number - 1]
    if not 0 <= number <= 7:
        msg = f"Day-of-week {number} is out of range 0-7"
        raise ValueError(msg)
    return _DAY_NAMES[number % 7]


def _day_number(token: str, *, quartz: bool) -> int:
    """Position of a weekday token in the expression's own numbering."""
    if token.isdigit():
        number = int(token)
        _weekday_name(number, quartz=quartz)
        return number
    name = token.lower()
    if name not in _DAY_NAMES:
        msg = f"Unknown day-of-week '{token}'"
        raise ValueError(msg)
    return _DAY_NAMES.index(name) + (1 if quartz else 0)


def _expand_day_of_week(item: str, *, quartz: bool) -> list[str]:
    base, slash, step_text = item.partition("/")
    if slash and (not step_text.isdigit() or int(step_text) == 0):
        msg = f"Invalid day-of-week step in '{item}'"
        raise ValueError(msg)
    step = int(step_text) if step_text else 1
    first, last = (1, 7) if quartz else (0, 6)

    if base in ("*", "?"):
        start, end = first, last
    elif "-" in base:
        low, _, high = base.partition("-")
        start, end = _day_number(low, quartz=quartz), _day_number(high, quartz=quartz)
        if start > end:
            msg = f"Day-of-week range '{base}' runs backwards"
            raise ValueError(msg)
    else:
        start = _day_number(base, quartz=quartz)
        end = max(start, last) if slash else start

    return [_weekday_name(number, quartz=quartz) for number in range(start, end + 1, step)]


def _convert_day_of_week(field: str, *, quartz: bool) -> str:
    if field in ("*", "?"):
        return "*"
    if "#" in field:
        msg = f"Unsupported day-of-week modifier '#' in '{field}'"
        raise ValueError(msg)

    # Expanded to explicit names: APScheduler ranges count from Monday, so a
    # Sunday-first range such as 0-4 cannot be passed through.
    names: list[str] = []
    for item in field.split(","):
        if _DAY_OF_WEEK_LAST.match(item):
            msg = f"Unsupported day-of-week modifier 'L' in '{field}'"
            raise ValueError(msg)
        for name in _expand_day_of_week(item, quartz=quartz):
            if name not in names:
                names.append(name)
    return ",".join(names)


def _convert_day_of_month(field: str) -> str:
    if field == "?":
        return "*"
    if _DAY_OF_MONTH_MODIFIERS.search(field):
        msg = f"Unsupported day-of-month modifier in '{field}'"
        raise ValueError(msg)
    return field


def build_trigger(expression: str, timezone: str = "UTC") -> CronTrigger:
    """Build a CronTrigger from a Quartz or crontab expression.

    Args:
        expression: 5, 6 or 7 whitespace-separated cron fields.
        timezone: Timezone the fields are interpreted in.

    Raises:
        ValueError: The expression is malformed or uses unsupported syntax.
    """
    fields = (expression or "").split()

    if len(fields) == 5:
        minute, hour, day, month, day_of_week = fields
        return CronTrigger(
            second="0",
            minute=minute,
            hour=hour,
            day=_convert_day_of_month(day),
            month=month.lower(),
            day_of_week=_convert_day_of_week(day_of_week, quartz=False),
            timezone=timezone,
        )

    if len(fields) in (6, 7):
        second, minute, hour, day, month, day_of_week = fields[:6]
        year = fields[6] if len(fields) == 7 else None
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=_convert_day_of_month(day),
            month=month.lower(),
            day_of_week=_convert_day_of_week(day_of_week, quartz=True),
            year=year,
            timezone=timezone,
        )

    msg = f"Cron expression '{expression}' must have 5, 6 or 7 fields"
    raise ValueError(msg)


__all__ = ["build_trigger"]
