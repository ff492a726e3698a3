from __future__ import annotations

import calendar
import datetime as dt
from typing import List

# First and last draw slot of the day; 23:00 itself is a slot.
FIRST_SLOT = dt.time(8, 30)
LAST_SLOT = dt.time(23, 0)
SLOT_MINUTES = 15

# Fixed English abbreviations; strftime("%b") follows the process locale.
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def days_in_month(now: dt.datetime | dt.date) -> int:
    return calendar.monthrange(now.year, now.month)[1]


def build_date_axis(now: dt.datetime | dt.date, n_days: int) -> List[dt.date]:
    """Dates from `now` going back `n_days - 1` days, most recent first."""
    today = now.date() if isinstance(now, dt.datetime) else now
    return [today - dt.timedelta(days=i) for i in range(n_days)]


def build_time_axis() -> List[dt.time]:
    """Time-of-day slots every 15 minutes from 08:30 through 23:00."""
    slots: List[dt.time] = []
    minutes = FIRST_SLOT.hour * 60 + FIRST_SLOT.minute
    last = LAST_SLOT.hour * 60 + LAST_SLOT.minute
    while minutes <= last:
        slots.append(dt.time(minutes // 60, minutes % 60))
        minutes += SLOT_MINUTES
    return slots


def date_label(d: dt.date) -> str:
    return f"{d.day:02d}\n{MONTHS[d.month - 1]}"


def time_label(t: dt.time) -> str:
    # 24h digits plus the meridiem marker, e.g. "13:15\nPM"
    return f"{t.hour:02d}:{t.minute:02d}\n{'AM' if t.hour < 12 else 'PM'}"


def slot_instant(d: dt.date, t: dt.time, tz: dt.tzinfo) -> dt.datetime:
    """Exact instant of a (date, time-of-day) slot, normalised to UTC."""
    return dt.datetime.combine(d, t, tzinfo=tz).astimezone(dt.timezone.utc)
