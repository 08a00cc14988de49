"""Reminder instants for Uposatha days and festivals.

Only the planning lives here; delivering reminders is the caller's concern.

    Uposatha (primary days)   18:00 local the evening before, 05:00 local the day itself
    Festivals                 09:00 local, three days before
"""
from __future__ import annotations
import logging
from datetime import date, datetime, timedelta
from typing import List, NamedTuple, Optional

import pytz

from .astronomy import (
    DateLike, Ephemeris, Observer, at_local_time, civil_date, local_instant, observer_timezone,
)
from .festivals import get_upcoming_festivals
from .scanners import get_month_uposatha_days

logger = logging.getLogger(__name__)

UPOSATHA_EVE = 1
UPOSATHA_MORNING = 2
FESTIVAL = 3

EVE_HOUR = 18
MORNING_HOUR = 5
FESTIVAL_HOUR = 9
FESTIVAL_LEAD_DAYS = 3

# Offsets from the start of an all-day event, for calendar alarms.
UPOSATHA_ALARMS = (timedelta(hours=EVE_HOUR - 24), timedelta(hours=MORNING_HOUR))
FESTIVAL_ALARMS = (timedelta(days=-FESTIVAL_LEAD_DAYS, hours=FESTIVAL_HOUR),)


class Reminder(NamedTuple):
    id: int
    title: str
    body: str
    at: datetime
    kind: int


def reminder_id(day: date, kind: int) -> int:
    """``<kind><yymmdd>``, unique per kind and day."""
    return int(f"{kind}{day:%y%m%d}")


def _month_steps(year: int, month: int, count: int):
    for _ in range(count):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def uposatha_reminders(observer: Observer, start: Optional[DateLike] = None, months: int = 6,
                       now: Optional[datetime] = None,
                       ephemeris: Optional[Ephemeris] = None) -> List[Reminder]:
    tz = observer_timezone(observer)
    now = local_instant(now, tz) if now is not None else datetime.now(pytz.utc)
    first = civil_date(start if start is not None else now, tz)

    out: List[Reminder] = []
    for year, month in _month_steps(first.year, first.month, months):
        for day in get_month_uposatha_days(year, month, observer, ephemeris):
            if not day.status.is_uposatha:
                continue
            d = day.date.date()
            out.append(Reminder(reminder_id(d, UPOSATHA_EVE), "Uposatha Tomorrow",
                                f"Prepare for {day.status.label}.",
                                at_local_time(tz, d - timedelta(days=1), EVE_HOUR), UPOSATHA_EVE))
            out.append(Reminder(reminder_id(d, UPOSATHA_MORNING), "Uposatha Today",
                                f"Today is {day.status.label}.",
                                at_local_time(tz, d, MORNING_HOUR), UPOSATHA_MORNING))
    return [r for r in out if r.at > now]


def festival_reminders(observer: Observer, start: Optional[DateLike] = None, days: int = 365,
                       now: Optional[datetime] = None, lead_days: int = FESTIVAL_LEAD_DAYS,
                       ephemeris: Optional[Ephemeris] = None) -> List[Reminder]:
    tz = observer_timezone(observer)
    now = local_instant(now, tz) if now is not None else datetime.now(pytz.utc)
    begin = start if start is not None else now

    out: List[Reminder] = []
    for match in get_upcoming_festivals(begin, observer, days, ephemeris):
        d = civil_date(match.date, tz)
        name = match.festival.name
        out.append(Reminder(reminder_id(d, FESTIVAL), f"Upcoming Festival: {name}",
                            f"{name} is in {lead_days} days.",
                            at_local_time(tz, d - timedelta(days=lead_days), FESTIVAL_HOUR), FESTIVAL))
    kept = [r for r in out if r.at > now]
    logger.debug("%d of %d festival reminders still ahead of %s", len(kept), len(out), now)
    return kept
