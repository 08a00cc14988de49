"""Month/year/next-day enumeration over the observance engine.

Every day is sampled at 06:00 local time at the observer so that the civil
date never straddles midnight in another zone.
"""
from __future__ import annotations
import calendar
import logging
from datetime import date, datetime, timedelta
from typing import List, NamedTuple, Optional

from .astronomy import DateLike, Ephemeris, Observer, at_local_time, civil_date, observer_timezone
from .observance import UposathaStatus, get_uposatha_status

logger = logging.getLogger(__name__)

SAMPLE_HOUR = 6
NEXT_UPOSATHA_LIMIT = 30


class UposathaDay(NamedTuple):
    date: datetime   # 06:00 local on the observance day
    status: UposathaStatus


def _observed(status: UposathaStatus) -> bool:
    return status.is_uposatha or status.is_optional


def get_month_uposatha_days(year: int, month: int, observer: Observer,
                            ephemeris: Optional[Ephemeris] = None) -> List[UposathaDay]:
    """Uposatha and optional days in a Gregorian month (``month`` is 1..12)."""
    tz = observer_timezone(observer)
    _, days_in_month = calendar.monthrange(year, month)
    out: List[UposathaDay] = []
    for day in range(1, days_in_month + 1):
        at = at_local_time(tz, date(year, month, day), SAMPLE_HOUR)
        status = get_uposatha_status(at, observer, ephemeris)
        if _observed(status):
            out.append(UposathaDay(at, status))
    return out


def get_year_uposatha_days(year: int, observer: Observer,
                           ephemeris: Optional[Ephemeris] = None) -> List[UposathaDay]:
    out: List[UposathaDay] = []
    for month in range(1, 13):
        out.extend(get_month_uposatha_days(year, month, observer, ephemeris))
    logger.debug("%d observance days in %d for %s", len(out), year, observer)
    return out


def get_next_uposatha(start: DateLike, observer: Observer,
                      ephemeris: Optional[Ephemeris] = None,
                      limit: int = NEXT_UPOSATHA_LIMIT) -> Optional[UposathaDay]:
    """First Uposatha or optional day on or after the civil date of ``start``.

    Looks ``limit`` days ahead and returns None past that.
    """
    tz = observer_timezone(observer)
    d = civil_date(start, tz)
    for _ in range(limit):
        at = at_local_time(tz, d, SAMPLE_HOUR)
        status = get_uposatha_status(at, observer, ephemeris)
        if _observed(status):
            return UposathaDay(at, status)
        d += timedelta(days=1)
    logger.info("no observance day within %d days of %s for %s", limit, start, observer)
    return None
