from __future__ import annotations
import calendar
import logging
from datetime import date
from typing import Dict, List, Optional

from .astronomy import Ephemeris, Observer, observer_timezone
from .festivals import get_upcoming_festivals
from .reminders import FESTIVAL_ALARMS, UPOSATHA_ALARMS
from .scanners import get_year_uposatha_days

logger = logging.getLogger(__name__)


def uposatha_events_for_year(observer: Observer, year: int, *, include_optional: bool = True,
                             ephemeris: Optional[Ephemeris] = None) -> List[Dict]:
    tz = observer_timezone(observer)
    out: List[Dict] = []
    for day in get_year_uposatha_days(year, observer, ephemeris):
        st = day.status
        p = st.panchangam
        desc = f"{st.tithi_name}, {st.paksha} Paksha at sunrise; {p.masa.name} ({tz.zone})."
        if st.is_uposatha:
            out.append({"summary": st.label, "date": day.date.date(), "desc": desc,
                        "alarms": UPOSATHA_ALARMS})
        elif include_optional:
            out.append({"summary": f"Optional: {st.label}", "date": day.date.date(), "desc": desc})
    return out


def festival_events_for_year(observer: Observer, year: int, *, tradition: Optional[str] = None,
                             ephemeris: Optional[Ephemeris] = None) -> List[Dict]:
    days = 366 if calendar.isleap(year) else 365
    out: List[Dict] = []
    for match in get_upcoming_festivals(date(year, 1, 1), observer, days, ephemeris):
        f = match.festival
        if tradition not in (None, "all") and f.tradition != tradition:
            continue
        desc = f"{f.description} ({f.tradition}{', ' + f.region if f.region else ''})."
        out.append({"summary": f.name, "date": match.date, "desc": desc,
                    "alarms": FESTIVAL_ALARMS})
    return out


# ---------------- Orchestrator -----------------
def events_for_year(
    observer: Observer, year: int, *,
    include_uposatha: bool = True,
    include_optional: bool = True,
    include_festivals: bool = True,
    tradition: Optional[str] = None,
    ephemeris: Optional[Ephemeris] = None,
) -> List[Dict]:
    ev: List[Dict] = []
    if include_uposatha:
        ev += uposatha_events_for_year(observer, year, include_optional=include_optional,
                                       ephemeris=ephemeris)
    if include_festivals:
        ev += festival_events_for_year(observer, year, tradition=tradition, ephemeris=ephemeris)
    ev.sort(key=lambda e: e["date"])
    logger.info("%d events for %d at %s", len(ev), year, observer)
    return _dedup(ev)

def _dedup(events: List[Dict]) -> List[Dict]:
    seen, out = set(), []
    for e in events:
        key = (e["summary"], e["date"])
        if key not in seen:
            seen.add(key); out.append(e)
    return out
