from __future__ import annotations
from datetime import timedelta
from hashlib import md5
from typing import Dict, Iterable, Optional

from icalendar import Alarm, Calendar, Event

PRODID = "-//Uposatha Calendar (Location-aware)//uposatha//EN"


def stable_uid(e: Dict) -> str:
    key = f"{e['summary']}|{e['date'].isoformat()}|ALLDAY"
    return f"{md5(key.encode()).hexdigest()}@uposatha"


def build_ics(events: Iterable[Dict], prodid: str = PRODID,
              calname: str = "Uposatha Calendar", tzid: Optional[str] = None,
              alarms: bool = False) -> bytes:
    """Render all-day events as an iCalendar document.

    With ``alarms`` set, each event's ``"alarms"`` offsets (relative to the
    start of the day) become DISPLAY alarms.
    """
    cal = Calendar()
    cal.add("prodid", prodid)
    cal.add("version", "2.0")
    cal.add("X-WR-CALNAME", calname)
    if tzid:
        cal.add("X-WR-TIMEZONE", tzid)
    for e in events:
        ev = Event()
        ev.add("uid", stable_uid(e))
        ev.add("summary", e["summary"])
        ev.add("description", e.get("desc", ""))
        ev.add("dtstart", e["date"])
        ev.add("dtend", e["date"] + timedelta(days=1))
        if alarms:
            for offset in e.get("alarms", ()):
                al = Alarm()
                al.add("action", "DISPLAY")
                al.add("description", e["summary"])
                al.add("trigger", offset)
                ev.add_component(al)
        cal.add_component(ev)
    return cal.to_ical()
