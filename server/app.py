# server/app.py
import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from uposatha.astronomy import EphemerisUnavailable, Observer, at_local_time, observer_timezone
from uposatha.events import events_for_year
from uposatha.festivals import (
    TRADITIONS, BuddhistFestival, all_festival_definitions, check_festival,
    check_festival_by_tradition, get_upcoming_festivals,
)
from uposatha.ics import build_ics
from uposatha.observance import UposathaStatus, get_uposatha_status
from uposatha.scanners import UposathaDay, get_month_uposatha_days, get_next_uposatha

logger = logging.getLogger(__name__)

app = FastAPI(title="Uposatha Calendar API")

TRADITION_PATTERN = "^(all|" + "|".join(TRADITIONS) + ")$"


# --------- helpers ---------
def _observer(lat: float, lon: float, elev: float) -> Observer:
    return Observer(lat, lon, elev)

def _local_noon(observer: Observer, day: Optional[date]) -> datetime:
    tz = observer_timezone(observer)
    d = day or datetime.now(tz).date()
    return at_local_time(tz, d, 12)

def _status_json(st: UposathaStatus) -> dict:
    out = asdict(st)
    p = st.panchangam
    out["panchangam"] = {
        "date": p.date, "sunrise": p.sunrise, "sunset": p.sunset,
        "tithi": p.tithi, "tithi_name": p.tithi_name, "paksha": p.paksha,
        "masa": {"index": p.masa.index, "name": p.masa.name}, "timezone": p.timezone,
    }
    return out

def _day_json(day: UposathaDay) -> dict:
    return {"date": day.date.date(), "status": _status_json(day.status)}

def _festival_json(f: Optional[BuddhistFestival]) -> Optional[dict]:
    if f is None:
        return None
    out = asdict(f)
    out["tithi_index"] = list(f.tithis())
    return out

@app.exception_handler(EphemerisUnavailable)
def ephemeris_unavailable(request, exc):
    logger.error("ephemeris unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Ephemeris unavailable"})

# --------------------- routes ---------------------
@app.get("/", response_class=PlainTextResponse)
def root():
    return "Uposatha Calendar API is running. Try /docs for the interactive UI."

@app.get("/health")
def health():
    return {"ok": True}

@app.get("/status")
def status(
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    elev: float = Query(0.0, description="Elevation (m)"),
    day: Optional[date] = Query(None, description="Civil date, defaults to today at the observer"),
):
    obs = _observer(lat, lon, elev)
    return _status_json(get_uposatha_status(_local_noon(obs, day), obs))

@app.get("/month")
def month(
    lat: float = Query(...), lon: float = Query(...), elev: float = 0.0,
    year: int = Query(..., ge=1), month: int = Query(..., ge=1, le=12),
):
    obs = _observer(lat, lon, elev)
    return [_day_json(d) for d in get_month_uposatha_days(year, month, obs)]

@app.get("/next")
def next_uposatha(
    lat: float = Query(...), lon: float = Query(...), elev: float = 0.0,
    start: Optional[date] = Query(None),
):
    obs = _observer(lat, lon, elev)
    found = get_next_uposatha(_local_noon(obs, start), obs)
    return _day_json(found) if found else None

@app.get("/festival")
def festival(
    lat: float = Query(...), lon: float = Query(...), elev: float = 0.0,
    day: Optional[date] = Query(None),
    tradition: str = Query("all", pattern=TRADITION_PATTERN),
):
    obs = _observer(lat, lon, elev)
    when = _local_noon(obs, day)
    if tradition == "all":
        return _festival_json(check_festival(when, obs))
    return _festival_json(check_festival_by_tradition(when, obs, tradition))

@app.get("/festivals")
def festivals():
    return [_festival_json(f) for f in all_festival_definitions()]

@app.get("/upcoming")
def upcoming(
    lat: float = Query(...), lon: float = Query(...), elev: float = 0.0,
    start: Optional[date] = Query(None),
    days: int = Query(365, ge=1, le=3660),
):
    obs = _observer(lat, lon, elev)
    when = _local_noon(obs, start)
    return [
        {"festival": _festival_json(m.festival), "date": m.date.date(), "days_remaining": m.days_remaining}
        for m in get_upcoming_festivals(when, obs, days)
    ]

@app.get("/ics")
def ics(
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    elev: float = Query(0.0, description="Elevation (m)"),
    year: int = Query(..., description="Start year, e.g. 2026"),
    year_to: Optional[int] = Query(None, description="End year (inclusive). If omitted, equals 'year'."),
    tradition: str = Query("all", pattern=TRADITION_PATTERN),
    no_uposatha: bool = False,
    no_optional: bool = False,
    no_festivals: bool = False,
    reminders: bool = False,
):
    obs = _observer(lat, lon, elev)
    yf = year
    yt = year_to or year
    if yt < yf:
        raise HTTPException(status_code=422, detail="year_to must not be before year")

    all_events = []
    for y in range(yf, yt + 1):
        all_events.extend(
            events_for_year(
                obs, y,
                include_uposatha=not no_uposatha,
                include_optional=not no_optional,
                include_festivals=not no_festivals,
                tradition=tradition,
            )
        )

    name = f"uposatha-calendar-{yf}.ics" if yt == yf else f"uposatha-calendar-{yf}-{yt}.ics"
    payload = build_ics(all_events, calname="Uposatha Calendar",
                        tzid=observer_timezone(obs).zone, alarms=reminders)
    headers = {"Content-Disposition": f'attachment; filename="{name}"'}
    return StreamingResponse(iter([payload]), media_type="text/calendar", headers=headers)
