from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from math import floor
from typing import List, NamedTuple, Optional, Protocol, Tuple, Union

import pytz
from astral import Observer as AstralObserver
from astral.sun import sun
from skyfield import almanac
from skyfield.api import Loader
from timezonefinder import TimezoneFinder

from .config import get_settings

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

TITHI_NAMES: List[str] = [
    "Pratipada", "Dwitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dwadashi", "Trayodashi", "Chaturdashi", "Purnima",
    "Pratipada", "Dwitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dwadashi", "Trayodashi", "Chaturdashi", "Amavasya",
]

MASA_NAMES: List[str] = ["Chaitra", "Vaishakha", "Jyeshtha", "Ashadha", "Shravana", "Bhadrapada",
                         "Ashwin", "Kartika", "Margashirsha", "Pausha", "Magha", "Phalguna"]


class EphemerisUnavailable(RuntimeError):
    """The JPL kernel or timescale could not be loaded."""


class Observer(NamedTuple):
    latitude: float
    longitude: float
    elevation: float = 0.0


class Masa(NamedTuple):
    index: int
    name: str


@dataclass(frozen=True)
class Panchangam:
    date: date                    # local civil date at the observer
    sunrise: Optional[datetime]   # None during polar day/night
    sunset: Optional[datetime]
    tithi: int                    # 0..29, in effect at sunrise
    tithi_name: str
    paksha: str
    masa: Masa
    timezone: str


class Ephemeris(Protocol):
    def get_panchangam(self, when: DateLike, observer: Observer) -> Panchangam: ...

    def get_tithi_at_time(self, instant: DateLike) -> float: ...


# ---------------- Ephemerides ----------------
_eph = None
_ts = None
def _load_ephem():
    global _eph, _ts
    if _eph is None or _ts is None:
        settings = get_settings()
        load = Loader(settings.data_dir or ".")
        try:
            _eph = load(settings.ephemeris_file)
            _ts = load.timescale()
        except (OSError, ValueError) as exc:
            _eph = _ts = None
            raise EphemerisUnavailable(f"cannot load {settings.ephemeris_file}: {exc}") from exc
        logger.debug("loaded ephemeris %s from %s", settings.ephemeris_file, load.directory)
    return _eph, _ts

# --------------- Timezone & Rise/Set ----------
@lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    return TimezoneFinder()

@lru_cache(maxsize=256)
def iana_timezone_for(lat: float, lon: float):
    tzname = _timezone_finder().timezone_at(lng=lon, lat=lat) or "UTC"
    return pytz.timezone(tzname)

def local_sun_times(observer: Observer, day: date, tz) -> Tuple[Optional[datetime], Optional[datetime]]:
    obs = AstralObserver(observer.latitude, observer.longitude, observer.elevation)
    try:
        sdict = sun(obs, date=day, tzinfo=tz)
    except ValueError:
        # Sun never crosses the horizon that day.
        logger.debug("no sunrise/sunset at %s on %s", observer, day)
        return None, None
    return sdict["sunrise"], sdict["sunset"]

def at_local_time(tz, d: date, hh: int, mm: int = 0) -> datetime:
    """Localize a naive datetime to the given tz safely."""
    return tz.localize(datetime(d.year, d.month, d.day, hh, mm))

def civil_date(when: DateLike, tz) -> date:
    """Civil date of ``when`` at the observer; naive datetimes are local wall time."""
    if isinstance(when, datetime):
        if when.tzinfo is None:
            return when.date()
        return when.astimezone(tz).date()
    return when

def local_instant(when: DateLike, tz) -> datetime:
    """Aware instant for ``when``; naive datetimes are local wall time, dates are local noon."""
    if isinstance(when, datetime):
        return tz.localize(when) if when.tzinfo is None else when
    return at_local_time(tz, when, 12)

def _as_utc(instant: DateLike) -> datetime:
    if not isinstance(instant, datetime):
        return datetime(instant.year, instant.month, instant.day, 12, tzinfo=pytz.utc)
    if instant.tzinfo is None:
        return pytz.utc.localize(instant)
    return instant.astimezone(pytz.utc)

# ---------------- Tithi math -------------------
def _ts_from_dt(dt_aware: datetime):
    eph, ts = _load_ephem()
    dt_utc = dt_aware.astimezone(pytz.utc)
    sec = dt_utc.second + dt_utc.microsecond / 1e6
    t = ts.utc(dt_utc.year, dt_utc.month, dt_utc.day,
               dt_utc.hour, dt_utc.minute, sec)
    return eph, ts, t

def _ecliptic_longitudes(dt_aware: datetime) -> Tuple[float, float]:
    eph, ts, t = _ts_from_dt(dt_aware)
    earth = eph["earth"]
    sun_app  = earth.at(t).observe(eph["sun"]).apparent()
    moon_app = earth.at(t).observe(eph["moon"]).apparent()
    _, lon_sun, _  = sun_app.ecliptic_latlon()
    _, lon_moon, _ = moon_app.ecliptic_latlon()
    return lon_sun.degrees % 360.0, lon_moon.degrees % 360.0

def tithi_from_longitudes(lam_sun: float, lam_moon: float) -> float:
    """Continuous tithi, 1-indexed: 1.0 at new moon, 16.0 at full moon."""
    diff = (lam_moon - lam_sun) % 360.0
    if diff >= 360.0:
        # a tiny negative elongation rounds up to a full turn
        diff = 0.0
    return diff / 12.0 + 1.0

def tithi_at(dt_aware: datetime) -> float:
    return tithi_from_longitudes(*_ecliptic_longitudes(dt_aware))

def tithi_index_at(dt_aware: datetime) -> int:
    return min(int(floor(tithi_at(dt_aware))) - 1, 29)  # 0..29

def paksha_for_index(idx: int) -> str:
    return "Shukla" if 0 <= idx <= 14 else "Krishna"

# ------------- Sidereal Sun (Lahiri) ----------
def _julian_centuries_tt(dt_aware: datetime) -> float:
    dt_utc = dt_aware.astimezone(timezone.utc)
    y, m = dt_utc.year, dt_utc.month
    d = dt_utc.day + (dt_utc.hour + (dt_utc.minute + dt_utc.second/60)/60)/24
    if m <= 2:
        y -= 1; m += 12
    A = floor(y/100); B = 2 - A + floor(A/4)
    JD = floor(365.25*(y+4716)) + floor(30.6001*(m+1)) + d + B - 1524.5
    return (JD - 2451545.0) / 36525.0

def lahiri_ayanamsha_deg(dt_aware: datetime) -> float:
    T = _julian_centuries_tt(dt_aware)
    lahiri_2000_sec = 23*3600 + 51*60
    precession_sec = 5028.796195 * T
    return (lahiri_2000_sec + precession_sec) / 3600.0

def sun_sidereal_longitude(dt_aware: datetime) -> float:
    lon_sun, _ = _ecliptic_longitudes(dt_aware)
    ay = lahiri_ayanamsha_deg(dt_aware)
    return (lon_sun - ay) % 360.0

# ------------- New moon / lunations -------------
@lru_cache(maxsize=16)
def new_moons_covering_year(year: int) -> Tuple[datetime, ...]:
    """UTC new-moon instants from mid-November of ``year - 1`` to late January of ``year + 1``."""
    eph, ts = _load_ephem()
    t0 = ts.utc(year - 1, 11, 15)
    t1 = ts.utc(year + 1, 1, 20)
    times, phases = almanac.find_discrete(t0, t1, almanac.moon_phases(eph))
    return tuple(t.utc_datetime() for t, ph in zip(times, phases) if ph == 0)

def lunation_start(dt_aware: datetime) -> datetime:
    dt_utc = dt_aware.astimezone(pytz.utc)
    starts = [nm for nm in new_moons_covering_year(dt_utc.year) if nm <= dt_utc]
    return starts[-1]

def masa_at(dt_aware: datetime) -> Masa:
    """Amānta month containing ``dt_aware``.

    The lunation is named by the sidereal sign the Sun occupies at its
    opening new moon, shifted by one: Mesha opens Vaishakha, Mina opens
    Chaitra. Adhika months are not distinguished.
    """
    lam_sid = sun_sidereal_longitude(lunation_start(dt_aware))
    idx = int(floor(((lam_sid + 30.0) % 360.0) / 30.0)) % 12
    return Masa(idx, MASA_NAMES[idx])

# ---------------- Panchangam -------------------
@lru_cache(maxsize=4096)
def _panchangam_for(day: date, observer: Observer) -> Panchangam:
    tz = iana_timezone_for(observer.latitude, observer.longitude)
    sunrise, sunset = local_sun_times(observer, day, tz)
    probe = sunrise if sunrise is not None else at_local_time(tz, day, 12)
    t = tithi_index_at(probe)
    return Panchangam(
        date=day,
        sunrise=sunrise,
        sunset=sunset,
        tithi=t,
        tithi_name=TITHI_NAMES[t],
        paksha=paksha_for_index(t),
        masa=masa_at(probe),
        timezone=tz.zone,
    )


class SkyfieldEphemeris:
    """Ephemeris backed by skyfield (DE421) for the Moon-Sun elongation and astral for sunrise."""

    def get_panchangam(self, when: DateLike, observer: Observer) -> Panchangam:
        tz = iana_timezone_for(observer.latitude, observer.longitude)
        return _panchangam_for(civil_date(when, tz), observer)

    def get_tithi_at_time(self, instant: DateLike) -> float:
        return tithi_at(_as_utc(instant))


@lru_cache(maxsize=1)
def default_ephemeris() -> SkyfieldEphemeris:
    return SkyfieldEphemeris()


def observer_timezone(observer: Observer):
    return iana_timezone_for(observer.latitude, observer.longitude)

