from datetime import date, datetime
from typing import Dict, Iterable, Optional, Sequence

import pytest
import pytz

from uposatha import festivals, observance
from uposatha.astronomy import (
    MASA_NAMES, TITHI_NAMES, Masa, Observer, Panchangam, civil_date, observer_timezone,
    paksha_for_index,
)

NAGPUR = Observer(21.1458, 79.0882, 310)
BODH_GAYA = Observer(24.7914, 85.0002, 111)


class ScriptedEphemeris:
    """Ephemeris whose sunrise tithi is read from a table instead of the sky.

    ``sequence[i]`` is the 0-indexed tithi at sunrise on ``start + i`` days;
    outside the table the tithi keeps advancing one per day. Sunrise is
    00:30 UTC, and the continuous value sampled there is ``tithi + 1.5``.
    """

    def __init__(self, start: date, sequence: Sequence[int], masa_index: int = 0,
                 masa_by_day: Optional[Dict[date, int]] = None,
                 raw_by_day: Optional[Dict[date, float]] = None,
                 polar_days: Iterable[date] = ()):
        self.start = start
        self.sequence = list(sequence)
        self.masa_index = masa_index
        self.masa_by_day = masa_by_day or {}
        self.raw_by_day = raw_by_day or {}
        self.polar_days = set(polar_days)
        self.panchangam_calls = 0
        self.sampled = []

    def tithi_on(self, day: date) -> int:
        i = (day - self.start).days
        if i < 0:
            return (self.sequence[0] + i) % 30
        if i >= len(self.sequence):
            return (self.sequence[-1] + i - len(self.sequence) + 1) % 30
        return self.sequence[i]

    @staticmethod
    def _day_of(instant) -> date:
        if isinstance(instant, datetime):
            return instant.date() if instant.tzinfo is None else instant.astimezone(pytz.utc).date()
        return instant

    def get_panchangam(self, when, observer):
        self.panchangam_calls += 1
        tz = observer_timezone(observer)
        day = civil_date(when, tz)
        t = self.tithi_on(day)
        m = self.masa_by_day.get(day, self.masa_index)
        if day in self.polar_days:
            sunrise = sunset = None
        else:
            sunrise = datetime(day.year, day.month, day.day, 0, 30, tzinfo=pytz.utc)
            sunset = datetime(day.year, day.month, day.day, 12, 45, tzinfo=pytz.utc)
        return Panchangam(date=day, sunrise=sunrise, sunset=sunset, tithi=t,
                          tithi_name=TITHI_NAMES[t], paksha=paksha_for_index(t),
                          masa=Masa(m, MASA_NAMES[m]), timezone=tz.zone)

    def get_tithi_at_time(self, instant) -> float:
        self.sampled.append(instant)
        day = self._day_of(instant)
        if day in self.raw_by_day:
            return self.raw_by_day[day]
        return self.tithi_on(day) + 1.5


@pytest.fixture
def nagpur():
    return NAGPUR


@pytest.fixture
def scripted():
    return ScriptedEphemeris


@pytest.fixture
def use_ephemeris(monkeypatch):
    """Make a scripted ephemeris the process default for code that takes none."""
    def install(eph):
        monkeypatch.setattr(observance, "default_ephemeris", lambda: eph)
        monkeypatch.setattr(festivals, "default_ephemeris", lambda: eph)
        return eph
    return install
