import math
from datetime import date, datetime

import pytest
import pytz

from uposatha import astronomy
from uposatha.astronomy import local_instant, paksha_for_index, tithi_from_longitudes, tithi_index_at

KOLKATA = pytz.timezone("Asia/Kolkata")


@pytest.mark.parametrize("lam_sun,lam_moon,expected", [
    (0.0, 0.0, 1.0),
    (100.0, 280.0, 16.0),
    (350.0, 14.0, 3.0),
    (10.0, 9.0, 359.0 / 12.0 + 1.0),
])
def test_tithi_from_longitudes(lam_sun, lam_moon, expected):
    assert tithi_from_longitudes(lam_sun, lam_moon) == pytest.approx(expected)


def test_conjunction_rounding_stays_in_first_tithi():
    # Moon a hair behind the Sun: the modulo rounds up to exactly 360.0
    lam_sun = math.nextafter(10.0, 11.0)
    assert (10.0 - lam_sun) % 360.0 == 360.0
    assert tithi_from_longitudes(lam_sun, 10.0) == 1.0


def test_tithi_index_never_exceeds_amavasya(monkeypatch):
    when = datetime(2026, 3, 19, 1, 23, tzinfo=pytz.utc)
    monkeypatch.setattr(astronomy, "_ecliptic_longitudes", lambda dt: (math.nextafter(10.0, 11.0), 10.0))
    assert tithi_index_at(when) == 0
    monkeypatch.setattr(astronomy, "_ecliptic_longitudes", lambda dt: (10.0, 10.0 - 1e-9))
    assert tithi_index_at(when) == 29


def test_paksha_for_index():
    assert [paksha_for_index(i) for i in (0, 14, 15, 29)] == ["Shukla", "Shukla", "Krishna", "Krishna"]


def test_local_instant():
    aware = datetime(2026, 1, 2, 2, tzinfo=pytz.utc)
    assert local_instant(aware, KOLKATA) is aware
    assert local_instant(datetime(2026, 1, 2, 2), KOLKATA) == KOLKATA.localize(datetime(2026, 1, 2, 2))
    assert local_instant(date(2026, 1, 2), KOLKATA) == KOLKATA.localize(datetime(2026, 1, 2, 12))
