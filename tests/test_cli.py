from datetime import date

import pytest
import requests
from icalendar import Calendar

from uposatha import cli
from uposatha.astronomy import EphemerisUnavailable, Observer


@pytest.fixture
def recorded(monkeypatch):
    calls = []

    def fake_events(observer, year, **kw):
        calls.append((observer, year, kw))
        return [{"summary": f"Vesak {year}", "date": date(year, 5, 1), "desc": "", "alarms": ()}]

    monkeypatch.setattr(cli, "events_for_year", fake_events)
    return calls


def test_writes_outfile(recorded, tmp_path, capsys):
    out = tmp_path / "cal.ics"
    cli.main(["--lat", "21.1458", "--lon", "79.0882", "--year", "2026", "--year-to", "2027",
              "--tradition", "Vajrayana", "--no-optional", "--outfile", str(out)])
    assert [year for _, year, _ in recorded] == [2026, 2027]
    observer, _, kw = recorded[0]
    assert observer == Observer(21.1458, 79.0882, 0.0)
    assert kw == {"include_uposatha": True, "include_optional": False,
                  "include_festivals": True, "tradition": "Vajrayana"}
    cal = Calendar.from_ical(out.read_bytes())
    assert [str(e.get("summary")) for e in cal.walk("VEVENT")] == ["Vesak 2026", "Vesak 2027"]
    assert str(cal.get("X-WR-TIMEZONE")) == "Asia/Kolkata"
    assert "Wrote" in capsys.readouterr().out


def test_default_outfile_under_site(recorded, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cli.main(["--lat", "21.1458", "--lon", "79.0882", "--year", "2026"])
    assert (tmp_path / "site" / "2026-uposatha-calendar.ics").exists()


def test_requires_coordinates(recorded):
    with pytest.raises(SystemExit):
        cli.main(["--lat", "21.1", "--year", "2026"])
    assert recorded == []


def test_rejects_reversed_years(recorded):
    with pytest.raises(SystemExit):
        cli.main(["--lat", "21.1", "--lon", "79.0", "--year", "2026", "--year-to", "2025"])


def test_auto_location(recorded, tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "autolocate", lambda: Observer(24.79, 85.0))
    cli.main(["--auto-location", "--year", "2026", "--outfile", str(tmp_path / "x.ics")])
    assert recorded[0][0] == Observer(24.79, 85.0, 0.0)


def test_auto_location_failure_exits(recorded, monkeypatch):
    def offline():
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(cli, "autolocate", offline)
    with pytest.raises(SystemExit):
        cli.main(["--auto-location", "--year", "2026"])


def test_missing_ephemeris_exits(monkeypatch, tmp_path):
    def unavailable(observer, year, **kw):
        raise EphemerisUnavailable("de421.bsp")

    monkeypatch.setattr(cli, "events_for_year", unavailable)
    with pytest.raises(SystemExit):
        cli.main(["--lat", "21.1", "--lon", "79.0", "--year", "2026",
                  "--outfile", str(tmp_path / "x.ics")])
