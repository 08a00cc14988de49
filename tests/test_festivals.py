from datetime import date, datetime

import pytest
import pytz

from uposatha.astronomy import MASA_NAMES, Masa, Panchangam
from uposatha.festivals import (
    BUDDHIST_FESTIVALS, TRADITIONS, all_festival_definitions, catalog_collisions, check_festival,
    check_festival_by_tradition, festival_id, festivals_for_tradition, get_upcoming_festivals,
    parse_tithi,
)


def panchangam(masa: int, tithi: int) -> Panchangam:
    return Panchangam(date=date(2026, 1, 1), sunrise=None, sunset=None, tithi=tithi,
                      tithi_name="", paksha="Shukla" if tithi < 15 else "Krishna",
                      masa=Masa(masa, MASA_NAMES[masa]), timezone="Asia/Kolkata")


@pytest.mark.parametrize("spec,expected", [
    ("Purnima", 14),
    ("Amavasya", 29),
    ("8", 7),
    ("30", 29),
    (" 4-6 ", (3, 4, 5)),
])
def test_parse_tithi(spec, expected):
    assert parse_tithi(spec) == expected


@pytest.mark.parametrize("spec", ["Ekadashi", "", "4-", "x-5"])
def test_parse_tithi_rejects_unknown(spec):
    with pytest.raises(ValueError):
        parse_tithi(spec)


def test_catalog_is_grouped_by_tradition():
    assert len(BUDDHIST_FESTIVALS) == 25
    order = [f.tradition for f in BUDDHIST_FESTIVALS]
    assert order == sorted(order, key=TRADITIONS.index)
    assert [len(festivals_for_tradition(t)) for t in TRADITIONS] == [8, 10, 7]
    assert all_festival_definitions() is BUDDHIST_FESTIVALS


def test_catalog_entries():
    by_id = {f.id: f for f in BUDDHIST_FESTIVALS}
    vesak = by_id["vesak"]
    assert (vesak.masa_index, vesak.tithi_index, vesak.tradition) == (1, 14, "Theravada")
    monlam = by_id["monlam_chenmo"]
    assert monlam.tithi_index == tuple(range(3, 25))
    assert by_id["poson_poya"].region == "Sri Lanka"
    assert by_id["losar"].region is None
    assert festival_id("Buddha's  Birthday") == "buddha's_birthday"


@pytest.mark.parametrize("masa,tithi,name,tradition", [
    (1, 14, "Vesak", "Theravada"),
    (11, 29, "Losar", "Vajrayana"),
    (9, 7, "Bodhi Day", "Mahayana"),
    (10, 3, "Monlam Chenmo", "Vajrayana"),
    (10, 24, "Monlam Chenmo", "Vajrayana"),
    (10, 14, "Māgha Pūjā", "Theravada"),
])
def test_check_festival(nagpur, masa, tithi, name, tradition):
    f = check_festival(date(2026, 1, 1), nagpur, panchangam(masa, tithi))
    assert f.name == name
    assert f.tradition == tradition


def test_check_festival_no_match(nagpur):
    assert check_festival(date(2026, 1, 1), nagpur, panchangam(0, 0)) is None
    assert check_festival(date(2026, 1, 1), nagpur, panchangam(10, 25)) is None


def test_check_festival_by_tradition(nagpur):
    p = panchangam(1, 14)
    assert check_festival_by_tradition(date(2026, 1, 1), nagpur, "Theravada", p).name == "Vesak"
    # Saga Dawa shares Vesak's day but comes later in the catalog
    assert check_festival_by_tradition(date(2026, 1, 1), nagpur, "Vajrayana", p) is None
    assert check_festival_by_tradition(date(2026, 1, 1), nagpur, "Mahayana", panchangam(0, 0)) is None


def test_check_festival_fetches_panchangam(scripted, nagpur):
    eph = scripted(date(2026, 3, 18), [28, 29, 0], masa_index=11)
    assert check_festival(date(2026, 3, 19), nagpur, ephemeris=eph).name == "Losar"


def test_collisions_are_reported_in_catalog_order():
    groups = {(m, t): [f.id for f in fs] for m, t, fs in catalog_collisions()}
    assert groups[(1, 14)] == ["vesak", "saga_dawa"]
    assert groups[(5, 14)] == ["abhidhamma_day", "madhu_pūrṇimā", "ullambana"]
    assert groups[(10, 14)][0] == "māgha_pūjā"
    assert "monlam_chenmo" in groups[(10, 14)]


def test_upcoming_festivals(scripted, nagpur):
    # Feb 12 tithi 10 in Phalguna: Purnima on Feb 16, Amavasya on Mar 3
    eph = scripted(date(2026, 2, 12), [10], masa_index=11)
    start = datetime(2026, 2, 12, 12, tzinfo=pytz.utc)
    matches = get_upcoming_festivals(start, nagpur, 20, eph)
    assert [(m.festival.name, m.days_remaining) for m in matches] == [
        ("Avalokiteśvara Birthday", 4),
        ("Losar", 19),
    ]
    assert matches[1].date == datetime(2026, 3, 3, 12, tzinfo=pytz.utc)
    for m in matches:
        assert check_festival(m.date, nagpur, ephemeris=eph).id == m.festival.id


def test_upcoming_festivals_uses_default_ephemeris(scripted, use_ephemeris, nagpur):
    use_ephemeris(scripted(date(2026, 2, 12), [10], masa_index=11))
    matches = get_upcoming_festivals(date(2026, 2, 12), nagpur, days=5)
    assert [m.festival.id for m in matches] == ["avalokiteśvara_birthday"]
    assert matches[0].date == date(2026, 2, 16)
    assert get_upcoming_festivals(date(2026, 2, 12), nagpur, days=0) == []
