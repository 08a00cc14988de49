"""
Buddhist festival catalog and matcher.

Festivals are keyed on the amānta month (masa) and the tithi in effect at
sunrise. The catalog is built once at import and never mutated; lookups
return the first entry, in catalog order, whose masa and tithi match.
"""
from __future__ import annotations
import logging
import math
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from .astronomy import DateLike, Ephemeris, Observer, Panchangam, default_ephemeris

logger = logging.getLogger(__name__)

TRADITIONS: Tuple[str, ...] = ("Theravada", "Mahayana", "Vajrayana")

TithiSpec = Union[int, Tuple[int, ...]]

MASA_MAP: Dict[str, int] = {
    "Chaitra": 0,
    "Vaiśākha": 1,
    "Jyeṣṭha": 2,
    "Āṣāḍha": 3,
    "Śrāvaṇa": 4,
    "Bhādrapada": 5,
    "Āśvina": 6,
    "Kārttika": 7,
    "Mārgaśīrṣa": 8,
    "Pauṣa": 9,
    "Māgha": 10,
    "Phālguna": 11,
}


@dataclass(frozen=True)
class BuddhistFestival:
    id: str
    name: str
    masa_index: int            # 0 = Chaitra .. 11 = Phalguna
    tithi_index: TithiSpec     # 0..29, or an inclusive run of them
    description: str
    tradition: str
    region: Optional[str] = None

    def tithis(self) -> Tuple[int, ...]:
        if isinstance(self.tithi_index, tuple):
            return self.tithi_index
        return (self.tithi_index,)

    def matches(self, masa_index: int, tithi: int) -> bool:
        return self.masa_index == masa_index and tithi in self.tithis()


class FestivalMatch(NamedTuple):
    festival: BuddhistFestival
    date: DateLike
    days_remaining: int


def parse_tithi(spec: str) -> TithiSpec:
    """Lunar-day string to a 0-indexed tithi or run of tithis.

    ``"Purnima"`` -> 14, ``"Amavasya"`` -> 29, ``"8"`` -> 7, ``"4-25"`` -> (3, .., 24).
    """
    spec = spec.strip()
    if spec == "Purnima":
        return 14
    if spec == "Amavasya":
        return 29
    m = re.fullmatch(r"(\d+)\s*-\s*(\d+)", spec)
    if m:
        start, end = int(m.group(1)) - 1, int(m.group(2)) - 1
        return tuple(range(start, end + 1))
    if spec.isdigit():
        return int(spec) - 1
    raise ValueError(f"unrecognised lunar day {spec!r}")


RAW_FESTIVALS: Dict[str, List[Dict[str, str]]] = {
    "Theravada": [
        {"name": "Māgha Pūjā", "lunar_day": "Purnima", "masa": "Māgha", "desc": "Sangha Day - Gathering of 1,250 Arahants"},
        {"name": "Vesak", "lunar_day": "Purnima", "masa": "Vaiśākha", "desc": "Buddha's Birth, Enlightenment, Parinirvana"},
        {"name": "Āsāḷha Pūjā", "lunar_day": "Purnima", "masa": "Āṣāḍha", "desc": "First Sermon (Dhammacakka Day)"},
        {"name": "Pavāraṇā", "lunar_day": "Purnima", "masa": "Āśvina", "desc": "End of Vassa (Rains Retreat)"},
        {"name": "Abhidhamma Day", "lunar_day": "Purnima", "masa": "Bhādrapada", "desc": "Buddha taught Abhidhamma in Tavatimsa"},
        {"name": "Madhu Pūrṇimā", "lunar_day": "Purnima", "masa": "Bhādrapada", "desc": "Honey Full Moon - Parileyyaka Forest"},
        {"name": "Poson Poya", "lunar_day": "Purnima", "masa": "Jyeṣṭha", "desc": "Arrival of Buddhism in Sri Lanka", "region": "Sri Lanka"},
        {"name": "Esala Poya", "lunar_day": "Purnima", "masa": "Āṣāḍha", "desc": "Celebration of First Sermon", "region": "Sri Lanka"},
    ],
    "Mahayana": [
        {"name": "Buddha's Birthday", "lunar_day": "8", "masa": "Vaiśākha", "desc": "Siddhartha Gautama's Birthday (Hanamatsuri)"},
        {"name": "Parinirvāṇa Day", "lunar_day": "15", "masa": "Pauṣa", "desc": "Buddha's passing into Parinirvana"},
        {"name": "Bodhi Day", "lunar_day": "8", "masa": "Pauṣa", "desc": "Buddha's Enlightenment (Rohatsu)"},
        {"name": "Avalokiteśvara Birthday", "lunar_day": "Purnima", "masa": "Phālguna", "desc": "Compassion Bodhisattva's Birthday"},
        {"name": "Ullambana", "lunar_day": "15", "masa": "Bhādrapada", "desc": "Ghost Festival - Merit for ancestors"},
        {"name": "Medicine Buddha Birthday", "lunar_day": "8", "masa": "Kārttika", "desc": "Bhaisajyaguru's Birthday"},
        {"name": "Manjuśrī Birthday", "lunar_day": "4", "masa": "Vaiśākha", "desc": "Wisdom Bodhisattva's Birthday"},
        {"name": "Kṣitigarbha Birthday", "lunar_day": "30", "masa": "Bhādrapada", "desc": "Dizang Pusa's Birthday"},
        {"name": "Guanyin Enlightenment", "lunar_day": "19", "masa": "Āṣāḍha", "desc": "Avalokiteśvara's attainment"},
        {"name": "Loy Krathong", "lunar_day": "Purnima", "masa": "Kārttika", "desc": "Lantern Festival - Releasing karma", "region": "Thailand"},
    ],
    "Vajrayana": [
        {"name": "Losar", "lunar_day": "Amavasya", "masa": "Phālguna", "desc": "Tibetan New Year"},
        {"name": "Chotrul Düchen", "lunar_day": "Purnima", "masa": "Māgha", "desc": "Festival of Miracles"},
        {"name": "Saga Dawa", "lunar_day": "Purnima", "masa": "Vaiśākha", "desc": "Birth, Enlightenment, and Parinirvana"},
        {"name": "Chokhor Düchen", "lunar_day": "4", "masa": "Āṣāḍha", "desc": "Turning the Dhamma Wheel"},
        {"name": "Lhabab Düchen", "lunar_day": "22", "masa": "Pauṣa", "desc": "Descent from Heaven"},
        {"name": "Monlam Chenmo", "lunar_day": "4-25", "masa": "Māgha", "desc": "Great Prayer Festival"},
        {"name": "Ganden Ngamchoe", "lunar_day": "25", "masa": "Vaiśākha", "desc": "Tsongkhapa Memorial Day"},
    ],
}


def festival_id(name: str) -> str:
    return re.sub(r"\s+", "_", name.lower())


def _build_catalog(raw: Dict[str, List[Dict[str, str]]]) -> Tuple[BuddhistFestival, ...]:
    out: List[BuddhistFestival] = []
    for tradition, festivals in raw.items():
        for f in festivals:
            out.append(BuddhistFestival(
                id=festival_id(f["name"]),
                name=f["name"],
                masa_index=MASA_MAP[f["masa"]],
                tithi_index=parse_tithi(f["lunar_day"]),
                description=f["desc"],
                tradition=tradition,
                region=f.get("region"),
            ))
    return tuple(out)


BUDDHIST_FESTIVALS: Tuple[BuddhistFestival, ...] = _build_catalog(RAW_FESTIVALS)


def catalog_collisions(catalog: Tuple[BuddhistFestival, ...] = BUDDHIST_FESTIVALS
                       ) -> List[Tuple[int, int, Tuple[BuddhistFestival, ...]]]:
    """(masa, tithi) points claimed by more than one entry, in catalog order.

    Only the first entry of each group is ever returned by ``check_festival``.
    """
    claims: Dict[Tuple[int, int], List[BuddhistFestival]] = {}
    for f in catalog:
        for t in f.tithis():
            claims.setdefault((f.masa_index, t), []).append(f)
    return [(masa, tithi, tuple(fs)) for (masa, tithi), fs in claims.items() if len(fs) > 1]


def _log_collisions() -> None:
    for masa, tithi, shadowed in catalog_collisions():
        logger.debug("masa %d tithi %d: %s shadows %s", masa, tithi, shadowed[0].id,
                     ", ".join(f.id for f in shadowed[1:]))


_log_collisions()


def all_festival_definitions() -> Tuple[BuddhistFestival, ...]:
    return BUDDHIST_FESTIVALS


def festivals_for_tradition(tradition: str) -> Tuple[BuddhistFestival, ...]:
    return tuple(f for f in BUDDHIST_FESTIVALS if f.tradition == tradition)


def check_festival(when: DateLike, observer: Observer,
                   panchangam: Optional[Panchangam] = None,
                   ephemeris: Optional[Ephemeris] = None) -> Optional[BuddhistFestival]:
    if panchangam is None:
        eph = ephemeris if ephemeris is not None else default_ephemeris()
        panchangam = eph.get_panchangam(when, observer)
    for f in BUDDHIST_FESTIVALS:
        if f.matches(panchangam.masa.index, panchangam.tithi):
            return f
    return None


def check_festival_by_tradition(when: DateLike, observer: Observer, tradition: str,
                                panchangam: Optional[Panchangam] = None,
                                ephemeris: Optional[Ephemeris] = None) -> Optional[BuddhistFestival]:
    festival = check_festival(when, observer, panchangam, ephemeris)
    if festival is None or festival.tradition != tradition:
        return None
    return festival


def get_upcoming_festivals(start: DateLike, observer: Observer, days: int = 365,
                           ephemeris: Optional[Ephemeris] = None) -> List[FestivalMatch]:
    """Festivals falling in ``days`` civil days from ``start``, in date order."""
    eph = ephemeris if ephemeris is not None else default_ephemeris()
    one_day = timedelta(days=1)
    out: List[FestivalMatch] = []
    for i in range(days):
        current = start + i * one_day
        festival = check_festival(current, observer, eph.get_panchangam(current, observer))
        if festival is not None:
            remaining = max(0, math.ceil((current - start) / one_day))
            out.append(FestivalMatch(festival, current, remaining))
    logger.debug("%d festivals in %d days from %s", len(out), days, start)
    return out
