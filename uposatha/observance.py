"""
Uposatha observance engine.

An Uposatha day is governed by the tithi prevailing at local sunrise
(Udaya Tithi). Observance tithis, 0-indexed:

    7   Shukla Ashtami        Sukka Aṭṭhamī
    13  Shukla Chaturdashi    Sukka Cātuddasī
    14  Purnima (full moon)   Puṇṇamī
    22  Krishna Ashtami       Kanhā Aṭṭhamī
    28  Krishna Chaturdashi   Kanhā Cātuddasī
    29  Amavasya (new moon)   Amāvāsī

A tithi that starts and ends between two sunrises (kshaya) never governs a
day; if it is an observance tithi the day it falls in is flagged optional.
A tithi governing two sunrises in a row (vridhi) is observed on the first;
the second day is flagged optional.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from .astronomy import (
    TITHI_NAMES, DateLike, Ephemeris, Observer, Panchangam, default_ephemeris, local_instant,
    observer_timezone,
)

logger = logging.getLogger(__name__)

UPOSATHA_INDICES = frozenset({7, 13, 14, 22, 28, 29})
CHATURDASHI_INDICES = frozenset({13, 28})

PALI_LABELS: Dict[int, str] = {
    7: "Sukka Aṭṭhamī",
    13: "Sukka Cātuddasī",
    14: "Puṇṇamī (Pūrṇimā)",
    22: "Kanhā Aṭṭhamī",
    28: "Kanhā Cātuddasī",
    29: "Amāvāsī (Amāvasyā)",
}

UPOSATHA_TYPE: Dict[int, str] = {
    7: "Ashtami Uposatha",
    13: "Chaturdashi Uposatha",
    14: "Purnima Uposatha",
    22: "Ashtami Uposatha",
    28: "Chaturdashi Uposatha",
    29: "Amavasya Uposatha",
}


@dataclass(frozen=True)
class UposathaStatus:
    is_uposatha: bool
    is_ashtami: bool
    is_chaturdashi: bool
    is_full_moon: bool
    is_new_moon: bool
    tithi_index: int          # Udaya Tithi, 0..29
    tithi_number: int         # 1..30
    tithi_name: str
    paksha: str
    pali_label: str
    label: str
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    panchangam: Panchangam
    is_optional: bool
    is_kshaya: bool
    is_vridhi: bool
    # True when a sunrise sample was unusable and the panchangam estimate stood in.
    degraded: bool = False


def _resolve(ephemeris: Optional[Ephemeris]) -> Ephemeris:
    return ephemeris if ephemeris is not None else default_ephemeris()


def udaya_tithi(when: DateLike, observer: Observer,
                ephemeris: Optional[Ephemeris] = None) -> Tuple[int, Panchangam, bool]:
    """Return ``(tithi, panchangam, degraded)`` for the civil day of ``when``.

    The continuous tithi is sampled at sunrise, floored and shifted to 0..29.
    A day with no sunrise is sampled at ``when`` read in the observer's zone
    (local noon for a plain date). A non-finite or out-of-range sample falls
    back to ``panchangam.tithi``.
    """
    eph = _resolve(ephemeris)
    p = eph.get_panchangam(when, observer)
    if p.sunrise is not None:
        raw = eph.get_tithi_at_time(p.sunrise)
    else:
        raw = eph.get_tithi_at_time(local_instant(when, observer_timezone(observer)))

    tithi = math.floor(raw) - 1 if math.isfinite(raw) else -1
    if 0 <= tithi <= 29:
        return tithi, p, False

    logger.warning("unusable tithi %r at sunrise of %s for %s; using %d",
                   raw, p.date, observer, p.tithi)
    return p.tithi, p, True


def get_uposatha_status(when: DateLike, observer: Observer,
                        ephemeris: Optional[Ephemeris] = None) -> UposathaStatus:
    eph = _resolve(ephemeris)
    today, p, degraded = udaya_tithi(when, observer, eph)
    next_tithi, _, next_degraded = udaya_tithi(when + timedelta(days=1), observer, eph)
    prev_tithi, _, prev_degraded = udaya_tithi(when - timedelta(days=1), observer, eph)

    is_uposatha = today in UPOSATHA_INDICES
    is_optional = is_kshaya = is_vridhi = False
    active = today

    # tithis elapsing between today's and tomorrow's sunrise
    diff = (next_tithi - today + 30) % 30

    # Chaturdashi takes over a Purnima/Amavasya lost before the next sunrise.
    if today in CHATURDASHI_INDICES and diff > 1:
        is_uposatha = True

    if diff > 1 and not is_uposatha:
        for i in range(1, diff):
            skipped = (today + i) % 30
            if skipped in UPOSATHA_INDICES:
                is_optional = is_kshaya = True
                active = skipped
                break

    if is_uposatha and prev_tithi == today:
        # primary observance was yesterday
        is_uposatha = False
        is_optional = is_vridhi = True

    pali_label = PALI_LABELS.get(active, "")
    uposatha_type = UPOSATHA_TYPE.get(active, "")

    label = f"{TITHI_NAMES[today]} — {p.paksha} Paksha"
    if is_uposatha:
        label = f"{uposatha_type} ({pali_label}) — Pakkha Uposatha"
    elif is_vridhi:
        label = f"Vridhi: {uposatha_type}"
    elif is_kshaya:
        label = f"Kshaya: {TITHI_NAMES[active]} ({uposatha_type})"

    return UposathaStatus(
        is_uposatha=is_uposatha,
        is_ashtami=active in (7, 22),
        is_chaturdashi=active in CHATURDASHI_INDICES,
        is_full_moon=active == 14,
        is_new_moon=active == 29,
        tithi_index=today,
        tithi_number=today + 1,
        tithi_name=TITHI_NAMES[today],
        paksha=p.paksha,
        pali_label=pali_label,
        label=label,
        sunrise=p.sunrise,
        sunset=p.sunset,
        panchangam=p,
        is_optional=is_optional,
        is_kshaya=is_kshaya,
        is_vridhi=is_vridhi,
        degraded=degraded or next_degraded or prev_degraded,
    )
