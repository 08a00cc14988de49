# scripts/debug_masa.py
import sys
from datetime import datetime, timedelta

import pytz

from uposatha.astronomy import (
    Observer, default_ephemeris, lunation_start, observer_timezone, sun_sidereal_longitude,
)
from uposatha.festivals import check_festival, get_upcoming_festivals
from uposatha.observance import get_uposatha_status

UTC = pytz.utc


def debug_day(observer: Observer, when: datetime, label: str):
    tz = observer_timezone(observer)
    p = default_ephemeris().get_panchangam(when, observer)
    st = get_uposatha_status(when, observer)
    fest = check_festival(when, observer, p)

    def fmt(dt): return dt.astimezone(tz).strftime("%Y-%m-%d %H:%M %Z") if dt else "none"

    probe = p.sunrise or when
    nm = lunation_start(probe)
    print(f"\n[{label}] {p.date}  sunrise {fmt(p.sunrise)}")
    print(f"  Masa: {p.masa.name} (index {p.masa.index})  opened {fmt(nm)}, "
          f"sidereal Sun {sun_sidereal_longitude(nm):.2f}°")
    print(f"  Tithi: {p.tithi} ({p.tithi_name}, {p.paksha})  Udaya {st.tithi_index}")
    flags = [n for n, on in (("uposatha", st.is_uposatha), ("optional", st.is_optional),
                             ("kshaya", st.is_kshaya), ("vridhi", st.is_vridhi),
                             ("degraded", st.degraded)) if on]
    print(f"  {st.label}  [{', '.join(flags) or '-'}]")
    print(f"  Festival: {fest.name + ' (' + fest.tradition + ')' if fest else 'none'}")


def debug_upcoming(observer: Observer, start: datetime, days: int):
    print(f"\n-- Upcoming festivals from {start.date()} ({days} days) --")
    for m in get_upcoming_festivals(start, observer, days):
        print(f"  {m.date:%Y-%m-%d}: {m.festival.name} ({m.festival.tradition}, {m.days_remaining} days)")


if __name__ == "__main__":
    # Nagpur
    nagpur = Observer(21.1458, 79.0882, 310)
    if len(sys.argv) > 1:
        for arg in sys.argv[1:]:
            dt = datetime.fromisoformat(arg)
            debug_day(nagpur, dt if dt.tzinfo else UTC.localize(dt), arg)
    else:
        debug_day(nagpur, datetime(2026, 5, 1, 12, tzinfo=UTC), "Vesak")
        debug_day(nagpur, datetime(2026, 3, 19, 12, tzinfo=UTC), "Losar")
        debug_day(nagpur, datetime(2025, 12, 28, 12, tzinfo=UTC), "Bodhi Day")
        debug_day(nagpur, datetime(2026, 1, 22, 12, tzinfo=UTC), "Monlam Chenmo")
        start = datetime(2026, 2, 12, tzinfo=UTC)
        debug_upcoming(nagpur, start, 90)
        # Bodh Gaya, consecutive Ashtami sunrises
        bodh_gaya = Observer(24.7914, 85.0002, 111)
        for d in (0, 1):
            debug_day(bodh_gaya, datetime(2026, 2, 9, 6, 30, tzinfo=UTC) + timedelta(days=d), "Bodh Gaya")
