import argparse
import logging
from pathlib import Path

import requests

from .astronomy import EphemerisUnavailable, Observer, observer_timezone
from .config import get_settings
from .events import events_for_year
from .festivals import TRADITIONS
from .ics import build_ics
from .location import autolocate

logger = logging.getLogger(__name__)


def ensure_site_dir():
    Path("site").mkdir(parents=True, exist_ok=True)

def generate_range(observer, year_from, year_to, **kw):
    all_events = []
    for y in range(year_from, year_to + 1):
        all_events.extend(events_for_year(observer, y, **kw))
    return all_events

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Uposatha calendar (.ics): Pakkha Uposatha days (Udaya Tithi, kshaya/vridhi aware) "
                    "and Theravada/Mahayana/Vajrayana festivals, location-aware."
    )
    ap.add_argument("--lat", type=float, help="Latitude (decimal)")
    ap.add_argument("--lon", type=float, help="Longitude (decimal)")
    ap.add_argument("--elev", type=float, default=0.0, help="Elevation in metres")
    ap.add_argument("--auto-location", action="store_true", help="Detect lat/lon from IP")
    ap.add_argument("--year", type=int, required=True, help="Start year, e.g., 2026")
    ap.add_argument("--year-to", type=int, help="End year (inclusive). If omitted, equals --year.")
    ap.add_argument("--tradition", choices=["all", *TRADITIONS], default="all",
                    help="Only list festivals of this tradition")
    ap.add_argument("--no-uposatha", action="store_true")
    ap.add_argument("--no-optional", action="store_true", help="Skip kshaya/vridhi optional days")
    ap.add_argument("--no-festivals", action="store_true")
    ap.add_argument("--reminders", action="store_true",
                    help="Attach alarms: Uposatha eve 18:00 and morning 05:00, festivals 3 days ahead")
    ap.add_argument("--outfile", type=str, default=None, help="Output .ics file path")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return ap

def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else get_settings().log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.auto_location:
        if args.lat is not None or args.lon is not None:
            print("Note: --auto-location overrides --lat/--lon")
        try:
            located = autolocate()
        except (requests.RequestException, KeyError, ValueError) as e:
            raise SystemExit(f"Auto-location failed ({e}). Pass --lat and --lon.")
        args.lat, args.lon = located.latitude, located.longitude

    if args.lat is None or args.lon is None:
        raise SystemExit("Provide --lat and --lon, or use --auto-location.")

    observer = Observer(args.lat, args.lon, args.elev)
    year_to = args.year_to or args.year
    if year_to < args.year:
        raise SystemExit("--year-to must not be before --year.")

    try:
        events = generate_range(
            observer, args.year, year_to,
            include_uposatha=not args.no_uposatha,
            include_optional=not args.no_optional,
            include_festivals=not args.no_festivals,
            tradition=args.tradition,
        )
    except EphemerisUnavailable as e:
        raise SystemExit(f"Ephemeris unavailable ({e}). Set UPOSATHA_DATA_DIR to a directory holding the kernel.")

    tzid = observer_timezone(observer).zone
    ics = build_ics(events, calname="Uposatha Calendar", tzid=tzid, alarms=args.reminders)
    if args.outfile:
        out = Path(args.outfile)
    else:
        ensure_site_dir()
        out = Path(
            f"site/{args.year}-{year_to}-uposatha-calendar.ics" if year_to != args.year
            else f"site/{args.year}-uposatha-calendar.ics"
        )
    out.write_bytes(ics)
    print(f"Wrote {out}  ({len(events)} events, lat={args.lat}, lon={args.lon}, years={args.year}..{year_to})")

if __name__ == "__main__":
    main()
