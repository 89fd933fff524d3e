# backend/fetch_usage.py
"""
Fetch daily electricity usage from Octopus Energy Japan, store it, and send
the LINE report.

    python -m backend.fetch_usage                      # yesterday (JST)
    python -m backend.fetch_usage --date 2024-01-15
    python -m backend.fetch_usage --from 2024-01-01 --to 2024-01-31

Exit code 0 on success (days without data are skipped, not failed), 1 when
the login, an account lookup or a day's fetch fails.
"""
import argparse
import sys
from datetime import date

from backend.lib.config import load_settings
from backend.lib.orchestrator import EXIT_FAILURE, build_orchestrator
from backend.lib.usage_core.errors import ConfigError


def _iso_date(text):
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {text!r}")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fetch-usage",
        description="Fetch daily electricity usage from Octopus Energy and notify via LINE",
    )
    parser.add_argument("--date", type=_iso_date, help="local date to fetch (default: yesterday)")
    parser.add_argument("--from", dest="date_from", type=_iso_date, help="first date of a backfill range")
    parser.add_argument("--to", dest="date_to", type=_iso_date, help="last date of a backfill range (inclusive)")
    parser.add_argument("--no-notify", action="store_true", help="do not send the LINE report")
    parser.add_argument("--delay", type=float, default=None,
                        help="seconds to wait between dates in range mode")
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if (args.date_from is None) != (args.date_to is None):
        parser.error("--from and --to must be given together")
    if args.date is not None and args.date_from is not None:
        parser.error("--date cannot be combined with --from/--to")
    if args.date_from is not None and args.date_from > args.date_to:
        parser.error("--from must not be after --to")
    if args.delay is not None and args.delay < 0:
        parser.error("--delay must be >= 0")
    return args


def main(argv=None):
    args = parse_args(argv)

    try:
        settings = load_settings()
        orchestrator = build_orchestrator(settings, notify=not args.no_notify, delay_seconds=args.delay)
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        return EXIT_FAILURE

    if args.date_from is not None:
        return orchestrator.run_range(args.date_from, args.date_to)
    return orchestrator.run_date(args.date)


if __name__ == "__main__":
    sys.exit(main())
