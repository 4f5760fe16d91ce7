#!/usr/bin/env python3
"""Run one reminder pass from a system timer (cron, systemd) and print the summary as JSON."""
import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run one due-date reminder pass.")
    parser.add_argument(
        "--now",
        help="Evaluate as of this local ISO timestamp instead of the current time",
    )
    args = parser.parse_args(argv)

    from app import app
    from backend.reminder_engine import run_reminder_pass
    from services.validation_service import parse_iso_datetime

    now = None
    if args.now:
        now = parse_iso_datetime(args.now)
        if now is None or now.tzinfo is not None:
            parser.error("--now must be a naive local ISO timestamp, e.g. 2024-05-01T09:00")

    with app.app_context():
        summary = run_reminder_pass(now=now)
    print(json.dumps(summary, indent=2))
    return 1 if summary["stats"]["error_count"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
