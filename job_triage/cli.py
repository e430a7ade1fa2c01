"""
Command line entry point.

    job-triage                 harvest new postings, then classify them
    job-triage run --skip-harvest
    job-triage harvest [--url URL]
    job-triage classify
"""

import argparse
import sys
from typing import List, Optional

from .config import Settings
from .errors import FatalError
from .logs import setup_logging
from .pipeline import Pipeline

RULE = "=" * 80


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-triage",
        description="Harvest LinkedIn job postings and score them against your resume.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "harvest", "classify"],
        help="run = harvest + classify (default)",
    )
    parser.add_argument("--url", help="LinkedIn job list URL (overrides LINKEDIN_JOBS_URL)")
    parser.add_argument(
        "--skip-harvest",
        action="store_true",
        help="Classify what is already in the record store without opening the browser.",
    )
    parser.add_argument(
        "--no-log-files",
        action="store_true",
        help="Print to the console only; do not tee output into the logs directory.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
        if not args.no_log_files:
            setup_logging(settings.log_dir, settings.log_retention_days)

        skip_harvest = args.skip_harvest or args.command == "classify"
        skip_classify = args.command == "harvest"
        print(f"Starting job triage ({args.command})")

        pipeline = Pipeline(settings)
        summary = pipeline.run(
            url=args.url,
            skip_harvest=skip_harvest,
            skip_classify=skip_classify,
        )
    except FatalError as e:
        print(f"\nFATAL: {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    print("")
    print(RULE)
    print("Run Complete")
    print(RULE)
    for line in summary.lines():
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
