#!/usr/bin/env python3
"""CLI runner for catch-up recommendations.

Usage:
    python -m catchup_src.runner request.json                 # Print recommendations
    python -m catchup_src.runner request.json --json          # Print result JSON
    python -m catchup_src.runner request.json --date 2025-07-02
    python -m catchup_src.runner request.json --save          # Also store in CATCHUP_DB_PATH
    python -m catchup_src.runner --recent 10                  # List stored results
"""

import argparse
import json
import logging
import sys

from .config import config
from .engine import CatchUpRulesEngine
from .models import CatchUpRequest, CatchUpResult
from .rules.date_math import parse_date
from .store import SQLiteCatchUpStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging.

    Args:
        verbose: If True, use DEBUG level. Otherwise LOG_LEVEL from config.
    """
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def print_result(result: CatchUpResult) -> None:
    print("=" * 60)
    print(f"CATCH-UP RECOMMENDATIONS (CDC {result.cdc_version})")
    print(f"Patient age: {result.patient_age}")
    print("=" * 60)

    for rec in result.recommendations:
        status = "✓" if rec.series_complete else "○"
        decision = rec.decision_type.value if rec.decision_type else "-"
        print(f"[{status}] {rec.vaccine_name}: {rec.recommendation_text} ({decision})")
        if rec.next_dose_date:
            print(f"      Next dose: {rec.next_dose_date.isoformat()}")
        for note in rec.notes:
            print(f"      - {note}")
        for item in rec.contraindications or []:
            print(f"      ! Contraindication: {item}")

    due = sum(1 for r in result.recommendations if not r.series_complete)
    print("-" * 60)
    print(f"Summary: {len(result.recommendations)} vaccines, {due} need action")


def list_recent(limit: int) -> int:
    store = SQLiteCatchUpStore(config.CATCHUP_DB_PATH)
    records = store.list_recent(limit)
    if not records:
        print("No stored results.")
        return 0
    for record in records:
        print(
            f"{record.id}  {record.processed_at.isoformat(timespec='seconds')}  "
            f"born {record.request.birth_date.isoformat()}  "
            f"{len(record.result.recommendations)} recommendations"
        )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="CDC vaccine catch-up recommendations")
    parser.add_argument("request", nargs="?", help="Path to a request JSON file ('-' for stdin)")
    parser.add_argument("--date", help="Evaluate as of this date (YYYY-MM-DD)")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--save", action="store_true", help="Store the result in CATCHUP_DB_PATH")
    parser.add_argument("--recent", type=int, metavar="N", help="List the N most recent stored results")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.recent is not None:
        return list_recent(args.recent)

    if not args.request:
        parser.error("a request file is required")

    if args.request == "-":
        data = json.load(sys.stdin)
    else:
        with open(args.request) as f:
            data = json.load(f)

    try:
        request = CatchUpRequest.from_dict(data)
        if args.date:
            request.current_date = parse_date(args.date, "--date")
    except ValueError as e:
        logger.error(str(e))
        return 2

    store = None
    if args.save:
        if not config.is_persistence_configured():
            logger.error("--save requires CATCHUP_DB_PATH to be set")
            return 2
        store = SQLiteCatchUpStore(config.CATCHUP_DB_PATH)

    result = CatchUpRulesEngine(store=store).generate_catchup_recommendations(request)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
