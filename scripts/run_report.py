#!/usr/bin/env python3
"""CLI script to print the break-even and scenario report for a terms JSON file."""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv()

from payoff_engine.config import load_config
from payoff_engine.engine import PayoffEngine
from payoff_engine.models.errors import PayoffEngineError
from payoff_engine.models.schemas import parse_terms
from payoff_engine.report.formatters import curve_to_frame, format_invalid_terms


def main():
    parser = argparse.ArgumentParser(description="Structured note payoff report")
    parser.add_argument("terms", type=Path, help="JSON file with the note terms")
    parser.add_argument("--spots", type=float, nargs="+", help="Current spot per underlying")
    parser.add_argument("--notional", type=float, help="Override the notional for the scenarios")
    parser.add_argument("--levels", type=float, nargs="+", help="Scenario levels in percent")
    parser.add_argument(
        "--fractions", action="store_true", help="Terms are given as 0-1 fractions"
    )
    parser.add_argument("--curve-csv", type=Path, help="Write the payoff curve to this CSV file")
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    engine = PayoffEngine(config)

    payload = json.loads(args.terms.read_text())
    print(
        engine.build_report(
            payload,
            fractions=args.fractions,
            notional=args.notional,
            levels=args.levels,
            spots=args.spots,
        )
    )

    if args.curve_csv:
        try:
            terms = parse_terms(payload, fractions=args.fractions)
        except PayoffEngineError as exc:
            print(format_invalid_terms(exc), file=sys.stderr)
            return 1
        curve_to_frame(engine.generate_curve(terms)).to_csv(args.curve_csv, index=False)
        print(f"\nCurve written to {args.curve_csv}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
