"""
Command line entry point.

    excess-mortality --data-dir data
    excess-mortality --data-dir data --settings settings.json --bootstrap 1000
    excess-mortality --policy reference --reference-rate 21.0

Loads the tables, runs the analysis, prints the report. Exit code 1 means the
input tables failed validation or an estimate could not be computed, 2 means
a table or settings file is missing.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from pydantic import ValidationError

from core.errors import AnalysisDataError
from core.logs import configure_logging
from core.settings import load_settings
from engine.runner import run_from_directory
from report.printer import print_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="excess-mortality",
        description="Excess mortality from a post-event household survey.",
    )
    ap.add_argument("--data-dir", default="data", help="Directory holding the input tables")
    ap.add_argument("--settings", help="JSON settings file (see core/settings.py)")
    ap.add_argument(
        "--policy",
        choices=["exclude", "zero", "historical", "reference", "observed"],
        help="Single-person household policy for the primary estimate",
    )
    ap.add_argument("--reference-rate", type=float, help="Reference rate for size-1 households")
    ap.add_argument("--population", type=float, help="Effective population")
    ap.add_argument("--bootstrap", type=int, help="Number of cluster bootstrap replicates")
    ap.add_argument("--seed", type=int, help="Bootstrap seed")
    ap.add_argument(
        "--include-baseline-variance",
        action="store_true",
        default=None,
        help="Add the baseline SE to the excess-death interval",
    )
    ap.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    ap.add_argument("--log-file", help="Also write logs to this file")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level.upper(), args.log_file)

    try:
        config = load_settings(
            args.settings,
            single_household_policy=args.policy,
            reference_rate_single=args.reference_rate,
            population=args.population,
            n_bootstrap=args.bootstrap,
            seed=args.seed,
            include_baseline_variance=args.include_baseline_variance,
        )
    except FileNotFoundError as exc:
        logger.error("Settings file not found: %s", exc)
        return 2
    except ValidationError as exc:
        logger.error("Invalid settings:\n%s", exc)
        return 1

    try:
        results = run_from_directory(args.data_dir, config)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 2
    except AnalysisDataError as exc:
        logger.error("%s", exc)
        return 1
    except ValueError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    print_report(results)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
