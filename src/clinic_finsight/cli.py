# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Clinic FinSight.

This module wires together the building blocks of Clinic FinSight:

- configuration (performance options, CSV data paths, display, logging),
- CSV readers producing the in-memory dataset,
- the performance engine (overview, module statistics, comparisons),
- the doctor payout calculator,
- view helpers rendering results as tables or CSV files.

The CLI is intentionally thin: it does not implement any financial logic
itself.


Subcommands
-----------

- ``overview``:
    Period buckets and summary for a window. ``--compare`` adds the
    comparison with the previous window of the same length.

- ``compare``:
    Comparison of a window with the previous one (derived automatically,
    or given with ``--previous-from`` / ``--previous-to``).

- ``module``:
    Count / total / average per bucket for one module.

- ``payouts``:
    Doctor payouts for one month (``--year`` / ``--month``, defaulting to
    the current month).


Period selection
----------------

``--from-date`` and ``--to-date`` (YYYY-MM-DD) define the window. When
omitted, the last 12 months (current month included) are used.


Configuration
-------------

By default the CLI reads ``clinic_finsight_config.toml`` in the current
directory; use ``--config PATH`` to point elsewhere. ``--granularity``,
``--display-mode`` and ``--log-level`` override the configured values for
the current run only.
"""

import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .comparative import compare_periods
from .config import DISPLAY_MODES, AppConfig, load_app_config
from .io import load_dataset
from .payouts import compute_dataset_payouts
from .performance import compute_module_performance, compute_overview
from .periods import Granularity, Period, determine_period_from_args
from .records import Module
from .views import (
    MODULE_METRICS,
    buckets_to_dataframe,
    comparison_to_dataframe,
    module_performance_to_dataframe,
    payout_totals_to_dataframe,
    payouts_to_dataframe,
    summary_to_dataframe,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _add_window_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--from-date",
        dest="from_date",
        help="Window start date (YYYY-MM-DD). Defaults to 11 months ago.",
    )
    parser.add_argument(
        "--to-date",
        dest="to_date",
        help="Window end date (YYYY-MM-DD). Defaults to the end of this month.",
    )


def _add_granularity_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        help="Bucket span. Overrides performance.granularity from the config.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m clinic_finsight.cli",
        description=(
            "Clinic FinSight - Performance & doctor payout engine for clinics. "
            "Reads invoices, payments, expenses, payroll and doctor activity, "
            "and renders period reports, comparisons and doctor payouts."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of clinic_finsight and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'clinic_finsight_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help=(
            "Override the display.mode setting. 'table' prints to stdout, "
            "'csv' writes CSV files only, 'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Output directory for CSV files. If omitted, 'data/output' is used.",
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the logging.level setting.",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    overview = subparsers.add_parser(
        "overview", help="Period buckets and financial summary for a window."
    )
    _add_window_arguments(overview)
    _add_granularity_argument(overview)
    overview.add_argument(
        "--compare",
        action="store_true",
        help="Also compare with the previous window of the same length.",
    )

    compare = subparsers.add_parser(
        "compare", help="Compare a window with the previous one."
    )
    _add_window_arguments(compare)
    compare.add_argument(
        "--previous-from",
        dest="previous_from",
        help="Explicit previous window start (YYYY-MM-DD).",
    )
    compare.add_argument(
        "--previous-to",
        dest="previous_to",
        help="Explicit previous window end (YYYY-MM-DD).",
    )

    module = subparsers.add_parser(
        "module", help="Per-bucket statistics of a single module."
    )
    module.add_argument("module", choices=[m.value for m in Module])
    _add_window_arguments(module)
    _add_granularity_argument(module)
    module.add_argument(
        "--metric",
        choices=list(MODULE_METRICS),
        default="amount",
        help="Value to report per bucket (default: amount).",
    )

    payouts = subparsers.add_parser("payouts", help="Doctor payouts for one month.")
    payouts.add_argument("--year", type=int, help="Target year (default: this year).")
    payouts.add_argument(
        "--month",
        type=int,
        choices=range(1, 13),
        metavar="{1..12}",
        help="Target month (default: this month).",
    )

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _resolve_window(args: argparse.Namespace) -> Period:
    try:
        return determine_period_from_args(args)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


def _render(
    tables: list[tuple[str, str, pd.DataFrame]],
    display_mode: str,
    output_dir: Optional[str],
) -> None:
    """
    Print and/or export (title, file stem, DataFrame) triples.

    CSV files are timestamped so successive runs never overwrite each other.
    """
    if display_mode in {"table", "both"}:
        for title, _, df in tables:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no data)")
            else:
                print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        out_dir = Path(output_dir) if output_dir else Path("data/output")
        out_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _, stem, df in tables:
            path = out_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


def _print_window(period: Period) -> None:
    print(
        f"Applied period: {period.label} "
        f"({period.start.isoformat()} → {period.end.isoformat()})"
    )


def _handle_overview(args, config: AppConfig, dataset) -> list:
    period = _resolve_window(args)
    granularity = Granularity.parse(args.granularity) if args.granularity else None

    overview = compute_overview(
        dataset,
        period,
        granularity=granularity,
        settings=config.performance,
        compare_with_previous=args.compare,
    )
    _print_window(period)

    tables = [
        (
            f"Performance by period ({overview.granularity.value})",
            "performance_buckets",
            buckets_to_dataframe(overview.buckets, config.decimals),
        ),
        (
            f"Summary ({config.currency})",
            "performance_summary",
            summary_to_dataframe(overview.summary, config.decimals),
        ),
    ]
    if overview.comparison is not None:
        prev = overview.comparison.previous_period
        tables.append(
            (
                f"Comparison with {prev.start.isoformat()} → {prev.end.isoformat()}",
                "performance_comparison",
                comparison_to_dataframe(overview.comparison, config.decimals),
            )
        )
    return tables


def _handle_compare(args, config: AppConfig, dataset) -> list:
    current = _resolve_window(args)

    previous: Optional[Period] = None
    prev_start = _parse_optional_date(args.previous_from)
    prev_end = _parse_optional_date(args.previous_to)
    if prev_start or prev_end:
        if not (prev_start and prev_end):
            raise SystemExit("--previous-from and --previous-to must be given together.")
        if prev_end < prev_start:
            raise SystemExit("Previous period end date cannot be before start date.")
        previous = Period(start=prev_start, end=prev_end, label="Previous period")

    result = compare_periods(
        dataset, current, settings=config.performance, previous=previous
    )
    _print_window(current)
    _print_window(result.previous_period)

    return [
        (
            "Comparison with previous period",
            "performance_comparison",
            comparison_to_dataframe(result, config.decimals),
        )
    ]


def _handle_module(args, config: AppConfig, dataset) -> list:
    period = _resolve_window(args)
    granularity = Granularity.parse(args.granularity) if args.granularity else None
    module = Module.parse(args.module)

    performance = compute_module_performance(
        dataset,
        module,
        period,
        granularity=granularity,
        settings=config.performance,
    )
    _print_window(period)

    return [
        (
            f"{module.value.capitalize()} ({args.metric}, "
            f"{performance.granularity.value})",
            f"module_{module.value}",
            module_performance_to_dataframe(performance, args.metric, config.decimals),
        )
    ]


def _handle_payouts(args, config: AppConfig, dataset) -> list:
    today = date.today()
    year = args.year if args.year is not None else today.year
    month = args.month if args.month is not None else today.month

    try:
        report = compute_dataset_payouts(dataset, year, month)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    _print_window(report.period)

    if not report.doctors:
        print("Warning: no doctors found in the roster.")

    return [
        (
            f"Doctor payouts {report.period.label}",
            "doctor_payouts",
            payouts_to_dataframe(report, config.decimals),
        ),
        (
            f"Payout totals ({config.currency})",
            "doctor_payout_totals",
            payout_totals_to_dataframe(report, config.decimals),
        ),
    ]


HANDLERS = {
    "overview": _handle_overview,
    "compare": _handle_compare,
    "module": _handle_module,
    "payouts": _handle_payouts,
}


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the Clinic FinSight CLI.

    Parses command-line arguments, loads the configuration and the CSV
    dataset it points to, runs the requested computation and renders the
    result as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"clinic_finsight version {__version__}")
        return

    if args.command is None:
        parser.error("A command is required: overview, compare, module or payouts.")

    # 1) Configuration
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    logging.basicConfig(level=args.log_level or config.log_level, format=LOG_FORMAT)

    # 2) Dataset from the configured CSV files
    try:
        dataset = load_dataset(config.data)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Failed to load clinic data: {exc}") from exc

    logger.info(
        "Loaded %d amount records, %d doctors, %d appointments, %d invoices",
        len(dataset.records),
        len(dataset.doctors),
        len(dataset.appointments),
        len(dataset.doctor_invoices),
    )

    # 3) Computation and rendering
    tables = HANDLERS[args.command](args, config, dataset)
    display_mode = args.display_mode or config.display_mode
    _render(tables, display_mode, args.output_dir)


if __name__ == "__main__":
    main()
