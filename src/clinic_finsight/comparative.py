# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Period-over-period comparison.

Given a current window, ``compare_periods()`` derives the immediately
preceding window of the same length in months (or uses an explicit one),
summarises both windows with ``performance.compute_overview()`` and reports
the signed percentage change of each tracked metric.

Percentage changes are always finite:

    both values 0           →   0
    previous 0, current > 0 → 100
    previous 0, current ≤ 0 →   0
    otherwise               → (current - previous) / previous × 100

Whether an increase is good news (revenue) or bad news (costs) is left to
the presentation layer.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import PerformanceSettings
from .dataset import ClinicDataset
from .engine import CENT
from .performance import PerformanceSummary, compute_overview
from .periods import Period, previous_period
from .records import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PercentageChanges:
    """
    Signed percentage change per metric, ``(current - previous) / previous``.

    With a positive baseline, positive means current > previous. With a
    negative baseline (a loss) the sign is inverted: a profit going from
    -100 to -50 is reported as -50 %.
    """

    revenue_pct: Decimal = ZERO
    expenses_pct: Decimal = ZERO
    payroll_pct: Decimal = ZERO
    profit_pct: Decimal = ZERO
    invoices_pct: Decimal = ZERO
    payments_pct: Decimal = ZERO
    costs_pct: Decimal = ZERO


@dataclass(frozen=True)
class ComparativeResult:
    current_period: Period
    previous_period: Period
    current: PerformanceSummary
    previous: PerformanceSummary
    changes: PercentageChanges


def percentage_change(current: Decimal, previous: Decimal) -> Decimal:
    """Signed percentage change from ``previous`` to ``current``, 2 decimals."""
    if previous == 0:
        return Decimal("100") if current > 0 else ZERO
    change = (current - previous) / previous * Decimal("100")
    return change.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_changes(
    current: PerformanceSummary, previous: PerformanceSummary
) -> PercentageChanges:
    return PercentageChanges(
        revenue_pct=percentage_change(current.total_revenue, previous.total_revenue),
        expenses_pct=percentage_change(current.total_expenses, previous.total_expenses),
        payroll_pct=percentage_change(current.total_payroll, previous.total_payroll),
        profit_pct=percentage_change(current.net_profit, previous.net_profit),
        invoices_pct=percentage_change(current.total_invoices, previous.total_invoices),
        payments_pct=percentage_change(current.total_payments, previous.total_payments),
        costs_pct=percentage_change(current.total_costs, previous.total_costs),
    )


def compare_periods(
    dataset: ClinicDataset,
    current: Period,
    settings: Optional[PerformanceSettings] = None,
    previous: Optional[Period] = None,
) -> ComparativeResult:
    """
    Compare a window with the previous one.

    Parameters
    ----------
    dataset :
        Already-fetched clinic records.
    current :
        Current window.
    settings :
        Performance options (revenue source, missing month policy).
    previous :
        Explicit previous window. When omitted, both bounds of ``current``
        are shifted back by its length in months.

    Returns
    -------
    ComparativeResult
    """
    settings = settings or PerformanceSettings()
    if previous is None:
        previous = previous_period(current)

    # Only the summaries are compared, so the bucket granularity is irrelevant.
    current_summary = compute_overview(dataset, current, settings=settings).summary
    previous_summary = compute_overview(dataset, previous, settings=settings).summary

    changes = compute_changes(current_summary, previous_summary)
    logger.debug(
        "Compared %s → %s with %s → %s: revenue %s%%, profit %s%%",
        current.start,
        current.end,
        previous.start,
        previous.end,
        changes.revenue_pct,
        changes.profit_pct,
    )

    return ComparativeResult(
        current_period=current,
        previous_period=previous,
        current=current_summary,
        previous=previous_summary,
        changes=changes,
    )
