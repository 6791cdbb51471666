# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Clinic performance overview.

This module is the high-level entry point for the performance reports.
For one date window and one granularity, ``compute_overview()``:

1. loads the records of the four modules (invoices, payments, expenses,
   payroll) from the dataset,
2. folds each module into period buckets (``engine.aggregate_module``)
   and merges them into a single key → bucket mapping, so that the
   invoices and the payroll of the same month land in the same bucket,
3. orders the buckets (chronologically by default),
4. computes a ``PerformanceSummary`` over the whole window:

       total_revenue = Σ invoices (or Σ payments, see RevenueSource)
       total_costs   = Σ expenses + Σ payroll
       net_profit    = total_revenue - total_costs
       profit_margin = net_profit / total_revenue × 100   (0 if no revenue)

5. optionally attaches the comparison with the previous window of the
   same length (see ``comparative.py``).

``compute_module_performance()`` provides the per-module statistics
(count, total, average per bucket) used by module drill-down screens.

Nothing here raises on missing data: empty modules give zero buckets and
a zero summary.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Optional

from .config import PerformanceSettings
from .dataset import ClinicDataset, load_module_records
from .engine import (
    CENT,
    ModuleStats,
    PeriodBucket,
    RevenueSource,
    aggregate_module,
    compute_module_stats,
    merge_buckets,
    sort_buckets,
)
from .periods import Granularity, Period
from .records import ZERO, Module

if TYPE_CHECKING:
    from .comparative import ComparativeResult

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PerformanceSummary:
    """
    Financial summary over a set of period buckets.

    Module totals are kept alongside the derived figures so that
    comparisons can report a change for each of them.
    """

    total_invoices: Decimal = ZERO
    total_payments: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_payroll: Decimal = ZERO
    total_revenue: Decimal = ZERO
    total_costs: Decimal = ZERO
    net_profit: Decimal = ZERO
    profit_margin: Decimal = ZERO


@dataclass(frozen=True)
class PerformanceOverview:
    """Buckets and summary for one window, plus the optional comparison."""

    period: Period
    granularity: Granularity
    buckets: tuple[PeriodBucket, ...]
    summary: PerformanceSummary
    comparison: Optional["ComparativeResult"] = None


@dataclass(frozen=True)
class ModulePerformance:
    """Per-bucket statistics of a single module over a window."""

    module: Module
    period: Period
    granularity: Granularity
    statistics: tuple[ModuleStats, ...]


def compute_profit_margin(net_profit: Decimal, total_revenue: Decimal) -> Decimal:
    """Net profit as a percentage of revenue, 2 decimals; 0 without revenue."""
    if total_revenue <= 0:
        return ZERO
    return (net_profit / total_revenue * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def profit_margin_rating(profit_margin: Decimal) -> str:
    """Qualitative rating shown next to the profit margin."""
    if profit_margin >= 20:
        return "Excellent"
    if profit_margin >= 10:
        return "Good"
    if profit_margin >= 0:
        return "Fair"
    return "Loss"


def build_summary(
    buckets: Iterable[PeriodBucket],
    revenue_source: RevenueSource = RevenueSource.INVOICES,
) -> PerformanceSummary:
    """Compute the PerformanceSummary of a set of buckets."""
    totals = {module: ZERO for module in Module}
    for bucket in buckets:
        for module in Module:
            totals[module] += bucket.total_for(module)

    total_revenue = totals[revenue_source.module]
    total_costs = totals[Module.EXPENSES] + totals[Module.PAYROLL]
    net_profit = total_revenue - total_costs

    return PerformanceSummary(
        total_invoices=totals[Module.INVOICES],
        total_payments=totals[Module.PAYMENTS],
        total_expenses=totals[Module.EXPENSES],
        total_payroll=totals[Module.PAYROLL],
        total_revenue=total_revenue,
        total_costs=total_costs,
        net_profit=net_profit,
        profit_margin=compute_profit_margin(net_profit, total_revenue),
    )


def compute_overview(
    dataset: ClinicDataset,
    period: Period,
    granularity: Optional[Granularity] = None,
    settings: Optional[PerformanceSettings] = None,
    compare_with_previous: bool = False,
) -> PerformanceOverview:
    """
    Compute the performance overview of a date window.

    Parameters
    ----------
    dataset :
        Already-fetched clinic records.
    period :
        Date window; records are selected at month granularity.
    granularity :
        Bucket span. Defaults to ``settings.granularity``.
    settings :
        Performance options (revenue source, ordering, missing month
        policy). Defaults to ``PerformanceSettings()``.
    compare_with_previous :
        When True, the comparison with the immediately preceding window of
        the same length is attached to the result.

    Returns
    -------
    PerformanceOverview
    """
    settings = settings or PerformanceSettings()
    granularity = granularity or settings.granularity

    # Modules are independent folds, merged afterwards.
    module_buckets = [
        aggregate_module(
            load_module_records(
                dataset,
                module,
                period.start,
                period.end,
                settings.missing_month_policy,
                granularity,
            ),
            granularity,
            settings.missing_month_policy,
        )
        for module in Module
    ]
    merged = merge_buckets(*module_buckets)
    buckets = sort_buckets(merged, settings.bucket_order)
    summary = build_summary(buckets, settings.revenue_source)

    logger.debug(
        "Overview %s → %s: %d %s buckets, revenue=%s, costs=%s",
        period.start,
        period.end,
        len(buckets),
        granularity.value,
        summary.total_revenue,
        summary.total_costs,
    )

    comparison = None
    if compare_with_previous:
        from .comparative import compare_periods

        comparison = compare_periods(dataset, period, settings=settings)

    return PerformanceOverview(
        period=period,
        granularity=granularity,
        buckets=tuple(buckets),
        summary=summary,
        comparison=comparison,
    )


def compute_module_performance(
    dataset: ClinicDataset,
    module: Module,
    period: Period,
    granularity: Optional[Granularity] = None,
    settings: Optional[PerformanceSettings] = None,
) -> ModulePerformance:
    """Count, total and average of one module's records per bucket."""
    settings = settings or PerformanceSettings()
    granularity = granularity or settings.granularity

    records = load_module_records(
        dataset,
        module,
        period.start,
        period.end,
        settings.missing_month_policy,
        granularity,
    )
    stats = compute_module_stats(
        records,
        granularity,
        settings.missing_month_policy,
        settings.bucket_order,
    )

    return ModulePerformance(
        module=module,
        period=period,
        granularity=granularity,
        statistics=tuple(stats),
    )
