# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Core bucketing engine for Clinic FinSight.

This module groups module records (invoices, payments, expenses, payroll)
into calendar buckets at a given granularity.

1. Period buckets
   ---------------
   A ``PeriodBucket`` holds one total per module for one period key.
   ``aggregate_module()`` folds a list of ``AmountRecord`` into a mapping
   ``{PeriodKey -> PeriodBucket}``:

   - the period key and label come from ``periods.resolve_period()``,
   - a zero bucket is created the first time a key is seen (its label is
     fixed at that moment),
   - the record amount is added to the slot of the record's module.

   The fold never mutates its input mapping: buckets are frozen and a new
   dictionary is returned, so the result of one stage can be handed to the
   next one by value. Summation is commutative, so the order of records
   does not change any total.

2. Merging and ordering
   ---------------------
   ``merge_buckets()`` sums several bucket mappings key-wise (one per
   module), and ``sort_buckets()`` returns the final list either in
   chronological order (by PeriodKey) or, for compatibility with the
   legacy reports, by display label.

3. Module statistics
   ------------------
   ``compute_module_stats()`` returns, for one module, the number of
   records, the total and the average amount per bucket.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from .periods import Granularity, MissingMonthPolicy, PeriodKey, resolve_period
from .records import ZERO, AmountRecord, Module

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Bucket attribute receiving the amounts of each module.
TOTAL_FIELDS: dict[Module, str] = {
    Module.INVOICES: "invoices_total",
    Module.PAYMENTS: "payments_total",
    Module.EXPENSES: "expenses_total",
    Module.PAYROLL: "payroll_total",
}


class BucketOrder(Enum):
    """Ordering of the final bucket list."""

    CHRONOLOGICAL = "chronological"
    LABEL = "label"

    @classmethod
    def parse(cls, value: "str | BucketOrder") -> "BucketOrder":
        if isinstance(value, BucketOrder):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown bucket order: {value!r}. Expected one of: chronological, label."
            ) from exc


class RevenueSource(Enum):
    """Module whose totals count as revenue in the summary."""

    INVOICES = "invoices"
    PAYMENTS = "payments"

    @classmethod
    def parse(cls, value: "str | RevenueSource") -> "RevenueSource":
        if isinstance(value, RevenueSource):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown revenue source: {value!r}. Expected one of: invoices, payments."
            ) from exc

    @property
    def module(self) -> Module:
        return Module(self.value)


@dataclass(frozen=True)
class PeriodBucket:
    """
    Aggregation row for one calendar span.

    Attributes
    ----------
    key :
        Canonical period key (year + month/quarter).
    period_label :
        Display label, e.g. "Jan 2024", "Q1 2024" or "2024".
    invoices_total, payments_total, expenses_total, payroll_total :
        Summed amounts per module (0 when the module has no record).
    """

    key: PeriodKey
    period_label: str
    invoices_total: Decimal = ZERO
    payments_total: Decimal = ZERO
    expenses_total: Decimal = ZERO
    payroll_total: Decimal = ZERO

    def total_for(self, module: Module) -> Decimal:
        return getattr(self, TOTAL_FIELDS[module])

    def add(self, module: Module, amount: Decimal) -> "PeriodBucket":
        """Return a copy of the bucket with ``amount`` added to ``module``."""
        field = TOTAL_FIELDS[module]
        return replace(self, **{field: getattr(self, field) + amount})


def aggregate_module(
    records: Iterable[AmountRecord],
    granularity: Granularity,
    policy: MissingMonthPolicy = MissingMonthPolicy.DEFAULT_TO_FIRST,
    buckets: Optional[Mapping[PeriodKey, PeriodBucket]] = None,
) -> dict[PeriodKey, PeriodBucket]:
    """Fold amount records into period buckets.

    Args:
        records: Records of one (or several) modules. Each record's amount
            goes to the slot of its own ``module``.
        granularity: Calendar span of the buckets.
        policy: Handling of records without a month.
        buckets: Optional starting mapping. It is copied, never modified.

    Returns:
        A new dictionary ``{PeriodKey -> PeriodBucket}``.
    """
    out: dict[PeriodKey, PeriodBucket] = dict(buckets or {})
    seen = 0
    skipped = 0

    for record in records:
        seen += 1
        resolved = resolve_period(record.year, record.month, granularity, policy)
        if resolved is None:
            skipped += 1
            continue

        key, label = resolved
        bucket = out.get(key)
        if bucket is None:
            bucket = PeriodBucket(key=key, period_label=label)
        out[key] = bucket.add(record.module, record.amount)

    if skipped:
        logger.debug(
            "Skipped %d of %d records without a month (policy=%s)",
            skipped,
            seen,
            policy.value,
        )
    return out


def merge_buckets(
    *bucket_maps: Mapping[PeriodKey, PeriodBucket],
) -> dict[PeriodKey, PeriodBucket]:
    """Sum several bucket mappings key-wise.

    When a key appears in several mappings, the label of the first mapping
    wins and every module total is added.
    """
    merged: dict[PeriodKey, PeriodBucket] = {}
    for bucket_map in bucket_maps:
        for key, bucket in bucket_map.items():
            current = merged.get(key)
            if current is None:
                merged[key] = bucket
                continue
            for module in Module:
                current = current.add(module, bucket.total_for(module))
            merged[key] = current
    return merged


def sort_buckets(
    buckets: Mapping[PeriodKey, PeriodBucket],
    order: BucketOrder = BucketOrder.CHRONOLOGICAL,
) -> list[PeriodBucket]:
    """Return the buckets as a list in the requested order."""
    if order is BucketOrder.LABEL:
        # Legacy behaviour: plain string sort of the display labels.
        return sorted(buckets.values(), key=lambda b: b.period_label)
    return [buckets[key] for key in sorted(buckets)]


@dataclass(frozen=True)
class ModuleStats:
    """Per-bucket statistics of one module."""

    key: PeriodKey
    period_label: str
    count: int
    total: Decimal
    average: Decimal


def compute_module_stats(
    records: Iterable[AmountRecord],
    granularity: Granularity,
    policy: MissingMonthPolicy = MissingMonthPolicy.DEFAULT_TO_FIRST,
    order: BucketOrder = BucketOrder.CHRONOLOGICAL,
) -> list[ModuleStats]:
    """
    Count, sum and average the records of one module per bucket.

    The average is rounded to cents (half-up). The result follows ``order``,
    like the buckets returned by ``sort_buckets()``.
    """
    counts: dict[PeriodKey, int] = {}
    totals: dict[PeriodKey, Decimal] = {}
    labels: dict[PeriodKey, str] = {}

    for record in records:
        resolved = resolve_period(record.year, record.month, granularity, policy)
        if resolved is None:
            continue
        key, label = resolved
        labels.setdefault(key, label)
        counts[key] = counts.get(key, 0) + 1
        totals[key] = totals.get(key, ZERO) + record.amount

    stats: list[ModuleStats] = []
    for key in sorted(counts):
        count = counts[key]
        total = totals[key]
        average = (total / count).quantize(CENT, rounding=ROUND_HALF_UP)
        stats.append(
            ModuleStats(
                key=key,
                period_label=labels[key],
                count=count,
                total=total,
                average=average,
            )
        )
    if order is BucketOrder.LABEL:
        stats.sort(key=lambda s: s.period_label)
    return stats
