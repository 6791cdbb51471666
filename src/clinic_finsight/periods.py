# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for Clinic FinSight.

This module defines:

- the ``Period`` value object (a date window with a human-readable label),
- the bucketing ``Granularity`` (monthly, quarterly, yearly),
- the ``MissingMonthPolicy`` applied to records without a month,
- ``resolve_period()``, which maps a record's (year, month) to a canonical
  ``PeriodKey`` and its display label,
- month arithmetic used by the comparative analysis (``shift_months``,
  ``months_in_period``, ``previous_period``) and window helpers
  (``month_period``, ``default_period``, ``determine_period_from_args``).
"""

import math
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .records import MONTH_ABBREVIATIONS


class Granularity(Enum):
    """Calendar span used to bucket records."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: "str | Granularity") -> "Granularity":
        if isinstance(value, Granularity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown granularity: {value!r}. "
                "Expected one of: monthly, quarterly, yearly."
            ) from exc


class MissingMonthPolicy(Enum):
    """
    What to do with records that carry a year but no month.

    DEFAULT_TO_FIRST :
        Treat the record as dated in January (Q1). This is the historical
        behaviour of the back office reports.
    EXCLUDE :
        Leave the record out of monthly and quarterly reports.
    """

    DEFAULT_TO_FIRST = "default_to_first"
    EXCLUDE = "exclude"

    @classmethod
    def parse(cls, value: "str | MissingMonthPolicy") -> "MissingMonthPolicy":
        if isinstance(value, MissingMonthPolicy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown missing month policy: {value!r}. "
                "Expected one of: default_to_first, exclude."
            ) from exc

    def apply(self, month: Optional[int]) -> Optional[int]:
        """Return the month to use for a record, or None to skip it."""
        if month is not None:
            return month
        if self is MissingMonthPolicy.DEFAULT_TO_FIRST:
            return 1
        return None


@dataclass(frozen=True, order=True)
class PeriodKey:
    """
    Canonical bucket key.

    ``index`` is the month for monthly buckets, the quarter for quarterly
    buckets and 0 for yearly buckets. Keys order chronologically.
    """

    year: int
    index: int = 0


@dataclass(frozen=True)
class Period:
    """Represents a reporting period with a human-readable label."""

    start: date
    end: date
    label: str = ""

    def contains_month(self, year: int, month: int) -> bool:
        """True if (year, month) falls within the period's months."""
        return (
            (self.start.year, self.start.month)
            <= (year, month)
            <= (self.end.year, self.end.month)
        )


def resolve_period(
    year: int,
    month: Optional[int],
    granularity: Granularity,
    policy: MissingMonthPolicy = MissingMonthPolicy.DEFAULT_TO_FIRST,
) -> Optional[tuple[PeriodKey, str]]:
    """
    Map a record's (year, month) to its bucket key and display label.

    - monthly   → key (year, month),   label "Jan 2024"
    - quarterly → key (year, quarter), label "Q1 2024"
    - yearly    → key (year, 0),       label "2024"

    Records without a month are handled by ``policy``; the function only
    returns None when the policy excludes such a record. Yearly buckets
    never need the month.
    """
    if granularity is Granularity.YEARLY:
        return PeriodKey(year, 0), str(year)

    resolved_month = policy.apply(month)
    if resolved_month is None:
        return None

    if granularity is Granularity.QUARTERLY:
        quarter = math.ceil(resolved_month / 3)
        return PeriodKey(year, quarter), f"Q{quarter} {year}"

    label = f"{MONTH_ABBREVIATIONS[resolved_month - 1]} {year}"
    return PeriodKey(year, resolved_month), label


def shift_months(d: date, months: int) -> date:
    """
    Shift a date by a number of months (negative to go back).

    The day is clamped to the length of the target month, so 31 March
    shifted by -1 gives 28/29 February.
    """
    total = d.year * 12 + (d.month - 1) + months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(d.day, monthrange(year, month)[1])
    return date(year, month, day)


def months_in_period(period: Period) -> int:
    """Inclusive number of calendar months spanned by the period."""
    return (
        (period.end.year - period.start.year) * 12
        + (period.end.month - period.start.month)
        + 1
    )


def previous_period(period: Period) -> Period:
    """
    Immediately preceding window of the same length in months.

    Both bounds are shifted back by ``months_in_period(period)``; the result
    is not necessarily aligned on calendar month ends.
    """
    length = months_in_period(period)
    start = shift_months(period.start, -length)
    end = shift_months(period.end, -length)
    return Period(start=start, end=end, label=f"Previous period ({start} → {end})")


def month_period(year: int, month: int) -> Period:
    """Full calendar month as a Period."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month!r}. Expected 1-12.")
    start = date(year, month, 1)
    end = date(year, month, monthrange(year, month)[1])
    return Period(start=start, end=end, label=f"{MONTH_ABBREVIATIONS[month - 1]} {year}")


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def default_period() -> Period:
    """The last 12 months, from the first day of the month 11 months ago
    to the last day of the current month."""
    today = _today()
    start = shift_months(today.replace(day=1), -11)
    end = date(today.year, today.month, monthrange(today.year, today.month)[1])
    return Period(start=start, end=end, label="Last 12 months")


def determine_period_from_args(args) -> Period:
    """
    Determine the reporting window from CLI args.

    ``args.from_date`` / ``args.to_date`` (YYYY-MM-DD) define a custom
    window; a missing bound falls back to the default 12-month window.
    """
    from_raw: Optional[str] = getattr(args, "from_date", None)
    to_raw: Optional[str] = getattr(args, "to_date", None)

    if not from_raw and not to_raw:
        return default_period()

    fallback = default_period()
    start = date.fromisoformat(from_raw) if from_raw else fallback.start
    end = date.fromisoformat(to_raw) if to_raw else fallback.end

    if end < start:
        raise ValueError("Custom period end date cannot be before start date.")

    return Period(start=start, end=end, label=f"Custom period ({start} → {end})")
