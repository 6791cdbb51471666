from datetime import date
from types import SimpleNamespace

import pytest

import clinic_finsight.periods as periods
from clinic_finsight.periods import (
    Granularity,
    MissingMonthPolicy,
    Period,
    PeriodKey,
    resolve_period,
)


@pytest.mark.parametrize(
    "year, month, granularity, expected",
    [
        (2024, 1, Granularity.MONTHLY, (PeriodKey(2024, 1), "Jan 2024")),
        (2024, 12, Granularity.MONTHLY, (PeriodKey(2024, 12), "Dec 2024")),
        (2024, 1, Granularity.QUARTERLY, (PeriodKey(2024, 1), "Q1 2024")),
        (2024, 3, Granularity.QUARTERLY, (PeriodKey(2024, 1), "Q1 2024")),
        (2024, 4, Granularity.QUARTERLY, (PeriodKey(2024, 2), "Q2 2024")),
        (2024, 11, Granularity.QUARTERLY, (PeriodKey(2024, 4), "Q4 2024")),
        (2024, 7, Granularity.YEARLY, (PeriodKey(2024, 0), "2024")),
    ],
)
def test_resolve_period(year, month, granularity, expected) -> None:
    assert resolve_period(year, month, granularity) == expected


def test_missing_month_defaults_to_first_month() -> None:
    assert resolve_period(2024, None, Granularity.MONTHLY) == (
        PeriodKey(2024, 1),
        "Jan 2024",
    )
    assert resolve_period(2024, None, Granularity.QUARTERLY) == (
        PeriodKey(2024, 1),
        "Q1 2024",
    )


def test_missing_month_exclude_policy() -> None:
    policy = MissingMonthPolicy.EXCLUDE
    assert resolve_period(2024, None, Granularity.MONTHLY, policy) is None
    assert resolve_period(2024, None, Granularity.QUARTERLY, policy) is None
    # Yearly buckets do not need the month.
    assert resolve_period(2024, None, Granularity.YEARLY, policy) == (
        PeriodKey(2024, 0),
        "2024",
    )


def test_period_keys_order_chronologically() -> None:
    keys = [PeriodKey(2025, 1), PeriodKey(2024, 12), PeriodKey(2024, 2)]
    assert sorted(keys) == [PeriodKey(2024, 2), PeriodKey(2024, 12), PeriodKey(2025, 1)]


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (date(2024, 3, 15), -1, date(2024, 2, 15)),
        (date(2024, 3, 31), -1, date(2024, 2, 29)),
        (date(2023, 3, 31), -1, date(2023, 2, 28)),
        (date(2024, 1, 1), -3, date(2023, 10, 1)),
        (date(2024, 11, 30), 3, date(2025, 2, 28)),
        (date(2024, 6, 30), -12, date(2023, 6, 30)),
    ],
)
def test_shift_months(start, months, expected) -> None:
    assert periods.shift_months(start, months) == expected


def test_months_in_period_is_inclusive() -> None:
    assert periods.months_in_period(Period(date(2024, 1, 1), date(2024, 1, 31))) == 1
    assert periods.months_in_period(Period(date(2024, 1, 1), date(2024, 3, 31))) == 3
    assert periods.months_in_period(Period(date(2023, 11, 1), date(2024, 2, 29))) == 4


def test_previous_period_same_length() -> None:
    current = Period(date(2024, 1, 1), date(2024, 3, 31))
    previous = periods.previous_period(current)
    assert previous.start == date(2023, 10, 1)
    assert previous.end == date(2023, 12, 31)


def test_previous_period_is_not_calendar_aligned() -> None:
    current = Period(date(2024, 2, 1), date(2024, 4, 30))
    previous = periods.previous_period(current)
    assert previous.start == date(2023, 11, 1)
    # 30 April shifted back 3 months: 30 January, not 31.
    assert previous.end == date(2024, 1, 30)


def test_contains_month_bounds_inclusive() -> None:
    p = Period(date(2024, 2, 15), date(2024, 4, 1))
    assert p.contains_month(2024, 2)
    assert p.contains_month(2024, 4)
    assert not p.contains_month(2024, 1)
    assert not p.contains_month(2024, 5)


def test_month_period() -> None:
    p = periods.month_period(2024, 2)
    assert p.start == date(2024, 2, 1)
    assert p.end == date(2024, 2, 29)
    assert p.label == "Feb 2024"
    with pytest.raises(ValueError):
        periods.month_period(2024, 13)


def test_default_period_covers_twelve_months(monkeypatch) -> None:
    monkeypatch.setattr(periods, "_today", lambda: date(2024, 5, 17))
    p = periods.default_period()
    assert p.start == date(2023, 6, 1)
    assert p.end == date(2024, 5, 31)
    assert periods.months_in_period(p) == 12


def test_determine_period_from_args(monkeypatch) -> None:
    monkeypatch.setattr(periods, "_today", lambda: date(2024, 5, 17))

    args = SimpleNamespace(from_date="2024-01-01", to_date="2024-03-31")
    p = periods.determine_period_from_args(args)
    assert (p.start, p.end) == (date(2024, 1, 1), date(2024, 3, 31))

    args = SimpleNamespace(from_date="2024-02-01", to_date=None)
    p = periods.determine_period_from_args(args)
    assert (p.start, p.end) == (date(2024, 2, 1), date(2024, 5, 31))

    args = SimpleNamespace(from_date=None, to_date=None)
    assert periods.determine_period_from_args(args).label == "Last 12 months"

    with pytest.raises(ValueError, match="before start"):
        periods.determine_period_from_args(
            SimpleNamespace(from_date="2024-03-01", to_date="2024-01-01")
        )


def test_granularity_parse() -> None:
    assert Granularity.parse("Quarterly") is Granularity.QUARTERLY
    with pytest.raises(ValueError, match="Unknown granularity"):
        Granularity.parse("weekly")
