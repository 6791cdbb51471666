from datetime import date
from decimal import Decimal

import pytest

from clinic_finsight.dataset import ClinicDataset, load_module_records
from clinic_finsight.periods import Granularity, MissingMonthPolicy
from clinic_finsight.records import Module, amount_record


@pytest.fixture
def dataset() -> ClinicDataset:
    return ClinicDataset.build(
        records=[
            amount_record("invoices", 2024, None, 100),
            amount_record("invoices", 2024, 8, 40),
            amount_record("payments", 2024, 8, 99),
        ]
    )


def amounts(records) -> list[Decimal]:
    return [r.amount for r in records]


def test_window_bounds_are_inclusive_months(dataset) -> None:
    selected = load_module_records(
        dataset, Module.INVOICES, date(2024, 8, 31), date(2024, 8, 31)
    )
    assert amounts(selected) == [Decimal("40")]


def test_undated_record_uses_january_by_default(dataset) -> None:
    crossing = load_module_records(
        dataset, Module.INVOICES, date(2024, 7, 1), date(2025, 6, 30)
    )
    assert amounts(crossing) == [Decimal("40")]

    calendar_year = load_module_records(
        dataset, Module.INVOICES, date(2024, 1, 1), date(2024, 12, 31)
    )
    assert amounts(calendar_year) == [Decimal("100"), Decimal("40")]


@pytest.mark.parametrize("granularity", [Granularity.MONTHLY, Granularity.QUARTERLY, None])
def test_exclude_policy_drops_undated_records(dataset, granularity) -> None:
    selected = load_module_records(
        dataset,
        Module.INVOICES,
        date(2024, 1, 1),
        date(2024, 12, 31),
        MissingMonthPolicy.EXCLUDE,
        granularity,
    )
    assert amounts(selected) == [Decimal("40")]


def test_exclude_policy_keeps_year_check_for_yearly_buckets(dataset) -> None:
    selected = load_module_records(
        dataset,
        Module.INVOICES,
        date(2024, 7, 1),
        date(2025, 6, 30),
        MissingMonthPolicy.EXCLUDE,
        Granularity.YEARLY,
    )
    assert amounts(selected) == [Decimal("100"), Decimal("40")]
