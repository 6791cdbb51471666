from datetime import date
from decimal import Decimal

import pytest

from clinic_finsight.comparative import compare_periods
from clinic_finsight.dataset import ClinicDataset
from clinic_finsight.performance import (
    build_summary,
    compute_module_performance,
    compute_overview,
)
from clinic_finsight.payouts import compute_doctor_payouts
from clinic_finsight.periods import Granularity, Period
from clinic_finsight.records import Doctor, DoctorInvoice, Module, amount_record
from clinic_finsight.views import (
    buckets_to_dataframe,
    comparison_to_dataframe,
    module_performance_to_dataframe,
    payout_totals_to_dataframe,
    payouts_to_dataframe,
    summary_to_dataframe,
)


@pytest.fixture
def dataset() -> ClinicDataset:
    return ClinicDataset.build(
        records=[
            amount_record("invoices", 2024, 1, "100.4"),
            amount_record("invoices", 2024, 1, "20"),
            amount_record("invoices", 2024, 2, "50"),
            amount_record("expenses", 2024, 2, "30"),
            amount_record("invoices", 2023, 12, "80"),
        ]
    )


@pytest.fixture
def window() -> Period:
    return Period(date(2024, 1, 1), date(2024, 2, 29))


def test_buckets_to_dataframe(dataset, window) -> None:
    overview = compute_overview(dataset, window, Granularity.MONTHLY)
    df = buckets_to_dataframe(overview.buckets)

    assert list(df.columns) == ["period", "invoices", "payments", "expenses", "payroll"]
    assert df["period"].tolist() == ["Jan 2024", "Feb 2024"]
    assert df["invoices"].tolist() == [120.4, 50.0]
    assert df["expenses"].tolist() == [0.0, 30.0]


def test_buckets_to_dataframe_empty() -> None:
    df = buckets_to_dataframe([])
    assert df.empty
    assert list(df.columns) == ["period", "invoices", "payments", "expenses", "payroll"]


def test_summary_to_dataframe_carries_rating() -> None:
    summary = build_summary([])
    df = summary_to_dataframe(summary)

    row = df.set_index("key").loc["profit_margin"]
    assert row["unit"] == "percent"
    assert row["notes"] == "Fair"
    assert df["key"].tolist()[:3] == ["total_revenue", "total_costs", "net_profit"]


def test_comparison_to_dataframe(dataset) -> None:
    result = compare_periods(dataset, Period(date(2024, 1, 1), date(2024, 1, 31)))
    df = comparison_to_dataframe(result).set_index("metric")

    assert df.loc["revenue", "current"] == pytest.approx(120.4)
    assert df.loc["revenue", "previous"] == 80.0
    assert df.loc["revenue", "change_pct"] == pytest.approx(50.5)
    assert df.loc["expenses", "change_pct"] == 0.0


@pytest.mark.parametrize(
    "metric, expected",
    [("amount", [120.4, 50.0]), ("average", [60.2, 50.0])],
)
def test_module_performance_to_dataframe(dataset, window, metric, expected) -> None:
    perf = compute_module_performance(
        dataset, Module.INVOICES, window, Granularity.MONTHLY
    )
    df = module_performance_to_dataframe(perf, metric)

    assert list(df.columns) == ["period", "count", metric]
    assert df["count"].tolist() == [2, 1]
    assert df[metric].tolist() == pytest.approx(expected)


def test_module_performance_count_metric(dataset, window) -> None:
    perf = compute_module_performance(
        dataset, Module.INVOICES, window, Granularity.MONTHLY
    )
    df = module_performance_to_dataframe(perf, "count")
    assert list(df.columns) == ["period", "count"]


def test_module_performance_unknown_metric(dataset, window) -> None:
    perf = compute_module_performance(dataset, Module.INVOICES, window)
    with pytest.raises(ValueError, match="Unknown metric"):
        module_performance_to_dataframe(perf, "median")


def test_payout_views() -> None:
    doctor = Doctor(
        doctor_id="d1",
        name="Dr. One",
        sales_percentage=Decimal("10"),
        base_salary=Decimal("2000"),
    )
    invoice = DoctorInvoice("i1", "d1", None, date(2024, 3, 5), Decimal("5000"))
    report = compute_doctor_payouts([doctor], [], [invoice], 2024, 3)

    df = payouts_to_dataframe(report)
    assert df.loc[0, "total_payout"] == 2500.0
    assert df.loc[0, "incentive_calculation"] == "5000.00 × 10% = 500.00"

    totals = payout_totals_to_dataframe(report).set_index("key")["value"]
    assert totals["total_doctors"] == 1.0
    assert totals["total_payout"] == 2500.0
