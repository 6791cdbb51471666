# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Clinic FinSight.

The engine returns frozen dataclasses holding Decimal amounts. The helpers
in this module turn them into pandas DataFrames ready for display
(``to_string``) or CSV export (``to_csv``), rounding amounts to the
requested number of decimals. They apply no business rule of their own.
"""

from collections.abc import Iterable
from decimal import Decimal

import pandas as pd

from .comparative import ComparativeResult
from .engine import PeriodBucket
from .payouts import DoctorPayoutReport
from .performance import ModulePerformance, PerformanceSummary, profit_margin_rating

MODULE_METRICS: tuple[str, ...] = ("amount", "count", "average")


def _num(value: Decimal, decimals: int) -> float:
    return round(float(value), decimals)


def buckets_to_dataframe(buckets: Iterable[PeriodBucket], decimals: int = 2) -> pd.DataFrame:
    """
    One row per period bucket, in the given order.

    Columns: period, invoices, payments, expenses, payroll.
    """
    columns = ["period", "invoices", "payments", "expenses", "payroll"]
    rows = [
        {
            "period": b.period_label,
            "invoices": _num(b.invoices_total, decimals),
            "payments": _num(b.payments_total, decimals),
            "expenses": _num(b.expenses_total, decimals),
            "payroll": _num(b.payroll_total, decimals),
        }
        for b in buckets
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def summary_to_dataframe(summary: PerformanceSummary, decimals: int = 2) -> pd.DataFrame:
    """
    Convert a PerformanceSummary into a key/label/value/unit table.

    The profit margin row carries its qualitative rating in ``notes``.
    """
    rows = [
        ("total_revenue", "Total revenue", summary.total_revenue, "amount", ""),
        ("total_costs", "Total costs", summary.total_costs, "amount", ""),
        ("net_profit", "Net profit", summary.net_profit, "amount", ""),
        (
            "profit_margin",
            "Profit margin",
            summary.profit_margin,
            "percent",
            profit_margin_rating(summary.profit_margin),
        ),
        ("total_invoices", "Invoices", summary.total_invoices, "amount", ""),
        ("total_payments", "Payments", summary.total_payments, "amount", ""),
        ("total_expenses", "Expenses", summary.total_expenses, "amount", ""),
        ("total_payroll", "Payroll", summary.total_payroll, "amount", ""),
    ]
    return pd.DataFrame(
        [
            {
                "key": key,
                "label": label,
                "value": _num(value, decimals),
                "unit": unit,
                "notes": notes,
            }
            for key, label, value, unit, notes in rows
        ],
        columns=["key", "label", "value", "unit", "notes"],
    )


def comparison_to_dataframe(result: ComparativeResult, decimals: int = 2) -> pd.DataFrame:
    """One row per compared metric: current, previous and change (%)."""
    current = result.current
    previous = result.previous
    changes = result.changes

    rows = [
        ("revenue", current.total_revenue, previous.total_revenue, changes.revenue_pct),
        ("invoices", current.total_invoices, previous.total_invoices, changes.invoices_pct),
        ("payments", current.total_payments, previous.total_payments, changes.payments_pct),
        ("expenses", current.total_expenses, previous.total_expenses, changes.expenses_pct),
        ("payroll", current.total_payroll, previous.total_payroll, changes.payroll_pct),
        ("costs", current.total_costs, previous.total_costs, changes.costs_pct),
        ("profit", current.net_profit, previous.net_profit, changes.profit_pct),
    ]
    return pd.DataFrame(
        [
            {
                "metric": metric,
                "current": _num(cur, decimals),
                "previous": _num(prev, decimals),
                "change_pct": _num(pct, 2),
            }
            for metric, cur, prev, pct in rows
        ],
        columns=["metric", "current", "previous", "change_pct"],
    )


def module_performance_to_dataframe(
    performance: ModulePerformance,
    metric: str = "amount",
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Module statistics per bucket.

    ``metric`` selects the value column: "amount" (total), "count" or
    "average".
    """
    if metric not in MODULE_METRICS:
        raise ValueError(
            f"Unknown metric: {metric!r}. Expected one of: {', '.join(MODULE_METRICS)}."
        )

    rows = []
    for s in performance.statistics:
        row = {"period": s.period_label, "count": s.count}
        if metric == "average":
            row[metric] = _num(s.average, decimals)
        elif metric == "amount":
            row[metric] = _num(s.total, decimals)
        rows.append(row)

    columns = ["period", "count"] if metric == "count" else ["period", "count", metric]
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows)
    return df[columns]


def payouts_to_dataframe(report: DoctorPayoutReport, decimals: int = 2) -> pd.DataFrame:
    """One row per doctor, in roster order."""
    columns = [
        "doctor_id",
        "doctor_name",
        "specialization",
        "appointments",
        "invoices",
        "revenue_generated",
        "sales_percentage",
        "base_salary",
        "sales_incentive",
        "total_payout",
        "incentive_calculation",
    ]
    rows = [
        {
            "doctor_id": d.doctor_id,
            "doctor_name": d.doctor_name,
            "specialization": d.specialization or "",
            "appointments": d.appointment_count,
            "invoices": d.invoice_count,
            "revenue_generated": _num(d.revenue_generated, decimals),
            "sales_percentage": float(d.sales_percentage),
            "base_salary": _num(d.base_salary, decimals),
            "sales_incentive": _num(d.sales_incentive, decimals),
            "total_payout": _num(d.total_payout, decimals),
            "incentive_calculation": d.incentive_calculation,
        }
        for d in report.doctors
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def payout_totals_to_dataframe(
    report: DoctorPayoutReport, decimals: int = 2
) -> pd.DataFrame:
    totals = report.totals
    rows = [
        ("total_doctors", float(totals.total_doctors)),
        ("total_appointments", float(totals.total_appointments)),
        ("total_invoices", float(totals.total_invoices)),
        ("total_revenue", _num(totals.total_revenue, decimals)),
        ("total_base_salary", _num(totals.total_base_salary, decimals)),
        ("total_sales_incentive", _num(totals.total_sales_incentive, decimals)),
        ("total_payout", _num(totals.total_payout, decimals)),
    ]
    return pd.DataFrame(rows, columns=["key", "value"])
