from decimal import Decimal

import pytest

from clinic_finsight.records import (
    AmountRecord,
    Module,
    amount_record,
    doctor_from_mapping,
    parse_month,
    record_from_stats_row,
    to_decimal,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("  ", Decimal("0")),
        ("abc", Decimal("0")),
        (float("nan"), Decimal("0")),
        (0.1, Decimal("0.1")),
        (150, Decimal("150")),
        ("99.95", Decimal("99.95")),
        (Decimal("12.50"), Decimal("12.50")),
    ],
)
def test_to_decimal_defaults_to_zero(raw, expected) -> None:
    assert to_decimal(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1, 1),
        (12, 12),
        (13, None),
        (0, None),
        ("3", 3),
        ("Mar", 3),
        ("march", 3),
        ("December", 12),
        ("", None),
        (None, None),
        ("nonsense", None),
        (4.0, 4),
    ],
)
def test_parse_month(raw, expected) -> None:
    assert parse_month(raw) == expected


def test_quarter_is_derived_from_month() -> None:
    assert AmountRecord(Module.INVOICES, 2024, 1).quarter == 1
    assert AmountRecord(Module.INVOICES, 2024, 3).quarter == 1
    assert AmountRecord(Module.INVOICES, 2024, 4).quarter == 2
    assert AmountRecord(Module.INVOICES, 2024, 12).quarter == 4
    assert AmountRecord(Module.INVOICES, 2024, None).quarter is None


def test_module_parse_is_case_insensitive() -> None:
    assert Module.parse("Payroll") is Module.PAYROLL
    assert Module.parse(Module.EXPENSES) is Module.EXPENSES
    with pytest.raises(ValueError, match="Unknown module"):
        Module.parse("refunds")


def test_amount_record_tolerates_missing_values() -> None:
    record = amount_record("payments", 2024, None, None)
    assert record.module is Module.PAYMENTS
    assert record.month is None
    assert record.amount == Decimal("0")


def test_record_from_stats_row_monthly() -> None:
    row = {"_id": {"year": 2024, "month": 3}, "total_amount": 1250.5}
    record = record_from_stats_row("invoices", row)
    assert record == AmountRecord(Module.INVOICES, 2024, 3, Decimal("1250.5"))


def test_record_from_stats_row_quarter_only_uses_first_month() -> None:
    row = {"_id": {"year": 2024, "quarter": 2}, "total_amount": 90}
    record = record_from_stats_row("expenses", row)
    assert record.month == 4
    assert record.quarter == 2


def test_record_from_stats_row_payroll_uses_total_payroll() -> None:
    row = {
        "_id": {"year": 2024, "month": "Feb"},
        "total_payroll": 8000,
        "total_employees": 4,
    }
    record = record_from_stats_row("payroll", row)
    assert record.module is Module.PAYROLL
    assert record.month == 2
    assert record.amount == Decimal("8000")


def test_record_from_stats_row_without_year_raises() -> None:
    with pytest.raises(ValueError, match="without a year"):
        record_from_stats_row("invoices", {"_id": {"month": 1}, "total_amount": 1})


def test_doctor_from_mapping_defaults_missing_configuration() -> None:
    doctor = doctor_from_mapping({"doctor_id": "d1", "name": "Dr. Ada"})
    assert doctor.sales_percentage == Decimal("0")
    assert doctor.base_salary == Decimal("0")
    assert doctor.specialization is None


def test_doctor_from_mapping_requires_identifier() -> None:
    with pytest.raises(ValueError, match="identifier"):
        doctor_from_mapping({"name": "Dr. Nobody"})
