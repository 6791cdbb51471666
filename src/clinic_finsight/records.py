# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Typed records consumed by the Clinic FinSight engine.

Records arrive already fetched from the clinic back office. Each module
(invoices, payments, expenses, payroll) used to deliver loosely-typed
rows; here every row is converted once, at ingestion, into an
``AmountRecord`` tagged with its source ``Module``. The aggregation code
never has to guess where a row came from or which field holds the amount.

Doctor payouts work on three more record types:

- ``Doctor``       : one roster entry with its compensation settings,
- ``Appointment``  : an appointment attended by a doctor,
- ``DoctorInvoice``: an invoice, attributed to a doctor directly or through
                     its appointment.

Conversion helpers (``to_decimal``, ``parse_month``) are tolerant: missing
or blank values become ``Decimal("0")`` / ``None`` instead of raising,
because the engine is a reporting tool, not a validator.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

ZERO = Decimal("0")

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


class Module(Enum):
    """Source module of an amount record."""

    INVOICES = "invoices"
    PAYMENTS = "payments"
    EXPENSES = "expenses"
    PAYROLL = "payroll"

    @classmethod
    def parse(cls, value: "str | Module") -> "Module":
        """Return the Module matching ``value`` (case-insensitive)."""
        if isinstance(value, Module):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown module: {value!r}. Expected one of: {allowed}."
            ) from exc


def to_decimal(value: Any) -> Decimal:
    """
    Convert an arbitrary amount into a Decimal.

    ``None``, blank strings, NaN and unparsable values are treated as 0,
    the additive identity.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ZERO
        # str() avoids binary float noise (0.1 -> 0.1000000000000000055...)
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)

    text = str(value).strip()
    if not text:
        return ZERO
    try:
        result = Decimal(text)
    except InvalidOperation:
        return ZERO
    return result if result.is_finite() else ZERO


def parse_month(value: Any) -> Optional[int]:
    """
    Parse a month given as a number (1-12) or an English month name.

    Returns None when the value is missing or cannot be interpreted.
    Payroll rows in particular carry their month as a string ("Jan",
    "January" or "1").
    """
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        value = int(value)
    if isinstance(value, int):
        return value if 1 <= value <= 12 else None

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        month = int(text)
        return month if 1 <= month <= 12 else None

    prefix = text[:3].capitalize()
    if prefix in MONTH_ABBREVIATIONS:
        return MONTH_ABBREVIATIONS.index(prefix) + 1
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class AmountRecord:
    """
    One transactional fact from a module.

    Attributes
    ----------
    module :
        Source module (invoices, payments, expenses, payroll).
    year :
        Calendar year of the record.
    month :
        Calendar month (1-12) or None when the upstream row is undated
        at month level.
    amount :
        Module-specific total (invoice total, payment total, ...).
    """

    module: Module
    year: int
    month: Optional[int]
    amount: Decimal = ZERO

    @property
    def quarter(self) -> Optional[int]:
        """Calendar quarter derived from the month (None if undated)."""
        if self.month is None:
            return None
        return math.ceil(self.month / 3)


def amount_record(
    module: "str | Module",
    year: int,
    month: Any = None,
    amount: Any = None,
) -> AmountRecord:
    """Build an AmountRecord from loosely-typed values."""
    return AmountRecord(
        module=Module.parse(module),
        year=int(year),
        month=parse_month(month),
        amount=to_decimal(amount),
    )


def record_from_stats_row(module: "str | Module", row: Mapping[str, Any]) -> AmountRecord:
    """
    Convert an upstream statistics row into an AmountRecord.

    The back office returns grouped rows shaped like::

        {"_id": {"year": 2024, "month": 3}, "total_amount": 1250.0}
        {"_id": {"year": 2024, "quarter": 2}, "total_amount": 90.0}
        {"_id": {"year": 2024, "month": "Mar"}, "total_payroll": 8000.0}

    When only a quarter is given, the first month of that quarter is used
    so the record still resolves to the right quarterly bucket.
    """
    resolved = Module.parse(module)
    group = row.get("_id") or {}
    if not isinstance(group, Mapping):
        group = {}

    year = group.get("year", row.get("year"))
    if year is None:
        raise ValueError(f"Statistics row without a year: {dict(row)!r}")

    month = parse_month(group.get("month", row.get("month")))
    if month is None:
        quarter = group.get("quarter", row.get("quarter"))
        if quarter is not None:
            try:
                q = int(quarter)
            except (TypeError, ValueError):
                q = 0
            if 1 <= q <= 4:
                month = (q - 1) * 3 + 1

    if resolved is Module.PAYROLL:
        raw_amount = row.get("total_payroll", row.get("total_amount"))
    else:
        raw_amount = row.get("total_amount", row.get("amount"))

    return AmountRecord(
        module=resolved,
        year=int(year),
        month=month,
        amount=to_decimal(raw_amount),
    )


@dataclass(frozen=True)
class Doctor:
    """
    Roster entry for a doctor.

    ``sales_percentage`` is the configured revenue-share rate (10 means
    10 %), ``base_salary`` the fixed monthly salary. Both default to 0.
    """

    doctor_id: str
    name: str
    specialization: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    sales_percentage: Decimal = ZERO
    base_salary: Decimal = ZERO


@dataclass(frozen=True)
class Appointment:
    appointment_id: str
    doctor_id: Optional[str]
    scheduled_on: date


@dataclass(frozen=True)
class DoctorInvoice:
    """Invoice used for revenue attribution in doctor payouts."""

    invoice_id: str
    doctor_id: Optional[str]
    appointment_id: Optional[str]
    issued_on: date
    total_amount: Decimal = ZERO


def doctor_from_mapping(row: Mapping[str, Any]) -> Doctor:
    """Build a Doctor from a roster row (``name`` or ``doctor_name``)."""
    doctor_id = _optional_str(row.get("doctor_id", row.get("id")))
    if doctor_id is None:
        raise ValueError(f"Doctor row without an identifier: {dict(row)!r}")

    name = _optional_str(row.get("name", row.get("doctor_name"))) or doctor_id
    return Doctor(
        doctor_id=doctor_id,
        name=name,
        specialization=_optional_str(row.get("specialization")),
        email=_optional_str(row.get("email")),
        phone=_optional_str(row.get("phone")),
        sales_percentage=to_decimal(row.get("sales_percentage")),
        base_salary=to_decimal(row.get("base_salary")),
    )
