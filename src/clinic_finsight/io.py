# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Clinic FinSight.

This module reads CSV exports of the clinic back office and normalizes
them into the typed records used by the engine.

Expected input formats
----------------------

Column names are case-insensitive. Every file is read as text so that
amounts keep their exact decimal value.

1) Module amounts (invoices, payments, expenses, payroll)
   -------------------------------------------------------
       date, amount
   or
       year, month, amount

   - ``amount`` may also be named ``total_amount`` or ``total_payroll``.
   - ``month`` is optional and may be a number or a month name ("Mar").
   - Blank amounts count as 0.

2) Doctors
   --------
       doctor_id, name, specialization, email, phone,
       sales_percentage, base_salary

3) Appointments
   -------------
       appointment_id, doctor_id, date

4) Doctor invoices
   ----------------
       invoice_id, doctor_id, appointment_id, date, total_amount

If a CSV structure does not match, a clear ValueError is raised.
"""

import os
from typing import Union

import pandas as pd

from .config import DataPaths
from .dataset import ClinicDataset
from .records import (
    AmountRecord,
    Appointment,
    Doctor,
    DoctorInvoice,
    Module,
    amount_record,
    doctor_from_mapping,
    to_decimal,
)

PathLike = Union[str, "os.PathLike[str]"]

AMOUNT_ALIASES: tuple[str, ...] = ("amount", "total_amount", "total_payroll")


def _read_csv(path: PathLike) -> pd.DataFrame:
    """Read a CSV file as text with normalized (lowercase) column names."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.lower().strip() for c in df.columns]
    return df


def _parse_dates(series: pd.Series, column: str) -> pd.Series:
    try:
        parsed = pd.to_datetime(series, errors="raise")
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Invalid values in '{column}' column.") from exc
    if parsed.isna().any():
        raise ValueError(f"Missing values in '{column}' column.")
    return parsed


def _blank_to_none(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def records_from_frame(df: pd.DataFrame, module: "str | Module") -> list[AmountRecord]:
    """
    Convert a module DataFrame into AmountRecords.

    Parameters
    ----------
    df:
        DataFrame with lowercase columns, either ``date`` + amount or
        ``year`` (+ optional ``month``) + amount.
    module:
        Module the rows belong to.

    Raises
    ------
    ValueError
        If no amount column or no date/year column is present.
    """
    resolved = Module.parse(module)
    cols = set(df.columns)

    amount_col = next((c for c in AMOUNT_ALIASES if c in cols), None)
    if amount_col is None:
        raise ValueError(
            f"Invalid {resolved.value} structure: expected an 'amount' column "
            "(or 'total_amount' / 'total_payroll')."
        )

    if df.empty:
        return []

    amounts = df[amount_col].tolist()

    if "date" in cols:
        dates = _parse_dates(df["date"], "date")
        return [
            AmountRecord(
                module=resolved,
                year=int(ts.year),
                month=int(ts.month),
                amount=to_decimal(amt),
            )
            for ts, amt in zip(dates, amounts)
        ]

    if "year" in cols:
        try:
            years = [int(str(y).strip()) for y in df["year"]]
        except ValueError as exc:
            raise ValueError("Invalid values in 'year' column.") from exc
        months = df["month"].tolist() if "month" in cols else [None] * len(df)
        return [
            amount_record(resolved, year, _blank_to_none(month), amt)
            for year, month, amt in zip(years, months, amounts)
        ]

    raise ValueError(
        f"Invalid {resolved.value} structure. Expected either:\n"
        "  - date, amount\n"
        "  - year, month, amount (month optional)\n"
        "(column names are case-insensitive)."
    )


def read_amount_records(path: PathLike, module: "str | Module") -> list[AmountRecord]:
    """Read one module's CSV export into AmountRecords."""
    return records_from_frame(_read_csv(path), module)


def read_doctors(path: PathLike) -> list[Doctor]:
    """Read the doctor roster. Rows keep the file order."""
    df = _read_csv(path)
    if "doctor_id" not in df.columns and "id" not in df.columns:
        raise ValueError("Invalid doctors structure: expected a 'doctor_id' column.")
    return [doctor_from_mapping(row) for row in df.to_dict(orient="records")]


def read_appointments(path: PathLike) -> list[Appointment]:
    df = _read_csv(path)
    required = {"appointment_id", "doctor_id", "date"}
    if not required.issubset(df.columns):
        raise ValueError(
            "Invalid appointments structure: expected appointment_id, doctor_id, date."
        )
    dates = _parse_dates(df["date"], "date")
    return [
        Appointment(
            appointment_id=str(appointment_id).strip(),
            doctor_id=_blank_to_none(doctor_id),
            scheduled_on=ts.date(),
        )
        for appointment_id, doctor_id, ts in zip(
            df["appointment_id"], df["doctor_id"], dates
        )
    ]


def read_doctor_invoices(path: PathLike) -> list[DoctorInvoice]:
    df = _read_csv(path)
    required = {"invoice_id", "date", "total_amount"}
    if not required.issubset(df.columns):
        raise ValueError(
            "Invalid doctor invoices structure: expected invoice_id, date, "
            "total_amount (and doctor_id and/or appointment_id)."
        )
    if "doctor_id" not in df.columns and "appointment_id" not in df.columns:
        raise ValueError(
            "Invalid doctor invoices structure: a 'doctor_id' or "
            "'appointment_id' column is required for attribution."
        )

    dates = _parse_dates(df["date"], "date")
    blanks = [""] * len(df)
    doctor_ids = df["doctor_id"].tolist() if "doctor_id" in df.columns else blanks
    appointment_ids = (
        df["appointment_id"].tolist() if "appointment_id" in df.columns else blanks
    )

    return [
        DoctorInvoice(
            invoice_id=str(invoice_id).strip(),
            doctor_id=_blank_to_none(doctor_id),
            appointment_id=_blank_to_none(appointment_id),
            issued_on=ts.date(),
            total_amount=to_decimal(total),
        )
        for invoice_id, doctor_id, appointment_id, ts, total in zip(
            df["invoice_id"], doctor_ids, appointment_ids, dates, df["total_amount"]
        )
    ]


def load_dataset(paths: DataPaths) -> ClinicDataset:
    """
    Build a ClinicDataset from the configured CSV files.

    Missing paths simply contribute no records.
    """
    records: list[AmountRecord] = []
    module_paths = {
        Module.INVOICES: paths.invoices,
        Module.PAYMENTS: paths.payments,
        Module.EXPENSES: paths.expenses,
        Module.PAYROLL: paths.payroll,
    }
    for module, path in module_paths.items():
        if path is not None:
            records.extend(read_amount_records(path, module))

    doctors = read_doctors(paths.doctors) if paths.doctors else []
    appointments = read_appointments(paths.appointments) if paths.appointments else []
    invoices = (
        read_doctor_invoices(paths.doctor_invoices) if paths.doctor_invoices else []
    )

    return ClinicDataset.build(
        records=records,
        doctors=doctors,
        appointments=appointments,
        doctor_invoices=invoices,
    )
