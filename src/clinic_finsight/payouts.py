# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Monthly doctor payouts.

For a given (year, month), each doctor of the roster is paid:

    sales_incentive = revenue_generated × sales_percentage / 100
    total_payout    = base_salary + sales_incentive

where ``revenue_generated`` is the sum of the doctor's invoices issued in
that month. An invoice belongs to a doctor when it names the doctor
directly, or, if it names no doctor, when it references one of the
doctor's appointments.

Every doctor of the roster appears in the report, including doctors
without activity (revenue 0, payout = base salary), so that the totals
reconcile with the clinic-wide payroll.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .dataset import ClinicDataset
from .engine import CENT
from .periods import Period, month_period
from .records import ZERO, Appointment, Doctor, DoctorInvoice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DoctorPayoutRecord:
    doctor_id: str
    doctor_name: str
    email: Optional[str]
    phone: Optional[str]
    specialization: Optional[str]
    appointment_count: int
    invoice_count: int
    revenue_generated: Decimal
    sales_percentage: Decimal
    base_salary: Decimal
    sales_incentive: Decimal
    total_payout: Decimal
    incentive_calculation: str


@dataclass(frozen=True)
class PayoutTotals:
    """Element-wise sums over all payout records."""

    total_doctors: int = 0
    total_base_salary: Decimal = ZERO
    total_revenue: Decimal = ZERO
    total_sales_incentive: Decimal = ZERO
    total_payout: Decimal = ZERO
    total_appointments: int = 0
    total_invoices: int = 0


@dataclass(frozen=True)
class DoctorPayoutReport:
    year: int
    month: int
    period: Period
    doctors: tuple[DoctorPayoutRecord, ...]
    totals: PayoutTotals


def compute_sales_incentive(revenue: Decimal, sales_percentage: Decimal) -> Decimal:
    """Revenue share rounded to cents (half-up)."""
    incentive = revenue * sales_percentage / Decimal("100")
    return incentive.quantize(CENT, rounding=ROUND_HALF_UP)


def format_incentive_calculation(
    revenue: Decimal, sales_percentage: Decimal, incentive: Decimal
) -> str:
    """Human-readable formula, e.g. ``"5000.00 × 10% = 500.00"``."""
    rate = format(sales_percentage.normalize(), "f")
    return f"{revenue:.2f} × {rate}% = {incentive:.2f}"


def _in_month(d, year: int, month: int) -> bool:
    return d.year == year and d.month == month


def build_payout_record(
    doctor: Doctor,
    appointments: Sequence[Appointment],
    invoices: Sequence[DoctorInvoice],
) -> DoctorPayoutRecord:
    """Payout of one doctor from their in-window appointments and invoices."""
    revenue = sum((inv.total_amount for inv in invoices), ZERO)
    incentive = compute_sales_incentive(revenue, doctor.sales_percentage)

    return DoctorPayoutRecord(
        doctor_id=doctor.doctor_id,
        doctor_name=doctor.name,
        email=doctor.email,
        phone=doctor.phone,
        specialization=doctor.specialization,
        appointment_count=len(appointments),
        invoice_count=len(invoices),
        revenue_generated=revenue,
        sales_percentage=doctor.sales_percentage,
        base_salary=doctor.base_salary,
        sales_incentive=incentive,
        total_payout=doctor.base_salary + incentive,
        incentive_calculation=format_incentive_calculation(
            revenue, doctor.sales_percentage, incentive
        ),
    )


def build_payout_totals(records: Iterable[DoctorPayoutRecord]) -> PayoutTotals:
    records = list(records)
    return PayoutTotals(
        total_doctors=len(records),
        total_base_salary=sum((r.base_salary for r in records), ZERO),
        total_revenue=sum((r.revenue_generated for r in records), ZERO),
        total_sales_incentive=sum((r.sales_incentive for r in records), ZERO),
        total_payout=sum((r.total_payout for r in records), ZERO),
        total_appointments=sum(r.appointment_count for r in records),
        total_invoices=sum(r.invoice_count for r in records),
    )


def compute_doctor_payouts(
    roster: Iterable[Doctor],
    appointments: Iterable[Appointment],
    invoices: Iterable[DoctorInvoice],
    year: int,
    month: int,
) -> DoctorPayoutReport:
    """
    Compute the payouts of every doctor of the roster for one month.

    Parameters
    ----------
    roster :
        Doctors to pay, in display order.
    appointments :
        Appointments of any date; only those of (year, month) are counted.
    invoices :
        Invoices of any date; only those issued in (year, month) count.
    year, month :
        Target month.

    Returns
    -------
    DoctorPayoutReport

    Raises
    ------
    ValueError
        If ``month`` is not in 1..12.
    """
    period = month_period(year, month)
    appointments = list(appointments)

    month_appointments = [
        a for a in appointments if _in_month(a.scheduled_on, year, month)
    ]
    month_invoices = [i for i in invoices if _in_month(i.issued_on, year, month)]

    # appointment id -> doctor id, used for invoices that name no doctor.
    # Invoices are attributed through any appointment, whatever its date.
    doctor_by_appointment = {
        a.appointment_id: a.doctor_id for a in appointments if a.doctor_id
    }

    appointments_by_doctor: dict[str, list[Appointment]] = {}
    for appointment in month_appointments:
        if appointment.doctor_id:
            appointments_by_doctor.setdefault(appointment.doctor_id, []).append(
                appointment
            )

    invoices_by_doctor: dict[str, list[DoctorInvoice]] = {}
    unattributed = 0
    for invoice in month_invoices:
        doctor_id = invoice.doctor_id
        if not doctor_id and invoice.appointment_id:
            doctor_id = doctor_by_appointment.get(invoice.appointment_id)
        if not doctor_id:
            unattributed += 1
            continue
        invoices_by_doctor.setdefault(doctor_id, []).append(invoice)

    records = [
        build_payout_record(
            doctor,
            appointments_by_doctor.get(doctor.doctor_id, []),
            invoices_by_doctor.get(doctor.doctor_id, []),
        )
        for doctor in roster
    ]
    totals = build_payout_totals(records)

    logger.debug(
        "Payouts %04d-%02d: %d doctors, %d invoices (%d unattributed), total %s",
        year,
        month,
        totals.total_doctors,
        len(month_invoices),
        unattributed,
        totals.total_payout,
    )

    return DoctorPayoutReport(
        year=year,
        month=month,
        period=period,
        doctors=tuple(records),
        totals=totals,
    )


def compute_dataset_payouts(
    dataset: ClinicDataset, year: int, month: int
) -> DoctorPayoutReport:
    """Doctor payouts computed from a ClinicDataset."""
    return compute_doctor_payouts(
        dataset.doctors,
        dataset.appointments,
        dataset.doctor_invoices,
        year,
        month,
    )
