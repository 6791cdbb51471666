# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
In-memory data source for the Clinic FinSight engine.

The engine never fetches anything itself. Callers hand it a
``ClinicDataset`` holding records that were already retrieved from the back
office (through its API, from CSV exports via ``io.py``, or built directly in
tests). The loaders below play the role the database layer plays in a
persistent application: they return the records of one module for a date
window, and the doctor data for a month.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .periods import Granularity, MissingMonthPolicy, Period
from .records import AmountRecord, Appointment, Doctor, DoctorInvoice, Module

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClinicDataset:
    """
    Already-fetched clinic records.

    Attributes
    ----------
    records :
        Amount records of all four modules, each tagged with its Module.
    doctors :
        Doctor roster, in display order.
    appointments :
        Appointments used to count activity and attribute invoices.
    doctor_invoices :
        Invoices used for doctor revenue attribution.
    """

    records: tuple[AmountRecord, ...] = ()
    doctors: tuple[Doctor, ...] = ()
    appointments: tuple[Appointment, ...] = ()
    doctor_invoices: tuple[DoctorInvoice, ...] = field(default=())

    @classmethod
    def build(
        cls,
        records: Iterable[AmountRecord] = (),
        doctors: Iterable[Doctor] = (),
        appointments: Iterable[Appointment] = (),
        doctor_invoices: Iterable[DoctorInvoice] = (),
    ) -> "ClinicDataset":
        """Build a dataset from any iterables (lists, generators...)."""
        return cls(
            records=tuple(records),
            doctors=tuple(doctors),
            appointments=tuple(appointments),
            doctor_invoices=tuple(doctor_invoices),
        )


def _record_in_window(
    record: AmountRecord,
    period: Period,
    policy: MissingMonthPolicy,
    granularity: Optional[Granularity],
) -> bool:
    month = policy.apply(record.month)
    if month is not None:
        return period.contains_month(record.year, month)
    # Excluded from month buckets; a yearly bucket only needs the year.
    if granularity is Granularity.YEARLY:
        return period.start.year <= record.year <= period.end.year
    return False


def load_module_records(
    dataset: ClinicDataset,
    module: Module,
    start: date,
    end: date,
    policy: MissingMonthPolicy = MissingMonthPolicy.DEFAULT_TO_FIRST,
    granularity: Optional[Granularity] = None,
) -> list[AmountRecord]:
    """
    Return the records of ``module`` whose month lies within [start, end].

    Records carry a (year, month) rather than a full date, so the window is
    compared at month granularity, bounds included. A record without a
    month is first placed with ``policy``: under ``DEFAULT_TO_FIRST`` it is
    in the window only if January of its year is. Under ``EXCLUDE`` it is
    dropped, except for yearly buckets where only its year is checked.
    """
    window = Period(start=start, end=end)
    selected = [
        r
        for r in dataset.records
        if r.module is module and _record_in_window(r, window, policy, granularity)
    ]
    logger.debug(
        "Loaded %d %s records for %s → %s", len(selected), module.value, start, end
    )
    return selected
