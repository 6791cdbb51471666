# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Clinic FinSight.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating the performance options (granularity, revenue source,
  bucket ordering, missing month policy),
- exposing typed dataclasses used by the rest of the application.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .engine import BucketOrder, RevenueSource
from .periods import Granularity, MissingMonthPolicy

DEFAULT_CONFIG_FILE = "clinic_finsight_config.toml"

DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")


@dataclass(frozen=True)
class PerformanceSettings:
    """
    Options driving the performance computations.

    Attributes
    ----------
    granularity :
        Default bucket span (monthly, quarterly, yearly).
    revenue_source :
        Module counted as revenue in summaries (invoices or payments).
    bucket_order :
        Ordering of the bucket list (chronological or legacy label sort).
    missing_month_policy :
        Handling of records without a month.
    """

    granularity: Granularity = Granularity.MONTHLY
    revenue_source: RevenueSource = RevenueSource.INVOICES
    bucket_order: BucketOrder = BucketOrder.CHRONOLOGICAL
    missing_month_policy: MissingMonthPolicy = MissingMonthPolicy.DEFAULT_TO_FIRST


@dataclass(frozen=True)
class DataPaths:
    """Optional CSV inputs, resolved relative to the configuration file."""

    invoices: Optional[Path] = None
    payments: Optional[Path] = None
    expenses: Optional[Path] = None
    payroll: Optional[Path] = None
    doctors: Optional[Path] = None
    appointments: Optional[Path] = None
    doctor_invoices: Optional[Path] = None


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Clinic FinSight.

    This aggregates:
    - the clinic name and presentation currency,
    - the performance settings,
    - the CSV data paths,
    - display options,
    - the logging level.
    """

    clinic_name: str = "Clinic"
    currency: str = "EUR"
    performance: PerformanceSettings = field(default_factory=PerformanceSettings)
    data: DataPaths = field(default_factory=DataPaths)
    display_mode: str = "table"
    decimals: int = 2
    log_level: str = "WARNING"


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _parse_performance(section: Mapping[str, Any]) -> PerformanceSettings:
    """
    Build PerformanceSettings from the [performance] table.

    Raises:
        ValueError: if one of the enumerated options has an unknown value.
    """
    defaults = PerformanceSettings()
    return PerformanceSettings(
        granularity=Granularity.parse(
            section.get("granularity", defaults.granularity.value)
        ),
        revenue_source=RevenueSource.parse(
            section.get("revenue_source", defaults.revenue_source.value)
        ),
        bucket_order=BucketOrder.parse(
            section.get("bucket_order", defaults.bucket_order.value)
        ),
        missing_month_policy=MissingMonthPolicy.parse(
            section.get("missing_month_policy", defaults.missing_month_policy.value)
        ),
    )


def _parse_data_paths(section: Mapping[str, Any], base_dir: Path) -> DataPaths:
    def _resolve_optional(rel: Optional[str]) -> Optional[Path]:
        if not rel:
            return None
        return (base_dir / str(rel)).resolve()

    return DataPaths(
        invoices=_resolve_optional(section.get("invoices")),
        payments=_resolve_optional(section.get("payments")),
        expenses=_resolve_optional(section.get("expenses")),
        payroll=_resolve_optional(section.get("payroll")),
        doctors=_resolve_optional(section.get("doctors")),
        appointments=_resolve_optional(section.get("appointments")),
        doctor_invoices=_resolve_optional(section.get("doctor_invoices")),
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Clinic FinSight configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [clinic]
        Clinic name and presentation currency.

    [performance]
        granularity, revenue_source, bucket_order, missing_month_policy.

    [data]
        Optional CSV inputs (invoices, payments, expenses, payroll,
        doctors, appointments, doctor_invoices).

    [display]
        mode ("table", "csv", "both") and number of decimals.

    [logging]
        level (any standard logging level name).

    All sections are optional. File paths are resolved relative to the
    directory of the TOML file itself.

    Parameters
    ----------
    config_path :
        Path to the TOML configuration file. Defaults to
        ``clinic_finsight_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Clinic section
    clinic_section = _section(raw, "clinic")
    clinic_name = str(clinic_section.get("name") or "Clinic")
    currency = str(clinic_section.get("currency") or "EUR")

    # 2) Performance options
    performance = _parse_performance(_section(raw, "performance"))

    # 3) Data inputs
    data = _parse_data_paths(_section(raw, "data"), base_dir)

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display mode: {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    # 5) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Invalid logging level: {log_level!r}.")

    return AppConfig(
        clinic_name=clinic_name,
        currency=currency,
        performance=performance,
        data=data,
        display_mode=display_mode,
        decimals=decimals,
        log_level=log_level,
    )
