# Clinic FinSight - Performance & doctor payout engine for clinics
# Copyright (c) 2025 Clinic FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Clinic FinSight
---------------

The performance and doctor payout engine of a clinic back office. It turns
already-fetched transactional records into reports; it never fetches,
validates or persists data itself.

Main capabilities:
- bucketing of invoices, payments, expenses and payroll by month, quarter
  or year,
- performance summary (revenue, costs, net profit, profit margin),
- comparison with the previous window of the same length,
- per-module statistics (count, total, average),
- monthly doctor payouts (base salary + revenue-share incentive),
- pandas views and a command-line interface for tables and CSV exports.

Version: 0.1.0

Usage:
    python -m clinic_finsight.cli --help
"""

__all__ = ["engine", "performance", "comparative", "payouts", "periods"]

__version__ = "0.1.0"
