from pathlib import Path

import pytest

from clinic_finsight.config import AppConfig, PerformanceSettings, load_app_config
from clinic_finsight.engine import BucketOrder, RevenueSource
from clinic_finsight.periods import Granularity, MissingMonthPolicy


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "clinic_finsight_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_empty_config_uses_defaults(tmp_path) -> None:
    config = load_app_config(str(write_config(tmp_path, "")))

    assert config == AppConfig()
    assert config.performance == PerformanceSettings()
    assert config.data.invoices is None


def test_full_config(tmp_path) -> None:
    path = write_config(
        tmp_path,
        """
[clinic]
name = "Smile Dental"
currency = "USD"

[performance]
granularity = "quarterly"
revenue_source = "payments"
bucket_order = "label"
missing_month_policy = "exclude"

[data]
invoices = "data/invoices.csv"
doctors = "data/doctors.csv"

[display]
mode = "both"
decimals = 0

[logging]
level = "debug"
""",
    )
    config = load_app_config(str(path))

    assert config.clinic_name == "Smile Dental"
    assert config.currency == "USD"
    assert config.performance == PerformanceSettings(
        granularity=Granularity.QUARTERLY,
        revenue_source=RevenueSource.PAYMENTS,
        bucket_order=BucketOrder.LABEL,
        missing_month_policy=MissingMonthPolicy.EXCLUDE,
    )
    # Paths are resolved relative to the config file.
    assert config.data.invoices == (tmp_path / "data" / "invoices.csv").resolve()
    assert config.data.doctors == (tmp_path / "data" / "doctors.csv").resolve()
    assert config.data.payroll is None
    assert config.display_mode == "both"
    assert config.decimals == 0
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "section",
    [
        '[performance]\ngranularity = "weekly"\n',
        '[performance]\nrevenue_source = "bank"\n',
        '[performance]\nbucket_order = "random"\n',
        '[performance]\nmissing_month_policy = "guess"\n',
        '[display]\nmode = "pdf"\n',
        '[logging]\nlevel = "LOUD"\n',
    ],
)
def test_invalid_values_raise(tmp_path, section) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(write_config(tmp_path, section)))


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


def test_invalid_toml_raises(tmp_path) -> None:
    with pytest.raises(ValueError, match="Failed to parse"):
        load_app_config(str(write_config(tmp_path, "[performance\n")))


def test_default_config_file_in_cwd(tmp_path, monkeypatch) -> None:
    write_config(tmp_path, '[clinic]\nname = "Local"\n')
    monkeypatch.chdir(tmp_path)
    assert load_app_config().clinic_name == "Local"
