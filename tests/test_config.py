from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from weightcheck.config import Settings, load_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("WEIGHT_TARGET", "WEIGHT_TOLERANCE", "WEIGHT_SPOUTS", "WEIGHT_SAMPLES_PER_SPOUT",
                 "WEIGHT_EXCEL_FILE", "WEIGHT_SHEET_NAME", "WEIGHT_WRITE_TIMEOUT_S"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.target_weight == 50.0
    assert settings.tolerance == 0.5
    assert settings.num_spouts == 8
    assert settings.num_samples == 3
    assert settings.sheet_name == "Weight Checks"
    assert settings.excel_file.name == "weight-checks.xlsx"
    assert settings.lock_timeout == 10.0


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("WEIGHT_TARGET", "25")
    monkeypatch.setenv("WEIGHT_TOLERANCE", "0.25")
    monkeypatch.setenv("WEIGHT_SPOUTS", "6")
    monkeypatch.setenv("WEIGHT_SAMPLES_PER_SPOUT", "5")
    monkeypatch.setenv("WEIGHT_EXCEL_FILE", str(tmp_path / "x.xlsx"))
    monkeypatch.setenv("WEIGHT_WRITE_TIMEOUT_S", "0")
    monkeypatch.setenv("WEIGHT_LOG_LEVEL", "debug")
    settings = load_settings()
    assert settings.target_weight == 25.0
    assert settings.tolerance == 0.25
    assert (settings.num_spouts, settings.num_samples) == (6, 5)
    assert settings.excel_file == Path(tmp_path / "x.xlsx")
    assert settings.lock_timeout is None
    assert settings.log_level == "DEBUG"


def test_bad_numbers_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEIGHT_TARGET", "fifty")
    monkeypatch.setenv("WEIGHT_SPOUTS", "-2")
    monkeypatch.setenv("WEIGHT_SAMPLES_PER_SPOUT", "three")
    settings = load_settings()
    assert settings.target_weight == 50.0
    assert settings.num_spouts == 1
    assert settings.num_samples == 3


def test_settings_frozen() -> None:
    with pytest.raises(pydantic.ValidationError):
        Settings().tolerance = 1.0


@pytest.mark.parametrize("name", ["log.csv", "weight-checks.xlsm.bak", "weight-checks"])
def test_excel_file_needs_workbook_extension(tmp_path, name) -> None:
    with pytest.raises(pydantic.ValidationError):
        Settings(excel_file=tmp_path / name)


def test_excel_file_extension_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("WEIGHT_EXCEL_FILE", str(tmp_path / "log.bak"))
    with pytest.raises(pydantic.ValidationError):
        load_settings()
    monkeypatch.setenv("WEIGHT_EXCEL_FILE", str(tmp_path / "Log.XLSX"))
    assert load_settings().excel_file.name == "Log.XLSX"
