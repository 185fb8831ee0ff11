from __future__ import annotations

import datetime as dt
from typing import Any, Sequence

import pytest

from weightcheck.config import Settings
from weightcheck.models import ShiftRecord, SpoutData, ToleranceWindow


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(excel_file=tmp_path / "weight-checks.xlsx", write_timeout_s=2.0)


@pytest.fixture
def window() -> ToleranceWindow:
    return ToleranceWindow(target_weight=50.0, tolerance=0.5)


def make_record(
    spouts: Sequence[Sequence[Any]] | None = None,
    *,
    operator: str = "J. Okafor",
    shift: str | None = "Morning",
    count: int = 8,
) -> ShiftRecord:
    if spouts is None:
        spouts = [[50.0, 50.1, 49.9] for _ in range(count)]
    return ShiftRecord(
        operator_name=operator,
        shift=shift,
        date=dt.date(2024, 3, 4),
        time=dt.time(6, 30),
        spouts=[SpoutData(samples=s, comment=f"spout {i}") for i, s in enumerate(spouts, start=1)],
    )
