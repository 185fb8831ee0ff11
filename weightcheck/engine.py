"""
Aggregation engine: spout statistics, tolerance checks and record transitions.

Everything here is pure. Malformed numbers never raise; they count as absent
for statistics and as neutral for range checks, so a half-typed weight does
not break the form.
"""
import logging
from typing import Any, Iterable, List

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from weightcheck.config import Settings
from weightcheck.errors import ShiftValidationError
from weightcheck.models import (
    RangeStatus,
    SampleKind,
    ShiftRecord,
    SpoutData,
    SpoutStats,
    ToleranceWindow,
)
from weightcheck.util import stats_of, weight_value

log = logging.getLogger(__name__)

SETTABLE_FIELDS = {"operator_name", "shift", "date", "time", "general_comments"}


def compute_stats(samples: Iterable[Any]) -> SpoutStats:
    average, sd = stats_of(samples)
    return SpoutStats(average=average, standard_deviation=sd)


def range_status(weight: Any, window: ToleranceWindow) -> RangeStatus:
    value = weight_value(weight)
    if value is None:
        return RangeStatus.NEUTRAL
    return RangeStatus.IN_RANGE if window.contains(value) else RangeStatus.OUT_OF_RANGE


def is_in_range(weight: Any, window: ToleranceWindow) -> bool:
    return range_status(weight, window) is RangeStatus.IN_RANGE


def summarize_out_of_spec(record: ShiftRecord, window: ToleranceWindow) -> List[int]:
    """1-based indices of spouts with at least one valid sample outside the window."""
    flagged = []
    for index, spout in enumerate(record.spouts, start=1):
        if any(s.present and not window.contains(s.value) for s in spout.parsed()):
            flagged.append(index)
    return flagged


def update_sample(spout: SpoutData, sample_index: int, raw: Any) -> SpoutData:
    samples = list(spout.samples)
    samples[sample_index] = raw
    # statistics are derived from samples on the new instance, so they cannot go stale
    return spout.model_copy(update={"samples": SpoutData(samples=samples).samples})


def set_spout_comment(record: ShiftRecord, spout_index: int, comment: str) -> ShiftRecord:
    spouts = list(record.spouts)
    spouts[spout_index] = spouts[spout_index].model_copy(update={"comment": comment or ""})
    return record.model_copy(update={"spouts": tuple(spouts)})


def update_shift_sample(record: ShiftRecord, spout_index: int, sample_index: int, raw: Any) -> ShiftRecord:
    spouts = list(record.spouts)
    spouts[spout_index] = update_sample(spouts[spout_index], sample_index, raw)
    return record.model_copy(update={"spouts": tuple(spouts)})


def set_field(record: ShiftRecord, name: str, value: Any) -> ShiftRecord:
    """Return a copy of ``record`` with one header field replaced and validated."""
    if name not in SETTABLE_FIELDS:
        raise KeyError(f"not a settable shift field: {name}")
    data = dict(record)
    data[name] = value
    return ShiftRecord.model_validate(data)


def new_shift_record(settings: Settings) -> ShiftRecord:
    spout = SpoutData(samples=[""] * settings.num_samples)
    return ShiftRecord(spouts=(spout,) * settings.num_spouts)


def tolerance_window(settings: Settings) -> ToleranceWindow:
    return ToleranceWindow(target_weight=settings.target_weight, tolerance=settings.tolerance)


def validate_shift(record: ShiftRecord, settings: Settings) -> None:
    """Raise ShiftValidationError listing everything that blocks submitting ``record``."""
    problems = []
    if not record.operator_name.strip():
        problems.append("Operator name is required")
    if ILLEGAL_CHARACTERS_RE.search(record.operator_name):
        problems.append("Operator name contains control characters")
    if record.shift is None:
        problems.append("Shift is required")
    if len(record.spouts) != settings.num_spouts:
        problems.append(f"Expected {settings.num_spouts} spouts, got {len(record.spouts)}")
    for index, spout in enumerate(record.spouts, start=1):
        if len(spout.samples) != settings.num_samples:
            problems.append(
                f"Spout {index}: expected {settings.num_samples} samples, got {len(spout.samples)}"
            )
        for n, sample in enumerate(spout.parsed(), start=1):
            if sample.kind is SampleKind.INVALID:
                problems.append(f"Spout {index} sample {n}: {sample.raw!r} is not a valid weight")
        if ILLEGAL_CHARACTERS_RE.search(spout.comment):
            problems.append(f"Spout {index}: comment contains control characters")
    if problems:
        log.warning("Rejected shift record: %s", "; ".join(problems))
        raise ShiftValidationError(problems)
