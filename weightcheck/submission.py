"""Submitting a finished shift: validate, persist, start the next one."""
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from weightcheck.config import Settings
from weightcheck.engine import (
    new_shift_record,
    summarize_out_of_spec,
    tolerance_window,
    validate_shift,
)
from weightcheck.models import ShiftRecord
from weightcheck.store import AppendStore

log = logging.getLogger(__name__)


class SubmissionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    rows: int
    out_of_spec: List[int]
    path: str
    next_record: ShiftRecord


def submit_shift(
    record: ShiftRecord,
    settings: Settings,
    store: AppendStore,
    path: Optional[Path] = None,
) -> SubmissionResult:
    """
    Persist ``record`` and return a fresh empty record for the next shift.

    Nothing is written when validation fails. On any error the caller still
    holds its own ``record`` and can retry; no retry happens here since a
    repeated append would duplicate rows.
    """
    validate_shift(record, settings)
    target = Path(path or settings.excel_file)
    rows = store.append_shift(record, target, timeout=settings.lock_timeout)
    flagged = summarize_out_of_spec(record, tolerance_window(settings))
    if flagged:
        log.info("Shift %s %s by %s: spouts out of spec %s",
                 record.date, record.shift.value, record.operator_name, flagged)
    return SubmissionResult(
        rows=rows,
        out_of_spec=flagged,
        path=str(target),
        next_record=new_shift_record(settings),
    )
