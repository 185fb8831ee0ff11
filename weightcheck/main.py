from typing import Any, List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from weightcheck.config import configure_logging, load_settings
from weightcheck.engine import (
    compute_stats,
    new_shift_record,
    range_status,
    summarize_out_of_spec,
    tolerance_window,
)
from weightcheck.errors import (
    SchemaMismatchError,
    ShiftValidationError,
    StoreIOError,
    StoreTimeoutError,
)
from weightcheck.models import RangeStatus, ShiftRecord, ToleranceWindow
from weightcheck.store import AppendStore
from weightcheck.submission import SubmissionResult, submit_shift

# --- Settings & store
settings = load_settings()
configure_logging(settings)
store = AppendStore(sheet_name=settings.sheet_name, sample_count=settings.num_samples)

app = FastAPI(title="Weight Check")


# --- Pydantic DTOs
class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ConfigOut(_Camel):
    window: ToleranceWindow
    num_spouts: int
    num_samples: int


class StatsIn(_Camel):
    samples: List[Any]


class StatsOut(_Camel):
    average: float
    standard_deviation: float
    ranges: List[RangeStatus]


class OutOfSpecOut(_Camel):
    spouts: List[int]


# --- Health & config
@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.get("/api/config", response_model=ConfigOut)
def get_config():
    return ConfigOut(
        window=tolerance_window(settings),
        num_spouts=settings.num_spouts,
        num_samples=settings.num_samples,
    )


@app.get("/api/shift/new", response_model=ShiftRecord)
def new_shift():
    return new_shift_record(settings)


# --- Live feedback while a shift is being typed in
@app.post("/api/stats", response_model=StatsOut)
def spout_stats(body: StatsIn):
    stats = compute_stats(body.samples)
    window = tolerance_window(settings)
    return StatsOut(
        average=stats.average,
        standard_deviation=stats.standard_deviation,
        ranges=[range_status(s, window) for s in body.samples],
    )


@app.post("/api/out-of-spec", response_model=OutOfSpecOut)
def out_of_spec(record: ShiftRecord):
    return OutOfSpecOut(spouts=summarize_out_of_spec(record, tolerance_window(settings)))


# --- Submit a shift
@app.post("/api/weight-check", response_model=SubmissionResult)
def weight_check(record: ShiftRecord):
    try:
        return submit_shift(record, settings, store)
    except ShiftValidationError as exc:
        raise HTTPException(422, exc.problems) from exc
    except SchemaMismatchError as exc:
        raise HTTPException(409, str(exc)) from exc
    except StoreTimeoutError as exc:
        raise HTTPException(503, "Another submission is being saved; please try again.") from exc
    except StoreIOError as exc:
        raise HTTPException(500, f"Failed to save data: {exc}") from exc
