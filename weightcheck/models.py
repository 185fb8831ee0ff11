import datetime as dt
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from weightcheck.util import raw_text, stats_of, weight_value


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Shift(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    NIGHT = "Night"


class SampleKind(str, Enum):
    EMPTY = "empty"
    INVALID = "invalid"
    VALID = "valid"


class RangeStatus(str, Enum):
    IN_RANGE = "in_range"
    OUT_OF_RANGE = "out_of_range"
    NEUTRAL = "neutral"


class Sample(_Frozen):
    """One reading as typed: empty, not (yet) a usable number, or a valid weight."""
    kind: SampleKind
    raw: str = ""
    value: Optional[float] = None

    @classmethod
    def parse(cls, raw: Any) -> "Sample":
        text = raw_text(raw)
        if not text.strip():
            return cls(kind=SampleKind.EMPTY, raw=text)
        value = weight_value(raw)
        if value is None:
            return cls(kind=SampleKind.INVALID, raw=text)
        return cls(kind=SampleKind.VALID, raw=text, value=value)

    @property
    def present(self) -> bool:
        return self.kind is SampleKind.VALID


class SpoutStats(_Frozen):
    average: float = 0.0
    standard_deviation: float = 0.0


class ToleranceWindow(_Frozen):
    target_weight: float
    tolerance: float = Field(ge=0.0)

    @computed_field(alias="minWeight")
    @property
    def min_weight(self) -> float:
        return self.target_weight - self.tolerance

    @computed_field(alias="maxWeight")
    @property
    def max_weight(self) -> float:
        return self.target_weight + self.tolerance

    def contains(self, value: float) -> bool:
        return self.min_weight <= value <= self.max_weight


class SpoutData(_Frozen):
    """One spout's readings. ``average`` and ``standardDeviation`` always follow the samples."""
    samples: Tuple[str, ...] = ()
    comment: str = Field("", validation_alias=AliasChoices("comment", "comments"))

    @field_validator("samples", mode="before")
    @classmethod
    def _samples_as_text(cls, value):
        if value is None:
            return ()
        return tuple(raw_text(v) for v in value)

    @field_validator("comment", mode="before")
    @classmethod
    def _comment_text(cls, value):
        return "" if value is None else value

    @computed_field
    @property
    def average(self) -> float:
        return stats_of(self.samples)[0]

    @computed_field(alias="standardDeviation")
    @property
    def standard_deviation(self) -> float:
        return stats_of(self.samples)[1]

    def parsed(self) -> list[Sample]:
        return [Sample.parse(s) for s in self.samples]


def _current_minute() -> dt.time:
    return dt.datetime.now().time().replace(second=0, microsecond=0)


class ShiftRecord(_Frozen):
    operator_name: str = ""
    shift: Optional[Shift] = None
    date: dt.date = Field(default_factory=dt.date.today)
    time: dt.time = Field(default_factory=_current_minute)
    spouts: Tuple[SpoutData, ...] = Field(
        (), validation_alias=AliasChoices("spouts", "spoutData")
    )
    general_comments: str = ""

    @field_validator("shift", mode="before")
    @classmethod
    def _blank_shift(cls, value):
        # the form's "Select Shift" option posts an empty string
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("operator_name", "general_comments", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else value

    @field_serializer("time")
    def _time_minutes(self, value: dt.time) -> str:
        return value.isoformat(timespec="minutes")
