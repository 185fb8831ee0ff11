"""Settings for the weight check service, read from the environment."""
import logging
import os
from pathlib import Path

from openpyxl.reader.excel import SUPPORTED_FORMATS
from pydantic import BaseModel, ConfigDict, Field, field_validator

PACKAGE_DIR = Path(__file__).resolve().parent
ROOT_DIR = PACKAGE_DIR.parent
DATA_DIR = ROOT_DIR / "data"


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return float(default)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return int(default)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_weight: float = 50.0
    tolerance: float = Field(0.5, ge=0.0)
    num_spouts: int = Field(8, ge=1)
    num_samples: int = Field(3, ge=1)
    excel_file: Path = DATA_DIR / "weight-checks.xlsx"
    sheet_name: str = Field("Weight Checks", min_length=1, max_length=31)
    write_timeout_s: float = 10.0
    log_level: str = "INFO"

    @field_validator("excel_file")
    @classmethod
    def _workbook_extension(cls, value: Path) -> Path:
        if value.suffix.lower() not in SUPPORTED_FORMATS:
            raise ValueError(f"excel_file must end in one of {', '.join(SUPPORTED_FORMATS)}, got {value.name!r}")
        return value

    @property
    def lock_timeout(self) -> float | None:
        # None means "wait for the lock as long as it takes"
        return self.write_timeout_s if self.write_timeout_s > 0 else None


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        target_weight=_env_float("WEIGHT_TARGET", defaults.target_weight),
        tolerance=_env_float("WEIGHT_TOLERANCE", defaults.tolerance),
        num_spouts=max(1, _env_int("WEIGHT_SPOUTS", defaults.num_spouts)),
        num_samples=max(1, _env_int("WEIGHT_SAMPLES_PER_SPOUT", defaults.num_samples)),
        excel_file=Path(_env_str("WEIGHT_EXCEL_FILE", str(defaults.excel_file))),
        sheet_name=_env_str("WEIGHT_SHEET_NAME", defaults.sheet_name),
        write_timeout_s=_env_float("WEIGHT_WRITE_TIMEOUT_S", defaults.write_timeout_s),
        log_level=_env_str("WEIGHT_LOG_LEVEL", defaults.log_level).upper(),
    )


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
