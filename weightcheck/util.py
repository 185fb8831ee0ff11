import math
import re
from decimal import ROUND_HALF_UP, Decimal
from statistics import fmean, pstdev
from typing import Any, Callable, Iterable, List

_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")

# floats at or above 2**52 carry no fractional digits, so rounding them is a no-op
_EXACT_INTEGER_FLOAT = 2.0 ** 52


def parse_number(raw: Any) -> float | None:
    """Parse a typed-in weight. Returns None for blank, malformed or unrepresentable input."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        if isinstance(raw, (int, float)):
            value = float(raw)
        else:
            text = str(raw).strip()
            if not _NUMBER_RE.fullmatch(text):
                return None
            value = float(text)
    except (OverflowError, ValueError):
        return None
    return value if math.isfinite(value) else None


def raw_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    try:
        if isinstance(raw, float) and raw.is_integer():
            return str(int(raw))
        return str(raw)
    except ValueError:
        # int too long to print; it could never be a usable weight anyway
        return ""


def round_half_up(value: float, decimals: int) -> float:
    # Decimal(value) is the exact binary value, so 0.15 rounds the way it prints with toFixed
    if abs(value) >= _EXACT_INTEGER_FLOAT:
        return value
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _finite_or_zero(func: Callable[[List[float]], float], data: List[float]) -> float:
    try:
        result = func(data)
    except OverflowError:
        return 0.0
    return result if math.isfinite(result) else 0.0


def mean_of(values: Iterable[float]) -> float:
    """Arithmetic mean; zero when empty or when the sum leaves float range."""
    data = list(values)
    return _finite_or_zero(fmean, data) if data else 0.0


def stdev_of(values: Iterable[float]) -> float:
    """Population standard deviation; zero for fewer than two values or out of float range."""
    data = list(values)
    return _finite_or_zero(pstdev, data) if len(data) >= 2 else 0.0


# Fixed output precision for spout statistics, independent of how a client displays them.
AVERAGE_DECIMALS = 1
STDDEV_DECIMALS = 1


def weight_value(raw: Any) -> float | None:
    """A usable sample: finite and non-negative. Anything else counts as absent."""
    value = parse_number(raw)
    if value is None or value < 0:
        return None
    return value


def stats_of(samples: Iterable[Any]) -> tuple[float, float]:
    """(average, population std dev) of the usable samples, rounded; (0, 0) when none are."""
    values = [v for v in (weight_value(s) for s in samples) if v is not None]
    if not values:
        return 0.0, 0.0
    return (
        round_half_up(mean_of(values), AVERAGE_DECIMALS),
        round_half_up(stdev_of(values), STDDEV_DECIMALS),
    )
