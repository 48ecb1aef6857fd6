from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable

import numpy as np


@dataclass(frozen=True)
class AxisRange:
    lo: float
    hi: float

    @property
    def span(self) -> float:
        return self.hi - self.lo


@dataclass(frozen=True)
class DataLimits:
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def x(self) -> AxisRange:
        return AxisRange(self.xmin, self.xmax)

    @property
    def y(self) -> AxisRange:
        return AxisRange(self.ymin, self.ymax)


def finite_range(chunks: Iterable[np.ndarray | None]) -> AxisRange | None:
    """Smallest range covering every finite value in ``chunks``, or None if there is none."""
    lo = np.inf
    hi = -np.inf
    for chunk in chunks:
        if chunk is None:
            continue
        values = np.asarray(chunk, dtype=np.float64)
        values = values[np.isfinite(values)]
        if values.size == 0:
            continue
        lo = min(lo, float(np.min(values)))
        hi = max(hi, float(np.max(values)))
    if not np.isfinite(lo) or not np.isfinite(hi):
        return None
    return AxisRange(lo, hi)


def pad_range(rng: AxisRange | None, buffer_ratio: float = 0.05) -> AxisRange:
    if rng is None:
        return AxisRange(0.0, 1.0)
    lo, hi = rng.lo, rng.hi
    if lo == hi:
        delta = max(1.0, abs(lo) * buffer_ratio)
        return AxisRange(lo - delta, hi + delta)
    pad = (hi - lo) * buffer_ratio
    return AxisRange(lo - pad, hi + pad)


def map_axis(values: np.ndarray, rng: AxisRange, length: int, *, flip: bool = False) -> np.ndarray:
    """Map data values on one axis to integer pixel offsets within ``length`` pixels."""
    scale = (length - 1) / rng.span if rng.span else 0.0
    px = np.rint((np.asarray(values, dtype=np.float64) - rng.lo) * scale)
    px = np.nan_to_num(px, nan=-1.0, posinf=length, neginf=-1.0).astype(np.int32)
    if flip:
        px = (length - 1) - px
    return px


def generate_nice_ticks(vmin: float, vmax: float, target: int, preferred_step: float | None = None) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    if preferred_step is not None and np.isfinite(preferred_step) and preferred_step > 0:
        # A finer preferred step is taken only while the label count stays readable.
        est_ticks = int(np.ceil((vmax - vmin) / preferred_step)) + 1
        if preferred_step < step and est_ticks <= max(target * 2, 12):
            step = preferred_step
    tick_min = np.ceil(vmin / step) * step
    tick_max = np.floor(vmax / step) * step

    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.4e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def infer_resolution(values: np.ndarray) -> float | None:
    """Smallest significant gap between distinct finite values."""
    finite = values[np.isfinite(values)]
    uniq = np.unique(finite)
    if uniq.size < 2:
        return None
    diffs = np.diff(uniq)
    span = float(uniq[-1] - uniq[0])
    eps = max(1e-12, span * 1e-9)
    significant = diffs[diffs > eps]
    if significant.size == 0:
        return None
    return float(np.min(significant))


def preferred_step_from_resolution(resolution: float | None) -> float | None:
    if resolution is None or not np.isfinite(resolution) or resolution <= 0:
        return None
    return _nice_number(resolution * 5.0, round_result=True)


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
