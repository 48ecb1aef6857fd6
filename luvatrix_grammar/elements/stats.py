from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np

from luvatrix_grammar.aesthetics import Aesthetics
from luvatrix_grammar.elements.base import ScaleElement, StatisticElement, register_element
from luvatrix_grammar.elements.scales import X_VARS, Y_VARS, x_continuous, y_continuous
from luvatrix_grammar.errors import PlotDataError
from luvatrix_grammar.ticks import (
    finite_range,
    format_ticks,
    generate_nice_ticks,
    infer_resolution,
    pad_range,
    preferred_step_from_resolution,
)


@register_element
@dataclass(frozen=True)
class Identity(StatisticElement):
    """Leaves the aesthetics untouched; stands in for "no statistic"."""

    type_name = "identity"

    @property
    def is_default(self) -> bool:
        return True

    def apply(self, aes: Aesthetics, scales: Mapping[str, ScaleElement]) -> None:
        return None


class _AxisTicks(StatisticElement):
    axis: str
    variables: tuple[str, ...]
    target: int

    def aesthetics(self) -> frozenset[str]:
        return frozenset({self.axis})

    def apply(self, aes: Aesthetics, scales: Mapping[str, ScaleElement]) -> None:
        levels = aes.get(f"{self.axis}_levels")
        if levels is not None:
            aes.set(f"{self.axis}_ticks", np.arange(len(levels), dtype=np.float64))
            aes.set(f"{self.axis}_tick_labels", tuple(levels))
            return

        chunks = [aes.get(v) for v in self.variables]
        rng = finite_range(chunks)
        if rng is None:
            return
        rng = pad_range(rng)
        present = [np.asarray(c, dtype=np.float64) for c in chunks if c is not None]
        step = preferred_step_from_resolution(infer_resolution(np.concatenate(present)))
        ticks = generate_nice_ticks(rng.lo, rng.hi, self.target, preferred_step=step)
        if ticks.size == 0:
            ticks = np.asarray([rng.lo, rng.hi], dtype=np.float64)
        aes.set(f"{self.axis}_ticks", ticks)
        aes.set(f"{self.axis}_tick_labels", tuple(format_ticks(ticks)))


@register_element
@dataclass(frozen=True)
class XTicks(_AxisTicks):
    type_name = "x_ticks"

    target: int = 6
    axis = "x"
    variables = X_VARS


@register_element
@dataclass(frozen=True)
class YTicks(_AxisTicks):
    type_name = "y_ticks"

    target: int = 6
    axis = "y"
    variables = Y_VARS


@register_element
@dataclass(frozen=True)
class Histogram(StatisticElement):
    """Bins ``x`` into ``bins`` equal-width intervals and counts rows per bin."""

    type_name = "histogram"

    bins: int = 10

    def __post_init__(self) -> None:
        if isinstance(self.bins, bool) or not isinstance(self.bins, int) or self.bins <= 0:
            raise ValueError("bins must be a positive integer")

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"x", "y", "x_min", "x_max"})

    def default_scales(self) -> list[ScaleElement]:
        return [x_continuous, y_continuous]

    def apply(self, aes: Aesthetics, scales: Mapping[str, ScaleElement]) -> None:
        if aes.x is None:
            raise PlotDataError("histogram requires an x aesthetic")
        values = np.asarray(aes.x, dtype=np.float64)
        values = values[np.isfinite(values)]
        if values.size == 0:
            counts = np.zeros(0, dtype=np.float64)
            edges = np.zeros(1, dtype=np.float64)
        else:
            counts, edges = np.histogram(values, bins=self.bins)
        aes.x_min = edges[:-1].astype(np.float64)
        aes.x_max = edges[1:].astype(np.float64)
        aes.x = (aes.x_min + aes.x_max) / 2.0
        aes.y = counts.astype(np.float64)
        aes.y_min = np.zeros_like(aes.y)
        # Per-row channels no longer line up with the bins.
        aes.color = None
        aes.size = None
        aes.label = None


nil = Identity()
x_ticks = XTicks()
y_ticks = YTicks()
