from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from luvatrix_grammar.aesthetics import Aesthetics
from luvatrix_grammar.compose import Canvas
from luvatrix_grammar.elements.base import CoordinateElement, register_element
from luvatrix_grammar.elements.scales import X_VARS, Y_VARS
from luvatrix_grammar.ticks import AxisRange, DataLimits, finite_range, pad_range


@register_element
@dataclass(frozen=True)
class Cartesian(CoordinateElement):
    """Linear x/y panel; limits not fixed here are taken from the data."""

    type_name = "cartesian"

    xmin: float | None = None
    xmax: float | None = None
    ymin: float | None = None
    ymax: float | None = None

    def __post_init__(self) -> None:
        if self.xmin is not None and self.xmax is not None and self.xmin >= self.xmax:
            raise ValueError("xmin must be < xmax")
        if self.ymin is not None and self.ymax is not None and self.ymin >= self.ymax:
            raise ValueError("ymin must be < ymax")

    def apply(self, plot_aes: Aesthetics, aess: Sequence[Aesthetics]) -> Canvas:
        x = self._axis_range(plot_aes, aess, X_VARS, plot_aes.x_levels, self.xmin, self.xmax)
        y = self._axis_range(plot_aes, aess, Y_VARS, plot_aes.y_levels, self.ymin, self.ymax)
        limits = DataLimits(xmin=x.lo, xmax=x.hi, ymin=y.lo, ymax=y.hi)
        return Canvas(role="panel", x_units=x, y_units=y, meta={"limits": limits})

    @staticmethod
    def _axis_range(
        plot_aes: Aesthetics,
        aess: Sequence[Aesthetics],
        variables: tuple[str, ...],
        levels: tuple[str, ...] | None,
        fixed_lo: float | None,
        fixed_hi: float | None,
    ) -> AxisRange:
        if levels is not None:
            rng = AxisRange(-0.5, len(levels) - 0.5)
        else:
            chunks = [a.get(v) for a in (plot_aes, *aess) for v in variables]
            rng = pad_range(finite_range(chunks))
        lo = rng.lo if fixed_lo is None else float(fixed_lo)
        hi = rng.hi if fixed_hi is None else float(fixed_hi)
        if lo >= hi:
            # A single fixed bound can land on the wrong side of the data.
            return pad_range(AxisRange(lo, lo))
        return AxisRange(lo, hi)


cartesian = Cartesian()
