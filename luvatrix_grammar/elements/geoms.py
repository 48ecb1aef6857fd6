from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from luvatrix_grammar.aesthetics import Aesthetics
from luvatrix_grammar.compose import Canvas, Points, Polyline, Rects, Text
from luvatrix_grammar.elements.base import GeometryElement, StatisticElement, register_element
from luvatrix_grammar.elements.stats import Histogram
from luvatrix_grammar.errors import PlotDataError
from luvatrix_grammar.raster import RGBA
from luvatrix_grammar.theme import Theme
from luvatrix_grammar.ticks import infer_resolution


def _require(aes: Aesthetics, *names: str, geom: str) -> None:
    missing = [n for n in names if aes.get(n) is None]
    if missing:
        raise PlotDataError(f"{geom} geometry requires aesthetics: {', '.join(missing)}")


def _colors(aes: Aesthetics, theme: Theme, n: int) -> tuple[RGBA, ...]:
    # Colors inherited from the plot-wide record need not line up with this layer.
    if aes.color is None or len(aes.color) not in (1, n):
        return (theme.rgba("default_color"),)
    return aes.color


def _float(values: np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


@register_element
@dataclass(frozen=True)
class Nil(GeometryElement):
    type_name = "nil"

    @property
    def is_default(self) -> bool:
        return True

    def render(self, theme: Theme, aes: Aesthetics) -> Canvas:
        return Canvas(role="geometry:nil")


@register_element
@dataclass(frozen=True)
class Point(GeometryElement):
    type_name = "point"

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"x", "y", "color", "size"})

    def render(self, theme: Theme, aes: Aesthetics) -> Canvas:
        _require(aes, "x", "y", geom="point")
        if aes.size is None or len(aes.size) != aes.x.shape[0]:
            sizes: tuple[int, ...] = (int(round(theme.point_size_px)),)
        else:
            sizes = tuple(int(round(s)) if np.isfinite(s) else 0 for s in _float(aes.size).tolist())
        form = Points(xs=_float(aes.x), ys=_float(aes.y), colors=_colors(aes, theme, aes.x.shape[0]), sizes=sizes)
        return Canvas(role="geometry:point", forms=(form,))


@register_element
@dataclass(frozen=True)
class Line(GeometryElement):
    """Connects points in x order, one line per distinct color."""

    type_name = "line"

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"x", "y", "color"})

    def render(self, theme: Theme, aes: Aesthetics) -> Canvas:
        _require(aes, "x", "y", geom="line")
        xs, ys = _float(aes.x), _float(aes.y)
        width = max(1, int(round(theme.line_width_px)))
        groups: dict[RGBA, list[int]] = {}
        colors = _colors(aes, theme, xs.size)
        for i in range(xs.size):
            groups.setdefault(colors[i] if len(colors) > 1 else colors[0], []).append(i)

        forms = []
        for color, rows in groups.items():
            idx = np.asarray(rows, dtype=np.int64)
            order = idx[np.argsort(xs[idx], kind="stable")]
            forms.append(Polyline(xs=xs[order], ys=ys[order], color=color, width=width))
        return Canvas(role="geometry:line", forms=tuple(forms))


@register_element
@dataclass(frozen=True)
class Bar(GeometryElement):
    """Vertical bars from the baseline (``y_min`` or 0) up to ``y``.

    Bar extents come from ``x_min``/``x_max`` when present, otherwise from a
    fraction of the smallest gap between distinct x values.
    """

    type_name = "bar"

    width: float = 0.8

    def __post_init__(self) -> None:
        if not 0.0 < self.width <= 1.0:
            raise ValueError("bar width must be within (0, 1]")

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"x", "y", "x_min", "x_max", "y_min", "color"})

    def render(self, theme: Theme, aes: Aesthetics) -> Canvas:
        _require(aes, "y", geom="bar")
        top = _float(aes.y)
        if aes.x_min is not None and aes.x_max is not None:
            x0, x1 = _float(aes.x_min), _float(aes.x_max)
        else:
            _require(aes, "x", geom="bar")
            x = _float(aes.x)
            half = (infer_resolution(x) or 1.0) * self.width / 2.0
            x0, x1 = x - half, x + half
        base = _float(aes.y_min) if aes.y_min is not None else np.zeros_like(top)

        keep = np.isfinite(x0) & np.isfinite(x1) & np.isfinite(top) & np.isfinite(base)
        colors = _colors(aes, theme, top.size)
        if len(colors) > 1:
            colors = tuple(c for c, k in zip(colors, keep.tolist()) if k)
        form = Rects(x0s=x0[keep], y0s=top[keep], x1s=x1[keep], y1s=base[keep], colors=colors)
        return Canvas(role="geometry:bar", forms=(form,) if keep.any() else ())


@register_element
@dataclass(frozen=True)
class HistogramGeom(Bar):
    type_name = "histogram"

    width: float = 1.0
    bins: int = 10

    def default_statistic(self) -> StatisticElement:
        return Histogram(bins=self.bins)


@register_element
@dataclass(frozen=True)
class TextGeom(GeometryElement):
    """Draws the ``label`` aesthetic at each (x, y)."""

    type_name = "text"

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"x", "y", "label", "color"})

    def render(self, theme: Theme, aes: Aesthetics) -> Canvas:
        _require(aes, "x", "y", "label", geom="text")
        n = len(aes.label)
        colors = aes.color if aes.color is not None and len(aes.color) in (1, n) else (theme.rgba("text_color"),)
        forms = []
        for i, (x, y, text) in enumerate(zip(_float(aes.x).tolist(), _float(aes.y).tolist(), aes.label)):
            if not (np.isfinite(x) and np.isfinite(y)):
                continue
            forms.append(
                Text(
                    x=x,
                    y=y,
                    text=text,
                    color=colors[i] if len(colors) > 1 else colors[0],
                    font_size_px=theme.tick_font_px,
                    font_family=theme.font_family,
                    anchor="cm",
                )
            )
        return Canvas(role="geometry:text", forms=tuple(forms))


nil = Nil()
point = Point()
line = Line()
bar = Bar()
histogram = HistogramGeom()
text = TextGeom()
