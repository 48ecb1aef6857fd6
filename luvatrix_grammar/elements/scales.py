from __future__ import annotations

import colorsys
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np

from luvatrix_grammar.adapters.dataset import as_float
from luvatrix_grammar.aesthetics import Aesthetics, Data
from luvatrix_grammar.elements.base import ScaleElement, register_element
from luvatrix_grammar.raster import RGBA
from luvatrix_grammar.theme import parse_hex_color
from luvatrix_grammar.ticks import format_tick


# Aesthetics that share the horizontal / vertical position scale.
X_VARS: tuple[str, ...] = ("x", "x_min", "x_max")
Y_VARS: tuple[str, ...] = ("y", "y_min", "y_max")

MISSING_COLOR: RGBA = (128, 128, 128, 255)


def _axis_vars(axis: str) -> tuple[str, ...]:
    if axis == "x":
        return X_VARS
    if axis == "y":
        return Y_VARS
    raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")


def is_missing(value: Any) -> bool:
    return isinstance(value, float) and value != value


def discrete_levels(chunks: Sequence[np.ndarray]) -> tuple[Any, ...]:
    """Distinct values across ``chunks``; sorted when comparable, else in order of appearance.

    NaN is missing data, not a level.
    """
    seen: dict[Any, None] = {}
    for chunk in chunks:
        for value in chunk.tolist():
            if not is_missing(value):
                seen.setdefault(value, None)
    levels = tuple(seen)
    try:
        return tuple(sorted(levels))
    except TypeError:
        return levels


@register_element
@dataclass(frozen=True)
class ContinuousScale(ScaleElement):
    type_name = "continuous"

    axis: str = "x"
    minvalue: float | None = None
    maxvalue: float | None = None

    def __post_init__(self) -> None:
        _axis_vars(self.axis)

    def aesthetics(self) -> frozenset[str]:
        return frozenset(_axis_vars(self.axis))

    def apply(self, aess: Sequence[Aesthetics], datas: Sequence[Data]) -> None:
        for aes, data in zip(aess, datas):
            for var in _axis_vars(self.axis):
                values = data.get(var)
                if values is None:
                    continue
                scaled = as_float(values, label=var)
                if self.minvalue is not None or self.maxvalue is not None:
                    scaled = np.where(
                        (self.minvalue is None or scaled >= self.minvalue) & (self.maxvalue is None or scaled <= self.maxvalue),
                        scaled,
                        np.nan,
                    )
                aes.set(var, scaled)


@register_element
@dataclass(frozen=True)
class DiscreteScale(ScaleElement):
    """Places each distinct value at an integer position 0..n-1."""

    type_name = "discrete"

    axis: str = "x"

    def __post_init__(self) -> None:
        _axis_vars(self.axis)

    def aesthetics(self) -> frozenset[str]:
        return frozenset(_axis_vars(self.axis))

    def apply(self, aess: Sequence[Aesthetics], datas: Sequence[Data]) -> None:
        variables = _axis_vars(self.axis)
        chunks = [data.get(v) for data in datas for v in variables if data.get(v) is not None]
        if not chunks:
            return
        levels = discrete_levels(chunks)
        index = {level: float(i) for i, level in enumerate(levels)}
        labels = tuple(str(level) for level in levels)
        for aes, data in zip(aess, datas):
            touched = False
            for var in variables:
                values = data.get(var)
                if values is None:
                    continue
                aes.set(var, np.asarray([np.nan if is_missing(v) else index[v] for v in values.tolist()], dtype=np.float64))
                touched = True
            if touched:
                aes.set(f"{self.axis}_levels", labels)


@register_element
@dataclass(frozen=True)
class ColorGradientScale(ScaleElement):
    type_name = "color_gradient"

    low: str = "#132B43"
    high: str = "#56B1F7"

    def __post_init__(self) -> None:
        parse_hex_color(self.low)
        parse_hex_color(self.high)

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"color"})

    def apply(self, aess: Sequence[Aesthetics], datas: Sequence[Data]) -> None:
        columns = [(aes, as_float(data.color, label="color")) for aes, data in zip(aess, datas) if data.color is not None]
        if not columns:
            return
        finite = np.concatenate([values[np.isfinite(values)] for _, values in columns])
        if finite.size == 0:
            lo, hi = 0.0, 1.0
        else:
            lo, hi = float(np.min(finite)), float(np.max(finite))
        span = hi - lo if hi > lo else 1.0
        for aes, values in columns:
            aes.color = tuple(self._interpolate((v - lo) / span) if np.isfinite(v) else MISSING_COLOR for v in values.tolist())
            aes.color_key_colors = {
                format_tick(hi): self._interpolate(1.0),
                format_tick((lo + hi) / 2.0): self._interpolate(0.5),
                format_tick(lo): self._interpolate(0.0),
            }

    def _interpolate(self, t: float) -> RGBA:
        a = np.asarray(parse_hex_color(self.low), dtype=np.float64)
        b = np.asarray(parse_hex_color(self.high), dtype=np.float64)
        mixed = np.rint(a + (b - a) * min(1.0, max(0.0, t))).astype(int)
        return (int(mixed[0]), int(mixed[1]), int(mixed[2]), int(mixed[3]))


@register_element
@dataclass(frozen=True)
class ColorHueScale(ScaleElement):
    """Evenly spaced hues, one per distinct value."""

    type_name = "color_hue"

    lightness: float = 0.65
    saturation: float = 0.7

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"color"})

    def apply(self, aess: Sequence[Aesthetics], datas: Sequence[Data]) -> None:
        chunks = [data.color for data in datas if data.color is not None]
        if not chunks:
            return
        levels = discrete_levels(chunks)
        palette = self.palette(len(levels))
        by_level = dict(zip(levels, palette))
        key = {str(level): color for level, color in by_level.items()}
        labels = tuple(str(level) for level in levels)
        for aes, data in zip(aess, datas):
            if data.color is None:
                continue
            aes.color = tuple(MISSING_COLOR if is_missing(v) else by_level[v] for v in data.color.tolist())
            aes.color_levels = labels
            aes.color_key_colors = dict(key)

    def palette(self, n: int) -> list[RGBA]:
        out: list[RGBA] = []
        for i in range(n):
            r, g, b = colorsys.hls_to_rgb((0.6 + i / max(n, 1)) % 1.0, self.lightness, self.saturation)
            out.append((int(round(r * 255)), int(round(g * 255)), int(round(b * 255)), 255))
        return out


@register_element
@dataclass(frozen=True)
class SizeScale(ScaleElement):
    """Maps numeric values linearly onto marker sizes in pixels."""

    type_name = "size"

    min_px: float = 2.0
    max_px: float = 10.0

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"size"})

    def apply(self, aess: Sequence[Aesthetics], datas: Sequence[Data]) -> None:
        columns = [(aes, as_float(data.size, label="size")) for aes, data in zip(aess, datas) if data.size is not None]
        if not columns:
            return
        finite = np.concatenate([values[np.isfinite(values)] for _, values in columns])
        lo = float(np.min(finite)) if finite.size else 0.0
        hi = float(np.max(finite)) if finite.size else 1.0
        span = hi - lo if hi > lo else 1.0
        for aes, values in columns:
            aes.size = self.min_px + (values - lo) / span * (self.max_px - self.min_px)


@register_element
@dataclass(frozen=True)
class LabelScale(ScaleElement):
    type_name = "label"

    def aesthetics(self) -> frozenset[str]:
        return frozenset({"label"})

    def apply(self, aess: Sequence[Aesthetics], datas: Sequence[Data]) -> None:
        for aes, data in zip(aess, datas):
            if data.label is not None:
                aes.label = tuple(str(v) for v in data.label.tolist())


x_continuous = ContinuousScale(axis="x")
y_continuous = ContinuousScale(axis="y")
x_discrete = DiscreteScale(axis="x")
y_discrete = DiscreteScale(axis="y")
color_gradient = ColorGradientScale()
color_hue = ColorHueScale()
size_continuous = SizeScale()
label = LabelScale()


# Scale chosen for an aesthetic that has no explicit or statistic-supplied scale.
DEFAULT_AES_SCALES: Mapping[str, Mapping[str, ScaleElement]] = {
    "continuous": {
        "x": x_continuous,
        "x_min": x_continuous,
        "x_max": x_continuous,
        "y": y_continuous,
        "y_min": y_continuous,
        "y_max": y_continuous,
        "color": color_gradient,
        "size": size_continuous,
        "label": label,
    },
    "discrete": {
        "x": x_discrete,
        "x_min": x_discrete,
        "x_max": x_discrete,
        "y": y_discrete,
        "y_min": y_discrete,
        "y_max": y_discrete,
        "color": color_hue,
        "size": size_continuous,
        "label": label,
    },
}
