from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Iterator

import numpy as np

from luvatrix_grammar.raster import RGBA


# Aesthetics a user may bind data to, in canonical order.
AESTHETIC_NAMES: tuple[str, ...] = (
    "x",
    "y",
    "x_min",
    "x_max",
    "y_min",
    "y_max",
    "color",
    "size",
    "label",
)


@dataclass
class Data:
    """Values realized from a mapping, keyed by aesthetic name."""

    x: np.ndarray | None = None
    y: np.ndarray | None = None
    x_min: np.ndarray | None = None
    x_max: np.ndarray | None = None
    y_min: np.ndarray | None = None
    y_max: np.ndarray | None = None
    color: np.ndarray | None = None
    size: np.ndarray | None = None
    label: np.ndarray | None = None

    def get(self, name: str) -> np.ndarray | None:
        return getattr(self, name)

    def set(self, name: str, values: np.ndarray) -> None:
        if name not in AESTHETIC_NAMES:
            raise KeyError(name)
        setattr(self, name, values)

    def items(self) -> Iterator[tuple[str, np.ndarray]]:
        for name in AESTHETIC_NAMES:
            value = getattr(self, name)
            if value is not None:
                yield name, value


@dataclass
class Aesthetics:
    """Working record for one layer (or the whole plot) during rendering."""

    x: np.ndarray | None = None
    y: np.ndarray | None = None
    x_min: np.ndarray | None = None
    x_max: np.ndarray | None = None
    y_min: np.ndarray | None = None
    y_max: np.ndarray | None = None
    color: tuple[RGBA, ...] | None = None
    size: np.ndarray | None = None
    label: tuple[str, ...] | None = None

    # level names for discrete positions/colors, in level order
    x_levels: tuple[str, ...] | None = None
    y_levels: tuple[str, ...] | None = None
    color_levels: tuple[str, ...] | None = None

    x_ticks: np.ndarray | None = None
    y_ticks: np.ndarray | None = None
    x_tick_labels: tuple[str, ...] | None = None
    y_tick_labels: tuple[str, ...] | None = None

    color_key_colors: dict[str, RGBA] | None = None
    color_key_title: str | None = None

    def get(self, name: str) -> Any:
        return getattr(self, name)

    def set(self, name: str, value: Any) -> None:
        setattr(self, name, value)


_ARRAY_FIELDS = ("x", "y", "x_min", "x_max", "y_min", "y_max", "size")
_TUPLE_FIELDS = ("color", "label")


def concat_aesthetics(*aess: Aesthetics) -> Aesthetics:
    """Combine per-layer aesthetics into one plot-wide record.

    Per-row fields are concatenated across the layers that define them; every
    other field takes the first value that is set.
    """
    out = Aesthetics()
    for f in fields(Aesthetics):
        name = f.name
        present = [getattr(a, name) for a in aess if getattr(a, name) is not None]
        if not present:
            continue
        elif name in _ARRAY_FIELDS:
            setattr(out, name, np.concatenate([np.asarray(p) for p in present]))
        elif name in _TUPLE_FIELDS:
            setattr(out, name, tuple(v for p in present for v in p))
        elif name == "color_key_colors":
            colors: dict[str, RGBA] = {}
            for p in present:
                for k, v in p.items():
                    colors.setdefault(k, v)
            out.color_key_colors = colors
        else:
            setattr(out, name, present[0])
    return out


def inherit(aes: Aesthetics, other: Aesthetics) -> Aesthetics:
    """Fill every unset field of ``aes`` from ``other`` by reference."""
    for f in fields(Aesthetics):
        if getattr(aes, f.name) is None:
            setattr(aes, f.name, getattr(other, f.name))
    return aes
