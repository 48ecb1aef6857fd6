"""Default resolution: which scale serves each aesthetic and which guides are drawn.

Every function here is a pure read of the plot. :func:`resolve` gathers the
results into one :class:`Resolution` consumed by :func:`luvatrix_grammar.render.render`.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Mapping, Sequence

from luvatrix_grammar.elements.base import GuideElement, ScaleElement, StatisticElement
from luvatrix_grammar.elements.guides import XLabel, YLabel, panel_background, x_ticks_guide, y_ticks_guide
from luvatrix_grammar.elements.scales import DEFAULT_AES_SCALES, X_VARS, Y_VARS
from luvatrix_grammar.elements.stats import x_ticks, y_ticks
from luvatrix_grammar.adapters.dataset import classify_values
from luvatrix_grammar.mapping import mapping_label
from luvatrix_grammar.plot import Layer, Plot


LOGGER = logging.getLogger(__name__)

# Guides every plot gets unless the user supplies one of the same kind.
DEFAULT_GUIDES: tuple[GuideElement, ...] = (panel_background, x_ticks_guide, y_ticks_guide)


@dataclass(frozen=True)
class Resolution:
    layer_stats: tuple[StatisticElement, ...]
    used_aesthetics: frozenset[str]
    scales: dict[str, ScaleElement]
    statistics: tuple[StatisticElement, ...]
    guides: dict[str, GuideElement]


def resolve(plot: Plot) -> Resolution:
    layer_stats = tuple(layer.effective_statistic() for layer in plot.layers)
    used = used_aesthetics(plot.layers, layer_stats)
    warn_unused(plot.mapping, used)
    statistics = plot_statistics(plot)
    return Resolution(
        layer_stats=layer_stats,
        used_aesthetics=used,
        scales=resolve_scales(plot, layer_stats + statistics, used),
        statistics=statistics,
        guides=resolve_guides(plot, used),
    )


def plot_statistics(plot: Plot) -> tuple[StatisticElement, ...]:
    """User plot-wide statistics followed by the axis tick statistics."""
    return (*plot.statistics, x_ticks, y_ticks)


def used_aesthetics(layers: Sequence[Layer], layer_stats: Sequence[StatisticElement]) -> frozenset[str]:
    used: set[str] = set()
    for layer in layers:
        used |= layer.geom.aesthetics()
    for stat in layer_stats:
        used |= stat.aesthetics()
    return frozenset(used)


def warn_unused(mapping: Mapping[str, object], used: frozenset[str]) -> frozenset[str]:
    unused = frozenset(mapping) - used
    if unused:
        LOGGER.warning(
            "The following aesthetics are mapped, but not used by any geometry: %s",
            ", ".join(sorted(unused)),
        )
    return unused


def resolve_scales(
    plot: Plot,
    statistics: Iterable[StatisticElement],
    used: frozenset[str],
) -> dict[str, ScaleElement]:
    """Assign exactly one scale to every used aesthetic that has a candidate."""
    scales: dict[str, ScaleElement] = {}
    for scale in plot.scales:
        for var in scale.aesthetics():
            scales[var] = scale
    unscaled = set(used) - set(scales)

    for stat in statistics:
        for scale in stat.default_scales():
            scale_aes = scale.aesthetics()
            if scale_aes & unscaled:
                _assign(scales, scale)
                unscaled -= scale_aes

    for var in sorted(unscaled):
        if var not in plot.mapping:
            continue
        values = plot.data.get(var)
        if values is None:
            continue
        table = DEFAULT_AES_SCALES[classify_values(values)]
        if var in table:
            _assign(scales, table[var])

    for var in sorted(unscaled):
        if var in plot.mapping or var in scales:
            continue
        if var in DEFAULT_AES_SCALES["discrete"]:
            _assign(scales, DEFAULT_AES_SCALES["discrete"][var])
    return scales


def resolve_guides(plot: Plot, used: frozenset[str]) -> dict[str, GuideElement]:
    """At most one guide per kind; user guides win over defaults."""
    guides: dict[str, GuideElement] = {}
    for guide in plot.guides:
        guides[guide.guide_kind] = guide
    for guide in DEFAULT_GUIDES:
        guides.setdefault(guide.guide_kind, guide)

    if _mapped_and_used(plot.mapping, used, X_VARS) and XLabel.guide_kind not in guides:
        guides[XLabel.guide_kind] = XLabel(label=_choose_label(plot.mapping, X_VARS))
    if _mapped_and_used(plot.mapping, used, Y_VARS) and YLabel.guide_kind not in guides:
        guides[YLabel.guide_kind] = YLabel(label=_choose_label(plot.mapping, Y_VARS))
    return guides


def distinct_scales(scales: Mapping[str, ScaleElement]) -> list[ScaleElement]:
    """Scales in first-appearance order, each object once."""
    seen: set[int] = set()
    out: list[ScaleElement] = []
    for scale in scales.values():
        if id(scale) not in seen:
            seen.add(id(scale))
            out.append(scale)
    return out


def _assign(scales: dict[str, ScaleElement], scale: ScaleElement) -> None:
    for var in scale.aesthetics():
        scales[var] = scale


def _mapped_and_used(mapping: Mapping[str, object], used: frozenset[str], variables: tuple[str, ...]) -> bool:
    return any(v in mapping and v in used for v in variables)


def _choose_label(mapping: Mapping[str, object], variables: tuple[str, ...]) -> str:
    for v in variables:
        if v in mapping:
            return mapping_label(mapping[v])  # type: ignore[arg-type]
    return ""
