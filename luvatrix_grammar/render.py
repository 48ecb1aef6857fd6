from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from luvatrix_grammar import compose as _compose
from luvatrix_grammar.aesthetics import Aesthetics, concat_aesthetics, inherit
from luvatrix_grammar.compose import Canvas, layout_guides, pad, rasterize
from luvatrix_grammar.display import resolve_draw_size
from luvatrix_grammar.elements.guides import color_key
from luvatrix_grammar.errors import EmptyPlotError
from luvatrix_grammar.mapping import mapping_label
from luvatrix_grammar.plot import Plot
from luvatrix_grammar.resolve import distinct_scales, resolve
from luvatrix_grammar.theme import DEFAULT_THEME


LOGGER = logging.getLogger(__name__)


def render(plot: Plot) -> Canvas:
    """Turn a plot declaration into one drawable canvas tree.

    The plot is only read: every stage works on fresh :class:`Aesthetics`
    records, so the same plot can be rendered again afterwards.
    """
    if not plot.layers:
        raise EmptyPlotError("Plot has no layers. Try adding a geometry.")

    resolution = resolve(plot)
    datas = [layer.data for layer in plot.layers]
    aess = [Aesthetics() for _ in plot.layers]

    # I. Scales
    for scale in distinct_scales(resolution.scales):
        scale.apply(aess, datas)

    if "color" in plot.mapping:
        aess[0].color_key_title = mapping_label(plot.mapping["color"])

    # IIa. Layer statistics
    for stat, aes in zip(resolution.layer_stats, aess):
        stat.apply(aes, resolution.scales)

    # IIb. Plot-wide statistics
    plot_aes = concat_aesthetics(*aess)
    for stat in resolution.statistics:
        stat.apply(plot_aes, resolution.scales)

    guides = dict(resolution.guides)
    if any(aes.color is not None for aes in (plot_aes, *aess)):
        guides.setdefault(color_key.guide_kind, color_key)

    # III. Coordinates
    panel = plot.coord.apply(plot_aes, aess)
    for aes in aess:
        inherit(aes, plot_aes)

    # IV. Geometries, later layers on top
    panel = _compose.compose(panel, *(layer.geom.render(plot.theme, aes) for layer, aes in zip(plot.layers, aess)))

    # V. Guides
    guide_canvases = [canvas for guide in guides.values() for canvas in guide.render(plot.theme, aess)]
    LOGGER.debug("rendered %d layers with guides: %s", len(plot.layers), ", ".join(guides))
    return pad(layout_guides(panel, guide_canvases), int(round(plot.theme.margin_px)))


def draw(plot: Plot | Canvas, width: int | None = None, height: int | None = None) -> np.ndarray:
    """Rasterize a plot (or an already rendered canvas) to an RGBA ``uint8`` frame."""
    canvas = plot if isinstance(plot, Canvas) else render(plot)
    w, h = resolve_draw_size(width, height)
    theme = plot.theme if isinstance(plot, Plot) else DEFAULT_THEME
    return rasterize(canvas, w, h, background=theme.rgba("background"))


def save_png(plot: Plot | Canvas, path: str | Path, width: int | None = None, height: int | None = None) -> Path:
    out = Path(path)
    frame = draw(plot, width, height)
    Image.fromarray(frame).save(out, format="PNG")
    LOGGER.info("saved %dx%d plot to %s", frame.shape[1], frame.shape[0], out)
    return out


def hstack(*plots: Plot | Canvas) -> Canvas:
    """Render plots side by side."""
    return _compose.hstack(*(p if isinstance(p, Canvas) else render(p) for p in plots))


def vstack(*plots: Plot | Canvas) -> Canvas:
    """Render plots one above the other."""
    return _compose.vstack(*(p if isinstance(p, Canvas) else render(p) for p in plots))

