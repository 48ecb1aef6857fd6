from __future__ import annotations

from typing import Sequence

import numpy as np

from luvatrix_grammar.raster.canvas import RGBA, blend_region, fill_rect


def draw_markers(
    dst: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
    colors: Sequence[RGBA],
    sizes: Sequence[int] = (2,),
) -> None:
    """Square markers centred on each (x, y).

    ``colors`` and ``sizes`` hold either one entry per point or a single shared entry.
    """
    for i, (x, y) in enumerate(zip(xs.tolist(), ys.tolist())):
        color = colors[i] if len(colors) > 1 else colors[0]
        radius = max(0, int(sizes[i] if len(sizes) > 1 else sizes[0]) // 2)
        blend_region(dst, int(x) - radius, int(y) - radius, int(x) + radius + 1, int(y) + radius + 1, color)


def draw_polyline(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, width: int = 1) -> None:
    if xs.size < 2:
        return
    for i in range(xs.size - 1):
        _draw_segment(dst, int(xs[i]), int(ys[i]), int(xs[i + 1]), int(ys[i + 1]), color=color, width=width)


def draw_rects(
    dst: np.ndarray,
    x0s: np.ndarray,
    y0s: np.ndarray,
    x1s: np.ndarray,
    y1s: np.ndarray,
    colors: Sequence[RGBA],
) -> None:
    for i in range(x0s.size):
        color = colors[i] if len(colors) > 1 else colors[0]
        fill_rect(dst, int(x0s[i]), int(y0s[i]), int(x1s[i]), int(y1s[i]), color)


def _draw_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA, width: int) -> None:
    # Bresenham with a square brush.
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    radius = max(0, width // 2)

    while True:
        blend_region(dst, x0 - radius, y0 - radius, x0 + radius + 1, y0 + radius + 1, color)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy
