"""Drawable canvas tree and its rasterizer.

A rendered plot is a tree of :class:`Canvas` nodes. Each node carries a list of
forms (primitive marks) and child canvases. Positions inside a form are in the
canvas' data units on an axis where the canvas (or an ancestor) defines units,
and in fractions of the canvas box (0..1, top-left origin) otherwise. Canvases
flagged ``pixel_coords`` place forms in pixel offsets from their top-left corner.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterator, Literal, Sequence, Union

import numpy as np

from luvatrix_grammar.raster import (
    RGBA,
    draw_hline,
    draw_markers,
    draw_polyline,
    draw_rects,
    draw_text,
    draw_vline,
    fill_rect,
    new_canvas,
)
from luvatrix_grammar.ticks import AxisRange, map_axis


Placement = Literal["fill", "under", "left", "right", "top", "bottom"]
LayoutMode = Literal["overlay", "table", "hstack", "vstack"]


@dataclass(frozen=True, eq=False)
class Fill:
    color: RGBA


@dataclass(frozen=True, eq=False)
class Points:
    xs: np.ndarray
    ys: np.ndarray
    colors: tuple[RGBA, ...]
    sizes: tuple[int, ...] = (4,)


@dataclass(frozen=True, eq=False)
class Polyline:
    xs: np.ndarray
    ys: np.ndarray
    color: RGBA
    width: int = 1


@dataclass(frozen=True, eq=False)
class Rects:
    x0s: np.ndarray
    y0s: np.ndarray
    x1s: np.ndarray
    y1s: np.ndarray
    colors: tuple[RGBA, ...]


@dataclass(frozen=True, eq=False)
class Text:
    x: float
    y: float
    text: str
    color: RGBA
    font_size_px: float = 12.0
    font_family: str = "DejaVu Sans"
    rotate_deg: int = 0
    anchor: str = "lt"
    dx: int = 0
    dy: int = 0


@dataclass(frozen=True, eq=False)
class VRules:
    xs: np.ndarray
    color: RGBA


@dataclass(frozen=True, eq=False)
class HRules:
    ys: np.ndarray
    color: RGBA


Form = Union[Fill, Points, Polyline, Rects, Text, VRules, HRules]


@dataclass(frozen=True, eq=False)
class Canvas:
    role: str
    forms: tuple[Form, ...] = ()
    children: tuple["Canvas", ...] = ()
    x_units: AxisRange | None = None
    y_units: AxisRange | None = None
    placement: Placement = "fill"
    size_px: int = 0
    order: int = 0
    margin_px: int = 0
    layout: LayoutMode = "overlay"
    share_units: bool = True
    pixel_coords: bool = False
    meta: dict[str, object] = field(default_factory=dict)

    def walk(self) -> Iterator["Canvas"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, role: str) -> "Canvas | None":
        return next((c for c in self.walk() if c.role == role), None)

    def find_all(self, role: str) -> list["Canvas"]:
        return [c for c in self.walk() if c.role == role]


def compose(canvas: Canvas, *children: Canvas) -> Canvas:
    """New canvas with ``children`` drawn on top of the existing ones, in order."""
    return replace(canvas, children=canvas.children + tuple(children))


def pad(canvas: Canvas, margin_px: int) -> Canvas:
    return Canvas(role="padded", children=(canvas,), margin_px=int(margin_px))


def hstack(*canvases: Canvas) -> Canvas:
    return Canvas(role="hstack", children=tuple(canvases), layout="hstack")


def vstack(*canvases: Canvas) -> Canvas:
    return Canvas(role="vstack", children=tuple(canvases), layout="vstack")


def layout_guides(panel: Canvas, guide_canvases: Sequence[Canvas]) -> Canvas:
    """Arrange a panel and guide canvases into one table canvas.

    Guides placed ``under`` are drawn inside the panel below its geometry;
    side guides are stacked outward from the panel in ``order``.
    """
    under = tuple(sorted((g for g in guide_canvases if g.placement == "under"), key=lambda g: g.order))
    sides = tuple(g for g in guide_canvases if g.placement != "under")
    panel = replace(panel, children=under + panel.children)
    return Canvas(role="plot", children=(panel,) + sides, layout="table")


def rasterize(canvas: Canvas, width: int, height: int, background: RGBA = (255, 255, 255, 255)) -> np.ndarray:
    frame = new_canvas(width, height, color=background)
    _draw(canvas, frame, (0, 0, width, height), None, None)
    return frame


Box = tuple[int, int, int, int]


def _draw(canvas: Canvas, dst: np.ndarray, box: Box, x_units: AxisRange | None, y_units: AxisRange | None) -> None:
    m = canvas.margin_px
    x, y, w, h = box
    box = (x + m, y + m, max(2, w - 2 * m), max(2, h - 2 * m))
    x_units = canvas.x_units or x_units
    y_units = canvas.y_units or y_units

    frame = _Frame(box, x_units, y_units, canvas.pixel_coords)
    for form in canvas.forms:
        _draw_form(form, dst, frame)

    if canvas.layout == "table":
        _draw_table(canvas, dst, box, x_units, y_units)
    elif canvas.layout in ("hstack", "vstack"):
        _draw_stack(canvas, dst, box)
    else:
        for child in canvas.children:
            _draw(child, dst, box, x_units, y_units)


def _draw_stack(canvas: Canvas, dst: np.ndarray, box: Box) -> None:
    n = len(canvas.children)
    if n == 0:
        return
    x, y, w, h = box
    for i, child in enumerate(canvas.children):
        if canvas.layout == "hstack":
            x0 = x + (w * i) // n
            child_box = (x0, y, x + (w * (i + 1)) // n - x0, h)
        else:
            y0 = y + (h * i) // n
            child_box = (x, y0, w, y + (h * (i + 1)) // n - y0)
        _draw(child, dst, child_box, None, None)


def _draw_table(canvas: Canvas, dst: np.ndarray, box: Box, x_units: AxisRange | None, y_units: AxisRange | None) -> None:
    center = [c for c in canvas.children if c.placement == "fill"]
    sides: dict[str, list[Canvas]] = {"left": [], "right": [], "top": [], "bottom": []}
    for child in canvas.children:
        if child.placement in sides:
            sides[child.placement].append(child)
    for items in sides.values():
        items.sort(key=lambda c: c.order)

    x, y, w, h = box
    left = sum(c.size_px for c in sides["left"])
    right = sum(c.size_px for c in sides["right"])
    top = sum(c.size_px for c in sides["top"])
    bottom = sum(c.size_px for c in sides["bottom"])
    # Keep a drawable panel even when guides ask for more room than exists.
    left = min(left, w // 3)
    right = min(right, w // 3)
    top = min(top, h // 3)
    bottom = min(bottom, h // 3)
    px0, py0 = x + left, y + top
    pw, ph = max(2, w - left - right), max(2, h - top - bottom)

    panel_x = x_units
    panel_y = y_units
    for child in center:
        panel_x = child.x_units or panel_x
        panel_y = child.y_units or panel_y
        _draw(child, dst, (px0, py0, pw, ph), x_units, y_units)

    offset = px0
    for child in sides["left"]:
        offset -= child.size_px
        _draw(child, dst, (offset, py0, child.size_px, ph), None, panel_y if child.share_units else None)
    offset = px0 + pw
    for child in sides["right"]:
        _draw(child, dst, (offset, py0, child.size_px, ph), None, panel_y if child.share_units else None)
        offset += child.size_px
    offset = py0
    for child in sides["top"]:
        offset -= child.size_px
        _draw(child, dst, (px0, offset, pw, child.size_px), panel_x if child.share_units else None, None)
    offset = py0 + ph
    for child in sides["bottom"]:
        _draw(child, dst, (px0, offset, pw, child.size_px), panel_x if child.share_units else None, None)
        offset += child.size_px


@dataclass(frozen=True)
class _Frame:
    box: Box
    x_units: AxisRange | None
    y_units: AxisRange | None
    pixel_coords: bool = False

    def px_x(self, values: np.ndarray | float) -> np.ndarray:
        x, _, w, _ = self.box
        return x + self._offsets(values, self.x_units, w, flip=False)

    def px_y(self, values: np.ndarray | float) -> np.ndarray:
        _, y, _, h = self.box
        return y + self._offsets(values, self.y_units, h, flip=True)

    def _offsets(self, values: np.ndarray | float, units: AxisRange | None, length: int, *, flip: bool) -> np.ndarray:
        arr = np.atleast_1d(np.asarray(values, dtype=np.float64))
        if self.pixel_coords:
            return np.rint(arr).astype(np.int32)
        if units is not None:
            return map_axis(arr, units, length, flip=flip)
        return np.rint(arr * (length - 1)).astype(np.int32)


def _finite_xy(xs: np.ndarray, ys: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    keep = np.isfinite(xs) & np.isfinite(ys)
    return xs[keep], ys[keep], keep


def _per_item(values: tuple, keep: np.ndarray) -> tuple:
    if len(values) <= 1:
        return values
    return tuple(v for v, k in zip(values, keep.tolist()) if k)


def _draw_form(form: Form, dst: np.ndarray, frame: _Frame) -> None:
    x, y, w, h = frame.box
    if isinstance(form, Fill):
        fill_rect(dst, x, y, x + w - 1, y + h - 1, form.color)
    elif isinstance(form, Points):
        xs, ys, keep = _finite_xy(form.xs, form.ys)
        colors = _per_item(form.colors, keep)
        sizes = _per_item(form.sizes, keep)
        if xs.size == 0 or not colors or not sizes:
            return
        draw_markers(dst, frame.px_x(xs), frame.px_y(ys), colors, sizes)
    elif isinstance(form, Polyline):
        xs, ys, _ = _finite_xy(form.xs, form.ys)
        draw_polyline(dst, frame.px_x(xs), frame.px_y(ys), form.color, width=form.width)
    elif isinstance(form, Rects):
        # Marks never bleed out of the canvas box.
        draw_rects(
            dst,
            np.clip(frame.px_x(form.x0s), x, x + w - 1),
            np.clip(frame.px_y(form.y0s), y, y + h - 1),
            np.clip(frame.px_x(form.x1s), x, x + w - 1),
            np.clip(frame.px_y(form.y1s), y, y + h - 1),
            form.colors,
        )
    elif isinstance(form, Text):
        draw_text(
            dst,
            int(frame.px_x(form.x)[0]) + form.dx,
            int(frame.px_y(form.y)[0]) + form.dy,
            form.text,
            form.color,
            font_family=form.font_family,
            font_size_px=form.font_size_px,
            rotate_deg=form.rotate_deg,
            anchor=form.anchor,
        )
    elif isinstance(form, VRules):
        for px in frame.px_x(form.xs).tolist():
            if x <= px < x + w:
                draw_vline(dst, px, y, y + h - 1, form.color)
    elif isinstance(form, HRules):
        for py in frame.px_y(form.ys).tolist():
            if y <= py < y + h:
                draw_hline(dst, x, x + w - 1, py, form.color)
    else:
        raise TypeError(f"unsupported form: {type(form)!r}")
