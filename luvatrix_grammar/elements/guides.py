from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from luvatrix_grammar.aesthetics import Aesthetics
from luvatrix_grammar.compose import Canvas, Fill, HRules, Rects, Text, VRules
from luvatrix_grammar.elements.base import GuideElement, register_element
from luvatrix_grammar.raster import RGBA, text_size
from luvatrix_grammar.theme import Theme


def _first(aess: Sequence[Aesthetics], name: str) -> Any:
    for aes in aess:
        value = aes.get(name)
        if value is not None:
            return value
    return None


@register_element
@dataclass(frozen=True)
class PanelBackground(GuideElement):
    type_name = "panel_background"
    guide_kind = "background"

    def render(self, theme: Theme, aess: Sequence[Aesthetics]) -> list[Canvas]:
        return [Canvas(role="guide:background", forms=(Fill(theme.rgba("panel_fill")),), placement="under")]


@register_element
@dataclass(frozen=True)
class XTicksGuide(GuideElement):
    """Vertical grid lines in the panel plus tick marks and labels below it."""

    type_name = "x_ticks"
    guide_kind = "x_ticks"

    def render(self, theme: Theme, aess: Sequence[Aesthetics]) -> list[Canvas]:
        ticks = _first(aess, "x_ticks")
        if ticks is None or len(ticks) == 0:
            return []
        ticks = np.asarray(ticks, dtype=np.float64)
        labels = tuple(_first(aess, "x_tick_labels") or ())
        mark = int(round(theme.tick_mark_px))
        label_h = max((text_size(t, font_family=theme.font_family, font_size_px=theme.tick_font_px)[1] for t in labels), default=0)
        size = mark + label_h + 6

        grid = Canvas(role="guide:x_grid", forms=(VRules(ticks, theme.rgba("grid_color")),), placement="under", order=1)
        forms: list[Any] = [
            Rects(
                x0s=ticks,
                y0s=np.zeros_like(ticks),
                x1s=ticks,
                y1s=np.full_like(ticks, (mark - 1) / max(size - 1, 1)),
                colors=(theme.rgba("axis_color"),),
            )
        ]
        for value, text in zip(ticks.tolist(), labels):
            forms.append(
                Text(
                    x=value,
                    y=0.0,
                    text=text,
                    color=theme.rgba("text_color"),
                    font_size_px=theme.tick_font_px,
                    font_family=theme.font_family,
                    anchor="ct",
                    dy=mark + 2,
                )
            )
        strip = Canvas(
            role="guide:x_ticks",
            forms=tuple(forms),
            placement="bottom",
            size_px=size,
            meta={"ticks": ticks, "labels": labels},
        )
        return [grid, strip]


@register_element
@dataclass(frozen=True)
class YTicksGuide(GuideElement):
    """Horizontal grid lines in the panel plus tick marks and labels left of it."""

    type_name = "y_ticks"
    guide_kind = "y_ticks"

    def render(self, theme: Theme, aess: Sequence[Aesthetics]) -> list[Canvas]:
        ticks = _first(aess, "y_ticks")
        if ticks is None or len(ticks) == 0:
            return []
        ticks = np.asarray(ticks, dtype=np.float64)
        labels = tuple(_first(aess, "y_tick_labels") or ())
        mark = int(round(theme.tick_mark_px))
        label_w = max((text_size(t, font_family=theme.font_family, font_size_px=theme.tick_font_px)[0] for t in labels), default=0)
        size = label_w + mark + 8

        grid = Canvas(role="guide:y_grid", forms=(HRules(ticks, theme.rgba("grid_color")),), placement="under", order=1)
        edge = 1.0 - (mark - 1) / max(size - 1, 1)
        forms: list[Any] = [
            Rects(
                x0s=np.full_like(ticks, edge),
                y0s=ticks,
                x1s=np.ones_like(ticks),
                y1s=ticks,
                colors=(theme.rgba("axis_color"),),
            )
        ]
        for value, text in zip(ticks.tolist(), labels):
            forms.append(
                Text(
                    x=1.0,
                    y=value,
                    text=text,
                    color=theme.rgba("text_color"),
                    font_size_px=theme.tick_font_px,
                    font_family=theme.font_family,
                    anchor="rm",
                    dx=-(mark + 3),
                )
            )
        strip = Canvas(
            role="guide:y_ticks",
            forms=tuple(forms),
            placement="left",
            size_px=size,
            meta={"ticks": ticks, "labels": labels},
        )
        return [grid, strip]


@register_element
@dataclass(frozen=True)
class XLabel(GuideElement):
    type_name = "x_label"
    guide_kind = "x_label"

    label: str = ""

    def render(self, theme: Theme, aess: Sequence[Aesthetics]) -> list[Canvas]:
        _, h = text_size(self.label, font_family=theme.font_family, font_size_px=theme.label_font_px)
        form = Text(
            x=0.5,
            y=0.5,
            text=self.label,
            color=theme.rgba("text_color"),
            font_size_px=theme.label_font_px,
            font_family=theme.font_family,
            anchor="cm",
        )
        return [
            Canvas(
                role="guide:x_label",
                forms=(form,),
                placement="bottom",
                size_px=h + 8,
                order=1,
                share_units=False,
                meta={"text": self.label},
            )
        ]


@register_element
@dataclass(frozen=True)
class YLabel(GuideElement):
    type_name = "y_label"
    guide_kind = "y_label"

    label: str = ""

    def render(self, theme: Theme, aess: Sequence[Aesthetics]) -> list[Canvas]:
        w, _ = text_size(self.label, font_family=theme.font_family, font_size_px=theme.label_font_px, rotate_deg=90)
        form = Text(
            x=0.5,
            y=0.5,
            text=self.label,
            color=theme.rgba("text_color"),
            font_size_px=theme.label_font_px,
            font_family=theme.font_family,
            rotate_deg=90,
            anchor="cm",
        )
        return [
            Canvas(
                role="guide:y_label",
                forms=(form,),
                placement="left",
                size_px=w + 8,
                order=1,
                share_units=False,
                meta={"text": self.label},
            )
        ]


@register_element
@dataclass(frozen=True)
class ColorKey(GuideElement):
    """Legend of color swatches to the right of the panel."""

    type_name = "color_key"
    guide_kind = "color_key"

    title: str | None = None

    def render(self, theme: Theme, aess: Sequence[Aesthetics]) -> list[Canvas]:
        entries: dict[str, RGBA] = {}
        for aes in aess:
            for key, color in (aes.color_key_colors or {}).items():
                entries.setdefault(key, color)
        if not entries:
            return []
        title = self.title if self.title is not None else _first(aess, "color_key_title")

        font = dict(font_family=theme.font_family, font_size_px=theme.key_font_px)
        swatch = int(round(theme.key_font_px))
        row_h = swatch + 6
        pad = 6
        forms: list[Any] = []
        y = pad
        width = 0
        if title:
            title_w, title_h = text_size(title, **font)
            forms.append(Text(x=pad, y=y, text=title, color=theme.rgba("text_color"), anchor="lt", **font))
            y += title_h + 6
            width = title_w
        for key, color in entries.items():
            forms.append(
                Rects(
                    x0s=np.asarray([pad], dtype=np.float64),
                    y0s=np.asarray([y], dtype=np.float64),
                    x1s=np.asarray([pad + swatch - 1], dtype=np.float64),
                    y1s=np.asarray([y + swatch - 1], dtype=np.float64),
                    colors=(color,),
                )
            )
            forms.append(
                Text(x=pad + swatch + 4, y=y + swatch // 2, text=key, color=theme.rgba("text_color"), anchor="lm", **font)
            )
            width = max(width, swatch + 4 + text_size(key, **font)[0])
            y += row_h
        return [
            Canvas(
                role="guide:color_key",
                forms=tuple(forms),
                placement="right",
                size_px=width + 2 * pad,
                share_units=False,
                pixel_coords=True,
                meta={"title": title, "entries": dict(entries)},
            )
        ]


panel_background = PanelBackground()
x_ticks_guide = XTicksGuide()
y_ticks_guide = YTicksGuide()
color_key = ColorKey()
