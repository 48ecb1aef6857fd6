from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import re
from typing import Any, Mapping

from luvatrix_grammar.raster import RGBA

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}([0-9a-fA-F]{2})?$")

_COLOR_TOKENS = (
    "default_color",
    "background",
    "panel_fill",
    "grid_color",
    "axis_color",
    "text_color",
)
_SIZE_TOKENS = (
    "tick_font_px",
    "label_font_px",
    "key_font_px",
    "point_size_px",
    "line_width_px",
    "tick_mark_px",
    "margin_px",
)


@dataclass(frozen=True)
class Theme:
    """Style values read by geometries, guides and the rasterizer."""

    default_color: str = "#3E95FF"
    background: str = "#0C1017"
    panel_fill: str = "#141A24"
    grid_color: str = "#2C3542"
    axis_color: str = "#7C8A9C"
    text_color: str = "#D0DAE8"
    font_family: str = "DejaVu Sans"
    tick_font_px: float = 12.0
    label_font_px: float = 13.0
    key_font_px: float = 11.0
    point_size_px: float = 4.0
    line_width_px: float = 1.0
    tick_mark_px: float = 5.0
    # Padding around the final composed drawable; roughly 5mm at 96 dpi.
    margin_px: float = 19.0

    def rgba(self, token: str) -> RGBA:
        if token not in _COLOR_TOKENS:
            raise ValueError(f"Unknown color token: {token}")
        return parse_hex_color(getattr(self, token))


DEFAULT_THEME = Theme()


def parse_hex_color(value: str) -> RGBA:
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise ValueError(f"`{value}` is not a hex color (#RRGGBB or #RRGGBBAA)")
    digits = value[1:]
    r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
    a = int(digits[6:8], 16) if len(digits) == 8 else 255
    return (r, g, b, a)


def validate_theme(overrides: Mapping[str, Any] | None = None) -> Theme:
    """Validate and merge user token overrides against the default theme."""

    raw: dict[str, Any] = asdict(DEFAULT_THEME)
    if overrides:
        for key, value in overrides.items():
            if key not in raw:
                raise ValueError(f"Unknown theme token: {key}")
            raw[key] = value

    for key in _COLOR_TOKENS:
        if not isinstance(raw[key], str) or not _HEX_COLOR.match(raw[key]):
            raise ValueError(f"Token `{key}` must be a hex color (#RRGGBB or #RRGGBBAA)")

    if not isinstance(raw["font_family"], str) or not raw["font_family"].strip():
        raise ValueError("Token `font_family` must be a non-empty string")

    for key in _SIZE_TOKENS:
        value = raw[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or float(value) <= 0:
            raise ValueError(f"Token `{key}` must be a positive number")
        raw[key] = float(value)

    return Theme(**{f.name: raw[f.name] for f in fields(Theme)})
