from __future__ import annotations

import logging


LOGGER = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = 6.0 / 5.0
DEFAULT_DISPLAY_FRACTION = 0.5
DEFAULT_MIN_SIZE = (480, 400)
DEFAULT_FALLBACK_SIZE = (576, 480)


def resolve_draw_size(
    width: int | None = None,
    height: int | None = None,
    *,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[int, int]:
    """Fill in whichever raster dimension is missing, keeping ``aspect_ratio``."""
    if aspect_ratio <= 0:
        raise ValueError("aspect_ratio must be > 0")
    if width is None and height is None:
        return resolve_default_draw_size(aspect_ratio=aspect_ratio)
    if width is None:
        assert height is not None
        if height <= 0:
            raise ValueError("height must be > 0")
        return (max(1, int(round(height * aspect_ratio))), height)
    if height is None:
        if width <= 0:
            raise ValueError("width must be > 0")
        return (width, max(1, int(round(width / aspect_ratio))))
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be > 0")
    return (width, height)


def resolve_default_draw_size(
    *,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    display_fraction: float = DEFAULT_DISPLAY_FRACTION,
    min_size: tuple[int, int] = DEFAULT_MIN_SIZE,
) -> tuple[int, int]:
    if display_fraction <= 0:
        raise ValueError("display_fraction must be > 0")

    screen = _detect_screen_size()
    if screen is None:
        max_w, max_h = DEFAULT_FALLBACK_SIZE
    else:
        max_w = max(1, int(screen[0] * display_fraction))
        max_h = max(1, int(screen[1] * display_fraction))

    w = max_w
    h = int(round(w / aspect_ratio))
    if h > max_h:
        h = max_h
        w = int(round(h * aspect_ratio))
    return (max(w, min_size[0]), max(h, min_size[1]))


def _detect_screen_size() -> tuple[int, int] | None:
    try:
        import tkinter as tk

        root = tk.Tk()
        root.withdraw()
        width = int(root.winfo_screenwidth())
        height = int(root.winfo_screenheight())
        root.destroy()
    except Exception as exc:  # no display, or tkinter missing
        LOGGER.debug("screen size detection unavailable: %s", exc)
        return None
    if width > 0 and height > 0:
        return (width, height)
    return None
