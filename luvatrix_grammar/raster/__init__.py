from .canvas import RGBA, draw_hline, draw_vline, fill_rect, new_canvas
from .draw_shapes import draw_markers, draw_polyline, draw_rects
from .draw_text import draw_text, text_size

__all__ = [
    "RGBA",
    "draw_hline",
    "draw_markers",
    "draw_polyline",
    "draw_rects",
    "draw_text",
    "draw_vline",
    "fill_rect",
    "new_canvas",
    "text_size",
]
