from .canvas import draw_hline, draw_vline, fill_rect, new_canvas, stroke_rect
from .draw_lines import draw_polyline
from .draw_text import draw_text, line_height, text_size

__all__ = [
    "draw_hline",
    "draw_vline",
    "draw_polyline",
    "draw_text",
    "fill_rect",
    "line_height",
    "new_canvas",
    "stroke_rect",
    "text_size",
]
