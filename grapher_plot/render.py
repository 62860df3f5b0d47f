from __future__ import annotations

import math
from pathlib import Path

import numpy as np
from PIL import Image

from grapher_plot.marimekko import MarimekkoLayout
from grapher_plot.raster import draw_polyline, draw_text, fill_rect, new_canvas, stroke_rect
from grapher_plot.raster.canvas import RGBA


BACKGROUND: RGBA = (255, 255, 255, 255)
TEXT_COLOR: RGBA = (0, 0, 0, 255)
TICK_COLOR: RGBA = (102, 102, 102, 255)
BAR_ALPHA = 153
SELECTED_BAR_ALPHA = 217
BAR_STROKE: RGBA = (102, 102, 102, 255)
PLACEHOLDER_STROKE: RGBA = (170, 170, 170, 255)
NO_DATA_FILL: RGBA = (204, 204, 204, 128)
CONNECTOR_COLOR: RGBA = (187, 187, 187, 255)
SELECTED_CONNECTOR_COLOR: RGBA = (153, 153, 153, 255)


def render_layout(layout: MarimekkoLayout, *, width: int | None = None, height: int | None = None) -> np.ndarray:
    """Rasterize a layout into an RGBA ``uint8`` array of shape (height, width, 4)."""
    bounds = layout.bounds
    if width is None:
        width = max(1, int(math.ceil(bounds.right)))
    if height is None:
        height = max(1, int(math.ceil(bounds.bottom)))
    canvas = new_canvas(width, height, color=BACKGROUND)

    if layout.fail_message:
        draw_text(
            canvas,
            width // 2,
            height // 2,
            layout.fail_message,
            TEXT_COLOR,
            anchor="center",
        )
        return canvas

    band = layout.no_data_band
    if band is not None:
        fill_rect(canvas, *_pixel_rect(band.x, band.y, band.width, band.height), NO_DATA_FILL)

    for bar in layout.bars:
        rect = _pixel_rect(bar.x, bar.y, bar.width, bar.height)
        if bar.is_placeholder:
            stroke_rect(canvas, *rect, PLACEHOLDER_STROKE)
            continue
        alpha = SELECTED_BAR_ALPHA if bar.is_selected else BAR_ALPHA
        fill_rect(canvas, *rect, (bar.color[0], bar.color[1], bar.color[2], alpha))
        if rect[2] - rect[0] >= 2:
            stroke_rect(canvas, *rect, BAR_STROKE)

    for tick in layout.y_ticks:
        if layout.plot_bounds is not None:
            draw_text(canvas, int(layout.plot_bounds.left) - 4, int(tick.position) - 5, tick.label, TICK_COLOR, font_size_px=10.0, anchor="right")
    for tick in layout.x_ticks:
        if layout.plot_bounds is not None:
            draw_text(canvas, int(tick.position), int(layout.plot_bounds.top) - 14, tick.label, TICK_COLOR, font_size_px=10.0, anchor="center")

    for line in layout.connectors:
        color = SELECTED_CONNECTOR_COLOR if line.is_selected else CONNECTOR_COLOR
        draw_polyline(canvas, line.points, color)

    for label in layout.labels:
        draw_text(
            canvas,
            int(round(label.x)),
            int(round(label.y)),
            label.entity_name,
            TEXT_COLOR,
            font_size_px=label.font_size,
            rotate_deg=-label.angle_deg,
            anchor="right",
        )

    if band is not None:
        cx, cy = band.label_position
        draw_text(canvas, int(cx), int(cy), "no data", TEXT_COLOR, font_size_px=12.0, anchor="center")
    return canvas


def save_png(layout: MarimekkoLayout, path: str | Path, *, width: int | None = None, height: int | None = None) -> Path:
    out = Path(path)
    Image.fromarray(render_layout(layout, width=width, height=height)).save(out)
    return out


def _pixel_rect(x: float, y: float, width: float, height: float) -> tuple[int, int, int, int]:
    x0 = int(math.floor(x))
    y0 = int(math.floor(y))
    x1 = max(x0, int(math.ceil(x + width)) - 1)
    y1 = max(y0, int(math.ceil(y + height)) - 1)
    return x0, y0, x1, y1
