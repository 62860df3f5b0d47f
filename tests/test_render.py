from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from grapher_plot.config import MarimekkoConfig
from grapher_plot.marimekko import MarimekkoLayout, compute_marimekko_layout
from grapher_plot.raster import draw_polyline, new_canvas, text_size
from grapher_plot.raster.draw_text import draw_text
from grapher_plot.render import render_layout, save_png
from grapher_plot.scales import Bounds
from grapher_plot.table import ChartTable


WHITE = np.asarray([255, 255, 255, 255], dtype=np.uint8)


def _fake_measure(text: str, font_size: float) -> tuple[float, float]:
    return (len(text) * font_size * 0.6, font_size)


def _layout() -> MarimekkoLayout:
    table = ChartTable.from_records(
        [
            {"entityName": "France", "time": 2020, "pop": 67.0, "gdp": 40.0},
            {"entityName": "Chad", "time": 2020, "pop": 17.0, "gdp": 1.5},
            {"entityName": "Peru", "time": 2020, "pop": 33.0, "gdp": None},
        ]
    )
    return compute_marimekko_layout(table, MarimekkoConfig(x_column_slug="pop", y_column_slugs=("gdp",)), measure=_fake_measure)


class RasterTests(unittest.TestCase):
    def test_text_renderer_uses_antialias_coverage(self) -> None:
        canvas = new_canvas(220, 80, color=(0, 0, 0, 0))
        draw_text(canvas, 10, 20, "Marimekko", (255, 255, 255, 255), font_size_px=24.0)
        self.assertTrue(np.any(canvas[:, :, 3] > 0))
        self.assertEqual(int(canvas[0, 0, 3]), 0)

    def test_rotated_text_size_swaps_dimensions(self) -> None:
        w0, h0 = text_size("value", font_size_px=18.0, rotate_deg=0)
        w1, h1 = text_size("value", font_size_px=18.0, rotate_deg=270)
        self.assertEqual((w1, h1), (h0, w0))

    def test_diagonal_text_size_grows_the_box(self) -> None:
        w0, h0 = text_size("value", font_size_px=18.0)
        w45, h45 = text_size("value", font_size_px=18.0, rotate_deg=45)
        self.assertGreater(h45, h0)
        self.assertLess(w45, w0 + h0)

    def test_polyline_draws_elbow(self) -> None:
        canvas = new_canvas(20, 20)
        draw_polyline(canvas, [(2.0, 2.0), (2.0, 10.0), (15.0, 10.0)], (0, 0, 0, 255))
        self.assertEqual(int(canvas[6, 2, 0]), 0)
        self.assertEqual(int(canvas[10, 12, 0]), 0)
        self.assertEqual(int(canvas[15, 15, 0]), 255)


class RenderLayoutTests(unittest.TestCase):
    def test_render_draws_bars_on_white(self) -> None:
        layout = _layout()
        canvas = render_layout(layout, width=700, height=560)
        self.assertEqual(canvas.shape, (560, 700, 4))
        self.assertTrue(np.array_equal(canvas[-1, -1], WHITE))
        bar = layout.bars[0]
        cx, cy = int(bar.x + bar.width / 2), int(bar.y + bar.height / 2)
        self.assertFalse(np.array_equal(canvas[cy, cx], WHITE))

    def test_render_defaults_to_layout_size(self) -> None:
        canvas = render_layout(_layout())
        self.assertEqual(canvas.shape, (480, 630, 4))

    def test_render_fail_message(self) -> None:
        layout = MarimekkoLayout(bounds=Bounds(0.0, 0.0, 300.0, 200.0), fail_message="No X column to chart")
        canvas = render_layout(layout)
        self.assertEqual(canvas.shape, (200, 300, 4))
        self.assertTrue(np.any(canvas[:, :, :3] < 255))

    def test_save_png(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = save_png(_layout(), Path(tmp) / "chart.png", width=640, height=480)
            self.assertTrue(out.exists())
            with Image.open(out) as image:
                self.assertEqual(image.size, (640, 480))


if __name__ == "__main__":
    unittest.main()
