from __future__ import annotations

from pathlib import Path
import tempfile
import unittest
from unittest import mock

import numpy as np
import pandas as pd
from PIL import Image

from luvatrix_grammar import EmptyPlotError, PlotDataError, draw, hstack, layer, plot, render, save_png, vstack
from luvatrix_grammar.compose import Points, Polyline, Rects, rasterize
from luvatrix_grammar.elements.coords import Cartesian
from luvatrix_grammar.elements.geoms import Bar, TextGeom, bar, histogram, line, point
from luvatrix_grammar.elements.guides import ColorKey
from luvatrix_grammar.elements.scales import MISSING_COLOR, color_hue, x_discrete
from luvatrix_grammar.elements.stats import Histogram
from luvatrix_grammar.expr import col
from luvatrix_grammar.registry import use_registry


def _prices() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "time": np.linspace(0.0, 9.0, 10),
            "price": np.asarray([10.0, 10.5, 11.2, 10.9, 11.8, 12.4, 12.1, 13.0, 13.3, 12.8]),
            "venue": ["a", "b"] * 5,
        }
    )


class RenderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._session = use_registry()
        self._session.__enter__()
        self.addCleanup(self._session.__exit__, None, None, None)

    def test_render_without_layers_fails(self) -> None:
        with self.assertRaisesRegex(EmptyPlotError, "no layers"):
            render(plot(_prices(), x="time", y="price"))

    def test_time_price_points_end_to_end(self) -> None:
        canvas = render(plot(_prices(), point, x="time", y="price"))
        panel = canvas.find("panel")
        self.assertIsNotNone(panel)
        self.assertEqual(len(canvas.find_all("panel")), 1)

        points = [f for f in panel.find("geometry:point").forms if isinstance(f, Points)]
        self.assertEqual(len(points), 1)
        np.testing.assert_allclose(points[0].xs, _prices()["time"].to_numpy())

        self.assertIsNotNone(canvas.find("guide:x_ticks"))
        self.assertIsNotNone(canvas.find("guide:y_ticks"))
        self.assertEqual(canvas.find("guide:x_label").meta["text"], "time")
        self.assertEqual(canvas.find("guide:y_label").meta["text"], "price")
        self.assertIsNone(canvas.find("guide:color_key"))

    def test_tick_labels_cover_the_data(self) -> None:
        canvas = render(plot(_prices(), point, x="time", y="price"))
        x_ticks = canvas.find("guide:x_ticks").meta["ticks"]
        self.assertGreaterEqual(len(x_ticks), 2)
        limits = canvas.find("panel").meta["limits"]
        self.assertLessEqual(limits.xmin, 0.0)
        self.assertGreaterEqual(limits.xmax, 9.0)
        self.assertTrue(np.all((x_ticks >= limits.xmin) & (x_ticks <= limits.xmax)))

    def test_render_is_repeatable_and_leaves_plot_untouched(self) -> None:
        p = plot(_prices(), point, x="time", y="price", color="venue")
        before = p.data.x.copy()
        first = draw(render(p), 240, 200)
        second = draw(render(p), 240, 200)
        self.assertTrue(np.array_equal(first, second))
        np.testing.assert_array_equal(p.data.x, before)
        self.assertEqual(len(p.layers), 1)
        self.assertEqual(p.guides, [])

    def test_color_mapping_injects_a_titled_color_key(self) -> None:
        canvas = render(plot(_prices(), point, x="time", y="price", color="venue"))
        key = canvas.find("guide:color_key")
        self.assertIsNotNone(key)
        self.assertEqual(key.meta["title"], "venue")
        self.assertEqual(list(key.meta["entries"]), ["a", "b"])

    def test_user_color_key_is_kept(self) -> None:
        canvas = render(plot(_prices(), point, ColorKey(title="Venue"), x="time", y="price", color="venue"))
        self.assertEqual(len(canvas.find_all("guide:color_key")), 1)
        self.assertEqual(canvas.find("guide:color_key").meta["title"], "Venue")

    def test_later_layers_draw_on_top(self) -> None:
        canvas = render(plot(_prices(), line, point, x="time", y="price"))
        roles = [c.role for c in canvas.find("panel").children if c.role.startswith("geometry:")]
        self.assertEqual(roles, ["geometry:line", "geometry:point"])
        self.assertTrue(any(isinstance(f, Polyline) for f in canvas.find("geometry:line").forms))

    def test_layer_with_own_mapping_recomputes_data(self) -> None:
        df = _prices()
        p = plot(df, point, layer(line, y=col("price") - 10), x="time", y="price")
        self.assertIs(p.layers[0].data, p.data)
        self.assertIsNot(p.layers[1].data, p.data)
        self.assertIs(p.layers[1].data_source, df)
        np.testing.assert_allclose(p.layers[1].data.y, df["price"].to_numpy() - 10)
        self.assertIsNone(p.layers[1].data.x)
        render(p)

    def test_statistic_attaches_to_last_layer(self) -> None:
        p = plot(_prices(), point, bar, Histogram(bins=4), x="price")
        self.assertEqual(p.layers[0].statistic.type_name, "identity")
        self.assertEqual(p.layers[1].statistic, Histogram(bins=4))
        self.assertIs(p.layers[1].data, p.data)

    def test_statistic_without_layers_creates_an_empty_layer(self) -> None:
        p = plot(_prices(), Histogram(bins=3), x="price")
        self.assertEqual(len(p.layers), 1)
        self.assertEqual(p.layers[0].geom.type_name, "nil")
        canvas = render(p)
        self.assertIsNotNone(canvas.find("geometry:nil"))

    def test_histogram_bins_counts(self) -> None:
        canvas = render(plot(_prices(), histogram, x="price"))
        rects = [f for f in canvas.find("geometry:bar").forms if isinstance(f, Rects)]
        self.assertEqual(len(rects), 1)
        self.assertEqual(int(rects[0].y0s.sum()), 10)
        self.assertEqual(rects[0].x0s.size, 10)

    def test_discrete_x_uses_level_positions_and_labels(self) -> None:
        df = pd.DataFrame({"venue": ["b", "a", "c"], "volume": [3.0, 1.0, 2.0]})
        canvas = render(plot(df, Bar(), x="venue", y="volume"))
        strip = canvas.find("guide:x_ticks")
        self.assertEqual(strip.meta["labels"], ("a", "b", "c"))
        rects = canvas.find("geometry:bar").forms[0]
        np.testing.assert_allclose((rects.x0s + rects.x1s) / 2.0, [1.0, 0.0, 2.0])

    def test_discrete_x_leaves_nan_out_of_the_levels(self) -> None:
        df = pd.DataFrame({"a": [1.0, np.nan, 2.0], "b": [1.0, 2.0, 3.0]})
        canvas = render(plot(df, point, x_discrete, x="a", y="b"))
        self.assertEqual(canvas.find("guide:x_ticks").meta["labels"], ("1.0", "2.0"))
        form = canvas.find("geometry:point").forms[0]
        np.testing.assert_allclose(form.xs, [0.0, np.nan, 1.0])

    def test_color_hue_gives_nan_the_missing_color(self) -> None:
        df = pd.DataFrame({"a": [1.0, np.nan, 2.0], "b": [1.0, 2.0, 3.0]})
        canvas = render(plot(df, point, color_hue, x="b", y="b", color="a"))
        colors = canvas.find("geometry:point").forms[0].colors
        self.assertEqual(colors[1], MISSING_COLOR)
        self.assertNotEqual(colors[0], colors[2])
        self.assertEqual(list(canvas.find("guide:color_key").meta["entries"]), ["1.0", "2.0"])

    def test_text_geometry_draws_labels(self) -> None:
        df = pd.DataFrame({"x": [1.0, 2.0], "y": [1.0, 4.0], "name": ["lo", "hi"]})
        canvas = render(plot(df, TextGeom(), x="x", y="y", label="name"))
        texts = [f.text for f in canvas.find("geometry:text").forms]
        self.assertEqual(texts, ["lo", "hi"])

    def test_fixed_coordinate_limits(self) -> None:
        canvas = render(plot(_prices(), point, Cartesian(xmin=-5.0, xmax=20.0), x="time", y="price"))
        limits = canvas.find("panel").meta["limits"]
        self.assertEqual((limits.xmin, limits.xmax), (-5.0, 20.0))

    def test_missing_position_aesthetic_fails(self) -> None:
        with self.assertRaisesRegex(PlotDataError, "requires aesthetics: y"):
            render(plot(_prices(), point, x="time"))

    def test_draw_produces_rgba_frame_with_marks(self) -> None:
        p = plot(_prices(), point, x="time", y="price")
        frame = draw(p, 320, 240)
        self.assertEqual(frame.shape, (240, 320, 4))
        self.assertEqual(frame.dtype, np.uint8)
        default = np.asarray(p.theme.rgba("default_color"), dtype=np.uint8)
        self.assertTrue(np.any(np.all(frame == default, axis=2)))
        # The margin keeps the outermost border at the background color.
        background = np.asarray(p.theme.rgba("background"), dtype=np.uint8)
        self.assertTrue(np.all(frame[0, :] == background))

    def test_draw_uses_default_size_when_unspecified(self) -> None:
        with mock.patch("luvatrix_grammar.display._detect_screen_size", return_value=None):
            frame = draw(plot(_prices(), point, x="time", y="price"))
        self.assertEqual(frame.shape[:2], (480, 576))

    def test_stacks_place_plots_side_by_side(self) -> None:
        a = plot(_prices(), point, x="time", y="price")
        b = plot(_prices(), line, x="time", y="price")
        row = hstack(a, b)
        self.assertEqual(len(row.find_all("panel")), 2)
        grid = vstack(row, render(a))
        frame = rasterize(grid, 300, 300)
        self.assertEqual(frame.shape, (300, 300, 4))

    def test_save_png(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = save_png(plot(_prices(), point, x="time", y="price"), Path(tmp) / "plot.png", width=200, height=160)
            with Image.open(out) as image:
                self.assertEqual(image.size, (200, 160))
                self.assertEqual(image.mode, "RGBA")


if __name__ == "__main__":
    unittest.main()
