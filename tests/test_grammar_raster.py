from __future__ import annotations

import unittest

import numpy as np

from luvatrix_grammar.compose import Canvas, Fill, Points, Rects, Text, compose, layout_guides, pad, rasterize
from luvatrix_grammar.raster import draw_markers, draw_polyline, draw_text, new_canvas, text_size
from luvatrix_grammar.ticks import AxisRange


WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


class RasterTests(unittest.TestCase):
    def test_text_renderer_uses_antialias_coverage(self) -> None:
        canvas = new_canvas(220, 80, color=(0, 0, 0, 0))
        draw_text(canvas, 10, 20, "Static 1-D Plot", WHITE, font_size_px=24.0)
        chan = canvas[:, :, 0]
        self.assertTrue(np.any(chan > 0))
        # Transparent background should remain transparent outside rendered glyph coverage.
        self.assertEqual(int(canvas[0, 0, 3]), 0)

    def test_rotated_text_size_swaps_dimensions(self) -> None:
        w0, h0 = text_size("value", font_size_px=18.0, rotate_deg=0)
        w1, h1 = text_size("value", font_size_px=18.0, rotate_deg=270)
        self.assertEqual((w1, h1), (h0, w0))

    def test_text_anchor_rejects_unknown_codes(self) -> None:
        with self.assertRaises(ValueError):
            draw_text(new_canvas(10, 10), 0, 0, "x", WHITE, anchor="mm")

    def test_new_canvas_rejects_empty_size(self) -> None:
        with self.assertRaises(ValueError):
            new_canvas(0, 10)

    def test_markers_accept_per_point_colors_and_sizes(self) -> None:
        canvas = new_canvas(20, 20, color=(0, 0, 0, 255))
        draw_markers(canvas, np.asarray([4, 15]), np.asarray([4, 15]), [RED, BLUE], [3, 5])
        self.assertEqual(tuple(canvas[4, 4]), RED)
        self.assertEqual(tuple(canvas[13, 13]), BLUE)
        self.assertEqual(tuple(canvas[10, 10]), (0, 0, 0, 255))

    def test_polyline_connects_endpoints(self) -> None:
        canvas = new_canvas(10, 10, color=(0, 0, 0, 255))
        draw_polyline(canvas, np.asarray([0, 9]), np.asarray([0, 9]), RED)
        self.assertEqual(tuple(canvas[0, 0]), RED)
        self.assertEqual(tuple(canvas[5, 5]), RED)
        self.assertEqual(tuple(canvas[9, 9]), RED)


class ComposeTests(unittest.TestCase):
    def test_forms_use_data_units_with_y_up(self) -> None:
        panel = Canvas(
            role="panel",
            x_units=AxisRange(0.0, 10.0),
            y_units=AxisRange(0.0, 10.0),
            forms=(Points(np.asarray([0.0]), np.asarray([0.0]), (RED,), (1,)),),
        )
        frame = rasterize(panel, 11, 11, background=(0, 0, 0, 255))
        self.assertEqual(tuple(frame[10, 0]), RED)

    def test_non_finite_points_are_skipped(self) -> None:
        panel = Canvas(
            role="panel",
            x_units=AxisRange(0.0, 1.0),
            y_units=AxisRange(0.0, 1.0),
            forms=(Points(np.asarray([np.nan, 1.0]), np.asarray([0.5, np.inf]), (RED,), (1,)),),
        )
        frame = rasterize(panel, 8, 8, background=(0, 0, 0, 255))
        self.assertFalse(np.any(np.all(frame == np.asarray(RED, dtype=np.uint8), axis=2)))

    def test_pad_keeps_margin_clear(self) -> None:
        filled = pad(Canvas(role="panel", forms=(Fill(RED),)), 3)
        frame = rasterize(filled, 20, 20, background=(0, 0, 0, 255))
        self.assertEqual(tuple(frame[0, 0]), (0, 0, 0, 255))
        self.assertEqual(tuple(frame[3, 3]), RED)
        self.assertEqual(tuple(frame[16, 16]), RED)
        self.assertEqual(tuple(frame[17, 17]), (0, 0, 0, 255))

    def test_layout_puts_under_guides_below_geometry_and_sides_outside(self) -> None:
        panel = compose(Canvas(role="panel"), Canvas(role="geometry:marks", forms=(Fill(BLUE),)))
        background = Canvas(role="guide:background", forms=(Fill(RED),), placement="under")
        left = Canvas(role="guide:left", forms=(Fill(WHITE),), placement="left", size_px=5)
        table = layout_guides(panel, [left, background])
        self.assertEqual([c.role for c in table.find("panel").children], ["guide:background", "geometry:marks"])

        frame = rasterize(table, 30, 20, background=(0, 0, 0, 255))
        self.assertEqual(tuple(frame[10, 2]), WHITE)
        self.assertEqual(tuple(frame[10, 20]), BLUE)

    def test_rects_are_clipped_to_their_canvas(self) -> None:
        panel = Canvas(
            role="panel",
            x_units=AxisRange(0.0, 1.0),
            y_units=AxisRange(0.0, 1.0),
            forms=(Rects(np.asarray([-5.0]), np.asarray([5.0]), np.asarray([5.0]), np.asarray([-5.0]), (RED,)),),
        )
        side = Canvas(role="guide:right", placement="right", size_px=6)
        frame = rasterize(layout_guides(panel, [side]), 30, 10, background=(0, 0, 0, 255))
        self.assertEqual(tuple(frame[5, 10]), RED)
        self.assertEqual(tuple(frame[5, 27]), (0, 0, 0, 255))

    def test_text_in_pixel_coordinates(self) -> None:
        key = Canvas(
            role="guide:key",
            forms=(Text(x=2, y=2, text="key", color=WHITE, font_size_px=14.0),),
            pixel_coords=True,
        )
        frame = rasterize(key, 60, 30, background=(0, 0, 0, 255))
        self.assertTrue(np.any(frame[:, :, 0] > 0))
        self.assertEqual(tuple(frame[0, 0]), (0, 0, 0, 255))


if __name__ == "__main__":
    unittest.main()
