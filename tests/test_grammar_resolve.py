from __future__ import annotations

import unittest

import numpy as np
import pandas as pd

from luvatrix_grammar import plot
from luvatrix_grammar.elements.geoms import histogram, line, point
from luvatrix_grammar.elements.guides import ColorKey, XLabel, XTicksGuide, YLabel
from luvatrix_grammar.elements.scales import (
    ContinuousScale,
    color_gradient,
    color_hue,
    x_continuous,
    x_discrete,
    y_continuous,
    y_discrete,
)
from luvatrix_grammar.elements.stats import x_ticks, y_ticks
from luvatrix_grammar.expr import col
from luvatrix_grammar.registry import use_registry
from luvatrix_grammar.resolve import distinct_scales, resolve


class ResolveTests(unittest.TestCase):
    def setUp(self) -> None:
        self._session = use_registry()
        self._session.__enter__()
        self.addCleanup(self._session.__exit__, None, None, None)
        self.df = pd.DataFrame(
            {
                "time": np.linspace(0.0, 1.0, 30),
                "price": np.linspace(10.0, 20.0, 30),
                "day": np.arange(30) % 20,
                "tick": np.arange(30) % 21,
                "venue": ["a", "b", "c"] * 10,
            }
        )

    def test_float_columns_resolve_to_continuous_scales(self) -> None:
        res = resolve(plot(self.df, point, x="time", y="price"))
        self.assertIs(res.scales["x"], x_continuous)
        self.assertIs(res.scales["y"], y_continuous)
        self.assertIs(res.scales["x_min"], x_continuous)

    def test_integer_classification_threshold(self) -> None:
        self.assertIs(resolve(plot(self.df, point, x="day", y="price")).scales["x"], x_discrete)
        self.assertIs(resolve(plot(self.df, point, x="tick", y="price")).scales["x"], x_continuous)

    def test_string_color_resolves_to_hue_and_float_color_to_gradient(self) -> None:
        self.assertIs(resolve(plot(self.df, point, x="time", y="price", color="venue")).scales["color"], color_hue)
        self.assertIs(resolve(plot(self.df, point, x="time", y="price", color="price")).scales["color"], color_gradient)

    def test_every_used_aesthetic_gets_exactly_one_scale(self) -> None:
        p = plot(self.df, point, line, x="time", y="price", color="venue")
        res = resolve(p)
        self.assertLessEqual(set(res.used_aesthetics), set(res.scales))
        for var in res.used_aesthetics:
            self.assertIsNotNone(res.scales[var])

    def test_later_explicit_scale_wins(self) -> None:
        first = ContinuousScale(axis="x", minvalue=0.0)
        second = ContinuousScale(axis="x", maxvalue=0.5)
        res = resolve(plot(self.df, point, first, second, x="time", y="price"))
        self.assertIs(res.scales["x"], second)
        self.assertIs(res.scales["x_max"], second)

    def test_unmapped_used_aesthetics_fall_back_to_discrete(self) -> None:
        res = resolve(plot(self.df, line, x="time", y="price"))
        self.assertIs(res.scales["color"], color_hue)

    def test_statistic_default_scales_fill_unscaled_aesthetics(self) -> None:
        res = resolve(plot(self.df, histogram, x="day"))
        # "day" would classify discrete, but the histogram asks for continuous x/y first.
        self.assertIs(res.scales["x"], x_continuous)
        self.assertIs(res.scales["y"], y_continuous)

    def test_histogram_layer_uses_the_geometry_default_statistic(self) -> None:
        res = resolve(plot(self.df, histogram, x="time"))
        self.assertEqual(res.layer_stats[0].type_name, "histogram")
        self.assertEqual(res.statistics[-2:], (x_ticks, y_ticks))

    def test_distinct_scales_dedups_by_identity(self) -> None:
        res = resolve(plot(self.df, point, x="time", y="price"))
        scales = distinct_scales(res.scales)
        self.assertEqual(len(scales), len({id(s) for s in scales}))
        self.assertIn(x_continuous, scales)
        self.assertNotIn(y_discrete, scales)

    def test_default_guides_and_axis_labels(self) -> None:
        res = resolve(plot(self.df, point, x="time", y=col("price") * 2))
        self.assertEqual(set(res.guides), {"background", "x_ticks", "y_ticks", "x_label", "y_label"})
        self.assertEqual(res.guides["x_label"], XLabel(label="time"))
        self.assertEqual(res.guides["y_label"], YLabel(label="price * 2"))

    def test_axis_label_follows_fixed_precedence(self) -> None:
        p = plot(self.df, histogram, x_min="time", x_max="price", x="day")
        self.assertEqual(resolve(p).guides["x_label"].label, "day")
        p = plot(self.df, histogram, x_max="price", x_min="time")
        self.assertEqual(resolve(p).guides["x_label"].label, "time")

    def test_user_guide_wins_over_defaults(self) -> None:
        mine = XTicksGuide()
        label = XLabel(label="seconds")
        res = resolve(plot(self.df, point, XLabel(label="ignored"), label, mine, x="time", y="price"))
        self.assertIs(res.guides["x_ticks"], mine)
        self.assertIs(res.guides["x_label"], label)
        self.assertEqual(len(res.guides), len(set(res.guides)))

    def test_color_key_is_not_injected_by_resolution(self) -> None:
        res = resolve(plot(self.df, point, x="time", y="price", color="venue"))
        self.assertNotIn(ColorKey.guide_kind, res.guides)

    def test_mapped_but_unused_aesthetic_only_warns(self) -> None:
        with self.assertLogs("luvatrix_grammar.resolve", level="WARNING") as logs:
            res = resolve(plot(self.df, line, x="time", y="price", size="price"))
        self.assertIn("size", logs.output[0])
        self.assertNotIn("size", res.used_aesthetics)


if __name__ == "__main__":
    unittest.main()
