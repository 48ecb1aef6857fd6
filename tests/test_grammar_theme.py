import unittest

from luvatrix_grammar import plot
from luvatrix_grammar.theme import DEFAULT_THEME, parse_hex_color, validate_theme


class ThemeTests(unittest.TestCase):
    def test_validate_theme_defaults(self) -> None:
        self.assertEqual(validate_theme(), DEFAULT_THEME)

    def test_validate_theme_accepts_partial_override(self) -> None:
        theme = validate_theme({"panel_fill": "#112233", "tick_font_px": 16})
        self.assertEqual(theme.panel_fill, "#112233")
        self.assertEqual(theme.tick_font_px, 16.0)
        self.assertEqual(theme.text_color, DEFAULT_THEME.text_color)

    def test_validate_theme_rejects_unknown_token(self) -> None:
        with self.assertRaisesRegex(ValueError, "Unknown theme token"):
            validate_theme({"unknown": "#112233"})

    def test_validate_theme_rejects_invalid_hex_color(self) -> None:
        with self.assertRaisesRegex(ValueError, "hex color"):
            validate_theme({"grid_color": "red"})

    def test_validate_theme_rejects_non_positive_size(self) -> None:
        with self.assertRaisesRegex(ValueError, "positive number"):
            validate_theme({"margin_px": 0})

    def test_hex_colors_parse_with_optional_alpha(self) -> None:
        self.assertEqual(parse_hex_color("#0C1017"), (12, 16, 23, 255))
        self.assertEqual(parse_hex_color("#ffffff80"), (255, 255, 255, 128))

    def test_plot_accepts_theme_overrides(self) -> None:
        p = plot({"x": [1.0]}, theme={"point_size_px": 6})
        self.assertEqual(p.theme.point_size_px, 6.0)
        p.close()


if __name__ == "__main__":
    unittest.main()
