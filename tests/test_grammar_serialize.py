from __future__ import annotations

import json
import unittest

import numpy as np
import pandas as pd

from luvatrix_grammar import (
    RegistryLookupError,
    SerializationError,
    deserialize,
    deserialize_mapping,
    from_json,
    layer,
    plot,
    render,
    serialize,
    serialize_layer,
    serialize_mapping,
    to_json,
)
from luvatrix_grammar.elements.coords import Cartesian
from luvatrix_grammar.elements.geoms import Line, Point, line, point
from luvatrix_grammar.elements.guides import XLabel
from luvatrix_grammar.elements.scales import ContinuousScale, color_hue
from luvatrix_grammar.elements.stats import Histogram
from luvatrix_grammar.expr import BinOp, Column, Literal, col
from luvatrix_grammar.registry import use_registry


def _prices() -> pd.DataFrame:
    return pd.DataFrame({"time": [0.0, 1.0, 2.0], "price": [10.0, 11.0, 9.5], "venue": ["a", "b", "a"]})


class SerializeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._session = use_registry()
        self.registry = self._session.__enter__()
        self.addCleanup(self._session.__exit__, None, None, None)

    def test_document_schema(self) -> None:
        df = _prices()
        doc = serialize(plot(df, point, color_hue, XLabel(label="t"), x="time", y="price"))
        self.assertEqual(set(doc), {"layers", "scales", "statistics", "coord", "guides", "mapping", "data_source"})
        self.assertEqual(doc["data_source"], {"type": "Ref", "value": self.registry.key_for(df)})
        self.assertEqual(doc["coord"], {"type": "cartesian", "xmin": None, "xmax": None, "ymin": None, "ymax": None})
        self.assertEqual(doc["scales"], [{"type": "color_hue", "lightness": 0.65, "saturation": 0.7}])
        self.assertEqual(doc["guides"], [{"type": "x_label", "label": "t"}])
        self.assertEqual(
            doc["layers"],
            [
                {
                    "data_source": doc["data_source"],
                    "mapping": doc["mapping"],
                    "statistic": {"type": "identity"},
                    "geom": {"type": "point"},
                }
            ],
        )
        # JSON-compatible, never inlines the dataset
        text = json.dumps(doc)
        self.assertNotIn("10.0", text)

    def test_inlining_data_fails_loudly(self) -> None:
        p = plot(_prices(), point, x="time", y="price")
        with self.assertRaises(SerializationError):
            serialize(p, with_data=True)
        with self.assertRaises(SerializationError):
            serialize_layer(p.layers[0], with_data=True)

    def test_round_trip_shares_data_by_reference(self) -> None:
        df = _prices()
        p = plot(df, point, line, x="time", y="price")
        q = deserialize(serialize(p))
        self.assertIs(q.data_source, df)
        self.assertIs(q.layers[0].data, q.data)
        self.assertIs(q.layers[1].data, q.data)
        self.assertIs(q.layers[0].data_source, q.data_source)
        self.assertEqual([l.geom for l in q.layers], [Point(), Line()])

    def test_round_trip_recomputes_layer_with_own_mapping(self) -> None:
        df = _prices()
        other = pd.DataFrame({"time": [5.0, 6.0], "price": [1.0, 2.0]})
        p = plot(df, point, layer(line, data=other), layer(point, y=col("price") / 2), x="time", y="price")
        q = deserialize(serialize(p))
        self.assertIs(q.layers[1].data_source, other)
        self.assertIsNot(q.layers[1].data, q.data)
        np.testing.assert_allclose(q.layers[1].data.x, [5.0, 6.0])
        self.assertIsNot(q.layers[2].data, q.data)
        np.testing.assert_allclose(q.layers[2].data.y, [5.0, 5.5, 4.75])

    def test_round_trip_restores_elements(self) -> None:
        scale = ContinuousScale(axis="y", minvalue=0.0)
        p = plot(_prices(), point, Histogram(bins=3), scale, Cartesian(xmin=-1.0), x="time", y="price")
        q = from_json(to_json(p))
        self.assertEqual(q.scales, [scale])
        self.assertEqual(q.coord, Cartesian(xmin=-1.0))
        self.assertEqual(q.layers[0].statistic, Histogram(bins=3))
        render(q)

    def test_mapping_round_trip(self) -> None:
        mapping = {"x": "time", "y": 1, "color": col("price") * 2 + 1}
        doc = serialize_mapping(mapping)
        self.assertEqual(doc["x"], {"type": "String", "value": "time"})
        self.assertEqual(doc["y"], {"type": "Int", "value": 1})
        self.assertEqual(doc["color"], {"type": "Expr", "value": "(price * 2) + 1"})
        back = deserialize_mapping(json.loads(json.dumps(doc)))
        self.assertEqual(back["x"], "time")
        self.assertEqual(back["y"], 1)
        self.assertEqual(back["color"], BinOp("+", BinOp("*", Column("price"), Literal(2)), Literal(1)))

    def test_unsupported_mapping_values_are_dropped_with_warning(self) -> None:
        with self.assertLogs("luvatrix_grammar.serialize", level="WARNING"):
            doc = serialize_mapping({"x": "time", "y": 2.5})
        self.assertEqual(set(doc), {"x"})
        with self.assertLogs("luvatrix_grammar.serialize", level="WARNING"):
            back = deserialize_mapping({"x": {"type": "Symbol", "value": "time"}, "y": {"type": "Int", "value": 0}})
        self.assertEqual(back, {"y": 0})

    def test_registry_miss_fails(self) -> None:
        doc = serialize(plot(_prices(), point, x="time", y="price"))
        with use_registry():
            with self.assertRaises(RegistryLookupError):
                deserialize(doc)

    def test_closed_plot_references_are_gone(self) -> None:
        p = plot(_prices(), point, x="time", y="price")
        doc = serialize(p)
        p.close()
        with self.assertRaises(RegistryLookupError):
            deserialize(doc)

    def test_missing_dataset_round_trips_as_null_reference(self) -> None:
        p = plot(None, layer(point, data=_prices(), x="time", y="price"))
        doc = serialize(p)
        self.assertEqual(doc["data_source"], {"type": "Ref", "value": None})
        q = deserialize(doc)
        self.assertIsNone(q.data_source)
        self.assertIs(q.layers[0].data_source, p.layers[0].data_source)

    def test_document_without_data_source_fails(self) -> None:
        doc = serialize(plot(_prices(), point, x="time", y="price"))
        del doc["data_source"]
        with self.assertRaisesRegex(SerializationError, "no data_source"):
            deserialize(doc)

        doc = serialize(plot(_prices(), point, x="time", y="price"))
        del doc["layers"][0]["data_source"]
        with self.assertRaisesRegex(SerializationError, "no data_source"):
            deserialize(doc)

    def test_unknown_element_type_fails(self) -> None:
        doc = serialize(plot(_prices(), point, x="time", y="price"))
        doc["layers"][0]["geom"] = {"type": "violin"}
        with self.assertRaisesRegex(SerializationError, "unknown geometry type: violin"):
            deserialize(doc)

    def test_unknown_aesthetic_in_document_fails(self) -> None:
        with self.assertRaises(ValueError):
            deserialize_mapping({"shape": {"type": "String", "value": "venue"}})


if __name__ == "__main__":
    unittest.main()
