from luvatrix_grammar.aesthetics import AESTHETIC_NAMES, Aesthetics, Data
from luvatrix_grammar.compose import Canvas
from luvatrix_grammar.elements import ElementKind
from luvatrix_grammar.errors import (
    EmptyPlotError,
    ExpressionError,
    MappingError,
    PlotDataError,
    PlotError,
    RegistryLookupError,
    SerializationError,
)
from luvatrix_grammar.expr import col, parse_expr
from luvatrix_grammar.plot import Layer, LayerBuilder, Plot, layer, plot
from luvatrix_grammar.registry import DataRegistry, active_registry, default_registry, use_registry
from luvatrix_grammar.render import draw, hstack, render, save_png, vstack
from luvatrix_grammar.serialize import (
    deserialize,
    deserialize_layer,
    deserialize_mapping,
    from_json,
    serialize,
    serialize_layer,
    serialize_mapping,
    to_json,
)
from luvatrix_grammar.theme import DEFAULT_THEME, Theme, validate_theme

__all__ = [
    "AESTHETIC_NAMES",
    "Aesthetics",
    "Canvas",
    "DEFAULT_THEME",
    "Data",
    "DataRegistry",
    "ElementKind",
    "EmptyPlotError",
    "ExpressionError",
    "Layer",
    "LayerBuilder",
    "MappingError",
    "Plot",
    "PlotDataError",
    "PlotError",
    "RegistryLookupError",
    "SerializationError",
    "Theme",
    "active_registry",
    "col",
    "default_registry",
    "deserialize",
    "deserialize_layer",
    "deserialize_mapping",
    "draw",
    "from_json",
    "hstack",
    "layer",
    "parse_expr",
    "plot",
    "render",
    "save_png",
    "serialize",
    "serialize_layer",
    "serialize_mapping",
    "to_json",
    "use_registry",
    "validate_theme",
    "vstack",
]
