from luvatrix_grammar.elements.base import (
    CoordinateElement,
    Element,
    ElementKind,
    GeometryElement,
    GuideElement,
    ScaleElement,
    StatisticElement,
    deserialize_element,
    element_type,
    register_element,
)
from luvatrix_grammar.elements.coords import Cartesian
from luvatrix_grammar.elements.geoms import Bar, HistogramGeom, Line, Nil, Point, TextGeom
from luvatrix_grammar.elements.guides import ColorKey, PanelBackground, XLabel, XTicksGuide, YLabel, YTicksGuide
from luvatrix_grammar.elements.scales import (
    DEFAULT_AES_SCALES,
    X_VARS,
    Y_VARS,
    ColorGradientScale,
    ColorHueScale,
    ContinuousScale,
    DiscreteScale,
    LabelScale,
    SizeScale,
)
from luvatrix_grammar.elements.stats import Histogram, Identity, XTicks, YTicks

__all__ = [
    "Bar",
    "Cartesian",
    "ColorGradientScale",
    "ColorHueScale",
    "ColorKey",
    "ContinuousScale",
    "CoordinateElement",
    "DEFAULT_AES_SCALES",
    "DiscreteScale",
    "Element",
    "ElementKind",
    "GeometryElement",
    "GuideElement",
    "Histogram",
    "HistogramGeom",
    "Identity",
    "LabelScale",
    "Line",
    "Nil",
    "PanelBackground",
    "Point",
    "ScaleElement",
    "SizeScale",
    "StatisticElement",
    "TextGeom",
    "X_VARS",
    "XLabel",
    "XTicks",
    "XTicksGuide",
    "Y_VARS",
    "YLabel",
    "YTicks",
    "YTicksGuide",
    "deserialize_element",
    "element_type",
    "register_element",
]
