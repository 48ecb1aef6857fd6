"""Plot and layer declarations.

A :class:`Plot` is built incrementally: elements are inserted with
:meth:`Plot.add`, which dispatches on the element's kind. Layers are declared
with :func:`layer` (a :class:`LayerBuilder`) and become immutable
:class:`Layer` records once attached to a plot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Mapping

from luvatrix_grammar.aesthetics import Data
from luvatrix_grammar.elements.base import (
    CoordinateElement,
    Element,
    ElementKind,
    GeometryElement,
    GuideElement,
    ScaleElement,
    StatisticElement,
)
from luvatrix_grammar.elements.coords import cartesian
from luvatrix_grammar.elements.geoms import nil as nil_geom
from luvatrix_grammar.elements.stats import nil as nil_stat
from luvatrix_grammar.mapping import AestheticMapping, build_data, validate_mapping
from luvatrix_grammar.registry import DataRegistry, active_registry
from luvatrix_grammar.theme import DEFAULT_THEME, Theme, validate_theme


LOGGER = logging.getLogger(__name__)


@dataclass
class LayerBuilder:
    """A layer under construction; ``dataset`` and ``mapping`` may be left for the plot to supply."""

    geom: GeometryElement = nil_geom
    statistic: StatisticElement = nil_stat
    dataset: Any = None
    mapping: AestheticMapping = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.geom.kind is not ElementKind.GEOMETRY:
            raise TypeError(f"expected a geometry, got {type(self.geom).__name__}")
        if self.statistic.kind is not ElementKind.STATISTIC:
            raise TypeError(f"expected a statistic, got {type(self.statistic).__name__}")
        self.mapping = validate_mapping(self.mapping)


@dataclass(frozen=True, eq=False)
class Layer:
    """A layer attached to a plot. ``data`` always holds the realized mapping."""

    geom: GeometryElement
    statistic: StatisticElement
    data: Data
    data_source: Any
    mapping: AestheticMapping

    def effective_statistic(self) -> StatisticElement:
        """The layer's own statistic, or the geometry's default when it has none."""
        if self.statistic.is_default:
            return self.geom.default_statistic()
        return self.statistic


def layer(
    *elements: Element,
    data: Any = None,
    mapping: Mapping[str, Any] | None = None,
    **aesthetics: Any,
) -> LayerBuilder:
    """Declare a layer from a geometry and/or statistic plus an optional dataset and mapping.

    Aesthetics may be given as keywords (``x="time"``) or as a ``mapping`` dict.
    """
    builder = LayerBuilder(dataset=data, mapping={**(mapping or {}), **aesthetics})
    for element in elements:
        if element.kind is ElementKind.GEOMETRY:
            builder.geom = element  # type: ignore[assignment]
        elif element.kind is ElementKind.STATISTIC:
            builder.statistic = element  # type: ignore[assignment]
        else:
            raise TypeError(f"a layer takes a geometry and a statistic, not a {element.kind.value}")
    return builder


class Plot:
    def __init__(
        self,
        data: Any = None,
        mapping: Mapping[str, Any] | None = None,
        *,
        theme: Theme | Mapping[str, Any] | None = None,
        registry: DataRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else active_registry()
        self.layers: list[Layer] = []
        self.scales: list[ScaleElement] = []
        self.statistics: list[StatisticElement] = []
        self.guides: list[GuideElement] = []
        self.coord: CoordinateElement = cartesian
        self.theme = _coerce_theme(theme)
        self.mapping = validate_mapping(mapping)
        self.data_source = data
        self.data = build_data(data, self.mapping)
        self._refs: list[str] = []
        self._acquire(data)

    def __repr__(self) -> str:
        return f"Plot(layers={len(self.layers)}, mapping={self.mapping!r}, coord={self.coord!r})"

    def __enter__(self) -> "Plot":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def add(self, *elements: Element | LayerBuilder) -> "Plot":
        for element in elements:
            self._add_one(element)
        return self

    def close(self) -> None:
        """Release the registry references this plot acquired for its datasets."""
        refs, self._refs = self._refs, []
        for key in refs:
            if key in self.registry:
                self.registry.release(key)

    def _add_one(self, element: Element | LayerBuilder) -> None:
        if isinstance(element, LayerBuilder):
            self._attach(element)
            return
        kind = getattr(element, "kind", None)
        if kind is ElementKind.GEOMETRY:
            self._attach(LayerBuilder(geom=element))  # type: ignore[arg-type]
        elif kind is ElementKind.SCALE:
            self.scales.append(element)  # type: ignore[arg-type]
        elif kind is ElementKind.STATISTIC:
            if not self.layers:
                self._attach(LayerBuilder())
            self.layers[-1] = replace(self.layers[-1], statistic=element)
        elif kind is ElementKind.COORDINATE:
            self.coord = element  # type: ignore[assignment]
        elif kind is ElementKind.GUIDE:
            self.guides.append(element)  # type: ignore[arg-type]
        else:
            raise TypeError(f"cannot add {type(element).__name__} to a plot")

    def _attach(self, builder: LayerBuilder) -> Layer:
        if builder.dataset is None and not builder.mapping:
            attached = Layer(
                geom=builder.geom,
                statistic=builder.statistic,
                data=self.data,
                data_source=self.data_source,
                mapping=self.mapping,
            )
        else:
            dataset = builder.dataset if builder.dataset is not None else self.data_source
            mapping = builder.mapping if builder.mapping else self.mapping
            attached = Layer(
                geom=builder.geom,
                statistic=builder.statistic,
                data=build_data(dataset, mapping),
                data_source=dataset,
                mapping=mapping,
            )
        return self.attach_layer(attached)

    def attach_layer(self, attached: Layer) -> Layer:
        """Append an already resolved layer, taking a registry reference on its dataset."""
        self._acquire(attached.data_source)
        self.layers.append(attached)
        LOGGER.debug("attached %s layer (%d total)", attached.geom.type_name, len(self.layers))
        return attached

    def _acquire(self, dataset: Any) -> None:
        if dataset is not None:
            self._refs.append(self.registry.register(dataset))


def plot(
    data: Any = None,
    *elements: Element | LayerBuilder,
    mapping: Mapping[str, Any] | None = None,
    theme: Theme | Mapping[str, Any] | None = None,
    registry: DataRegistry | None = None,
    **aesthetics: Any,
) -> Plot:
    """Build a plot of ``data`` with the given aesthetic mapping and elements.

    Aesthetics may be passed as keywords, as an explicit ``mapping`` dict, or
    both (keywords win on conflict)::

        plot(df, point, x="time", y="price")
        plot(df, point, mapping={"x": 0, "y": col("price") * 2})
    """
    p = Plot(data, {**(mapping or {}), **aesthetics}, theme=theme, registry=registry)
    return p.add(*elements)


def _coerce_theme(theme: Theme | Mapping[str, Any] | None) -> Theme:
    if theme is None:
        return DEFAULT_THEME
    if isinstance(theme, Theme):
        return theme
    return validate_theme(theme)
