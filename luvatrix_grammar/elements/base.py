from __future__ import annotations

from dataclasses import asdict
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Sequence, TypeVar

from luvatrix_grammar.errors import SerializationError

if TYPE_CHECKING:
    from luvatrix_grammar.aesthetics import Aesthetics, Data
    from luvatrix_grammar.compose import Canvas
    from luvatrix_grammar.theme import Theme


class ElementKind(str, Enum):
    SCALE = "scale"
    STATISTIC = "statistic"
    COORDINATE = "coordinate"
    GEOMETRY = "geometry"
    GUIDE = "guide"


class Element:
    """Common surface of every plot element.

    Concrete elements are frozen dataclasses whose fields are their
    JSON-compatible parameters; ``serialize`` and ``deserialize`` round-trip
    through ``{"type": type_name, **params}``.
    """

    kind: ClassVar[ElementKind]
    type_name: ClassVar[str]

    def aesthetics(self) -> frozenset[str]:
        return frozenset()

    def params(self) -> dict[str, Any]:
        return {k: list(v) if isinstance(v, tuple) else v for k, v in asdict(self).items()}  # type: ignore[call-overload]

    def serialize(self) -> dict[str, Any]:
        return {"type": self.type_name, **self.params()}

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "Element":
        return cls(**params)


class ScaleElement(Element):
    kind = ElementKind.SCALE

    def apply(self, aess: Sequence["Aesthetics"], datas: Sequence["Data"]) -> None:
        """Write scaled values into ``aess[i]`` from ``datas[i]``."""
        raise NotImplementedError


class StatisticElement(Element):
    kind = ElementKind.STATISTIC

    @property
    def is_default(self) -> bool:
        return False

    def default_scales(self) -> list[ScaleElement]:
        return []

    def apply(self, aes: "Aesthetics", scales: Mapping[str, ScaleElement]) -> None:
        raise NotImplementedError


class CoordinateElement(Element):
    kind = ElementKind.COORDINATE

    def apply(self, plot_aes: "Aesthetics", aess: Sequence["Aesthetics"]) -> "Canvas":
        raise NotImplementedError


class GeometryElement(Element):
    kind = ElementKind.GEOMETRY

    @property
    def is_default(self) -> bool:
        return False

    def default_statistic(self) -> StatisticElement:
        from luvatrix_grammar.elements.stats import nil

        return nil

    def render(self, theme: "Theme", aes: "Aesthetics") -> "Canvas":
        raise NotImplementedError


class GuideElement(Element):
    kind = ElementKind.GUIDE
    guide_kind: ClassVar[str]

    def render(self, theme: "Theme", aess: Sequence["Aesthetics"]) -> list["Canvas"]:
        raise NotImplementedError


_ELEMENT_TYPES: dict[ElementKind, dict[str, type[Element]]] = {kind: {} for kind in ElementKind}

E = TypeVar("E", bound=type[Element])


def register_element(cls: E) -> E:
    table = _ELEMENT_TYPES[cls.kind]
    if cls.type_name in table and table[cls.type_name] is not cls:
        raise ValueError(f"duplicate {cls.kind.value} type name: {cls.type_name}")
    table[cls.type_name] = cls
    return cls


def element_type(kind: ElementKind, type_name: str) -> type[Element]:
    try:
        return _ELEMENT_TYPES[kind][type_name]
    except KeyError:
        raise SerializationError(f"unknown {kind.value} type: {type_name}") from None


def deserialize_element(kind: ElementKind, doc: Any) -> Element:
    if not isinstance(doc, Mapping) or not isinstance(doc.get("type"), str):
        raise SerializationError(f"malformed {kind.value} document: {doc!r}")
    cls = element_type(kind, doc["type"])
    params = {k: v for k, v in doc.items() if k != "type"}
    try:
        return cls.from_params(params)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"invalid {kind.value} parameters for {doc['type']}: {exc}") from exc
