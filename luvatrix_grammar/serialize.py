"""JSON-compatible plot documents.

Datasets never travel inside a document. They are written as
``{"type": "Ref", "value": <key>}`` where ``key`` is the dataset's entry in a
:class:`~luvatrix_grammar.registry.DataRegistry`; reading a document back looks
the same objects up again, so layers that shared the plot's dataset still
share it (and its realized :class:`~luvatrix_grammar.aesthetics.Data`) after a
round trip.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import numpy as np

from luvatrix_grammar.elements.base import ElementKind, deserialize_element
from luvatrix_grammar.errors import SerializationError
from luvatrix_grammar.expr import Expr, parse_expr
from luvatrix_grammar.mapping import AestheticMapping, build_data, validate_mapping
from luvatrix_grammar.plot import Layer, Plot
from luvatrix_grammar.registry import DataRegistry, active_registry


LOGGER = logging.getLogger(__name__)

REF_TYPE = "Ref"


def serialize(plot: Plot, *, with_data: bool = False) -> dict[str, Any]:
    if with_data:
        raise SerializationError("inlining datasets is not supported; datasets are serialized as registry references")
    return {
        "layers": [serialize_layer(layer, registry=plot.registry) for layer in plot.layers],
        "scales": [scale.serialize() for scale in plot.scales],
        "statistics": [stat.serialize() for stat in plot.statistics],
        "coord": plot.coord.serialize(),
        "guides": [guide.serialize() for guide in plot.guides],
        "mapping": serialize_mapping(plot.mapping),
        "data_source": _data_ref(plot.registry, plot.data_source),
    }


def serialize_layer(layer: Layer, *, registry: DataRegistry | None = None, with_data: bool = False) -> dict[str, Any]:
    if with_data:
        raise SerializationError("inlining datasets is not supported; datasets are serialized as registry references")
    registry = registry if registry is not None else active_registry()
    return {
        "data_source": _data_ref(registry, layer.data_source),
        "mapping": serialize_mapping(layer.mapping),
        "statistic": layer.statistic.serialize(),
        "geom": layer.geom.serialize(),
    }


def serialize_mapping(mapping: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for name, value in mapping.items():
        if isinstance(value, bool):
            LOGGER.warning("Unable to serialize mapping of type %s", type(value).__name__)
        elif isinstance(value, str):
            out[name] = {"type": "String", "value": value}
        elif isinstance(value, (int, np.integer)):
            out[name] = {"type": "Int", "value": int(value)}
        elif isinstance(value, Expr):
            out[name] = {"type": "Expr", "value": str(value)}
        else:
            LOGGER.warning("Unable to serialize mapping of type %s", type(value).__name__)
    return out


def deserialize(doc: Mapping[str, Any], *, registry: DataRegistry | None = None) -> Plot:
    """Rebuild a plot; its datasets must be live in ``registry`` (the active session by default)."""
    if not isinstance(doc, Mapping):
        raise SerializationError(f"plot document must be a mapping, got {type(doc).__name__}")
    registry = registry if registry is not None else active_registry()

    dataset = _resolve_ref(registry, doc.get("data_source"))
    out = Plot(dataset, deserialize_mapping(doc.get("mapping") or {}), registry=registry)
    out.scales = [deserialize_element(ElementKind.SCALE, d) for d in _list(doc, "scales")]  # type: ignore[misc]
    out.statistics = [deserialize_element(ElementKind.STATISTIC, d) for d in _list(doc, "statistics")]  # type: ignore[misc]
    out.guides = [deserialize_element(ElementKind.GUIDE, d) for d in _list(doc, "guides")]  # type: ignore[misc]
    if doc.get("coord") is not None:
        out.coord = deserialize_element(ElementKind.COORDINATE, doc["coord"])  # type: ignore[assignment]
    for layer_doc in _list(doc, "layers"):
        out.attach_layer(deserialize_layer(layer_doc, registry=registry, plot=out))
    return out


def deserialize_layer(doc: Mapping[str, Any], *, registry: DataRegistry | None = None, plot: Plot | None = None) -> Layer:
    """Rebuild a layer; its Data is shared with ``plot`` when dataset and mapping match."""
    if not isinstance(doc, Mapping):
        raise SerializationError(f"layer document must be a mapping, got {type(doc).__name__}")
    if registry is None:
        registry = plot.registry if plot is not None else active_registry()

    dataset = _resolve_ref(registry, doc.get("data_source"))
    mapping = deserialize_mapping(doc.get("mapping") or {})
    statistic = deserialize_element(ElementKind.STATISTIC, doc.get("statistic"))
    geom = deserialize_element(ElementKind.GEOMETRY, doc.get("geom"))
    if plot is not None and dataset is plot.data_source and mapping == plot.mapping:
        data, mapping = plot.data, plot.mapping
    else:
        data = build_data(dataset, mapping)
    return Layer(geom=geom, statistic=statistic, data=data, data_source=dataset, mapping=mapping)  # type: ignore[arg-type]


def deserialize_mapping(doc: Mapping[str, Any]) -> AestheticMapping:
    mapping: dict[str, Any] = {}
    for name, entry in doc.items():
        kind = entry.get("type") if isinstance(entry, Mapping) else None
        if kind == "String":
            mapping[name] = str(entry["value"])
        elif kind == "Int":
            mapping[name] = int(entry["value"])
        elif kind == "Expr":
            mapping[name] = parse_expr(str(entry["value"]))
        else:
            LOGGER.warning("Unable to deserialize mapping of type %s for aesthetic %s", kind, name)
    return validate_mapping(mapping)


def to_json(plot: Plot, **kwargs: Any) -> str:
    return json.dumps(serialize(plot), **kwargs)


def from_json(text: str, *, registry: DataRegistry | None = None) -> Plot:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"invalid plot document: {exc}") from exc
    return deserialize(doc, registry=registry)


def _data_ref(registry: DataRegistry, dataset: Any) -> dict[str, Any]:
    if dataset is None:
        return {"type": REF_TYPE, "value": None}
    key = registry.key_for(dataset)
    if key is None:
        raise SerializationError("dataset is not registered; was the plot closed before serializing?")
    return {"type": REF_TYPE, "value": key}


def _resolve_ref(registry: DataRegistry, ref: Any) -> Any:
    if ref is None:
        raise SerializationError("document has no data_source reference")
    if not isinstance(ref, Mapping) or ref.get("type") != REF_TYPE:
        raise SerializationError(f"data_source must be a {REF_TYPE} document, got {ref!r}")
    key = ref.get("value")
    if key is None:
        return None
    return registry.lookup(str(key))


def _list(doc: Mapping[str, Any], name: str) -> list[Any]:
    value = doc.get(name) or []
    if not isinstance(value, list):
        raise SerializationError(f"`{name}` must be a list, got {type(value).__name__}")
    return value
