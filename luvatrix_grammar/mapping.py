from __future__ import annotations

from typing import Any, Mapping, Union

import numpy as np

from luvatrix_grammar.adapters.dataset import column_by_name, column_by_position, column_names
from luvatrix_grammar.aesthetics import AESTHETIC_NAMES, Data
from luvatrix_grammar.errors import MappingError, PlotDataError
from luvatrix_grammar.expr import Expr, evaluate


# A column name, a 0-based column position, or a computed expression.
MappingValue = Union[str, int, Expr]
AestheticMapping = dict[str, MappingValue]


def is_mapping_value(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, np.integer, Expr))


def validate_mapping(mapping: Mapping[str, Any] | None) -> AestheticMapping:
    """Check aesthetic names and value kinds; returns a normalized copy."""
    out: AestheticMapping = {}
    for key, value in (mapping or {}).items():
        name = str(key)
        if name not in AESTHETIC_NAMES:
            raise MappingError(f"{name} is not a recognized aesthetic")
        if not is_mapping_value(value):
            raise MappingError(
                f"Aesthetic {name} is mapped to a value of type {type(value).__name__}. "
                "It must be mapped to a column name, a column position, or an expression."
            )
        out[name] = int(value) if isinstance(value, np.integer) else value
    return out


def eval_plot_mapping(dataset: Any, value: MappingValue) -> np.ndarray:
    if dataset is None:
        raise PlotDataError(f"cannot evaluate mapping {value!r} without a dataset")
    if isinstance(value, bool):
        raise MappingError("a boolean is not a valid mapping value")
    if isinstance(value, str):
        return column_by_name(dataset, value)
    if isinstance(value, (int, np.integer)):
        return column_by_position(dataset, int(value))
    if isinstance(value, Expr):
        missing = sorted(value.columns() - set(column_names(dataset)))
        if missing:
            raise PlotDataError(f"column not found: {', '.join(missing)}")
        result = evaluate(value, lambda name: column_by_name(dataset, name))
        return _broadcast(np.asarray(result), dataset)
    raise MappingError(f"unsupported mapping value of type {type(value).__name__}")


def build_data(dataset: Any, mapping: Mapping[str, MappingValue]) -> Data:
    data = Data()
    for name, value in mapping.items():
        data.set(name, eval_plot_mapping(dataset, value))
    return data


def mapping_label(value: MappingValue) -> str:
    """Text used for axis labels and key titles derived from a mapping."""
    return str(value)


def _broadcast(values: np.ndarray, dataset: Any) -> np.ndarray:
    if values.ndim == 1:
        return values
    if values.ndim > 1:
        raise PlotDataError(f"expression produced a {values.ndim}-D result")
    n = column_by_position(dataset, 0).shape[0] if column_names(dataset) else 1
    return np.full(n, values.item())
