from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal

import numpy as np
import pandas as pd

from luvatrix_grammar.errors import PlotDataError


try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


Classification = Literal["continuous", "discrete"]

# Integer columns with at most this many distinct values are treated as discrete.
DISCRETE_INTEGER_LEVELS = 20


def column_names(dataset: Any) -> list[str]:
    if isinstance(dataset, pd.DataFrame):
        return [str(c) for c in dataset.columns]
    if isinstance(dataset, Mapping):
        return [str(c) for c in dataset.keys()]
    raise PlotDataError(f"unsupported dataset type: {type(dataset)!r}")


def column_by_name(dataset: Any, name: str) -> np.ndarray:
    if isinstance(dataset, pd.DataFrame):
        if name not in dataset.columns:
            raise PlotDataError(f"column not found: {name}")
        return coerce_column(dataset[name], label=name)
    if isinstance(dataset, Mapping):
        if name not in dataset:
            raise PlotDataError(f"column not found: {name}")
        return coerce_column(dataset[name], label=name)
    raise PlotDataError(f"unsupported dataset type: {type(dataset)!r}")


def column_by_position(dataset: Any, index: int) -> np.ndarray:
    """Column at 0-based ``index``; negative positions count from the end."""
    names = column_names(dataset)
    if not -len(names) <= index < len(names):
        raise PlotDataError(f"column position {index} out of range for {len(names)} columns")
    if isinstance(dataset, pd.DataFrame):
        return coerce_column(dataset.iloc[:, index], label=names[index])
    return column_by_name(dataset, list(dataset.keys())[index])


def coerce_column(value: Any, *, label: str) -> np.ndarray:
    """1-D array of a column's values, keeping the native element type."""
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise PlotDataError(f"column {label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return tensor.numpy()

    if isinstance(value, pd.Series):
        return value.to_numpy()

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise PlotDataError(f"column {label} must be 1-D")
        return value

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        arr = np.asarray(value)
        if arr.ndim != 1:
            raise PlotDataError(f"column {label} must be 1-D")
        return arr

    raise PlotDataError(f"unsupported column type for {label}: {type(value)!r}")


def classify_values(values: np.ndarray) -> Classification:
    kind = values.dtype.kind
    if kind == "f":
        return "continuous"
    if kind in {"i", "u"}:
        return "discrete" if np.unique(values).size <= DISCRETE_INTEGER_LEVELS else "continuous"
    return "discrete"


def as_float(values: np.ndarray, *, label: str) -> np.ndarray:
    if values.dtype.kind in {"i", "u", "f", "b"}:
        return values.astype(np.float64, copy=False)
    out = np.empty(values.shape[0], dtype=np.float64)
    for i, raw in enumerate(values.tolist()):
        if raw is None:
            out[i] = np.nan
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise PlotDataError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
