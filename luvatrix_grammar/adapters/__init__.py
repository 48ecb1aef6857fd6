from luvatrix_grammar.adapters.dataset import (
    DISCRETE_INTEGER_LEVELS,
    Classification,
    as_float,
    classify_values,
    coerce_column,
    column_by_name,
    column_by_position,
    column_names,
)

__all__ = [
    "Classification",
    "DISCRETE_INTEGER_LEVELS",
    "as_float",
    "classify_values",
    "coerce_column",
    "column_by_name",
    "column_by_position",
    "column_names",
]
