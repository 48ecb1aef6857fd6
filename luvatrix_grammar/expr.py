"""Typed expression trees for computed aesthetic mappings.

Expressions are built either with operators on :func:`col` references::

    col("price") * 1.1
    (col("high") + col("low")) / 2

or parsed from text with :func:`parse_expr`. ``str(expr)`` produces text that
parses back to a structurally equal tree, which is how expressions travel in
serialized plots.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
import keyword
import math
import operator
from typing import Any, Callable, Union

import numpy as np

from luvatrix_grammar.errors import ExpressionError, PlotDataError


Scalar = Union[int, float, str, bool]
ColumnLookup = Callable[[str], np.ndarray]

BINARY_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
    "**": operator.pow,
}
COMPARE_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}
FUNCTIONS: dict[str, Callable[[Any], Any]] = {
    "abs": np.abs,
    "sqrt": np.sqrt,
    "log": np.log,
    "log10": np.log10,
    "exp": np.exp,
    "sin": np.sin,
    "cos": np.cos,
    "round": np.round,
}

_AST_BINARY = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.FloorDiv: "//",
    ast.Mod: "%",
    ast.Pow: "**",
}
_AST_COMPARE = {
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
    ast.Eq: "==",
    ast.NotEq: "!=",
}


class Expr:
    def evaluate(self, lookup: ColumnLookup) -> Any:
        raise NotImplementedError

    def columns(self) -> frozenset[str]:
        raise NotImplementedError

    def __add__(self, other: Any) -> "BinOp":
        return BinOp("+", self, as_expr(other))

    def __radd__(self, other: Any) -> "BinOp":
        return BinOp("+", as_expr(other), self)

    def __sub__(self, other: Any) -> "BinOp":
        return BinOp("-", self, as_expr(other))

    def __rsub__(self, other: Any) -> "BinOp":
        return BinOp("-", as_expr(other), self)

    def __mul__(self, other: Any) -> "BinOp":
        return BinOp("*", self, as_expr(other))

    def __rmul__(self, other: Any) -> "BinOp":
        return BinOp("*", as_expr(other), self)

    def __truediv__(self, other: Any) -> "BinOp":
        return BinOp("/", self, as_expr(other))

    def __rtruediv__(self, other: Any) -> "BinOp":
        return BinOp("/", as_expr(other), self)

    def __floordiv__(self, other: Any) -> "BinOp":
        return BinOp("//", self, as_expr(other))

    def __mod__(self, other: Any) -> "BinOp":
        return BinOp("%", self, as_expr(other))

    def __pow__(self, other: Any) -> "BinOp":
        return BinOp("**", self, as_expr(other))

    def __neg__(self) -> "Expr":
        return UnaryOp("-", self)

    def __lt__(self, other: Any) -> "Compare":
        return Compare("<", self, as_expr(other))

    def __le__(self, other: Any) -> "Compare":
        return Compare("<=", self, as_expr(other))

    def __gt__(self, other: Any) -> "Compare":
        return Compare(">", self, as_expr(other))

    def __ge__(self, other: Any) -> "Compare":
        return Compare(">=", self, as_expr(other))


@dataclass(frozen=True)
class Literal(Expr):
    value: Scalar

    def __post_init__(self) -> None:
        # Non-finite floats have no literal spelling that parses back.
        if isinstance(self.value, float) and not math.isfinite(self.value):
            raise ExpressionError(f"non-finite literal is not supported: {self.value!r}")

    def evaluate(self, lookup: ColumnLookup) -> Any:
        return self.value

    def columns(self) -> frozenset[str]:
        return frozenset()

    def __neg__(self) -> Expr:
        if isinstance(self.value, (int, float)) and not isinstance(self.value, bool):
            return Literal(-self.value)
        return UnaryOp("-", self)

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Column(Expr):
    name: str

    def evaluate(self, lookup: ColumnLookup) -> Any:
        return lookup(self.name)

    def columns(self) -> frozenset[str]:
        return frozenset({self.name})

    def __str__(self) -> str:
        if self.name.isidentifier() and not keyword.iskeyword(self.name) and self.name != "col":
            return self.name
        return f"col({self.name!r})"


@dataclass(frozen=True)
class UnaryOp(Expr):
    op: str
    operand: Expr

    def evaluate(self, lookup: ColumnLookup) -> Any:
        value = self.operand.evaluate(lookup)
        return -value if self.op == "-" else +value

    def columns(self) -> frozenset[str]:
        return self.operand.columns()

    def __str__(self) -> str:
        return f"{self.op}{_operand_str(self.operand)}"


@dataclass(frozen=True)
class BinOp(Expr):
    op: str
    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        if self.op not in BINARY_OPS:
            raise ExpressionError(f"unsupported operator: {self.op}")

    def evaluate(self, lookup: ColumnLookup) -> Any:
        return BINARY_OPS[self.op](self.left.evaluate(lookup), self.right.evaluate(lookup))

    def columns(self) -> frozenset[str]:
        return self.left.columns() | self.right.columns()

    def __str__(self) -> str:
        return f"{_operand_str(self.left)} {self.op} {_operand_str(self.right)}"


@dataclass(frozen=True)
class Compare(Expr):
    op: str
    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        if self.op not in COMPARE_OPS:
            raise ExpressionError(f"unsupported comparison: {self.op}")

    def evaluate(self, lookup: ColumnLookup) -> Any:
        return COMPARE_OPS[self.op](self.left.evaluate(lookup), self.right.evaluate(lookup))

    def columns(self) -> frozenset[str]:
        return self.left.columns() | self.right.columns()

    def __str__(self) -> str:
        return f"{_operand_str(self.left)} {self.op} {_operand_str(self.right)}"


@dataclass(frozen=True)
class Call(Expr):
    func: str
    args: tuple[Expr, ...]

    def __post_init__(self) -> None:
        if self.func not in FUNCTIONS:
            raise ExpressionError(f"unsupported function: {self.func}")
        if len(self.args) != 1:
            raise ExpressionError(f"{self.func}() takes exactly one argument")

    def evaluate(self, lookup: ColumnLookup) -> Any:
        return FUNCTIONS[self.func](*(arg.evaluate(lookup) for arg in self.args))

    def columns(self) -> frozenset[str]:
        out: frozenset[str] = frozenset()
        for arg in self.args:
            out |= arg.columns()
        return out

    def __str__(self) -> str:
        return f"{self.func}({', '.join(str(a) for a in self.args)})"


def col(name: str) -> Column:
    return Column(str(name))


def as_expr(value: Any) -> Expr:
    if isinstance(value, Expr):
        return value
    if isinstance(value, (bool, int, float, str)):
        return Literal(value)
    if isinstance(value, np.generic):
        return Literal(value.item())
    raise ExpressionError(f"cannot use {type(value).__name__} in an expression")


def evaluate(expr: Expr, lookup: ColumnLookup) -> Any:
    """Evaluate ``expr`` column-wise; numpy broadcasting gives row-wise semantics."""
    try:
        with np.errstate(divide="ignore", invalid="ignore"):
            return expr.evaluate(lookup)
    except PlotDataError:
        raise
    except (TypeError, ValueError) as exc:
        raise PlotDataError(f"cannot evaluate `{expr}`: {exc}") from exc


def parse_expr(text: str) -> Expr:
    try:
        tree = ast.parse(text.strip(), mode="eval")
    except SyntaxError as exc:
        raise ExpressionError(f"invalid expression `{text}`: {exc.msg}") from exc
    return _convert(tree.body, text)


def _operand_str(expr: Expr) -> str:
    if isinstance(expr, (BinOp, Compare, UnaryOp)):
        return f"({expr})"
    if isinstance(expr, Literal) and isinstance(expr.value, (int, float)) and expr.value < 0:
        return f"({expr})"
    return str(expr)


def _convert(node: ast.AST, source: str) -> Expr:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, (bool, int, float, str)):
            return Literal(node.value)
    elif isinstance(node, ast.Name):
        return Column(node.id)
    elif isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        operand = _convert(node.operand, source)
        if isinstance(node.op, ast.USub):
            return -operand
        return UnaryOp("+", operand)
    elif isinstance(node, ast.BinOp) and type(node.op) in _AST_BINARY:
        return BinOp(_AST_BINARY[type(node.op)], _convert(node.left, source), _convert(node.right, source))
    elif isinstance(node, ast.Compare) and len(node.ops) == 1 and type(node.ops[0]) in _AST_COMPARE:
        return Compare(_AST_COMPARE[type(node.ops[0])], _convert(node.left, source), _convert(node.comparators[0], source))
    elif isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and not node.keywords:
        if node.func.id == "col":
            if len(node.args) == 1 and isinstance(node.args[0], ast.Constant) and isinstance(node.args[0].value, str):
                return Column(node.args[0].value)
            raise ExpressionError(f"col() takes one string literal in `{source}`")
        return Call(node.func.id, tuple(_convert(arg, source) for arg in node.args))
    raise ExpressionError(f"unsupported syntax in expression `{source}`: {ast.dump(node)}")
