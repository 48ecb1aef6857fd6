from __future__ import annotations


class PlotError(Exception):
    """Base class for errors raised while building, rendering or transporting plots."""


class PlotDataError(PlotError, ValueError):
    """A dataset could not provide the values a mapping asked for."""


class MappingError(PlotError, ValueError):
    """An aesthetic mapping names an unknown aesthetic or holds an unsupported value."""


class ExpressionError(PlotError, ValueError):
    """An expression mapping could not be parsed."""


class EmptyPlotError(PlotError):
    pass


class SerializationError(PlotError):
    pass


class RegistryLookupError(PlotError, KeyError):
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"no dataset registered under reference {self.key!r}"
