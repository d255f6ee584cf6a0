"""Exceptions raised by the turbulence closure."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """A coefficient, dimension or mode switch in a model dictionary is invalid."""

    def __init__(self, entry: str, message: str) -> None:
        self.entry = entry
        super().__init__(f"{entry}: {message}")


class NumericalDivergence(RuntimeError):
    """A transport equation produced a field that cannot be used further."""

    def __init__(self, equation: str, message: str, stats=None) -> None:
        self.equation = equation
        self.stats = dict(stats or {})
        super().__init__(f"{equation} equation: {message}")
