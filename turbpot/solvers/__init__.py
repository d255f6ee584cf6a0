"""Equation assemblers."""

from .transport import TransportAssembler, TransportSystem, solve_system

__all__ = ["TransportAssembler", "TransportSystem", "solve_system"]
