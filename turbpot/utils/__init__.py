"""Shared utilities: registry, YAML IO, logging, exceptions."""

from .errors import ConfigurationError, NumericalDivergence
from .io import YamlDictionary, read_yaml_file, write_yaml_file
from .logging import IterationLogger
from .registry import Registry

__all__ = [
    "ConfigurationError",
    "NumericalDivergence",
    "IterationLogger",
    "Registry",
    "YamlDictionary",
    "read_yaml_file",
    "write_yaml_file",
]
