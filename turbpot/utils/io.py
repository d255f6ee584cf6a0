"""Case dictionary helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import numpy as np
import yaml


def read_yaml_file(path: str | Path) -> Dict[str, Any]:
    file_path = Path(path)
    with file_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data


def write_yaml_file(path: str | Path, data: Dict[str, Any]) -> Path:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(_plain(data), handle, sort_keys=False)
    return file_path


def _plain(value: Any) -> Any:
    # yaml.safe_dump refuses numpy scalars and arrays
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class YamlDictionary:
    """A dictionary file that is re-read every time its contents are requested."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        return read_yaml_file(self.path)

    def __repr__(self) -> str:
        return f"YamlDictionary({str(self.path)!r})"
