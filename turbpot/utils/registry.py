"""Utility registry for runtime selection."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, TypeVar

T = TypeVar("T")


class Registry:
    def __init__(self, name: str) -> None:
        self.name = name
        self._items: Dict[str, Callable[..., Any]] = {}

    def register(self, key: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
        norm = key.lower()

        def decorator(factory: Callable[..., T]) -> Callable[..., T]:
            if norm in self._items:
                raise ValueError(f"{self.name} registry already has key {key}")
            self._items[norm] = factory
            return factory

        return decorator

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._items

    def get(self, key: str) -> Callable[..., Any]:
        try:
            return self._items[key.lower()]
        except KeyError as exc:
            known = ", ".join(self.keys())
            raise KeyError(f"Unknown {self.name} '{key}' (available: {known})") from exc

    def create(self, key: str, *args: Any, **kwargs: Any) -> Any:
        return self.get(key)(*args, **kwargs)

    def keys(self) -> List[str]:
        return sorted(self._items)
