"""In-memory store, usable as config store or state store."""

import copy
from typing import Any, Optional


class InMemoryStore:
    """Nested dict store addressed by dotted keys."""

    def __init__(self, data: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return copy.deepcopy(node)

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    def save(self) -> None:
        """Nothing to persist."""

    def reload(self) -> None:
        """Nothing to re-read."""
