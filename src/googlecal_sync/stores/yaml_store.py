"""YAML file backed store."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from ..utils.exceptions import ConfigurationError
from .memory import InMemoryStore

logger = logging.getLogger(__name__)


class YamlFileStore(InMemoryStore):
    """
    Dotted-key store persisted to a YAML document.

    Args:
        path: YAML file location (created on first save)
        autosave: Save after every set(); used for the state store
    """

    def __init__(self, path: Path, autosave: bool = False):
        self.path = Path(path)
        self.autosave = autosave
        super().__init__(self._load())

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.path} must contain a mapping")
        return data

    def reload(self) -> None:
        self._data = self._load()

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        if self.autosave:
            self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # One temp file per writer; concurrent saves end as last-write-wins
        with tempfile.NamedTemporaryFile(
            "w",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            yaml.safe_dump(self.data, f, default_flow_style=False, sort_keys=False)
        try:
            os.replace(f.name, self.path)
        except OSError:
            os.unlink(f.name)
            raise
        logger.debug(f"Saved {self.path}")
