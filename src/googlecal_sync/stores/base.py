"""Protocols for the key/value stores the core consumes."""

from typing import Any, Protocol


class ConfigStore(Protocol):
    """Durable settings: credentials, verification code, token, calendar selection."""

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a value by dotted key (e.g. "auth.client_id").

        Args:
            key: Dotted key
            default: Value returned when the key is missing

        Returns:
            Stored value or default
        """
        ...

    def set(self, key: str, value: Any) -> None:
        """Write a value by dotted key; not durable until save()."""
        ...

    def save(self) -> None:
        """Persist pending changes."""
        ...


class StateStore(Protocol):
    """Process-external state shared across requests (the day cache lives here)."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def reload(self) -> None:
        """Discard cached values and re-read the backing storage."""
        ...
