"""OAuth2 credential and token models."""

from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator

from ..utils.date_utils import ensure_utc

# Tokens this close to expiry are treated as expired
EXPIRY_SKEW = timedelta(seconds=30)


class ClientCredentials(BaseModel):
    """Static application identity registered with the provider."""

    client_id: str = ""
    client_secret: str = ""

    model_config = {"frozen": True}

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)


class Token(BaseModel):
    """Bearer token material, optionally carrying an error marker."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None
    scope: Optional[str] = None
    token_type: str = "Bearer"
    error: Optional[str] = None

    @field_validator("expiry")
    @classmethod
    def _expiry_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def is_usable(self) -> bool:
        """A token with an error marker is never usable."""
        return self.error is None and bool(self.access_token)

    def is_expired(self, now: datetime) -> bool:
        """
        Check whether the access token needs replacing.

        A token without an access token or without a known expiry is
        considered expired.
        """
        if not self.access_token or self.expiry is None:
            return True
        return now >= self.expiry - EXPIRY_SKEW

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_store(cls, value: Any) -> Optional["Token"]:
        """
        Load a token as persisted in the config store.

        Returns:
            Token, or None when nothing (or something unreadable) is stored
        """
        if not value or not isinstance(value, dict):
            return None
        try:
            return cls.model_validate(value)
        except ValidationError:
            return None


class AuthSession(BaseModel):
    """Outcome of one credential/token validation pass."""

    authenticated: bool = False
    token: Optional[Token] = None

    model_config = {"frozen": True}
