"""OAuth2 token lifecycle for the calendar provider."""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..models.token import AuthSession, ClientCredentials, Token
from ..providers.base import CalendarProvider
from ..stores.base import ConfigStore
from ..utils.date_utils import utc_now

logger = logging.getLogger(__name__)

# Error marker recorded on a token when an automatic exchange fails
NETWORK_ERROR = "Network error"

ProviderFactory = Callable[[ClientCredentials], CalendarProvider]


class TokenManager:
    """
    Validates client credentials and keeps an access token usable.

    The stored token lives in the config store under ``auth.access_token``;
    the authenticated flag is never stored, each ``validate()`` call
    computes a fresh AuthSession.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        provider_factory: ProviderFactory,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize token manager.

        Args:
            config_store: Store holding credentials, verification code and token
            provider_factory: Builds a provider client from client credentials
            clock: Returns the current aware datetime
        """
        self.config_store = config_store
        self.provider_factory = provider_factory
        self.clock = clock
        self._client: Optional[CalendarProvider] = None
        self._client_credentials: Optional[ClientCredentials] = None

    def credentials(self) -> ClientCredentials:
        return ClientCredentials(
            client_id=self.config_store.get("auth.client_id") or "",
            client_secret=self.config_store.get("auth.client_secret") or "",
        )

    def has_credentials(self) -> bool:
        """True if both client id and client secret are configured."""
        return self.credentials().is_complete

    def prepare_client(
        self, credentials: Optional[ClientCredentials] = None
    ) -> Optional[CalendarProvider]:
        """
        Build a provider client for the given (or configured) credentials.

        Returns:
            Configured client, or None when credentials are incomplete
        """
        credentials = credentials or self.credentials()
        if not credentials.is_complete:
            return None
        return self.provider_factory(credentials)

    @property
    def client(self) -> Optional[CalendarProvider]:
        """Client for the configured credentials, rebuilt when they change."""
        credentials = self.credentials()
        if credentials != self._client_credentials:
            self._client = self.prepare_client(credentials)
            self._client_credentials = credentials
        return self._client

    def stored_token(self) -> Optional[Token]:
        return Token.from_store(self.config_store.get("auth.access_token"))

    def validate(self) -> AuthSession:
        """
        Load the stored token and replace it if it has expired.

        A refresh token is preferred over the verification code. Exchange
        failures are logged and reported as an unauthenticated session
        whose token carries the error marker; they are never raised.

        Returns:
            AuthSession for this validation pass
        """
        client = self.client
        if client is None:
            logger.debug("Client id/secret not configured, skipping authentication")
            return AuthSession(authenticated=False)

        current = None
        stored = self.stored_token()
        if stored is not None and stored.error is None:
            client.set_token(stored)
            current = stored

        if current is not None and not current.is_expired(self.clock()):
            return AuthSession(authenticated=True, token=current)

        verification_code = self.config_store.get("auth.verification_code")
        try:
            if current is not None and current.refresh_token:
                logger.info("Access token expired, refreshing")
                token = client.exchange_refresh_token(current.refresh_token)
            elif verification_code:
                logger.info("Exchanging stored verification code for an access token")
                token = client.exchange_auth_code(verification_code)
            else:
                logger.info("No refresh token or verification code available")
                return AuthSession(authenticated=False, token=current)
        except Exception as e:
            logger.error(f"Token exchange failed: {e}")
            return AuthSession(authenticated=False, token=Token(error=NETWORK_ERROR))

        if token.error is not None:
            logger.error(f"Provider returned token error: {token.error}")
            return AuthSession(authenticated=False, token=token)

        if token.refresh_token is None and current is not None:
            token = token.model_copy(update={"refresh_token": current.refresh_token})

        client.set_token(token)
        self.store_token(token)
        return AuthSession(authenticated=True, token=token)

    def store_token(self, token: Optional[Token]) -> None:
        self.config_store.set("auth.access_token", token.to_store() if token else "")
        self.config_store.save()

    def auth_url(self) -> str:
        """Authorization URL, or "" when no client can be built."""
        client = self.client
        if client is None:
            return ""
        return client.auth_url()

    def exchange_code(self, code: str) -> Optional[Token]:
        """
        Exchange a user-supplied verification code for a token.

        Returns:
            New token, or None when no client can be built

        Raises:
            TokenExchangeError: If the exchange fails
        """
        client = self.client
        if client is None:
            return None
        return client.exchange_auth_code(code)
