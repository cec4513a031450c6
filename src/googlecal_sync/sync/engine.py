"""Service facade used by the CLI and embedding applications."""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..auth.token_manager import ProviderFactory, TokenManager
from ..config import AppConfig
from ..models.calendar import CalendarSelection, CatalogEntry
from ..models.event import Event
from ..models.token import AuthSession, Token
from ..providers.google import GoogleCalendarProvider
from ..stores.base import ConfigStore, StateStore
from ..utils.date_utils import get_timezone, utc_now
from .cache import EventCache, RebuildResult
from .catalog import CalendarCatalog
from .fetcher import EventFetcher

logger = logging.getLogger(__name__)


class CalendarSyncService:
    """
    Ties token validation, calendar catalog and event cache together.

    The session is validated lazily on first use and again whenever
    credentials, the verification code or the token change.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        state_store: StateStore,
        config: Optional[AppConfig] = None,
        provider_factory: Optional[ProviderFactory] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the service.

        Args:
            config_store: Store for credentials, token and calendar selection
            state_store: Store for the day cache
            config: Application configuration
            provider_factory: Builds the provider client (Google by default)
            clock: Returns the current aware datetime
        """
        self.config = config or AppConfig()
        self.config_store = config_store
        self.state_store = state_store
        self.clock = clock
        self.tz = get_timezone(self.config.timezone)

        if provider_factory is None:

            def provider_factory(credentials):
                return GoogleCalendarProvider(credentials, self.config)

        self.token_manager = TokenManager(config_store, provider_factory, clock=clock)
        self._session: Optional[AuthSession] = None

    @property
    def session(self) -> AuthSession:
        session = self._session
        if session is None or (
            session.authenticated
            and session.token is not None
            and session.token.is_expired(self.clock())
        ):
            session = self.validate()
        return session

    def validate(self) -> AuthSession:
        self._session = self.token_manager.validate()
        return self._session

    def authenticated(self) -> bool:
        return self.session.authenticated

    def auth_url(self) -> str:
        return self.token_manager.auth_url()

    def exchange_code(self, code: str) -> Optional[Token]:
        return self.token_manager.exchange_code(code)

    def _provider(self):
        if not self.authenticated():
            return None
        return self.token_manager.client

    @property
    def catalog(self) -> CalendarCatalog:
        return CalendarCatalog(self._provider(), self.config_store)

    @property
    def cache(self) -> EventCache:
        provider = self._provider()
        fetcher = None
        if provider is not None:
            fetcher = EventFetcher(
                provider, self.tz, max_results=self.config.max_results, clock=self.clock
            )
        return EventCache(
            self.state_store, fetcher, self.tz, catalog=self.catalog, clock=self.clock
        )

    def list_calendars(self) -> dict[str, str]:
        """Calendars of the authenticated account as ``{id: name}``."""
        return self.catalog.list_remote_calendars()

    def catalog_entries(self) -> list[CatalogEntry]:
        """Remote calendars with weights and selection flags, in display order."""
        return self.catalog.entries()

    def available_calendars(self) -> list[CalendarSelection]:
        return self.catalog.selection()

    def get_today_events(self, calendar_id: str, force_sync: bool = False) -> list[Event]:
        return self.cache.get_today_events(calendar_id, force_sync=force_sync)

    def rebuild_all(self) -> RebuildResult:
        return self.cache.rebuild_all()

    # Settings

    def save_credentials(self, client_id: str, client_secret: str) -> None:
        self.config_store.set("auth.client_id", client_id)
        self.config_store.set("auth.client_secret", client_secret)
        self.config_store.save()
        self._session = None

    def submit_verification_code(self, code: str) -> AuthSession:
        """
        Store a verification code and exchange it for a token.

        Raises:
            TokenExchangeError: If the exchange fails
        """
        token = self.exchange_code(code)
        self.config_store.set("auth.verification_code", code)
        if token is not None:
            self.token_manager.store_token(token)
        else:
            self.config_store.save()
        return self.validate()

    def save_selection(self, selected: dict[str, int]) -> list[CalendarSelection]:
        """
        Store the selected calendars and their weights.

        Args:
            selected: Weight per selected calendar id

        Returns:
            Stored selection
        """
        remote = self.list_calendars()
        selection = [
            CalendarSelection(id=calendar_id, name=remote.get(calendar_id, ""), weight=weight)
            for calendar_id, weight in selected.items()
        ]
        self.config_store.set("calendars", [item.model_dump() for item in selection])
        self.config_store.save()
        return selection

    def revoke_access(self) -> None:
        """Forget the verification code and token of the current account."""
        self.config_store.set("auth.verification_code", "")
        self.config_store.set("auth.access_token", "")
        self.config_store.save()
        self._session = AuthSession(authenticated=False)
        logger.info("Account access revoked")
