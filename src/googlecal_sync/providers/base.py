"""Abstract base class for remote calendar providers."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from ..models.calendar import CalendarRef
from ..models.token import Token


class CalendarProvider(ABC):
    """OAuth2-protected remote calendar API, bound to one client identity."""

    @abstractmethod
    def auth_url(self) -> str:
        """
        Build the URL where the user grants access and obtains a verification code.

        Returns:
            Authorization URL
        """

    @abstractmethod
    def exchange_auth_code(self, code: str) -> Token:
        """
        Exchange a verification code for a token.

        Args:
            code: Verification code obtained by the user

        Returns:
            New token

        Raises:
            TokenExchangeError: If the provider rejects the code or is unreachable
        """

    @abstractmethod
    def exchange_refresh_token(self, refresh_token: str) -> Token:
        """
        Exchange a refresh token for a new access token.

        Raises:
            TokenExchangeError: If the refresh fails
        """

    @abstractmethod
    def set_token(self, token: Token) -> None:
        """Use ``token`` for subsequent API queries."""

    @abstractmethod
    def list_calendars(self) -> list[CalendarRef]:
        """
        List calendars visible to the authenticated account.

        Raises:
            ProviderQueryError: If the query fails
        """

    @abstractmethod
    def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: Optional[datetime] = None,
        max_results: int = 10,
        order_by: str = "startTime",
        single_events: bool = True,
    ) -> list[dict[str, Any]]:
        """
        List raw event records of a calendar within ``[time_min, time_max)``.

        Args:
            calendar_id: Calendar identifier
            time_min: Window start
            time_max: Window end (None for open-ended)
            max_results: Maximum number of records
            order_by: Provider ordering key
            single_events: Expand recurring events into instances

        Returns:
            Raw provider event records

        Raises:
            ProviderQueryError: If the query fails
        """
