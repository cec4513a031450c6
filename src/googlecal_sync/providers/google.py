"""Google Calendar provider using google-auth and the discovery client."""

import logging
from datetime import datetime
from typing import Any, Optional

import google_auth_httplib2
import httplib2
import pytz
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.http import set_user_agent

from ..config import AppConfig
from ..models.calendar import CalendarRef
from ..models.token import ClientCredentials, Token
from ..utils.date_utils import ensure_utc, to_rfc3339
from ..utils.exceptions import ProviderQueryError, TokenExchangeError
from .base import CalendarProvider

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class _TimeoutRequest(Request):
    """google-auth transport that bounds every call with a timeout."""

    def __init__(self, timeout: float):
        super().__init__()
        self._timeout = timeout

    def __call__(self, url, method="GET", body=None, headers=None, timeout=None, **kwargs):
        return super().__call__(
            url,
            method=method,
            body=body,
            headers=headers,
            timeout=timeout or self._timeout,
            **kwargs,
        )


def token_from_oauth_response(response: dict[str, Any]) -> Token:
    """
    Convert an OAuth2 token endpoint response into a Token.

    Args:
        response: Parsed token response (access_token, expires_at/expires_in, ...)

    Returns:
        Token, carrying ``error`` if the response reports one
    """
    if "error" in response:
        return Token(error=str(response.get("error_description") or response["error"]))

    expiry = None
    if response.get("expires_at"):
        expiry = datetime.fromtimestamp(float(response["expires_at"]), tz=pytz.utc)

    scope = response.get("scope")
    if isinstance(scope, (list, tuple)):
        scope = " ".join(scope)

    return Token(
        access_token=response.get("access_token"),
        refresh_token=response.get("refresh_token"),
        expiry=expiry,
        scope=scope,
        token_type=response.get("token_type") or "Bearer",
    )


class GoogleCalendarProvider(CalendarProvider):
    """Read-only Google Calendar v3 access for one OAuth client."""

    def __init__(self, credentials: ClientCredentials, config: AppConfig):
        """
        Initialize the provider.

        Args:
            credentials: OAuth client id and secret
            config: Application configuration (redirect URI, timeout, app name)
        """
        self.credentials = credentials
        self.config = config
        self.timeout = config.request_timeout
        self._token: Optional[Token] = None
        self._service = None

        client_config = {
            "installed": {
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [config.redirect_uri],
            }
        }
        # The code is exchanged in a later process, so no PKCE verifier can be kept
        self.flow = Flow.from_client_config(
            client_config,
            scopes=SCOPES,
            redirect_uri=config.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def auth_url(self) -> str:
        url, _state = self.flow.authorization_url(
            access_type="offline",
            prompt="select_account consent",
        )
        return url

    def exchange_auth_code(self, code: str) -> Token:
        try:
            response = self.flow.fetch_token(code=code, timeout=self.timeout)
        except Exception as e:
            raise TokenExchangeError(f"Failed to exchange verification code: {e}") from e

        token = token_from_oauth_response(dict(response))
        if token.error:
            raise TokenExchangeError(f"Failed to exchange verification code: {token.error}")
        logger.info("Access token obtained from verification code")
        return token

    def exchange_refresh_token(self, refresh_token: str) -> Token:
        google_creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.credentials.client_id,
            client_secret=self.credentials.client_secret,
            scopes=SCOPES,
        )
        try:
            google_creds.refresh(_TimeoutRequest(self.timeout))
        except Exception as e:
            raise TokenExchangeError(f"Failed to refresh access token: {e}") from e

        logger.info("Access token refreshed")
        return Token(
            access_token=google_creds.token,
            refresh_token=google_creds.refresh_token or refresh_token,
            # google-auth keeps expiry as naive UTC
            expiry=ensure_utc(google_creds.expiry) if google_creds.expiry else None,
            scope=" ".join(google_creds.scopes or SCOPES),
        )

    def set_token(self, token: Token) -> None:
        self._token = token
        self._service = None

    @property
    def service(self):
        """Lazy-load the Calendar API service for the current token."""
        if self._service is None:
            if self._token is None or not self._token.is_usable:
                raise ProviderQueryError("No usable access token loaded")

            expiry = self._token.expiry
            google_creds = Credentials(
                token=self._token.access_token,
                # Refreshing and persisting is left to TokenManager.validate
                refresh_token=None,
                token_uri=TOKEN_URI,
                client_id=self.credentials.client_id,
                client_secret=self.credentials.client_secret,
                scopes=SCOPES,
                expiry=ensure_utc(expiry).replace(tzinfo=None) if expiry else None,
            )
            http = google_auth_httplib2.AuthorizedHttp(
                google_creds, http=httplib2.Http(timeout=self.timeout)
            )
            http = set_user_agent(http, self.config.application_name)
            self._service = build("calendar", "v3", http=http, cache_discovery=False)
        return self._service

    def list_calendars(self) -> list[CalendarRef]:
        try:
            result = []
            page_token = None
            while True:
                response = (
                    self.service.calendarList()
                    .list(pageToken=page_token)
                    .execute()
                )
                for item in response.get("items", []):
                    result.append(
                        CalendarRef(id=item["id"], name=item.get("summary") or item["id"])
                    )
                page_token = response.get("nextPageToken")
                if not page_token:
                    break

            logger.info(f"Found {len(result)} Google calendars")
            return result

        except ProviderQueryError:
            raise
        except Exception as e:
            raise ProviderQueryError(f"Failed to list Google calendars: {e}") from e

    def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: Optional[datetime] = None,
        max_results: int = 10,
        order_by: str = "startTime",
        single_events: bool = True,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "calendarId": calendar_id,
            "maxResults": max_results,
            "orderBy": order_by,
            "singleEvents": single_events,
            "timeMin": to_rfc3339(time_min),
        }
        if time_max is not None:
            params["timeMax"] = to_rfc3339(time_max)

        try:
            response = self.service.events().list(**params).execute()
        except ProviderQueryError:
            raise
        except Exception as e:
            raise ProviderQueryError(
                f"Failed to read events of calendar {calendar_id}: {e}"
            ) from e

        items = response.get("items", [])
        logger.debug(f"Read {len(items)} events from {calendar_id}")
        return items
