"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta

import pytest
import pytz

from googlecal_sync.config import AppConfig
from googlecal_sync.models.calendar import CalendarRef
from googlecal_sync.models.token import Token
from googlecal_sync.providers.base import CalendarProvider
from googlecal_sync.stores.memory import InMemoryStore
from googlecal_sync.utils.exceptions import ProviderQueryError

NOW = pytz.utc.localize(datetime(2026, 10, 19, 10, 0))
TODAY = pytz.utc.localize(datetime(2026, 10, 19))
TOMORROW = pytz.utc.localize(datetime(2026, 10, 20))
YESTERDAY = pytz.utc.localize(datetime(2026, 10, 18))


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class CountingStore(InMemoryStore):
    """In-memory store that counts save() calls."""

    def __init__(self, data=None):
        super().__init__(data)
        self.saves = 0

    def save(self) -> None:
        self.saves += 1


class FakeCalendarProvider(CalendarProvider):
    """In-memory provider recording every call."""

    def __init__(self, credentials=None):
        self.credentials = credentials
        self.calls: list[tuple] = []
        self.loaded_tokens: list[Token] = []
        self.calendars: list[CalendarRef] = []
        self.events: dict[str, list[dict]] = {}
        self.failing_calendars: set[str] = set()
        self.events_error: Exception | None = None
        self.calendars_error = False
        self.refresh_result: Token | Exception = Token(
            access_token="refreshed", expiry=NOW + timedelta(hours=1)
        )
        self.code_result: Token | Exception = Token(
            access_token="from-code",
            refresh_token="refresh-from-code",
            expiry=NOW + timedelta(hours=1),
        )

    def auth_url(self) -> str:
        self.calls.append(("auth_url",))
        return "https://auth.example/consent"

    def _result(self, result):
        if isinstance(result, Exception):
            raise result
        return result

    def exchange_auth_code(self, code: str) -> Token:
        self.calls.append(("exchange_auth_code", code))
        return self._result(self.code_result)

    def exchange_refresh_token(self, refresh_token: str) -> Token:
        self.calls.append(("exchange_refresh_token", refresh_token))
        return self._result(self.refresh_result)

    def set_token(self, token: Token) -> None:
        self.loaded_tokens.append(token)

    def list_calendars(self) -> list[CalendarRef]:
        self.calls.append(("list_calendars",))
        if self.calendars_error:
            raise ProviderQueryError("calendar list unavailable")
        return list(self.calendars)

    def list_events(
        self,
        calendar_id,
        time_min,
        time_max=None,
        max_results=10,
        order_by="startTime",
        single_events=True,
    ):
        self.calls.append(
            ("list_events", calendar_id, time_min, time_max, max_results, order_by, single_events)
        )
        if self.events_error is not None:
            raise self.events_error
        if calendar_id in self.failing_calendars:
            raise ProviderQueryError(f"{calendar_id} unavailable")
        return list(self.events.get(calendar_id, []))

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def provider():
    return FakeCalendarProvider()


@pytest.fixture
def provider_factory(provider):
    def factory(credentials):
        provider.credentials = credentials
        return provider

    return factory


@pytest.fixture
def config_store():
    return CountingStore({"auth": {"client_id": "client-id", "client_secret": "client-secret"}})


@pytest.fixture
def state_store():
    return InMemoryStore()


@pytest.fixture
def app_config():
    return AppConfig.model_construct(timezone="UTC", max_results=10, request_timeout=5.0)


@pytest.fixture
def valid_token():
    return Token(
        access_token="stored",
        refresh_token="stored-refresh",
        expiry=NOW + timedelta(minutes=30),
    )


@pytest.fixture
def expired_token():
    return Token(
        access_token="stale",
        refresh_token="stored-refresh",
        expiry=NOW - timedelta(minutes=5),
    )


def timed_event(summary: str, start: str, end: str) -> dict:
    return {"summary": summary, "start": {"dateTime": start}, "end": {"dateTime": end}}


@pytest.fixture
def sample_events():
    """Raw provider records for 2026-10-19."""
    return [
        timed_event("Standup", "2026-10-19T09:00:00Z", "2026-10-19T09:15:00Z"),
        timed_event("Review", "2026-10-19T14:30:00Z", "2026-10-19T15:30:00Z"),
    ]
