"""Per-calendar cache of today's events."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..models.event import DayCacheEntry, Event
from ..stores.base import StateStore
from ..utils.date_utils import next_day_start, start_of_day, utc_now
from ..utils.exceptions import NoEventsError
from .catalog import CalendarCatalog
from .fetcher import EventFetcher

logger = logging.getLogger(__name__)

# State store key holding {calendar_id: DayCacheEntry}
STATE_KEY = "today_events"


@dataclass
class RebuildResult:
    """Result of a rebuild over all calendars."""

    refreshed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class EventCache:
    """
    Today's events per calendar, refreshed once per local calendar day.

    An entry is served as-is while its ``day_start`` is today's local
    midnight and it was written by a fetch attempt. Failed fetches store an
    empty entry for today so the provider is not queried again until the
    next day or a forced sync.
    """

    def __init__(
        self,
        state_store: StateStore,
        fetcher: Optional[EventFetcher],
        tz: tzinfo,
        catalog: Optional[CalendarCatalog] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.state_store = state_store
        self.fetcher = fetcher
        self.tz = tz
        self.catalog = catalog
        self.clock = clock

    def today_start(self) -> datetime:
        return start_of_day(self.clock(), self.tz)

    def _entries(self) -> dict[str, Any]:
        entries = self.state_store.get(STATE_KEY)
        return entries if isinstance(entries, dict) else {}

    def get_entry(self, calendar_id: str) -> Optional[DayCacheEntry]:
        raw = self._entries().get(calendar_id)
        if not raw:
            return None
        try:
            return DayCacheEntry.model_validate({**raw, "calendar_id": calendar_id})
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry for {calendar_id}: {e}")
            return None

    def _store_entry(self, entry: DayCacheEntry) -> None:
        # Pick up entries other processes wrote since our last read
        self.state_store.reload()
        entries = self._entries()
        entries[entry.calendar_id] = entry.model_dump(mode="json")
        self.state_store.set(STATE_KEY, entries)

    @staticmethod
    def needs_refresh(
        entry: Optional[DayCacheEntry], today_start: datetime, force_sync: bool = False
    ) -> bool:
        if force_sync or entry is None:
            return True
        if not entry.is_current(today_start):
            return True
        # Legacy entries cannot tell "fetched, nothing today" from "never fetched"
        return not entry.events and not entry.fetched

    def get_today_events(self, calendar_id: str, force_sync: bool = False) -> list[Event]:
        """
        Get today's events for a calendar, fetching when stale.

        Args:
            calendar_id: Calendar ID
            force_sync: Always query the provider

        Returns:
            Today's events (empty if none or the fetch failed)
        """
        today_start = self.today_start()
        entry = self.get_entry(calendar_id)

        if not self.needs_refresh(entry, today_start, force_sync):
            logger.debug(f"Serving cached events for {calendar_id}")
            return entry.events

        if self.fetcher is None:
            logger.debug(f"Not authenticated, cannot refresh events for {calendar_id}")
            return []

        events, _error = self._refresh(calendar_id, today_start)
        return events

    def _refresh(
        self, calendar_id: str, today_start: datetime
    ) -> tuple[list[Event], Optional[Exception]]:
        """
        Fetch today's events and store them, empty on failure.

        Returns:
            Events and the fetch error, if the query failed
        """
        tomorrow_start = next_day_start(today_start, self.tz)
        error = None
        try:
            events = self.fetcher.query_events(calendar_id, today_start, tomorrow_start)
        except NoEventsError as e:
            logger.info(f"No events for {calendar_id} today: {e}")
            events = []
        except Exception as e:
            logger.warning(f"Fetching events for {calendar_id} failed: {e}")
            events = []
            error = e

        self._store_entry(
            DayCacheEntry(
                calendar_id=calendar_id,
                day_start=today_start,
                events=events,
                fetched=True,
            )
        )
        logger.debug(f"Cached {len(events)} events for {calendar_id}")
        return events, error

    def rebuild_all(self) -> RebuildResult:
        """Force-refresh today's events of every calendar in the catalog."""
        result = RebuildResult()
        if self.catalog is None or self.fetcher is None:
            return result

        today_start = self.today_start()
        for calendar_id in self.catalog.list_remote_calendars():
            try:
                _events, error = self._refresh(calendar_id, today_start)
            except Exception as e:
                error = e
            if error is None:
                result.refreshed.append(calendar_id)
                continue
            error_msg = f"Failed to rebuild events for {calendar_id}: {error}"
            logger.error(error_msg)
            result.errors.append(error_msg)

        logger.info(
            f"Rebuild complete: {len(result.refreshed)} refreshed, "
            f"{len(result.errors)} errors"
        )
        return result
