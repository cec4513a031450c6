"""Event queries and normalization."""

import logging
from datetime import datetime, tzinfo
from typing import Any, Callable, Optional

from ..models.event import Event
from ..providers.base import CalendarProvider
from ..utils.date_utils import format_time_of_day, parse_event_time, utc_now
from ..utils.exceptions import NoEventsError, ProviderQueryError

logger = logging.getLogger(__name__)


class EventFetcher:
    """Fetch events of a calendar and normalize them to local times of day."""

    def __init__(
        self,
        provider: CalendarProvider,
        tz: tzinfo,
        max_results: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.provider = provider
        self.tz = tz
        self.max_results = max_results
        self.clock = clock

    def fetch_events(
        self,
        calendar_id: str,
        time_from: Optional[datetime] = None,
        time_to: Optional[datetime] = None,
        max_results: Optional[int] = None,
        order_by: str = "startTime",
        single_events: bool = True,
    ) -> list[Event]:
        """
        Fetch events in ``[time_from, time_to)``.

        Args:
            calendar_id: Calendar ID
            time_from: Window start (defaults to now)
            time_to: Window end (None for open-ended)
            max_results: Maximum number of events
            order_by: Provider ordering key
            single_events: Expand recurring events

        Returns:
            Normalized events, or an empty list if the query failed

        Raises:
            NoEventsError: If the provider returned no events
        """
        try:
            return self.query_events(
                calendar_id, time_from, time_to, max_results, order_by, single_events
            )
        except ProviderQueryError as e:
            logger.warning(f"Event query for {calendar_id} failed: {e}")
            return []

    def query_events(
        self,
        calendar_id: str,
        time_from: Optional[datetime] = None,
        time_to: Optional[datetime] = None,
        max_results: Optional[int] = None,
        order_by: str = "startTime",
        single_events: bool = True,
    ) -> list[Event]:
        """
        Like fetch_events, but query failures are raised.

        Raises:
            NoEventsError: If the provider returned no events
            ProviderQueryError: If the query failed
        """
        time_from = time_from or self.clock()
        items = self.provider.list_events(
            calendar_id,
            time_min=time_from,
            time_max=time_to,
            max_results=max_results or self.max_results,
            order_by=order_by,
            single_events=single_events,
        )

        if not items:
            raise NoEventsError(f"No upcoming events in calendar {calendar_id}")

        return [self.normalize(item, time_from) for item in items]

    def normalize(self, item: dict[str, Any], reference: datetime) -> Event:
        """
        Convert a raw provider record to an Event.

        Times that cannot be parsed render as ``reference``.
        """
        return Event(
            summary=item.get("summary") or "",
            start=self._time_of_day(item.get("start"), reference),
            end=self._time_of_day(item.get("end"), reference),
        )

    def _time_of_day(self, field: Optional[dict[str, Any]], reference: datetime) -> str:
        field = field or {}
        # Timed events carry dateTime, all-day events only date
        value = field.get("dateTime") or field.get("date")
        moment = parse_event_time(value, self.tz) or reference
        return format_time_of_day(moment, self.tz)
