"""Tests for event queries and normalization."""

import pytest
import pytz

from conftest import NOW, TODAY, TOMORROW
from googlecal_sync.models.event import Event
from googlecal_sync.sync.fetcher import EventFetcher
from googlecal_sync.utils.exceptions import NoEventsError


@pytest.fixture
def fetcher(provider, clock):
    return EventFetcher(provider, pytz.utc, clock=clock)


def test_fetch_events_normalizes_timed_events(fetcher, provider, sample_events):
    provider.events["team@x"] = sample_events

    events = fetcher.fetch_events("team@x", TODAY, TOMORROW)

    assert events == [
        Event(summary="Standup", start="09:00 am", end="09:15 am"),
        Event(summary="Review", start="02:30 pm", end="03:30 pm"),
    ]
    assert provider.calls == [
        ("list_events", "team@x", TODAY, TOMORROW, 10, "startTime", True)
    ]


def test_fetch_events_open_ended_window_defaults_to_now(fetcher, provider, sample_events):
    provider.events["team@x"] = sample_events

    fetcher.fetch_events("team@x", max_results=3, order_by="updated", single_events=False)

    assert provider.calls == [("list_events", "team@x", NOW, None, 3, "updated", False)]


def test_zero_items_raises_no_events(fetcher, provider):
    with pytest.raises(NoEventsError):
        fetcher.fetch_events("empty@x", TODAY, TOMORROW)


def test_query_failure_returns_empty(fetcher, provider):
    provider.failing_calendars.add("broken@x")

    assert fetcher.fetch_events("broken@x", TODAY, TOMORROW) == []


def test_all_day_event_falls_back_to_date(fetcher):
    event = fetcher.normalize(
        {"summary": "Holiday", "start": {"date": "2026-10-19"}, "end": {"date": "2026-10-20"}},
        NOW,
    )

    assert event == Event(summary="Holiday", start="12:00 am", end="12:00 am")


def test_unparseable_times_render_reference(fetcher):
    event = fetcher.normalize(
        {"start": {"dateTime": "not a time"}, "end": {}},
        NOW,
    )

    assert event == Event(summary="", start="10:00 am", end="10:00 am")


def test_times_render_in_configured_zone(provider, clock):
    fetcher = EventFetcher(provider, pytz.timezone("Europe/Zurich"), clock=clock)

    event = fetcher.normalize(
        {
            "summary": "Lunch",
            "start": {"dateTime": "2026-10-19T10:00:00Z"},
            "end": {"dateTime": "2026-10-19T11:00:00+00:00"},
        },
        NOW,
    )

    # Zurich is UTC+2 until the last Sunday of October
    assert (event.start, event.end) == ("12:00 pm", "01:00 pm")
