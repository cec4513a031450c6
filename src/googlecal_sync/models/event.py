"""Normalized event and day cache models."""

from datetime import datetime

from pydantic import BaseModel, Field


class Event(BaseModel):
    """Normalized calendar event with local times of day."""

    summary: str = ""
    start: str  # e.g. "09:30 am"
    end: str


class DayCacheEntry(BaseModel):
    """Cached events of one calendar for one local calendar day."""

    calendar_id: str
    day_start: datetime
    events: list[Event] = Field(default_factory=list)
    # False only for entries written before fetch tracking existed
    fetched: bool = False

    def is_current(self, today_start: datetime) -> bool:
        return self.day_start == today_start
