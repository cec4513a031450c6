"""Date and time utilities for Google Calendar sync."""

import logging
import os
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path
from typing import Optional

import pytz

logger = logging.getLogger(__name__)

TIME_OF_DAY_FORMAT = "%I:%M %p"


def get_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Resolve a timezone by name, falling back to the system local zone.

    Args:
        name: IANA timezone name (e.g. "Europe/Zurich")

    Returns:
        tzinfo instance
    """
    if name:
        return pytz.timezone(name)
    return _local_timezone()


def _local_timezone(localtime: Path = Path("/etc/localtime")) -> tzinfo:
    """
    Find the IANA zone of the host from $TZ or the /etc/localtime symlink.

    Falls back to the current fixed UTC offset, which does not follow DST
    changes; set GOOGLECAL_TIMEZONE on such hosts.
    """
    candidates = [os.environ.get("TZ", "").lstrip(":")]
    if localtime.is_symlink():
        target = os.readlink(localtime)
        if "zoneinfo/" in target:
            candidates.append(target.split("zoneinfo/", 1)[1])

    for name in candidates:
        if not name:
            continue
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            logger.debug(f"Ignoring unknown local zone {name!r}")

    logger.warning(
        "Could not determine the local IANA timezone, using a fixed UTC offset; "
        "set GOOGLECAL_TIMEZONE"
    )
    return datetime.now().astimezone().tzinfo


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Args:
        dt: Datetime to convert

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def _localize(naive: datetime, tz: tzinfo) -> datetime:
    # pytz zones need localize() to pick the right DST offset
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def start_of_day(moment: datetime, tz: tzinfo) -> datetime:
    """
    Get local midnight of the calendar day containing ``moment``.

    Args:
        moment: Any aware datetime
        tz: Zone that defines the calendar day

    Returns:
        Aware datetime at 00:00 local time
    """
    local = ensure_utc(moment).astimezone(tz)
    return _localize(datetime(local.year, local.month, local.day), tz)


def next_day_start(day_start: datetime, tz: tzinfo) -> datetime:
    """Get local midnight of the day after ``day_start`` (DST safe)."""
    following = day_start.astimezone(tz).date() + timedelta(days=1)
    return _localize(datetime(following.year, following.month, following.day), tz)


def to_rfc3339(dt: datetime) -> str:
    """Format an aware datetime the way the Calendar API expects (timeMin/timeMax)."""
    return ensure_utc(dt).isoformat()


def parse_event_time(value: Optional[str], tz: tzinfo) -> Optional[datetime]:
    """
    Parse a provider date-time or all-day date string.

    Args:
        value: RFC 3339 date-time ("2026-10-19T09:30:00Z") or date ("2026-10-19")
        tz: Zone used to place all-day dates and naive date-times

    Returns:
        Aware datetime, or None if the value is missing or unparseable
    """
    if not value:
        return None
    try:
        if "T" in value:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = _localize(parsed, tz)
            return parsed
        day = date.fromisoformat(value)
        return _localize(datetime(day.year, day.month, day.day), tz)
    except ValueError:
        logger.debug(f"Could not parse event time {value!r}")
        return None


def format_time_of_day(dt: datetime, tz: tzinfo) -> str:
    """Render a datetime as local time of day, e.g. "09:30 am"."""
    return dt.astimezone(tz).strftime(TIME_OF_DAY_FORMAT).lower()
