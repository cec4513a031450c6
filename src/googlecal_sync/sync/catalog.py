"""Remote calendar listing merged with the configured selection."""

import logging
from typing import Optional

from pydantic import ValidationError

from ..models.calendar import CalendarSelection, CatalogEntry
from ..providers.base import CalendarProvider
from ..stores.base import ConfigStore
from ..utils.exceptions import ProviderQueryError

logger = logging.getLogger(__name__)


class CalendarCatalog:
    """Calendars of the authenticated account and their display order."""

    def __init__(self, provider: Optional[CalendarProvider], config_store: ConfigStore):
        self.provider = provider
        self.config_store = config_store

    def list_remote_calendars(self) -> dict[str, str]:
        """
        List calendars as ``{id: name}`` in provider order.

        Listing is best effort: provider failures yield an empty mapping.
        """
        if self.provider is None:
            return {}
        try:
            calendars = self.provider.list_calendars()
        except ProviderQueryError as e:
            logger.warning(f"Could not list calendars: {e}")
            return {}
        return {calendar.id: calendar.name for calendar in calendars}

    def selection(self) -> list[CalendarSelection]:
        """Configured calendars, as stored."""
        result = []
        for item in self.config_store.get("calendars") or []:
            try:
                result.append(CalendarSelection.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Ignoring invalid calendar selection {item!r}: {e}")
        return result

    @staticmethod
    def merge_with_selection(
        remote: dict[str, str], selection: list[CalendarSelection]
    ) -> list[CatalogEntry]:
        """
        Attach weights to remote calendars and sort by weight.

        Unselected calendars get the length of their id as weight. The sort
        is stable, so equal weights keep the remote order.
        """
        weights = {item.id: item.weight for item in selection}
        entries = [
            CatalogEntry(
                id=calendar_id,
                name=name,
                weight=weights.get(calendar_id, len(calendar_id)),
                selected=calendar_id in weights,
            )
            for calendar_id, name in remote.items()
        ]
        return sorted(entries, key=lambda entry: entry.weight)

    def entries(self) -> list[CatalogEntry]:
        return self.merge_with_selection(self.list_remote_calendars(), self.selection())
