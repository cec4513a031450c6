"""Calendar metadata models."""

from pydantic import BaseModel


class CalendarRef(BaseModel):
    """Calendar visible to the authenticated account."""

    id: str
    name: str

    model_config = {"frozen": True}


class CalendarSelection(BaseModel):
    """Operator-chosen calendar with its display weight."""

    id: str
    name: str = ""
    weight: int = 0


class CatalogEntry(BaseModel):
    """Remote calendar merged with the configured selection."""

    id: str
    name: str
    weight: int
    selected: bool = False

    model_config = {"frozen": True}
