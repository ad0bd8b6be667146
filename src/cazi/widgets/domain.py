"""Widget aggregate and its repository contract."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NewType, Protocol, runtime_checkable

from cazi.core.errors import NotFound
from cazi.core.interfaces import ResourceRepository

WidgetID = NewType("WidgetID", str)

WIDGET_FIELDS: tuple[str, ...] = ("id", "name", "description", "owner_id")
"""Record fields visible to filter expressions."""


@dataclass(frozen=True, slots=True)
class Widget:
    """A small owned resource."""

    id: WidgetID
    name: str
    description: str
    owner_id: str

    def to_record(self) -> dict[str, Any]:
        """Return a fresh record mapping, the shape filters are evaluated on."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "owner_id": self.owner_id,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Widget:
        return cls(
            id=WidgetID(record["id"]),
            name=record["name"],
            description=record["description"],
            owner_id=record["owner_id"],
        )


class WidgetNotFound(NotFound):
    """No visible widget has the requested id.

    Raised identically whether the widget is absent or excluded by the
    caller's filter.
    """

    message = "Widget not found"


@runtime_checkable
class WidgetRepository(ResourceRepository[Widget, WidgetID], Protocol):
    """Storage for widgets honouring delegated filters.

    ``find_by_id`` raises :class:`WidgetNotFound` for both absent and
    filtered-out widgets.  ``find_all`` returns visible widgets ordered
    by id.  Both raise
    :class:`~cazi.core.errors.UnsupportedExpressionLanguage` before any
    storage access when the filter language cannot be evaluated.
    """
