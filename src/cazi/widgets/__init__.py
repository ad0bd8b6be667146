"""Widgets: a reference resource service built on CAZI.

Shows the expression delegation protocol end to end: a service asks an
:class:`~cazi.core.interfaces.Authorizer` for a decision and hands its
filter, unchanged, to one of two interchangeable repositories.
"""
from __future__ import annotations

from cazi.widgets.domain import (
    WIDGET_FIELDS,
    Widget,
    WidgetID,
    WidgetNotFound,
    WidgetRepository,
)
from cazi.widgets.handlers import (
    USER_HEADER,
    CreateWidgetBody,
    WidgetHandler,
    create_http_handler,
)
from cazi.widgets.memory import InMemoryWidgetRepository
from cazi.widgets.service import (
    CreateWidgetRequest,
    GetWidgetRequest,
    ListWidgetsRequest,
    WidgetService,
)
from cazi.widgets.sql import SQLWidgetRepository, WidgetRow

__all__ = [
    "CreateWidgetBody",
    "CreateWidgetRequest",
    "GetWidgetRequest",
    "InMemoryWidgetRepository",
    "ListWidgetsRequest",
    "SQLWidgetRepository",
    "USER_HEADER",
    "WIDGET_FIELDS",
    "Widget",
    "WidgetHandler",
    "WidgetID",
    "WidgetNotFound",
    "WidgetRepository",
    "WidgetRow",
    "WidgetService",
    "create_http_handler",
]
