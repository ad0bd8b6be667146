"""Framework-free HTTP binding for the widget service.

:func:`create_http_handler` returns an async function that takes a
request as ``(method, path, headers, body)`` and returns
``(status_code, headers, body)``, so it can sit behind an ASGI adapter,
a test harness, or any custom server.

Routes
------
* ``POST /widgets`` -- create; body ``{"id", "name", "description"}``.
* ``GET /widgets`` -- list visible widgets.
* ``GET /widgets/{id}`` -- fetch one widget; ``{id}`` is percent-decoded.

The requesting user is taken from the ``X-User-ID`` header.  Errors are
rendered from :meth:`CAZIError.to_dict` with the error's own HTTP
status, so a hidden widget and an absent one yield the same 404 body.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cazi.core.config import CAZIConfig
from cazi.core.errors import (
    CAZIError,
    MalformedRequest,
    MissingCredentials,
    UnknownRoute,
)
from cazi.core.types import ResourceReference, Subject
from cazi.widgets.domain import Widget
from cazi.widgets.service import (
    CreateWidgetRequest,
    GetWidgetRequest,
    ListWidgetsRequest,
    WidgetService,
)

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
USER_HEADER = "X-User-ID"
WIDGETS_PATH = "/widgets"

WidgetHandler = Callable[
    [str, str, dict[str, str], bytes],
    Coroutine[Any, Any, tuple[int, dict[str, str], str]],
]
"""``(method, path, headers, body) -> (status, headers, body)``"""


class CreateWidgetBody(BaseModel):
    """JSON body of ``POST /widgets``."""

    model_config = ConfigDict(strict=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""


def _header(headers: dict[str, str], name: str) -> str:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return ""


def _widget_json(widget: Widget) -> dict[str, Any]:
    return widget.to_record()


def create_http_handler(
    service: WidgetService,
    *,
    config: CAZIConfig | None = None,
) -> WidgetHandler:
    """Create an async HTTP request handler for *service*.

    Parameters
    ----------
    service:
        The :class:`WidgetService` requests are routed to.
    config:
        Supplies the subject type used for ``X-User-ID`` references.

    Returns
    -------
    WidgetHandler
        An async function with signature
        ``(method, path, headers, body) -> (status_code, headers, body)``.
    """
    subject_type = (config or CAZIConfig()).subject_type

    def subject_from(headers: dict[str, str]) -> Subject:
        user_id = _header(headers, USER_HEADER).strip()
        if not user_id:
            raise MissingCredentials(f"Missing {USER_HEADER} header")
        return Subject(assertion=ResourceReference(type=subject_type, id=user_id))

    async def handler(
        method: str,
        path: str,
        headers: dict[str, str],
        body: bytes,
    ) -> tuple[int, dict[str, str], str]:
        """Process one HTTP request."""
        response_headers: dict[str, str] = {"Content-Type": JSON_CONTENT_TYPE}
        method = method.upper()
        path = path.split("?", 1)[0].rstrip("/") or "/"

        try:
            if path == WIDGETS_PATH and method == "POST":
                subject = subject_from(headers)
                try:
                    payload = CreateWidgetBody.model_validate_json(body or b"")
                except ValidationError as exc:
                    raise MalformedRequest(
                        "Invalid widget body",
                        details={"errors": exc.error_count()},
                    ) from exc
                widget = await service.create_widget(
                    CreateWidgetRequest(
                        subject=subject,
                        widget_id=payload.id,
                        name=payload.name,
                        description=payload.description,
                    )
                )
                return (201, response_headers, json.dumps(_widget_json(widget)))

            if path == WIDGETS_PATH and method == "GET":
                widgets = await service.list_widgets(
                    ListWidgetsRequest(subject=subject_from(headers))
                )
                return (
                    200,
                    response_headers,
                    json.dumps([_widget_json(widget) for widget in widgets]),
                )

            prefix = WIDGETS_PATH + "/"
            widget_id = path[len(prefix):] if path.startswith(prefix) else ""
            if widget_id and "/" not in widget_id and method == "GET":
                widget = await service.get_widget(
                    GetWidgetRequest(
                        subject=subject_from(headers), widget_id=unquote(widget_id)
                    )
                )
                return (200, response_headers, json.dumps(_widget_json(widget)))

            raise UnknownRoute(
                f"No route for {method} {path}",
                details={"method": method, "path": path},
            )

        except CAZIError as exc:
            logger.debug("%s %s -> %s", method, path, exc.code)
            return (exc.http_status, response_headers, json.dumps(exc.to_dict()))

        except Exception as exc:
            logger.exception("Unhandled error serving %s %s", method, path)
            fallback = CAZIError(
                f"Internal server error: {type(exc).__name__}",
                details={"exception_type": type(exc).__name__},
            )
            return (500, response_headers, json.dumps(fallback.to_dict()))

    return handler
