"""Widget application service.

Threads authorization decisions into repository queries:

* ``create_widget`` -- requires an unconditional ``ALLOW``; the owner is
  taken from the decision's requester context.
* ``get_widget`` -- passes the decision's filter to
  :meth:`~cazi.widgets.domain.WidgetRepository.find_by_id`.
* ``list_widgets`` -- one ``list_objects`` decision, one filtered scan.

The authorization call and the repository call of each operation share
a single deadline of ``decision_timeout_seconds``.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from cazi.claims.standard import RequesterClaims, requester_claims
from cazi.core.config import CAZIConfig
from cazi.core.errors import DeadlineExceeded, MissingContextClaim
from cazi.core.interfaces import Authorizer
from cazi.core.types import (
    CheckRequest,
    Expression,
    ListObjectsRequest,
    Object,
    ResourceReference,
    Subject,
)
from cazi.delegation.protocol import query_filter, require_unconditional
from cazi.widgets.domain import Widget, WidgetID, WidgetRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CreateWidgetRequest:
    subject: Subject
    widget_id: str
    name: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class GetWidgetRequest:
    subject: Subject
    widget_id: str


@dataclass(frozen=True, slots=True)
class ListWidgetsRequest:
    subject: Subject
    filter: Expression = field(default_factory=Expression)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class WidgetService:
    """Widget operations guarded by an :class:`Authorizer`.

    Parameters
    ----------
    repository:
        Widget storage; receives every filter unchanged.
    authorizer:
        The Authorization Port.
    config:
        Object type and deadline settings.
    requester:
        Claim set used to read the owner from decisions.
    """

    def __init__(
        self,
        repository: WidgetRepository,
        authorizer: Authorizer,
        *,
        config: CAZIConfig | None = None,
        requester: RequesterClaims | None = None,
    ) -> None:
        self._repository = repository
        self._authorizer = authorizer
        self._config = config or CAZIConfig()
        self._requester = requester or requester_claims()

    async def create_widget(self, request: CreateWidgetRequest) -> Widget:
        """Create a widget owned by the requester.

        Raises
        ------
        AccessDenied
            Unless the decision is an unconditional ``ALLOW``.
        MissingContextClaim
            If the decision does not name the requester.
        DeadlineExceeded
            If authorization and storage together exceed the deadline.
        """
        async with self._deadline("create_widget"):
            response = await self._authorizer.check(
                CheckRequest(
                    subject=request.subject,
                    verb="create",
                    object=self._object(request.widget_id),
                )
            )
            require_unconditional(response)

            owner_id, found = self._requester.sub.get(
                response.context.requester_context
            )
            if not found or not owner_id:
                raise MissingContextClaim(
                    "Authorization context did not provide a subject identifier",
                    details={"claim": self._requester.sub.key},
                )

            widget = Widget(
                id=WidgetID(request.widget_id),
                name=request.name,
                description=request.description,
                owner_id=owner_id,
            )
            await self._repository.save(widget)

        logger.info("Created widget %s", widget.id)
        return widget

    async def get_widget(self, request: GetWidgetRequest) -> Widget:
        """Return one widget visible to the requester.

        Raises
        ------
        WidgetNotFound
            If the widget is absent *or* the requester may not see it.
        AccessDenied
            If the decision is ``DENY``.
        """
        async with self._deadline("get_widget"):
            response = await self._authorizer.check(
                CheckRequest(
                    subject=request.subject,
                    verb="read",
                    object=self._object(request.widget_id),
                )
            )
            filter = query_filter(response)
            return await self._repository.find_by_id(
                WidgetID(request.widget_id), filter
            )

    async def list_widgets(self, request: ListWidgetsRequest) -> list[Widget]:
        """Return every widget visible to the requester, ordered by id."""
        async with self._deadline("list_widgets"):
            response = await self._authorizer.list_objects(
                ListObjectsRequest(
                    subject=request.subject,
                    verb="read",
                    object_type=self._config.object_type,
                    filter=request.filter,
                )
            )
            filter = query_filter(response)
            return await self._repository.find_all(filter)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _object(self, widget_id: str) -> Object:
        return Object(
            assertion=ResourceReference(
                type=self._config.object_type, id=widget_id
            )
        )

    @contextlib.asynccontextmanager
    async def _deadline(self, operation: str) -> AsyncIterator[None]:
        timeout = self._config.decision_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                yield
        except TimeoutError as exc:
            logger.warning("%s exceeded its %.3fs deadline", operation, timeout)
            raise DeadlineExceeded(
                details={"operation": operation, "timeout_seconds": timeout},
            ) from exc
