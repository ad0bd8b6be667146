"""CAZI abstract interfaces.

This module defines the *structural* interfaces (``typing.Protocol``) at
the authorization boundary:

* :class:`Authorizer` -- the Authorization Port that policy engines
  implement and application services call.
* :class:`ExpressionEvaluator` -- a black box, keyed by
  :attr:`Expression.language`, that turns an expression into a boolean
  predicate over one record.
* :class:`ResourceRepository` -- storage that enforces a delegated
  expression as an additional query filter.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

Cancellation and deadlines are asyncio's: a caller wraps the awaits in
``asyncio.timeout`` (or cancels the task) and implementations let
:class:`asyncio.CancelledError` propagate.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

from cazi.core.types import (
    CheckRequest,
    CheckResponse,
    Expression,
    ListObjectsRequest,
    ListObjectsResponse,
)

R = TypeVar("R")
K = TypeVar("K", contravariant=True)


@runtime_checkable
class Authorizer(Protocol):
    """The Authorization Port.

    Implementations may be local or remote.  They MUST be safe for
    concurrent invocation without external locking, and both operations
    MUST be side-effect free and safe to retry.

    Malformed requests raise :class:`~cazi.core.errors.RequestError`
    subclasses; they are never answered with ``DENY``.
    """

    async def check(self, request: CheckRequest) -> CheckResponse:
        """Decide whether the subject may perform the verb on the object.

        The result is ``ALLOW``, ``DENY``, or ``CONDITIONAL`` with an
        expression the caller must evaluate against its own data.
        """
        ...

    async def list_objects(
        self, request: ListObjectsRequest
    ) -> ListObjectsResponse:
        """Decide access for a whole object type.

        Returns a single filter expression meant for every candidate,
        never one decision per object.
        """
        ...


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Evaluates expressions of one language against a record."""

    language: str

    def evaluate(self, source: str, variables: Mapping[str, Any]) -> bool:
        """Return whether *source* holds for *variables*.

        Raises :class:`~cazi.core.errors.ExpressionEvaluationError` when
        the expression cannot be compiled or does not yield a boolean.
        """
        ...


@runtime_checkable
class ResourceRepository(Protocol[R, K]):
    """Storage that honours the expression delegation protocol.

    ``filter`` is the expression obtained from a decision.  An empty
    expression means no additional filter.  A non-empty one is ANDed with
    the identity or selection predicate of the query.
    """

    async def save(self, record: R) -> None:
        """Store *record*, replacing any record with the same id."""
        ...

    async def find_by_id(self, id: K, filter: Expression) -> R:
        """Return the record with *id* that also satisfies *filter*.

        Raises :class:`~cazi.core.errors.NotFound` identically whether the
        record is absent or fails the filter, and
        :class:`~cazi.core.errors.UnsupportedExpressionLanguage` when the
        filter's language cannot be evaluated.
        """
        ...

    async def find_all(self, filter: Expression) -> list[R]:
        """Return every record satisfying *filter*."""
        ...
