"""Expression delegation, caller side.

Turns a decision into what the caller must do next:

1. **ALLOW** -- query storage with no additional filter.
2. **DENY** -- refuse immediately; storage is never consulted.
3. **CONDITIONAL** -- pass the condition *unchanged* to the repository,
   which ANDs it with the query's own predicate.
4. **UNKNOWN** -- the authorizer failed to decide; this is an error and
   never a pass-through.

Treating a conditional decision as an allow is a security defect, which
is why callers obtain their filter from :func:`query_filter` instead of
inspecting ``decision`` themselves.
"""
from __future__ import annotations

import logging

from cazi.core.errors import AccessDenied, InvalidDecision, UndecidedResponse
from cazi.core.types import (
    CheckResponse,
    DecisionKind,
    Expression,
    ListObjectsResponse,
)

logger = logging.getLogger(__name__)

Decision = CheckResponse | ListObjectsResponse


def validate_decision(response: Decision) -> None:
    """Check that *response* carries a usable final decision.

    Responses built through normal validation already satisfy the
    conditional invariant; this also covers instances created with
    ``model_construct`` by remote authorizer clients.

    Raises
    ------
    UndecidedResponse
        If the decision is ``UNKNOWN``.
    InvalidDecision
        If a conditional decision has no expression language.
    """
    if response.decision == DecisionKind.UNKNOWN:
        raise UndecidedResponse()
    if response.decision == DecisionKind.CONDITIONAL and not response.condition:
        raise InvalidDecision()


def query_filter(response: Decision) -> Expression:
    """Return the filter a repository query must apply for *response*.

    Returns
    -------
    Expression
        The zero-value expression for ``ALLOW``; the condition itself for
        ``CONDITIONAL``.

    Raises
    ------
    AccessDenied
        If the decision is ``DENY``.
    UndecidedResponse, InvalidDecision
        See :func:`validate_decision`.
    """
    validate_decision(response)
    if response.decision == DecisionKind.DENY:
        logger.info("Decision denied; storage not consulted")
        raise AccessDenied()
    if response.decision == DecisionKind.ALLOW:
        return Expression.none()

    logger.debug(
        "Delegating %s condition to repository", response.condition.language
    )
    return response.condition


def require_unconditional(response: Decision) -> None:
    """Require an unconditional allow.

    For operations with no stored record to filter (such as creating
    one), a condition cannot be enforced and is refused like a denial.

    Raises
    ------
    AccessDenied
        If the decision is ``DENY`` or ``CONDITIONAL``.
    UndecidedResponse, InvalidDecision
        See :func:`validate_decision`.
    """
    validate_decision(response)
    if response.decision != DecisionKind.ALLOW:
        logger.info(
            "Decision %s refused for unconditional operation",
            response.decision,
        )
        raise AccessDenied()
