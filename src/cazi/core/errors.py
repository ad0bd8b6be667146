"""CAZI error hierarchy.

Every failure the authorization boundary can report is a concrete
exception class carrying a stable code and a recommended HTTP status,
so that presentation code can map outcomes without inspecting messages.

Hierarchy
---------
::

    CAZIError
    +-- RequestError        (CAZI-E1xx)  malformed request shape
    +-- DecisionError       (CAZI-E2xx)  decision outcomes the caller must stop on
    +-- RepositoryError     (CAZI-E3xx)  storage and expression delegation
    +-- AvailabilityError   (CAZI-E4xx)  cancellation and deadlines

Usage
-----
Raise concrete subclasses directly::

    raise UnknownVerb(details={"verb": "archive"})

Catch by category::

    try:
        ...
    except RequestError:
        # handles InvalidSubject, InvalidObject, UnknownVerb, etc.
        ...

A request-shape error is never a denial: ``InvalidSubject`` and
``AccessDenied`` live in different categories on purpose.
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class CAZIError(Exception):
    """Base exception for all CAZI errors.

    Attributes
    ----------
    code : str
        CAZI error code, e.g. ``"CAZI-E100"``.
    http_status : int
        Recommended HTTP status code for this error.
    message : str
        Human-readable description (MUST NOT contain claims or tokens).
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "CAZI-E000"
    http_status: int = 500
    message: str = "Unknown authorization error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a JSON-compatible error body."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class RequestError(CAZIError):
    """CAZI-E1xx -- The request itself is malformed."""

    code = "CAZI-E1XX"
    http_status = 400


class DecisionError(CAZIError):
    """CAZI-E2xx -- The decision forbids proceeding, or is unusable."""

    code = "CAZI-E2XX"
    http_status = 403


class RepositoryError(CAZIError):
    """CAZI-E3xx -- Storage lookups and expression delegation."""

    code = "CAZI-E3XX"
    http_status = 500


class AvailabilityError(CAZIError):
    """CAZI-E4xx -- The call did not complete in time."""

    code = "CAZI-E4XX"
    http_status = 503


# ===================================================================
# CAZI-E1xx  Request-shape errors
# ===================================================================

class InvalidSubject(RequestError):
    """CAZI-E100 -- The subject assertion is not of an accepted kind."""

    code = "CAZI-E100"
    message = "Subject assertion is not acceptable to this authorizer"
    resolution = (
        "Identify the subject with a supported assertion variant and type."
    )


class InvalidObject(RequestError):
    """CAZI-E101 -- The object assertion is not of an accepted kind."""

    code = "CAZI-E101"
    message = "Object assertion is not acceptable to this authorizer"
    resolution = (
        "Identify the object with a resource reference of a supported type."
    )


class UnknownVerb(RequestError):
    """CAZI-E102 -- The verb is not defined by the policy."""

    code = "CAZI-E102"
    message = "Verb is not recognized by the policy"


class UnsupportedObjectType(RequestError):
    """CAZI-E103 -- ``list_objects`` was asked for an unknown object type."""

    code = "CAZI-E103"
    message = "Object type is not supported by this authorizer"


class InvalidFilter(RequestError):
    """CAZI-E104 -- A caller-supplied filter cannot be combined with policy."""

    code = "CAZI-E104"
    message = "Filter expression cannot be combined with the policy filter"
    resolution = "Express the filter in the language the authorizer emits."


class MalformedRequest(RequestError):
    """CAZI-E105 -- A transport request could not be parsed."""

    code = "CAZI-E105"
    message = "Request could not be parsed"


class MissingCredentials(RequestError):
    """CAZI-E106 -- The transport request does not identify a subject."""

    code = "CAZI-E106"
    http_status = 401
    message = "Request does not identify a subject"


class UnknownRoute(RequestError):
    """CAZI-E107 -- No operation is served at the requested method and path."""

    code = "CAZI-E107"
    http_status = 404
    message = "No such route"


# ===================================================================
# CAZI-E2xx  Decision errors
# ===================================================================

class AccessDenied(DecisionError):
    """CAZI-E200 -- The authorizer denied the operation."""

    code = "CAZI-E200"
    http_status = 403
    message = "Access denied"


class UndecidedResponse(DecisionError):
    """CAZI-E201 -- The authorizer returned no decision.

    ``DecisionKind.UNKNOWN`` is the zero value of the decision type and is
    treated as an implementation fault of the authorizer, never as allow.
    """

    code = "CAZI-E201"
    http_status = 500
    message = "Authorizer returned an unknown decision"
    resolution = "Fix the authorizer to return allow, deny or conditional."


class InvalidDecision(DecisionError):
    """CAZI-E202 -- A conditional decision carries no expression."""

    code = "CAZI-E202"
    http_status = 500
    message = "Conditional decision does not carry an expression"


class MissingContextClaim(DecisionError):
    """CAZI-E203 -- The authorization context lacks a claim the caller needs."""

    code = "CAZI-E203"
    http_status = 500
    message = "Authorization context does not provide a required claim"


# ===================================================================
# CAZI-E3xx  Repository errors
# ===================================================================

class NotFound(RepositoryError):
    """CAZI-E300 -- The record does not exist or fails the filter.

    Both cases are deliberately indistinguishable.
    """

    code = "CAZI-E300"
    http_status = 404
    message = "Resource not found"


class UnsupportedExpressionLanguage(RepositoryError):
    """CAZI-E301 -- The repository cannot evaluate the filter's language.

    A capability error, never downgraded to allow or conflated with
    :class:`NotFound`.
    """

    code = "CAZI-E301"
    http_status = 500
    message = "Repository does not support the filter expression language"


class ExpressionEvaluationError(RepositoryError):
    """CAZI-E302 -- The filter could not be compiled or evaluated."""

    code = "CAZI-E302"
    http_status = 500
    message = "Filter expression could not be evaluated"


# ===================================================================
# CAZI-E4xx  Availability errors
# ===================================================================

class DeadlineExceeded(AvailabilityError):
    """CAZI-E400 -- The decision or the filtered query ran out of time."""

    code = "CAZI-E400"
    http_status = 504
    message = "Authorization deadline exceeded"
    resolution = "Retry the request; decisions are safe to retry."
