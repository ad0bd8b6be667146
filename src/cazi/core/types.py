"""CAZI decision model.

This module defines every value type, enum, and Pydantic model exchanged
across the authorization boundary: the assertions that identify subjects
and objects, the request and response shapes of ``check`` and
``list_objects``, and the :class:`Expression` carried by conditional
decisions.

Key design decisions:
* :data:`Assertion` is a *closed* discriminated union over
  :class:`ClaimsAssertion`, :class:`OpaqueToken` and
  :class:`ResourceReference`.  Exactly one variant is present at a time;
  ``match`` statements over it are exhaustiveness-checked by type checkers.
* :class:`DecisionKind` defaults to ``UNKNOWN``, the zero value.  Responses
  validate the conditional invariant on construction.
* An :class:`Expression` with an empty ``language`` is the "no filter"
  sentinel.
* All Pydantic models use **v2** ``model_config`` with ``strict=True``;
  value objects are frozen.
"""
from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, NewType, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Value types (NewType wrappers)
# ---------------------------------------------------------------------------

Claims = dict[str, Any]
"""JSON-shaped claims bag: string keys, scalar/mapping/sequence values."""

ConsistencyToken = NewType("ConsistencyToken", bytes)
"""Opaque causal-consistency hint ("at least as fresh as")."""


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

class Expression(BaseModel):
    """A condition the caller evaluates against its own data.

    The language is intentionally open (``"cel"``, ``"rego"``, ...);
    authorizers and repositories agree on one out of band.  An empty
    ``language`` means no expression at all.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    language: str = ""
    source: str = ""

    @classmethod
    def none(cls) -> Expression:
        """Return the zero-value expression ("no filter required")."""
        return cls()

    def __bool__(self) -> bool:
        return bool(self.language)

    def conjoin(self, other: Expression) -> Expression:
        """AND this expression with *other*.

        An empty side is the identity.  Both sides must share a language;
        otherwise :class:`ValueError` is raised.
        """
        if not other:
            return self
        if not self:
            return other
        if self.language != other.language:
            msg = (
                f"Cannot conjoin {self.language!r} and {other.language!r} "
                "expressions"
            )
            raise ValueError(msg)
        return Expression(
            language=self.language,
            source=f"({self.source}) && ({other.source})",
        )


CEL_LANGUAGE = "cel"
"""Language tag of Common Expression Language conditions."""


_CEL_ESCAPES = {"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _cel_escape(char: str) -> str:
    if char in _CEL_ESCAPES:
        return _CEL_ESCAPES[char]
    if char < " " or char == "\x7f":
        return f"\\x{ord(char):02x}"
    return char


def cel_string(value: str) -> str:
    """Render *value* as a single-quoted CEL string literal.

    Control characters are written as escapes; CEL does not accept them
    raw inside a quoted literal.
    """
    return "'" + "".join(_cel_escape(char) for char in value) + "'"


# ---------------------------------------------------------------------------
# Assertions (closed variant)
# ---------------------------------------------------------------------------

class ClaimsAssertion(BaseModel):
    """Arbitrary structured claims about a subject or object."""

    model_config = ConfigDict(strict=True, frozen=True)

    kind: Literal["claims"] = "claims"
    claims: Claims = Field(default_factory=dict)


class OpaqueToken(BaseModel):
    """An uninterpreted token with a declared scheme (e.g. a signed JWT)."""

    model_config = ConfigDict(strict=True, frozen=True)

    kind: Literal["opaque_token"] = "opaque_token"
    type: str = Field(description="Scheme identifier, e.g. ``jwt``.")
    raw: bytes = Field(repr=False)


class ResourceReference(BaseModel):
    """A resource identified by type and id."""

    model_config = ConfigDict(strict=True, frozen=True)

    kind: Literal["resource"] = "resource"
    type: str
    id: str


Assertion = Annotated[
    ClaimsAssertion | OpaqueToken | ResourceReference,
    Field(discriminator="kind"),
]
"""Exactly one of the three assertion variants."""


class Subject(BaseModel):
    """The acting principal, with an optional named relation."""

    model_config = ConfigDict(strict=True, frozen=True)

    assertion: Assertion
    relation: str | None = Field(
        default=None,
        description='Optional relation, e.g. ``"member"``.',
    )


class Object(BaseModel):
    """The target of the action."""

    model_config = ConfigDict(strict=True, frozen=True)

    assertion: Assertion


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

class DecisionKind(enum.StrEnum):
    """Tri-state outcome of an authorization decision.

    ``UNKNOWN`` is the default and never a legal final decision.
    """

    UNKNOWN = "unknown"
    ALLOW = "allow"
    DENY = "deny"
    CONDITIONAL = "conditional"


class AuthorizationContext(BaseModel):
    """Optional information accompanying a decision.

    Modelled on the transaction-token body claims: ``requester_context``
    holds assertions about who is asking, ``transaction_context`` about
    the operation.  Either bag may be ``None``.
    """

    model_config = ConfigDict(strict=True)

    requester_context: Claims | None = None
    transaction_context: Claims | None = None


def _check_condition(decision: DecisionKind, condition: Expression) -> None:
    if decision is DecisionKind.CONDITIONAL:
        if not condition.language:
            msg = "A conditional decision requires an expression language"
            raise ValueError(msg)
    elif condition.language or condition.source:
        msg = f"A {decision.value} decision must not carry a condition"
        raise ValueError(msg)


class CheckRequest(BaseModel):
    """Inputs to a single-resource authorization check."""

    model_config = ConfigDict(strict=True, frozen=True)

    subject: Subject
    verb: str = Field(description="Opaque, policy-defined verb or relation.")
    object: Object
    consistency_token: ConsistencyToken | None = None


class CheckResponse(BaseModel):
    """Outcome of :meth:`Authorizer.check`.

    ``condition`` is meaningful only when ``decision`` is ``CONDITIONAL``.
    """

    model_config = ConfigDict(strict=True)

    decision: DecisionKind = DecisionKind.UNKNOWN
    condition: Expression = Field(default_factory=Expression)
    context: AuthorizationContext = Field(default_factory=AuthorizationContext)

    @model_validator(mode="after")
    def _conditional_invariant(self) -> Self:
        _check_condition(self.decision, self.condition)
        return self


class ListObjectsRequest(BaseModel):
    """Inputs to a collection-shaped authorization decision."""

    model_config = ConfigDict(strict=True, frozen=True)

    subject: Subject
    verb: str
    object_type: str
    filter: Expression = Field(
        default_factory=Expression,
        description="Optional caller filter ANDed with the policy filter.",
    )
    consistency_token: ConsistencyToken | None = None


class ListObjectsResponse(BaseModel):
    """Outcome of :meth:`Authorizer.list_objects`.

    Rather than listing identifiers, a conditional response carries one
    filter expression to apply to every candidate, e.g.
    ``id in ['a', 'b']`` or ``owner_id == 'user123' && status == 'active'``.
    """

    model_config = ConfigDict(strict=True)

    decision: DecisionKind = DecisionKind.UNKNOWN
    condition: Expression = Field(default_factory=Expression)
    context: AuthorizationContext = Field(default_factory=AuthorizationContext)

    @model_validator(mode="after")
    def _conditional_invariant(self) -> Self:
        _check_condition(self.decision, self.condition)
        return self
