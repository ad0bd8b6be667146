"""Standard claim sets.

Accessors for the claims most authorizers put into an
:class:`~cazi.core.types.AuthorizationContext`.  They follow common
identity-token conventions (``sub``, ``email``, ``roles``, ...) for the
requester context and describe the operation itself for the transaction
context.

The sets are plain values built by a factory and handed to whoever
composes the service; nothing here registers global state::

    requester = requester_claims()
    owner_id, ok = requester.sub.get(response.context.requester_context)
"""
from __future__ import annotations

from dataclasses import dataclass

from cazi.claims.accessors import Claim, nested, top_level


@dataclass(frozen=True, slots=True)
class RequesterClaims:
    """Claims about who is making the request."""

    sub: Claim[str]
    """Subject identifier (typically a user id)."""
    preferred_username: Claim[str]
    email: Claim[str]
    roles: Claim[list[str]]
    groups: Claim[list[str]]


@dataclass(frozen=True, slots=True)
class TransactionClaims:
    """Claims about the requested operation."""

    verb: Claim[str]
    object_type: Claim[str]
    object_id: Claim[str]


def requester_claims() -> RequesterClaims:
    """Build the standard requester-context accessors."""
    return RequesterClaims(
        sub=top_level("sub", str),
        preferred_username=top_level("preferred_username", str),
        email=top_level("email", str),
        roles=top_level("roles", list[str]),
        groups=top_level("groups", list[str]),
    )


def transaction_claims() -> TransactionClaims:
    """Build the standard transaction-context accessors.

    The object is described as a nested mapping,
    ``{"object": {"type": ..., "id": ...}}``.
    """
    return TransactionClaims(
        verb=top_level("verb", str),
        object_type=nested("object", "type", tp=str),
        object_id=nested("object", "id", tp=str),
    )
