"""Typed claim accessors.

* :class:`Claim` -- a get/set pair bound to a key path.
* :func:`top_level` / :func:`nested` -- accessor constructors.
* :func:`get_claim` / :func:`set_claim` -- free-function spellings.
* :func:`requester_claims` / :func:`transaction_claims` -- standard sets.
"""
from __future__ import annotations

from cazi.claims.accessors import Claim, get_claim, nested, set_claim, top_level
from cazi.claims.standard import (
    RequesterClaims,
    TransactionClaims,
    requester_claims,
    transaction_claims,
)

__all__ = [
    "Claim",
    "top_level",
    "nested",
    "get_claim",
    "set_claim",
    "RequesterClaims",
    "TransactionClaims",
    "requester_claims",
    "transaction_claims",
]
