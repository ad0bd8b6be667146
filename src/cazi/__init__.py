"""CAZI -- Common Authorization Interface.

A policy-engine-neutral authorization boundary.  Applications ask an
:class:`Authorizer` whether a subject may perform a verb on an object
and receive ``ALLOW``, ``DENY``, or ``CONDITIONAL`` with an expression
that their own repository enforces against stored data.

Packages
--------
* Core types, errors, config, interfaces (:mod:`cazi.core`)
* Typed claim accessors (:mod:`cazi.claims`)
* Expression delegation protocol (:mod:`cazi.delegation`)
* Expression evaluators (:mod:`cazi.evaluators`)
* Local policy engine (:mod:`cazi.engines`)
* Widgets reference service (:mod:`cazi.widgets`)
"""
from __future__ import annotations

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------
from cazi.claims import (
    Claim,
    RequesterClaims,
    TransactionClaims,
    get_claim,
    nested,
    requester_claims,
    set_claim,
    top_level,
    transaction_claims,
)

# ---------------------------------------------------------------------------
# Core -- types, errors, config, interfaces
# ---------------------------------------------------------------------------
from cazi.core.config import CAZIConfig
from cazi.core.errors import (
    AccessDenied,
    AvailabilityError,
    CAZIError,
    DeadlineExceeded,
    DecisionError,
    ExpressionEvaluationError,
    InvalidDecision,
    InvalidFilter,
    InvalidObject,
    InvalidSubject,
    NotFound,
    RepositoryError,
    RequestError,
    UndecidedResponse,
    UnknownVerb,
    UnsupportedExpressionLanguage,
    UnsupportedObjectType,
)
from cazi.core.interfaces import Authorizer, ExpressionEvaluator, ResourceRepository
from cazi.core.types import (
    CEL_LANGUAGE,
    Assertion,
    AuthorizationContext,
    CheckRequest,
    CheckResponse,
    Claims,
    ClaimsAssertion,
    ConsistencyToken,
    DecisionKind,
    Expression,
    ListObjectsRequest,
    ListObjectsResponse,
    Object,
    OpaqueToken,
    ResourceReference,
    Subject,
    cel_string,
)

# ---------------------------------------------------------------------------
# Expression delegation
# ---------------------------------------------------------------------------
from cazi.delegation import (
    EvaluatorRegistry,
    ensure_supported,
    filter_many,
    filter_one,
    query_filter,
    require_unconditional,
    validate_decision,
)

# ---------------------------------------------------------------------------
# Engines and evaluators
# ---------------------------------------------------------------------------
from cazi.engines import LocalAuthorizer
from cazi.evaluators import CELEvaluator, CELToSQL

__all__ = [
    "__version__",
    # Claims
    "Claim",
    "RequesterClaims",
    "TransactionClaims",
    "get_claim",
    "nested",
    "requester_claims",
    "set_claim",
    "top_level",
    "transaction_claims",
    # Config
    "CAZIConfig",
    # Errors
    "AccessDenied",
    "AvailabilityError",
    "CAZIError",
    "DeadlineExceeded",
    "DecisionError",
    "ExpressionEvaluationError",
    "InvalidDecision",
    "InvalidFilter",
    "InvalidObject",
    "InvalidSubject",
    "NotFound",
    "RepositoryError",
    "RequestError",
    "UndecidedResponse",
    "UnknownVerb",
    "UnsupportedExpressionLanguage",
    "UnsupportedObjectType",
    # Interfaces
    "Authorizer",
    "ExpressionEvaluator",
    "ResourceRepository",
    # Types
    "CEL_LANGUAGE",
    "Assertion",
    "AuthorizationContext",
    "CheckRequest",
    "CheckResponse",
    "Claims",
    "ClaimsAssertion",
    "ConsistencyToken",
    "DecisionKind",
    "Expression",
    "ListObjectsRequest",
    "ListObjectsResponse",
    "Object",
    "OpaqueToken",
    "ResourceReference",
    "Subject",
    "cel_string",
    # Delegation
    "EvaluatorRegistry",
    "ensure_supported",
    "filter_many",
    "filter_one",
    "query_filter",
    "require_unconditional",
    "validate_decision",
    # Engines and evaluators
    "CELEvaluator",
    "CELToSQL",
    "LocalAuthorizer",
]
