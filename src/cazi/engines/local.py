"""Local policy engine.

:class:`LocalAuthorizer` is an in-process implementation of the
Authorization Port with a fixed ownership policy:

* ``create`` -- any identified subject may create an object
  (``ALLOW``).
* ``read`` -- a subject may read the objects it owns.  The engine never
  looks at stored data; it returns the ownership predicate as a CEL
  condition (``owner_id == '<subject id>'``) for the caller's repository
  to enforce.
* Listing for ``read`` returns the same predicate, ANDed with the
  caller's own filter when one is given.

Subjects may be identified by a resource reference of the configured
subject type, by a claims bag carrying ``sub``, or by a ``jwt`` opaque
token verified with PyJWT.  The engine holds only read-only
configuration and is safe to call concurrently.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import jwt

from cazi.claims.standard import (
    RequesterClaims,
    TransactionClaims,
    requester_claims,
    transaction_claims,
)
from cazi.core.config import CAZIConfig
from cazi.core.errors import (
    InvalidFilter,
    InvalidObject,
    InvalidSubject,
    UnknownVerb,
    UnsupportedObjectType,
)
from cazi.core.types import (
    CEL_LANGUAGE,
    AuthorizationContext,
    CheckRequest,
    CheckResponse,
    Claims,
    ClaimsAssertion,
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

logger = logging.getLogger(__name__)

JWT_TOKEN_TYPE = "jwt"


@dataclass(frozen=True, slots=True)
class _Principal:
    """The resolved subject: its id and any claims it arrived with."""

    id: str
    claims: Claims = field(default_factory=dict)


class LocalAuthorizer:
    """Ownership policy evaluated in process.

    Parameters
    ----------
    config:
        Subject/object types, owner field and token verification settings.
    requester, transaction:
        Claim sets used to populate the authorization context.  Defaults
        to the standard sets.
    """

    CHECK_VERBS: tuple[str, ...] = ("create", "read")
    LIST_VERBS: tuple[str, ...] = ("read",)

    def __init__(
        self,
        config: CAZIConfig | None = None,
        *,
        requester: RequesterClaims | None = None,
        transaction: TransactionClaims | None = None,
    ) -> None:
        self._config = config or CAZIConfig()
        self._requester = requester or requester_claims()
        self._transaction = transaction or transaction_claims()

    # ------------------------------------------------------------------
    # Authorization Port
    # ------------------------------------------------------------------

    async def check(self, request: CheckRequest) -> CheckResponse:
        """Decide a single-object request under the ownership policy.

        Raises
        ------
        InvalidSubject, InvalidObject, UnknownVerb
            For malformed requests.  These are never reported as DENY.
        """
        principal = self._resolve_subject(request.subject)
        object_id = self._resolve_object(request.object)
        if request.verb not in self.CHECK_VERBS:
            raise UnknownVerb(
                f"Unknown verb: {request.verb}",
                details={"verb": request.verb, "supported": list(self.CHECK_VERBS)},
            )

        context = AuthorizationContext(
            requester_context=self._requester_context(principal),
            transaction_context=self._transaction_context(
                request.verb, self._config.object_type, object_id
            ),
        )

        if request.verb == "create":
            logger.debug("check: allow create %s", self._config.object_type)
            return CheckResponse(decision=DecisionKind.ALLOW, context=context)

        logger.debug("check: conditional read %s", self._config.object_type)
        return CheckResponse(
            decision=DecisionKind.CONDITIONAL,
            condition=self._owned_by(principal),
            context=context,
        )

    async def list_objects(
        self, request: ListObjectsRequest
    ) -> ListObjectsResponse:
        """Return the ownership filter for a whole object type.

        Raises
        ------
        InvalidSubject, UnsupportedObjectType, UnknownVerb, InvalidFilter
            For malformed requests.
        """
        principal = self._resolve_subject(request.subject)
        if request.object_type != self._config.object_type:
            raise UnsupportedObjectType(
                f"Unsupported object type: {request.object_type}",
                details={"object_type": request.object_type},
            )
        if request.verb not in self.LIST_VERBS:
            raise UnknownVerb(
                f"Unknown verb: {request.verb}",
                details={"verb": request.verb, "supported": list(self.LIST_VERBS)},
            )

        try:
            condition = self._owned_by(principal).conjoin(request.filter)
        except ValueError as exc:
            raise InvalidFilter(
                details={"language": request.filter.language},
            ) from exc

        logger.debug("list_objects: conditional %s", request.object_type)
        return ListObjectsResponse(
            decision=DecisionKind.CONDITIONAL,
            condition=condition,
            context=AuthorizationContext(
                requester_context=self._requester_context(principal),
                transaction_context=self._transaction_context(
                    request.verb, request.object_type, None
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Request resolution
    # ------------------------------------------------------------------

    def _resolve_subject(self, subject: Subject) -> _Principal:
        match subject.assertion:
            case ResourceReference(type=kind, id=subject_id):
                if kind != self._config.subject_type:
                    raise InvalidSubject(
                        f"Subject must be of type {self._config.subject_type!r}",
                        details={"type": kind},
                    )
                return _Principal(id=subject_id)
            case ClaimsAssertion(claims=claims):
                subject_id, found = self._requester.sub.get(claims)
                if not found or not subject_id:
                    raise InvalidSubject("Subject claims do not carry 'sub'")
                return _Principal(id=subject_id, claims=claims)
            case OpaqueToken() as token:
                return self._verify_token(token)
            case _:
                raise InvalidSubject("Subject assertion variant is not supported")

    def _verify_token(self, token: OpaqueToken) -> _Principal:
        if token.type != JWT_TOKEN_TYPE:
            raise InvalidSubject(
                f"Unsupported token type: {token.type}",
                details={"type": token.type},
            )
        if self._config.jwt_key is None:
            raise InvalidSubject("Token subjects are not accepted")

        try:
            payload: dict[str, Any] = jwt.decode(
                token.raw,
                self._config.jwt_key,
                algorithms=self._config.jwt_algorithms,
                audience=self._config.jwt_audience,
                options={"require": ["sub"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidSubject(
                f"Subject token verification failed: {exc}",
            ) from exc

        subject_id, found = self._requester.sub.get(payload)
        if not found or not subject_id:
            raise InvalidSubject("Subject token 'sub' is not a string")
        return _Principal(id=subject_id, claims=payload)

    def _resolve_object(self, obj: Object) -> str:
        match obj.assertion:
            case ResourceReference(type=kind, id=object_id) if (
                kind == self._config.object_type
            ):
                return object_id
            case ResourceReference(type=kind):
                raise InvalidObject(
                    f"Object must be of type {self._config.object_type!r}",
                    details={"type": kind},
                )
            case _:
                raise InvalidObject("Object must be a resource reference")

    # ------------------------------------------------------------------
    # Decision building
    # ------------------------------------------------------------------

    def _owned_by(self, principal: _Principal) -> Expression:
        return Expression(
            language=CEL_LANGUAGE,
            source=f"{self._config.owner_field} == {cel_string(principal.id)}",
        )

    def _requester_context(self, principal: _Principal) -> Claims:
        claims: Claims = {}
        self._requester.sub.set(claims, principal.id)
        for claim in (
            self._requester.preferred_username,
            self._requester.email,
            self._requester.roles,
            self._requester.groups,
        ):
            value, found = claim.get(principal.claims)
            if found:
                claim.set(claims, value)
        return claims

    def _transaction_context(
        self, verb: str, object_type: str, object_id: str | None
    ) -> Claims:
        claims: Claims = {}
        self._transaction.verb.set(claims, verb)
        self._transaction.object_type.set(claims, object_type)
        if object_id is not None:
            self._transaction.object_id.set(claims, object_id)
        return claims
