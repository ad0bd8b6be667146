"""Tests for the CAZI decision model and error taxonomy.

1. **Expressions** -- the empty sentinel, conjunction, CEL literals.
2. **Assertions** -- the closed discriminated union.
3. **Responses** -- the conditional invariant.
4. **Errors** -- codes, categories, serialisation.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from cazi.core.errors import (
    AccessDenied,
    CAZIError,
    DeadlineExceeded,
    DecisionError,
    InvalidSubject,
    NotFound,
    RepositoryError,
    RequestError,
    UnsupportedExpressionLanguage,
)
from cazi.core.types import (
    CEL_LANGUAGE,
    CheckRequest,
    CheckResponse,
    ClaimsAssertion,
    DecisionKind,
    Expression,
    ListObjectsResponse,
    Object,
    OpaqueToken,
    ResourceReference,
    Subject,
    cel_string,
)

# ===================================================================
# 1. Expressions
# ===================================================================

class TestExpression:
    """The Expression value object."""

    def test_none_is_falsy(self) -> None:
        assert not Expression.none()
        assert Expression.none() == Expression()

    def test_language_makes_it_truthy(self) -> None:
        assert Expression(language=CEL_LANGUAGE, source="true")

    def test_is_frozen(self) -> None:
        expr = Expression(language="cel", source="true")
        with pytest.raises(ValidationError):
            expr.language = "rego"  # type: ignore[misc]

    def test_conjoin_wraps_both_sides(self) -> None:
        a = Expression(language="cel", source="owner_id == 'a'")
        b = Expression(language="cel", source="name == 'x' || name == 'y'")
        assert a.conjoin(b) == Expression(
            language="cel",
            source="(owner_id == 'a') && (name == 'x' || name == 'y')",
        )

    def test_conjoin_empty_is_identity(self) -> None:
        a = Expression(language="cel", source="true")
        assert a.conjoin(Expression.none()) is a
        assert Expression.none().conjoin(a) is a

    def test_conjoin_language_mismatch(self) -> None:
        a = Expression(language="cel", source="true")
        b = Expression(language="rego", source="allow")
        with pytest.raises(ValueError, match="Cannot conjoin"):
            a.conjoin(b)

    @pytest.mark.parametrize(
        ("value", "literal"),
        [
            ("alice", "'alice'"),
            ("o'brien", "'o\\'brien'"),
            ("back\\slash", "'back\\\\slash'"),
            ("new\nline", "'new\\nline'"),
            ("tab\tx", "'tab\\tx'"),
            ("bell\x07", "'bell\\x07'"),
        ],
    )
    def test_cel_string(self, value: str, literal: str) -> None:
        assert cel_string(value) == literal


# ===================================================================
# 2. Assertions
# ===================================================================

class TestAssertions:
    """Subjects and objects carry exactly one assertion variant."""

    def test_variants_discriminated_by_kind(self) -> None:
        subject = Subject.model_validate_json(
            '{"assertion": {"kind": "resource", "type": "user", "id": "alice"}}'
        )
        assert isinstance(subject.assertion, ResourceReference)

        subject = Subject.model_validate_json(
            '{"assertion": {"kind": "claims", "claims": {"sub": "alice"}}}'
        )
        assert isinstance(subject.assertion, ClaimsAssertion)

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Subject.model_validate_json('{"assertion": {"kind": "certificate"}}')

    def test_token_raw_hidden_from_repr(self) -> None:
        token = OpaqueToken(type="jwt", raw=b"secret-token-bytes")
        assert "secret-token-bytes" not in repr(token)

    def test_relation_optional(self) -> None:
        subject = Subject(
            assertion=ResourceReference(type="group", id="eng"), relation="member"
        )
        assert subject.relation == "member"
        assert Subject(assertion=ResourceReference(type="user", id="a")).relation is None

    def test_check_request_consistency_token_optional(self) -> None:
        request = CheckRequest(
            subject=Subject(assertion=ResourceReference(type="user", id="alice")),
            verb="read",
            object=Object(assertion=ResourceReference(type="widget", id="w1")),
        )
        assert request.consistency_token is None


# ===================================================================
# 3. Responses
# ===================================================================

class TestResponses:
    """The conditional invariant on decisions."""

    def test_default_decision_is_unknown(self) -> None:
        response = CheckResponse()
        assert response.decision == DecisionKind.UNKNOWN
        assert not response.condition

    def test_conditional_requires_language(self) -> None:
        with pytest.raises(ValidationError, match="requires an expression language"):
            CheckResponse(decision=DecisionKind.CONDITIONAL)

    def test_conditional_with_condition(self) -> None:
        response = ListObjectsResponse(
            decision=DecisionKind.CONDITIONAL,
            condition=Expression(language="cel", source="owner_id == 'a'"),
        )
        assert response.condition.source == "owner_id == 'a'"

    @pytest.mark.parametrize("decision", [DecisionKind.ALLOW, DecisionKind.DENY])
    def test_unconditional_rejects_condition(self, decision: DecisionKind) -> None:
        with pytest.raises(ValidationError, match="must not carry a condition"):
            CheckResponse(
                decision=decision,
                condition=Expression(language="cel", source="true"),
            )

    def test_decision_values(self) -> None:
        assert [kind.value for kind in DecisionKind] == [
            "unknown",
            "allow",
            "deny",
            "conditional",
        ]


# ===================================================================
# 4. Errors
# ===================================================================

class TestErrors:
    """The exception hierarchy."""

    def test_categories(self) -> None:
        assert issubclass(InvalidSubject, RequestError)
        assert issubclass(AccessDenied, DecisionError)
        assert issubclass(NotFound, RepositoryError)
        assert not issubclass(InvalidSubject, DecisionError)

    def test_http_status(self) -> None:
        assert InvalidSubject().http_status == 400
        assert AccessDenied().http_status == 403
        assert NotFound().http_status == 404
        assert UnsupportedExpressionLanguage().http_status == 500
        assert DeadlineExceeded().http_status == 504

    def test_to_dict(self) -> None:
        exc = UnsupportedExpressionLanguage(details={"language": "rego"})
        body = exc.to_dict()
        assert body["error"]["code"] == exc.code
        assert body["error"]["detail"] == {"language": "rego"}

    def test_message_override(self) -> None:
        exc = AccessDenied("Nope")
        assert str(exc) == "Nope"
        assert AccessDenied().message != "Nope"

    def test_all_errors_share_base(self) -> None:
        assert isinstance(DeadlineExceeded(), CAZIError)
