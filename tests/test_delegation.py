"""Tests for the expression delegation protocol.

1. **Caller side** -- decisions turned into filters or errors.
2. **Capability check** -- unsupported languages.
3. **Information hiding** -- ``filter_one`` and ``filter_many``.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from cazi.core.errors import (
    AccessDenied,
    InvalidDecision,
    NotFound,
    UndecidedResponse,
    UnsupportedExpressionLanguage,
)
from cazi.core.types import (
    CheckResponse,
    DecisionKind,
    Expression,
    ListObjectsResponse,
)
from cazi.delegation import (
    EvaluatorRegistry,
    ensure_supported,
    filter_many,
    filter_one,
    query_filter,
    require_unconditional,
    validate_decision,
)

OWNED_BY_ALICE = Expression(language="cel", source="owner_id == 'alice'")


class _OwnerEvaluator:
    """Evaluates only ``owner_id == '<x>'`` for test purposes."""

    language = "cel"

    def evaluate(self, source: str, variables: Mapping[str, Any]) -> bool:
        expected = source.split("==", 1)[1].strip().strip("'")
        return variables.get("owner_id") == expected


def _matches(record: dict[str, Any]) -> bool:
    return _OwnerEvaluator().evaluate(OWNED_BY_ALICE.source, record)


# ===================================================================
# 1. Caller side
# ===================================================================

class TestQueryFilter:
    """query_filter maps each decision to what the caller does next."""

    def test_allow_means_no_filter(self) -> None:
        assert query_filter(CheckResponse(decision=DecisionKind.ALLOW)) == Expression()

    def test_deny_raises(self) -> None:
        with pytest.raises(AccessDenied):
            query_filter(CheckResponse(decision=DecisionKind.DENY))

    def test_conditional_passes_condition_unchanged(self) -> None:
        response = ListObjectsResponse(
            decision=DecisionKind.CONDITIONAL, condition=OWNED_BY_ALICE
        )
        assert query_filter(response) is response.condition

    def test_unknown_is_an_error(self) -> None:
        """An undecided response is never treated as allow."""
        with pytest.raises(UndecidedResponse):
            query_filter(CheckResponse())

    def test_conditional_without_language_rejected(self) -> None:
        """Responses built without validation are still checked."""
        response = CheckResponse.model_construct(
            decision=DecisionKind.CONDITIONAL, condition=Expression()
        )
        with pytest.raises(InvalidDecision):
            validate_decision(response)


class TestRequireUnconditional:
    """Operations with nothing to filter accept only ALLOW."""

    def test_allow_passes(self) -> None:
        require_unconditional(CheckResponse(decision=DecisionKind.ALLOW))

    def test_conditional_refused(self) -> None:
        with pytest.raises(AccessDenied):
            require_unconditional(
                CheckResponse(
                    decision=DecisionKind.CONDITIONAL, condition=OWNED_BY_ALICE
                )
            )

    def test_deny_refused(self) -> None:
        with pytest.raises(AccessDenied):
            require_unconditional(CheckResponse(decision=DecisionKind.DENY))

    def test_unknown_refused(self) -> None:
        with pytest.raises(UndecidedResponse):
            require_unconditional(CheckResponse())


# ===================================================================
# 2. Capability check
# ===================================================================

class TestCapability:
    """Repositories refuse filters they cannot evaluate."""

    def test_empty_filter_always_supported(self) -> None:
        ensure_supported(Expression(), set())

    def test_unsupported_language(self) -> None:
        with pytest.raises(UnsupportedExpressionLanguage) as excinfo:
            ensure_supported(Expression(language="rego", source="allow"), {"cel"})
        assert excinfo.value.details == {"language": "rego", "supported": ["cel"]}

    def test_registry_require(self) -> None:
        evaluator = _OwnerEvaluator()
        registry = EvaluatorRegistry([evaluator])
        assert registry.require(OWNED_BY_ALICE) is evaluator
        assert "cel" in registry
        assert registry.languages == frozenset({"cel"})

    def test_registry_rejects_unknown_language(self) -> None:
        registry = EvaluatorRegistry([_OwnerEvaluator()])
        with pytest.raises(UnsupportedExpressionLanguage):
            registry.require(Expression(language="rego", source="allow"))

    def test_capability_error_is_not_not_found(self) -> None:
        assert not issubclass(UnsupportedExpressionLanguage, NotFound)


# ===================================================================
# 3. Information hiding
# ===================================================================

class TestFilterOne:
    """Absent and forbidden records are indistinguishable."""

    def test_matching_record_returned(self) -> None:
        record = {"id": "w1", "owner_id": "alice"}
        assert filter_one(record, OWNED_BY_ALICE, _matches) is record

    def test_empty_filter_skips_predicate(self) -> None:
        record = {"id": "w1", "owner_id": "bob"}

        def fail(_: dict[str, Any]) -> bool:
            raise AssertionError("predicate must not run without a filter")

        assert filter_one(record, Expression(), fail) is record

    def test_absent_and_forbidden_raise_identically(self) -> None:
        with pytest.raises(NotFound) as absent:
            filter_one(None, OWNED_BY_ALICE, _matches)
        with pytest.raises(NotFound) as forbidden:
            filter_one({"id": "w1", "owner_id": "bob"}, OWNED_BY_ALICE, _matches)

        assert type(absent.value) is type(forbidden.value)
        assert absent.value.to_dict() == forbidden.value.to_dict()

    def test_custom_not_found(self) -> None:
        class GadgetNotFound(NotFound):
            message = "Gadget not found"

        with pytest.raises(GadgetNotFound):
            filter_one(None, Expression(), _matches, not_found=GadgetNotFound)


class TestFilterMany:
    """Collection filtering keeps only matching candidates."""

    def test_filters_candidates(self) -> None:
        records = [
            {"id": "w1", "owner_id": "alice"},
            {"id": "w2", "owner_id": "bob"},
            {"id": "w3", "owner_id": "alice"},
        ]
        visible = list(filter_many(records, OWNED_BY_ALICE, _matches))
        assert [r["id"] for r in visible] == ["w1", "w3"]

    def test_empty_filter_keeps_all(self) -> None:
        records = [{"id": "w1"}, {"id": "w2"}]
        assert list(filter_many(records, Expression(), _matches)) == records
