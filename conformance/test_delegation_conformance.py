"""Decision and expression delegation conformance tests.

Verifies the conditional invariant, the reference scenarios (create,
conditional read, list filtering), information hiding, and
cross-backend determinism of delegated filters.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from cazi.claims import RequesterClaims
from cazi.core.errors import NotFound
from cazi.core.types import (
    CheckRequest,
    CheckResponse,
    DecisionKind,
    Expression,
    ListObjectsRequest,
    ListObjectsResponse,
    Object,
    ResourceReference,
    Subject,
)
from cazi.delegation import query_filter
from cazi.engines import LocalAuthorizer
from cazi.widgets import WidgetID, WidgetRepository

ALICE = Subject(assertion=ResourceReference(type="user", id="alice"))


def _widget(widget_id: str) -> Object:
    return Object(assertion=ResourceReference(type="widget", id=widget_id))


# ===================================================================
# Conditional invariant
# ===================================================================

class TestConditionalInvariant:
    """A conditional decision always names its expression language."""

    @pytest.mark.parametrize("model", [CheckResponse, ListObjectsResponse])
    def test_MUST_reject_conditional_without_language(self, model: type) -> None:
        with pytest.raises(ValidationError):
            model(decision=DecisionKind.CONDITIONAL, condition=Expression())

    @pytest.mark.asyncio
    async def test_MUST_emit_language_on_conditional(
        self, authorizer: LocalAuthorizer
    ) -> None:
        check = await authorizer.check(
            CheckRequest(subject=ALICE, verb="read", object=_widget("w1"))
        )
        listing = await authorizer.list_objects(
            ListObjectsRequest(subject=ALICE, verb="read", object_type="widget")
        )
        for response in (check, listing):
            assert response.decision == DecisionKind.CONDITIONAL
            assert response.condition.language != ""


# ===================================================================
# Scenarios
# ===================================================================

class TestScenarios:
    """Reference scenarios against the local engine."""

    @pytest.mark.asyncio
    async def test_MUST_allow_create_and_name_requester(
        self, authorizer: LocalAuthorizer, requester: RequesterClaims
    ) -> None:
        response = await authorizer.check(
            CheckRequest(subject=ALICE, verb="create", object=_widget("w9"))
        )
        assert response.decision == DecisionKind.ALLOW
        assert requester.sub.get(response.context.requester_context) == ("alice", True)

    @pytest.mark.asyncio
    async def test_MUST_hide_foreign_widget_like_absent_one(
        self, authorizer: LocalAuthorizer, five_widgets: WidgetRepository
    ) -> None:
        """w2 belongs to bob: alice's lookup MUST match a missing id exactly."""
        response = await authorizer.check(
            CheckRequest(subject=ALICE, verb="read", object=_widget("w2"))
        )
        assert response.decision == DecisionKind.CONDITIONAL
        assert response.condition.source == "owner_id == 'alice'"

        filter = query_filter(response)
        with pytest.raises(NotFound) as forbidden:
            await five_widgets.find_by_id(WidgetID("w2"), filter)
        with pytest.raises(NotFound) as absent:
            await five_widgets.find_by_id(WidgetID("w404"), filter)

        assert type(forbidden.value) is type(absent.value)
        assert forbidden.value.args == absent.value.args
        assert forbidden.value.to_dict() == absent.value.to_dict()

    @pytest.mark.asyncio
    async def test_MUST_list_exactly_owned_widgets(
        self, authorizer: LocalAuthorizer, five_widgets: WidgetRepository
    ) -> None:
        """Both backends MUST yield the same two widgets for alice."""
        response = await authorizer.list_objects(
            ListObjectsRequest(subject=ALICE, verb="read", object_type="widget")
        )
        widgets = await five_widgets.find_all(query_filter(response))
        assert [w.id for w in widgets] == ["w1", "w3"]
        assert {w.owner_id for w in widgets} == {"alice"}
