"""Shared fixtures for CAZI conformance tests.

Provides the reference authorizer, both repository backends, and a
service composed from them.
"""
from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from cazi.claims import RequesterClaims, requester_claims
from cazi.engines import LocalAuthorizer
from cazi.widgets import (
    InMemoryWidgetRepository,
    SQLWidgetRepository,
    Widget,
    WidgetID,
    WidgetRepository,
)


# ---------------------------------------------------------------------------
# Claims and engine
# ---------------------------------------------------------------------------
@pytest.fixture()
def requester() -> RequesterClaims:
    return requester_claims()


@pytest.fixture()
def authorizer() -> LocalAuthorizer:
    return LocalAuthorizer()


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------
@pytest.fixture(params=["memory", "sql"])
async def repository(
    request: pytest.FixtureRequest, tmp_path: Path
) -> AsyncIterator[WidgetRepository]:
    if request.param == "memory":
        yield InMemoryWidgetRepository()
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'conformance.db'}")
    repository = SQLWidgetRepository(engine)
    await repository.create_schema()
    yield repository
    await engine.dispose()


@pytest.fixture()
async def five_widgets(repository: WidgetRepository) -> WidgetRepository:
    """Five stored widgets, two of them owned by alice."""
    for widget_id, owner in (
        ("w1", "alice"),
        ("w2", "bob"),
        ("w3", "alice"),
        ("w4", "carol"),
        ("w5", "bob"),
    ):
        await repository.save(
            Widget(
                id=WidgetID(widget_id),
                name=f"Widget {widget_id}",
                description="",
                owner_id=owner,
            )
        )
    return repository
