"""Shared fixtures for the CAZI unit tests."""
from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from cazi.core.config import CAZIConfig
from cazi.engines.local import LocalAuthorizer
from cazi.widgets.domain import WidgetRepository
from cazi.widgets.memory import InMemoryWidgetRepository
from cazi.widgets.sql import SQLWidgetRepository

JWT_KEY = "unit-test-jwt-signing-key-0123456789abcdef"


@pytest.fixture
def config() -> CAZIConfig:
    """Default configuration with token subjects enabled."""
    return CAZIConfig(jwt_key=JWT_KEY)


@pytest.fixture
def authorizer(config: CAZIConfig) -> LocalAuthorizer:
    """The local ownership policy engine."""
    return LocalAuthorizer(config)


@pytest.fixture(params=["memory", "sql"])
async def repository(
    request: pytest.FixtureRequest, tmp_path: Path, config: CAZIConfig
) -> AsyncIterator[WidgetRepository]:
    """Each widget repository backend, empty.

    The SQL backend runs on aiosqlite against a fresh database file.
    """
    if request.param == "memory":
        yield InMemoryWidgetRepository(alias=config.record_alias)
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'widgets.db'}")
    repository = SQLWidgetRepository(engine, alias=config.record_alias)
    await repository.create_schema()
    yield repository
    await engine.dispose()
