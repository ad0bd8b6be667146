"""SQL widget repository.

Delegated ``cel`` filters are translated into SQLAlchemy clauses and
ANDed into the ``WHERE`` clause of the lookup, so filtering happens in
the database and excluded rows never reach Python.  Works with any
SQLAlchemy async driver; tests use ``sqlite+aiosqlite``.
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import ColumnElement, DateTime, Select, String, Text, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cazi.core.types import Expression
from cazi.delegation.filtering import ensure_supported
from cazi.evaluators.sql import CELToSQL
from cazi.widgets.domain import WIDGET_FIELDS, Widget, WidgetID, WidgetNotFound

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class WidgetRow(Base):
    """Row of the ``widgets`` table."""

    __tablename__ = "widgets"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    def to_widget(self) -> Widget:
        return Widget(
            id=WidgetID(self.id),
            name=self.name,
            description=self.description,
            owner_id=self.owner_id,
        )


class SQLWidgetRepository:
    """Widget storage in a relational database.

    Parameters
    ----------
    engine:
        Async engine the repository opens sessions on.  The caller owns
        its lifecycle.
    alias:
        Record name accepted as a field qualifier in filters
        (``widget.owner_id``).
    """

    def __init__(self, engine: AsyncEngine, *, alias: str = "widget") -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        columns = WidgetRow.__table__.c
        self._translator = CELToSQL(
            {name: columns[name] for name in WIDGET_FIELDS}, alias=alias
        )

    async def create_schema(self) -> None:
        """Create the ``widgets`` table if it does not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def save(self, record: Widget) -> None:
        async with self._sessions.begin() as session:
            await session.merge(WidgetRow(**record.to_record()))

    async def find_by_id(self, id: WidgetID, filter: Expression) -> Widget:
        stmt = self._filtered(select(WidgetRow).where(WidgetRow.id == id), filter)
        async with self._sessions() as session:
            row = (await session.scalars(stmt)).one_or_none()
        if row is None:
            raise WidgetNotFound()
        return row.to_widget()

    async def find_all(self, filter: Expression) -> list[Widget]:
        stmt = self._filtered(select(WidgetRow).order_by(WidgetRow.id), filter)
        async with self._sessions() as session:
            rows = (await session.scalars(stmt)).all()
        logger.debug("find_all: %d widgets visible", len(rows))
        return [row.to_widget() for row in rows]

    def _filtered(
        self, stmt: Select[Any], filter: Expression
    ) -> Select[Any]:
        # Capability check and translation run before the query is sent.
        if not filter:
            return stmt
        ensure_supported(filter, {self._translator.language})
        clause: ColumnElement[bool] = self._translator.translate(filter.source)
        return stmt.where(clause)
