#!/usr/bin/env python3
"""CAZI quickstart -- widgets with delegated ownership filters.

Demonstrates the core workflow of the Common Authorization Interface:

1. Compose a widget service from the local policy engine and a
   repository (in-memory, or SQLite with ``--sql``).
2. Create widgets as two different users.
3. Read a widget as its owner, then as another user.
4. List widgets: one decision, one filtered query.
5. Drive the same service through the HTTP handler.

Run:
    python examples/quickstart.py
    python examples/quickstart.py --sql
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys

from sqlalchemy.ext.asyncio import create_async_engine

from cazi import CAZIConfig, LocalAuthorizer, NotFound, ResourceReference, Subject
from cazi.widgets import (
    CreateWidgetRequest,
    GetWidgetRequest,
    InMemoryWidgetRepository,
    ListWidgetsRequest,
    SQLWidgetRepository,
    WidgetRepository,
    WidgetService,
    create_http_handler,
)


def user(user_id: str) -> Subject:
    return Subject(assertion=ResourceReference(type="user", id=user_id))


async def main(use_sql: bool) -> None:
    # -- Step 1: Compose the service ------------------------------------------
    config = CAZIConfig(decision_timeout_seconds=2.0)
    engine = None
    repository: WidgetRepository
    if use_sql:
        engine = create_async_engine("sqlite+aiosqlite:///:memory:")
        repository = SQLWidgetRepository(engine, alias=config.record_alias)
        await repository.create_schema()
    else:
        repository = InMemoryWidgetRepository(alias=config.record_alias)
    service = WidgetService(repository, LocalAuthorizer(config), config=config)
    print(f"[1] Service ready ({'SQLite' if use_sql else 'in-memory'} repository)")

    try:
        # -- Step 2: Create widgets -------------------------------------------
        alice, bob = user("alice"), user("bob")
        for subject, widget_id, name in (
            (alice, "w1", "Sprocket"),
            (bob, "w2", "Gear"),
            (alice, "w3", "Flange"),
        ):
            widget = await service.create_widget(
                CreateWidgetRequest(subject=subject, widget_id=widget_id, name=name)
            )
            print(f"[2] Created {widget.id} ({widget.name}) owned by {widget.owner_id}")

        # -- Step 3: Read as owner, then as someone else -----------------------
        widget = await service.get_widget(GetWidgetRequest(subject=alice, widget_id="w1"))
        print(f"[3] alice reads w1: {widget.name}")
        try:
            await service.get_widget(GetWidgetRequest(subject=bob, widget_id="w1"))
        except NotFound as exc:
            print(f"    bob reads w1:   [{exc.code}] {exc.message}")

        # -- Step 4: List -------------------------------------------------------
        widgets = await service.list_widgets(ListWidgetsRequest(subject=alice))
        print(f"[4] alice lists: {[w.id for w in widgets]}")

        # -- Step 5: HTTP handler ------------------------------------------------
        handler = create_http_handler(service, config=config)
        status, _, body = await handler("GET", "/widgets", {"X-User-ID": "bob"}, b"")
        print(f"[5] GET /widgets as bob -> {status} {json.loads(body)}")
        status, _, body = await handler("GET", "/widgets/w3", {"X-User-ID": "bob"}, b"")
        print(f"    GET /widgets/w3 as bob -> {status} {json.loads(body)}")
    finally:
        if engine is not None:
            await engine.dispose()

    print("\nDone. bob never learned whether w1 or w3 exist.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main(use_sql="--sql" in sys.argv[1:]))
