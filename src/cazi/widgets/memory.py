"""In-memory widget repository.

Filters are evaluated per record with an
:class:`~cazi.core.interfaces.ExpressionEvaluator` chosen by the
filter's language.  Records are copied on the way in and out, so callers
never share state with the store.  All operations run without awaiting
in between reads and writes, which keeps them consistent within one
event loop.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from cazi.core.types import Expression
from cazi.delegation.filtering import EvaluatorRegistry, filter_many, filter_one
from cazi.evaluators.cel import CELEvaluator
from cazi.widgets.domain import Widget, WidgetID, WidgetNotFound

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class InMemoryWidgetRepository:
    """Widget storage backed by a dict.

    Parameters
    ----------
    evaluators:
        Evaluators for the filter languages this repository accepts.
        Defaults to CEL only.
    alias:
        Name under which each record is also bound during evaluation,
        so both ``owner_id`` and ``widget.owner_id`` resolve.
    """

    def __init__(
        self,
        evaluators: EvaluatorRegistry | None = None,
        *,
        alias: str = "widget",
    ) -> None:
        self._evaluators = evaluators or EvaluatorRegistry([CELEvaluator()])
        self._alias = alias
        self._records: dict[WidgetID, Record] = {}

    async def save(self, record: Widget) -> None:
        self._records[record.id] = record.to_record()

    async def find_by_id(self, id: WidgetID, filter: Expression) -> Widget:
        matches = self._matcher(filter)
        found = filter_one(
            self._records.get(id), filter, matches, not_found=WidgetNotFound
        )
        return Widget.from_record(found)

    async def find_all(self, filter: Expression) -> list[Widget]:
        matches = self._matcher(filter)
        candidates = [self._records[key] for key in sorted(self._records)]
        widgets = [
            Widget.from_record(record)
            for record in filter_many(candidates, filter, matches)
        ]
        logger.debug(
            "find_all: %d of %d widgets visible", len(widgets), len(candidates)
        )
        return widgets

    def _matcher(self, filter: Expression) -> Callable[[Record], bool]:
        # Resolving the evaluator is the capability check; it must happen
        # before any record is looked up.
        if not filter:
            return lambda record: True
        evaluator = self._evaluators.require(filter)

        def matches(record: Record) -> bool:
            return evaluator.evaluate(
                filter.source, {**record, self._alias: record}
            )

        return matches
