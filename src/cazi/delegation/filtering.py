"""Expression delegation, repository side.

Helpers every conforming repository builds on:

* :class:`EvaluatorRegistry` -- maps :attr:`Expression.language` to an
  :class:`~cazi.core.interfaces.ExpressionEvaluator`.
* :func:`ensure_supported` -- the capability check.  It runs before any
  storage access so that the capability error is raised for present and
  absent records alike.
* :func:`filter_one` -- single lookups.  An absent record and a record
  that fails the filter raise the *same* :class:`NotFound`.
* :func:`filter_many` -- collection scans.  Excluded candidates leave no
  trace in the result.
"""
from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Iterator
from typing import TypeVar

from cazi.core.errors import NotFound, UnsupportedExpressionLanguage
from cazi.core.interfaces import ExpressionEvaluator
from cazi.core.types import Expression

R = TypeVar("R")


def ensure_supported(filter: Expression, languages: Collection[str]) -> None:
    """Raise unless *filter* is empty or written in one of *languages*.

    Raises
    ------
    UnsupportedExpressionLanguage
        If the repository cannot evaluate the filter.
    """
    if filter and filter.language not in languages:
        raise UnsupportedExpressionLanguage(
            f"Unsupported expression language: {filter.language!r} "
            f"(supported: {', '.join(sorted(languages))})",
            details={
                "language": filter.language,
                "supported": sorted(languages),
            },
        )


class EvaluatorRegistry:
    """Expression evaluators keyed by language."""

    def __init__(self, evaluators: Iterable[ExpressionEvaluator] = ()) -> None:
        self._evaluators: dict[str, ExpressionEvaluator] = {}
        for evaluator in evaluators:
            self.register(evaluator)

    def register(self, evaluator: ExpressionEvaluator) -> None:
        """Add *evaluator*, replacing any evaluator for the same language."""
        self._evaluators[evaluator.language] = evaluator

    @property
    def languages(self) -> frozenset[str]:
        return frozenset(self._evaluators)

    def require(self, filter: Expression) -> ExpressionEvaluator:
        """Return the evaluator for *filter*'s language.

        Raises :class:`UnsupportedExpressionLanguage` if there is none.
        """
        ensure_supported(filter, self._evaluators)
        return self._evaluators[filter.language]

    def __contains__(self, language: object) -> bool:
        return language in self._evaluators


def filter_one(
    record: R | None,
    filter: Expression,
    matches: Callable[[R], bool],
    *,
    not_found: Callable[[], NotFound] = NotFound,
) -> R:
    """Apply *filter* to the result of a single lookup.

    Parameters
    ----------
    record:
        The record found by id, or ``None``.
    filter:
        The delegated expression; empty means no filter.
    matches:
        Predicate evaluating *filter* against a record.
    not_found:
        Factory for the error raised in both hiding cases, so a
        repository can use its own message while staying uniform.
    """
    if record is None:
        raise not_found()
    if filter and not matches(record):
        raise not_found()
    return record


def filter_many(
    records: Iterable[R],
    filter: Expression,
    matches: Callable[[R], bool],
) -> Iterator[R]:
    """Yield the records satisfying *filter* (all of them when empty)."""
    for record in records:
        if not filter or matches(record):
            yield record
