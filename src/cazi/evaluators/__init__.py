"""Expression evaluators for delegated conditions.

* :class:`CELEvaluator` -- evaluates CEL against one record (in memory).
* :class:`CELToSQL` -- translates CEL filters into SQLAlchemy clauses.
"""
from __future__ import annotations

from cazi.evaluators.cel import CEL_LANGUAGE, CELEvaluator
from cazi.evaluators.sql import CELToSQL

__all__ = [
    "CEL_LANGUAGE",
    "CELEvaluator",
    "CELToSQL",
]
