"""CEL predicate evaluation.

:class:`CELEvaluator` evaluates Common Expression Language filters
against a single record, the way an in-memory repository enforces a
delegated condition.  Compiled programs are cached per source text, since
a list operation evaluates the same filter for every candidate.
"""
from __future__ import annotations

import functools
import logging
from collections.abc import Mapping
from typing import Any

import celpy
from celpy import celtypes

from cazi.core.errors import ExpressionEvaluationError
from cazi.core.types import CEL_LANGUAGE

logger = logging.getLogger(__name__)


class CELEvaluator:
    """Evaluates ``cel`` expressions with cel-python.

    Parameters
    ----------
    cache_size:
        Number of compiled programs kept per evaluator.
    """

    language = CEL_LANGUAGE

    def __init__(self, *, cache_size: int = 256) -> None:
        self._env = celpy.Environment()
        self._program = functools.lru_cache(maxsize=cache_size)(self._compile)

    def _compile(self, source: str) -> celpy.Runner:
        logger.debug("Compiling CEL filter (%d chars)", len(source))
        try:
            ast = self._env.compile(source)
        except celpy.CELParseError as exc:
            raise ExpressionEvaluationError(
                f"CEL compilation error: {exc}",
                details={"language": CEL_LANGUAGE},
            ) from exc
        return self._env.program(ast)

    def evaluate(self, source: str, variables: Mapping[str, Any]) -> bool:
        """Return whether *source* holds for *variables*.

        Raises
        ------
        ExpressionEvaluationError
            If the expression does not compile, fails to evaluate, or
            yields anything but a boolean.
        """
        program = self._program(source)
        activation = {
            name: celpy.json_to_cel(value) for name, value in variables.items()
        }
        try:
            result = program.evaluate(activation)
        except celpy.CELEvalError as exc:
            raise ExpressionEvaluationError(
                f"CEL evaluation error: {exc}",
                details={"language": CEL_LANGUAGE},
            ) from exc

        if isinstance(result, celpy.CELEvalError):
            raise ExpressionEvaluationError(
                f"CEL evaluation error: {result}",
                details={"language": CEL_LANGUAGE},
            )
        if not isinstance(result, celtypes.BoolType):
            raise ExpressionEvaluationError(
                "CEL expression must return a boolean",
                details={
                    "language": CEL_LANGUAGE,
                    "result_type": type(result).__name__,
                },
            )
        return bool(result)
