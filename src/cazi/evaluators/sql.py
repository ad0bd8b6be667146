"""CEL-to-SQL filter translation.

:class:`CELToSQL` turns the filter subset of CEL into a parameterised
SQLAlchemy boolean clause, so a SQL repository can AND a delegated
condition into its ``WHERE`` clause instead of filtering rows in Python.

Supported syntax
----------------
* field references, bare (``owner_id``) or alias-qualified
  (``widget.owner_id``)
* string, integer, float, ``true``, ``false`` and ``null`` literals
* comparisons ``==  !=  <  <=  >  >=``
* membership ``field in ['a', 'b']``
* ``&&``, ``||``, ``!`` and parentheses

Anything else (function calls, arithmetic, macros) is rejected with
:class:`~cazi.core.errors.ExpressionEvaluationError` rather than
translated approximately.
"""
from __future__ import annotations

import operator
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, and_, false, literal, not_, or_, true

from cazi.core.errors import ExpressionEvaluationError
from cazi.core.types import CEL_LANGUAGE


_TOKEN_PATTERN = re.compile(
    r"""
    \s*(?:
        (?P<number>\d+\.\d+|\d+)
      | (?P<string>'(?:[^'\\\n\r]|\\.)*'|"(?:[^"\\\n\r]|\\.)*")
      | (?P<op>==|!=|<=|>=|&&|\|\||[-<>!()\[\],.])
      | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    )
    """,
    re.VERBOSE,
)

_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
}

_ESCAPE_PATTERN = re.compile(
    r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-3][0-7]{2}|.)"
)

_COMPARISONS: dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_KEYWORD_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None}


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True, slots=True)
class _Literal:
    value: Any


def _decode_escape(match: re.Match[str]) -> str:
    escape = match.group(1)
    if escape[0] in "xuU" and len(escape) > 1:
        return chr(int(escape[1:], 16))
    if escape[0].isdigit() and len(escape) == 3:
        return chr(int(escape, 8))
    return _ESCAPES.get(escape, escape)


def _unescape(quoted: str) -> str:
    return _ESCAPE_PATTERN.sub(_decode_escape, quoted[1:-1])


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    while source[position:].strip():
        match = _TOKEN_PATTERN.match(source, position)
        if match is None or match.lastgroup is None:
            raise ExpressionEvaluationError(
                f"Unexpected character at offset {position} in CEL filter",
                details={"language": CEL_LANGUAGE, "offset": position},
            )
        kind = match.lastgroup
        tokens.append(_Token(kind, match.group(kind), match.start(kind)))
        position = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser emitting SQLAlchemy clauses."""

    def __init__(
        self,
        tokens: list[_Token],
        resolve: Callable[[str, str | None], ColumnElement[Any]],
    ) -> None:
        self._tokens = tokens
        self._index = 0
        self._resolve = resolve

    # -- token helpers ---------------------------------------------------

    def _peek(self) -> _Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token is not None and token.kind in ("op", "ident") and token.text == text:
            self._index += 1
            return True
        return False

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            raise self._error("Unexpected end of CEL filter")
        self._index += 1
        return token

    def _expect(self, text: str) -> None:
        if not self._accept(text):
            raise self._error(f"Expected {text!r} in CEL filter")

    def _error(self, message: str) -> ExpressionEvaluationError:
        token = self._peek()
        details: dict[str, Any] = {"language": CEL_LANGUAGE}
        if token is not None:
            details["offset"] = token.position
            details["token"] = token.text
        return ExpressionEvaluationError(message, details=details)

    # -- grammar ---------------------------------------------------------

    def parse(self) -> ColumnElement[bool]:
        clause = self._or()
        if self._peek() is not None:
            raise self._error("Unexpected trailing input in CEL filter")
        return clause

    def _or(self) -> ColumnElement[bool]:
        clauses = [self._and()]
        while self._accept("||"):
            clauses.append(self._and())
        return clauses[0] if len(clauses) == 1 else or_(*clauses)

    def _and(self) -> ColumnElement[bool]:
        clauses = [self._unary()]
        while self._accept("&&"):
            clauses.append(self._unary())
        return clauses[0] if len(clauses) == 1 else and_(*clauses)

    def _unary(self) -> ColumnElement[bool]:
        if self._accept("!"):
            return not_(self._unary())
        return self._relation()

    def _relation(self) -> ColumnElement[bool]:
        left = self._operand()
        token = self._peek()

        if token is not None and token.kind == "op" and token.text in _COMPARISONS:
            self._index += 1
            right = self._operand()
            return self._compare(token.text, left, right)

        if self._accept("in"):
            values = self._list()
            return self._sql(left).in_(values)

        if isinstance(left, _Literal):
            if isinstance(left.value, bool):
                return true() if left.value else false()
            raise self._error("A literal is not a boolean condition")
        if isinstance(left, ColumnElement):
            return left
        raise self._error("Expected a condition in CEL filter")

    def _compare(self, op: str, left: Any, right: Any) -> ColumnElement[bool]:
        if isinstance(right, _Literal) and right.value is None and op in ("==", "!="):
            column = self._sql(left)
            return column.is_(None) if op == "==" else column.is_not(None)
        return _COMPARISONS[op](self._sql(left), self._sql(right))

    def _list(self) -> list[Any]:
        self._expect("[")
        values: list[Any] = []
        if not self._accept("]"):
            while True:
                values.append(self._literal_value())
                if self._accept("]"):
                    break
                self._expect(",")
        return values

    def _literal_value(self) -> Any:
        operand = self._operand()
        if not isinstance(operand, _Literal):
            raise self._error("List elements must be literals in CEL filter")
        return operand.value

    def _operand(self) -> _Literal | ColumnElement[Any]:
        if self._accept("("):
            clause = self._or()
            self._expect(")")
            return clause

        negative = self._accept("-")
        token = self._next()
        if negative and token.kind != "number":
            raise self._error("Unary minus applies to numbers only")

        if token.kind == "number":
            value: Any = float(token.text) if "." in token.text else int(token.text)
            return _Literal(-value if negative else value)
        if token.kind == "string":
            return _Literal(_unescape(token.text))
        if token.kind == "ident":
            if token.text in _KEYWORD_LITERALS:
                return _Literal(_KEYWORD_LITERALS[token.text])
            if self._accept("."):
                field = self._next()
                if field.kind != "ident":
                    raise self._error("Expected a field name after '.'")
                return self._field(field.text, qualifier=token.text)
            if self._peek() is not None and self._peek().text == "(":
                raise self._error(f"Function {token.text!r} is not supported")
            return self._field(token.text, qualifier=None)

        self._index -= 1
        raise self._error(f"Unexpected token {token.text!r} in CEL filter")

    def _field(self, name: str, qualifier: str | None) -> ColumnElement[Any]:
        return self._resolve(name, qualifier)

    @staticmethod
    def _sql(operand: _Literal | ColumnElement[Any]) -> ColumnElement[Any]:
        if isinstance(operand, _Literal):
            return literal(operand.value)
        return operand


class CELToSQL:
    """Translates ``cel`` filters into SQLAlchemy clauses.

    Parameters
    ----------
    columns:
        Filter field name to column, e.g. ``{"owner_id": Widgets.owner_id}``.
    alias:
        Record variable name accepted as a field qualifier
        (``widget.owner_id``).
    """

    language = CEL_LANGUAGE

    def __init__(
        self,
        columns: Mapping[str, ColumnElement[Any]],
        *,
        alias: str | None = None,
    ) -> None:
        self._columns = dict(columns)
        self._alias = alias

    def translate(self, source: str) -> ColumnElement[bool]:
        """Return a boolean clause equivalent to *source*.

        Raises
        ------
        ExpressionEvaluationError
            For syntax outside the supported subset or unknown fields.
        """
        return _Parser(_tokenize(source), self._resolve).parse()

    def _resolve(self, name: str, qualifier: str | None) -> ColumnElement[Any]:
        if qualifier is not None and qualifier != self._alias:
            raise ExpressionEvaluationError(
                f"Unknown variable {qualifier!r} in CEL filter",
                details={"language": CEL_LANGUAGE, "variable": qualifier},
            )
        try:
            return self._columns[name]
        except KeyError:
            raise ExpressionEvaluationError(
                f"Unknown field {name!r} in CEL filter",
                details={"language": CEL_LANGUAGE, "field": name},
            ) from None
