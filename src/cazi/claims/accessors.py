"""Typed claim accessors.

A :class:`Claim` is a get/set pair bound to a key path within a
:data:`~cazi.core.types.Claims` bag.  It owns no data; every call
operates on a caller-supplied container.

Accessors never raise on read.  ``get`` reports a missing key, a ``None``
container, a broken nested path, or a value of the wrong runtime type
uniformly as ``(None, False)``.  ``set`` on a ``None`` container is a
no-op, and a nested ``set`` never replaces an existing non-mapping value
with a mapping.

Runtime type checks use a pydantic :class:`~pydantic.TypeAdapter` in
strict mode, so parametrised descriptors such as ``list[str]`` are
checked element-wise and ``bool`` never passes for ``int``.  Plain
classes pydantic cannot build a schema for fall back to ``isinstance``.
The stored object itself is returned, not a validated copy.
"""
from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from cazi.core.types import Claims

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Claim(Generic[T]):
    """Type-safe access to one claim.

    Build instances with :func:`top_level` or :func:`nested` rather than
    directly.

    Attributes
    ----------
    path:
        Key path from the root of the claims bag; never empty.
    type:
        Runtime type descriptor the stored value must satisfy.
    """

    path: tuple[str, ...]
    type: Any
    _adapter: TypeAdapter[Any] | None = field(repr=False, compare=False)

    @property
    def key(self) -> str:
        """The final path segment."""
        return self.path[-1]

    def get(self, claims: Claims | None) -> tuple[T | None, bool]:
        """Read the claim from *claims*.

        Returns ``(value, True)`` when present and of the right type,
        ``(None, False)`` otherwise.
        """
        current: Any = claims
        for segment in self.path[:-1]:
            if not isinstance(current, Mapping):
                return None, False
            current = current.get(segment)
        if not isinstance(current, Mapping) or self.key not in current:
            return None, False

        value = current[self.key]
        if not self._conforms(value):
            return None, False
        return value, True

    def set(self, claims: Claims | None, value: T) -> None:
        """Write *value* into *claims*, creating missing intermediate maps.

        A ``None`` container is left alone.  If an intermediate segment
        already holds a non-mapping value the write is skipped and that
        value is left untouched.
        """
        if not isinstance(claims, MutableMapping):
            return

        current: MutableMapping[str, Any] = claims
        for segment in self.path[:-1]:
            if segment not in current:
                current[segment] = {}
            child = current[segment]
            if not isinstance(child, MutableMapping):
                return
            current = child
        current[self.key] = value

    def _conforms(self, value: Any) -> bool:
        if self._adapter is None:
            return isinstance(value, self.type)
        try:
            self._adapter.validate_python(value, strict=True)
        except ValidationError:
            return False
        return True


def _build(path: tuple[str, ...], tp: Any) -> Claim[Any]:
    try:
        adapter: TypeAdapter[Any] | None = TypeAdapter(tp)
    except PydanticSchemaGenerationError:
        # Plain classes pydantic has no schema for are checked with isinstance.
        if not isinstance(tp, type):
            raise
        adapter = None
    return Claim(path=path, type=tp, _adapter=adapter)


def top_level(key: str, tp: type[T] | Any = Any) -> Claim[T]:
    """Create a claim for a top-level key.

    Example: ``top_level("sub", str)`` accesses ``claims["sub"]``.
    """
    return _build((key,), tp)


def nested(*path: str, tp: type[T] | Any = Any) -> Claim[T]:
    """Create a claim for a nested key path.

    Example: ``nested("address", "city", tp=str)`` accesses
    ``claims["address"]["city"]``; setting it creates the ``address``
    mapping when absent.

    Raises
    ------
    ValueError
        If *path* is empty.  The accessor could never succeed, so this
        fails at construction instead of at first use.
    """
    if not path:
        msg = "A nested claim requires at least one path segment"
        raise ValueError(msg)
    return _build(tuple(path), tp)


def get_claim(claims: Claims | None, claim: Claim[T]) -> tuple[T | None, bool]:
    """Alternative spelling of ``claim.get(claims)``."""
    return claim.get(claims)


def set_claim(claims: Claims | None, claim: Claim[T], value: T) -> None:
    """Alternative spelling of ``claim.set(claims, value)``."""
    claim.set(claims, value)
