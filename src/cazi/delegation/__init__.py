"""Expression delegation protocol.

The contract between the Authorization Port and resource repositories:

* **Caller side** -- :func:`query_filter`, :func:`require_unconditional`
  and :func:`validate_decision` turn a decision into a repository filter
  or an error.
* **Repository side** -- :class:`EvaluatorRegistry`,
  :func:`ensure_supported`, :func:`filter_one` and :func:`filter_many`
  enforce the filter with the information-hiding guarantee: "exists but
  forbidden" and "does not exist" are indistinguishable.
"""
from __future__ import annotations

from cazi.delegation.filtering import (
    EvaluatorRegistry,
    ensure_supported,
    filter_many,
    filter_one,
)
from cazi.delegation.protocol import (
    query_filter,
    require_unconditional,
    validate_decision,
)

__all__ = [
    "query_filter",
    "require_unconditional",
    "validate_decision",
    "EvaluatorRegistry",
    "ensure_supported",
    "filter_one",
    "filter_many",
]
