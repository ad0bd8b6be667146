"""Authorization Port implementations.

* :class:`LocalAuthorizer` -- in-process ownership policy that answers
  reads with a delegated CEL condition.
"""
from __future__ import annotations

from cazi.engines.local import JWT_TOKEN_TYPE, LocalAuthorizer

__all__ = [
    "JWT_TOKEN_TYPE",
    "LocalAuthorizer",
]
