"""Offset/limit coercion and query windowing."""

import logging
import math
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

WINDOW_CLAUSE = "SKIP $skip LIMIT $limit"

# Largest integer Neo4j accepts as a parameter.
MAX_INT64 = 2**63 - 1


def coerce_non_negative_int(value: Any, default: int) -> int:
    """Coerce untrusted input to a non-negative int.

    Missing, empty, non-numeric, non-finite and negative input all fall back
    to `default`. Fractional values are floored and capped at MAX_INT64.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric pagination value {value!r}, using {default}")
        return default
    if not math.isfinite(number) or number < 0:
        return default
    return min(math.floor(number), MAX_INT64)


def coerce_limit(value: Any, default: int) -> int:
    return coerce_non_negative_int(value, default)


def coerce_offset(value: Any, default: int = 0) -> int:
    return coerce_non_negative_int(value, default)


def clamp(value: int, low: int, high: int) -> int:
    """Bound `value` to the closed range [low, high]."""
    return max(low, min(high, value))


@dataclass(frozen=True)
class Page:
    """A coerced skip/limit window."""

    skip: int = 0
    limit: int = 0

    @classmethod
    def from_query(cls, skip: Any, limit: Any, default_limit: int) -> "Page":
        return cls(skip=coerce_offset(skip), limit=coerce_limit(limit, default_limit))

    def params(self) -> dict[str, int]:
        return {"skip": self.skip, "limit": self.limit}


def paginate(query: str) -> str:
    """Append the skip/limit window to a Cypher query.

    Ordering is left to the base query. A query that already ends with the
    window is returned unchanged, so the window is applied at most once.
    """
    base = query.rstrip()
    if base.endswith(WINDOW_CLAUSE):
        return base
    return f"{base}\n{WINDOW_CLAUSE}"
