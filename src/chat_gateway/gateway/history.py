"""Conversation history windowing."""

from typing import List, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_HISTORY_LIMIT = 3


def truncate(history: Sequence[T], limit: int) -> List[T]:
    """Return the last ``limit`` turns of ``history`` in original order.

    A zero or negative limit yields an empty list. Truncation is silent.
    """
    if limit <= 0:
        return []
    return list(history[-limit:])
