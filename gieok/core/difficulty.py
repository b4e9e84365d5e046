"""Adaptive difficulty: nudge the level one step based on recent rounds."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from gieok.core.history import PerformanceRecord


class AdjustDirection(Enum):
    RAISED = "raised"
    LOWERED = "lowered"
    UNCHANGED = "unchanged"


def adjust(
    history: Sequence[PerformanceRecord],
    current_index: int,
    level_count: int,
    window: int = 3,
    promote_at: int = 2,
) -> int:
    """Return the level index to use after looking at the last *window* rounds.

    With the defaults, two or three successes out of the last three rounds
    raise the level by one and zero or one success lowers it by one. Fewer
    than *window* records leave the level alone. The result always stays
    within ``[0, level_count - 1]``.
    """
    if len(history) < window:
        return current_index
    successes = sum(1 for record in history[-window:] if record.success)
    if successes >= promote_at:
        if current_index < level_count - 1:
            return current_index + 1
    elif current_index > 0:
        return current_index - 1
    return current_index


def direction(old_index: int, new_index: int) -> AdjustDirection:
    if new_index > old_index:
        return AdjustDirection.RAISED
    if new_index < old_index:
        return AdjustDirection.LOWERED
    return AdjustDirection.UNCHANGED
