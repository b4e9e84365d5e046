from __future__ import annotations

from gieok.core.levels import DifficultyLevel

DEFAULT_SLACK = 1.5


class TimeoutMonitor:
    """Soft deadline check: a round may run *slack* times its target before failing."""

    def __init__(self, slack: float = DEFAULT_SLACK) -> None:
        self._slack = slack

    @property
    def slack(self) -> float:
        return self._slack

    def deadline(self, level: DifficultyLevel) -> float:
        return level.target_seconds * self._slack

    def exceeded(self, level: DifficultyLevel, elapsed_seconds: int) -> bool:
        """True once *elapsed_seconds* is strictly past the deadline."""
        return elapsed_seconds > self.deadline(level)
