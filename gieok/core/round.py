from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from gieok.core.deck import Tile
from gieok.core.levels import DifficultyLevel
from gieok.core.timeout import TimeoutMonitor

logger = logging.getLogger(__name__)


class RoundStatus(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    RESOLVING = "resolving"
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"


class SelectionResult(Enum):
    IGNORED = "ignored"
    FIRST_PICK = "first_pick"
    MATCH = "match"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class RoundSnapshot:
    """Read-only view of a round for rendering."""

    level: DifficultyLevel
    deck: Tuple[Tile, ...]
    revealed: Tuple[int, ...]
    moves: int
    matched_pairs: int
    started_at: Optional[float]
    elapsed_seconds: int
    input_locked: bool
    status: RoundStatus

    @property
    def is_finished(self) -> bool:
        return self.status in (RoundStatus.COMPLETE, RoundStatus.TIMED_OUT)


class GameRound:
    """Turn/reveal state machine for one round.

    Picking a second tile locks input and records a pending outcome; the
    outcome is applied by :meth:`resolve`, which the caller schedules after
    a feedback delay. Once the round is complete or timed out, every
    operation is a no-op.
    """

    def __init__(
        self,
        level: DifficultyLevel,
        deck: List[Tile],
        monitor: Optional[TimeoutMonitor] = None,
    ) -> None:
        self._level = level
        self._deck = deck
        self._monitor = monitor or TimeoutMonitor()
        self._revealed: List[int] = []
        self._moves = 0
        self._matched_pairs = 0
        self._started_at: Optional[float] = None
        self._elapsed = 0
        self._status = RoundStatus.IDLE
        self._pending: Optional[SelectionResult] = None

    @property
    def level(self) -> DifficultyLevel:
        return self._level

    @property
    def status(self) -> RoundStatus:
        return self._status

    @property
    def moves(self) -> int:
        """Number of completed two-tile attempts."""
        return self._moves

    @property
    def matched_pairs(self) -> int:
        return self._matched_pairs

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def revealed(self) -> Tuple[int, ...]:
        """Indices currently face up and not yet matched, in pick order."""
        return tuple(self._revealed)

    @property
    def input_locked(self) -> bool:
        return self._status is RoundStatus.RESOLVING

    def is_finished(self) -> bool:
        return self._status in (RoundStatus.COMPLETE, RoundStatus.TIMED_OUT)

    def start(self, started_at: float) -> None:
        """Zero the counters and begin accepting selections."""
        self._revealed = []
        self._moves = 0
        self._matched_pairs = 0
        self._elapsed = 0
        self._pending = None
        self._started_at = started_at
        self._status = RoundStatus.IN_PROGRESS

    def select(self, index: int) -> SelectionResult:
        """Reveal the tile at *index*; on the second pick, compare the pair."""
        if self._status is not RoundStatus.IN_PROGRESS:
            logger.debug("Ignoring tile %s: round is %s", index, self._status.value)
            return SelectionResult.IGNORED
        if not 0 <= index < len(self._deck):
            logger.debug("Ignoring tile %s: out of range", index)
            return SelectionResult.IGNORED
        if index in self._revealed or self._deck[index].matched:
            return SelectionResult.IGNORED

        self._revealed.append(index)
        if len(self._revealed) < 2:
            return SelectionResult.FIRST_PICK

        self._moves += 1
        self._status = RoundStatus.RESOLVING
        a, b = self._revealed
        if self._deck[a].symbol == self._deck[b].symbol:
            self._pending = SelectionResult.MATCH
        else:
            self._pending = SelectionResult.MISMATCH
        return self._pending

    def resolve(self) -> SelectionResult:
        """Apply the pending match/mismatch and unlock input."""
        if self._status is not RoundStatus.RESOLVING or self._pending is None:
            return SelectionResult.IGNORED
        outcome = self._pending
        self._pending = None
        if outcome is SelectionResult.MATCH:
            for i in self._revealed:
                self._deck[i].matched = True
            self._matched_pairs += 1
        self._revealed = []
        if self._matched_pairs >= self._level.pair_count:
            self._status = RoundStatus.COMPLETE
        else:
            self._status = RoundStatus.IN_PROGRESS
        return outcome

    def tick(self) -> bool:
        """Advance the clock by one second. Returns True if this tick timed the round out."""
        if self._status not in (RoundStatus.IN_PROGRESS, RoundStatus.RESOLVING):
            return False
        self._elapsed += 1
        if self._monitor.exceeded(self._level, self._elapsed):
            self._status = RoundStatus.TIMED_OUT
            self._pending = None
            return True
        return False

    def snapshot(self) -> RoundSnapshot:
        return RoundSnapshot(
            level=self._level,
            deck=tuple(replace(tile) for tile in self._deck),
            revealed=tuple(self._revealed),
            moves=self._moves,
            matched_pairs=self._matched_pairs,
            started_at=self._started_at,
            elapsed_seconds=self._elapsed,
            input_locked=self.input_locked,
            status=self._status,
        )
