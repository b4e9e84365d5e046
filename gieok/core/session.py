from __future__ import annotations

import json
import logging
import random
import time
from enum import Enum
from typing import Callable, List, Optional, TypeVar

from gieok.core import speech
from gieok.core.config import GameConfig
from gieok.core.deck import generate_deck
from gieok.core.difficulty import AdjustDirection, adjust, direction
from gieok.core.errors import PersistenceReadError, PersistenceWriteError
from gieok.core.history import History, PerformanceRecord, append, decode_history, encode_history
from gieok.core.levels import DifficultyLevel, LevelTable
from gieok.core.round import GameRound, RoundSnapshot, RoundStatus, SelectionResult
from gieok.core.scheduler import ScheduledTask, Scheduler
from gieok.core.storage import HISTORY_KEY, LEVEL_INDEX_KEY, VOICE_ENABLED_KEY, KeyValueStore
from gieok.core.timeout import TimeoutMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GameEvent(Enum):
    ROUND_STARTED = "round_started"
    TILE_REVEALED = "tile_revealed"
    MATCH_FOUND = "match_found"
    MISMATCH = "mismatch"
    ROUND_COMPLETED = "round_completed"
    ROUND_TIMED_OUT = "round_timed_out"
    DIFFICULTY_RAISED = "difficulty_raised"
    DIFFICULTY_LOWERED = "difficulty_lowered"
    TICK = "tick"
    VOICE_TOGGLED = "voice_toggled"


Listener = Callable[[GameEvent], None]


class GameSession:
    """Owns the active level, the current round and the performance history.

    This is the single entry point the UI drives. Settings and history are
    read from *store* on construction and written back after every change;
    store failures are logged and the in-memory state keeps the game going.

    Every round gets a generation number. Starting a new round cancels the
    previous round's timer and pending resolution, and any callback that
    still fires for an older generation is dropped.
    """

    def __init__(
        self,
        config: GameConfig,
        store: KeyValueStore,
        scheduler: Scheduler,
        announcer: Optional[speech.Announcer] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._rules = config.rules
        self._store = store
        self._scheduler = scheduler
        self._announcer = announcer or speech.SilentAnnouncer()
        self._rng = rng or random.Random()
        self._clock = clock
        self._monitor = TimeoutMonitor(self._rules.timeout_slack)
        self._listeners: List[Listener] = []

        self._generation = 0
        self._tick_task: Optional[ScheduledTask] = None
        self._resolve_task: Optional[ScheduledTask] = None

        self._level_index: int = self._read(LEVEL_INDEX_KEY, self._parse_level_index, self._rules.default_level)
        self._voice_enabled: bool = self._read(VOICE_ENABLED_KEY, _parse_bool, True)
        self._history: History = self._read(
            HISTORY_KEY, lambda raw: decode_history(raw, self._rules.history_cap), ()
        )
        self._round: GameRound
        self.start_new_round()

    # ------------------------------------------------------------------
    # Read-only feed for the UI
    # ------------------------------------------------------------------

    @property
    def levels(self) -> LevelTable:
        return self._config.levels

    @property
    def level_index(self) -> int:
        return self._level_index

    @property
    def level(self) -> DifficultyLevel:
        return self._config.levels.get(self._level_index)

    @property
    def round_state(self) -> RoundSnapshot:
        return self._round.snapshot()

    @property
    def history(self) -> History:
        return self._history

    @property
    def voice_enabled(self) -> bool:
        return self._voice_enabled

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for game events. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_new_round(self) -> None:
        """Deal a fresh deck at the current level and restart the clock."""
        self._cancel_pending()
        self._generation += 1
        generation = self._generation
        self._round = self._new_round()
        self._round.start(self._clock())
        self._tick_task = self._scheduler.call_every(
            self._rules.tick_interval_ms, lambda: self._on_tick(generation)
        )
        logger.info("Round %d started at %s (%d pairs)", generation, self.level.key, self.level.pair_count)
        self._announce(speech.round_started(self.level.pair_count))
        self._emit(GameEvent.ROUND_STARTED)

    def select_tile(self, index: int) -> None:
        result = self._round.select(index)
        if result is SelectionResult.IGNORED:
            return
        self._emit(GameEvent.TILE_REVEALED)
        if result is SelectionResult.FIRST_PICK:
            return
        delay = self._rules.match_delay_ms if result is SelectionResult.MATCH else self._rules.mismatch_delay_ms
        generation = self._generation
        self._resolve_task = self._scheduler.call_later(delay, lambda: self._on_resolve(generation))

    def set_difficulty(self, index: int) -> None:
        """Switch to level *index* chosen by the player and start a fresh round there."""
        if not self._config.levels.contains(index):
            raise IndexError(f"Level index out of range: {index}")
        self._level_index = index
        self._save(LEVEL_INDEX_KEY, str(index))
        self.start_new_round()

    def set_voice_enabled(self, enabled: bool) -> None:
        self._voice_enabled = bool(enabled)
        self._save(VOICE_ENABLED_KEY, json.dumps(self._voice_enabled))
        self._emit(GameEvent.VOICE_TOGGLED)

    def close(self) -> None:
        """Stop all timers. The session accepts no further callbacks."""
        self._cancel_pending()
        self._generation += 1

    # ------------------------------------------------------------------
    # Scheduled callbacks
    # ------------------------------------------------------------------

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        timed_out = self._round.tick()
        self._emit(GameEvent.TICK)
        if timed_out:
            self._finish_round()

    def _on_resolve(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._resolve_task = None
        outcome = self._round.resolve()
        if outcome is SelectionResult.MATCH:
            self._announce(speech.MATCH_FOUND)
            self._emit(GameEvent.MATCH_FOUND)
        elif outcome is SelectionResult.MISMATCH:
            self._announce(speech.TRY_AGAIN)
            self._emit(GameEvent.MISMATCH)
        if self._round.status is RoundStatus.COMPLETE:
            self._finish_round()

    # ------------------------------------------------------------------
    # Round end and difficulty adaptation
    # ------------------------------------------------------------------

    def _finish_round(self) -> None:
        self._cancel_pending()
        state = self._round
        level = state.level
        if state.status is RoundStatus.COMPLETE:
            record = PerformanceRecord.succeeded(state.elapsed_seconds, state.moves, self._clock(), level.key)
            logger.info("Round completed at %s in %ds, %d moves", level.key, state.elapsed_seconds, state.moves)
        else:
            record = PerformanceRecord.failed(self._clock(), level.key)
            logger.info("Round timed out at %s after %ds", level.key, state.elapsed_seconds)

        self._history = append(self._history, record, self._rules.history_cap)
        self._save(HISTORY_KEY, encode_history(self._history))

        if record.success:
            self._announce(speech.round_completed(state.elapsed_seconds))
            self._emit(GameEvent.ROUND_COMPLETED)
        else:
            self._announce(speech.ROUND_TIMED_OUT)
            self._emit(GameEvent.ROUND_TIMED_OUT)

        new_index = adjust(
            self._history,
            self._level_index,
            len(self._config.levels),
            window=self._rules.adjust_window,
            promote_at=self._rules.promote_at,
        )
        change = direction(self._level_index, new_index)
        if change is AdjustDirection.UNCHANGED:
            return

        logger.info("Difficulty %s: %s -> %s", change.value, self.level.key, self._config.levels.get(new_index).key)
        self._level_index = new_index
        self._save(LEVEL_INDEX_KEY, str(new_index))
        if change is AdjustDirection.RAISED:
            self._announce(speech.DIFFICULTY_RAISED)
            self._emit(GameEvent.DIFFICULTY_RAISED)
        else:
            self._announce(speech.DIFFICULTY_LOWERED)
            self._emit(GameEvent.DIFFICULTY_LOWERED)
        self.start_new_round()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _new_round(self) -> GameRound:
        level = self.level
        deck = generate_deck(level.pair_count, self._config.symbols, self._rng)
        return GameRound(level, deck, self._monitor)

    def _cancel_pending(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None
        if self._resolve_task is not None:
            self._resolve_task.cancel()
            self._resolve_task = None

    def _announce(self, text: str) -> None:
        if self._voice_enabled:
            self._announcer.announce(text)

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _read(self, key: str, parse: Callable[[str], T], default: T) -> T:
        raw = self._store.load_value(key)
        if raw is None:
            return default
        try:
            return parse(raw)
        except PersistenceReadError as e:
            logger.warning("Ignoring stored %s: %s", key, e)
            return default

    def _save(self, key: str, value: str) -> None:
        try:
            self._store.save_value(key, value)
        except PersistenceWriteError as e:
            logger.warning("%s", e)

    def _parse_level_index(self, raw: str) -> int:
        try:
            index = int(raw)
        except ValueError as e:
            raise PersistenceReadError(f"not an integer: {raw!r}") from e
        if not self._config.levels.contains(index):
            raise PersistenceReadError(f"no level at index {index}")
        return index


def _parse_bool(raw: str) -> bool:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceReadError(f"not a JSON boolean: {raw!r}") from e
    if not isinstance(value, bool):
        raise PersistenceReadError(f"not a JSON boolean: {raw!r}")
    return value
