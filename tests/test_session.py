"""Tests for gieok.core.session – the game session orchestrator."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from typing import Dict, List, Optional

import pytest

from gieok.core import speech
from gieok.core.config import GameConfig, load_config
from gieok.core.errors import PersistenceWriteError
from gieok.core.history import PerformanceRecord, decode_history, encode_history
from gieok.core.round import RoundStatus
from gieok.core.scheduler import ManualScheduler
from gieok.core.session import GameEvent, GameSession
from gieok.core.storage import HISTORY_KEY, LEVEL_INDEX_KEY, VOICE_ENABLED_KEY, MemoryStore

NOW = 1_700_000_000.0
MATCH_DELAY_MS = 600

W = PerformanceRecord.succeeded(time_seconds=50, moves=8, timestamp=NOW - 100, level_key="medium")
L = PerformanceRecord.failed(timestamp=NOW - 50, level_key="medium")


class RecordingAnnouncer:
    def __init__(self) -> None:
        self.spoken: List[str] = []

    def announce(self, text: str) -> None:
        self.spoken.append(text)


class FailingStore(MemoryStore):
    def save_value(self, key: str, value: str) -> None:
        raise PersistenceWriteError(f"disk full while saving {key}")


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def config() -> GameConfig:
    return load_config()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def announcer() -> RecordingAnnouncer:
    return RecordingAnnouncer()


def _session(
    config: GameConfig,
    scheduler: ManualScheduler,
    announcer: Optional[RecordingAnnouncer] = None,
    store: Optional[MemoryStore] = None,
) -> GameSession:
    return GameSession(
        config,
        store if store is not None else MemoryStore(),
        scheduler,
        announcer=announcer,
        rng=random.Random(1234),
        clock=lambda: NOW,
    )


def _pairs(session: GameSession) -> List[List[int]]:
    by_symbol: Dict[str, List[int]] = defaultdict(list)
    for i, tile in enumerate(session.round_state.deck):
        by_symbol[tile.symbol].append(i)
    return list(by_symbol.values())


def _mismatch(session: GameSession) -> List[int]:
    pairs = _pairs(session)
    return [pairs[0][0], pairs[1][0]]


def _match_all(session: GameSession, scheduler: ManualScheduler) -> None:
    for a, b in _pairs(session):
        session.select_tile(a)
        session.select_tile(b)
        scheduler.advance(MATCH_DELAY_MS)


# ---------------------------------------------------------------------------
# Construction and loading
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_defaults(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        assert s.level_index == 1
        assert s.level.key == "medium"
        assert s.voice_enabled is True
        assert s.history == ()

    def test_starts_a_round(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        state = s.round_state
        assert state.status is RoundStatus.IN_PROGRESS
        assert len(state.deck) == 12
        assert state.started_at == NOW
        assert announcer.spoken == [speech.round_started(6)]

    def test_loads_stored_settings(self, config, scheduler, announcer):
        store = MemoryStore({
            LEVEL_INDEX_KEY: "0",
            VOICE_ENABLED_KEY: "false",
            HISTORY_KEY: encode_history([W, L]),
        })
        s = _session(config, scheduler, announcer, store)
        assert s.level.key == "easy"
        assert len(s.round_state.deck) == 8
        assert s.voice_enabled is False
        assert s.history == (W, L)
        assert announcer.spoken == []

    @pytest.mark.parametrize("key, raw", [
        (LEVEL_INDEX_KEY, "hard"),
        (LEVEL_INDEX_KEY, "7"),
        (LEVEL_INDEX_KEY, "-1"),
        (VOICE_ENABLED_KEY, "maybe"),
        (VOICE_ENABLED_KEY, "1"),
        (HISTORY_KEY, "NOT VALID JSON"),
        (HISTORY_KEY, '{"records": []}'),
    ])
    def test_malformed_values_fall_back(self, config, scheduler, caplog, key, raw):
        with caplog.at_level(logging.WARNING, logger="gieok.core.session"):
            s = _session(config, scheduler, store=MemoryStore({key: raw}))
        assert s.level_index == 1
        assert s.voice_enabled is True
        assert s.history == ()
        assert any(key in rec.getMessage() for rec in caplog.records)

    def test_stored_history_capped(self, config, scheduler):
        store = MemoryStore({HISTORY_KEY: encode_history([W] * 10)})
        s = _session(config, scheduler, store=store)
        assert len(s.history) == 7


# ---------------------------------------------------------------------------
# Tile selection and delayed resolution
# ---------------------------------------------------------------------------

class TestSelection:
    def test_first_pick_emits_reveal(self, config, scheduler):
        s = _session(config, scheduler)
        events = []
        s.subscribe(events.append)
        s.select_tile(0)
        assert events == [GameEvent.TILE_REVEALED]
        assert s.round_state.revealed == (0,)

    def test_match_resolves_after_match_delay(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        a, b = _pairs(s)[0]
        s.select_tile(a)
        s.select_tile(b)
        assert s.round_state.input_locked
        scheduler.advance(599)
        assert s.round_state.input_locked
        scheduler.advance(1)
        state = s.round_state
        assert not state.input_locked
        assert state.matched_pairs == 1
        assert state.deck[a].matched and state.deck[b].matched
        assert announcer.spoken[-1] == speech.MATCH_FOUND

    def test_mismatch_waits_longer(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        a, b = _mismatch(s)
        s.select_tile(a)
        s.select_tile(b)
        scheduler.advance(600)
        assert s.round_state.input_locked
        assert s.round_state.revealed == (a, b)
        scheduler.advance(300)
        state = s.round_state
        assert not state.input_locked
        assert state.revealed == ()
        assert state.moves == 1
        assert announcer.spoken[-1] == speech.TRY_AGAIN

    def test_clicks_while_locked_are_dropped(self, config, scheduler):
        s = _session(config, scheduler)
        pairs = _pairs(s)
        s.select_tile(pairs[0][0])
        s.select_tile(pairs[1][0])
        s.select_tile(pairs[2][0])
        s.select_tile(pairs[2][1])
        scheduler.advance(900)
        state = s.round_state
        assert state.moves == 1
        assert state.revealed == ()
        assert state.matched_pairs == 0

    def test_reselecting_revealed_tile_is_noop(self, config, scheduler):
        s = _session(config, scheduler)
        s.select_tile(3)
        before = s.round_state
        events = []
        s.subscribe(events.append)
        s.select_tile(3)
        assert s.round_state == before
        assert events == []

    def test_events_for_match(self, config, scheduler):
        s = _session(config, scheduler)
        events = []
        s.subscribe(events.append)
        a, b = _pairs(s)[0]
        s.select_tile(a)
        s.select_tile(b)
        scheduler.advance(600)
        assert events == [GameEvent.TILE_REVEALED, GameEvent.TILE_REVEALED, GameEvent.MATCH_FOUND]


# ---------------------------------------------------------------------------
# Round completion
# ---------------------------------------------------------------------------

class TestCompletion:
    def test_full_round_completes(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        _match_all(s, scheduler)
        state = s.round_state
        assert state.status is RoundStatus.COMPLETE
        assert state.matched_pairs == 6
        assert state.moves == 6

    def test_success_record_appended_and_persisted(self, config, scheduler):
        store = MemoryStore()
        s = _session(config, scheduler, store=store)
        scheduler.advance(5000)
        _match_all(s, scheduler)
        assert len(s.history) == 1
        record = s.history[0]
        assert record.success is True
        assert record.moves == 6
        assert record.time_seconds == 8 == s.round_state.elapsed_seconds
        assert record.level_key == "medium"
        assert record.timestamp == NOW
        assert decode_history(store.load_value(HISTORY_KEY)) == s.history

    def test_success_announced(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        _match_all(s, scheduler)
        assert announcer.spoken[-1] == speech.round_completed(s.round_state.elapsed_seconds)

    def test_round_stays_finished_without_level_change(self, config, scheduler):
        s = _session(config, scheduler)
        events = []
        s.subscribe(events.append)
        _match_all(s, scheduler)
        assert events[-1] is GameEvent.ROUND_COMPLETED
        assert scheduler.pending() == 0
        scheduler.advance(10_000)
        assert s.round_state.status is RoundStatus.COMPLETE
        assert s.round_state.elapsed_seconds == 3

    def test_no_selection_after_complete(self, config, scheduler):
        s = _session(config, scheduler)
        _match_all(s, scheduler)
        before = s.round_state
        for i in range(len(before.deck)):
            s.select_tile(i)
        assert s.round_state == before


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------

class TestTimeout:
    def test_times_out_after_slack_deadline(self, config, scheduler, announcer):
        s = _session(config, scheduler, announcer)
        scheduler.advance(180_000)  # medium: 120 s * 1.5
        assert s.round_state.status is RoundStatus.IN_PROGRESS
        assert s.round_state.elapsed_seconds == 180
        scheduler.advance(1000)
        assert s.round_state.status is RoundStatus.TIMED_OUT
        assert announcer.spoken[-1] == speech.ROUND_TIMED_OUT

    def test_failure_record_has_no_time_or_moves(self, config, scheduler):
        s = _session(config, scheduler)
        a, b = _mismatch(s)
        s.select_tile(a)
        s.select_tile(b)
        scheduler.advance(181_000)
        record = s.history[-1]
        assert record.success is False
        assert record.time_seconds is None
        assert record.moves is None

    def test_timeout_stops_timer(self, config, scheduler):
        s = _session(config, scheduler)
        scheduler.advance(181_000)
        assert scheduler.pending() == 0
        scheduler.advance(5000)
        assert s.round_state.elapsed_seconds == 181


# ---------------------------------------------------------------------------
# Adaptive difficulty
# ---------------------------------------------------------------------------

class TestAdaptation:
    def test_raises_after_two_of_three(self, config, scheduler, announcer):
        store = MemoryStore({HISTORY_KEY: encode_history([L, W])})
        s = _session(config, scheduler, announcer, store)
        events = []
        s.subscribe(events.append)
        _match_all(s, scheduler)
        assert s.level_index == 2
        assert store.load_value(LEVEL_INDEX_KEY) == "2"
        assert events[-3:] == [GameEvent.ROUND_COMPLETED, GameEvent.DIFFICULTY_RAISED, GameEvent.ROUND_STARTED]
        assert announcer.spoken[-2:] == [speech.DIFFICULTY_RAISED, speech.round_started(8)]

    def test_new_round_at_new_level(self, config, scheduler):
        store = MemoryStore({HISTORY_KEY: encode_history([W, W])})
        s = _session(config, scheduler, store=store)
        _match_all(s, scheduler)
        state = s.round_state
        assert state.status is RoundStatus.IN_PROGRESS
        assert state.level.key == "hard"
        assert len(state.deck) == 16
        assert state.moves == 0

    def test_lowers_after_timeouts(self, config, scheduler, announcer):
        store = MemoryStore({HISTORY_KEY: encode_history([W, L])})
        s = _session(config, scheduler, announcer, store)
        events = []
        s.subscribe(events.append)
        scheduler.advance(181_000)
        assert s.level_index == 0
        assert store.load_value(LEVEL_INDEX_KEY) == "0"
        assert events[-3:] == [GameEvent.ROUND_TIMED_OUT, GameEvent.DIFFICULTY_LOWERED, GameEvent.ROUND_STARTED]
        assert speech.DIFFICULTY_LOWERED in announcer.spoken
        assert len(s.round_state.deck) == 8

    def test_top_level_stays(self, config, scheduler):
        store = MemoryStore({LEVEL_INDEX_KEY: "2", HISTORY_KEY: encode_history([W, W])})
        s = _session(config, scheduler, store=store)
        _match_all(s, scheduler)
        assert s.level_index == 2
        assert s.round_state.status is RoundStatus.COMPLETE

    def test_insufficient_history_keeps_level(self, config, scheduler):
        store = MemoryStore({HISTORY_KEY: encode_history([W])})
        s = _session(config, scheduler, store=store)
        _match_all(s, scheduler)
        assert s.level_index == 1
        assert store.load_value(LEVEL_INDEX_KEY) is None


# ---------------------------------------------------------------------------
# Starting rounds, overrides and settings
# ---------------------------------------------------------------------------

class TestCommands:
    def test_new_round_cancels_pending_resolution(self, config, scheduler):
        s = _session(config, scheduler)
        a, b = _pairs(s)[0]
        s.select_tile(a)
        s.select_tile(b)
        s.start_new_round()
        scheduler.advance(600)
        state = s.round_state
        assert state.matched_pairs == 0
        assert state.moves == 0
        assert not state.input_locked
        assert not any(t.matched for t in state.deck)

    def test_new_round_resets_timer(self, config, scheduler):
        s = _session(config, scheduler)
        scheduler.advance(5000)
        s.start_new_round()
        assert s.round_state.elapsed_seconds == 0
        assert scheduler.pending() == 1
        scheduler.advance(1000)
        assert s.round_state.elapsed_seconds == 1

    def test_new_round_deals_fresh_deck(self, config, scheduler):
        s = _session(config, scheduler)
        a, b = _pairs(s)[0]
        s.select_tile(a)
        s.select_tile(b)
        scheduler.advance(600)
        s.start_new_round()
        assert not any(t.matched for t in s.round_state.deck)

    def test_set_difficulty(self, config, scheduler, announcer):
        store = MemoryStore()
        s = _session(config, scheduler, announcer, store)
        s.set_difficulty(0)
        assert s.level.key == "easy"
        assert len(s.round_state.deck) == 8
        assert store.load_value(LEVEL_INDEX_KEY) == "0"
        assert announcer.spoken[-1] == speech.round_started(4)

    def test_set_difficulty_does_not_touch_history(self, config, scheduler):
        s = _session(config, scheduler)
        s.set_difficulty(2)
        assert s.history == ()

    @pytest.mark.parametrize("index", [-1, 3])
    def test_set_difficulty_out_of_range(self, config, scheduler, index):
        s = _session(config, scheduler)
        with pytest.raises(IndexError):
            s.set_difficulty(index)
        assert s.level_index == 1

    def test_voice_toggle_silences(self, config, scheduler, announcer):
        store = MemoryStore()
        s = _session(config, scheduler, announcer, store)
        s.set_voice_enabled(False)
        spoken = list(announcer.spoken)
        s.start_new_round()
        assert announcer.spoken == spoken
        assert store.load_value(VOICE_ENABLED_KEY) == "false"

    def test_voice_toggle_event(self, config, scheduler):
        s = _session(config, scheduler)
        events = []
        s.subscribe(events.append)
        s.set_voice_enabled(False)
        assert events == [GameEvent.VOICE_TOGGLED]

    def test_voice_toggle_while_locked(self, config, scheduler):
        s = _session(config, scheduler)
        a, b = _mismatch(s)
        s.select_tile(a)
        s.select_tile(b)
        s.set_voice_enabled(False)
        assert s.voice_enabled is False
        assert s.round_state.input_locked

    def test_unsubscribe(self, config, scheduler):
        s = _session(config, scheduler)
        events = []
        unsubscribe = s.subscribe(events.append)
        unsubscribe()
        s.select_tile(0)
        assert events == []

    def test_close_cancels_everything(self, config, scheduler):
        s = _session(config, scheduler)
        a, b = _mismatch(s)
        s.select_tile(a)
        s.select_tile(b)
        s.close()
        assert scheduler.pending() == 0
        scheduler.advance(5000)
        assert s.round_state.input_locked
        assert s.round_state.elapsed_seconds == 0


# ---------------------------------------------------------------------------
# Persistence failures
# ---------------------------------------------------------------------------

class TestPersistenceFailure:
    def test_write_failures_are_logged_not_raised(self, config, scheduler, caplog):
        store = FailingStore({HISTORY_KEY: encode_history([W, W])})
        s = _session(config, scheduler, store=store)
        with caplog.at_level(logging.WARNING, logger="gieok.core.session"):
            _match_all(s, scheduler)
            s.set_voice_enabled(False)
        assert s.level_index == 2
        assert len(s.history) == 3
        assert s.voice_enabled is False
        assert any("disk full" in rec.getMessage() for rec in caplog.records)
