from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from typing import Iterable, Optional, Tuple

from gieok.core.errors import PersistenceReadError

DEFAULT_CAP = 7


@dataclass(frozen=True)
class PerformanceRecord:
    """Outcome of one finished round. Time and moves are kept only for successes."""

    success: bool
    time_seconds: Optional[int]
    moves: Optional[int]
    timestamp: float
    level_key: str

    @classmethod
    def succeeded(cls, time_seconds: int, moves: int, timestamp: float, level_key: str) -> "PerformanceRecord":
        return cls(True, time_seconds, moves, timestamp, level_key)

    @classmethod
    def failed(cls, timestamp: float, level_key: str) -> "PerformanceRecord":
        return cls(False, None, None, timestamp, level_key)


History = Tuple[PerformanceRecord, ...]


def append(history: Iterable[PerformanceRecord], record: PerformanceRecord, cap: int = DEFAULT_CAP) -> History:
    """Return a new history with *record* added and only the newest *cap* entries kept."""
    updated = tuple(history) + (record,)
    return updated[-cap:] if cap > 0 else ()


def encode_history(history: Iterable[PerformanceRecord]) -> str:
    return json.dumps([asdict(record) for record in history], ensure_ascii=False)


def decode_history(text: str, cap: int = DEFAULT_CAP) -> History:
    """Parse a stored history. Any malformed entry rejects the whole value."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise PersistenceReadError(f"history is not valid JSON: {e}") from e
    if not isinstance(payload, list):
        raise PersistenceReadError("history must be a JSON list")

    records = []
    for i, item in enumerate(payload):
        if not isinstance(item, dict):
            raise PersistenceReadError(f"history[{i}] is not an object")
        success = item.get("success")
        level_key = item.get("level_key")
        timestamp = item.get("timestamp")
        if not isinstance(success, bool) or not isinstance(level_key, str):
            raise PersistenceReadError(f"history[{i}] missing 'success' or 'level_key'")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            raise PersistenceReadError(f"history[{i}] has an invalid 'timestamp'")
        if success:
            time_seconds = item.get("time_seconds")
            moves = item.get("moves")
            if not _is_count(time_seconds) or not _is_count(moves):
                raise PersistenceReadError(f"history[{i}] success without time and moves")
            records.append(PerformanceRecord.succeeded(time_seconds, moves, float(timestamp), level_key))
        else:
            records.append(PerformanceRecord.failed(float(timestamp), level_key))
    return tuple(records[-cap:]) if cap > 0 else ()


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
