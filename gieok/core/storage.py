from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from gieok.core.errors import PersistenceWriteError

logger = logging.getLogger(__name__)

LEVEL_INDEX_KEY = "level_index"
VOICE_ENABLED_KEY = "voice_enabled"
HISTORY_KEY = "performance_history"


class KeyValueStore(Protocol):
    def load_value(self, key: str) -> Optional[str]:
        ...

    def save_value(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """Session-only store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def load_value(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def save_value(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStore:
    """Stores settings and history as one JSON object. Persists across app restarts.
    File: ~/.gieok/settings.json unless another path is given."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path or Path.home() / ".gieok" / "settings.json"
        self._values = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load_value(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def save_value(self, key: str, value: str) -> None:
        """Update *key* and rewrite the file. The in-memory value is kept even if the write fails."""
        self._values[key] = value
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(self._values, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise PersistenceWriteError(f"Could not save {key} to {self._file_path}: {e}") from e

    def _load(self) -> Dict[str, str]:
        if not self._file_path.exists():
            return {}
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not load settings from %s: %s", self._file_path, e)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring settings in %s: expected a JSON object", self._file_path)
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}
