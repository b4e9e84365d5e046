from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from gieok.core.errors import ConfigError


@dataclass(frozen=True)
class DifficultyLevel:
    key: str
    pair_count: int
    target_moves: int
    target_seconds: int


class LevelTable:
    """Ordered difficulty levels, easiest first."""

    def __init__(self, levels: Iterable[DifficultyLevel]) -> None:
        self._levels: List[DifficultyLevel] = list(levels)
        if not self._levels:
            raise ConfigError("Level table is empty")
        seen: set[str] = set()
        for level in self._levels:
            if level.key in seen:
                raise ConfigError(f"Duplicate level key: {level.key}")
            seen.add(level.key)
            if level.pair_count < 1:
                raise ConfigError(f"{level.key}: pair count must be at least 1")
            if level.target_seconds < 1 or level.target_moves < 1:
                raise ConfigError(f"{level.key}: targets must be positive")

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self):
        return iter(self._levels)

    def all(self) -> List[DifficultyLevel]:
        return list(self._levels)

    def get(self, index: int) -> DifficultyLevel:
        if not self.contains(index):
            raise IndexError(f"Level index out of range: {index}")
        return self._levels[index]

    def contains(self, index: int) -> bool:
        return 0 <= index < len(self._levels)

    def index_of(self, key: str) -> int:
        for i, level in enumerate(self._levels):
            if level.key == key:
                return i
        raise KeyError(key)

    @property
    def top(self) -> int:
        return len(self._levels) - 1

    @property
    def middle(self) -> int:
        return (len(self._levels) - 1) // 2
