from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from gieok.core.errors import ConfigError
from gieok.core.levels import DifficultyLevel, LevelTable


@dataclass(frozen=True)
class GameRules:
    """Tuning knobs for timing and difficulty adaptation."""

    timeout_slack: float = 1.5
    history_cap: int = 7
    adjust_window: int = 3
    promote_at: int = 2
    match_delay_ms: int = 600
    mismatch_delay_ms: int = 900
    tick_interval_ms: int = 1000
    default_level: int = 1


@dataclass(frozen=True)
class GameConfig:
    levels: LevelTable
    symbols: Tuple[str, ...]
    rules: GameRules = field(default_factory=GameRules)


def default_config_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "game.yaml"


def load_config(path: Optional[Path] = None) -> GameConfig:
    """Load the level table, symbol pool and rules from a YAML file."""
    config_path = path or default_config_path()
    if not config_path.exists():
        raise ConfigError(f"Game config not found: {config_path}")
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"{config_path.name}: invalid YAML: {e}") from e
    if not raw or not isinstance(raw, dict):
        raise ConfigError(f"{config_path.name}: expected a mapping with 'levels' and 'symbols'")
    return parse_config(raw, source=config_path.name)


def parse_config(raw: Dict[str, Any], source: str = "<config>") -> GameConfig:
    levels = _parse_levels(raw.get("levels"), source)
    symbols = _parse_symbols(raw.get("symbols"), source)
    rules = _parse_rules(raw.get("rules") or {}, source)

    for level in levels:
        if level.pair_count > len(symbols):
            raise ConfigError(
                f"{source}: level '{level.key}' needs {level.pair_count} symbols, "
                f"only {len(symbols)} available"
            )
    if not levels.contains(rules.default_level):
        raise ConfigError(f"{source}: 'default_level' {rules.default_level} is not a level index")
    return GameConfig(levels=levels, symbols=symbols, rules=rules)


def _parse_levels(entries: Any, source: str) -> LevelTable:
    if not entries or not isinstance(entries, list):
        raise ConfigError(f"{source}: missing or empty 'levels'")
    levels = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"{source}: levels[{i}] must be a mapping")
        key = entry.get("key")
        if not key or not isinstance(key, str):
            raise ConfigError(f"{source}: levels[{i}] missing or invalid 'key'")
        try:
            levels.append(
                DifficultyLevel(
                    key=key.strip(),
                    pair_count=int(entry["pairs"]),
                    target_moves=int(entry["target_moves"]),
                    target_seconds=int(entry["target_seconds"]),
                )
            )
        except KeyError as e:
            raise ConfigError(f"{source}: level '{key}' missing {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{source}: level '{key}' has a non-integer field") from e
    return LevelTable(levels)


def _parse_symbols(entries: Any, source: str) -> Tuple[str, ...]:
    if not entries or not isinstance(entries, list):
        raise ConfigError(f"{source}: missing or empty 'symbols'")
    symbols = tuple(str(item).strip() for item in entries if str(item).strip())
    if len(set(symbols)) != len(symbols):
        raise ConfigError(f"{source}: 'symbols' contains duplicates")
    return symbols


def _parse_rules(raw: Any, source: str) -> GameRules:
    if not isinstance(raw, dict):
        raise ConfigError(f"{source}: 'rules' must be a mapping")
    defaults = GameRules()
    known = set(GameRules.__dataclass_fields__)
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"{source}: unknown rules: {', '.join(sorted(unknown))}")
    try:
        rules = GameRules(
            timeout_slack=float(raw.get("timeout_slack", defaults.timeout_slack)),
            history_cap=int(raw.get("history_cap", defaults.history_cap)),
            adjust_window=int(raw.get("adjust_window", defaults.adjust_window)),
            promote_at=int(raw.get("promote_at", defaults.promote_at)),
            match_delay_ms=int(raw.get("match_delay_ms", defaults.match_delay_ms)),
            mismatch_delay_ms=int(raw.get("mismatch_delay_ms", defaults.mismatch_delay_ms)),
            tick_interval_ms=int(raw.get("tick_interval_ms", defaults.tick_interval_ms)),
            default_level=int(raw.get("default_level", defaults.default_level)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{source}: invalid value in 'rules': {e}") from e

    if rules.timeout_slack < 1.0:
        raise ConfigError(f"{source}: 'timeout_slack' must be at least 1.0")
    if rules.adjust_window < 1 or rules.history_cap < rules.adjust_window:
        raise ConfigError(f"{source}: 'history_cap' must hold at least 'adjust_window' records")
    if not 1 <= rules.promote_at <= rules.adjust_window:
        raise ConfigError(f"{source}: 'promote_at' must be between 1 and 'adjust_window'")
    if rules.match_delay_ms >= rules.mismatch_delay_ms:
        raise ConfigError(f"{source}: 'match_delay_ms' must be shorter than 'mismatch_delay_ms'")
    if rules.tick_interval_ms < 1:
        raise ConfigError(f"{source}: 'tick_interval_ms' must be positive")
    return rules
