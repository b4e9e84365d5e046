"""Data models used by the UI."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List

from gieok.core.history import PerformanceRecord
from gieok.core.round import RoundSnapshot

CARD_BACK_TEXT = "뒤집기"


@dataclass
class CardView:
    """Display state for one card button."""

    index: int
    symbol: str
    face_up: bool
    matched: bool

    @property
    def text(self) -> str:
        return self.symbol if self.face_up else CARD_BACK_TEXT

    @property
    def accessible_name(self) -> str:
        return f"카드 {self.index + 1}"


def card_views(snapshot: RoundSnapshot) -> List[CardView]:
    """Cards are face up while revealed or once matched."""
    revealed = set(snapshot.revealed)
    return [
        CardView(
            index=i,
            symbol=tile.symbol,
            face_up=tile.matched or i in revealed,
            matched=tile.matched,
        )
        for i, tile in enumerate(snapshot.deck)
    ]


def grid_columns(pair_count: int) -> int:
    return max(1, math.ceil(math.sqrt(pair_count * 2)))


def history_lines(record: PerformanceRecord) -> List[str]:
    """Text lines for one entry in the recent-performance list."""
    when = datetime.fromtimestamp(record.timestamp).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        f"날짜: {when}",
        f"레벨: {record.level_key} / 성공: {'예' if record.success else '아니오'}",
    ]
    if record.success:
        lines.append(f"시간: {record.time_seconds}s / 시도: {record.moves}")
    return lines
