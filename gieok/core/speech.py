"""Spoken feedback: the announcer interface and the fixed Korean phrases."""

from __future__ import annotations

from typing import Protocol

LOCALE = "ko_KR"

MATCH_FOUND = "짝을 찾았습니다! 잘하셨어요."
TRY_AGAIN = "다시 시도해 보세요."
ROUND_TIMED_OUT = "제한 시간을 초과했습니다. 다음 번에는 더 잘하실 수 있어요."
DIFFICULTY_RAISED = "성공이 많아요. 난이도를 한 단계 올렸습니다."
DIFFICULTY_LOWERED = "성공이 적어 난이도를 한 단계 낮췄습니다."


def round_started(pair_count: int) -> str:
    return f"{pair_count}쌍의 카드 게임을 시작합니다. 즐겁게 플레이하세요."


def round_completed(elapsed_seconds: int) -> str:
    return f"축하합니다! 게임을 완료하셨습니다. {elapsed_seconds}초 걸렸습니다."


class Announcer(Protocol):
    def announce(self, text: str) -> None:
        ...


class SilentAnnouncer:
    """Announcer for environments without speech."""

    def announce(self, text: str) -> None:
        pass
