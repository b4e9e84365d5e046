from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from gieok.core.errors import ConfigError


@dataclass
class Tile:
    """A single card. Only ``matched`` changes after the deck is dealt."""

    id: str
    symbol: str
    matched: bool = False


def generate_deck(
    pair_count: int,
    symbols: Sequence[str],
    rng: Optional[random.Random] = None,
) -> List[Tile]:
    """Deal two tiles for each of the first *pair_count* symbols, shuffled."""
    if pair_count < 1 or pair_count > len(symbols):
        raise ConfigError(
            f"pair count must be between 1 and {len(symbols)}, got {pair_count}"
        )
    source = rng or random
    deck: List[Tile] = []
    for i, symbol in enumerate(symbols[:pair_count]):
        deck.append(Tile(id=f"{i}-a", symbol=symbol))
        deck.append(Tile(id=f"{i}-b", symbol=symbol))

    # Fisher-Yates
    for i in range(len(deck) - 1, 0, -1):
        j = source.randrange(i + 1)
        deck[i], deck[j] = deck[j], deck[i]
    return deck
