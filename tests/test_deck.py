"""Tests for gieok.core.deck – deck generation and shuffling."""

from __future__ import annotations

import random
from collections import Counter

import pytest

from gieok.core.deck import Tile, generate_deck
from gieok.core.errors import ConfigError

SYMBOLS = ["A", "B", "C", "D", "E", "F", "G", "H"]


# ---------------------------------------------------------------------------
# Tile dataclass
# ---------------------------------------------------------------------------

class TestTile:
    def test_defaults_unmatched(self):
        t = Tile(id="0-a", symbol="A")
        assert t.matched is False

    def test_matched_can_flip(self):
        t = Tile(id="0-a", symbol="A")
        t.matched = True
        assert t.matched is True


# ---------------------------------------------------------------------------
# generate_deck – contents
# ---------------------------------------------------------------------------

class TestDeckContents:
    @pytest.mark.parametrize("pairs", [1, 2, 4, 6, 8])
    def test_size_is_twice_pair_count(self, pairs):
        deck = generate_deck(pairs, SYMBOLS, random.Random(1))
        assert len(deck) == 2 * pairs

    @pytest.mark.parametrize("pairs", [1, 3, 8])
    def test_each_symbol_exactly_twice(self, pairs):
        deck = generate_deck(pairs, SYMBOLS, random.Random(2))
        counts = Counter(t.symbol for t in deck)
        assert set(counts.values()) == {2}

    def test_uses_first_symbols_in_order(self):
        deck = generate_deck(3, SYMBOLS, random.Random(3))
        assert {t.symbol for t in deck} == {"A", "B", "C"}

    def test_ids_unique(self):
        deck = generate_deck(8, SYMBOLS, random.Random(4))
        assert len({t.id for t in deck}) == 16

    def test_ids_follow_pair_suffix(self):
        deck = generate_deck(2, SYMBOLS, random.Random(5))
        assert sorted(t.id for t in deck) == ["0-a", "0-b", "1-a", "1-b"]

    def test_all_unmatched(self):
        deck = generate_deck(4, SYMBOLS, random.Random(6))
        assert not any(t.matched for t in deck)

    def test_same_seed_same_order(self):
        a = generate_deck(6, SYMBOLS, random.Random(42))
        b = generate_deck(6, SYMBOLS, random.Random(42))
        assert [t.id for t in a] == [t.id for t in b]

    def test_default_rng(self):
        deck = generate_deck(4, SYMBOLS)
        assert len(deck) == 8


# ---------------------------------------------------------------------------
# generate_deck – invalid pair counts
# ---------------------------------------------------------------------------

class TestDeckErrors:
    def test_zero_pairs(self):
        with pytest.raises(ConfigError):
            generate_deck(0, SYMBOLS)

    def test_negative_pairs(self):
        with pytest.raises(ConfigError):
            generate_deck(-1, SYMBOLS)

    def test_more_pairs_than_symbols(self):
        with pytest.raises(ConfigError):
            generate_deck(len(SYMBOLS) + 1, SYMBOLS)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            generate_deck(0, SYMBOLS)


# ---------------------------------------------------------------------------
# generate_deck – shuffle uniformity
# ---------------------------------------------------------------------------

class TestShuffleUniformity:
    def test_no_positional_bias(self):
        # 3 pairs -> 6 positions; tile "0-a" should land in each about 1/6 of the time.
        rng = random.Random(2024)
        runs = 6000
        positions = Counter()
        for _ in range(runs):
            deck = generate_deck(3, SYMBOLS, rng)
            positions[next(i for i, t in enumerate(deck) if t.id == "0-a")] += 1
        expected = runs / 6
        # ~5 standard deviations of a binomial(6000, 1/6)
        for pos in range(6):
            assert abs(positions[pos] - expected) < 150

    def test_every_ordering_of_two_pairs_appears(self):
        rng = random.Random(7)
        seen = set()
        for _ in range(2000):
            seen.add(tuple(t.id for t in generate_deck(2, SYMBOLS, rng)))
        assert len(seen) == 24  # 4! orderings of four distinct ids
