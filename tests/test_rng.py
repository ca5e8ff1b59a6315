"""Tests for the seeded random source."""

import random

import pytest

from loadsim.rng import SeededRandom


class TestDeterminism:
    """Same seed and call order give the same values."""

    def test_same_seed_same_sequence(self):
        a, b = SeededRandom(7), SeededRandom(7)
        assert [a.next_int(0, 1000) for _ in range(20)] == [b.next_int(0, 1000) for _ in range(20)]

    def test_different_seeds_differ(self):
        a, b = SeededRandom(1), SeededRandom(2)
        assert [a.next() for _ in range(5)] != [b.next() for _ in range(5)]

    def test_global_random_untouched(self):
        """Drawing from a source does not consume global random state."""
        random.seed(123)
        expected = random.random()
        random.seed(123)
        SeededRandom(5).next()
        assert random.random() == expected


class TestRanges:
    """Tests for value ranges."""

    def test_next_int_inclusive(self, rng):
        values = {rng.next_int(1, 3) for _ in range(200)}
        assert values == {1, 2, 3}

    def test_next_int_empty_range(self, rng):
        with pytest.raises(ValueError):
            rng.next_int(5, 4)

    def test_next_float_bounds(self, rng):
        for _ in range(100):
            assert 0.5 <= rng.next_float(0.5, 0.99) < 0.99

    def test_pick_empty(self, rng):
        with pytest.raises(ValueError):
            rng.pick([])

    def test_weighted_pick_respects_zero_weight(self, rng):
        picks = {rng.weighted_pick({"a": 1.0, "b": 0.0}) for _ in range(50)}
        assert picks == {"a"}

    def test_shuffle_returns_copy(self, rng):
        items = [1, 2, 3, 4]
        shuffled = rng.shuffle(items)
        assert items == [1, 2, 3, 4]
        assert sorted(shuffled) == items

    def test_sample_clamped(self, rng):
        assert len(rng.sample([1, 2, 3], 10)) == 3
        assert len(set(rng.sample(range(100), 10))) == 10

    def test_derive_independent(self):
        base = SeededRandom(10)
        assert base.derive(1).seed == 11
        assert SeededRandom(10).derive(1).next() == SeededRandom(11).next()
