"""
Unit tests for the seeded demo-data generator.
"""
import pytest

from stageboard.utils.seeded import LCG_INCREMENT, LCG_MASK, LCG_MULTIPLIER, SeededRandom


class TestSeededRandom:
    """Test the linear congruential generator."""

    def test_first_value_follows_recurrence(self):
        """The first draw is one LCG step from the seed, scaled to [0, 1]."""
        rng = SeededRandom(42)
        expected_state = (42 * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK

        assert rng.random() == expected_state / LCG_MASK

    def test_same_seed_same_sequence(self):
        """Two generators with the same seed agree forever."""
        a = SeededRandom(2024)
        b = SeededRandom(2024)

        assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]

    def test_different_seeds_differ(self):
        """Different seeds give different sequences."""
        a = [SeededRandom(1).random() for _ in range(5)]
        b = [SeededRandom(2).random() for _ in range(5)]

        assert a != b

    def test_values_in_unit_interval(self):
        """Every draw lies in [0, 1]."""
        rng = SeededRandom(7)
        for _ in range(1000):
            assert 0.0 <= rng.random() <= 1.0

    def test_below_stays_in_range(self):
        """below(n) never reaches n."""
        rng = SeededRandom(99)
        values = {rng.below(3) for _ in range(500)}

        assert values == {0, 1, 2}

    def test_below_rejects_non_positive(self):
        """below(0) is an error."""
        with pytest.raises(ValueError):
            SeededRandom(1).below(0)

    def test_choice_from_sequence(self):
        """choice returns members of the sequence."""
        rng = SeededRandom(5)
        options = ["a", "b", "c"]

        assert all(rng.choice(options) in options for _ in range(100))

    def test_choice_empty_sequence(self):
        """choice on an empty sequence raises."""
        with pytest.raises(IndexError):
            SeededRandom(5).choice([])

    def test_uniform_bounds(self):
        """uniform(a, b) stays within [a, b]."""
        rng = SeededRandom(11)
        for _ in range(200):
            assert 10.0 <= rng.uniform(10.0, 20.0) <= 20.0

    def test_weighted_index_single_weight(self):
        """A single full weight always picks index 0."""
        rng = SeededRandom(3)

        assert all(rng.weighted_index([1.0]) == 0 for _ in range(20))

    def test_weighted_index_falls_back_to_zero(self):
        """Weights that never reach the roll fall back to the first index."""
        rng = SeededRandom(3)

        assert all(rng.weighted_index([0.0, 0.0]) == 0 for _ in range(20))

    def test_token_uses_alphabet(self):
        """Tokens have the requested length and only alphabet characters."""
        token = SeededRandom(8).token("AB", 12)

        assert len(token) == 12
        assert set(token) <= {"A", "B"}
