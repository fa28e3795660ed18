"""
Fallback Synthesizer Tests.

============================================================
PURPOSE
============================================================
Tests for deterministic synthetic sentiment snapshots.

TEST CATEGORIES:
- Seeding: token seed and generator values
- Determinism: same token, same output
- Ranges: every field within its documented band

============================================================
"""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from sentiment import DEFAULT_TOKENS, FallbackSynthesizer, SentimentWindow, token_seed


@pytest.fixture
def synthesizer():
    """Synthesizer on a frozen clock."""
    clock = MockClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
    return FallbackSynthesizer(clock=clock)


# ============================================================
# SEEDING TESTS
# ============================================================

class TestSeeding:
    """Tests for token seeds and the generator."""

    def test_token_seed(self):
        """Test position-weighted character code sum."""
        assert token_seed("BTC") == 66 * 1 + 84 * 2 + 67 * 3
        assert token_seed("btc") == token_seed("BTC")

    def test_seed_is_order_sensitive(self):
        """Test anagrams get different seeds."""
        assert token_seed("ETH") != token_seed("HTE")

    def test_rand_formula(self):
        """Test generator value for a known seed."""
        expected = ((435 * 9301 + 49297) % 233280) / 233280
        assert FallbackSynthesizer.rand(435, 0) == pytest.approx(expected)

    def test_rand_varies_by_index(self):
        """Test each field index draws a different value."""
        values = {FallbackSynthesizer.rand(435, i) for i in range(11)}
        assert len(values) == 11

    def test_rand_unit_interval(self):
        """Test generator output lies in [0, 1)."""
        for seed in range(0, 5000, 37):
            for index in range(11):
                assert 0.0 <= FallbackSynthesizer.rand(seed, index) < 1.0


# ============================================================
# DETERMINISM TESTS
# ============================================================

class TestDeterminism:
    """Tests for repeatable output."""

    def test_same_token_same_output(self, synthesizer):
        """Test two calls for the same token are identical."""
        first = synthesizer.synthesize("BTC", SentimentWindow.DAILY)
        second = synthesizer.synthesize("BTC", SentimentWindow.DAILY)
        assert first == second

    def test_different_tokens_differ(self, synthesizer):
        """Test different tokens produce different snapshots."""
        btc = synthesizer.synthesize("BTC")
        eth = synthesizer.synthesize("ETH")
        assert btc.sentiment.positive != eth.sentiment.positive
        assert btc.community != eth.community

    def test_marked_as_fallback(self, synthesizer):
        """Test provenance flag and clock timestamp."""
        snapshot = synthesizer.synthesize("sol", SentimentWindow.ONE_HOUR)

        assert snapshot.is_fallback
        assert snapshot.provenance.value == "fallback"
        assert snapshot.token == "SOL"
        assert snapshot.window == SentimentWindow.ONE_HOUR
        assert snapshot.timestamp == synthesizer.clock.now_ms()

    def test_explicit_timestamp(self, synthesizer):
        """Test caller-supplied timestamp is used."""
        assert synthesizer.synthesize("BTC", timestamp_ms=123).timestamp == 123


# ============================================================
# RANGE TESTS
# ============================================================

class TestRanges:
    """Tests for documented value bands."""

    @pytest.mark.parametrize("token", DEFAULT_TOKENS + ["PEPE", "A", "VERYLONGTOKEN"])
    def test_field_ranges(self, synthesizer, token):
        """Test every field stays within its band."""
        snap = synthesizer.synthesize(token)

        assert 0.4 <= snap.sentiment.positive <= 0.8
        assert snap.sentiment.negative == pytest.approx(1.0 - snap.sentiment.positive)
        assert -0.1 <= snap.sentiment.sentiment_diff <= 0.1

        assert 10_000 <= snap.community.total_messages <= 60_000
        assert 20_000 <= snap.community.interactions <= 120_000
        assert 5_000 <= snap.community.mentions <= 35_000
        assert 2_000 <= snap.community.unique_users <= 12_000
        assert 10 <= snap.community.active_communities <= 60

        assert -0.15 <= snap.signals.deviation <= 0.15
        assert -0.25 <= snap.signals.momentum <= 0.25
        assert 0.0 <= snap.signals.breakout <= 0.2
        assert 0.0 <= snap.signals.price_dislocation <= 0.1

    def test_never_empty(self, synthesizer):
        """Test a synthetic snapshot is never all-zero."""
        assert not synthesizer.synthesize("BTC").is_empty()
