"""
Fallback Synthesizer - Deterministic substitute sentiment snapshots.

Used whenever the provider cannot produce a valid snapshot.
The output is pseudo-random but stable per token, so repeated
calls for the same token return the same numbers. It is NOT
cryptographically random and is always tagged ``is_fallback``.
"""

from typing import Optional

from core.clock import ClockProtocol, get_clock

from .models import (
    CommunityActivity,
    EnhancedSentiment,
    SentimentScores,
    SentimentSignals,
    SentimentWindow,
)


# Linear congruential constants
_MULTIPLIER = 9301
_INCREMENT = 49297
_INDEX_STEP = 233
_MODULUS = 233280


def token_seed(token: str) -> int:
    """Order-sensitive character-code sum of the upper-cased symbol."""
    return sum(ord(ch) * (i + 1) for i, ch in enumerate(token.strip().upper()))


class FallbackSynthesizer:
    """
    Produces synthetic ``EnhancedSentiment`` snapshots.

    Ranges:
        positive           0.4 .. 0.8   (negative = 1 - positive)
        sentiment_diff    -0.1 .. 0.1
        total_messages    10k .. 60k
        interactions      20k .. 120k
        mentions           5k .. 35k
        unique_users       2k .. 12k
        active_communities 10 .. 60
        deviation        -0.15 .. 0.15
        momentum         -0.25 .. 0.25
        breakout           0 .. 0.2
        price_dislocation  0 .. 0.1
    """

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self.clock = clock or get_clock()

    @staticmethod
    def rand(seed: int, index: int) -> float:
        """Value in [0, 1) for a seed/index pair. Same input, same output."""
        return ((seed * _MULTIPLIER + _INCREMENT + index * _INDEX_STEP) % _MODULUS) / _MODULUS

    def synthesize(
        self,
        token: str,
        window: SentimentWindow = SentimentWindow.DAILY,
        timestamp_ms: Optional[int] = None,
    ) -> EnhancedSentiment:
        seed = token_seed(token)

        def between(index: int, low: float, high: float) -> float:
            return low + self.rand(seed, index) * (high - low)

        def count(index: int, low: int, high: int) -> int:
            return int(between(index, low, high))

        positive = between(0, 0.4, 0.8)

        return EnhancedSentiment(
            token=token.strip().upper(),
            window=window,
            community=CommunityActivity(
                total_messages=count(2, 10_000, 60_000),
                interactions=count(3, 20_000, 120_000),
                mentions=count(4, 5_000, 35_000),
                unique_users=count(5, 2_000, 12_000),
                active_communities=count(6, 10, 60),
            ),
            sentiment=SentimentScores(
                positive=positive,
                negative=1.0 - positive,
                sentiment_diff=between(1, -0.1, 0.1),
            ),
            signals=SentimentSignals(
                deviation=between(7, -0.15, 0.15),
                momentum=between(8, -0.25, 0.25),
                breakout=between(9, 0.0, 0.2),
                price_dislocation=between(10, 0.0, 0.1),
            ),
            timestamp=timestamp_ms if timestamp_ms is not None else self.clock.now_ms(),
            is_fallback=True,
        )
