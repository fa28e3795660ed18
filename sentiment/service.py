"""
Sentiment Service - Single entry point for real-or-synthetic sentiment.

The service:
1. Asks the metric source first
2. Substitutes the fallback synthesizer when the source returns
   nothing usable (error, not configured, all-zero snapshot)
3. Tags every answer with its provenance
4. Fans out over many tokens concurrently, isolating failures

Callers always get structurally valid data. Degraded quality is
visible only through the ``source``/``sources`` provenance fields.
"""

import asyncio
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Union

from core.clock import ClockProtocol, get_clock

from .base import BaseMetricSource
from .fallback import FallbackSynthesizer
from .models import (
    EnhancedSentiment,
    MultiTokenSentiment,
    Provenance,
    SentimentData,
    SentimentInsight,
    SentimentWindow,
)


logger = logging.getLogger(__name__)


DEFAULT_TOKENS: List[str] = ["BTC", "BNB", "ETH", "SOL", "XRP", "DOGE", "SUI", "USDT"]


def score_from_positive(positive: float) -> int:
    """Positive share in [0, 1] -> integer score 0-100, halves round up."""
    return max(0, min(100, int(math.floor(positive * 100 + 0.5))))


class SentimentService:
    """
    Composes a metric source with the fallback synthesizer.

    DESIGN PRINCIPLES:
    1. NEVER raises - every call returns usable data
    2. TRANSPARENT - provenance says whether data is real
    3. ISOLATED - one token's failure never affects another

    Usage:
        service = SentimentService(CryptoracleSource(config.sentiment))
        insight = await service.get_snapshot("BTC", "4H")
        print(insight.vibe_score, insight.source.value)
    """

    def __init__(
        self,
        source: BaseMetricSource,
        synthesizer: Optional[FallbackSynthesizer] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._source = source
        self.clock = clock or get_clock()
        self._synthesizer = synthesizer or FallbackSynthesizer(clock=self.clock)

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def get_snapshot(
        self,
        token: str,
        window: Union[SentimentWindow, str] = SentimentWindow.DAILY,
    ) -> SentimentInsight:
        """Full snapshot for one token. Never None."""
        window = SentimentWindow.parse(window)
        symbol = _normalize_symbol(token)
        snapshot = await self._resolve(symbol, window)

        return SentimentInsight(
            token=symbol,
            window=window,
            enhanced=snapshot,
            vibe_score=score_from_positive(snapshot.sentiment.positive),
            source=snapshot.provenance,
        )

    async def get_simple_score(self, token: str) -> SentimentData:
        """Scalar 0-100 score derived from the Daily snapshot's positive share."""
        insight = await self.get_snapshot(token, SentimentWindow.DAILY)
        return SentimentData(
            token=insight.token,
            score=insight.vibe_score,
            timestamp=insight.enhanced.timestamp,
            sources=[insight.source.value],
        )

    async def get_many(
        self,
        tokens: Optional[Iterable[str]] = None,
        window: Union[SentimentWindow, str] = SentimentWindow.DAILY,
    ) -> MultiTokenSentiment:
        """
        Snapshots for many tokens, fetched concurrently.

        Every requested token gets an entry. Provenance is FALLBACK
        only if every token needed the fallback.
        """
        window = SentimentWindow.parse(window)
        symbols = _unique_symbols(tokens) or list(DEFAULT_TOKENS)

        tasks = {
            symbol: asyncio.create_task(self._resolve(symbol, window), name=f"sentiment:{symbol}")
            for symbol in symbols
        }
        results = await asyncio.gather(*tasks.values(), return_exceptions=True)

        snapshots: Dict[str, EnhancedSentiment] = {}
        for symbol, result in zip(tasks.keys(), results):
            if isinstance(result, BaseException):
                logger.error(f"Sentiment task for {symbol} failed: {result}")
                result = self._synthesizer.synthesize(symbol, window)
            snapshots[symbol] = result

        any_real = any(not snap.is_fallback for snap in snapshots.values())
        return MultiTokenSentiment(
            window=window,
            tokens=snapshots,
            source=Provenance.CRYPTORACLE if any_real else Provenance.FALLBACK,
            updated_at=self.clock.now_ms(),
        )

    def get_source_health(self) -> Dict[str, Any]:
        return {
            "health": self._source.get_health().to_dict(),
            "stats": self._source.get_stats(),
        }

    async def close(self) -> None:
        await self._source.close()

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    async def _resolve(self, symbol: str, window: SentimentWindow) -> EnhancedSentiment:
        try:
            snapshot = await self._source.fetch_enhanced(symbol, window)
        except Exception as e:
            logger.error(f"Metric source raised for {symbol}: {e}", exc_info=True)
            snapshot = None

        if snapshot is not None and not snapshot.is_empty():
            return snapshot

        if snapshot is not None:
            logger.warning(f"Discarding all-zero snapshot for {symbol}")
        logger.info(f"Using fallback sentiment for {symbol} ({window.value})")
        return self._synthesizer.synthesize(symbol, window)


def _normalize_symbol(token: str) -> str:
    return str(token or "").strip().upper()


def _unique_symbols(tokens: Optional[Iterable[str]]) -> List[str]:
    if not tokens:
        return []
    seen: List[str] = []
    for token in tokens:
        symbol = _normalize_symbol(token)
        if symbol and symbol not in seen:
            seen.append(symbol)
    return seen
