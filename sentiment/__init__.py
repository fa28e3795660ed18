"""
Sentiment Aggregation Layer - Multi-metric sentiment with deterministic fallback.

This package provides:
- Cryptoracle: twelve community/sentiment/signal metrics per token
- Normalization pipeline for arbitrarily wrapped provider payloads
- Fallback synthesizer for when the provider has no usable data
- SentimentService: single entry point, always returns usable data

Usage:
    from core.config import PipelineConfig
    from sentiment import CryptoracleSource, SentimentService

    config = PipelineConfig.from_env()
    service = SentimentService(CryptoracleSource(config.sentiment))

    insight = await service.get_snapshot("BTC", "Daily")
    print(f"Vibe score: {insight.vibe_score} ({insight.source.value})")

    dashboard = await service.get_many(["BTC", "ETH"], "4H")

Output Schema:
- community: five non-negative activity counters
- sentiment: positive/negative in [0, 1], sentimentDiff in [-1, 1]
- signals: deviation, momentum, breakout, priceDislocation
- source: "cryptoracle" (real) or "fallback" (synthetic)
"""

from .base import BaseMetricSource
from .fallback import FallbackSynthesizer, token_seed
from .models import (
    ALL_METRIC_CODES,
    COMMUNITY_METRICS,
    SENTIMENT_METRICS,
    SIGNAL_METRICS,
    CommunityActivity,
    EnhancedSentiment,
    MultiTokenSentiment,
    Provenance,
    SentimentData,
    SentimentInsight,
    SentimentScores,
    SentimentSignals,
    SentimentWindow,
    SourceHealth,
    SourceMetadata,
    SourceStatus,
)
from .pipeline import SentimentPipeline
from .providers import CryptoracleSource
from .service import DEFAULT_TOKENS, SentimentService, score_from_positive


__all__ = [
    # Base
    "BaseMetricSource",

    # Providers
    "CryptoracleSource",

    # Pipeline, fallback & service
    "SentimentPipeline",
    "FallbackSynthesizer",
    "token_seed",
    "SentimentService",
    "score_from_positive",
    "DEFAULT_TOKENS",

    # Models
    "ALL_METRIC_CODES",
    "COMMUNITY_METRICS",
    "SENTIMENT_METRICS",
    "SIGNAL_METRICS",
    "CommunityActivity",
    "EnhancedSentiment",
    "MultiTokenSentiment",
    "Provenance",
    "SentimentData",
    "SentimentInsight",
    "SentimentScores",
    "SentimentSignals",
    "SentimentWindow",
    "SourceHealth",
    "SourceMetadata",
    "SourceStatus",
]


__version__ = "1.0.0"
