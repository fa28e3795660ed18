"""
Sentiment Data Models - Normalized sentiment structures.

Snapshot and envelope types are frozen; only the health record mutates.
Python field names are snake_case; ``to_dict()`` emits the
camelCase names dashboard clients expect.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging


logger = logging.getLogger(__name__)


class SourceStatus(Enum):
    """Health status of a sentiment source."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    NO_DATA = "no_data"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class Provenance(Enum):
    """Where a piece of sentiment data came from."""
    CRYPTORACLE = "cryptoracle"
    FALLBACK = "fallback"


class SentimentWindow(Enum):
    """Time granularity for sentiment aggregation."""
    DAILY = "Daily"
    FOUR_HOURS = "4H"
    ONE_HOUR = "1H"
    FIFTEEN_MINUTES = "15M"

    @property
    def time_type(self) -> str:
        """Provider granularity code."""
        return _WINDOW_TIME_TYPES[self]

    @property
    def duration(self) -> timedelta:
        """Width of the ``[startTime, endTime)`` range."""
        return _WINDOW_DURATIONS[self]

    @classmethod
    def parse(cls, value: Any) -> "SentimentWindow":
        """Case-insensitive lookup; unknown values fall back to DAILY."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        for window in cls:
            if window.value.upper() == text:
                return window
        logger.warning(f"Unknown sentiment window {value!r}, using Daily")
        return cls.DAILY


_WINDOW_TIME_TYPES: Dict[SentimentWindow, str] = {
    SentimentWindow.DAILY: "1d",
    SentimentWindow.FOUR_HOURS: "4h",
    SentimentWindow.ONE_HOUR: "1h",
    SentimentWindow.FIFTEEN_MINUTES: "15m",
}

_WINDOW_DURATIONS: Dict[SentimentWindow, timedelta] = {
    SentimentWindow.DAILY: timedelta(hours=24),
    SentimentWindow.FOUR_HOURS: timedelta(hours=4),
    SentimentWindow.ONE_HOUR: timedelta(hours=1),
    SentimentWindow.FIFTEEN_MINUTES: timedelta(minutes=15),
}


# ─────────────────────────────────────────────────────────────
# Provider metric codes
# ─────────────────────────────────────────────────────────────

COMMUNITY_METRICS: Dict[str, str] = {
    "CO-A-01-03": "total_messages",
    "CO-A-01-04": "interactions",
    "CO-A-01-05": "mentions",
    "CO-A-01-07": "unique_users",
    "CO-A-01-08": "active_communities",
}

SENTIMENT_METRICS: Dict[str, str] = {
    "CO-A-02-01": "positive",
    "CO-A-02-02": "negative",
    "CO-A-02-03": "sentiment_diff",
}

SIGNAL_METRICS: Dict[str, str] = {
    "CO-S-01-01": "deviation",
    "CO-S-01-02": "momentum",
    "CO-S-01-03": "breakout",
    "CO-S-01-05": "price_dislocation",
}

ALL_METRIC_CODES: List[str] = [
    *COMMUNITY_METRICS,
    *SENTIMENT_METRICS,
    *SIGNAL_METRICS,
]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class CommunityActivity:
    """Community activity counters. Negative input clamps to 0."""
    total_messages: int = 0
    interactions: int = 0
    mentions: int = 0
    unique_users: int = 0
    active_communities: int = 0

    def __post_init__(self) -> None:
        for name in COMMUNITY_METRICS.values():
            value = getattr(self, name)
            object.__setattr__(self, name, max(0, int(round(value))))

    def values(self) -> Tuple[float, ...]:
        return tuple(float(getattr(self, name)) for name in COMMUNITY_METRICS.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMessages": self.total_messages,
            "interactions": self.interactions,
            "mentions": self.mentions,
            "uniqueUsers": self.unique_users,
            "activeCommunities": self.active_communities,
        }


@dataclass(frozen=True)
class SentimentScores:
    """
    Positive/negative shares in [0, 1] and their difference in [-1, 1].

    positive + negative need not equal 1 (provider rounding).
    """
    positive: float = 0.0
    negative: float = 0.0
    sentiment_diff: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "positive", _clamp(float(self.positive), 0.0, 1.0))
        object.__setattr__(self, "negative", _clamp(float(self.negative), 0.0, 1.0))
        object.__setattr__(self, "sentiment_diff", _clamp(float(self.sentiment_diff), -1.0, 1.0))

    def values(self) -> Tuple[float, ...]:
        return (self.positive, self.negative, self.sentiment_diff)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "positive": self.positive,
            "negative": self.negative,
            "sentimentDiff": self.sentiment_diff,
        }


@dataclass(frozen=True)
class SentimentSignals:
    """Unitless, sign-bearing signal indicators."""
    deviation: float = 0.0
    momentum: float = 0.0
    breakout: float = 0.0
    price_dislocation: float = 0.0

    def values(self) -> Tuple[float, ...]:
        return (self.deviation, self.momentum, self.breakout, self.price_dislocation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviation": self.deviation,
            "momentum": self.momentum,
            "breakout": self.breakout,
            "priceDislocation": self.price_dislocation,
        }


@dataclass(frozen=True)
class EnhancedSentiment:
    """
    Full multi-metric sentiment snapshot for one token.

    A snapshot whose twelve numeric fields are all exactly zero
    means the provider returned no data; it is never surfaced
    as real.
    """
    token: str
    window: SentimentWindow
    community: CommunityActivity
    sentiment: SentimentScores
    signals: SentimentSignals
    timestamp: int  # milliseconds since epoch
    is_fallback: bool = False

    def numeric_fields(self) -> Tuple[float, ...]:
        return self.community.values() + self.sentiment.values() + self.signals.values()

    def is_empty(self) -> bool:
        return all(value == 0 for value in self.numeric_fields())

    @property
    def provenance(self) -> Provenance:
        return Provenance.FALLBACK if self.is_fallback else Provenance.CRYPTORACLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "window": self.window.value,
            "community": self.community.to_dict(),
            "sentiment": self.sentiment.to_dict(),
            "signals": self.signals.to_dict(),
            "timestamp": self.timestamp,
            "isFallback": self.is_fallback,
        }


@dataclass(frozen=True)
class SentimentData:
    """Single scalar sentiment score (0-100) with provenance."""
    token: str
    score: int
    timestamp: int
    sources: List[str] = field(default_factory=lambda: [Provenance.FALLBACK.value])

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", int(_clamp(int(round(self.score)), 0, 100)))
        if not self.sources:
            raise ValueError("sources must record at least one provenance")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "score": self.score,
            "timestamp": self.timestamp,
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class SentimentInsight:
    """Response envelope for one token: snapshot plus provenance."""
    token: str
    window: SentimentWindow
    enhanced: EnhancedSentiment
    vibe_score: int
    source: Provenance

    @property
    def is_fallback(self) -> bool:
        return self.source == Provenance.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "window": self.window.value,
            "enhanced": self.enhanced.to_dict(),
            "vibeScore": self.vibe_score,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class MultiTokenSentiment:
    """
    Response envelope for many tokens.

    ``source`` is FALLBACK only if every token fell back.
    """
    window: SentimentWindow
    tokens: Dict[str, EnhancedSentiment]
    source: Provenance
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "window": self.window.value,
            "tokens": {name: snap.to_dict() for name, snap in self.tokens.items()},
            "updatedAt": self.updated_at,
            "source": self.source.value,
        }


@dataclass
class SourceHealth:
    """Health status of a sentiment source."""
    status: SourceStatus
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    consecutive_failures: int = 0

    def is_healthy(self) -> bool:
        return self.status == SourceStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "latency_ms": self.latency_ms,
            "error_count": self.error_count,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
            "consecutive_failures": self.consecutive_failures,
        }


@dataclass
class SourceMetadata:
    """Metadata about a sentiment source."""
    name: str
    display_name: str
    version: str
    requires_api_key: bool = True
    base_url: str = ""
    documentation_url: str = ""
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "version": self.version,
            "requires_api_key": self.requires_api_key,
            "base_url": self.base_url,
            "tags": self.tags,
        }
