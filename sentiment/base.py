"""
Base Metric Source - Abstract interface for multi-metric sentiment providers.

All sources follow the same contract: one batched fetch per
token and window, normalized into an ``EnhancedSentiment``,
or ``None`` when no usable data could be produced.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.clock import ClockProtocol, get_clock
from core.exceptions import (
    MalformedResponseError,
    NoDataError,
    NotConfiguredError,
    PipelineError,
    UpstreamUnavailableError,
)

from .models import (
    EnhancedSentiment,
    SentimentWindow,
    SourceHealth,
    SourceMetadata,
    SourceStatus,
)


logger = logging.getLogger(__name__)


class BaseMetricSource(ABC):
    """
    Abstract base class for multi-metric sentiment sources.

    DESIGN PRINCIPLES:
    1. NEVER raise - log and return None
    2. NO retries - a failed call fails once and the caller falls back
    3. ALL-ZERO is NO DATA - never surfaced as a real reading

    All subclasses must implement:
    - _fetch_raw() - Get the raw payload from the provider
    - _normalize() - Convert the payload to EnhancedSentiment
    - metadata - Source metadata property
    """

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self.clock = clock or get_clock()

        self._health = SourceHealth(
            status=SourceStatus.UNKNOWN,
            last_check=datetime.now(timezone.utc),
        )
        self._stats = {
            "total_requests": 0,
            "successful_fetches": 0,
            "no_data": 0,
            "errors": 0,
            "not_configured": 0,
        }

    @property
    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return source metadata."""
        pass

    @abstractmethod
    async def _fetch_raw(
        self,
        token: str,
        window: SentimentWindow,
        start_ms: int,
        end_ms: int,
    ) -> Any:
        """
        Fetch the raw payload for one token and window.

        Should raise a PipelineError subclass on failure.
        """
        pass

    @abstractmethod
    def _normalize(
        self,
        raw_data: Any,
        token: str,
        window: SentimentWindow,
    ) -> EnhancedSentiment:
        """
        Normalize the raw payload.

        Should raise MalformedResponseError when the shape is unusable.
        """
        pass

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    def time_range(self, window: SentimentWindow) -> tuple:
        """``(start_ms, end_ms)`` of the window ending now."""
        end_ms = self.clock.now_ms()
        start_ms = end_ms - int(window.duration.total_seconds() * 1000)
        return start_ms, end_ms

    async def fetch_enhanced(
        self,
        token: str,
        window: SentimentWindow = SentimentWindow.DAILY,
    ) -> Optional[EnhancedSentiment]:
        """
        Fetch a normalized snapshot.

        NEVER raises - returns None on failure or when the
        provider answered with an all-zero snapshot.
        """
        name = self.metadata.name
        symbol = token.strip().upper()
        self._stats["total_requests"] += 1
        started = time.monotonic()

        try:
            start_ms, end_ms = self.time_range(window)
            raw = await self._fetch_raw(symbol, window, start_ms, end_ms)
            snapshot = self._normalize(raw, symbol, window)
            if snapshot.is_empty():
                raise NoDataError(
                    f"All metrics zero for {symbol} ({window.value})",
                    source_name=name,
                )
        except NotConfiguredError as e:
            self._stats["not_configured"] += 1
            logger.warning(f"[{name}] Not configured: {e}")
            self._record_failure(e, SourceStatus.UNAVAILABLE)
            return None
        except NoDataError as e:
            self._stats["no_data"] += 1
            logger.warning(f"[{name}] No data: {e}")
            self._record_failure(e, SourceStatus.NO_DATA)
            return None
        except (UpstreamUnavailableError, MalformedResponseError) as e:
            self._stats["errors"] += 1
            logger.warning(f"[{name}] {type(e).__name__} for {symbol}: {e}")
            self._record_failure(e, SourceStatus.DEGRADED)
            return None
        except PipelineError as e:
            self._stats["errors"] += 1
            logger.warning(f"[{name}] Source error for {symbol}: {e}")
            self._record_failure(e, SourceStatus.DEGRADED)
            return None
        except Exception as e:
            self._stats["errors"] += 1
            logger.error(f"[{name}] Unexpected error for {symbol}: {e}", exc_info=True)
            self._record_failure(e, SourceStatus.DEGRADED)
            return None

        self._stats["successful_fetches"] += 1
        self._health.status = SourceStatus.HEALTHY
        self._health.consecutive_failures = 0
        self._health.latency_ms = (time.monotonic() - started) * 1000
        self._health.last_check = datetime.now(timezone.utc)
        return snapshot

    def get_health(self) -> SourceHealth:
        """Get current health status."""
        return self._health

    def get_stats(self) -> Dict[str, Any]:
        """Get source statistics."""
        total = self._stats["total_requests"]
        error_rate = self._stats["errors"] / total * 100 if total > 0 else 0

        return {
            **self._stats,
            "error_rate_pct": round(error_rate, 2),
            "source_name": self.metadata.name,
        }

    async def close(self) -> None:
        """Cleanup resources. Override if needed."""
        pass

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    def _record_failure(self, error: Exception, status: SourceStatus) -> None:
        now = datetime.now(timezone.utc)
        self._health.error_count += 1
        self._health.consecutive_failures += 1
        self._health.last_error = str(error)
        self._health.last_error_time = now
        self._health.last_check = now
        if self._health.consecutive_failures >= 3 and status == SourceStatus.DEGRADED:
            status = SourceStatus.UNAVAILABLE
        self._health.status = status
