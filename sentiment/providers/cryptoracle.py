"""
Cryptoracle Sentiment Source - Multi-metric community sentiment provider.

Cryptoracle exposes twelve metric endpoints per token:
- Community activity: messages, interactions, mentions,
  unique users, active communities (CO-A-01-*)
- Sentiment: positive, negative, difference, on a 0-100 scale (CO-A-02-*)
- Signals: deviation, momentum, breakout, price dislocation (CO-S-01-*)

All twelve are requested in ONE batched POST per token and window.
"""

import logging
from typing import Any, Dict, Optional

from core.config import SentimentProviderConfig
from core.clock import ClockProtocol
from core.exceptions import NotConfiguredError
from core.http import JsonHttpClient

from ..base import BaseMetricSource
from ..models import (
    ALL_METRIC_CODES,
    EnhancedSentiment,
    SentimentWindow,
    SourceMetadata,
)
from ..pipeline import SentimentPipeline


logger = logging.getLogger(__name__)


class CryptoracleSource(BaseMetricSource):
    """
    Cryptoracle multi-metric sentiment source.

    Requires an API key, sent both in the ``X-API-Key`` header
    and in the request body.
    """

    METRICS_PATH = "/sentiment/metrics"

    def __init__(
        self,
        config: SentimentProviderConfig,
        http: Optional[JsonHttpClient] = None,
        pipeline: Optional[SentimentPipeline] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        super().__init__(clock=clock)
        self.config = config
        self._http = http or JsonHttpClient(default_timeout=config.timeout_seconds)
        self._owns_http = http is None
        self._pipeline = pipeline or SentimentPipeline()

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="cryptoracle",
            display_name="Cryptoracle",
            version="1.0.0",
            requires_api_key=True,
            base_url=self.config.base_url,
            tags=["community", "sentiment", "signals"],
        )

    def build_request(
        self,
        token: str,
        window: SentimentWindow,
        start_ms: int,
        end_ms: int,
    ) -> Dict[str, Any]:
        """Request body for the batched metric query."""
        return {
            "apiKey": self.config.api_key,
            "endpoints": list(ALL_METRIC_CODES),
            "startTime": start_ms,
            "endTime": end_ms,
            "timeType": window.time_type,
            "token": [token.strip().upper()],
        }

    async def _fetch_raw(
        self,
        token: str,
        window: SentimentWindow,
        start_ms: int,
        end_ms: int,
    ) -> Any:
        if not self.config.api_key:
            raise NotConfiguredError(
                "CRYPTORACLE_API_KEY is not set",
                source_name=self.metadata.name,
                setting="CRYPTORACLE_API_KEY",
            )
        if not self.config.base_url:
            raise NotConfiguredError(
                "CRYPTORACLE_BASE_URL is not set",
                source_name=self.metadata.name,
                setting="CRYPTORACLE_BASE_URL",
            )

        url = f"{self.config.base_url}{self.METRICS_PATH}"
        headers = {
            "X-API-Key": self.config.api_key,
            "Content-Type": "application/json",
        }
        return await self._http.post_json(
            url,
            self.build_request(token, window, start_ms, end_ms),
            headers=headers,
            timeout=self.config.timeout_seconds,
            source_name=self.metadata.name,
        )

    def _normalize(
        self,
        raw_data: Any,
        token: str,
        window: SentimentWindow,
    ) -> EnhancedSentiment:
        return self._pipeline.build_snapshot(
            raw_data,
            token=token,
            window=window,
            timestamp=self.clock.now_ms(),
            source_name=self.metadata.name,
        )

    async def close(self) -> None:
        if self._owns_http:
            await self._http.close()
