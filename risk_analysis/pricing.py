"""
Risk Analysis - Price Collaborator.

The analyzer consumes ``PriceData``; how prices are fetched is
not its concern. This module defines the collaborator contract,
the symbol -> price id mapping used at that boundary, and a
static implementation for the CLI and tests.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from core.exceptions import NoDataError

from .models import PriceData


logger = logging.getLogger(__name__)


SYMBOL_TO_COIN_ID: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "USDT": "tether",
    "SOL": "solana",
    "XRP": "ripple",
    "DOGE": "dogecoin",
    "SUI": "sui",
}


def coin_id_for(symbol: str) -> str:
    """Price id for a ticker symbol; unknown symbols pass through lower-cased."""
    cleaned = str(symbol or "").strip()
    return SYMBOL_TO_COIN_ID.get(cleaned.upper(), cleaned.lower())


class PriceProvider(ABC):
    """Supplies market data for a token."""

    @abstractmethod
    async def get_price(self, coin_id: str) -> PriceData:
        """
        Current price data for ``coin_id``.

        Raises:
            PipelineError: price data is unavailable
        """
        pass


class StaticPriceProvider(PriceProvider):
    """
    Serves fixed prices registered up front.

    Usage:
        prices = StaticPriceProvider()
        prices.set_price("bitcoin", price=64000, volume_24h=2.1e10, price_change_24h=-4.2)
        data = await prices.get_price(coin_id_for("BTC"))
    """

    def __init__(self, prices: Optional[Dict[str, PriceData]] = None) -> None:
        self._prices: Dict[str, PriceData] = dict(prices or {})

    def set_price(
        self,
        coin_id: str,
        price: float,
        volume_24h: float = 0.0,
        price_change_24h: float = 0.0,
    ) -> PriceData:
        data = PriceData(
            token=coin_id,
            price=price,
            volume_24h=volume_24h,
            price_change_24h=price_change_24h,
        )
        self._prices[coin_id] = data
        return data

    async def get_price(self, coin_id: str) -> PriceData:
        data = self._prices.get(coin_id)
        if data is None:
            raise NoDataError(f"No price registered for {coin_id}", source_name="static")
        return data
