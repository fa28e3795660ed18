"""Sentiment source providers."""

from .cryptoracle import CryptoracleSource

__all__ = [
    "CryptoracleSource",
]
