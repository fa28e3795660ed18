"""
Core Module Package.

This package contains the infrastructure components the
sentiment and risk analysis packages depend on.

Components:
- config: Process-wide immutable configuration
- exceptions: Pipeline error taxonomy
- http: Shared aiohttp JSON client
- clock: Testable time source
- logging_utils: Credential masking for logs
"""

from .clock import ClockProtocol, MockClock, SystemClock, get_clock
from .config import (
    InferenceConfig,
    PipelineConfig,
    RoutingConfig,
    SentimentProviderConfig,
)
from .exceptions import (
    MalformedResponseError,
    NoDataError,
    NotConfiguredError,
    PipelineError,
    UpstreamUnavailableError,
)
from .http import JsonHttpClient, format_http_error


__all__ = [
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "get_clock",
    "InferenceConfig",
    "PipelineConfig",
    "RoutingConfig",
    "SentimentProviderConfig",
    "MalformedResponseError",
    "NoDataError",
    "NotConfiguredError",
    "PipelineError",
    "UpstreamUnavailableError",
    "JsonHttpClient",
    "format_http_error",
]
