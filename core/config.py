"""
Core Module - Configuration.

============================================================
PURPOSE
============================================================
Defines the single configuration value for the pipeline.

The environment is read ONCE, at process start, by
``PipelineConfig.from_env()``. The resulting immutable value
is passed by reference into every component. Components never
read ``os.environ`` themselves.

============================================================
SECTIONS
============================================================
- sentiment: Cryptoracle sentiment provider
- routing:   Kalibr model routing service
- inference: Gemini inference tiers
- sentiment_bad_threshold: static tier heuristic cut-off

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .logging_utils import mask_value


# ============================================================
# SENTIMENT PROVIDER CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class SentimentProviderConfig:
    """Cryptoracle sentiment provider settings."""

    api_key: str = ""
    base_url: str = "https://api.cryptoracle.io/v1"
    timeout_seconds: float = 15.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "api_key": mask_value(self.api_key) if self.api_key else "",
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
        }


# ============================================================
# ROUTING SERVICE CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class RoutingConfig:
    """Kalibr routing service settings."""

    api_key: str = ""
    tenant_id: str = ""
    base_url: str = "https://kalibr-intelligence.fly.dev"
    goal: str = "vibeguard_risk"
    timeout_seconds: float = 15.0

    @property
    def is_configured(self) -> bool:
        """Routing needs both the API key and the tenant id."""
        return bool(self.api_key and self.tenant_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "api_key": mask_value(self.api_key) if self.api_key else "",
            "tenant_id": mask_value(self.tenant_id) if self.tenant_id else "",
            "base_url": self.base_url,
            "goal": self.goal,
            "timeout_seconds": self.timeout_seconds,
        }


# ============================================================
# INFERENCE CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class InferenceConfig:
    """Gemini inference settings and the two model tiers."""

    api_key: str = ""
    base_url: str = "https://generativelanguage.googleapis.com"
    model_high: str = "gemini-1.5-pro"
    model_low: str = "gemini-2.0-flash"
    timeout_seconds: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "api_key": mask_value(self.api_key) if self.api_key else "",
            "base_url": self.base_url,
            "model_high": self.model_high,
            "model_low": self.model_low,
            "timeout_seconds": self.timeout_seconds,
        }


# ============================================================
# PIPELINE CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class PipelineConfig:
    """
    Complete pipeline configuration.

    Immutable after construction.
    """

    sentiment: SentimentProviderConfig = field(default_factory=SentimentProviderConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)

    sentiment_bad_threshold: float = 30.0
    """Sentiment scores below this select the high-capability tier."""

    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        env: Optional[Dict[str, str]] = None,
        load_dotenv_file: bool = True,
    ) -> "PipelineConfig":
        """
        Load configuration from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (tests)
            load_dotenv_file: Load a ``.env`` file first
        """
        if env is None:
            if load_dotenv_file:
                load_dotenv()
            env = dict(os.environ)

        def get(name: str, default: str = "") -> str:
            return str(env.get(name, default) or default).strip()

        return cls(
            sentiment=SentimentProviderConfig(
                api_key=get("CRYPTORACLE_API_KEY"),
                base_url=get("CRYPTORACLE_BASE_URL", "https://api.cryptoracle.io/v1").rstrip("/"),
                timeout_seconds=float(get("CRYPTORACLE_TIMEOUT_SECONDS", "15")),
            ),
            routing=RoutingConfig(
                api_key=get("KALIBR_API_KEY"),
                tenant_id=get("KALIBR_TENANT_ID"),
                base_url=get("KALIBR_INTELLIGENCE_URL", "https://kalibr-intelligence.fly.dev").rstrip("/"),
                goal=get("KALIBR_GOAL", "vibeguard_risk"),
                timeout_seconds=float(get("KALIBR_TIMEOUT_SECONDS", "15")),
            ),
            inference=InferenceConfig(
                api_key=get("GOOGLE_API_KEY") or get("GEMINI_API_KEY"),
                base_url=get("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com").rstrip("/"),
                model_high=get("KALIBR_MODEL_HIGH", "gemini-1.5-pro"),
                model_low=get("KALIBR_MODEL_LOW", "gemini-2.0-flash"),
                timeout_seconds=float(get("GEMINI_TIMEOUT_SECONDS", "30")),
            ),
            sentiment_bad_threshold=float(get("SENTIMENT_BAD_THRESHOLD", "30")),
            log_level=get("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of problems (non-fatal)."""
        errors = []

        if not self.sentiment.api_key:
            errors.append("CRYPTORACLE_API_KEY not set: sentiment will use fallback data")
        if not self.routing.is_configured:
            errors.append("KALIBR_API_KEY/KALIBR_TENANT_ID not set: static tier heuristic in use")
        if not self.inference.api_key:
            errors.append("GOOGLE_API_KEY not set: risk analysis will return the safe default")
        if not 0 <= self.sentiment_bad_threshold <= 100:
            errors.append("SENTIMENT_BAD_THRESHOLD must be between 0 and 100")
        for name, timeout in (
            ("sentiment", self.sentiment.timeout_seconds),
            ("routing", self.routing.timeout_seconds),
            ("inference", self.inference.timeout_seconds),
        ):
            if timeout <= 0:
                errors.append(f"{name} timeout must be positive")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Secrets are masked."""
        return {
            "sentiment": self.sentiment.to_dict(),
            "routing": self.routing.to_dict(),
            "inference": self.inference.to_dict(),
            "sentiment_bad_threshold": self.sentiment_bad_threshold,
            "log_level": self.log_level,
        }
