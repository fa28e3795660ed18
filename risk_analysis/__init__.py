"""
Risk Analysis Layer - AI-assisted exit/hold verdicts.

This package provides:
- ModelRouter: Kalibr tier routing with a static sentiment fallback
- GeminiClient: generateContent calls and model listing
- RiskAnalyzer: prompt, inference, verdict extraction, outcome feedback
- PriceProvider: contract for the price collaborator

Usage:
    from core.config import PipelineConfig
    from risk_analysis import GeminiClient, ModelRouter, RiskAnalyzer

    config = PipelineConfig.from_env()
    analyzer = RiskAnalyzer(ModelRouter.from_config(config), GeminiClient(config.inference))
    analysis = await analyzer.analyze(sentiment, price)
"""

from .analyzer import FALLBACK_MODEL, RiskAnalyzer, build_prompt
from .inference import GeminiClient, extract_text
from .models import (
    ModelTier,
    PriceData,
    RiskAnalysis,
    RiskVerdict,
    RoutingDecision,
    new_trace_id,
)
from .parsing import extract_json_object, parse_verdict
from .pricing import SYMBOL_TO_COIN_ID, PriceProvider, StaticPriceProvider, coin_id_for
from .router import ModelRouter


__all__ = [
    # Analysis
    "RiskAnalyzer",
    "build_prompt",
    "FALLBACK_MODEL",

    # Routing & inference
    "ModelRouter",
    "GeminiClient",
    "extract_text",

    # Parsing
    "extract_json_object",
    "parse_verdict",

    # Prices
    "PriceProvider",
    "StaticPriceProvider",
    "SYMBOL_TO_COIN_ID",
    "coin_id_for",

    # Models
    "ModelTier",
    "PriceData",
    "RiskAnalysis",
    "RiskVerdict",
    "RoutingDecision",
    "new_trace_id",
]


__version__ = "1.0.0"
