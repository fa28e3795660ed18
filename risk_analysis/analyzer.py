"""
Risk Analyzer - AI exit/hold verdict for one token.

============================================================
FLOW PER CALL
============================================================
1. Build the fixed prompt from sentiment and price data
2. Pick a model: routing decision if available, else the
   static sentiment-threshold heuristic
3. Run the model, extract the JSON verdict from its answer
4. Report the outcome to the router (fire-and-forget)

Any failure in 2-4 yields the safe default verdict:
riskScore 50, shouldExit False, reason describing the failure.

============================================================
"""

import logging
from typing import Optional

from core.http import format_http_error
from sentiment.models import SentimentData

from .inference import GeminiClient
from .models import PriceData, RiskAnalysis, RoutingDecision, new_trace_id
from .parsing import parse_verdict
from .router import ModelRouter


logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = (
    "Analyze crypto risk:\n"
    "Token: {token}\n"
    "Sentiment Score: {score}/100\n"
    "Price Change 24h: {price_change}%\n"
    "Volume 24h: ${volume}\n"
    "\n"
    "Should we exit position? Respond with JSON: "
    "{{riskScore: 0-100, shouldExit: boolean, reason: string}}"
)

FALLBACK_MODEL = "fallback"
DEFAULT_RISK_SCORE = 50.0
MAX_REPORT_REASON = 120


def build_prompt(sentiment: SentimentData, price: PriceData) -> str:
    return PROMPT_TEMPLATE.format(
        token=sentiment.token,
        score=sentiment.score,
        price_change=price.price_change_24h,
        volume=price.volume_24h,
    )


class RiskAnalyzer:
    """
    Produces a RiskAnalysis for a token. Never raises.

    Usage:
        analyzer = RiskAnalyzer(router, GeminiClient(config.inference))
        analysis = await analyzer.analyze(sentiment, price)
        if analysis.should_exit:
            ...
    """

    def __init__(self, router: ModelRouter, inference: GeminiClient) -> None:
        self._router = router
        self._inference = inference

    async def analyze(self, sentiment: SentimentData, price: PriceData) -> RiskAnalysis:
        trace_id = new_trace_id()
        chosen_model: Optional[str] = None

        try:
            prompt = build_prompt(sentiment, price)

            chosen_model = self._router.heuristic_model(sentiment.score)
            decision = await self._decide()
            if decision is not None:
                chosen_model = decision.model_id
                trace_id = decision.trace_id

            raw = await self._inference.generate(chosen_model, prompt)
            verdict = parse_verdict(raw, source_name=GeminiClient.SOURCE_NAME)
        except Exception as e:
            return self._failed(e, trace_id, chosen_model, sentiment.token)

        self._router.report_outcome(trace_id, chosen_model, success=True)
        logger.info(
            f"[{sentiment.token}] risk={verdict.risk_score:.0f} exit={verdict.should_exit} "
            f"model={chosen_model}"
        )
        return RiskAnalysis(
            risk_score=verdict.risk_score,
            should_exit=verdict.should_exit,
            reason=verdict.reason,
            ai_model=chosen_model,
            trace_id=trace_id,
        )

    async def _decide(self) -> Optional[RoutingDecision]:
        try:
            return await self._router.decide()
        except Exception as e:
            logger.warning(f"Routing decision raised, using heuristic tier: {e}")
            return None

    def _failed(
        self,
        error: Exception,
        trace_id: str,
        chosen_model: Optional[str],
        token: str,
    ) -> RiskAnalysis:
        message = format_http_error(error)
        model_id = chosen_model or FALLBACK_MODEL
        logger.error(f"[{token}] Risk analysis failed on {model_id}: {message}")

        try:
            self._router.report_outcome(
                trace_id,
                model_id,
                success=False,
                reason=message[:MAX_REPORT_REASON] if message else "exception",
            )
        except Exception as e:
            logger.warning(f"[{token}] Could not schedule failure report: {e}")

        return RiskAnalysis(
            risk_score=DEFAULT_RISK_SCORE,
            should_exit=False,
            reason=f"Analysis failed ({message})" if message else "Analysis failed",
            ai_model=model_id,
            trace_id=trace_id,
        )
