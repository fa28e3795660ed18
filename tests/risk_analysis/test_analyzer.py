"""
Risk Analyzer Tests.

============================================================
PURPOSE
============================================================
Tests for the analysis flow with mocked routing and
inference services.

TEST CATEGORIES:
- Prompt: fixed template
- Success: heuristic and routed model choice, outcome report
- Failure: safe default verdict for every failure mode

============================================================
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import RoutingConfig
from core.exceptions import MalformedResponseError, NotConfiguredError, UpstreamUnavailableError
from risk_analysis import (
    FALLBACK_MODEL,
    ModelRouter,
    PriceData,
    RiskAnalyzer,
    RoutingDecision,
    build_prompt,
)
from sentiment import SentimentData


HIGH = "gemini-1.5-pro"
LOW = "gemini-2.0-flash"
VERDICT = 'Here is the answer: {"riskScore": 72, "shouldExit": true, "reason": "bearish"}'


def sentiment(score=20, token="BTC"):
    return SentimentData(token=token, score=score, timestamp=0, sources=["cryptoracle"])


def price():
    return PriceData(token="bitcoin", price=64000.0, volume_24h=21000000000.0, price_change_24h=-4.2)


def make_router(configured=False, decide_response=None, fail_decide=False):
    async def post_json(url, payload, **kwargs):
        if url.endswith(ModelRouter.DECIDE_ENDPOINT):
            if fail_decide:
                raise UpstreamUnavailableError("HTTP 503", status_code=503)
            return decide_response
        return {}

    http = MagicMock()
    http.post_json = AsyncMock(side_effect=post_json)
    config = RoutingConfig(
        api_key="kb-key" if configured else "",
        tenant_id="tenant-1" if configured else "",
        base_url="https://kb.example",
    )
    return ModelRouter(config, model_high=HIGH, model_low=LOW, bad_threshold=30, http=http), http


def make_inference(text=VERDICT, error=None):
    inference = MagicMock()
    inference.generate = AsyncMock(return_value=text, side_effect=error)
    return inference


def outcome_payloads(http):
    return [
        c.args[1] for c in http.post_json.call_args_list
        if c.args[0].endswith(ModelRouter.OUTCOME_ENDPOINT)
    ]


# ============================================================
# PROMPT TESTS
# ============================================================

class TestPrompt:
    """Tests for the prompt template."""

    def test_template(self):
        """Test every input is embedded in the fixed template."""
        prompt = build_prompt(sentiment(20), price())

        assert prompt == (
            "Analyze crypto risk:\n"
            "Token: BTC\n"
            "Sentiment Score: 20/100\n"
            "Price Change 24h: -4.2%\n"
            "Volume 24h: $21000000000.0\n"
            "\n"
            "Should we exit position? Respond with JSON: "
            "{riskScore: 0-100, shouldExit: boolean, reason: string}"
        )


# ============================================================
# SUCCESS TESTS
# ============================================================

class TestSuccess:
    """Tests for successful analyses."""

    @pytest.mark.asyncio
    async def test_heuristic_high_tier(self):
        """Test low sentiment with no router runs the high tier."""
        router, _ = make_router(configured=False)
        inference = make_inference()

        analysis = await RiskAnalyzer(router, inference).analyze(sentiment(20), price())

        inference.generate.assert_awaited_once()
        assert inference.generate.call_args.args[0] == HIGH
        assert analysis.risk_score == 72
        assert analysis.should_exit is True
        assert analysis.reason == "bearish"
        assert analysis.ai_model == HIGH
        assert analysis.trace_id

    @pytest.mark.asyncio
    async def test_heuristic_low_tier(self):
        """Test healthy sentiment runs the low tier."""
        router, _ = make_router(configured=False)
        inference = make_inference()

        analysis = await RiskAnalyzer(router, inference).analyze(sentiment(65), price())

        assert analysis.ai_model == LOW

    @pytest.mark.asyncio
    async def test_routed_model_and_trace(self):
        """Test a routing decision overrides the heuristic and is reported."""
        router, http = make_router(configured=True, decide_response={"trace_id": "tr-9", "model_id": LOW})
        inference = make_inference()

        analysis = await RiskAnalyzer(router, inference).analyze(sentiment(20), price())
        await router.drain()

        assert inference.generate.call_args.args[0] == LOW
        assert analysis.ai_model == LOW
        assert analysis.trace_id == "tr-9"
        assert outcome_payloads(http) == [{
            "trace_id": "tr-9",
            "goal": "vibeguard_risk",
            "success": True,
            "model_id": LOW,
            "reason": None,
        }]

    @pytest.mark.asyncio
    async def test_decide_failure_uses_heuristic(self):
        """Test a failed decision falls back to the static tier."""
        router, _ = make_router(configured=True, fail_decide=True)
        inference = make_inference()

        analysis = await RiskAnalyzer(router, inference).analyze(sentiment(10), price())
        await router.drain()

        assert analysis.ai_model == HIGH
        assert analysis.risk_score == 72

    @pytest.mark.asyncio
    async def test_decide_raising_uses_heuristic(self):
        """Test an unexpected router exception still yields a verdict."""
        router = MagicMock()
        router.heuristic_model = MagicMock(return_value=LOW)
        router.decide = AsyncMock(side_effect=RuntimeError("boom"))
        router.report_outcome = MagicMock()

        analysis = await RiskAnalyzer(router, make_inference()).analyze(sentiment(50), price())

        assert analysis.ai_model == LOW
        assert analysis.risk_score == 72
        router.report_outcome.assert_called_once()
        assert router.report_outcome.call_args.kwargs["success"] is True


# ============================================================
# FAILURE TESTS
# ============================================================

class TestFailure:
    """Tests for the safe default verdict."""

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        """Test an inference outage returns the default verdict."""
        error = UpstreamUnavailableError(
            "gemini returned HTTP 503",
            status_code=503,
            details={"reason": "Service Unavailable"},
        )
        router, http = make_router(configured=True, decide_response={"trace_id": "tr-5", "model_id": HIGH})

        analysis = await RiskAnalyzer(router, make_inference(error=error)).analyze(sentiment(), price())
        await router.drain()

        assert analysis.risk_score == 50
        assert analysis.should_exit is False
        assert analysis.reason == (
            "Analysis failed (status 503 - Service Unavailable - gemini returned HTTP 503)"
        )
        assert analysis.ai_model == HIGH
        assert analysis.trace_id == "tr-5"

        report = outcome_payloads(http)[0]
        assert report["success"] is False
        assert report["trace_id"] == "tr-5"
        assert report["reason"] == "status 503 - Service Unavailable - gemini returned HTTP 503"

    @pytest.mark.asyncio
    async def test_report_reason_truncated(self):
        """Test failure report reasons are cut to 120 characters."""
        router, http = make_router(configured=True, decide_response={"trace_id": "t"})
        error = MalformedResponseError("x" * 300)

        analysis = await RiskAnalyzer(router, make_inference(error=error)).analyze(sentiment(), price())
        await router.drain()

        assert len(outcome_payloads(http)[0]["reason"]) == 120
        assert analysis.reason == f"Analysis failed ({'x' * 300})"

    @pytest.mark.asyncio
    async def test_unparseable_answer(self):
        """Test prose without JSON returns the default verdict."""
        router, _ = make_router()

        analysis = await RiskAnalyzer(router, make_inference("I would hold.")).analyze(sentiment(), price())

        assert analysis.risk_score == 50
        assert analysis.should_exit is False
        assert analysis.reason.startswith("Analysis failed (No JSON object")
        assert analysis.ai_model == HIGH

    @pytest.mark.asyncio
    async def test_no_model_chosen(self):
        """Test the fallback marker when no tier was ever chosen."""
        router = MagicMock()
        router.heuristic_model = MagicMock(side_effect=KeyError("tier"))
        router.report_outcome = MagicMock()

        analysis = await RiskAnalyzer(router, make_inference()).analyze(sentiment(), price())

        assert analysis.ai_model == FALLBACK_MODEL
        assert analysis.risk_score == 50
        assert router.report_outcome.call_args.args[1] == FALLBACK_MODEL

    @pytest.mark.asyncio
    @pytest.mark.parametrize("configured", [True, False])
    @pytest.mark.parametrize("fail_decide", [True, False])
    @pytest.mark.parametrize("error,text", [
        (None, VERDICT),
        (None, '{"riskScore": 999, "shouldExit": false}'),
        (None, "garbage"),
        (NotConfiguredError("GOOGLE_API_KEY is not set"), None),
        (UpstreamUnavailableError("Timeout after 30.0s"), None),
        (RuntimeError("unexpected"), None),
    ])
    async def test_never_raises(self, configured, fail_decide, error, text):
        """Test every service combination returns a valid verdict."""
        router, _ = make_router(configured=configured, decide_response={}, fail_decide=fail_decide)

        analysis = await RiskAnalyzer(router, make_inference(text, error)).analyze(sentiment(), price())
        await router.drain()

        assert 0 <= analysis.risk_score <= 100
        assert isinstance(analysis.should_exit, bool)
        assert analysis.ai_model in (HIGH, LOW, FALLBACK_MODEL)

    @pytest.mark.asyncio
    async def test_serialized_shape(self):
        """Test camelCase output fields."""
        router, _ = make_router()
        analysis = await RiskAnalyzer(router, make_inference()).analyze(sentiment(), price())

        assert set(analysis.to_dict()) == {"riskScore", "shouldExit", "reason", "aiModel", "traceId"}

    def test_decision_model(self):
        """Test routing decision serialization."""
        assert RoutingDecision("t", "m").to_dict() == {"traceId": "t", "modelId": "m"}
