"""
Risk Analysis - Model Router.

============================================================
PURPOSE
============================================================
Chooses the inference tier for each analysis and feeds the
outcome back to the Kalibr routing service.

- decide(): one decision request per analysis
- report_outcome(): fire-and-forget outcome feedback
- heuristic_model(): static sentiment-threshold fallback

Registration of the tier models and outcome reports run as
background tasks. They are never awaited by the caller and
their failures are logged, never raised.

============================================================
"""

import asyncio
import logging
from typing import Any, Coroutine, Dict, Optional, Set

from core.config import PipelineConfig, RoutingConfig
from core.exceptions import PipelineError
from core.http import JsonHttpClient, format_http_error

from .models import ModelTier, RoutingDecision, new_trace_id


logger = logging.getLogger(__name__)


class ModelRouter:
    """
    Kalibr routing client plus the static tier heuristic.

    Usage:
        router = ModelRouter.from_config(config)
        decision = await router.decide()
        model = decision.model_id if decision else router.heuristic_model(score)
        ...
        router.report_outcome(trace_id, model, success=True)
    """

    PATHS_ENDPOINT = "/api/v1/routing/paths"
    DECIDE_ENDPOINT = "/api/v1/routing/decide"
    OUTCOME_ENDPOINT = "/api/v1/intelligence/report-outcome"
    SOURCE_NAME = "kalibr"

    def __init__(
        self,
        config: RoutingConfig,
        model_high: str,
        model_low: str,
        bad_threshold: float = 30.0,
        http: Optional[JsonHttpClient] = None,
    ) -> None:
        self.config = config
        self.bad_threshold = bad_threshold
        self._models: Dict[ModelTier, str] = {
            ModelTier.HIGH: model_high,
            ModelTier.LOW: model_low,
        }
        self._http = http or JsonHttpClient(default_timeout=config.timeout_seconds)
        self._owns_http = http is None
        self._background: Set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        http: Optional[JsonHttpClient] = None,
    ) -> "ModelRouter":
        return cls(
            config.routing,
            model_high=config.inference.model_high,
            model_low=config.inference.model_low,
            bad_threshold=config.sentiment_bad_threshold,
            http=http,
        )

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    def model_for(self, tier: ModelTier) -> str:
        return self._models[tier]

    # ─────────────────────────────────────────────────────────────
    # Static heuristic
    # ─────────────────────────────────────────────────────────────

    def heuristic_tier(self, sentiment_score: float) -> ModelTier:
        """Low sentiment means higher risk, so it gets the stronger model."""
        if sentiment_score < self.bad_threshold:
            return ModelTier.HIGH
        return ModelTier.LOW

    def heuristic_model(self, sentiment_score: float) -> str:
        return self.model_for(self.heuristic_tier(sentiment_score))

    # ─────────────────────────────────────────────────────────────
    # Routing service
    # ─────────────────────────────────────────────────────────────

    async def decide(self, goal: Optional[str] = None) -> Optional[RoutingDecision]:
        """
        Ask the routing service which model to use.

        Returns:
            RoutingDecision, or None if not configured or on any error
        """
        if not self.is_configured:
            logger.debug(f"[{self.SOURCE_NAME}] Not configured, skipping decision")
            return None

        goal = goal or self.config.goal
        self._register_paths(goal)

        try:
            data = await self._post(self.DECIDE_ENDPOINT, {"goal": goal})
        except PipelineError as e:
            logger.warning(f"[{self.SOURCE_NAME}] Decision failed: {format_http_error(e)}")
            return None
        except Exception as e:
            logger.error(f"[{self.SOURCE_NAME}] Unexpected decision error: {e}", exc_info=True)
            return None

        if not isinstance(data, dict):
            data = {}

        trace_id = data.get("trace_id") or data.get("traceId") or new_trace_id()
        model_id = (
            data.get("model_id")
            or data.get("modelId")
            or data.get("recommended_model")
            or self.model_for(ModelTier.LOW)
        )

        decision = RoutingDecision(trace_id=str(trace_id), model_id=str(model_id))
        logger.info(f"[{self.SOURCE_NAME}] {goal} -> {decision.model_id} (trace {decision.trace_id})")
        return decision

    def report_outcome(
        self,
        trace_id: str,
        model_id: str,
        success: bool,
        reason: Optional[str] = None,
        goal: Optional[str] = None,
    ) -> None:
        """Schedule the outcome report and return immediately."""
        if not self.is_configured:
            return

        payload = {
            "trace_id": trace_id,
            "goal": goal or self.config.goal,
            "success": success,
            "model_id": model_id,
            "reason": reason,
        }
        self._spawn(self._send_outcome(payload), f"outcome:{trace_id}")

    async def drain(self) -> None:
        """Wait for every pending background task."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self._owns_http:
            await self._http.close()

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    def _register_paths(self, goal: str) -> None:
        for model_id in sorted(set(self._models.values())):
            self._spawn(self._register_path(goal, model_id), f"register:{model_id}")

    async def _register_path(self, goal: str, model_id: str) -> None:
        try:
            await self._post(self.PATHS_ENDPOINT, {"goal": goal, "model_id": model_id})
        except PipelineError as e:
            # Path may already exist
            logger.debug(f"[{self.SOURCE_NAME}] Register {model_id} failed: {format_http_error(e)}")

    async def _send_outcome(self, payload: Dict[str, Any]) -> None:
        try:
            await self._post(self.OUTCOME_ENDPOINT, payload)
        except PipelineError as e:
            logger.warning(
                f"[{self.SOURCE_NAME}] Outcome report for {payload['trace_id']} failed: "
                f"{format_http_error(e)}"
            )

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Any:
        return await self._http.post_json(
            f"{self.config.base_url}{endpoint}",
            payload,
            headers={
                "X-API-Key": self.config.api_key,
                "X-Tenant-ID": self.config.tenant_id,
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout_seconds,
            source_name=self.SOURCE_NAME,
        )

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"[{self.SOURCE_NAME}] Background task {task.get_name()} failed: {exc}")
