"""
Risk Analysis - Data Models.

============================================================
PURPOSE
============================================================
Types flowing through model routing and risk inference.

- PriceData: read-only input from the price collaborator
- ModelTier / RoutingDecision: which inference tier to use
- RiskVerdict: the structurally validated AI answer
- RiskAnalysis: what the caller receives

============================================================
"""

import math
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================
# ENUMS
# ============================================================

class ModelTier(Enum):
    """Inference capability level."""
    HIGH = "high"
    LOW = "low"


# ============================================================
# INPUTS
# ============================================================

@dataclass(frozen=True)
class PriceData:
    """Market data for one token, produced by the price collaborator."""
    token: str
    price: float
    volume_24h: float
    price_change_24h: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "price": self.price,
            "volume24h": self.volume_24h,
            "priceChange24h": self.price_change_24h,
        }


# ============================================================
# ROUTING
# ============================================================

def new_trace_id() -> str:
    """Locally generated trace identifier."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class RoutingDecision:
    """
    Model chosen for one analysis call.

    ``trace_id`` threads through exactly one analysis and its
    one outcome report.
    """
    trace_id: str
    model_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"traceId": self.trace_id, "modelId": self.model_id}


# ============================================================
# VERDICT
# ============================================================

class RiskVerdict(BaseModel):
    """
    JSON object the model is asked to answer with.

    Only structure is checked: riskScore must be a finite number
    (clamped to 0-100), shouldExit a boolean.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    risk_score: float = Field(alias="riskScore")
    should_exit: bool = Field(alias="shouldExit")
    reason: str = ""

    @field_validator("risk_score")
    @classmethod
    def clamp_risk_score(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("riskScore must be finite")
        return max(0.0, min(100.0, value))

    @field_validator("reason", mode="before")
    @classmethod
    def coerce_reason(cls, value: Any) -> str:
        return "" if value is None else str(value)


# ============================================================
# OUTPUT
# ============================================================

@dataclass(frozen=True)
class RiskAnalysis:
    """Risk verdict returned to the caller. Always structurally valid."""
    risk_score: float
    should_exit: bool
    reason: str
    ai_model: str
    trace_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskScore": self.risk_score,
            "shouldExit": self.should_exit,
            "reason": self.reason,
            "aiModel": self.ai_model,
            "traceId": self.trace_id,
        }
