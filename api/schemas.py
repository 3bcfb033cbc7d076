from pydantic import BaseModel, Field
from typing import List, Literal, Optional


VALID_SOURCE = Literal["driver", "rider"]
VALID_CONFIDENCE = Literal["low", "med", "high"]


# --- Crowd Now Schemas ---

class ReportCounts(BaseModel):
    reports: int
    driver: int
    rider: int


class PriorInfo(BaseModel):
    mu0: float  # 과거 평균 점유율 (0.0-1.0)
    k0: float   # pseudo-count strength


class CrowdNowResponse(BaseModel):
    route: str
    stop: str
    bus_id: Optional[str] = None
    level: int = Field(ge=1, le=4)  # 1 not busy ... 4 packed
    occupancy: float  # posterior fraction mu
    est_headcount: int
    headcount_ci68: List[int]  # [lo, hi]
    remaining_capacity: int
    confidence: VALID_CONFIDENCE
    counts: ReportCounts
    window_min: float
    prior: PriorInfo
    at: str  # reference instant (ISO-8601, UTC)


# --- Report Ingestion Schemas ---

class ReportRequest(BaseModel):
    route: str = Field(min_length=1, max_length=40)
    stop: str = Field(min_length=1, max_length=40)
    level: int = Field(ge=1, le=4)
    source: VALID_SOURCE = "rider"
    bus_id: Optional[str] = Field(None, max_length=20)
    headcount: Optional[int] = Field(None, ge=0, le=500)


class ReportResponse(BaseModel):
    ok: bool
    saved_at: str


# --- Config Schemas ---

class ConfigResponse(BaseModel):
    capacity: int
    prior_mu0_default: float
    prior_k0_default: float
    prior_lookback_weeks: int
    prior_half_window_min: float
    prior_k_max: float
    tau_min: float
    w_driver: float
    w_rider: float
    outlier_delta: float
    bus_bonus: float
    window_min_default: float
    store_timeout_seconds: float
