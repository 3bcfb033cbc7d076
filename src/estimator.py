# -*- coding: utf-8 -*-
"""
Crowd Estimator
===============
Request-scoped pipeline behind GET /api/crowd/now:

    store fan-out (W prior windows + current window, concurrent)
        -> PriorEstimator.compute   -> (mu0, k0)
        -> fuse                     -> (mu, k_eff, counts)
        -> summarize                -> level, headcount, CI68, confidence

Nothing here is mutated after construction. Store failures and timeouts
degrade the answer (default prior, empty window, low confidence) instead of
failing the request.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

try:
    from src.confidence import summarize
    from src.fusion import FusionWeights, current_window, fuse
    from src.prior import PriorEstimator
    from src.utils import format_instant, parse_instant, partition_key, utcnow
except ImportError:
    from confidence import summarize
    from fusion import FusionWeights, current_window, fuse
    from prior import PriorEstimator
    from utils import format_instant, parse_instant, partition_key, utcnow


@dataclass(frozen=True)
class FusionResult:
    route: str
    stop: str
    bus_id: Optional[str]
    level: int
    occupancy: float
    est_headcount: int
    headcount_ci68: Tuple[int, int]
    remaining_capacity: int
    confidence: str
    counts: Dict[str, int]
    window_min: float
    prior: Dict[str, float]
    at: str

    def to_dict(self):
        return {
            "route": self.route,
            "stop": self.stop,
            "bus_id": self.bus_id,
            "level": self.level,
            "occupancy": self.occupancy,
            "est_headcount": self.est_headcount,
            "headcount_ci68": list(self.headcount_ci68),
            "remaining_capacity": self.remaining_capacity,
            "confidence": self.confidence,
            "counts": dict(self.counts),
            "window_min": self.window_min,
            "prior": dict(self.prior),
            "at": self.at,
        }


class CrowdEstimator:
    def __init__(self, config, store):
        self.config = config
        self.store = store
        self.prior_estimator = PriorEstimator(config)
        self.weights = FusionWeights.from_config(config)

    async def _fetch_current(self, pk, since, until) -> List:
        try:
            return await asyncio.to_thread(self.store.query, pk, since, until)
        except Exception as e:
            logging.warning("Current window query failed for %s: %s", pk, e, exc_info=True)
            return []

    async def _fetch(self, pk, at, since, until):
        return await asyncio.gather(
            self.prior_estimator.fetch(self.store, pk, at),
            self._fetch_current(pk, since, until),
        )

    async def estimate(self, route, stop, at=None, window_min=None, bus_id=None) -> FusionResult:
        at = utcnow() if at is None else parse_instant(at)
        if window_min is None:
            window_min = self.config.window_min_default
        window_min = float(window_min)
        if window_min <= 0:
            raise ValueError("window_min must be positive")
        try:
            since, until = current_window(at, window_min)
            self.prior_estimator.windows(at)
        except OverflowError as e:
            raise ValueError(f"instant out of range for lookback: {at!r}") from e
        bus_id = bus_id or None
        pk = partition_key(route, stop)

        try:
            history, current = await asyncio.wait_for(
                self._fetch(pk, at, since, until),
                timeout=self.config.store_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logging.warning(
                "Store fan-out for %s exceeded %.1fs; using default prior and empty window",
                pk, self.config.store_timeout_seconds,
            )
            history, current = None, []

        prior = self.prior_estimator.compute(history, at)
        state = fuse(current, prior, at, self.weights, bus_id=bus_id)
        summary = summarize(state.mu, state.k_eff, self.config.capacity)

        return FusionResult(
            route=route,
            stop=stop,
            bus_id=bus_id,
            level=summary.level,
            occupancy=round(state.mu, 4),
            est_headcount=summary.est_headcount,
            headcount_ci68=summary.headcount_ci68,
            remaining_capacity=summary.remaining_capacity,
            confidence=summary.confidence,
            counts=state.counts,
            window_min=window_min,
            prior=prior.to_dict(),
            at=format_instant(at),
        )
