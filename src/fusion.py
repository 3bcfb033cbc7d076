# -*- coding: utf-8 -*-
"""
Fusion Engine
=============
Fold the current window's reports onto the prior.

    num = k0 * mu0,  den = k0                          (prior seeding)

    for r in sorted(reports, by timestamp ascending):
        decay = exp(-minutes_ago(r) / tau)
        w     = base(r.source) * decay * bonus(r.bus_id)
        f     = level_to_fraction(r.level)
        if |f - num/den| > outlier_delta:              (mean before r)
            w *= 0.6
        num += w * f
        den += w

    mu = clamp(num / den, 0, 1),  k_eff = den

The outlier test reads the partially accumulated mean, so the fold is not
permutation-invariant. Reports are always folded in ascending timestamp
order (Report.sort_key), never in whatever order the store returned them.
The down-weight is soft: a real jump in occupancy still gets absorbed, just
over a few reports instead of one.
"""
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Iterable, Optional

try:
    from src.levels import level_to_fraction
    from src.utils import clamp
except ImportError:
    from levels import level_to_fraction
    from utils import clamp


OUTLIER_PENALTY = 0.6


@dataclass(frozen=True)
class FusionWeights:
    w_driver: float = 3.0
    w_rider: float = 1.0
    tau_min: float = 10.0
    outlier_delta: float = 0.40
    bus_bonus: float = 1.5

    @classmethod
    def from_config(cls, config):
        return cls(
            w_driver=config.w_driver,
            w_rider=config.w_rider,
            tau_min=config.tau_min,
            outlier_delta=config.outlier_delta,
            bus_bonus=config.bus_bonus,
        )


@dataclass(frozen=True)
class FusionState:
    mu: float
    k_eff: float
    counts: Dict[str, int] = field(default_factory=dict)


def current_window(at, window_min):
    return at - timedelta(minutes=window_min), at


def order_reports(reports):
    """Canonical fold order: ascending timestamp."""
    return sorted(reports, key=lambda r: r.sort_key())


def report_weight(report, at, weights, bus_id=None):
    """Source weight x recency decay x same-bus bonus (before outlier test)."""
    minutes_ago = max(0.0, (at - report.timestamp).total_seconds() / 60.0)
    decay = math.exp(-minutes_ago / weights.tau_min)
    base = weights.w_driver if report.is_driver else weights.w_rider
    bonus = weights.bus_bonus if bus_id and report.bus_id == bus_id else 1.0
    return base * decay * bonus


def fuse(reports: Iterable, prior, at, weights: FusionWeights,
         bus_id: Optional[str] = None) -> FusionState:
    """Posterior occupancy fraction and effective sample size."""
    num = prior.k0 * prior.mu0
    den = prior.k0
    n_driver = 0
    n_rider = 0

    for r in order_reports(reports):
        f = level_to_fraction(r.level)
        w = report_weight(r, at, weights, bus_id)

        running = num / den if den > 0 else prior.mu0
        if abs(f - running) > weights.outlier_delta:
            w *= OUTLIER_PENALTY

        num += w * f
        den += w
        if r.is_driver:
            n_driver += 1
        else:
            n_rider += 1

    # den == 0 only when k0 == 0 and every report weighed nothing
    mu = clamp(num / den, 0.0, 1.0) if den > 0 else clamp(prior.mu0, 0.0, 1.0)
    return FusionState(
        mu=mu,
        k_eff=den,
        counts={"reports": n_driver + n_rider, "driver": n_driver, "rider": n_rider},
    )
