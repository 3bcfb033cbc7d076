# -*- coding: utf-8 -*-
"""Posterior fraction -> level, headcount, CI68 and confidence label."""
import math
from dataclasses import dataclass
from typing import Tuple

try:
    from src.levels import fraction_to_level
    from src.utils import clamp, round_half_up
except ImportError:
    from levels import fraction_to_level
    from utils import clamp, round_half_up


CONFIDENCE_MED_MIN = 3.0
CONFIDENCE_HIGH_MIN = 6.0


@dataclass(frozen=True)
class CrowdSummary:
    level: int
    est_headcount: int
    remaining_capacity: int
    headcount_ci68: Tuple[int, int]
    confidence: str


def confidence_label(k_eff):
    if k_eff < CONFIDENCE_MED_MIN:
        return "low"
    if k_eff < CONFIDENCE_HIGH_MIN:
        return "med"
    return "high"


def interval68(mu, k_eff, capacity):
    """
    One-sigma headcount interval, normal approximation of a weighted
    proportion: sigma = sqrt(mu(1-mu) / (k_eff + 1)).
    """
    sigma = math.sqrt(max(0.0, mu * (1.0 - mu)) / (k_eff + 1.0))
    lo = round_half_up(clamp(mu - sigma, 0.0, 1.0) * capacity)
    hi = round_half_up(clamp(mu + sigma, 0.0, 1.0) * capacity)
    return lo, hi


def summarize(mu, k_eff, capacity) -> CrowdSummary:
    est = round_half_up(mu * capacity)
    return CrowdSummary(
        level=fraction_to_level(mu),
        est_headcount=est,
        remaining_capacity=max(0, capacity - est),
        headcount_ci68=interval68(mu, k_eff, capacity),
        confidence=confidence_label(k_eff),
    )
