# -*- coding: utf-8 -*-
"""
Prior Estimator
===============
Weekday-conditioned historical baseline for a route/stop.

For each of the last W weeks, look at the same time of day +/- H minutes:

    window_i = [T - i*7d - H, T - i*7d + H]     i = 1..W

Reports from those windows that fall on T's weekday (UTC) become the prior:

    mu0 = mean(level_to_fraction(level))
    k0  = clamp(n, 2, k_max)

The floor of 2 keeps the prior from being vacuous; the cap keeps stale
history from drowning fresh reports. No usable history -> configured defaults.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

try:
    from src.levels import level_to_fraction
    from src.utils import clamp
except ImportError:
    from levels import level_to_fraction
    from utils import clamp


K0_FLOOR = 2.0


@dataclass(frozen=True)
class Prior:
    mu0: float
    k0: float

    def to_dict(self):
        return {"mu0": self.mu0, "k0": self.k0}


def prior_windows(at, lookback_weeks=4, half_window_min=30.0):
    """(since, until) pairs, one per lookback week, most recent first."""
    half = timedelta(minutes=half_window_min)
    windows = []
    for i in range(1, lookback_weeks + 1):
        center = at - timedelta(days=7 * i)
        windows.append((center - half, center + half))
    return windows


class PriorEstimator:
    def __init__(self, config):
        self.config = config

    def default(self) -> Prior:
        return Prior(
            mu0=float(self.config.prior_mu0_default),
            k0=float(self.config.prior_k0_default),
        )

    def windows(self, at):
        return prior_windows(
            at,
            self.config.prior_lookback_weeks,
            self.config.prior_half_window_min,
        )

    async def fetch(self, store, pk, at) -> Optional[List]:
        """
        Query all lookback windows concurrently and merge the results.

        Returns None when any of the queries failed; a prior built from a
        subset of weeks would silently shift the baseline.
        """
        results = await asyncio.gather(
            *(asyncio.to_thread(store.query, pk, since, until)
              for since, until in self.windows(at)),
            return_exceptions=True,
        )
        merged = []
        for res in results:
            if isinstance(res, BaseException):
                logging.warning("Prior window query failed for %s: %s", pk, res,
                                exc_info=res)
                return None
            merged.extend(res)
        return merged

    def compute(self, reports, at) -> Prior:
        """Prior from already-fetched history. None means the fetch failed."""
        if not reports:
            return self.default()

        weekday = at.weekday()
        fractions = [
            level_to_fraction(r.level)
            for r in reports
            if r.timestamp.weekday() == weekday
        ]
        if not fractions:
            return self.default()

        mu0 = sum(fractions) / len(fractions)
        k0 = clamp(float(len(fractions)), K0_FLOOR, float(self.config.prior_k_max))
        return Prior(mu0=mu0, k0=k0)
