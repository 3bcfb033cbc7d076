# -*- coding: utf-8 -*-
"""
Fusion engine configuration.

Built once at start-up (FusionConfig.from_env) and handed to the estimator.
Frozen: a running request never sees a knob change underneath it.
"""
import os
from dataclasses import asdict, dataclass, fields


@dataclass(frozen=True)
class FusionConfig:
    capacity: int = 60                  # headcount at 100% occupancy
    prior_mu0_default: float = 0.35     # fallback prior mean (no history)
    prior_k0_default: float = 2.0       # fallback prior strength
    prior_lookback_weeks: int = 4
    prior_half_window_min: float = 30.0
    prior_k_max: float = 10.0           # cap on historical pseudo-count
    tau_min: float = 10.0               # recency decay constant (minutes)
    w_driver: float = 3.0
    w_rider: float = 1.0
    outlier_delta: float = 0.40
    bus_bonus: float = 1.5
    window_min_default: float = 15.0
    store_timeout_seconds: float = 2.0

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError("CAPACITY must be positive")
        if not 0.0 <= self.prior_mu0_default <= 1.0:
            raise ValueError("PRIOR_MU0_DEFAULT must be within [0, 1]")
        if self.prior_k0_default < 0:
            raise ValueError("PRIOR_K0_DEFAULT must be >= 0")
        if self.prior_lookback_weeks < 1:
            raise ValueError("PRIOR_LOOKBACK_WEEKS must be >= 1")
        if self.prior_half_window_min < 0:
            raise ValueError("PRIOR_HALF_WINDOW_MIN must be >= 0")
        if self.prior_k_max < 2:
            raise ValueError("PRIOR_K_MAX must be >= 2")
        if self.tau_min <= 0:
            raise ValueError("TAU_MIN must be positive")
        if self.w_driver < 0 or self.w_rider < 0 or self.bus_bonus < 0:
            raise ValueError("W_DRIVER, W_RIDER and BUS_BONUS must be >= 0")
        if self.outlier_delta < 0:
            raise ValueError("OUTLIER_DELTA must be >= 0")
        if self.window_min_default <= 0:
            raise ValueError("WINDOW_MIN_DEFAULT must be positive")
        if self.store_timeout_seconds <= 0:
            raise ValueError("STORE_TIMEOUT_SECONDS must be positive")

    @classmethod
    def from_env(cls, environ=None):
        """
        Read knobs from environment variables named after the fields in upper
        case (CAPACITY, TAU_MIN, W_DRIVER, ...). Unset variables keep defaults.
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        for f in fields(cls):
            raw = env.get(f.name.upper())
            if raw is None or str(raw).strip() == "":
                continue
            try:
                kwargs[f.name] = int(raw) if f.type in (int, "int") else float(raw)
            except ValueError:
                raise ValueError(f"{f.name.upper()} is not a number: {raw!r}")
        return cls(**kwargs)

    def to_dict(self):
        return asdict(self)
