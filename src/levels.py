# -*- coding: utf-8 -*-
"""
Crowd level <-> occupancy fraction mappings.

    level  fraction   band
    1      0.15       [0.00, 0.25)
    2      0.35       [0.25, 0.50)
    3      0.65       [0.50, 0.75)
    4      0.90       [0.75, 1.00]

Each canonical fraction sits inside its own band, so
fraction_to_level(level_to_fraction(n)) == n.
"""
import math

LEVEL_FRACTIONS = {1: 0.15, 2: 0.35, 3: 0.65, 4: 0.90}
LEVEL_THRESHOLDS = (0.25, 0.5, 0.75)

MIN_LEVEL = 1
MAX_LEVEL = 4

# used when a stored level cannot be read as a number at all
DEFAULT_FRACTION = LEVEL_FRACTIONS[2]


def level_to_fraction(level) -> float:
    """
    Canonical occupancy fraction for a crowd level.

    Never raises: out-of-range numbers snap to the nearest valid level and
    anything non-numeric (None, "", "busy") maps to DEFAULT_FRACTION.
    """
    if isinstance(level, bool):
        return DEFAULT_FRACTION
    try:
        value = float(level)
    except (TypeError, ValueError):
        return DEFAULT_FRACTION
    if not math.isfinite(value):
        return DEFAULT_FRACTION
    snapped = int(math.floor(value + 0.5))
    snapped = max(MIN_LEVEL, min(MAX_LEVEL, snapped))
    return LEVEL_FRACTIONS[snapped]


def fraction_to_level(mu: float) -> int:
    """Crowd level for an occupancy fraction (thresholds 0.25 / 0.5 / 0.75)."""
    level = MIN_LEVEL
    for threshold in LEVEL_THRESHOLDS:
        if mu < threshold:
            return level
        level += 1
    return level
