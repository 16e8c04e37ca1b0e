from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from .errors import InvalidConfiguration


def mean_time(times: Sequence[float]) -> float:
    """Average elapsed time; undefined (and rejected) for an empty round."""
    if len(times) == 0:
        raise InvalidConfiguration("Cannot average an empty list of trial times")
    return float(np.mean(np.asarray(times, dtype=np.float64)))


def time_std(times: Sequence[float]) -> float:
    if len(times) == 0:
        raise InvalidConfiguration("Cannot compute spread of an empty list of trial times")
    return float(np.std(np.asarray(times, dtype=np.float64)))


def wilson_interval(p: float, n: int, z: float = 1.96) -> Tuple[float, float]:
    if n == 0:
        return 0.0, 0.0
    denom = 1 + z*z/n
    center = (p + (z*z)/(2*n)) / denom
    half = (z * ((p*(1-p)/n) + (z*z)/(4*n*n))**0.5) / denom
    return max(0.0, center - half), min(1.0, center + half)


def elo_estimate(score_rate: float, n: int) -> Tuple[float, float, float]:
    """Elo difference implied by a score rate, with a 95% interval.

    Returns (elo, low, high). Rates are clamped away from 0 and 1 so that a
    clean sweep still yields a finite estimate.
    """
    if n <= 0:
        return 0.0, 0.0, 0.0
    s = min(max(score_rate, 1e-6), 1.0 - 1e-6)
    elo = 400.0 * math.log10(s / (1.0 - s))
    se = math.sqrt(max(s * (1.0 - s) / float(n), 1e-12))
    lo_s = min(max(s - 1.96 * se, 1e-6), 1.0 - 1e-6)
    hi_s = min(max(s + 1.96 * se, 1e-6), 1.0 - 1e-6)
    elo_lo = 400.0 * math.log10(lo_s / (1.0 - lo_s))
    elo_hi = 400.0 * math.log10(hi_s / (1.0 - hi_s))
    return elo, elo_lo, elo_hi
