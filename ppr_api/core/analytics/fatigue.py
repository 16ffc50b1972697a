"""Fatigue resistance estimation.

Compares the deepest available pre-fatigued profile (45kJ > 30kJ > 15kJ) with
the fresh profile over four key durations and maps the weighted power ratio to
a 0-100 score. The ratio is squared so that typical decay (0.8-0.95) is
penalised harder than a linear mapping would.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np

from .profiles import DurationKey, FatigueState, PowerProfile, PowerProfiles

# 未知时的中性分（不是测得的中位数）
UNKNOWN_FATIGUE_SCORE = 50

FATIGUE_WEIGHTS: Dict[DurationKey, float] = {
    DurationKey.POWER_5S: 0.1,
    DurationKey.POWER_1MIN: 0.2,
    DurationKey.POWER_5MIN: 0.3,
    DurationKey.CRITICAL_POWER: 0.4,
}

_PRIORITY: Tuple[FatigueState, ...] = (FatigueState.KJ45, FatigueState.KJ30, FatigueState.KJ15)


def select_fatigue_profile(profiles: PowerProfiles) -> Optional[Tuple[FatigueState, PowerProfile]]:
    """Return the deepest fatigued profile that has data, or None."""
    for state in _PRIORITY:
        profile = profiles.get(state)
        if profile.has_data():
            return state, profile
    return None


def weighted_power_ratio(fresh: PowerProfile, fatigued: PowerProfile) -> Optional[float]:
    """Weighted mean of fatigued/fresh over the key durations.

    Pairs with a missing side (or fresh <= 0) are skipped and the weights are
    renormalised over the pairs actually used. Returns None when no pair is usable.
    """
    ratios = []
    weights = []
    for key, w in FATIGUE_WEIGHTS.items():
        f = fresh.get(key)
        t = fatigued.get(key)
        if f is None or t is None or f <= 0:
            continue
        ratios.append(t / f)
        weights.append(w)
    if not weights:
        return None
    return float(np.average(np.asarray(ratios), weights=np.asarray(weights)))


def estimate_fatigue_resistance(profiles: PowerProfiles) -> int:
    selected = select_fatigue_profile(profiles)
    if selected is None:
        return UNKNOWN_FATIGUE_SCORE
    _, fatigued = selected
    ratio = weighted_power_ratio(profiles.fresh, fatigued)
    if ratio is None:
        return UNKNOWN_FATIGUE_SCORE
    score = float(np.clip(ratio ** 2 * 100.0, 0.0, 100.0))
    return int(np.floor(score + 0.5))
