from ppr_api.core.analytics.fatigue import (
    UNKNOWN_FATIGUE_SCORE,
    estimate_fatigue_resistance,
    select_fatigue_profile,
    weighted_power_ratio,
)
from ppr_api.core.analytics.profiles import FatigueState, PowerProfile, PowerProfiles


def test_unknown_without_fatigued_profile(fresh_profile):
    assert estimate_fatigue_resistance(PowerProfiles(fresh=fresh_profile)) == UNKNOWN_FATIGUE_SCORE == 50


def test_no_decay_scores_100(fresh_profile):
    assert estimate_fatigue_resistance(PowerProfiles(fresh=fresh_profile, kj30=fresh_profile)) == 100


def test_weighted_ratio_is_squared(fresh_profile, fatigued_profile):
    ratio = weighted_power_ratio(fresh_profile, fatigued_profile)
    assert abs(ratio - 0.940012) < 1e-5
    assert estimate_fatigue_resistance(PowerProfiles(fresh=fresh_profile, kj45=fatigued_profile)) == 88


def test_deepest_fatigue_state_is_preferred(fresh_profile):
    half = PowerProfile(**{k: v / 2 for k, v in fresh_profile.to_dict().items() if v})
    profiles = PowerProfiles(fresh=fresh_profile, kj15=fresh_profile, kj45=half)
    state, _ = select_fatigue_profile(profiles)
    assert state == FatigueState.KJ45
    assert estimate_fatigue_resistance(profiles) == 25


def test_missing_pairs_are_renormalised():
    fresh = PowerProfile(critical_power=300)
    fatigued = PowerProfile(critical_power=270, power_5s=800)
    # 只有 CP 可配对：0.9² = 0.81
    assert estimate_fatigue_resistance(PowerProfiles(fresh=fresh, kj15=fatigued)) == 81


def test_no_usable_pair_is_unknown(fresh_profile):
    fatigued = PowerProfile(power_30s=500)
    assert estimate_fatigue_resistance(PowerProfiles(fresh=fresh_profile, kj15=fatigued)) == 50


def test_more_decay_never_scores_higher(fresh_profile):
    scores = []
    for factor in (1.0, 0.95, 0.9, 0.8, 0.6):
        fatigued = PowerProfile(**{k: v * factor for k, v in fresh_profile.to_dict().items() if v})
        scores.append(estimate_fatigue_resistance(PowerProfiles(fresh=fresh_profile, kj30=fatigued)))
    assert scores == sorted(scores, reverse=True)
    assert 0 <= min(scores) and max(scores) <= 100
