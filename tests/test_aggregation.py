from datetime import datetime, timezone

from ppr_api.core.analytics.aggregation import (
    all_time_including_current,
    fold_into_all_time,
    merge_best_of,
    merge_profiles_best_of,
    roster_power_averages,
)
from ppr_api.core.analytics.profiles import PowerProfile, PowerProfileAllTime, PowerProfiles


def test_merge_best_of_takes_max_and_ignores_missing():
    a = PowerProfile(power_1s=900, power_5s=None, critical_power=250)
    b = PowerProfile(power_1s=1000, power_5s=800, critical_power=240)
    merged = merge_best_of(a, b)
    assert merged.power_1s == 1000
    assert merged.power_5s == 800
    assert merged.critical_power == 250
    assert merged.power_45min is None


def test_merge_best_of_is_commutative_and_idempotent(fresh_profile):
    other = PowerProfile(power_1s=1200, power_20min=260, power_45min=240)
    assert merge_best_of(fresh_profile, other) == merge_best_of(other, fresh_profile)
    assert merge_best_of(fresh_profile, fresh_profile) == fresh_profile


def test_merge_best_of_with_none_side(fresh_profile):
    assert merge_best_of(None, fresh_profile) == fresh_profile


def test_merge_profiles_per_state(fresh_profile, fatigued_profile):
    a = PowerProfiles(fresh=fresh_profile)
    b = PowerProfiles(kj45=fatigued_profile)
    merged = merge_profiles_best_of(a, b)
    assert merged.fresh == fresh_profile
    assert merged.kj45 == fatigued_profile
    assert not merged.kj15.has_data()


def test_fold_into_all_time_keeps_best():
    now = datetime(2025, 5, 1, tzinfo=timezone.utc)
    all_time = PowerProfileAllTime(profiles=PowerProfiles(fresh=PowerProfile(critical_power=300)))
    folded = fold_into_all_time(all_time, PowerProfiles(fresh=PowerProfile(critical_power=280, power_1s=1000)), now)
    assert folded.profiles.fresh.critical_power == 300
    assert folded.profiles.fresh.power_1s == 1000
    assert folded.last_updated == now
    # 原记录不变
    assert all_time.profiles.fresh.power_1s is None


def test_all_time_including_current_without_record(fresh_profile):
    current = PowerProfiles(fresh=fresh_profile)
    assert all_time_including_current(None, current) == current


def test_roster_power_averages():
    riders = [
        PowerProfile(critical_power=250, power_20min=300),
        PowerProfile(critical_power=301),
        PowerProfile(),
        None,
    ]
    averages = roster_power_averages(riders)
    # (250 + 301) / 2 = 275.5
    assert averages["critical_power"] == 276
    # 缺失按 0 计入
    assert averages["power_20min"] == 150
    assert averages["power_30s"] == 0


def test_roster_power_averages_empty():
    averages = roster_power_averages([])
    assert set(averages) == {"critical_power", "power_20min", "power_12min", "power_5min", "power_1min", "power_30s"}
    assert all(v == 0 for v in averages.values())
