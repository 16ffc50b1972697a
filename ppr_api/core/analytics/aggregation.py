"""最佳值合并（all-time）与车队功率均值

说明：
- merge_best_of：逐时长取两份档案中的较大值，缺失的一侧忽略（不当作 0），
  两侧都缺失则结果仍缺失；满足交换律，且 merge_best_of(A, A) == A；
- 用于展示“历史最佳（含本季）”，不修改已保存的 all-time 记录，是否持久化由调用方决定。
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, Iterable, Optional, Sequence

from .profiles import (
    ALL_DURATIONS,
    FATIGUE_STATES,
    DurationKey,
    PowerProfile,
    PowerProfileAllTime,
    PowerProfiles,
)


def _better(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def merge_best_of(a: Optional[PowerProfile], b: Optional[PowerProfile]) -> PowerProfile:
    """逐时长取最大值，返回新的档案。"""
    a = a or PowerProfile()
    b = b or PowerProfile()
    return PowerProfile(**{k.value: _better(a.get(k), b.get(k)) for k in ALL_DURATIONS})


def merge_profiles_best_of(a: PowerProfiles, b: PowerProfiles) -> PowerProfiles:
    """四种疲劳状态分别合并"""
    merged = PowerProfiles()
    for state in FATIGUE_STATES:
        merged = merged.with_profile(state, merge_best_of(a.get(state), b.get(state)))
    return merged


def fold_into_all_time(
    all_time: Optional[PowerProfileAllTime],
    profiles: PowerProfiles,
    now: datetime,
) -> PowerProfileAllTime:
    """把当前档案并入历史最佳，返回新的记录（last_updated = now）。"""
    base = all_time.profiles if all_time else PowerProfiles()
    return PowerProfileAllTime(profiles=merge_profiles_best_of(base, profiles), last_updated=now)


def all_time_including_current(
    all_time: Optional[PowerProfileAllTime],
    profiles: PowerProfiles,
) -> PowerProfiles:
    """展示用：历史最佳与当季档案合并，不产生新的 all-time 记录。"""
    base = all_time.profiles if all_time else PowerProfiles()
    return merge_profiles_best_of(base, profiles)


ROSTER_AVERAGE_KEYS: Sequence[DurationKey] = (
    DurationKey.CRITICAL_POWER,
    DurationKey.POWER_20MIN,
    DurationKey.POWER_12MIN,
    DurationKey.POWER_5MIN,
    DurationKey.POWER_1MIN,
    DurationKey.POWER_30S,
)


def roster_power_averages(
    fresh_profiles: Iterable[Optional[PowerProfile]],
    keys: Sequence[DurationKey] = ROSTER_AVERAGE_KEYS,
) -> Dict[str, int]:
    """车队 fresh 功率均值（四舍五入到整数瓦特）。

    只统计有 fresh 数据的车手；某时长缺失按 0 计入（与赛季归档的组均值口径一致）。
    没有任何车手有数据时各项为 0。
    """
    with_data = [p for p in fresh_profiles if p is not None and p.has_data()]
    out: Dict[str, int] = {}
    for k in keys:
        if not with_data:
            out[k.value] = 0
            continue
        total = sum(p.get(k) or 0 for p in with_data)
        out[k.value] = int(math.floor(total / len(with_data) + 0.5))
    return out
