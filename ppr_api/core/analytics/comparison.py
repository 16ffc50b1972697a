"""时间段对比引擎

支持三种对比方式：
- 顺序对比（sequential）：同一过滤结果内最早条目 vs 最新条目，至少需要 2 条；
- 双时间段对比（periods）：两个过滤条件各取代表性条目后对比，任一侧为空则无结果；
- 上赛季对比（season N-1）：上一赛季的代表性条目 vs 当前实时数据（或自定义条目），
  并按 W/kg 变化百分比分档：>=10% 明显提升，>=3% 提升，<=-3% 下降，其余持平
  （没有“明显下降”档位，保持现有口径）。

每个双方都有数值的时长输出：瓦特差、各自按当时体重换算的 W/kg 及其差值、百分比变化；
体重缺失时回退到车手当前体重；除数为 0 时百分比为 None，不会抛异常。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, Tuple

from .history import PeriodFilter, PeriodMode, representative_entry, resolve_period, sort_chronologically
from .profiles import (
    ALL_DURATIONS,
    DurationKey,
    FatigueState,
    PowerProfileHistoryEntry,
    RiderSnapshot,
    weight_or_none,
)

STRONG_INCREASE_PCT = 10.0
INCREASE_PCT = 3.0
DECREASE_PCT = -3.0

LIVE_ENTRY_ID = "live"


class Variation(str, Enum):
    STRONG_INCREASE = "strong_increase"
    INCREASE = "increase"
    DECREASE = "decrease"
    STABLE = "stable"


def classify_variation(pct: Optional[float]) -> Optional[Variation]:
    if pct is None:
        return None
    if pct >= STRONG_INCREASE_PCT:
        return Variation.STRONG_INCREASE
    if pct >= INCREASE_PCT:
        return Variation.INCREASE
    if pct <= DECREASE_PCT:
        return Variation.DECREASE
    return Variation.STABLE


@dataclass(frozen=True)
class DurationComparison:
    key: DurationKey
    watts_1: float
    watts_2: float
    raw_delta_watts: float
    wkg_1: Optional[float]
    wkg_2: Optional[float]
    relative_delta_wkg: Optional[float]
    percentage_change: Optional[float]
    wkg_percentage_change: Optional[float]
    variation: Optional[Variation] = None


@dataclass(frozen=True)
class PeriodComparison:
    state: FatigueState
    entry_1: PowerProfileHistoryEntry
    entry_2: PowerProfileHistoryEntry
    rows: Tuple[DurationComparison, ...]

    def row(self, key: DurationKey) -> Optional[DurationComparison]:
        for r in self.rows:
            if r.key == key:
                return r
        return None


@dataclass(frozen=True)
class TwoPeriodComparison:
    representative_1: Optional[PowerProfileHistoryEntry]
    representative_2: Optional[PowerProfileHistoryEntry]
    comparison: Optional[PeriodComparison]


def _pct(new: Optional[float], old: Optional[float]) -> Optional[float]:
    if new is None or old is None or old == 0:
        return None
    return (new / old - 1.0) * 100.0


def entry_weight(entry: PowerProfileHistoryEntry, fallback_weight: Optional[float]) -> Optional[float]:
    return weight_or_none(entry.weight_kg) or weight_or_none(fallback_weight)


def compare_entries(
    entry_1: PowerProfileHistoryEntry,
    entry_2: PowerProfileHistoryEntry,
    fallback_weight: Optional[float] = None,
    state: FatigueState = FatigueState.FRESH,
    classify: bool = False,
) -> PeriodComparison:
    """对比两个条目同一疲劳状态下的各时长功率（entry_1 为基准）。"""
    p1 = entry_1.profiles.get(state)
    p2 = entry_2.profiles.get(state)
    w1 = entry_weight(entry_1, fallback_weight)
    w2 = entry_weight(entry_2, fallback_weight)

    rows = []
    for key in ALL_DURATIONS:
        a = p1.get(key)
        b = p2.get(key)
        if a is None or b is None:
            continue
        wkg_1 = a / w1 if w1 else None
        wkg_2 = b / w2 if w2 else None
        relative = wkg_2 - wkg_1 if wkg_1 is not None and wkg_2 is not None else None
        wkg_pct = _pct(wkg_2, wkg_1)
        rows.append(DurationComparison(
            key=key,
            watts_1=a,
            watts_2=b,
            raw_delta_watts=b - a,
            wkg_1=wkg_1,
            wkg_2=wkg_2,
            relative_delta_wkg=relative,
            percentage_change=_pct(b, a),
            wkg_percentage_change=wkg_pct,
            variation=classify_variation(wkg_pct) if classify else None,
        ))
    return PeriodComparison(state=FatigueState(state), entry_1=entry_1, entry_2=entry_2, rows=tuple(rows))


def compare_sequential(
    entries: Sequence[PowerProfileHistoryEntry],
    fallback_weight: Optional[float] = None,
    state: FatigueState = FatigueState.FRESH,
) -> Optional[PeriodComparison]:
    """最早 vs 最新；不足两条返回 None。"""
    if len(entries) < 2:
        return None
    ordered = sort_chronologically(entries)
    return compare_entries(ordered[0], ordered[-1], fallback_weight, state)


def compare_periods(
    history: Sequence[PowerProfileHistoryEntry],
    period_1: PeriodFilter,
    period_2: PeriodFilter,
    fallback_weight: Optional[float] = None,
    state: FatigueState = FatigueState.FRESH,
) -> TwoPeriodComparison:
    rep_1 = representative_entry(resolve_period(history, period_1))
    rep_2 = representative_entry(resolve_period(history, period_2))
    if rep_1 is None or rep_2 is None:
        return TwoPeriodComparison(rep_1, rep_2, None)
    return TwoPeriodComparison(rep_1, rep_2, compare_entries(rep_1, rep_2, fallback_weight, state))


def live_entry(snapshot: RiderSnapshot, now: datetime) -> PowerProfileHistoryEntry:
    """把车手当前实时数据包装成一个（不会入库的）条目，便于统一对比。"""
    return PowerProfileHistoryEntry(
        id=LIVE_ENTRY_ID,
        timestamp=now,
        profiles=snapshot.profiles,
        weight_kg=weight_or_none(snapshot.weight_kg),
    )


def compare_season_n_minus_1(
    history: Sequence[PowerProfileHistoryEntry],
    current_season: int,
    now: datetime,
    live: Optional[RiderSnapshot] = None,
    custom_entry: Optional[PowerProfileHistoryEntry] = None,
    fallback_weight: Optional[float] = None,
    state: FatigueState = FatigueState.FRESH,
) -> TwoPeriodComparison:
    """上赛季代表性条目 vs 实时数据（默认）或自定义条目，并对每个时长分档。

    live 与 custom_entry 都未提供时没有可对比的一侧，comparison 为 None。
    """
    previous = representative_entry(
        resolve_period(history, PeriodFilter(mode=PeriodMode.BY_SEASON, season=current_season - 1))
    )
    # 条目缺体重时回退到车手当前体重（自定义条目模式同样适用）
    if fallback_weight is None and live is not None:
        fallback_weight = live.weight_kg
    if custom_entry is not None:
        target = custom_entry
    elif live is not None:
        target = live_entry(live, now)
    else:
        target = None
    if previous is None or target is None:
        return TwoPeriodComparison(previous, target, None)
    return TwoPeriodComparison(
        previous,
        target,
        compare_entries(previous, target, fallback_weight, state, classify=True),
    )
