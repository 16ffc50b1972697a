"""功率档案历史记录与时间段解析

说明：
- 历史是只增不改的快照日志：唯一合法的变更是追加新条目，以及显式配置的保留策略裁剪；
- 追加时机：4 种疲劳状态 × 9 个标准时长中任一字段或体重与上一基线不同；
  字段逐一比较，None 与 0 视为不同；追加的条目保存的是被覆盖前的基线值；
- 赛季：分析时按时间戳所在的自然年计算（season_of）；
  赛季切换（current_season_start）沿用保存流程中的 11 月 1 日规则，两者暂不统一；
- 代表性条目：按时间升序排序后取下标 floor((n-1)/2)（偶数取偏前的中间值）。
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional, Sequence, Tuple

from ...config import SEASON_START_DAY, SEASON_START_MONTH
from .aggregation import fold_into_all_time
from .profiles import (
    FATIGUE_STATES,
    STANDARD_DURATIONS,
    FatigueState,
    PowerProfile,
    PowerProfileHistoryEntry,
    PowerProfiles,
    RiderSnapshot,
    clean_value,
)

logger = logging.getLogger(__name__)

History = Tuple[PowerProfileHistoryEntry, ...]

SEASON_END_NOTE = "End of season - PPR reset"


def _ts_key(entry: PowerProfileHistoryEntry) -> datetime:
    """排序键：无时区的时间戳按 UTC 处理，避免 naive/aware 混排报错。"""
    ts = entry.timestamp
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def sort_chronologically(entries: Sequence[PowerProfileHistoryEntry]) -> History:
    return tuple(sorted(entries, key=_ts_key))


def profiles_changed(old: PowerProfiles, new: PowerProfiles) -> bool:
    for state in FATIGUE_STATES:
        a = old.get(state)
        b = new.get(state)
        for key in STANDARD_DURATIONS:
            if a.get(key) != b.get(key):
                return True
    return False


def should_append_history(previous: Optional[RiderSnapshot], new: RiderSnapshot) -> bool:
    """新快照相对上一基线是否有变化（无基线时不追加）。"""
    if previous is None:
        return False
    if clean_value(previous.weight_kg) != clean_value(new.weight_kg):
        return True
    return profiles_changed(previous.profiles, new.profiles)


def build_history_entry(
    baseline: RiderSnapshot,
    now: datetime,
    entry_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> PowerProfileHistoryEntry:
    """以基线快照（即将被覆盖的值）构造历史条目。"""
    return PowerProfileHistoryEntry(
        id=entry_id or uuid.uuid4().hex,
        timestamp=now,
        profiles=baseline.profiles,
        weight_kg=clean_value(baseline.weight_kg),
        notes=notes,
    )


def trim_history(history: Sequence[PowerProfileHistoryEntry], max_entries: Optional[int]) -> History:
    """保留策略：只保留时间上最新的 max_entries 条，其余顺序不变。

    max_entries 为 None 或 <= 0 时不裁剪。
    """
    history = tuple(history)
    if not max_entries or max_entries <= 0 or len(history) <= max_entries:
        return history
    newest = sorted(range(len(history)), key=lambda i: _ts_key(history[i]), reverse=True)[:max_entries]
    keep = set(newest)
    trimmed = tuple(e for i, e in enumerate(history) if i in keep)
    logger.info("[history][trimmed] before=%s after=%s", len(history), len(trimmed))
    return trimmed


def append_history(
    history: Sequence[PowerProfileHistoryEntry],
    entry: PowerProfileHistoryEntry,
    max_entries: Optional[int] = None,
) -> History:
    """返回新的历史（新条目在最前），不修改原有条目。"""
    updated = (entry,) + tuple(history)
    logger.debug("[history][appended] entry_id=%s size=%s", entry.id, len(updated))
    return trim_history(updated, max_entries)


def clear_fatigue_profile(snapshot: RiderSnapshot, state: FatigueState) -> RiderSnapshot:
    """清空某个预疲劳状态的档案及其备注；fresh 不允许清空（原样返回）。

    已写入历史的条目不受影响。
    """
    state = FatigueState(state)
    if state == FatigueState.FRESH:
        logger.warning("[history][clear-ignored] fresh profile cannot be cleared")
        return snapshot
    notes = tuple((s, text) for s, text in snapshot.notes if s != state)
    return replace(
        snapshot,
        profiles=snapshot.profiles.with_profile(state, PowerProfile()),
        notes=notes,
    )


def season_of(entry: PowerProfileHistoryEntry) -> int:
    """条目所属赛季：时间戳的自然年"""
    return entry.timestamp.year


class PeriodMode(str, Enum):
    ALL = "all"
    BY_SEASON = "by_season"
    BY_DATE_RANGE = "by_date_range"


@dataclass(frozen=True)
class PeriodFilter:
    mode: PeriodMode = PeriodMode.ALL
    season: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_count: Optional[int] = None


def _matches(entry: PowerProfileHistoryEntry, flt: PeriodFilter) -> bool:
    if flt.mode == PeriodMode.BY_SEASON:
        return flt.season is not None and season_of(entry) == flt.season
    if flt.mode == PeriodMode.BY_DATE_RANGE:
        d = entry.timestamp.date()
        if flt.start_date is not None and d < flt.start_date:
            return False
        if flt.end_date is not None and d > flt.end_date:
            return False
        return True
    return True


def resolve_period(history: Sequence[PowerProfileHistoryEntry], flt: Optional[PeriodFilter] = None) -> History:
    """按过滤条件返回匹配条目（最新在前），max_count 截取最新的若干条。"""
    flt = flt or PeriodFilter()
    matched = [e for e in history if _matches(e, flt)]
    ordered = tuple(sorted(matched, key=_ts_key, reverse=True))
    if flt.max_count is not None and flt.max_count >= 0:
        ordered = ordered[:flt.max_count]
    return ordered


def representative_entry(entries: Sequence[PowerProfileHistoryEntry]) -> Optional[PowerProfileHistoryEntry]:
    """时间排序后的中位条目；空集合返回 None。"""
    if not entries:
        return None
    ordered = sort_chronologically(entries)
    return ordered[(len(ordered) - 1) // 2]


def current_season_start(now: datetime, month: Optional[int] = None, day: Optional[int] = None) -> date:
    """当前赛季开始日期：已过当年的开始日（默认 11 月 1 日）则为当年，否则为上一年。"""
    month = month or SEASON_START_MONTH
    day = day or SEASON_START_DAY
    start_this_year = date(now.year, month, day)
    if now.date() >= start_this_year:
        return start_this_year
    return date(now.year - 1, month, day)


def roll_over_season(
    previous: RiderSnapshot,
    incoming: RiderSnapshot,
    now: datetime,
    season_start: Optional[date] = None,
    entry_id: Optional[str] = None,
) -> Tuple[RiderSnapshot, bool]:
    """赛季切换。

    当上一快照记录的赛季开始日早于当前赛季开始日时：
    1. 把上一快照的当季档案作为“赛季结束”条目写入历史（时间戳为新赛季开始日）；
    2. 把这些档案并入 all-time 最佳；
    3. 重置当季档案，除非 incoming 已带有新赛季的数据。

    返回：(新快照, 是否发生了切换)
    """
    season_start = season_start or current_season_start(now)
    if previous.season_start is None or previous.season_start >= season_start:
        if incoming.season_start is None:
            return replace(incoming, season_start=season_start), False
        return incoming, False

    stamp = datetime.combine(season_start, time.min, tzinfo=now.tzinfo)
    entry = build_history_entry(previous, stamp, entry_id=entry_id, notes=SEASON_END_NOTE)
    all_time = fold_into_all_time(previous.all_time, previous.profiles, now)
    profiles = incoming.profiles if incoming.profiles.has_data() else PowerProfiles()

    logger.info(
        "[history][season-rollover] from=%s to=%s entry_id=%s kept_new=%s",
        previous.season_start, season_start, entry.id, incoming.profiles.has_data(),
    )
    rolled = replace(
        incoming,
        profiles=profiles,
        season_start=season_start,
        all_time=all_time,
        history=append_history(previous.history, entry),
    )
    return rolled, True
