"""功率档案（PPR）数据模型

说明：
- PowerProfile：各标准时长（1s … 20min、CP，可选 45min）的最佳功率，单位瓦特；
  缺失值一律用 None 表示，NaN 在读取时按缺失处理；
- 疲劳状态：fresh（无预疲劳）、15kJ、30kJ、45kJ，kJ 越大代表测试前做功越多；
- 所有结构均为不可变对象（frozen dataclass / tuple），计算函数只返回新值，不修改入参。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


class DurationKey(str, Enum):
    """标准时长键，值与 PowerProfile 的字段名一致"""
    POWER_1S = "power_1s"
    POWER_5S = "power_5s"
    POWER_30S = "power_30s"
    POWER_1MIN = "power_1min"
    POWER_3MIN = "power_3min"
    POWER_5MIN = "power_5min"
    POWER_12MIN = "power_12min"
    POWER_20MIN = "power_20min"
    CRITICAL_POWER = "critical_power"
    POWER_45MIN = "power_45min"


# 参与历史变更判断的 9 个标准时长（不含可选的 45min）
STANDARD_DURATIONS: Tuple[DurationKey, ...] = (
    DurationKey.POWER_1S,
    DurationKey.POWER_5S,
    DurationKey.POWER_30S,
    DurationKey.POWER_1MIN,
    DurationKey.POWER_3MIN,
    DurationKey.POWER_5MIN,
    DurationKey.POWER_12MIN,
    DurationKey.POWER_20MIN,
    DurationKey.CRITICAL_POWER,
)

ALL_DURATIONS: Tuple[DurationKey, ...] = STANDARD_DURATIONS + (DurationKey.POWER_45MIN,)


class FatigueState(str, Enum):
    """疲劳状态"""
    FRESH = "fresh"
    KJ15 = "15kj"
    KJ30 = "30kj"
    KJ45 = "45kj"


FATIGUE_STATES: Tuple[FatigueState, ...] = (
    FatigueState.FRESH,
    FatigueState.KJ15,
    FatigueState.KJ30,
    FatigueState.KJ45,
)


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class RiderArchetype(str, Enum):
    """车手类型（定性画像），决定综合分的权重向量"""
    CLIMBER = "climber"
    SPRINTER = "sprinter"
    ROULEUR = "rouleur"
    PUNCHER = "puncher"
    ALL_ROUNDER = "all_rounder"
    CLASSIC = "classic"
    BREAKAWAY = "breakaway"
    OTHER = "other"


def clean_value(value) -> Optional[float]:
    """将任意输入规整为 float 或 None（None/NaN/非数值 -> None）。"""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(v):
        return None
    return v


@dataclass(frozen=True)
class PowerProfile:
    """单一疲劳状态下的功率-时长记录（瓦特）"""
    power_1s: Optional[float] = None
    power_5s: Optional[float] = None
    power_30s: Optional[float] = None
    power_1min: Optional[float] = None
    power_3min: Optional[float] = None
    power_5min: Optional[float] = None
    power_12min: Optional[float] = None
    power_20min: Optional[float] = None
    critical_power: Optional[float] = None
    power_45min: Optional[float] = None

    def get(self, key: DurationKey) -> Optional[float]:
        return clean_value(getattr(self, DurationKey(key).value))

    def has_data(self) -> bool:
        """至少有一个时长的功率 > 0 才视为有数据。"""
        return any((self.get(k) or 0) > 0 for k in ALL_DURATIONS)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {k.value: self.get(k) for k in ALL_DURATIONS}

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "PowerProfile":
        if not data:
            return cls()
        names = {f.name for f in fields(cls)}
        return cls(**{k: clean_value(v) for k, v in data.items() if k in names})


EMPTY_PROFILE = PowerProfile()


@dataclass(frozen=True)
class PowerProfiles:
    """四种疲劳状态的功率档案集合"""
    fresh: PowerProfile = EMPTY_PROFILE
    kj15: PowerProfile = EMPTY_PROFILE
    kj30: PowerProfile = EMPTY_PROFILE
    kj45: PowerProfile = EMPTY_PROFILE

    def get(self, state: FatigueState) -> PowerProfile:
        return getattr(self, _STATE_FIELDS[FatigueState(state)])

    def with_profile(self, state: FatigueState, profile: PowerProfile) -> "PowerProfiles":
        return replace(self, **{_STATE_FIELDS[FatigueState(state)]: profile})

    def has_data(self) -> bool:
        return any(self.get(s).has_data() for s in FATIGUE_STATES)

    def to_dict(self) -> Dict[str, Dict[str, Optional[float]]]:
        return {s.value: self.get(s).to_dict() for s in FATIGUE_STATES}

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Mapping[str, object]]]) -> "PowerProfiles":
        data = data or {}
        return cls(**{
            _STATE_FIELDS[s]: PowerProfile.from_mapping(data.get(s.value))
            for s in FATIGUE_STATES
        })


_STATE_FIELDS: Dict[FatigueState, str] = {
    FatigueState.FRESH: "fresh",
    FatigueState.KJ15: "kj15",
    FatigueState.KJ30: "kj30",
    FatigueState.KJ45: "kj45",
}


@dataclass(frozen=True)
class PowerProfileAllTime:
    """历史最佳（all-time）档案：与当季档案分开保存"""
    profiles: PowerProfiles = field(default_factory=PowerProfiles)
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class PowerProfileHistoryEntry:
    """历史快照：创建后不可修改"""
    id: str
    timestamp: datetime
    profiles: PowerProfiles = field(default_factory=PowerProfiles)
    weight_kg: Optional[float] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class RiderSnapshot:
    """车手当前状态的完整快照（由调用方整体传入，整体返回）

    notes 为各疲劳状态对应的备注文本（清空某状态档案时一并清空）。
    history 按时间倒序存放（最新在前），但顺序仅供展示，语义上始终按 timestamp 排序。
    """
    profiles: PowerProfiles = field(default_factory=PowerProfiles)
    weight_kg: Optional[float] = None
    sex: Optional[Sex] = None
    archetype: Optional[RiderArchetype] = None
    notes: Tuple[Tuple[FatigueState, str], ...] = ()
    season_start: Optional[date] = None
    all_time: PowerProfileAllTime = field(default_factory=PowerProfileAllTime)
    history: Tuple[PowerProfileHistoryEntry, ...] = ()

    def note_for(self, state: FatigueState) -> Optional[str]:
        for s, text in self.notes:
            if s == state:
                return text
        return None


def weight_or_none(weight_kg) -> Optional[float]:
    """体重 <= 0 视为缺失"""
    w = clean_value(weight_kg)
    if w is None or w <= 0:
        return None
    return w

