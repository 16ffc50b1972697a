"""车手能力评分（0~100）

说明：
- score_value：把单个数值（W 或 W/kg）放到参考表中线性插值得到 0~100 分；
  缺失 -> 0；不低于最佳阈值 -> 100；不高于最差阈值 -> 10（有测量但很弱仍高于“无数据”）；
- compute_characteristics：按固定权重把各时长分数融合成冲刺、无氧、冲坡、爬坡、平路五项，
  再按车手类型权重得到综合分，并附带疲劳抗性分；
- 纯函数，不依赖数据库或网络。
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from ...config import DEFAULT_SEX
from .fatigue import estimate_fatigue_resistance
from .profiles import (
    DurationKey,
    PowerProfile,
    PowerProfiles,
    RiderArchetype,
    Sex,
    clean_value,
    weight_or_none,
)
from .reference_tables import (
    ARCHETYPE_WEIGHTS,
    RELATIVE_COLUMN,
    ReferenceTables,
    Table,
    get_reference_tables,
)

DISCIPLINES = ("sprint", "anaerobic", "puncher", "climbing", "rouleur")


@dataclass(frozen=True)
class RiderCharacteristics:
    sprint: int = 0
    anaerobic: int = 0
    puncher: int = 0
    climbing: int = 0
    rouleur: int = 0
    general_score: int = 0
    fatigue_resistance_score: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def round_half_up(x: float) -> int:
    """四舍五入（.5 向上），避免 Python 内置 round 的银行家舍入。"""
    return int(math.floor(x + 0.5))


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def score_value(value: Optional[float], table: Table, column: str) -> int:
    """参考表插值评分。

    参数：
        value: 测量值（W 或 W/kg），None/NaN 视为缺失
        table: 参考表，下标 0 为最佳阈值，最后一行为最差阈值
        column: 表中的列名

    返回：
        0~100 的整数分
    """
    v = clean_value(value)
    if v is None:
        return 0
    best = float(table[0][column])
    worst = float(table[-1][column])
    if v >= best:
        return 100
    if v <= worst:
        return 10
    return round_half_up(10 + (v - worst) / (best - worst) * 90)


def _wkg(watts: Optional[float], weight_kg: float) -> Optional[float]:
    # 0W 与缺失等价
    if not watts:
        return None
    return watts / weight_kg


def discipline_scores(
    fresh: PowerProfile,
    weight_kg: float,
    sex: Sex,
    tables: ReferenceTables,
) -> Dict[str, float]:
    """计算五项能力的未取整分值（综合分需要未取整值参与加权）。"""
    relative = tables.relative_for(sex)

    def by_wkg(key: DurationKey) -> int:
        return score_value(_wkg(fresh.get(key), weight_kg), relative, RELATIVE_COLUMN[key])

    def by_watts(key: DurationKey, column: str) -> int:
        return score_value(fresh.get(key), tables.absolute_for(sex, column), column)

    sprint_watts = by_watts(DurationKey.POWER_5S, "power_5s") * 0.6 + by_watts(DurationKey.POWER_1S, "power_1s") * 0.4
    sprint_wkg = by_wkg(DurationKey.POWER_5S) * 0.6 + by_wkg(DurationKey.POWER_30S) * 0.4

    anaerobic = by_wkg(DurationKey.POWER_30S) * 0.5 + by_wkg(DurationKey.POWER_1MIN) * 0.5
    puncher = (
        by_wkg(DurationKey.POWER_1MIN) * 0.4
        + by_wkg(DurationKey.POWER_3MIN) * 0.4
        + by_wkg(DurationKey.POWER_5MIN) * 0.2
    )
    climbing = (
        by_wkg(DurationKey.POWER_5MIN) * 0.2
        + by_wkg(DurationKey.POWER_12MIN) * 0.3
        + by_wkg(DurationKey.POWER_20MIN) * 0.5
    )

    # CP 的绝对评分借用 20min 绝对表
    rouleur_watts = (
        by_watts(DurationKey.POWER_5MIN, "power_5min") * 0.2
        + by_watts(DurationKey.POWER_20MIN, "power_20min") * 0.4
        + by_watts(DurationKey.CRITICAL_POWER, "power_20min") * 0.4
    )
    rouleur_wkg = by_wkg(DurationKey.POWER_20MIN) * 0.5 + by_wkg(DurationKey.CRITICAL_POWER) * 0.5

    return {
        "sprint": sprint_watts * 0.6 + sprint_wkg * 0.4,
        "anaerobic": anaerobic,
        "puncher": puncher,
        "climbing": climbing,
        "rouleur": rouleur_watts * 0.7 + rouleur_wkg * 0.3,
    }


def general_score(scores: Dict[str, float], archetype: RiderArchetype) -> int:
    weights = ARCHETYPE_WEIGHTS[archetype]
    total = sum((scores.get(d) or 0) * weights.get(d, 0) for d in DISCIPLINES)
    return round_half_up(clamp(total))


def compute_characteristics(
    profiles: PowerProfiles,
    weight_kg: Optional[float],
    sex: Optional[Sex] = None,
    archetype: Optional[RiderArchetype] = None,
    tables: Optional[ReferenceTables] = None,
) -> RiderCharacteristics:
    """根据功率档案、体重、性别、车手类型计算全部能力分。

    无 fresh 数据或无体重时直接返回全 0（这是约定，不是错误）。
    未提供性别时按女性参考表评分；未提供类型时按 OTHER 权重。
    """
    weight = weight_or_none(weight_kg)
    if not profiles.fresh.has_data() or weight is None:
        return RiderCharacteristics()

    if sex is None:
        sex = Sex(DEFAULT_SEX)
    tables = tables or get_reference_tables()

    scores = discipline_scores(profiles.fresh, weight, sex, tables)
    fatigue = estimate_fatigue_resistance(profiles)

    return RiderCharacteristics(
        sprint=round_half_up(scores["sprint"]),
        anaerobic=round_half_up(scores["anaerobic"]),
        puncher=round_half_up(scores["puncher"]),
        climbing=round_half_up(scores["climbing"]),
        rouleur=round_half_up(scores["rouleur"]),
        general_score=general_score(scores, archetype or RiderArchetype.OTHER),
        fatigue_resistance_score=fatigue,
    )
