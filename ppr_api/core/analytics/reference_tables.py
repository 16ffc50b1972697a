"""功率档案参考表（静态配置）

说明：
- 相对表（W/kg）按性别各一份，行从好到差排列（Classe Mondiale -> Novice），
  每行给出各时长的阈值；
- 绝对表（W）由相对表乘以参考体重得到（男 70kg、女 58kg，四舍五入），
  仅 1s/5s/1min/5min/20min 有绝对表，CP 的绝对评分借用 20min 表；
- 可以通过环境变量 ``REFERENCE_TABLES_PATH`` 指向 JSON 文件覆盖默认表，
  文件缺失或格式错误时记录告警并回退到内置表。

JSON 覆盖文件结构示例::

    {
      "relative": {"male": [{"category": "...", "power_1s": 29.5, ...}, ...],
                   "female": [...]},
      "reference_weights": {"male": 70, "female": 58}
    }
"""

from __future__ import annotations

import json
import math
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ...config import REFERENCE_TABLES_PATH
from .profiles import DurationKey, RiderArchetype, Sex

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Table = List[Row]

_WKG_COLUMNS = (
    "power_1s", "power_5s", "power_30s", "power_1min", "power_3min",
    "power_5min", "power_12min", "power_20min", "power_45min",
)


def _rows(categories, values) -> Table:
    return [
        {"category": cat, **dict(zip(_WKG_COLUMNS, vals))}
        for cat, vals in zip(categories, values)
    ]


_CATEGORIES = (
    "Classe Mondiale", "Exceptionnel", "Excellent", "Très Bon", "Bon",
    "Modéré", "Entraîné", "Débutant", "Novice",
)

DEFAULT_RELATIVE_TABLES: Dict[Sex, Table] = {
    Sex.MALE: _rows(_CATEGORIES, [
        (29.5, 24.5, 16.8, 11.8, 9.0, 8.1, 7.4, 7.2, 6.8),
        (27.8, 22.5, 15.1, 10.6, 8.2, 7.4, 6.7, 6.5, 6.2),
        (26.1, 20.5, 13.4, 9.5, 7.4, 6.7, 6.0, 5.8, 5.5),
        (24.4, 18.5, 11.8, 8.4, 6.6, 6.0, 5.4, 5.2, 4.8),
        (22.7, 16.5, 10.1, 7.3, 5.8, 5.4, 4.7, 4.5, 4.1),
        (21.1, 14.4, 8.4, 6.2, 5.0, 4.7, 4.0, 3.8, 3.5),
        (19.4, 12.4, 6.7, 5.0, 4.3, 4.0, 3.4, 3.1, 2.8),
        (17.7, 10.4, 5.0, 3.9, 3.5, 3.4, 2.7, 2.5, 2.1),
        (16.0, 8.4, 3.4, 2.8, 2.7, 2.7, 2.0, 1.8, 1.5),
    ]),
    Sex.FEMALE: _rows(_CATEGORIES, [
        (25.8, 21.3, 14.6, 10.3, 7.8, 7.1, 6.5, 6.2, 5.8),
        (24.1, 19.6, 13.2, 9.3, 7.2, 6.5, 5.9, 5.6, 5.3),
        (22.4, 17.9, 11.9, 8.3, 6.5, 5.9, 5.4, 5.0, 4.7),
        (20.7, 16.2, 10.5, 7.3, 5.8, 5.4, 4.8, 4.5, 4.1),
        (19.0, 14.6, 9.2, 6.3, 5.2, 4.8, 4.3, 3.9, 3.6),
        (17.4, 12.9, 7.8, 5.3, 4.5, 4.3, 3.7, 3.4, 3.0),
        (15.7, 11.2, 6.5, 4.3, 3.8, 3.7, 3.1, 2.8, 2.5),
        (14.0, 9.5, 5.2, 3.2, 3.1, 3.1, 2.6, 2.2, 1.9),
        (12.3, 7.8, 3.8, 2.2, 2.5, 2.6, 2.0, 1.7, 1.3),
    ]),
}

DEFAULT_REFERENCE_WEIGHTS: Dict[Sex, float] = {Sex.MALE: 70.0, Sex.FEMALE: 58.0}

# 有绝对功率表的列
ABSOLUTE_COLUMNS = ("power_1s", "power_5s", "power_1min", "power_5min", "power_20min")

# 时长 -> 相对表列名（CP 对应 20min 列）
RELATIVE_COLUMN: Dict[DurationKey, str] = {
    DurationKey.POWER_1S: "power_1s",
    DurationKey.POWER_5S: "power_5s",
    DurationKey.POWER_30S: "power_30s",
    DurationKey.POWER_1MIN: "power_1min",
    DurationKey.POWER_3MIN: "power_3min",
    DurationKey.POWER_5MIN: "power_5min",
    DurationKey.POWER_12MIN: "power_12min",
    DurationKey.POWER_20MIN: "power_20min",
    DurationKey.CRITICAL_POWER: "power_20min",
    DurationKey.POWER_45MIN: "power_45min",
}

# 各车手类型的综合分权重（每行之和为 1）
ARCHETYPE_WEIGHTS: Dict[RiderArchetype, Dict[str, float]] = {
    RiderArchetype.SPRINTER: {"sprint": 0.4, "anaerobic": 0.3, "puncher": 0.15, "climbing": 0.05, "rouleur": 0.1},
    RiderArchetype.CLIMBER: {"sprint": 0.05, "anaerobic": 0.1, "puncher": 0.2, "climbing": 0.5, "rouleur": 0.15},
    RiderArchetype.ROULEUR: {"sprint": 0.1, "anaerobic": 0.15, "puncher": 0.2, "climbing": 0.2, "rouleur": 0.35},
    RiderArchetype.PUNCHER: {"sprint": 0.15, "anaerobic": 0.25, "puncher": 0.4, "climbing": 0.15, "rouleur": 0.05},
    RiderArchetype.ALL_ROUNDER: {"sprint": 0.2, "anaerobic": 0.2, "puncher": 0.2, "climbing": 0.2, "rouleur": 0.2},
    RiderArchetype.CLASSIC: {"sprint": 0.2, "anaerobic": 0.2, "puncher": 0.25, "climbing": 0.1, "rouleur": 0.25},
    RiderArchetype.BREAKAWAY: {"sprint": 0.1, "anaerobic": 0.15, "puncher": 0.25, "climbing": 0.2, "rouleur": 0.3},
    RiderArchetype.OTHER: {"sprint": 0.2, "anaerobic": 0.2, "puncher": 0.2, "climbing": 0.2, "rouleur": 0.2},
}


def build_absolute_table(relative: Table, weight_kg: float, column: str) -> Table:
    """由相对表推导某列的绝对功率表（瓦特，四舍五入取整）。"""
    return [
        {"category": row["category"], column: int(math.floor(float(row[column]) * weight_kg + 0.5))}
        for row in relative
    ]


@dataclass(frozen=True)
class ReferenceTables:
    """两类参考表（相对 / 绝对）× 两种性别"""
    relative: Mapping[Sex, Table]
    absolute: Mapping[Sex, Mapping[str, Table]]

    def relative_for(self, sex: Sex) -> Table:
        return self.relative[sex]

    def absolute_for(self, sex: Sex, column: str) -> Table:
        return self.absolute[sex][column]


def build_reference_tables(
    relative: Optional[Mapping[Sex, Table]] = None,
    reference_weights: Optional[Mapping[Sex, float]] = None,
) -> ReferenceTables:
    relative = dict(relative or DEFAULT_RELATIVE_TABLES)
    weights = dict(reference_weights or DEFAULT_REFERENCE_WEIGHTS)
    absolute = {
        sex: {col: build_absolute_table(relative[sex], weights[sex], col) for col in ABSOLUTE_COLUMNS}
        for sex in relative
    }
    return ReferenceTables(relative=relative, absolute=absolute)


def _validate_table(table: Any) -> Table:
    if not isinstance(table, list) or len(table) < 2:
        raise ValueError("table must list at least two category rows")
    for row in table:
        missing = [c for c in _WKG_COLUMNS if c not in row]
        if missing:
            raise ValueError(f"row {row.get('category')!r} missing columns {missing}")
    return [dict(row) for row in table]


def load_reference_tables(path: Optional[str] = None) -> ReferenceTables:
    """读取参考表。

    参数：
        path: JSON 覆盖文件路径；为空时直接使用内置表

    返回：
        ReferenceTables；文件不存在或解析失败时回退内置表
    """
    if not path:
        return build_reference_tables()
    fp = Path(path)
    if not fp.exists():
        logger.warning("[reference-tables][not-found] path=%s, using built-in tables", fp)
        return build_reference_tables()
    try:
        with fp.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
        relative = {Sex(k): _validate_table(v) for k, v in (payload.get("relative") or {}).items()}
        weights = {Sex(k): float(v) for k, v in (payload.get("reference_weights") or {}).items()}
        merged_relative = {**DEFAULT_RELATIVE_TABLES, **relative}
        merged_weights = {**DEFAULT_REFERENCE_WEIGHTS, **weights}
        logger.info("[reference-tables][loaded] path=%s sexes=%s", fp, sorted(s.value for s in relative))
        return build_reference_tables(merged_relative, merged_weights)
    except (json.JSONDecodeError, OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning("[reference-tables][invalid] path=%s err=%s, using built-in tables", fp, e)
        return build_reference_tables()


_default_tables: Optional[ReferenceTables] = None


def get_reference_tables() -> ReferenceTables:
    """按配置加载一次参考表并缓存（配置只读，缓存对象不可变）。"""
    global _default_tables
    if _default_tables is None:
        _default_tables = load_reference_tables(REFERENCE_TABLES_PATH)
    return _default_tables
