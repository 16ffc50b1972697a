"""
应用配置中心（Configuration Center）

说明：
- 本模块统一管理服务端的运行配置（日志、参考表、历史保留策略、赛季规则）
- 配置优先从环境变量中读取；未设置时使用安全默认值
- 评分引擎本身不做 I/O，这里的配置只在启动或首次使用时读取一次

常用环境变量（全部可选）：
1) 日志
   - `LOG_LEVEL`：日志等级，默认 INFO（可选 DEBUG/INFO/WARN/ERROR 等）

2) 参考表
   - `REFERENCE_TABLES_PATH`：覆盖内置 W/kg 参考表的 JSON 文件路径，默认不覆盖。
     文件格式见 ppr_api/core/analytics/reference_tables.py

3) 历史记录
   - `HISTORY_MAX_ENTRIES`：每位车手保留的历史快照上限，默认 0（不裁剪）

4) 赛季与评分默认值
   - `SEASON_START_MONTH` / `SEASON_START_DAY`：赛季切换日，默认 11 月 1 日
   - `DEFAULT_SEX`：未提供性别时使用的参考表，默认 female
"""

import os
from datetime import date


def _int_env(name: str, default: int) -> int:
    """读取整数环境变量，非法值回退默认值。"""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# 日志（Logging）
# LOG_LEVEL 用于控制 logging 的根等级，详见 ppr_api/logging_config.py
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# 参考表（Reference tables）
REFERENCE_TABLES_PATH = os.environ.get('REFERENCE_TABLES_PATH') or None

# 历史保留策略（Retention）
HISTORY_MAX_ENTRIES = _int_env('HISTORY_MAX_ENTRIES', 0)


def season_start_setting(month: int, day: int) -> tuple:
    """校验赛季切换日，非法日期（如 11/31、2/29）回退为 11 月 1 日。"""
    try:
        # 用平年校验，保证每一年都存在该日期
        date(2001, month, day)
    except (TypeError, ValueError):
        return 11, 1
    return month, day


# 赛季切换日
SEASON_START_MONTH, SEASON_START_DAY = season_start_setting(
    _int_env('SEASON_START_MONTH', 11), _int_env('SEASON_START_DAY', 1)
)

# 评分默认值
DEFAULT_SEX = os.environ.get('DEFAULT_SEX', 'female').lower()
if DEFAULT_SEX not in ('male', 'female'):
    DEFAULT_SEX = 'female'


def history_max_entries() -> int:
    """历史保留上限；<= 0 表示不裁剪。"""
    return HISTORY_MAX_ENTRIES if HISTORY_MAX_ENTRIES > 0 else 0
