"""
日志初始化（Logging Bootstrap）

说明：
- 统一初始化根日志记录器（root logger），设置格式与日志等级；
- 等级从显式传入 `level`、环境变量 `LOG_LEVEL` 依次读取，默认 INFO；
- 评分引擎的日志都挂在 `ppr_api.*` 下，消息统一使用 `[模块][事件] key=value` 格式；
- 在 ppr_api/main.py 启动时调用一次。
"""

import logging
import os

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def resolve_level(level: str = None) -> int:
    """把字符串等级转换为 logging 常量，未知等级按 INFO 处理。"""
    name = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: str = None) -> None:
    """
    初始化全局日志配置。

    参数：
        level: 可选的日志等级（字符串）。若未提供，则读取环境变量 LOG_LEVEL（默认 INFO）。
    """
    log_level = resolve_level(level)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logging.getLogger('ppr_api').setLevel(log_level)
