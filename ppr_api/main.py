"""
功率档案（PPR）评分与时间分析 API 主应用文件。

本文件是FastAPI应用的入口点，负责：
1. 初始化日志
2. 创建FastAPI应用实例
3. 注册各个模块的路由
"""

from fastapi import FastAPI
from .logging_config import setup_logging
from .config import LOG_LEVEL

from .api.riders import router as riders_router
from .api.history import router as history_router

setup_logging(LOG_LEVEL)
app = FastAPI(title="功率档案评分与时间分析 API")

# 路由注册
app.include_router(riders_router, tags=["车手"])
app.include_router(history_router, tags=["历史"])


@app.get("/")
async def root():
    return {"status": "ok", "service": "ppr-api"}
