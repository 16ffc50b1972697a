"""
History API routes

历史快照的时间段解析与对比接口：
- /history/resolve：按过滤条件取条目及代表性条目
- /history/compare/sequential：时间段内最早 vs 最新
- /history/compare/periods：两个时间段的代表性条目对比
- /history/compare/season：上赛季 vs 实时数据（或自定义条目），带变化分档
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
import logging

from ..core.analytics.comparison import compare_periods, compare_season_n_minus_1, compare_sequential
from ..core.analytics.history import representative_entry, resolve_period
from ..core.analytics.profiles import RiderSnapshot
from ..schemas.history import (
    CompareResponse,
    PeriodComparisonSchema,
    PeriodsCompareRequest,
    ResolveRequest,
    ResolveResponse,
    SeasonCompareRequest,
    SequentialCompareRequest,
)
from ..schemas.riders import HistoryEntrySchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["历史"])


def _entry_or_none(entry):
    return HistoryEntrySchema.from_domain(entry) if entry is not None else None


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_history(request: ResolveRequest):
    try:
        history = [e.to_domain() for e in request.history]
        entries = resolve_period(history, request.filter.to_domain())
        return ResolveResponse(
            entries=[HistoryEntrySchema.from_domain(e) for e in entries],
            representative=_entry_or_none(representative_entry(entries)),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[history][resolve-failed] mode=%s", request.filter.mode.value)
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/compare/sequential", response_model=CompareResponse)
async def compare_history_sequential(request: SequentialCompareRequest):
    try:
        entries = resolve_period([e.to_domain() for e in request.history], request.filter.to_domain())
        comparison = compare_sequential(entries, request.fallback_weight, request.state)
        if comparison is None:
            return CompareResponse(message="至少需要两条历史记录才能对比")
        return CompareResponse(
            comparison=PeriodComparisonSchema.from_domain(comparison),
            representative_1=HistoryEntrySchema.from_domain(comparison.entry_1),
            representative_2=HistoryEntrySchema.from_domain(comparison.entry_2),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[history][sequential-failed]")
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/compare/periods", response_model=CompareResponse)
async def compare_history_periods(request: PeriodsCompareRequest):
    try:
        result = compare_periods(
            [e.to_domain() for e in request.history],
            request.period_1.to_domain(),
            request.period_2.to_domain(),
            request.fallback_weight,
            request.state,
        )
        if result.comparison is None:
            message = "时间段内没有历史记录"
            comparison = None
        else:
            message = "ok"
            comparison = PeriodComparisonSchema.from_domain(result.comparison)
        return CompareResponse(
            comparison=comparison,
            representative_1=_entry_or_none(result.representative_1),
            representative_2=_entry_or_none(result.representative_2),
            message=message,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[history][periods-failed]")
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/compare/season", response_model=CompareResponse)
async def compare_history_season(request: SeasonCompareRequest):
    """上赛季（N-1）对比"""
    try:
        now = request.now or datetime.now(timezone.utc)
        current_season = request.current_season if request.current_season is not None else now.year
        live = None
        if request.live is not None:
            live = RiderSnapshot(profiles=request.live.profiles.to_domain(), weight_kg=request.live.weight_kg)
        custom = request.custom_entry.to_domain() if request.custom_entry is not None else None

        result = compare_season_n_minus_1(
            [e.to_domain() for e in request.history],
            current_season,
            now,
            live=live,
            custom_entry=custom,
            fallback_weight=request.fallback_weight,
            state=request.state,
        )
        if result.comparison is None:
            if result.representative_1 is None:
                message = f"{current_season - 1} 赛季没有历史记录"
            else:
                message = "没有可对比的实时数据或自定义条目"
            logger.info("[history][season-skip] season=%s reason=%s", current_season - 1, message)
            return CompareResponse(
                representative_1=_entry_or_none(result.representative_1),
                representative_2=_entry_or_none(result.representative_2),
                message=message,
            )
        return CompareResponse(
            comparison=PeriodComparisonSchema.from_domain(result.comparison),
            representative_1=_entry_or_none(result.representative_1),
            representative_2=_entry_or_none(result.representative_2),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[history][season-failed]")
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")
