"""
Riders API routes

车手能力评分、档案合并、车队均值与快照保存接口。
所有接口都是无状态的：请求里带上完整的档案/快照，响应返回计算结果或新快照。
"""

from fastapi import APIRouter, HTTPException
import logging

from ..core.analytics.aggregation import merge_profiles_best_of, roster_power_averages
from ..core.analytics.profiles import FatigueState
from ..core.analytics.scoring import compute_characteristics
from ..schemas.riders import (
    CharacteristicsRequest,
    CharacteristicsResponse,
    ClearProfileRequest,
    MergeRequest,
    PowerProfilesSchema,
    RiderSnapshotSchema,
    RosterAveragesRequest,
    SnapshotSaveRequest,
    SnapshotSaveResponse,
)
from ..services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/riders", tags=["车手"])


@router.post("/characteristics", response_model=CharacteristicsResponse)
async def get_characteristics(request: CharacteristicsRequest):
    """计算车手（rider）或球探对象（scout）的能力评分"""
    subject = request.subject
    try:
        result = compute_characteristics(
            subject.scoring_profiles(), subject.weight_kg, subject.sex, subject.archetype
        )
        logger.info("[riders][characteristics] kind=%s general=%s", subject.kind, result.general_score)
        return CharacteristicsResponse(**result.to_dict())
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[riders][characteristics-failed] kind=%s", subject.kind)
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/profiles/merge", response_model=PowerProfilesSchema)
async def merge_profiles(request: MergeRequest):
    """逐时长取两份档案的较大值"""
    try:
        merged = merge_profiles_best_of(request.a.to_domain(), request.b.to_domain())
        return PowerProfilesSchema.from_domain(merged)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[riders][merge-failed]")
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/roster/averages")
async def get_roster_averages(request: RosterAveragesRequest):
    """车队 fresh 功率均值（整数瓦特）"""
    try:
        return roster_power_averages(p.to_domain() for p in request.fresh_profiles)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[riders][roster-averages-failed] size=%s", len(request.fresh_profiles))
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/snapshot/save", response_model=SnapshotSaveResponse)
async def save_snapshot(request: SnapshotSaveRequest):
    """保存快照：赛季切换、all-time 更新、历史追加，并返回重算后的能力分"""
    try:
        previous = request.previous.to_domain() if request.previous is not None else None
        result = profile_service.save_snapshot(previous, request.incoming.to_domain(), now=request.now)
        return SnapshotSaveResponse(
            snapshot=RiderSnapshotSchema.from_domain(result["snapshot"]),
            appended=result["appended"],
            season_rolled_over=result["season_rolled_over"],
            characteristics=CharacteristicsResponse(**result["characteristics"].to_dict()),
            all_time_including_current=PowerProfilesSchema.from_domain(result["all_time_including_current"]),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[riders][save-failed]")
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")


@router.post("/snapshot/clear", response_model=RiderSnapshotSchema)
async def clear_profile(request: ClearProfileRequest):
    """清空 15/30/45kJ 预疲劳档案；fresh 不可清空"""
    try:
        if request.state == FatigueState.FRESH:
            raise HTTPException(status_code=400, detail="fresh 档案不能清空")
        cleared = profile_service.clear_profile(request.snapshot.to_domain(), request.state)
        return RiderSnapshotSchema.from_domain(cleared)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("[riders][clear-failed] state=%s", request.state.value)
        raise HTTPException(status_code=500, detail=f"服务器内部错误: {str(e)}")
