"""
History模块的请求和响应模式

定义历史时间段解析与对比接口的输入输出数据结构。
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..core.analytics.comparison import PeriodComparison, Variation
from ..core.analytics.history import PeriodFilter, PeriodMode
from ..core.analytics.profiles import DurationKey, FatigueState
from .riders import HistoryEntrySchema, PowerProfilesSchema


class PeriodFilterSchema(BaseModel):
    """时间段过滤条件"""
    mode: PeriodMode = Field(PeriodMode.ALL, description="all / by_season / by_date_range")
    season: Optional[int] = Field(None, description="赛季（自然年），mode=by_season 时使用")
    start_date: Optional[date] = Field(None, description="开始日期（含），mode=by_date_range 时使用")
    end_date: Optional[date] = Field(None, description="结束日期（含），mode=by_date_range 时使用")
    max_count: Optional[int] = Field(None, ge=0, description="最多返回最新的若干条")

    def to_domain(self) -> PeriodFilter:
        return PeriodFilter(
            mode=self.mode,
            season=self.season,
            start_date=self.start_date,
            end_date=self.end_date,
            max_count=self.max_count,
        )


class ResolveRequest(BaseModel):
    history: List[HistoryEntrySchema] = Field(default_factory=list)
    filter: PeriodFilterSchema = Field(default_factory=PeriodFilterSchema)


class ResolveResponse(BaseModel):
    entries: List[HistoryEntrySchema] = Field(..., description="匹配的条目（最新在前）")
    representative: Optional[HistoryEntrySchema] = Field(None, description="代表性条目（时间中位）")


class SequentialCompareRequest(BaseModel):
    history: List[HistoryEntrySchema] = Field(default_factory=list)
    filter: PeriodFilterSchema = Field(default_factory=PeriodFilterSchema)
    fallback_weight: Optional[float] = Field(None, description="条目缺少体重时使用的当前体重")
    state: FatigueState = FatigueState.FRESH


class PeriodsCompareRequest(BaseModel):
    history: List[HistoryEntrySchema] = Field(default_factory=list)
    period_1: PeriodFilterSchema
    period_2: PeriodFilterSchema
    fallback_weight: Optional[float] = None
    state: FatigueState = FatigueState.FRESH


class LiveValuesSchema(BaseModel):
    """车手当前实时数据"""
    profiles: PowerProfilesSchema = Field(default_factory=PowerProfilesSchema)
    weight_kg: Optional[float] = None


class SeasonCompareRequest(BaseModel):
    """上赛季对比：默认与实时数据对比；提供 custom_entry 时改为与自定义条目对比"""
    history: List[HistoryEntrySchema] = Field(default_factory=list)
    current_season: Optional[int] = Field(None, description="当前赛季（自然年），不传则取 now 的年份")
    live: Optional[LiveValuesSchema] = None
    custom_entry: Optional[HistoryEntrySchema] = None
    fallback_weight: Optional[float] = None
    state: FatigueState = FatigueState.FRESH
    now: Optional[datetime] = None


class DurationComparisonSchema(BaseModel):
    key: DurationKey
    watts_1: float = Field(..., description="时间段1功率（W）")
    watts_2: float = Field(..., description="时间段2功率（W）")
    raw_delta_watts: float = Field(..., description="功率差（W）")
    wkg_1: Optional[float] = None
    wkg_2: Optional[float] = None
    relative_delta_wkg: Optional[float] = Field(None, description="W/kg 差")
    percentage_change: Optional[float] = Field(None, description="功率变化百分比，基准为 0 时为 null")
    wkg_percentage_change: Optional[float] = Field(None, description="W/kg 变化百分比")
    variation: Optional[Variation] = Field(None, description="变化分档（仅上赛季对比）")


class PeriodComparisonSchema(BaseModel):
    state: FatigueState
    entry_1: HistoryEntrySchema
    entry_2: HistoryEntrySchema
    rows: List[DurationComparisonSchema]

    @classmethod
    def from_domain(cls, comparison: PeriodComparison) -> "PeriodComparisonSchema":
        return cls(
            state=comparison.state,
            entry_1=HistoryEntrySchema.from_domain(comparison.entry_1),
            entry_2=HistoryEntrySchema.from_domain(comparison.entry_2),
            rows=[
                DurationComparisonSchema(
                    key=r.key,
                    watts_1=r.watts_1,
                    watts_2=r.watts_2,
                    raw_delta_watts=r.raw_delta_watts,
                    wkg_1=r.wkg_1,
                    wkg_2=r.wkg_2,
                    relative_delta_wkg=r.relative_delta_wkg,
                    percentage_change=r.percentage_change,
                    wkg_percentage_change=r.wkg_percentage_change,
                    variation=r.variation,
                )
                for r in comparison.rows
            ],
        )


class CompareResponse(BaseModel):
    """对比结果；无法对比时 comparison 为 null，message 说明原因"""
    comparison: Optional[PeriodComparisonSchema] = None
    representative_1: Optional[HistoryEntrySchema] = None
    representative_2: Optional[HistoryEntrySchema] = None
    message: str = "ok"
