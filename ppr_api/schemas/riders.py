"""
Riders模块的请求和响应模式

定义功率档案、车手快照、能力评分等接口的输入输出数据结构，
并负责与 ppr_api.core.analytics 中不可变领域对象之间的相互转换。
"""

from datetime import date, datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..core.analytics.profiles import (
    FatigueState,
    PowerProfile,
    PowerProfileAllTime,
    PowerProfileHistoryEntry,
    PowerProfiles,
    RiderArchetype,
    RiderSnapshot,
    Sex,
)


class PowerProfileSchema(BaseModel):
    """单一疲劳状态的功率记录（瓦特，缺失为 null）"""
    power_1s: Optional[float] = Field(None, description="1秒最佳功率")
    power_5s: Optional[float] = Field(None, description="5秒最佳功率")
    power_30s: Optional[float] = Field(None, description="30秒最佳功率")
    power_1min: Optional[float] = Field(None, description="1分钟最佳功率")
    power_3min: Optional[float] = Field(None, description="3分钟最佳功率")
    power_5min: Optional[float] = Field(None, description="5分钟最佳功率")
    power_12min: Optional[float] = Field(None, description="12分钟最佳功率")
    power_20min: Optional[float] = Field(None, description="20分钟最佳功率")
    critical_power: Optional[float] = Field(None, description="临界功率（CP/FTP）")
    power_45min: Optional[float] = Field(None, description="45分钟最佳功率（可选）")

    def to_domain(self) -> PowerProfile:
        return PowerProfile.from_mapping(self.model_dump())

    @classmethod
    def from_domain(cls, profile: PowerProfile) -> "PowerProfileSchema":
        return cls(**profile.to_dict())


class PowerProfilesSchema(BaseModel):
    """四种疲劳状态的功率档案"""
    fresh: PowerProfileSchema = Field(default_factory=PowerProfileSchema, description="无预疲劳")
    kj15: PowerProfileSchema = Field(default_factory=PowerProfileSchema, description="15kJ 预疲劳后")
    kj30: PowerProfileSchema = Field(default_factory=PowerProfileSchema, description="30kJ 预疲劳后")
    kj45: PowerProfileSchema = Field(default_factory=PowerProfileSchema, description="45kJ 预疲劳后")

    def to_domain(self) -> PowerProfiles:
        return PowerProfiles(
            fresh=self.fresh.to_domain(),
            kj15=self.kj15.to_domain(),
            kj30=self.kj30.to_domain(),
            kj45=self.kj45.to_domain(),
        )

    @classmethod
    def from_domain(cls, profiles: PowerProfiles) -> "PowerProfilesSchema":
        return cls(
            fresh=PowerProfileSchema.from_domain(profiles.fresh),
            kj15=PowerProfileSchema.from_domain(profiles.kj15),
            kj30=PowerProfileSchema.from_domain(profiles.kj30),
            kj45=PowerProfileSchema.from_domain(profiles.kj45),
        )


class HistoryEntrySchema(BaseModel):
    """历史快照"""
    id: str = Field(..., description="条目ID")
    timestamp: datetime = Field(..., description="记录时间（ISO 8601）")
    profiles: PowerProfilesSchema = Field(default_factory=PowerProfilesSchema)
    weight_kg: Optional[float] = Field(None, description="记录时的体重（千克）")
    notes: Optional[str] = Field(None, description="备注")

    def to_domain(self) -> PowerProfileHistoryEntry:
        return PowerProfileHistoryEntry(
            id=self.id,
            timestamp=self.timestamp,
            profiles=self.profiles.to_domain(),
            weight_kg=self.weight_kg,
            notes=self.notes,
        )

    @classmethod
    def from_domain(cls, entry: PowerProfileHistoryEntry) -> "HistoryEntrySchema":
        return cls(
            id=entry.id,
            timestamp=entry.timestamp,
            profiles=PowerProfilesSchema.from_domain(entry.profiles),
            weight_kg=entry.weight_kg,
            notes=entry.notes,
        )


class AllTimeSchema(BaseModel):
    """历史最佳档案"""
    profiles: PowerProfilesSchema = Field(default_factory=PowerProfilesSchema)
    last_updated: Optional[datetime] = Field(None, description="最近一次更新时间")

    def to_domain(self) -> PowerProfileAllTime:
        return PowerProfileAllTime(profiles=self.profiles.to_domain(), last_updated=self.last_updated)

    @classmethod
    def from_domain(cls, all_time: PowerProfileAllTime) -> "AllTimeSchema":
        return cls(
            profiles=PowerProfilesSchema.from_domain(all_time.profiles),
            last_updated=all_time.last_updated,
        )


class RiderSnapshotSchema(BaseModel):
    """车手完整快照（请求中整体传入，响应中整体返回）"""
    profiles: PowerProfilesSchema = Field(default_factory=PowerProfilesSchema)
    weight_kg: Optional[float] = Field(None, description="当前体重（千克）")
    sex: Optional[Sex] = Field(None, description="性别：male 或 female")
    archetype: Optional[RiderArchetype] = Field(None, description="车手类型")
    notes: Dict[FatigueState, str] = Field(default_factory=dict, description="各疲劳状态的备注")
    season_start: Optional[date] = Field(None, description="当前赛季开始日期")
    all_time: AllTimeSchema = Field(default_factory=AllTimeSchema)
    history: List[HistoryEntrySchema] = Field(default_factory=list, description="历史快照（最新在前）")

    def to_domain(self) -> RiderSnapshot:
        return RiderSnapshot(
            profiles=self.profiles.to_domain(),
            weight_kg=self.weight_kg,
            sex=self.sex,
            archetype=self.archetype,
            notes=tuple((s, t) for s, t in self.notes.items() if t),
            season_start=self.season_start,
            all_time=self.all_time.to_domain(),
            history=tuple(e.to_domain() for e in self.history),
        )

    @classmethod
    def from_domain(cls, snapshot: RiderSnapshot) -> "RiderSnapshotSchema":
        return cls(
            profiles=PowerProfilesSchema.from_domain(snapshot.profiles),
            weight_kg=snapshot.weight_kg,
            sex=snapshot.sex,
            archetype=snapshot.archetype,
            notes={s: t for s, t in snapshot.notes},
            season_start=snapshot.season_start,
            all_time=AllTimeSchema.from_domain(snapshot.all_time),
            history=[HistoryEntrySchema.from_domain(e) for e in snapshot.history],
        )


class RiderSubject(BaseModel):
    """在册车手：四种疲劳状态均可提供"""
    kind: Literal["rider"] = "rider"
    profiles: PowerProfilesSchema = Field(default_factory=PowerProfilesSchema)
    weight_kg: Optional[float] = None
    sex: Optional[Sex] = None
    archetype: Optional[RiderArchetype] = None

    def scoring_profiles(self) -> PowerProfiles:
        return self.profiles.to_domain()


class ScoutSubject(BaseModel):
    """球探对象：只有 fresh 档案"""
    kind: Literal["scout"] = "scout"
    fresh: PowerProfileSchema = Field(default_factory=PowerProfileSchema)
    weight_kg: Optional[float] = None
    sex: Optional[Sex] = None
    archetype: Optional[RiderArchetype] = None

    def scoring_profiles(self) -> PowerProfiles:
        return PowerProfiles(fresh=self.fresh.to_domain())


Subject = Annotated[Union[RiderSubject, ScoutSubject], Field(discriminator="kind")]


class CharacteristicsRequest(BaseModel):
    """评分对象：kind=rider 或 kind=scout"""
    subject: Subject


class CharacteristicsResponse(BaseModel):
    """能力评分（均为 0~100 的整数）"""
    sprint: int = Field(..., description="冲刺")
    anaerobic: int = Field(..., description="无氧")
    puncher: int = Field(..., description="冲坡")
    climbing: int = Field(..., description="爬坡")
    rouleur: int = Field(..., description="平路")
    general_score: int = Field(..., description="综合分（按车手类型加权）")
    fatigue_resistance_score: int = Field(..., description="疲劳抗性（50 表示未知）")


class MergeRequest(BaseModel):
    a: PowerProfilesSchema
    b: PowerProfilesSchema


class RosterAveragesRequest(BaseModel):
    fresh_profiles: List[PowerProfileSchema] = Field(default_factory=list, description="各车手的 fresh 档案")


class SnapshotSaveRequest(BaseModel):
    """保存车手快照：previous 为保存前的基线，incoming 为本次提交"""
    previous: Optional[RiderSnapshotSchema] = None
    incoming: RiderSnapshotSchema
    now: Optional[datetime] = Field(None, description="保存时间，不传则使用当前时间")


class SnapshotSaveResponse(BaseModel):
    snapshot: RiderSnapshotSchema
    appended: bool = Field(..., description="是否追加了历史条目")
    season_rolled_over: bool = Field(..., description="是否发生了赛季切换")
    characteristics: CharacteristicsResponse
    all_time_including_current: PowerProfilesSchema


class ClearProfileRequest(BaseModel):
    snapshot: RiderSnapshotSchema
    state: FatigueState
