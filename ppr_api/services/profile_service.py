"""
Profile Service（功率档案服务）

职责：
- 保存车手快照时的完整流程：赛季切换、all-time 最佳更新、历史追加与保留策略裁剪、能力分重算
- 清空某个预疲劳状态的档案
- 不做任何持久化：调用方传入完整快照，服务返回完整的新快照，由调用方负责原子提交
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional
import logging

from ..config import history_max_entries
from ..core.analytics.aggregation import all_time_including_current, fold_into_all_time
from ..core.analytics.history import (
    append_history,
    build_history_entry,
    clear_fatigue_profile,
    current_season_start,
    roll_over_season,
    should_append_history,
    trim_history,
)
from ..core.analytics.profiles import FatigueState, RiderSnapshot
from ..core.analytics.scoring import RiderCharacteristics, compute_characteristics

logger = logging.getLogger(__name__)


class ProfileService:
    """功率档案服务"""

    def characteristics(self, snapshot: RiderSnapshot) -> RiderCharacteristics:
        """按快照重算能力分"""
        return compute_characteristics(
            snapshot.profiles, snapshot.weight_kg, snapshot.sex, snapshot.archetype
        )

    def save_snapshot(
        self,
        previous: Optional[RiderSnapshot],
        incoming: RiderSnapshot,
        now: Optional[datetime] = None,
        max_entries: Optional[int] = None,
    ) -> dict:
        """保存车手快照

        Args:
            previous: 保存前的基线快照（新车手为 None），其历史与 all-time 记录视为权威
            incoming: 本次提交的快照
            now: 保存时间，不传则使用当前 UTC 时间
            max_entries: 历史保留上限，不传则读取配置 HISTORY_MAX_ENTRIES

        Returns:
            dict: 包含保存结果的字典，格式：
            {
                "snapshot": RiderSnapshot,
                "appended": bool,
                "season_rolled_over": bool,
                "characteristics": RiderCharacteristics,
                "all_time_including_current": PowerProfiles
            }
        """
        if now is None:
            now = datetime.now(timezone.utc)
        if max_entries is None:
            max_entries = history_max_entries()

        season_start = current_season_start(now)
        base = incoming
        if previous is not None:
            base = replace(
                incoming,
                history=previous.history,
                all_time=previous.all_time,
                season_start=previous.season_start,
            )

        if previous is not None:
            snapshot, rolled = roll_over_season(previous, base, now, season_start)
        else:
            snapshot, rolled = base, False
            if snapshot.season_start is None:
                snapshot = replace(snapshot, season_start=season_start)

        if snapshot.profiles.has_data():
            snapshot = replace(snapshot, all_time=fold_into_all_time(snapshot.all_time, snapshot.profiles, now))

        appended = rolled
        if not rolled:
            if should_append_history(previous, snapshot):
                entry = build_history_entry(previous, now)
                snapshot = replace(snapshot, history=append_history(snapshot.history, entry))
                appended = True
                logger.info("[profile-service][history-appended] entry_id=%s size=%s", entry.id, len(snapshot.history))

        snapshot = replace(snapshot, history=trim_history(snapshot.history, max_entries))
        characteristics = self.characteristics(snapshot)

        logger.info(
            "[profile-service][saved] appended=%s rolled=%s general=%s fatigue=%s",
            appended, rolled, characteristics.general_score, characteristics.fatigue_resistance_score,
        )
        return {
            "snapshot": snapshot,
            "appended": appended,
            "season_rolled_over": rolled,
            "characteristics": characteristics,
            "all_time_including_current": all_time_including_current(snapshot.all_time, snapshot.profiles),
        }

    def clear_profile(self, snapshot: RiderSnapshot, state: FatigueState) -> RiderSnapshot:
        """清空预疲劳档案及备注（不影响已有历史）"""
        cleared = clear_fatigue_profile(snapshot, state)
        if cleared is not snapshot:
            logger.info("[profile-service][cleared] state=%s", FatigueState(state).value)
        return cleared


# 创建单例实例
profile_service = ProfileService()
