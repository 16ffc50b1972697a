"""
pytest配置文件，定义测试环境和共享的测试夹具（fixtures）。

主要功能：
1. 提供FastAPI测试客户端
2. 提供功率档案、车手快照、历史条目等测试数据样本

pytest自动发现机制：
- pytest会自动查找所有名为conftest.py的文件
- 自动加载其中定义的fixture（夹具）
- 测试用例中参数名与fixture名一致时自动注入
"""

from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from ppr_api.main import app
from ppr_api.core.analytics.profiles import (
    PowerProfile,
    PowerProfileHistoryEntry,
    PowerProfiles,
    RiderSnapshot,
    Sex,
)


@pytest.fixture
def client():
    """提供FastAPI测试客户端"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fresh_profile():
    """一名业余车手的 fresh 档案（瓦特）"""
    return PowerProfile(
        power_1s=1100, power_5s=950, power_30s=600, power_1min=450, power_3min=360,
        power_5min=320, power_12min=290, power_20min=275, critical_power=265,
    )


@pytest.fixture
def fatigued_profile():
    """45kJ 预疲劳后的档案"""
    return PowerProfile(power_5s=900, power_1min=420, power_5min=300, critical_power=250)


@pytest.fixture
def sample_snapshot(fresh_profile):
    """提供测试用的车手快照"""
    return RiderSnapshot(
        profiles=PowerProfiles(fresh=fresh_profile),
        weight_kg=70.0,
        sex=Sex.MALE,
        season_start=date(2024, 11, 1),
    )


def make_entry(entry_id, ts, critical_power=None, weight_kg=None, **fresh):
    profile = PowerProfile(critical_power=critical_power, **fresh)
    return PowerProfileHistoryEntry(
        id=entry_id,
        timestamp=ts,
        profiles=PowerProfiles(fresh=profile),
        weight_kg=weight_kg,
    )


@pytest.fixture
def entry_factory():
    """构造历史条目的工厂函数"""
    return make_entry


@pytest.fixture
def sample_history():
    """跨两个赛季的历史条目（故意乱序存放）"""
    return (
        make_entry("e4", datetime(2025, 6, 1, tzinfo=timezone.utc), critical_power=290, weight_kg=71),
        make_entry("e1", datetime(2024, 3, 1, tzinfo=timezone.utc), critical_power=260, weight_kg=72),
        make_entry("e3", datetime(2024, 9, 1, tzinfo=timezone.utc), critical_power=275, weight_kg=71),
        make_entry("e2", datetime(2024, 6, 1, tzinfo=timezone.utc), critical_power=270, weight_kg=72),
        make_entry("e5", datetime(2025, 8, 1, tzinfo=timezone.utc), critical_power=300, weight_kg=70),
    )
