"""
历史接口测试

覆盖 /history 下的时间段解析、顺序对比、双时间段对比与上赛季对比。
"""

import pytest


def _entry(entry_id, ts, critical_power, weight_kg=None, **fresh):
    return {
        "id": entry_id,
        "timestamp": ts,
        "profiles": {"fresh": {"critical_power": critical_power, **fresh}},
        "weight_kg": weight_kg,
    }


HISTORY = [
    _entry("e4", "2025-06-01T00:00:00Z", 290, 71),
    _entry("e1", "2024-03-01T00:00:00Z", 260, 72),
    _entry("e3", "2024-09-01T00:00:00Z", 275, 71),
    _entry("e2", "2024-06-01T00:00:00Z", 270, 72),
    _entry("e5", "2025-08-01T00:00:00Z", 300, 70),
]


class TestResolve:
    def test_resolve_by_season(self, client):
        payload = {"history": HISTORY, "filter": {"mode": "by_season", "season": 2024}}
        response = client.post("/history/resolve", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert [e["id"] for e in data["entries"]] == ["e3", "e2", "e1"]
        assert data["representative"]["id"] == "e2"

    def test_resolve_empty(self, client):
        data = client.post("/history/resolve", json={"history": []}).json()
        assert data["entries"] == []
        assert data["representative"] is None

    def test_invalid_mode_is_rejected(self, client):
        response = client.post("/history/resolve", json={"history": HISTORY, "filter": {"mode": "weekly"}})
        assert response.status_code == 422


class TestCompare:
    def test_sequential(self, client):
        payload = {"history": HISTORY, "filter": {"mode": "all", "max_count": 3}}
        data = client.post("/history/compare/sequential", json=payload).json()
        assert data["message"] == "ok"
        assert data["representative_1"]["id"] == "e3"
        assert data["representative_2"]["id"] == "e5"
        row = data["comparison"]["rows"][0]
        assert row["key"] == "critical_power"
        assert row["raw_delta_watts"] == 25

    def test_sequential_needs_two_entries(self, client):
        payload = {"history": HISTORY[:1]}
        data = client.post("/history/compare/sequential", json=payload).json()
        assert data["comparison"] is None
        assert data["message"] != "ok"

    def test_periods(self, client):
        history = [
            _entry("a", "2024-05-01T00:00:00Z", 280, 70),
            _entry("b", "2025-05-01T00:00:00Z", 300, 72),
        ]
        payload = {
            "history": history,
            "period_1": {"mode": "by_season", "season": 2024},
            "period_2": {"mode": "by_season", "season": 2025},
        }
        data = client.post("/history/compare/periods", json=payload).json()
        row = data["comparison"]["rows"][0]
        assert row["raw_delta_watts"] == 20
        assert row["relative_delta_wkg"] == pytest.approx(0.1667, abs=1e-4)
        assert row["percentage_change"] == pytest.approx(7.14, abs=0.01)

    def test_periods_with_empty_side(self, client):
        payload = {
            "history": HISTORY,
            "period_1": {"mode": "by_season", "season": 2024},
            "period_2": {"mode": "by_date_range", "start_date": "2030-01-01"},
        }
        data = client.post("/history/compare/periods", json=payload).json()
        assert data["comparison"] is None
        assert data["representative_1"]["id"] == "e2"
        assert data["representative_2"] is None

    def test_season_against_live(self, client):
        payload = {
            "history": HISTORY,
            "current_season": 2025,
            "live": {"profiles": {"fresh": {"critical_power": 324}}, "weight_kg": 72},
        }
        data = client.post("/history/compare/season", json=payload).json()
        assert data["representative_1"]["id"] == "e2"
        assert data["representative_2"]["id"] == "live"
        row = data["comparison"]["rows"][0]
        # 270W@72kg -> 324W@72kg = +20%
        assert row["variation"] == "strong_increase"

    def test_season_without_previous_data(self, client):
        payload = {
            "history": HISTORY,
            "current_season": 2020,
            "live": {"profiles": {"fresh": {"critical_power": 300}}, "weight_kg": 70},
        }
        data = client.post("/history/compare/season", json=payload).json()
        assert data["comparison"] is None
        assert "2019" in data["message"]
