import json
import math

from ppr_api.core.analytics.profiles import PowerProfile, PowerProfiles, RiderArchetype, Sex
from ppr_api.core.analytics.reference_tables import (
    ABSOLUTE_COLUMNS,
    ARCHETYPE_WEIGHTS,
    DEFAULT_RELATIVE_TABLES,
    build_reference_tables,
    load_reference_tables,
)
from ppr_api.core.analytics.scoring import (
    RiderCharacteristics,
    compute_characteristics,
    round_half_up,
    score_value,
)

TWO_ROW_TABLE = [
    {"category": "world", "power_20min": 5.8},
    {"category": "cat5", "power_20min": 2.0},
]


def test_score_value_interpolates_between_thresholds():
    # 300W / 75kg = 4.0 W/kg
    assert score_value(300 / 75, TWO_ROW_TABLE, "power_20min") == 57


def test_score_value_bounds():
    assert score_value(5.8, TWO_ROW_TABLE, "power_20min") == 100
    assert score_value(9.0, TWO_ROW_TABLE, "power_20min") == 100
    assert score_value(2.0, TWO_ROW_TABLE, "power_20min") == 10
    assert score_value(0.5, TWO_ROW_TABLE, "power_20min") == 10


def test_every_builtin_table_column_hits_bounds():
    tables = build_reference_tables()
    for sex in Sex:
        relative = tables.relative_for(sex)
        columns = [c for c in relative[0] if c != "category"]
        assert len(columns) == 9
        for column in columns:
            assert score_value(relative[0][column], relative, column) == 100, (sex, column)
            assert score_value(relative[-1][column], relative, column) == 10, (sex, column)
        for column in ABSOLUTE_COLUMNS:
            absolute = tables.absolute_for(sex, column)
            assert score_value(absolute[0][column], absolute, column) == 100, (sex, column)
            assert score_value(absolute[-1][column], absolute, column) == 10, (sex, column)


def test_score_value_missing_is_zero():
    assert score_value(None, TWO_ROW_TABLE, "power_20min") == 0
    assert score_value(math.nan, TWO_ROW_TABLE, "power_20min") == 0


def test_round_half_up():
    assert round_half_up(25.5) == 26
    assert round_half_up(26.5) == 27
    assert round_half_up(25.49) == 25


def test_archetype_weights_sum_to_one():
    for weights in ARCHETYPE_WEIGHTS.values():
        assert abs(sum(weights.values()) - 1.0) < 1e-9


def test_absolute_tables_derived_from_reference_weight():
    tables = build_reference_tables()
    assert tables.absolute_for(Sex.MALE, "power_20min")[0]["power_20min"] == 504
    assert tables.absolute_for(Sex.MALE, "power_20min")[-1]["power_20min"] == 126
    # 21.3 W/kg * 58kg = 1235.4
    assert tables.absolute_for(Sex.FEMALE, "power_5s")[0]["power_5s"] == 1235


def test_compute_characteristics_without_fresh_data_is_all_zero():
    result = compute_characteristics(PowerProfiles(), 70, Sex.MALE)
    assert result == RiderCharacteristics()
    assert result.fatigue_resistance_score == 0


def test_compute_characteristics_without_weight_is_all_zero(fresh_profile):
    profiles = PowerProfiles(fresh=fresh_profile)
    assert compute_characteristics(profiles, None, Sex.MALE) == RiderCharacteristics()
    assert compute_characteristics(profiles, 0, Sex.MALE) == RiderCharacteristics()


def test_world_class_rider_scores_100():
    fresh = PowerProfile(
        power_1s=3000, power_5s=2500, power_30s=1500, power_1min=1000, power_3min=800,
        power_5min=700, power_12min=600, power_20min=600, critical_power=600,
    )
    result = compute_characteristics(PowerProfiles(fresh=fresh), 70, Sex.MALE, RiderArchetype.CLIMBER)
    assert result.sprint == 100
    assert result.anaerobic == 100
    assert result.puncher == 100
    assert result.climbing == 100
    assert result.rouleur == 100
    assert result.general_score == 100
    # 没有预疲劳数据
    assert result.fatigue_resistance_score == 50


def test_weak_but_measured_rider_scores_10():
    fresh = PowerProfile(**{k: 1 for k in (
        "power_1s", "power_5s", "power_30s", "power_1min", "power_3min",
        "power_5min", "power_12min", "power_20min", "critical_power",
    )})
    result = compute_characteristics(PowerProfiles(fresh=fresh), 70, Sex.MALE)
    assert result.sprint == 10
    assert result.climbing == 10
    assert result.rouleur == 10
    assert result.general_score == 10


def test_single_duration_blend():
    # 300W @ 70kg, 只有 20min
    fresh = PowerProfile(power_20min=300)
    result = compute_characteristics(PowerProfiles(fresh=fresh), 70, Sex.MALE)
    assert result.sprint == 0
    assert result.anaerobic == 0
    assert result.puncher == 0
    assert result.climbing == 26
    assert result.rouleur == 22
    assert result.general_score == 9


def test_general_score_depends_on_archetype():
    fresh = PowerProfile(power_1s=3000, power_5s=2500, power_30s=1500)
    profiles = PowerProfiles(fresh=fresh)
    sprinter = compute_characteristics(profiles, 70, Sex.MALE, RiderArchetype.SPRINTER)
    climber = compute_characteristics(profiles, 70, Sex.MALE, RiderArchetype.CLIMBER)
    other = compute_characteristics(profiles, 70, Sex.MALE)
    assert sprinter.sprint == 100
    assert sprinter.anaerobic == 50
    assert sprinter.general_score == 55
    assert climber.general_score == 10
    assert other.general_score == 30


def test_default_sex_is_female(fresh_profile):
    profiles = PowerProfiles(fresh=fresh_profile)
    assert compute_characteristics(profiles, 60) == compute_characteristics(profiles, 60, Sex.FEMALE)


def test_only_fresh_profile_is_scored(fresh_profile, fatigued_profile):
    base = compute_characteristics(PowerProfiles(fresh=fresh_profile), 70, Sex.MALE)
    with_fatigue = compute_characteristics(
        PowerProfiles(fresh=fresh_profile, kj15=fatigued_profile), 70, Sex.MALE
    )
    assert base.sprint == with_fatigue.sprint
    assert base.climbing == with_fatigue.climbing
    assert base.general_score == with_fatigue.general_score


def test_load_reference_tables_override(tmp_path):
    columns = DEFAULT_RELATIVE_TABLES[Sex.MALE][0].keys() - {"category"}
    payload = {
        "relative": {
            "male": [
                {"category": "top", **{c: 10.0 for c in columns}},
                {"category": "bottom", **{c: 1.0 for c in columns}},
            ]
        },
        "reference_weights": {"male": 80},
    }
    path = tmp_path / "tables.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    tables = load_reference_tables(str(path))
    assert len(tables.relative_for(Sex.MALE)) == 2
    assert tables.absolute_for(Sex.MALE, "power_20min")[0]["power_20min"] == 800
    # 未覆盖的性别沿用内置表
    assert tables.relative_for(Sex.FEMALE) == DEFAULT_RELATIVE_TABLES[Sex.FEMALE]


def test_load_reference_tables_falls_back(tmp_path):
    default = build_reference_tables()
    assert load_reference_tables(str(tmp_path / "missing.json")) == default

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert load_reference_tables(str(bad)) == default

    incomplete = tmp_path / "incomplete.json"
    incomplete.write_text(json.dumps({"relative": {"male": [{"category": "x"}]}}), encoding="utf-8")
    assert load_reference_tables(str(incomplete)) == default
