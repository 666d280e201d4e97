"""시간대·부서·요일 분류 및 시간 변환 유닛 테스트.

Unit tests for labor periods, department parsing, weekday helpers,
12-hour time conversion and period overlap.
"""

from datetime import date

import pytest

from app.utils.taxonomy import (
    Department,
    LaborPeriod,
    PERIOD_ORDER,
    convert_to_24_hour,
    determine_periods,
    overlap_minutes,
    overlaps,
    parse_weekday,
    week_start_for,
    weekday_index,
)


class TestConvertTo24Hour:
    """12시간 표기 변환."""

    @pytest.mark.parametrize("raw, expected", [
        ("5:00a", "05:00"),
        ("12:00a", "00:00"),
        ("12:00p", "12:00"),
        ("2:30p", "14:30"),
        ("11:59p", "23:59"),
    ])
    def test_known_values(self, raw, expected):
        assert convert_to_24_hour(raw) == expected

    def test_tolerates_am_pm_suffix_and_spaces(self):
        assert convert_to_24_hour(" 6:15 PM ") == "18:15"
        assert convert_to_24_hour("7:05am") == "07:05"

    @pytest.mark.parametrize("raw", ["abc", "", "13:00p", "0:30a", "5:75a", "17:00"])
    def test_unrecognised_returns_none(self, raw):
        assert convert_to_24_hour(raw) is None


class TestOverlap:
    """시간대 겹침 판정."""

    def test_five_to_nine_hits_opening_and_morning_only(self):
        assert determine_periods("05:00", "09:00") == [0, 1]

    def test_touching_boundaries_do_not_overlap(self):
        assert not overlaps("08:00", "11:00", "05:00", "08:00")
        assert determine_periods("11:00", "14:00") == [LaborPeriod.LUNCH.index]

    def test_overnight_shift_runs_past_midnight(self):
        assert determine_periods("22:00", "02:00") == [LaborPeriod.CLOSING.index]

    def test_full_day_hits_every_period(self):
        assert determine_periods("05:00", "23:00") == list(range(len(PERIOD_ORDER)))

    def test_overlap_minutes(self):
        assert overlap_minutes("07:00", "09:30", "08:00", "11:00") == 90
        assert overlap_minutes("01:00", "04:00", "05:00", "08:00") == 0


class TestLaborPeriod:
    """고정 시간대."""

    def test_order_and_bounds(self):
        assert [p.value for p in PERIOD_ORDER] == [
            "Opening", "Morning", "Lunch", "Afternoon", "Dinner", "Closing",
        ]
        assert LaborPeriod.DINNER.start_time == "17:00"
        assert LaborPeriod.DINNER.end_time == "20:00"

    def test_parse_is_case_insensitive(self):
        assert LaborPeriod.parse(" lunch ") is LaborPeriod.LUNCH

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            LaborPeriod.parse("Brunch")


class TestDepartment:
    """부서 레거시 표기."""

    @pytest.mark.parametrize("raw, expected", [
        ("FC", Department.FRONT_COUNTER),
        ("Front Counter", Department.FRONT_COUNTER),
        ("FOH", Department.FRONT_COUNTER),
        ("Drive-Thru", Department.DRIVE_THRU),
        ("drive thru", Department.DRIVE_THRU),
        ("kt", Department.KITCHEN),
        ("Kitchen", Department.KITCHEN),
        ("BOH", Department.KITCHEN),
    ])
    def test_legacy_labels(self, raw, expected):
        assert Department.parse(raw) is expected

    def test_unknown_department(self):
        with pytest.raises(ValueError):
            Department.parse("Lobby")


class TestWeekdays:
    """요일 인덱스 (0=일요일)."""

    def test_sunday_is_zero(self):
        assert weekday_index(date(2025, 3, 2)) == 0
        assert weekday_index(date(2025, 3, 8)) == 6

    def test_week_start_for(self):
        assert week_start_for(date(2025, 3, 5)) == date(2025, 3, 2)
        assert week_start_for(date(2025, 3, 5), sunday_start=False) == date(2025, 3, 3)

    @pytest.mark.parametrize("label, expected", [
        ("Sunday", 0), ("mon", 1), ("TUE", 2), ("Wednes", 3), ("saturday", 6),
    ])
    def test_parse_weekday(self, label, expected):
        assert parse_weekday(label) == expected

    @pytest.mark.parametrize("label", ["", "Mo", "Someday"])
    def test_parse_weekday_rejects(self, label):
        assert parse_weekday(label) is None
