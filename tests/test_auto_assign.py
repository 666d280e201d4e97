"""자동 배정 유닛 테스트.

Auto-assignment is greedy first-fit by department in array order,
skips blocks that already hold the employee, and reports unplaced names.
"""

from datetime import date

from app.schemas.schedule import (
    FixedPeriodsDay,
    FlexibleBlocksDay,
    NamedEmployee,
    Position,
    PositionStatus,
    Shift,
    TimeBlock,
)
from app.services.auto_assign_service import AutoAssignService
from app.services.spreadsheet_import_service import ShiftAvailability
from app.utils.taxonomy import PERIOD_ORDER, Department, LaborPeriod

SUNDAY = date(2025, 3, 2)
service = AutoAssignService()


def record(name: str, department: Department = Department.FRONT_COUNTER,
           period: LaborPeriod = LaborPeriod.OPENING, day_index: int = 0) -> ShiftAvailability:
    return ShiftAvailability(
        employee_name=name,
        department=department,
        day_index=day_index,
        period_index=period.index,
        start_time=period.start_time,
        end_time=period.end_time,
    )


def fixed_day(opening: list[Position]) -> FixedPeriodsDay:
    return FixedPeriodsDay(
        date=SUNDAY,
        shifts=[
            Shift(type=p, positions=opening if p is LaborPeriod.OPENING else [])
            for p in PERIOD_ORDER
        ],
    )


class TestFixedDays:
    """고정 레이아웃 배정."""

    def test_first_employee_takes_first_matching_position(self):
        day = fixed_day([
            Position(id="A", name="Register 1", department="FC"),
            Position(id="B", name="Register 2", department="FC"),
        ])
        outcome = service.assign([day], [record("Ann"), record("Bob")])

        a, b = day.shifts[0].positions
        assert a.assigned_employee == NamedEmployee(name="Ann")
        assert b.assigned_employee == NamedEmployee(name="Bob")
        assert outcome.assigned_count == 2
        assert outcome.unplaced == []

    def test_department_must_match(self):
        day = fixed_day([
            Position(id="K", name="Primary", department="KT"),
            Position(id="F", name="Register 1", department="FC"),
        ])
        service.assign([day], [record("Ann")])
        kitchen, front = day.shifts[0].positions
        assert kitchen.status == PositionStatus.UNASSIGNED
        assert front.assigned_employee == NamedEmployee(name="Ann")

    def test_open_and_assigned_positions_are_not_filled(self):
        day = fixed_day([
            Position(name="Register 1", department="FC", status="open"),
            Position(name="Register 2", department="FC", assigned_employee={"kind": "name", "name": "Zed"}),
        ])
        outcome = service.assign([day], [record("Ann")])
        assert outcome.assigned_count == 0
        assert outcome.unplaced == ["Ann"]

    def test_unplaced_names_are_deduplicated(self):
        day = fixed_day([])
        outcome = service.assign([day], [
            record("Ann"), record("Ann", period=LaborPeriod.MORNING), record("Bob"),
        ])
        assert outcome.unplaced == ["Ann", "Bob"]

    def test_employee_already_present_is_not_placed_twice(self):
        day = fixed_day([
            Position(name="Register 1", department="FC"),
            Position(name="Register 2", department="FC"),
        ])
        outcome = service.assign([day], [record("Ann"), record("Ann")])
        assert outcome.assigned_count == 1
        assert outcome.unplaced == []
        assert day.shifts[0].positions[1].status == PositionStatus.UNASSIGNED

    def test_record_for_missing_weekday_is_unplaced(self):
        day = fixed_day([Position(name="Register 1", department="FC")])
        outcome = service.assign([day], [record("Ann", day_index=3)])
        assert outcome.unplaced == ["Ann"]


class TestFlexibleDays:
    """유연 레이아웃 — 시간대와 겹치는 블록을 배열 순서대로."""

    def test_overlapping_blocks_in_order(self):
        day = FlexibleBlocksDay(date=SUNDAY, time_blocks=[
            TimeBlock(id="late", start_time="15:00", end_time="21:00",
                      positions=[Position(name="Runner", department="FC")]),
            TimeBlock(id="early", start_time="06:00", end_time="10:00",
                      positions=[Position(name="Bagger", department="FC")]),
            TimeBlock(id="early-2", start_time="07:00", end_time="12:00",
                      positions=[Position(name="Register", department="FC")]),
        ])
        outcome = service.assign([day], [record("Ann"), record("Bob")])

        assert day.find_block("late").positions[0].status == PositionStatus.UNASSIGNED
        assert day.find_block("early").positions[0].assigned_employee == NamedEmployee(name="Ann")
        assert day.find_block("early-2").positions[0].assigned_employee == NamedEmployee(name="Bob")
        assert outcome.assigned_count == 2
