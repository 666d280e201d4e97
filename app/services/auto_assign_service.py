"""자동 배정 서비스 — 가용 레코드를 빈 포지션에 배치.

Auto-Assignment Service — Places imported employees into open positions.
Greedy first-fit by department: records are processed in order, and for
each one the first unassigned position of the matching department (in
position array order) is taken. Employees that cannot be placed are
reported as unplaced and stay only in the uploaded roster.
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel

from app.schemas.schedule import (
    FixedPeriodsDay,
    FlexibleBlocksDay,
    NamedEmployee,
    PositionStatus,
    Shift,
    TimeBlock,
)
from app.utils.taxonomy import PERIOD_ORDER, overlaps, weekday_index

if TYPE_CHECKING:
    from app.services.spreadsheet_import_service import ShiftAvailability


class AssignmentOutcome(BaseModel):
    """자동 배정 결과 (Auto-assignment result).

    Attributes:
        assigned_count: 새로 채운 포지션 수 (Positions filled)
        unplaced: 배치하지 못한 직원 이름, 중복 제거·입력 순서 (Unplaced names, first-seen order)
    """

    assigned_count: int = 0
    unplaced: list[str] = []


class AutoAssignService:
    """자동 배정 서비스.

    Order-deterministic greedy placement over a schedule document.
    """

    @staticmethod
    def candidate_blocks(
        day: FixedPeriodsDay | FlexibleBlocksDay,
        period_index: int,
    ) -> list[Shift | TimeBlock]:
        """시간대에 해당하는 후보 블록을 순서대로 반환합니다.

        Blocks that can receive an employee for a labor period: the period's
        own shift on a fixed day; on a flexible day every block overlapping
        the period window, in array order.
        """
        if isinstance(day, FixedPeriodsDay):
            return [day.shifts[period_index]]
        period = PERIOD_ORDER[period_index]
        return [
            block
            for block in day.time_blocks
            if overlaps(block.start_time, block.end_time, period.start_time, period.end_time)
        ]

    def place(
        self,
        day: FixedPeriodsDay | FlexibleBlocksDay,
        record: "ShiftAvailability",
    ) -> str:
        """가용 레코드 하나를 배치합니다.

        Place one availability record on a day.

        Returns:
            str: "assigned" 새로 배정, "present" 이미 배정됨, "unplaced" 자리 없음
                 (Newly assigned / already present in a candidate block / no slot)
        """
        employee: NamedEmployee = NamedEmployee(name=record.employee_name)
        present: bool = False
        for block in self.candidate_blocks(day, record.period_index):
            # 같은 직원이 이미 있는 블록은 건너뜀 — skip blocks already holding the employee
            if any(position.holds(employee) for position in block.positions):
                present = True
                continue
            for position in block.positions:
                if position.department == record.department and position.status == PositionStatus.UNASSIGNED:
                    position.assign(employee)
                    return "assigned"
        return "present" if present else "unplaced"

    def assign(
        self,
        days: list[FixedPeriodsDay | FlexibleBlocksDay],
        records: list["ShiftAvailability"],
    ) -> AssignmentOutcome:
        """가용 레코드 목록을 스케줄 문서에 자동 배정합니다.

        Auto-assign availability records onto the days in place.
        A record's day_index is a weekday (Sunday = 0) and is matched
        against each day's calendar date.

        Args:
            days: 스케줄의 7일 문서 — 제자리 수정 (Schedule days, mutated in place)
            records: 가용 레코드, 처리 순서 그대로 (Availability records in processing order)

        Returns:
            AssignmentOutcome: 배정 수와 미배치 직원 (Assigned count and unplaced names)
        """
        by_weekday: dict[int, FixedPeriodsDay | FlexibleBlocksDay] = {
            weekday_index(day.date): day for day in days
        }
        outcome: AssignmentOutcome = AssignmentOutcome()

        for record in records:
            day = by_weekday.get(record.day_index)
            result: str = self.place(day, record) if day is not None else "unplaced"
            if result == "assigned":
                outcome.assigned_count += 1
            elif result == "unplaced" and record.employee_name not in outcome.unplaced:
                outcome.unplaced.append(record.employee_name)

        return outcome


# 싱글턴 인스턴스 — Singleton instance
auto_assign_service: AutoAssignService = AutoAssignService()
