"""스케줄 구조 서비스 — 타임 블록, 포지션, 직원 배정 변경.

Schedule Structure Service — Time block, position and assignment mutations.
Every mutation follows the same sequence: locate the schedule, reject it
when published (and not a template), locate the day by index and the
shift/time block by id, apply the change, persist the whole document.

Shifts of fixed days are addressed by their labor period name
(case-insensitive); time blocks by their id.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.schedule import Schedule
from app.repositories.user_repository import user_repository
from app.schemas.schedule import (
    AssignEmployeeRequest,
    BlockResponse,
    FixedPeriodsDay,
    FlexibleBlocksDay,
    KnownEmployee,
    NamedEmployee,
    Position,
    PositionCreate,
    PositionStatus,
    PositionUpdate,
    Shift,
    TimeBlock,
    TimeBlockCreate,
    TimeBlockUpdate,
)
from app.services.schedule_service import schedule_service
from app.utils.exceptions import NotFoundError, ValidationError

Day = FixedPeriodsDay | FlexibleBlocksDay


def employee_from_temp_id(reference: str) -> NamedEmployee:
    """임시 직원 ID를 표시 이름으로 변환합니다.

    Turn a roster UI temporary id ("temp-megan-silvernail") into the
    display name "Megan Silvernail".
    """
    parts: list[str] = [p for p in reference[len("temp-"):].split("-") if p]
    if not parts:
        raise ValidationError(f"Invalid temporary employee id '{reference}'", field="employee")
    return NamedEmployee(name=" ".join(part.capitalize() for part in parts))


class ScheduleStructureService:
    """스케줄 구조 서비스.

    Add/update/delete time blocks and positions, assign and unassign
    employees, and the matching read helpers.
    """

    # === 위치 찾기 (Locating) ===

    @staticmethod
    def get_day(days: list[Day], day_index: int) -> Day:
        if not 0 <= day_index < len(days):
            raise NotFoundError(f"요일을 찾을 수 없습니다 (Day index {day_index} not found)")
        return days[day_index]

    @staticmethod
    def get_block(day: Day, block_id: str) -> Shift | TimeBlock:
        block: Shift | TimeBlock | None = day.find_block(block_id)
        if block is None:
            raise NotFoundError(f"시간대를 찾을 수 없습니다 (Shift or time block '{block_id}' not found on {day.date})")
        return block

    @staticmethod
    def get_position(block: Shift | TimeBlock, position_id: str) -> Position:
        for position in block.positions:
            if position.id == position_id:
                return position
        raise NotFoundError(f"포지션을 찾을 수 없습니다 (Position '{position_id}' not found in '{block.block_id}')")

    @staticmethod
    def flexible_day(day: Day) -> FlexibleBlocksDay:
        if not isinstance(day, FlexibleBlocksDay):
            raise ValidationError(
                f"Day {day.date} uses fixed labor periods; convert the schedule to time blocks first",
                field="day_index",
            )
        return day

    async def _load(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        expected_version: int | None,
    ) -> tuple[Schedule, list[Day]]:
        schedule: Schedule = await schedule_service.get_schedule(db, store_id, schedule_id)
        schedule_service.ensure_writable(schedule, expected_version)
        return schedule, schedule_service.load_document(schedule)

    # === 조회 (Reads) ===

    async def list_blocks(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
    ) -> list[BlockResponse]:
        """하루의 시간대/타임 블록 목록 (Shifts or time blocks of one day)."""
        schedule: Schedule = await schedule_service.get_schedule(db, store_id, schedule_id)
        days: list[Day] = schedule_service.load_document(schedule)
        day: Day = self.get_day(days, day_index)
        rendered = (await schedule_service.build_response(db, schedule)).days[day_index]
        key: str = "shifts" if isinstance(day, FixedPeriodsDay) else "time_blocks"
        return [
            BlockResponse(
                id=block.block_id,
                period=block.type.value if isinstance(block, Shift) else None,
                start_time=block.start_time,
                end_time=block.end_time,
                positions=block_dict["positions"],
            )
            for block, block_dict in zip(day.blocks(), rendered[key])
        ]

    async def list_positions(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        block_id: str,
    ) -> list[dict]:
        """한 블록의 포지션 목록 (Positions of one shift or time block)."""
        blocks: list[BlockResponse] = await self.list_blocks(db, store_id, schedule_id, day_index)
        for block in blocks:
            if block.id == block_id or (block.period is not None and block.period.lower() == block_id.strip().lower()):
                return block.positions
        raise NotFoundError(f"시간대를 찾을 수 없습니다 (Shift or time block '{block_id}' not found)")

    # === 타임 블록 (Time blocks) ===

    async def add_time_block(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        data: TimeBlockCreate,
    ) -> tuple[Schedule, TimeBlock]:
        """유연 레이아웃 하루에 타임 블록을 추가합니다.

        Append a time block (with optional initial positions) to a flexible day.

        Raises:
            NotFoundError: 스케줄 또는 요일 없음 (Schedule or day not found)
            LockedScheduleError: 게시된 스케줄 (Published schedule)
            ValidationError: 고정 레이아웃 하루 또는 잘못된 시간 (Fixed day or bad times)
        """
        schedule, days = await self._load(db, store_id, schedule_id, data.expected_version)
        day: FlexibleBlocksDay = self.flexible_day(self.get_day(days, day_index))

        if data.start_time == data.end_time:
            raise ValidationError("start_time and end_time must differ", field="end_time")
        block: TimeBlock = TimeBlock(
            start_time=data.start_time,
            end_time=data.end_time,
            positions=[
                Position(name=p.name, department=p.department, status=p.status)
                for p in data.positions
            ],
        )
        day.time_blocks.append(block)

        await schedule_service.save_document(db, schedule, days)
        return schedule, block

    async def update_time_block(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        block_id: str,
        data: TimeBlockUpdate,
    ) -> tuple[Schedule, TimeBlock]:
        """타임 블록의 시작/종료 시각을 수정합니다 (Change a time block's window)."""
        schedule, days = await self._load(db, store_id, schedule_id, data.expected_version)
        day: FlexibleBlocksDay = self.flexible_day(self.get_day(days, day_index))
        block: TimeBlock = self.get_block(day, block_id)

        start_time: str = data.start_time or block.start_time
        end_time: str = data.end_time or block.end_time
        if start_time == end_time:
            raise ValidationError("start_time and end_time must differ", field="end_time")
        block.start_time = start_time
        block.end_time = end_time

        await schedule_service.save_document(db, schedule, days)
        return schedule, block

    async def delete_time_block(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        block_id: str,
        expected_version: int | None = None,
    ) -> tuple[Schedule, int, int]:
        """타임 블록을 삭제하고 전후 개수를 반환합니다.

        Delete a time block. An unknown block id is a no-op reported as
        equal before/after counts.

        Returns:
            tuple[Schedule, int, int]: (스케줄, 삭제 전 개수, 삭제 후 개수)
                                       (Schedule, count before, count after)
        """
        schedule, days = await self._load(db, store_id, schedule_id, expected_version)
        day: FlexibleBlocksDay = self.flexible_day(self.get_day(days, day_index))

        before: int = len(day.time_blocks)
        day.time_blocks = [block for block in day.time_blocks if block.id != block_id]
        after: int = len(day.time_blocks)

        if after != before:
            await schedule_service.save_document(db, schedule, days)
        return schedule, before, after

    # === 포지션 (Positions) ===

    async def add_position(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        block_id: str,
        data: PositionCreate,
    ) -> tuple[Schedule, Position]:
        """시간대/타임 블록에 포지션을 추가합니다.

        Append an unassigned (or open) position to a shift or time block.

        Raises:
            NotFoundError: 스케줄, 요일 또는 블록 없음 (Schedule, day or block not found)
            LockedScheduleError: 게시된 스케줄 (Published schedule)
        """
        schedule, days = await self._load(db, store_id, schedule_id, data.expected_version)
        block: Shift | TimeBlock = self.get_block(self.get_day(days, day_index), block_id)

        position: Position = Position(name=data.name, department=data.department, status=data.status)
        block.positions.append(position)

        await schedule_service.save_document(db, schedule, days)
        return schedule, position

    async def update_position(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        block_id: str,
        position_id: str,
        data: PositionUpdate,
    ) -> tuple[Schedule, Position]:
        """포지션 이름/부서/상태를 수정합니다.

        Rename a position, change its department, or set it unassigned/open.
        Setting a status on an assigned position clears the employee.
        """
        schedule, days = await self._load(db, store_id, schedule_id, data.expected_version)
        block: Shift | TimeBlock = self.get_block(self.get_day(days, day_index), block_id)
        position: Position = self.get_position(block, position_id)

        if data.name is not None:
            position.name = data.name
        if data.department is not None:
            position.department = data.department
        if data.status is not None:
            position.unassign()
            position.status = PositionStatus(data.status)

        await schedule_service.save_document(db, schedule, days)
        return schedule, position

    async def delete_position(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        day_index: int,
        block_id: str,
        position_id: str,
        expected_version: int | None = None,
    ) -> tuple[Schedule, int, int]:
        """포지션을 삭제하고 전후 개수를 반환합니다.

        Delete a position. An unknown position id inside an existing block
        is a no-op reported as equal before/after counts.

        Returns:
            tuple[Schedule, int, int]: (스케줄, 삭제 전 개수, 삭제 후 개수)
        """
        schedule, days = await self._load(db, store_id, schedule_id, expected_version)
        block: Shift | TimeBlock = self.get_block(self.get_day(days, day_index), block_id)

        before: int = len(block.positions)
        block.positions = [position for position in block.positions if position.id != position_id]
        after: int = len(block.positions)

        if after != before:
            await schedule_service.save_document(db, schedule, days)
        return schedule, before, after

    # === 직원 배정 (Employee assignment) ===

    async def resolve_employee(
        self,
        db: AsyncSession,
        store_id: UUID,
        reference: str | None,
    ) -> KnownEmployee | NamedEmployee | None:
        """직원 참조를 배정 대상으로 해석합니다.

        Resolve an employee reference:
            None / blank     → None (unassign)
            "temp-first-last" → NamedEmployee("First Last")
            UUID              → KnownEmployee, must be an active user of the store
            anything else     → NamedEmployee(reference)

        Raises:
            NotFoundError: 매장에 없는 사용자 UUID (UUID not in the store directory)
        """
        if reference is None or not reference.strip():
            return None
        reference = reference.strip()
        if reference.startswith("temp-"):
            return employee_from_temp_id(reference)

        try:
            user_id: UUID = UUID(reference)
        except ValueError:
            return NamedEmployee(name=reference)

        if await user_repository.get_active_in_store(db, user_id, store_id) is None:
            raise NotFoundError(f"직원을 찾을 수 없습니다 (Employee {user_id} not found)")
        return KnownEmployee(user_id=user_id)

    async def assign_employee(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        data: AssignEmployeeRequest,
    ) -> tuple[Schedule, Position]:
        """포지션에 직원을 배정하거나 해제합니다.

        Assign an employee to a position, or unassign it when employee is
        null. Assigning then unassigning restores the original state.

        Raises:
            NotFoundError: 스케줄, 요일, 블록, 포지션 또는 직원 없음
                (Schedule, day, block, position or employee not found)
            LockedScheduleError: 게시된 스케줄 (Published schedule)
        """
        schedule, days = await self._load(db, store_id, schedule_id, data.expected_version)
        block: Shift | TimeBlock = self.get_block(self.get_day(days, data.day_index), data.block_id)
        position: Position = self.get_position(block, data.position_id)

        employee = await self.resolve_employee(db, store_id, data.employee)
        if employee is None:
            position.unassign()
        else:
            position.assign(employee)

        await schedule_service.save_document(db, schedule, days)
        return schedule, position


# 싱글턴 인스턴스 — Singleton instance
schedule_structure_service: ScheduleStructureService = ScheduleStructureService()
