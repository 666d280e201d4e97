"""스케줄 서비스 — 주간 포지션 스케줄 라이프사이클 비즈니스 로직.

Schedule Service — Lifecycle business logic for weekly position schedules.
Handles creation (seeded from default positions, from a template, or from
a given document), reads, partial updates with whole-document replacement
of days, deletion, copies, templates, status transitions
(draft → published → archived, published → draft) and the publish lock.

Every write goes through ensure_writable() and save_document(), which
bump the schedule version used by the optional stale-write check.
"""

from datetime import date, timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.default_position import DefaultPosition
from app.models.schedule import Schedule
from app.repositories.default_position_repository import default_position_repository
from app.repositories.schedule_repository import schedule_repository
from app.repositories.user_repository import user_repository
from app.schemas.schedule import (
    FixedPeriodsDay,
    FlexibleBlocksDay,
    KnownEmployee,
    NamedEmployee,
    Position,
    ScheduleCopyRequest,
    ScheduleCreate,
    ScheduleEmployeeResponse,
    ScheduleResponse,
    ScheduleStatus,
    ScheduleSummaryResponse,
    ScheduleUpdate,
    Shift,
    TimeBlock,
    dump_days,
    load_days,
    new_position_id,
)
from app.utils.activity_log import log_activity
from app.utils.exceptions import (
    LockedScheduleError,
    NotFoundError,
    PersistenceError,
    StaleScheduleError,
    ValidationError,
)
from app.utils.taxonomy import PERIOD_ORDER, WEEKDAY_NAMES, LaborPeriod, overlap_minutes, weekday_index, week_start_for

Day = FixedPeriodsDay | FlexibleBlocksDay

# 허용 상태 전이 — Allowed status transitions (from → to)
STATUS_TRANSITIONS: dict[ScheduleStatus, set[ScheduleStatus]] = {
    ScheduleStatus.DRAFT: {ScheduleStatus.DRAFT, ScheduleStatus.PUBLISHED},
    ScheduleStatus.PUBLISHED: {ScheduleStatus.PUBLISHED, ScheduleStatus.DRAFT, ScheduleStatus.ARCHIVED},
    ScheduleStatus.ARCHIVED: {ScheduleStatus.ARCHIVED},
}


def to_flexible(day: FixedPeriodsDay) -> FlexibleBlocksDay:
    """고정 레이아웃 하루를 유연 블록으로 변환합니다.

    Convert a fixed day into time blocks; each shift becomes a block with
    the period bounds, a new block id and the same positions.
    """
    return FlexibleBlocksDay(
        date=day.date,
        time_blocks=[
            TimeBlock(
                start_time=shift.start_time,
                end_time=shift.end_time,
                positions=[position.model_copy(deep=True) for position in shift.positions],
            )
            for shift in day.shifts
        ],
    )


def to_fixed(day: FlexibleBlocksDay) -> FixedPeriodsDay:
    """유연 블록 하루를 고정 시간대로 변환합니다.

    Convert a flexible day into the six labor periods. Each block lands on
    the period it overlaps the most (earlier period on ties); position
    lists are merged in block order.

    Raises:
        ValidationError: 어떤 시간대와도 겹치지 않는 블록 (Block outside every period)
    """
    buckets: dict[LaborPeriod, list[Position]] = {period: [] for period in PERIOD_ORDER}
    for block in day.time_blocks:
        best: LaborPeriod | None = None
        best_minutes: int = 0
        for period in PERIOD_ORDER:
            minutes: int = overlap_minutes(block.start_time, block.end_time, period.start_time, period.end_time)
            if minutes > best_minutes:
                best, best_minutes = period, minutes
        if best is None:
            raise ValidationError(
                f"Time block {block.id} ({block.start_time}-{block.end_time}) on {day.date} "
                "does not overlap any labor period",
                field="schema_version",
            )
        taken: set[str] = {position.id for position in buckets[best]}
        for position in block.positions:
            copied: Position = position.model_copy(deep=True)
            if copied.id in taken:
                copied.id = new_position_id()
            taken.add(copied.id)
            buckets[best].append(copied)

    return FixedPeriodsDay(
        date=day.date,
        shifts=[Shift(type=period, positions=buckets[period]) for period in PERIOD_ORDER],
    )


class ScheduleService:
    """스케줄 서비스.

    Schedule lifecycle service: CRUD, copies, templates, status transitions,
    the publish lock and response building.
    """

    # === 문서 헬퍼 (Document helpers) ===

    @staticmethod
    def is_locked(schedule: Schedule) -> bool:
        """게시된 비템플릿 스케줄 여부 (Published and not a template)."""
        return schedule.status == ScheduleStatus.PUBLISHED.value and not schedule.is_template

    def ensure_writable(self, schedule: Schedule, expected_version: int | None = None) -> None:
        """구조/배정 변경 가능 여부를 검사합니다.

        Check the optional version and the publish lock before a mutation.

        Raises:
            StaleScheduleError: 버전 불일치 (Stored version differs from expected)
            LockedScheduleError: 게시된 비템플릿 스케줄 (Published non-template schedule)
        """
        self.check_version(schedule, expected_version)
        if self.is_locked(schedule):
            raise LockedScheduleError()

    @staticmethod
    def check_version(schedule: Schedule, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != schedule.version:
            raise StaleScheduleError(expected_version, schedule.version)

    @staticmethod
    def load_document(schedule: Schedule) -> list[Day]:
        """JSON 컬럼을 타입 문서로 읽습니다 (Typed copy of the stored days)."""
        return load_days(schedule.days)

    async def _flush(self, db: AsyncSession) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to persist schedule: {type(exc).__name__}") from exc

    async def save_document(self, db: AsyncSession, schedule: Schedule, days: list[Day]) -> Schedule:
        """문서를 통째로 교체 저장하고 버전을 올립니다.

        Replace the stored days with the given document and bump the version.
        """
        schedule.days = dump_days(days)
        schedule.version = (schedule.version or 0) + 1
        await self._flush(db)
        await db.refresh(schedule)
        return schedule

    @staticmethod
    def validate_week(week_start: date, week_end: date, days: list[Day]) -> None:
        """주 범위와 7일 문서의 일관성을 검증합니다.

        The week spans exactly seven days and day i falls on week_start + i.

        Raises:
            ValidationError: 범위 또는 날짜 불일치 (Bad bounds or misplaced day)
        """
        if week_end != week_start + timedelta(days=6):
            raise ValidationError(
                f"week_end_date must be 6 days after week_start_date ({week_start + timedelta(days=6)})",
                field="week_end_date",
            )
        if len(days) != 7:
            raise ValidationError(f"A schedule holds exactly 7 days, got {len(days)}", field="days")
        for i, day in enumerate(days):
            expected: date = week_start + timedelta(days=i)
            if day.date != expected:
                raise ValidationError(f"Day {i} is dated {day.date}, expected {expected}", field="days")

    @staticmethod
    def rebase_days(days: list[Day], week_start: date) -> list[Day]:
        """날짜를 새 주로 이동합니다 (Move every day onto a new week, keeping order)."""
        for i, day in enumerate(days):
            day.date = week_start + timedelta(days=i)
        return days

    @staticmethod
    def reset_assignments(days: list[Day]) -> None:
        for day in days:
            for block in day.blocks():
                for position in block.positions:
                    if position.assigned_employee is not None:
                        position.unassign()

    async def seed_days(
        self,
        db: AsyncSession,
        store_id: UUID,
        week_start: date,
        schema_version: int = 1,
    ) -> list[Day]:
        """기본 포지션으로 7일 문서를 생성합니다.

        Synthesize seven days starting at week_start, seeding each labor
        period with the store's default positions for that weekday (empty
        when the catalog has no entry). Version 2 lays the periods out as
        time blocks.
        """
        catalog: Sequence[DefaultPosition] = await default_position_repository.get_by_store(db, store_id)
        lookup: dict[tuple[int, str], list[dict[str, Any]]] = {
            (entry.weekday, entry.period): entry.positions for entry in catalog
        }

        days: list[Day] = []
        for i in range(7):
            day_date: date = week_start + timedelta(days=i)
            weekday: int = weekday_index(day_date)
            fixed: FixedPeriodsDay = FixedPeriodsDay(
                date=day_date,
                shifts=[
                    Shift(
                        type=period,
                        positions=[
                            Position(name=seed["name"], department=seed["department"])
                            for seed in lookup.get((weekday, period.value), [])
                        ],
                    )
                    for period in PERIOD_ORDER
                ],
            )
            days.append(fixed if schema_version == 1 else to_flexible(fixed))
        return days

    # === 조회 (Reads) ===

    async def get_schedule(self, db: AsyncSession, store_id: UUID, schedule_id: UUID) -> Schedule:
        """매장 범위로 스케줄을 조회합니다.

        Retrieve a schedule of the caller's store. A schedule of another
        store is reported as not found.

        Raises:
            NotFoundError: 스케줄 없음 (Schedule not found)
        """
        schedule: Schedule | None = await schedule_repository.get_by_id(db, schedule_id, store_id)
        if schedule is None:
            raise NotFoundError(f"스케줄을 찾을 수 없습니다 (Schedule {schedule_id} not found)")
        return schedule

    async def list_schedules(
        self,
        db: AsyncSession,
        store_id: UUID,
        is_template: bool | None = None,
        status: str | None = None,
        week_of: date | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Schedule], int]:
        """필터 조건으로 스케줄 목록을 조회합니다 (Paginated, filtered list)."""
        return await schedule_repository.get_by_filters(
            db, store_id, is_template=is_template, status=status, week_of=week_of, page=page, per_page=per_page
        )

    async def list_templates(self, db: AsyncSession, store_id: UUID) -> Sequence[Schedule]:
        return await schedule_repository.get_templates(db, store_id)

    # === 생성 (Create) ===

    async def create_schedule(
        self,
        db: AsyncSession,
        store_id: UUID,
        data: ScheduleCreate,
        created_by: UUID,
    ) -> Schedule:
        """새 스케줄을 draft 상태로 생성합니다.

        Create a draft schedule. The document comes from, in order:
        the template named by template_id, the given days, or seven days
        seeded from the default positions.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            store_id: 매장 UUID (Caller's store)
            data: 스케줄 생성 데이터 (Creation data)
            created_by: 작성자 UUID (Creator's user id)

        Returns:
            Schedule: 생성된 스케줄 (Created schedule)

        Raises:
            NotFoundError: 템플릿 없음 (Template not found)
            ValidationError: 주 범위 또는 날짜 불일치 (Bad week bounds or day dates)
        """
        week_start: date = data.week_start_date or week_start_for(date.today(), settings.WEEK_STARTS_ON_SUNDAY)
        week_end: date = data.week_end_date or week_start + timedelta(days=6)
        schema_version: int = data.schema_version
        uploaded: list[dict[str, Any]] = []
        name: str | None = data.name

        if data.template_id is not None:
            template: Schedule = await self.get_schedule(db, store_id, data.template_id)
            if not template.is_template:
                raise NotFoundError(f"템플릿을 찾을 수 없습니다 (Template {data.template_id} not found)")
            days: list[Day] = self.rebase_days(self.load_document(template), week_start)
            schema_version = template.schema_version
            name = name or template.name
        elif data.days is not None:
            days = list(data.days)
        else:
            days = await self.seed_days(db, store_id, week_start, schema_version)

        self.validate_week(week_start, week_end, days)

        schedule: Schedule = await schedule_repository.create(db, {
            "store_id": store_id,
            "name": name or f"Week of {week_start.isoformat()}",
            "week_start_date": week_start,
            "week_end_date": week_end,
            "status": ScheduleStatus.DRAFT.value,
            "is_template": data.is_template,
            "schema_version": schema_version,
            "days": dump_days(days),
            "uploaded_employees": uploaded,
            "version": 1,
            "created_by": created_by,
        })
        log_activity(
            "schedule.created",
            store_id=store_id,
            schedule_id=schedule.id,
            template_id=data.template_id,
            week_start_date=week_start.isoformat(),
        )
        return schedule

    # === 수정 (Update) ===

    def _apply_status(self, schedule: Schedule, target: ScheduleStatus) -> None:
        current: ScheduleStatus = ScheduleStatus(schedule.status)
        if target not in STATUS_TRANSITIONS[current]:
            raise ValidationError(
                f"Cannot change status from {current.value} to {target.value}",
                field="status",
            )
        schedule.status = target.value

    async def update_schedule(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        data: ScheduleUpdate,
    ) -> Schedule:
        """스케줄을 부분 수정합니다.

        Apply a partial update. When `days` is given it REPLACES the stored
        document as a whole. Changing only the week bounds moves every day
        onto the new week. Document, week and template-flag changes are
        refused while the stored schedule is published (and not a template);
        name and status may always change.

        Raises:
            NotFoundError: 스케줄 없음 (Schedule not found)
            StaleScheduleError: 버전 불일치 (Stale expected_version)
            LockedScheduleError: 게시된 스케줄의 문서·템플릿 변경 (Document or template flag change while published)
            ValidationError: 잘못된 상태 전이 또는 주 범위 (Bad transition or week)
        """
        schedule: Schedule = await self.get_schedule(db, store_id, schedule_id)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True, exclude={"days", "expected_version"})
        self.check_version(schedule, data.expected_version)

        touches_document: bool = (
            data.days is not None
            or data.week_start_date is not None
            or data.week_end_date is not None
        )
        if touches_document and self.is_locked(schedule):
            raise LockedScheduleError()
        # 게시 중에는 템플릿 플래그로 잠금을 풀 수 없음 — the template flag cannot lift the publish lock
        if data.is_template is not None and data.is_template != schedule.is_template and self.is_locked(schedule):
            raise LockedScheduleError()

        if data.status is not None:
            self._apply_status(schedule, data.status)
        if data.name is not None:
            schedule.name = data.name
        if data.is_template is not None:
            schedule.is_template = data.is_template

        if touches_document:
            week_start: date = data.week_start_date or schedule.week_start_date
            week_end: date = data.week_end_date or (
                week_start + timedelta(days=6) if data.week_start_date else schedule.week_end_date
            )
            if data.days is not None:
                days: list[Day] = list(data.days)
            else:
                days = self.rebase_days(self.load_document(schedule), week_start)
            self.validate_week(week_start, week_end, days)
            schedule.week_start_date = week_start
            schedule.week_end_date = week_end
            schedule.days = dump_days(days)

        schedule.version = (schedule.version or 0) + 1
        await self._flush(db)
        await db.refresh(schedule)

        if "status" in update_data:
            log_activity("schedule.status_changed", store_id=store_id, schedule_id=schedule.id, status=schedule.status)
        return schedule

    async def change_status(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        target: ScheduleStatus,
        expected_version: int | None = None,
    ) -> Schedule:
        """상태를 전이합니다 — 게시, 게시 취소, 보관.

        Transition a schedule's status (publish, unpublish, archive).

        Raises:
            ValidationError: 허용되지 않는 전이 (Transition not allowed)
        """
        schedule: Schedule = await self.get_schedule(db, store_id, schedule_id)
        self.check_version(schedule, expected_version)
        self._apply_status(schedule, target)
        schedule.version = (schedule.version or 0) + 1
        await self._flush(db)
        await db.refresh(schedule)
        log_activity("schedule.status_changed", store_id=store_id, schedule_id=schedule.id, status=target.value)
        return schedule

    async def convert_schedule(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        schema_version: int,
        expected_version: int | None = None,
    ) -> Schedule:
        """모든 Day를 지정한 레이아웃으로 변환합니다.

        Convert every day to fixed periods (1) or flexible blocks (2),
        keeping positions and assignments.
        """
        schedule: Schedule = await self.get_schedule(db, store_id, schedule_id)
        self.ensure_writable(schedule, expected_version)

        days: list[Day] = []
        for day in self.load_document(schedule):
            if schema_version == 2 and isinstance(day, FixedPeriodsDay):
                day = to_flexible(day)
            elif schema_version == 1 and isinstance(day, FlexibleBlocksDay):
                day = to_fixed(day)
            days.append(day)

        schedule.schema_version = schema_version
        return await self.save_document(db, schedule, days)

    # === 삭제 (Delete) ===

    async def delete_schedule(self, db: AsyncSession, store_id: UUID, schedule_id: UUID) -> None:
        """스케줄을 영구 삭제합니다 (Hard delete, no soft delete).

        Raises:
            NotFoundError: 스케줄 없음 (Schedule not found)
        """
        schedule: Schedule = await self.get_schedule(db, store_id, schedule_id)
        await db.delete(schedule)
        await self._flush(db)
        log_activity("schedule.deleted", store_id=store_id, schedule_id=schedule_id)

    # === 복사 / 템플릿 (Copy / templates) ===

    async def copy_schedule(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        data: ScheduleCopyRequest,
        created_by: UUID,
    ) -> Schedule:
        """스케줄을 깊은 복사하여 새 draft 스케줄을 만듭니다.

        Deep-clone a schedule's days (positions and assignments included)
        into a new draft. The clone never shares structure with the source.

        Args:
            data: 복사 옵션 — 이름, 주 시작일, 템플릿 여부, 배정 초기화
                  (Overrides: name, week start, template flag, assignment reset)

        Returns:
            Schedule: 새 스케줄 (The clone)
        """
        source: Schedule = await self.get_schedule(db, store_id, schedule_id)
        days: list[Day] = self.load_document(source)

        week_start: date = data.week_start_date or source.week_start_date
        if data.week_start_date is not None:
            self.rebase_days(days, week_start)
        if data.reset_assignments:
            self.reset_assignments(days)

        clone: Schedule = await schedule_repository.create(db, {
            "store_id": store_id,
            "name": data.name or f"{source.name} (Copy)",
            "week_start_date": week_start,
            "week_end_date": week_start + timedelta(days=6),
            "status": ScheduleStatus.DRAFT.value,
            "is_template": source.is_template if data.is_template is None else data.is_template,
            "schema_version": source.schema_version,
            "days": dump_days(days),
            "uploaded_employees": [dict(row) for row in source.uploaded_employees or []],
            "version": 1,
            "created_by": created_by,
        })
        log_activity("schedule.copied", store_id=store_id, schedule_id=clone.id, source_id=source.id)
        return clone

    async def save_as_template(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
        name: str,
        created_by: UUID,
    ) -> Schedule:
        """스케줄을 템플릿으로 저장합니다.

        Save a schedule as a reusable template: a deep copy with
        is_template = true and status reset to draft.
        """
        template: Schedule = await self.copy_schedule(
            db,
            store_id,
            schedule_id,
            ScheduleCopyRequest(name=name, is_template=True),
            created_by,
        )
        log_activity("schedule.template_saved", store_id=store_id, schedule_id=template.id, source_id=schedule_id)
        return template

    # === 직원 명단 (Roster views) ===

    async def get_employees(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
    ) -> list[ScheduleEmployeeResponse]:
        """스케줄에 배정된 직원과 미배치 업로드 직원 목록.

        Every assigned employee of the schedule, followed by uploaded
        employees that were never placed (is_uploaded = true).
        """
        schedule: Schedule = await self.get_schedule(db, store_id, schedule_id)
        days: list[Day] = self.load_document(schedule)
        names: dict[UUID, str] = await user_repository.get_names(db, self._known_ids(days))

        entries: list[ScheduleEmployeeResponse] = []
        placed: set[str] = set()
        for day in days:
            for block in day.blocks():
                for position in block.positions:
                    employee = position.assigned_employee
                    if employee is None:
                        continue
                    display: str = self._display_name(employee, names)
                    placed.add(display.strip().lower())
                    entries.append(ScheduleEmployeeResponse(
                        name=display,
                        user_id=str(employee.user_id) if isinstance(employee, KnownEmployee) else None,
                        work_date=day.date,
                        day=WEEKDAY_NAMES[weekday_index(day.date)],
                        shift_time=f"{block.start_time} - {block.end_time}",
                        department=position.department.value,
                        position=position.name,
                        block_id=block.block_id,
                    ))

        for row in schedule.uploaded_employees or []:
            if str(row.get("name", "")).strip().lower() in placed:
                continue
            entries.append(ScheduleEmployeeResponse(
                name=row.get("name", ""),
                day=row.get("day", ""),
                shift_time=row.get("time", ""),
                department=row.get("department", ""),
                is_uploaded=True,
            ))
        return entries

    async def get_uploaded_employees(
        self,
        db: AsyncSession,
        store_id: UUID,
        schedule_id: UUID,
    ) -> list[dict[str, Any]]:
        schedule: Schedule = await self.get_schedule(db, store_id, schedule_id)
        return list(schedule.uploaded_employees or [])

    # === 응답 빌드 (Response building) ===

    @staticmethod
    def _known_ids(days: list[Day]) -> set[UUID]:
        return {
            position.assigned_employee.user_id
            for day in days
            for block in day.blocks()
            for position in block.positions
            if isinstance(position.assigned_employee, KnownEmployee)
        }

    @staticmethod
    def _display_name(employee: KnownEmployee | NamedEmployee, names: dict[UUID, str]) -> str:
        if isinstance(employee, KnownEmployee):
            return names.get(employee.user_id, str(employee.user_id))
        return employee.name

    def render_days(self, days: list[Day], names: dict[UUID, str]) -> list[dict[str, Any]]:
        """문서를 응답용 dict로 변환 — 포지션마다 assigned_employee_name 추가.

        Serialise days for a response, adding the resolved
        assigned_employee_name to every position.
        """
        rendered: list[dict[str, Any]] = dump_days(days)
        for day_dict, day in zip(rendered, days):
            key: str = "shifts" if isinstance(day, FixedPeriodsDay) else "time_blocks"
            for block_dict, block in zip(day_dict[key], day.blocks()):
                for position_dict, position in zip(block_dict["positions"], block.positions):
                    employee = position.assigned_employee
                    position_dict["assigned_employee_name"] = (
                        self._display_name(employee, names) if employee is not None else None
                    )
        return rendered

    async def _summary_fields(self, db: AsyncSession, schedule: Schedule, days: list[Day]) -> dict[str, Any]:
        positions: list[Position] = [
            position for day in days for block in day.blocks() for position in block.positions
        ]
        creator_name: str | None = None
        if schedule.created_by is not None:
            creator_name = (await user_repository.get_names(db, [schedule.created_by])).get(schedule.created_by)
        return {
            "id": str(schedule.id),
            "store_id": str(schedule.store_id),
            "name": schedule.name,
            "week_start_date": schedule.week_start_date,
            "week_end_date": schedule.week_end_date,
            "status": schedule.status,
            "is_template": schedule.is_template,
            "schema_version": schedule.schema_version,
            "version": schedule.version,
            "position_count": len(positions),
            "assigned_count": sum(1 for p in positions if p.assigned_employee is not None),
            "uploaded_count": len(schedule.uploaded_employees or []),
            "created_by_name": creator_name,
            "created_at": schedule.created_at,
            "updated_at": schedule.updated_at,
        }

    async def build_summary(self, db: AsyncSession, schedule: Schedule) -> ScheduleSummaryResponse:
        """목록용 응답 생성 (Build a list-view response without the document)."""
        days: list[Day] = self.load_document(schedule)
        return ScheduleSummaryResponse(**await self._summary_fields(db, schedule, days))

    async def build_response(self, db: AsyncSession, schedule: Schedule) -> ScheduleResponse:
        """스케줄 상세 응답을 생성합니다.

        Build the full schedule response with employee names resolved
        from the directory.
        """
        days: list[Day] = self.load_document(schedule)
        names: dict[UUID, str] = await user_repository.get_names(db, self._known_ids(days))
        return ScheduleResponse(
            **await self._summary_fields(db, schedule, days),
            days=self.render_days(days, names),
            uploaded_employees=list(schedule.uploaded_employees or []),
        )


# 싱글턴 인스턴스 — Singleton instance
schedule_service: ScheduleService = ScheduleService()
