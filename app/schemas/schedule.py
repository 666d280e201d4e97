"""스케줄 문서 및 요청/응답 Pydantic 스키마 정의.

Schedule document and request/response Pydantic schema definitions.
The `schedules.days` JSON column is validated into the typed document below:
each Day is a tagged variant (fixed labor-period shifts or flexible time
blocks) and each Position's assigned employee is a tagged union of a
directory user id or a bare display name.
"""

import secrets
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from app.utils.taxonomy import PERIOD_ORDER, Department, LaborPeriod, is_hhmm


def new_block_id() -> str:
    """타임 블록 ID 생성 — "block-" + 8자리 랜덤 (New time block identifier)."""
    return f"block-{secrets.token_hex(4)}"


def new_position_id() -> str:
    """포지션 ID 생성 — "pos-" + 8자리 랜덤 (New position identifier)."""
    return f"pos-{secrets.token_hex(4)}"


def _check_time(value: str) -> str:
    value = str(value).strip()
    if not is_hhmm(value):
        raise ValueError(f"Invalid time '{value}', expected HH:MM (24-hour)")
    return value


class ScheduleStatus(str, Enum):
    """스케줄 상태 (Schedule lifecycle status)."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class PositionStatus(str, Enum):
    """포지션 배정 상태 (Position assignment status)."""

    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    OPEN = "open"


# === 배정 직원 (Assigned employee) — tagged union ===

class KnownEmployee(BaseModel):
    """디렉터리 사용자로 배정된 직원 (Employee known to the user directory)."""

    kind: Literal["user"] = "user"
    user_id: UUID  # 사용자 UUID (Directory user identifier)


class NamedEmployee(BaseModel):
    """이름만 있는 직원 — 계정 없는 업로드 명단 직원 (Roster name without an account)."""

    kind: Literal["name"] = "name"
    name: str = Field(..., min_length=1)  # 표시 이름 (Display name)


AssignedEmployee = Annotated[Union[KnownEmployee, NamedEmployee], Field(discriminator="kind")]


def employee_from_reference(value: Any) -> dict[str, Any] | None:
    """레거시 문자열 참조를 태그 유니온 형태로 변환합니다.

    Coerce a legacy bare reference (uuid string or name) into the tagged shape.
    Dicts pass through untouched; blank strings mean "no employee".
    """
    if value is None or isinstance(value, (dict, KnownEmployee, NamedEmployee)):
        return value
    text: str = str(value).strip()
    if not text:
        return None
    try:
        return {"kind": "user", "user_id": UUID(text)}
    except ValueError:
        return {"kind": "name", "name": text}


# === 문서 모델 (Document model) ===

class Position(BaseModel):
    """포지션 — 시간대/블록 안의 부서별 근무 자리.

    A named, department-tagged labor slot inside a shift or time block.
    Invariant: assigned_employee is set if and only if status == assigned.
    """

    id: str = Field(default_factory=new_position_id)
    name: str = Field(..., min_length=1)
    department: Department
    status: PositionStatus = PositionStatus.UNASSIGNED
    assigned_employee: AssignedEmployee | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_legacy_employee(cls, data: Any) -> Any:
        if isinstance(data, dict) and "assigned_employee" in data:
            data = {**data, "assigned_employee": employee_from_reference(data["assigned_employee"])}
        return data

    @field_validator("department", mode="before")
    @classmethod
    def _parse_department(cls, value: Any) -> Department:
        return Department.parse(value)

    @model_validator(mode="after")
    def _check_assignment(self) -> "Position":
        # 직원이 있으면 assigned — an employee always implies assigned
        if self.assigned_employee is not None:
            self.status = PositionStatus.ASSIGNED
        elif self.status == PositionStatus.ASSIGNED:
            raise ValueError("Position marked assigned without an assigned employee")
        return self

    def assign(self, employee: KnownEmployee | NamedEmployee) -> None:
        self.assigned_employee = employee
        self.status = PositionStatus.ASSIGNED

    def unassign(self) -> None:
        self.assigned_employee = None
        self.status = PositionStatus.UNASSIGNED

    def holds(self, employee: KnownEmployee | NamedEmployee) -> bool:
        """같은 직원이 배정되어 있는지 (Whether this position already holds the employee)."""
        current = self.assigned_employee
        if current is None or current.kind != employee.kind:
            return False
        if isinstance(current, KnownEmployee):
            return current.user_id == employee.user_id
        return current.name.strip().lower() == employee.name.strip().lower()


def _check_unique_position_ids(positions: list[Position]) -> list[Position]:
    seen: set[str] = set()
    for position in positions:
        if position.id in seen:
            raise ValueError(f"Duplicate position id '{position.id}'")
        seen.add(position.id)
    return positions


class Shift(BaseModel):
    """고정 시간대 근무 — 레거시 레이아웃의 한 시간대.

    One canonical labor period of a fixed-layout day.
    Addressed by its period name (case-insensitive).
    """

    type: LaborPeriod
    start_time: str
    end_time: str
    positions: list[Position] = []

    @model_validator(mode="before")
    @classmethod
    def _default_bounds(cls, data: Any) -> Any:
        if isinstance(data, dict) and "type" in data:
            period: LaborPeriod = LaborPeriod.parse(data["type"])
            data = {
                "start_time": period.start_time,
                "end_time": period.end_time,
                **data,
                "type": period,
            }
        return data

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value: str) -> str:
        return _check_time(value)

    @field_validator("positions")
    @classmethod
    def _check_positions(cls, positions: list[Position]) -> list[Position]:
        return _check_unique_position_ids(positions)

    @property
    def block_id(self) -> str:
        return self.type.value

    def matches(self, block_id: str) -> bool:
        return self.type.value.lower() == str(block_id).strip().lower()


class TimeBlock(BaseModel):
    """유연 타임 블록 — 호출자가 정의한 시작/종료 시각 (Caller-defined time window)."""

    id: str = Field(default_factory=new_block_id)
    start_time: str
    end_time: str
    positions: list[Position] = []

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value: str) -> str:
        return _check_time(value)

    @field_validator("positions")
    @classmethod
    def _check_positions(cls, positions: list[Position]) -> list[Position]:
        return _check_unique_position_ids(positions)

    @model_validator(mode="after")
    def _check_window(self) -> "TimeBlock":
        if self.start_time == self.end_time:
            raise ValueError("Time block start_time and end_time must differ")
        return self

    @property
    def block_id(self) -> str:
        return self.id

    def matches(self, block_id: str) -> bool:
        return self.id == block_id


class FixedPeriodsDay(BaseModel):
    """고정 레이아웃 하루 — 6개 시간대별 Shift (Six shifts, one per labor period)."""

    layout: Literal["fixed"] = "fixed"
    date: date
    shifts: list[Shift]

    @field_validator("shifts")
    @classmethod
    def _one_per_period(cls, shifts: list[Shift]) -> list[Shift]:
        periods: set[LaborPeriod] = {shift.type for shift in shifts}
        if len(shifts) != len(PERIOD_ORDER) or len(periods) != len(PERIOD_ORDER):
            raise ValueError("A fixed day needs exactly one shift per labor period")
        return sorted(shifts, key=lambda shift: shift.type.index)

    def blocks(self) -> list[Shift]:
        return self.shifts

    def find_block(self, block_id: str) -> Shift | None:
        return next((shift for shift in self.shifts if shift.matches(block_id)), None)


class FlexibleBlocksDay(BaseModel):
    """유연 레이아웃 하루 — 타임 블록 목록 (Caller-defined time blocks)."""

    layout: Literal["flexible"] = "flexible"
    date: date
    time_blocks: list[TimeBlock] = []

    @field_validator("time_blocks")
    @classmethod
    def _unique_block_ids(cls, blocks: list[TimeBlock]) -> list[TimeBlock]:
        ids: list[str] = [block.id for block in blocks]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate time block id")
        return blocks

    def blocks(self) -> list[TimeBlock]:
        return self.time_blocks

    def find_block(self, block_id: str) -> TimeBlock | None:
        return next((block for block in self.time_blocks if block.matches(block_id)), None)


Day = Annotated[Union[FixedPeriodsDay, FlexibleBlocksDay], Field(discriminator="layout")]


def infer_day_layout(value: Any) -> Any:
    """layout 태그가 없는 레거시 Day에 태그를 붙입니다.

    Tag a legacy day dict that carries shifts or time_blocks but no layout.
    A day carrying both representations is rejected.
    """
    if not isinstance(value, dict) or "layout" in value:
        return value
    has_shifts: bool = value.get("shifts") is not None
    has_blocks: bool = value.get("time_blocks") is not None
    if has_shifts and has_blocks:
        raise ValueError("A day holds either shifts or time_blocks, not both")
    if has_blocks:
        return {**value, "layout": "flexible"}
    if has_shifts:
        return {**value, "layout": "fixed"}
    raise ValueError("A day must contain shifts or time_blocks")


def _infer_layouts(value: Any) -> Any:
    if isinstance(value, list):
        return [infer_day_layout(item) for item in value]
    return value


_days_adapter: TypeAdapter[list[Day]] = TypeAdapter(list[Day])


def load_days(raw: list[dict[str, Any]]) -> list[FixedPeriodsDay | FlexibleBlocksDay]:
    """JSON 컬럼 값을 타입 문서로 변환 (Validate stored JSON into typed days)."""
    return _days_adapter.validate_python(_infer_layouts(raw or []))


def dump_days(days: list[FixedPeriodsDay | FlexibleBlocksDay]) -> list[dict[str, Any]]:
    """타입 문서를 JSON 컬럼 값으로 직렬화 (Serialise typed days for the JSON column)."""
    return _days_adapter.dump_python(days, mode="json")


class UploadedEmployee(BaseModel):
    """업로드된 직원 행 — 스프레드시트 원본 그대로 (Verbatim imported roster row)."""

    name: str
    time: str
    day: str
    department: str


# === 요청 (Request) 스키마 ===

class PositionCreate(BaseModel):
    """포지션 추가 요청 스키마 (Add position request).

    Attributes:
        name: 포지션 이름 (Display name)
        department: 부서 — FC/DT/KT 또는 레거시 표기 (Department, legacy labels accepted)
        status: 초기 상태 — unassigned 또는 open (Initial status)
    """

    name: str = Field(..., min_length=1)
    department: Department
    status: Literal["unassigned", "open"] = "unassigned"
    expected_version: int | None = None  # 낙관적 잠금 버전, 선택 (Optional stale-write check)

    @field_validator("department", mode="before")
    @classmethod
    def _parse_department(cls, value: Any) -> Department:
        return Department.parse(value)


class PositionUpdate(BaseModel):
    """포지션 수정 요청 스키마 (부분 업데이트).

    Position update request (partial). Setting status on an assigned
    position clears its employee; assignment itself goes through assign.
    """

    name: str | None = Field(None, min_length=1)
    department: Department | None = None
    status: Literal["unassigned", "open"] | None = None
    expected_version: int | None = None

    @field_validator("department", mode="before")
    @classmethod
    def _parse_department(cls, value: Any) -> Department | None:
        return None if value is None else Department.parse(value)


class TimeBlockCreate(BaseModel):
    """타임 블록 추가 요청 스키마 (Add time block request)."""

    start_time: str
    end_time: str
    positions: list[PositionCreate] = []
    expected_version: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value: str) -> str:
        return _check_time(value)


class TimeBlockUpdate(BaseModel):
    """타임 블록 수정 요청 스키마 (Partial time block update)."""

    start_time: str | None = None
    end_time: str | None = None
    expected_version: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value: str | None) -> str | None:
        return None if value is None else _check_time(value)


class AssignEmployeeRequest(BaseModel):
    """직원 배정/해제 요청 스키마.

    Assign (or unassign with employee=null) one position.

    Attributes:
        day_index: 요일 위치 0–6 (Position of the day in the schedule)
        block_id: 시간대 이름 또는 타임 블록 ID (Period name or time block id)
        position_id: 포지션 ID (Position identifier)
        employee: 사용자 UUID, "temp-first-last", 이름, 또는 null (Employee reference)
    """

    day_index: int = Field(..., ge=0, le=6)
    block_id: str
    position_id: str
    employee: str | None = None
    expected_version: int | None = None


class ScheduleCreate(BaseModel):
    """스케줄 생성 요청 스키마.

    Schedule creation request. With template_id the template's days are
    cloned onto the requested week; with days the given document is stored
    as-is; otherwise seven days are seeded from the default positions.
    """

    name: str | None = Field(None, min_length=1)
    week_start_date: date | None = None  # 없으면 이번 주 (Defaults to the current week)
    week_end_date: date | None = None  # 없으면 시작일 + 6 (Defaults to start + 6)
    schema_version: Literal[1, 2] = 1  # 1=고정 시간대, 2=유연 블록 (Day layout to seed)
    is_template: bool = False
    days: list[Day] | None = None
    template_id: UUID | None = None

    @field_validator("days", mode="before")
    @classmethod
    def _tag_layouts(cls, value: Any) -> Any:
        return _infer_layouts(value)


class ScheduleUpdate(BaseModel):
    """스케줄 수정 요청 스키마 (부분 업데이트).

    Partial schedule update. `days`, when present, REPLACES the whole
    seven-day document; it is never merged.
    """

    name: str | None = Field(None, min_length=1)
    status: ScheduleStatus | None = None
    week_start_date: date | None = None
    week_end_date: date | None = None
    is_template: bool | None = None
    days: list[Day] | None = None
    expected_version: int | None = None

    @field_validator("days", mode="before")
    @classmethod
    def _tag_layouts(cls, value: Any) -> Any:
        return _infer_layouts(value)


class ScheduleCopyRequest(BaseModel):
    """스케줄 복사 요청 스키마 (Copy overrides).

    Attributes:
        name: 새 이름, 없으면 "원본 이름 (Copy)" (New name)
        week_start_date: 새 주 시작일 — 날짜들을 새 주로 이동 (Rebases day dates)
        is_template: 템플릿 여부 (Template flag of the clone)
        reset_assignments: 배정 초기화 여부 (Clear every assignment in the clone)
    """

    name: str | None = Field(None, min_length=1)
    week_start_date: date | None = None
    is_template: bool | None = None
    reset_assignments: bool = False


class TemplateCreate(BaseModel):
    """템플릿 저장 요청 스키마 (Save-as-template request)."""

    name: str = Field(..., min_length=1)


class ScheduleConvertRequest(BaseModel):
    """레이아웃 변환 요청 스키마 (Convert every day to the given schema version)."""

    schema_version: Literal[1, 2]
    expected_version: int | None = None


class LifecycleRequest(BaseModel):
    """게시/게시 취소/보관 요청 본문 (Publish / unpublish / archive body)."""

    expected_version: int | None = None


# === 응답 (Response) 스키마 ===

class ScheduleSummaryResponse(BaseModel):
    """스케줄 목록 응답 스키마 — 문서 본문 제외 (List view without the document)."""

    id: str
    store_id: str
    name: str
    week_start_date: date
    week_end_date: date
    status: str
    is_template: bool
    schema_version: int
    version: int
    position_count: int  # 전체 포지션 수 (Total positions)
    assigned_count: int  # 배정된 포지션 수 (Assigned positions)
    uploaded_count: int  # 업로드 직원 수 (Uploaded roster rows)
    created_by_name: str | None = None
    created_at: datetime
    updated_at: datetime


class ScheduleResponse(ScheduleSummaryResponse):
    """스케줄 상세 응답 스키마.

    Full schedule with its document. Every position dict carries
    `assigned_employee_name`, resolved from the directory for user ids.
    """

    days: list[dict[str, Any]]
    uploaded_employees: list[dict[str, Any]]


class BlockResponse(BaseModel):
    """시간대/타임 블록 응답 스키마 (Shift or time block view)."""

    id: str  # 시간대 이름 또는 블록 ID (Period name or block id)
    period: str | None = None  # 고정 레이아웃의 시간대 (Labor period for fixed days)
    start_time: str
    end_time: str
    positions: list[dict[str, Any]]


class PositionDeleteResponse(BaseModel):
    """포지션 삭제 응답 — 전후 개수로 삭제/무변경을 구분.

    Before/after counts: a difference of 1 means deleted, 0 means the id
    did not exist in the block.
    """

    deleted: bool
    position_count_before: int
    position_count_after: int
    schedule: ScheduleResponse


class TimeBlockDeleteResponse(BaseModel):
    """타임 블록 삭제 응답 — 전후 개수 포함 (Before/after time block counts)."""

    deleted: bool
    time_block_count_before: int
    time_block_count_after: int
    schedule: ScheduleResponse


class ScheduleEmployeeResponse(BaseModel):
    """스케줄 직원 명단 항목 (Roster entry of a schedule).

    is_uploaded is true for imported employees that were never placed.
    """

    name: str
    user_id: str | None = None
    work_date: date | None = None  # 근무 날짜 (Calendar date, null for uploaded rows)
    day: str  # 요일 이름 (Weekday label)
    shift_time: str  # "HH:MM - HH:MM" 또는 업로드 원본 (Or the raw uploaded time)
    department: str
    position: str | None = None
    block_id: str | None = None
    is_uploaded: bool = False


class SkippedRow(BaseModel):
    """건너뛴 임포트 행 (Skipped import row with reason)."""

    row: int  # 시트 행 번호, 헤더=1 (Sheet row number, header is row 1)
    reason: str


class ImportResultResponse(BaseModel):
    """스프레드시트 임포트 결과 스키마.

    Spreadsheet import result.

    Attributes:
        imported_count: 사용 가능한 행 수 (Rows parsed successfully)
        skipped_count: 건너뛴 행 수 (Rows skipped)
        skipped_rows: 건너뛴 행 상세 (Row number and reason per skip)
        availability_count: 가용 레코드 수 (Employee/day/period records produced)
        assigned_count: 자동 배정된 수 (Positions filled by auto-assignment)
        unplaced: 배정되지 못한 직원 이름 (Employees left for manual placement)
        schedule: 갱신된 스케줄 (Resulting schedule)
    """

    imported_count: int
    skipped_count: int
    skipped_rows: list[SkippedRow]
    availability_count: int
    assigned_count: int
    unplaced: list[str]
    schedule: ScheduleResponse
