"""관리자 스케줄 라우터 — 주간 스케줄 API.

Admin Schedule Router — API endpoints for weekly schedules.
Provides CRUD, copy and template operations, lifecycle transitions
(publish, unpublish, archive), layout conversion, roster views and
spreadsheet import. Every endpoint is scoped to the caller's store.
"""

from datetime import date
from io import BytesIO
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import GM_LEVEL, has_level, require_gm, require_supervisor
from app.database import get_db
from app.models.schedule import Schedule
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.schedule import (
    ImportResultResponse,
    LifecycleRequest,
    ScheduleConvertRequest,
    ScheduleCopyRequest,
    ScheduleCreate,
    ScheduleEmployeeResponse,
    ScheduleResponse,
    ScheduleStatus,
    ScheduleSummaryResponse,
    ScheduleUpdate,
    TemplateCreate,
    UploadedEmployee,
)
from app.services.schedule_service import schedule_service
from app.services.spreadsheet_import_service import spreadsheet_import_service
from app.utils.exceptions import ForbiddenError
from app.utils.upload import stored_upload

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_schedules(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    is_template: Annotated[bool | None, Query()] = None,
    status: Annotated[ScheduleStatus | None, Query()] = None,
    week_of: Annotated[date | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """스케줄 목록을 필터링하여 조회합니다.

    List schedules of the caller's store, newest week first.
    Accessible by Supervisor+ (level <= 3).

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 감독자 이상 사용자 (Authenticated supervisor+ user)
        is_template: 템플릿 여부 필터, 선택 (Optional template filter)
        status: 상태 필터, 선택 (Optional status filter)
        week_of: 이 날짜를 포함하는 주 필터, 선택 (Week containing this date)
        page: 페이지 번호 (Page number)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        dict: 페이지네이션된 스케줄 요약 목록 (Paginated schedule summaries)
    """
    schedules, total = await schedule_service.list_schedules(
        db,
        current_user.store_id,
        is_template=is_template,
        status=status.value if status else None,
        week_of=week_of,
        page=page,
        per_page=per_page,
    )
    items: list[ScheduleSummaryResponse] = [
        await schedule_service.build_summary(db, s) for s in schedules
    ]
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """새 스케줄을 생성합니다.

    Create a draft schedule from a template, explicit days, or the
    store's default positions. Accessible by Supervisor+ (level <= 3).
    """
    schedule: Schedule = await schedule_service.create_schedule(
        db, current_user.store_id, data, created_by=current_user.id
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.get("/templates", response_model=list[ScheduleSummaryResponse])
async def list_templates(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[ScheduleSummaryResponse]:
    """매장의 템플릿 목록 (Templates of the caller's store, by name)."""
    templates = await schedule_service.list_templates(db, current_user.store_id)
    return [await schedule_service.build_summary(db, t) for t in templates]


# === 스프레드시트 가져오기 (must be registered BEFORE /{schedule_id}) ===


@router.post("/import", response_model=ImportResultResponse, status_code=201)
async def import_spreadsheet(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    file: UploadFile = File(...),
    target_schedule_id: Annotated[UUID | None, Form()] = None,
    week_start_date: Annotated[date | None, Form()] = None,
    expected_version: Annotated[int | None, Form()] = None,
) -> ImportResultResponse:
    """직원 근무 스프레드시트를 가져와 자동 배정합니다.

    Import an employee roster (.xlsx, .xls or .csv) and auto-assign it.
    With target_schedule_id the rows are placed on that schedule,
    otherwise a new draft schedule is created for week_start_date
    (defaults to the current week). The uploaded file is removed from
    disk whether the import succeeds or fails.

    Raises:
        ValidationError(400): 형식 오류, 크기 초과, 필수 열 누락, 유효 행 없음
            (Bad format, too large, missing columns, or no usable rows)
        LockedScheduleError(409): 대상 스케줄이 게시됨 (Target is published)
    """
    async with stored_upload(file) as path:
        schedule, parsed, outcome = await spreadsheet_import_service.import_spreadsheet(
            db,
            current_user.store_id,
            path,
            file.filename or path.name,
            created_by=current_user.id,
            target_schedule_id=target_schedule_id,
            week_start_date=week_start_date,
            expected_version=expected_version,
        )
    await db.commit()

    return ImportResultResponse(
        imported_count=len(parsed.uploaded),
        skipped_count=len(parsed.skipped_rows),
        skipped_rows=parsed.skipped_rows,
        availability_count=len(parsed.availability),
        assigned_count=outcome.assigned_count,
        unplaced=outcome.unplaced,
        schedule=await schedule_service.build_response(db, schedule),
    )


@router.get("/import/sample")
async def download_sample(
    current_user: Annotated[User, Depends(require_supervisor)],
) -> StreamingResponse:
    """샘플 Excel 템플릿을 다운로드합니다.

    Download a sample roster workbook for import.
    """
    excel_bytes: bytes = spreadsheet_import_service.generate_sample_excel()
    return StreamingResponse(
        BytesIO(excel_bytes),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=schedule_import_sample.xlsx"},
    )


# === 단일 스케줄 (Single schedule) ===


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """스케줄 상세를 조회합니다.

    Get a schedule with its full document and resolved employee names.

    Raises:
        NotFoundError(404): 스케줄 없음 (Schedule not found)
    """
    schedule: Schedule = await schedule_service.get_schedule(db, current_user.store_id, schedule_id)
    return await schedule_service.build_response(db, schedule)


@router.put("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: UUID,
    data: ScheduleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """스케줄을 수정합니다.

    Update a schedule. A given `days` list replaces the document whole.
    Changing `status` needs the same role as /publish and /unpublish.

    Raises:
        ForbiddenError(403): GM 미만의 상태 변경 (Status change below general manager)
        LockedScheduleError(409): 게시된 스케줄의 문서 수정 (Document edit while published)
        StaleScheduleError(409): 버전 불일치 (expected_version mismatch)
    """
    if data.status is not None and not has_level(current_user, GM_LEVEL):
        raise ForbiddenError("Only a general manager can change schedule status")
    schedule: Schedule = await schedule_service.update_schedule(
        db, current_user.store_id, schedule_id, data
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_gm)],
) -> None:
    """스케줄을 삭제합니다. Owner + GM만 가능.

    Delete a schedule. Owner + GM only (level <= 2).
    """
    await schedule_service.delete_schedule(db, current_user.store_id, schedule_id)
    await db.commit()


@router.post("/{schedule_id}/copy", response_model=ScheduleResponse, status_code=201)
async def copy_schedule(
    schedule_id: UUID,
    data: ScheduleCopyRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """스케줄을 복사합니다 (Deep copy as a new draft, optionally onto another week)."""
    clone: Schedule = await schedule_service.copy_schedule(
        db, current_user.store_id, schedule_id, data, created_by=current_user.id
    )
    await db.commit()
    return await schedule_service.build_response(db, clone)


@router.post("/{schedule_id}/template", response_model=ScheduleResponse, status_code=201)
async def save_as_template(
    schedule_id: UUID,
    data: TemplateCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """스케줄을 템플릿으로 저장합니다 (Save a copy as a named template)."""
    template: Schedule = await schedule_service.save_as_template(
        db, current_user.store_id, schedule_id, data.name, created_by=current_user.id
    )
    await db.commit()
    return await schedule_service.build_response(db, template)


# === 상태 전환 (Lifecycle) ===


async def _transition(
    db: AsyncSession,
    current_user: User,
    schedule_id: UUID,
    target: ScheduleStatus,
    data: LifecycleRequest | None,
) -> ScheduleResponse:
    schedule: Schedule = await schedule_service.change_status(
        db,
        current_user.store_id,
        schedule_id,
        target,
        expected_version=data.expected_version if data else None,
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.post("/{schedule_id}/publish", response_model=ScheduleResponse)
async def publish_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_gm)],
    data: LifecycleRequest | None = None,
) -> ScheduleResponse:
    """스케줄을 게시합니다. Owner + GM만 가능.

    Publish a draft schedule. Its document becomes read only.
    """
    return await _transition(db, current_user, schedule_id, ScheduleStatus.PUBLISHED, data)


@router.post("/{schedule_id}/unpublish", response_model=ScheduleResponse)
async def unpublish_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_gm)],
    data: LifecycleRequest | None = None,
) -> ScheduleResponse:
    """게시를 취소하고 draft로 되돌립니다 (Return a published schedule to draft)."""
    return await _transition(db, current_user, schedule_id, ScheduleStatus.DRAFT, data)


@router.post("/{schedule_id}/archive", response_model=ScheduleResponse)
async def archive_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_gm)],
    data: LifecycleRequest | None = None,
) -> ScheduleResponse:
    """게시된 스케줄을 보관합니다 (Archive a published schedule)."""
    return await _transition(db, current_user, schedule_id, ScheduleStatus.ARCHIVED, data)


@router.post("/{schedule_id}/convert", response_model=ScheduleResponse)
async def convert_schedule(
    schedule_id: UUID,
    data: ScheduleConvertRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """스케줄 레이아웃을 변환합니다.

    Convert every day between fixed periods (schema version 1) and
    flexible time blocks (schema version 2).

    Raises:
        ValidationError(400): 어떤 시간대와도 겹치지 않는 블록 (Block overlapping no period)
    """
    schedule: Schedule = await schedule_service.convert_schedule(
        db,
        current_user.store_id,
        schedule_id,
        data.schema_version,
        expected_version=data.expected_version,
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


# === 직원 목록 (Roster views) ===


@router.get("/{schedule_id}/employees", response_model=list[ScheduleEmployeeResponse])
async def get_schedule_employees(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[ScheduleEmployeeResponse]:
    """배정 및 업로드된 직원 목록 (Assigned employees, then uploaded ones not placed)."""
    return await schedule_service.get_employees(db, current_user.store_id, schedule_id)


@router.get("/{schedule_id}/uploaded-employees", response_model=list[UploadedEmployee])
async def get_uploaded_employees(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[dict]:
    return await schedule_service.get_uploaded_employees(db, current_user.store_id, schedule_id)
