"""관리자 스케줄 구조 라우터 — 요일별 타임 블록·포지션·배정 API.

Admin Schedule Structure Router — Endpoints that edit one day of a
schedule: time blocks, positions and employee assignment.
Blocks are addressed by period name on fixed days and by block id on
flexible days. Every mutation is refused while the schedule is published
(templates excepted) and returns the updated schedule.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_supervisor
from app.database import get_db
from app.models.user import User
from app.schemas.schedule import (
    AssignEmployeeRequest,
    BlockResponse,
    PositionCreate,
    PositionDeleteResponse,
    PositionUpdate,
    ScheduleResponse,
    TimeBlockCreate,
    TimeBlockDeleteResponse,
    TimeBlockUpdate,
)
from app.services.schedule_service import schedule_service
from app.services.schedule_structure_service import schedule_structure_service

router: APIRouter = APIRouter()

# 요일 위치 경로 파라미터 — Day position within the schedule (0–6)
DayIndex = Annotated[int, Path(ge=0, le=6)]


# === 조회 (Reads) ===


@router.get("/schedules/{schedule_id}/days/{day_index}/blocks", response_model=list[BlockResponse])
async def list_blocks(
    schedule_id: UUID,
    day_index: DayIndex,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[BlockResponse]:
    """하루의 시프트 또는 타임 블록 목록 (Shifts or time blocks of one day)."""
    return await schedule_structure_service.list_blocks(db, current_user.store_id, schedule_id, day_index)


@router.get("/schedules/{schedule_id}/days/{day_index}/blocks/{block_id}/positions")
async def list_positions(
    schedule_id: UUID,
    day_index: DayIndex,
    block_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[dict[str, Any]]:
    """블록 하나의 포지션 목록 (Positions of one shift or time block)."""
    return await schedule_structure_service.list_positions(
        db, current_user.store_id, schedule_id, day_index, block_id
    )


# === 타임 블록 (Time blocks) ===


@router.post(
    "/schedules/{schedule_id}/days/{day_index}/time-blocks",
    response_model=ScheduleResponse,
    status_code=201,
)
async def add_time_block(
    schedule_id: UUID,
    day_index: DayIndex,
    data: TimeBlockCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """타임 블록을 추가합니다.

    Append a time block to a flexible day.

    Raises:
        ValidationError(400): 고정 레이아웃 요일, 잘못된 시간 (Fixed day, bad times)
        LockedScheduleError(409): 게시된 스케줄 (Published schedule)
    """
    schedule, _ = await schedule_structure_service.add_time_block(
        db, current_user.store_id, schedule_id, day_index, data
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.put(
    "/schedules/{schedule_id}/days/{day_index}/time-blocks/{block_id}",
    response_model=ScheduleResponse,
)
async def update_time_block(
    schedule_id: UUID,
    day_index: DayIndex,
    block_id: str,
    data: TimeBlockUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """타임 블록의 시작/종료 시간을 수정합니다 (Change a block's times)."""
    schedule, _ = await schedule_structure_service.update_time_block(
        db, current_user.store_id, schedule_id, day_index, block_id, data
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.delete(
    "/schedules/{schedule_id}/days/{day_index}/time-blocks/{block_id}",
    response_model=TimeBlockDeleteResponse,
)
async def delete_time_block(
    schedule_id: UUID,
    day_index: DayIndex,
    block_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    expected_version: Annotated[int | None, Query()] = None,
) -> TimeBlockDeleteResponse:
    """타임 블록을 삭제합니다.

    Delete a time block. The before/after counts tell a deletion
    (difference of 1) from a no-op on an unknown id (difference of 0).
    """
    schedule, before, after = await schedule_structure_service.delete_time_block(
        db, current_user.store_id, schedule_id, day_index, block_id, expected_version
    )
    await db.commit()
    return TimeBlockDeleteResponse(
        deleted=before != after,
        time_block_count_before=before,
        time_block_count_after=after,
        schedule=await schedule_service.build_response(db, schedule),
    )


# === 포지션 (Positions) ===


@router.post(
    "/schedules/{schedule_id}/days/{day_index}/blocks/{block_id}/positions",
    response_model=ScheduleResponse,
    status_code=201,
)
async def add_position(
    schedule_id: UUID,
    day_index: DayIndex,
    block_id: str,
    data: PositionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """포지션을 추가합니다.

    Append a position to a shift or time block.

    Raises:
        NotFoundError(404): 요일 또는 블록 없음 (Unknown day or block)
        LockedScheduleError(409): 게시된 스케줄 (Published schedule)
    """
    schedule, _ = await schedule_structure_service.add_position(
        db, current_user.store_id, schedule_id, day_index, block_id, data
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.put(
    "/schedules/{schedule_id}/days/{day_index}/blocks/{block_id}/positions/{position_id}",
    response_model=ScheduleResponse,
)
async def update_position(
    schedule_id: UUID,
    day_index: DayIndex,
    block_id: str,
    position_id: str,
    data: PositionUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """포지션 이름·부서·상태를 수정합니다 (Rename, re-department or re-status a position)."""
    schedule, _ = await schedule_structure_service.update_position(
        db, current_user.store_id, schedule_id, day_index, block_id, position_id, data
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)


@router.delete(
    "/schedules/{schedule_id}/days/{day_index}/blocks/{block_id}/positions/{position_id}",
    response_model=PositionDeleteResponse,
)
async def delete_position(
    schedule_id: UUID,
    day_index: DayIndex,
    block_id: str,
    position_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    expected_version: Annotated[int | None, Query()] = None,
) -> PositionDeleteResponse:
    """포지션을 삭제합니다.

    Delete a position and report the block's position count before and after.
    """
    schedule, before, after = await schedule_structure_service.delete_position(
        db, current_user.store_id, schedule_id, day_index, block_id, position_id, expected_version
    )
    await db.commit()
    return PositionDeleteResponse(
        deleted=before != after,
        position_count_before=before,
        position_count_after=after,
        schedule=await schedule_service.build_response(db, schedule),
    )


# === 직원 배정 (Assignment) ===


@router.post("/schedules/{schedule_id}/assign", response_model=ScheduleResponse)
async def assign_employee(
    schedule_id: UUID,
    data: AssignEmployeeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> ScheduleResponse:
    """포지션에 직원을 배정하거나 해제합니다.

    Assign an employee to a position, or unassign it with employee=null.
    The employee may be a directory user id, a "temp-first-last" id or a
    free-text name.

    Raises:
        NotFoundError(404): 요일·블록·포지션 또는 사용자 없음 (Unknown day, block, position or user)
        LockedScheduleError(409): 게시된 스케줄 (Published schedule)
    """
    schedule, _ = await schedule_structure_service.assign_employee(
        db, current_user.store_id, schedule_id, data
    )
    await db.commit()
    return await schedule_service.build_response(db, schedule)
