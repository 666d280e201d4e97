"""관리자 기본 포지션 라우터 — 매장 포지션 카탈로그 API.

Admin Default Positions Router — Per-store catalog of seed positions keyed
by (weekday, labor period). New schedules are seeded from this catalog.
Reads need Supervisor+; writes need Owner or GM.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_gm, require_supervisor
from app.database import get_db
from app.models.default_position import DefaultPosition
from app.models.user import User
from app.schemas.default_position import DefaultPositionResponse, DefaultPositionUpsert
from app.services.default_position_service import default_position_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[DefaultPositionResponse])
async def list_default_positions(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    weekday: Annotated[int | None, Query(ge=0, le=6)] = None,
) -> list[DefaultPositionResponse]:
    """매장 카탈로그 목록을 요일·시간대 순으로 조회합니다.

    List the caller's catalog ordered by weekday, then labor period.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 감독자 이상 사용자 (Authenticated supervisor+ user)
        weekday: 요일 필터 0=일요일, 선택 (Optional weekday filter, Sunday = 0)

    Returns:
        list[DefaultPositionResponse]: 카탈로그 항목 목록 (Catalog entries)
    """
    entries = await default_position_service.list_entries(db, current_user.store_id, weekday)
    return [default_position_service.build_response(e) for e in entries]


@router.get("/{weekday}/{period}", response_model=DefaultPositionResponse)
async def get_default_positions(
    weekday: Annotated[int, Path(ge=0, le=6)],
    period: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> DefaultPositionResponse:
    """(요일, 시간대) 항목을 조회합니다 (Entry for one weekday and period).

    Raises:
        NotFoundError(404): 항목 없음 (No entry for the key)
        ValidationError(400): 알 수 없는 시간대 (Unknown period)
    """
    entry: DefaultPosition = await default_position_service.get_entry(
        db, current_user.store_id, weekday, period
    )
    return default_position_service.build_response(entry)


@router.put("", response_model=DefaultPositionResponse)
async def upsert_default_positions(
    data: DefaultPositionUpsert,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_gm)],
) -> DefaultPositionResponse:
    """(요일, 시간대) 항목을 생성하거나 교체합니다. Owner + GM만 가능.

    Create or replace the entry for (weekday, period). Answers 201 when
    the entry was created and 200 when it was replaced.
    """
    entry, created = await default_position_service.upsert(
        db, current_user.store_id, data, created_by=current_user.id
    )
    await db.commit()
    await db.refresh(entry)
    if created:
        response.status_code = 201
    return default_position_service.build_response(entry)


@router.delete("/{entry_id}", status_code=204)
async def delete_default_positions(
    entry_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_gm)],
) -> None:
    """카탈로그 항목을 삭제합니다. Owner + GM만 가능.

    Raises:
        NotFoundError(404): 항목 없음 (Entry not found)
        ForbiddenError(403): 다른 매장 소유 (Entry owned by another store)
    """
    await default_position_service.delete(db, current_user.store_id, entry_id)
    await db.commit()
