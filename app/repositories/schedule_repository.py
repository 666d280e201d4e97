"""스케줄 레포지토리 — 스케줄 관련 DB 쿼리 담당.

Schedule Repository — Handles all schedule-related database queries.
Extends BaseRepository with store-scoped filtering by template flag,
status and calendar week.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.schedule import Schedule
from app.repositories.base import BaseRepository


class ScheduleRepository(BaseRepository[Schedule]):
    """스케줄 레포지토리.

    Schedule repository with list filters and template lookup.

    Extends:
        BaseRepository[Schedule]
    """

    def __init__(self) -> None:
        super().__init__(Schedule)

    async def get_by_filters(
        self,
        db: AsyncSession,
        store_id: UUID,
        is_template: bool | None = None,
        status: str | None = None,
        week_of: date | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Schedule], int]:
        """필터 조건에 맞는 스케줄을 페이지네이션하여 조회합니다.

        Retrieve paginated schedules of a store matching the given filters.
        week_of selects schedules whose week range contains that date.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            store_id: 매장 UUID (Store UUID)
            is_template: 템플릿 여부 필터, 선택 (Optional template flag filter)
            status: 상태 필터, 선택 (Optional status filter)
            week_of: 포함 날짜 필터, 선택 (Optional date inside the week)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Schedule], int]: (스케줄 목록, 전체 개수)
                                             (List of schedules, total count)
        """
        query: Select = select(Schedule).where(Schedule.store_id == store_id)

        if is_template is not None:
            query = query.where(Schedule.is_template == is_template)
        if status is not None:
            query = query.where(Schedule.status == status)
        if week_of is not None:
            query = query.where(
                Schedule.week_start_date <= week_of,
                Schedule.week_end_date >= week_of,
            )

        query = query.order_by(Schedule.week_start_date.desc(), Schedule.created_at.desc())

        return await self.get_paginated(db, query, page, per_page)

    async def get_templates(
        self,
        db: AsyncSession,
        store_id: UUID,
    ) -> Sequence[Schedule]:
        """매장의 템플릿 목록을 이름순으로 조회합니다.

        Retrieve every template of a store, ordered by name.
        """
        result = await db.execute(
            select(Schedule)
            .where(Schedule.store_id == store_id, Schedule.is_template.is_(True))
            .order_by(Schedule.name, Schedule.created_at)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
schedule_repository: ScheduleRepository = ScheduleRepository()
