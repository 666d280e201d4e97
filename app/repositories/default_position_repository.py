"""기본 포지션 레포지토리 — 카탈로그 조회 및 갱신.

Default Position Repository — Catalog lookups keyed by
(store, weekday, labor period).
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.default_position import DefaultPosition
from app.repositories.base import BaseRepository


class DefaultPositionRepository(BaseRepository[DefaultPosition]):
    """기본 포지션 레포지토리.

    Extends:
        BaseRepository[DefaultPosition]
    """

    def __init__(self) -> None:
        super().__init__(DefaultPosition)

    async def get_by_store(
        self,
        db: AsyncSession,
        store_id: UUID,
        weekday: int | None = None,
    ) -> Sequence[DefaultPosition]:
        """매장의 카탈로그를 요일·시간대 순으로 조회합니다.

        Retrieve a store's catalog entries, optionally for one weekday.
        """
        return await self.get_all(
            db,
            store_id=store_id,
            filters={"weekday": weekday},
            order_by=DefaultPosition.weekday,
        )

    async def get_by_key(
        self,
        db: AsyncSession,
        store_id: UUID,
        weekday: int,
        period: str,
    ) -> DefaultPosition | None:
        """(매장, 요일, 시간대) 키로 단일 항목을 조회합니다.

        Retrieve the entry for one (store, weekday, period) key.
        """
        result = await db.execute(
            select(DefaultPosition).where(
                DefaultPosition.store_id == store_id,
                DefaultPosition.weekday == weekday,
                DefaultPosition.period == period,
            )
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
default_position_repository: DefaultPositionRepository = DefaultPositionRepository()
