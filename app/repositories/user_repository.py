"""사용자 레포지토리 — 직원 디렉터리 조회.

User Repository — Employee directory lookups used when assigning
positions by user id and when resolving assigned ids to display names.
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling directory queries for the users table.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_names(
        self,
        db: AsyncSession,
        user_ids: Iterable[UUID],
    ) -> dict[UUID, str]:
        """사용자 ID 목록을 이름 맵으로 변환합니다.

        Map user ids to their full names in one query. Unknown ids are
        simply absent from the result.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_ids: 조회할 사용자 ID 목록 (User ids to resolve)

        Returns:
            dict[UUID, str]: {사용자 ID: 이름} (id → full_name)
        """
        ids: set[UUID] = set(user_ids)
        if not ids:
            return {}
        result = await db.execute(select(User.id, User.full_name).where(User.id.in_(ids)))
        return {row.id: row.full_name for row in result.all()}

    async def get_active_in_store(
        self,
        db: AsyncSession,
        user_id: UUID,
        store_id: UUID,
    ) -> User | None:
        """매장의 활성 사용자를 조회합니다 (Active user of the store, or None)."""
        result = await db.execute(
            select(User).where(
                User.id == user_id,
                User.store_id == store_id,
                User.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
