"""기본 포지션 서비스 — 매장별 요일·시간대 포지션 카탈로그.

Default Position Service — Per-store catalog of seed positions keyed by
(weekday, labor period). Seeds new schedules and imported weeks.
"""

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.default_position import DefaultPosition
from app.repositories.default_position_repository import default_position_repository
from app.schemas.default_position import DefaultPositionResponse, DefaultPositionUpsert
from app.utils.activity_log import log_activity
from app.utils.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.utils.taxonomy import WEEKDAY_NAMES, LaborPeriod

# 레거시 기본 카탈로그 — Legacy default catalog seeded for new stores
LEGACY_CATALOG: dict[str, tuple[list[str], list[LaborPeriod]]] = {
    "FC": (
        ["Register 1", "Register 2", "Bagger", "Runner"],
        [LaborPeriod.OPENING, LaborPeriod.MORNING, LaborPeriod.LUNCH, LaborPeriod.AFTERNOON],
    ),
    "DT": (
        ["Window", "Order Taker", "Bagger", "Runner"],
        [LaborPeriod.OPENING, LaborPeriod.MORNING, LaborPeriod.LUNCH, LaborPeriod.AFTERNOON, LaborPeriod.DINNER],
    ),
    "KT": (
        ["Primary", "Secondary", "Breader", "Prep"],
        [LaborPeriod.OPENING, LaborPeriod.MORNING, LaborPeriod.LUNCH, LaborPeriod.AFTERNOON, LaborPeriod.DINNER],
    ),
}


def legacy_positions(period: LaborPeriod) -> list[dict[str, str]]:
    """레거시 카탈로그에서 한 시간대의 포지션 목록 (Legacy seed list for one period)."""
    return [
        {"name": name, "department": department}
        for department, (names, periods) in LEGACY_CATALOG.items()
        if period in periods
        for name in names
    ]


class DefaultPositionService:
    """기본 포지션 서비스.

    List, look up, upsert and delete catalog entries of the caller's store.
    """

    async def list_entries(
        self,
        db: AsyncSession,
        store_id: UUID,
        weekday: int | None = None,
    ) -> Sequence[DefaultPosition]:
        entries: Sequence[DefaultPosition] = await default_position_repository.get_by_store(db, store_id, weekday)
        return sorted(entries, key=lambda e: (e.weekday, LaborPeriod.parse(e.period).index))

    async def get_entry(
        self,
        db: AsyncSession,
        store_id: UUID,
        weekday: int,
        period: str,
    ) -> DefaultPosition:
        """(요일, 시간대) 항목을 조회합니다.

        Raises:
            NotFoundError: 항목 없음 (No entry for the key)
            ValidationError: 알 수 없는 시간대 (Unknown period name)
        """
        try:
            period_name: str = LaborPeriod.parse(period).value
        except ValueError as exc:
            raise ValidationError(str(exc), field="period")
        entry: DefaultPosition | None = await default_position_repository.get_by_key(db, store_id, weekday, period_name)
        if entry is None:
            raise NotFoundError(
                f"기본 포지션을 찾을 수 없습니다 (No default positions for {WEEKDAY_NAMES[weekday]} {period_name})"
            )
        return entry

    async def upsert(
        self,
        db: AsyncSession,
        store_id: UUID,
        data: DefaultPositionUpsert,
        created_by: UUID,
    ) -> tuple[DefaultPosition, bool]:
        """(요일, 시간대) 항목을 생성하거나 교체합니다.

        Create the entry for (weekday, period) or replace its positions.

        Returns:
            tuple[DefaultPosition, bool]: (항목, 생성 여부) (Entry, whether it was created)
        """
        positions: list[dict[str, str]] = [
            {"name": p.name, "department": p.department.value} for p in data.positions
        ]
        name: str = data.name or f"{WEEKDAY_NAMES[data.weekday]} {data.period.value}"

        entry: DefaultPosition | None = await default_position_repository.get_by_key(
            db, store_id, data.weekday, data.period.value
        )
        if entry is None:
            entry = await default_position_repository.create(db, {
                "store_id": store_id,
                "name": name,
                "weekday": data.weekday,
                "period": data.period.value,
                "positions": positions,
                "created_by": created_by,
            })
            return entry, True

        entry.name = name
        entry.positions = positions
        entry.updated_at = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(entry)
        return entry, False

    async def delete(
        self,
        db: AsyncSession,
        store_id: UUID,
        entry_id: UUID,
    ) -> None:
        """카탈로그 항목을 삭제합니다.

        Delete a catalog entry owned by the caller's store.

        Raises:
            NotFoundError: 항목 없음 (Entry not found)
            ForbiddenError: 다른 매장 소유 (Entry owned by another store)
        """
        entry: DefaultPosition | None = await default_position_repository.get_by_id(db, entry_id)
        if entry is None:
            raise NotFoundError(f"기본 포지션을 찾을 수 없습니다 (Default positions {entry_id} not found)")
        if entry.store_id != store_id:
            raise ForbiddenError("다른 매장의 기본 포지션입니다 (Default positions belong to another store)")

        await db.delete(entry)
        await db.flush()
        log_activity("default_positions.deleted", store_id=store_id, entry_id=entry_id)

    async def seed_legacy_catalog(
        self,
        db: AsyncSession,
        store_id: UUID,
        created_by: UUID | None = None,
    ) -> int:
        """레거시 기본 카탈로그를 7일 모두에 채웁니다.

        Fill every missing (weekday, period) entry of a store with the
        legacy default catalog. Existing entries are left untouched.

        Returns:
            int: 생성된 항목 수 (Entries created)
        """
        created: int = 0
        for weekday in range(7):
            for period in LaborPeriod:
                positions: list[dict[str, str]] = legacy_positions(period)
                if not positions:
                    continue
                if await default_position_repository.get_by_key(db, store_id, weekday, period.value):
                    continue
                await default_position_repository.create(db, {
                    "store_id": store_id,
                    "name": f"{WEEKDAY_NAMES[weekday]} {period.value}",
                    "weekday": weekday,
                    "period": period.value,
                    "positions": positions,
                    "created_by": created_by,
                })
                created += 1
        return created

    @staticmethod
    def build_response(entry: DefaultPosition) -> DefaultPositionResponse:
        return DefaultPositionResponse(
            id=str(entry.id),
            store_id=str(entry.store_id),
            name=entry.name,
            weekday=entry.weekday,
            period=entry.period,
            positions=list(entry.positions or []),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


# 싱글턴 인스턴스 — Singleton instance
default_position_service: DefaultPositionService = DefaultPositionService()
