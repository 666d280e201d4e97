"""초기 데이터 시드 스크립트 — 데모 매장, 역할, 관리자, 기본 포지션 생성.

Seed script — Creates a demo store, its roles, a manager account and the
legacy default position catalog for all seven weekdays.

Usage:
    python -m app.seed

Creates:
    - 1개 매장: "Demo Store" (1 store)
    - 4개 역할: owner(1), general_manager(2), supervisor(3), staff(4) (4 roles)
    - 1개 관리자 계정: manager (GM, 1 general manager user)
    - 기본 포지션 카탈로그: FC/DT/KT × 요일 × 시간대 (Legacy catalog entries)
"""

import asyncio

from sqlalchemy import select

from app.database import async_session, engine, Base
from app.models import Role, Store, User
from app.services.default_position_service import default_position_service


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with a demo store.
    Creates tables if they don't exist, then inserts the store, the role
    hierarchy, a manager user and the default position catalog.

    Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if already seeded).
    """
    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        # 매장이 하나라도 있으면 건너뜀 (Already seeded when any store exists)
        result = await db.execute(select(Store).limit(1))
        if result.scalar_one_or_none():
            print("Already seeded. Skipping.")
            return

        store: Store = Store(name="Demo Store")
        db.add(store)
        await db.flush()  # flush로 store.id 생성 (Flush to generate store.id)

        # 역할 계층 생성 — Create role hierarchy (level 1=owner ~ 4=staff)
        roles: dict[str, Role] = {}
        for name, level in [("owner", 1), ("general_manager", 2), ("supervisor", 3), ("staff", 4)]:
            role: Role = Role(store_id=store.id, name=name, level=level)
            db.add(role)
            await db.flush()
            roles[name] = role

        manager: User = User(
            store_id=store.id,
            role_id=roles["general_manager"].id,
            username="manager",
            full_name="Store Manager",
            is_active=True,
        )
        db.add(manager)
        await db.flush()

        created: int = await default_position_service.seed_legacy_catalog(db, store.id, created_by=manager.id)

        await db.commit()
        print(f"Seeded: store={store.id}, manager={manager.id}, default position entries={created}")


if __name__ == "__main__":
    asyncio.run(seed())
