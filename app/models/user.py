"""사용자 및 역할 관련 SQLAlchemy ORM 모델 정의.

User and Role SQLAlchemy ORM model definitions.
The users table doubles as the employee directory consulted when a
position is assigned by id, and when assigned ids are resolved to names.

Tables:
    - roles: 매장 내 역할 (Roles within a store, level-based hierarchy)
    - users: 사용자 계정 (User accounts scoped to a store)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Role(Base):
    """역할 모델 — 매장 내 권한 수준을 정의.

    Role model — Defines permission levels within a store.
    Lower level numbers indicate higher authority:
        1 = owner, 2 = general_manager, 3 = supervisor, 4 = staff

    Constraints:
        uq_role_store_name: 매장 내 역할 이름 고유 (Unique role name per store)
    """

    __tablename__ = "roles"

    # 역할 고유 식별자 — Role unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 매장 FK — Parent store (CASCADE: 매장 삭제 시 역할도 삭제)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    # 역할 이름 — Role display name (e.g. "owner", "general_manager", "supervisor", "staff")
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 권한 레벨 — Permission level (1=owner 최고 권한, 4=staff 최저 권한)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("store_id", "name", name="uq_role_store_name"),
    )

    # 관계 — Relationships
    store = relationship("Store", back_populates="roles")
    users = relationship("User", back_populates="role")


class User(Base):
    """사용자 모델 — 시스템 사용자이자 직원 디렉터리 항목.

    User model — System account and employee directory entry.
    Each user belongs to exactly one store and has one role.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        store_id: 소속 매장 FK (Parent store foreign key)
        role_id: 역할 FK (Assigned role foreign key)
        username: 로그인 아이디 (Login username, unique per store)
        full_name: 실명 (Full display name shown on schedules)
        department: 기본 부서, 선택 (Home department code FC/DT/KT, optional)
        is_active: 활성 상태 (Active status)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Constraints:
        uq_user_store_username: 매장 내 사용자명 고유 (Unique username per store)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 매장 FK — Parent store (CASCADE: 매장 삭제 시 사용자도 삭제)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    # 역할 FK — Assigned role
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id"), nullable=False)
    # 로그인 아이디 — Login username (매장 내 고유, unique within store)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    # 실명 — User's full display name
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 기본 부서 — Home department code (FC / DT / KT)
    department: Mapped[str | None] = mapped_column(String(10), nullable=True)
    # 활성 상태 — Whether the user account is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("store_id", "username", name="uq_user_store_username"),
    )

    # 관계 — Relationships
    store = relationship("Store", back_populates="users")
    role = relationship("Role", back_populates="users")
