"""매장 SQLAlchemy ORM 모델 정의.

Store SQLAlchemy ORM model definition.
A store is the tenant boundary for schedules, default positions and the
user/employee directory.

Tables:
    - stores: 매장 (Restaurant locations)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Store(Base):
    """매장 모델 — 스케줄과 기본 포지션의 소유 단위.

    Store model — Owner of schedules, default position catalogs and users.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 매장 이름 (Store name)
        address: 매장 주소 (Store address, optional)
        is_active: 활성 상태 (Active status flag)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Relationships:
        users: 매장 소속 사용자 (Directory users of this store)
        roles: 매장 역할 (Roles defined for this store)
    """

    __tablename__ = "stores"

    # 매장 고유 식별자 — Store unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 매장 이름 — Store display name
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 매장 주소 — Physical address of the store (optional)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 활성 상태 — Whether the store is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    users = relationship("User", back_populates="store", cascade="all, delete-orphan")
    roles = relationship("Role", back_populates="store", cascade="all, delete-orphan")
