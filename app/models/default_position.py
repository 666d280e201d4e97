"""기본 포지션 카탈로그 SQLAlchemy ORM 모델 정의.

Default position catalog SQLAlchemy ORM model definition.
One row per (store, weekday, labor period) holding the seed list of
positions used when a new schedule is created or a spreadsheet is imported.

Tables:
    - default_positions: 기본 포지션 카탈로그 (Default position seed lists)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, DocumentJSON


class DefaultPosition(Base):
    """기본 포지션 모델 — 요일·시간대별 시드 포지션 목록.

    Default positions for one weekday and labor period of a store.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        store_id: 매장 FK (Owning store)
        name: 카탈로그 이름 (Catalog label, e.g. "Weekday Lunch")
        weekday: 요일 인덱스 0=일요일 … 6=토요일 (Weekday index, Sunday = 0)
        period: 시간대 이름 (Labor period name, e.g. "Lunch")
        positions: 포지션 목록 JSON [{"name", "department"}] (Seed position list)
        created_by: 작성자 FK (Creator)

    Constraints:
        uq_default_positions_store_day_period: 매장+요일+시간대 고유
            (One catalog entry per store+weekday+period)
    """

    __tablename__ = "default_positions"

    # 고유 식별자 — Unique identifier (UUID v4)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 매장 FK — Owning store
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    # 카탈로그 이름 — Catalog label
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 요일 인덱스 — 0=Sunday … 6=Saturday
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    # 시간대 이름 — Labor period name
    period: Mapped[str] = mapped_column(String(20), nullable=False)
    # 포지션 목록 — [{"name": "Register 1", "department": "FC"}, ...]
    positions: Mapped[list] = mapped_column(DocumentJSON, nullable=False, default=list)
    # 작성자 FK — Creator
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("store_id", "weekday", "period", name="uq_default_positions_store_day_period"),
    )
