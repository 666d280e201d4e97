"""스케줄(셋업 시트) 관련 SQLAlchemy ORM 모델 정의.

Schedule (weekly setup sheet) SQLAlchemy ORM model definitions.
A schedule is stored as one row per store per week; the seven days with
their shifts/time blocks/positions and the uploaded roster are kept as a
JSON document. The typed view of that document lives in app.schemas.schedule.

Tables:
    - schedules: 주간 포지션 스케줄 (Weekly position schedules and templates)
"""

import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, DateTime, Date, Boolean, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, DocumentJSON


class Schedule(Base):
    """스케줄 모델 — 매장의 주간 포지션 배치 문서.

    Schedule model — Weekly roster of labor positions for one store.

    Status Flow:
        draft → published → archived, published → draft (unpublish)
        - draft: 작성 중, 자유롭게 수정 가능 (Editable)
        - published: 게시됨, 템플릿이 아니면 구조/배정 잠금 (Locked unless template)
        - archived: 보관됨, 다른 상태로 전환 불가 (Archived, terminal status)

    JSON Document Structure (days):
        [{"date": "2025-03-02",
          "layout": "fixed",
          "shifts": [{"type": "Opening", "start_time": "05:00", "end_time": "08:00",
                      "positions": [{"id": "pos-...", "name": "Register 1",
                                     "department": "FC", "status": "assigned",
                                     "assigned_employee": {"kind": "name", "name": "Jane Doe"}}]}]},
         {"date": "2025-03-03",
          "layout": "flexible",
          "time_blocks": [{"id": "block-...", "start_time": "06:00", "end_time": "10:30",
                           "positions": [...]}]}]

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        store_id: 매장 FK (Owning store)
        name: 스케줄 이름 (Display name)
        week_start_date: 주 시작일 (First calendar day of the week)
        week_end_date: 주 종료일 (Last calendar day of the week)
        status: 상태 (draft / published / archived)
        is_template: 템플릿 여부 (Reusable blueprint flag, exempt from publish lock)
        schema_version: 스키마 버전 (1 = fixed labor periods, 2 = flexible time blocks)
        days: 7일 문서 (Seven-day JSON document)
        uploaded_employees: 업로드된 직원 원본 (Verbatim imported roster rows)
        version: 문서 버전 (Incremented on every write; optional stale-write check)
        created_by: 작성자 FK (Creator)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "schedules"

    # 스케줄 고유 식별자 — Schedule unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 매장 FK — Owning store (CASCADE: 매장 삭제 시 스케줄도 삭제)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    # 스케줄 이름 — Display name
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="Position Setup")
    # 주 시작일 / 종료일 — Calendar week bounds (inclusive)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    # 상태 — "draft" → "published" → "archived"
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    # 템플릿 여부 — Template flag (orthogonal to status)
    is_template: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # 스키마 버전 — 1: fixed shifts, 2: flexible time blocks
    schema_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # 7일 문서 — Seven-day document (see class docstring)
    days: Mapped[list] = mapped_column(DocumentJSON, nullable=False, default=list)
    # 업로드 직원 — Raw uploaded roster rows [{name, time, day, department}]
    uploaded_employees: Mapped[list] = mapped_column(DocumentJSON, nullable=False, default=list)
    # 문서 버전 — Monotonic write counter
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # 작성자 FK — Creator
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_schedules_store_week", "store_id", "week_start_date"),
        Index("ix_schedules_store_template", "store_id", "is_template"),
    )
