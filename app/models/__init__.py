"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    store: 매장 (Store)
    user: 역할 및 사용자/직원 디렉터리 (Role and User directory)
    schedule: 주간 포지션 스케줄 및 템플릿 (Weekly schedules and templates)
    default_position: 기본 포지션 카탈로그 (Default position catalog)
"""

from app.models.store import Store
from app.models.user import Role, User
from app.models.schedule import Schedule
from app.models.default_position import DefaultPosition

__all__ = [
    "Store",
    "Role", "User",
    "Schedule",
    "DefaultPosition",
]
