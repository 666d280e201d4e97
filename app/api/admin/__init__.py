"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all admin-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - schedules: 주간 스케줄 관리 (Weekly schedules, lifecycle, import)
    - schedule_structure: 요일별 타임 블록·포지션·배정 (Per-day blocks, positions, assignment)
    - default_positions: 매장 포지션 카탈로그 (Store position catalog)
"""

from fastapi import APIRouter

from app.api.admin.schedules import router as schedules_router
from app.api.admin.schedule_structure import router as schedule_structure_router
from app.api.admin.default_positions import router as default_positions_router

admin_router: APIRouter = APIRouter()

# 스케줄: /schedules 하위 (Weekly schedules)
admin_router.include_router(schedules_router, prefix="/schedules", tags=["Schedules"])
# 스케줄 구조: /schedules/{schedule_id}/days/... (nested under schedules)
admin_router.include_router(schedule_structure_router, tags=["Schedule Structure"])
# 기본 포지션: /default-positions 하위 (Position catalog)
admin_router.include_router(default_positions_router, prefix="/default-positions", tags=["Default Positions"])
