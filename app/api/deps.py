"""FastAPI 의존성 주입 모듈 — 인증 및 권한 검사.

FastAPI dependency injection module — Authentication and authorization.
Provides reusable dependencies for extracting the current user from JWT
and enforcing role-based access control (RBAC) on API endpoints.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sub"로 사용자를, "store"로 매장 범위를 확인
       (User fetched by "sub"; the "store" claim must match the user's store)

Authorization Flow (require_level):
    역할 레벨이 max_level 이하인지 확인, 아니면 403
    (Role level checked against max_level, 403 when it exceeds it)
"""

from typing import Annotated, Callable, Awaitable
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import decode_token
from app.models.user import User

# HTTP Bearer 토큰 추출기 — Authorization 헤더에서 JWT 토큰 추출
# (Extracts JWT token from Authorization: Bearer <token> header)
security: HTTPBearer = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.
    The token's store claim, when present, must match the user's store.

    Raises:
        UnauthorizedError(401): 토큰이 유효하지 않거나 만료됨, 사용자 없음/비활성
            (Invalid or expired token, unknown or inactive user)
    """
    try:
        payload: dict = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id: UUID = UUID(payload["sub"])
        store_claim: str | None = payload.get("store")
    except UnauthorizedError:
        raise
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token")

    result = await db.execute(
        select(User).options(selectinload(User.role)).where(User.id == user_id)
    )
    user: User | None = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    if store_claim is not None and str(user.store_id) != store_claim:
        raise UnauthorizedError("Token store does not match user")

    return user


def has_level(user: User, max_level: int) -> bool:
    """사용자 역할 레벨이 max_level 이하인지 (Whether the user's role level is at most max_level)."""
    return user.role is not None and user.role.level <= max_level


GM_LEVEL: int = 2
SUPERVISOR_LEVEL: int = 3


def require_level(max_level: int) -> Callable[..., Awaitable[User]]:
    """역할 레벨 기반 권한 검사 의존성 팩토리.

    Dependency factory that creates a FastAPI dependency enforcing
    a maximum role level. Lower level = higher authority.

    Level hierarchy:
        1 = owner (최고 권한, highest authority)
        2 = general_manager
        3 = supervisor
        4 = staff (최저 권한, lowest authority)

    Args:
        max_level: 허용되는 최대 역할 레벨 (Maximum allowed role level, inclusive)
    """
    async def _check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        # role은 get_current_user에서 selectinload로 이미 로드됨
        # Role is already eager-loaded via selectinload in get_current_user
        if not has_level(current_user, max_level):
            raise ForbiddenError()
        return current_user
    return _check


# 편의 의존성 — Pre-configured level dependencies for common role requirements
require_gm = require_level(GM_LEVEL)          # Owner + GM 허용 (Owner + General Manager, level <= 2)
require_supervisor = require_level(SUPERVISOR_LEVEL)  # Owner + GM + Supervisor 허용 (Level <= 3)
