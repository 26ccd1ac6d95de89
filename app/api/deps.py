"""FastAPI 의존성 주입 모듈 — 인증 및 권한 검사.

FastAPI dependency injection module — Authentication and authorization.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sub" 필드로 삭제되지 않은 사용자를 조회
       (Live user is fetched using the payload "sub" field)

The authenticated ``User`` row is the auth context passed to services.
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.repositories.user_repository import user_repository
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — Extracts JWT from "Authorization: Bearer <token>"
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode the bearer JWT and return the authenticated user.

    Raises:
        UnauthorizedError: 토큰 누락/무효/만료, 리프레시 토큰 사용, 사용자 없음
                           (Missing, invalid or expired token, refresh token used, unknown user)
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    try:
        payload: dict = decode_token(credentials.credentials)
        # 리프레시 토큰을 액세스 토큰으로 사용하는 것을 거부
        # Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id = UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    user: User | None = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """관리자 전용 의존성 — Allow administrators only.

    Raises:
        ForbiddenError: 관리자가 아님 (Not an administrator)
    """
    if not current_user.is_admin:
        raise ForbiddenError("Admin access required")
    return current_user
