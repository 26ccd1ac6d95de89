"""인증 서비스 — 로그인, 토큰 갱신, 내 정보 비즈니스 로직.

Auth Service — Business logic for login, token refresh and the current
user's profile. Tokens are stateless JWTs; a refresh token is accepted as
long as it is valid, unexpired and its user still exists.
"""

from typing import Any
from uuid import UUID

import jwt
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import user_repository
from app.schemas.auth import LoginRequest, RefreshRequest, TokenResponse, UserMeResponse
from app.utils.exceptions import UnauthorizedError
from app.utils.jwt import create_access_token, create_refresh_token, decode_token
from app.utils.password import verify_password


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    """

    def _build_jwt_payload(self, user: User) -> dict[str, Any]:
        """JWT 토큰 페이로드를 생성합니다 — Build the JWT payload for a user."""
        return {
            "sub": str(user.id),
            "email": user.email,
            "admin": user.is_admin,
        }

    def _generate_tokens(self, user: User) -> TokenResponse:
        payload: dict[str, Any] = self._build_jwt_payload(user)
        return TokenResponse(
            access_token=create_access_token(payload),
            refresh_token=create_refresh_token(payload),
        )

    async def login(self, db: AsyncSession, data: LoginRequest) -> TokenResponse:
        """이메일/비밀번호로 로그인합니다.

        Process login with email and password.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 로그인 요청 데이터 (Login request data)

        Returns:
            TokenResponse: 토큰 응답 (Token response)

        Raises:
            UnauthorizedError: 잘못된 인증 정보 (Invalid credentials)
        """
        user: User | None = await user_repository.get_by_email(db, data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("Failed login attempt for {}", data.email)
            raise UnauthorizedError("Incorrect email or password")
        return self._generate_tokens(user)

    async def refresh_tokens(self, db: AsyncSession, data: RefreshRequest) -> TokenResponse:
        """리프레시 토큰으로 새 토큰 쌍을 발급합니다.

        Issue a new token pair from a refresh token.

        Raises:
            UnauthorizedError: 유효하지 않거나 만료된 토큰, 또는 사용자 없음
                               (Invalid/expired token or unknown user)
        """
        try:
            payload: dict[str, Any] = decode_token(data.refresh_token)
            if payload.get("type") != "refresh":
                raise UnauthorizedError("Invalid token type")
            user_id = UUID(payload["sub"])
        except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
            raise UnauthorizedError("Invalid refresh token") from exc

        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        return self._generate_tokens(user)

    def get_me(self, user: User) -> UserMeResponse:
        """현재 로그인한 사용자 프로필을 반환합니다 — Profile of the authenticated user."""
        return UserMeResponse(
            id=str(user.id),
            email=user.email,
            name=user.name,
            is_admin=user.is_admin,
            storage_label=user.storage_label,
            profile_image_path=user.profile_image_path,
            should_change_password=user.should_change_password,
            quota_size_in_bytes=user.quota_size_in_bytes,
            quota_usage_in_bytes=user.quota_usage_in_bytes,
        )


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
