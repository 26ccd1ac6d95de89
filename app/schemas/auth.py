"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers login, token issuance/refresh, and current user info.
"""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Login request schema.

    Attributes:
        email: 이메일 (Login email, case-insensitive)
        password: 비밀번호 (Plain text password, verified against bcrypt hash)
    """

    email: str
    password: str  # 평문, 서버에서 bcrypt 해시와 비교 (Plain text, compared to bcrypt hash)


class TokenResponse(BaseModel):
    """JWT 토큰 발급 응답 스키마.

    JWT token issuance response schema.
    Returned after successful login or token refresh.
    """

    access_token: str  # 만료: 30분 기본 (Access token, default TTL: 30min)
    refresh_token: str  # 만료: 7일 기본 (Refresh token, default TTL: 7 days)
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    """토큰 갱신 요청 스키마 — Exchanges a refresh token for a new token pair."""

    refresh_token: str


class UserMeResponse(BaseModel):
    """현재 사용자 정보 응답 스키마 (GET /me).

    Current user info response schema for the /me endpoint.
    """

    id: str
    email: str
    name: str
    is_admin: bool
    storage_label: str | None
    profile_image_path: str
    should_change_password: bool
    quota_size_in_bytes: int | None
    quota_usage_in_bytes: int
