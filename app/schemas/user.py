"""사용자 관련 Pydantic 응답 스키마 정의.

User-related Pydantic response schema definitions.
"""

from pydantic import BaseModel

from app.models.user import User


class UserResponse(BaseModel):
    """사용자 요약 응답 스키마 — Short user representation (album owner, shared users).

    Attributes:
        id: 사용자 UUID (User identifier)
        email: 이메일 (Email address)
        name: 표시 이름 (Display name)
        profile_image_path: 프로필 이미지 경로 (Profile image path)
    """

    id: str
    email: str
    name: str
    profile_image_path: str = ""


def map_user(user: User) -> UserResponse:
    """사용자 모델을 응답 스키마로 변환합니다 — Convert a User row to a UserResponse."""
    return UserResponse(
        id=str(user.id),
        email=user.email,
        name=user.name,
        profile_image_path=user.profile_image_path,
    )
