"""앨범 관련 Pydantic 요청/응답 스키마 정의.

Album-related Pydantic request/response schema definitions.
Covers album CRUD, membership changes, sharing and statistics.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.asset import AssetOrder
from app.schemas.asset import AssetResponse
from app.schemas.user import UserResponse


class AlbumCreate(BaseModel):
    """앨범 생성 요청 스키마.

    Album creation request schema.

    Attributes:
        album_name: 앨범 이름 (Album name)
        description: 설명 (Description)
        album_users: 공유할 사용자 ID 목록 (Users to share with)
        asset_ids: 추가할 에셋 ID 목록, 본인 소유만 추가됨 (Assets to add, own assets only)
    """

    album_name: str = Field(min_length=1)
    description: str = ""
    album_users: list[UUID] = []
    asset_ids: list[UUID] = []


class AlbumUpdate(BaseModel):
    """앨범 수정 요청 스키마 (부분 업데이트) — Partial album update."""

    album_name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    album_thumbnail_asset_id: UUID | None = None
    is_activity_enabled: bool | None = None
    order: AssetOrder | None = None


class BulkIdsRequest(BaseModel):
    """ID 목록 요청 — Bulk id request (add/remove assets)."""

    ids: list[UUID]


class BulkIdResult(BaseModel):
    """ID별 처리 결과.

    Per-id outcome of a bulk operation.

    Attributes:
        error: 실패 사유 (duplicate | not_found | no_permission), 성공 시 None
    """

    id: str
    success: bool
    error: str | None = None


class AddUsersRequest(BaseModel):
    """앨범 공유 사용자 추가 요청 — Users to share an album with."""

    shared_user_ids: list[UUID] = Field(min_length=1)


class AlbumCountResponse(BaseModel):
    """앨범 통계 응답 — Album counts for the current user."""

    owned: int
    shared: int
    not_shared: int


class AlbumResponse(BaseModel):
    """앨범 응답 스키마.

    Album response schema.

    Attributes:
        shared: 공유 사용자 또는 공유 링크 존재 여부 (Has shared users or links)
        has_shared_link: 공유 링크 존재 여부 (Has at least one shared link)
        asset_count: 활성 에셋 수 (Number of live assets)
        start_date: 가장 이른 촬영 시각 (Earliest file_created_at)
        end_date: 가장 늦은 촬영 시각 (Latest file_created_at)
        assets: 에셋 목록, 요청 시에만 채워짐 (Member assets, only when requested)
    """

    id: str
    owner_id: str
    owner: UserResponse | None = None
    album_name: str
    description: str
    created_at: datetime
    updated_at: datetime
    album_thumbnail_asset_id: str | None = None
    shared: bool
    has_shared_link: bool
    album_users: list[UserResponse] = []
    assets: list[AssetResponse] = []
    asset_count: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_activity_enabled: bool
    order: str
