"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    user: 사용자 및 파트너 (User and Partner)
    asset: 에셋, EXIF, 임베딩, 작업 상태, 태그 (Asset, Exif, SmartSearch, AssetJobStatus, Tag)
    album: 앨범, 앨범 연결 테이블, 공유 링크 (Album, membership tables, SharedLink)
    person: 인물 및 지명 (Person and GeodataPlace)
"""

from app.models.user import User, Partner
from app.models.asset import Asset, AssetJobStatus, AssetOrder, AssetType, Exif, SmartSearch, Tag, tag_asset
from app.models.album import Album, SharedLink, SharedLinkType, albums_assets, albums_shared_users
from app.models.person import GeodataPlace, Person

__all__ = [
    "User", "Partner",
    "Asset", "AssetJobStatus", "AssetOrder", "AssetType", "Exif", "SmartSearch", "Tag", "tag_asset",
    "Album", "SharedLink", "SharedLinkType", "albums_assets", "albums_shared_users",
    "GeodataPlace", "Person",
]
