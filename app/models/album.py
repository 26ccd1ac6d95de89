"""앨범 및 공유 링크 SQLAlchemy ORM 모델 정의.

Album and shared link SQLAlchemy ORM model definitions.

Tables:
    - albums: 사용자 앨범 (User albums, soft-deletable)
    - albums_assets: 앨범-에셋 연결 (Album membership of assets)
    - albums_shared_users: 앨범 공유 사용자 (Users an album is shared with)
    - shared_links: 공유 링크 (Public shared links for albums or individual assets)
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    LargeBinary,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.asset import AssetOrder

# 앨범-에셋 연결 테이블 — Album membership (CASCADE on both sides)
albums_assets: Table = Table(
    "albums_assets",
    Base.metadata,
    Column("album_id", Uuid, ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True),
    Column("asset_id", Uuid, ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)),
)

# 앨범 공유 사용자 테이블 — Users an album is shared with
albums_shared_users: Table = Table(
    "albums_shared_users",
    Base.metadata,
    Column("album_id", Uuid, ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class SharedLinkType(str, enum.Enum):
    """공유 링크 유형 — Shared link target type."""

    ALBUM = "album"
    INDIVIDUAL = "individual"


class Album(Base):
    """앨범 모델 — 사용자가 큐레이션한 에셋 모음.

    Album model — A user-curated collection of assets.
    Albums can be shared with other users (album_users) or through
    shared links. Soft-deleted albums (deleted_at set) are invisible.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        owner_id: 소유자 FK (Owner user)
        album_name: 앨범 이름 (Album display name)
        description: 앨범 설명 (Album description)
        album_thumbnail_asset_id: 썸네일 에셋 FK (Thumbnail asset, kept in sync by update_thumbnails)
        is_activity_enabled: 댓글/좋아요 허용 여부 (Activity feed toggle)
        order: 에셋 정렬 방향 (Asset order inside the album: "asc" | "desc")
        deleted_at: 소프트 삭제 일시 (Soft-delete timestamp)

    Relationships:
        owner: 소유자 (Owner user)
        album_users: 공유받은 사용자 목록 (Users the album is shared with)
        assets: 앨범 에셋 목록 (Member assets)
        shared_links: 공유 링크 목록 (Shared links pointing to the album)
    """

    __tablename__ = "albums"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소유자 FK — Owner (CASCADE: 사용자 삭제 시 앨범 삭제)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    album_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled Album")
    description: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 썸네일 에셋 — Thumbnail asset (SET NULL: 에셋 삭제 시 해제)
    album_thumbnail_asset_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True
    )
    is_activity_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    order: Mapped[str] = mapped_column(String(4), default=AssetOrder.DESC.value)

    # 관계 — Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    album_users = relationship("User", secondary=albums_shared_users)
    assets = relationship("Asset", secondary=albums_assets)
    shared_links = relationship("SharedLink", back_populates="album")


class SharedLink(Base):
    """공유 링크 모델 — 키를 가진 사람에게 앨범/에셋을 공개.

    Shared link model. Anyone holding the key can view the album (or
    individual assets) the link points to.

    Attributes:
        key: 링크 키 (Random link key, unique)
        type: 링크 유형 ("album" | "individual")
        album_id: 대상 앨범 FK (Target album for album links)
        expires_at: 만료 시각 (Expiry, NULL = never)
    """

    __tablename__ = "shared_links"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    album_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("albums.id", ondelete="CASCADE"), nullable=True)
    key: Mapped[bytes] = mapped_column(LargeBinary, unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=SharedLinkType.ALBUM.value)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    allow_upload: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_download: Mapped[bool] = mapped_column(Boolean, default=True)
    show_exif: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    album = relationship("Album", back_populates="shared_links")
