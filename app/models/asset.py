"""에셋(사진/동영상) 관련 SQLAlchemy ORM 모델 정의.

Asset (photo/video) related SQLAlchemy ORM model definitions.
Assets are produced by the upload pipeline; this service reads them for
albums, search and duplicate detection, and writes only duplicate/job state.

Tables:
    - assets: 사진/동영상 파일 (Photo and video files)
    - exif: EXIF 메타데이터 + 역지오코딩 결과 (EXIF metadata and reverse geocoding)
    - smart_search: CLIP 임베딩 (CLIP embedding, float32 bytes)
    - asset_job_status: 에셋별 작업 처리 시각 (Per-asset job bookkeeping)
    - tags, tag_asset: 사용자 태그 (User tags and their assets)
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class AssetType(str, enum.Enum):
    """에셋 유형 — Asset media type."""

    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class AssetOrder(str, enum.Enum):
    """에셋 정렬 방향 — Asset sort direction (albums and metadata search)."""

    ASC = "asc"
    DESC = "desc"


# 태그-에셋 연결 테이블 — Tag to asset association
tag_asset: Table = Table(
    "tag_asset",
    Base.metadata,
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("asset_id", Uuid, ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True),
)


class Asset(Base):
    """에셋 모델 — 라이브러리의 사진 또는 동영상 한 건.

    Asset model — A single photo or video in a user's library.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        owner_id: 소유자 FK (Owner user)
        type: 미디어 유형 (IMAGE | VIDEO)
        checksum: 원본 파일 SHA1 (SHA1 of the original file, raw bytes)
        preview_path: 미리보기 이미지 경로 (Preview image path, required for duplicate detection)
        thumbnail_path: 썸네일 경로 (Thumbnail image path)
        file_created_at: 파일 생성 시각 (Capture/creation time, drives ordering)
        is_visible: 타임라인 노출 여부 (False for hidden parts such as live-photo videos)
        duplicate_id: 중복 그룹 ID (Duplicate group identifier, NULL if none)
        deleted_at: 휴지통 이동 시각 (Trash timestamp, NULL = live)
    """

    __tablename__ = "assets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소유자 FK — Owner (CASCADE: 사용자 삭제 시 에셋 삭제)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    device_asset_id: Mapped[str] = mapped_column(String(255), default="")
    type: Mapped[str] = mapped_column(String(10), default=AssetType.IMAGE.value)
    original_path: Mapped[str] = mapped_column(Text, nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    checksum: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, index=True)
    preview_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    encoded_video_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    file_modified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    local_date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True)
    is_offline: Mapped[bool] = mapped_column(Boolean, default=False)
    # 중복 그룹 ID — Shared by every asset detected as a duplicate of each other
    duplicate_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # 관계 — Relationships (항상 selectinload로 명시적 로드, always eager-loaded explicitly)
    owner = relationship("User")
    exif_info = relationship("Exif", uselist=False, back_populates="asset")
    smart_search = relationship("SmartSearch", uselist=False, back_populates="asset")
    job_status = relationship("AssetJobStatus", uselist=False, back_populates="asset")
    tags = relationship("Tag", secondary=tag_asset, back_populates="assets")


class Exif(Base):
    """EXIF 메타데이터 모델 — 에셋과 1:1.

    EXIF metadata model (1:1 with asset), including reverse-geocoded
    city/state/country used by explore, search suggestions and text search.
    """

    __tablename__ = "exif"

    asset_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True)
    make: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lens_model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    date_time_original: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exif_image_width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    exif_image_height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    iso: Mapped[int | None] = mapped_column(Integer, nullable=True)
    f_number: Mapped[float | None] = mapped_column(Float, nullable=True)
    exposure_time: Mapped[str | None] = mapped_column(String(32), nullable=True)
    focal_length: Mapped[float | None] = mapped_column(Float, nullable=True)

    asset = relationship("Asset", back_populates="exif_info")


class SmartSearch(Base):
    """CLIP 임베딩 모델 — float32 벡터를 bytes로 저장.

    CLIP embedding for an asset, stored as raw float32 bytes.
    """

    __tablename__ = "smart_search"

    asset_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True)
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    asset = relationship("Asset", back_populates="smart_search")


class AssetJobStatus(Base):
    """에셋 작업 상태 모델 — 작업별 마지막 처리 시각.

    Per-asset job bookkeeping. duplicates_detected_at marks assets already
    processed by duplicate detection so incremental runs skip them.
    """

    __tablename__ = "asset_job_status"

    asset_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True)
    duplicates_detected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    asset = relationship("Asset", back_populates="job_status")


class Tag(Base):
    """태그 모델 — 사용자별 태그.

    User tag, attached to assets through tag_asset.
    """

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tag_user_name"),
    )

    assets = relationship("Asset", secondary=tag_asset, back_populates="tags")
