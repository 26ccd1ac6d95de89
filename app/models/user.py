"""사용자 및 파트너 SQLAlchemy ORM 모델 정의.

User and partner SQLAlchemy ORM model definitions.

Tables:
    - users: 라이브러리 소유자 계정 (Library owner accounts)
    - partners: 파트너 공유 관계 (Partner sharing — one user's library shown in another's timeline)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class User(Base):
    """사용자 모델 — 앨범과 에셋의 소유자.

    User model — Owner of albums and assets.
    Soft-deleted users (deleted_at set) are excluded from owner/shared-user joins.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        email: 로그인 이메일 (Login email, unique)
        name: 표시 이름 (Display name)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt-hashed password)
        is_admin: 관리자 여부 (Administrator flag, allows job control)
        storage_label: 저장소 라벨 (Storage folder label, optional)
        profile_image_path: 프로필 이미지 경로 (Profile image path)
        should_change_password: 비밀번호 변경 필요 여부 (Force password change on next login)
        status: 계정 상태 (Account status: "active" | "removing" | "deleted")
        quota_size_in_bytes: 저장 용량 한도 (Storage quota, None = unlimited)
        quota_usage_in_bytes: 사용 중인 용량 (Storage currently used)
        deleted_at: 소프트 삭제 일시 (Soft-delete timestamp)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 로그인 이메일 — Login email (unique)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # 표시 이름 — Display name
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # 비밀번호 해시 — bcrypt hashed password (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    storage_label: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    profile_image_path: Mapped[str] = mapped_column(String(500), default="")
    should_change_password: Mapped[bool] = mapped_column(Boolean, default=True)
    # 계정 상태 — "active" | "removing" | "deleted"
    status: Mapped[str] = mapped_column(String(20), default="active")
    quota_size_in_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    quota_usage_in_bytes: Mapped[int] = mapped_column(BigInteger, default=0)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    # 소프트 삭제 일시 — Soft-delete timestamp (NULL = live)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Partner(Base):
    """파트너 공유 모델 — shared_by 사용자의 라이브러리를 shared_with 사용자에게 공유.

    Partner sharing model. The shared_by user's library is visible to the
    shared_with user; in_timeline controls whether it is merged into the
    shared_with user's timeline and search results.

    Attributes:
        shared_by_id: 공유하는 사용자 (User sharing their library)
        shared_with_id: 공유받는 사용자 (User receiving access)
        in_timeline: 타임라인/검색 포함 여부 (Include in timeline and search)
    """

    __tablename__ = "partners"

    shared_by_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    shared_with_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    in_timeline: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    shared_by = relationship("User", foreign_keys=[shared_by_id])
    shared_with = relationship("User", foreign_keys=[shared_with_id])
