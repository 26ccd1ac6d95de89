"""인물 및 지명 SQLAlchemy ORM 모델 정의.

Person and place SQLAlchemy ORM model definitions, read by search.

Tables:
    - person: 얼굴 인식으로 묶인 인물 (People clustered by face recognition)
    - geodata_places: 역지오코딩 지명 사전 (Reverse-geocoding place gazetteer)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Person(Base):
    """인물 모델 — 사용자가 이름을 붙일 수 있는 얼굴 그룹.

    Person model — A face cluster the user may name or hide.
    """

    __tablename__ = "person"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    thumbnail_path: Mapped[str] = mapped_column(Text, default="")
    # 숨김 여부 — Hidden people are excluded from search unless requested
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class GeodataPlace(Base):
    """지명 모델 — 도시 단위 지명과 좌표.

    Gazetteer entry (city-level place with coordinates and admin regions).
    """

    __tablename__ = "geodata_places"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    country_code: Mapped[str] = mapped_column(String(2), nullable=False)
    admin1_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    admin2_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
