"""메타데이터 레포지토리 — 검색 제안용 EXIF 값 조회.

Metadata Repository — Distinct EXIF values used for search suggestions.
Only live assets of the given owner contribute values.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.asset import Asset, Exif


class MetadataRepository:
    """EXIF 메타데이터 집계 쿼리 레포지토리 — Repository for EXIF value suggestions."""

    async def _distinct(self, db: AsyncSession, owner_id: UUID, column: Any, *filters: Any) -> list[str]:
        query: Select = (
            select(column)
            .distinct()
            .join(Asset, Asset.id == Exif.asset_id)
            .where(
                Asset.owner_id == owner_id,
                Asset.deleted_at.is_(None),
                column.is_not(None),
                column != "",
                *filters,
            )
            .order_by(column)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_countries(self, db: AsyncSession, owner_id: UUID) -> list[str]:
        """국가 목록 — Distinct countries."""
        return await self._distinct(db, owner_id, Exif.country)

    async def get_states(self, db: AsyncSession, owner_id: UUID, country: str | None = None) -> list[str]:
        """주/도 목록, 국가로 한정 가능 — Distinct states, optionally within a country."""
        filters = [Exif.country == country] if country else []
        return await self._distinct(db, owner_id, Exif.state, *filters)

    async def get_cities(
        self,
        db: AsyncSession,
        owner_id: UUID,
        country: str | None = None,
        state: str | None = None,
    ) -> list[str]:
        """도시 목록, 국가/주로 한정 가능 — Distinct cities, optionally within a country/state."""
        filters = []
        if country:
            filters.append(Exif.country == country)
        if state:
            filters.append(Exif.state == state)
        return await self._distinct(db, owner_id, Exif.city, *filters)

    async def get_camera_makes(self, db: AsyncSession, owner_id: UUID, model: str | None = None) -> list[str]:
        """카메라 제조사 목록 — Distinct camera makes, optionally for a model."""
        filters = [Exif.model == model] if model else []
        return await self._distinct(db, owner_id, Exif.make, *filters)

    async def get_camera_models(self, db: AsyncSession, owner_id: UUID, make: str | None = None) -> list[str]:
        """카메라 모델 목록 — Distinct camera models, optionally for a make."""
        filters = [Exif.make == make] if make else []
        return await self._distinct(db, owner_id, Exif.model, *filters)


# 싱글턴 인스턴스 — Singleton instance
metadata_repository: MetadataRepository = MetadataRepository()
