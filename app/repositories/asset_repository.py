"""에셋 레포지토리 — 에셋 조회, 작업 상태, 탐색(explore) 집계.

Asset Repository — Asset lookups, job status bookkeeping, explore
aggregations and the legacy free-text search.
"""

import enum
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.asset import Asset, AssetJobStatus, AssetType, Exif, SmartSearch, Tag, tag_asset
from app.repositories.base import LIKE_ESCAPE, BaseRepository, escape_like
from app.utils.pagination import Paginated, PaginationOptions, paginate


class WithoutProperty(str, enum.Enum):
    """아직 처리되지 않은 작업 속성 — Job property an asset has not been processed for."""

    DUPLICATE = "duplicate"


class AssetRepository(BaseRepository[Asset]):
    """에셋 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the assets table.
    Trashed assets (deleted_at set) are excluded everywhere.
    """

    def __init__(self) -> None:
        """AssetRepository를 초기화합니다.

        Initialize the AssetRepository with the Asset model.
        """
        super().__init__(Asset)

    async def get_by_ids_with_all_relations(
        self,
        db: AsyncSession,
        asset_ids: Sequence[UUID],
    ) -> list[Asset]:
        """에셋들을 EXIF/태그와 함께 조회합니다.

        Retrieve live assets by ids with EXIF and tags loaded.
        """
        if not asset_ids:
            return []
        query: Select = (
            self._live(select(Asset).where(Asset.id.in_(asset_ids)))
            .options(selectinload(Asset.exif_info), selectinload(Asset.tags))
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_owners(
        self,
        db: AsyncSession,
        asset_ids: Sequence[UUID],
    ) -> dict[UUID, UUID]:
        """에셋 ID별 소유자 ID를 반환합니다.

        Map each live asset in ``asset_ids`` to its owner id. Missing or
        trashed assets are absent from the result.
        """
        if not asset_ids:
            return {}
        query: Select = select(Asset.id, Asset.owner_id).where(
            Asset.id.in_(asset_ids), Asset.deleted_at.is_(None)
        )
        result = await db.execute(query)
        return {row.id: row.owner_id for row in result.all()}

    async def get_all_paginated(
        self,
        db: AsyncSession,
        pagination: PaginationOptions,
        is_visible: bool | None = None,
    ) -> Paginated:
        """모든 활성 에셋을 페이지 단위로 조회합니다.

        Page through every live asset (optionally only visible ones),
        ordered by creation for stable paging.
        """
        query: Select = self._live(select(Asset))
        if is_visible is not None:
            query = query.where(Asset.is_visible.is_(is_visible))
        query = query.order_by(Asset.created_at, Asset.id)
        return await paginate(db, query, pagination)

    async def get_without(
        self,
        db: AsyncSession,
        pagination: PaginationOptions,
        prop: WithoutProperty,
    ) -> Paginated:
        """특정 작업이 아직 수행되지 않은 에셋을 페이지 단위로 조회합니다.

        Page through live assets that have not been processed for ``prop``.
        For DUPLICATE: visible assets that have an embedding and no
        ``duplicates_detected_at`` yet.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            pagination: 페이지 옵션 (Page options)
            prop: 미처리 작업 속성 (Job property)

        Returns:
            Paginated: 에셋 페이지 (Page of assets)
        """
        query: Select = self._live(select(Asset))
        if prop == WithoutProperty.DUPLICATE:
            detected = exists().where(
                AssetJobStatus.asset_id == Asset.id,
                AssetJobStatus.duplicates_detected_at.is_not(None),
            )
            query = (
                query.join(SmartSearch, SmartSearch.asset_id == Asset.id)
                .where(Asset.is_visible.is_(True), ~detected)
            )
        query = query.order_by(Asset.created_at, Asset.id)
        return await paginate(db, query, pagination)

    async def upsert_job_status(
        self,
        db: AsyncSession,
        asset_id: UUID,
        duplicates_detected_at: datetime,
    ) -> AssetJobStatus:
        """에셋 작업 상태를 생성하거나 갱신합니다.

        Create or update the asset's job status row.
        """
        status: AssetJobStatus | None = await db.get(AssetJobStatus, asset_id)
        if status is None:
            status = AssetJobStatus(asset_id=asset_id, duplicates_detected_at=duplicates_detected_at)
            db.add(status)
        else:
            status.duplicates_detected_at = duplicates_detected_at
        await db.flush()
        return status

    async def search_metadata(
        self,
        db: AsyncSession,
        query_text: str,
        user_ids: Sequence[UUID],
        num_results: int,
    ) -> list[Asset]:
        """파일명/EXIF 텍스트로 에셋을 검색합니다 (구 검색 API).

        Free-text search used by the legacy search endpoint: matches the
        original file name and EXIF city, state, country, description,
        make and model (case-insensitive substring). Newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            query_text: 검색어 (Search text)
            user_ids: 검색 대상 사용자 ID (Owners to search)
            num_results: 최대 결과 수 (Maximum number of results)

        Returns:
            list[Asset]: 검색 결과 (Matching assets)
        """
        pattern: str = f"%{escape_like(query_text.lower())}%"
        text_columns = (
            Asset.original_file_name,
            Exif.city,
            Exif.state,
            Exif.country,
            Exif.description,
            Exif.make,
            Exif.model,
        )
        query: Select = (
            self._live(select(Asset))
            .outerjoin(Exif, Exif.asset_id == Asset.id)
            .where(
                Asset.owner_id.in_(user_ids),
                Asset.is_visible.is_(True),
                Asset.is_archived.is_(False),
                or_(*[func.lower(column).like(pattern, escape=LIKE_ESCAPE) for column in text_columns]),
            )
            .options(selectinload(Asset.exif_info))
            .order_by(Asset.file_created_at.desc())
            .limit(num_results)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_asset_id_by_city(
        self,
        db: AsyncSession,
        owner_id: UUID,
        max_fields: int,
        min_assets_per_field: int,
    ) -> dict[str, Any]:
        """도시별 대표 에셋 ID를 반환합니다 (탐색 화면).

        For each city with at least ``min_assets_per_field`` visible,
        non-archived images of the user, pick the most recent asset.
        At most ``max_fields`` cities, most populated first.

        Returns:
            dict[str, Any]: {"field_name": "exif_info.city", "items": [{"value", "data"}]}
        """
        grouped = (
            select(Exif.city.label("value"), func.count(Asset.id).label("asset_count"))
            .join(Asset, Asset.id == Exif.asset_id)
            .where(*self._explore_filters(owner_id), Exif.city.is_not(None))
            .group_by(Exif.city)
            .having(func.count(Asset.id) >= min_assets_per_field)
            .order_by(func.count(Asset.id).desc(), Exif.city)
            .limit(max_fields)
        )
        rows = (await db.execute(grouped)).all()
        items: list[dict[str, Any]] = []
        for row in rows:
            latest = (
                select(Asset.id)
                .join(Exif, Exif.asset_id == Asset.id)
                .where(*self._explore_filters(owner_id), Exif.city == row.value)
                .order_by(Asset.file_created_at.desc())
                .limit(1)
            )
            asset_id: UUID | None = (await db.execute(latest)).scalar_one_or_none()
            if asset_id is not None:
                items.append({"value": row.value, "data": asset_id})
        return {"field_name": "exif_info.city", "items": items}

    async def get_asset_id_by_tag(
        self,
        db: AsyncSession,
        owner_id: UUID,
        max_fields: int,
        min_assets_per_field: int,
    ) -> dict[str, Any]:
        """태그별 대표 에셋 ID를 반환합니다 (탐색 화면).

        Same as :meth:`get_asset_id_by_city` but grouped by the user's tags.

        Returns:
            dict[str, Any]: {"field_name": "tags", "items": [{"value", "data"}]}
        """
        grouped = (
            select(Tag.name.label("value"), func.count(Asset.id).label("asset_count"))
            .join(tag_asset, tag_asset.c.tag_id == Tag.id)
            .join(Asset, Asset.id == tag_asset.c.asset_id)
            .where(*self._explore_filters(owner_id), Tag.user_id == owner_id)
            .group_by(Tag.name)
            .having(func.count(Asset.id) >= min_assets_per_field)
            .order_by(func.count(Asset.id).desc(), Tag.name)
            .limit(max_fields)
        )
        rows = (await db.execute(grouped)).all()
        items: list[dict[str, Any]] = []
        for row in rows:
            latest = (
                select(Asset.id)
                .join(tag_asset, tag_asset.c.asset_id == Asset.id)
                .join(Tag, Tag.id == tag_asset.c.tag_id)
                .where(*self._explore_filters(owner_id), Tag.user_id == owner_id, Tag.name == row.value)
                .order_by(Asset.file_created_at.desc())
                .limit(1)
            )
            asset_id: UUID | None = (await db.execute(latest)).scalar_one_or_none()
            if asset_id is not None:
                items.append({"value": row.value, "data": asset_id})
        return {"field_name": "tags", "items": items}

    async def get_duplicates(self, db: AsyncSession, user_id: UUID) -> list[Asset]:
        """중복 그룹에 속한 사용자 에셋을 조회합니다.

        Retrieve the user's live, visible assets that carry a duplicate id,
        ordered by group then capture time.
        """
        query: Select = (
            self._live(select(Asset))
            .where(
                Asset.owner_id == user_id,
                Asset.is_visible.is_(True),
                Asset.duplicate_id.is_not(None),
            )
            .options(selectinload(Asset.exif_info))
            .order_by(Asset.duplicate_id, Asset.file_created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def _explore_filters(owner_id: UUID) -> tuple[Any, ...]:
        return (
            Asset.owner_id == owner_id,
            Asset.deleted_at.is_(None),
            Asset.is_visible.is_(True),
            Asset.is_archived.is_(False),
            Asset.type == AssetType.IMAGE.value,
        )


# 싱글턴 인스턴스 — Singleton instance
asset_repository: AssetRepository = AssetRepository()
