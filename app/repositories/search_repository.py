"""검색 레포지토리 — 메타데이터/스마트 검색, 중복 후보, 장소 검색.

Search Repository — Metadata filtering, CLIP embedding ranking, duplicate
candidates, place lookup and per-city representative assets.

Embedding distances are cosine distances computed with numpy over the
float32 vectors stored in ``smart_search.embedding``.
"""

from typing import Any, Sequence
from uuid import UUID

import numpy as np
from sqlalchemy import Select, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.asset import Asset, AssetOrder, AssetType, Exif, SmartSearch
from app.models.person import GeodataPlace
from app.repositories.base import LIKE_ESCAPE, escape_like
from app.schemas.duplicate import AssetDuplicateResult
from app.schemas.search import AssetSearchOptions
from app.utils.embedding import bytes_to_embedding, cosine_distances, embedding_to_bytes
from app.utils.pagination import Paginated, PaginationOptions, paginate, paginate_sequence

# 장소 검색 결과 최대 수 — Maximum number of places returned
PLACES_LIMIT: int = 20


class SearchRepository:
    """검색 쿼리를 담당하는 레포지토리.

    Repository for search queries over assets, embeddings and places.
    """

    def _search_query(self, options: AssetSearchOptions) -> Select:
        """검색 옵션으로 에셋 필터 쿼리를 구성합니다.

        Build the filtered asset query shared by metadata and smart search.

        Args:
            options: 검색 옵션 (Search options)

        Returns:
            Select: 정렬되지 않은 에셋 쿼리 (Unordered asset query)
        """
        query: Select = select(Asset).where(Asset.owner_id.in_(options.user_ids))
        if options.with_exif:
            query = query.options(selectinload(Asset.exif_info))

        exif_filters = [
            (Exif.city, options.city),
            (Exif.state, options.state),
            (Exif.country, options.country),
            (Exif.make, options.make),
            (Exif.model, options.model),
            (Exif.lens_model, options.lens_model),
        ]
        exif_clauses = [column == value for column, value in exif_filters if value is not None]
        if exif_clauses:
            query = query.join(Exif, Exif.asset_id == Asset.id).where(*exif_clauses)

        equality_filters = [
            (Asset.id, options.id),
            (Asset.device_asset_id, options.device_asset_id),
            (Asset.checksum, options.checksum),
            (Asset.original_path, options.original_path),
            (Asset.preview_path, options.preview_path),
            (Asset.thumbnail_path, options.thumbnail_path),
            (Asset.encoded_video_path, options.encoded_video_path),
            (Asset.type, options.type.value if options.type else None),
            (Asset.is_favorite, options.is_favorite),
            (Asset.is_offline, options.is_offline),
        ]
        query = query.where(*[column == value for column, value in equality_filters if value is not None])

        if options.original_file_name:
            query = query.where(
                func.lower(Asset.original_file_name).like(
                    f"%{escape_like(options.original_file_name.lower())}%", escape=LIKE_ESCAPE
                )
            )

        # 보관 — Archived assets are hidden unless asked for
        if options.is_archived is not None:
            query = query.where(Asset.is_archived.is_(options.is_archived))
        elif not options.with_archived:
            query = query.where(Asset.is_archived.is_(False))

        # 숨김 — Hidden parts (e.g. live-photo videos) are excluded by default
        is_visible: bool = True if options.is_visible is None else options.is_visible
        query = query.where(Asset.is_visible.is_(is_visible))

        ranges = [
            (Asset.file_created_at, options.taken_after, options.taken_before),
            (Asset.created_at, options.created_after, options.created_before),
            (Asset.updated_at, options.updated_after, options.updated_before),
            (Asset.deleted_at, options.trashed_after, options.trashed_before),
        ]
        for column, after, before in ranges:
            if after is not None:
                query = query.where(column >= after)
            if before is not None:
                query = query.where(column <= before)

        with_deleted: bool = (
            options.with_deleted
            or options.trashed_after is not None
            or options.trashed_before is not None
        )
        if not with_deleted:
            query = query.where(Asset.deleted_at.is_(None))

        return query

    async def search_metadata(
        self,
        db: AsyncSession,
        pagination: PaginationOptions,
        options: AssetSearchOptions,
    ) -> Paginated:
        """메타데이터 필터로 에셋을 검색합니다.

        Search assets by metadata filters, ordered by ``file_created_at``
        in ``options.order_direction``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            pagination: 페이지 옵션 (Page options)
            options: 검색 옵션 (Search options)

        Returns:
            Paginated: 에셋 페이지 (Page of assets)
        """
        query: Select = self._search_query(options)
        if options.order_direction == AssetOrder.ASC:
            query = query.order_by(Asset.file_created_at.asc(), Asset.id)
        else:
            query = query.order_by(Asset.file_created_at.desc(), Asset.id)
        return await paginate(db, query, pagination)

    async def search_smart(
        self,
        db: AsyncSession,
        pagination: PaginationOptions,
        options: AssetSearchOptions,
    ) -> Paginated:
        """임베딩 유사도로 에셋을 검색합니다.

        Rank filtered assets that have an embedding by cosine distance to
        ``options.embedding`` (closest first) and return one page.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            pagination: 페이지 옵션 (Page options)
            options: 검색 옵션, embedding 필수 (Search options, embedding required)

        Returns:
            Paginated: 에셋 페이지 (Page of assets)
        """
        if not options.embedding:
            raise ValueError("Smart search requires an embedding")

        query: Select = (
            self._search_query(options)
            .join(SmartSearch, SmartSearch.asset_id == Asset.id)
            .add_columns(SmartSearch.embedding)
        )
        rows: Sequence[Any] = (await db.execute(query)).all()
        if not rows:
            return Paginated(items=[], has_next_page=False)

        matrix: np.ndarray = np.vstack([bytes_to_embedding(row.embedding) for row in rows])
        distances: np.ndarray = cosine_distances(np.asarray(options.embedding, dtype="float32"), matrix)
        # 안정 정렬 — Stable so equal distances keep query order
        ranked: np.ndarray = np.argsort(distances, kind="stable")

        offset: int = (pagination.page - 1) * pagination.size
        window = ranked[offset:offset + pagination.size + 1]
        return paginate_sequence([rows[i][0] for i in window], pagination.size)

    async def search_duplicates(
        self,
        db: AsyncSession,
        asset_id: UUID,
        max_distance: float,
        user_ids: Sequence[UUID],
    ) -> list[AssetDuplicateResult]:
        """에셋과 임베딩 거리가 가까운 중복 후보를 찾습니다.

        Find visible, live assets of ``user_ids`` whose embedding lies within
        ``max_distance`` of the given asset's embedding, closest first.
        The asset itself is never a candidate.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            asset_id: 기준 에셋 ID (Asset to compare against)
            max_distance: 최대 코사인 거리 (Maximum cosine distance)
            user_ids: 후보 소유자 ID 목록 (Owners whose assets are candidates)

        Returns:
            list[AssetDuplicateResult]: 중복 후보 (Candidates sorted by distance)
        """
        source: SmartSearch | None = await db.get(SmartSearch, asset_id)
        if source is None:
            return []

        query: Select = (
            select(Asset.id, Asset.duplicate_id, SmartSearch.embedding)
            .join(SmartSearch, SmartSearch.asset_id == Asset.id)
            .where(
                Asset.owner_id.in_(user_ids),
                Asset.id != asset_id,
                Asset.is_visible.is_(True),
                Asset.deleted_at.is_(None),
            )
        )
        rows: Sequence[Any] = (await db.execute(query)).all()
        if not rows:
            return []

        matrix: np.ndarray = np.vstack([bytes_to_embedding(row.embedding) for row in rows])
        distances: np.ndarray = cosine_distances(bytes_to_embedding(source.embedding), matrix)

        matches: list[AssetDuplicateResult] = [
            AssetDuplicateResult(asset_id=row.id, duplicate_id=row.duplicate_id, distance=float(distance))
            for row, distance in zip(rows, distances)
            if distance <= max_distance
        ]
        matches.sort(key=lambda match: match.distance)
        return matches

    async def search_places(self, db: AsyncSession, name: str) -> list[GeodataPlace]:
        """이름으로 장소를 검색합니다 (접두 일치 우선).

        Search geodata places by name, case-insensitive. Prefix matches come
        first, then other substring matches; shorter names first within each.
        """
        lowered: str = escape_like(name.lower())
        place_name = func.lower(GeodataPlace.name)
        query: Select = (
            select(GeodataPlace)
            .where(place_name.like(f"%{lowered}%", escape=LIKE_ESCAPE))
            .order_by(
                case((place_name.like(f"{lowered}%", escape=LIKE_ESCAPE), 0), else_=1),
                func.length(GeodataPlace.name),
                GeodataPlace.name,
            )
            .limit(PLACES_LIMIT)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_assets_by_city(self, db: AsyncSession, user_ids: Sequence[UUID]) -> list[Asset]:
        """도시별로 가장 최근 에셋 하나씩을 조회합니다.

        Return one asset per distinct city: the most recent visible,
        non-archived, live image of ``user_ids`` taken there. Ordered by city.
        """
        ranked = (
            select(
                Asset.id.label("asset_id"),
                func.row_number()
                .over(partition_by=Exif.city, order_by=(Asset.file_created_at.desc(), Asset.id))
                .label("position"),
            )
            .join(Exif, Exif.asset_id == Asset.id)
            .where(
                Asset.owner_id.in_(user_ids),
                Asset.is_visible.is_(True),
                Asset.is_archived.is_(False),
                Asset.type == AssetType.IMAGE.value,
                Asset.deleted_at.is_(None),
                Exif.city.is_not(None),
            )
            .subquery()
        )
        query: Select = (
            select(Asset)
            .join(ranked, ranked.c.asset_id == Asset.id)
            .join(Exif, Exif.asset_id == Asset.id)
            .where(ranked.c.position == 1)
            .options(selectinload(Asset.exif_info))
            .order_by(Exif.city)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def upsert_embedding(
        self,
        db: AsyncSession,
        asset_id: UUID,
        embedding: Sequence[float],
    ) -> SmartSearch:
        """에셋 임베딩을 생성하거나 교체합니다.

        Create or replace the CLIP embedding stored for an asset.
        """
        row: SmartSearch | None = await db.get(SmartSearch, asset_id)
        blob: bytes = embedding_to_bytes(embedding)
        if row is None:
            row = SmartSearch(asset_id=asset_id, embedding=blob)
            db.add(row)
        else:
            row.embedding = blob
        await db.flush()
        return row


# 싱글턴 인스턴스 — Singleton instance
search_repository: SearchRepository = SearchRepository()
