"""검색 서비스 — 메타데이터/스마트 검색, 탐색, 제안, 중복 탐지 작업.

Search Service — Metadata and smart (CLIP) search, explore data, search
suggestions, people/place lookup and the duplicate-detection jobs.

Every search runs over the caller's assets plus those of partners who
share their library into the caller's timeline.
"""

import base64
import binascii
import enum
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.asset import Asset, AssetOrder
from app.models.user import Partner, User
from app.repositories.asset_duplicate_repository import asset_duplicate_repository
from app.repositories.asset_repository import WithoutProperty, asset_repository
from app.repositories.metadata_repository import metadata_repository
from app.repositories.partner_repository import partner_repository
from app.repositories.person_repository import person_repository
from app.repositories.search_repository import search_repository
from app.schemas.asset import AssetResponse, map_asset
from app.schemas.duplicate import AssetDuplicateResult
from app.schemas.search import (
    AssetSearchOptions,
    MetadataSearchDto,
    PersonResponse,
    PlacesResponse,
    SearchAlbumResponse,
    SearchAssetResponse,
    SearchDto,
    SearchExploreItem,
    SearchExploreResponse,
    SearchPeopleDto,
    SearchPlacesDto,
    SearchResponse,
    SearchSuggestionRequestDto,
    SearchSuggestionType,
    SmartSearchDto,
)
from app.services.job_service import JobItem, JobName, JobStatus, job_queue
from app.services.machine_learning_service import machine_learning_service
from app.services.system_config_service import FeatureFlag, SystemConfig, system_config_service
from app.utils.exceptions import BadRequestError
from app.utils.pagination import Paginated, PaginationOptions, use_pagination

# 기본 페이지 크기 — Default page sizes
METADATA_PAGE_SIZE: int = 250
SMART_PAGE_SIZE: int = 100

# 탐색 화면 옵션 — Explore options
EXPLORE_MAX_FIELDS: int = 12
EXPLORE_MIN_ASSETS_PER_FIELD: int = 5

# base64로 인코딩된 SHA1 길이 — Length of a base64 encoded SHA1
BASE64_SHA1_LENGTH: int = 28

# DTO에서 직접 옮기지 않는 필드 — Fields translated by hand into AssetSearchOptions
_TRANSLATED_FIELDS: set[str] = {
    "page",
    "size",
    "query",
    "checksum",
    "preview_path",
    "resize_path",
    "thumbnail_path",
    "webp_path",
    "order",
    "with_deleted",
    "with_exif",
}


class SearchStrategy(str, enum.Enum):
    """구 검색 API의 전략 — Strategy of the legacy search endpoint."""

    TEXT = "text"
    SMART = "smart"


class SearchService:
    """검색 관련 비즈니스 로직을 처리하는 서비스.

    Service handling search business logic and the duplicate-detection
    job handlers.
    """

    async def get_user_ids_to_search(self, db: AsyncSession, auth: User) -> list[UUID]:
        """검색 대상 사용자 ID 목록을 반환합니다.

        The caller plus every partner who shares their library into the
        caller's timeline.
        """
        partners: list[Partner] = await partner_repository.get_all(db, auth.id)
        partner_ids: list[UUID] = [
            partner.shared_by_id
            for partner in partners
            if partner.shared_with_id == auth.id and partner.in_timeline
        ]
        return [auth.id, *partner_ids]

    def _map_response(self, assets: list[Asset], next_page: str | None) -> SearchResponse:
        items: list[AssetResponse] = [map_asset(asset) for asset in assets]
        return SearchResponse(
            albums=SearchAlbumResponse(),
            assets=SearchAssetResponse(
                total=len(items),
                count=len(items),
                items=items,
                next_page=next_page,
            ),
        )

    @staticmethod
    def _next_page(page: int, result: Paginated) -> str | None:
        return str(page + 1) if result.has_next_page else None

    async def search_person(self, db: AsyncSession, auth: User, dto: SearchPeopleDto) -> list[PersonResponse]:
        """이름으로 인물을 검색합니다 — Search the caller's people by name."""
        people = await person_repository.get_by_name(db, auth.id, dto.name, with_hidden=dto.with_hidden)
        return [
            PersonResponse(
                id=str(person.id),
                name=person.name,
                birth_date=person.birth_date.isoformat() if person.birth_date else None,
                thumbnail_path=person.thumbnail_path,
                is_hidden=person.is_hidden,
                updated_at=person.updated_at,
            )
            for person in people
        ]

    async def search_places(self, db: AsyncSession, dto: SearchPlacesDto) -> list[PlacesResponse]:
        """이름으로 장소를 검색합니다 — Search geodata places by name."""
        places = await search_repository.search_places(db, dto.name)
        return [
            PlacesResponse(
                name=place.name,
                latitude=place.latitude,
                longitude=place.longitude,
                admin1_name=place.admin1_name,
                admin2_name=place.admin2_name,
            )
            for place in places
        ]

    async def get_explore_data(self, db: AsyncSession, auth: User) -> list[SearchExploreResponse]:
        """탐색 화면 데이터를 조회합니다.

        Build the explore sections (cities, tags). Each section lists field
        values with a representative asset; referenced assets are loaded in
        one query.

        Raises:
            BadRequestError: 검색 기능 비활성 (Search disabled)
        """
        system_config_service.require_feature(FeatureFlag.SEARCH)

        # AsyncSession은 동시 쿼리를 허용하지 않으므로 순차 실행
        # An AsyncSession runs one statement at a time, so sections load in turn
        sections: list[dict[str, Any]] = [
            await asset_repository.get_asset_id_by_city(
                db, auth.id, EXPLORE_MAX_FIELDS, EXPLORE_MIN_ASSETS_PER_FIELD
            ),
            await asset_repository.get_asset_id_by_tag(
                db, auth.id, EXPLORE_MAX_FIELDS, EXPLORE_MIN_ASSETS_PER_FIELD
            ),
        ]
        asset_ids: list[UUID] = [item["data"] for section in sections for item in section["items"]]
        assets = await asset_repository.get_by_ids_with_all_relations(db, asset_ids)
        by_id: dict[UUID, AssetResponse] = {asset.id: map_asset(asset) for asset in assets}

        return [
            SearchExploreResponse(
                field_name=section["field_name"],
                items=[
                    SearchExploreItem(value=item["value"], data=by_id[item["data"]])
                    for item in section["items"]
                    if item["data"] in by_id
                ],
            )
            for section in sections
        ]

    @staticmethod
    def _decode_checksum(checksum: str) -> bytes:
        try:
            if len(checksum) == BASE64_SHA1_LENGTH:
                return base64.b64decode(checksum, validate=True)
            return bytes.fromhex(checksum)
        except (binascii.Error, ValueError) as exc:
            raise BadRequestError("Invalid checksum") from exc

    async def search_metadata(self, db: AsyncSession, auth: User, dto: MetadataSearchDto) -> SearchResponse:
        """메타데이터 필터로 에셋을 검색합니다.

        Search assets by metadata. ``checksum`` is base64 when 28 characters
        long, hex otherwise; ``resize_path``/``webp_path`` are fallbacks for
        ``preview_path``/``thumbnail_path``. Page defaults to 1, size to 250.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            auth: 현재 사용자 (Current user)
            dto: 검색 요청 (Search request)

        Returns:
            SearchResponse: 검색 결과 (Search result with next_page)
        """
        user_ids: list[UUID] = await self.get_user_ids_to_search(db, auth)
        page: int = dto.page or 1
        size: int = dto.size or METADATA_PAGE_SIZE

        options = AssetSearchOptions(
            **dto.model_dump(exclude=_TRANSLATED_FIELDS),
            user_ids=user_ids,
            checksum=self._decode_checksum(dto.checksum) if dto.checksum else None,
            preview_path=dto.preview_path or dto.resize_path,
            thumbnail_path=dto.thumbnail_path or dto.webp_path,
            order_direction=dto.order or AssetOrder.DESC,
            with_deleted=bool(dto.with_deleted),
            with_exif=bool(dto.with_exif),
        )
        result: Paginated = await search_repository.search_metadata(
            db, PaginationOptions(page=page, size=size), options
        )
        return self._map_response(result.items, self._next_page(page, result))

    async def _encode_query(self, query: str) -> list[float]:
        config: SystemConfig = system_config_service.get_config()
        return await machine_learning_service.encode_text(
            config.machine_learning.url, query, config.machine_learning.clip
        )

    async def search_smart(self, db: AsyncSession, auth: User, dto: SmartSearchDto) -> SearchResponse:
        """자연어 질의로 에셋을 검색합니다 (CLIP).

        Encode the query with the CLIP model and rank assets by embedding
        distance. Page defaults to 1, size to 100.

        Raises:
            BadRequestError: 스마트 검색 비활성 (Smart search disabled)
            BadGatewayError: 머신러닝 서버 오류 (Machine-learning server failure)
        """
        system_config_service.require_feature(FeatureFlag.SMART_SEARCH)
        user_ids: list[UUID] = await self.get_user_ids_to_search(db, auth)
        embedding: list[float] = await self._encode_query(dto.query)
        page: int = dto.page or 1
        size: int = dto.size or SMART_PAGE_SIZE

        options = AssetSearchOptions(
            **dto.model_dump(exclude=_TRANSLATED_FIELDS),
            user_ids=user_ids,
            embedding=embedding,
            with_deleted=bool(dto.with_deleted),
            with_exif=bool(dto.with_exif),
        )
        result: Paginated = await search_repository.search_smart(
            db, PaginationOptions(page=page, size=size), options
        )
        return self._map_response(result.items, self._next_page(page, result))

    async def get_assets_by_city(self, db: AsyncSession, auth: User) -> list[AssetResponse]:
        """도시별 대표 에셋을 조회합니다 — One recent asset per city of the searchable users."""
        user_ids: list[UUID] = await self.get_user_ids_to_search(db, auth)
        assets = await search_repository.get_assets_by_city(db, user_ids)
        return [map_asset(asset) for asset in assets]

    async def get_search_suggestions(
        self,
        db: AsyncSession,
        auth: User,
        dto: SearchSuggestionRequestDto,
    ) -> list[str]:
        """검색 제안 값을 조회합니다.

        Return distinct, sorted values of the requested kind from the
        caller's EXIF data, narrowed by the optional filters.
        """
        if dto.type == SearchSuggestionType.COUNTRY:
            return await metadata_repository.get_countries(db, auth.id)
        if dto.type == SearchSuggestionType.STATE:
            return await metadata_repository.get_states(db, auth.id, dto.country)
        if dto.type == SearchSuggestionType.CITY:
            return await metadata_repository.get_cities(db, auth.id, dto.country, dto.state)
        if dto.type == SearchSuggestionType.CAMERA_MAKE:
            return await metadata_repository.get_camera_makes(db, auth.id, dto.model)
        return await metadata_repository.get_camera_models(db, auth.id, dto.make)

    async def search(self, db: AsyncSession, auth: User, dto: SearchDto) -> SearchResponse:
        """구 통합 검색 (deprecated).

        Legacy search endpoint. ``q``/``query`` is required; ``smart`` or
        ``clip`` selects CLIP search (paged, size 100), otherwise a free-text
        match over file names and EXIF text (up to ``size`` or 250 results,
        no next page).

        Raises:
            BadRequestError: 검색어 누락 또는 기능 비활성 (Missing query or feature disabled)
        """
        system_config_service.require_feature(FeatureFlag.SEARCH)
        query: str | None = dto.q or dto.query
        if not query:
            raise BadRequestError("Missing query")

        strategy: SearchStrategy = SearchStrategy.SMART if dto.smart or dto.clip else SearchStrategy.TEXT
        user_ids: list[UUID] = await self.get_user_ids_to_search(db, auth)
        page: int = dto.page or 1

        if strategy == SearchStrategy.SMART:
            system_config_service.require_feature(FeatureFlag.SMART_SEARCH)
            embedding: list[float] = await self._encode_query(query)
            options = AssetSearchOptions(
                user_ids=user_ids,
                embedding=embedding,
                type=dto.type,
                is_favorite=dto.is_favorite,
                is_archived=dto.is_archived,
                with_archived=bool(dto.with_archived),
            )
            result: Paginated = await search_repository.search_smart(
                db, PaginationOptions(page=page, size=dto.size or SMART_PAGE_SIZE), options
            )
            return self._map_response(result.items, self._next_page(page, result))

        assets: list[Asset] = await asset_repository.search_metadata(
            db, query, user_ids, dto.size or METADATA_PAGE_SIZE
        )
        return self._map_response(assets, None)

    # ------------------------------------------------------------------
    # 중복 탐지 작업 — Duplicate detection jobs
    # ------------------------------------------------------------------
    @staticmethod
    def _duplicate_detection_enabled(config: SystemConfig) -> bool:
        return config.machine_learning.enabled and config.machine_learning.clip.enabled

    async def handle_queue_search_duplicates(self, db: AsyncSession, data: dict[str, Any]) -> JobStatus:
        """중복 탐지 대상 에셋을 작업 큐에 넣습니다.

        Queue a DUPLICATE_DETECTION job per asset. With ``force`` every
        visible asset is queued, otherwise only assets not yet processed.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: {"force": bool}

        Returns:
            JobStatus: ML/CLIP 비활성이면 SKIPPED (SKIPPED when ML or CLIP is disabled)
        """
        if not self._duplicate_detection_enabled(system_config_service.get_config()):
            return JobStatus.SKIPPED

        force: bool = bool(data.get("force", False))

        async def fetch(pagination: PaginationOptions) -> Paginated:
            if force:
                return await asset_repository.get_all_paginated(db, pagination, is_visible=True)
            return await asset_repository.get_without(db, pagination, WithoutProperty.DUPLICATE)

        queued: int = 0
        async for assets in use_pagination(settings.JOBS_ASSET_PAGINATION_SIZE, fetch):
            await job_queue.queue_all(
                JobItem(name=JobName.DUPLICATE_DETECTION, data={"id": str(asset.id)}) for asset in assets
            )
            queued += len(assets)

        logger.info("Queued duplicate detection for {} assets (force={})", queued, force)
        return JobStatus.SUCCESS

    async def handle_search_duplicates(self, db: AsyncSession, data: dict[str, Any]) -> JobStatus:
        """에셋 하나에 대한 중복 탐지를 수행합니다.

        Detect near-duplicates of one asset among its owner's assets and
        merge them into one duplicate group.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: {"id": 에셋 ID (asset id)}

        Returns:
            JobStatus: SUCCESS, 건너뛴 경우 SKIPPED, 처리 불가 시 FAILED
                       (SUCCESS, SKIPPED when not applicable, FAILED when impossible)
        """
        config: SystemConfig = system_config_service.get_config()
        asset_id = UUID(str(data["id"]))
        asset: Asset | None = await asset_repository.get_by_id(db, asset_id)
        if asset is None:
            logger.error("Asset {} not found", asset_id)
            return JobStatus.FAILED

        if not asset.is_visible:
            logger.debug("Asset {} is not visible, skipping", asset_id)
            await asset_repository.upsert_job_status(db, asset_id, datetime.now(timezone.utc))
            return JobStatus.SKIPPED

        if asset.duplicate_id is not None:
            logger.debug("Asset {} is already marked as a duplicate, skipping", asset_id)
            return JobStatus.SKIPPED

        if not asset.preview_path:
            logger.warning("Asset {} is missing preview image", asset_id)
            return JobStatus.FAILED

        # 임베딩이 없으면 후보도 없음 — Without an embedding there are no matches
        matches: list[AssetDuplicateResult] = await search_repository.search_duplicates(
            db,
            asset_id,
            config.machine_learning.clip.duplicate_threshold,
            [asset.owner_id],
        )

        if matches:
            existing_ids: list[UUID] = [match.duplicate_id for match in matches if match.duplicate_id]
            duplicate_id: UUID = existing_ids[0] if existing_ids else uuid4()
            asset_ids: list[UUID] = [match.asset_id for match in matches] + [asset_id]
            await asset_duplicate_repository.upsert(db, duplicate_id, asset_ids, existing_ids)
            logger.debug("Found {} duplicates for asset {} (group {})", len(matches), asset_id, duplicate_id)

        await asset_repository.upsert_job_status(db, asset_id, datetime.now(timezone.utc))
        return JobStatus.SUCCESS


# 싱글턴 인스턴스 — Singleton instance
search_service: SearchService = SearchService()

job_queue.register(JobName.QUEUE_DUPLICATE_DETECTION, search_service.handle_queue_search_duplicates)
job_queue.register(JobName.DUPLICATE_DETECTION, search_service.handle_search_duplicates)
