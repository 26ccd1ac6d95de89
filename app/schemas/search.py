"""검색 관련 Pydantic 요청/응답 스키마 정의.

Search-related Pydantic request/response schema definitions.
Covers metadata search, smart (CLIP) search, the deprecated combined
search, people/places lookups, suggestions and explore data, plus the
internal ``AssetSearchOptions`` passed from the service to the repository.
"""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.asset import AssetOrder, AssetType
from app.schemas.asset import AssetResponse


# === 요청 (Requests) ===

class BaseSearchDto(BaseModel):
    """메타데이터/스마트 검색 공통 필터.

    Filters shared by metadata and smart search.

    Attributes:
        with_archived: 보관된 에셋 포함 여부 (Include archived assets)
        with_deleted: 휴지통 에셋 포함 여부 (Include trashed assets)
        with_exif: 응답에 EXIF 포함 (Include EXIF in the response items)
        page: 페이지 번호, 1부터 (1-based page number)
        size: 페이지 크기 (Page size, 1..1000)
    """

    device_asset_id: str | None = None
    type: AssetType | None = None
    is_archived: bool | None = None
    is_favorite: bool | None = None
    is_offline: bool | None = None
    is_visible: bool | None = None
    with_archived: bool = False
    with_deleted: bool | None = None
    with_exif: bool | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    make: str | None = None
    model: str | None = None
    lens_model: str | None = None
    taken_before: datetime | None = None
    taken_after: datetime | None = None
    created_before: datetime | None = None
    created_after: datetime | None = None
    updated_before: datetime | None = None
    updated_after: datetime | None = None
    trashed_before: datetime | None = None
    trashed_after: datetime | None = None
    page: int | None = Field(default=None, ge=1)
    size: int | None = Field(default=None, ge=0, le=1000)


class MetadataSearchDto(BaseSearchDto):
    """메타데이터 검색 요청 스키마.

    Metadata search request. ``resize_path`` and ``webp_path`` are legacy
    names for ``preview_path`` and ``thumbnail_path``.
    """

    id: UUID | None = None
    checksum: str | None = None  # base64(28자) 또는 hex (Base64 when 28 chars, else hex)
    original_file_name: str | None = None
    original_path: str | None = None
    preview_path: str | None = None
    resize_path: str | None = None
    thumbnail_path: str | None = None
    webp_path: str | None = None
    encoded_video_path: str | None = None
    order: AssetOrder | None = None


class SmartSearchDto(BaseSearchDto):
    """스마트(CLIP) 검색 요청 스키마 — Smart search request (natural-language query)."""

    query: str = Field(min_length=1)


class SearchDto(BaseModel):
    """구 통합 검색 요청 스키마 (deprecated).

    Legacy combined search request. ``q`` and ``query`` are synonyms;
    ``smart`` or ``clip`` selects the CLIP strategy.
    """

    q: str | None = None
    query: str | None = None
    smart: bool | None = None
    clip: bool | None = None
    type: AssetType | None = None
    is_favorite: bool | None = None
    is_archived: bool | None = None
    with_archived: bool | None = None
    page: int | None = Field(default=None, ge=1)
    size: int | None = Field(default=None, ge=0, le=1000)


class SearchPeopleDto(BaseModel):
    """인물 검색 요청 — Person search by name."""

    name: str
    with_hidden: bool = False


class SearchPlacesDto(BaseModel):
    """장소 검색 요청 — Place search by name."""

    name: str


class SearchSuggestionType(str, enum.Enum):
    """검색 제안 유형 — Kind of value to suggest."""

    COUNTRY = "country"
    STATE = "state"
    CITY = "city"
    CAMERA_MAKE = "camera-make"
    CAMERA_MODEL = "camera-model"


class SearchSuggestionRequestDto(BaseModel):
    """검색 제안 요청 — Suggestion request with optional narrowing filters."""

    type: SearchSuggestionType
    country: str | None = None
    state: str | None = None
    make: str | None = None
    model: str | None = None


# === 내부 옵션 (Internal options) ===

class AssetSearchOptions(BaseModel):
    """레포지토리 검색 옵션 — 서비스가 DTO로부터 구성.

    Options handed to SearchRepository. Built by SearchService from the
    request DTO; ``user_ids`` is always set, ``embedding`` only for smart
    search.
    """

    user_ids: list[UUID]
    id: UUID | None = None
    device_asset_id: str | None = None
    checksum: bytes | None = None
    original_file_name: str | None = None
    original_path: str | None = None
    preview_path: str | None = None
    thumbnail_path: str | None = None
    encoded_video_path: str | None = None
    type: AssetType | None = None
    is_archived: bool | None = None
    is_favorite: bool | None = None
    is_offline: bool | None = None
    is_visible: bool | None = None
    with_archived: bool = False
    with_deleted: bool = False
    with_exif: bool = False
    city: str | None = None
    state: str | None = None
    country: str | None = None
    make: str | None = None
    model: str | None = None
    lens_model: str | None = None
    taken_before: datetime | None = None
    taken_after: datetime | None = None
    created_before: datetime | None = None
    created_after: datetime | None = None
    updated_before: datetime | None = None
    updated_after: datetime | None = None
    trashed_before: datetime | None = None
    trashed_after: datetime | None = None
    order_direction: AssetOrder = AssetOrder.DESC
    embedding: list[float] | None = None


# === 응답 (Responses) ===

class SearchFacetResponse(BaseModel):
    """검색 패싯 (현재 항상 빈 목록) — Search facet, currently never populated."""

    field_name: str
    counts: list[dict[str, Any]] = []


class SearchAlbumResponse(BaseModel):
    """검색 결과의 앨범 부분 — Album section of a search response (always empty)."""

    total: int = 0
    count: int = 0
    items: list[Any] = []
    facets: list[SearchFacetResponse] = []


class SearchAssetResponse(BaseModel):
    """검색 결과의 에셋 부분.

    Asset section of a search response.

    Attributes:
        total: 현재 페이지 항목 수 (Items on this page)
        count: 현재 페이지 항목 수 (Same as total)
        next_page: 다음 페이지 번호 문자열 또는 None (Next page number as string)
    """

    total: int
    count: int
    items: list[AssetResponse]
    facets: list[SearchFacetResponse] = []
    next_page: str | None = None


class SearchResponse(BaseModel):
    """검색 응답 스키마 — Search response (albums + assets)."""

    albums: SearchAlbumResponse
    assets: SearchAssetResponse


class PlacesResponse(BaseModel):
    """장소 응답 스키마 — Geodata place response."""

    name: str
    latitude: float
    longitude: float
    admin1_name: str | None = None
    admin2_name: str | None = None


class PersonResponse(BaseModel):
    """인물 응답 스키마 — Person response."""

    id: str
    name: str
    birth_date: str | None = None
    thumbnail_path: str
    is_hidden: bool
    updated_at: datetime | None = None


class SearchExploreItem(BaseModel):
    """탐색 항목 — Explore item: a field value with a representative asset."""

    value: str
    data: AssetResponse


class SearchExploreResponse(BaseModel):
    """탐색 응답 — Explore section grouped by field (``exif_info.city`` or ``tags``)."""

    field_name: str
    items: list[SearchExploreItem]
