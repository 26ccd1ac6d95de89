"""검색 라우터 — 메타데이터/스마트 검색, 탐색, 제안, 인물/장소 검색.

Search Router — Metadata and smart search, explore data, suggestions,
people and place lookup, plus the deprecated combined search.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.asset import AssetType
from app.models.user import User
from app.schemas.asset import AssetResponse
from app.schemas.search import (
    MetadataSearchDto,
    PersonResponse,
    PlacesResponse,
    SearchDto,
    SearchExploreResponse,
    SearchPeopleDto,
    SearchPlacesDto,
    SearchResponse,
    SearchSuggestionRequestDto,
    SearchSuggestionType,
    SmartSearchDto,
)
from app.services.search_service import search_service

router: APIRouter = APIRouter()


@router.get("/", response_model=SearchResponse, deprecated=True)
async def search(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    q: Annotated[str | None, Query()] = None,
    query: Annotated[str | None, Query()] = None,
    smart: Annotated[bool | None, Query()] = None,
    clip: Annotated[bool | None, Query()] = None,
    type: Annotated[AssetType | None, Query()] = None,
    is_favorite: Annotated[bool | None, Query()] = None,
    is_archived: Annotated[bool | None, Query()] = None,
    with_archived: Annotated[bool | None, Query()] = None,
    page: Annotated[int | None, Query(ge=1)] = None,
    size: Annotated[int | None, Query(ge=0, le=1000)] = None,
) -> SearchResponse:
    """구 통합 검색 (deprecated).

    Legacy search: free text by default, CLIP when ``smart`` or ``clip``.
    """
    dto = SearchDto(
        q=q,
        query=query,
        smart=smart,
        clip=clip,
        type=type,
        is_favorite=is_favorite,
        is_archived=is_archived,
        with_archived=with_archived,
        page=page,
        size=size,
    )
    return await search_service.search(db, current_user, dto)


@router.post("/metadata", response_model=SearchResponse)
async def search_metadata(
    data: MetadataSearchDto,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> SearchResponse:
    """메타데이터 검색 — Search assets by metadata filters."""
    return await search_service.search_metadata(db, current_user, data)


@router.post("/smart", response_model=SearchResponse)
async def search_smart(
    data: SmartSearchDto,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> SearchResponse:
    """스마트 검색 — Search assets with a natural-language query (CLIP)."""
    return await search_service.search_smart(db, current_user, data)


@router.get("/explore", response_model=list[SearchExploreResponse])
async def get_explore_data(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[SearchExploreResponse]:
    """탐색 데이터 — Cities and tags with representative assets."""
    return await search_service.get_explore_data(db, current_user)


@router.get("/person", response_model=list[PersonResponse])
async def search_person(
    name: Annotated[str, Query()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    with_hidden: Annotated[bool, Query()] = False,
) -> list[PersonResponse]:
    """인물 검색 — Search the caller's people by name."""
    return await search_service.search_person(
        db, current_user, SearchPeopleDto(name=name, with_hidden=with_hidden)
    )


@router.get("/places", response_model=list[PlacesResponse])
async def search_places(
    name: Annotated[str, Query()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[PlacesResponse]:
    """장소 검색 — Search geodata places by name."""
    return await search_service.search_places(db, SearchPlacesDto(name=name))


@router.get("/cities", response_model=list[AssetResponse])
async def get_assets_by_city(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[AssetResponse]:
    """도시별 대표 에셋 — One recent asset per city."""
    return await search_service.get_assets_by_city(db, current_user)


@router.get("/suggestions", response_model=list[str])
async def get_search_suggestions(
    type: Annotated[SearchSuggestionType, Query()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    country: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    make: Annotated[str | None, Query()] = None,
    model: Annotated[str | None, Query()] = None,
) -> list[str]:
    """검색 제안 — Distinct EXIF values of the requested kind."""
    dto = SearchSuggestionRequestDto(type=type, country=country, state=state, make=make, model=model)
    return await search_service.get_search_suggestions(db, current_user, dto)
