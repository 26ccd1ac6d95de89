"""앨범 라우터 — 앨범 CRUD, 에셋 추가/제거, 공유 엔드포인트.

Album Router — Album CRUD, asset membership and sharing endpoints.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.album import (
    AddUsersRequest,
    AlbumCountResponse,
    AlbumCreate,
    AlbumResponse,
    AlbumUpdate,
    BulkIdResult,
    BulkIdsRequest,
)
from app.services.album_service import album_service

router: APIRouter = APIRouter()


@router.get("/statistics", response_model=AlbumCountResponse)
async def get_album_statistics(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> AlbumCountResponse:
    """앨범 통계 — Owned, shared and not-shared album counts."""
    return await album_service.get_statistics(db, current_user)


@router.get("/", response_model=list[AlbumResponse])
async def list_albums(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    shared: Annotated[bool | None, Query()] = None,
    asset_id: Annotated[UUID | None, Query()] = None,
) -> list[AlbumResponse]:
    """앨범 목록을 조회합니다.

    List albums: owned (default), shared (``shared=true``), owned and not
    shared (``shared=false``) or those containing ``asset_id``.
    """
    result: list[AlbumResponse] = await album_service.get_all(db, current_user, shared, asset_id)
    # 썸네일 보정 결과 저장 — Persist thumbnail repairs
    await db.commit()
    return result


@router.post("/", response_model=AlbumResponse, status_code=201)
async def create_album(
    data: AlbumCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> AlbumResponse:
    """새 앨범을 생성합니다 — Create an album."""
    result: AlbumResponse = await album_service.create(db, current_user, data)
    await db.commit()
    return result


@router.get("/{album_id}", response_model=AlbumResponse)
async def get_album(
    album_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    without_assets: Annotated[bool, Query()] = False,
) -> AlbumResponse:
    """앨범 상세를 조회합니다 — Album detail, with assets unless ``without_assets``."""
    return await album_service.get(db, current_user, album_id, without_assets)


@router.patch("/{album_id}", response_model=AlbumResponse)
async def update_album(
    album_id: UUID,
    data: AlbumUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> AlbumResponse:
    """앨범 정보를 수정합니다 — Update album fields (owner only)."""
    result: AlbumResponse = await album_service.update(db, current_user, album_id, data)
    await db.commit()
    return result


@router.delete("/{album_id}", status_code=204)
async def delete_album(
    album_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    """앨범을 삭제합니다 — Delete an album (owner only)."""
    await album_service.delete(db, current_user, album_id)
    await db.commit()


@router.put("/{album_id}/assets", response_model=list[BulkIdResult])
async def add_assets_to_album(
    album_id: UUID,
    data: BulkIdsRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[BulkIdResult]:
    """앨범에 에셋을 추가합니다 — Add assets; per-id results."""
    result: list[BulkIdResult] = await album_service.add_assets(db, current_user, album_id, data)
    await db.commit()
    return result


@router.delete("/{album_id}/assets", response_model=list[BulkIdResult])
async def remove_assets_from_album(
    album_id: UUID,
    data: BulkIdsRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[BulkIdResult]:
    """앨범에서 에셋을 제거합니다 — Remove assets; per-id results."""
    result: list[BulkIdResult] = await album_service.remove_assets(db, current_user, album_id, data)
    await db.commit()
    return result


@router.put("/{album_id}/users", response_model=AlbumResponse)
async def add_users_to_album(
    album_id: UUID,
    data: AddUsersRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> AlbumResponse:
    """앨범을 사용자들과 공유합니다 — Share the album with users (owner only)."""
    result: AlbumResponse = await album_service.add_users(db, current_user, album_id, data)
    await db.commit()
    return result


@router.delete("/{album_id}/user/{user_id}", status_code=204)
async def remove_user_from_album(
    album_id: UUID,
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    """앨범 공유 사용자를 제거합니다 — Remove a shared user (``me`` = caller)."""
    await album_service.remove_user(db, current_user, album_id, user_id)
    await db.commit()
