"""앨범 서비스 — 앨범 CRUD, 에셋 추가/제거, 공유 비즈니스 로직.

Album Service — Business logic for album CRUD, asset membership and
sharing with other users.

Access rules:
    - 소유자: 모든 작업 가능 (Owner: every operation)
    - 공유 사용자: 조회, 에셋 추가, 본인 에셋 제거, 본인 공유 해제
      (Shared user: read, add assets, remove own assets, leave the album)
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.album import Album
from app.models.asset import AssetOrder
from app.models.user import User
from app.repositories.album_repository import album_repository
from app.repositories.asset_repository import asset_repository
from app.repositories.user_repository import user_repository
from app.schemas.album import (
    AddUsersRequest,
    AlbumCountResponse,
    AlbumCreate,
    AlbumResponse,
    AlbumUpdate,
    BulkIdResult,
    BulkIdsRequest,
)
from app.schemas.asset import map_asset
from app.schemas.user import map_user
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError

# 벌크 작업 실패 사유 — Bulk operation error codes
ERROR_DUPLICATE: str = "duplicate"
ERROR_NOT_FOUND: str = "not_found"
ERROR_NO_PERMISSION: str = "no_permission"


class AlbumService:
    """앨범 관련 비즈니스 로직을 처리하는 서비스.

    Service handling album business logic.
    """

    def _to_response(
        self,
        album: Album,
        metadata: dict[str, Any] | None = None,
        with_assets: bool = False,
    ) -> AlbumResponse:
        """앨범 모델을 응답 스키마로 변환합니다.

        Convert an Album (loaded with owner, shared users and shared links)
        to an AlbumResponse. Member assets are included when ``with_assets``,
        sorted by ``file_created_at`` in the album's order.

        Args:
            album: 앨범 모델 (Album model instance)
            metadata: get_metadata_for_ids 결과 항목 (Aggregates for this album)
            with_assets: 에셋 포함 여부 (Include member assets)

        Returns:
            AlbumResponse: 앨범 응답 (Album response)
        """
        metadata = metadata or {}
        assets = []
        if with_assets:
            assets = sorted(
                album.assets,
                key=lambda asset: asset.file_created_at,
                reverse=album.order == AssetOrder.DESC.value,
            )
        has_shared_link: bool = len(album.shared_links) > 0

        return AlbumResponse(
            id=str(album.id),
            owner_id=str(album.owner_id),
            owner=map_user(album.owner) if album.owner else None,
            album_name=album.album_name,
            description=album.description,
            created_at=album.created_at,
            updated_at=album.updated_at,
            album_thumbnail_asset_id=(
                str(album.album_thumbnail_asset_id) if album.album_thumbnail_asset_id else None
            ),
            shared=len(album.album_users) > 0 or has_shared_link,
            has_shared_link=has_shared_link,
            album_users=[map_user(user) for user in album.album_users],
            assets=[map_asset(asset) for asset in assets],
            asset_count=metadata.get("asset_count", 0),
            start_date=metadata.get("start_date"),
            end_date=metadata.get("end_date"),
            is_activity_enabled=album.is_activity_enabled,
            order=album.order,
        )

    async def _get_album(self, db: AsyncSession, album_id: UUID, with_assets: bool = False) -> Album:
        album: Album | None = await album_repository.get_by_id(db, album_id, with_assets=with_assets)
        if album is None:
            raise NotFoundError("Album not found")
        return album

    @staticmethod
    def _check_owner(auth: User, album: Album) -> None:
        if album.owner_id != auth.id:
            raise ForbiddenError("Only the album owner can do this")

    @staticmethod
    def _check_access(auth: User, album: Album) -> None:
        if album.owner_id != auth.id and all(user.id != auth.id for user in album.album_users):
            raise ForbiddenError("No access to this album")

    async def _build_response(self, db: AsyncSession, album_id: UUID, with_assets: bool) -> AlbumResponse:
        album: Album = await self._get_album(db, album_id, with_assets=with_assets)
        metadata = await album_repository.get_metadata_for_ids(db, [album.id])
        return self._to_response(album, metadata[0] if metadata else None, with_assets=with_assets)

    async def get_statistics(self, db: AsyncSession, auth: User) -> AlbumCountResponse:
        """앨범 통계를 조회합니다 — Count owned, shared and not-shared albums."""
        owned = await album_repository.get_owned(db, auth.id)
        shared = await album_repository.get_shared(db, auth.id)
        not_shared = await album_repository.get_not_shared(db, auth.id)
        return AlbumCountResponse(owned=len(owned), shared=len(shared), not_shared=len(not_shared))

    async def get_all(
        self,
        db: AsyncSession,
        auth: User,
        shared: bool | None = None,
        asset_id: UUID | None = None,
    ) -> list[AlbumResponse]:
        """앨범 목록을 조회합니다.

        List albums for the user. Invalid thumbnails are repaired first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            auth: 현재 사용자 (Current user)
            shared: True=공유 앨범, False=비공유 소유 앨범, None=소유 앨범
                    (True = shared, False = owned and not shared, None = owned)
            asset_id: 지정 시 해당 에셋을 포함한 앨범 (Albums containing this asset)

        Returns:
            list[AlbumResponse]: 앨범 목록, 에셋 제외 (Albums without member assets)
        """
        updated: int = await album_repository.update_thumbnails(db)
        if updated:
            logger.debug("Updated thumbnails of {} albums", updated)

        if asset_id is not None:
            albums = await album_repository.get_by_asset_id(db, auth.id, asset_id)
        elif shared is True:
            albums = await album_repository.get_shared(db, auth.id)
        elif shared is False:
            albums = await album_repository.get_not_shared(db, auth.id)
        else:
            albums = await album_repository.get_owned(db, auth.id)

        metadata = await album_repository.get_metadata_for_ids(db, [album.id for album in albums])
        by_album: dict[UUID, dict[str, Any]] = {item["album_id"]: item for item in metadata}
        return [self._to_response(album, by_album.get(album.id)) for album in albums]

    async def get(
        self,
        db: AsyncSession,
        auth: User,
        album_id: UUID,
        without_assets: bool = False,
    ) -> AlbumResponse:
        """앨범 상세를 조회합니다.

        Retrieve one album. Only the owner and shared users may read it.

        Raises:
            NotFoundError: 앨범 없음 (Album not found)
            ForbiddenError: 접근 권한 없음 (Not owner or shared user)
        """
        album: Album = await self._get_album(db, album_id)
        self._check_access(auth, album)
        return await self._build_response(db, album_id, with_assets=not without_assets)

    async def _validate_new_users(
        self,
        db: AsyncSession,
        owner_id: UUID,
        user_ids: list[UUID],
        current_user_ids: set[UUID],
    ) -> None:
        existing: set[UUID] = await user_repository.get_existing_ids(db, user_ids)
        for user_id in user_ids:
            if user_id == owner_id:
                raise BadRequestError("Cannot share album with owner")
            if user_id in current_user_ids:
                raise BadRequestError("User already added")
            if user_id not in existing:
                raise NotFoundError("User not found")

    async def create(self, db: AsyncSession, auth: User, data: AlbumCreate) -> AlbumResponse:
        """새 앨범을 생성합니다.

        Create an album. Only assets owned by the caller are added; the
        first of them becomes the thumbnail.

        Raises:
            BadRequestError: 소유자를 공유 대상으로 지정 (Owner listed as shared user)
            NotFoundError: 존재하지 않는 사용자 (Unknown user)
        """
        user_ids: list[UUID] = list(dict.fromkeys(data.album_users))
        await self._validate_new_users(db, auth.id, user_ids, set())

        owners: dict[UUID, UUID] = await asset_repository.get_owners(db, data.asset_ids)
        asset_ids: list[UUID] = [
            asset_id for asset_id in dict.fromkeys(data.asset_ids) if owners.get(asset_id) == auth.id
        ]

        album: Album = await album_repository.create(
            db,
            {
                "owner_id": auth.id,
                "album_name": data.album_name,
                "description": data.description,
                "album_thumbnail_asset_id": asset_ids[0] if asset_ids else None,
            },
        )
        await album_repository.add_asset_ids(db, album.id, asset_ids)
        await album_repository.add_users(db, album.id, user_ids)
        logger.info("Album {} created by {} with {} assets", album.id, auth.id, len(asset_ids))
        return await self._build_response(db, album.id, with_assets=True)

    async def update(self, db: AsyncSession, auth: User, album_id: UUID, data: AlbumUpdate) -> AlbumResponse:
        """앨범 정보를 수정합니다 (소유자 전용).

        Update album fields. The new thumbnail must be an album member.

        Raises:
            NotFoundError: 앨범 없음 (Album not found)
            ForbiddenError: 소유자가 아님 (Not the owner)
            BadRequestError: 앨범에 없는 썸네일 (Thumbnail not in album)
        """
        album: Album = await self._get_album(db, album_id)
        self._check_owner(auth, album)

        if data.album_thumbnail_asset_id is not None and not await album_repository.has_asset(
            db, album_id, data.album_thumbnail_asset_id
        ):
            raise BadRequestError("Invalid album thumbnail")

        update_data: dict[str, Any] = data.model_dump(exclude_none=True)
        if "order" in update_data:
            update_data["order"] = data.order.value
        await album_repository.update(db, album_id, update_data)
        return await self._build_response(db, album_id, with_assets=False)

    async def delete(self, db: AsyncSession, auth: User, album_id: UUID) -> None:
        """앨범을 삭제합니다 (소유자 전용) — Delete an album (owner only)."""
        album: Album = await self._get_album(db, album_id)
        self._check_owner(auth, album)
        await album_repository.delete(db, album_id)
        logger.info("Album {} deleted by {}", album_id, auth.id)

    async def add_assets(
        self,
        db: AsyncSession,
        auth: User,
        album_id: UUID,
        data: BulkIdsRequest,
    ) -> list[BulkIdResult]:
        """앨범에 에셋을 추가합니다.

        Add assets to an album. Each id reports ``duplicate`` (already in
        the album), ``not_found`` (missing or trashed) or ``no_permission``
        (owned by someone else). The first added asset becomes the thumbnail
        when the album has none.

        Returns:
            list[BulkIdResult]: ID별 결과 (Per-id results, request order)
        """
        album: Album = await self._get_album(db, album_id)
        self._check_access(auth, album)

        in_album: set[UUID] = await album_repository.get_asset_ids(db, album_id, data.ids)
        owners: dict[UUID, UUID] = await asset_repository.get_owners(db, data.ids)

        results: list[BulkIdResult] = []
        added: list[UUID] = []
        for asset_id in data.ids:
            if asset_id in in_album or asset_id in added:
                results.append(BulkIdResult(id=str(asset_id), success=False, error=ERROR_DUPLICATE))
            elif asset_id not in owners:
                results.append(BulkIdResult(id=str(asset_id), success=False, error=ERROR_NOT_FOUND))
            elif owners[asset_id] != auth.id:
                results.append(BulkIdResult(id=str(asset_id), success=False, error=ERROR_NO_PERMISSION))
            else:
                added.append(asset_id)
                results.append(BulkIdResult(id=str(asset_id), success=True))

        if added:
            await album_repository.add_asset_ids(db, album_id, added)
            update_data: dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
            if album.album_thumbnail_asset_id is None:
                update_data["album_thumbnail_asset_id"] = added[0]
            await album_repository.update(db, album_id, update_data)
        return results

    async def remove_assets(
        self,
        db: AsyncSession,
        auth: User,
        album_id: UUID,
        data: BulkIdsRequest,
    ) -> list[BulkIdResult]:
        """앨범에서 에셋을 제거합니다.

        Remove assets from an album. The owner may remove any asset, shared
        users only their own (``no_permission`` otherwise); ids not in the
        album report ``not_found``. An invalidated thumbnail is recomputed.

        Returns:
            list[BulkIdResult]: ID별 결과 (Per-id results, request order)
        """
        album: Album = await self._get_album(db, album_id)
        self._check_access(auth, album)

        in_album: set[UUID] = await album_repository.get_asset_ids(db, album_id, data.ids)
        owners: dict[UUID, UUID] = await asset_repository.get_owners(db, list(in_album))
        is_owner: bool = album.owner_id == auth.id

        results: list[BulkIdResult] = []
        removed: list[UUID] = []
        for asset_id in data.ids:
            if asset_id not in in_album or asset_id in removed:
                results.append(BulkIdResult(id=str(asset_id), success=False, error=ERROR_NOT_FOUND))
            elif not is_owner and owners.get(asset_id) != auth.id:
                results.append(BulkIdResult(id=str(asset_id), success=False, error=ERROR_NO_PERMISSION))
            else:
                removed.append(asset_id)
                results.append(BulkIdResult(id=str(asset_id), success=True))

        if removed:
            await album_repository.remove_asset_ids(db, album_id, removed)
            await album_repository.update_thumbnails(db)
        return results

    async def add_users(
        self,
        db: AsyncSession,
        auth: User,
        album_id: UUID,
        data: AddUsersRequest,
    ) -> AlbumResponse:
        """앨범을 다른 사용자와 공유합니다 (소유자 전용).

        Share the album with more users.

        Raises:
            BadRequestError: 소유자 또는 이미 공유된 사용자 (Owner or already shared)
            NotFoundError: 존재하지 않는 사용자 (Unknown user)
        """
        album: Album = await self._get_album(db, album_id)
        self._check_owner(auth, album)

        user_ids: list[UUID] = list(dict.fromkeys(data.shared_user_ids))
        current: set[UUID] = {user.id for user in album.album_users}
        await self._validate_new_users(db, album.owner_id, user_ids, current)

        await album_repository.add_users(db, album_id, user_ids)
        await album_repository.update(db, album_id, {"updated_at": datetime.now(timezone.utc)})
        return await self._build_response(db, album_id, with_assets=False)

    async def remove_user(self, db: AsyncSession, auth: User, album_id: UUID, user_id: str) -> None:
        """앨범 공유 사용자를 제거합니다.

        Stop sharing the album with a user. ``"me"`` refers to the caller.
        The owner may remove anyone; a shared user may only remove themself.

        Raises:
            NotFoundError: 앨범 없음 (Album not found)
            BadRequestError: 소유자 제거 시도 또는 공유되지 않은 사용자 (Owner or not shared)
            ForbiddenError: 권한 없음 (Not owner and not self)
        """
        album: Album = await self._get_album(db, album_id)
        try:
            target_id: UUID = auth.id if user_id == "me" else UUID(user_id)
        except ValueError as exc:
            raise BadRequestError("Invalid user id") from exc

        if target_id == album.owner_id:
            raise BadRequestError("Cannot remove album owner")
        if all(user.id != target_id for user in album.album_users):
            raise BadRequestError("Album not shared with user")
        if auth.id != album.owner_id and auth.id != target_id:
            raise ForbiddenError("Only the album owner can remove other users")

        await album_repository.remove_user(db, album_id, target_id)


# 싱글턴 인스턴스 — Singleton instance
album_service: AlbumService = AlbumService()
