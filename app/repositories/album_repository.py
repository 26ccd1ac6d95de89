"""앨범 레포지토리 — 앨범, 앨범 멤버십, 공유 관계 쿼리.

Album Repository — Queries for albums, album membership and sharing.
Owner and shared users are loaded only while not soft-deleted, and
member assets only while not trashed. Album loaders use
``populate_existing`` because membership rows are written with Core
statements that bypass the identity map.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import (
    ColumnElement,
    Select,
    and_,
    delete,
    exists,
    func,
    insert,
    or_,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.album import Album, SharedLink, albums_assets, albums_shared_users
from app.models.asset import Asset
from app.models.user import User
from app.repositories.base import BaseRepository


class AlbumRepository(BaseRepository[Album]):
    """앨범 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the albums table and its
    membership (albums_assets) and sharing (albums_shared_users,
    shared_links) tables.
    """

    def __init__(self) -> None:
        """AlbumRepository를 초기화합니다.

        Initialize the AlbumRepository with the Album model.
        """
        super().__init__(Album)

    # ------------------------------------------------------------------
    # 내부 헬퍼 — Internal helpers
    # ------------------------------------------------------------------
    def _with_relations(
        self,
        query: Select,
        with_shared_links: bool = True,
        with_assets: bool = False,
    ) -> Select:
        """소유자/공유 사용자(/공유 링크/에셋) 로더를 적용합니다.

        Apply eager loaders for owner and shared users, optionally shared
        links and live member assets (with EXIF).
        """
        options: list[Any] = [
            selectinload(Album.owner.and_(User.deleted_at.is_(None))),
            selectinload(Album.album_users.and_(User.deleted_at.is_(None))),
        ]
        if with_shared_links:
            options.append(selectinload(Album.shared_links))
        if with_assets:
            options.append(
                selectinload(Album.assets.and_(Asset.deleted_at.is_(None))).selectinload(Asset.exif_info)
            )
        return query.options(*options).execution_options(populate_existing=True)

    @staticmethod
    def _invalid_thumbnail_clause() -> ColumnElement[bool]:
        """썸네일이 잘못된 앨범 조건.

        Albums whose thumbnail is missing while they have assets, or set
        to an asset that is no longer a member.
        """
        has_assets = exists().where(albums_assets.c.album_id == Album.id)
        thumbnail_in_album = exists().where(
            albums_assets.c.album_id == Album.id,
            albums_assets.c.asset_id == Album.album_thumbnail_asset_id,
        )
        return or_(
            and_(Album.album_thumbnail_asset_id.is_(None), has_assets),
            and_(Album.album_thumbnail_asset_id.is_not(None), ~thumbnail_in_album),
        )

    # ------------------------------------------------------------------
    # 조회 — Reads
    # ------------------------------------------------------------------
    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: UUID,
        with_assets: bool = False,
    ) -> Album | None:
        """앨범을 소유자/공유 사용자/공유 링크와 함께 조회합니다.

        Retrieve a live album with owner, shared users and shared links
        (and member assets when ``with_assets``).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 앨범 ID (Album UUID)
            with_assets: 에셋 포함 여부 (Whether to load member assets)

        Returns:
            Album | None: 앨범 또는 None (Album, or None if missing/soft-deleted)
        """
        query: Select = self._live(select(Album).where(Album.id == record_id))
        query = self._with_relations(query, with_assets=with_assets)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_ids(
        self,
        db: AsyncSession,
        album_ids: Sequence[UUID],
    ) -> list[Album]:
        """여러 앨범을 소유자/공유 사용자와 함께 조회합니다.

        Retrieve live albums by ids with owner and shared users.
        """
        if not album_ids:
            return []
        query: Select = self._live(select(Album).where(Album.id.in_(album_ids)))
        query = self._with_relations(query, with_shared_links=False)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_by_asset_id(
        self,
        db: AsyncSession,
        owner_id: UUID,
        asset_id: UUID,
    ) -> list[Album]:
        """에셋을 포함하는 앨범 중 사용자가 소유하거나 공유받은 앨범을 조회합니다.

        Retrieve albums containing the (live) asset that the user owns or
        that are shared with the user, newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            owner_id: 사용자 ID (User UUID)
            asset_id: 에셋 ID (Asset UUID)

        Returns:
            list[Album]: 앨범 목록 (Albums, newest first)
        """
        shared_with_user = select(albums_shared_users.c.album_id).where(
            albums_shared_users.c.user_id == owner_id
        )
        containing_asset = (
            select(albums_assets.c.album_id)
            .join(Asset, Asset.id == albums_assets.c.asset_id)
            .where(albums_assets.c.asset_id == asset_id, Asset.deleted_at.is_(None))
        )
        query: Select = self._live(
            select(Album).where(
                or_(Album.owner_id == owner_id, Album.id.in_(shared_with_user)),
                Album.id.in_(containing_asset),
            )
        ).order_by(Album.created_at.desc())
        query = self._with_relations(query)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_metadata_for_ids(
        self,
        db: AsyncSession,
        album_ids: Sequence[UUID],
    ) -> list[dict[str, Any]]:
        """앨범별 에셋 수와 촬영 기간을 집계합니다.

        Aggregate, per album, the live asset count and the earliest/latest
        ``file_created_at``. Albums without assets report a count of 0
        and null dates.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            album_ids: 앨범 ID 목록 (Album UUIDs)

        Returns:
            list[dict[str, Any]]: {album_id, asset_count, start_date, end_date} 목록
        """
        if not album_ids:
            return []
        query: Select = (
            select(
                Album.id.label("album_id"),
                func.min(Asset.file_created_at).label("start_date"),
                func.max(Asset.file_created_at).label("end_date"),
                func.count(Asset.id).label("asset_count"),
            )
            .select_from(Album)
            .outerjoin(albums_assets, albums_assets.c.album_id == Album.id)
            .outerjoin(
                Asset,
                and_(Asset.id == albums_assets.c.asset_id, Asset.deleted_at.is_(None)),
            )
            .where(Album.id.in_(album_ids), Album.deleted_at.is_(None))
            .group_by(Album.id)
        )
        result = await db.execute(query)
        return [
            {
                "album_id": row.album_id,
                "asset_count": int(row.asset_count or 0),
                "start_date": row.start_date,
                "end_date": row.end_date,
            }
            for row in result.all()
        ]

    async def get_invalid_thumbnail(self, db: AsyncSession) -> list[UUID]:
        """썸네일이 잘못된 앨범 ID 목록을 반환합니다.

        Return ids of live albums whose thumbnail needs recomputing.
        """
        query: Select = select(Album.id).where(
            self._invalid_thumbnail_clause(), Album.deleted_at.is_(None)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_owned(self, db: AsyncSession, owner_id: UUID) -> list[Album]:
        """사용자가 소유한 앨범을 최신순으로 조회합니다.

        Retrieve the user's own albums, newest first.
        """
        query: Select = self._live(select(Album).where(Album.owner_id == owner_id)).order_by(
            Album.created_at.desc()
        )
        result = await db.execute(self._with_relations(query))
        return list(result.scalars().all())

    async def get_shared(self, db: AsyncSession, owner_id: UUID) -> list[Album]:
        """공유 관계가 있는 앨범을 조회합니다.

        Retrieve albums involved in sharing for the user: albums shared
        with the user, albums the user created a shared link for, and the
        user's own albums that have shared users. Newest first.
        """
        shared_with_user = select(albums_shared_users.c.album_id).where(
            albums_shared_users.c.user_id == owner_id
        )
        linked_by_user = select(SharedLink.album_id).where(
            SharedLink.user_id == owner_id, SharedLink.album_id.is_not(None)
        )
        has_shared_users = select(albums_shared_users.c.album_id)
        query: Select = self._live(
            select(Album).where(
                or_(
                    Album.id.in_(shared_with_user),
                    Album.id.in_(linked_by_user),
                    and_(Album.owner_id == owner_id, Album.id.in_(has_shared_users)),
                )
            )
        ).order_by(Album.created_at.desc())
        result = await db.execute(self._with_relations(query))
        return list(result.scalars().all())

    async def get_not_shared(self, db: AsyncSession, owner_id: UUID) -> list[Album]:
        """공유되지 않은 소유 앨범을 조회합니다.

        Retrieve the user's albums with neither shared users nor shared
        links, newest first.
        """
        has_shared_users = select(albums_shared_users.c.album_id)
        has_shared_links = select(SharedLink.album_id).where(SharedLink.album_id.is_not(None))
        query: Select = self._live(
            select(Album).where(
                Album.owner_id == owner_id,
                Album.id.not_in(has_shared_users),
                Album.id.not_in(has_shared_links),
            )
        ).order_by(Album.created_at.desc())
        result = await db.execute(self._with_relations(query))
        return list(result.scalars().all())

    async def get_all(self, db: AsyncSession) -> Sequence[Album]:
        """모든 활성 앨범을 소유자와 함께 조회합니다.

        Retrieve every live album with its owner loaded.
        """
        query: Select = self._live(select(Album)).options(
            selectinload(Album.owner.and_(User.deleted_at.is_(None)))
        )
        result = await db.execute(query.execution_options(populate_existing=True))
        return result.scalars().all()

    async def get_asset_ids(
        self,
        db: AsyncSession,
        album_id: UUID,
        asset_ids: Sequence[UUID] | None = None,
    ) -> set[UUID]:
        """앨범에 포함된 에셋 ID 집합을 반환합니다.

        Return the ids of assets in the album, restricted to ``asset_ids``
        when given. An empty ``asset_ids`` returns an empty set without
        querying.
        """
        if asset_ids is not None and len(asset_ids) == 0:
            return set()
        query: Select = select(albums_assets.c.asset_id).where(albums_assets.c.album_id == album_id)
        if asset_ids is not None:
            query = query.where(albums_assets.c.asset_id.in_(asset_ids))
        result = await db.execute(query)
        return set(result.scalars().all())

    async def has_asset(self, db: AsyncSession, album_id: UUID, asset_id: UUID) -> bool:
        """활성 앨범에 활성 에셋이 포함되어 있는지 확인합니다.

        Check whether a live album contains a live asset.
        """
        query: Select = select(
            exists().where(
                albums_assets.c.album_id == album_id,
                albums_assets.c.asset_id == asset_id,
                Album.id == albums_assets.c.album_id,
                Album.deleted_at.is_(None),
                Asset.id == albums_assets.c.asset_id,
                Asset.deleted_at.is_(None),
            )
        )
        return bool((await db.execute(query)).scalar())

    # ------------------------------------------------------------------
    # 쓰기 — Writes
    # ------------------------------------------------------------------
    async def add_asset_ids(self, db: AsyncSession, album_id: UUID, asset_ids: Sequence[UUID]) -> None:
        """앨범에 에셋을 추가합니다 — Insert album memberships (no-op for empty input)."""
        if not asset_ids:
            return
        await db.execute(
            insert(albums_assets),
            [{"album_id": album_id, "asset_id": asset_id} for asset_id in asset_ids],
        )

    async def remove_asset(self, db: AsyncSession, asset_id: UUID) -> None:
        """모든 앨범에서 에셋을 제거합니다 — Remove an asset from every album."""
        await db.execute(delete(albums_assets).where(albums_assets.c.asset_id == asset_id))

    async def remove_asset_ids(self, db: AsyncSession, album_id: UUID, asset_ids: Sequence[UUID]) -> None:
        """한 앨범에서 에셋들을 제거합니다 — Remove assets from one album (no-op for empty input)."""
        if not asset_ids:
            return
        await db.execute(
            delete(albums_assets).where(
                albums_assets.c.album_id == album_id,
                albums_assets.c.asset_id.in_(asset_ids),
            )
        )

    async def update_thumbnails(self, db: AsyncSession) -> int:
        """잘못된 썸네일을 가장 최근 에셋으로 교체합니다.

        For every album matching the invalid-thumbnail predicate, set the
        thumbnail to its most recent (by ``file_created_at``) live member
        asset, or NULL when none remains.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)

        Returns:
            int: 갱신된 앨범 수 (Number of albums updated)
        """
        newest_asset = (
            select(albums_assets.c.asset_id)
            .join(Asset, Asset.id == albums_assets.c.asset_id)
            .where(albums_assets.c.album_id == Album.id, Asset.deleted_at.is_(None))
            .order_by(Asset.file_created_at.desc())
            .limit(1)
            .scalar_subquery()
        )
        stmt = (
            update(Album)
            .where(self._invalid_thumbnail_clause())
            .values(album_thumbnail_asset_id=newest_asset, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount or 0

    async def add_users(self, db: AsyncSession, album_id: UUID, user_ids: Sequence[UUID]) -> None:
        """앨범을 사용자들과 공유합니다 — Share the album with users."""
        if not user_ids:
            return
        await db.execute(
            insert(albums_shared_users),
            [{"album_id": album_id, "user_id": user_id} for user_id in user_ids],
        )

    async def remove_user(self, db: AsyncSession, album_id: UUID, user_id: UUID) -> None:
        """앨범 공유 사용자를 제거합니다 — Stop sharing the album with a user."""
        await db.execute(
            delete(albums_shared_users).where(
                albums_shared_users.c.album_id == album_id,
                albums_shared_users.c.user_id == user_id,
            )
        )

    async def delete(self, db: AsyncSession, album_id: UUID) -> bool:
        """앨범과 멤버십/공유 관계를 삭제합니다.

        Delete an album together with its memberships, shared users and
        shared links.

        Returns:
            bool: 삭제 성공 여부 (Whether an album row was deleted)
        """
        await db.execute(delete(albums_assets).where(albums_assets.c.album_id == album_id))
        await db.execute(delete(albums_shared_users).where(albums_shared_users.c.album_id == album_id))
        await db.execute(delete(SharedLink).where(SharedLink.album_id == album_id))
        result = await db.execute(delete(Album).where(Album.id == album_id))
        return (result.rowcount or 0) > 0


# 싱글턴 인스턴스 — Singleton instance
album_repository: AlbumRepository = AlbumRepository()
