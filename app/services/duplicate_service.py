"""중복 서비스 — 사용자의 중복 에셋 그룹 조회.

Duplicate Service — Lists the caller's duplicate groups.
"""

from itertools import groupby

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.asset import Asset
from app.models.user import User
from app.repositories.asset_repository import asset_repository
from app.schemas.asset import map_asset
from app.schemas.duplicate import DuplicateResponse


class DuplicateService:
    """중복 그룹 조회 서비스 — Service listing duplicate groups."""

    async def get_duplicates(self, db: AsyncSession, auth: User) -> list[DuplicateResponse]:
        """사용자의 중복 그룹을 조회합니다.

        Group the caller's visible, live assets by ``duplicate_id``. Groups
        left with a single asset (e.g. after others were trashed) are omitted.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            auth: 현재 사용자 (Current user)

        Returns:
            list[DuplicateResponse]: 중복 그룹 목록 (Duplicate groups)
        """
        assets: list[Asset] = await asset_repository.get_duplicates(db, auth.id)
        groups: list[DuplicateResponse] = []
        # get_duplicates가 duplicate_id 순으로 정렬 — Rows arrive ordered by duplicate_id
        for duplicate_id, members in groupby(assets, key=lambda asset: asset.duplicate_id):
            group: list[Asset] = list(members)
            if len(group) < 2:
                continue
            groups.append(
                DuplicateResponse(
                    duplicate_id=str(duplicate_id),
                    assets=[map_asset(asset) for asset in group],
                )
            )
        return groups


# 싱글턴 인스턴스 — Singleton instance
duplicate_service: DuplicateService = DuplicateService()
