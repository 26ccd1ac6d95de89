"""에셋 중복 레포지토리 — 중복 그룹 ID 일괄 갱신.

Asset Duplicate Repository — Writes duplicate group identifiers.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.asset import Asset


class AssetDuplicateRepository:
    """중복 그룹 ID를 관리하는 레포지토리.

    Repository assigning duplicate group ids to assets.
    """

    async def upsert(
        self,
        db: AsyncSession,
        duplicate_id: UUID,
        asset_ids: Sequence[UUID],
        old_duplicate_ids: Sequence[UUID] = (),
    ) -> int:
        """에셋들과 기존 그룹 구성원에 중복 그룹 ID를 설정합니다.

        Set ``duplicate_id`` on ``asset_ids`` and on every asset that still
        carries one of ``old_duplicate_ids``, merging those groups into one.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            duplicate_id: 새(또는 유지할) 그룹 ID (Group id to assign)
            asset_ids: 대상 에셋 ID 목록 (Assets to assign)
            old_duplicate_ids: 병합될 기존 그룹 ID 목록 (Groups merged into this one)

        Returns:
            int: 갱신된 에셋 수 (Number of assets updated)
        """
        conditions = [Asset.id.in_(asset_ids)]
        if old_duplicate_ids:
            conditions.append(Asset.duplicate_id.in_(old_duplicate_ids))
        result = await db.execute(
            update(Asset).where(or_(*conditions)).values(duplicate_id=duplicate_id)
        )
        return result.rowcount or 0


# 싱글턴 인스턴스 — Singleton instance
asset_duplicate_repository: AssetDuplicateRepository = AssetDuplicateRepository()
