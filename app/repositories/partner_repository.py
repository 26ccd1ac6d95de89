"""파트너 레포지토리 — 사용자 간 라이브러리 공유 관계.

Partner Repository — Library sharing between users.
"""

from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Partner


class PartnerRepository:
    """파트너 관계 쿼리를 담당하는 레포지토리 — Repository for partner rows."""

    async def get_all(self, db: AsyncSession, user_id: UUID) -> list[Partner]:
        """사용자가 공유하거나 공유받은 파트너 관계를 모두 조회합니다.

        Retrieve every partnership the user is part of, in either direction.
        """
        query: Select = select(Partner).where(
            or_(Partner.shared_by_id == user_id, Partner.shared_with_id == user_id)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        shared_by_id: UUID,
        shared_with_id: UUID,
        in_timeline: bool = False,
    ) -> Partner:
        """파트너 관계를 생성합니다 — Create a partnership."""
        partner = Partner(shared_by_id=shared_by_id, shared_with_id=shared_with_id, in_timeline=in_timeline)
        db.add(partner)
        await db.flush()
        return partner


# 싱글턴 인스턴스 — Singleton instance
partner_repository: PartnerRepository = PartnerRepository()
