"""사용자 레포지토리 — 사용자 조회 쿼리.

User Repository — User lookups used by authentication and album sharing.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the users table.
    Soft-deleted users are invisible through every method.
    """

    def __init__(self) -> None:
        """UserRepository를 초기화합니다.

        Initialize the UserRepository with the User model.
        """
        super().__init__(User)

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        """이메일로 사용자를 조회합니다 (대소문자 무시).

        Retrieve a live user by email, case-insensitive.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 이메일 주소 (Email address)

        Returns:
            User | None: 사용자 또는 None (User or None)
        """
        query: Select = self._live(select(User).where(func.lower(User.email) == email.lower()))
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_existing_ids(self, db: AsyncSession, user_ids: Sequence[UUID]) -> set[UUID]:
        """주어진 ID 중 존재하는 사용자 ID 집합 — Subset of ``user_ids`` that are live users."""
        if not user_ids:
            return set()
        query: Select = self._live(select(User.id).where(User.id.in_(user_ids)))
        result = await db.execute(query)
        return set(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
