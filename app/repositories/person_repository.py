"""인물 레포지토리 — 이름 기반 인물 검색.

Person Repository — Person lookups by name.
"""

from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.person import Person
from app.repositories.base import LIKE_ESCAPE, BaseRepository, escape_like

# 이름 검색 결과 최대 수 — Maximum number of people returned by name search
PERSON_NAME_LIMIT: int = 1000


class PersonRepository(BaseRepository[Person]):
    """인물 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the person table.
    """

    def __init__(self) -> None:
        super().__init__(Person)

    async def get_by_name(
        self,
        db: AsyncSession,
        owner_id: UUID,
        name: str,
        with_hidden: bool = False,
    ) -> list[Person]:
        """이름으로 사용자의 인물을 검색합니다.

        Find the user's people whose name starts with ``name`` or contains a
        word starting with it (case-insensitive). Hidden people are included
        only when ``with_hidden``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            owner_id: 소유자 ID (Owner UUID)
            name: 검색할 이름 (Name prefix)
            with_hidden: 숨김 인물 포함 여부 (Include hidden people)

        Returns:
            list[Person]: 인물 목록 (Matching people, by name)
        """
        lowered: str = escape_like(name.lower())
        person_name = func.lower(Person.name)
        query: Select = select(Person).where(
            Person.owner_id == owner_id,
            or_(
                person_name.like(f"{lowered}%", escape=LIKE_ESCAPE),
                person_name.like(f"% {lowered}%", escape=LIKE_ESCAPE),
            ),
        )
        if not with_hidden:
            query = query.where(Person.is_hidden.is_(False))
        query = query.order_by(Person.name).limit(PERSON_NAME_LIMIT)
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
person_repository: PersonRepository = PersonRepository()
