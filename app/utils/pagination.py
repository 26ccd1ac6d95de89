"""페이지네이션 유틸리티 모듈.

Pagination utility module for SQLAlchemy async queries.
Search endpoints page with a "has next page" flag instead of a total
count: one extra row is fetched to learn whether another page exists.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Sequence

from pydantic import BaseModel
from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession


class PaginationOptions(BaseModel):
    """페이지 요청 옵션.

    Attributes:
        page: 현재 페이지 번호, 1부터 시작 (Current page number, 1-based)
        size: 페이지당 항목 수 (Items per page)
    """

    page: int = 1
    size: int


class Paginated(BaseModel):
    """페이지네이션 결과 모델.

    Attributes:
        items: 현재 페이지 항목 목록 (Items for the current page)
        has_next_page: 다음 페이지 존재 여부 (Whether more items exist after this page)
    """

    items: list[Any]
    has_next_page: bool


def paginate_sequence(rows: Sequence[Any], size: int) -> Paginated:
    """size+1개로 조회한 결과를 페이지로 자릅니다.

    Trim a result fetched with ``size + 1`` rows into a page.
    """
    has_next_page: bool = len(rows) > size
    return Paginated(items=list(rows[:size]), has_next_page=has_next_page)


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    pagination: PaginationOptions,
) -> Paginated:
    """SQLAlchemy 쿼리에 대한 페이지네이션을 수행합니다.

    Execute a paginated SQLAlchemy query. Fetches one row past the page
    (OFFSET (page-1)*size, LIMIT size+1) to compute ``has_next_page``
    without a COUNT query.

    Args:
        db: 비동기 DB 세션 (Async database session)
        query: SQLAlchemy Select 쿼리 (Base query to paginate, must be ordered)
        pagination: 페이지 옵션 (Page number and size)

    Returns:
        Paginated: 현재 페이지 항목과 다음 페이지 여부 (Page items and next-page flag)
    """
    offset: int = (pagination.page - 1) * pagination.size
    result = await db.execute(query.offset(offset).limit(pagination.size + 1))
    rows: Sequence[Any] = result.scalars().unique().all()
    return paginate_sequence(rows, pagination.size)


async def use_pagination(
    size: int,
    fetch: Callable[[PaginationOptions], Awaitable[Paginated]],
) -> AsyncIterator[list[Any]]:
    """모든 페이지를 순서대로 순회하는 비동기 제너레이터.

    Async generator yielding every page's items until ``has_next_page``
    is false. Used by background jobs that walk the whole asset table.

    Usage:
        async for assets in use_pagination(1000, lambda p: repo.get_all_paginated(db, p)):
            ...
    """
    page: int = 1
    while True:
        result: Paginated = await fetch(PaginationOptions(page=page, size=size))
        yield result.items
        if not result.has_next_page:
            break
        page += 1
