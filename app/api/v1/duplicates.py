"""중복 라우터 — 중복 에셋 그룹 조회.

Duplicates Router — Lists the caller's duplicate groups.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.duplicate import DuplicateResponse
from app.services.duplicate_service import duplicate_service

router: APIRouter = APIRouter()


@router.get("/", response_model=list[DuplicateResponse])
async def get_asset_duplicates(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[DuplicateResponse]:
    """중복 그룹 목록 — Duplicate groups of the caller's assets."""
    return await duplicate_service.get_duplicates(db, current_user)
