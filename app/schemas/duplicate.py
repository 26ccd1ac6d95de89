"""중복 탐지 관련 Pydantic 스키마 정의.

Duplicate-detection schema definitions.
"""

from uuid import UUID

from pydantic import BaseModel

from app.schemas.asset import AssetResponse


class AssetDuplicateResult(BaseModel):
    """임베딩 거리 기반 중복 후보.

    A near-duplicate candidate found by embedding distance.

    Attributes:
        asset_id: 후보 에셋 ID (Candidate asset)
        duplicate_id: 후보의 기존 중복 그룹 ID (Candidate's current duplicate group)
        distance: 코사인 거리 (Cosine distance to the searched asset)
    """

    asset_id: UUID
    duplicate_id: UUID | None = None
    distance: float


class DuplicateResponse(BaseModel):
    """중복 그룹 응답 — A duplicate group and its assets."""

    duplicate_id: str
    assets: list[AssetResponse]
