"""에셋 관련 Pydantic 응답 스키마 정의.

Asset-related Pydantic response schema definitions, shared by albums,
search and duplicates. ``map_asset`` converts an ORM row, including EXIF
only when it was eagerly loaded.
"""

import base64
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import inspect

from app.models.asset import Asset, Exif


class ExifResponse(BaseModel):
    """EXIF 응답 스키마 — EXIF metadata response."""

    make: str | None = None
    model: str | None = None
    lens_model: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    date_time_original: datetime | None = None
    exif_image_width: int | None = None
    exif_image_height: int | None = None
    iso: int | None = None
    f_number: float | None = None
    exposure_time: str | None = None
    focal_length: float | None = None


class AssetResponse(BaseModel):
    """에셋 응답 스키마.

    Asset response schema.

    Attributes:
        checksum: base64 인코딩된 SHA1 (Base64 encoded SHA1 of the original)
        is_trashed: 휴지통 여부 (Whether the asset is in the trash)
        exif_info: EXIF 정보, 로드된 경우에만 (EXIF, only when loaded)
    """

    id: str
    owner_id: str
    device_asset_id: str
    type: str
    original_path: str
    original_file_name: str
    checksum: str
    thumbnail_path: str | None = None
    file_created_at: datetime
    file_modified_at: datetime
    local_date_time: datetime
    updated_at: datetime
    is_favorite: bool
    is_archived: bool
    is_trashed: bool
    is_offline: bool
    duplicate_id: str | None = None
    exif_info: ExifResponse | None = None


def _map_exif(exif: Exif) -> ExifResponse:
    return ExifResponse(
        make=exif.make,
        model=exif.model,
        lens_model=exif.lens_model,
        city=exif.city,
        state=exif.state,
        country=exif.country,
        description=exif.description,
        latitude=exif.latitude,
        longitude=exif.longitude,
        date_time_original=exif.date_time_original,
        exif_image_width=exif.exif_image_width,
        exif_image_height=exif.exif_image_height,
        iso=exif.iso,
        f_number=exif.f_number,
        exposure_time=exif.exposure_time,
        focal_length=exif.focal_length,
    )


def map_asset(asset: Asset) -> AssetResponse:
    """에셋 모델을 응답 스키마로 변환합니다.

    Convert an Asset row to an AssetResponse. ``exif_info`` is read only
    when it is already loaded, so no lazy load is triggered in async code.
    """
    exif: ExifResponse | None = None
    if "exif_info" not in inspect(asset).unloaded and asset.exif_info is not None:
        exif = _map_exif(asset.exif_info)

    return AssetResponse(
        id=str(asset.id),
        owner_id=str(asset.owner_id),
        device_asset_id=asset.device_asset_id,
        type=asset.type,
        original_path=asset.original_path,
        original_file_name=asset.original_file_name,
        checksum=base64.b64encode(asset.checksum).decode(),
        thumbnail_path=asset.thumbnail_path,
        file_created_at=asset.file_created_at,
        file_modified_at=asset.file_modified_at,
        local_date_time=asset.local_date_time,
        updated_at=asset.updated_at,
        is_favorite=asset.is_favorite,
        is_archived=asset.is_archived,
        is_trashed=asset.deleted_at is not None,
        is_offline=asset.is_offline,
        duplicate_id=str(asset.duplicate_id) if asset.duplicate_id else None,
        exif_info=exif,
    )
