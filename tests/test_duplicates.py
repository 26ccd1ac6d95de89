"""중복 탐지 테스트 — 탐지 작업 핸들러, 큐잉 작업, 중복 그룹 API.

Duplicate detection tests — The per-asset detection handler, the queueing
job, the end-to-end job flow and the duplicates endpoint.
"""

import uuid
from datetime import datetime, timezone

import pytest_asyncio
from sqlalchemy import select

from app.models import Asset, AssetJobStatus
from app.services.job_service import JobItem, JobName, JobStatus
from app.services.search_service import search_service
from tests.conftest import auth_header, hours, make_asset

DUPLICATES = "/api/v1/duplicates"


async def job_status_of(db, asset_id):
    return await db.get(AssetJobStatus, asset_id)


@pytest_asyncio.fixture
async def photos(db, owner_user, other_user):
    """중복 후보 에셋: original/copy는 거의 같고 landscape는 다름."""
    return {
        "original": await make_asset(db, owner_user, "original.jpg", taken_at=hours(1), embedding=[1.0, 0.0, 0.0]),
        "copy": await make_asset(db, owner_user, "copy.jpg", taken_at=hours(2), embedding=[1.0, 0.0, 0.001]),
        "landscape": await make_asset(db, owner_user, "landscape.jpg", taken_at=hours(3), embedding=[0.0, 1.0, 0.0]),
        "foreign": await make_asset(db, other_user, "foreign.jpg", taken_at=hours(4), embedding=[1.0, 0.0, 0.0]),
    }


# ===== Detection handler =====

class TestSearchDuplicatesHandler:
    """에셋 하나에 대한 중복 탐지 테스트."""

    async def test_groups_near_duplicates(self, db, ml_settings, photos):
        """가까운 에셋끼리 같은 그룹, 다른 사용자와 먼 에셋은 제외."""
        status = await search_service.handle_search_duplicates(db, {"id": str(photos["original"].id)})
        assert status == JobStatus.SUCCESS

        for asset in photos.values():
            await db.refresh(asset)
        assert photos["original"].duplicate_id is not None
        assert photos["copy"].duplicate_id == photos["original"].duplicate_id
        assert photos["landscape"].duplicate_id is None
        assert photos["foreign"].duplicate_id is None

        job_status = await job_status_of(db, photos["original"].id)
        assert job_status.duplicates_detected_at is not None

    async def test_no_match_still_records_status(self, db, ml_settings, photos):
        """중복이 없어도 처리 시각 기록."""
        status = await search_service.handle_search_duplicates(db, {"id": str(photos["landscape"].id)})
        assert status == JobStatus.SUCCESS
        await db.refresh(photos["landscape"])
        assert photos["landscape"].duplicate_id is None
        assert await job_status_of(db, photos["landscape"].id) is not None

    async def test_merges_existing_groups(self, db, owner_user, ml_settings):
        """기존 그룹들이 가장 가까운 후보의 그룹으로 병합됨."""
        group_a, group_b = uuid.uuid4(), uuid.uuid4()
        target = await make_asset(db, owner_user, "target.jpg", embedding=[1.0, 0.0, 0.0])
        closer = await make_asset(
            db, owner_user, "closer.jpg", embedding=[1.0, 0.0, 0.001], duplicate_id=group_a
        )
        farther = await make_asset(
            db, owner_user, "farther.jpg", embedding=[1.0, 0.0, 0.05], duplicate_id=group_b
        )
        # group_b 구성원이지만 target과는 멀리 있음 — In group_b, far from target
        member = await make_asset(
            db, owner_user, "member.jpg", embedding=[0.0, 1.0, 0.0], duplicate_id=group_b
        )

        status = await search_service.handle_search_duplicates(db, {"id": str(target.id)})
        assert status == JobStatus.SUCCESS

        for asset in (target, closer, farther, member):
            await db.refresh(asset)
        assert {target.duplicate_id, closer.duplicate_id, farther.duplicate_id, member.duplicate_id} == {group_a}

    async def test_runs_after_feature_disabled(self, db, monkeypatch, ml_settings, photos):
        """이미 큐잉된 작업은 기능이 꺼져도 처리 — Queued jobs still run once the feature is off."""
        monkeypatch.setattr(ml_settings, "MACHINE_LEARNING_ENABLED", False)
        status = await search_service.handle_search_duplicates(db, {"id": str(photos["original"].id)})
        assert status == JobStatus.SUCCESS
        await db.refresh(photos["copy"])
        assert photos["copy"].duplicate_id is not None

    async def test_missing_asset(self, db, ml_settings):
        """없는 에셋은 FAILED."""
        status = await search_service.handle_search_duplicates(db, {"id": str(uuid.uuid4())})
        assert status == JobStatus.FAILED

    async def test_invisible_asset(self, db, owner_user, ml_settings):
        """숨김 에셋은 SKIPPED, 처리 시각은 기록."""
        asset = await make_asset(db, owner_user, "live.mov", embedding=[1.0, 0.0, 0.0], is_visible=False)
        status = await search_service.handle_search_duplicates(db, {"id": str(asset.id)})
        assert status == JobStatus.SKIPPED
        assert await job_status_of(db, asset.id) is not None

    async def test_already_grouped(self, db, owner_user, ml_settings):
        """이미 중복 그룹에 속하면 SKIPPED."""
        asset = await make_asset(db, owner_user, "a.jpg", embedding=[1.0, 0.0, 0.0], duplicate_id=uuid.uuid4())
        status = await search_service.handle_search_duplicates(db, {"id": str(asset.id)})
        assert status == JobStatus.SKIPPED

    async def test_missing_preview(self, db, owner_user, ml_settings):
        """미리보기 없으면 FAILED."""
        asset = await make_asset(db, owner_user, "a.jpg", embedding=[1.0, 0.0, 0.0])
        asset.preview_path = None
        await db.flush()
        status = await search_service.handle_search_duplicates(db, {"id": str(asset.id)})
        assert status == JobStatus.FAILED

    async def test_missing_embedding(self, db, owner_user, ml_settings, photos):
        """임베딩 없으면 중복 없이 SUCCESS, 처리 시각 기록."""
        asset = await make_asset(db, owner_user, "a.jpg")
        status = await search_service.handle_search_duplicates(db, {"id": str(asset.id)})
        assert status == JobStatus.SUCCESS

        await db.refresh(asset)
        assert asset.duplicate_id is None
        assert (await job_status_of(db, asset.id)).duplicates_detected_at is not None


# ===== Queue handler =====

class TestQueueSearchDuplicates:
    """중복 탐지 큐잉 작업 테스트."""

    async def test_queues_unprocessed_assets(self, db, owner_user, ml_settings, clean_job_queue, photos):
        """임베딩이 있고 아직 처리되지 않은 에셋만 큐에 넣음."""
        await make_asset(db, owner_user, "no-embedding.jpg")
        processed = await make_asset(db, owner_user, "done.jpg", embedding=[0.5, 0.5, 0.0])
        db.add(AssetJobStatus(asset_id=processed.id, duplicates_detected_at=datetime.now(timezone.utc)))
        await db.flush()

        status = await search_service.handle_queue_search_duplicates(db, {"force": False})
        assert status == JobStatus.SUCCESS
        assert clean_job_queue.pending == len(photos)

    async def test_force_queues_every_visible_asset(self, db, owner_user, ml_settings, clean_job_queue, photos):
        """force=true면 보이는 모든 에셋."""
        await make_asset(db, owner_user, "no-embedding.jpg")
        await make_asset(db, owner_user, "hidden.mov", is_visible=False)

        status = await search_service.handle_queue_search_duplicates(db, {"force": True})
        assert status == JobStatus.SUCCESS
        assert clean_job_queue.pending == len(photos) + 1

    async def test_pages_through_assets(self, db, monkeypatch, ml_settings, clean_job_queue, photos):
        """페이지 크기보다 많은 에셋도 모두 큐잉."""
        monkeypatch.setattr(ml_settings, "JOBS_ASSET_PAGINATION_SIZE", 1)
        await search_service.handle_queue_search_duplicates(db, {"force": True})
        assert clean_job_queue.pending == len(photos)

    async def test_disabled(self, db, monkeypatch, ml_settings, clean_job_queue, photos):
        """CLIP 비활성 시 SKIPPED, 아무것도 큐잉하지 않음."""
        monkeypatch.setattr(ml_settings, "CLIP_ENABLED", False)
        status = await search_service.handle_queue_search_duplicates(db, {"force": True})
        assert status == JobStatus.SKIPPED
        assert clean_job_queue.pending == 0


class TestDuplicateDetectionFlow:
    """큐잉 작업부터 그룹 생성까지 전체 흐름."""

    async def test_run_pending_detects_groups(self, db, ml_settings, clean_job_queue, photos):
        """큐잉 작업이 에셋별 작업을 만들고, 실행 후 그룹이 생성됨."""
        asset_ids = [asset.id for asset in photos.values()]
        await db.commit()

        await clean_job_queue.queue(JobItem(name=JobName.QUEUE_DUPLICATE_DETECTION, data={"force": False}))
        results = await clean_job_queue.run_pending()

        # 큐잉 작업 1 + 에셋별 작업 4 — One queue job plus one job per asset
        assert len(results) == 1 + len(photos)
        assert results[0] == JobStatus.SUCCESS
        assert JobStatus.FAILED not in results

        db.expire_all()
        rows = (await db.execute(select(Asset).where(Asset.id.in_(asset_ids)))).scalars().all()
        by_name = {asset.original_file_name: asset for asset in rows}
        assert by_name["original.jpg"].duplicate_id is not None
        assert by_name["original.jpg"].duplicate_id == by_name["copy.jpg"].duplicate_id
        assert by_name["landscape.jpg"].duplicate_id is None
        assert by_name["foreign.jpg"].duplicate_id is None

        # 재실행 시 처리된 에셋은 제외, 그룹에 합류만 한 에셋은 다시 SKIPPED
        # Processed assets are not queued again; the member that only joined a group is skipped again
        await clean_job_queue.queue(JobItem(name=JobName.QUEUE_DUPLICATE_DETECTION, data={"force": False}))
        assert await clean_job_queue.run_pending() == [JobStatus.SUCCESS, JobStatus.SKIPPED]


# ===== Duplicates endpoint =====

class TestDuplicatesApi:
    """중복 그룹 API 테스트."""

    async def test_lists_groups(self, client, db, owner_user, other_user, owner_token):
        """2개 이상인 그룹만, 본인 에셋만."""
        group, lonely, foreign = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        first = await make_asset(db, owner_user, "a.jpg", taken_at=hours(1), duplicate_id=group)
        second = await make_asset(db, owner_user, "b.jpg", taken_at=hours(2), duplicate_id=group)
        await make_asset(db, owner_user, "c.jpg", duplicate_id=lonely)
        await make_asset(db, owner_user, "d.jpg")
        await make_asset(db, other_user, "e.jpg", duplicate_id=foreign)
        await make_asset(db, other_user, "f.jpg", duplicate_id=foreign)

        res = await client.get(f"{DUPLICATES}/", headers=auth_header(owner_token))
        assert res.status_code == 200
        data = res.json()
        assert len(data) == 1
        assert data[0]["duplicate_id"] == str(group)
        assert [a["id"] for a in data[0]["assets"]] == [str(first.id), str(second.id)]
        assert all(a["duplicate_id"] == str(group) for a in data[0]["assets"])

    async def test_trashed_member_breaks_group(self, client, db, owner_user, owner_token):
        """휴지통으로 간 구성원을 빼고 1개만 남으면 그룹 제외."""
        group = uuid.uuid4()
        await make_asset(db, owner_user, "a.jpg", duplicate_id=group)
        await make_asset(db, owner_user, "b.jpg", duplicate_id=group, deleted_at=datetime.now(timezone.utc))

        res = await client.get(f"{DUPLICATES}/", headers=auth_header(owner_token))
        assert res.json() == []

    async def test_requires_auth(self, client):
        res = await client.get(f"{DUPLICATES}/")
        assert res.status_code == 401
