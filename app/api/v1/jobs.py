"""작업 라우터 — 백그라운드 작업 실행 (관리자 전용).

Jobs Router — Background job commands, admin only.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import require_admin
from app.models.user import User
from app.schemas.job import DuplicateDetectionRequest, JobQueuedResponse
from app.services.job_service import JobItem, JobName, job_queue

router: APIRouter = APIRouter()


@router.post("/duplicate-detection", response_model=JobQueuedResponse, status_code=202)
async def queue_duplicate_detection(
    data: DuplicateDetectionRequest,
    current_user: Annotated[User, Depends(require_admin)],
) -> JobQueuedResponse:
    """중복 탐지 작업을 큐에 넣습니다.

    Queue duplicate detection. The queue job pages through assets and
    queues one detection job per asset.
    """
    await job_queue.queue(JobItem(name=JobName.QUEUE_DUPLICATE_DETECTION, data={"force": data.force}))
    return JobQueuedResponse(name=JobName.QUEUE_DUPLICATE_DETECTION.value, pending=job_queue.pending)
