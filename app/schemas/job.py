"""작업 관련 Pydantic 요청/응답 스키마 정의.

Job command request/response schema definitions.
"""

from pydantic import BaseModel


class DuplicateDetectionRequest(BaseModel):
    """중복 탐지 실행 요청.

    Attributes:
        force: 전체 에셋 재처리 여부 (Re-queue every visible asset, not only unprocessed ones)
    """

    force: bool = False


class JobQueuedResponse(BaseModel):
    """작업 큐잉 응답 — Queued job and the queue length after queueing."""

    name: str
    pending: int
