"""API v1 라우터 패키지 — 모든 엔드포인트 통합.

API v1 Router package — Aggregates every endpoint into a single router
mounted at ``/api/v1``.

Included routers:
    - auth: 로그인, 토큰 갱신, 내 정보 (Login, token refresh, profile)
    - albums: 앨범 CRUD, 에셋/공유 관리 (Albums, membership and sharing)
    - search: 메타데이터/스마트 검색, 탐색, 제안 (Search, explore, suggestions)
    - duplicates: 중복 그룹 조회 (Duplicate groups)
    - jobs: 백그라운드 작업 실행 (Background job commands, admin only)
"""

from fastapi import APIRouter

from app.api.v1.albums import router as albums_router
from app.api.v1.auth import router as auth_router
from app.api.v1.duplicates import router as duplicates_router
from app.api.v1.jobs import router as jobs_router
from app.api.v1.search import router as search_router

api_router: APIRouter = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(albums_router, prefix="/albums", tags=["Albums"])
api_router.include_router(search_router, prefix="/search", tags=["Search"])
api_router.include_router(duplicates_router, prefix="/duplicates", tags=["Duplicates"])
api_router.include_router(jobs_router, prefix="/jobs", tags=["Jobs"])
