"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 라우터, 수명 주기.

FastAPI application entry point — Middleware and router registration,
plus the lifespan that configures logging, runs the background job worker
and closes the machine-learning HTTP client on shutdown.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import settings
from app.logging_config import setup_logging
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.services.job_service import job_queue
from app.services.machine_learning_service import machine_learning_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """애플리케이션 수명 주기 — Startup and shutdown hooks."""
    setup_logging()
    job_queue.start()
    logger.info("{} started", settings.APP_NAME)
    yield
    await job_queue.stop()
    await machine_learning_service.close()
    logger.info("{} stopped", settings.APP_NAME)


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 요청 로깅 미들웨어 — Request logging (loguru + Axiom)
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# 라우터 등록 — Router registration
from app.api.v1 import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
