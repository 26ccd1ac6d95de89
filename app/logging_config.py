"""로깅 설정 모듈 — loguru 단일 로깅 백엔드.

Logging configuration. Loguru is the single logging backend; stdlib
``logging`` records (uvicorn, SQLAlchemy, httpx) are intercepted and
routed through it.

- 개발: 컬러 텍스트 (Development: human-readable, colorized)
- LOG_JSON=True: JSON 라인 (JSON lines for log shippers)

Called by: app/main.py (lifespan startup)
"""

import logging
import sys

from loguru import logger

from app.config import settings


def setup_logging() -> None:
    """loguru를 구성하고 stdlib 로깅을 가로챕니다.

    Configure loguru sinks and intercept stdlib logging. Safe to call
    more than once.
    """
    logger.remove()
    level: str = settings.LOG_LEVEL.upper()

    if settings.LOG_JSON:
        logger.add(sys.stdout, level=level, format="{message}", serialize=True)
    else:
        logger.add(
            sys.stdout,
            level=level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            colorize=True,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # 시끄러운 서드파티 로거 억제 — Quiet noisy third-party loggers
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured (level={}, json={})", level, settings.LOG_JSON)


class _InterceptHandler(logging.Handler):
    """stdlib 로그 레코드를 loguru로 전달합니다 — Route stdlib records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # stdlib logging 내부 프레임 건너뛰기 — Skip frames inside the logging module
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())
