"""API 요청 로깅 미들웨어 (loguru + Axiom).

API request logging middleware. Every request is logged through loguru
(method, path, status, duration, masked body, error detail) and, when
``AXIOM_API_TOKEN`` and ``AXIOM_DATASET`` are set, shipped to Axiom.
Sensitive fields (password, token, secret) are masked before logging.
"""

import json
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies and query strings
_SENSITIVE_KEYS = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_ERROR_LENGTH: int = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드를 재귀적으로 마스킹합니다 — Recursively mask sensitive fields."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if _SENSITIVE_KEYS.search(str(key)) else _mask(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        # 큰 ID 목록(벌크 에셋 추가 등)은 앞부분만 — Only the head of long lists (bulk asset ids)
        return [_mask(item, depth + 1) for item in data[:20]]
    return data


async def _read_json_body(request: Request) -> Any:
    body: bytes = await request.body()
    if not body:
        return None
    try:
        return _mask(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 로깅하는 미들웨어.

    Middleware logging every API request through loguru and, when
    configured, to an Axiom dataset.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET
        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start_time: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": request.url.path}
        if request.query_params:
            event["query_params"] = _mask(dict(request.query_params))
        if request.method in ("POST", "PUT", "PATCH"):
            body = await _read_json_body(request)
            if body is not None:
                event["request_body"] = body

        status_code: int = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
            if status_code >= 400:
                response, event["error"] = await self._capture_error(response)
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["status_code"] = status_code
            event["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            self._emit(event)

        return response

    @staticmethod
    async def _capture_error(response: Response) -> tuple[Response, str]:
        """에러 응답 본문에서 사유를 추출하고 응답을 재구성합니다.

        Read the error detail from an error response and rebuild the
        response, since its body iterator is consumed.
        """
        body: bytes = b""
        async for chunk in response.body_iterator:
            body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

        try:
            payload = json.loads(body)
            detail = payload.get("detail", payload) if isinstance(payload, dict) else payload
            error: str = detail if isinstance(detail, str) else json.dumps(detail)
        except (json.JSONDecodeError, UnicodeDecodeError):
            error = body.decode("utf-8", errors="replace")

        rebuilt = Response(
            content=body,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
        )
        return rebuilt, error[:_MAX_ERROR_LENGTH]

    def _emit(self, event: dict[str, Any]) -> None:
        level: str = "WARNING" if event["status_code"] >= 400 else "INFO"
        logger.bind(**event).log(
            level,
            "{} {} -> {} ({} ms)",
            event["method"],
            event["path"],
            event["status_code"],
            event["duration_ms"],
        )
        if self._client is None:
            return
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception as exc:
            # 전송 실패가 요청 처리에 영향주지 않도록 — Shipping failures never fail the request
            logger.warning("Axiom ingest failed: {}", exc)
