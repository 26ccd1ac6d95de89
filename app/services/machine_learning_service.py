"""머신러닝 서비스 클라이언트 — CLIP 텍스트 임베딩 요청.

Machine-learning service client — Requests CLIP text embeddings from the
external inference server over HTTP.

The server exposes ``POST {url}/predict`` taking a multipart form with
``modelName``, ``modelType``, JSON ``options`` and the input ``text``, and
answers with the embedding as a JSON array of floats.
"""

import json

import httpx
from loguru import logger

from app.config import settings
from app.services.system_config_service import ClipConfig
from app.utils.exceptions import BadGatewayError


class MachineLearningService:
    """머신러닝 추론 서버 HTTP 클라이언트.

    HTTP client for the machine-learning inference server. A single pooled
    ``httpx.AsyncClient`` is created lazily and closed from the app lifespan.
    Tests may pass their own client (e.g. with ``httpx.MockTransport``).
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client: httpx.AsyncClient | None = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=settings.MACHINE_LEARNING_TIMEOUT,
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            )
        return self._client

    def use_client(self, client: httpx.AsyncClient | None) -> None:
        """HTTP 클라이언트를 교체합니다 — Replace the HTTP client (None = recreate lazily)."""
        self._client = client

    async def close(self) -> None:
        """HTTP 클라이언트를 종료합니다 — Close the pooled client. Call from lifespan shutdown."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def encode_text(self, url: str, text: str, clip: ClipConfig) -> list[float]:
        """텍스트를 CLIP 임베딩으로 변환합니다.

        Encode a text query into a CLIP embedding.

        Args:
            url: 추론 서버 기본 URL (Inference server base URL)
            text: 인코딩할 텍스트 (Text to encode)
            clip: CLIP 모델 설정 (CLIP config, provides the model name)

        Returns:
            list[float]: 임베딩 벡터 (Embedding vector)

        Raises:
            BadGatewayError: 서버 오류, 연결 실패, 잘못된 임베딩 (Non-2xx response, transport error, empty or malformed embedding)
        """
        form: dict[str, str] = {
            "modelName": clip.model_name,
            "modelType": "clip",
            "options": json.dumps({"mode": "text"}),
            "text": text,
        }
        endpoint: str = f"{url.rstrip('/')}/predict"
        try:
            # files로 전달해야 multipart/form-data로 전송됨
            # Passing fields as files forces a multipart/form-data body
            response: httpx.Response = await self.client.post(
                endpoint,
                files={key: (None, value) for key, value in form.items()},
            )
        except httpx.HTTPError as exc:
            logger.warning("Machine learning request to {} failed: {}", endpoint, exc)
            raise BadGatewayError(f"Request for clip failed: {exc}") from exc

        if response.is_error:
            logger.warning(
                "Machine learning request to {} failed with status {}", endpoint, response.status_code
            )
            raise BadGatewayError(
                f"Request for clip failed with status {response.status_code}: {response.text}"
            )

        try:
            embedding: list[float] = [float(value) for value in response.json()]
        except (ValueError, TypeError) as exc:
            raise BadGatewayError(f"Request for clip returned an invalid embedding: {exc}") from exc
        if not embedding:
            raise BadGatewayError("Request for clip returned an empty embedding")
        return embedding


# 싱글턴 인스턴스 — Singleton instance
machine_learning_service: MachineLearningService = MachineLearningService()
