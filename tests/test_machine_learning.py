"""머신러닝 클라이언트 테스트 — 요청 형식과 오류 매핑.

Machine-learning client tests — Request format and error mapping.
"""

import json

import httpx
import pytest

from app.services.machine_learning_service import MachineLearningService
from app.services.system_config_service import ClipConfig
from app.utils.exceptions import BadGatewayError

CLIP = ClipConfig(enabled=True, model_name="ViT-B-32__openai", duplicate_threshold=0.01)


def make_service(handler) -> MachineLearningService:
    return MachineLearningService(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestEncodeText:
    """텍스트 임베딩 요청 테스트."""

    async def test_sends_multipart_form(self):
        """multipart 폼으로 /predict에 요청하고 float 목록을 반환."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=[0.25, -1, 0.5])

        service = make_service(handler)
        embedding = await service.encode_text("http://ml.test/", "a red car", CLIP)

        assert embedding == [0.25, -1.0, 0.5]
        assert all(isinstance(value, float) for value in embedding)

        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == "http://ml.test/predict"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.read().decode()
        assert 'name="modelName"' in body and "ViT-B-32__openai" in body
        assert 'name="modelType"' in body and "clip" in body
        assert json.dumps({"mode": "text"}) in body
        assert "a red car" in body

    async def test_error_status(self):
        """오류 응답은 BadGatewayError (502)."""
        service = make_service(lambda request: httpx.Response(500, text="model crashed"))

        with pytest.raises(BadGatewayError) as exc_info:
            await service.encode_text("http://ml.test", "cat", CLIP)
        assert exc_info.value.status_code == 502
        assert "500" in exc_info.value.detail

    @pytest.mark.parametrize("payload", [[], {"embedding": "x"}, 3])
    async def test_invalid_embedding(self, payload):
        """빈/잘못된 임베딩도 BadGatewayError."""
        service = make_service(lambda request: httpx.Response(200, json=payload))

        with pytest.raises(BadGatewayError) as exc_info:
            await service.encode_text("http://ml.test", "cat", CLIP)
        assert exc_info.value.status_code == 502

    async def test_transport_error(self):
        """연결 실패도 BadGatewayError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(handler)

        with pytest.raises(BadGatewayError):
            await service.encode_text("http://ml.test", "cat", CLIP)


class TestClientLifecycle:
    """HTTP 클라이언트 생성/종료 테스트."""

    async def test_lazy_client_and_close(self):
        service = MachineLearningService()
        first = service.client
        assert service.client is first

        await service.close()
        assert first.is_closed
        assert service.client is not first
        await service.close()

    async def test_use_client(self):
        service = MachineLearningService()
        custom = httpx.AsyncClient()
        service.use_client(custom)
        assert service.client is custom
        await service.close()
