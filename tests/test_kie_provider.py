"""Tests for the kie.ai generation provider."""

import json

import httpx
import pytest

from clipforge.adapters.generation.kie import KieProvider
from clipforge.domain.enums import TaskKind, TaskStatus
from clipforge.errors import ProviderError, TransportError


def _provider(handler) -> KieProvider:
    return KieProvider(
        api_key="test-key",
        base_url="https://kie.test",
        transport=httpx.MockTransport(handler),
    )


def _record(state: str, **extra) -> dict:
    return {"code": 200, "msg": "success", "data": {"taskId": "t-1", "state": state, **extra}}


class TestKieProviderName:
    def test_name(self) -> None:
        assert KieProvider(api_key="test-key").name == "kie"


class TestSubmitJob:
    @pytest.mark.asyncio
    async def test_video_job(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"code": 200, "msg": "success", "data": {"taskId": "t-1"}})

        provider = _provider(handler)
        task_id = await provider.submit_job(
            TaskKind.VIDEO_GENERATION,
            {"prompt": "dad in driveway", "aspect_ratio": "portrait", "n_frames": "15"},
        )

        assert task_id == "t-1"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/jobs/createTask"
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "sora-2-text-to-video"
        assert body["input"]["prompt"] == "dad in driveway"

    @pytest.mark.asyncio
    async def test_model_selection(self) -> None:
        models: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            models.append(json.loads(request.content)["model"])
            return httpx.Response(200, json={"code": 200, "data": {"taskId": "t-1"}})

        provider = _provider(handler)
        await provider.submit_job(
            TaskKind.VIDEO_GENERATION, {"prompt": "p", "image_urls": ["https://img/1.png"]}
        )
        await provider.submit_job(
            TaskKind.CHARACTER_CREATION, {"origin_task_id": "t-0", "timestamps": "1,4"}
        )

        assert models == ["sora-2-image-to-video", "sora-2-characters-pro"]

    @pytest.mark.asyncio
    async def test_non_success_code_is_provider_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            # kie.ai reports failures inside an HTTP 200 envelope
            return httpx.Response(200, json={"code": 402, "msg": "Credits insufficient"})

        with pytest.raises(ProviderError) as exc_info:
            await _provider(handler).submit_job(TaskKind.VIDEO_GENERATION, {"prompt": "p"})

        assert exc_info.value.code == 402
        assert "Credits insufficient" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_client_error_status_is_provider_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"code": 401, "msg": "Unauthorized"})

        with pytest.raises(ProviderError):
            await _provider(handler).submit_job(TaskKind.VIDEO_GENERATION, {"prompt": "p"})

    @pytest.mark.asyncio
    async def test_network_failure_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await _provider(handler).submit_job(TaskKind.VIDEO_GENERATION, {"prompt": "p"})

    @pytest.mark.asyncio
    async def test_missing_task_id_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"code": 200, "data": {}})

        with pytest.raises(TransportError):
            await _provider(handler).submit_job(TaskKind.VIDEO_GENERATION, {"prompt": "p"})


class TestQueryStatus:
    @pytest.mark.asyncio
    async def test_generating(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/jobs/recordInfo"
            assert request.url.params["taskId"] == "t-1"
            return httpx.Response(200, json=_record("generating", progress=42))

        observation = await _provider(handler).query_status("t-1")

        assert observation.status == TaskStatus.GENERATING
        assert observation.progress == 42
        assert observation.result_url is None

    @pytest.mark.asyncio
    async def test_success_parses_result_json(self) -> None:
        result_json = json.dumps({"resultUrls": ["https://cdn/x.mp4", "https://cdn/y.mp4"]})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record("success", resultJson=result_json))

        observation = await _provider(handler).query_status("t-1")

        assert observation.status == TaskStatus.SUCCESS
        assert observation.progress == 100
        assert observation.result_url == "https://cdn/x.mp4"
        assert observation.result_urls == ["https://cdn/x.mp4", "https://cdn/y.mp4"]

    @pytest.mark.asyncio
    async def test_character_success(self) -> None:
        result_json = json.dumps({"character_id": "char_123", "resultUrls": []})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record("success", resultJson=result_json))

        observation = await _provider(handler).query_status("t-1")

        assert observation.character_id == "char_123"
        assert observation.result_url is None

    @pytest.mark.asyncio
    async def test_fail(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record("fail", failMsg="content policy"))

        observation = await _provider(handler).query_status("t-1")

        assert observation.status == TaskStatus.FAIL
        assert observation.fail_message == "content policy"
        assert observation.result_url is None

    @pytest.mark.asyncio
    async def test_unparseable_result_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record("success", resultJson="{not json"))

        observation = await _provider(handler).query_status("t-1")

        assert observation.status == TaskStatus.SUCCESS
        assert observation.result_urls == []

    @pytest.mark.parametrize("progress", [None, "abc", -5, 250])
    @pytest.mark.asyncio
    async def test_progress_is_clamped(self, progress) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record("queuing", progress=progress))

        observation = await _provider(handler).query_status("t-1")

        assert 0 <= observation.progress <= 100

    @pytest.mark.asyncio
    async def test_unknown_state_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_record("exploded"))

        with pytest.raises(TransportError):
            await _provider(handler).query_status("t-1")

    @pytest.mark.asyncio
    async def test_server_error_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="upstream unavailable")

        with pytest.raises(TransportError):
            await _provider(handler).query_status("t-1")

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(TransportError):
            await _provider(handler).query_status("t-1")


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_reports_key_presence(self) -> None:
        assert await KieProvider(api_key="k").health_check() is True
