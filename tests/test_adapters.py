"""Tests for LLM adapters, the stub generation provider and provider selection."""

import json

import httpx
import pytest

from clipforge.adapters.generation.stub import StubGenerationProvider
from clipforge.adapters.llm.anthropic import AnthropicProvider
from clipforge.adapters.llm.base import LLMMessage
from clipforge.adapters.llm.kie_chat import KieChatProvider
from clipforge.adapters.llm.stub import StubLLMProvider
from clipforge.domain.enums import TaskKind, TaskStatus
from clipforge.errors import ProviderError, TransportError

MESSAGES = [
    LLMMessage(role="system", content="You write video prompts."),
    LLMMessage(role="user", content="dad in driveway"),
]


class TestStubGenerationProvider:
    """Tests for the in-memory generation provider."""

    @pytest.mark.asyncio
    async def test_video_job_lifecycle(self) -> None:
        provider = StubGenerationProvider(steps=3)
        task_id = await provider.submit_job(TaskKind.VIDEO_GENERATION, {"prompt": "dad"})

        statuses = [(await provider.query_status(task_id)).status for _ in range(3)]
        final = await provider.query_status(task_id)

        assert statuses == [TaskStatus.WAITING, TaskStatus.GENERATING, TaskStatus.SUCCESS]
        assert final.result_url == f"https://stub.invalid/videos/{task_id}.mp4"

    @pytest.mark.asyncio
    async def test_character_job_returns_character_id(self) -> None:
        provider = StubGenerationProvider(steps=1)
        task_id = await provider.submit_job(TaskKind.CHARACTER_CREATION, {"timestamps": "1,4"})

        observation = await provider.query_status(task_id)

        assert observation.status == TaskStatus.SUCCESS
        assert observation.character_id is not None
        assert observation.result_url is None

    @pytest.mark.asyncio
    async def test_fail_marker(self) -> None:
        provider = StubGenerationProvider(steps=1)
        task_id = await provider.submit_job(TaskKind.VIDEO_GENERATION, {"prompt": "[fail] dad"})

        observation = await provider.query_status(task_id)

        assert observation.status == TaskStatus.FAIL
        assert observation.fail_message

    @pytest.mark.asyncio
    async def test_unknown_task(self) -> None:
        with pytest.raises(ProviderError):
            await StubGenerationProvider().query_status("missing")


class TestStubLLMProvider:
    """Tests for the stub LLM provider."""

    @pytest.mark.asyncio
    async def test_echoes_user_message(self) -> None:
        llm = StubLLMProvider()

        response = await llm.complete(MESSAGES)

        assert "dad in driveway" in response.content
        assert response.model == "stub-model"
        assert len(llm.calls) == 1


class TestAnthropicProvider:
    """Tests for the Anthropic messages adapter."""

    @pytest.mark.asyncio
    async def test_complete(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/messages"
            assert request.headers["x-api-key"] == "test-key"
            seen.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "model": "claude-test",
                    "content": [{"type": "text", "text": "Handheld shot of a dad."}],
                    "usage": {"input_tokens": 10, "output_tokens": 5},
                    "stop_reason": "end_turn",
                },
            )

        llm = AnthropicProvider(
            api_key="test-key",
            model="claude-test",
            transport=httpx.MockTransport(handler),
        )
        response = await llm.complete(MESSAGES, max_tokens=100)

        assert response.content == "Handheld shot of a dad."
        assert response.usage["total_tokens"] == 15
        payload = seen[0]
        assert payload["system"] == "You write video prompts."
        assert payload["messages"] == [{"role": "user", "content": "dad in driveway"}]
        assert payload["max_tokens"] == 100

    @pytest.mark.asyncio
    async def test_api_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"message": "bad request"}})

        llm = AnthropicProvider(api_key="test-key", transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError) as exc_info:
            await llm.complete(MESSAGES)
        assert exc_info.value.code == 400

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        llm = AnthropicProvider(api_key="test-key", transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError):
            await llm.complete(MESSAGES)


class TestKieChatProvider:
    """Tests for the kie.ai chat adapter."""

    @pytest.mark.asyncio
    async def test_complete(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/gemini-test/v1/chat/completions"
            body = json.loads(request.content)
            assert body["messages"][1]["content"] == [{"type": "text", "text": "dad in driveway"}]
            return httpx.Response(
                200,
                json={
                    "choices": [
                        {"message": {"content": "Vertical selfie video."}, "finish_reason": "stop"}
                    ],
                    "usage": {"total_tokens": 12},
                },
            )

        llm = KieChatProvider(
            api_key="test-key",
            model="gemini-test",
            base_url="https://kie.test",
            transport=httpx.MockTransport(handler),
        )
        response = await llm.complete(MESSAGES)

        assert response.content == "Vertical selfie video."
        assert response.finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_wrapped_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"code": 500, "msg": "model overloaded"})

        llm = KieChatProvider(
            api_key="test-key",
            base_url="https://kie.test",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(ProviderError, match="model overloaded"):
            await llm.complete(MESSAGES)


class TestProviderSelection:
    """Tests for configuration-driven provider selection."""

    def test_stub_providers_from_environment(self) -> None:
        from clipforge.services.providers import get_generation_provider, get_llm_provider

        assert get_generation_provider().name == "stub"
        assert get_llm_provider().name == "stub"


class TestPromptWriter:
    """Tests for the prompt writer."""

    @pytest.mark.asyncio
    async def test_empty_completion_is_provider_error(self, stub_llm: StubLLMProvider) -> None:
        from clipforge.adapters.llm.base import LLMResponse
        from clipforge.services.prompt_writer import PromptWriter

        async def blank(*args, **kwargs) -> LLMResponse:
            return LLMResponse(content="   ", model="stub-model")

        stub_llm.complete = blank

        with pytest.raises(ProviderError):
            await PromptWriter(stub_llm).write_prompt("dad in driveway")

    @pytest.mark.asyncio
    async def test_continuation_names_character(self, stub_llm: StubLLMProvider) -> None:
        from clipforge.services.prompt_writer import PromptWriter

        prompt = await PromptWriter(stub_llm).write_continuation(
            base_prompt="A dad waves from his driveway.",
            character_name="dave",
            situation="dad in driveway",
        )

        assert prompt
        system, user = stub_llm.calls[0]
        assert system.role == "system"
        assert "dave" in system.content
        assert "A dad waves from his driveway." in user.content
