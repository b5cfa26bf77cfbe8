import json

import httpx
import pytest
from tenacity import wait_none

from personaliz.constants import LLM_MAX_ATTEMPTS
from personaliz.errors import ProviderError
from personaliz.llm import base, router
from personaliz.llm.anthropic import AnthropicClient
from personaliz.llm.local import LocalClient
from personaliz.llm.models import LLMConfig, Provider
from personaliz.llm.openai import OpenAIClient
from personaliz.llm.retry import with_retry

ENDPOINT = "http://localhost:11434/api/generate"


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(base, "with_retry", with_retry.retry_with(wait=wait_none()))


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestLLMConfig:
    def test_provider_coerced(self):
        assert LLMConfig(provider="claude").provider == Provider.CLAUDE

    def test_describe_local(self):
        assert LLMConfig().describe() == f"local · phi3 · {ENDPOINT}"

    def test_describe_remote_hides_key(self):
        config = LLMConfig(provider=Provider.OPENAI, model="gpt-4o-mini", api_key="sk-secret")
        assert "sk-secret" not in config.describe()
        assert config.is_remote


class TestLocalClient:
    @pytest.mark.asyncio
    async def test_request_and_response(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"response": "  hello there \n", "done": True})

        client = LocalClient(ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(handler))
        assert await client.complete("hi") == "hello there"
        assert str(seen[0].url) == ENDPOINT
        assert json.loads(seen[0].content) == {"model": "phi3", "prompt": "hi", "stream": False}
        await client.close()

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = LocalClient(
            ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(lambda r: httpx.Response(404))
        )
        with pytest.raises(ProviderError) as exc:
            await client.complete("hi")
        assert exc.value.status_code == 404
        assert exc.value.provider == "local"
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = LocalClient(ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderError, match="local request failed") as exc:
            await client.complete("hi")
        assert exc.value.status_code is None
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_field(self):
        client = LocalClient(
            ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))
        )
        with pytest.raises(ProviderError, match="response"):
            await client.complete("hi")
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, 42, ["hi"]])
    async def test_non_text_response(self, value):
        client = LocalClient(
            ENDPOINT,
            "phi3",
            timeout=5,
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"response": value})),
        )
        with pytest.raises(ProviderError, match="not text") as exc:
            await client.complete("hi")
        assert exc.value.status_code is None
        await client.close()

    @pytest.mark.asyncio
    async def test_retries_transient_status(self):
        statuses = [503, 200]

        def handler(request):
            status = statuses.pop(0)
            return httpx.Response(status, json={"response": "ok"})

        client = LocalClient(ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(handler))
        assert await client.complete("hi") == "ok"
        assert statuses == []
        await client.close()

    @pytest.mark.asyncio
    async def test_does_not_retry_client_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400)

        client = LocalClient(ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderError):
            await client.complete("hi")
        assert len(calls) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        client = LocalClient(ENDPOINT, "phi3", timeout=5, transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderError) as exc:
            await client.complete("hi")
        assert exc.value.status_code == 503
        assert len(calls) == LLM_MAX_ATTEMPTS
        await client.close()


def test_retry_wait_uses_multiplier():
    wait = with_retry.retry.wait
    assert wait.multiplier == 0.5
    assert wait.max == 8


class TestOpenAIClient:
    @pytest.mark.asyncio
    async def test_chat_completion(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "chatcmpl-1",
                    "object": "chat.completion",
                    "created": 0,
                    "model": "gpt-4o-mini",
                    "choices": [
                        {
                            "index": 0,
                            "message": {"role": "assistant", "content": " planned \n"},
                            "finish_reason": "stop",
                        }
                    ],
                },
            )

        client = OpenAIClient(
            api_key="sk-test",
            model="gpt-4o-mini",
            timeout=5,
            base_url="https://api.openai.test/v1",
            http_client=mock_client(handler),
        )
        assert await client.complete("plan this") == "planned"

        request = seen[0]
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o-mini"
        assert body["messages"] == [{"role": "user", "content": "plan this"}]
        await client.close()

    @pytest.mark.asyncio
    async def test_status_error(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "bad key", "type": "invalid_request_error"}})

        client = OpenAIClient(
            api_key="sk-bad",
            model="gpt-4o-mini",
            timeout=5,
            base_url="https://api.openai.test/v1",
            http_client=mock_client(handler),
        )
        with pytest.raises(ProviderError) as exc:
            await client.complete("plan this")
        assert exc.value.status_code == 401
        assert exc.value.provider == "openai"
        await client.close()

    @pytest.mark.asyncio
    async def test_null_content_is_empty_text(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "id": "chatcmpl-2",
                    "object": "chat.completion",
                    "created": 0,
                    "model": "gpt-4o-mini",
                    "choices": [
                        {"index": 0, "message": {"role": "assistant", "content": None}, "finish_reason": "stop"}
                    ],
                },
            )

        client = OpenAIClient(
            api_key="sk-test",
            model="gpt-4o-mini",
            timeout=5,
            base_url="https://api.openai.test/v1",
            http_client=mock_client(handler),
        )
        assert await client.complete("plan this") == ""
        await client.close()


class TestAnthropicClient:
    @pytest.mark.asyncio
    async def test_messages(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "msg_1",
                    "type": "message",
                    "role": "assistant",
                    "model": "claude-3-5-haiku-latest",
                    "content": [{"type": "text", "text": " hi there "}],
                    "stop_reason": "end_turn",
                    "stop_sequence": None,
                    "usage": {"input_tokens": 3, "output_tokens": 2},
                },
            )

        client = AnthropicClient(
            api_key="ak-test",
            model="claude-3-5-haiku-latest",
            timeout=5,
            base_url="https://api.anthropic.test",
            http_client=mock_client(handler),
        )
        assert await client.complete("hello") == "hi there"

        request = seen[0]
        assert request.url.path == "/v1/messages"
        assert request.headers["x-api-key"] == "ak-test"
        assert "anthropic-version" in request.headers
        body = json.loads(request.content)
        assert body["max_tokens"] == 1024
        assert body["messages"] == [{"role": "user", "content": "hello"}]
        await client.close()

    @pytest.mark.asyncio
    async def test_status_error(self):
        def handler(request):
            return httpx.Response(
                403, json={"type": "error", "error": {"type": "permission_error", "message": "denied"}}
            )

        client = AnthropicClient(
            api_key="ak-test",
            model="claude-3-5-haiku-latest",
            timeout=5,
            base_url="https://api.anthropic.test",
            http_client=mock_client(handler),
        )
        with pytest.raises(ProviderError) as exc:
            await client.complete("hello")
        assert exc.value.status_code == 403
        assert exc.value.provider == "claude"
        await client.close()


class TestRouter:
    @pytest.mark.parametrize(
        "provider,cls",
        [
            (Provider.LOCAL, LocalClient),
            (Provider.OPENAI, OpenAIClient),
            (Provider.CLAUDE, AnthropicClient),
        ],
    )
    def test_build_client(self, provider, cls):
        assert isinstance(router.build_client(LLMConfig(provider=provider, api_key="k")), cls)

    @pytest.mark.asyncio
    async def test_clients_are_cached_per_config(self):
        config = LLMConfig(model="llama3")
        first = router.get_completion_client(config)
        assert router.get_completion_client(LLMConfig(model="llama3")) is first
        assert router.get_completion_client(LLMConfig(model="phi3")) is not first
        await router.close()
