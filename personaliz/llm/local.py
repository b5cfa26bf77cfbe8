import httpx

from personaliz.errors import ProviderError
from personaliz.llm.base import CompletionClient
from personaliz.llm.models import Provider


class LocalClient(CompletionClient):
    """Ollama-style generate endpoint: `{model, prompt, stream}` in, `{response}` out."""

    provider = Provider.LOCAL

    def __init__(
        self,
        endpoint: str,
        model: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint
        self._model = model
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _complete(self, prompt: str) -> str:
        payload = {"model": self._model, "prompt": prompt, "stream": False}
        try:
            response = await self._client.post(self._endpoint, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(self.provider.value, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise ProviderError(self.provider.value, response.reason_phrase or response.text, response.status_code)

        try:
            text = response.json()["response"]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError(self.provider.value, "response missing 'response' field") from e
        if not isinstance(text, str):
            raise ProviderError(self.provider.value, f"'response' field is {type(text).__name__}, not text")
        return text

    async def close(self) -> None:
        await self._client.aclose()
