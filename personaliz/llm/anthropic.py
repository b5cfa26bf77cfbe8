import anthropic
import httpx

from personaliz.constants import ANTHROPIC_BASE_URL, ANTHROPIC_MAX_TOKENS
from personaliz.errors import ProviderError
from personaliz.llm.base import CompletionClient
from personaliz.llm.models import Provider


class AnthropicClient(CompletionClient):
    provider = Provider.CLAUDE

    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout: float,
        base_url: str = ANTHROPIC_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._model = model
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key or "",
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=ANTHROPIC_MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            raise ProviderError(self.provider.value, e.message, e.status_code) from e
        except anthropic.APIError as e:
            raise ProviderError(self.provider.value, e.message) from e

        for block in response.content:
            if block.type == "text" and isinstance(block.text, str):
                return block.text
        raise ProviderError(self.provider.value, "response missing content[0].text")

    async def close(self) -> None:
        await self._client.close()
