import httpx
import openai

from personaliz.constants import OPENAI_BASE_URL, OPENAI_TEMPERATURE
from personaliz.errors import ProviderError
from personaliz.llm.base import CompletionClient
from personaliz.llm.models import Provider


class OpenAIClient(CompletionClient):
    provider = Provider.OPENAI

    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout: float,
        base_url: str = OPENAI_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._model = model
        # retries are handled by with_retry
        self._client = openai.AsyncOpenAI(
            api_key=api_key or "",
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=OPENAI_TEMPERATURE,
            )
        except openai.APIStatusError as e:
            raise ProviderError(self.provider.value, e.message, e.status_code) from e
        except openai.APIError as e:
            raise ProviderError(self.provider.value, e.message) from e

        try:
            content = response.choices[0].message.content
        except (IndexError, AttributeError) as e:
            raise ProviderError(self.provider.value, "response missing choices[0].message.content") from e
        return content if isinstance(content, str) else ""

    async def close(self) -> None:
        await self._client.close()
