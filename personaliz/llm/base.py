from abc import ABC, abstractmethod

from personaliz.errors import ProviderError
from personaliz.llm.models import Provider
from personaliz.llm.retry import with_retry


class CompletionClient(ABC):
    provider: Provider

    @abstractmethod
    async def _complete(self, prompt: str) -> str: ...

    async def complete(self, prompt: str) -> str:
        text = await with_retry(self._complete, prompt)
        if not isinstance(text, str):
            raise ProviderError(self.provider.value, f"completion is {type(text).__name__}, not text")
        return text.strip()

    @abstractmethod
    async def close(self) -> None: ...
