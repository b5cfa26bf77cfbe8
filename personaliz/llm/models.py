from dataclasses import dataclass
from enum import StrEnum

from personaliz.constants import DEFAULT_LOCAL_ENDPOINT, DEFAULT_LOCAL_MODEL, LLM_TIMEOUT


class Provider(StrEnum):
    LOCAL = "local"
    OPENAI = "openai"
    CLAUDE = "claude"


@dataclass(frozen=True)
class LLMConfig:
    provider: Provider = Provider.LOCAL
    model: str = DEFAULT_LOCAL_MODEL
    endpoint: str = DEFAULT_LOCAL_ENDPOINT  # local only
    api_key: str | None = None  # remote only
    timeout: float = LLM_TIMEOUT

    def __post_init__(self):
        if isinstance(self.provider, str):
            object.__setattr__(self, "provider", Provider(self.provider))

    @property
    def is_remote(self) -> bool:
        return self.provider != Provider.LOCAL

    def describe(self) -> str:
        if self.is_remote:
            key_state = "set" if self.api_key else "missing"
            return f"{self.provider.value} · {self.model} · api key {key_state}"
        return f"{self.provider.value} · {self.model} · {self.endpoint}"
