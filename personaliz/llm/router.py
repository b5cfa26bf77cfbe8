from personaliz.llm.anthropic import AnthropicClient
from personaliz.llm.base import CompletionClient
from personaliz.llm.local import LocalClient
from personaliz.llm.models import LLMConfig, Provider
from personaliz.llm.openai import OpenAIClient

_clients: dict[LLMConfig, CompletionClient] = {}


def build_client(config: LLMConfig) -> CompletionClient:
    match config.provider:
        case Provider.LOCAL:
            return LocalClient(endpoint=config.endpoint, model=config.model, timeout=config.timeout)
        case Provider.OPENAI:
            return OpenAIClient(api_key=config.api_key, model=config.model, timeout=config.timeout)
        case Provider.CLAUDE:
            return AnthropicClient(api_key=config.api_key, model=config.model, timeout=config.timeout)
        case _:
            raise ValueError(f"Unknown provider: {config.provider}")


def get_completion_client(config: LLMConfig) -> CompletionClient:
    if config not in _clients:
        _clients[config] = build_client(config)
    return _clients[config]


async def close() -> None:
    for client in _clients.values():
        await client.close()
    _clients.clear()
