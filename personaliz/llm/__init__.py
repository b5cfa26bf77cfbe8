from personaliz.llm.base import CompletionClient
from personaliz.llm.models import LLMConfig, Provider
from personaliz.llm.router import get_completion_client

__all__ = ["CompletionClient", "LLMConfig", "Provider", "get_completion_client"]
