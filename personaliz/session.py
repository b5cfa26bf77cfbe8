from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from personaliz.flows.models import PendingFlow
from personaliz.llm.models import LLMConfig
from personaliz.logging import get_logger

_logger = get_logger(__name__)


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class Session:
    llm: LLMConfig
    sandbox: bool = False
    messages: list[ChatMessage] = field(default_factory=list)
    logs: list[str] = field(default_factory=list)
    # the only slot a multi-turn flow can occupy
    pending: PendingFlow | None = None

    def add_message(self, role: Role, text: str) -> None:
        self.messages.append(ChatMessage(role=role, text=text))

    def log(self, entry: str) -> None:
        self.logs.append(entry)
        _logger.info(entry)
