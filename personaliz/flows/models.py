from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeAlias

from personaliz.agents.models import AgentConfig


class BuilderStep(StrEnum):
    AI_SPEC = "ai_spec"
    AI_FOLLOWUP = "ai_followup"


class CommentStep(StrEnum):
    GITHUB_LINK = "github_link"
    COMMENT_TEXT = "comment_text"


@dataclass(frozen=True)
class AgentBuilder:
    step: BuilderStep = BuilderStep.AI_SPEC
    accumulated_spec: str = ""
    last_question: str | None = None
    rounds: int = 0

    def merged(self, text: str) -> str:
        incoming = text.strip()
        return f"{self.accumulated_spec}\n{incoming}" if self.accumulated_spec else incoming


@dataclass(frozen=True)
class AutoCommentSetup:
    step: CommentStep = CommentStep.GITHUB_LINK
    github_link: str | None = None


@dataclass(frozen=True)
class HashtagMonitorSetup:
    step: str = "hashtag"


@dataclass(frozen=True)
class AgentApproval:
    agent_config: AgentConfig


@dataclass(frozen=True)
class LinkedInPostApproval:
    post_text: str
    test_now: bool = False


PendingFlow: TypeAlias = AgentBuilder | AutoCommentSetup | HashtagMonitorSetup | AgentApproval | LinkedInPostApproval


@dataclass(frozen=True)
class Transition:
    """Outcome of one message. `next=None` clears the pending flow."""

    next: PendingFlow | None = None
    replies: tuple[str, ...] = field(default_factory=tuple)
    logs: tuple[str, ...] = field(default_factory=tuple)
    sandbox: bool | None = None
