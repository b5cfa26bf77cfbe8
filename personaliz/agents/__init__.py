from personaliz.agents.models import AgentConfig, AgentMetadata, AgentRecord, EventHandler
from personaliz.agents.store import AgentStore
from personaliz.agents.synthesizer import Synthesizer, render_preview

__all__ = [
    "AgentConfig",
    "AgentMetadata",
    "AgentRecord",
    "AgentStore",
    "EventHandler",
    "Synthesizer",
    "render_preview",
]
