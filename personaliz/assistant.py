import asyncio
from dataclasses import dataclass

from personaliz.commands import Commands
from personaliz.errors import DispatchFailure
from personaliz.flows.approval import failed
from personaliz.flows.machine import FlowEngine
from personaliz.flows.models import Transition
from personaliz.logging import get_logger
from personaliz.router import classify
from personaliz.session import Role, Session

_logger = get_logger(__name__)


@dataclass(frozen=True)
class AssistantDeps:
    engine: FlowEngine
    commands: Commands


class Assistant:
    def __init__(self, session: Session, deps: AssistantDeps):
        self.session = session
        self.deps = deps
        self._lock = asyncio.Lock()

    async def handle(self, text: str) -> list[str]:
        """Process one user message as a single transaction and return the assistant replies."""
        if not text.strip():
            return []

        async with self._lock:
            try:
                transition = await self._step(text)
            except DispatchFailure as e:
                transition = failed("Request", e, [], [])
            self._commit(text, transition)
            return list(transition.replies)

    async def _step(self, text: str) -> Transition:
        pending = self.session.pending
        if pending is not None:
            _logger.debug("Advancing pending flow", flow=type(pending).__name__)
            return await self.deps.engine.advance(pending, text, self.session.sandbox)

        intent = classify(text)
        _logger.debug("Routed message", intent=intent.value)
        return await self.deps.commands.execute(intent, text, self.session)

    def _commit(self, text: str, transition: Transition) -> None:
        session = self.session
        session.add_message(Role.USER, text)
        session.pending = transition.next
        if transition.sandbox is not None:
            session.sandbox = transition.sandbox
        for reply in transition.replies:
            session.add_message(Role.ASSISTANT, reply)
        for entry in transition.logs:
            session.log(entry)
