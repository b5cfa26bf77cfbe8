from collections.abc import AsyncGenerator
from dataclasses import dataclass
from pathlib import Path

import pytest
import pytest_asyncio

from personaliz.agents.store import AgentStore
from personaliz.agents.synthesizer import Synthesizer
from personaliz.assistant import Assistant, AssistantDeps
from personaliz.commands import CommandDeps, Commands
from personaliz.database import Database
from personaliz.deps import DependencyReport
from personaliz.errors import ProviderError
from personaliz.flows.approval import ApprovalGate
from personaliz.flows.machine import FlowDeps, FlowEngine
from personaliz.llm.base import CompletionClient
from personaliz.llm.models import LLMConfig, Provider
from personaliz.planner.client import PlannerClient
from personaliz.session import Session

PROJECT_DIR = Path("/opt/personaliz")


class FakeCompletionClient(CompletionClient):
    """Replays scripted completions in order; once they run out every call fails like an offline backend."""

    provider = Provider.LOCAL

    def __init__(self, *responses: str | Exception):
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def _complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise ProviderError(self.provider.value, "connection refused")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        pass


class FakeRunner:
    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple] = []
        self.error = error

    async def run(self, worker, args):
        self.calls.append((worker, list(args)))
        if self.error:
            raise self.error
        return f"Started {worker.value} in background"


class FakeProcess:
    def __init__(self, error: Exception | None = None):
        self.restarts = 0
        self.starts = 0
        self.error = error

    async def restart_host(self) -> None:
        self.restarts += 1
        if self.error:
            raise self.error

    async def start_host(self) -> str:
        self.starts += 1
        if self.error:
            raise self.error
        return ""


READY_REPORT = DependencyReport(
    os="linux", node="v20.11.0", npm="10.2.4", playwright=True, ollama=True, openclaw=True
)


@dataclass
class Harness:
    llm: FakeCompletionClient
    runner: FakeRunner
    process: FakeProcess
    store: AgentStore
    planner: PlannerClient
    synthesizer: Synthesizer
    engine: FlowEngine
    commands: Commands
    session: Session
    assistant: Assistant


def build_harness(
    store: AgentStore,
    llm: FakeCompletionClient | None = None,
    runner: FakeRunner | None = None,
    process: FakeProcess | None = None,
    max_clarifications: int | None = None,
    sandbox: bool = False,
    report: DependencyReport = READY_REPORT,
) -> Harness:
    llm = llm or FakeCompletionClient()
    runner = runner or FakeRunner()
    process = process or FakeProcess()
    planner = PlannerClient(lambda: llm)
    synthesizer = Synthesizer(planner, PROJECT_DIR)
    approval = ApprovalGate(store=store, process=process, runner=runner, synthesizer=synthesizer)
    engine = FlowEngine(
        FlowDeps(
            planner=planner,
            synthesizer=synthesizer,
            approval=approval,
            runner=runner,
            max_clarifications=max_clarifications,
        )
    )

    async def check_dependencies(host_dir: Path) -> DependencyReport:
        return report

    commands = Commands(
        CommandDeps(
            store=store,
            runner=runner,
            process=process,
            planner=planner,
            engine=engine,
            host_dir=Path("/opt/openclaw"),
            check_dependencies=check_dependencies,
        )
    )
    session = Session(llm=LLMConfig(), sandbox=sandbox)
    assistant = Assistant(session, AssistantDeps(engine=engine, commands=commands))
    return Harness(
        llm=llm,
        runner=runner,
        process=process,
        store=store,
        planner=planner,
        synthesizer=synthesizer,
        engine=engine,
        commands=commands,
        session=session,
        assistant=assistant,
    )


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[Database]:
    db = Database(tmp_path / "personaliz.db")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def agents_dir(tmp_path: Path) -> Path:
    return tmp_path / "openclaw" / ".agents"


@pytest_asyncio.fixture
async def store(db: Database, agents_dir: Path) -> AgentStore:
    store = AgentStore(db.conn, agents_dir)
    await store.init_schema()
    return store


@pytest.fixture
def harness(store: AgentStore) -> Harness:
    return build_harness(store)
