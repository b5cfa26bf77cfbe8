from personaliz.agents.store import AgentStore
from personaliz.agents.synthesizer import Synthesizer
from personaliz.assistant import Assistant, AssistantDeps
from personaliz.commands import CommandDeps, Commands
from personaliz.config import Config, get_config
from personaliz.database import Database
from personaliz.deps import check_dependencies
from personaliz.flows.approval import ApprovalGate
from personaliz.flows.machine import FlowDeps, FlowEngine
from personaliz.llm import router as llm_router
from personaliz.llm.base import CompletionClient
from personaliz.logging import get_logger
from personaliz.planner.client import PlannerClient
from personaliz.runner import ProcessControl, ScriptRunner
from personaliz.session import Session

_logger = get_logger(__name__)


class Runtime:
    def __init__(self, config: Config | None = None):
        self.config = config or get_config()
        self.session = Session(llm=self.config.llm, sandbox=self.config.sandbox)
        self.database = Database(self.config.db_path)

        self.runner = ScriptRunner(self.config.project_dir)
        self.process = ProcessControl(
            host_dir=self.config.host_dir,
            start_command=self.config.host_start_command,
            stop_command=self.config.host_stop_command,
        )
        self.planner = PlannerClient(self.get_completion_client)
        self.synthesizer = Synthesizer(self.planner, self.config.project_dir)

        self.store: AgentStore | None = None
        self.assistant: Assistant | None = None
        self._connected = False

    def get_completion_client(self) -> CompletionClient:
        return llm_router.get_completion_client(self.session.llm)

    async def connect(self) -> None:
        if self._connected:
            return

        await self.database.connect()
        self.store = AgentStore(self.database.conn, self.config.resolved_agents_dir)
        await self.store.init_schema()

        approval = ApprovalGate(
            store=self.store,
            process=self.process,
            runner=self.runner,
            synthesizer=self.synthesizer,
        )
        engine = FlowEngine(
            FlowDeps(
                planner=self.planner,
                synthesizer=self.synthesizer,
                approval=approval,
                runner=self.runner,
                max_clarifications=self.config.max_clarifications,
            )
        )
        commands = Commands(
            CommandDeps(
                store=self.store,
                runner=self.runner,
                process=self.process,
                planner=self.planner,
                engine=engine,
                host_dir=self.config.host_dir,
                check_dependencies=check_dependencies,
            )
        )
        self.assistant = Assistant(self.session, AssistantDeps(engine=engine, commands=commands))
        self._connected = True
        _logger.info("Runtime connected", db=str(self.config.db_path), llm=self.session.llm.describe())

    async def close(self) -> None:
        await llm_router.close()
        await self.database.close()
        self._connected = False
