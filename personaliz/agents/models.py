import json
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict

from personaliz.constants import (
    AGENT_CREATED_BY,
    AGENT_TIMEOUT_MS,
    BUILD_MODE,
    DEFAULT_SCHEDULE,
    DEFAULT_SCHEDULE_TIME,
    SCRIPT_TYPE,
)


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class AgentMetadata(_FrozenModel):
    created_at: str
    created_by: str = AGENT_CREATED_BY
    sandbox_mode: bool = False
    role: str = ""
    goal: str = ""
    ai_planned_script: str = ""
    planner_reason: str = ""
    build_mode: str = BUILD_MODE


class AgentConfig(_FrozenModel):
    """Agent definition as written to `<agents_dir>/<name>.json` for the host to schedule."""

    name: str
    description: str
    role: str
    goal: str
    tools: tuple[str, ...] = ()
    schedule: str = DEFAULT_SCHEDULE
    schedule_time: str = DEFAULT_SCHEDULE_TIME
    enabled: bool = True
    command: str
    args: tuple[str, ...] = ()
    working_directory: str
    timeout: int = AGENT_TIMEOUT_MS
    retry_on_failure: bool = False
    script_type: str = SCRIPT_TYPE
    github_link: str = ""
    metadata: AgentMetadata

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, content: str) -> "AgentConfig":
        return cls.model_validate_json(content)

    @property
    def script(self) -> str:
        return self.metadata.ai_planned_script


def _to_dt(v):
    return datetime.fromisoformat(v) if isinstance(v, str) else v


def _to_json_list(v):
    if isinstance(v, str):
        return json.loads(v) if v else []
    return v if v is not None else []


@dataclass
class AgentRecord:
    id: int
    name: str
    description: str | None
    role: str | None
    goal: str | None
    tools: list[str]
    schedule: str
    schedule_time: str | None
    command: str
    args: list[str]
    timeout: int
    config_json: str
    created_at: datetime
    updated_at: datetime
    is_active: bool

    def __post_init__(self):
        self.tools = _to_json_list(self.tools)
        self.args = _to_json_list(self.args)
        self.created_at = _to_dt(self.created_at)
        self.updated_at = _to_dt(self.updated_at)
        self.is_active = bool(self.is_active)


@dataclass
class EventHandler:
    id: int
    name: str
    event_type: str
    url: str | None
    interval_seconds: int
    last_check: datetime | None
    is_active: bool
    config_json: str

    def __post_init__(self):
        self.last_check = _to_dt(self.last_check)
        self.is_active = bool(self.is_active)
