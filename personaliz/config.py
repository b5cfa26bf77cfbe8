import json
import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from personaliz.constants import DEFAULT_LOCAL_ENDPOINT, DEFAULT_LOCAL_MODEL, LLM_TIMEOUT
from personaliz.llm.models import LLMConfig, Provider
from personaliz.logging import get_logger

PERSONALIZ_DIR = Path.home() / ".personaliz"
SETTINGS_PATH = PERSONALIZ_DIR / "settings.json"

if os.name == "nt":
    HOST_STOP_COMMAND = 'taskkill /F /IM node.exe /FI "WINDOWTITLE eq OpenClaw*"'
    HOST_START_COMMAND = "start /B npm start"
else:
    HOST_STOP_COMMAND = "pkill -f openclaw"
    HOST_START_COMMAND = "nohup npm start > /dev/null 2>&1 &"

_logger = get_logger(__name__)


def load_user_settings() -> dict:
    if not SETTINGS_PATH.exists():
        return {}
    try:
        return json.loads(SETTINGS_PATH.read_text())
    except (json.JSONDecodeError, OSError):
        _logger.warning("Failed to load user settings", exc_info=True)
        return {}


def save_user_settings(settings: dict) -> None:
    PERSONALIZ_DIR.mkdir(exist_ok=True)
    SETTINGS_PATH.write_text(json.dumps(settings, indent=2))


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PERSONALIZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    # LLM backend, editable through `personaliz settings`
    llm_provider: Provider = Provider.LOCAL
    llm_model: str = DEFAULT_LOCAL_MODEL
    llm_endpoint: str = DEFAULT_LOCAL_ENDPOINT
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_timeout: float = LLM_TIMEOUT

    # Where the worker scripts live and where the agent host (OpenClaw) runs
    project_dir: Path = Field(default_factory=Path.cwd)
    host_dir: Path = Path.home() / "openclaw"
    agents_dir: Path | None = None
    host_start_command: str = HOST_START_COMMAND
    host_stop_command: str = HOST_STOP_COMMAND

    sandbox: bool = False

    # None keeps the agent builder asking follow-up questions for as long as the user answers
    max_clarifications: int | None = None

    log_level: str = "INFO"

    @field_validator("llm_endpoint")
    @classmethod
    def _validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"llm_endpoint must be an http(s) URL, got {v!r}")
        return v

    @field_validator("llm_timeout")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"llm_timeout must be positive, got {v}")
        return v

    @field_validator("max_clarifications")
    @classmethod
    def _validate_max_clarifications(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"max_clarifications must be at least 1, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def llm(self) -> LLMConfig:
        return LLMConfig(
            provider=self.llm_provider,
            model=self.llm_model,
            endpoint=self.llm_endpoint,
            api_key=self.llm_api_key or None,
            timeout=self.llm_timeout,
        )

    @property
    def resolved_agents_dir(self) -> Path:
        return self.agents_dir or self.host_dir / ".agents"

    @property
    def db_dir(self) -> Path:
        return PERSONALIZ_DIR

    @property
    def db_path(self) -> Path:
        return self.db_dir / "personaliz.db"


PERSIST_KEYS = frozenset(
    {
        "llm_provider",
        "llm_api_key",
        "llm_model",
        "llm_endpoint",
        "project_dir",
        "host_dir",
        "sandbox",
    }
)


def get_config() -> Config:
    settings = load_user_settings()

    # Build config: init args (settings.json) > env vars > defaults
    overrides = {k: settings[k] for k in PERSIST_KEYS if k in settings and settings[k] not in (None, "")}
    return Config(**overrides)  # type: ignore - pydantic handles validation


def persist_settings(config: Config, **updates) -> Config:
    settings = load_user_settings()
    for key, value in updates.items():
        if key not in PERSIST_KEYS:
            raise ValueError(f"Unknown setting: {key}")
        setattr(config, key, value)
        current = getattr(config, key)
        settings[key] = str(current) if isinstance(current, Path) else current
    save_user_settings(settings)
    return config
