import json
import re
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from personaliz.agents.models import AgentRecord, EventHandler
from personaliz.constants import AGENT_TIMEOUT_MS, DEFAULT_AGENT_NAME, DEFAULT_SCHEDULE
from personaliz.errors import DispatchFailure
from personaliz.logging import get_logger

_logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS agents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    description TEXT,
    role TEXT,
    goal TEXT,
    tools TEXT,
    schedule TEXT NOT NULL,
    schedule_time TEXT,
    command TEXT NOT NULL,
    args TEXT NOT NULL,
    timeout INTEGER NOT NULL,
    config_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS event_handlers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    event_type TEXT NOT NULL,
    url TEXT,
    interval_seconds INTEGER NOT NULL,
    last_check TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    config_json TEXT NOT NULL
);
"""

SQL_UPSERT_AGENT = """
INSERT INTO agents
    (name, description, role, goal, tools, schedule, schedule_time,
     command, args, timeout, config_json, created_at, updated_at, is_active)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1)
ON CONFLICT(name) DO UPDATE SET
    description = excluded.description,
    role = excluded.role,
    goal = excluded.goal,
    tools = excluded.tools,
    schedule = excluded.schedule,
    schedule_time = excluded.schedule_time,
    command = excluded.command,
    args = excluded.args,
    timeout = excluded.timeout,
    config_json = excluded.config_json,
    updated_at = excluded.updated_at
"""

SQL_INSERT_EVENT_HANDLER = """
INSERT INTO event_handlers (name, event_type, url, interval_seconds, is_active, config_json)
VALUES (?, ?, ?, ?, 1, ?)
"""


UNSAFE_FILENAME_RE = re.compile(r"[^\w.-]+")


def agent_filename(name: str) -> str:
    stem = UNSAFE_FILENAME_RE.sub("_", name).strip("._").lower()
    return f"{stem or DEFAULT_AGENT_NAME}.json"


class AgentStore:
    def __init__(self, conn: aiosqlite.Connection, agents_dir: Path):
        self.conn = conn
        self.agents_dir = agents_dir

    async def init_schema(self) -> None:
        await self.conn.executescript(SCHEMA)
        await self.conn.commit()

    async def create_agent_file(self, name: str, content: str) -> str:
        """Write the agent JSON where the host picks it up and mirror it into the agents table."""
        path = self.agents_dir / agent_filename(name)
        if path.parent != self.agents_dir:
            raise DispatchFailure(f"Agent name does not map to a file in {self.agents_dir}: {name!r}")
        try:
            self.agents_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise DispatchFailure(f"Failed to write agent file: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            _logger.warning("Agent file is not JSON, skipping database record", path=str(path))
            return f"Agent file created: {path}"

        await self._upsert_agent(name, data, content)
        _logger.info("Agent file created", name=name, path=str(path))
        return f"Agent file created: {path}"

    async def _upsert_agent(self, name: str, data: dict, content: str) -> None:
        now = datetime.now(UTC).isoformat()
        try:
            await self.conn.execute(
                SQL_UPSERT_AGENT,
                (
                    name,
                    data.get("description"),
                    data.get("role"),
                    data.get("goal"),
                    json.dumps(data.get("tools") or []),
                    data.get("schedule") or DEFAULT_SCHEDULE,
                    data.get("schedule_time"),
                    data.get("command") or "node",
                    json.dumps(data.get("args") or []),
                    data.get("timeout") or AGENT_TIMEOUT_MS,
                    content,
                    now,
                    now,
                ),
            )
            await self.conn.commit()
        except sqlite3.Error as e:
            raise DispatchFailure(f"Failed to store agent: {e}") from e

    async def _fetch(self, sql: str, params: tuple = ()) -> list:
        try:
            return await self.conn.execute_fetchall(sql, params)
        except sqlite3.Error as e:
            raise DispatchFailure(f"Failed to read from database: {e}") from e

    async def get_agent(self, name: str) -> AgentRecord | None:
        rows = await self._fetch("SELECT * FROM agents WHERE name = ?", (name,))
        if not rows:
            return None
        return AgentRecord(**rows[0])

    async def list_agents(self) -> list[AgentRecord]:
        rows = await self._fetch("SELECT * FROM agents ORDER BY created_at, id")
        return [AgentRecord(**row) for row in rows]

    async def list_event_handlers(self) -> list[EventHandler]:
        rows = await self._fetch("SELECT * FROM event_handlers ORDER BY id")
        return [EventHandler(**row) for row in rows]

    async def create_event_handler(
        self, name: str, event_type: str, url: str | None, interval_seconds: int
    ) -> EventHandler:
        config_json = json.dumps({"url": url or "", "intervalSeconds": interval_seconds})
        try:
            cursor = await self.conn.execute(
                SQL_INSERT_EVENT_HANDLER,
                (name, event_type, url or None, interval_seconds, config_json),
            )
            await self.conn.commit()
        except sqlite3.IntegrityError as e:
            raise DispatchFailure(f"Event handler already exists: {name}") from e
        except sqlite3.Error as e:
            raise DispatchFailure(f"Failed to store event handler: {e}") from e
        return EventHandler(
            id=cursor.lastrowid,
            name=name,
            event_type=event_type,
            url=url or None,
            interval_seconds=interval_seconds,
            last_check=None,
            is_active=True,
            config_json=config_json,
        )
