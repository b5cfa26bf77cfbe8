from dataclasses import dataclass, fields, replace
from enum import StrEnum


class Worker(StrEnum):
    POSTER = "linkedin_bot.js"
    COMMENTER = "linkedin_comment_bot.js"
    HASHTAG_MONITOR = "linkedin_hashtag_monitor.js"
    TREND_SCRAPER = "linkedin_trending_scraper.js"
    NONE = "none"

    @classmethod
    def parse(cls, value) -> "Worker | None":
        """Map a planner-supplied script name to a worker; unknown names count as no answer."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip())
        except ValueError:
            return None

    @property
    def is_script(self) -> bool:
        return self is not Worker.NONE


def _is_gap(value) -> bool:
    return value is None or value == "" or value == () or value is Worker.NONE


@dataclass(frozen=True)
class PlannerResult:
    needs_more_info: bool = False
    question: str | None = None
    name: str | None = None
    role: str | None = None
    goal: str | None = None
    tools: tuple[str, ...] | None = None
    schedule: str | None = None
    schedule_time: str | None = None
    worker: Worker | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, data: dict) -> "PlannerResult":
        tools = data.get("tools")
        return cls(
            needs_more_info=bool(data.get("needs_more_info")),
            question=_text(data.get("question")),
            name=_text(data.get("name")),
            role=_text(data.get("role")),
            goal=_text(data.get("goal")),
            tools=tuple(str(t) for t in tools if str(t).strip()) if isinstance(tools, list) else None,
            schedule=_text(data.get("schedule")),
            schedule_time=_text(data.get("schedule_time")),
            worker=Worker.parse(data.get("script_file")),
            reason=_text(data.get("reason")),
        )

    def merge(self, fallback: "PlannerResult") -> "PlannerResult":
        """Field-by-field merge: own values win, `fallback` fills the gaps."""
        updates = {}
        for f in fields(self):
            if f.name == "needs_more_info":
                continue
            if _is_gap(getattr(self, f.name)):
                updates[f.name] = getattr(fallback, f.name)
        return replace(self, **updates)

    @property
    def selected_worker(self) -> Worker:
        return self.worker or Worker.NONE


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
