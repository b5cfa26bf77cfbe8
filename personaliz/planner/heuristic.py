import re

from personaliz.constants import DEFAULT_HASHTAG, DEFAULT_SCHEDULE, DEFAULT_SCHEDULE_TIME
from personaliz.planner.models import PlannerResult, Worker

GITHUB_LINK_RE = re.compile(r"https?://github\.com/\S+", re.IGNORECASE)
HASHTAG_RE = re.compile(r"#\w+")
TIME_RE = re.compile(r"\b([01]?\d|2[0-3]):[0-5]\d\b")
EVERY_MINUTES_RE = re.compile(r"every\s+(\d+)\s*min")

FALLBACK_REASON = "LLM planner unavailable, used heuristic planning"
GENERIC_REASON = "No predefined automation script matched; created generic AI agent"

AGENT_NAMES: dict[Worker, str] = {
    Worker.COMMENTER: "LinkedIn Comment Agent",
    Worker.HASHTAG_MONITOR: "LinkedIn Hashtag Monitor",
    Worker.TREND_SCRAPER: "LinkedIn Trend Agent",
    Worker.POSTER: "LinkedIn Content Agent",
    Worker.NONE: "AI Custom Agent",
}

AGENT_ROLES: dict[Worker, str] = {
    Worker.COMMENTER: "Comment Assistant",
    Worker.HASHTAG_MONITOR: "Social Monitor",
    Worker.TREND_SCRAPER: "Trend Analyst",
    Worker.POSTER: "Content Creator",
    Worker.NONE: "Task Agent",
}

SCRAPER_TOOLS = ("playwright", "linkedin", "scraper")
BROWSER_TOOLS = ("playwright", "linkedin", "llm")
ORCHESTRATOR_TOOLS = ("llm", "openclaw")
LINKEDIN_WORDS = ("linkedin", "hashtag", "post", "comment", "trend")


def _mentions(text: str, *words: str) -> bool:
    return any(w in text for w in words)


def select_worker(spec: str) -> Worker:
    lower = spec.lower()
    # requests that never mention LinkedIn get the generic agent
    if not _mentions(lower, *LINKEDIN_WORDS):
        return Worker.NONE
    if _mentions(lower, "comment", "reply"):
        return Worker.COMMENTER
    if _mentions(lower, "trend", "popular"):
        return Worker.TREND_SCRAPER
    if _mentions(lower, "monitor", "track", "hashtag", "#"):
        return Worker.HASHTAG_MONITOR
    if _mentions(lower, "linkedin", "post"):
        return Worker.POSTER
    return Worker.NONE


def tools_for(worker: Worker) -> tuple[str, ...]:
    if worker is Worker.HASHTAG_MONITOR:
        return SCRAPER_TOOLS
    if worker.is_script:
        return BROWSER_TOOLS
    return ORCHESTRATOR_TOOLS


def infer_schedule(spec: str) -> str:
    lower = spec.lower()
    if "hour" in lower:
        return "hourly"
    if "week" in lower:
        return "weekly"
    if match := EVERY_MINUTES_RE.search(lower):
        return f"every {int(match.group(1))} minutes"
    return DEFAULT_SCHEDULE


def infer_time(spec: str) -> str:
    match = TIME_RE.search(spec)
    return match.group(0) if match else DEFAULT_SCHEDULE_TIME


def extract_hashtag(spec: str) -> str:
    match = HASHTAG_RE.search(spec)
    return match.group(0) if match else DEFAULT_HASHTAG


def extract_github_link(spec: str) -> str:
    match = GITHUB_LINK_RE.search(spec)
    return match.group(0) if match else ""


def plan_heuristically(spec: str, reason: str = FALLBACK_REASON) -> PlannerResult:
    worker = select_worker(spec)
    return PlannerResult(
        needs_more_info=False,
        name=AGENT_NAMES[worker],
        role=AGENT_ROLES[worker],
        goal=spec,
        tools=tools_for(worker),
        schedule=infer_schedule(spec),
        schedule_time=infer_time(spec),
        worker=worker,
        reason=reason if worker.is_script else GENERIC_REASON,
    )
