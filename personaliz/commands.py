import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from personaliz.agents.store import AgentStore
from personaliz.constants import (
    DEFAULT_EVENT_HANDLER_NAME,
    DEFAULT_EVENT_INTERVAL_SECONDS,
    DEFAULT_EVENT_TYPE,
    MIN_SPEC_WORDS,
    PREVIEW_RULE_WIDTH,
)
from personaliz.deps import DependencyReport
from personaliz.errors import DispatchFailure, PlannerError
from personaliz.flows.approval import failed
from personaliz.flows.machine import FlowEngine, word_count
from personaliz.flows.models import (
    AgentBuilder,
    AutoCommentSetup,
    HashtagMonitorSetup,
    LinkedInPostApproval,
    Transition,
)
from personaliz.logging import get_logger
from personaliz.planner.client import PlannerClient
from personaliz.planner.models import Worker
from personaliz.planner.prompts import CHAT_PROMPT, LINKEDIN_POST_PROMPT
from personaliz.router import Intent
from personaliz.runner import ProcessControl, ScriptRunner, dispatch_worker
from personaliz.session import Session

_logger = get_logger(__name__)

EVENT_NAME_RE = re.compile(r"\bfor\b\s*(.+)", re.IGNORECASE | re.DOTALL)

BUILDER_INTRO = (
    "🤖 Got it. No predefined form.",
    "Tell me what this agent should do, what it should post (if posting), and when it should run.",
    "💡 Example: Create an agent to post daily LinkedIn updates about AI hiring and include my GitHub repo link",
)
GITHUB_LINK_PROMPT = (
    "Please provide your GitHub repository link:",
    "💡 Example: https://github.com/yourusername/yourproject",
)
HASHTAG_PROMPT = (
    "📊 I'll monitor LinkedIn for you!",
    "Please enter the hashtag you want to monitor:",
    "💡 Example: #AI or #TechNews",
)


def event_handler_name(text: str) -> str:
    match = EVENT_NAME_RE.search(text)
    name = match.group(1).strip() if match else ""
    return name or DEFAULT_EVENT_HANDLER_NAME


@dataclass(frozen=True)
class CommandDeps:
    store: AgentStore
    runner: ScriptRunner
    process: ProcessControl
    planner: PlannerClient
    engine: FlowEngine
    host_dir: Path
    check_dependencies: Callable[[Path], Awaitable[DependencyReport]]


class Commands:
    """Runs whatever the router picked while no flow is pending."""

    def __init__(self, deps: CommandDeps):
        self.deps = deps

    async def execute(self, intent: Intent, text: str, session: Session) -> Transition:
        match intent:
            case Intent.OPEN_SETTINGS:
                return self.show_settings(session)
            case Intent.CHECK_DEPENDENCIES:
                return await self.check_dependencies()
            case Intent.LIST_AGENTS:
                return await self.list_agents()
            case Intent.LIST_EVENT_HANDLERS:
                return await self.list_event_handlers()
            case Intent.SANDBOX_ON:
                return Transition(
                    sandbox=True,
                    replies=("🔒 Sandbox mode ENABLED. Automation scripts will be simulated.",),
                    logs=("[SYSTEM] Sandbox mode enabled",),
                )
            case Intent.SANDBOX_OFF:
                return Transition(
                    sandbox=False,
                    replies=("🔓 Sandbox mode DISABLED. Automation scripts will run normally.",),
                    logs=("[SYSTEM] Sandbox mode disabled",),
                )
            case Intent.CREATE_EVENT_HANDLER:
                return await self.create_event_handler(text)
            case Intent.BUILD_AGENT:
                return await self.start_builder(text, session)
            case Intent.AUTO_COMMENT:
                return self.start_auto_comment(text)
            case Intent.HASHTAG_MONITOR:
                return Transition(
                    next=HashtagMonitorSetup(),
                    replies=HASHTAG_PROMPT,
                    logs=("[BROWSER] Hashtag monitor setup initiated",),
                )
            case Intent.TRENDING:
                return await self.scrape_trends(session)
            case Intent.START_HOST:
                return await self.start_host(session)
            case Intent.LINKEDIN_POST:
                return await self.draft_post(text)
            case _:
                return await self.chat(text)

    def show_settings(self, session: Session) -> Transition:
        llm = session.llm
        lines = [
            "⚙️ Current settings:",
            f"  • Provider: {llm.provider.value}",
            f"  • Model: {llm.model}",
        ]
        if llm.is_remote:
            lines.append(f"  • API key: {'set' if llm.api_key else 'missing'}")
        else:
            lines.append(f"  • Endpoint: {llm.endpoint}")
        lines.append(f"  • Sandbox: {'on' if session.sandbox else 'off'}")
        lines.append("Change them with: personaliz settings --provider <local|openai|claude> --model <name>")
        return Transition(replies=tuple(lines))

    async def check_dependencies(self) -> Transition:
        report = await self.deps.check_dependencies(self.deps.host_dir)
        return Transition(
            replies=("Checking system dependencies...", *report.render()),
            logs=(f"[SYSTEM] Running on {report.os}",),
        )

    async def list_agents(self) -> Transition:
        lines = ["Loading agents from database..."]
        try:
            agents = await self.deps.store.list_agents()
        except DispatchFailure as e:
            return failed("List Agents", e, lines, [])
        if not agents:
            lines.append("No agents yet. Say 'create an agent' to build one.")
        for agent in agents:
            state = "active" if agent.is_active else "inactive"
            when = f"{agent.schedule} at {agent.schedule_time}" if agent.schedule_time else agent.schedule
            lines.append(f"  • {agent.name} · {when} · {state}")
        return Transition(replies=tuple(lines), logs=(f"[DB] Loaded {len(agents)} agents from database",))

    async def list_event_handlers(self) -> Transition:
        lines = ["Loading event handlers from database..."]
        try:
            handlers = await self.deps.store.list_event_handlers()
        except DispatchFailure as e:
            return failed("List Event Handlers", e, lines, [])
        if not handlers:
            lines.append("No event handlers yet. Say 'create event for <name>' to add one.")
        for handler in handlers:
            target = f" · {handler.url}" if handler.url else ""
            lines.append(f"  • {handler.name} · {handler.event_type} every {handler.interval_seconds}s{target}")
        return Transition(replies=tuple(lines), logs=(f"[DB] Loaded {len(handlers)} event handlers",))

    async def create_event_handler(self, text: str) -> Transition:
        name = event_handler_name(text)
        replies = ["Creating periodic event handler..."]
        logs: list[str] = []
        try:
            await self.deps.store.create_event_handler(
                name, DEFAULT_EVENT_TYPE, None, DEFAULT_EVENT_INTERVAL_SECONDS
            )
        except DispatchFailure as e:
            return failed("Create Event Handler", e, replies, logs)
        replies.append(f'✅ Event handler "{name}" created successfully')
        logs.append(f"[DB] Created event handler: {name}")
        return Transition(replies=tuple(replies), logs=tuple(logs))

    async def start_builder(self, text: str, session: Session) -> Transition:
        logs = ("[AGENT] Starting conversational agent builder...",)
        # a request that already says enough is treated as the first answer
        if word_count(text) >= MIN_SPEC_WORDS:
            transition = await self.deps.engine.advance(AgentBuilder(), text, session.sandbox)
            return Transition(next=transition.next, replies=transition.replies, logs=logs + transition.logs)
        return Transition(next=AgentBuilder(), replies=BUILDER_INTRO, logs=logs)

    def start_auto_comment(self, text: str) -> Transition:
        lower = text.lower()
        action = "reply to" if "reply" in lower and "comment" not in lower else "comment on"
        return Transition(
            next=AutoCommentSetup(),
            replies=(f"🤖 I'll help you {action} LinkedIn posts!", *GITHUB_LINK_PROMPT),
            logs=("[BROWSER] Auto-comment setup initiated",),
        )

    async def scrape_trends(self, session: Session) -> Transition:
        replies = ["🔥 Analyzing LinkedIn trends...", "A browser window will open - log into LinkedIn manually."]
        logs = [f"[BROWSER] Launching {Worker.TREND_SCRAPER.value}"]
        try:
            replies.append(await dispatch_worker(self.deps.runner, Worker.TREND_SCRAPER, [], session.sandbox))
        except DispatchFailure as e:
            return failed("Trending Scraper", e, replies, logs)
        replies.append("📌 Scraping trending hashtags and topics - results saved to trending_topics.json")
        logs.append("[BROWSER] Trending scraper started")
        return Transition(replies=tuple(replies), logs=tuple(logs))

    async def start_host(self, session: Session) -> Transition:
        if session.sandbox:
            return Transition(
                replies=("🔒 SANDBOX MODE - Skipping OpenClaw start",),
                logs=("[OPENCLAW] (simulated) Would start OpenClaw",),
            )
        replies = ["Starting OpenClaw..."]
        logs = ["[OPENCLAW] Checking directory..."]
        try:
            await self.deps.process.start_host()
        except DispatchFailure as e:
            transition = failed("OpenClaw start", e, replies, logs)
            return Transition(
                replies=transition.replies + ("Make sure npm is installed and OpenClaw exists at the path.",),
                logs=transition.logs,
            )
        replies.append("✅ OpenClaw started in background!")
        logs.append("[OPENCLAW] ✅ Process started successfully")
        return Transition(replies=tuple(replies), logs=tuple(logs))

    async def draft_post(self, text: str) -> Transition:
        replies = ["Generating LinkedIn post..."]
        try:
            post = await self.deps.planner.complete(LINKEDIN_POST_PROMPT.format(request=text))
        except PlannerError as e:
            _logger.warning("Post generation failed", error=str(e))
            post = ""
        if not post:
            replies.append("Failed to generate LinkedIn post")
            return Transition(replies=tuple(replies), logs=("[LINKEDIN] Post generation failed",))

        rule = "─" * PREVIEW_RULE_WIDTH
        replies.extend(["LinkedIn Post Preview:", rule, post, rule, "Approve to post? (yes/no)"])
        return Transition(
            next=LinkedInPostApproval(post_text=post),
            replies=tuple(replies),
            logs=("[LINKEDIN] Preview ready - awaiting approval",),
        )

    async def chat(self, text: str) -> Transition:
        try:
            reply = await self.deps.planner.complete(CHAT_PROMPT.format(message=text))
        except PlannerError as e:
            _logger.warning("Chat completion failed", error=str(e))
            return Transition(replies=("AI error",))
        if not reply:
            _logger.warning("Chat completion was empty")
            return Transition(replies=("AI error",))
        return Transition(replies=(reply,))
