from dataclasses import dataclass

from personaliz.agents.synthesizer import Synthesizer, render_preview
from personaliz.constants import MIN_SPEC_WORDS
from personaliz.errors import DispatchFailure, InvalidInput, PlannerError
from personaliz.flows.approval import ApprovalGate, failed
from personaliz.flows.models import (
    AgentApproval,
    AgentBuilder,
    AutoCommentSetup,
    BuilderStep,
    CommentStep,
    HashtagMonitorSetup,
    LinkedInPostApproval,
    PendingFlow,
    Transition,
)
from personaliz.logging import get_logger
from personaliz.planner.client import PlannerClient
from personaliz.planner.heuristic import plan_heuristically
from personaliz.planner.models import PlannerResult, Worker
from personaliz.runner import ScriptRunner, dispatch_worker

_logger = get_logger(__name__)

SHORT_SPEC_QUESTION = "What exactly should it post or do, and how often should it run?"
DEFAULT_FOLLOWUP_QUESTION = "What should it post/do, and what schedule do you want?"
PLANNED_REASON = "AI requirement analysis"
FORCED_REASON = "Clarification limit reached, used heuristic planning"

INVALID_LINK = "❌ Please provide a valid URL starting with http:// or https://"

DEFAULT_COMMENT_TEMPLATE = (
    "Great insights! Thanks for sharing this with the #openclaw community. 🚀\n\n"
    "This aligns perfectly with what we're working on. Check out our project: {link}\n\n"
    "#automation #productivity #tech"
)

LAUNCH_BROWSER = ("🤖 Launching browser...", "Log into LinkedIn manually when the browser opens.")


def default_comment(link: str) -> str:
    return DEFAULT_COMMENT_TEMPLATE.format(link=link)


def validate_link(text: str) -> str:
    link = text.strip()
    if not link.startswith("http"):
        raise InvalidInput(INVALID_LINK)
    return link


def normalize_hashtag(text: str) -> str:
    hashtag = text.strip()
    return hashtag if hashtag.startswith("#") else f"#{hashtag}"


def word_count(text: str) -> int:
    return len(text.split())


@dataclass(frozen=True)
class FlowDeps:
    planner: PlannerClient
    synthesizer: Synthesizer
    approval: ApprovalGate
    runner: ScriptRunner
    # None means the builder keeps asking for as long as the answers stay vague
    max_clarifications: int | None = None


class FlowEngine:
    def __init__(self, deps: FlowDeps):
        self.deps = deps

    async def advance(self, flow: PendingFlow, text: str, sandbox: bool) -> Transition:
        """Advance the pending flow by exactly one step."""
        match flow:
            case AgentBuilder():
                return await self._advance_builder(flow, text, sandbox)
            case AutoCommentSetup(step=CommentStep.GITHUB_LINK):
                return self._save_link(flow, text)
            case AutoCommentSetup(step=CommentStep.COMMENT_TEXT):
                return await self._launch_commenter(flow, text, sandbox)
            case HashtagMonitorSetup():
                return await self._launch_monitor(text, sandbox)
            case AgentApproval():
                return await self.deps.approval.review_agent(flow, text, sandbox)
            case LinkedInPostApproval():
                return await self.deps.approval.review_post(flow, text, sandbox)
            case _:
                raise TypeError(f"Unknown flow: {flow!r}")

    # --- Agent builder ---

    def _clarification_exhausted(self, flow: AgentBuilder) -> bool:
        limit = self.deps.max_clarifications
        return limit is not None and flow.rounds >= limit

    def _ask(self, flow: AgentBuilder, spec: str, question: str) -> Transition:
        return Transition(
            next=AgentBuilder(
                step=BuilderStep.AI_FOLLOWUP,
                accumulated_spec=spec,
                last_question=question,
                rounds=flow.rounds + 1,
            ),
            replies=(question,),
            logs=(f"[AGENT] Asked for more detail (round {flow.rounds + 1})",),
        )

    async def plan(self, spec: str) -> PlannerResult:
        """Ask the LLM planner and fill whatever it left out from the heuristic plan."""
        try:
            planned = await self.deps.planner.plan(spec)
        except PlannerError as e:
            _logger.warning("Planner failed, falling back to heuristics", error=str(e))
            return plan_heuristically(spec)
        return planned.merge(plan_heuristically(spec, reason=PLANNED_REASON))

    async def _advance_builder(self, flow: AgentBuilder, text: str, sandbox: bool) -> Transition:
        spec = flow.merged(text)
        exhausted = self._clarification_exhausted(flow)

        if exhausted:
            _logger.info("Clarification limit reached", rounds=flow.rounds)
            planned = plan_heuristically(spec, reason=FORCED_REASON)
        elif word_count(spec) < MIN_SPEC_WORDS:
            return self._ask(flow, spec, SHORT_SPEC_QUESTION)
        else:
            planned = await self.plan(spec)
            if planned.needs_more_info:
                return self._ask(flow, spec, planned.question or DEFAULT_FOLLOWUP_QUESTION)

        config = await self.deps.synthesizer.synthesize(spec, planned, sandbox)
        return Transition(
            next=AgentApproval(agent_config=config),
            replies=tuple(render_preview(config)),
            logs=(f"[AGENT] AI-built agent preview ready: {config.name}",),
        )

    # --- Direct dispatch flows ---

    def _save_link(self, flow: AutoCommentSetup, text: str) -> Transition:
        try:
            link = validate_link(text)
        except InvalidInput as e:
            return Transition(next=flow, replies=(str(e),))
        return Transition(
            next=AutoCommentSetup(step=CommentStep.COMMENT_TEXT, github_link=link),
            replies=(
                f"✅ GitHub link saved: {link}",
                "Now, would you like to customize the comment text?",
                "💡 Type your custom comment, or type 'skip' to use default",
            ),
            logs=(f"[BROWSER] GitHub link: {link}",),
        )

    async def _launch_commenter(self, flow: AutoCommentSetup, text: str, sandbox: bool) -> Transition:
        comment = text.strip()
        if comment.lower() == "skip":
            comment = default_comment(flow.github_link or "")
            replies = ["✅ Using default comment template"]
        else:
            replies = ["✅ Custom comment saved"]
        replies.extend(LAUNCH_BROWSER)
        logs = [f"[BROWSER] Launching {Worker.COMMENTER.value}"]

        try:
            replies.append(await dispatch_worker(self.deps.runner, Worker.COMMENTER, [comment], sandbox))
        except DispatchFailure as e:
            return failed("Auto-Comment Bot", e, replies, logs)
        replies.append("📌 The bot will auto-comment on #openclaw posts once you log in.")
        logs.append("[BROWSER] Auto-comment bot started")
        return Transition(replies=tuple(replies), logs=tuple(logs))

    async def _launch_monitor(self, text: str, sandbox: bool) -> Transition:
        hashtag = normalize_hashtag(text)
        replies = [f"✅ Monitoring hashtag: {hashtag}", *LAUNCH_BROWSER]
        logs = [f"[BROWSER] Launching hashtag monitor for {hashtag}"]

        try:
            replies.append(await dispatch_worker(self.deps.runner, Worker.HASHTAG_MONITOR, [hashtag], sandbox))
        except DispatchFailure as e:
            return failed("Hashtag Monitor", e, replies, logs)
        replies.append(
            f"📌 Monitoring {hashtag} posts - results will save to hashtag_{hashtag.replace('#', '', 1)}_posts.json"
        )
        logs.append(f"[BROWSER] Hashtag monitor started for {hashtag}")
        return Transition(replies=tuple(replies), logs=tuple(logs))
