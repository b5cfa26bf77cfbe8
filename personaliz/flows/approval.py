from enum import Enum

from personaliz.agents.models import AgentConfig
from personaliz.agents.store import AgentStore
from personaliz.agents.synthesizer import Synthesizer
from personaliz.constants import DEFAULT_AGENT_NAME
from personaliz.errors import DispatchFailure
from personaliz.flows.models import AgentApproval, LinkedInPostApproval, Transition
from personaliz.logging import get_logger
from personaliz.planner.models import Worker
from personaliz.runner import ProcessControl, ScriptRunner, dispatch_worker

_logger = get_logger(__name__)


class Reply(Enum):
    YES = "yes"
    NO = "no"
    OTHER = "other"


def classify_reply(text: str) -> Reply:
    match text.strip().lower():
        case "yes":
            return Reply.YES
        case "no":
            return Reply.NO
        case _:
            return Reply.OTHER


AGENT_REPROMPT = (
    "Please reply with only 'yes' or 'no' for the current agent preview.",
    "Type 'yes' to create it, or 'no' to cancel.",
)
POST_REPROMPT = (
    "Please reply with only 'yes' or 'no' for the LinkedIn post preview.",
    "Type 'yes' to deploy it, or 'no' to cancel.",
)
TEST_REPROMPT = ("Please reply with only 'yes' or 'no'. Type 'yes' to run the test now, or 'no' to skip it.",)

SANDBOX_TEST_STEPS = (
    "🔒 SANDBOX MODE - Simulated execution:",
    "   ✓ Would open browser",
    "   ✓ Would navigate to LinkedIn",
    "   ✓ Would wait for manual login",
    "   ✓ Would fill post content",
    "   ✓ Would wait for manual approval",
    "",
    "To run for real, disable sandbox mode:",
    "   Type: sandbox off",
)
LIVE_TEST_STEPS = (
    "Next steps:",
    "   1. Log in to LinkedIn manually",
    "   2. Review the highlighted post content",
    "   3. Click 'Post' button when ready",
    "   4. Or close browser to cancel",
)
TEST_TROUBLESHOOTING = (
    "💡 Troubleshooting:",
    "   • Make sure Playwright is installed: npx playwright install chromium",
    "   • Verify linkedin_bot.js exists in project folder",
)


def failed(context: str, error: Exception, replies: list[str], logs: list[str]) -> Transition:
    _logger.warning("Dispatch failed", context=context, error=str(error))
    replies.append(f"❌ {context} failed: {error}")
    logs.append(f"[ERROR] {context}: {error}")
    return Transition(next=None, replies=tuple(replies), logs=tuple(logs))


class ApprovalGate:
    """Runs the side effects behind a preview, and only after a literal yes."""

    def __init__(
        self,
        store: AgentStore,
        process: ProcessControl,
        runner: ScriptRunner,
        synthesizer: Synthesizer,
    ):
        self.store = store
        self.process = process
        self.runner = runner
        self.synthesizer = synthesizer

    async def _persist(self, config: AgentConfig, replies: list[str], logs: list[str]) -> None:
        result = await self.store.create_agent_file(config.name or DEFAULT_AGENT_NAME, config.to_json())
        replies.append(f"✅ {result}")
        logs.append("[OPENCLAW] ✅ Agent file written")

    async def _restart_host(self, sandbox: bool, replies: list[str], logs: list[str]) -> None:
        if sandbox:
            _logger.info("(simulated) Host restart")
            replies.append("🔒 SANDBOX MODE - Skipping OpenClaw restart")
            logs.append("[OPENCLAW] (simulated) Would restart OpenClaw")
            return
        replies.append("Restarting OpenClaw...")
        await self.process.restart_host()
        logs.append("[OPENCLAW] ✅ Restart complete")

    async def review_agent(self, flow: AgentApproval, text: str, sandbox: bool) -> Transition:
        match classify_reply(text):
            case Reply.OTHER:
                return Transition(next=flow, replies=AGENT_REPROMPT)
            case Reply.NO:
                return Transition(
                    replies=("Agent creation cancelled.",),
                    logs=("[APPROVAL] ❌ User cancelled agent creation",),
                )

        replies = ["Creating agent..."]
        logs = ["[APPROVAL] ✅ User confirmed agent creation"]
        try:
            await self._persist(flow.agent_config, replies, logs)
            await self._restart_host(sandbox, replies, logs)
        except DispatchFailure as e:
            return failed("Agent deploy", e, replies, logs)
        if not sandbox:
            replies.append("✅ OpenClaw restarted! Agent is now active.")
        return Transition(replies=tuple(replies), logs=tuple(logs))

    async def review_post(self, flow: LinkedInPostApproval, text: str, sandbox: bool) -> Transition:
        if flow.test_now:
            return await self._review_test(flow, text, sandbox)

        match classify_reply(text):
            case Reply.OTHER:
                return Transition(next=flow, replies=POST_REPROMPT)
            case Reply.NO:
                return Transition(
                    replies=("LinkedIn post cancelled.",),
                    logs=("[APPROVAL] ❌ User cancelled LinkedIn post",),
                )

        replies = ["Creating LinkedIn agent..."]
        logs = ["[APPROVAL] ✅ User confirmed LinkedIn post"]
        config = self.synthesizer.for_post(flow.post_text, sandbox)
        try:
            await self._persist(config, replies, logs)
            await self._restart_host(sandbox, replies, logs)
        except DispatchFailure as e:
            return failed("LinkedIn agent deploy", e, replies, logs)

        replies.append("✅ LinkedIn agent deployed successfully!")
        replies.append(
            "🔒 Sandbox mode active"
            if sandbox
            else f"Agent scheduled for {config.schedule} execution @ {config.schedule_time}"
        )
        replies.append("Would you like to test it now? (yes/no)")
        logs.append("[OPENCLAW] ✅ Setup complete - agent ready")
        return Transition(
            next=LinkedInPostApproval(post_text=flow.post_text, test_now=True),
            replies=tuple(replies),
            logs=tuple(logs),
        )

    async def _review_test(self, flow: LinkedInPostApproval, text: str, sandbox: bool) -> Transition:
        match classify_reply(text):
            case Reply.OTHER:
                return Transition(next=flow, replies=TEST_REPROMPT)
            case Reply.NO:
                return Transition(replies=("Okay, skipping the test run.",))

        replies = ["Starting LinkedIn bot for immediate test..."]
        logs = ["[AUTOMATION] Starting immediate test..."]
        if sandbox:
            replies.extend(SANDBOX_TEST_STEPS)
            logs.append("[AUTOMATION] ✅ Simulation complete")
            return Transition(replies=tuple(replies), logs=tuple(logs))

        try:
            replies.append(await dispatch_worker(self.runner, Worker.POSTER, [flow.post_text], sandbox=False))
        except DispatchFailure as e:
            transition = failed("LinkedIn Bot Test", e, replies, logs)
            return Transition(replies=transition.replies + TEST_TROUBLESHOOTING, logs=transition.logs)
        replies.extend(LIVE_TEST_STEPS)
        logs.append("[AUTOMATION] ✅ Playwright running - browser launched")
        return Transition(replies=tuple(replies), logs=tuple(logs))
