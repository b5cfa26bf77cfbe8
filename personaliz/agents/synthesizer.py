from pathlib import Path

from personaliz.agents.models import AgentConfig, AgentMetadata, utc_timestamp
from personaliz.constants import DEFAULT_AGENT_NAME, DEFAULT_SCHEDULE, DEFAULT_SCHEDULE_TIME, PREVIEW_RULE_WIDTH
from personaliz.errors import PlannerError
from personaliz.logging import get_logger
from personaliz.planner.client import PlannerClient
from personaliz.planner.heuristic import AGENT_ROLES, extract_github_link, extract_hashtag, tools_for
from personaliz.planner.models import PlannerResult, Worker
from personaliz.planner.prompts import COMMENT_CONTENT_PROMPT, POST_CONTENT_PROMPT, link_hint

_logger = get_logger(__name__)

POST_AGENT_NAME = "LinkedIn AI Poster"
POST_AGENT_DESCRIPTION = "AI-generated LinkedIn content"
POST_AGENT_REASON = "Approved LinkedIn post"
POST_BUILD_MODE = "linkedin_post"

GENERIC_INVOCATION = "AI Custom Agent invoked: {spec}"

CONTENT_PROMPTS = {
    Worker.POSTER: POST_CONTENT_PROMPT,
    Worker.COMMENTER: COMMENT_CONTENT_PROMPT,
}


def post_template(spec: str, github_link: str) -> str:
    parts = [f"Sharing an update on {spec}."]
    if github_link:
        parts.append(f"Project: {github_link}")
    parts.append("#automation #ai")
    return " ".join(parts)


def comment_template(github_link: str) -> str:
    text = "Great perspective, thanks for sharing."
    if github_link:
        text += f" Related project: {github_link}"
    return text


def fallback_content(worker: Worker, spec: str, github_link: str) -> str:
    if worker is Worker.POSTER:
        return post_template(spec, github_link)
    return comment_template(github_link)


def render_preview(config: AgentConfig) -> list[str]:
    rule = "═" * PREVIEW_RULE_WIDTH
    return [
        "🎉 Agent Preview:",
        rule,
        f"📛 Name: {config.name}",
        f"📝 Description: {config.description}",
        f"🎭 Role: {config.role}",
        f"📜 Script: {config.script or Worker.NONE}",
        f"⏰ Schedule: {config.schedule} at {config.schedule_time}",
        f"🧠 Planner: {config.metadata.planner_reason}",
        rule,
        "Create this agent? (yes/no)",
    ]


class Synthesizer:
    def __init__(self, planner: PlannerClient, project_dir: Path):
        self.planner = planner
        self.project_dir = project_dir

    def worker_path(self, worker: Worker) -> str:
        return str(self.project_dir / worker.value)

    async def generate_content(self, worker: Worker, spec: str, github_link: str) -> str:
        prompt = CONTENT_PROMPTS[worker].format(spec=spec, link_hint=link_hint(github_link))
        try:
            text = await self.planner.complete(prompt)
        except PlannerError as e:
            _logger.warning("Content generation failed, using template", worker=worker.value, error=str(e))
            return fallback_content(worker, spec, github_link)
        return text or fallback_content(worker, spec, github_link)

    async def worker_args(self, worker: Worker, spec: str, github_link: str) -> list[str]:
        match worker:
            case Worker.POSTER | Worker.COMMENTER:
                return [await self.generate_content(worker, spec, github_link)]
            case Worker.HASHTAG_MONITOR:
                return [extract_hashtag(spec)]
            case _:
                return []

    async def synthesize(self, spec: str, planned: PlannerResult, sandbox: bool) -> AgentConfig:
        """Assemble the final config from a gap-free plan; content is generated only for post and comment workers."""
        worker = planned.selected_worker
        github_link = extract_github_link(spec)

        if worker.is_script:
            command = "node"
            args = [self.worker_path(worker), *await self.worker_args(worker, spec, github_link)]
        else:
            escaped = spec.replace('"', '\\"')
            command = "cmd"
            args = ["/C", f"echo {GENERIC_INVOCATION.format(spec=escaped)}"]

        role = planned.role or AGENT_ROLES[worker]
        goal = planned.goal or spec
        reason = planned.reason or ""
        return AgentConfig(
            name=planned.name or DEFAULT_AGENT_NAME,
            description=spec,
            role=role,
            goal=goal,
            tools=planned.tools or tools_for(worker),
            schedule=planned.schedule or DEFAULT_SCHEDULE,
            schedule_time=planned.schedule_time or DEFAULT_SCHEDULE_TIME,
            command=command,
            args=tuple(args),
            working_directory=str(self.project_dir),
            github_link=github_link,
            metadata=AgentMetadata(
                created_at=utc_timestamp(),
                sandbox_mode=sandbox,
                role=role,
                goal=goal,
                ai_planned_script=worker.value if worker.is_script else "",
                planner_reason=reason,
            ),
        )

    def for_post(self, post_text: str, sandbox: bool) -> AgentConfig:
        role = AGENT_ROLES[Worker.POSTER]
        return AgentConfig(
            name=POST_AGENT_NAME,
            description=POST_AGENT_DESCRIPTION,
            role=role,
            goal=POST_AGENT_DESCRIPTION,
            tools=tools_for(Worker.POSTER),
            command="node",
            args=(self.worker_path(Worker.POSTER), post_text),
            working_directory=str(self.project_dir),
            metadata=AgentMetadata(
                created_at=utc_timestamp(),
                sandbox_mode=sandbox,
                role=role,
                goal=POST_AGENT_DESCRIPTION,
                ai_planned_script=Worker.POSTER.value,
                planner_reason=POST_AGENT_REASON,
                build_mode=POST_BUILD_MODE,
            ),
        )
