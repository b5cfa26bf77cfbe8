import json
from collections.abc import Callable

from personaliz.errors import PlannerMalformed, PlannerUnavailable, ProviderError
from personaliz.llm.base import CompletionClient
from personaliz.logging import get_logger
from personaliz.planner.models import PlannerResult
from personaliz.planner.prompts import PLANNER_PROMPT

_logger = get_logger(__name__)


def extract_json_object(text: str) -> dict:
    """Parse the substring between the first `{` and the last `}`."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise PlannerMalformed("JSON not found in planner response")
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise PlannerMalformed(f"Planner response is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise PlannerMalformed("Planner response is not a JSON object")
    return data


class PlannerClient:
    def __init__(self, get_client: Callable[[], CompletionClient]):
        # resolved per call so a settings change takes effect on the next message
        self.get_client = get_client

    async def complete(self, prompt: str) -> str:
        client = self.get_client()
        try:
            return await client.complete(prompt)
        except ProviderError as e:
            raise PlannerUnavailable(str(e)) from e

    async def plan(self, spec: str) -> PlannerResult:
        raw = await self.complete(PLANNER_PROMPT.format(spec=spec))
        result = PlannerResult.from_payload(extract_json_object(raw))
        _logger.debug(
            "Planner result",
            worker=result.worker,
            needs_more_info=result.needs_more_info,
        )
        return result
