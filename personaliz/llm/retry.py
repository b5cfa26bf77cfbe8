from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from personaliz.constants import LLM_MAX_ATTEMPTS
from personaliz.errors import ProviderError
from personaliz.logging import get_logger

_logger = get_logger(__name__)

RETRYABLE_STATUSES = frozenset({408, 409, 429})


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, ProviderError) and exc.status_code is not None:
        return exc.status_code in RETRYABLE_STATUSES or exc.status_code >= 500
    return False


def _log_retry(retry_state) -> None:
    error = retry_state.outcome.exception()
    _logger.warning(
        "Completion failed, retrying",
        attempt=retry_state.attempt_number,
        max_attempts=LLM_MAX_ATTEMPTS,
        status=getattr(error, "status_code", None),
        error=str(error),
    )


@retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(LLM_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(multiplier=0.5, max=8, jitter=2),
    reraise=True,
    before_sleep=_log_retry,
)
async def with_retry(fn, *args, **kwargs):
    return await fn(*args, **kwargs)
