# --- LLM Defaults ---

DEFAULT_LOCAL_MODEL = "phi3"
DEFAULT_LOCAL_ENDPOINT = "http://localhost:11434/api/generate"
OPENAI_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_MAX_TOKENS = 1024
OPENAI_TEMPERATURE = 0.7
LLM_TIMEOUT = 60.0
LLM_MAX_ATTEMPTS = 3


# --- Agent Builder ---

MIN_SPEC_WORDS = 6
DEFAULT_SCHEDULE = "daily"
DEFAULT_SCHEDULE_TIME = "09:00"
DEFAULT_HASHTAG = "#AI"
AGENT_TIMEOUT_MS = 300_000
AGENT_CREATED_BY = "Personaliz Assistant"
BUILD_MODE = "ai_requirements"
SCRIPT_TYPE = "auto"
DEFAULT_AGENT_NAME = "custom_agent"


# --- Event Handlers ---

DEFAULT_EVENT_HANDLER_NAME = "New Event Handler"
DEFAULT_EVENT_TYPE = "periodic"
DEFAULT_EVENT_INTERVAL_SECONDS = 300


# --- Host Process ---

RESTART_GRACE_SECONDS = 1.0
PREVIEW_RULE_WIDTH = 50
