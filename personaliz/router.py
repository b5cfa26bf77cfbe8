from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias


class Intent(StrEnum):
    OPEN_SETTINGS = "open_settings"
    CHECK_DEPENDENCIES = "check_dependencies"
    LIST_AGENTS = "list_agents"
    LIST_EVENT_HANDLERS = "list_event_handlers"
    SANDBOX_ON = "sandbox_on"
    SANDBOX_OFF = "sandbox_off"
    CREATE_EVENT_HANDLER = "create_event_handler"
    BUILD_AGENT = "build_agent"
    AUTO_COMMENT = "auto_comment"
    HASHTAG_MONITOR = "hashtag_monitor"
    TRENDING = "trending"
    START_HOST = "start_host"
    LINKEDIN_POST = "linkedin_post"
    CHAT = "chat"


Predicate: TypeAlias = Callable[[str], bool]


@dataclass(frozen=True)
class Route:
    intent: Intent
    matches: Predicate


def exact(*phrases: str) -> Predicate:
    return lambda text: text in phrases


def prefix(*phrases: str) -> Predicate:
    return lambda text: text.startswith(phrases)


def contains(*words: str) -> Predicate:
    return lambda text: any(w in text for w in words)


def both(first: Predicate, second: Predicate) -> Predicate:
    return lambda text: first(text) and second(text)


BUILD_WORDS = ("create", "creat", "craete", "build", "make", "new", "setup", "set up")
AGENT_WORDS = ("agent", "bot", "automation")

# First match wins. Exact commands go first; the agent builder outranks the
# worker intents so "create an agent to comment on posts" builds an agent.
ROUTES: tuple[Route, ...] = (
    Route(Intent.OPEN_SETTINGS, exact("settings", "open settings", "configure")),
    Route(Intent.CHECK_DEPENDENCIES, exact("check dependencies", "check setup", "system check")),
    Route(Intent.LIST_AGENTS, exact("view agents", "list agents", "show agents")),
    Route(Intent.LIST_EVENT_HANDLERS, exact("view events", "list events", "show event handlers")),
    Route(Intent.SANDBOX_ON, exact("sandbox on", "enable sandbox")),
    Route(Intent.SANDBOX_OFF, exact("sandbox off", "disable sandbox")),
    Route(Intent.CREATE_EVENT_HANDLER, prefix("create event", "add event handler")),
    Route(Intent.BUILD_AGENT, both(contains(*BUILD_WORDS), contains(*AGENT_WORDS))),
    Route(Intent.AUTO_COMMENT, both(contains("comment", "reply"), contains("linkedin", "post"))),
    Route(
        Intent.HASHTAG_MONITOR,
        both(contains("monitor", "track", "watch", "find"), contains("hashtag", "post", "#")),
    ),
    Route(
        Intent.TRENDING,
        both(
            contains("trending", "trend", "popular", "what is", "find", "search"),
            contains("topic", "hashtag", "linkedin", "#"),
        ),
    ),
    Route(Intent.START_HOST, contains("setup openclaw")),
    Route(Intent.LINKEDIN_POST, contains("linkedin post", "post to linkedin")),
)


def normalize(text: str) -> str:
    return text.strip().lower()


def classify(text: str, routes: tuple[Route, ...] = ROUTES) -> Intent:
    lower = normalize(text)
    for route in routes:
        if route.matches(lower):
            return route.intent
    return Intent.CHAT
