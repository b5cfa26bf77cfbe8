from personaliz.flows.approval import ApprovalGate, Reply, classify_reply
from personaliz.flows.machine import FlowDeps, FlowEngine
from personaliz.flows.models import (
    AgentApproval,
    AgentBuilder,
    AutoCommentSetup,
    HashtagMonitorSetup,
    LinkedInPostApproval,
    PendingFlow,
    Transition,
)

__all__ = [
    "AgentApproval",
    "AgentBuilder",
    "ApprovalGate",
    "AutoCommentSetup",
    "FlowDeps",
    "FlowEngine",
    "HashtagMonitorSetup",
    "LinkedInPostApproval",
    "PendingFlow",
    "Reply",
    "Transition",
    "classify_reply",
]
