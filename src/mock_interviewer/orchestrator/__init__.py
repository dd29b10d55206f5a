"""
Orchestrator module for managing interview conversations and fan-out.
"""

from mock_interviewer.orchestrator.broadcast import BroadcastPublisher, Subscription, channel_name
from mock_interviewer.orchestrator.conversation import ConversationOrchestrator
from mock_interviewer.orchestrator.prompt_composer import PromptComposer, compose_system_prompt
from mock_interviewer.orchestrator.schemas import (
    DocumentRecord,
    DocumentType,
    InterviewSessionRecord,
    MessageEvent,
    MessageRecord,
    MessageRole,
    SessionDocuments,
    SessionStatus,
    SessionSummary,
)

__all__ = [
    "BroadcastPublisher",
    "ConversationOrchestrator",
    "DocumentRecord",
    "DocumentType",
    "InterviewSessionRecord",
    "MessageEvent",
    "MessageRecord",
    "MessageRole",
    "PromptComposer",
    "SessionDocuments",
    "SessionStatus",
    "SessionSummary",
    "Subscription",
    "channel_name",
    "compose_system_prompt",
]
