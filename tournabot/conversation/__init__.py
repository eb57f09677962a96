"""Per-user dialogue for entering a match result."""

from .models import ConversationState, Step
from .services import MatchEntryConversation, StepResult
from .store import ConversationStore

__all__ = [
    "ConversationState",
    "ConversationStore",
    "MatchEntryConversation",
    "Step",
    "StepResult",
]
