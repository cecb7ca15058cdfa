"""
Session orchestration.

Key components:
- SessionConnectionManager: single-session connection lifecycle
- ModeArbitrator: accepts or discards inbound events for the current mode
- MessageStreamProcessor: finalized messages and the streaming buffer
- ConversationHistoryStore: saved conversations with debounced auto-save
- ConversationOrchestrator: ties the above together for the UI
"""

from coach.session.connection_manager import SessionConnectionManager
from coach.session.history_store import ConversationHistoryStore
from coach.session.mode_arbitrator import ModeArbitrator, Verdict, classify
from coach.session.orchestrator import ConversationOrchestrator
from coach.session.stream_processor import MessageStreamProcessor

__all__ = [
    "ConversationHistoryStore",
    "ConversationOrchestrator",
    "MessageStreamProcessor",
    "ModeArbitrator",
    "SessionConnectionManager",
    "Verdict",
    "classify",
]
