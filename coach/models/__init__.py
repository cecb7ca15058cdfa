"""
Models for the conversation state, agent events and UI protocol.

Key components:
- conversation: SessionStatus and InteractionMode enums, ConversationMessage and
  ConversationRecord.
- agent_events: Tagged union of inbound agent events and the ElevenLabs parser.
- message_schemas: Actions and state updates exchanged with the UI.
"""

from coach.models.agent_events import (
    AgentEvent,
    AgentResponseCorrectionEvent,
    AgentResponseEvent,
    TentativeAgentResponseEvent,
    UnknownAgentEvent,
    UserTranscriptEvent,
    parse_agent_event,
)
from coach.models.conversation import (
    ConversationMessage,
    ConversationRecord,
    InteractionMode,
    SessionStatus,
)
