"""
Inbound agent events as a tagged union.

The ElevenLabs socket sends JSON objects whose ``type`` field selects a nested
payload object. ``parse_agent_event`` flattens the four event kinds the
orchestrator cares about into small pydantic models and turns everything else
into ``UnknownAgentEvent`` so new server-side event types can never break the
receive loop.
"""

from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, Field

from coach.config.constants import (
    EVENT_AGENT_RESPONSE,
    EVENT_AGENT_RESPONSE_CORRECTION,
    EVENT_TENTATIVE_AGENT_RESPONSE,
    EVENT_USER_TRANSCRIPT,
)


class UserTranscriptEvent(BaseModel):
    """Speech-to-text of the user's own voice."""

    type: Literal["user_transcript"] = EVENT_USER_TRANSCRIPT
    text: str


class TentativeAgentResponseEvent(BaseModel):
    """Partial candidate for the agent's reply; carries the full text so far."""

    type: Literal["internal_tentative_agent_response"] = EVENT_TENTATIVE_AGENT_RESPONSE
    text: str


class AgentResponseEvent(BaseModel):
    """Finalized agent reply."""

    type: Literal["agent_response"] = EVENT_AGENT_RESPONSE
    text: str


class AgentResponseCorrectionEvent(BaseModel):
    """The agent revising its most recent reply."""

    type: Literal["agent_response_correction"] = EVENT_AGENT_RESPONSE_CORRECTION
    text: str
    original_text: str = ""


class UnknownAgentEvent(BaseModel):
    """Any event type the orchestrator does not handle."""

    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)


AgentEvent = Union[
    UserTranscriptEvent,
    TentativeAgentResponseEvent,
    AgentResponseEvent,
    AgentResponseCorrectionEvent,
    UnknownAgentEvent,
]

# Events that end an agent turn
TERMINAL_AGENT_EVENTS = (AgentResponseEvent, AgentResponseCorrectionEvent)
AGENT_REPLY_EVENTS = (
    TentativeAgentResponseEvent,
    AgentResponseEvent,
    AgentResponseCorrectionEvent,
)


def _nested(data: Dict[str, Any], container: str, key: str) -> str:
    payload = data.get(container)
    if not isinstance(payload, dict):
        return ""
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def parse_agent_event(data: Dict[str, Any]) -> AgentEvent:
    """
    Convert a raw ElevenLabs socket message into an AgentEvent.

    Args:
        data: Decoded JSON object received from the agent socket

    Returns:
        The matching event model, or UnknownAgentEvent for anything else
    """
    event_type = data.get("type")

    if event_type == EVENT_USER_TRANSCRIPT:
        return UserTranscriptEvent(
            text=_nested(data, "user_transcription_event", "user_transcript")
        )
    if event_type == EVENT_TENTATIVE_AGENT_RESPONSE:
        return TentativeAgentResponseEvent(
            text=_nested(
                data,
                "tentative_agent_response_internal_event",
                "tentative_agent_response",
            )
        )
    if event_type == EVENT_AGENT_RESPONSE:
        return AgentResponseEvent(
            text=_nested(data, "agent_response_event", "agent_response")
        )
    if event_type == EVENT_AGENT_RESPONSE_CORRECTION:
        return AgentResponseCorrectionEvent(
            text=_nested(
                data, "agent_response_correction_event", "corrected_agent_response"
            ),
            original_text=_nested(
                data, "agent_response_correction_event", "original_agent_response"
            ),
        )

    return UnknownAgentEvent(type=str(event_type or "unknown"), payload=data)
