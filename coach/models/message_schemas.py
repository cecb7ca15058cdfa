"""
Pydantic models for the UI WebSocket protocol.

This module defines structured data models for the actions a UI client sends to
the orchestrator server and the state updates and errors pushed back to it,
providing type validation and documentation for both directions.
"""

import base64
import binascii
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from coach.models.conversation import (
    ConversationMessage,
    ConversationRecord,
    InteractionMode,
    SessionStatus,
)


class BaseMessage(BaseModel):
    """Base model for all UI WebSocket messages."""

    type: str = Field(..., description="Message type identifier")


# Session actions
class SessionStartMessage(BaseMessage):
    """Model for session.start action (tap mic / open chat)."""

    type: Literal["session.start"]


class SessionStopMessage(BaseMessage):
    """Model for session.stop action."""

    type: Literal["session.stop"]


class ModeSwitchMessage(BaseMessage):
    """Model for mode.switch action."""

    type: Literal["mode.switch"]
    mode: InteractionMode = Field(..., description="Interaction mode to switch to")


class MicMuteMessage(BaseMessage):
    """Model for mic.mute action."""

    type: Literal["mic.mute"]
    muted: bool = Field(..., description="Whether the microphone should be muted")


class AudioChunkMessage(BaseMessage):
    """Model for audio.chunk action, microphone audio recorded by the platform."""

    type: Literal["audio.chunk"]
    audioChunk: str = Field(..., description="Base64-encoded PCM audio")

    @field_validator("audioChunk")
    def validate_audio_chunk(cls, v):
        """Validate that the chunk is non-empty base64."""
        if not v:
            raise ValueError("Audio chunk cannot be empty")
        try:
            base64.b64decode(v, validate=True)
        except binascii.Error:
            raise ValueError("Invalid base64 encoded audio data")
        return v

    def decoded(self) -> bytes:
        return base64.b64decode(self.audioChunk)


# Message actions
class DraftUpdateMessage(BaseMessage):
    """Model for draft.update action, mirroring the text input."""

    type: Literal["draft.update"]
    text: str = ""


class MessageSendMessage(BaseMessage):
    """Model for message.send action."""

    type: Literal["message.send"]
    text: str = Field(..., description="Text typed by the user")


# History actions
class HistoryListMessage(BaseMessage):
    """Model for history.list action."""

    type: Literal["history.list"]


class HistoryLoadMessage(BaseMessage):
    """Model for history.load action."""

    type: Literal["history.load"]
    conversationId: str = Field(..., description="Id of the record to load")


class HistoryRenameMessage(BaseMessage):
    """Model for history.rename action."""

    type: Literal["history.rename"]
    conversationId: str = Field(..., description="Id of the record to rename")
    title: str = Field(..., description="New title")

    @field_validator("title")
    def validate_title(cls, v):
        """Validate that the new title is not empty."""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v


class HistoryDeleteMessage(BaseMessage):
    """Model for history.delete action."""

    type: Literal["history.delete"]
    conversationId: str = Field(..., description="Id of the record to delete")


# Server messages
class StateUpdateResponse(BaseMessage):
    """Snapshot of the orchestrator state pushed to the UI."""

    type: Literal["state.update"] = "state.update"
    status: SessionStatus
    mode: InteractionMode
    awaitingResponse: bool = False
    messages: List[ConversationMessage] = Field(default_factory=list)
    streamingText: Optional[str] = None
    draft: str = ""
    conversationId: Optional[str] = None


class HistoryRecordsResponse(BaseMessage):
    """Saved conversations, most recently updated first."""

    type: Literal["history.records"] = "history.records"
    records: List[ConversationRecord] = Field(default_factory=list)


class ErrorResponse(BaseMessage):
    """Error reported back to the UI; the socket stays open."""

    type: Literal["error"] = "error"
    code: str = Field(..., description="Stable error code")
    reason: str = Field(..., description="Human readable description")
    draft: Optional[str] = Field(None, description="Restored input text, if any")


# Union type for all possible incoming messages
IncomingMessage = Union[
    SessionStartMessage,
    SessionStopMessage,
    ModeSwitchMessage,
    MicMuteMessage,
    AudioChunkMessage,
    DraftUpdateMessage,
    MessageSendMessage,
    HistoryListMessage,
    HistoryLoadMessage,
    HistoryRenameMessage,
    HistoryDeleteMessage,
]

# Union type for all possible outgoing messages
OutgoingMessage = Union[
    StateUpdateResponse,
    HistoryRecordsResponse,
    ErrorResponse,
]
