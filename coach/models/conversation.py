"""
Conversation state models for the session orchestrator.

This module defines the enums that make up the orchestrator's finite state
(session status and interaction mode) together with the message and record
models that are rendered by the UI and handed to the external history store.
Records serialize with camelCase keys so they round-trip through the mobile
app's document store unchanged.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class SessionStatus(str, Enum):
    """Connection lifecycle of the single agent session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class InteractionMode(str, Enum):
    """Mutually exclusive interaction channels sharing one transport."""

    VOICE = "Voice"
    CHAT = "Chat"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversationMessage(_CamelModel):
    """A single turn in the conversation."""

    id: str = Field(default_factory=new_id)
    role: Literal["user", "agent"]
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    is_streaming: bool = False
    audio_url: Optional[str] = None


class ConversationRecord(_CamelModel):
    """A saved conversation, as exposed to the external history store."""

    id: str = Field(default_factory=new_id)
    title: str
    mode: InteractionMode
    messages: List[ConversationMessage] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)

    @field_validator("title")
    def validate_title(cls, v):
        """Validate that the title is not blank."""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator("messages")
    def validate_messages(cls, v):
        """Streaming placeholders are transient and never saved."""
        if any(message.is_streaming for message in v):
            raise ValueError("Streaming messages cannot be saved")
        return v
