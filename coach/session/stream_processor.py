"""
Assembly of the live message list from accepted agent events.

The processor owns two pieces of state: the list of finalized messages and a
transient streaming buffer holding the agent's tentative reply. Only events the
ModeArbitrator accepted are passed in.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from coach.config.constants import LOGGER_NAME
from coach.errors import EmptyMessageError
from coach.models.agent_events import (
    AgentEvent,
    AgentResponseCorrectionEvent,
    AgentResponseEvent,
    TentativeAgentResponseEvent,
    UserTranscriptEvent,
)
from coach.models.conversation import ConversationMessage, utc_now

logger = logging.getLogger(LOGGER_NAME)

ChangeListener = Callable[[], None]
Sender = Callable[[str], Awaitable[None]]


class MessageStreamProcessor:
    """Maintains the finalized message list and the streaming buffer."""

    def __init__(self):
        self._messages: List[ConversationMessage] = []
        self._streaming: Optional[ConversationMessage] = None
        self.draft = ""
        self._listeners: List[ChangeListener] = []
        self._handlers: Dict[type, Callable[[AgentEvent], None]] = {
            UserTranscriptEvent: self._on_user_transcript,
            TentativeAgentResponseEvent: self._on_tentative_response,
            AgentResponseEvent: self._on_agent_response,
            AgentResponseCorrectionEvent: self._on_agent_correction,
        }

    @property
    def messages(self) -> List[ConversationMessage]:
        """Copy of the finalized messages, oldest first."""
        return list(self._messages)

    @property
    def streaming_message(self) -> Optional[ConversationMessage]:
        return self._streaming

    @property
    def streaming_text(self) -> Optional[str]:
        return self._streaming.content if self._streaming else None

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners[:]:
            listener()

    def on_accepted(self, event: AgentEvent) -> None:
        """
        Apply an accepted event to the message list or streaming buffer.

        Raises:
            TypeError: if the event kind has no handler
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"No handler for event type: {event.type}")
        handler(event)
        self._notify()

    def _on_user_transcript(self, event: UserTranscriptEvent) -> None:
        self._messages.append(ConversationMessage(role="user", content=event.text))

    def _on_tentative_response(self, event: TentativeAgentResponseEvent) -> None:
        # Each tentative event carries the whole candidate text so far
        if self._streaming is None:
            self._streaming = ConversationMessage(
                role="agent", content=event.text, is_streaming=True
            )
        else:
            self._streaming = self._streaming.model_copy(update={"content": event.text})

    def _on_agent_response(self, event: AgentResponseEvent) -> None:
        buffered = self._streaming
        self._streaming = None

        content = event.text or (buffered.content if buffered else "")
        if not content:
            logger.debug("Ignoring empty agent response")
            return

        message = ConversationMessage(role="agent", content=content)
        if buffered is not None:
            message = message.model_copy(update={"id": buffered.id})
        self._messages.append(message)

    def _on_agent_correction(self, event: AgentResponseCorrectionEvent) -> None:
        """
        Replace the agent's most recent turn with the corrected text.

        Corrections only ever target the latest agent message: the list is
        scanned backward for the nearest ``role == "agent"`` entry, which keeps
        its id and timestamp. If there is no agent message yet the correction is
        appended as a new one.
        """
        self._streaming = None

        for index in range(len(self._messages) - 1, -1, -1):
            if self._messages[index].role == "agent":
                self._messages[index] = self._messages[index].model_copy(
                    update={"content": event.text}
                )
                return

        self._messages.append(ConversationMessage(role="agent", content=event.text))

    async def send_user_message(self, text: str, sender: Sender) -> ConversationMessage:
        """
        Add the user's typed message optimistically and hand it to ``sender``.

        Args:
            text: Text typed by the user
            sender: Coroutine function that delivers the text to the agent

        Returns:
            The message added to the list

        Raises:
            EmptyMessageError: if ``text`` is blank after trimming
            Exception: whatever ``sender`` raised, after the optimistic message
                was removed and the draft restored to ``text``
        """
        trimmed = text.strip()
        if not trimmed:
            raise EmptyMessageError("Message cannot be empty")

        message = ConversationMessage(role="user", content=trimmed, timestamp=utc_now())
        self._messages.append(message)
        self.draft = ""
        self._notify()

        try:
            await sender(trimmed)
        except Exception:
            logger.warning("Send failed, rolling back optimistic message")
            self._messages = [m for m in self._messages if m.id != message.id]
            self.draft = text
            self._notify()
            raise

        return message

    def clear_streaming(self) -> None:
        if self._streaming is not None:
            self._streaming = None
            self._notify()

    def reset(self) -> None:
        """Drop every message, the streaming buffer and the draft."""
        self._messages = []
        self._streaming = None
        self.draft = ""
        self._notify()

    def replace(self, messages: List[ConversationMessage]) -> None:
        """Show a restored conversation."""
        self._messages = [m.model_copy() for m in messages]
        self._streaming = None
        self._notify()
