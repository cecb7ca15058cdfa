"""
Interface for the remote agent streaming connection.

The orchestrator only talks to the agent through this interface. Callbacks are
plain functions invoked from the transport's receive loop, one event at a time
and in arrival order.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from coach.models.agent_events import AgentEvent

EventHandler = Callable[[AgentEvent], None]
ConnectionHandler = Callable[[], None]
ErrorHandler = Callable[[Exception], None]
StatusHandler = Callable[[str], None]


class AgentTransport(ABC):
    """A single bidirectional streaming session with a remote agent."""

    def __init__(self):
        self._event_handler: Optional[EventHandler] = None
        self._connect_handler: Optional[ConnectionHandler] = None
        self._disconnect_handler: Optional[ConnectionHandler] = None
        self._error_handler: Optional[ErrorHandler] = None
        self._status_handler: Optional[StatusHandler] = None

    def set_callbacks(
        self,
        on_event: Optional[EventHandler] = None,
        on_connect: Optional[ConnectionHandler] = None,
        on_disconnect: Optional[ConnectionHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        on_status_change: Optional[StatusHandler] = None,
    ) -> None:
        """
        Register the handlers for inbound events and connection changes.

        Args:
            on_event: Called with every parsed inbound agent event
            on_connect: Called once the session is open
            on_disconnect: Called when the session closes for any reason
            on_error: Called with transport-level failures
            on_status_change: Called with the transport's own status string
        """
        self._event_handler = on_event
        self._connect_handler = on_connect
        self._disconnect_handler = on_disconnect
        self._error_handler = on_error
        self._status_handler = on_status_change

    @abstractmethod
    async def start_session(self, agent_id: str, overrides: Dict[str, Any]) -> None:
        """Open a session with the given agent."""

    @abstractmethod
    async def send_user_message(self, text: str) -> None:
        """Send a typed user message to the agent."""

    @abstractmethod
    def set_mic_muted(self, muted: bool) -> None:
        """Stop or resume forwarding microphone audio."""

    @abstractmethod
    async def send_audio_chunk(self, chunk: bytes) -> bool:
        """Forward recorded microphone audio; returns False if it was not sent."""

    @abstractmethod
    async def end_session(self) -> None:
        """Close the session."""

    # Helpers for implementations
    def _emit_event(self, event: AgentEvent) -> None:
        if self._event_handler:
            self._event_handler(event)

    def _emit_connect(self) -> None:
        if self._connect_handler:
            self._connect_handler()

    def _emit_disconnect(self) -> None:
        if self._disconnect_handler:
            self._disconnect_handler()

    def _emit_error(self, error: Exception) -> None:
        if self._error_handler:
            self._error_handler(error)

    def _emit_status(self, status: str) -> None:
        if self._status_handler:
            self._status_handler(status)
