"""
The conversational session orchestrator.

ConversationOrchestrator is the finite-state object behind the coach screen. It
owns the interaction mode and the awaiting-response flag, reads the session
status from its SessionConnectionManager, and wires the transport's events
through the ModeArbitrator into the MessageStreamProcessor. The UI observes it
through ``subscribe`` instead of reading component-local fields.
"""

import asyncio
import logging
from typing import Callable, List, Mapping, Optional, Tuple, Union

from coach.bot.transport import AgentTransport
from coach.config.agents import AgentConfig
from coach.config.constants import DEFAULT_CONNECT_TIMEOUT, LOGGER_NAME
from coach.errors import AlreadyActiveError, EmptyMessageError, SessionConnectionError
from coach.models.agent_events import TERMINAL_AGENT_EVENTS, AgentEvent
from coach.models.conversation import (
    ConversationMessage,
    ConversationRecord,
    InteractionMode,
    SessionStatus,
)
from coach.session.connection_manager import SessionConnectionManager
from coach.session.history_store import ConversationHistoryStore
from coach.session.mode_arbitrator import ModeArbitrator, Verdict
from coach.session.stream_processor import MessageStreamProcessor

logger = logging.getLogger(LOGGER_NAME)

StateListener = Callable[["ConversationOrchestrator"], None]
AgentConfigs = Union[AgentConfig, Mapping[InteractionMode, AgentConfig]]


class ConversationOrchestrator:
    """
    Coordinates one live agent conversation across Voice and Chat modes.

    Args:
        transport: The agent transport; handed to the connection manager, which
            becomes its only user
        agent_config: One config used for both modes, or a mapping per mode
        mode: Initial interaction mode
        history: Store for saved conversations; a new one is created if omitted
        connect_timeout: Seconds to wait for a connecting session before sending
    """

    def __init__(
        self,
        transport: AgentTransport,
        agent_config: AgentConfigs,
        mode: InteractionMode = InteractionMode.VOICE,
        history: Optional[ConversationHistoryStore] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self._agent_configs = agent_config
        self._mode = mode
        self._awaiting_response = False
        self.connect_timeout = connect_timeout
        self.last_error: Optional[Exception] = None

        self.connection = SessionConnectionManager(transport)
        self.arbitrator = ModeArbitrator()
        self.processor = MessageStreamProcessor()
        self.history = history or ConversationHistoryStore()

        self._listeners: List[StateListener] = []
        self._stop_task: Optional[asyncio.Task] = None

        self.connection.set_event_handler(self.handle_event)
        self.connection.subscribe(self._on_status_change)
        self.connection.add_error_listener(self._on_connection_error)
        self.processor.subscribe(self._notify)

    # State
    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def status(self) -> SessionStatus:
        return self.connection.status

    @property
    def awaiting_response(self) -> bool:
        return self._awaiting_response

    @property
    def messages(self) -> List[ConversationMessage]:
        return self.processor.messages

    @property
    def streaming_text(self) -> Optional[str]:
        return self.processor.streaming_text

    @property
    def draft(self) -> str:
        return self.processor.draft

    @property
    def conversation_id(self) -> Optional[str]:
        return self.history.current_id

    def agent_config_for(self, mode: InteractionMode) -> Optional[AgentConfig]:
        if isinstance(self._agent_configs, AgentConfig):
            return self._agent_configs
        return self._agent_configs.get(mode)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in self._listeners[:]:
            listener(self)

    def _snapshot(self) -> Tuple[InteractionMode, List[ConversationMessage]]:
        return self._mode, self.processor.messages

    def _on_status_change(self, previous: SessionStatus, current: SessionStatus) -> None:
        if current is SessionStatus.IDLE:
            self.processor.clear_streaming()
            if self._awaiting_response:
                logger.info("Session ended while a reply was pending")
                self._awaiting_response = False
        self._notify()

    def _on_connection_error(self, error: SessionConnectionError) -> None:
        self.last_error = error
        self._notify()

    # Session control
    async def start(self) -> None:
        """
        Start a session for the current mode.

        A start while a session is already connecting or connected is ignored.

        Raises:
            ConfigurationError: if the mode's agent is not configured
            SessionConnectionError: if the connection fails
        """
        await self.wait_for_pending_stop()
        self.last_error = None
        try:
            await self.connection.start(self._mode, self.agent_config_for(self._mode))
        except AlreadyActiveError as e:
            logger.debug(f"Ignoring duplicate start: {e}")
        except SessionConnectionError as e:
            self.last_error = e
            self._notify()
            raise

    async def stop(self) -> None:
        await self.connection.stop()

    def set_mic_muted(self, muted: bool) -> None:
        self.connection.set_mic_muted(muted)

    async def send_audio(self, chunk: bytes) -> bool:
        """Forward audio recorded by the platform. Only Voice sessions take audio."""
        if self._mode is not InteractionMode.VOICE:
            return False
        return await self.connection.send_audio(chunk)

    async def switch_mode(self, mode: InteractionMode) -> None:
        """
        Switch interaction mode. This is a hard reset: the session ends and the
        message list is cleared.
        """
        if mode is self._mode:
            return
        logger.info(f"Switching mode: {self._mode.value} -> {mode.value}")
        self.history.flush_auto_save()
        await self.wait_for_pending_stop()
        await self.connection.stop()
        self._mode = mode
        self._awaiting_response = False
        self.history.new_conversation()
        self.processor.reset()

    async def close(self) -> None:
        """Unmount: save pending changes and end the session."""
        self.history.flush_auto_save()
        await self.wait_for_pending_stop()
        await self.connection.stop()

    # Messages
    def set_draft(self, text: str) -> None:
        self.processor.draft = text

    async def _ensure_connected(self) -> None:
        # The previous Chat turn's session must be fully closed first
        await self.wait_for_pending_stop()
        status = self.connection.status
        if status in (SessionStatus.IDLE, SessionStatus.DISCONNECTING):
            await self.start()
        if self.connection.status is not SessionStatus.CONNECTED:
            await self.connection.wait_until_connected(self.connect_timeout)

    async def send_message(self, text: str) -> ConversationMessage:
        """
        Send a typed message, starting a session first if needed.

        In Chat mode each message opens a session that is closed again once the
        reply arrives.

        Raises:
            EmptyMessageError: if ``text`` is blank; nothing is sent
            ConfigurationError: if the agent is not configured
            SessionConnectionError: if connecting or sending fails; the draft
                holds the original text afterwards
        """
        if not text.strip():
            raise EmptyMessageError("Message cannot be empty")

        try:
            await self._ensure_connected()
        except SessionConnectionError:
            self.processor.draft = text
            self._notify()
            raise

        if self._mode is InteractionMode.CHAT:
            self._awaiting_response = True
        try:
            message = await self.processor.send_user_message(
                text, self.connection.send_text
            )
        except SessionConnectionError as e:
            self._awaiting_response = False
            self.last_error = e
            self._notify()
            raise

        self.history.schedule_auto_save(self._snapshot)
        return message

    def handle_event(self, event: AgentEvent) -> None:
        """
        Process one inbound transport event, in arrival order.
        """
        verdict = self.arbitrator.arbitrate(event, self._mode, self._awaiting_response)
        if verdict is Verdict.DISCARD:
            return

        self.processor.on_accepted(event)

        if self._mode is InteractionMode.CHAT and isinstance(event, TERMINAL_AGENT_EVENTS):
            self._awaiting_response = False
            self._schedule_stop()
            self._notify()

        self.history.schedule_auto_save(self._snapshot)

    def _schedule_stop(self) -> None:
        # Runs outside the transport's receive loop, which end_session tears down
        if self._stop_task and not self._stop_task.done():
            return
        self._stop_task = asyncio.get_running_loop().create_task(self.connection.stop())

    async def wait_for_pending_stop(self) -> None:
        task, self._stop_task = self._stop_task, None
        if task:
            await task

    # History
    def conversations(self) -> List[ConversationRecord]:
        return self.history.records()

    def save(self, title: Optional[str] = None) -> Optional[ConversationRecord]:
        self.history.cancel_auto_save()
        mode, messages = self._snapshot()
        return self.history.save(mode, messages, title=title)

    async def load_conversation(self, record_id: str) -> ConversationRecord:
        """
        Show a saved conversation. Any active session is ended first.

        Raises:
            NotFoundError: if no record has this id
        """
        self.history.get(record_id)
        self.history.flush_auto_save()
        await self.wait_for_pending_stop()
        await self.connection.stop()
        record = self.history.load(record_id)
        self._mode = record.mode
        self._awaiting_response = False
        self.processor.replace(record.messages)
        return record

    def rename_conversation(self, record_id: str, title: str) -> ConversationRecord:
        record = self.history.rename(record_id, title)
        self._notify()
        return record

    def delete_conversation(self, record_id: str) -> None:
        self.history.delete(record_id)
        self._notify()
