"""
Connection lifecycle for the single agent session.

SessionConnectionManager is the only owner of the AgentTransport handle and the
only writer of SessionStatus. Waiting for a status (connected before sending,
idle before restarting) is done with futures resolved from the status-change
notification rather than by polling.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from coach.bot.transport import AgentTransport
from coach.config.agents import AgentConfig, validate_agent_config
from coach.config.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_STOP_TIMEOUT,
    LOGGER_NAME,
)
from coach.errors import (
    AlreadyActiveError,
    ConnectionTimeoutError,
    SessionConnectionError,
)
from coach.models.agent_events import AgentEvent
from coach.models.conversation import InteractionMode, SessionStatus

logger = logging.getLogger(LOGGER_NAME)

StatusListener = Callable[[SessionStatus, SessionStatus], None]
ErrorListener = Callable[[SessionConnectionError], None]
StatusPredicate = Callable[[SessionStatus], bool]

ACTIVE_STATUSES = (SessionStatus.CONNECTING, SessionStatus.CONNECTED)


def build_session_overrides(mode: InteractionMode, config: AgentConfig) -> Dict[str, Any]:
    """
    Build the conversation_config_override payload for a session.

    Chat sessions ask the agent for text-only replies so no audio is generated
    while the user types.
    """
    overrides: Dict[str, Any] = {"agent": {"prompt": {"prompt": config.system_prompt}}}
    if mode is InteractionMode.CHAT:
        overrides["conversation"] = {"text_only": True}
    return overrides


class SessionConnectionManager:
    """
    Owns the connection status and enforces a single active session.

    All transitions notify subscribers with ``(previous, current)``.
    """

    def __init__(self, transport: AgentTransport):
        self._transport = transport
        self._status = SessionStatus.IDLE
        self._mode: Optional[InteractionMode] = None
        self._subscribers: List[StatusListener] = []
        self._error_listeners: List[ErrorListener] = []
        self._waiters: List[Tuple[StatusPredicate, asyncio.Future]] = []
        self._event_handler: Optional[Callable[[AgentEvent], None]] = None
        # Resolved when the in-flight start_session call has returned
        self._connect_done: Optional[asyncio.Future] = None

        self._transport.set_callbacks(
            on_event=self._on_transport_event,
            on_connect=self._on_transport_connect,
            on_disconnect=self._on_transport_disconnect,
            on_error=self._on_transport_error,
            on_status_change=self._on_transport_status,
        )

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def mode(self) -> Optional[InteractionMode]:
        """Mode the current session was started in, if any."""
        return self._mode

    @property
    def is_active(self) -> bool:
        return self._status in ACTIVE_STATUSES

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; returns a function that removes it."""
        self._subscribers.append(listener)
        return lambda: self._subscribers.remove(listener)

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def set_event_handler(self, handler: Callable[[AgentEvent], None]) -> None:
        """Route inbound transport events to a single consumer."""
        self._event_handler = handler

    def _set_status(self, status: SessionStatus) -> None:
        previous = self._status
        if previous is status:
            return
        self._status = status
        logger.info(f"Session status: {previous.value} -> {status.value}")

        for predicate, future in self._waiters[:]:
            if future.done():
                continue
            if predicate(status):
                future.set_result(status)
            elif status is SessionStatus.IDLE:
                future.set_exception(
                    SessionConnectionError("Session ended before it was ready")
                )

        for listener in self._subscribers[:]:
            listener(previous, status)

    def _report_error(self, error: SessionConnectionError) -> None:
        logger.error(f"Session connection error: {error}")
        for listener in self._error_listeners[:]:
            listener(error)

    async def _wait_for(self, predicate: StatusPredicate, timeout: float) -> None:
        if predicate(self._status):
            return
        future = asyncio.get_running_loop().create_future()
        waiter = (predicate, future)
        self._waiters.append(waiter)
        try:
            await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionTimeoutError(
                f"Session did not become ready within {timeout:.1f} seconds"
            ) from None
        finally:
            self._waiters.remove(waiter)

    async def _settle(self) -> None:
        """
        Wait for a stopped connect attempt and a running stop to finish.

        A connect still in progress after stop() keeps its transport call
        running; a new session is only opened once that call has returned.
        """
        while self._status not in ACTIVE_STATUSES:
            if self._connect_done is not None and not self._connect_done.done():
                logger.debug("Waiting for the previous connect attempt to return")
                await asyncio.shield(self._connect_done)
            elif self._status is SessionStatus.DISCONNECTING:
                logger.debug("Waiting for the previous session to finish disconnecting")
                await self.wait_until_idle()
            else:
                return

    async def start(self, mode: InteractionMode, agent_config: AgentConfig) -> None:
        """
        Open a session with the agent for the given mode.

        Args:
            mode: Interaction mode the session serves
            agent_config: Configuration of the agent to connect to

        Raises:
            ConfigurationError: if the agent id or credentials are not configured
            AlreadyActiveError: if a session is already connecting or connected
            SessionConnectionError: if the transport fails to connect
        """
        validate_agent_config(agent_config)
        await self._settle()

        if self._status in ACTIVE_STATUSES:
            raise AlreadyActiveError(f"Session is already {self._status.value}")

        done = asyncio.get_running_loop().create_future()
        self._connect_done = done
        self._mode = mode
        self._set_status(SessionStatus.CONNECTING)
        try:
            try:
                await self._transport.start_session(
                    agent_config.agent_id, build_session_overrides(mode, agent_config)
                )
            except Exception as e:
                logger.debug(f"Transport start failed: {e!r}")
                if self._status is SessionStatus.CONNECTING:
                    self._mode = None
                    self._set_status(SessionStatus.IDLE)
                raise SessionConnectionError(f"Could not connect to the agent: {e}") from e

            if self._status is not SessionStatus.CONNECTING:
                # stop() or a transport failure won the race while connecting
                logger.info("Session ended while connecting, closing late transport session")
                try:
                    await self._transport.end_session()
                except Exception as e:
                    logger.warning(f"Error while closing late session: {e}")
                return

            self._transport.set_mic_muted(True)
            self._set_status(SessionStatus.CONNECTED)
        finally:
            done.set_result(None)
            if self._connect_done is done:
                self._connect_done = None
        logger.info(f"Session started in {mode.value} mode with agent: {agent_config.name}")

    async def wait_until_connected(self, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> None:
        """
        Wait until the session is connected.

        Raises:
            ConnectionTimeoutError: if not connected within ``timeout`` seconds
            SessionConnectionError: if the session returns to idle while waiting
        """
        await self._wait_for(lambda s: s is SessionStatus.CONNECTED, timeout)

    async def wait_until_idle(self, timeout: float = DEFAULT_STOP_TIMEOUT) -> None:
        await self._wait_for(lambda s: s is SessionStatus.IDLE, timeout)

    async def stop(self) -> None:
        """
        End the session. Calling it while idle is a no-op.
        """
        if self._status is SessionStatus.IDLE:
            return
        if self._status is SessionStatus.DISCONNECTING:
            await self.wait_until_idle()
            return

        self._set_status(SessionStatus.DISCONNECTING)
        try:
            await self._transport.end_session()
        except Exception as e:
            logger.warning(f"Error while ending session: {e}")
        finally:
            self._mode = None
            self._set_status(SessionStatus.IDLE)

    def set_mic_muted(self, muted: bool) -> None:
        """Mute or unmute the microphone of the connected session."""
        if self._status is not SessionStatus.CONNECTED:
            raise SessionConnectionError("Microphone can only be toggled while connected")
        self._transport.set_mic_muted(muted)

    async def send_audio(self, chunk: bytes) -> bool:
        """
        Forward a microphone chunk. Chunks arriving outside a connected
        session are dropped.
        """
        if self._status is not SessionStatus.CONNECTED:
            logger.debug(f"Dropping audio chunk while session is {self._status.value}")
            return False
        return await self._transport.send_audio_chunk(chunk)

    async def send_text(self, text: str) -> None:
        """
        Send a typed message through the connected session.

        Raises:
            SessionConnectionError: if not connected or the transport send fails
        """
        if self._status is not SessionStatus.CONNECTED:
            raise SessionConnectionError(
                f"Cannot send while session is {self._status.value}"
            )
        try:
            await self._transport.send_user_message(text)
        except Exception as e:
            raise SessionConnectionError(f"Failed to send message: {e}") from e

    # Transport callbacks
    def _on_transport_event(self, event: AgentEvent) -> None:
        if self._event_handler:
            self._event_handler(event)

    def _on_transport_connect(self) -> None:
        logger.debug("Transport reported connect")

    def _on_transport_disconnect(self) -> None:
        if self._status in ACTIVE_STATUSES:
            logger.warning("Agent connection dropped")
            self._mode = None
            self._set_status(SessionStatus.IDLE)

    def _on_transport_error(self, error: Exception) -> None:
        self._report_error(SessionConnectionError(f"Agent connection error: {error}"))
        if self._status in ACTIVE_STATUSES:
            self._mode = None
            self._set_status(SessionStatus.IDLE)

    def _on_transport_status(self, status: str) -> None:
        logger.debug(f"Transport status: {status}")
