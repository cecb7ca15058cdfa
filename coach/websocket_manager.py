"""
WebSocket connection manager for the coach UI.

This module implements the server side of the UI protocol, providing the
infrastructure to:
- Accept UI WebSocket connections and create one orchestrator per connection
- Route incoming actions to the appropriate handler functions
- Push orchestrator state changes to the UI in order
- Report orchestrator errors without closing the connection

Saved conversations are kept per client id so a reconnecting app finds its
history again.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from coach.bot.elevenlabs_client import ElevenLabsAgentClient
from coach.config.agents import AgentPersona, load_agent_config
from coach.config.constants import (
    LOGGER_NAME,
    MESSAGE_TYPE_AUDIO_CHUNK,
    MESSAGE_TYPE_DRAFT_UPDATE,
    MESSAGE_TYPE_HISTORY_DELETE,
    MESSAGE_TYPE_HISTORY_LIST,
    MESSAGE_TYPE_HISTORY_LOAD,
    MESSAGE_TYPE_HISTORY_RENAME,
    MESSAGE_TYPE_MESSAGE_SEND,
    MESSAGE_TYPE_MIC_MUTE,
    MESSAGE_TYPE_MODE_SWITCH,
    MESSAGE_TYPE_SESSION_START,
    MESSAGE_TYPE_SESSION_STOP,
)
from coach.errors import CoachError
from coach.handlers.history_handlers import (
    handle_history_delete,
    handle_history_list,
    handle_history_load,
    handle_history_rename,
)
from coach.handlers.message_handlers import (
    handle_audio_chunk,
    handle_draft_update,
    handle_message_send,
)
from coach.handlers.session_handlers import (
    build_state_update,
    handle_mic_mute,
    handle_mode_switch,
    handle_session_start,
    handle_session_stop,
)
from coach.models.conversation import InteractionMode
from coach.models.message_schemas import ErrorResponse, OutgoingMessage
from coach.session.history_store import ConversationHistoryStore
from coach.session.orchestrator import ConversationOrchestrator

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[
    [Dict[str, Any], ConversationOrchestrator],
    Awaitable[Optional[OutgoingMessage]],
]
OrchestratorFactory = Callable[
    [AgentPersona, ConversationHistoryStore], ConversationOrchestrator
]

Dispatcher = Callable[[Dict[str, Any], "UIConnection"], Awaitable[None]]

# Marker queued when the orchestrator state changed
STATE_CHANGED = None

# Actions that run without waiting for earlier actions to finish
INTERRUPTING_ACTIONS = {MESSAGE_TYPE_SESSION_STOP, MESSAGE_TYPE_MODE_SWITCH}


def create_orchestrator(
    persona: AgentPersona, history: ConversationHistoryStore
) -> ConversationOrchestrator:
    """Build an orchestrator talking to the persona's ElevenLabs agent."""
    config = load_agent_config(persona)
    transport = ElevenLabsAgentClient(config.api_key or "")
    return ConversationOrchestrator(
        transport, config, mode=InteractionMode.VOICE, history=history
    )


class UIConnection:
    """
    One UI WebSocket and its orchestrator.

    Every outgoing message goes through a single queue drained by one sender
    task, so state pushes and handler responses reach the UI in the order they
    were produced; consecutive state changes are coalesced into one snapshot.
    Actions run one at a time in arrival order on a worker task, except the
    interrupting ones, which run immediately so they can cut short a start or
    send still in progress.
    """

    def __init__(self, websocket: WebSocket, orchestrator: ConversationOrchestrator):
        self.websocket = websocket
        self.orchestrator = orchestrator
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.actions: asyncio.Queue = asyncio.Queue()
        self._state_queued = False
        self._unsubscribe = orchestrator.subscribe(self._on_state_change)
        self._tasks: Set[asyncio.Task] = set()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def start(self, dispatch: Dispatcher) -> None:
        self._spawn(self._sender())
        self._spawn(self._action_worker(dispatch))

    def submit(self, message_dict: Dict[str, Any], dispatch: Dispatcher) -> None:
        if message_dict.get("type") in INTERRUPTING_ACTIONS:
            self._spawn(dispatch(message_dict, self))
        else:
            self.actions.put_nowait(message_dict)

    def _on_state_change(self, orchestrator: ConversationOrchestrator) -> None:
        if not self._state_queued:
            self._state_queued = True
            self.outbox.put_nowait(STATE_CHANGED)

    def send(self, message: BaseModel) -> None:
        self.outbox.put_nowait(message)

    async def _action_worker(self, dispatch: Dispatcher) -> None:
        while True:
            message_dict = await self.actions.get()
            await dispatch(message_dict, self)

    async def _sender(self) -> None:
        while True:
            message = await self.outbox.get()
            if message is STATE_CHANGED:
                self._state_queued = False
                message = build_state_update(self.orchestrator)
            await self.websocket.send_text(message.model_dump_json(by_alias=True))

    async def close(self) -> None:
        self._unsubscribe()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class WebSocketManager:
    """Manages UI WebSocket connections and routes actions to handlers.

    Each action is routed to a specific handler function based on the message's
    "type" field.
    """

    def __init__(self, orchestrator_factory: OrchestratorFactory = create_orchestrator):
        self.orchestrator_factory = orchestrator_factory
        self.history_stores: Dict[str, ConversationHistoryStore] = {}
        self.active_connections: Dict[int, UIConnection] = {}

        self.handlers: Dict[str, HandlerFunc] = {
            MESSAGE_TYPE_SESSION_START: handle_session_start,
            MESSAGE_TYPE_SESSION_STOP: handle_session_stop,
            MESSAGE_TYPE_MODE_SWITCH: handle_mode_switch,
            MESSAGE_TYPE_MIC_MUTE: handle_mic_mute,
            MESSAGE_TYPE_AUDIO_CHUNK: handle_audio_chunk,
            MESSAGE_TYPE_DRAFT_UPDATE: handle_draft_update,
            MESSAGE_TYPE_MESSAGE_SEND: handle_message_send,
            MESSAGE_TYPE_HISTORY_LIST: handle_history_list,
            MESSAGE_TYPE_HISTORY_LOAD: handle_history_load,
            MESSAGE_TYPE_HISTORY_RENAME: handle_history_rename,
            MESSAGE_TYPE_HISTORY_DELETE: handle_history_delete,
        }

    def history_for(self, client_id: str) -> ConversationHistoryStore:
        if client_id not in self.history_stores:
            self.history_stores[client_id] = ConversationHistoryStore()
        return self.history_stores[client_id]

    @staticmethod
    def resolve_persona(value: Optional[str]) -> AgentPersona:
        if value:
            for persona in AgentPersona:
                if value in (persona.value, persona.name):
                    return persona
            logger.warning(f"Unknown persona requested: {value}")
        return AgentPersona.LANGUAGE_COACH

    async def dispatch(
        self, message_dict: Dict[str, Any], connection: UIConnection
    ) -> None:
        """Run the handler for one action and queue its response or error."""
        message_type = message_dict.get("type")
        handler = self.handlers.get(message_type)
        if handler is None:
            logger.warning(f"Unhandled message type received: {message_type}")
            connection.send(
                ErrorResponse(
                    code="unknown_message", reason=f"Unknown message type: {message_type}"
                )
            )
            return

        try:
            response = await handler(message_dict, connection.orchestrator)
        except ValidationError as e:
            logger.error(f"Message validation error: {e}")
            connection.send(ErrorResponse(code="invalid_message", reason=str(e)))
            return
        except CoachError as e:
            logger.warning(f"{message_type} failed: {e}")
            connection.send(
                ErrorResponse(
                    code=e.code, reason=str(e), draft=connection.orchestrator.draft or None
                )
            )
            return
        except ValueError as e:
            connection.send(ErrorResponse(code="invalid_value", reason=str(e)))
            return
        except Exception as e:
            # The connection keeps serving actions after an unexpected failure
            logger.error(f"Error handling {message_type}: {e}", exc_info=True)
            connection.send(
                ErrorResponse(
                    code="internal_error", reason=f"Could not handle {message_type}"
                )
            )
            return

        if response is not None:
            connection.send(response)
            logger.debug(f"Queued response for {message_type}")

    async def handle_websocket(self, websocket: WebSocket):
        """Handle a UI WebSocket connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts the WebSocket connection and builds its orchestrator
        2. Queues incoming actions; they run in arrival order on a worker task
        3. Routes each action to the appropriate handler based on type
        4. Ends the agent session and saves pending history on disconnect
        """
        await websocket.accept()
        params = websocket.query_params
        persona = self.resolve_persona(params.get("persona"))
        client_id = params.get("clientId", "default")

        orchestrator = self.orchestrator_factory(persona, self.history_for(client_id))
        connection = UIConnection(websocket, orchestrator)
        self.active_connections[id(connection)] = connection
        connection.start(self.dispatch)
        connection.send(build_state_update(orchestrator))
        logger.info(f"UI connected: client={client_id}, persona={persona.value}")

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message_dict = json.loads(data)
                except json.JSONDecodeError:
                    logger.warning(f"Received invalid JSON: {data[:100]}")
                    connection.send(
                        ErrorResponse(code="invalid_message", reason="Invalid JSON")
                    )
                    continue
                if not isinstance(message_dict, dict):
                    connection.send(
                        ErrorResponse(code="invalid_message", reason="Expected an object")
                    )
                    continue

                logger.info(f"Received message type: {message_dict.get('type')}")
                connection.submit(message_dict, self.dispatch)

        except WebSocketDisconnect:
            logger.info(f"UI disconnected: client={client_id}")
        except Exception as e:
            logger.error(f"Error in WebSocket connection: {e}", exc_info=True)
        finally:
            self.active_connections.pop(id(connection), None)
            await connection.close()
            try:
                await orchestrator.close()
            except Exception as e:
                logger.error(f"Error closing orchestrator: {e}", exc_info=True)
            logger.info("WebSocket connection closed")
