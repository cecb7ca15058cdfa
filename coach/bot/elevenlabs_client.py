import asyncio
import base64
import json
import logging
import time
import traceback
from typing import Any, Dict, Optional

import requests
import websockets
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from coach.bot.transport import AgentTransport
from coach.config.constants import (
    ELEVENLABS_CONVERSATION_URL,
    ELEVENLABS_TOKEN_URL,
    EVENT_PING,
    LOGGER_NAME,
    MESSAGE_TYPE_INITIATION_DATA,
    MESSAGE_TYPE_PONG,
    MESSAGE_TYPE_USER_MESSAGE,
)
from coach.models.agent_events import UnknownAgentEvent, parse_agent_event

logger = logging.getLogger(LOGGER_NAME)

CONNECTION_TIMEOUT = 30  # seconds
TOKEN_REQUEST_TIMEOUT = 10  # seconds
SEND_TIMEOUT = 5.0  # seconds
RECV_TIMEOUT = 5.0  # seconds

# WebSocket configuration
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio events
WS_PING_INTERVAL = 5  # 5 seconds between pings


class ElevenLabsAgentClient(AgentTransport):
    """
    Client for the ElevenLabs Conversational AI WebSocket API.

    A session is opened with a short-lived conversation token fetched over HTTPS.
    Inbound JSON events are parsed into AgentEvent models and handed to the
    registered event handler in arrival order. The client never reconnects on
    its own; a dropped socket is reported through the disconnect handler.
    """

    def __init__(self, api_key: str):
        super().__init__()
        self.api_key = api_key
        self.ws = None
        self.conversation_id: Optional[str] = None
        self._recv_task: Optional[asyncio.Task] = None
        self._connection_active = False
        self._is_closing = False
        self._mic_muted = True
        self._last_activity = 0.0
        logger.info("ElevenLabsAgentClient initialized")

    @property
    def is_connected(self) -> bool:
        return self._connection_active

    @property
    def mic_muted(self) -> bool:
        return self._mic_muted

    def _fetch_conversation_token(self, agent_id: str) -> str:
        """Request a conversation token for the agent (blocking)."""
        response = requests.get(
            ELEVENLABS_TOKEN_URL,
            params={"agent_id": agent_id},
            headers={"xi-api-key": self.api_key},
            timeout=TOKEN_REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        token = response.json().get("conversation_token")
        if not token:
            raise ValueError("Token response did not contain a conversation_token")
        return token

    async def start_session(self, agent_id: str, overrides: Dict[str, Any]) -> None:
        """
        Open a conversation with the agent.

        Args:
            agent_id: ElevenLabs agent identifier
            overrides: conversation_config_override payload sent after connecting

        Raises:
            Exception: any token, network or timeout failure; the caller maps it
                to a user-visible connection error
        """
        if self._connection_active:
            logger.warning("start_session called while a session is active")
            return

        self._is_closing = False
        self._emit_status("connecting")

        logger.info(f"Requesting conversation token for agent: {agent_id}")
        token = await asyncio.to_thread(self._fetch_conversation_token, agent_id)

        url = f"{ELEVENLABS_CONVERSATION_URL}?conversation_token={token}"
        logger.debug(f"WebSocket URL: {ELEVENLABS_CONVERSATION_URL}?conversation_token=[HIDDEN]")

        connection_start = time.time()
        self.ws = await asyncio.wait_for(
            websockets.connect(
                url,
                max_size=WS_MAX_SIZE,
                ping_interval=WS_PING_INTERVAL,
                ping_timeout=10,
                compression=None,
            ),
            timeout=CONNECTION_TIMEOUT,
        )
        connection_time = time.time() - connection_start
        logger.debug(f"WebSocket connection established in {connection_time:.2f} seconds")

        try:
            await self._send_json(
                {
                    "type": MESSAGE_TYPE_INITIATION_DATA,
                    "conversation_config_override": overrides,
                }
            )
        except Exception:
            await self.ws.close()
            self.ws = None
            raise

        self._connection_active = True
        self._last_activity = time.time()
        self._recv_task = asyncio.create_task(self._recv_loop())

        logger.info(f"Connected to ElevenLabs agent: {agent_id}")
        self._emit_status("connected")
        self._emit_connect()

    async def _send_json(self, payload: Dict[str, Any]) -> None:
        send_start = time.time()
        await asyncio.wait_for(self.ws.send(json.dumps(payload)), timeout=SEND_TIMEOUT)
        logger.debug(f"Sent {payload.get('type', 'audio')} in {time.time() - send_start:.4f} seconds")
        self._last_activity = time.time()

    async def send_user_message(self, text: str) -> None:
        """
        Send a typed user message.

        Raises:
            RuntimeError: if no session is active
        """
        if not self._connection_active or self.ws is None:
            raise RuntimeError("Agent connection not available")
        logger.info(f"Sending user message ({len(text)} chars)")
        await self._send_json({"type": MESSAGE_TYPE_USER_MESSAGE, "text": text})

    def set_mic_muted(self, muted: bool) -> None:
        self._mic_muted = muted
        logger.info(f"Microphone {'muted' if muted else 'unmuted'}")

    async def send_audio_chunk(self, chunk: bytes) -> bool:
        """
        Forward a raw microphone chunk recorded by the platform.

        Args:
            chunk: PCM audio bytes in the agent's input format

        Returns:
            bool: True if the chunk was sent, False if muted, inactive or failed
        """
        if self._mic_muted or not self._connection_active or self.ws is None:
            return False

        try:
            await self._send_json(
                {"user_audio_chunk": base64.b64encode(chunk).decode("utf-8")}
            )
            return True
        except asyncio.TimeoutError:
            logger.warning("Timeout while sending audio chunk")
            return False
        except (ConnectionClosedOK, ConnectionClosedError) as e:
            logger.warning(f"Connection closed while sending audio: {e}")
            return False

    async def _handle_message(self, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"Received invalid JSON: {message[:100]}...")
            return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring non-object message: {message[:100]}")
            return

        event_type = data.get("type")
        if event_type == EVENT_PING:
            ping = data.get("ping_event")
            event_id = ping.get("event_id") if isinstance(ping, dict) else None
            await self._send_json({"type": MESSAGE_TYPE_PONG, "event_id": event_id})
            return

        if event_type == "conversation_initiation_metadata":
            metadata = data.get("conversation_initiation_metadata_event")
            if isinstance(metadata, dict):
                self.conversation_id = metadata.get("conversation_id")
            logger.info(f"Agent conversation started: {self.conversation_id}")

        event = parse_agent_event(data)
        if not isinstance(event, UnknownAgentEvent):
            logger.debug(f"Received {event.type}: {event.text[:80]}")
        self._emit_event(event)

    async def _recv_loop(self) -> None:
        """
        Receive JSON events until the socket closes or the session is ended.
        """
        logger.debug("Receive loop started")
        try:
            while self._connection_active and not self._is_closing:
                try:
                    message = await asyncio.wait_for(self.ws.recv(), timeout=RECV_TIMEOUT)
                except asyncio.TimeoutError:
                    continue
                self._last_activity = time.time()

                if isinstance(message, bytes):
                    logger.debug(f"Ignoring binary frame of size {len(message)} bytes")
                    continue
                await self._handle_message(message)

        except ConnectionClosedOK:
            logger.info("WebSocket connection closed normally")
        except ConnectionClosedError as e:
            logger.warning(f"WebSocket connection closed unexpectedly: {e}")
            self._emit_error(e)
        except asyncio.CancelledError:
            logger.debug("Receive loop cancelled")
            raise
        except Exception as e:
            logger.error(f"Error in receive loop: {e}")
            logger.debug(f"Receive loop error details: {traceback.format_exc()}")
            self._emit_error(e)
        finally:
            was_active = self._connection_active
            self._connection_active = False
            logger.info("Receive loop exited, connection marked as inactive")
            if was_active and not self._is_closing:
                self._emit_status("disconnected")
                self._emit_disconnect()

    async def end_session(self) -> None:
        """
        Close the WebSocket connection and cancel the receive loop.
        """
        logger.info("Closing ElevenLabs session")
        self._is_closing = True
        self._connection_active = False
        self._mic_muted = True

        task = self._recv_task
        self._recv_task = None
        if task and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.debug("Receive task cancelled successfully")

        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.warning(f"Error closing WebSocket: {e}")
            self.ws = None

        self._emit_status("disconnected")
        self._emit_disconnect()
        logger.info("ElevenLabs session closed")
