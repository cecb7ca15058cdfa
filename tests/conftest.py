import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import pytest

from coach.bot.transport import AgentTransport
from coach.config.agents import AgentConfig
from coach.models.agent_events import AgentEvent


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class FakeTransport(AgentTransport):
    """In-memory AgentTransport that records calls and lets tests emit events."""

    def __init__(self):
        super().__init__()
        self.start_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.sent: List[str] = []
        self.audio: List[bytes] = []
        self.mute_calls: List[bool] = []
        self.end_calls = 0
        self.start_gate: Optional[asyncio.Event] = None
        self.end_gate: Optional[asyncio.Event] = None
        self.start_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.starts_in_flight = 0
        self.max_starts_in_flight = 0

    async def start_session(self, agent_id: str, overrides: Dict[str, Any]) -> None:
        self.start_calls.append((agent_id, overrides))
        self.starts_in_flight += 1
        self.max_starts_in_flight = max(self.max_starts_in_flight, self.starts_in_flight)
        try:
            if self.start_gate is not None:
                await self.start_gate.wait()
            if self.start_error is not None:
                raise self.start_error
        finally:
            self.starts_in_flight -= 1
        self._emit_connect()

    async def send_user_message(self, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(text)

    def set_mic_muted(self, muted: bool) -> None:
        self.mute_calls.append(muted)

    async def send_audio_chunk(self, chunk: bytes) -> bool:
        if not self.mute_calls or self.mute_calls[-1]:
            return False
        self.audio.append(chunk)
        return True

    async def end_session(self) -> None:
        self.end_calls += 1
        if self.end_gate is not None:
            await self.end_gate.wait()
        self._emit_disconnect()

    def emit(self, event: AgentEvent) -> None:
        self._emit_event(event)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def agent_config():
    return AgentConfig(
        agent_id="agent_8f3k2j",
        name="Language Coach",
        description="GLP specialist",
        system_prompt="You are a GLP specialist.",
        api_key="sk_live_1234",
    )


@pytest.fixture
def transport_factory():
    return FakeTransport
