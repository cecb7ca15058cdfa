"""
Handles typed message actions from the UI client.
"""

import logging
from typing import Any, Dict

from coach.config.constants import LOGGER_NAME
from coach.handlers.session_handlers import build_state_update
from coach.models.message_schemas import (
    AudioChunkMessage,
    DraftUpdateMessage,
    MessageSendMessage,
    StateUpdateResponse,
)
from coach.session.orchestrator import ConversationOrchestrator

logger = logging.getLogger(LOGGER_NAME)


async def handle_draft_update(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> None:
    """Mirror the UI's input field so a failed send can restore it."""
    draft = DraftUpdateMessage(**message)
    orchestrator.set_draft(draft.text)
    return None


async def handle_audio_chunk(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> None:
    """
    Forward a microphone chunk to the agent.

    No state is pushed per chunk; chunks outside a connected, unmuted Voice
    session are dropped.
    """
    chunk = AudioChunkMessage(**message)
    if not await orchestrator.send_audio(chunk.decoded()):
        logger.debug("Audio chunk not forwarded")
    return None


async def handle_message_send(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> StateUpdateResponse:
    """
    Handle the message.send action.

    Args:
        message: The message.send action with the typed text
        orchestrator: Orchestrator of this UI connection

    Returns:
        The state with the optimistic user message
    """
    send = MessageSendMessage(**message)
    logger.info(f"Sending typed message in {orchestrator.mode.value} mode")
    await orchestrator.send_message(send.text)
    return build_state_update(orchestrator)
