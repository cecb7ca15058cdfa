"""
Handles session control actions from the UI client.

This module processes the session.start, session.stop, mode.switch and mic.mute
actions. Each handler validates the action, drives the orchestrator and returns
a fresh state snapshot. Orchestrator errors propagate to the WebSocket manager,
which reports them to the UI.
"""

import logging
from typing import Any, Dict

from coach.config.constants import LOGGER_NAME
from coach.models.conversation import InteractionMode, SessionStatus
from coach.models.message_schemas import (
    MicMuteMessage,
    ModeSwitchMessage,
    SessionStartMessage,
    SessionStopMessage,
    StateUpdateResponse,
)
from coach.session.orchestrator import ConversationOrchestrator

logger = logging.getLogger(LOGGER_NAME)


def build_state_update(orchestrator: ConversationOrchestrator) -> StateUpdateResponse:
    """Snapshot of everything the UI renders."""
    return StateUpdateResponse(
        status=orchestrator.status,
        mode=orchestrator.mode,
        awaitingResponse=orchestrator.awaiting_response,
        messages=orchestrator.messages,
        streamingText=orchestrator.streaming_text,
        draft=orchestrator.draft,
        conversationId=orchestrator.conversation_id,
    )


async def handle_session_start(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> StateUpdateResponse:
    """
    Handle the session.start action (tap mic, open chat).

    In Voice mode the microphone is unmuted once connected; sessions always
    start muted.

    Args:
        message: The session.start action
        orchestrator: Orchestrator of this UI connection

    Returns:
        The state after starting
    """
    SessionStartMessage(**message)
    logger.info(f"Starting session in {orchestrator.mode.value} mode")
    await orchestrator.start()
    if (
        orchestrator.mode is InteractionMode.VOICE
        and orchestrator.status is not SessionStatus.IDLE
    ):
        await orchestrator.connection.wait_until_connected(orchestrator.connect_timeout)
        orchestrator.set_mic_muted(False)
    return build_state_update(orchestrator)


async def handle_session_stop(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> StateUpdateResponse:
    """Handle the session.stop action."""
    SessionStopMessage(**message)
    await orchestrator.stop()
    return build_state_update(orchestrator)


async def handle_mode_switch(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> StateUpdateResponse:
    """
    Handle the mode.switch action. Switching ends the session and clears the
    message list.
    """
    switch = ModeSwitchMessage(**message)
    await orchestrator.switch_mode(switch.mode)
    return build_state_update(orchestrator)


async def handle_mic_mute(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> StateUpdateResponse:
    """Handle the mic.mute action."""
    mute = MicMuteMessage(**message)
    orchestrator.set_mic_muted(mute.muted)
    return build_state_update(orchestrator)
