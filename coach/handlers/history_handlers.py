"""
Handles conversation history actions from the UI client.

Lookups of unknown ids raise NotFoundError, which the WebSocket manager turns
into an error message.
"""

import logging
from typing import Any, Dict

from coach.config.constants import LOGGER_NAME
from coach.handlers.session_handlers import build_state_update
from coach.models.message_schemas import (
    HistoryDeleteMessage,
    HistoryListMessage,
    HistoryLoadMessage,
    HistoryRecordsResponse,
    HistoryRenameMessage,
    StateUpdateResponse,
)
from coach.session.orchestrator import ConversationOrchestrator

logger = logging.getLogger(LOGGER_NAME)


async def handle_history_list(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> HistoryRecordsResponse:
    """Return saved conversations, most recently updated first."""
    HistoryListMessage(**message)
    return HistoryRecordsResponse(records=orchestrator.conversations())


async def handle_history_load(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> StateUpdateResponse:
    """
    Handle the history.load action. The active session is ended and the saved
    messages and mode are shown.
    """
    load = HistoryLoadMessage(**message)
    await orchestrator.load_conversation(load.conversationId)
    return build_state_update(orchestrator)


async def handle_history_rename(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> HistoryRecordsResponse:
    rename = HistoryRenameMessage(**message)
    orchestrator.rename_conversation(rename.conversationId, rename.title)
    return HistoryRecordsResponse(records=orchestrator.conversations())


async def handle_history_delete(
    message: Dict[str, Any], orchestrator: ConversationOrchestrator
) -> HistoryRecordsResponse:
    """
    Handle the history.delete action. Deleting the shown conversation keeps its
    messages on screen.
    """
    delete = HistoryDeleteMessage(**message)
    orchestrator.delete_conversation(delete.conversationId)
    logger.info(f"Conversation deleted: {delete.conversationId}")
    return HistoryRecordsResponse(records=orchestrator.conversations())
