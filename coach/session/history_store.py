"""
In-memory bookkeeping of saved conversations.

The store keeps one ConversationRecord per saved conversation and a pointer to
the conversation currently shown. It performs no disk or network I/O: external
stores subscribe to changes and persist ``export()`` dumps.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from coach.config.constants import AUTO_SAVE_DELAY, LOGGER_NAME, TITLE_MAX_LENGTH
from coach.errors import NotFoundError
from coach.models.conversation import (
    ConversationMessage,
    ConversationRecord,
    InteractionMode,
    utc_now,
)

logger = logging.getLogger(LOGGER_NAME)

SnapshotSource = Callable[[], Tuple[InteractionMode, List[ConversationMessage]]]
RecordListener = Callable[[List[ConversationRecord]], None]


def default_title(mode: InteractionMode, messages: List[ConversationMessage]) -> str:
    """Title from the first user message, or a generic one for the mode."""
    for message in messages:
        if message.role == "user" and message.content.strip():
            title = " ".join(message.content.split())
            if len(title) > TITLE_MAX_LENGTH:
                title = title[: TITLE_MAX_LENGTH - 1].rstrip() + "…"
            return title
    return f"{mode.value} conversation"


class ConversationHistoryStore:
    """Saved conversation records with debounced auto-save."""

    def __init__(self, auto_save_delay: float = AUTO_SAVE_DELAY):
        self.auto_save_delay = auto_save_delay
        self._records: Dict[str, ConversationRecord] = {}
        self.current_id: Optional[str] = None
        self._auto_save_handle: Optional[asyncio.TimerHandle] = None
        self._auto_save_source: Optional[SnapshotSource] = None
        self._listeners: List[RecordListener] = []

    def subscribe(self, listener: RecordListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        records = self.records()
        for listener in self._listeners[:]:
            listener(records)

    def records(self) -> List[ConversationRecord]:
        """All records, most recently updated first."""
        return sorted(self._records.values(), key=lambda r: r.last_updated, reverse=True)

    def get(self, record_id: str) -> ConversationRecord:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(f"Conversation not found: {record_id}")
        return record

    def save(
        self,
        mode: InteractionMode,
        messages: List[ConversationMessage],
        title: Optional[str] = None,
    ) -> Optional[ConversationRecord]:
        """
        Create or update the current conversation's record.

        Returns:
            The saved record, or None if there was nothing to save
        """
        finalized = [m for m in messages if not m.is_streaming]
        if not finalized:
            return None

        existing = self._records.get(self.current_id) if self.current_id else None
        if existing is None:
            record = ConversationRecord(
                title=title or default_title(mode, finalized),
                mode=mode,
                messages=finalized,
            )
            logger.info(f"Created conversation record: {record.id}")
        else:
            record = existing.model_copy(
                update={
                    "title": title or existing.title,
                    "mode": mode,
                    "messages": [m.model_copy() for m in finalized],
                    "last_updated": utc_now(),
                }
            )
            logger.debug(f"Updated conversation record: {record.id}")

        self._records[record.id] = record
        self.current_id = record.id
        self._notify()
        return record

    def schedule_auto_save(self, source: SnapshotSource) -> None:
        """
        (Re)start the inactivity timer; when it fires the snapshot is saved.

        Must be called from the event loop thread.
        """
        self.cancel_auto_save()
        self._auto_save_source = source
        loop = asyncio.get_running_loop()
        self._auto_save_handle = loop.call_later(self.auto_save_delay, self.auto_save)

    def cancel_auto_save(self) -> None:
        if self._auto_save_handle is not None:
            self._auto_save_handle.cancel()
            self._auto_save_handle = None

    @property
    def auto_save_pending(self) -> bool:
        return self._auto_save_handle is not None

    def auto_save(self) -> Optional[ConversationRecord]:
        """Save the snapshot registered by the last ``schedule_auto_save``."""
        self._auto_save_handle = None
        source = self._auto_save_source
        if source is None:
            return None
        mode, messages = source()
        if not messages:
            return None
        return self.save(mode, messages)

    def flush_auto_save(self) -> Optional[ConversationRecord]:
        """Run a pending auto-save immediately."""
        if not self.auto_save_pending:
            return None
        self.cancel_auto_save()
        return self.auto_save()

    def load(self, record_id: str) -> ConversationRecord:
        """
        Make a saved conversation current.

        Raises:
            NotFoundError: if no record has this id
        """
        record = self.get(record_id)
        self.cancel_auto_save()
        self._auto_save_source = None
        self.current_id = record.id
        logger.info(f"Loaded conversation record: {record.id}")
        return record.model_copy(deep=True)

    def rename(self, record_id: str, title: str) -> ConversationRecord:
        """
        Raises:
            NotFoundError: if no record has this id
            ValueError: if the title is blank
        """
        record = self.get(record_id)
        if not title.strip():
            raise ValueError("Title cannot be empty")
        renamed = record.model_copy(update={"title": title.strip()})
        self._records[record_id] = renamed
        self._notify()
        return renamed

    def delete(self, record_id: str) -> None:
        """
        Raises:
            NotFoundError: if no record has this id
        """
        self.get(record_id)
        del self._records[record_id]
        if self.current_id == record_id:
            self.current_id = None
            self.cancel_auto_save()
        logger.info(f"Deleted conversation record: {record_id}")
        self._notify()

    def new_conversation(self) -> None:
        """Detach from the current record so the next save creates a new one."""
        self.cancel_auto_save()
        self._auto_save_source = None
        self.current_id = None

    def export(self) -> List[Dict[str, Any]]:
        """JSON-ready dumps of every record for an external store."""
        return [r.model_dump(mode="json", by_alias=True) for r in self.records()]

    def restore(self, records: Iterable[Dict[str, Any]]) -> None:
        """Replace all records with dumps produced by ``export``."""
        self._records = {}
        for data in records:
            record = ConversationRecord.model_validate(data)
            self._records[record.id] = record
        if self.current_id not in self._records:
            self.current_id = None
        self._notify()
