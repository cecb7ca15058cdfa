"""
Mode-based gating of inbound agent events.

Voice and Chat share one transport, so events meant for one mode can arrive
while the other is active, and late replies from a finished Chat exchange can
arrive after the request completed. ``classify`` decides which events reach the
message list:

- user transcripts are accepted only in Voice mode; Chat echoes the typed
  message locally
- tentative replies, final replies and corrections are accepted in Voice mode,
  and in Chat mode only while a reply is pending
- any other event type is discarded
"""

import logging
from collections import Counter
from enum import Enum

from coach.config.constants import LOGGER_NAME
from coach.models.agent_events import (
    AGENT_REPLY_EVENTS,
    AgentEvent,
    UserTranscriptEvent,
)
from coach.models.conversation import InteractionMode

logger = logging.getLogger(LOGGER_NAME)


class Verdict(str, Enum):
    ACCEPT = "accept"
    DISCARD = "discard"


# Discard reasons
REASON_UNKNOWN_EVENT = "unknown_event"
REASON_MODE_MISMATCH = "mode_mismatch"
REASON_NO_PENDING_REQUEST = "no_pending_request"


def discard_reason(event: AgentEvent, mode: InteractionMode, awaiting_response: bool):
    """Return why an event would be discarded, or None if it is accepted."""
    if isinstance(event, UserTranscriptEvent):
        return None if mode is InteractionMode.VOICE else REASON_MODE_MISMATCH
    if isinstance(event, AGENT_REPLY_EVENTS):
        if mode is InteractionMode.VOICE or awaiting_response:
            return None
        return REASON_NO_PENDING_REQUEST
    return REASON_UNKNOWN_EVENT


def classify(event: AgentEvent, mode: InteractionMode, awaiting_response: bool) -> Verdict:
    """Accept or discard an inbound event. Pure: depends only on its arguments."""
    if discard_reason(event, mode, awaiting_response) is None:
        return Verdict.ACCEPT
    return Verdict.DISCARD


class ModeArbitrator:
    """
    Applies ``classify`` and keeps debug counters of discarded events.

    Discards are expected noise (unknown event types, stray replies) and are
    never raised as errors; they are logged at DEBUG level and counted.
    """

    def __init__(self):
        self.discards: Counter = Counter()

    def arbitrate(
        self, event: AgentEvent, mode: InteractionMode, awaiting_response: bool
    ) -> Verdict:
        reason = discard_reason(event, mode, awaiting_response)
        if reason is None:
            return Verdict.ACCEPT

        self.discards[reason] += 1
        logger.debug(
            f"Discarded {event.type} event ({reason}) in {mode.value} mode, "
            f"awaiting_response={awaiting_response}"
        )
        return Verdict.DISCARD

    def reset_counters(self) -> None:
        self.discards.clear()
