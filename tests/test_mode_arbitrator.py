"""
Unit tests for the mode-based event gating.
"""

import pytest

from coach.models.agent_events import (
    AgentResponseCorrectionEvent,
    AgentResponseEvent,
    TentativeAgentResponseEvent,
    UnknownAgentEvent,
    UserTranscriptEvent,
)
from coach.models.conversation import InteractionMode
from coach.session.mode_arbitrator import (
    REASON_MODE_MISMATCH,
    REASON_NO_PENDING_REQUEST,
    REASON_UNKNOWN_EVENT,
    ModeArbitrator,
    Verdict,
    classify,
)

VOICE = InteractionMode.VOICE
CHAT = InteractionMode.CHAT
ACCEPT = Verdict.ACCEPT
DISCARD = Verdict.DISCARD

TRANSCRIPT = UserTranscriptEvent(text="I want juice")
TENTATIVE = TentativeAgentResponseEvent(text="Let's")
RESPONSE = AgentResponseEvent(text="Let's get juice!")
CORRECTION = AgentResponseCorrectionEvent(text="Let's get some juice!")
UNKNOWN = UnknownAgentEvent(type="audio", payload={"type": "audio"})


@pytest.mark.parametrize(
    "event, mode, awaiting, expected",
    [
        (TRANSCRIPT, VOICE, False, ACCEPT),
        (TRANSCRIPT, VOICE, True, ACCEPT),
        (TRANSCRIPT, CHAT, False, DISCARD),
        (TRANSCRIPT, CHAT, True, DISCARD),
        (TENTATIVE, VOICE, False, ACCEPT),
        (TENTATIVE, CHAT, True, ACCEPT),
        (TENTATIVE, CHAT, False, DISCARD),
        (RESPONSE, VOICE, False, ACCEPT),
        (RESPONSE, CHAT, True, ACCEPT),
        (RESPONSE, CHAT, False, DISCARD),
        (CORRECTION, VOICE, False, ACCEPT),
        (CORRECTION, CHAT, True, ACCEPT),
        (CORRECTION, CHAT, False, DISCARD),
        (UNKNOWN, VOICE, False, DISCARD),
        (UNKNOWN, VOICE, True, DISCARD),
        (UNKNOWN, CHAT, True, DISCARD),
    ],
)
def test_classify(event, mode, awaiting, expected):
    assert classify(event, mode, awaiting) is expected
    # Same inputs, same answer
    assert classify(event, mode, awaiting) is expected


def test_arbitrate_counts_discards_by_reason():
    arbitrator = ModeArbitrator()

    arbitrator.arbitrate(TRANSCRIPT, CHAT, True)
    arbitrator.arbitrate(RESPONSE, CHAT, False)
    arbitrator.arbitrate(TENTATIVE, CHAT, False)
    arbitrator.arbitrate(UNKNOWN, VOICE, False)
    verdict = arbitrator.arbitrate(RESPONSE, VOICE, False)

    assert verdict is ACCEPT
    assert arbitrator.discards[REASON_MODE_MISMATCH] == 1
    assert arbitrator.discards[REASON_NO_PENDING_REQUEST] == 2
    assert arbitrator.discards[REASON_UNKNOWN_EVENT] == 1


def test_reset_counters():
    arbitrator = ModeArbitrator()
    arbitrator.arbitrate(UNKNOWN, VOICE, False)

    arbitrator.reset_counters()

    assert sum(arbitrator.discards.values()) == 0
