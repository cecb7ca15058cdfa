"""
Tests for the UI action handlers, driven against a real orchestrator.
"""

import base64

import pytest
from pydantic import ValidationError

from coach.errors import EmptyMessageError, NotFoundError, SessionConnectionError
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
from coach.models.agent_events import AgentResponseEvent, UserTranscriptEvent
from coach.models.conversation import InteractionMode, SessionStatus
from coach.models.message_schemas import HistoryRecordsResponse, StateUpdateResponse
from coach.session.orchestrator import ConversationOrchestrator


@pytest.fixture
def orchestrator(transport, agent_config):
    return ConversationOrchestrator(transport, agent_config)


@pytest.fixture
def chat_orchestrator(transport, agent_config):
    return ConversationOrchestrator(transport, agent_config, mode=InteractionMode.CHAT)


@pytest.mark.asyncio
async def test_session_start_in_voice_unmutes(orchestrator, transport):
    response = await handle_session_start({"type": "session.start"}, orchestrator)

    assert isinstance(response, StateUpdateResponse)
    assert response.status is SessionStatus.CONNECTED
    assert response.mode is InteractionMode.VOICE
    # Connected muted, then unmuted for voice
    assert transport.mute_calls == [True, False]


@pytest.mark.asyncio
async def test_session_start_in_chat_stays_muted(chat_orchestrator, transport):
    response = await handle_session_start({"type": "session.start"}, chat_orchestrator)

    assert response.status is SessionStatus.CONNECTED
    assert transport.mute_calls == [True]


@pytest.mark.asyncio
async def test_session_start_failure_propagates(orchestrator, transport):
    transport.start_error = OSError("unreachable")

    with pytest.raises(SessionConnectionError):
        await handle_session_start({"type": "session.start"}, orchestrator)

    assert orchestrator.status is SessionStatus.IDLE


@pytest.mark.asyncio
async def test_session_stop(orchestrator):
    await handle_session_start({"type": "session.start"}, orchestrator)

    response = await handle_session_stop({"type": "session.stop"}, orchestrator)

    assert response.status is SessionStatus.IDLE


@pytest.mark.asyncio
async def test_mode_switch(orchestrator, transport):
    await handle_session_start({"type": "session.start"}, orchestrator)
    transport.emit(UserTranscriptEvent(text="hello"))

    response = await handle_mode_switch({"type": "mode.switch", "mode": "Chat"}, orchestrator)

    assert response.mode is InteractionMode.CHAT
    assert response.status is SessionStatus.IDLE
    assert response.messages == []


@pytest.mark.asyncio
async def test_mode_switch_rejects_unknown_mode(orchestrator):
    with pytest.raises(ValidationError):
        await handle_mode_switch({"type": "mode.switch", "mode": "Video"}, orchestrator)


@pytest.mark.asyncio
async def test_mic_mute(orchestrator, transport):
    await handle_session_start({"type": "session.start"}, orchestrator)

    await handle_mic_mute({"type": "mic.mute", "muted": True}, orchestrator)

    assert transport.mute_calls[-1] is True


@pytest.mark.asyncio
async def test_mic_mute_requires_session(orchestrator):
    with pytest.raises(SessionConnectionError):
        await handle_mic_mute({"type": "mic.mute", "muted": False}, orchestrator)


def audio_action(chunk):
    return {"type": "audio.chunk", "audioChunk": base64.b64encode(chunk).decode("utf-8")}


@pytest.mark.asyncio
async def test_audio_chunk_forwarded_while_unmuted(orchestrator, transport):
    await handle_session_start({"type": "session.start"}, orchestrator)

    response = await handle_audio_chunk(audio_action(b"\x00\x01\x02"), orchestrator)

    assert response is None
    assert transport.audio == [b"\x00\x01\x02"]


@pytest.mark.asyncio
async def test_audio_chunk_dropped_while_muted(orchestrator, transport):
    await handle_session_start({"type": "session.start"}, orchestrator)
    await handle_mic_mute({"type": "mic.mute", "muted": True}, orchestrator)

    await handle_audio_chunk(audio_action(b"\x00\x01"), orchestrator)

    assert transport.audio == []


@pytest.mark.asyncio
async def test_audio_chunk_ignored_in_chat(chat_orchestrator, transport):
    await chat_orchestrator.start()
    chat_orchestrator.set_mic_muted(False)

    await handle_audio_chunk(audio_action(b"\x00\x01"), chat_orchestrator)

    assert transport.audio == []


@pytest.mark.asyncio
@pytest.mark.parametrize("chunk", ["", "%%%"])
async def test_audio_chunk_rejects_invalid_data(orchestrator, chunk):
    with pytest.raises(ValidationError):
        await handle_audio_chunk({"type": "audio.chunk", "audioChunk": chunk}, orchestrator)


@pytest.mark.asyncio
async def test_draft_update_returns_nothing(orchestrator):
    response = await handle_draft_update({"type": "draft.update", "text": "Hel"}, orchestrator)

    assert response is None
    assert orchestrator.draft == "Hel"


@pytest.mark.asyncio
async def test_message_send(chat_orchestrator, transport):
    response = await handle_message_send(
        {"type": "message.send", "text": "hello"}, chat_orchestrator
    )

    assert transport.sent == ["hello"]
    assert response.awaitingResponse is True
    assert [m.content for m in response.messages] == ["hello"]
    assert response.draft == ""


@pytest.mark.asyncio
async def test_message_send_blank(chat_orchestrator):
    with pytest.raises(EmptyMessageError):
        await handle_message_send({"type": "message.send", "text": "  "}, chat_orchestrator)


@pytest.mark.asyncio
async def test_history_flow(chat_orchestrator, transport):
    await handle_message_send({"type": "message.send", "text": "hello"}, chat_orchestrator)
    transport.emit(AgentResponseEvent(text="Hi there!"))
    record = chat_orchestrator.save()
    await chat_orchestrator.wait_for_pending_stop()

    listed = await handle_history_list({"type": "history.list"}, chat_orchestrator)
    assert isinstance(listed, HistoryRecordsResponse)
    assert [r.id for r in listed.records] == [record.id]

    renamed = await handle_history_rename(
        {"type": "history.rename", "conversationId": record.id, "title": "First chat"},
        chat_orchestrator,
    )
    assert renamed.records[0].title == "First chat"

    await handle_mode_switch({"type": "mode.switch", "mode": "Voice"}, chat_orchestrator)
    loaded = await handle_history_load(
        {"type": "history.load", "conversationId": record.id}, chat_orchestrator
    )
    assert loaded.mode is InteractionMode.CHAT
    assert loaded.conversationId == record.id
    assert [m.content for m in loaded.messages] == ["hello", "Hi there!"]

    deleted = await handle_history_delete(
        {"type": "history.delete", "conversationId": record.id}, chat_orchestrator
    )
    assert deleted.records == []
    # Deleting keeps the shown messages
    assert len(chat_orchestrator.messages) == 2


@pytest.mark.asyncio
async def test_history_load_missing(orchestrator):
    with pytest.raises(NotFoundError):
        await handle_history_load(
            {"type": "history.load", "conversationId": "missing"}, orchestrator
        )


@pytest.mark.asyncio
async def test_history_rename_blank_title(orchestrator):
    with pytest.raises(ValidationError):
        await handle_history_rename(
            {"type": "history.rename", "conversationId": "abc", "title": " "}, orchestrator
        )


def test_build_state_update_serializes_camel_case(orchestrator):
    payload = build_state_update(orchestrator).model_dump(by_alias=True)

    assert payload["type"] == "state.update"
    assert payload["status"] == "idle"
    assert payload["awaitingResponse"] is False
    assert payload["streamingText"] is None
