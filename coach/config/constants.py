"""
Constants shared by the orchestrator, the agent transport and the UI server.

Wire-level event and message type names live here so the parsers, the client
and the handler routing agree on them.
"""

# Logger name used throughout the application
LOGGER_NAME = "gestalt_coach"

# ElevenLabs Conversational AI endpoints
ELEVENLABS_TOKEN_URL = "https://api.elevenlabs.io/v1/convai/conversation/token"
ELEVENLABS_CONVERSATION_URL = "wss://api.elevenlabs.io/v1/convai/conversation"

# Session timing (seconds)
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_STOP_TIMEOUT = 5.0
AUTO_SAVE_DELAY = 2.0

# Conversation titles
TITLE_MAX_LENGTH = 40

# Inbound agent event types
EVENT_USER_TRANSCRIPT = "user_transcript"
EVENT_TENTATIVE_AGENT_RESPONSE = "internal_tentative_agent_response"
EVENT_AGENT_RESPONSE = "agent_response"
EVENT_AGENT_RESPONSE_CORRECTION = "agent_response_correction"
EVENT_PING = "ping"

# Outbound agent message types
MESSAGE_TYPE_INITIATION_DATA = "conversation_initiation_client_data"
MESSAGE_TYPE_USER_MESSAGE = "user_message"
MESSAGE_TYPE_PONG = "pong"

# UI protocol message types
MESSAGE_TYPE_SESSION_START = "session.start"
MESSAGE_TYPE_SESSION_STOP = "session.stop"
MESSAGE_TYPE_MODE_SWITCH = "mode.switch"
MESSAGE_TYPE_MIC_MUTE = "mic.mute"
MESSAGE_TYPE_AUDIO_CHUNK = "audio.chunk"
MESSAGE_TYPE_DRAFT_UPDATE = "draft.update"
MESSAGE_TYPE_MESSAGE_SEND = "message.send"
MESSAGE_TYPE_HISTORY_LIST = "history.list"
MESSAGE_TYPE_HISTORY_LOAD = "history.load"
MESSAGE_TYPE_HISTORY_RENAME = "history.rename"
MESSAGE_TYPE_HISTORY_DELETE = "history.delete"
