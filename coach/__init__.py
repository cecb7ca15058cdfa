"""
Gestalt Coach - Conversational Session Orchestrator

This package manages live, streaming conversations between parents of gestalt
language processors and the app's remote AI coach agents (ElevenLabs
Conversational AI). A conversation runs in one of two mutually exclusive modes:
Voice, where the agent hears the user and transcripts stream in, and Chat, where
each typed message opens a short single-turn session.

Key Components:
- bot: The AgentTransport interface and its ElevenLabs WebSocket client
- config: Constants, agent personas and logging setup
- session: Connection lifecycle, event arbitration between modes, streaming
  message assembly, conversation history and the orchestrator tying them together
- models: Pydantic models for messages, records, agent events and the UI protocol
- handlers: UI action handlers
- websocket_manager / main: FastAPI server exposing the orchestrator to the UI

Getting Started:
1. Set up environment variables:
   - ELEVENLABS_API_KEY: Your ElevenLabs API key
   - LANGUAGE_COACH_AGENT_ID, PARENT_SUPPORT_AGENT_ID, CHILD_MODE_AGENT_ID
   - PORT / HOST: Server binding (default 0.0.0.0:8000)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the server:
   ```bash
   python -m coach.main
   ```
"""
