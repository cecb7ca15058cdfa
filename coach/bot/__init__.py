"""
Agent transport for the coach orchestrator.

Key components:
- AgentTransport: Interface for one bidirectional streaming session with a
  remote agent, with event and connection callbacks.
- ElevenLabsAgentClient: AgentTransport over the ElevenLabs Conversational AI
  WebSocket API. It fetches a conversation token, parses inbound events, answers
  pings and forwards microphone audio only while unmuted.

Usage example:
```python
from coach.bot import ElevenLabsAgentClient

client = ElevenLabsAgentClient(api_key)
client.set_callbacks(on_event=print)
await client.start_session(agent_id, {"conversation": {"text_only": True}})
await client.send_user_message("How can I model a new gestalt?")
await client.end_session()
```
"""

from coach.bot.elevenlabs_client import ElevenLabsAgentClient
from coach.bot.transport import AgentTransport

__all__ = ["AgentTransport", "ElevenLabsAgentClient"]
