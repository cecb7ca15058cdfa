"""
Configuration module for the coach orchestrator.

Key components:
- constants: Application-wide constants, including agent event types, UI
  message types, endpoints and session timings.
- agents: Agent personas and their ElevenLabs configuration loaded from the
  environment, with placeholder detection.
- logging_config: Console and rotating file logging.

Usage examples:
```python
from coach.config.agents import AgentPersona, load_agent_config
config = load_agent_config(AgentPersona.PARENT_SUPPORT)

from coach.config.logging_config import configure_logging
logger = configure_logging()
```
"""
