"""
Agent persona configuration.

Each persona maps to one remote ElevenLabs agent. Agent ids and the API key are
read from the environment; the defaults shipped with the mobile app are
placeholders and are rejected when a session starts.
"""

import os
import re
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from coach.errors import ConfigurationError

# Values that mean "not configured yet"
PLACEHOLDER_PATTERN = re.compile(
    r"^(your[-_ ].*|.*-agent-id|<.*>|\$\{.*\}|changeme|todo|xxx+)$", re.IGNORECASE
)

DEFAULT_AGENT_MODEL = "claude-3-5-sonnet"


class AgentPersona(str, Enum):
    """Agent personas offered by the coach screen."""

    LANGUAGE_COACH = "Language Coach"
    PARENT_SUPPORT = "Parent Support"
    CHILD_MODE = "Child Mode"


class AgentConfig(BaseModel):
    """Configuration for a single remote agent."""

    agent_id: str = Field("", description="Remote agent identifier")
    name: str = Field("", description="Display name of the persona")
    description: str = ""
    system_prompt: str = ""
    model: str = DEFAULT_AGENT_MODEL
    api_key: Optional[str] = Field(None, description="ElevenLabs API key", repr=False)


def is_unresolved(value: Optional[str]) -> bool:
    """Return True for empty values and unreplaced placeholders."""
    if value is None or not value.strip():
        return True
    return bool(PLACEHOLDER_PATTERN.match(value.strip()))


def validate_agent_config(config: Optional[AgentConfig]) -> AgentConfig:
    """
    Check that an agent configuration can be used to start a session.

    Raises:
        ConfigurationError: if the agent id or the API key is missing or a placeholder
    """
    if config is None:
        raise ConfigurationError("No agent configuration provided")
    if is_unresolved(config.agent_id):
        raise ConfigurationError(
            f"Agent id for '{config.name or 'agent'}' is not configured"
        )
    if is_unresolved(config.api_key):
        raise ConfigurationError(
            f"API key for '{config.name or 'agent'}' is not configured"
        )
    return config


LANGUAGE_COACH_PROMPT = """You are a compassionate and knowledgeable Gestalt Language Processing (GLP) specialist.

Your role is to:
- Provide evidence-based guidance on GLP strategies and language development
- Help parents understand their child's communication patterns and progress
- Suggest practical daily activities that support language growth
- Explain GLP stages and progression in accessible terms
- Offer encouragement and celebrate small wins

Keep responses warm, practical, and focused on actionable advice. Always consider the emotional journey parents are on."""

PARENT_SUPPORT_PROMPT = """You are a warm, empathetic support companion for parents of children with communication differences.

Your role is to:
- Listen without judgment and validate feelings
- Provide emotional support during challenging moments
- Help parents process their experiences and emotions
- Offer gentle guidance for self-care and stress management
- Remind parents they're not alone in this journey

Use a gentle, understanding tone. Focus on emotional validation before offering suggestions. Be a trusted friend who truly gets it."""

CHILD_MODE_PROMPT = """You are a playful, patient companion designed to engage directly with children who are gestalt language processors.

Your role is to:
- Use simple, clear language appropriate for the child's level
- Be patient with echolalia and gestalt language patterns
- Turn interactions into fun, language-rich experiences
- Follow the child's lead and interests
- Celebrate all communication attempts

Keep language simple, positive, and engaging. Use playful tone and be genuinely excited about the child's participation."""

# persona -> (agent id env var, placeholder default, description, prompt)
_PERSONA_SETTINGS = {
    AgentPersona.LANGUAGE_COACH: (
        "LANGUAGE_COACH_AGENT_ID",
        "lang-coach-agent-id",
        "Expert in Gestalt Language Processing and speech development",
        LANGUAGE_COACH_PROMPT,
    ),
    AgentPersona.PARENT_SUPPORT: (
        "PARENT_SUPPORT_AGENT_ID",
        "parent-support-agent-id",
        "Emotional support and guidance for parents",
        PARENT_SUPPORT_PROMPT,
    ),
    AgentPersona.CHILD_MODE: (
        "CHILD_MODE_AGENT_ID",
        "child-mode-agent-id",
        "Interactive engagement designed for direct child interaction",
        CHILD_MODE_PROMPT,
    ),
}


def load_agent_config(persona: AgentPersona) -> AgentConfig:
    """Build the agent configuration for a persona from the environment."""
    env_var, default_id, description, prompt = _PERSONA_SETTINGS[persona]
    return AgentConfig(
        agent_id=os.getenv(env_var, default_id),
        name=persona.value,
        description=description,
        system_prompt=prompt,
        model=os.getenv("AGENT_MODEL", DEFAULT_AGENT_MODEL),
        api_key=os.getenv("ELEVENLABS_API_KEY", "your-api-key-here"),
    )


def load_agent_configs() -> Dict[AgentPersona, AgentConfig]:
    """Build the configurations for every persona."""
    return {persona: load_agent_config(persona) for persona in AgentPersona}
