"""
Tests for agent persona configuration.
"""

from unittest.mock import patch

import pytest

from coach.config.agents import (
    AgentConfig,
    AgentPersona,
    is_unresolved,
    load_agent_config,
    load_agent_configs,
    validate_agent_config,
)
from coach.errors import ConfigurationError

PERSONA_ENV = {
    "LANGUAGE_COACH_AGENT_ID": "agent_lc_01",
    "PARENT_SUPPORT_AGENT_ID": "agent_ps_02",
    "CHILD_MODE_AGENT_ID": "agent_cm_03",
    "ELEVENLABS_API_KEY": "sk_live_abc",
}


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "   ",
        "lang-coach-agent-id",
        "parent-support-agent-id",
        "your-api-key-here",
        "YOUR_API_KEY",
        "<agent id>",
        "${ELEVENLABS_API_KEY}",
        "changeme",
    ],
)
def test_is_unresolved_placeholders(value):
    assert is_unresolved(value)


@pytest.mark.parametrize("value", ["agent_8f3k2j", "sk_live_1234", "J3Pbu5gP6NNKBscdCdwB"])
def test_is_unresolved_real_values(value):
    assert not is_unresolved(value)


def test_load_agent_config_from_environment():
    with patch.dict("os.environ", PERSONA_ENV):
        config = load_agent_config(AgentPersona.PARENT_SUPPORT)

    assert config.agent_id == "agent_ps_02"
    assert config.api_key == "sk_live_abc"
    assert config.name == "Parent Support"
    assert "support companion" in config.system_prompt
    assert validate_agent_config(config) is config


def test_load_agent_config_defaults_are_rejected():
    with patch.dict("os.environ", {}, clear=True):
        config = load_agent_config(AgentPersona.LANGUAGE_COACH)

    assert config.agent_id == "lang-coach-agent-id"
    with pytest.raises(ConfigurationError):
        validate_agent_config(config)


def test_load_agent_configs_covers_every_persona():
    with patch.dict("os.environ", PERSONA_ENV):
        configs = load_agent_configs()

    assert set(configs) == set(AgentPersona)
    assert {c.agent_id for c in configs.values()} == {
        "agent_lc_01",
        "agent_ps_02",
        "agent_cm_03",
    }


def test_validate_missing_api_key():
    config = AgentConfig(agent_id="agent_lc_01", name="Language Coach")
    with pytest.raises(ConfigurationError, match="API key"):
        validate_agent_config(config)


def test_validate_none():
    with pytest.raises(ConfigurationError):
        validate_agent_config(None)


def test_api_key_hidden_from_repr():
    config = AgentConfig(agent_id="agent_lc_01", api_key="sk_live_secret")
    assert "sk_live_secret" not in repr(config)
