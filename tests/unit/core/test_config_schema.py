"""Tests for the configuration schema."""

import pytest
from pydantic import ValidationError

from courier.core.domain.config_schema import WEBCHAT_DEFAULT_PORT, CourierConfig


def test_defaults():
    config = CourierConfig()
    assert config.providers == {}
    assert config.default_provider is None
    assert config.webchat.enabled is True
    assert config.webchat.port == WEBCHAT_DEFAULT_PORT == 18788
    assert config.logging.level == "INFO"
    assert config.logging.json_output is False


def test_provider_keys_and_default_are_normalized():
    config = CourierConfig.model_validate(
        {"providers": {" Slack ": {"bot_token": "x"}, "Telegram": None}, "default_provider": " SLACK "}
    )
    assert list(config.providers) == ["slack", "telegram"]
    assert config.default_provider == "slack"
    assert config.provider_config("telegram").enabled is True


def test_enabled_providers_skip_disabled():
    config = CourierConfig.model_validate(
        {"providers": {"slack": {}, "discord": {"enabled": False}, "signal": {}}}
    )
    assert config.enabled_providers() == ["slack", "signal"]


def test_provider_extra_keys_allowed():
    config = CourierConfig.model_validate({"providers": {"slack": {"team": "T1"}}})
    assert config.provider_config("slack").model_extra == {"team": "T1"}


def test_logging_json_alias_and_level():
    config = CourierConfig.model_validate({"logging": {"level": "debug", "json": True}})
    assert config.logging.level == "DEBUG"
    assert config.logging.json_output is True


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError):
        CourierConfig.model_validate({"logging": {"level": "chatty"}})


def test_unknown_top_level_key_rejected():
    with pytest.raises(ValidationError):
        CourierConfig.model_validate({"channels": {}})


def test_webchat_port_range():
    with pytest.raises(ValidationError):
        CourierConfig.model_validate({"webchat": {"port": 70000}})
