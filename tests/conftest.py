"""Test configuration and shared fixtures."""

from __future__ import annotations

import pytest

from courier.core.domain.config_schema import CourierConfig


@pytest.fixture
def slack_config() -> CourierConfig:
    """Configuration with Slack as the only provider."""
    return CourierConfig.model_validate({"providers": {"slack": {"bot_token": "xoxb-test"}}})


@pytest.fixture
def multi_config() -> CourierConfig:
    """Configuration with several providers and no default."""
    return CourierConfig.model_validate(
        {
            "providers": {
                "slack": {"bot_token": "xoxb-test"},
                "telegram": {"bot_token": "123:abc"},
                "discord": {},
            }
        }
    )


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tokens and config paths from the developer's shell out of tests."""
    for name in (
        "COURIER_CONFIG",
        "COURIER_WEBCHAT_ROOT",
        "TELEGRAM_BOT_TOKEN",
        "SLACK_BOT_TOKEN",
        "LOGLEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
