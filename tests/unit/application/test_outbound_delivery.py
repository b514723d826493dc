"""Tests for core message and poll delivery."""

from __future__ import annotations

from typing import Any

import aiohttp
import pytest

from courier.application.outbound_delivery import (
    MAX_POLL_OPTIONS,
    OutboundDelivery,
    normalize_poll_input,
)
from courier.core.domain.actions import GatewayDescriptor
from courier.core.domain.errors import (
    ConfigError,
    DeliveryError,
    InvalidParameterError,
    UnsupportedActionError,
)
from courier.core.domain.outbound import SendMessageRequest, SendPollRequest


class FakeSender:
    """Outbound sender recording calls."""

    def __init__(self, provider: str = "slack", error: Exception | None = None) -> None:
        self._provider = provider
        self.error = error
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    @property
    def provider(self) -> str:
        return self._provider

    async def send(self, *, to, message, media_url=None, reply_to=None, metadata=None):
        if self.error:
            raise self.error
        self.sent.append(
            {
                "to": to,
                "message": message,
                "media_url": media_url,
                "reply_to": reply_to,
                "metadata": metadata,
            }
        )
        return {"ok": True, "ts": "1.0"}

    async def close(self) -> None:
        self.closed = True


class FakePollSender(FakeSender):
    def __init__(self) -> None:
        super().__init__(provider="telegram")
        self.polls: list[dict[str, Any]] = []

    async def send_poll(self, *, to, question, options, max_selections=1, duration_hours=None):
        self.polls.append(
            {
                "to": to,
                "question": question,
                "options": options,
                "max_selections": max_selections,
                "duration_hours": duration_hours,
            }
        )
        return {"ok": True, "poll_id": "p1"}


class FakeGatewayClient:
    instances: list["FakeGatewayClient"] = []

    def __init__(self, descriptor: GatewayDescriptor) -> None:
        self.descriptor = descriptor
        self.requests: list[tuple[str, dict[str, Any]]] = []
        FakeGatewayClient.instances.append(self)

    async def request(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        self.requests.append((method, params))
        return {"ok": True, "messageId": "gw-1"}


@pytest.fixture(autouse=True)
def _reset_gateway_instances():
    FakeGatewayClient.instances = []


def _send_request(config, **overrides) -> SendMessageRequest:
    fields = {"config": config, "to": "C1", "content": "hi", "provider": "slack"}
    fields.update(overrides)
    return SendMessageRequest(**fields)


def _poll_request(config, **overrides) -> SendPollRequest:
    fields = {
        "config": config,
        "to": "-100",
        "question": "Lunch?",
        "options": ["Pizza", "Sushi"],
        "provider": "telegram",
    }
    fields.update(overrides)
    return SendPollRequest(**fields)


# ---------------------------------------------------------------------------
# Poll validation
# ---------------------------------------------------------------------------


class TestNormalizePollInput:
    def test_valid_input_is_trimmed(self, slack_config):
        question, options, max_selections, hours = normalize_poll_input(
            _poll_request(slack_config, question=" Q? ", options=[" a ", "", "b"])
        )
        assert question == "Q?"
        assert options == ["a", "b"]
        assert max_selections == 1
        assert hours is None

    def test_blank_question(self, slack_config):
        with pytest.raises(InvalidParameterError, match="Poll question is required"):
            normalize_poll_input(_poll_request(slack_config, question="  "))

    def test_too_few_options(self, slack_config):
        with pytest.raises(InvalidParameterError, match="at least 2 options"):
            normalize_poll_input(_poll_request(slack_config, options=["a", " "]))

    def test_too_many_options(self, slack_config):
        options = [f"o{i}" for i in range(MAX_POLL_OPTIONS + 1)]
        with pytest.raises(InvalidParameterError, match="at most 10 options"):
            normalize_poll_input(_poll_request(slack_config, options=options))

    def test_max_selections_out_of_range(self, slack_config):
        with pytest.raises(InvalidParameterError, match="maxSelections"):
            normalize_poll_input(_poll_request(slack_config, max_selections=3))

    def test_duration_must_be_positive(self, slack_config):
        with pytest.raises(InvalidParameterError, match="pollDurationHours"):
            normalize_poll_input(_poll_request(slack_config, duration_hours=0))


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_dry_run_send_transmits_nothing(slack_config):
    sender = FakeSender()
    delivery = OutboundDelivery(senders={"slack": sender})

    result = await delivery.send_message(
        _send_request(slack_config, dry_run=True, media_url="a.png")
    )

    assert result.dry_run is True
    assert result.via == "direct"
    assert result.media_url == "a.png"
    assert sender.sent == []


@pytest.mark.asyncio
async def test_direct_send_uses_provider_sender(slack_config):
    sender = FakeSender()
    delivery = OutboundDelivery(senders={"slack": sender})

    result = await delivery.send_message(
        _send_request(slack_config, reply_to="1.1", account_id="acct", gif_playback=True)
    )

    assert result.delivered is True
    assert result.result == {"ok": True, "ts": "1.0"}
    assert sender.sent == [
        {
            "to": "C1",
            "message": "hi",
            "media_url": None,
            "reply_to": "1.1",
            "metadata": {"gif_playback": True, "account_id": "acct"},
        }
    ]


@pytest.mark.asyncio
async def test_deps_override_configured_senders(slack_config):
    configured = FakeSender()
    override = FakeSender()
    delivery = OutboundDelivery(senders={"slack": configured})

    await delivery.send_message(_send_request(slack_config, deps={"slack": override}))

    assert configured.sent == []
    assert len(override.sent) == 1


@pytest.mark.asyncio
async def test_senders_built_lazily_from_config(slack_config):
    sender = FakeSender()
    built: list[Any] = []

    def factory(config):
        built.append(config)
        return {"slack": sender}

    delivery = OutboundDelivery(sender_factory=factory)
    await delivery.send_message(_send_request(slack_config))
    await delivery.send_message(_send_request(slack_config))

    assert built == [slack_config]
    assert len(sender.sent) == 2

    await delivery.close()
    assert sender.closed is True


@pytest.mark.asyncio
async def test_missing_sender_is_config_error(slack_config):
    delivery = OutboundDelivery(senders={})

    with pytest.raises(ConfigError, match="No outbound sender configured for provider slack"):
        await delivery.send_message(_send_request(slack_config))


@pytest.mark.asyncio
async def test_provider_resolved_when_absent(slack_config):
    sender = FakeSender()
    delivery = OutboundDelivery(senders={"slack": sender})

    result = await delivery.send_message(_send_request(slack_config, provider=None))

    assert result.provider == "slack"


@pytest.mark.asyncio
async def test_gateway_send(slack_config):
    delivery = OutboundDelivery(senders={}, gateway_client_factory=FakeGatewayClient)
    gateway = GatewayDescriptor(url="http://gw.local/rpc", token="secret")

    result = await delivery.send_message(
        _send_request(slack_config, gateway=gateway, media_url="a.png")
    )

    assert result.via == "gateway"
    assert result.result == {"ok": True, "messageId": "gw-1"}
    client = FakeGatewayClient.instances[0]
    assert client.descriptor is gateway
    assert client.requests == [
        (
            "send",
            {
                "provider": "slack",
                "to": "C1",
                "message": "hi",
                "mediaUrl": "a.png",
                "gifPlayback": False,
            },
        )
    ]


@pytest.mark.asyncio
async def test_gateway_without_url_goes_direct(slack_config):
    sender = FakeSender()
    delivery = OutboundDelivery(senders={"slack": sender}, gateway_client_factory=FakeGatewayClient)

    result = await delivery.send_message(
        _send_request(slack_config, gateway=GatewayDescriptor(token="t"))
    )

    assert result.via == "direct"
    assert FakeGatewayClient.instances == []


@pytest.mark.asyncio
async def test_transport_error_propagates(slack_config):
    sender = FakeSender(error=DeliveryError("slack API returned HTTP 500", provider="slack"))
    delivery = OutboundDelivery(senders={"slack": sender})

    with pytest.raises(DeliveryError):
        await delivery.send_message(_send_request(slack_config))


@pytest.mark.asyncio
async def test_best_effort_swallows_transport_error(slack_config):
    sender = FakeSender(error=aiohttp.ClientConnectionError("connection refused"))
    delivery = OutboundDelivery(senders={"slack": sender})

    result = await delivery.send_message(_send_request(slack_config, best_effort=True))

    assert result.delivered is False
    assert "connection refused" in (result.error or "")
    assert result.to_dict()["delivered"] is False


# ---------------------------------------------------------------------------
# Polls
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_direct_poll(slack_config):
    sender = FakePollSender()
    delivery = OutboundDelivery(senders={"telegram": sender})

    result = await delivery.send_poll(
        _poll_request(slack_config, options=["a", "b", "c"], max_selections=2, duration_hours=6)
    )

    assert result.result == {"ok": True, "poll_id": "p1"}
    assert result.max_selections == 2
    assert sender.polls[0] == {
        "to": "-100",
        "question": "Lunch?",
        "options": ["a", "b", "c"],
        "max_selections": 2,
        "duration_hours": 6,
    }


@pytest.mark.asyncio
async def test_dry_run_poll_still_validates(slack_config):
    delivery = OutboundDelivery(senders={})

    with pytest.raises(InvalidParameterError):
        await delivery.send_poll(_poll_request(slack_config, options=["a"], dry_run=True))

    result = await delivery.send_poll(_poll_request(slack_config, dry_run=True))
    assert result.dry_run is True
    assert result.to_dict()["options"] == ["Pizza", "Sushi"]


@pytest.mark.asyncio
async def test_poll_unsupported_by_sender(slack_config):
    delivery = OutboundDelivery(senders={"slack": FakeSender()})

    with pytest.raises(UnsupportedActionError, match="Polls are not supported for provider slack"):
        await delivery.send_poll(_poll_request(slack_config, provider="slack"))


@pytest.mark.asyncio
async def test_gateway_poll(slack_config):
    delivery = OutboundDelivery(senders={}, gateway_client_factory=FakeGatewayClient)

    await delivery.send_poll(
        _poll_request(slack_config, gateway=GatewayDescriptor(url="http://gw"), account_id="a1")
    )

    method, params = FakeGatewayClient.instances[0].requests[0]
    assert method == "poll"
    assert params == {
        "provider": "telegram",
        "to": "-100",
        "question": "Lunch?",
        "options": ["Pizza", "Sushi"],
        "maxSelections": 1,
        "accountId": "a1",
    }
