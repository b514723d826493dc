"""Tests for cross-context isolation."""

import pytest
from structlog.testing import capture_logs

from courier.application.context_guard import (
    CONTEXT_GUARDED_ACTIONS,
    enforce_context_isolation,
    resolve_context_guard_target,
)
from courier.core.domain.actions import ToolContext
from courier.core.domain.errors import CrossContextDeniedError


def test_guarded_actions():
    assert CONTEXT_GUARDED_ACTIONS == {"send", "poll", "thread-create", "thread-reply", "sticker"}


class TestResolveContextGuardTarget:
    def test_send_prefers_to(self):
        assert resolve_context_guard_target("send", {"to": "A", "channelId": "B"}) == "A"

    def test_send_falls_back_to_channel_id(self):
        assert resolve_context_guard_target("send", {"channelId": "B"}) == "B"

    def test_thread_actions_prefer_channel_id(self):
        params = {"to": "A", "channelId": "B"}
        assert resolve_context_guard_target("thread-reply", params) == "B"
        assert resolve_context_guard_target("thread-create", params) == "B"

    def test_thread_actions_fall_back_to_to(self):
        assert resolve_context_guard_target("thread-create", {"to": "A"}) == "A"

    def test_unguarded_action_has_no_target(self):
        assert resolve_context_guard_target("react", {"to": "A"}) is None


class TestEnforceContextIsolation:
    def _enforce(self, params, current="C123", provider="slack", action="send", **kwargs):
        enforce_context_isolation(
            provider=provider,
            action=action,
            params=params,
            tool_context=ToolContext(current_channel_id=current),
            **kwargs,
        )

    def test_equivalent_spellings_pass(self):
        self._enforce({"to": "<#C123|general>"})
        self._enforce({"to": "channel:c123"})

    def test_mismatch_raises(self):
        with pytest.raises(CrossContextDeniedError) as exc_info:
            self._enforce({"to": "C999"}, action="sticker")
        assert exc_info.value.action == "sticker"
        assert exc_info.value.target == "C999"
        assert exc_info.value.current == "C123"

    def test_missing_target_passes(self):
        self._enforce({"message": "hi"})

    def test_no_tool_context_passes(self):
        enforce_context_isolation(
            provider="slack", action="send", params={"to": "C999"}, tool_context=None
        )

    def test_unknown_provider_compares_lowercase(self):
        self._enforce({"to": "Room-1"}, current="room-1", provider="matrix")
        with pytest.raises(CrossContextDeniedError):
            self._enforce({"to": "Room-2"}, current="room-1", provider="matrix")

    def test_telegram_usernames(self):
        self._enforce({"to": "@MyChannel"}, current="telegram:@mychannel", provider="telegram")

    def test_unresolvable_target_fails_open_and_logs(self):
        with capture_logs() as logs:
            self._enforce({"to": "anything"}, normalize_target=lambda provider, raw: "")
        assert logs[0]["event"] == "context_guard.unresolved"
        assert logs[0]["log_level"] == "warning"
