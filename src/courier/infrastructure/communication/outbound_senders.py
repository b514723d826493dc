"""Outbound sender adapters implementing OutboundSenderProtocol.

Each sender knows how to deliver a message to a specific provider's API.
Senders manage their own HTTP sessions.
"""

from __future__ import annotations

from typing import Any

import aiohttp
import structlog

from courier.core.domain.errors import DeliveryError

_MEDIA_ANIMATION_SUFFIXES = (".gif", ".mp4")


class _AiohttpSender:
    """Shared lazy ``aiohttp.ClientSession`` handling."""

    def __init__(self, timeout_seconds: float = 10) -> None:
        self._session: aiohttp.ClientSession | None = None
        self._timeout_seconds = timeout_seconds
        self._logger = structlog.get_logger()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def _post_json(
        self,
        provider: str,
        url: str,
        payload: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        session = await self._get_session()
        try:
            async with session.post(url, json=payload, headers=headers) as response:
                if response.status >= 400:
                    body = await response.text()
                    self._logger.error(
                        f"{provider}.send_failed",
                        status=response.status,
                        response=body[:500],
                    )
                    raise DeliveryError(
                        f"{provider} API returned HTTP {response.status}",
                        provider=provider,
                        status_code=response.status,
                    )
                data = await response.json(content_type=None)
        except (TimeoutError, aiohttp.ClientError) as exc:
            self._logger.error(f"{provider}.send_error", error=str(exc))
            raise DeliveryError(f"{provider} API unreachable: {exc}", provider=provider) from exc
        return data if isinstance(data, dict) else {"result": data}


class TelegramOutboundSender(_AiohttpSender):
    """Send messages and polls via the Telegram Bot API."""

    def __init__(self, token: str, api_base: str | None = None) -> None:
        super().__init__()
        self._base_url = f"{(api_base or 'https://api.telegram.org').rstrip('/')}/bot{token}"

    @property
    def provider(self) -> str:
        return "telegram"

    async def send(
        self,
        *,
        to: str,
        message: str,
        media_url: str | None = None,
        reply_to: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a text message, or a photo/animation with caption.

        Args:
            to: Telegram chat_id or @channelusername.
            message: Text body (caption when media is attached).
            media_url: Optional media URL.
            reply_to: Optional message id to reply to.
            metadata: Optional keys: parse_mode, gif_playback.
        """
        metadata = metadata or {}
        payload: dict[str, Any] = {"chat_id": to}
        if media_url:
            as_animation = bool(metadata.get("gif_playback")) or media_url.lower().endswith(
                _MEDIA_ANIMATION_SUFFIXES
            )
            method = "sendAnimation" if as_animation else "sendPhoto"
            payload["animation" if as_animation else "photo"] = media_url
            if message:
                payload["caption"] = message
        else:
            method = "sendMessage"
            payload["text"] = message
        if reply_to:
            payload["reply_to_message_id"] = reply_to
        if "parse_mode" in metadata:
            payload["parse_mode"] = metadata["parse_mode"]

        data = await self._post_json("telegram", f"{self._base_url}/{method}", payload)
        self._check_ok(data)
        return data

    async def send_poll(
        self,
        *,
        to: str,
        question: str,
        options: list[str],
        max_selections: int = 1,
        duration_hours: int | None = None,
    ) -> dict[str, Any]:
        """Create a native Telegram poll.

        Telegram only distinguishes single- and multiple-answer polls and
        caps ``open_period`` at 600 seconds, so long durations are dropped.
        """
        payload: dict[str, Any] = {
            "chat_id": to,
            "question": question,
            "options": options,
            "allows_multiple_answers": max_selections > 1,
        }
        if duration_hours is not None and duration_hours * 3600 <= 600:
            payload["open_period"] = duration_hours * 3600
        data = await self._post_json("telegram", f"{self._base_url}/sendPoll", payload)
        self._check_ok(data)
        return data

    @staticmethod
    def _check_ok(data: dict[str, Any]) -> None:
        if data.get("ok") is False:
            raise DeliveryError(
                f"telegram API error: {data.get('description', 'unknown error')}",
                provider="telegram",
                details={"response": data},
            )


class SlackOutboundSender(_AiohttpSender):
    """Send messages via the Slack Web API ``chat.postMessage``."""

    def __init__(self, bot_token: str, api_base: str | None = None) -> None:
        super().__init__()
        self._token = bot_token
        self._base_url = (api_base or "https://slack.com/api").rstrip("/")

    @property
    def provider(self) -> str:
        return "slack"

    async def send(
        self,
        *,
        to: str,
        message: str,
        media_url: str | None = None,
        reply_to: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Post a message to a channel or user.

        Args:
            to: Channel id, ``channel:<id>``, ``#<id>`` or ``user:<id>``.
            message: Message text (mrkdwn).
            media_url: Appended as a link; Slack unfurls it.
            reply_to: Thread timestamp to reply in.
            metadata: Optional keys: blocks.
        """
        text = message
        if media_url:
            text = f"{message}\n{media_url}" if message else media_url
        payload: dict[str, Any] = {"channel": _slack_channel(to), "text": text}
        if reply_to:
            payload["thread_ts"] = reply_to
        if metadata and metadata.get("blocks"):
            payload["blocks"] = metadata["blocks"]

        data = await self._post_json(
            "slack",
            f"{self._base_url}/chat.postMessage",
            payload,
            headers={"Authorization": f"Bearer {self._token}"},
        )
        if not data.get("ok", False):
            raise DeliveryError(
                f"slack API error: {data.get('error', 'unknown error')}",
                provider="slack",
                details={"response": data},
            )
        return data


def _slack_channel(target: str) -> str:
    value = target.strip()
    for prefix in ("channel:", "user:"):
        if value.lower().startswith(prefix):
            return value[len(prefix):].strip()
    return value.lstrip("#@")
