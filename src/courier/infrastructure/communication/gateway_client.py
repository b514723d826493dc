"""HTTP client for delivering messages through a remote Courier gateway.

The gateway accepts JSON requests of the form
``{"method": "send" | "poll", "params": {...}, "client": {...}}`` and
answers with a JSON object describing the delivery.
"""

from __future__ import annotations

from typing import Any

import aiohttp
import structlog

from courier.core.domain.actions import GatewayDescriptor
from courier.core.domain.errors import DeliveryError

DEFAULT_GATEWAY_TIMEOUT_MS = 10_000


class GatewayClient:
    """Send gateway requests described by a GatewayDescriptor.

    A session is opened per request; gateway calls are infrequent and the
    descriptor (and thus URL, token and timeout) may differ per call.
    """

    def __init__(self, descriptor: GatewayDescriptor) -> None:
        if not descriptor.url:
            raise ValueError("GatewayClient requires a descriptor with a url")
        self._descriptor = descriptor
        self._logger = structlog.get_logger(__name__)

    @property
    def url(self) -> str:
        return self._descriptor.url or ""

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._descriptor.token:
            headers["Authorization"] = f"Bearer {self._descriptor.token}"
        return headers

    def _client_info(self) -> dict[str, Any]:
        info: dict[str, Any] = {
            "name": self._descriptor.client_name,
            "mode": self._descriptor.mode,
        }
        if self._descriptor.client_display_name:
            info["displayName"] = self._descriptor.client_display_name
        return info

    async def request(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        """POST one gateway request and return the decoded response.

        Raises:
            DeliveryError: On HTTP errors, unreachable gateway or timeout.
        """
        timeout_ms = self._descriptor.timeout_ms or DEFAULT_GATEWAY_TIMEOUT_MS
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        body = {"method": method, "params": params, "client": self._client_info()}

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, json=body, headers=self._headers()) as response:
                    if response.status >= 400:
                        text = await response.text()
                        self._logger.error(
                            "gateway.request_failed",
                            method=method,
                            status=response.status,
                            response=text[:500],
                        )
                        raise DeliveryError(
                            f"Gateway {method} failed with HTTP {response.status}",
                            status_code=response.status,
                            details={"response": text[:500]},
                        )
                    data = await response.json(content_type=None)
        except (TimeoutError, aiohttp.ClientError) as exc:
            self._logger.error("gateway.request_error", method=method, error=str(exc))
            raise DeliveryError(f"Gateway {method} failed: {exc}") from exc

        return data if isinstance(data, dict) else {"result": data}
