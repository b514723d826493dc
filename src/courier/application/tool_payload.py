"""Payload extraction from provider plugin tool results."""

from __future__ import annotations

import json
from typing import Any


def _field(result: Any, name: str) -> Any:
    if isinstance(result, dict):
        return result.get(name)
    return getattr(result, name, None)


def extract_tool_payload(result: Any) -> Any:
    """Return the most useful payload carried by a plugin result.

    Preference order: ``details``; the first text content block, parsed as
    JSON when possible and returned verbatim otherwise; ``content``; the
    result itself. Works for PluginToolResult instances and dict-shaped
    results alike and never raises on malformed JSON.
    """
    details = _field(result, "details")
    if details is not None:
        return details

    content = _field(result, "content")
    text: str | None = None
    if isinstance(content, list):
        for block in content:
            if (
                isinstance(block, dict)
                and block.get("type") == "text"
                and isinstance(block.get("text"), str)
            ):
                text = block["text"]
                break

    if text:
        try:
            return json.loads(text)
        except ValueError:
            return text

    return content if content is not None else result
