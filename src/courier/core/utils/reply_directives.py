"""Reply directive parsing for outgoing message text.

Agents embed delivery hints in the text they want to send. These are
stripped before delivery and surfaced as structured fields.

Supported directives:
  [[reply_to_current]]       reply to the triggering message
  [[reply_to:<message_id>]]  reply to a specific message
  MEDIA: <url-or-path>       attach media (one directive per line)
"""

from __future__ import annotations

import re

from courier.core.domain.outbound import ReplyDirectives

_REPLY_CURRENT_RE = re.compile(r"\[\[\s*reply_to_current\s*\]\]", re.IGNORECASE)
_REPLY_TO_RE = re.compile(r"\[\[\s*reply_to\s*:\s*([^\]\s]+)\s*\]\]", re.IGNORECASE)
_MEDIA_LINE_RE = re.compile(r"^[ \t]*MEDIA:[ \t]*(\S.*?)[ \t]*$", re.MULTILINE)
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def parse_reply_directives(text: str) -> ReplyDirectives:
    """Extract reply and media directives from ``text``.

    Args:
        text: Raw message text, possibly containing directives.

    Returns:
        ReplyDirectives with cleaned text. When several ``reply_to`` tags
        are present the last one wins; all are removed from the text.
    """
    if not text:
        return ReplyDirectives(text="")

    reply_to_current = bool(_REPLY_CURRENT_RE.search(text))
    text = _REPLY_CURRENT_RE.sub("", text)

    reply_ids = _REPLY_TO_RE.findall(text)
    text = _REPLY_TO_RE.sub("", text)

    media_urls = [match.strip() for match in _MEDIA_LINE_RE.findall(text)]
    text = _MEDIA_LINE_RE.sub("", text)

    text = _EXCESS_NEWLINES_RE.sub("\n\n", text).strip()

    return ReplyDirectives(
        text=text,
        reply_to_id=reply_ids[-1] if reply_ids else None,
        reply_to_current=reply_to_current,
        media_url=media_urls[0] if media_urls else None,
        media_urls=media_urls,
    )
