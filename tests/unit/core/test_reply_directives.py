"""Tests for reply directive parsing."""

from courier.core.utils.reply_directives import parse_reply_directives


def test_plain_text_is_untouched():
    directives = parse_reply_directives("hello there")
    assert directives.text == "hello there"
    assert directives.reply_to_id is None
    assert directives.reply_to_current is False
    assert directives.media_url is None
    assert directives.media_urls == []


def test_empty_text():
    assert parse_reply_directives("").text == ""


def test_reply_to_tag_is_extracted():
    directives = parse_reply_directives("[[reply_to: 1712.55]] on it")
    assert directives.reply_to_id == "1712.55"
    assert directives.text == "on it"


def test_last_reply_to_tag_wins():
    directives = parse_reply_directives("[[reply_to:1]] a [[reply_to:2]] b")
    assert directives.reply_to_id == "2"
    assert "reply_to" not in directives.text


def test_reply_to_current():
    directives = parse_reply_directives("[[reply_to_current]] thanks")
    assert directives.reply_to_current is True
    assert directives.reply_to_id is None
    assert directives.text == "thanks"


def test_media_lines_are_extracted_in_order():
    text = "Here you go\nMEDIA: https://example.com/a.png\nMEDIA: /tmp/b.gif\n"
    directives = parse_reply_directives(text)
    assert directives.text == "Here you go"
    assert directives.media_url == "https://example.com/a.png"
    assert directives.media_urls == ["https://example.com/a.png", "/tmp/b.gif"]


def test_inline_media_word_is_not_a_directive():
    directives = parse_reply_directives("see MEDIA: in the docs")
    assert directives.media_urls == []
    assert directives.text == "see MEDIA: in the docs"


def test_excess_blank_lines_collapse():
    directives = parse_reply_directives("top\n\nMEDIA: x.png\n\n\nbottom")
    assert directives.text == "top\n\nbottom"
