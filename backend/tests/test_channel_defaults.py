"""
Tests for per-channel starter content.
"""

import pytest

from designer.models.elemental import ChannelType
from designer.services.channel_defaults import default_channel_node, default_elements, default_raw


class TestDefaultElements:
    """Starter content is fixed per channel."""

    @pytest.mark.parametrize("channel", list(ChannelType))
    def test_deterministic(self, channel):
        assert default_elements(channel) == default_elements(channel)
        assert default_elements(channel)

    def test_returns_fresh_copies(self):
        first = default_elements("email")
        first[0]["content"] = "changed"
        first.append({"type": "divider"})
        assert default_elements("email")[0]["content"] == "\n"
        assert len(default_elements("email")) == 3

    def test_email_layout(self):
        assert [(n["type"], n.get("text_style")) for n in default_elements("email")] == [
            ("text", "h1"),
            ("text", None),
            ("image", None),
        ]

    def test_inbox_has_button(self):
        assert default_elements(ChannelType.INBOX)[-1]["type"] == "action"

    def test_single_empty_line_channels(self):
        for channel in ("sms", "push", "slack", "msteams"):
            assert default_elements(channel) == [{"type": "text", "content": "\n"}]

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            default_elements("fax")


class TestDefaultRaw:
    """Only push starts with a raw record."""

    def test_push_raw(self):
        assert default_raw("push") == {"title": "", "text": ""}

    def test_others_have_none(self):
        assert default_raw("email") is None

    def test_raw_copy(self):
        default_raw("push")["title"] = "x"
        assert default_raw("push")["title"] == ""


class TestDefaultChannelNode:
    """Complete channel nodes."""

    def test_email_node(self):
        node = default_channel_node("email")
        assert node["type"] == "channel"
        assert node["channel"] == "email"
        assert "raw" not in node
        assert len(node["elements"]) == 3

    def test_push_node(self):
        assert default_channel_node(ChannelType.PUSH)["raw"] == {"title": "", "text": ""}
