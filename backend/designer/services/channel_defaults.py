"""
Starter content for each delivery channel.

Pure lookups: every call returns a fresh deep copy of the same fixed
sequence, so callers may mutate the result freely.
"""

import copy
from typing import Any, Dict, List, Optional, Union

from designer.models.elemental import ChannelType

_EMPTY_TEXT = {"type": "text", "content": "\n"}

_DEFAULT_ELEMENTS: Dict[ChannelType, List[Dict[str, Any]]] = {
    ChannelType.EMAIL: [
        {"type": "text", "content": "\n", "text_style": "h1", "align": "left"},
        {"type": "text", "content": "", "align": "left"},
        {"type": "image", "src": ""},
    ],
    ChannelType.SMS: [_EMPTY_TEXT],
    ChannelType.PUSH: [_EMPTY_TEXT],
    ChannelType.INBOX: [
        {"type": "text", "content": "\n", "text_style": "h2"},
        {"type": "text", "content": "\n"},
        {"type": "action", "content": "Register", "href": "", "align": "left"},
    ],
    ChannelType.SLACK: [_EMPTY_TEXT],
    ChannelType.MSTEAMS: [_EMPTY_TEXT],
}

_DEFAULT_RAW: Dict[ChannelType, Optional[Dict[str, Any]]] = {
    ChannelType.EMAIL: None,
    ChannelType.SMS: None,
    ChannelType.PUSH: {"title": "", "text": ""},
    ChannelType.INBOX: None,
    ChannelType.SLACK: None,
    ChannelType.MSTEAMS: None,
}

for _table in (_DEFAULT_ELEMENTS, _DEFAULT_RAW):
    _missing = set(ChannelType) - set(_table)
    if _missing:
        raise RuntimeError(f"Channel defaults missing for: {sorted(c.value for c in _missing)}")


def default_elements(channel: Union[ChannelType, str]) -> List[Dict[str, Any]]:
    """
    Starter content nodes for a channel.

    Raises:
        ValueError: If ``channel`` is not a known channel name.
    """
    return copy.deepcopy(_DEFAULT_ELEMENTS[ChannelType(channel)])


def default_raw(channel: Union[ChannelType, str]) -> Optional[Dict[str, Any]]:
    return copy.deepcopy(_DEFAULT_RAW[ChannelType(channel)])


def default_channel_node(channel: Union[ChannelType, str]) -> Dict[str, Any]:
    """A complete ``channel`` node holding the starter content."""
    channel_type = ChannelType(channel)
    node: Dict[str, Any] = {
        "type": "channel",
        "channel": channel_type.value,
        "elements": default_elements(channel_type),
    }
    raw = default_raw(channel_type)
    if raw is not None:
        node["raw"] = raw
    return node
