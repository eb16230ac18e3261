"""
Channel-level load/save built from the codec, title and patch services.

    load: full document + channel -> (editing tree, title state)
    save: full document + channel + editing tree + title -> full document
"""

import logging
from typing import Any, Dict, Optional, Tuple, Union

from designer.models.elemental import ChannelPatch, ChannelType
from designer.models.title import TitleLocation, TitleState
from designer.models.tree import TreeDoc
from designer.services.channel_defaults import default_channel_node
from designer.services.channel_update import ContentLike, apply_channel_update, find_channel
from designer.services.diagnostics import Diagnostics
from designer.services.title import read_title, write_title
from designer.services.to_elemental import to_elemental
from designer.services.to_tree import IdFactory, to_editing_tree

logger = logging.getLogger(__name__)

EMPTY_CHANNEL_ELEMENTS = [{"type": "text", "content": "\n"}]


def _channel_node(content: ContentLike, channel: ChannelType) -> Dict[str, Any]:
    """The stored channel node, or the starter node when the channel does not exist."""
    node = find_channel(content, channel.value)
    if node is None:
        logger.info("Channel %s not in document, using starter content", channel.value)
        return default_channel_node(channel)
    return node


def channel_to_editing_tree(
    content: ContentLike,
    channel: Union[ChannelType, str],
    diagnostics: Optional[Diagnostics] = None,
    id_factory: Optional[IdFactory] = None,
) -> Tuple[TreeDoc, TitleState]:
    """
    Load one channel of a document into the editor.

    A missing channel loads its starter content; a channel whose elements are
    empty loads a single empty paragraph.

    Raises:
        ValueError: If ``channel`` is not a known channel name.
    """
    channel = ChannelType(channel)
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    node = _channel_node(content, channel)

    elements = node.get("elements") or EMPTY_CHANNEL_ELEMENTS
    doc = to_editing_tree(
        elements,
        diagnostics=diagnostics,
        id_factory=id_factory,
        pair_buttons=channel == ChannelType.INBOX,
    )
    return doc, read_title(node, diagnostics)


def build_channel_patch(
    doc: Union[TreeDoc, Dict[str, Any]],
    channel: Union[ChannelType, str],
    title_state: Optional[TitleState] = None,
    title: Optional[str] = None,
    existing_raw: Optional[Dict[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> ChannelPatch:
    """
    Convert an editing tree plus title into a ChannelPatch.

    The patch carries a raw record only when the title lives in raw; otherwise
    ``raw`` stays None so the channel's existing raw record is kept as is.
    """
    state = title_state or TitleState()
    elements = to_elemental(doc, diagnostics=diagnostics)
    elements, raw = write_title(elements, existing_raw, state, title)
    return ChannelPatch(
        channel=ChannelType(channel),
        elements=elements,
        raw=raw if state.location == TitleLocation.RAW else None,
    )


def save_editing_tree(
    content: ContentLike,
    channel: Union[ChannelType, str],
    doc: Union[TreeDoc, Dict[str, Any]],
    title: Optional[str] = None,
    title_state: Optional[TitleState] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Dict[str, Any]:
    """
    Write an edited channel back into a full document.

    Args:
        content: Current document (None for a new one).
        channel: Channel being saved.
        doc: The editor's tree.
        title: New title value; None keeps the stored one.
        title_state: Title state captured when the channel was loaded. When
            omitted it is read again from ``content``.
        diagnostics: Collector for non-fatal problems.

    Returns:
        The updated document. Other channels are untouched.
    """
    channel = ChannelType(channel)
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    node = _channel_node(content, channel)
    state = title_state or read_title(node, diagnostics)

    patch = build_channel_patch(
        doc,
        channel,
        title_state=state,
        title=title,
        existing_raw=node.get("raw"),
        diagnostics=diagnostics,
    )
    if find_channel(content, channel.value) is None and patch.raw is None:
        # New channel: carry the starter raw record along with the body
        patch.raw = node.get("raw")
    return apply_channel_update(content, patch)
