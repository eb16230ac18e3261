"""
Channel-scoped patching of multi-channel Elemental documents.

A document holds one ``channel`` node per delivery channel. Saving one
channel must leave every other channel exactly as it was, so the helpers
here copy the envelope and reuse untouched channel dicts by identity.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from designer.config import ELEMENTAL_VERSION
from designer.models.elemental import ChannelPatch, ElementalContent

logger = logging.getLogger(__name__)

ContentLike = Union[ElementalContent, Dict[str, Any], None]

RAW_TITLE_KEYS = ("subject", "title")


def _as_dict(content: ContentLike) -> Optional[Dict[str, Any]]:
    if content is None:
        return None
    if isinstance(content, ElementalContent):
        return content.model_dump()
    return content


def _is_channel(node: Any, channel: Optional[str] = None) -> bool:
    if not isinstance(node, dict) or node.get("type") != "channel":
        return False
    return channel is None or node.get("channel") == channel


def _is_meta(node: Any) -> bool:
    return isinstance(node, dict) and node.get("type") == "meta"


def find_channel(content: ContentLike, channel: str) -> Optional[Dict[str, Any]]:
    """Return the first channel node named ``channel``, or None."""
    content = _as_dict(content)
    if not content:
        return None
    channel = getattr(channel, "value", channel)
    for node in content.get("elements") or []:
        if _is_channel(node, channel):
            return node
    return None


def list_channels(content: ContentLike) -> List[str]:
    """Channel names in document order."""
    content = _as_dict(content)
    if not content:
        return []
    return [node.get("channel") for node in content.get("elements") or [] if _is_channel(node)]


def _merge_elements(
    patch_elements: List[Dict[str, Any]],
    existing_elements: List[Any],
    keep_existing_meta: bool,
) -> List[Dict[str, Any]]:
    """Keep at most one meta node: the patch's first, else the channel's existing one."""
    metas = [node for node in patch_elements if _is_meta(node)]
    body = [node for node in patch_elements if not _is_meta(node)]
    if not metas and keep_existing_meta:
        metas = [node for node in existing_elements or [] if _is_meta(node)]
    if len(metas) > 1:
        logger.warning("Channel update carried %d meta nodes, keeping the first", len(metas))
    return metas[:1] + body


def _patched_channel(existing: Dict[str, Any], patch: ChannelPatch) -> Dict[str, Any]:
    updated = dict(existing)
    # A title moved into raw must not be shadowed by a leftover meta node
    raw_holds_title = patch.raw is not None and any(k in patch.raw for k in RAW_TITLE_KEYS)
    if patch.elements is not None:
        updated["elements"] = _merge_elements(
            patch.elements, existing.get("elements"), keep_existing_meta=not raw_holds_title
        )
    if patch.raw is not None:
        updated["raw"] = patch.raw
    return updated


def _new_channel(patch: ChannelPatch) -> Dict[str, Any]:
    node: Dict[str, Any] = {"type": "channel", "channel": patch.channel.value}
    if patch.elements is not None:
        node["elements"] = _merge_elements(patch.elements, [], keep_existing_meta=False)
    if patch.raw is not None:
        node["raw"] = patch.raw
    return node


def apply_channel_update(
    content: ContentLike,
    patch: Union[ChannelPatch, Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Replace or insert one channel's content inside a full Elemental document.

    Args:
        content: The current document, or None to start a new one.
        patch: ChannelPatch (or its dict form). ``elements=None`` keeps the
            channel's elements and ``raw=None`` keeps its raw record.

    Returns:
        A new document dict. Channel nodes other than the patched one are
        the very same objects as in ``content``; top-level non-channel nodes
        pass through except stray ``meta`` nodes, which are dropped.

    Example:
        >>> apply_channel_update(None, {"channel": "email",
        ...     "elements": [{"type": "text", "content": "Hi"}]})
        {'version': '2022-01-01', 'elements': [{'type': 'channel',
            'channel': 'email', 'elements': [{'type': 'text', 'content': 'Hi'}]}]}
    """
    if not isinstance(patch, ChannelPatch):
        patch = ChannelPatch.model_validate(patch)
    content = _as_dict(content)

    if content is None:
        result: Dict[str, Any] = {"version": ELEMENTAL_VERSION}
        existing_nodes: List[Any] = []
    else:
        result = {key: value for key, value in content.items() if key != "elements"}
        result.setdefault("version", ELEMENTAL_VERSION)
        existing_nodes = content.get("elements") or []

    elements: List[Any] = []
    updated = False
    for node in existing_nodes:
        if _is_meta(node):
            logger.info("Dropping top-level meta node outside of any channel")
            continue
        if not updated and _is_channel(node, patch.channel.value):
            elements.append(_patched_channel(node, patch))
            updated = True
        else:
            elements.append(node)

    if not updated:
        elements.append(_new_channel(patch))
        logger.info("Added channel %s to document", patch.channel.value)

    result["elements"] = elements
    return result


def remove_channel(content: ContentLike, channel: str) -> Optional[Dict[str, Any]]:
    """Return a copy of ``content`` without the named channel."""
    content = _as_dict(content)
    if content is None:
        return None
    channel = getattr(channel, "value", channel)
    result = dict(content)
    result["elements"] = [
        node for node in content.get("elements") or [] if not _is_channel(node, channel)
    ]
    return result
