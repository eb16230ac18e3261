"""
Title/subject normalizer.

A channel's title lives in one of two places, depending on which producer
wrote the content:

  structured  a ``meta`` node inside the channel's elements
  raw         ``raw.subject`` (or ``raw.title``) on the channel node

The value is always written back to the place it was read from. When a
channel has both, the meta node wins and the raw value is left untouched.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from designer.models.elemental import DiagnosticCode
from designer.models.title import TitleLocation, TitleState
from designer.services.channel_update import RAW_TITLE_KEYS, ContentLike, find_channel
from designer.services.diagnostics import Diagnostics

logger = logging.getLogger(__name__)


def _raw_title_key(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict):
        return None
    return next((key for key in RAW_TITLE_KEYS if isinstance(raw.get(key), str)), None)


def read_title(
    channel_node: Optional[Dict[str, Any]],
    diagnostics: Optional[Diagnostics] = None,
) -> TitleState:
    """
    Work out where a channel keeps its title and what the title is.

    Args:
        channel_node: The ``channel`` node, or None for a channel that does
            not exist yet.
        diagnostics: Receives ``ambiguous_title`` when both storage forms
            are present.

    Returns:
        TitleState. With no title stored anywhere the state is structured,
        empty and ``present`` is False.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    if not channel_node:
        return TitleState()

    elements = channel_node.get("elements") or []
    metas = [node for node in elements if isinstance(node, dict) and node.get("type") == "meta"]
    raw = channel_node.get("raw")
    raw_key = _raw_title_key(raw)

    if metas:
        meta = metas[0]
        if len(metas) > 1:
            logger.warning(
                "Channel %s has %d meta nodes, using the first",
                channel_node.get("channel"),
                len(metas),
            )
        title = meta.get("title")
        if title is None:
            title = ""
        elif not isinstance(title, str):
            diagnostics.add(
                DiagnosticCode.INVALID_ATTRIBUTE,
                f"meta title must be a string, got {type(title).__name__}",
                path="meta.title",
                node_type="meta",
                attribute="title",
                logger=logger,
            )
            title = ""
        if raw_key:
            diagnostics.add(
                DiagnosticCode.AMBIGUOUS_TITLE,
                f"channel has both a meta title and raw.{raw_key}, using the meta title",
                path="raw",
                attribute=raw_key,
                logger=logger,
            )
        extras = {k: v for k, v in meta.items() if k not in ("type", "title")}
        return TitleState(
            location=TitleLocation.STRUCTURED,
            value=title,
            raw_key=raw_key or "subject",
            present=True,
            meta=extras,
        )

    if raw_key:
        return TitleState(
            location=TitleLocation.RAW,
            value=raw[raw_key],
            raw_key=raw_key,
            present=True,
        )

    return TitleState()


def write_title(
    elements: List[Dict[str, Any]],
    raw: Optional[Dict[str, Any]],
    state: TitleState,
    value: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Store ``value`` (default: the state's value) where ``state`` says it lives.

    Returns the new (elements, raw) pair. Neither input is mutated. Any meta
    nodes already in ``elements`` are replaced.

    Examples:
        structured: ([text], None) -> ([meta "New", text], None)
        raw:        ([text], {"subject": "Old"}) -> ([text], {"subject": "New"})
    """
    value = state.value if value is None else value
    body = [node for node in elements if not (isinstance(node, dict) and node.get("type") == "meta")]

    if state.location == TitleLocation.RAW:
        new_raw = dict(raw or {})
        new_raw[state.raw_key] = value
        return body, new_raw

    # Nothing was stored and nothing is being stored: do not invent a meta node
    if not state.present and not value:
        return body, raw

    meta = {"type": "meta", "title": value}
    meta.update(state.meta)
    return [meta] + body, raw


def get_title_for_channel(content: ContentLike, channel: str) -> str:
    """The current title of ``channel`` in a full Elemental document ("" if none)."""
    return read_title(find_channel(content, channel)).value
