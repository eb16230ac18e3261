"""
Conversion API endpoints.

Stateless wrappers over the codec: the caller sends the whole document
and gets the converted form back. Nothing is persisted.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from designer.config import DEFAULT_CHANNEL
from designer.models.api import (
    ToElementalRequest,
    ToElementalResponse,
    ToMarkdownRequest,
    ToMarkdownResponse,
    ToTreeRequest,
    ToTreeResponse,
)
from designer.models.elemental import ChannelType
from designer.services.channel_codec import channel_to_editing_tree, save_editing_tree
from designer.services.channel_update import find_channel
from designer.services.diagnostics import Diagnostics
from designer.services.markdown import tree_to_markdown

router = APIRouter()

logger = logging.getLogger(__name__)


def resolve_channel(name: Optional[str]) -> ChannelType:
    """Map a channel name to ChannelType; unknown names are a 400."""
    try:
        return ChannelType(name or DEFAULT_CHANNEL)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown channel: {name}")


@router.post("/to-tree", response_model=ToTreeResponse, response_model_exclude_none=True)
async def convert_to_tree(request: ToTreeRequest):
    """
    Load one channel of an Elemental document as an editing tree.

    Returns the tree, the title state (pass it back to /to-elemental so the
    title is saved where it was found) and any conversion diagnostics.
    """
    channel = resolve_channel(request.channel)
    diagnostics = Diagnostics()
    doc, title = channel_to_editing_tree(request.content, channel, diagnostics=diagnostics)

    if len(diagnostics):
        logger.info("to-tree for %s produced %d diagnostics", channel.value, len(diagnostics))

    return ToTreeResponse(
        channel=channel.value,
        doc=doc,
        title=title,
        diagnostics=diagnostics.items,
    )


@router.post("/to-elemental", response_model=ToElementalResponse)
async def convert_to_elemental(request: ToElementalRequest):
    """
    Save an editing tree back into the Elemental document.

    Only the requested channel is replaced; every other channel comes back
    unchanged.
    """
    channel = resolve_channel(request.channel)
    diagnostics = Diagnostics()
    content = save_editing_tree(
        request.content,
        channel,
        request.doc,
        title=request.title,
        title_state=request.title_state,
        diagnostics=diagnostics,
    )
    node = find_channel(content, channel.value) or {}

    return ToElementalResponse(
        channel=channel.value,
        content=content,
        elements=node.get("elements", []),
        diagnostics=diagnostics.items,
    )


@router.post("/to-markdown", response_model=ToMarkdownResponse)
async def convert_to_markdown(request: ToMarkdownRequest):
    """Export an editing tree as plain markdown."""
    return ToMarkdownResponse(markdown=tree_to_markdown(request.doc))
