"""
Channel API endpoints: starter content, channel listing and removal.
"""

import logging

from fastapi import APIRouter

from designer.models.api import (
    ChannelDefaultsResponse,
    ChannelListResponse,
    ContentRequest,
    ContentResponse,
)
from designer.routers.convert import resolve_channel
from designer.services.channel_defaults import default_elements, default_raw
from designer.services.channel_update import list_channels, remove_channel

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/{channel}/defaults", response_model=ChannelDefaultsResponse)
async def get_channel_defaults(channel: str):
    """Starter content for a channel that does not exist yet."""
    channel_type = resolve_channel(channel)
    return ChannelDefaultsResponse(
        channel=channel_type.value,
        elements=default_elements(channel_type),
        raw=default_raw(channel_type),
    )


@router.post("/list", response_model=ChannelListResponse)
async def get_channel_list(request: ContentRequest):
    """Channel names present in a document, in order."""
    return ChannelListResponse(channels=list_channels(request.content))


@router.post("/{channel}/remove", response_model=ContentResponse)
async def remove_channel_from_content(channel: str, request: ContentRequest):
    """
    Remove one channel from a document.

    Picking the next active channel is left to the client.
    """
    channel_type = resolve_channel(channel)
    content = remove_channel(request.content, channel_type.value)
    logger.info("Removed channel %s", channel_type.value)
    return ContentResponse(content=content)
