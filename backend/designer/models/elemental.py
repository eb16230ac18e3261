"""
Pydantic models for Elemental content.

Elemental is the canonical, channel-scoped document format that gets
persisted and handed to the renderer. The envelope (document, channel node,
patch) is modelled strictly; individual content nodes stay plain dicts so
the codec can tolerate forward-incompatible node types instead of rejecting
the whole document.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from designer.config import ELEMENTAL_VERSION


class ChannelType(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    INBOX = "inbox"
    SLACK = "slack"
    MSTEAMS = "msteams"


class ElementalChannel(BaseModel):
    """A single channel entry inside ElementalContent.elements."""

    model_config = ConfigDict(extra="allow")

    type: Literal["channel"] = "channel"
    channel: str
    elements: List[Dict[str, Any]] = Field(default_factory=list)
    # Free-form side-channel record (subject, title, text, html, transformers...)
    raw: Optional[Dict[str, Any]] = None


class ElementalContent(BaseModel):
    """
    Full multi-channel Elemental document.

    Top-level elements are normally channel nodes; anything else is passed
    through untouched by the patch/merge helpers.
    """

    model_config = ConfigDict(extra="allow")

    version: Literal["2022-01-01"] = ELEMENTAL_VERSION
    elements: List[Dict[str, Any]] = Field(default_factory=list)


class ChannelPatch(BaseModel):
    """
    New content for one channel.

    ``elements=None`` keeps the channel's current elements and ``raw=None``
    keeps its current raw record, so a title-only or body-only update never
    clobbers the other half.
    """

    channel: ChannelType
    elements: Optional[List[Dict[str, Any]]] = None
    raw: Optional[Dict[str, Any]] = None


class DiagnosticCode(str, Enum):
    UNKNOWN_NODE_TYPE = "unknown_node_type"
    UNKNOWN_INLINE_TYPE = "unknown_inline_type"
    UNKNOWN_BLOCK_TYPE = "unknown_block_type"
    UNKNOWN_MARK = "unknown_mark"
    INVALID_ATTRIBUTE = "invalid_attribute"
    MISSING_ATTRIBUTE = "missing_attribute"
    MISPLACED_NODE = "misplaced_node"
    AMBIGUOUS_TITLE = "ambiguous_title"


class Diagnostic(BaseModel):
    """Structured, non-fatal problem found while converting content."""

    code: DiagnosticCode
    message: str
    path: str = ""
    node_type: Optional[str] = None
    attribute: Optional[str] = None
