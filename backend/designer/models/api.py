"""
Request/response models for the HTTP surface.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from designer.models.elemental import Diagnostic
from designer.models.title import TitleState
from designer.models.tree import TreeDoc


class ToTreeRequest(BaseModel):
    content: Optional[Dict[str, Any]] = None
    channel: Optional[str] = None


class ToTreeResponse(BaseModel):
    channel: str
    doc: TreeDoc
    title: TitleState
    diagnostics: List[Diagnostic] = []


class ToElementalRequest(BaseModel):
    content: Optional[Dict[str, Any]] = None
    channel: Optional[str] = None
    doc: TreeDoc
    # None keeps the stored title
    title: Optional[str] = None
    # As returned by /to-tree; read again from content when omitted
    title_state: Optional[TitleState] = None


class ToElementalResponse(BaseModel):
    channel: str
    content: Dict[str, Any]
    elements: List[Dict[str, Any]]
    diagnostics: List[Diagnostic] = []


class ToMarkdownRequest(BaseModel):
    doc: TreeDoc


class ToMarkdownResponse(BaseModel):
    markdown: str


class ChannelDefaultsResponse(BaseModel):
    channel: str
    elements: List[Dict[str, Any]]
    raw: Optional[Dict[str, Any]] = None


class ContentRequest(BaseModel):
    content: Optional[Dict[str, Any]] = None


class ContentResponse(BaseModel):
    content: Optional[Dict[str, Any]] = None


class ChannelListResponse(BaseModel):
    channels: List[str]


class VariablesResponse(BaseModel):
    variables: List[str]
