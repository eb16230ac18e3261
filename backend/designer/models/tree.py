"""
Pydantic models for the editing document tree.

This is the node/mark tree the rich-text editing surface works on: a root
``doc`` holding block nodes, each block carrying a stable ``id`` and a bag of
style attributes, text-bearing blocks holding inline nodes with marks.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class BlockType(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    IMAGE_BLOCK = "imageBlock"
    BUTTON = "button"
    DIVIDER = "divider"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "listItem"
    CUSTOM_CODE = "customCode"
    COLUMN = "column"
    COLUMN_ROW = "columnRow"
    COLUMN_CELL = "columnCell"
    BUTTON_ROW = "buttonRow"


class InlineNodeType(str, Enum):
    TEXT = "text"
    VARIABLE = "variable"
    HARD_BREAK = "hardBreak"
    IMAGE = "inlineImage"


class TreeMark(BaseModel):
    """Inline formatting mark (bold, link with href, ...)."""

    type: str
    attrs: Optional[Dict[str, Any]] = None


class TreeNode(BaseModel):
    """A block or inline node. Inline text nodes carry ``text`` and ``marks``."""

    type: str
    attrs: Optional[Dict[str, Any]] = None
    content: Optional[List["TreeNode"]] = None
    marks: Optional[List[TreeMark]] = None
    text: Optional[str] = None


TreeNode.model_rebuild()


class TreeDoc(BaseModel):
    """Root of the editing document tree."""

    type: Literal["doc"] = "doc"
    content: List[TreeNode] = Field(default_factory=list)
