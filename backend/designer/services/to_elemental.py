"""
Editing tree -> Elemental conversion.

The inverse of to_tree: walks the editor's blocks and emits Elemental
content nodes for one channel. Block ids are editor-only and never written.
Attributes still at their schema default are omitted, and legacy forms
flagged on the way in (nested border, divider ``width``, ``quote`` nodes)
are written back in the form they were read.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from designer.models.elemental import DiagnosticCode
from designer.models.tree import BlockType, InlineNodeType, TreeDoc, TreeNode
from designer.services.diagnostics import Diagnostics, join_path
from designer.services.inline import inline_is_plain, inline_to_plain, inline_to_runs
from designer.services.markdown import inline_to_markdown
from designer.services.schema import (
    NODE_SCHEMAS,
    NodeType,
    write_attributes,
    write_common,
)

logger = logging.getLogger(__name__)

TEXT_STYLES = {1: "h1", 2: "h2", 3: "h3"}
PARAGRAPH_STYLES = ("text", "subtext")


def _attrs(block: TreeNode) -> Dict[str, Any]:
    return block.attrs or {}


def _text_style(block: TreeNode, diagnostics: Diagnostics, path: str) -> Optional[str]:
    attrs = _attrs(block)
    if block.type == BlockType.HEADING.value:
        style = TEXT_STYLES.get(attrs.get("level"))
        if style is None:
            diagnostics.add(
                DiagnosticCode.INVALID_ATTRIBUTE,
                f"heading level {attrs.get('level')!r} has no text_style, writing a paragraph",
                path=join_path(path, "attrs", "level"),
                node_type=block.type,
                attribute="level",
                logger=logger,
            )
        return style
    style = attrs.get("textStyle")
    return style if style in PARAGRAPH_STYLES else None


def _convert_text_block(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    attrs = _attrs(block)
    inline = block.content or []

    if attrs.get("standaloneVariable"):
        if len(inline) == 1 and inline[0].type == InlineNodeType.VARIABLE.value:
            name = (inline[0].attrs or {}).get("id")
            if isinstance(name, str) and name:
                node = {"type": NodeType.VARIABLE.value, "name": name}
                node.update(write_common(attrs))
                return [node]

    node: Dict[str, Any] = {"type": NodeType.TEXT.value}
    text_style = _text_style(block, diagnostics, path)
    if text_style:
        node["text_style"] = text_style

    content_path = join_path(path, "content")
    if attrs.get("format") == "markdown":
        node["content"] = inline_to_markdown(inline)
    elif attrs.get("styledRuns") or not inline_is_plain(inline):
        node["elements"] = inline_to_runs(inline, diagnostics, content_path)
    else:
        node["content"] = inline_to_plain(inline)

    node.update(write_attributes(NODE_SCHEMAS[NodeType.TEXT], attrs, diagnostics, path))
    node.update(write_common(attrs))
    return [node]


def _leaf(node_type: NodeType):
    def convert(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
        attrs = _attrs(block)
        node: Dict[str, Any] = {"type": node_type.value}
        node.update(write_attributes(NODE_SCHEMAS[node_type], attrs, diagnostics, path))
        node.update(write_common(attrs))
        return [node]

    return convert


def _convert_button(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    [node] = _leaf(NodeType.ACTION)(block, diagnostics, path)
    attrs = _attrs(block)
    alignment = attrs.get("alignment", "center")
    if attrs.get("size") == "full":
        node["align"] = "full"
    elif alignment in ("left", "right"):
        node["align"] = alignment
    elif alignment != "center":
        diagnostics.add(
            DiagnosticCode.INVALID_ATTRIBUTE,
            f"invalid button alignment {alignment!r}, using center",
            path=join_path(path, "attrs", "alignment"),
            node_type=block.type,
            attribute="alignment",
            logger=logger,
        )
    return [node]


def _convert_divider(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    attrs = dict(_attrs(block))
    if attrs.get("variant") == "spacer":
        attrs["color"] = "transparent"
    node: Dict[str, Any] = {"type": NodeType.DIVIDER.value}
    node.update(write_attributes(NODE_SCHEMAS[NodeType.DIVIDER], attrs, diagnostics, path))
    node.update(write_common(attrs))
    return [node]


def _convert_blockquote(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    attrs = _attrs(block)
    children = block.content or []

    text_blocks = (BlockType.PARAGRAPH.value, BlockType.HEADING.value)
    if attrs.get("legacyQuote") and len(children) == 1 and children[0].type in text_blocks:
        child = children[0]
        node: Dict[str, Any] = {
            "type": NodeType.QUOTE.value,
            "content": inline_to_markdown(child.content or []),
        }
        text_style = _text_style(child, diagnostics, join_path(path, "content", 0))
        if text_style:
            node["text_style"] = text_style
        node.update(write_attributes(NODE_SCHEMAS[NodeType.QUOTE], attrs, diagnostics, path))
        node.update(write_common(attrs))
        return [node]

    node = {"type": NodeType.BLOCKQUOTE.value}
    node.update(write_attributes(NODE_SCHEMAS[NodeType.BLOCKQUOTE], attrs, diagnostics, path))
    node.update(write_common(attrs))
    node["elements"] = _convert_blocks(children, diagnostics, join_path(path, "content"))
    return [node]


def _convert_list(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    attrs = _attrs(block)
    node: Dict[str, Any] = {"type": NodeType.LIST.value}
    node.update(write_attributes(NODE_SCHEMAS[NodeType.LIST], attrs, diagnostics, path))
    node.update(write_common(attrs))

    items: List[Dict[str, Any]] = []
    for i, child in enumerate(block.content or []):
        child_path = join_path(path, "content", i)
        if child.type != BlockType.LIST_ITEM.value:
            diagnostics.add(
                DiagnosticCode.MISPLACED_NODE,
                f"{child.type} block directly inside a list, dropped",
                path=child_path,
                node_type=child.type,
                logger=logger,
            )
            continue
        items.append(_convert_list_item(child, diagnostics, child_path))
    node["elements"] = items
    return [node]


def _convert_list_item(block: TreeNode, diagnostics: Diagnostics, path: str) -> Dict[str, Any]:
    attrs = _attrs(block)
    node: Dict[str, Any] = {"type": NodeType.LIST_ITEM.value}
    node.update(write_attributes(NODE_SCHEMAS[NodeType.LIST_ITEM], attrs, diagnostics, path))
    node.update(write_common(attrs))

    elements: List[Dict[str, Any]] = []
    for i, child in enumerate(block.content or []):
        child_path = join_path(path, "content", i)
        if child.type == BlockType.PARAGRAPH.value and _attrs(child).get("inlineRuns"):
            elements.extend(inline_to_runs(child.content or [], diagnostics, child_path))
        else:
            elements.extend(_convert_block(child, diagnostics, child_path))
    node["elements"] = elements
    return node


def _misplaced_list_item(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    diagnostics.add(
        DiagnosticCode.MISPLACED_NODE,
        "listItem outside of a list, dropped",
        path=path,
        node_type=block.type,
        logger=logger,
    )
    return []


def _convert_cell(cell: TreeNode, diagnostics: Diagnostics, path: str) -> Dict[str, Any]:
    children = _convert_blocks(cell.content or [], diagnostics, join_path(path, "content"))
    if len(children) == 1 and not _attrs(cell).get("groupWrapper"):
        return children[0]
    return {"type": NodeType.GROUP.value, "elements": children}


def _convert_column(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    """A column block is written as a ``group`` with one element per cell."""
    attrs = _attrs(block)
    node: Dict[str, Any] = {"type": NodeType.GROUP.value}
    node.update(write_attributes(NODE_SCHEMAS[NodeType.GROUP], attrs, diagnostics, path))
    node.update(write_common(attrs))

    elements: List[Dict[str, Any]] = []
    for i, row in enumerate(block.content or []):
        row_path = join_path(path, "content", i)
        if row.type != BlockType.COLUMN_ROW.value:
            elements.extend(_misplaced_column_part(row, diagnostics, row_path))
            continue
        for j, cell in enumerate(row.content or []):
            cell_path = join_path(row_path, "content", j)
            if cell.type != BlockType.COLUMN_CELL.value:
                elements.extend(_misplaced_column_part(cell, diagnostics, cell_path))
                continue
            elements.append(_convert_cell(cell, diagnostics, cell_path))
    node["elements"] = elements
    return [node]


def _misplaced_column_part(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    diagnostics.add(
        DiagnosticCode.MISPLACED_NODE,
        f"{block.type} block misplaced in a column layout, keeping its content",
        path=path,
        node_type=block.type,
        logger=logger,
    )
    if block.type in (BlockType.COLUMN_ROW.value, BlockType.COLUMN_CELL.value):
        return _convert_blocks(block.content or [], diagnostics, join_path(path, "content"))
    return _convert_block(block, diagnostics, path)


def _convert_button_row(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    # The row is a layout of the editor only; its buttons are stored side by side
    return _convert_blocks(block.content or [], diagnostics, join_path(path, "content"))


_CONVERTERS: Dict[BlockType, Callable[[TreeNode, Diagnostics, str], List[Dict[str, Any]]]] = {
    BlockType.PARAGRAPH: _convert_text_block,
    BlockType.HEADING: _convert_text_block,
    BlockType.IMAGE_BLOCK: _leaf(NodeType.IMAGE),
    BlockType.BUTTON: _convert_button,
    BlockType.DIVIDER: _convert_divider,
    BlockType.BLOCKQUOTE: _convert_blockquote,
    BlockType.LIST: _convert_list,
    BlockType.LIST_ITEM: _misplaced_list_item,
    BlockType.CUSTOM_CODE: _leaf(NodeType.HTML),
    BlockType.COLUMN: _convert_column,
    BlockType.COLUMN_ROW: _misplaced_column_part,
    BlockType.COLUMN_CELL: _misplaced_column_part,
    BlockType.BUTTON_ROW: _convert_button_row,
}

_missing = set(BlockType) - set(_CONVERTERS)
if _missing:
    raise RuntimeError(f"No Elemental converter for: {sorted(t.value for t in _missing)}")


def _convert_block(block: TreeNode, diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    try:
        block_type = BlockType(block.type)
    except ValueError:
        if block.content:
            diagnostics.add(
                DiagnosticCode.UNKNOWN_BLOCK_TYPE,
                f"unknown block type {block.type!r}, keeping its children",
                path=path,
                node_type=block.type,
                logger=logger,
            )
            return _convert_blocks(block.content, diagnostics, join_path(path, "content"))
        diagnostics.add(
            DiagnosticCode.UNKNOWN_BLOCK_TYPE,
            f"unknown block type {block.type!r} dropped",
            path=path,
            node_type=block.type,
            logger=logger,
        )
        return []
    return _CONVERTERS[block_type](block, diagnostics, path)


def _convert_blocks(blocks: List[TreeNode], diagnostics: Diagnostics, path: str) -> List[Dict[str, Any]]:
    nodes: List[Dict[str, Any]] = []
    for i, block in enumerate(blocks):
        nodes.extend(_convert_block(block, diagnostics, join_path(path, i)))
    return nodes


def to_elemental(
    doc: TreeDoc,
    diagnostics: Optional[Diagnostics] = None,
) -> List[Dict[str, Any]]:
    """
    Convert an editing tree into one channel's Elemental content nodes.

    Args:
        doc: Editing tree (a TreeDoc or its dict form).
        diagnostics: Collector for non-fatal problems.

    Returns:
        List of Elemental content nodes, without a ``meta`` node; the title
        service adds that.

    Example:
        >>> to_elemental(TreeDoc(content=[TreeNode(type="paragraph",
        ...     content=[TreeNode(type="text", text="Hi")])]))
        [{'type': 'text', 'content': 'Hi'}]
    """
    if not isinstance(doc, TreeDoc):
        doc = TreeDoc.model_validate(doc)
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    nodes = _convert_blocks(doc.content, diagnostics, "content")
    logger.debug("Converted %d blocks into %d Elemental nodes", len(doc.content), len(nodes))
    return nodes
