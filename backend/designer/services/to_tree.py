"""
Elemental -> editing tree conversion.

Takes the content nodes of one channel and builds the editor's document
tree. Every block gets an ``id`` from the id factory; by default ids are
derived from the block's position so converting the same content twice
gives identical trees.

Conversion is total: unknown node types, malformed attributes and nodes in
the wrong place are skipped or repaired and reported through a Diagnostics
collector instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from designer.config import NODE_ID_PREFIX
from designer.models.elemental import DiagnosticCode
from designer.models.tree import BlockType, TreeDoc, TreeNode
from designer.services.diagnostics import Diagnostics, join_path
from designer.services.inline import plain_to_inline, runs_to_inline, variable_node
from designer.services.markdown import parse_inline_markdown
from designer.services.schema import (
    NODE_SCHEMAS,
    InlineType,
    NodeSchema,
    NodeType,
    read_attributes,
    read_common,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[Tuple[int, ...]], str]

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3}
PARAGRAPH_STYLES = ("text", "subtext")
INLINE_RUN_TYPES = tuple(t.value for t in InlineType)
MAX_COLUMNS = 4


def path_node_id(path: Tuple[int, ...]) -> str:
    """Deterministic id from the block's position, e.g. (0, 2) -> "node-0-2"."""
    return NODE_ID_PREFIX + "-".join(str(p) for p in path)


def random_node_id(path: Tuple[int, ...]) -> str:
    """Random id for callers that want ids to survive block reordering."""
    return f"{NODE_ID_PREFIX}{uuid4()}"


@dataclass
class _Context:
    diagnostics: Diagnostics
    id_factory: IdFactory

    def base_attrs(self, path: Tuple[int, ...]) -> Dict[str, Any]:
        return {"id": self.id_factory(path)}


# ---------------------------------------------------------------------------
# Per-type converters
# ---------------------------------------------------------------------------

def _text_inline(
    ctx: _Context, node: Dict[str, Any], attrs: Dict[str, Any], diag_path: str
) -> List[TreeNode]:
    elements = node.get("elements")
    if isinstance(elements, list):
        attrs["styledRuns"] = True
        return runs_to_inline(elements, ctx.diagnostics, join_path(diag_path, "elements"))

    content = node.get("content")
    if isinstance(content, str):
        if node.get("format") == "markdown":
            return parse_inline_markdown(content)
        return plain_to_inline(content)

    ctx.diagnostics.add(
        DiagnosticCode.MISSING_ATTRIBUTE,
        "text node has neither content nor elements, using an empty paragraph",
        path=diag_path,
        node_type="text",
        attribute="content",
        logger=logger,
    )
    return []


def _convert_text(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))

    block_type = BlockType.PARAGRAPH
    text_style = node.get("text_style")
    if text_style in HEADING_LEVELS:
        block_type = BlockType.HEADING
        attrs["level"] = HEADING_LEVELS[text_style]
    elif text_style in PARAGRAPH_STYLES:
        attrs["textStyle"] = text_style
    elif text_style is not None:
        ctx.diagnostics.add(
            DiagnosticCode.INVALID_ATTRIBUTE,
            f"unknown text_style {text_style!r}, using a paragraph",
            path=join_path(diag_path, "text_style"),
            node_type="text",
            attribute="text_style",
            logger=logger,
        )

    attrs.update(read_common(node))
    content = _text_inline(ctx, node, attrs, diag_path)
    return [TreeNode(type=block_type.value, attrs=attrs, content=content)]


def _convert_leaf(block_type: BlockType):
    def convert(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
        attrs = ctx.base_attrs(path)
        attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))
        attrs.update(read_common(node))
        return [TreeNode(type=block_type.value, attrs=attrs)]

    return convert


def _convert_action(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))

    align = node.get("align")
    attrs["alignment"], attrs["size"] = "center", "default"
    if align == "full":
        attrs["size"] = "full"
    elif align in ("left", "center", "right"):
        attrs["alignment"] = align
    elif align is not None:
        ctx.diagnostics.add(
            DiagnosticCode.INVALID_ATTRIBUTE,
            f"invalid action align {align!r}, using center",
            path=join_path(diag_path, "align"),
            node_type="action",
            attribute="align",
            logger=logger,
        )

    attrs.update(read_common(node))
    return [TreeNode(type=BlockType.BUTTON.value, attrs=attrs)]


def _convert_divider(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    [divider] = _convert_leaf(BlockType.DIVIDER)(ctx, node, schema, path, diag_path, top_level)
    divider.attrs["variant"] = "spacer" if divider.attrs.get("color") == "transparent" else "divider"
    return [divider]


def _child_list(ctx, node: Dict[str, Any], key: str, diag_path: str) -> List[Any]:
    children = node.get(key)
    if children is None:
        return []
    if not isinstance(children, list):
        ctx.diagnostics.add(
            DiagnosticCode.INVALID_ATTRIBUTE,
            f"{node.get('type')} {key} must be a list",
            path=join_path(diag_path, key),
            node_type=node.get("type"),
            attribute=key,
            logger=logger,
        )
        return []
    return children


def _convert_blockquote(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))
    attrs.update(read_common(node))
    children = _convert_nodes(
        ctx, _child_list(ctx, node, "elements", diag_path), path, join_path(diag_path, "elements")
    )
    return [TreeNode(type=BlockType.BLOCKQUOTE.value, attrs=attrs, content=children)]


def _convert_quote(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    """Legacy ``quote`` node: a markdown string rendered as a one-block blockquote."""
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))
    attrs["legacyQuote"] = True
    attrs.update(read_common(node))

    content = node.get("content")
    if not isinstance(content, str):
        ctx.diagnostics.add(
            DiagnosticCode.MISSING_ATTRIBUTE,
            "quote node without string content",
            path=diag_path,
            node_type="quote",
            attribute="content",
            logger=logger,
        )
        content = ""

    inner = {"type": "text", "content": content, "format": "markdown"}
    if node.get("text_style") is not None:
        inner["text_style"] = node["text_style"]
    child = _convert_text(
        ctx, inner, NODE_SCHEMAS[NodeType.TEXT], path + (0,), diag_path, False
    )
    return [TreeNode(type=BlockType.BLOCKQUOTE.value, attrs=attrs, content=child)]


def _convert_list(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))
    attrs.update(read_common(node))

    items: List[TreeNode] = []
    for i, item in enumerate(_child_list(ctx, node, "elements", diag_path)):
        item_path = join_path(diag_path, "elements", i)
        if not isinstance(item, dict) or item.get("type") != NodeType.LIST_ITEM.value:
            ctx.diagnostics.add(
                DiagnosticCode.MISPLACED_NODE,
                f"list child of type {item.get('type') if isinstance(item, dict) else item!r} "
                "is not a list-item, dropped",
                path=item_path,
                node_type=item.get("type") if isinstance(item, dict) else None,
                logger=logger,
            )
            continue
        items.extend(
            _convert_list_item(
                ctx, item, NODE_SCHEMAS[NodeType.LIST_ITEM], path + (i,), item_path, False
            )
        )
    return [TreeNode(type=BlockType.LIST.value, attrs=attrs, content=items)]


def _misplaced_list_item(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    ctx.diagnostics.add(
        DiagnosticCode.MISPLACED_NODE,
        "list-item outside of a list, dropped",
        path=diag_path,
        node_type="list-item",
        logger=logger,
    )
    return []


def _convert_list_item(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))
    attrs.update(read_common(node))

    children: List[TreeNode] = []
    pending: List[Tuple[int, Dict[str, Any]]] = []
    elements = _child_list(ctx, node, "elements", diag_path)

    def flush() -> None:
        if not pending:
            return
        first = pending[0][0]
        runs = [run for _, run in pending]
        inline = runs_to_inline(runs, ctx.diagnostics, join_path(diag_path, "elements", first))
        paragraph_attrs = ctx.base_attrs(path + (first,))
        paragraph_attrs["inlineRuns"] = True
        children.append(
            TreeNode(type=BlockType.PARAGRAPH.value, attrs=paragraph_attrs, content=inline)
        )
        pending.clear()

    for j, child in enumerate(elements):
        # Inside list items variable entries are always inline runs
        if isinstance(child, dict) and child.get("type") in INLINE_RUN_TYPES:
            pending.append((j, child))
            continue
        flush()
        children.extend(
            _convert_node(ctx, child, path + (j,), join_path(diag_path, "elements", j), False)
        )
    flush()

    return [TreeNode(type=BlockType.LIST_ITEM.value, attrs=attrs, content=children)]


def _convert_html(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    return _convert_leaf(BlockType.CUSTOM_CODE)(ctx, node, schema, path, diag_path, top_level)


def _convert_meta(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    # Top-level meta holds the channel title, which is read by the title service
    if not top_level:
        ctx.diagnostics.add(
            DiagnosticCode.MISPLACED_NODE,
            "meta node nested inside content, dropped",
            path=diag_path,
            node_type="meta",
            logger=logger,
        )
    return []


def _convert_variable(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    name = node.get("name")
    if not isinstance(name, str) or not name:
        ctx.diagnostics.add(
            DiagnosticCode.MISSING_ATTRIBUTE,
            "variable node without a name, dropped",
            path=diag_path,
            node_type="variable",
            attribute="name",
            logger=logger,
        )
        return []
    attrs = ctx.base_attrs(path)
    attrs["standaloneVariable"] = True
    attrs.update(read_common(node))
    return [TreeNode(type=BlockType.PARAGRAPH.value, attrs=attrs, content=[variable_node(name)])]


def _is_bare_group(node: Any) -> bool:
    return (
        isinstance(node, dict)
        and node.get("type") == NodeType.GROUP.value
        and set(node) <= {"type", "elements"}
    )


def _convert_group(ctx, node, schema, path, diag_path, top_level) -> List[TreeNode]:
    """
    A ``group`` becomes a column block holding one row with a cell per element.

    A nested group with nothing but ``elements`` is unwrapped into its cell;
    the cell's ``groupWrapper`` flag puts the wrapper back on save.
    """
    attrs = ctx.base_attrs(path)
    attrs.update(read_attributes(schema, node, ctx.diagnostics, diag_path))
    elements = _child_list(ctx, node, "elements", diag_path)
    attrs["columnsCount"] = min(max(len(elements), 1), MAX_COLUMNS)
    attrs.update(read_common(node))

    cells: List[TreeNode] = []
    for i, element in enumerate(elements):
        cell_path = path + (i,)
        element_path = join_path(diag_path, "elements", i)
        cell_attrs = ctx.base_attrs(cell_path)
        cell_attrs.update({"index": i, "columnId": attrs["id"]})
        if _is_bare_group(element):
            cell_attrs["groupWrapper"] = True
            content = _convert_nodes(
                ctx,
                _child_list(ctx, element, "elements", element_path),
                cell_path,
                join_path(element_path, "elements"),
            )
        else:
            content = _convert_node(ctx, element, cell_path + (0,), element_path, False)
        cells.append(TreeNode(type=BlockType.COLUMN_CELL.value, attrs=cell_attrs, content=content))

    row = TreeNode(type=BlockType.COLUMN_ROW.value, attrs={"id": f"{attrs['id']}-row"}, content=cells)
    return [TreeNode(type=BlockType.COLUMN.value, attrs=attrs, content=[row])]


_CONVERTERS: Dict[NodeType, Callable[..., List[TreeNode]]] = {
    NodeType.TEXT: _convert_text,
    NodeType.IMAGE: _convert_leaf(BlockType.IMAGE_BLOCK),
    NodeType.ACTION: _convert_action,
    NodeType.DIVIDER: _convert_divider,
    NodeType.BLOCKQUOTE: _convert_blockquote,
    NodeType.QUOTE: _convert_quote,
    NodeType.LIST: _convert_list,
    NodeType.LIST_ITEM: _misplaced_list_item,
    NodeType.HTML: _convert_html,
    NodeType.META: _convert_meta,
    NodeType.GROUP: _convert_group,
    NodeType.VARIABLE: _convert_variable,
}

_missing = set(NodeType) - set(_CONVERTERS)
if _missing:
    raise RuntimeError(f"No tree converter for: {sorted(t.value for t in _missing)}")


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

def _convert_node(
    ctx: _Context,
    node: Any,
    path: Tuple[int, ...],
    diag_path: str,
    top_level: bool,
) -> List[TreeNode]:
    node_type_value = node.get("type") if isinstance(node, dict) else None
    try:
        node_type = NodeType(node_type_value)
    except ValueError:
        ctx.diagnostics.add(
            DiagnosticCode.UNKNOWN_NODE_TYPE,
            f"unknown node type {node_type_value!r} dropped",
            path=diag_path,
            node_type=str(node_type_value),
            logger=logger,
        )
        return []
    schema: NodeSchema = NODE_SCHEMAS[node_type]
    return _CONVERTERS[node_type](ctx, node, schema, path, diag_path, top_level)


def _convert_nodes(
    ctx: _Context, nodes: List[Any], prefix: Tuple[int, ...], diag_path: str
) -> List[TreeNode]:
    blocks: List[TreeNode] = []
    for i, node in enumerate(nodes):
        blocks.extend(_convert_node(ctx, node, prefix + (i,), join_path(diag_path, i), False))
    return blocks


def _pair_buttons(blocks: List[TreeNode]) -> List[TreeNode]:
    """Put each run of two consecutive top-level buttons into one buttonRow."""
    paired: List[TreeNode] = []
    i = 0
    while i < len(blocks):
        block = blocks[i]
        following = blocks[i + 1] if i + 1 < len(blocks) else None
        if (
            block.type == BlockType.BUTTON.value
            and following is not None
            and following.type == BlockType.BUTTON.value
        ):
            attrs = {"id": f"{block.attrs['id']}-row"}
            paired.append(TreeNode(type=BlockType.BUTTON_ROW.value, attrs=attrs, content=[block, following]))
            i += 2
            continue
        paired.append(block)
        i += 1
    return paired


def to_editing_tree(
    elements: Optional[List[Any]],
    diagnostics: Optional[Diagnostics] = None,
    id_factory: Optional[IdFactory] = None,
    pair_buttons: bool = False,
) -> TreeDoc:
    """
    Convert one channel's Elemental content nodes into an editing tree.

    Args:
        elements: The channel's ``elements`` list. A top-level ``meta`` node
            is skipped here; the title service reads it.
        diagnostics: Collector for non-fatal problems. A fresh one is used
            when omitted.
        id_factory: Maps a block's index path to its id. Defaults to
            path_node_id.
        pair_buttons: Group consecutive top-level buttons into buttonRow
            blocks, as the inbox channel lays them out side by side.

    Returns:
        TreeDoc whose blocks carry ``id`` attributes.

    Example:
        >>> to_editing_tree([{"type": "text", "content": "Hi", "text_style": "h1"}])
        TreeDoc(type='doc', content=[TreeNode(type='heading',
            attrs={'id': 'node-0', 'level': 1, ...},
            content=[TreeNode(type='text', text='Hi')])])
    """
    ctx = _Context(
        diagnostics=diagnostics if diagnostics is not None else Diagnostics(),
        id_factory=id_factory or path_node_id,
    )
    blocks: List[TreeNode] = []
    for i, node in enumerate(elements or []):
        blocks.extend(_convert_node(ctx, node, (i,), join_path("elements", i), True))
    if pair_buttons:
        blocks = _pair_buttons(blocks)
    logger.debug("Converted %d Elemental nodes into %d blocks", len(elements or []), len(blocks))
    return TreeDoc(content=blocks)
