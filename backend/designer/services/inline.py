"""
Inline content conversion: Elemental text runs <-> tree inline nodes.

Elemental text blocks hold either a plain ``content`` string or a list of
``elements`` runs (string / link / variable / img). The tree holds text nodes
with marks, variable tokens, inline images and hardBreak nodes for line breaks.

Runs may carry the fields shared by every Elemental node (``if``, ``channels``,
``loop``...). They are kept in the inline node's ``attrs`` and written back on
the run; adjacent text with different fields never merges into one run.
"""

import logging
from typing import Any, Dict, List, Optional

from designer.models.elemental import DiagnosticCode
from designer.models.tree import InlineNodeType, TreeMark, TreeNode
from designer.services.diagnostics import Diagnostics, join_path
from designer.services.marks import (
    MarkType,
    find_mark,
    mark_signature,
    marks_from_run,
    normalize_marks,
    run_fields,
)
from designer.services.schema import InlineType, read_common, write_common

logger = logging.getLogger(__name__)

# img run key -> inline image attribute
_IMAGE_FIELDS = (
    ("src", "sourcePath"),
    ("href", "link"),
    ("alt_text", "alt"),
    ("width", "width"),
    ("disable_tracking", "disableTracking"),
)


def text_node(
    text: str,
    marks: Optional[List[TreeMark]] = None,
    attrs: Optional[Dict[str, Any]] = None,
) -> TreeNode:
    return TreeNode(type=InlineNodeType.TEXT.value, text=text, marks=marks or None, attrs=attrs or None)


def variable_node(
    name: str,
    marks: Optional[List[TreeMark]] = None,
    attrs: Optional[Dict[str, Any]] = None,
) -> TreeNode:
    return TreeNode(
        type=InlineNodeType.VARIABLE.value,
        attrs={"id": name, **(attrs or {})},
        marks=marks or None,
    )


def hard_break_node(
    marks: Optional[List[TreeMark]] = None,
    attrs: Optional[Dict[str, Any]] = None,
) -> TreeNode:
    return TreeNode(type=InlineNodeType.HARD_BREAK.value, marks=marks or None, attrs=attrs or None)


def plain_to_inline(
    text: str,
    marks: Optional[List[TreeMark]] = None,
    attrs: Optional[Dict[str, Any]] = None,
) -> List[TreeNode]:
    """
    Split a plain string on newlines into text and hardBreak nodes.

    "Hello\\nWorld" -> [text "Hello", hardBreak, text "World"]
    "\\n"           -> [hardBreak]
    ""             -> []
    """
    nodes: List[TreeNode] = []
    for i, line in enumerate(text.split("\n")):
        if i > 0:
            nodes.append(hard_break_node(marks, attrs))
        if line:
            nodes.append(text_node(line, marks, attrs))
    return nodes


def _image_node(run: Dict[str, Any], marks: List[TreeMark], common: Dict[str, Any]) -> TreeNode:
    attrs = {attr: run[key] for key, attr in _IMAGE_FIELDS if key in run}
    attrs.update(common)
    return TreeNode(type=InlineNodeType.IMAGE.value, attrs=attrs, marks=marks or None)


def _common_of(node: TreeNode) -> Dict[str, Any]:
    return write_common(node.attrs or {})


def runs_to_inline(
    runs: List[Any],
    diagnostics: Diagnostics,
    path: str = "",
) -> List[TreeNode]:
    """Convert Elemental inline runs into tree inline nodes."""
    nodes: List[TreeNode] = []
    for i, run in enumerate(runs):
        run_path = join_path(path, i)
        run_type = run.get("type") if isinstance(run, dict) else None
        try:
            inline_type = InlineType(run_type)
        except ValueError:
            diagnostics.add(
                DiagnosticCode.UNKNOWN_INLINE_TYPE,
                f"unknown inline run type {run_type!r} dropped",
                path=run_path,
                node_type=str(run_type),
                logger=logger,
            )
            continue

        marks = marks_from_run(run)
        common = read_common(run)

        if inline_type == InlineType.VARIABLE:
            name = run.get("name")
            if not isinstance(name, str) or not name:
                diagnostics.add(
                    DiagnosticCode.MISSING_ATTRIBUTE,
                    "variable run without a name dropped",
                    path=run_path,
                    node_type="variable",
                    attribute="name",
                    logger=logger,
                )
                continue
            nodes.append(variable_node(name, marks, common))
            continue

        if inline_type == InlineType.IMG:
            if not isinstance(run.get("src"), str):
                diagnostics.add(
                    DiagnosticCode.MISSING_ATTRIBUTE,
                    "img run without a src dropped",
                    path=run_path,
                    node_type="img",
                    attribute="src",
                    logger=logger,
                )
                continue
            nodes.append(_image_node(run, marks, common))
            continue

        content = run.get("content")
        if not isinstance(content, str):
            diagnostics.add(
                DiagnosticCode.MISSING_ATTRIBUTE,
                f"{inline_type.value} run without string content dropped",
                path=run_path,
                node_type=inline_type.value,
                attribute="content",
                logger=logger,
            )
            continue
        if inline_type == InlineType.LINK and find_mark(marks, MarkType.LINK) is None:
            diagnostics.add(
                DiagnosticCode.MISSING_ATTRIBUTE,
                "link run without href kept as plain text",
                path=run_path,
                node_type="link",
                attribute="href",
                logger=logger,
            )
        nodes.extend(plain_to_inline(content, marks, common))
    return nodes


def merge_inline(nodes: List[TreeNode]) -> List[TreeNode]:
    """Join adjacent text nodes whose marks and run fields are identical; drop empty text."""
    merged: List[TreeNode] = []
    for node in nodes:
        if node.type == InlineNodeType.TEXT.value:
            if not node.text:
                continue
            previous = merged[-1] if merged else None
            if (
                previous is not None
                and previous.type == InlineNodeType.TEXT.value
                and mark_signature(previous.marks) == mark_signature(node.marks)
                and _common_of(previous) == _common_of(node)
            ):
                merged[-1] = text_node(previous.text + node.text, previous.marks, previous.attrs)
                continue
        merged.append(node)
    return merged


def inline_is_plain(nodes: List[TreeNode]) -> bool:
    """True when the nodes can be stored as a plain ``content`` string."""
    for node in nodes:
        if node.type not in (InlineNodeType.TEXT.value, InlineNodeType.HARD_BREAK.value):
            return False
        if normalize_marks(node.marks) or _common_of(node):
            return False
    return True


def inline_to_plain(nodes: List[TreeNode]) -> str:
    """Concatenate text, render hardBreaks as newlines and variables as {{name}}."""
    parts: List[str] = []
    for node in nodes:
        if node.type == InlineNodeType.TEXT.value:
            parts.append(node.text or "")
        elif node.type == InlineNodeType.HARD_BREAK.value:
            parts.append("\n")
        elif node.type == InlineNodeType.VARIABLE.value:
            parts.append("{{" + str((node.attrs or {}).get("id", "")) + "}}")
    return "".join(parts)


def _string_run(text: str, marks: List[TreeMark], common: Dict[str, Any]) -> Dict[str, Any]:
    link = find_mark(marks, MarkType.LINK)
    if link is not None:
        run: Dict[str, Any] = {"type": InlineType.LINK.value, "content": text, "href": link.attrs["href"]}
        if "disableTracking" in link.attrs:
            run["disable_tracking"] = link.attrs["disableTracking"]
    else:
        run = {"type": InlineType.STRING.value, "content": text}
    run.update(run_fields(marks))
    run.update(common)
    return run


def _image_run(node: TreeNode, marks: List[TreeMark]) -> Dict[str, Any]:
    attrs = node.attrs or {}
    run: Dict[str, Any] = {"type": InlineType.IMG.value}
    for key, attr in _IMAGE_FIELDS:
        if attrs.get(attr) is not None:
            run[key] = attrs[attr]
    run.setdefault("src", "")
    run.update(run_fields(marks))
    run.update(write_common(attrs))
    return run


def inline_to_runs(
    nodes: List[TreeNode],
    diagnostics: Diagnostics,
    path: str = "",
) -> List[Dict[str, Any]]:
    """
    Convert tree inline nodes into Elemental runs.

    Each maximal sequence of text/hardBreak nodes with an identical mark set
    and identical run fields becomes exactly one run, so

        [text "A" bold, text "B" bold, text "C"]

    yields [{"type": "string", "content": "AB", "bold": True},
            {"type": "string", "content": "C"}].
    """
    runs: List[Dict[str, Any]] = []
    last_signature = None
    for i, node in enumerate(nodes):
        if node.type in (InlineNodeType.TEXT.value, InlineNodeType.HARD_BREAK.value):
            text = "\n" if node.type == InlineNodeType.HARD_BREAK.value else (node.text or "")
            if not text:
                continue
            marks = normalize_marks(node.marks, diagnostics, join_path(path, i))
            common = _common_of(node)
            signature = (mark_signature(marks), common)
            if runs and last_signature == signature:
                runs[-1]["content"] += text
            else:
                runs.append(_string_run(text, marks, common))
                last_signature = signature
        elif node.type == InlineNodeType.VARIABLE.value:
            name = (node.attrs or {}).get("id")
            if not isinstance(name, str) or not name:
                diagnostics.add(
                    DiagnosticCode.MISSING_ATTRIBUTE,
                    "variable token without a name dropped",
                    path=join_path(path, i),
                    node_type="variable",
                    attribute="id",
                    logger=logger,
                )
                continue
            run = {"type": InlineType.VARIABLE.value, "name": name}
            run.update(run_fields(normalize_marks(node.marks, diagnostics, join_path(path, i))))
            run.update(_common_of(node))
            runs.append(run)
            last_signature = None
        elif node.type == InlineNodeType.IMAGE.value:
            runs.append(_image_run(node, normalize_marks(node.marks, diagnostics, join_path(path, i))))
            last_signature = None
        else:
            diagnostics.add(
                DiagnosticCode.UNKNOWN_INLINE_TYPE,
                f"unknown inline node {node.type!r} dropped",
                path=join_path(path, i),
                node_type=node.type,
                logger=logger,
            )
    return runs
