"""
Markdown helpers.

- parse_inline_markdown / inline_to_markdown: the inline dialect used by
  Elemental text nodes with ``format: "markdown"``
- tree_to_markdown: plain-markdown export of a whole editing tree

Inline dialect:
    **bold** or __bold__
    *italic* or _italic_
    ~strike~
    +underline+
    [text](href)
    {{variable}}
A backslash escapes the next marker character. A marker with no closing
partner is kept as literal text.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from designer.models.tree import BlockType, InlineNodeType, TreeDoc, TreeMark, TreeNode
from designer.services.inline import hard_break_node, merge_inline, text_node, variable_node
from designer.services.marks import MarkType, find_mark, normalize_marks

logger = logging.getLogger(__name__)

# Longest first so "**" is not read as two italic markers
_MARKERS: Tuple[Tuple[str, MarkType], ...] = (
    ("**", MarkType.BOLD),
    ("__", MarkType.BOLD),
    ("~~", MarkType.STRIKE),
    ("++", MarkType.UNDERLINE),
    ("*", MarkType.ITALIC),
    ("_", MarkType.ITALIC),
    ("~", MarkType.STRIKE),
    ("+", MarkType.UNDERLINE),
)

_SYMBOLS: Dict[str, str] = {
    MarkType.BOLD.value: "**",
    MarkType.ITALIC.value: "*",
    MarkType.STRIKE.value: "~",
    MarkType.UNDERLINE.value: "+",
}

_ESCAPABLE = set("\\*_~+[]{}")
_VARIABLE_RE = re.compile(r"\{\{\s*([^{}\s]+)\s*\}\}")

Token = Tuple[str, Any]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _is_intraword(text: str, start: int, length: int) -> bool:
    """snake_case_names must not toggle italics."""
    before = text[start - 1] if start > 0 else ""
    after = text[start + length] if start + length < len(text) else ""
    return before.isalnum() and after.isalnum()


def _match_link(text: str, start: int) -> Optional[Tuple[str, str, int]]:
    """Match ``[inner](href)`` at ``start``; return (inner, href, end) or None."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                break
        i += 1
    else:
        return None

    if not text.startswith("(", i + 1):
        return None
    close = text.find(")", i + 2)
    if close == -1:
        return None
    return text[start + 1:i], text[i + 2:close], close + 1


def _tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    buffer: List[str] = []

    def flush() -> None:
        if buffer:
            tokens.append(("text", "".join(buffer)))
            buffer.clear()

    i = 0
    while i < len(text):
        ch = text[i]

        if ch == "\\" and i + 1 < len(text) and text[i + 1] in _ESCAPABLE:
            buffer.append(text[i + 1])
            i += 2
            continue

        if ch == "\n":
            flush()
            tokens.append(("break", None))
            i += 1
            continue

        if text.startswith("{{", i):
            match = _VARIABLE_RE.match(text, i)
            if match:
                flush()
                tokens.append(("variable", match.group(1)))
                i = match.end()
                continue

        if ch == "[":
            link = _match_link(text, i)
            if link:
                flush()
                tokens.append(("link", link[:2]))
                i = link[2]
                continue

        marker = next((m for m in _MARKERS if text.startswith(m[0], i)), None)
        if marker and not (marker[0][0] == "_" and _is_intraword(text, i, len(marker[0]))):
            flush()
            tokens.append(("marker", marker))
            i += len(marker[0])
            continue

        buffer.append(ch)
        i += 1

    flush()
    return tokens


def _unmatched_markers(tokens: List[Token]) -> set:
    open_at: Dict[MarkType, int] = {}
    for index, (kind, value) in enumerate(tokens):
        if kind != "marker":
            continue
        mark_type = value[1]
        if mark_type in open_at:
            del open_at[mark_type]
        else:
            open_at[mark_type] = index
    return set(open_at.values())


def parse_inline_markdown(
    text: str, base_marks: Optional[List[TreeMark]] = None
) -> List[TreeNode]:
    """
    Parse the inline markdown dialect into tree inline nodes.

    Example:
        "Hi **{{name}}**, see [docs](https://x.io)" ->
            text "Hi ", variable name (bold), text ", see ",
            text "docs" (link https://x.io)
    """
    tokens = _tokenize(text)
    literal = _unmatched_markers(tokens)
    active: Dict[MarkType, TreeMark] = {}
    nodes: List[TreeNode] = []

    def current() -> List[TreeMark]:
        return normalize_marks(list(base_marks or []) + list(active.values()))

    for index, (kind, value) in enumerate(tokens):
        if kind == "text":
            nodes.append(text_node(value, current()))
        elif kind == "break":
            nodes.append(hard_break_node(current()))
        elif kind == "variable":
            nodes.append(variable_node(value, current()))
        elif kind == "link":
            inner, href = value
            link = TreeMark(type=MarkType.LINK.value, attrs={"href": href})
            nodes.extend(parse_inline_markdown(inner, current() + [link]))
        elif index in literal:
            nodes.append(text_node(value[0], current()))
        else:
            mark_type = value[1]
            if mark_type in active:
                del active[mark_type]
            else:
                active[mark_type] = TreeMark(type=mark_type.value)

    return merge_inline(nodes)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _escape(text: str) -> str:
    return "".join("\\" + ch if ch in _ESCAPABLE else ch for ch in text)


def inline_to_markdown(nodes: List[TreeNode], escape: bool = True) -> str:
    """
    Serialize inline nodes as markdown. Text colors and highlights have no
    markdown form and are dropped.
    """
    parts: List[str] = []
    for node in merge_inline(nodes):
        if node.type == InlineNodeType.HARD_BREAK.value:
            parts.append("\n")
            continue
        if node.type == InlineNodeType.VARIABLE.value:
            body = "{{" + str((node.attrs or {}).get("id", "")) + "}}"
        elif node.type == InlineNodeType.TEXT.value:
            body = _escape(node.text or "") if escape else (node.text or "")
        elif node.type == InlineNodeType.IMAGE.value and not escape:
            # Markdown-format text has no image run, so images only show up in exports
            attrs = node.attrs or {}
            body = f"![{attrs.get('alt') or ''}]({attrs.get('sourcePath') or ''})"
        else:
            continue

        marks = normalize_marks(node.marks)
        symbols = [_SYMBOLS[m.type] for m in marks if m.type in _SYMBOLS]
        rendered = "".join(symbols) + body + "".join(reversed(symbols))
        link = find_mark(marks, MarkType.LINK)
        if link is not None:
            rendered = f"[{rendered}]({link.attrs['href']})"
        parts.append(rendered)
    return "".join(parts)


def _list_to_markdown(node: TreeNode, depth: int) -> str:
    ordered = (node.attrs or {}).get("listType") == "ordered"
    lines: List[str] = []
    number = 0
    for item in node.content or []:
        if item.type != BlockType.LIST_ITEM.value:
            continue
        number += 1
        bullet = f"{number}." if ordered else "-"
        text_parts: List[str] = []
        nested: List[str] = []
        for child in item.content or []:
            if child.type == BlockType.LIST.value:
                nested.append(_list_to_markdown(child, depth + 1))
            else:
                text_parts.append(inline_to_markdown(child.content or [], escape=False))
        lines.append("  " * depth + f"{bullet} " + " ".join(p for p in text_parts if p))
        lines.extend(nested)
    return "\n".join(lines)


def _block_to_markdown(node: TreeNode) -> str:
    attrs = node.attrs or {}
    if node.type == BlockType.PARAGRAPH.value:
        return inline_to_markdown(node.content or [], escape=False) + "\n\n"
    if node.type == BlockType.HEADING.value:
        level = attrs.get("level") or 1
        return "#" * level + " " + inline_to_markdown(node.content or [], escape=False) + "\n\n"
    if node.type == BlockType.BLOCKQUOTE.value:
        inner = "".join(_block_to_markdown(child) for child in node.content or []).strip()
        return "\n".join(f"> {line}" for line in inner.split("\n")) + "\n\n"
    if node.type == BlockType.IMAGE_BLOCK.value:
        image = f"![{attrs.get('alt', '')}]({attrs.get('sourcePath', '')})"
        link = attrs.get("link")
        return (f"[{image}]({link})" if link else image) + "\n\n"
    if node.type == BlockType.DIVIDER.value:
        return "---\n\n"
    if node.type == BlockType.BUTTON.value:
        return f"[{attrs.get('label', '')}]({attrs.get('link') or '#'})\n\n"
    if node.type == BlockType.LIST.value:
        return _list_to_markdown(node, 0) + "\n\n"
    return "".join(_block_to_markdown(child) for child in node.content or [])


def tree_to_markdown(doc: TreeDoc) -> str:
    """
    Export an editing tree as plain markdown.

    Headings use ``#``, blockquotes ``>``, images ``![alt](src)``, buttons
    ``[label](link)``, dividers ``---`` and lists ``-`` / ``1.``. Custom
    code blocks have no markdown form and are skipped.
    """
    if not doc.content:
        return ""
    return "".join(_block_to_markdown(node) for node in doc.content).strip()
