"""
Inline mark model.

Marks have a canonical stacking order (link outermost, highlight innermost).
A run carries at most one mark of each type; when a later mark of the same
type is applied it replaces the earlier one. Two inline runs can be merged
exactly when their normalized mark sets are equal.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from designer.models.elemental import DiagnosticCode
from designer.models.tree import TreeMark
from designer.services.diagnostics import Diagnostics

logger = logging.getLogger(__name__)


class MarkType(str, Enum):
    LINK = "link"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKE = "strike"
    TEXT_COLOR = "textColor"
    HIGHLIGHT = "highlight"


MARK_ORDER: Tuple[MarkType, ...] = tuple(MarkType)

# Elemental run flag -> boolean mark
FLAG_MARKS: Tuple[Tuple[str, MarkType], ...] = (
    ("bold", MarkType.BOLD),
    ("italic", MarkType.ITALIC),
    ("underline", MarkType.UNDERLINE),
    ("strikethrough", MarkType.STRIKE),
)

# Accepted on input, never written
FLAG_ALIASES = {"strike": "strikethrough"}

MarkSignature = Tuple[Tuple[str, Tuple[Tuple[str, Any], ...]], ...]


def _clean_attrs(mark_type: MarkType, attrs: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    attrs = attrs or {}
    if mark_type == MarkType.LINK:
        href = attrs.get("href")
        if not isinstance(href, str):
            return None
        cleaned: Dict[str, Any] = {"href": href}
        if isinstance(attrs.get("disableTracking"), bool):
            cleaned["disableTracking"] = attrs["disableTracking"]
        return cleaned
    if mark_type in (MarkType.TEXT_COLOR, MarkType.HIGHLIGHT):
        color = attrs.get("color")
        return {"color": color} if isinstance(color, str) else None
    return None


def normalize_marks(
    marks: Optional[Iterable[Any]],
    diagnostics: Optional[Diagnostics] = None,
    path: str = "",
) -> List[TreeMark]:
    """
    Deduplicate marks by type (last wins) and sort them into canonical order.

    Unknown mark types and link/color marks missing their attribute are
    dropped and reported when a collector is given.
    """
    by_type: Dict[MarkType, TreeMark] = {}
    for mark in marks or []:
        if not isinstance(mark, TreeMark):
            mark = TreeMark.model_validate(mark)
        try:
            mark_type = MarkType(mark.type)
        except ValueError:
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticCode.UNKNOWN_MARK,
                    f"unknown mark {mark.type!r} dropped",
                    path=path,
                    logger=logger,
                )
            continue

        attrs = _clean_attrs(mark_type, mark.attrs)
        if attrs is None and mark_type in (
            MarkType.LINK, MarkType.TEXT_COLOR, MarkType.HIGHLIGHT
        ):
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticCode.INVALID_ATTRIBUTE,
                    f"{mark_type.value} mark without a usable attribute dropped",
                    path=path,
                    attribute=mark_type.value,
                    logger=logger,
                )
            continue
        by_type[mark_type] = TreeMark(type=mark_type.value, attrs=attrs)

    return [by_type[m] for m in MARK_ORDER if m in by_type]


def mark_signature(marks: Optional[Iterable[Any]]) -> MarkSignature:
    """Hashable identity of a mark set; equal signatures mean the runs are mergeable."""
    return tuple(
        (m.type, tuple(sorted((m.attrs or {}).items())))
        for m in normalize_marks(marks)
    )


def find_mark(marks: Optional[Iterable[TreeMark]], mark_type: MarkType) -> Optional[TreeMark]:
    for mark in marks or []:
        if mark.type == mark_type.value:
            return mark
    return None


def marks_from_run(run: Dict[str, Any]) -> List[TreeMark]:
    """Read the formatting flags of an Elemental inline run into marks."""
    marks: List[TreeMark] = []
    if run.get("type") == "link" and isinstance(run.get("href"), str):
        attrs: Dict[str, Any] = {"href": run["href"]}
        if isinstance(run.get("disable_tracking"), bool):
            attrs["disableTracking"] = run["disable_tracking"]
        marks.append(TreeMark(type=MarkType.LINK.value, attrs=attrs))

    for flag, mark_type in FLAG_MARKS:
        value = run.get(flag)
        if value is None:
            value = next(
                (run.get(alias) for alias, target in FLAG_ALIASES.items() if target == flag),
                None,
            )
        if value is True:
            marks.append(TreeMark(type=mark_type.value))

    if isinstance(run.get("color"), str):
        marks.append(TreeMark(type=MarkType.TEXT_COLOR.value, attrs={"color": run["color"]}))
    if isinstance(run.get("highlight"), str):
        marks.append(TreeMark(type=MarkType.HIGHLIGHT.value, attrs={"color": run["highlight"]}))
    return normalize_marks(marks)


def run_fields(marks: Optional[Iterable[TreeMark]]) -> Dict[str, Any]:
    """
    Inverse of marks_from_run for everything except the link mark.

    Only set flags are written: {"bold": True, "color": "#ff0000"}.
    """
    fields: Dict[str, Any] = {}
    for mark in normalize_marks(marks):
        if mark.type == MarkType.TEXT_COLOR.value:
            fields["color"] = mark.attrs["color"]
        elif mark.type == MarkType.HIGHLIGHT.value:
            fields["highlight"] = mark.attrs["color"]
        else:
            flag = next((f for f, m in FLAG_MARKS if m.value == mark.type), None)
            if flag:
                fields[flag] = True
    return fields
