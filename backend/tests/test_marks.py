"""
Unit tests for the inline mark model.
"""

from designer.models.elemental import DiagnosticCode
from designer.models.tree import TreeMark
from designer.services.diagnostics import Diagnostics
from designer.services.marks import (
    MARK_ORDER,
    MarkType,
    mark_signature,
    marks_from_run,
    normalize_marks,
    run_fields,
)


def _types(marks):
    return [m.type for m in marks]


class TestNormalizeMarks:
    """Marks are deduplicated by type and sorted into stacking order."""

    def test_canonical_order(self):
        marks = normalize_marks([{"type": "italic"}, {"type": "bold"}, {"type": "link", "attrs": {"href": "h"}}])
        assert _types(marks) == ["link", "bold", "italic"]

    def test_last_mark_of_a_type_wins(self):
        marks = normalize_marks([
            {"type": "textColor", "attrs": {"color": "#ff0000"}},
            {"type": "textColor", "attrs": {"color": "#0000ff"}},
        ])
        assert len(marks) == 1
        assert marks[0].attrs == {"color": "#0000ff"}

    def test_unknown_mark_dropped(self):
        diagnostics = Diagnostics()
        marks = normalize_marks([{"type": "sparkle"}, {"type": "bold"}], diagnostics)
        assert _types(marks) == ["bold"]
        assert diagnostics.codes() == [DiagnosticCode.UNKNOWN_MARK]

    def test_link_without_href_dropped(self):
        diagnostics = Diagnostics()
        marks = normalize_marks([{"type": "link", "attrs": {}}], diagnostics)
        assert marks == []
        assert diagnostics.codes() == [DiagnosticCode.INVALID_ATTRIBUTE]

    def test_boolean_marks_carry_no_attrs(self):
        marks = normalize_marks([TreeMark(type="bold", attrs={"stray": 1})])
        assert marks[0].attrs is None

    def test_order_covers_every_mark(self):
        assert set(MARK_ORDER) == set(MarkType)


class TestMarkSignature:
    """Signatures decide whether two runs can merge."""

    def test_order_insensitive(self):
        assert mark_signature([{"type": "bold"}, {"type": "italic"}]) == mark_signature(
            [{"type": "italic"}, {"type": "bold"}]
        )

    def test_attrs_matter(self):
        a = [{"type": "link", "attrs": {"href": "https://a"}}]
        b = [{"type": "link", "attrs": {"href": "https://b"}}]
        assert mark_signature(a) != mark_signature(b)

    def test_empty(self):
        assert mark_signature(None) == mark_signature([]) == ()


class TestRunFlags:
    """Elemental run flags <-> marks."""

    def test_flags_to_marks(self):
        run = {"type": "string", "content": "x", "bold": True, "italic": False, "underline": True}
        assert _types(marks_from_run(run)) == ["bold", "underline"]

    def test_strike_alias(self):
        assert _types(marks_from_run({"type": "string", "content": "x", "strike": True})) == ["strike"]

    def test_link_run(self):
        marks = marks_from_run({"type": "link", "content": "x", "href": "https://x.io", "disable_tracking": True})
        assert marks[0].type == "link"
        assert marks[0].attrs == {"href": "https://x.io", "disableTracking": True}

    def test_colors(self):
        marks = marks_from_run({"type": "string", "content": "x", "color": "#ff0000", "highlight": "#ffff00"})
        assert _types(marks) == ["textColor", "highlight"]

    def test_run_fields_inverse(self):
        run = {"type": "string", "content": "x", "bold": True, "strikethrough": True, "color": "#ff0000"}
        assert run_fields(marks_from_run(run)) == {"bold": True, "strikethrough": True, "color": "#ff0000"}

    def test_run_fields_writes_canonical_strike_flag(self):
        assert run_fields(marks_from_run({"type": "string", "content": "x", "strike": True})) == {
            "strikethrough": True
        }
