"""
Tests for Elemental -> editing tree conversion.
"""

from designer.models.elemental import DiagnosticCode
from designer.services.diagnostics import Diagnostics
from designer.services.to_tree import path_node_id, random_node_id, to_editing_tree


def _convert(elements):
    diagnostics = Diagnostics()
    doc = to_editing_tree(elements, diagnostics=diagnostics)
    return doc, diagnostics


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

class TestTextNodes:
    """text nodes become paragraphs or headings."""

    def test_plain_paragraph(self):
        doc, diagnostics = _convert([{"type": "text", "content": "Hello"}])
        [block] = doc.content
        assert block.type == "paragraph"
        assert block.attrs["id"] == "node-0"
        assert block.attrs["textAlign"] == "left"
        assert [(n.type, n.text, n.marks) for n in block.content] == [("text", "Hello", None)]
        assert len(diagnostics) == 0

    def test_heading_levels(self):
        doc, _ = _convert([
            {"type": "text", "content": "A", "text_style": "h1"},
            {"type": "text", "content": "B", "text_style": "h2"},
            {"type": "text", "content": "C", "text_style": "h3"},
        ])
        assert [(b.type, b.attrs["level"]) for b in doc.content] == [
            ("heading", 1), ("heading", 2), ("heading", 3)
        ]

    def test_subtext_stays_paragraph(self):
        doc, _ = _convert([{"type": "text", "content": "small", "text_style": "subtext"}])
        assert doc.content[0].type == "paragraph"
        assert doc.content[0].attrs["textStyle"] == "subtext"

    def test_unknown_text_style(self):
        doc, diagnostics = _convert([{"type": "text", "content": "x", "text_style": "h9"}])
        assert doc.content[0].type == "paragraph"
        assert diagnostics.codes() == [DiagnosticCode.INVALID_ATTRIBUTE]

    def test_styled_runs(self):
        doc, _ = _convert([{
            "type": "text",
            "elements": [
                {"type": "string", "content": "Hi "},
                {"type": "string", "content": "there", "bold": True},
                {"type": "variable", "name": "first_name"},
            ],
        }])
        block = doc.content[0]
        assert block.attrs["styledRuns"] is True
        assert [n.type for n in block.content] == ["text", "text", "variable"]
        assert block.content[1].marks[0].type == "bold"
        assert block.content[2].attrs == {"id": "first_name"}

    def test_elements_preferred_over_content(self):
        doc, _ = _convert([{
            "type": "text",
            "content": "ignored",
            "elements": [{"type": "string", "content": "used"}],
        }])
        assert doc.content[0].content[0].text == "used"

    def test_empty_content(self):
        doc, _ = _convert([{"type": "text", "content": ""}])
        assert doc.content[0].content == []

    def test_missing_content(self):
        doc, diagnostics = _convert([{"type": "text"}])
        assert doc.content[0].type == "paragraph"
        assert doc.content[0].content == []
        assert diagnostics.codes() == [DiagnosticCode.MISSING_ATTRIBUTE]

    def test_markdown_content(self):
        doc, _ = _convert([{"type": "text", "content": "Hi **there**", "format": "markdown"}])
        block = doc.content[0]
        assert block.attrs["format"] == "markdown"
        assert [(n.text, [m.type for m in n.marks or []]) for n in block.content] == [
            ("Hi ", []), ("there", ["bold"])
        ]

    def test_standalone_variable(self):
        doc, _ = _convert([{"type": "variable", "name": "order_id"}])
        block = doc.content[0]
        assert block.type == "paragraph"
        assert block.attrs["standaloneVariable"] is True
        assert block.content[0].type == "variable"
        assert block.content[0].attrs == {"id": "order_id"}


# ---------------------------------------------------------------------------
# Atomic blocks
# ---------------------------------------------------------------------------

class TestAtomicBlocks:
    """image, action, divider and html map one-to-one."""

    def test_image_defaults_filled(self):
        doc, _ = _convert([{"type": "image", "src": "https://img/a.png"}])
        block = doc.content[0]
        assert block.type == "imageBlock"
        assert block.attrs["sourcePath"] == "https://img/a.png"
        assert block.attrs["alignment"] == "center"
        assert block.attrs["imageNaturalWidth"] == 0
        assert block.content is None

    def test_button(self):
        doc, _ = _convert([{
            "type": "action", "content": "Buy", "href": "https://shop", "align": "left", "padding": "10px",
        }])
        block = doc.content[0]
        assert block.type == "button"
        assert (block.attrs["label"], block.attrs["link"]) == ("Buy", "https://shop")
        assert (block.attrs["alignment"], block.attrs["size"]) == ("left", "default")
        assert block.attrs["padding"] == 10

    def test_full_width_button(self):
        doc, _ = _convert([{"type": "action", "content": "Go", "href": "h", "align": "full"}])
        assert (doc.content[0].attrs["alignment"], doc.content[0].attrs["size"]) == ("center", "full")

    def test_divider_and_spacer(self):
        doc, _ = _convert([{"type": "divider"}, {"type": "divider", "color": "transparent"}])
        assert [b.attrs["variant"] for b in doc.content] == ["divider", "spacer"]

    def test_custom_code(self):
        doc, _ = _convert([{"type": "html", "content": "<p>Hi</p>"}])
        assert doc.content[0].type == "customCode"
        assert doc.content[0].attrs["code"] == "<p>Hi</p>"

    def test_common_fields_kept(self):
        doc, _ = _convert([{"type": "image", "src": "a", "if": "data.show", "locales": {"fr": {"src": "b"}}}])
        assert doc.content[0].attrs["if"] == "data.show"
        assert doc.content[0].attrs["locales"] == {"fr": {"src": "b"}}


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

class TestContainers:
    """blockquote and list recurse."""

    def test_blockquote(self):
        doc, _ = _convert([{"type": "blockquote", "elements": [{"type": "text", "content": "Q"}]}])
        block = doc.content[0]
        assert block.type == "blockquote"
        assert block.content[0].type == "paragraph"
        assert block.content[0].attrs["id"] == "node-0-0"

    def test_legacy_quote(self):
        doc, _ = _convert([{"type": "quote", "content": "A **bold** quote"}])
        block = doc.content[0]
        assert block.type == "blockquote"
        assert block.attrs["legacyQuote"] is True
        assert [n.text for n in block.content[0].content] == ["A ", "bold", " quote"]

    def test_list_ids_follow_nesting(self):
        doc, _ = _convert([{
            "type": "list",
            "list_type": "ordered",
            "elements": [{"type": "list-item", "elements": [{"type": "text", "content": "one"}]}],
        }])
        lst = doc.content[0]
        item = lst.content[0]
        assert (lst.type, lst.attrs["listType"], lst.attrs["id"]) == ("list", "ordered", "node-0")
        assert (item.type, item.attrs["id"]) == ("listItem", "node-0-0")
        assert item.content[0].attrs["id"] == "node-0-0-0"

    def test_list_item_inline_runs(self):
        doc, _ = _convert([{
            "type": "list",
            "list_type": "unordered",
            "elements": [{
                "type": "list-item",
                "elements": [
                    {"type": "string", "content": "Run "},
                    {"type": "variable", "name": "x"},
                    {"type": "list", "list_type": "unordered", "elements": []},
                ],
            }],
        }])
        item = doc.content[0].content[0]
        assert [c.type for c in item.content] == ["paragraph", "list"]
        assert item.content[0].attrs["inlineRuns"] is True
        assert [n.type for n in item.content[0].content] == ["text", "variable"]

    def test_non_item_in_list_dropped(self):
        doc, diagnostics = _convert([{
            "type": "list",
            "list_type": "unordered",
            "elements": [{"type": "text", "content": "stray"}, {"type": "list-item", "elements": []}],
        }])
        assert [c.type for c in doc.content[0].content] == ["listItem"]
        assert diagnostics.codes() == [DiagnosticCode.MISPLACED_NODE]

    def test_list_item_outside_list(self):
        doc, diagnostics = _convert([{"type": "list-item", "elements": []}])
        assert doc.content == []
        assert diagnostics.codes() == [DiagnosticCode.MISPLACED_NODE]


class TestGroups:
    """group nodes become column blocks with one cell per element."""

    def test_group_children_kept(self):
        doc, diagnostics = _convert([{"type": "group", "elements": [{"type": "text", "content": "inside"}]}])
        [column] = doc.content
        assert column.type == "column"
        assert column.attrs["columnsCount"] == 1
        [row] = column.content
        [cell] = row.content
        assert (row.type, cell.type) == ("columnRow", "columnCell")
        assert cell.attrs["columnId"] == column.attrs["id"]
        assert cell.content[0].content[0].text == "inside"
        assert len(diagnostics) == 0

    def test_cells_and_ids(self):
        doc, _ = _convert([{
            "type": "group",
            "elements": [{"type": "text", "content": "a"}, {"type": "image", "src": "b.png"}],
        }])
        cells = doc.content[0].content[0].content
        assert [c.attrs["index"] for c in cells] == [0, 1]
        assert [c.attrs["id"] for c in cells] == ["node-0-0", "node-0-1"]
        assert [c.content[0].type for c in cells] == ["paragraph", "imageBlock"]
        assert cells[1].content[0].attrs["id"] == "node-0-1-0"

    def test_bare_nested_group_unwrapped(self):
        doc, _ = _convert([{
            "type": "group",
            "elements": [{"type": "group", "elements": [{"type": "text", "content": "a"}, {"type": "text", "content": "b"}]}],
        }])
        [cell] = doc.content[0].content[0].content
        assert cell.attrs["groupWrapper"] is True
        assert [b.content[0].text for b in cell.content] == ["a", "b"]

    def test_columns_count_clamped(self):
        elements = [{"type": "text", "content": str(i)} for i in range(6)]
        doc, _ = _convert([{"type": "group", "elements": elements}])
        assert doc.content[0].attrs["columnsCount"] == 4
        assert len(doc.content[0].content[0].content) == 6

    def test_group_attributes(self):
        doc, _ = _convert([{"type": "group", "padding": "8px 4px", "background_color": "#eeeeee", "elements": []}])
        attrs = doc.content[0].attrs
        assert (attrs["paddingVertical"], attrs["paddingHorizontal"]) == (8, 4)
        assert attrs["backgroundColor"] == "#eeeeee"


class TestInlineRunExtras:
    """Run-level fields and inline images survive into the tree."""

    def test_run_common_fields(self):
        doc, _ = _convert([{
            "type": "text",
            "elements": [{"type": "string", "content": "A", "if": "data.x", "bold": True}],
        }])
        [node] = doc.content[0].content
        assert node.attrs == {"if": "data.x"}
        assert [m.type for m in node.marks] == ["bold"]

    def test_img_run(self):
        doc, diagnostics = _convert([{
            "type": "text",
            "elements": [{"type": "img", "src": "i.png", "href": "https://x.io", "alt_text": "i"}],
        }])
        [node] = doc.content[0].content
        assert node.type == "inlineImage"
        assert node.attrs == {"sourcePath": "i.png", "link": "https://x.io", "alt": "i"}
        assert len(diagnostics) == 0

    def test_img_run_without_src_dropped(self):
        doc, diagnostics = _convert([{"type": "text", "elements": [{"type": "img"}]}])
        assert doc.content[0].content == []
        assert diagnostics.codes() == [DiagnosticCode.MISSING_ATTRIBUTE]


class TestButtonPairing:
    """Consecutive top-level buttons are paired into button rows on request."""

    BUTTONS = [
        {"type": "action", "content": "Yes", "href": "y"},
        {"type": "action", "content": "No", "href": "n"},
        {"type": "action", "content": "Later", "href": "l"},
    ]

    def test_not_paired_by_default(self):
        doc, _ = _convert(self.BUTTONS)
        assert [b.type for b in doc.content] == ["button", "button", "button"]

    def test_pairs(self):
        doc = to_editing_tree(self.BUTTONS, pair_buttons=True)
        assert [b.type for b in doc.content] == ["buttonRow", "button"]
        row = doc.content[0]
        assert row.attrs["id"] == "node-0-row"
        assert [b.attrs["label"] for b in row.content] == ["Yes", "No"]

    def test_text_between_buttons_prevents_pairing(self):
        elements = [self.BUTTONS[0], {"type": "text", "content": "or"}, self.BUTTONS[1]]
        doc = to_editing_tree(elements, pair_buttons=True)
        assert [b.type for b in doc.content] == ["button", "paragraph", "button"]


# ---------------------------------------------------------------------------
# Tolerance and determinism
# ---------------------------------------------------------------------------

class TestTolerance:
    """Bad content degrades to diagnostics."""

    def test_unknown_node_between_texts(self):
        doc, diagnostics = _convert([
            {"type": "text", "content": "first"},
            {"type": "hologram", "content": "?"},
            {"type": "text", "content": "second"},
        ])
        assert [b.content[0].text for b in doc.content] == ["first", "second"]
        assert diagnostics.codes() == [DiagnosticCode.UNKNOWN_NODE_TYPE]
        assert diagnostics.items[0].path == "elements.1"

    def test_non_dict_node(self):
        doc, diagnostics = _convert(["text"])
        assert doc.content == []
        assert diagnostics.codes() == [DiagnosticCode.UNKNOWN_NODE_TYPE]

    def test_top_level_meta_is_skipped_silently(self):
        doc, diagnostics = _convert([{"type": "meta", "title": "Hi"}, {"type": "text", "content": "x"}])
        assert len(doc.content) == 1
        assert len(diagnostics) == 0

    def test_nested_meta_is_misplaced(self):
        doc, diagnostics = _convert([{"type": "blockquote", "elements": [{"type": "meta", "title": "Hi"}]}])
        assert doc.content[0].content == []
        assert diagnostics.codes() == [DiagnosticCode.MISPLACED_NODE]

    def test_none_elements(self):
        assert to_editing_tree(None).content == []


class TestIdentifiers:
    """Block ids come from the id factory."""

    def test_conversion_is_deterministic(self):
        elements = [{"type": "text", "content": "a"}, {"type": "divider"}]
        assert to_editing_tree(elements) == to_editing_tree(elements)

    def test_path_ids(self):
        assert path_node_id((0, 2, 1)) == "node-0-2-1"

    def test_custom_factory(self):
        doc = to_editing_tree([{"type": "divider"}], id_factory=lambda path: f"b{len(path)}")
        assert doc.content[0].attrs["id"] == "b1"

    def test_random_ids_unique(self):
        doc = to_editing_tree([{"type": "divider"}, {"type": "divider"}], id_factory=random_node_id)
        ids = [b.attrs["id"] for b in doc.content]
        assert ids[0] != ids[1]
        assert all(i.startswith("node-") for i in ids)
