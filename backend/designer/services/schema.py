"""
Node schema registry.

Declares, for every Elemental content node type, which attributes it carries,
how each one maps onto the editing tree's attribute bag, its default value and
how a raw value is validated. Both conversion directions and the
canonicalization helper read attributes through this module, so the two sides can
never disagree about names, defaults or encodings.

Attribute kinds:
  string / color / css  -> str, copied verbatim
  enum                  -> str restricted to ``choices``
  px                    -> CSS pixel string ("6px") on the Elemental side,
                           number (6) on the tree side
  int                   -> integer on both sides
  bool                  -> bool on both sides
  spacing               -> like px, but a multi-value CSS shorthand
                           ("10px 20px") is kept verbatim as a string
  object                -> JSON object, copied verbatim
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from designer.models.elemental import DiagnosticCode
from designer.services.diagnostics import Diagnostics, join_path

logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    ACTION = "action"
    DIVIDER = "divider"
    BLOCKQUOTE = "blockquote"
    QUOTE = "quote"
    LIST = "list"
    LIST_ITEM = "list-item"
    HTML = "html"
    META = "meta"
    GROUP = "group"
    VARIABLE = "variable"


class InlineType(str, Enum):
    STRING = "string"
    LINK = "link"
    VARIABLE = "variable"
    IMG = "img"


class AttrKind(str, Enum):
    STRING = "string"
    COLOR = "color"
    CSS = "css"
    ENUM = "enum"
    PX = "px"
    INT = "int"
    BOOL = "bool"
    SPACING = "spacing"
    OBJECT = "object"


ALIGN_CHOICES = ("left", "center", "right", "full")

# Fields any Elemental node may carry; passed through untouched in both directions
COMMON_FIELDS = ("channels", "ref", "if", "loop", "data", "locales")

HTML_PLACEHOLDER = "<!-- Add your HTML code here -->"


@dataclass(frozen=True)
class AttrSpec:
    key: str
    attr: str
    kind: AttrKind
    default: Any = None
    required: bool = False
    choices: Tuple[str, ...] = ()
    # Older producers wrote some attributes under a different key. When only
    # the legacy key is present we read it and remember that in ``legacy_flag``
    # so the value is written back under the same key.
    legacy_key: Optional[str] = None
    legacy_flag: Optional[str] = None


@dataclass(frozen=True)
class PaddingSpec:
    """CSS padding shorthand ("6px 0px") split into vertical/horizontal numbers."""

    key: str = "padding"
    vertical_attr: str = "paddingVertical"
    horizontal_attr: str = "paddingHorizontal"
    default: Tuple[int, int] = (6, 0)


@dataclass(frozen=True)
class NodeSchema:
    node_type: NodeType
    attributes: Tuple[AttrSpec, ...] = ()
    padding: Optional[PaddingSpec] = None
    # Accept the deprecated nested ``border`` object ({enabled, color, size, radius})
    legacy_border: bool = False
    # Nested border radius was a number on text/action and a "4px" string on images
    legacy_radius_px: bool = False
    children_key: Optional[str] = None


def _s(key, attr, kind=AttrKind.STRING, default=None, **kwargs) -> AttrSpec:
    return AttrSpec(key=key, attr=attr, kind=kind, default=default, **kwargs)


_BLOCKQUOTE_ATTRIBUTES = (
    _s("align", "textAlign", AttrKind.ENUM, "left", choices=ALIGN_CHOICES),
    _s("border_color", "borderColor", AttrKind.COLOR, "#e0e0e0"),
    _s("border_left_width", "borderLeftWidth", AttrKind.INT, 2),
    _s("padding_horizontal", "paddingHorizontal", AttrKind.INT, 8),
    _s("padding_vertical", "paddingVertical", AttrKind.INT, 0),
    _s("background_color", "backgroundColor", AttrKind.COLOR, "transparent"),
)

NODE_SCHEMAS: Dict[NodeType, NodeSchema] = {
    NodeType.TEXT: NodeSchema(
        node_type=NodeType.TEXT,
        attributes=(
            _s("align", "textAlign", AttrKind.ENUM, "left", choices=ALIGN_CHOICES),
            _s("color", "textColor", AttrKind.COLOR, "#292929"),
            _s("background_color", "backgroundColor", AttrKind.COLOR, "transparent"),
            _s("border_color", "borderColor", AttrKind.COLOR, "#000000"),
            _s("border_size", "borderWidth", AttrKind.PX, 0),
            _s("format", "format", AttrKind.ENUM, None, choices=("markdown",)),
        ),
        padding=PaddingSpec(default=(6, 0)),
        legacy_border=True,
    ),
    NodeType.IMAGE: NodeSchema(
        node_type=NodeType.IMAGE,
        attributes=(
            _s("src", "sourcePath", AttrKind.STRING, "", required=True),
            _s("href", "link", AttrKind.STRING, ""),
            _s("align", "alignment", AttrKind.ENUM, "center", choices=ALIGN_CHOICES),
            _s("alt_text", "alt", AttrKind.STRING, ""),
            _s("width", "width", AttrKind.CSS, ""),
            _s("image_natural_width", "imageNaturalWidth", AttrKind.INT, 0),
            _s("border_color", "borderColor", AttrKind.COLOR, "#000000"),
            _s("border_size", "borderWidth", AttrKind.PX, 0),
        ),
        legacy_border=True,
        legacy_radius_px=True,
    ),
    NodeType.ACTION: NodeSchema(
        node_type=NodeType.ACTION,
        attributes=(
            _s("content", "label", AttrKind.STRING, "Button", required=True),
            _s("href", "link", AttrKind.STRING, "", required=True),
            _s("style", "style", AttrKind.ENUM, "button", choices=("button", "link")),
            _s("background_color", "backgroundColor", AttrKind.COLOR, "#0085FF"),
            _s("color", "textColor", AttrKind.COLOR, "#ffffff"),
            _s("border_color", "borderColor", AttrKind.COLOR, "transparent"),
            _s("border_size", "borderWidth", AttrKind.PX, 0),
            _s("border_radius", "borderRadius", AttrKind.PX, 4),
            _s("padding", "padding", AttrKind.SPACING, 6),
            _s("disable_tracking", "disableTracking", AttrKind.BOOL, None),
            _s("action_id", "actionId", AttrKind.STRING, None),
        ),
        legacy_border=True,
    ),
    NodeType.DIVIDER: NodeSchema(
        node_type=NodeType.DIVIDER,
        attributes=(
            _s("color", "color", AttrKind.COLOR, "#000000"),
            _s(
                "border_width", "size", AttrKind.PX, 1,
                legacy_key="width", legacy_flag="legacyWidth",
            ),
            _s("padding", "padding", AttrKind.SPACING, 6),
        ),
    ),
    NodeType.BLOCKQUOTE: NodeSchema(
        node_type=NodeType.BLOCKQUOTE,
        attributes=_BLOCKQUOTE_ATTRIBUTES,
        children_key="elements",
    ),
    NodeType.QUOTE: NodeSchema(
        node_type=NodeType.QUOTE,
        attributes=_BLOCKQUOTE_ATTRIBUTES,
    ),
    NodeType.LIST: NodeSchema(
        node_type=NodeType.LIST,
        attributes=(
            _s(
                "list_type", "listType", AttrKind.ENUM, "unordered",
                required=True, choices=("ordered", "unordered"),
            ),
            _s("imgSrc", "imgSrc", AttrKind.STRING, ""),
            _s("imgHref", "imgHref", AttrKind.STRING, ""),
            _s("border_color", "borderColor", AttrKind.COLOR, "#000000"),
            _s("border_size", "borderWidth", AttrKind.PX, 0),
        ),
        padding=PaddingSpec(default=(6, 0)),
        children_key="elements",
    ),
    NodeType.LIST_ITEM: NodeSchema(
        node_type=NodeType.LIST_ITEM,
        attributes=(
            _s("background_color", "backgroundColor", AttrKind.COLOR, "transparent"),
        ),
        children_key="elements",
    ),
    NodeType.HTML: NodeSchema(
        node_type=NodeType.HTML,
        attributes=(
            _s("content", "code", AttrKind.STRING, HTML_PLACEHOLDER, required=True),
        ),
    ),
    NodeType.META: NodeSchema(
        node_type=NodeType.META,
        attributes=(_s("title", "title", AttrKind.STRING, ""),),
    ),
    NodeType.GROUP: NodeSchema(
        node_type=NodeType.GROUP,
        attributes=(
            _s("background_color", "backgroundColor", AttrKind.COLOR, "transparent"),
            _s("border", "border", AttrKind.OBJECT, None),
        ),
        padding=PaddingSpec(default=(0, 0)),
        children_key="elements",
    ),
    NodeType.VARIABLE: NodeSchema(
        node_type=NodeType.VARIABLE,
        attributes=(_s("name", "name", AttrKind.STRING, "", required=True),),
    ),
}

_missing = set(NodeType) - set(NODE_SCHEMAS)
if _missing:
    raise RuntimeError(f"Node schemas missing for: {sorted(t.value for t in _missing)}")


def node_type_of(node: Any) -> Optional[NodeType]:
    """Return the NodeType of an Elemental node dict, or None if unrecognized."""
    if not isinstance(node, dict):
        return None
    try:
        return NodeType(node.get("type"))
    except ValueError:
        return None


def get_schema(node_type: NodeType) -> NodeSchema:
    return NODE_SCHEMAS[node_type]


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

_PX_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")


def _as_number(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


def parse_px(value: Any) -> Optional[Any]:
    """
    Parse a non-negative pixel value.

    Examples:
        "6px"  -> 6
        "6"    -> 6
        6      -> 6
        "1.5px"-> 1.5
        "-2px" -> None
        "auto" -> None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _as_number(value) if value >= 0 else None
    if isinstance(value, str):
        match = _PX_RE.match(value)
        if match:
            return _as_number(float(match.group(1)))
    return None


def format_px(value: Any) -> str:
    return f"{_as_number(value)}px"


def parse_padding(value: Any) -> Optional[Tuple[Any, Any]]:
    """
    Split a CSS padding shorthand into (vertical, horizontal).

    "6px 12px" -> (6, 12); "10px" -> (10, 10); 4 -> (4, 4).
    Three/four value forms use the top and right values.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        single = parse_px(value)
        return None if single is None else (single, single)
    if not isinstance(value, str):
        return None
    parts = value.split()
    if not parts or len(parts) > 4:
        return None
    parsed = [parse_px(p) for p in parts]
    if any(p is None for p in parsed):
        return None
    if len(parsed) == 1:
        return parsed[0], parsed[0]
    return parsed[0], parsed[1]


def format_padding(vertical: Any, horizontal: Any) -> str:
    return f"{format_px(vertical)} {format_px(horizontal)}"


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.match(r"^\s*-?\d+\s*$", value):
        return int(value)
    return None


def coerce_value(spec: AttrSpec, value: Any) -> Tuple[bool, Any]:
    """
    Validate ``value`` for ``spec`` and return (ok, tree-side value).

    PX values are accepted both as "6px" strings and as bare numbers so the
    same function validates Elemental input and tree attributes.
    """
    kind = spec.kind
    if kind in (AttrKind.STRING, AttrKind.COLOR, AttrKind.CSS):
        return (True, value) if isinstance(value, str) else (False, None)
    if kind == AttrKind.ENUM:
        if isinstance(value, str) and value in spec.choices:
            return True, value
        return False, None
    if kind == AttrKind.PX:
        parsed = parse_px(value)
        return (parsed is not None), parsed
    if kind == AttrKind.INT:
        parsed = _coerce_int(value)
        return (parsed is not None), parsed
    if kind == AttrKind.BOOL:
        return (True, value) if isinstance(value, bool) else (False, None)
    if kind == AttrKind.SPACING:
        parsed = parse_px(value)
        if parsed is not None:
            return True, parsed
        if isinstance(value, str) and parse_padding(value) is not None:
            return True, value
        return False, None
    if kind == AttrKind.OBJECT:
        return (True, value) if isinstance(value, dict) else (False, None)
    raise ValueError(f"Unhandled attribute kind {kind!r}")


def encode_value(spec: AttrSpec, value: Any) -> Any:
    """Tree-side value -> Elemental-side value."""
    if spec.kind == AttrKind.PX:
        return format_px(value)
    if spec.kind == AttrKind.SPACING and not isinstance(value, str):
        return format_px(value)
    return value


# ---------------------------------------------------------------------------
# Elemental node <-> attribute bag
# ---------------------------------------------------------------------------

def read_attributes(
    schema: NodeSchema,
    node: Dict[str, Any],
    diagnostics: Diagnostics,
    path: str = "",
) -> Dict[str, Any]:
    """
    Read every declared attribute of an Elemental node into a tree attribute bag.

    Absent attributes take the schema default. Malformed values are replaced
    by the default and reported as ``invalid_attribute``; a missing required
    attribute is reported as ``missing_attribute``.
    """
    attrs: Dict[str, Any] = {}
    node_type = schema.node_type.value

    for spec in schema.attributes:
        key = spec.key
        if key not in node and spec.legacy_key and spec.legacy_key in node:
            key = spec.legacy_key
            attrs[spec.legacy_flag] = True

        if key not in node or node[key] is None:
            if spec.required:
                diagnostics.add(
                    DiagnosticCode.MISSING_ATTRIBUTE,
                    f"{node_type} node has no {spec.key!r}, using {spec.default!r}",
                    path=path,
                    node_type=node_type,
                    attribute=spec.key,
                    logger=logger,
                )
            if spec.default is not None:
                attrs[spec.attr] = spec.default
            continue

        ok, value = coerce_value(spec, node[key])
        if not ok:
            diagnostics.add(
                DiagnosticCode.INVALID_ATTRIBUTE,
                f"invalid {key!r} value {node[key]!r} on {node_type} node, "
                f"using {spec.default!r}",
                path=join_path(path, key),
                node_type=node_type,
                attribute=key,
                logger=logger,
            )
            value = spec.default
        if value is not None:
            attrs[spec.attr] = value

    if schema.padding is not None:
        attrs.update(_read_padding(schema, node, diagnostics, path))

    if schema.legacy_border:
        attrs.update(_read_legacy_border(schema, node, diagnostics, path))

    return attrs


def _read_padding(
    schema: NodeSchema, node: Dict[str, Any], diagnostics: Diagnostics, path: str
) -> Dict[str, Any]:
    spec = schema.padding
    vertical, horizontal = spec.default
    raw = node.get(spec.key)
    if raw is not None:
        parsed = parse_padding(raw)
        if parsed is None:
            diagnostics.add(
                DiagnosticCode.INVALID_ATTRIBUTE,
                f"invalid padding {raw!r} on {schema.node_type.value} node",
                path=join_path(path, spec.key),
                node_type=schema.node_type.value,
                attribute=spec.key,
                logger=logger,
            )
        else:
            vertical, horizontal = parsed
    return {spec.vertical_attr: vertical, spec.horizontal_attr: horizontal}


# Nested border entry -> (tree attribute, flat Elemental key)
_LEGACY_BORDER_FIELDS = (
    ("color", "borderColor", "border_color"),
    ("size", "borderWidth", "border_size"),
    ("radius", "borderRadius", "border_radius"),
)


def _read_legacy_border(
    schema: NodeSchema, node: Dict[str, Any], diagnostics: Diagnostics, path: str
) -> Dict[str, Any]:
    border = node.get("border")
    if border is None:
        return {}
    if not isinstance(border, dict):
        diagnostics.add(
            DiagnosticCode.INVALID_ATTRIBUTE,
            f"border must be an object, got {type(border).__name__}",
            path=join_path(path, "border"),
            node_type=schema.node_type.value,
            attribute="border",
            logger=logger,
        )
        return {}

    enabled = bool(border.get("enabled"))
    # The object is kept as read. Entries listed in legacyBorderKeys feed tree
    # attributes and are rewritten from them; the rest go back untouched.
    keys: List[str] = []
    attrs: Dict[str, Any] = {
        "legacyBorder": enabled,
        "legacyBorderRaw": dict(border),
        "legacyBorderKeys": keys,
    }
    if not enabled:
        return attrs

    for key, attr, flat_key in _LEGACY_BORDER_FIELDS:
        # A flat key on the node wins over the nested entry
        if border.get(key) is None or flat_key in node:
            continue
        if key == "color":
            if not isinstance(border[key], str):
                continue
            value = border[key]
        else:
            value = parse_px(border[key])
            if value is None:
                diagnostics.add(
                    DiagnosticCode.INVALID_ATTRIBUTE,
                    f"invalid border {key} {border[key]!r}",
                    path=join_path(path, "border", key),
                    node_type=schema.node_type.value,
                    attribute=f"border.{key}",
                    logger=logger,
                )
                continue
        attrs[attr] = value
        keys.append(key)
    return attrs


def write_attributes(
    schema: NodeSchema,
    attrs: Dict[str, Any],
    diagnostics: Optional[Diagnostics] = None,
    path: str = "",
) -> Dict[str, Any]:
    """
    Write a tree attribute bag back into Elemental attributes.

    An attribute is emitted when it is required or differs from its default,
    so repeated conversion of unchanged content always yields the same keys.
    Invalid tree values are reported and treated as the default.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    out: Dict[str, Any] = {}
    node_type = schema.node_type.value

    for spec in schema.attributes:
        value = attrs.get(spec.attr, spec.default)
        if value is None and spec.required:
            # An explicit null on a required attribute still writes the default
            diagnostics.add(
                DiagnosticCode.MISSING_ATTRIBUTE,
                f"{node_type} block has no {spec.attr!r}, using {spec.default!r}",
                path=join_path(path, "attrs", spec.attr),
                node_type=node_type,
                attribute=spec.attr,
                logger=logger,
            )
            value = spec.default
        if value is not None:
            ok, value = coerce_value(spec, value)
            if not ok:
                diagnostics.add(
                    DiagnosticCode.INVALID_ATTRIBUTE,
                    f"invalid {spec.attr!r} value {attrs.get(spec.attr)!r} on "
                    f"{node_type} block, using {spec.default!r}",
                    path=join_path(path, "attrs", spec.attr),
                    node_type=node_type,
                    attribute=spec.attr,
                    logger=logger,
                )
                value = spec.default
        if value is None:
            continue
        if not spec.required and value == spec.default:
            continue
        key = spec.legacy_key if spec.legacy_flag and attrs.get(spec.legacy_flag) else spec.key
        out[key] = encode_value(spec, value)

    if schema.padding is not None:
        spec = schema.padding
        vertical = attrs.get(spec.vertical_attr, spec.default[0])
        horizontal = attrs.get(spec.horizontal_attr, spec.default[1])
        vertical, horizontal = parse_px(vertical), parse_px(horizontal)
        if vertical is None or horizontal is None:
            diagnostics.add(
                DiagnosticCode.INVALID_ATTRIBUTE,
                f"invalid padding on {node_type} block",
                path=join_path(path, "attrs", spec.vertical_attr),
                node_type=node_type,
                attribute=spec.key,
                logger=logger,
            )
        elif (vertical, horizontal) != spec.default:
            out[spec.key] = format_padding(vertical, horizontal)

    if schema.legacy_border:
        _write_legacy_border(schema, attrs, out)

    return out


def _write_legacy_border(
    schema: NodeSchema, attrs: Dict[str, Any], out: Dict[str, Any]
) -> None:
    legacy = attrs.get("legacyBorder")
    if legacy is None:
        return
    raw = attrs.get("legacyBorderRaw")
    border: Dict[str, Any] = dict(raw) if isinstance(raw, dict) else {"enabled": bool(legacy)}
    if bool(border.get("enabled")) != bool(legacy):
        border["enabled"] = bool(legacy)

    for key, attr, flat_key in _LEGACY_BORDER_FIELDS:
        if key not in (attrs.get("legacyBorderKeys") or ()):
            continue
        # The value came from the nested object, so it goes back there only
        out.pop(flat_key, None)
        value = attrs.get(attr)
        if value is None:
            continue
        if key == "color":
            if isinstance(value, str):
                border[key] = value
            continue
        parsed = parse_px(value)
        if parsed is None or parsed == parse_px(border.get(key)):
            continue
        if key == "radius" and not schema.legacy_radius_px:
            border[key] = parsed
        else:
            border[key] = format_px(parsed)
    out["border"] = border


def read_common(node: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the node fields shared by every Elemental node type (locales, if, loop...)."""
    return {key: node[key] for key in COMMON_FIELDS if key in node}


def write_common(attrs: Dict[str, Any]) -> Dict[str, Any]:
    return {key: attrs[key] for key in COMMON_FIELDS if key in attrs}


# ---------------------------------------------------------------------------
# Canonical form
# ---------------------------------------------------------------------------

def canonicalize_elements(elements: List[Any]) -> List[Any]:
    """
    Return a copy of ``elements`` in canonical attribute form.

    Attributes at their schema default are removed, pixel values are written
    as "Npx" and padding in two-value form. Two content-node sequences are
    semantically equal when their canonical forms are equal; this is how
    round-trip fidelity is judged, since the tree -> Elemental direction
    omits default-valued attributes.
    """
    return [_canonical_node(node) for node in elements]


def _canonical_node(node: Any) -> Any:
    node_type = node_type_of(node)
    if node_type is None:
        return node

    schema = NODE_SCHEMAS[node_type]
    out = dict(node)
    for spec in schema.attributes:
        for key in (spec.key, spec.legacy_key):
            if not key or key not in out:
                continue
            ok, value = coerce_value(spec, out[key])
            if not ok:
                continue
            if value == spec.default and not spec.required:
                del out[key]
            else:
                out[key] = encode_value(spec, value)

    if schema.padding is not None and schema.padding.key in out:
        parsed = parse_padding(out[schema.padding.key])
        if parsed == schema.padding.default:
            del out[schema.padding.key]
        elif parsed is not None:
            out[schema.padding.key] = format_padding(*parsed)

    if node_type == NodeType.ACTION and out.get("align") == "center":
        del out["align"]

    if schema.children_key and isinstance(out.get(schema.children_key), list):
        out[schema.children_key] = canonicalize_elements(out[schema.children_key])
    return out
