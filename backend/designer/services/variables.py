"""
Variable discovery for Elemental content.
"""

import re
from typing import Any, List, Set

VARIABLE_PATTERN = re.compile(r"\{\{\s*([^{}\s]+)\s*\}\}")


def _collect(value: Any, names: Set[str]) -> None:
    if isinstance(value, str):
        names.update(VARIABLE_PATTERN.findall(value))
    elif isinstance(value, list):
        for item in value:
            _collect(item, names)
    elif isinstance(value, dict):
        if value.get("type") == "variable" and isinstance(value.get("name"), str) and value["name"]:
            names.add(value["name"])
        for key, item in value.items():
            if key in ("type", "name"):
                continue
            _collect(item, names)


def extract_variables(content: Any) -> List[str]:
    """
    Return the sorted, unique variable names referenced by Elemental content.

    Accepts a full document, a single channel node or a list of content
    nodes. Finds variable nodes and runs, ``{{name}}`` placeholders in any
    string (content, href, src, ...), channel ``raw`` fields and ``locales``
    overrides.

    Example:
        >>> extract_variables([
        ...     {"type": "text", "content": "Hi {{first_name}}"},
        ...     {"type": "variable", "name": "order_id"},
        ... ])
        ['first_name', 'order_id']
    """
    names: Set[str] = set()
    _collect(content, names)
    return sorted(names)
