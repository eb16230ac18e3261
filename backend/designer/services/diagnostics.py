"""
Diagnostics collector shared by the conversion services.

Conversions never raise on bad content. Problems are recorded here as
Diagnostic models for the caller to inspect, and logged at WARNING through
the logger of the module that found them.
"""

import logging
from typing import Iterator, List, Optional

from designer.models.elemental import Diagnostic, DiagnosticCode


class Diagnostics:
    """Append-only list of Diagnostic records."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def add(
        self,
        code: DiagnosticCode,
        message: str,
        path: str = "",
        node_type: Optional[str] = None,
        attribute: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(
            code=code,
            message=message,
            path=path,
            node_type=node_type,
            attribute=attribute,
        )
        self._items.append(diagnostic)
        (logger or logging.getLogger(__name__)).warning(
            "%s at %s: %s", code.value, path or "<root>", message
        )
        return diagnostic

    @property
    def items(self) -> List[Diagnostic]:
        return list(self._items)

    def codes(self) -> List[DiagnosticCode]:
        return [d.code for d in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))


def join_path(path: str, *parts) -> str:
    """Extend a dotted diagnostic path, e.g. join_path("elements.2", "elements", 0)."""
    tail = ".".join(str(p) for p in parts)
    if not path:
        return tail
    if not tail:
        return path
    return f"{path}.{tail}"
