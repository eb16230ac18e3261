#!/usr/bin/env python3
"""
Dev helper: check that an Elemental document survives the editor round trip.

Loads every channel of the document into the editing tree, converts it back
and compares the result with the stored elements after default-valued
attributes are stripped from both sides.

Usage
-----
# Check every channel in a document
python scripts/roundtrip_check.py path/to/content.json

# Only the email channel, printing the converted elements
python scripts/roundtrip_check.py path/to/content.json --channel email --show

Exit status is 0 when every checked channel round-trips, 1 when any channel
diverges and 2 when the file cannot be read.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from designer.services.channel_update import find_channel, list_channels
from designer.services.diagnostics import Diagnostics
from designer.services.schema import canonicalize_elements
from designer.services.to_elemental import to_elemental
from designer.services.to_tree import to_editing_tree


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

def _body(elements: List[Any]) -> List[Any]:
    """Channel elements without the meta node, which the title service owns."""
    return [node for node in elements if not (isinstance(node, dict) and node.get("type") == "meta")]


def check_channel(content: Dict[str, Any], channel: str, show: bool = False) -> bool:
    node = find_channel(content, channel) or {}
    original = _body(node.get("elements") or [])

    diagnostics = Diagnostics()
    converted = to_elemental(to_editing_tree(original, diagnostics=diagnostics), diagnostics=diagnostics)

    expected = canonicalize_elements(original)
    actual = canonicalize_elements(converted)
    ok = expected == actual

    symbol = "OK" if ok else "DIFF"
    print(f"\n[{symbol}] {channel}: {len(original)} nodes, {len(diagnostics)} diagnostics")
    for diagnostic in diagnostics:
        print(f"  - {diagnostic.code.value} at {diagnostic.path or '<root>'}: {diagnostic.message}")

    if not ok:
        for i, (before, after) in enumerate(zip(expected, actual)):
            if before != after:
                print(f"  node {i} differs:")
                print(f"    stored   : {json.dumps(before, sort_keys=True)}")
                print(f"    converted: {json.dumps(after, sort_keys=True)}")
        if len(expected) != len(actual):
            print(f"  node count differs: stored {len(expected)}, converted {len(actual)}")

    if show:
        print(json.dumps(converted, indent=2))
    return ok


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Round-trip an Elemental document through the editing tree.",
    )
    parser.add_argument("path", help="Path to an Elemental JSON document")
    parser.add_argument(
        "--channel",
        action="append",
        help="Channel to check (repeatable). Defaults to every channel in the document.",
    )
    parser.add_argument("--show", action="store_true", help="Print the converted elements")
    parser.add_argument("--verbose", action="store_true", help="Log converter warnings")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.verbose else logging.ERROR,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    path = Path(args.path)
    try:
        content = json.loads(path.read_text())
    except (OSError, ValueError) as exc:
        print(f"ERROR: Cannot read {path}: {exc}", file=sys.stderr)
        return 2

    channels = args.channel or list_channels(content)
    if not channels:
        print("ERROR: Document has no channels", file=sys.stderr)
        return 2

    results = [check_channel(content, channel, show=args.show) for channel in channels]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
