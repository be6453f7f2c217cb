#!/usr/bin/env python3
"""
Check a persisted decision-graph snapshot.

Imports the snapshot (migrating older versions), then reports every source
node whose outgoing decision probabilities do not sum to 100% and every
tipping point declared by an edge's functional form.

Exit status:
- 0: snapshot imported and all sibling groups are valid
- 1: snapshot imported but at least one sibling group is invalid
- 2: snapshot could not be imported

Usage:
    scripts/check_snapshot.py graph.json
    cat graph.json | scripts/check_snapshot.py --json
"""

import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from influence_engine.config import EngineConfig
from influence_engine.error_capture import RecordingErrorCapture
from influence_engine.migration import detect_version, import_snapshot
from influence_engine.thresholds import identify_edge_thresholds
from influence_engine.validation import find_invalid_sources


def check_snapshot(raw: str, as_json: bool = False) -> int:
    """Import, validate and report on one snapshot. Returns the exit status."""
    config = EngineConfig.load()
    capture = RecordingErrorCapture()

    snapshot = import_snapshot(raw, error_capture=capture, config=config.imports)
    if snapshot is None:
        event = capture.events[-1]
        if as_json:
            print(json.dumps({"imported": False, "error": event.message, "tags": event.tags}))
        else:
            print(f"Import failed at {event.tags.get('migration_step')}: {event.message}")
        return 2

    # Input parsed cleanly above, so detection cannot raise here
    source_version = detect_version(json.loads(raw))
    labels = {node.id: node.data.label for node in snapshot.nodes}
    invalid = find_invalid_sources(snapshot.edges)
    thresholds = identify_edge_thresholds(snapshot.edges, labels)

    if as_json:
        print(
            json.dumps(
                {
                    "imported": True,
                    "source_version": source_version,
                    "nodes": len(snapshot.nodes),
                    "edges": len(snapshot.edges),
                    "invalid_sources": {
                        node_id: {"sum": result.sum, "message": result.message}
                        for node_id, result in invalid.items()
                    },
                    "thresholds": [
                        {"edge_id": t.edge_id, "label": t.label, "value": t.threshold_value}
                        for t in thresholds
                    ],
                },
                indent=2,
            )
        )
    else:
        print(
            f"Imported v{source_version} snapshot: "
            f"{len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges"
        )
        for node_id, result in invalid.items():
            print(f"  {labels.get(node_id) or node_id}: {result.message}")
        for threshold in thresholds:
            print(f"  tipping point {threshold.label}: {threshold.description}")
        if not invalid:
            print("All probability groups sum to 100%")

    return 1 if invalid else 0


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Check a decision-graph snapshot")
    parser.add_argument("path", nargs="?", help="Snapshot JSON file (default: stdin)")
    parser.add_argument("--json", action="store_true", help="Emit a JSON report")
    parser.add_argument("--verbose", action="store_true", help="Log migration steps")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.path:
        raw = Path(args.path).read_text()
    else:
        raw = sys.stdin.read()

    return check_snapshot(raw, as_json=args.json)


if __name__ == "__main__":
    sys.exit(main())
