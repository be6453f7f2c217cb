"""
Snapshot schema migration.

Persisted snapshots are upgraded one version at a time through an ordered
chain of pure steps (v1 -> v2 -> v3 -> v4). There is no downgrade path and no
step ever skips a version, so each step's defaulting rules can be tested on
their own.

Contains:
- detect_version: explicit tag, else a best-effort structural guess
- MIGRATIONS: the ordered step table
- migrate_snapshot: apply the chain up to a target version
- import_snapshot: detect, migrate, sanitize, validate; failures go to an
  ErrorCapture and the caller receives None
"""

from __future__ import annotations

import copy
import json
import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, get_args

from pydantic import ValidationError

from .config import ImportConfig
from .edges import (
    CURRENT_SCHEMA_VERSION,
    MAX_EDGE_LABEL,
    MAX_NODE_LABEL,
    MAX_PROVENANCE,
    Snapshot,
    clamp_unit,
)
from .error_capture import ErrorCapture, get_error_capture
from .forms import normalize_form_type
from .types import (
    InfluenceEngineError,
    MigrationError,
    NodeKind,
    SnapshotValidationError,
    UnrecognizedSnapshotError,
)

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = (1, 2, 3, 4)
NODE_KINDS = frozenset(get_args(NodeKind))

# Checked in order; first match wins, no match means "decision"
NODE_TYPE_KEYWORDS: list[tuple[re.Pattern[str], NodeKind]] = [
    (re.compile(r"\b(goal|target)", re.IGNORECASE), "goal"),
    (re.compile(r"\b(option|choice)", re.IGNORECASE), "option"),
    (re.compile(r"\b(risk|threat)", re.IGNORECASE), "risk"),
    (re.compile(r"\b(outcome|result)", re.IGNORECASE), "outcome"),
]

# Visual defaults attached to every edge by the v1 -> v2 step
V2_EDGE_DEFAULTS: dict[str, Any] = {"weight": 1, "style": "solid", "curvature": 0.15}

_SCRIPT_BLOCK = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]*>")


def infer_node_type(label: str | None) -> NodeKind:
    """
    Guess a node's semantic type from keywords in its label.

    Best-effort: a label with no recognized keyword is a decision.
    """
    if not isinstance(label, str):
        return "decision"
    for pattern, kind in NODE_TYPE_KEYWORDS:
        if pattern.search(label):
            return kind
    return "decision"


def _node_kind(value: Any) -> NodeKind | None:
    # Stored values may be any JSON type; only known kind strings count
    if isinstance(value, str) and value in NODE_KINDS:
        return value
    return None


def detect_version(snapshot: Any) -> int | None:
    """
    Determine which schema version a raw snapshot follows.

    An explicit integer ``version`` tag wins. Without one the guess is
    structural: an edge carrying a known ``data.schemaVersion`` (2-4) means
    that version, a node with a typed ``data.type`` means v2, bare
    nodes + edges lists mean v1.

    Returns:
        The version, or None when the payload is not recognizable
    """
    if not isinstance(snapshot, dict):
        return None

    if "version" in snapshot:
        version = snapshot["version"]
        if isinstance(version, int) and not isinstance(version, bool):
            return version if version in SUPPORTED_VERSIONS else None

    nodes = snapshot.get("nodes")
    edges = snapshot.get("edges")
    if not isinstance(nodes, list) or not isinstance(edges, list):
        return None

    edge_versions = [
        edge["data"].get("schemaVersion")
        for edge in edges
        if isinstance(edge, dict) and isinstance(edge.get("data"), dict)
    ]
    tagged = [v for v in edge_versions if v in (2, 3, 4) and not isinstance(v, bool)]
    if tagged:
        return max(tagged)

    for node in nodes:
        if isinstance(node, dict) and isinstance(node.get("data"), dict):
            if _node_kind(node["data"].get("type")):
                return 2

    return 1


# Migration steps


def _records(snapshot: dict[str, Any], key: str, step: str) -> list[dict[str, Any]]:
    records = snapshot.get(key, [])
    if not isinstance(records, list):
        raise MigrationError(step, f"'{key}' must be a list")
    for record in records:
        if not isinstance(record, dict):
            raise MigrationError(step, f"every entry in '{key}' must be an object")
        if "data" in record and record["data"] is not None and not isinstance(record["data"], dict):
            raise MigrationError(step, f"{key} entry {record.get('id')!r} has non-object data")
    return records


def _unit_number(value: Any, step: str, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise MigrationError(step, f"{field_name} must be a finite number, got {value!r}")
    return clamp_unit(float(value))


def _v1_to_v2(snapshot: dict[str, Any]) -> dict[str, Any]:
    step = "v1->v2"
    for node in _records(snapshot, "nodes", step):
        data = dict(node.get("data") or {})
        declared = _node_kind(data.get("type")) or _node_kind(node.get("type"))
        kind = declared or infer_node_type(data.get("label"))
        data["type"] = kind
        node["type"] = kind
        node["data"] = data

    for edge in _records(snapshot, "edges", step):
        data = {**V2_EDGE_DEFAULTS, **(edge.get("data") or {})}
        # Top-level label wins over one nested in data
        if edge.get("label") is not None:
            data["label"] = edge["label"]
        data["schemaVersion"] = 2
        edge["data"] = data
    return snapshot


def _v2_to_v3(snapshot: dict[str, Any]) -> dict[str, Any]:
    step = "v2->v3"
    for edge in _records(snapshot, "edges", step):
        data = dict(edge.get("data") or {})
        data.setdefault("pathType", "bezier")
        data.setdefault("kind", "decision-probability")
        data["functionType"] = normalize_form_type(data.get("functionType"))
        if data.get("belief") is not None:
            data["belief"] = _unit_number(data["belief"], step, "belief")
        if isinstance(data.get("provenance"), str):
            data["provenance"] = data["provenance"][:MAX_PROVENANCE]
        data["schemaVersion"] = 3
        edge["data"] = data
    return snapshot


def _v3_to_v4(snapshot: dict[str, Any]) -> dict[str, Any]:
    step = "v3->v4"
    for edge in _records(snapshot, "edges", step):
        data = dict(edge.get("data") or {})
        legacy = data.pop("belief", None)
        has_dual = "beliefExists" in data or "beliefStrength" in data
        if legacy is not None and not has_dual:
            # Fixed split: existence = sqrt(belief), strength = belief
            belief = _unit_number(legacy, step, "belief")
            data["beliefExists"] = math.sqrt(belief)
            data["beliefStrength"] = belief
        else:
            data.setdefault("beliefExists", 0.7)
            data.setdefault("beliefStrength", 0.5)
        data["schemaVersion"] = 4
        edge["data"] = data
    return snapshot


@dataclass(frozen=True)
class MigrationStep:
    """One upgrade in the chain."""

    from_version: int
    to_version: int
    description: str
    migrate: Callable[[dict[str, Any]], dict[str, Any]]

    @property
    def name(self) -> str:
        return f"v{self.from_version}->v{self.to_version}"


MIGRATIONS: tuple[MigrationStep, ...] = (
    MigrationStep(1, 2, "infer node types, attach edge visual defaults", _v1_to_v2),
    MigrationStep(2, 3, "add path type, kind and functional form", _v2_to_v3),
    MigrationStep(3, 4, "split legacy belief into existence and strength", _v3_to_v4),
)


def migrate_snapshot(
    snapshot: dict[str, Any],
    target_version: int = CURRENT_SCHEMA_VERSION,
) -> dict[str, Any]:
    """
    Upgrade a raw snapshot to ``target_version``.

    The input is never mutated. A snapshot already at the target comes back
    as an equal copy, so re-migration is idempotent.

    Raises:
        UnrecognizedSnapshotError: Version could not be detected
        MigrationError: Downgrade requested, or a step rejected the data
    """
    version = detect_version(snapshot)
    if version is None:
        raise UnrecognizedSnapshotError()
    if target_version not in SUPPORTED_VERSIONS:
        raise MigrationError(f"v{version}->v{target_version}", "unsupported target version")
    if target_version < version:
        raise MigrationError(f"v{version}->v{target_version}", "downgrade is not supported")

    result = copy.deepcopy(snapshot)
    result["version"] = version
    for step in MIGRATIONS:
        if step.from_version < version or step.to_version > target_version:
            continue
        logger.info("Migrating snapshot %s: %s", step.name, step.description)
        result = step.migrate(result)
        result["version"] = step.to_version
    return result


# Import


def sanitize_label(label: str, max_length: int, strip_html: bool = True) -> str:
    """Remove markup from a label and cap its length."""
    if strip_html:
        label = _HTML_TAG.sub("", _SCRIPT_BLOCK.sub("", label))
    return label[:max_length]


def sanitize_snapshot(snapshot: dict[str, Any], config: ImportConfig | None = None) -> dict[str, Any]:
    """
    Clean labels and editor internals out of a snapshot in place.

    Node data keys starting with ``__`` (framework bookkeeping) are dropped.
    Configured label limits above the stored caps fall back to the caps.
    """
    config = config or ImportConfig()
    node_limit = min(config.max_node_label, MAX_NODE_LABEL)
    edge_limit = min(config.max_edge_label, MAX_EDGE_LABEL)

    for node in snapshot.get("nodes") or []:
        data = node.get("data") if isinstance(node, dict) else None
        if not isinstance(data, dict):
            continue
        for key in [k for k in data if k.startswith("__")]:
            del data[key]
        if isinstance(data.get("label"), str):
            data["label"] = sanitize_label(data["label"], node_limit, config.strip_html)

    for edge in snapshot.get("edges") or []:
        if not isinstance(edge, dict):
            continue
        if isinstance(edge.get("label"), str):
            edge["label"] = sanitize_label(edge["label"], edge_limit, config.strip_html)
        data = edge.get("data")
        if isinstance(data, dict) and isinstance(data.get("label"), str):
            data["label"] = sanitize_label(data["label"], edge_limit, config.strip_html)

    return snapshot


def import_snapshot(
    raw: str | bytes | dict[str, Any],
    error_capture: ErrorCapture | None = None,
    config: ImportConfig | None = None,
) -> Snapshot | None:
    """
    Load a persisted snapshot as a current-version graph.

    Detects the version, validates in place when already current, otherwise
    migrates and then validates. Any failure rejects the whole snapshot: it
    is reported to ``error_capture`` (the process default when omitted) with
    ``component`` and ``migration_step`` tags, and None is returned.

    Args:
        raw: JSON text or an already-decoded object
        error_capture: Collaborator that receives failures
        config: Label sanitization settings

    Returns:
        Validated Snapshot, or None if the import failed
    """
    capture = error_capture or get_error_capture()
    step = "parse"
    version = None
    try:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw

        step = "detect"
        version = detect_version(payload)
        if version is None:
            raise UnrecognizedSnapshotError()

        if version == CURRENT_SCHEMA_VERSION:
            payload = copy.deepcopy(payload)
        else:
            step = "migrate"
            payload = migrate_snapshot(payload)

        step = "validate"
        payload = sanitize_snapshot(payload, config)
        try:
            return Snapshot.model_validate(payload)
        except ValidationError as e:
            raise SnapshotValidationError(_summarize(e)) from e

    # RecursionError: json.loads on very deeply nested input
    except (InfluenceEngineError, ValueError, TypeError, RecursionError) as e:
        failed_step = getattr(e, "step", step)
        logger.warning("Snapshot import rejected at %s: %s", failed_step, e)
        capture.capture(
            e,
            tags={"component": "snapshot_import", "migration_step": failed_step},
            extra={"detected_version": version},
        )
        return None


def _summarize(error: ValidationError, limit: int = 3) -> str:
    problems = [
        f"{'.'.join(str(part) for part in err['loc']) or 'snapshot'}: {err['msg']}"
        for err in error.errors()[:limit]
    ]
    more = error.error_count() - limit
    if more > 0:
        problems.append(f"... and {more} more")
    return "; ".join(problems)
