"""
Edge and snapshot data model.

EdgeData is the versioned record stored on every connection in the decision
graph. The four unit-interval fields (weight, both beliefs, confidence) are
clamped to [0, 1] on the way in, so a stored edge can never carry a negative
or >1 value. Wire format is camelCase; Python attributes are snake_case.

Example:
    >>> edge = EdgeData.model_validate({"beliefExists": 1.4, "weight": -0.2})
    >>> edge.belief_exists, edge.weight
    (1.0, 0.0)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import EdgeKind, EdgePathType, EdgeStyle, FunctionType, NodeKind

CURRENT_SCHEMA_VERSION = 4

MAX_EDGE_LABEL = 50
MAX_NODE_LABEL = 100
MAX_PROVENANCE = 100

# Inspector control ranges for the stored edge fields
EDGE_CONSTRAINTS: dict[str, dict[str, float]] = {
    "weight": {"min": 0, "max": 1, "step": 0.05, "default": 0.5},
    "curvature": {"min": 0, "max": 0.5, "step": 0.05, "default": 0.15},
    "confidence": {"min": 0, "max": 1, "step": 0.05, "default": 0.5},
    "belief_exists": {"min": 0, "max": 1, "step": 0.01, "default": 0.7},
    "belief_strength": {"min": 0, "max": 1, "step": 0.01, "default": 0.5},
}

_AUTO_PERCENT_LABEL = re.compile(r"^(\d+)%$")


def clamp_unit(value: float) -> float:
    """Clamp a value into [0, 1]."""
    return max(0.0, min(1.0, value))


def clamp_curvature(curvature: float) -> float:
    return max(0.0, min(0.5, curvature))


def _finite_or_raise(value: float, name: str) -> float:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {value}")
    return float(value)


class FunctionParams(BaseModel):
    """
    Parameters for the non-linear functional forms.

    Every field is optional; the evaluator falls back to each form's default.
    Legacy keys written by older editors (noisyOrStrength, logisticScale, ...)
    are accepted on input.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    threshold: float | None = None
    curvature: float | None = None
    midpoint: float | None = None
    steepness: float | None = None
    bias: float | None = Field(default=None, validation_alias=AliasChoices("bias", "logisticBias"))
    scale: float | None = Field(default=None, validation_alias=AliasChoices("scale", "logisticScale"))
    strength: float | None = Field(
        default=None, validation_alias=AliasChoices("strength", "noisyOrStrength")
    )
    leak: float | None = Field(default=None, validation_alias=AliasChoices("leak", "noisyOrLeak"))
    base_rate: float | None = Field(
        default=None,
        validation_alias=AliasChoices("baseRate", "base_rate"),
        serialization_alias="baseRate",
    )

    @field_validator("*", mode="after")
    @classmethod
    def _reject_non_finite(cls, value: float | None, info) -> float | None:
        if value is None:
            return None
        return _finite_or_raise(value, info.field_name)

    def to_dict(self) -> dict[str, float]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EdgeData(BaseModel):
    """
    Semantic and visual properties of one edge (schema version 4).

    Attributes:
        weight: Base influence strength (0-1)
        belief_exists: Probability the causal relationship is real (0-1)
        belief_strength: Probability it is strong, given it exists (0-1)
        function_type: How input activation maps to output effect
        function_params: Parameters for non-linear forms
        confidence: Share of a 100% sibling group for decision-probability edges
        kind: Semantic role; decides whether sibling-sum rules apply
        schema_version: Always the current version once validated
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Visual properties
    weight: float = 0.5
    style: EdgeStyle = "solid"
    curvature: float = 0.15
    path_type: EdgePathType = Field(default="bezier", alias="pathType")

    # Semantic properties
    kind: EdgeKind = "decision-probability"
    label: str | None = None
    confidence: float | None = None
    provenance: str | None = None

    # Dual belief
    belief_exists: float = Field(default=0.7, alias="beliefExists")
    belief_strength: float = Field(default=0.5, alias="beliefStrength")

    # Functional form
    function_type: FunctionType = Field(default="linear", alias="functionType")
    function_params: FunctionParams | None = Field(default=None, alias="functionParams")

    template_id: str | None = Field(default=None, alias="templateId")
    schema_version: Literal[4] = Field(default=CURRENT_SCHEMA_VERSION, alias="schemaVersion")

    # Clamp after coercion so string-encoded numbers ("1.5") are clamped too
    @field_validator("weight", "belief_exists", "belief_strength", "confidence", mode="after")
    @classmethod
    def _clamp_unit_fields(cls, value: float | None, info) -> float | None:
        if value is None:
            return None
        return clamp_unit(_finite_or_raise(value, info.field_name))

    @field_validator("curvature", mode="after")
    @classmethod
    def _clamp_curvature(cls, value: float) -> float:
        return clamp_curvature(_finite_or_raise(value, "curvature"))

    @field_validator("label", mode="before")
    @classmethod
    def _trim_label(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value[:MAX_EDGE_LABEL]
        return value

    @field_validator("provenance", mode="before")
    @classmethod
    def _trim_provenance(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value[:MAX_PROVENANCE]
        return value

    @property
    def effective_belief(self) -> float:
        """Product of the two belief dimensions."""
        return self.belief_exists * self.belief_strength

    @property
    def percent(self) -> float | None:
        """Confidence as a 0-100 percentage, if set."""
        if self.confidence is None:
            return None
        return self.confidence * 100

    def with_updates(self, **changes: Any) -> EdgeData:
        """
        Return a copy with the given fields replaced.

        Changes go through full validation, so clamping applies to inspector
        edits the same way it does to imported data.
        """
        data = self.model_dump()
        data.update(changes)
        return EdgeData.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire format."""
        return self.model_dump(by_alias=True, exclude_none=True)


DEFAULT_EDGE_DATA = EdgeData()


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class NodeData(BaseModel):
    """Node payload. Unknown keys are kept so imports round-trip."""

    model_config = ConfigDict(extra="allow")

    label: str = ""
    type: NodeKind | None = None

    @field_validator("label", mode="before")
    @classmethod
    def _trim_label(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value[:MAX_NODE_LABEL]
        return value


class GraphNode(BaseModel):
    id: str
    type: NodeKind
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)


class GraphEdge(BaseModel):
    id: str
    source: str
    target: str
    label: str | None = None
    data: EdgeData = Field(default_factory=EdgeData)


class Snapshot(BaseModel):
    """
    A persisted decision graph at the current schema version.

    Structural rules beyond field types: node and edge ids are unique and
    every edge endpoint names an existing node.
    """

    version: Literal[4] = CURRENT_SCHEMA_VERSION
    timestamp: int = 0
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_structure(self) -> Snapshot:
        node_ids = [node.id for node in self.nodes]
        if len(set(node_ids)) != len(node_ids):
            raise ValueError("duplicate node ids")
        edge_ids = [edge.id for edge in self.edges]
        if len(set(edge_ids)) != len(edge_ids):
            raise ValueError("duplicate edge ids")
        known = set(node_ids)
        for edge in self.edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in known:
                    raise ValueError(f"edge {edge.id} references unknown node {endpoint}")
        return self

    def outgoing(self, source_id: str) -> list[GraphEdge]:
        """Edges leaving a node, in stored order."""
        return [edge for edge in self.edges if edge.source == source_id]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# Display rules


@dataclass(frozen=True)
class LabelVisibility:
    show: bool
    is_custom: bool
    de_emphasize: bool


_HIDDEN = LabelVisibility(show=False, is_custom=False, de_emphasize=False)
_AUTO = LabelVisibility(show=True, is_custom=False, de_emphasize=True)


def format_confidence(confidence: float | None) -> str:
    """Format a 0-1 confidence as a whole percentage."""
    if confidence is None:
        return "Unknown"
    return f"{round(confidence * 100)}%"


def should_show_label(
    label: str | None,
    confidence: float | None,
    outgoing_edge_count: int,
    kind: EdgeKind = "decision-probability",
) -> LabelVisibility:
    """
    Decide whether an edge label is displayed.

    Custom text labels always show. Auto-generated percentages are shown
    de-emphasised, and hidden for a single outgoing edge (implicit 100%),
    for zero values, and for deterministic edges.
    """
    if not label and confidence is None:
        return _HIDDEN

    auto_match = _AUTO_PERCENT_LABEL.match(label) if label else None
    if label and not auto_match:
        return LabelVisibility(show=True, is_custom=True, de_emphasize=False)

    if kind == "deterministic":
        return _HIDDEN

    if kind == "influence-weight":
        # Influence weights show even on a single edge
        return _HIDDEN if confidence == 0 else _AUTO

    if auto_match and confidence is None:
        # Legacy edge: percentage only lives in the label
        if outgoing_edge_count == 1 or int(auto_match.group(1)) == 0:
            return _HIDDEN
        return _AUTO

    if outgoing_edge_count == 1 or confidence == 0 or confidence is None:
        return _HIDDEN

    return _AUTO
