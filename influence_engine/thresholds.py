"""
Tipping-point identification from edge functional forms.

Threshold edges and s-curve edges have explicit points where a small change
in input produces a large change in effect. These are surfaced for
sensitivity displays.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from .edges import GraphEdge
from .types import ConfidenceLevel

# S-curves steeper than this are reported as sharp transitions
SHARP_STEEPNESS = 7


@dataclass
class IdentifiedThreshold:
    """
    A point where an edge's effect changes abruptly.

    Attributes:
        id: Stable identifier derived from the edge id
        kind: Which functional form produced it
        label: "Source → Target" using node labels when known
        description: Short human-readable summary
        threshold_value: Input level (0-1) where the change happens
        below_effect: What the target sees below the threshold
        above_effect: What the target sees above it
        confidence: How certain the identification is
        impact: Magnitude of the change at the threshold
        edge_id: Edge to highlight
    """

    id: str
    kind: Literal["threshold", "s_curve"]
    label: str
    description: str
    threshold_value: float
    below_effect: str
    above_effect: str
    confidence: ConfidenceLevel
    impact: ConfidenceLevel
    edge_id: str


def identify_edge_thresholds(
    edges: Sequence[GraphEdge],
    node_labels: Mapping[str, str] | None = None,
) -> list[IdentifiedThreshold]:
    """
    Find tipping points declared by edge functional forms.

    Only edges with an explicit ``threshold`` (threshold form) or
    ``midpoint`` (s-curve form) parameter are reported; defaults are not
    treated as a deliberate modelling choice.
    """
    labels = node_labels or {}
    found: list[IdentifiedThreshold] = []

    for edge in edges:
        params = edge.data.function_params
        if params is None:
            continue
        source = labels.get(edge.source) or edge.source
        target = labels.get(edge.target) or edge.target
        label = f"{source} → {target}"

        if edge.data.function_type == "threshold" and params.threshold is not None:
            found.append(
                IdentifiedThreshold(
                    id=f"edge-threshold-{edge.id}",
                    kind="threshold",
                    label=label,
                    description=f"Step change at {round(params.threshold * 100)}% threshold",
                    threshold_value=params.threshold,
                    below_effect=f"No effect on {target}",
                    above_effect=f"Full effect on {target}",
                    confidence="high",
                    impact="high",
                    edge_id=edge.id,
                )
            )

        elif edge.data.function_type == "s_curve" and params.midpoint is not None:
            steepness = params.steepness if params.steepness is not None else 5
            sharp = steepness > SHARP_STEEPNESS
            found.append(
                IdentifiedThreshold(
                    id=f"edge-scurve-{edge.id}",
                    kind="s_curve",
                    label=label,
                    description=f"S-curve transition around {round(params.midpoint * 100)}%",
                    threshold_value=params.midpoint,
                    below_effect=f"Gradual effect on {target}",
                    above_effect="Rapid transition then plateau",
                    confidence="high" if sharp else "medium",
                    impact="high" if sharp else "medium",
                    edge_id=edge.id,
                )
            )

    return found
