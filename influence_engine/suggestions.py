"""
Heuristic functional-form suggestions.

Used when no model-backed suggestion is available: the source and target
node kinds and label keywords are matched against a few common causal
shapes (risks combining via noisy-OR, resources with diminishing returns,
adoption S-curves, compliance thresholds). Must be fast, so regexes only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from .edges import FunctionParams
from .forms import validate_noisy_and_not_usage
from .types import ConfidenceLevel, FunctionType

NodeRole = Literal[
    "cause",  # independent driver
    "effect",  # dependent outcome
    "risk",  # risk factor
    "resource",  # input that can be spent
    "threshold",  # pass/fail gate
    "adoption",  # growth/uptake curve
    "unknown",
]

_RISK = re.compile(r"\b(risk|threat|hazard|danger|failure)\b")
_THRESHOLD = re.compile(
    r"\b(compliance|regulatory|approval|certification|pass|fail|qualify|threshold)\b"
)
_ADOPTION = re.compile(r"\b(adoption|penetration|diffusion|growth|market.?share|uptake)\b")
_RESOURCE = re.compile(r"\b(budget|spend|investment|cost|resource|capacity|marketing|advertising)\b")
_EFFECT = re.compile(r"\b(outcome|result|revenue|profit|success|achievement)\b")
_CAUSE = re.compile(r"\b(factor|driver|influence|cause|input)\b")
_SATURATION = re.compile(r"\b(saturat\w*|diminish\w*|limit\w*|cap|ceiling|maximum)\b")


@dataclass
class FormSuggestion:
    """A recommended functional form for one edge."""

    function_type: FunctionType
    confidence: ConfidenceLevel
    rationale: str
    suggested_params: FunctionParams | None = None


def infer_node_role(label: str, node_kind: str | None = None) -> NodeRole:
    """Classify a node's causal role from its kind and label keywords."""
    text = (label or "").lower()

    if node_kind == "risk" or _RISK.search(text):
        return "risk"
    if _THRESHOLD.search(text):
        return "threshold"
    if _ADOPTION.search(text):
        return "adoption"
    if _RESOURCE.search(text):
        return "resource"
    if node_kind == "outcome" or _EFFECT.search(text):
        return "effect"
    if node_kind == "factor" or _CAUSE.search(text):
        return "cause"
    return "unknown"


def suggest_function_form(
    source_label: str,
    source_kind: str | None,
    target_label: str,
    target_kind: str | None,
) -> FormSuggestion:
    """
    Suggest a functional form for an edge from its endpoints.

    Falls back to linear with low confidence when nothing matches.
    """
    source = infer_node_role(source_label, source_kind)
    target = infer_node_role(target_label, target_kind)

    if source == "risk" and (target == "effect" or target_kind == "outcome"):
        return FormSuggestion(
            function_type="noisy_or",
            confidence="medium",
            rationale=(
                "Multiple risk factors combine via Noisy-OR: each independently "
                "contributes to failure probability"
            ),
            suggested_params=FunctionParams(strength=0.7, leak=0.05),
        )

    if source == "cause" and target == "effect":
        return FormSuggestion(
            function_type="noisy_or",
            confidence="low",
            rationale="Independent causes may combine via Noisy-OR when any can trigger the effect",
            suggested_params=FunctionParams(strength=0.6, leak=0.1),
        )

    if source == "resource":
        return FormSuggestion(
            function_type="diminishing_returns",
            confidence="medium",
            rationale="Resource investments typically show diminishing marginal returns",
            suggested_params=FunctionParams(curvature=0.5),
        )

    if target == "adoption":
        return FormSuggestion(
            function_type="s_curve",
            confidence="medium",
            rationale="Adoption typically follows an S-curve: slow start, rapid growth, saturation",
            suggested_params=FunctionParams(midpoint=0.5, steepness=5),
        )

    if target == "effect" and _SATURATION.search((target_label or "").lower()):
        return FormSuggestion(
            function_type="logistic",
            confidence="medium",
            rationale="Outcome shows saturation; logistic models the asymptotic limit",
            suggested_params=FunctionParams(bias=0, scale=4),
        )

    if source == "threshold" or target == "threshold":
        return FormSuggestion(
            function_type="threshold",
            confidence="medium",
            rationale="Compliance and regulatory requirements behave as pass/fail thresholds",
            suggested_params=FunctionParams(threshold=0.7),
        )

    if source == "risk" or target == "risk":
        return FormSuggestion(
            function_type="threshold",
            confidence="low",
            rationale="Risk factors are often safe below a threshold and dangerous above it",
            suggested_params=FunctionParams(threshold=0.5),
        )

    return FormSuggestion(
        function_type="linear",
        confidence="low",
        rationale=(
            "Linear relationship is the default when context is unclear. "
            "Consider adjusting based on domain knowledge."
        ),
    )


def check_suggestion_fit(
    function_type: str,
    source_kind: str | None,
    target_kind: str | None,
) -> str | None:
    """
    Return an advisory warning if a form reads oddly between two node kinds.

    Advisory only; never blocks applying the form.
    """
    if function_type in ("noisy_or", "noisy_and_not"):
        if target_kind in ("decision", "option"):
            return "Noisy-OR style forms combine causes into effects, not decision branches"
        usage = validate_noisy_and_not_usage(source_kind, target_kind, form=function_type)
        return usage.warning

    if function_type == "threshold" and source_kind == "decision" and target_kind == "outcome":
        return "Threshold functions are typically used for pass/fail gates, not decision outcomes"

    if function_type in ("s_curve", "logistic") and source_kind == "factor" and target_kind == "factor":
        return (
            "S-curve/logistic are typically used for saturation effects, "
            "not factor-to-factor relationships"
        )

    return None
