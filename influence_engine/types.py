"""
Shared type definitions for the influence engine.

Literal aliases for the closed vocabularies used across the engine, the small
result records returned by its pure functions, and the error hierarchy.
"""

from dataclasses import dataclass, field
from typing import Literal

# How an edge maps an input activation to an output effect
FunctionType = Literal[
    "linear",  # y = x
    "diminishing_returns",  # y = x^c
    "threshold",  # step at t
    "s_curve",  # rescaled sigmoid around a midpoint
    "noisy_or",  # additive cause with leak
    "noisy_and_not",  # preventative cause
    "logistic",  # sigmoid with bias/scale
]

FUNCTION_TYPES: tuple[str, ...] = (
    "linear",
    "diminishing_returns",
    "threshold",
    "s_curve",
    "noisy_or",
    "noisy_and_not",
    "logistic",
)

# Semantic role of an edge; decides whether sibling-sum rules apply
EdgeKind = Literal[
    "decision-probability",  # share of a 100% split from a decision
    "risk-likelihood",  # probability a risk occurs
    "influence-weight",  # strength of influence, no sum constraint
    "deterministic",  # always happens
]

EdgeStyle = Literal["solid", "dashed", "dotted"]

EdgePathType = Literal["bezier", "smoothstep", "straight"]

NodeKind = Literal[
    "goal",
    "decision",
    "option",
    "factor",
    "risk",
    "outcome",
    "action",
    "constraint",
]

# Heuristic confidence attached to suggestions and identified thresholds
ConfidenceLevel = Literal["high", "medium", "low"]

BalanceStrategy = Literal["auto", "equal"]


@dataclass(frozen=True)
class BalanceRow:
    """
    One sibling edge's percentage during an editing session.

    Lives only as long as the inspector session; never persisted and never
    copied onto EdgeData.
    """

    value: float
    locked: bool = False


@dataclass
class BalanceResult:
    """Outcome of a balancing pass. ``values`` echoes the input on error."""

    values: list[float]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ValidationResult:
    """Sum check over a set of percentages."""

    valid: bool
    sum: float

    @property
    def delta(self) -> float:
        """Signed distance from 100 (negative means a deficit)."""
        return self.sum - 100

    @property
    def message(self) -> str | None:
        """Banner text with the literal deficit or excess, or None when valid."""
        if self.valid:
            return None
        amount = _format_percent(abs(self.delta))
        if self.delta < 0:
            return f"Probabilities sum to {_format_percent(self.sum)}% ({amount}% short of 100%)"
        return f"Probabilities sum to {_format_percent(self.sum)}% ({amount}% over 100%)"


@dataclass
class FormValidation:
    """Field-level problems with a functional form's parameters."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class UsageValidation:
    """Advisory check of a form against the node kinds it connects."""

    valid: bool
    warning: str | None = None
    suggestion: str | None = None


@dataclass(frozen=True)
class BeliefSample:
    """One stochastic draw of a relationship's activation."""

    active: bool
    strength: float


def _format_percent(value: float) -> str:
    rounded = round(value, 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


# Influence engine error classes


class InfluenceEngineError(Exception):
    """Base class for influence engine errors."""

    pass


class MigrationError(InfluenceEngineError):
    """A migration step could not upgrade the snapshot."""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"Migration step {step} failed: {reason}")


class SnapshotValidationError(InfluenceEngineError):
    """A snapshot does not match the current schema after migration."""

    def __init__(self, reason: str, step: str = "validate"):
        self.step = step
        self.reason = reason
        super().__init__(f"Snapshot failed validation: {reason}")


class UnrecognizedSnapshotError(InfluenceEngineError):
    """The payload's schema version could not be detected."""

    def __init__(self):
        super().__init__("Unrecognized snapshot format: no version tag and no nodes/edges")
