"""
Dual-belief composition.

An edge carries two independent beliefs: that the causal relationship exists
at all (epistemic) and that it is strong once it exists (aleatory). They
multiply with the base weight into one effective multiplier and never cancel
into negative or >1 territory.

Sampling takes its random draw as an argument, so the composer stays
deterministic and can be shared by parallel simulation workers.
"""

from __future__ import annotations

from .edges import EdgeData, clamp_unit
from .forms import evaluate
from .types import BeliefSample


def compute_effective_weight(
    base_weight: float,
    belief_exists: float,
    belief_strength: float,
) -> float:
    """
    Combine base weight and both beliefs into one effective weight.

    Each input is clamped to [0, 1] independently before multiplying, and
    the product is clamped again.

    Example:
        >>> compute_effective_weight(0.8, 0.5, 0.5)
        0.2
    """
    product = clamp_unit(base_weight) * clamp_unit(belief_exists) * clamp_unit(belief_strength)
    return clamp_unit(product)


def sample_dual_belief(
    belief_exists: float,
    belief_strength: float,
    random_draw: float,
) -> BeliefSample:
    """
    Draw whether a relationship is active for one simulation run.

    Args:
        belief_exists: Probability the relationship is real
        belief_strength: Strength to use when it is
        random_draw: Uniform draw in [0, 1) supplied by the caller

    Returns:
        BeliefSample with ``active = random_draw < belief_exists`` and the
        strength zeroed when inactive
    """
    active = random_draw < clamp_unit(belief_exists)
    return BeliefSample(active=active, strength=clamp_unit(belief_strength) if active else 0.0)


def compute_edge_effect(x: float, edge: EdgeData) -> float:
    """Output effect of one edge at input activation x."""
    shaped = evaluate(x, edge.function_type, edge.function_params)
    weight = compute_effective_weight(edge.weight, edge.belief_exists, edge.belief_strength)
    return clamp_unit(shaped * weight)
