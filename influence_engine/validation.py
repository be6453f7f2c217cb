"""
Validation gate for sibling probability sums.

A set of percentages may be committed when it sums to 100 within a fixed
tolerance of one point, enough to absorb rounding from the balancer and from
independent per-row edits.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from .edges import GraphEdge
from .types import BalanceRow, ValidationResult

PROBABILITY_TOLERANCE = 1

_EPSILON = 1e-9


def validate(rows: Iterable[BalanceRow | float]) -> ValidationResult:
    """
    Check that percentages sum to 100 within tolerance.

    Args:
        rows: BalanceRows or bare percentages

    Example:
        >>> validate([60, 48])
        ValidationResult(valid=False, sum=108)
    """
    total = sum(row.value if isinstance(row, BalanceRow) else row for row in rows)
    total = round(total, 9)
    if total == int(total):
        total = int(total)
    return ValidationResult(valid=abs(total - 100) <= PROBABILITY_TOLERANCE + _EPSILON, sum=total)


def validate_outgoing(
    source_id: str,
    edges: Sequence[GraphEdge],
    touched: Collection[str] | None = None,
) -> ValidationResult:
    """
    Apply the sibling-sum rule to one node's outgoing decision edges.

    Only ``decision-probability`` edges count. A lone edge with no explicit
    confidence is an implicit 100%. When ``touched`` is given, a node the
    user has not edited whose edges are all unset or zero is treated as
    pristine and passes.
    """
    siblings = [
        edge
        for edge in edges
        if edge.source == source_id and edge.data.kind == "decision-probability"
    ]
    if not siblings:
        return ValidationResult(valid=True, sum=0)

    if len(siblings) == 1 and siblings[0].data.confidence is None:
        return ValidationResult(valid=True, sum=100)

    percents = [edge.data.percent or 0 for edge in siblings]
    if touched is not None and source_id not in touched and not any(percents):
        return ValidationResult(valid=True, sum=0)

    return validate(percents)


def find_invalid_sources(
    edges: Sequence[GraphEdge],
    touched: Collection[str] | None = None,
) -> dict[str, ValidationResult]:
    """Failing sibling groups keyed by source node id, in edge order."""
    invalid: dict[str, ValidationResult] = {}
    for source_id in dict.fromkeys(edge.source for edge in edges):
        result = validate_outgoing(source_id, edges, touched)
        if not result.valid:
            invalid[source_id] = result
    return invalid
