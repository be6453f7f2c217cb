"""
Probability balancing for sibling edges.

Two policies for pushing the unlocked rows of a sibling group back to a 100%
total after the user edits one value:

- auto_balance: keep the unlocked rows' relative ratios
- equal_split: share the remainder evenly

Both round to a fixed step and still land on exactly 100. Locked rows are
echoed unchanged and take no part in the arithmetic. Impossible requests
(everything locked, or locked rows already over 100) return an error and the
original values; nothing is partially applied.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Sequence

from .config import BalanceConfig
from .edges import EdgeData
from .types import BalanceResult, BalanceRow

TOTAL_PERCENT = 100

# Float noise allowed when comparing the locked sum against 100
_EPSILON = 1e-9


def _tidy(value: float) -> float:
    """Collapse float noise so whole percentages come back as ints."""
    nearest = round(value)
    if abs(value - nearest) < _EPSILON:
        return int(nearest)
    return value


def _format(value: float) -> str:
    return f"{_tidy(round(value, 2))}"


def _round_to_step(value: float, step: float) -> float:
    # Half rounds up, matching what users see in a spinner
    return math.floor(value / step + 0.5) * step


def _check_balanceable(rows: Sequence[BalanceRow], step: float) -> str | None:
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    if not rows:
        return "There are no rows to balance."
    if all(row.locked for row in rows):
        return "All rows are locked. Unlock at least one row to balance."
    locked_sum = sum(row.value for row in rows if row.locked)
    if locked_sum > TOTAL_PERCENT + _EPSILON:
        return (
            f"Locked rows sum to {_format(locked_sum)}% (exceeds {TOTAL_PERCENT}%). "
            "Unlock some rows to continue."
        )
    return None


def auto_balance(rows: Sequence[BalanceRow], step: float = 5) -> BalanceResult:
    """
    Rescale unlocked rows to fill ``100 - locked`` while keeping their ratios.

    Each unlocked row's share of the unlocked total is applied to the
    remaining percentage and rounded to the nearest multiple of ``step``. The
    rounding remainder, positive or negative, goes to the unlocked row with
    the largest original value (the first one on ties). If every unlocked row
    is zero there are no ratios to keep and the remainder is shared equally.

    Example:
        >>> rows = [BalanceRow(40, locked=True), BalanceRow(30), BalanceRow(30)]
        >>> auto_balance(rows, step=5).values
        [40, 30, 30]
    """
    error = _check_balanceable(rows, step)
    if error:
        return BalanceResult(values=[row.value for row in rows], error=error)

    remaining = TOTAL_PERCENT - sum(row.value for row in rows if row.locked)
    unlocked = [i for i, row in enumerate(rows) if not row.locked]
    unlocked_total = sum(rows[i].value for i in unlocked)

    values: list[float] = [row.value for row in rows]
    for i in unlocked:
        if unlocked_total > 0:
            share = rows[i].value / unlocked_total
        else:
            share = 1 / len(unlocked)
        values[i] = _round_to_step(share * remaining, step)

    anchor = max(unlocked, key=lambda i: rows[i].value)
    values[anchor] += remaining - sum(values[i] for i in unlocked)

    if values[anchor] < 0:
        # Rounding overshot more than the anchor holds; take the rest from
        # the next largest rows so no value goes negative
        deficit = -values[anchor]
        values[anchor] = 0
        for i in sorted(unlocked, key=lambda i: values[i], reverse=True):
            taken = min(values[i], deficit)
            values[i] -= taken
            deficit -= taken
            if deficit <= 0:
                break

    return BalanceResult(values=[_tidy(v) for v in values])


def equal_split(rows: Sequence[BalanceRow], step: float = 5) -> BalanceResult:
    """
    Split ``100 - locked`` evenly across unlocked rows.

    Each unlocked row gets the even share floored to a multiple of ``step``;
    whatever the flooring leaves over is added to the last unlocked row.

    Example:
        >>> equal_split([BalanceRow(0), BalanceRow(0), BalanceRow(0)], step=5).values
        [30, 30, 40]
    """
    error = _check_balanceable(rows, step)
    if error:
        return BalanceResult(values=[row.value for row in rows], error=error)

    remaining = TOTAL_PERCENT - sum(row.value for row in rows if row.locked)
    unlocked = [i for i, row in enumerate(rows) if not row.locked]

    share = math.floor(remaining / (len(unlocked) * step) + _EPSILON) * step
    values: list[float] = [row.value for row in rows]
    for i in unlocked:
        values[i] = share
    values[unlocked[-1]] += remaining - share * len(unlocked)

    return BalanceResult(values=[_tidy(v) for v in values])


def balance(rows: Sequence[BalanceRow], config: BalanceConfig | None = None) -> BalanceResult:
    """Run the configured balancing strategy."""
    config = config or BalanceConfig()
    if config.strategy == "equal":
        return equal_split(rows, step=config.step)
    return auto_balance(rows, step=config.step)


# Edge bridge


def rows_from_edges(
    edges: Sequence[EdgeData],
    locked: Collection[int] = (),
) -> list[BalanceRow]:
    """
    Build the session rows for a sibling group.

    Args:
        edges: Sibling edges in display order
        locked: Indexes of rows the user has locked

    Returns:
        One row per edge, ``confidence * 100`` (unset counts as 0)
    """
    return [
        BalanceRow(
            value=_tidy(round(edge.confidence * 100, 6)) if edge.confidence is not None else 0,
            locked=i in locked,
        )
        for i, edge in enumerate(edges)
    ]


def apply_balanced_values(
    edges: Sequence[EdgeData],
    values: Sequence[float],
) -> list[EdgeData]:
    """
    Produce the updated edges for one batched write.

    Returns new EdgeData with ``confidence = value / 100``; the inputs are not
    modified. The caller commits the whole list as a single history entry.
    """
    if len(edges) != len(values):
        raise ValueError(f"Expected {len(edges)} values, got {len(values)}")
    return [edge.with_updates(confidence=value / 100) for edge, value in zip(edges, values)]
