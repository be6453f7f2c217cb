"""
Property-based tests for functional forms, belief composition and balancing.
"""

import math
import sys
from pathlib import Path

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from influence_engine.balancing import auto_balance, equal_split
from influence_engine.belief import compute_effective_weight, sample_dual_belief
from influence_engine.forms import FORM_CONSTRAINTS, evaluate
from influence_engine.types import BalanceRow
from influence_engine.validation import validate

unit = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
any_real = st.floats(allow_nan=False, allow_infinity=False, min_value=-1e6, max_value=1e6)
forms = st.sampled_from(sorted(FORM_CONSTRAINTS))
params = st.fixed_dictionaries(
    {},
    optional={
        name: any_real
        for name in ("threshold", "curvature", "midpoint", "steepness", "bias", "scale", "strength", "leak", "base_rate")
    },
)

rows = st.lists(
    st.builds(BalanceRow, value=st.integers(min_value=0, max_value=100), locked=st.booleans()),
    min_size=1,
    max_size=8,
)
steps = st.sampled_from([1, 5, 10])


@pytest.mark.hypothesis
class TestFormProperties:
    """Property-based tests for the evaluator."""

    @given(unit)
    @settings(max_examples=100)
    def test_linear_identity(self, x: float):
        """Linear returns its input on [0, 1]."""
        assert evaluate(x, "linear") == x

    @given(st.floats(allow_nan=True, allow_infinity=True), forms, params)
    @settings(max_examples=300)
    def test_output_in_unit_interval(self, x: float, form: str, form_params: dict):
        """Every form is total and bounded for any input and parameters."""
        y = evaluate(x, form, form_params)
        assert 0.0 <= y <= 1.0

    @given(unit, unit, st.sampled_from(["linear", "diminishing_returns", "threshold", "s_curve", "logistic", "noisy_or"]), params)
    @settings(max_examples=200)
    def test_increasing_forms_monotonic(self, a: float, b: float, form: str, form_params: dict):
        """Activating forms never decrease as input rises."""
        low, high = min(a, b), max(a, b)
        assert evaluate(low, form, form_params) <= evaluate(high, form, form_params) + 1e-12

    @given(unit, unit, params)
    @settings(max_examples=100)
    def test_noisy_and_not_non_increasing(self, a: float, b: float, form_params: dict):
        """Preventative forms never increase as input rises."""
        low, high = min(a, b), max(a, b)
        assert evaluate(high, "noisy_and_not", form_params) <= evaluate(low, "noisy_and_not", form_params) + 1e-12

    @given(unit, unit)
    @settings(max_examples=100)
    def test_noisy_or_leak_at_zero(self, strength: float, leak: float):
        """With no input, noisy-OR yields exactly its leak."""
        result = evaluate(0.0, "noisy_or", {"strength": strength, "leak": leak})
        assert math.isclose(result, leak, abs_tol=1e-12)


@pytest.mark.hypothesis
class TestBeliefProperties:
    """Property-based tests for dual-belief composition."""

    @given(any_real, any_real)
    @settings(max_examples=100)
    def test_zero_existence_zero_weight(self, weight: float, strength: float):
        """No belief in existence means no effect."""
        assert compute_effective_weight(weight, 0.0, strength) == 0.0

    @given(any_real, any_real, any_real)
    @settings(max_examples=200)
    def test_effective_weight_bounded(self, weight: float, exists: float, strength: float):
        """The product never leaves [0, 1] and never exceeds the clamped weight."""
        result = compute_effective_weight(weight, exists, strength)
        assert 0.0 <= result <= 1.0
        assert result <= max(0.0, min(1.0, weight))

    @given(unit, unit, st.floats(min_value=0.0, max_value=1.0, exclude_max=True))
    @settings(max_examples=100)
    def test_sample_strength_consistent(self, exists: float, strength: float, draw: float):
        """Inactive samples have zero strength; active ones carry the belief."""
        sample = sample_dual_belief(exists, strength, draw)
        if sample.active:
            assert sample.strength == strength
        else:
            assert sample.strength == 0.0


@pytest.mark.hypothesis
class TestBalancingProperties:
    """Property-based tests for the balancer."""

    @given(rows, steps)
    @settings(max_examples=300)
    def test_auto_balance_sums_to_100(self, balance_rows, step):
        """A successful auto balance lands on exactly 100 with no negatives."""
        result = auto_balance(balance_rows, step=step)
        assume(result.ok)

        assert sum(result.values) == 100
        assert all(value >= 0 for value in result.values)
        assert validate(result.values).valid

    @given(rows, steps)
    @settings(max_examples=300)
    def test_equal_split_sums_to_100(self, balance_rows, step):
        """A successful equal split lands on exactly 100 with no negatives."""
        result = equal_split(balance_rows, step=step)
        assume(result.ok)

        assert sum(result.values) == 100
        assert all(value >= 0 for value in result.values)

    @given(rows, steps)
    @settings(max_examples=200)
    def test_locked_rows_unchanged(self, balance_rows, step):
        """Locked rows come back with their original values."""
        for strategy in (auto_balance, equal_split):
            result = strategy(balance_rows, step=step)
            for row, value in zip(balance_rows, result.values):
                if row.locked:
                    assert value == row.value

    @given(rows, steps)
    @settings(max_examples=200)
    def test_errors_exactly_when_unbalanceable(self, balance_rows, step):
        """Errors occur only when every row is locked or locked rows exceed 100."""
        locked_sum = sum(row.value for row in balance_rows if row.locked)
        impossible = all(row.locked for row in balance_rows) or locked_sum > 100

        result = auto_balance(balance_rows, step=step)

        assert (result.error is not None) == impossible
        if impossible:
            assert result.values == [row.value for row in balance_rows]

    @given(
        st.lists(
            st.floats(min_value=0.0, max_value=100.0, allow_nan=False),
            min_size=1,
            max_size=6,
        )
    )
    @settings(max_examples=100)
    def test_fractional_inputs_sum_close_to_100(self, values):
        """Fractional percentages still balance to 100."""
        result = auto_balance([BalanceRow(value) for value in values], step=5)
        assert math.isclose(sum(result.values), 100, abs_tol=1e-9)
