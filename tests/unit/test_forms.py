"""
Unit tests for the functional form evaluator.
"""

import math
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from influence_engine.edges import FunctionParams
from influence_engine.forms import (
    FORM_CONSTRAINTS,
    evaluate,
    normalize_form_type,
    validate_function_params,
    validate_noisy_and_not_usage,
)


class TestLinear:
    """Tests for the linear form."""

    def test_identity(self):
        """Linear returns its input."""
        for x in (0.0, 0.3, 1.0):
            assert evaluate(x) == pytest.approx(x)

    def test_input_clamped(self):
        """Out-of-range and NaN input is clamped before evaluation."""
        assert evaluate(-2.0) == 0.0
        assert evaluate(5.0) == 1.0
        assert evaluate(math.nan) == 0.0


class TestDiminishingReturns:
    """Tests for the diminishing returns form."""

    def test_square_root_curvature(self):
        """Curvature 0.5 is a square root."""
        assert evaluate(0.25, "diminishing_returns", {"curvature": 0.5}) == pytest.approx(0.5)

    def test_default_curvature(self):
        """Missing curvature defaults to 0.5."""
        assert evaluate(0.16, "diminishing_returns") == pytest.approx(0.4)

    def test_curvature_clamped_to_range(self):
        """Curvature below 0.1 evaluates as 0.1."""
        low = evaluate(0.5, "diminishing_returns", {"curvature": 0.01})
        assert low == pytest.approx(0.5**0.1)

    def test_endpoints(self):
        """Zero and one map to themselves."""
        assert evaluate(0.0, "diminishing_returns") == 0.0
        assert evaluate(1.0, "diminishing_returns") == 1.0


class TestThreshold:
    """Tests for the threshold form."""

    def test_step(self):
        """Below the threshold is 0, at or above is 1."""
        params = FunctionParams(threshold=0.6)
        assert evaluate(0.59, "threshold", params) == 0.0
        assert evaluate(0.6, "threshold", params) == 1.0
        assert evaluate(0.9, "threshold", params) == 1.0

    def test_default_threshold(self):
        """Default threshold is 0.5."""
        assert evaluate(0.49, "threshold") == 0.0
        assert evaluate(0.5, "threshold") == 1.0


class TestSCurve:
    """Tests for the s-curve form."""

    def test_midpoint_is_half(self):
        """A centred s-curve passes through 0.5 at its midpoint."""
        assert evaluate(0.5, "s_curve", {"midpoint": 0.5, "steepness": 5}) == pytest.approx(0.5)

    def test_rescaled_endpoints(self):
        """The curve reaches exactly 0 and 1 at the ends."""
        params = {"midpoint": 0.3, "steepness": 8}
        assert evaluate(0.0, "s_curve", params) == pytest.approx(0.0)
        assert evaluate(1.0, "s_curve", params) == pytest.approx(1.0)

    def test_monotonic(self):
        """Output rises with input."""
        values = [evaluate(x / 10, "s_curve") for x in range(11)]
        assert values == sorted(values)


class TestLogistic:
    """Tests for the logistic form."""

    def test_centre(self):
        """With zero bias the curve is 0.5 at x = 0.5."""
        assert evaluate(0.5, "logistic", {"bias": 0, "scale": 4}) == pytest.approx(0.5)

    def test_bias_shifts_up(self):
        """Positive bias raises the output."""
        assert evaluate(0.5, "logistic", {"bias": 1}) > 0.5

    def test_extreme_scale_stays_bounded(self):
        """Large arguments do not overflow."""
        assert evaluate(1.0, "logistic", {"bias": 5, "scale": 20}) == pytest.approx(1.0)
        assert evaluate(0.0, "logistic", {"bias": -5, "scale": 20}) == pytest.approx(0.0)


class TestNoisyOr:
    """Tests for the noisy-OR form."""

    def test_formula(self):
        """y = 1 - (1 - leak)(1 - strength * x)."""
        result = evaluate(0.5, "noisy_or", {"strength": 0.8, "leak": 0.1})
        assert result == pytest.approx(1 - 0.9 * 0.6)

    def test_leak_at_zero_input(self):
        """With no input the output equals the leak."""
        assert evaluate(0.0, "noisy_or", {"strength": 0.7, "leak": 0.05}) == pytest.approx(0.05)

    def test_full_strength_full_input(self):
        """Full strength at full input is certain regardless of leak."""
        assert evaluate(1.0, "noisy_or", {"strength": 1, "leak": 0.3}) == pytest.approx(1.0)

    def test_defaults_are_identity(self):
        """Full strength and no leak reduce to linear."""
        assert evaluate(0.4, "noisy_or") == pytest.approx(0.4)


class TestNoisyAndNot:
    """Tests for the noisy-AND-NOT form."""

    def test_formula(self):
        """y = base_rate * (1 - strength * x)."""
        result = evaluate(0.5, "noisy_and_not", {"baseRate": 0.8, "strength": 0.5})
        assert result == pytest.approx(0.8 * 0.75)

    def test_full_prevention(self):
        """Full-strength prevention at full input yields zero."""
        assert evaluate(1.0, "noisy_and_not") == pytest.approx(0.0)

    def test_no_input_gives_base_rate(self):
        """With no preventative input the output is the base rate."""
        assert evaluate(0.0, "noisy_and_not", {"base_rate": 0.6}) == pytest.approx(0.6)


class TestFormNames:
    """Tests for form name normalization."""

    def test_aliases(self):
        """Common names map to canonical forms."""
        assert normalize_form_type("Sigmoid") == "s_curve"
        assert normalize_form_type("s-curve") == "s_curve"
        assert normalize_form_type("step") == "threshold"
        assert normalize_form_type("Noisy OR") == "noisy_or"
        assert normalize_form_type("log") == "diminishing_returns"

    def test_unknown_falls_back_to_linear(self):
        """Unknown or empty names become linear."""
        assert normalize_form_type("quadratic") == "linear"
        assert normalize_form_type(None) == "linear"
        assert normalize_form_type("") == "linear"

    def test_evaluate_accepts_alias(self):
        """evaluate normalizes form names itself."""
        assert evaluate(0.3, "step", {"threshold": 0.2}) == 1.0
        assert evaluate(0.3, "unknown-form") == pytest.approx(0.3)

    def test_every_form_has_constraints(self):
        """Every canonical form has a constraints entry."""
        for name in ("linear", "diminishing_returns", "threshold", "s_curve", "logistic", "noisy_or", "noisy_and_not"):
            assert name in FORM_CONSTRAINTS


class TestValidateFunctionParams:
    """Tests for parameter range validation."""

    def test_valid_params(self):
        """In-range parameters pass."""
        result = validate_function_params("s_curve", {"midpoint": 0.4, "steepness": 6})
        assert result.valid is True
        assert result.errors == []

    def test_base_rate_out_of_range(self):
        """Out-of-range base rate reports its wire name."""
        result = validate_function_params("noisy_and_not", {"baseRate": 1.5, "strength": 0.5})

        assert result.valid is False
        assert result.errors == ["baseRate must be between 0 and 1, got 1.5"]

    def test_multiple_errors(self):
        """One message per bad field."""
        result = validate_function_params("logistic", {"bias": 9, "scale": 0})
        assert len(result.errors) == 2

    def test_unknown_form(self):
        """Unknown forms are invalid."""
        result = validate_function_params("cubic", {})
        assert result.valid is False
        assert result.errors == ["Unknown function type: cubic"]

    def test_none_params_valid(self):
        """No parameters means defaults, which are always valid."""
        assert validate_function_params("threshold", None).valid is True

    def test_non_numeric_param(self):
        """Malformed values are reported instead of raised."""
        result = validate_function_params("threshold", {"threshold": "high"})
        assert result.valid is False
        assert result.errors


class TestNoisyAndNotUsage:
    """Tests for the advisory node-kind check."""

    def test_binary_kinds_valid(self):
        """Risk to outcome is a sound use."""
        result = validate_noisy_and_not_usage("risk", "outcome")
        assert result.valid is True
        assert result.warning is None

    def test_continuous_kind_warns(self):
        """A factor endpoint produces a warning and a suggestion."""
        result = validate_noisy_and_not_usage("factor", "outcome")

        assert result.valid is False
        assert "'factor'" in result.warning
        assert "Noisy-AND-NOT" in result.warning
        assert result.suggestion

    def test_noisy_or_label(self):
        """The warning names the form being checked."""
        result = validate_noisy_and_not_usage("factor", "decision", form="noisy_or")
        assert result.warning.startswith("Noisy-OR")
        assert "'factor' and 'decision'" in result.warning

    def test_unknown_kind(self):
        """Missing kinds are treated as non-binary."""
        assert validate_noisy_and_not_usage(None, "risk").valid is False
