"""
Functional form evaluator.

Maps a normalized input activation x in [0, 1] to a normalized output effect
in [0, 1] according to an edge's functional form. Every evaluator is pure and
total: x is clamped before evaluation, parameters are clamped to their
documented ranges, and the result is clamped on the way out.

Forms:
- linear: y = x
- diminishing_returns: y = x^c
- threshold: y = 0 below t, 1 at or above
- s_curve: sigmoid around a midpoint, rescaled to hit 0 and 1 at the ends
- logistic: y = sigmoid(scale * (2x - 1 + bias))
- noisy_or: y = 1 - (1 - leak)(1 - strength * x)
- noisy_and_not: y = base_rate * (1 - strength * x)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from .edges import FunctionParams, clamp_unit
from .types import FormValidation, FunctionType, UsageValidation

logger = logging.getLogger(__name__)

# Per-form parameter ranges and defaults, keyed by FunctionParams field name
FORM_CONSTRAINTS: dict[str, dict[str, dict[str, float]]] = {
    "linear": {},
    "diminishing_returns": {
        "curvature": {"min": 0.1, "max": 2.0, "step": 0.1, "default": 0.5},
    },
    "threshold": {
        "threshold": {"min": 0.0, "max": 1.0, "step": 0.05, "default": 0.5},
    },
    "s_curve": {
        "midpoint": {"min": 0.0, "max": 1.0, "step": 0.05, "default": 0.5},
        "steepness": {"min": 1.0, "max": 10.0, "step": 0.5, "default": 5.0},
    },
    "logistic": {
        "bias": {"min": -5.0, "max": 5.0, "step": 0.1, "default": 0.0},
        "scale": {"min": 0.1, "max": 20.0, "step": 0.1, "default": 4.0},
    },
    "noisy_or": {
        "strength": {"min": 0.0, "max": 1.0, "step": 0.05, "default": 1.0},
        "leak": {"min": 0.0, "max": 1.0, "step": 0.01, "default": 0.0},
    },
    "noisy_and_not": {
        "base_rate": {"min": 0.0, "max": 1.0, "step": 0.05, "default": 1.0},
        "strength": {"min": 0.0, "max": 1.0, "step": 0.05, "default": 1.0},
    },
}

# Wire names used in user-facing messages
_DISPLAY_NAMES = {"base_rate": "baseRate"}

# Node kinds whose activation is effectively on/off
BINARY_NODE_KINDS = frozenset({"risk", "outcome", "goal", "option", "action", "constraint"})

_FORM_ALIASES: dict[str, FunctionType] = {
    "linear": "linear",
    "proportional": "linear",
    "log": "diminishing_returns",
    "logarithmic": "diminishing_returns",
    "diminishing": "diminishing_returns",
    "diminishing_returns": "diminishing_returns",
    "step": "threshold",
    "binary": "threshold",
    "threshold": "threshold",
    "sigmoid": "s_curve",
    "s_curve": "s_curve",
    "scurve": "s_curve",
    "logistic": "logistic",
    "noisy_or": "noisy_or",
    "noisyor": "noisy_or",
    "or": "noisy_or",
    "noisy_and_not": "noisy_and_not",
    "noisyandnot": "noisy_and_not",
    "and_not": "noisy_and_not",
    "preventative": "noisy_and_not",
}


def normalize_form_type(raw: str | None) -> FunctionType:
    """
    Map a free-form name to a canonical functional form.

    Case, hyphens and spaces are ignored; unknown names fall back to linear.
    """
    if not raw or not isinstance(raw, str):
        return "linear"
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    return _FORM_ALIASES.get(key, "linear")


def _coerce_params(params: FunctionParams | Mapping[str, Any] | None) -> FunctionParams:
    if params is None:
        return FunctionParams()
    if isinstance(params, FunctionParams):
        return params
    try:
        return FunctionParams.model_validate(dict(params))
    except ValidationError:
        logger.debug("Ignoring malformed function params: %r", params)
        return FunctionParams()


def _param(params: FunctionParams, form: str, name: str) -> float:
    """Read a parameter, falling back to its default and clamping to range."""
    bounds = FORM_CONSTRAINTS[form][name]
    value = getattr(params, name)
    if value is None:
        return bounds["default"]
    return max(bounds["min"], min(bounds["max"], value))


def _sigmoid(z: float) -> float:
    z = max(-500.0, min(500.0, z))
    return 1.0 / (1.0 + math.exp(-z))


def _linear(x: float, params: FunctionParams) -> float:
    return x


def _diminishing_returns(x: float, params: FunctionParams) -> float:
    return x ** _param(params, "diminishing_returns", "curvature")


def _threshold(x: float, params: FunctionParams) -> float:
    return 0.0 if x < _param(params, "threshold", "threshold") else 1.0


def _s_curve(x: float, params: FunctionParams) -> float:
    midpoint = _param(params, "s_curve", "midpoint")
    steepness = _param(params, "s_curve", "steepness")
    low = _sigmoid(steepness * (0.0 - midpoint))
    high = _sigmoid(steepness * (1.0 - midpoint))
    return (_sigmoid(steepness * (x - midpoint)) - low) / (high - low)


def _logistic(x: float, params: FunctionParams) -> float:
    bias = _param(params, "logistic", "bias")
    scale = _param(params, "logistic", "scale")
    return _sigmoid(scale * (2.0 * x - 1.0 + bias))


def _noisy_or(x: float, params: FunctionParams) -> float:
    strength = _param(params, "noisy_or", "strength")
    leak = _param(params, "noisy_or", "leak")
    return 1.0 - (1.0 - leak) * (1.0 - strength * x)


def _noisy_and_not(x: float, params: FunctionParams) -> float:
    base_rate = _param(params, "noisy_and_not", "base_rate")
    strength = _param(params, "noisy_and_not", "strength")
    return base_rate * (1.0 - strength * x)


_EVALUATORS: dict[str, Callable[[float, FunctionParams], float]] = {
    "linear": _linear,
    "diminishing_returns": _diminishing_returns,
    "threshold": _threshold,
    "s_curve": _s_curve,
    "logistic": _logistic,
    "noisy_or": _noisy_or,
    "noisy_and_not": _noisy_and_not,
}


def evaluate(
    x: float,
    form: str = "linear",
    params: FunctionParams | Mapping[str, Any] | None = None,
) -> float:
    """
    Evaluate a functional form at input activation x.

    Args:
        x: Input activation; clamped to [0, 1] (NaN is treated as 0)
        form: Functional form name; aliases are normalized, unknown names
            evaluate as linear
        params: FunctionParams or a mapping of wire/field names

    Returns:
        Output effect in [0, 1]
    """
    x = 0.0 if math.isnan(x) else clamp_unit(x)
    if form not in _EVALUATORS:
        form = normalize_form_type(form)
    return clamp_unit(_EVALUATORS[form](x, _coerce_params(params)))


def validate_function_params(
    form: str,
    params: FunctionParams | Mapping[str, Any] | None,
) -> FormValidation:
    """
    Check a form's parameters against their documented ranges.

    Reports one message per out-of-range field. Never raises; the caller
    decides whether errors block a commit.
    """
    if form not in FORM_CONSTRAINTS:
        return FormValidation(valid=False, errors=[f"Unknown function type: {form}"])

    if params is None:
        return FormValidation(valid=True)

    if not isinstance(params, FunctionParams):
        try:
            params = FunctionParams.model_validate(dict(params))
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            ]
            return FormValidation(valid=False, errors=errors)

    errors = []
    for name, bounds in FORM_CONSTRAINTS[form].items():
        value = getattr(params, name)
        if value is None:
            continue
        if not bounds["min"] <= value <= bounds["max"]:
            display = _DISPLAY_NAMES.get(name, name)
            errors.append(
                f"{display} must be between {bounds['min']:g} and {bounds['max']:g}, got {value:g}"
            )

    return FormValidation(valid=not errors, errors=errors)


def validate_noisy_and_not_usage(
    source_kind: str | None,
    target_kind: str | None,
    form: str = "noisy_and_not",
) -> UsageValidation:
    """
    Advise whether a noisy-OR / noisy-AND-NOT edge connects binary-ish nodes.

    These forms treat activation as the probability of an on/off event, so
    they only read soundly between kinds like risk and outcome. A continuous
    kind such as factor yields a warning and a suggested fix. Soft check:
    evaluation is never blocked by the result.
    """
    offending = [
        kind or "unknown"
        for kind in (source_kind, target_kind)
        if kind not in BINARY_NODE_KINDS
    ]
    if not offending:
        return UsageValidation(valid=True)

    label = "Noisy-OR" if form == "noisy_or" else "Noisy-AND-NOT"
    kinds = " and ".join(f"'{kind}'" for kind in dict.fromkeys(offending))
    return UsageValidation(
        valid=False,
        warning=f"{label} assumes binary events, but {kinds} is not a binary node kind",
        suggestion=(
            "Use 'linear' or 'diminishing_returns' for continuous influences, "
            "or model the node as a risk or outcome"
        ),
    )
