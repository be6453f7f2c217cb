"""
Influence Engine: edge influence model and probability normalization.

Edge semantics and sibling probability rules for a visual decision graph:
- Versioned edge data with clamped unit-interval fields
- Functional forms mapping input activation to output effect
- Dual-belief composition (existence x strength)
- Schema migration for persisted snapshots
- Probability balancing and the 100% validation gate
"""

__version__ = "0.4.0"

# Data model
from .edges import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_EDGE_DATA,
    EDGE_CONSTRAINTS,
    EdgeData,
    FunctionParams,
    GraphEdge,
    GraphNode,
    NodeData,
    Snapshot,
    format_confidence,
    should_show_label,
)

# Functional forms
from .forms import (
    FORM_CONSTRAINTS,
    evaluate,
    normalize_form_type,
    validate_function_params,
    validate_noisy_and_not_usage,
)

# Dual belief
from .belief import compute_edge_effect, compute_effective_weight, sample_dual_belief

# Migration and import
from .migration import (
    MIGRATIONS,
    detect_version,
    import_snapshot,
    infer_node_type,
    migrate_snapshot,
)

# Balancing and validation
from .balancing import (
    apply_balanced_values,
    auto_balance,
    balance,
    equal_split,
    rows_from_edges,
)
from .validation import (
    PROBABILITY_TOLERANCE,
    find_invalid_sources,
    validate,
    validate_outgoing,
)

# Heuristics
from .suggestions import (
    FormSuggestion,
    check_suggestion_fit,
    infer_node_role,
    suggest_function_form,
)
from .thresholds import IdentifiedThreshold, identify_edge_thresholds

# Configuration and error capture
from .config import BalanceConfig, EngineConfig, ImportConfig
from .error_capture import (
    ErrorCapture,
    LoggingErrorCapture,
    RecordingErrorCapture,
    get_error_capture,
    set_error_capture,
)

# Types
from .types import (
    BalanceResult,
    BalanceRow,
    BeliefSample,
    FormValidation,
    FunctionType,
    InfluenceEngineError,
    MigrationError,
    SnapshotValidationError,
    UnrecognizedSnapshotError,
    UsageValidation,
    ValidationResult,
)

__all__ = [
    "__version__",
    # Data model
    "CURRENT_SCHEMA_VERSION",
    "DEFAULT_EDGE_DATA",
    "EDGE_CONSTRAINTS",
    "EdgeData",
    "FunctionParams",
    "GraphEdge",
    "GraphNode",
    "NodeData",
    "Snapshot",
    "format_confidence",
    "should_show_label",
    # Functional forms
    "FORM_CONSTRAINTS",
    "evaluate",
    "normalize_form_type",
    "validate_function_params",
    "validate_noisy_and_not_usage",
    # Dual belief
    "compute_edge_effect",
    "compute_effective_weight",
    "sample_dual_belief",
    # Migration and import
    "MIGRATIONS",
    "detect_version",
    "import_snapshot",
    "infer_node_type",
    "migrate_snapshot",
    # Balancing and validation
    "apply_balanced_values",
    "auto_balance",
    "balance",
    "equal_split",
    "rows_from_edges",
    "PROBABILITY_TOLERANCE",
    "find_invalid_sources",
    "validate",
    "validate_outgoing",
    # Heuristics
    "FormSuggestion",
    "check_suggestion_fit",
    "infer_node_role",
    "suggest_function_form",
    "IdentifiedThreshold",
    "identify_edge_thresholds",
    # Configuration and error capture
    "BalanceConfig",
    "EngineConfig",
    "ImportConfig",
    "ErrorCapture",
    "LoggingErrorCapture",
    "RecordingErrorCapture",
    "get_error_capture",
    "set_error_capture",
    # Types
    "BalanceResult",
    "BalanceRow",
    "BeliefSample",
    "FormValidation",
    "FunctionType",
    "InfluenceEngineError",
    "MigrationError",
    "SnapshotValidationError",
    "UnrecognizedSnapshotError",
    "UsageValidation",
    "ValidationResult",
]
