"""cy2pw quality: structural validation of converted files and run scoring.

Public API:
    validate_output(code, path) → ValidationResult
    score(result, analysis, validation, threshold) → QualityMetrics
    categorize_error(message) → str
"""

from .models import (
    CONVERSION_WEIGHT,
    DEFAULT_QUALITY_THRESHOLD,
    VALIDATION_WEIGHT,
    ExecutionResult,
    QualityMetrics,
    ValidationResult,
)
from .scorer import categorize_error, recommendations, score, validation_rate
from .validator import validate_file, validate_output

__all__ = [
    "validate_output",
    "validate_file",
    "score",
    "recommendations",
    "validation_rate",
    "categorize_error",
    "CONVERSION_WEIGHT",
    "DEFAULT_QUALITY_THRESHOLD",
    "VALIDATION_WEIGHT",
    "ExecutionResult",
    "QualityMetrics",
    "ValidationResult",
]
