"""Data models for conversion validation and scoring."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_QUALITY_THRESHOLD = 0.85
CONVERSION_WEIGHT = 0.7
VALIDATION_WEIGHT = 0.3


@dataclass
class ValidationResult:
    """Structural check of one converted file."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    file_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class ExecutionResult:
    """Test-run counts reported by an external runner."""

    executable_tests: int = 0
    failing_tests: int = 0


@dataclass
class QualityMetrics:
    total_files: int
    converted_files: int
    conversion_rate: float
    validation_rate: float
    quality_score: float
    meets_threshold: bool
    threshold: float = DEFAULT_QUALITY_THRESHOLD
    error_categories: Dict[str, int] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "converted_files": self.converted_files,
            "conversion_rate": round(self.conversion_rate, 4),
            "validation_rate": round(self.validation_rate, 4),
            "quality_score": round(self.quality_score, 4),
            "meets_threshold": self.meets_threshold,
            "threshold": self.threshold,
            "error_categories": dict(self.error_categories),
            "recommendations": list(self.recommendations),
        }
