"""Records produced by a project conversion run."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..complex_patterns.models import ConversionSummary

if TYPE_CHECKING:
    from ..classifier.models import ProjectAnalysis


@dataclass
class ConversionOutcome:
    """What happened to one converted file."""

    original_path: str
    converted_path: Optional[str] = None
    success: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    generated_code: Optional[str] = None
    conversion_summary: Optional[ConversionSummary] = None
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_path": self.original_path,
            "converted_path": self.converted_path,
            "success": self.success,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "generated_code": self.generated_code,
            "conversion_summary": self.conversion_summary.to_dict() if self.conversion_summary else None,
            "duration": round(self.duration, 4),
        }


@dataclass
class PerformanceMetrics:
    total_time: float = 0.0
    analysis_time: float = 0.0
    conversion_time: float = 0.0
    files_per_second: float = 0.0
    batches: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_time": round(self.total_time, 4),
            "analysis_time": round(self.analysis_time, 4),
            "conversion_time": round(self.conversion_time, 4),
            "files_per_second": round(self.files_per_second, 2),
            "batches": self.batches,
        }


@dataclass
class SelectiveConversionResult:
    """Aggregate result of ``SelectiveConverter.convert_project``.

    ``preserved_files``, ``skipped_files`` and ``mixed_files`` hold source
    paths relative to the project root. Page-object rewrites are reported in
    ``page_object_outcomes`` and do not count towards the conversion totals.
    """

    total_files_processed: int = 0
    successful_conversions: int = 0
    failed_conversions: int = 0
    preserved_files: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    mixed_files: List[str] = field(default_factory=list)
    outcomes: List[ConversionOutcome] = field(default_factory=list)
    page_object_outcomes: List[ConversionOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    generated_config: Optional[str] = None
    analysis: Optional["ProjectAnalysis"] = field(default=None, repr=False)

    @property
    def success(self) -> bool:
        return self.failed_conversions == 0 and not self.errors

    def add_outcome(self, outcome: ConversionOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.success:
            self.successful_conversions += 1
        else:
            self.failed_conversions += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files_processed": self.total_files_processed,
            "successful_conversions": self.successful_conversions,
            "failed_conversions": self.failed_conversions,
            "preserved_files": list(self.preserved_files),
            "skipped_files": list(self.skipped_files),
            "mixed_files": list(self.mixed_files),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "page_object_outcomes": [o.to_dict() for o in self.page_object_outcomes],
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "performance_metrics": self.performance_metrics.to_dict(),
            "generated_config": self.generated_config,
        }
