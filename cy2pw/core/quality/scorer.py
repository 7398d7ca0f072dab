"""Quality scoring for a project conversion.

    quality_score = 0.7 · conversion_rate + 0.3 · validation_rate

``conversion_rate`` is converted files over conversion candidates (1.0 when
there are none). ``validation_rate`` comes from the structural validation
pass and, when available, test-run counts; without a validation pass it
equals the conversion rate.
"""

import logging
from collections import Counter
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from ..classifier.models import FileType
from .models import (
    CONVERSION_WEIGHT,
    DEFAULT_QUALITY_THRESHOLD,
    VALIDATION_WEIGHT,
    ExecutionResult,
    QualityMetrics,
    ValidationResult,
)

if TYPE_CHECKING:
    from ..classifier.models import ProjectAnalysis
    from ..selective.models import SelectiveConversionResult

logger = logging.getLogger(__name__)

MIN_FILES_PER_SECOND = 10.0


def categorize_error(message: str) -> str:
    """Bucket an error message: syntax, import, type, conversion, missing or other."""
    text = message.lower()
    if "syntax" in text:
        return "syntax"
    if "import" in text:
        return "import"
    if "type" in text:
        return "type"
    if "cypress" in text or "convert" in text:
        return "conversion"
    if "missing" in text or "not found" in text:
        return "missing"
    return "other"


def validation_rate(results: Sequence[ValidationResult], execution: Optional[ExecutionResult] = None) -> float:
    """Share of valid files, averaged with the passing-test share when a run happened."""
    syntax_rate = sum(1 for r in results if r.is_valid) / len(results) if results else 1.0
    if execution is None or execution.executable_tests <= 0:
        return syntax_rate
    passing = max(execution.executable_tests - execution.failing_tests, 0)
    return (syntax_rate + passing / execution.executable_tests) / 2


def score(
    result: "SelectiveConversionResult",
    analysis: "ProjectAnalysis",
    validation: Optional[Sequence[ValidationResult]] = None,
    threshold: float = DEFAULT_QUALITY_THRESHOLD,
    execution: Optional[ExecutionResult] = None,
) -> QualityMetrics:
    """Score a finished conversion run against ``threshold``."""
    candidates = len(analysis.conversion_candidates)
    converted = result.successful_conversions
    conversion_rate = min(converted / candidates, 1.0) if candidates else 1.0

    if validation is None:
        valid_rate = conversion_rate
    else:
        valid_rate = validation_rate(validation, execution)
    quality_score = CONVERSION_WEIGHT * conversion_rate + VALIDATION_WEIGHT * valid_rate
    meets = quality_score >= threshold

    messages: List[str] = list(result.errors)
    for outcome in result.outcomes:
        messages.extend(outcome.errors)
    for check in validation or []:
        messages.extend(check.errors)
    categories = dict(Counter(categorize_error(m) for m in messages))

    metrics = QualityMetrics(
        total_files=result.total_files_processed,
        converted_files=converted,
        conversion_rate=conversion_rate,
        validation_rate=valid_rate,
        quality_score=quality_score,
        meets_threshold=meets,
        threshold=threshold,
        error_categories=categories,
    )
    metrics.recommendations = recommendations(metrics, result, analysis, validation)
    logger.info(
        f"Quality score {quality_score:.3f} (conversion {conversion_rate:.3f}, validation {valid_rate:.3f}); "
        f"threshold {threshold} {'met' if meets else 'not met'}"
    )
    return metrics


def recommendations(
    metrics: QualityMetrics,
    result: "SelectiveConversionResult",
    analysis: "ProjectAnalysis",
    validation: Optional[Iterable[ValidationResult]] = None,
) -> List[str]:
    recs: List[str] = []
    if not metrics.meets_threshold:
        recs.append(
            f"Quality score ({metrics.quality_score * 100:.1f}%) is below the {metrics.threshold * 100:.0f}% threshold. "
            "Review failed conversions and the TODO markers left for complex patterns."
        )
    mixed = len(analysis.categorized.get(FileType.MIXED, []))
    if mixed:
        recs.append(f"{mixed} file(s) contain mixed framework patterns. Manual review recommended.")
    if analysis.conflicts:
        recs.append(
            f"{len(analysis.conflicts)} naming conflict(s) detected. "
            "Rename converted files to avoid overwriting existing Playwright tests."
        )
    files_per_second = result.performance_metrics.files_per_second
    if result.total_files_processed and files_per_second < MIN_FILES_PER_SECOND:
        recs.append(
            f"Conversion throughput ({files_per_second:.1f} files/sec) is below optimal. "
            "Consider enabling parallel processing or increasing the batch size."
        )
    invalid = [v for v in validation or [] if not v.is_valid]
    if invalid:
        recs.append(f"{len(invalid)} converted file(s) failed structural validation. Review them before running the suite.")
    if metrics.meets_threshold and not invalid:
        recs.append("Conversion completed successfully. Run the converted suite and review complex scenarios manually.")
    return recs
