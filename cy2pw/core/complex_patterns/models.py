"""Data models for whole-file Cypress → Playwright conversion."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..then_patterns.models import Complexity, PatternRecord


@dataclass
class CustomCommand:
    """A ``Cypress.Commands.add`` definition found in a support file."""

    name: str
    parameters: List[str] = field(default_factory=list)
    prev_subject: bool = False
    file_path: str = ""
    language: str = "typescript"
    # Callback node and the bytes of the file it was parsed from
    callback: Any = None
    source: bytes = b""

    @property
    def is_known(self) -> bool:
        return self.callback is not None


@dataclass
class ConversionSummary:
    total_patterns: int = 0
    converted_patterns: int = 0
    failed_patterns: int = 0
    manual_review_required: int = 0
    complexity_distribution: Dict[str, int] = field(
        default_factory=lambda: {c.value: 0 for c in Complexity}
    )

    @classmethod
    def from_patterns(cls, patterns: List[PatternRecord]) -> "ConversionSummary":
        summary = cls()
        for record in patterns:
            summary.total_patterns += 1
            if record.failed:
                summary.failed_patterns += 1
            else:
                summary.converted_patterns += 1
            if record.manual_review:
                summary.manual_review_required += 1
            summary.complexity_distribution[record.complexity.value] += 1
        return summary

    @classmethod
    def failed_file(cls) -> "ConversionSummary":
        """Summary of a file that could not be converted at all."""
        summary = cls(total_patterns=1, failed_patterns=1, manual_review_required=1)
        summary.complexity_distribution[Complexity.HIGH.value] = 1
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_patterns": self.total_patterns,
            "converted_patterns": self.converted_patterns,
            "failed_patterns": self.failed_patterns,
            "manual_review_required": self.manual_review_required,
            "complexity_distribution": dict(self.complexity_distribution),
        }


@dataclass
class FileConversionResult:
    """Outcome of converting one test file."""

    converted_code: str
    conversion_summary: ConversionSummary = field(default_factory=ConversionSummary)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    success: bool = True
    imports: List[str] = field(default_factory=list)
    review_reasons: List[str] = field(default_factory=list)
    custom_commands_used: List[str] = field(default_factory=list)
    file_path: Optional[str] = None

    @property
    def requires_manual_review(self) -> bool:
        return bool(self.review_reasons) or self.conversion_summary.manual_review_required > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "success": self.success,
            "conversion_summary": self.conversion_summary.to_dict(),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "imports": list(self.imports),
            "custom_commands_used": list(self.custom_commands_used),
        }

