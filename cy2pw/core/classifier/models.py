"""Data models for file classification and project analysis."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class FileType(str, Enum):
    """Originating framework of a test file."""

    CYPRESS_E2E = "cypress-e2e"
    PLAYWRIGHT_TEST = "playwright-test"
    ANGULAR_UNIT = "angular-unit"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class ConflictResolution(str, Enum):
    """Recommended handling for two files that map to the same output name.

    Only ``RENAME`` is produced today.
    """

    RENAME = "rename"
    MERGE = "merge"
    SKIP = "skip"


@dataclass(frozen=True)
class SourceFile:
    """A test file read from disk. Immutable once read."""

    path: str  # Relative POSIX path within the project
    content: str
    size_bytes: int

    @classmethod
    def from_text(cls, path: str, content: str) -> "SourceFile":
        return cls(path=path, content=content, size_bytes=len(content.encode("utf-8")))


@dataclass(frozen=True)
class ClassificationResult:
    """Per-file verdict with its supporting evidence."""

    path: str
    file_type: FileType
    confidence: float
    indicators: FrozenSet[str] = frozenset()
    error: Optional[str] = None
    import_scan_degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "file_type": self.file_type.value,
            "confidence": self.confidence,
            "indicators": sorted(self.indicators),
            "error": self.error,
            "import_scan_degraded": self.import_scan_degraded,
        }


@dataclass(frozen=True)
class Conflict:
    """A Cypress file and a Playwright file that collide after suffix stripping."""

    cypress_file: str
    playwright_file: str
    recommendation: ConflictResolution = ConflictResolution.RENAME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cypress_file": self.cypress_file,
            "playwright_file": self.playwright_file,
            "recommendation": self.recommendation.value,
        }


@dataclass
class ProjectAnalysis:
    """Aggregate classification of a project tree. Read-only once built."""

    root: str
    results: Dict[str, ClassificationResult]
    categorized: Dict[FileType, List[str]]
    conversion_candidates: List[str]
    preserve_set: List[str]
    conflicts: List[Conflict] = field(default_factory=list)
    total_files: int = 0
    analysis_time: float = 0.0
    recommendations: List[str] = field(default_factory=list)

    @property
    def files_per_second(self) -> float:
        if self.analysis_time <= 0:
            return float(self.total_files)
        return self.total_files / self.analysis_time

    @property
    def conflicted_files(self) -> List[str]:
        files = []
        for conflict in self.conflicts:
            files.extend([conflict.cypress_file, conflict.playwright_file])
        return sorted(set(files))

    @property
    def summary(self) -> Dict[str, int]:
        return {file_type.value: len(paths) for file_type, paths in self.categorized.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "total_files": self.total_files,
            "summary": self.summary,
            "conversion_candidates": list(self.conversion_candidates),
            "preserve_set": list(self.preserve_set),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "files": [r.to_dict() for r in self.results.values()],
            "performance": {
                "analysis_time": round(self.analysis_time, 4),
                "files_per_second": round(self.files_per_second, 2),
            },
            "recommendations": list(self.recommendations),
        }
