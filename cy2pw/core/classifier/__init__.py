"""File classification: which framework wrote each test file.

Public API:
    ProjectTypeAnalyzer().classify_file(source_file) → ClassificationResult
    ProjectTypeAnalyzer().analyze_project(root) → ProjectAnalysis
"""

from .analyzer import PRESERVED_TYPES, ProjectTypeAnalyzer, conflict_key, read_source_file
from .models import (
    ClassificationResult,
    Conflict,
    ConflictResolution,
    FileType,
    ProjectAnalysis,
    SourceFile,
)

__all__ = [
    "ClassificationResult",
    "Conflict",
    "ConflictResolution",
    "FileType",
    "PRESERVED_TYPES",
    "ProjectAnalysis",
    "ProjectTypeAnalyzer",
    "SourceFile",
    "conflict_key",
    "read_source_file",
]
