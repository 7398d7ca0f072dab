"""Project type analyzer.

Classifies every test-like file in a project tree by originating framework
and derives the conversion scope: what gets converted, what is preserved
verbatim, and which Cypress/Playwright pairs collide on output names.
"""

import logging
import os
import time
from collections import defaultdict
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Set, Tuple

from ..ast_parser import is_test_file, scan_imports, should_skip_directory
from .models import (
    ClassificationResult,
    Conflict,
    ConflictResolution,
    FileType,
    ProjectAnalysis,
    SourceFile,
)
from .patterns import (
    ANGULAR_CONFIDENCE,
    ANGULAR_MODULES,
    ANGULAR_PATTERNS,
    CONFLICT_SUFFIX,
    CYPRESS_CONFIDENCE,
    CYPRESS_MODULES,
    CYPRESS_NAME_BOOST,
    CYPRESS_PATTERNS,
    E2E_PATH_BOOST,
    MIXED_CONFIDENCE,
    PLAYWRIGHT_CONFIDENCE,
    PLAYWRIGHT_MODULES,
    PLAYWRIGHT_NAME_BOOST,
    PLAYWRIGHT_PATTERNS,
    Pattern,
)

logger = logging.getLogger(__name__)

# File types copied verbatim instead of converted
PRESERVED_TYPES = (
    FileType.ANGULAR_UNIT,
    FileType.PLAYWRIGHT_TEST,
    FileType.UNKNOWN,
    FileType.MIXED,
)


def _match(patterns: Tuple[Pattern, ...], text: str) -> Set[str]:
    return {label for label, regex in patterns if regex.search(text)}


def _module_matches(specifier: str, prefixes: Tuple[str, ...]) -> bool:
    return any(specifier == p or specifier.startswith(p) for p in prefixes)


class ProjectTypeAnalyzer:
    """Classifies test files and aggregates them into a ProjectAnalysis.

    Stateless between calls: classifying the same tree twice yields the
    same results.
    """

    def __init__(self, use_import_scan: bool = True):
        self.use_import_scan = use_import_scan

    # ── Single file ──────────────────────────────────────────────────

    def classify_file(self, source_file: SourceFile) -> ClassificationResult:
        """Classify one file from its content and path."""
        text = source_file.content
        cypress = _match(CYPRESS_PATTERNS, text)
        playwright = _match(PLAYWRIGHT_PATTERNS, text)
        angular = _match(ANGULAR_PATTERNS, text)

        degraded = False
        if self.use_import_scan:
            scan = scan_imports(text, source_file.path)
            degraded = scan.degraded
            for spec in scan.specifiers:
                if _module_matches(spec, CYPRESS_MODULES):
                    cypress.add(f"import:{spec}")
                elif _module_matches(spec, PLAYWRIGHT_MODULES):
                    playwright.add(f"import:{spec}")
                elif _module_matches(spec, ANGULAR_MODULES):
                    angular.add(f"import:{spec}")
            if degraded:
                logger.debug(f"Import evidence for {source_file.path} came from the regex scanner")

        indicators: Set[str] = cypress | playwright | angular

        if angular:
            file_type, confidence = FileType.ANGULAR_UNIT, ANGULAR_CONFIDENCE
        elif cypress and playwright:
            file_type, confidence = FileType.MIXED, MIXED_CONFIDENCE
        elif playwright:
            file_type, confidence = FileType.PLAYWRIGHT_TEST, PLAYWRIGHT_CONFIDENCE
        elif cypress:
            file_type, confidence = FileType.CYPRESS_E2E, CYPRESS_CONFIDENCE
        else:
            file_type, confidence = FileType.UNKNOWN, 0.0

        confidence += self._filename_boost(source_file.path, file_type, indicators)

        return ClassificationResult(
            path=source_file.path,
            file_type=file_type,
            confidence=round(min(1.0, confidence), 2),
            indicators=frozenset(indicators),
            import_scan_degraded=degraded,
        )

    def classify_path(self, path: str, root: str = "") -> ClassificationResult:
        """Read and classify a file. Unreadable files become Unknown."""
        abs_path = os.path.join(root, path) if root else path
        rel_path = os.path.relpath(abs_path, root).replace(os.sep, "/") if root else path
        try:
            source_file = read_source_file(abs_path, rel_path)
        except OSError as e:
            logger.warning(f"Cannot read {abs_path}: {e}")
            return ClassificationResult(
                path=rel_path,
                file_type=FileType.UNKNOWN,
                confidence=0.0,
                error=str(e),
            )
        return self.classify_file(source_file)

    @staticmethod
    def _filename_boost(path: str, file_type: FileType, indicators: Set[str]) -> float:
        name = PurePosixPath(path).name.lower()
        parts = PurePosixPath(path).parts[:-1]
        boost = 0.0
        if file_type == FileType.CYPRESS_E2E and ".cy." in name:
            boost += CYPRESS_NAME_BOOST
            indicators.add("filename:cy-infix")
        if file_type == FileType.PLAYWRIGHT_TEST and ".spec." in name:
            boost += PLAYWRIGHT_NAME_BOOST
            indicators.add("filename:spec-infix")
        if file_type in (FileType.CYPRESS_E2E, FileType.PLAYWRIGHT_TEST) and "e2e" in parts:
            boost += E2E_PATH_BOOST
            indicators.add("path:e2e")
        return boost

    # ── Project ──────────────────────────────────────────────────────

    def discover_test_files(self, root: str) -> List[str]:
        """Relative POSIX paths of test-like files, in deterministic order."""
        found: List[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not should_skip_directory(d))
            for filename in sorted(filenames):
                if not is_test_file(filename):
                    continue
                rel = os.path.relpath(os.path.join(dirpath, filename), root)
                found.append(rel.replace(os.sep, "/"))
        return found

    def analyze_project(self, root: str) -> ProjectAnalysis:
        """Classify every test file under ``root``.

        Raises:
            FileNotFoundError: If ``root`` is not a directory
        """
        if not os.path.isdir(root):
            raise FileNotFoundError(f"Source root does not exist: {root}")

        start = time.perf_counter()
        results: Dict[str, ClassificationResult] = {}
        for rel_path in self.discover_test_files(root):
            results[rel_path] = self.classify_path(rel_path, root)

        categorized: Dict[FileType, List[str]] = {file_type: [] for file_type in FileType}
        for rel_path, result in results.items():
            categorized[result.file_type].append(rel_path)

        candidates = list(categorized[FileType.CYPRESS_E2E])
        preserve = sorted(p for t in PRESERVED_TYPES for p in categorized[t])
        conflicts = self.detect_conflicts(categorized)
        elapsed = time.perf_counter() - start

        analysis = ProjectAnalysis(
            root=root,
            results=results,
            categorized=categorized,
            conversion_candidates=candidates,
            preserve_set=preserve,
            conflicts=conflicts,
            total_files=len(results),
            analysis_time=elapsed,
        )
        analysis.recommendations = self._recommendations(analysis)

        logger.info(
            f"Analyzed {analysis.total_files} test files in {elapsed:.2f}s: "
            f"{len(candidates)} to convert, {len(preserve)} to preserve, {len(conflicts)} conflicts"
        )
        return analysis

    @staticmethod
    def detect_conflicts(categorized: Dict[FileType, List[str]]) -> List[Conflict]:
        """Pair Cypress and Playwright files whose basenames collide.

        ``login.cy.ts`` and ``login.spec.ts`` both reduce to ``login.ts``.
        """
        playwright_by_key: Dict[str, List[str]] = defaultdict(list)
        for path in categorized.get(FileType.PLAYWRIGHT_TEST, []):
            playwright_by_key[conflict_key(path)].append(path)

        conflicts: List[Conflict] = []
        for cypress_path in categorized.get(FileType.CYPRESS_E2E, []):
            for playwright_path in playwright_by_key.get(conflict_key(cypress_path), []):
                conflicts.append(Conflict(
                    cypress_file=cypress_path,
                    playwright_file=playwright_path,
                    recommendation=ConflictResolution.RENAME,
                ))
        return conflicts

    @staticmethod
    def _recommendations(analysis: ProjectAnalysis) -> List[str]:
        recs: List[str] = []
        candidates = len(analysis.conversion_candidates)
        mixed = len(analysis.categorized[FileType.MIXED])
        unknown = len(analysis.categorized[FileType.UNKNOWN])
        if candidates:
            recs.append(f"{candidates} Cypress test file(s) will be converted to Playwright")
        else:
            recs.append("No Cypress test files found; nothing to convert")
        if mixed:
            recs.append(f"{mixed} mixed-framework file(s) will be preserved and need manual review")
        if analysis.conflicts:
            recs.append(f"{len(analysis.conflicts)} naming conflict(s) detected; rename one file of each pair")
        if unknown:
            recs.append(f"{unknown} test file(s) could not be attributed to a framework and will be preserved")
        return recs


def conflict_key(path: str) -> str:
    """Basename with the conventional test suffix removed."""
    return CONFLICT_SUFFIX.sub("", PurePosixPath(path).name).lower()


def read_source_file(abs_path: str, rel_path: Optional[str] = None) -> SourceFile:
    """Read a UTF-8 file into a SourceFile. Raises OSError when unreadable."""
    with open(abs_path, "r", encoding="utf-8", errors="replace") as f:
        content = f.read()
    return SourceFile(
        path=rel_path or abs_path,
        content=content,
        size_bytes=os.path.getsize(abs_path),
    )

