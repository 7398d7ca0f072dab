"""Selective conversion of a whole project.

Classifies the test tree, converts the Cypress E2E candidates in batches,
copies everything else verbatim and rewrites page-object files alongside.
Parallel mode fans each batch out over worker threads:

    batch → asyncio.gather(to_thread(convert) for file in batch) → merge

Each worker owns its MappingContext and its outcome; outcomes are merged
in submission order once the batch completes.
"""

import asyncio
import logging
import os
import posixpath
import re
import shutil
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..ast_parser import detect_language, is_test_file, should_skip_directory
from ..classifier import FileType, ProjectAnalysis, ProjectTypeAnalyzer, read_source_file
from ..complex_patterns.converter import ComplexPatternConverter
from ..complex_patterns.custom_commands import CustomCommandHandler, CustomCommandRegistry
from ..config import ConverterSettings
from ..constants import CYPRESS_PATH_PREFIXES, CYPRESS_SUFFIX, PLAYWRIGHT_SUFFIX
from ..mapping.models import MappingContext
from ..mapping.rules import DEFAULT_RULES, RuleSet
from ..page_objects.analyzer import is_page_object
from ..page_objects.transformer import PageObjectTransformer
from .models import ConversionOutcome, PerformanceMetrics, SelectiveConversionResult
from .playwright_config import write_playwright_config

logger = logging.getLogger(__name__)

_SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
_RELATIVE_SPECIFIER = re.compile(r"""(\bfrom\s+|\brequire\(\s*|\bimport\(\s*)(['"])(\.{1,2}/[^'"\n]+)\2""")


def _strip_extension(path: str) -> str:
    root, ext = posixpath.splitext(path)
    return root if ext in _SCRIPT_EXTENSIONS else path


def relink_imports(code: str, source_rel: str, output_path: str, moved: Dict[str, str]) -> str:
    """Point relative imports of moved files at their new location.

    Args:
        code: Converted source
        source_rel: POSIX path of the file relative to the source root
        output_path: Where the converted file is written
        moved: Source path without extension → output path without extension
    """
    if not moved:
        return code
    base = posixpath.dirname(source_rel)
    out_dir = os.path.dirname(output_path)

    def _replace(match: re.Match) -> str:
        target = _strip_extension(posixpath.normpath(posixpath.join(base, match.group(3))))
        new_location = moved.get(target)
        if new_location is None:
            return match.group(0)
        specifier = os.path.relpath(new_location, out_dir).replace(os.sep, "/")
        if not specifier.startswith("."):
            specifier = f"./{specifier}"
        return f"{match.group(1)}{match.group(2)}{specifier}{match.group(2)}"

    return _RELATIVE_SPECIFIER.sub(_replace, code)


@dataclass
class _Run:
    """Mutable state of one convert_project call, owned by the coordinating task."""

    source_root: str
    output_root: str
    analysis: ProjectAnalysis
    result: SelectiveConversionResult
    converter: ComplexPatternConverter
    targets: Dict[str, str] = field(default_factory=dict)
    pending: List[str] = field(default_factory=list)
    moved: Dict[str, str] = field(default_factory=dict)
    started: float = 0.0


class SelectiveConverter:
    """Converts the Cypress tests of a project and preserves everything else.

    Args:
        settings: Converter settings; defaults when omitted
        rules: Rule tables for the CommandMapper
        analyzer: File classifier
    """

    def __init__(
        self,
        settings: Optional[ConverterSettings] = None,
        rules: RuleSet = DEFAULT_RULES,
        analyzer: Optional[ProjectTypeAnalyzer] = None,
    ):
        self.settings = settings or ConverterSettings()
        self.rules = rules
        self.analyzer = analyzer or ProjectTypeAnalyzer()

    # ── Public API ───────────────────────────────────────────────────

    def convert_project(self, source_root: str, output_root: str) -> SelectiveConversionResult:
        """Convert a project tree into ``output_root``.

        Raises:
            FileNotFoundError: If ``source_root`` is not a directory
        """
        if self.settings.parallel:
            return asyncio.run(self.convert_project_async(source_root, output_root))

        run = self._prepare(source_root, output_root)
        for batch in self._batches(run):
            outcomes = [self._convert_candidate(run, rel) for rel in batch]
            self._merge(run, outcomes)
        return self._finish(run)

    async def convert_project_async(self, source_root: str, output_root: str) -> SelectiveConversionResult:
        """Convert a project tree, running each batch on worker threads."""
        run = self._prepare(source_root, output_root)
        semaphore = asyncio.Semaphore(self.settings.max_workers)

        async def _worker(rel: str) -> ConversionOutcome:
            async with semaphore:
                return await asyncio.to_thread(self._convert_candidate, run, rel)

        for batch in self._batches(run):
            outcomes = await asyncio.gather(*(_worker(rel) for rel in batch))
            self._merge(run, list(outcomes))
        return self._finish(run)

    def determine_output_path(self, path: str, source_root: str, output_root: str) -> str:
        """Output location of a converted file.

        Leading Cypress directories are dropped, the remaining directories
        mirrored under the output test directory (or dropped when
        ``preserve_structure`` is off) and ``.cy.`` becomes ``.spec.``.
        """
        rel = os.path.relpath(path, source_root) if os.path.isabs(path) else path
        rel = rel.replace(os.sep, "/")
        for prefix in CYPRESS_PATH_PREFIXES:
            if rel.startswith(prefix):
                rel = rel[len(prefix):]
                break
        name = posixpath.basename(rel).replace(CYPRESS_SUFFIX, PLAYWRIGHT_SUFFIX, 1)
        parts = posixpath.dirname(rel).split("/") if self.settings.preserve_structure else []
        return os.path.join(output_root, self.settings.output_dir, *[p for p in parts if p], name)

    def preserved_path(self, path: str, output_root: str) -> str:
        """Mirrored location of a file copied unchanged."""
        return os.path.join(output_root, *path.split("/"))

    # ── Preparation ──────────────────────────────────────────────────

    def _prepare(self, source_root: str, output_root: str) -> _Run:
        if not os.path.isdir(source_root):
            raise FileNotFoundError(f"Source root does not exist: {source_root}")

        started = time.perf_counter()
        analysis = self.analyzer.analyze_project(source_root)
        result = SelectiveConversionResult(total_files_processed=analysis.total_files, analysis=analysis)
        result.performance_metrics.analysis_time = analysis.analysis_time

        registry = CustomCommandRegistry()
        registry.scan_support_files(source_root, self.settings.support_dirs)

        run = _Run(
            source_root=source_root,
            output_root=output_root,
            analysis=analysis,
            result=result,
            converter=ComplexPatternConverter(self.rules, registry),
            started=started,
        )

        for conflict in analysis.conflicts:
            result.warnings.append(
                f"Naming conflict: {conflict.cypress_file} and {conflict.playwright_file} - "
                f"recommendation: {conflict.recommendation.value}"
            )

        taken: Set[str] = set()
        self._preserve(run, taken)
        if self.settings.convert_page_objects:
            self._convert_page_objects(run, registry, taken)
        self._plan_candidates(run, taken)
        return run

    def _preserve(self, run: _Run, taken: Set[str]) -> None:
        mixed = set(run.analysis.categorized.get(FileType.MIXED, []))
        for rel in run.analysis.preserve_set:
            target = self.preserved_path(rel, run.output_root)
            taken.add(os.path.normcase(os.path.abspath(target)))
            if rel in mixed:
                run.result.mixed_files.append(rel)
                run.result.warnings.append(f"Mixed framework file detected: {rel} - Manual review recommended")
            source = os.path.join(run.source_root, *rel.split("/"))
            try:
                if os.path.abspath(source) != os.path.abspath(target):
                    os.makedirs(os.path.dirname(target), exist_ok=True)
                    shutil.copy2(source, target)
                run.result.preserved_files.append(rel)
            except OSError as e:
                logger.error(f"Failed to preserve {rel}: {e}")
                run.result.errors.append(f"Failed to preserve {rel}: {e}")

    def _plan_candidates(self, run: _Run, taken: Set[str]) -> None:
        for rel in run.analysis.conversion_candidates:
            target = self._claim(self.determine_output_path(rel, run.source_root, run.output_root), taken)
            run.targets[rel] = target
            if self.settings.skip_existing and os.path.exists(target):
                run.result.skipped_files.append(rel)
                run.result.warnings.append(f"Skipped {rel}: {target} already exists")
                continue
            run.pending.append(rel)

    @staticmethod
    def _claim(target: str, taken: Set[str]) -> str:
        """Reserve ``target``, appending -2, -3, … to the name on collisions."""
        directory, name = os.path.split(target)
        stem, dot, rest = name.partition(".")
        candidate = target
        counter = 2
        while os.path.normcase(os.path.abspath(candidate)) in taken:
            candidate = os.path.join(directory, f"{stem}-{counter}{dot}{rest}")
            counter += 1
        if candidate != target:
            logger.info(f"Output name collision: {target} renamed to {candidate}")
        taken.add(os.path.normcase(os.path.abspath(candidate)))
        return candidate

    # ── Page objects ─────────────────────────────────────────────────

    def _find_page_objects(self, root: str) -> List[str]:
        """Relative POSIX paths of non-test files that declare Cypress page objects."""
        support = tuple(d.strip("/") + "/" for d in self.settings.support_dirs)
        found: List[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not should_skip_directory(d))
            for filename in sorted(filenames):
                if is_test_file(filename) or detect_language(filename) is None:
                    continue
                path = os.path.join(dirpath, filename)
                rel = os.path.relpath(path, root).replace(os.sep, "/")
                if rel.startswith(support):
                    continue
                try:
                    source_file = read_source_file(path, rel)
                except OSError as e:
                    logger.warning(f"Could not read {rel}: {e}")
                    continue
                if is_page_object(source_file.content):
                    found.append(rel)
        return found

    def _convert_page_objects(self, run: _Run, registry: CustomCommandRegistry, taken: Set[str]) -> None:
        transformer = PageObjectTransformer(self.rules)
        page_objects: Dict[str, Set[str]] = {}
        files = self._find_page_objects(run.source_root)
        targets = {rel: self._claim(self.determine_output_path(rel, run.source_root, run.output_root), taken)
                   for rel in files}
        for rel in files:
            run.moved[_strip_extension(rel)] = _strip_extension(targets[rel])

        for rel in files:
            start = time.perf_counter()
            target = targets[rel]
            outcome = ConversionOutcome(original_path=rel)
            try:
                source_file = read_source_file(os.path.join(run.source_root, *rel.split("/")), rel)
                ctx = self._context()
                ctx.custom_command_hook = CustomCommandHandler(registry, rules=self.rules)
                transformed = transformer.transform(source_file.content, rel, ctx)
                page_objects.update(transformed.class_async_methods)
                code = relink_imports(transformed.converted_code, rel, target, run.moved)
                outcome.success = transformed.success
                outcome.errors.extend(transformed.errors)
                outcome.warnings.extend(transformed.warnings)
                if outcome.success:
                    self._write(target, code)
                    outcome.converted_path = target
                if self.settings.keep_generated_code:
                    outcome.generated_code = code
            except Exception as e:
                logger.error(f"Failed to transform page object {rel}: {e}")
                outcome.success = False
                outcome.errors.append(f"Failed to transform page object {rel}: {e}")
            outcome.duration = time.perf_counter() - start
            run.result.page_object_outcomes.append(outcome)

        run.converter.page_objects.update(page_objects)
        if files:
            logger.info(f"Transformed {len(files)} page-object files ({len(page_objects)} classes)")

    # ── Conversion ───────────────────────────────────────────────────

    def _context(self) -> MappingContext:
        return MappingContext(test_id_attribute=self.settings.test_id_attribute)

    def _batches(self, run: _Run):
        size = self.settings.batch_size
        for index in range(0, len(run.pending), size):
            run.result.performance_metrics.batches += 1
            batch = run.pending[index:index + size]
            logger.debug(f"Converting batch {run.result.performance_metrics.batches} ({len(batch)} files)")
            yield batch

    def _convert_candidate(self, run: _Run, rel: str) -> ConversionOutcome:
        """Convert and write one test file. Never raises."""
        start = time.perf_counter()
        target = run.targets[rel]
        outcome = ConversionOutcome(original_path=rel)
        try:
            source_file = read_source_file(os.path.join(run.source_root, *rel.split("/")), rel)
            converted = run.converter.convert_file(source_file.content, rel, self._context())
            code = relink_imports(converted.converted_code, rel, target, run.moved)
            outcome.success = converted.success
            outcome.errors.extend(converted.errors)
            outcome.warnings.extend(converted.warnings)
            outcome.conversion_summary = converted.conversion_summary
            if converted.success:
                self._write(target, code)
                outcome.converted_path = target
            if self.settings.keep_generated_code:
                outcome.generated_code = code
        except Exception as e:
            logger.error(f"Failed to convert {rel}: {e}")
            outcome.success = False
            outcome.errors.append(f"Failed to convert {rel}: {e}")
        outcome.duration = time.perf_counter() - start
        return outcome

    @staticmethod
    def _write(target: str, code: str) -> None:
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(code)

    @staticmethod
    def _merge(run: _Run, outcomes: List[ConversionOutcome]) -> None:
        for outcome in outcomes:
            run.result.add_outcome(outcome)
            if not outcome.success:
                logger.warning(f"Conversion of {outcome.original_path} failed: {'; '.join(outcome.errors)}")

    def _finish(self, run: _Run) -> SelectiveConversionResult:
        result = run.result
        if self.settings.generate_config and run.analysis.conversion_candidates:
            self._write_config(run)
        metrics: PerformanceMetrics = result.performance_metrics
        metrics.total_time = time.perf_counter() - run.started
        metrics.conversion_time = max(metrics.total_time - metrics.analysis_time, 0.0)
        if metrics.total_time > 0:
            metrics.files_per_second = result.total_files_processed / metrics.total_time
        logger.info(
            f"Converted {result.successful_conversions}/{len(run.analysis.conversion_candidates)} Cypress files "
            f"({result.failed_conversions} failed, {len(result.skipped_files)} skipped, "
            f"{len(result.preserved_files)} preserved) in {metrics.total_time:.2f}s"
        )
        return result

    def _write_config(self, run: _Run) -> None:
        typescript = any(rel.endswith((".ts", ".tsx")) for rel in run.analysis.conversion_candidates)
        try:
            run.result.generated_config = write_playwright_config(
                run.output_root,
                self.settings.browsers,
                self.settings.output_dir,
                typescript,
                self.settings.test_id_attribute,
            )
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write Playwright config: {e}")
            run.result.errors.append(f"Failed to write Playwright config: {e}")
