"""cy2pw AST parser: tree-sitter grammars for JS/TS test sources.

Public API:
    parse_file(path, project_root) -> ParseResult
    parse_source(source, file_path, language) -> ParseResult
    scan_imports(source, file_path) -> ImportScan
    detect_language(file_path) -> str | None
"""

import logging

from .fallback_parser import FallbackParser
from .models import ImportScan, ParseError, ParseResult
from .utils import (
    detect_language,
    get_parser,
    is_test_file,
    should_skip_directory,
)

logger = logging.getLogger(__name__)

__all__ = [
    "parse_file",
    "parse_source",
    "scan_imports",
    "detect_language",
    "get_parser",
    "is_test_file",
    "should_skip_directory",
    "ImportScan",
    "ParseError",
    "ParseResult",
]


def parse_file(file_path: str, project_root: str = "") -> ParseResult:
    """Summarise a source file: its import specifiers and syntax health.

    Unknown extensions go to the regex scanner.
    """
    language = detect_language(file_path)
    if language:
        return get_parser(language).parse_file(file_path, project_root)
    return FallbackParser().parse_file(file_path, project_root)


def parse_source(source_text: str, file_path: str, language: str | None = None) -> ParseResult:
    """Summarise source text. ``language`` defaults to detection from ``file_path``."""
    if language is None:
        language = detect_language(file_path)
    if language:
        return get_parser(language).parse_source(source_text, file_path)
    return FallbackParser().parse_source(source_text, file_path)


def scan_imports(source_text: str, file_path: str) -> ImportScan:
    """Collect import specifiers, structured parse first, regex second.

    A syntax error or parser failure never propagates: the regex scanner
    takes over and the scan is marked degraded.
    """
    language = detect_language(file_path) or "typescript"
    try:
        result = get_parser(language).parse_source(source_text, file_path)
    except Exception as e:
        logger.warning(f"Structured parse failed for {file_path}, using import scanner: {e}")
        return ImportScan(
            specifiers=FallbackParser.scan_specifiers(source_text),
            degraded=True,
            error=str(e),
        )

    if result.has_syntax_errors:
        logger.debug(f"Syntax errors in {file_path}, using import scanner")
        return ImportScan(
            specifiers=FallbackParser.scan_specifiers(source_text),
            degraded=True,
            error=result.errors[0].message if result.errors else None,
        )

    return ImportScan(specifiers=result.import_specifiers)
