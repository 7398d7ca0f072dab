"""Regex import scanner for sources tree-sitter cannot make sense of.

Module specifiers are recovered with regular expressions so classification
still has import evidence for broken or exotic files.
"""

import logging
import re
from typing import List

from .base import relative_path
from .models import ParseError, ParseResult

logger = logging.getLogger(__name__)

_IMPORT_FROM = re.compile(r"""^\s*(?:import|export)\b[^'"`;]*?\bfrom\s*['"]([^'"]+)['"]""", re.MULTILINE)
_SIDE_EFFECT_IMPORT = re.compile(r"""^\s*import\s*['"]([^'"]+)['"]""", re.MULTILINE)
_REQUIRE = re.compile(r"""\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_DYNAMIC_IMPORT = re.compile(r"""\bimport\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_REFERENCE_TYPES = re.compile(r"""^\s*///\s*<reference\s+types=['"]([^'"]+)['"]""", re.MULTILINE)

_PATTERNS = (_IMPORT_FROM, _SIDE_EFFECT_IMPORT, _REQUIRE, _DYNAMIC_IMPORT, _REFERENCE_TYPES)


class FallbackParser:
    """Import scanner producing a ParseResult from pattern matches alone."""

    def parse_file(self, file_path: str, project_root: str = "") -> ParseResult:
        rel_path = relative_path(file_path, project_root)
        try:
            with open(file_path, "r", encoding="utf-8", errors="replace") as f:
                source_text = f.read()
        except OSError as e:
            logger.error(f"Cannot read {file_path}: {e}")
            return ParseResult(
                file_path=rel_path,
                language="unknown",
                errors=[ParseError(file_path=rel_path, line=0, message=str(e), severity="error")],
            )
        return self.parse_source(source_text, rel_path)

    def parse_source(self, source_text: str, file_path: str) -> ParseResult:
        return ParseResult(
            file_path=file_path,
            language="unknown",
            import_specifiers=self.scan_specifiers(source_text),
            line_count=len(source_text.splitlines()),
        )

    @staticmethod
    def scan_specifiers(source_text: str) -> List[str]:
        """Module specifiers in order of first appearance."""
        found = []
        for pattern in _PATTERNS:
            for match in pattern.finditer(source_text):
                found.append((match.start(), match.group(1)))
        found.sort()
        return list(dict.fromkeys(spec for _, spec in found))
