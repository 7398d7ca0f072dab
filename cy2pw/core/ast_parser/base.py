"""Parser strategy base for the JavaScript-family grammars.

Each parser owns one tree-sitter grammar. ``parse_tree`` hands the raw
tree to the converters, which walk it themselves; ``parse_source``
summarises a file for classification.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Tuple

import tree_sitter

from .models import ParseError, ParseResult

logger = logging.getLogger(__name__)


def relative_path(file_path: str, project_root: str = "") -> str:
    """POSIX path of ``file_path`` below ``project_root`` (unchanged without a root)."""
    if not project_root:
        return file_path
    return os.path.relpath(file_path, project_root).replace(os.sep, "/")


class BaseLanguageParser(ABC):
    """A tree-sitter grammar plus the file summaries built on it.

    Subclasses provide the grammar and the import-specifier walk.
    """

    @abstractmethod
    def get_language(self) -> str:
        """Language identifier ('javascript', 'typescript', 'tsx')."""
        ...

    @abstractmethod
    def get_tree_sitter_language(self) -> tree_sitter.Language:
        ...

    @abstractmethod
    def extract_import_specifiers(self, tree: tree_sitter.Tree, source: bytes) -> List[str]:
        """Module names the file depends on, in first-seen order.

        Covers ES imports and re-exports, ``require()``/``import()`` calls
        and ``/// <reference types=...>`` directives.
        """
        ...

    def parse_tree(self, source_text: str) -> Tuple[tree_sitter.Tree, bytes]:
        """Parse source text; returns the tree and the byte buffer its offsets index."""
        source_bytes = source_text.encode("utf-8")
        parser = tree_sitter.Parser(self.get_tree_sitter_language())
        return parser.parse(source_bytes), source_bytes

    def parse_file(self, file_path: str, project_root: str = "") -> ParseResult:
        """Summarise a file on disk; an unreadable file gives an error entry."""
        rel_path = relative_path(file_path, project_root)
        try:
            with open(file_path, "r", encoding="utf-8", errors="replace") as f:
                source_text = f.read()
        except OSError as e:
            logger.warning(f"Cannot read {file_path}: {e}")
            return ParseResult(
                file_path=rel_path,
                language=self.get_language(),
                errors=[ParseError(file_path=rel_path, line=0, message=str(e), severity="error")],
            )
        return self.parse_source(source_text, rel_path)

    def parse_source(self, source_text: str, file_path: str) -> ParseResult:
        tree, source_bytes = self.parse_tree(source_text)
        result = ParseResult(
            file_path=file_path,
            language=self.get_language(),
            line_count=len(source_text.splitlines()),
            has_syntax_errors=tree.root_node.has_error,
        )
        if result.has_syntax_errors:
            result.errors.append(ParseError(
                file_path=file_path,
                line=self.first_error_line(tree.root_node),
                message="Source has syntax errors",
            ))

        try:
            result.import_specifiers = self.extract_import_specifiers(tree, source_bytes)
        except Exception as e:
            logger.warning(f"Failed to extract imports from {file_path}: {e}")
            result.errors.append(ParseError(
                file_path=file_path,
                line=0,
                message=f"Import extraction failed: {e}",
                severity="error",
            ))
        return result

    @staticmethod
    def first_error_line(root: tree_sitter.Node) -> int:
        """1-based line of the first ERROR or MISSING node."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node.start_point.row + 1
            if node.has_error:
                stack.extend(reversed(node.children))
        return 0
