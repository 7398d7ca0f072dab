"""Extension-to-grammar lookup and directory filters for project walks."""

import os
import re
from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseLanguageParser

SUPPORTED_EXTENSIONS: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

TEST_FILE_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx"})

# login.cy.ts, login.spec.js, app.test.tsx, checkout.e2e.ts
_TEST_NAME_PATTERN = re.compile(r"\.(cy|spec|test|e2e)\.[jt]sx?$", re.IGNORECASE)

# Tooling output and vendored trees; dot-directories are skipped separately
SKIP_DIRECTORIES = frozenset({
    "node_modules",
    "bower_components",
    "dist",
    "build",
    "coverage",
    "out-tsc",
    "playwright-report",
    "test-results",
    ".git",
    ".hg",
    ".svn",
    ".next",
    ".nuxt",
    ".angular",
    ".cache",
})

# One parser instance per grammar, built on first request
_PARSERS: Dict[str, "BaseLanguageParser"] = {}


def detect_language(file_path: str) -> Optional[str]:
    """Grammar name for ``file_path``'s extension, or None."""
    return SUPPORTED_EXTENSIONS.get(os.path.splitext(file_path)[1].lower())


def _build_parser(language: str) -> "BaseLanguageParser":
    if language == "javascript":
        from .javascript_parser import JavaScriptParser
        return JavaScriptParser()
    if language == "typescript":
        from .typescript_parser import TypeScriptParser
        return TypeScriptParser()
    if language == "tsx":
        from .typescript_parser import TsxParser
        return TsxParser()
    known = ", ".join(sorted(set(SUPPORTED_EXTENSIONS.values())))
    raise ValueError(f"No parser for '{language}' (known: {known})")


def get_parser(language: str) -> "BaseLanguageParser":
    """Shared parser for a grammar name; raises ValueError for unknown names."""
    parser = _PARSERS.get(language)
    if parser is None:
        parser = _PARSERS[language] = _build_parser(language)
    return parser


def should_skip_directory(dir_name: str) -> bool:
    return dir_name.startswith(".") or dir_name in SKIP_DIRECTORIES


def is_test_file(file_path: str) -> bool:
    """True for ``.cy.``, ``.spec.``, ``.test.`` and ``.e2e.`` script files."""
    name = os.path.basename(file_path)
    if os.path.splitext(name)[1].lower() not in TEST_FILE_EXTENSIONS:
        return False
    return bool(_TEST_NAME_PATTERN.search(name))
