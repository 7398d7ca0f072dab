"""AST parser data models.

Plain records describing what a parse learned about one file. The
converters work on tree-sitter trees directly; these summaries feed
classification.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ParseError:
    """A problem found while parsing a file."""

    file_path: str
    line: int
    message: str
    severity: str = "warning"  # "warning" | "error"


@dataclass
class ParseResult:
    """File-level parse summary: module dependencies and syntax health."""

    file_path: str
    language: str
    import_specifiers: List[str] = field(default_factory=list)  # "@playwright/test"
    line_count: int = 0
    has_syntax_errors: bool = False
    errors: List[ParseError] = field(default_factory=list)


@dataclass
class ImportScan:
    """Import evidence for one file.

    ``degraded`` is True when the structured parse failed and the
    specifiers came from the regex scanner instead.
    """

    specifiers: List[str]
    degraded: bool = False
    error: Optional[str] = None

    @property
    def fully_understood(self) -> bool:
        return not self.degraded
