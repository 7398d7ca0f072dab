"""TypeScript and TSX grammars.

The import walk is shared with JavaScriptParser; only the grammar differs.
"""

import tree_sitter
import tree_sitter_typescript

from .javascript_parser import JavaScriptParser

_TS_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_typescript())
_TSX_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_tsx())


class TypeScriptParser(JavaScriptParser):
    language_name = "typescript"

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _TS_LANGUAGE


class TsxParser(TypeScriptParser):
    """TypeScript parser for ``.tsx`` component tests."""

    language_name = "tsx"

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _TSX_LANGUAGE
