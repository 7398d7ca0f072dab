"""JavaScript grammar and import-specifier walk."""

import logging
import re
from typing import List

import tree_sitter
import tree_sitter_javascript

from .base import BaseLanguageParser
from .nodes import node_text, string_value

logger = logging.getLogger(__name__)

_JS_LANGUAGE = tree_sitter.Language(tree_sitter_javascript.language())

_REFERENCE_TYPES = re.compile(r"^///\s*<reference\s+types=[\"']([^\"']+)[\"']")

# Calls whose first string argument names a module
_MODULE_CALLS = ("require", "import")


class JavaScriptParser(BaseLanguageParser):
    """tree-sitter JavaScript parser (``.js``, ``.jsx``, ``.mjs``, ``.cjs``)."""

    language_name = "javascript"

    def get_language(self) -> str:
        return self.language_name

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _JS_LANGUAGE

    def extract_import_specifiers(self, tree: tree_sitter.Tree, source: bytes) -> List[str]:
        specifiers: List[str] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in ("import_statement", "export_statement"):
                value = string_value(node.child_by_field_name("source"), source)
                if value:
                    specifiers.append(value)
            elif node.type == "call_expression":
                value = self._module_call_specifier(node, source)
                if value:
                    specifiers.append(value)
            elif node.type == "comment":
                match = _REFERENCE_TYPES.match(node_text(node, source))
                if match:
                    specifiers.append(match.group(1))
            stack.extend(reversed(node.children))
        return list(dict.fromkeys(specifiers))

    @staticmethod
    def _module_call_specifier(node: tree_sitter.Node, source: bytes):
        function = node.child_by_field_name("function")
        if function is None or node_text(function, source) not in _MODULE_CALLS:
            return None
        args = node.child_by_field_name("arguments")
        if args is None or not args.named_children:
            return None
        return string_value(args.named_children[0], source)
