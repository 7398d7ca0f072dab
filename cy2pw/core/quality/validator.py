"""Structural validation of generated Playwright files.

Two checks, both on the tree-sitter parse of the output:

- syntax: any ERROR or MISSING node makes the file invalid
- residue: ``cy.*`` / ``Cypress.*`` member access left in code

Comments and strings are not code, so TODO markers quoting the original
Cypress source never count as residue.
"""

import logging
import os
from typing import List

import tree_sitter

from ..ast_parser.nodes import iter_descendants, node_text
from ..ast_parser.utils import detect_language, get_parser
from .models import ValidationResult

logger = logging.getLogger(__name__)

RESIDUE_ROOTS = frozenset({"cy", "Cypress"})
MAX_REPORTED_ERRORS = 20


def validate_output(code: str, file_path: str = "") -> ValidationResult:
    """Validate one generated file's source text."""
    language = detect_language(file_path) or "typescript"
    tree, source = get_parser(language).parse_tree(code)
    errors: List[str] = []
    warnings: List[str] = []
    todos = 0

    for node in iter_descendants(tree.root_node):
        if node.is_missing:
            errors.append(f"Syntax error: missing {node.type} at line {node.start_point[0] + 1}")
        elif node.type == "ERROR":
            line, column = node.start_point
            errors.append(f"Syntax error at line {line + 1}, column {column + 1}")
        elif node.type == "comment":
            if "TODO" in node_text(node, source):
                todos += 1
        elif node.type == "member_expression":
            residue = _residue(node, source)
            if residue:
                errors.append(f"Unconverted Cypress code {residue} at line {node.start_point[0] + 1}")
        if len(errors) >= MAX_REPORTED_ERRORS:
            break

    if todos:
        warnings.append(f"{todos} TODO marker(s) need manual review")
    if ".spec." in os.path.basename(file_path) and "@playwright/test" not in code:
        warnings.append("Missing @playwright/test import")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings, file_path=file_path or None)


def validate_file(path: str) -> ValidationResult:
    """Validate a generated file on disk; unreadable files are invalid."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            code = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {path} for validation: {e}")
        return ValidationResult(is_valid=False, errors=[f"File could not be read: {e}"], file_path=path)
    return validate_output(code, path)


def _residue(node: tree_sitter.Node, source: bytes) -> str:
    obj = node.child_by_field_name("object")
    if obj is None or obj.type != "identifier" or node_text(obj, source) not in RESIDUE_ROOTS:
        return ""
    prop = node.child_by_field_name("property")
    return f"{node_text(obj, source)}.{node_text(prop, source)}"
