"""Whole-file Cypress test conversion.

Composes the command mapper, the callback flattener and the handlers of
this package: test structure, custom commands and intercept handlers.
Cypress imports and reference directives are replaced by the Playwright
Test import; other imports (page objects, fixtures, helpers) are kept.

Usage:
    converter = ComplexPatternConverter()
    result = converter.convert_file(source_text, "cypress/e2e/login.cy.ts")
    print(result.converted_code)
    print(result.conversion_summary.to_dict())
"""

import dataclasses
import logging
import re
from typing import Dict, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.nodes import node_text, statement_children
from ..ast_parser.utils import detect_language, get_parser
from ..mapping.command_mapper import CommandMapper
from ..mapping.models import MappingContext
from ..mapping.rules import DEFAULT_RULES, RuleSet
from ..then_patterns.flattener import BodyConverter, new_scope
from .custom_commands import CustomCommandHandler, CustomCommandRegistry
from .intercepts import RouteHandlerConverter
from .models import ConversionSummary, FileConversionResult
from .structure import StructureConverter

logger = logging.getLogger(__name__)

PLAYWRIGHT_MODULE = "@playwright/test"

_CYPRESS_REFERENCE = re.compile(r"^///\s*<reference\s+types=[\"'][^\"']*cypress[^\"']*[\"']\s*/>\s*$")
_CYPRESS_MODULE = re.compile(r"^(?:cypress(?:$|[-/])|@cypress/|@testing-library/cypress)")
_REQUIRE = re.compile(r"""\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_IMPORT_SOURCE = re.compile(r"""\bfrom\s+['"]([^'"]+)['"]|^\s*import\s+['"]([^'"]+)['"]""")


def module_of(stmt: tree_sitter.Node, source: bytes) -> Optional[str]:
    """Module named by an import or a bare ``require()`` statement."""
    text = node_text(stmt, source)
    if stmt.type == "import_statement":
        match = _IMPORT_SOURCE.search(text)
        if match:
            return match.group(1) or match.group(2)
        return None
    if stmt.type in ("expression_statement", "lexical_declaration", "variable_declaration"):
        match = _REQUIRE.search(text)
        if match and text.strip().rstrip(";").endswith(match.group(0)):
            return match.group(1)
    return None


def playwright_import(typescript: bool, needs_page_type: bool) -> str:
    names = ["test", "expect"]
    if needs_page_type and typescript:
        names.append("type Page")
    return f"import {{ {', '.join(names)} }} from '{PLAYWRIGHT_MODULE}';"


class ComplexPatternConverter:
    """Converts complete Cypress test files to Playwright Test.

    Args:
        rules: Rule tables for the CommandMapper
        registry: Custom command definitions from the project's support files
        page_objects: Page-object class name → names of its async methods
    """

    def __init__(
        self,
        rules: RuleSet = DEFAULT_RULES,
        registry: Optional[CustomCommandRegistry] = None,
        page_objects: Optional[Dict[str, Set[str]]] = None,
    ):
        self.rules = rules
        self.registry = registry or CustomCommandRegistry()
        self.page_objects: Dict[str, Set[str]] = dict(page_objects or {})

    def convert_file(
        self,
        source_text: str,
        file_path: str = "",
        ctx: Optional[MappingContext] = None,
    ) -> FileConversionResult:
        """Convert one test file.

        Conversion problems stay local to the file: they are logged and
        recorded on the result, never raised.
        """
        try:
            return self._convert(source_text, file_path, ctx)
        except Exception as e:
            logger.error(f"Conversion failed for {file_path or '<source>'}: {e}")
            return FileConversionResult(
                converted_code=source_text,
                conversion_summary=ConversionSummary.failed_file(),
                errors=[f"Conversion failed: {e}"],
                success=False,
                file_path=file_path or None,
            )

    # ── Internals ────────────────────────────────────────────────────

    def _convert(self, source_text: str, file_path: str, ctx: Optional[MappingContext]) -> FileConversionResult:
        language = detect_language(file_path) or "typescript"
        typescript = language in ("typescript", "tsx")
        parser = get_parser(language)
        tree, source = parser.parse_tree(source_text)
        root = tree.root_node
        if root.has_error:
            message = f"Source does not parse (first error at line {parser.first_error_line(root)}); brackets may be unbalanced"
            logger.warning(f"Not converting {file_path or '<source>'}: {message}")
            return FileConversionResult(
                converted_code=source_text,
                conversion_summary=ConversionSummary.failed_file(),
                errors=[message],
                success=False,
                file_path=file_path or None,
            )

        warnings: List[str] = []
        ctx = dataclasses.replace(ctx, language=language) if ctx is not None else MappingContext(language=language)
        ctx.page_object_classes = set(ctx.page_object_classes) | set(self.page_objects)

        converter = BodyConverter(source, ctx, CommandMapper(self.rules))
        commands = CustomCommandHandler(self._registry_for(source_text, file_path), typescript, self.rules)
        structure = StructureConverter(converter, typescript)
        ctx.custom_command_hook = commands
        ctx.route_handler_hook = RouteHandlerConverter(converter)
        renderer = converter.renderer
        renderer.structure_hook = structure
        renderer.class_async_methods = dict(self.page_objects)

        kept_imports, body_statements, dropped = self._split_header(root, source)
        for module in dropped:
            if module not in ("cypress", PLAYWRIGHT_MODULE):
                warnings.append(f"Removed Cypress plugin import {module}; check for a Playwright equivalent")

        lines = structure.suite_lines(body_statements, new_scope(ctx), renderer)
        findings = renderer.result
        helpers = commands.generate_helpers(ctx)

        import_lines = [playwright_import(typescript, bool(helpers))] + kept_imports
        sections = ["\n".join(import_lines)]
        sections.extend(helpers)
        if lines:
            sections.append("\n".join(lines))
        code = "\n\n".join(sections).rstrip() + "\n"

        summary = ConversionSummary.from_patterns(findings.patterns)
        review = list(dict.fromkeys(findings.review_reasons + commands.review_reasons))
        logger.info(
            f"Converted {file_path or '<source>'}: {summary.converted_patterns}/{summary.total_patterns} patterns, "
            f"{structure.tests_converted} tests, {len(helpers)} custom command helpers"
        )
        return FileConversionResult(
            converted_code=code,
            conversion_summary=summary,
            warnings=list(dict.fromkeys(warnings + findings.warnings + commands.warnings)),
            errors=list(findings.errors),
            success=not findings.errors,
            imports=import_lines,
            review_reasons=review,
            custom_commands_used=list(commands.used),
            file_path=file_path or None,
        )

    def _registry_for(self, source_text: str, file_path: str) -> CustomCommandRegistry:
        """Project registry plus commands defined in the file itself."""
        if "Cypress.Commands.add" not in source_text:
            return self.registry
        local = CustomCommandRegistry()
        local.commands = dict(self.registry.commands)
        local.add_source(source_text, file_path)
        return local

    @staticmethod
    def _split_header(root: tree_sitter.Node, source: bytes) -> Tuple[List[str], List[tree_sitter.Node], List[str]]:
        """(kept import lines, statements to convert, dropped Cypress modules)."""
        kept: List[str] = []
        statements: List[tree_sitter.Node] = []
        dropped: List[str] = []
        for stmt in statement_children(root):
            if stmt.type == "comment" and _CYPRESS_REFERENCE.match(node_text(stmt, source)):
                continue
            module = module_of(stmt, source)
            if module is None:
                statements.append(stmt)
            elif _CYPRESS_MODULE.match(module) or module == PLAYWRIGHT_MODULE:
                dropped.append(module)
            else:
                kept.append(node_text(stmt, source))
        return kept, statements, dropped


def convert_file(source_text: str, file_path: str = "", ctx: Optional[MappingContext] = None) -> FileConversionResult:
    """Convert one Cypress test file with the default rules."""
    return ComplexPatternConverter().convert_file(source_text, file_path, ctx)
