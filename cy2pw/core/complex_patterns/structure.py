"""Mocha-style test structure → Playwright Test.

    describe('Login', () => {              test.describe('Login', () => {
      beforeEach(() => {                     test.beforeEach(async ({ page }) => {
        cy.visit('/login')          →           await page.goto('/login');
      })                                     });
      it('works', () => { ... })             test('works', async ({ page }) => { ... });
    })                                     });

Page objects constructed in a suite body move into a ``beforeEach`` because
the Playwright page only exists inside test fixtures.
"""

import logging
from typing import List, Optional, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    call_arguments,
    function_body,
    is_function,
    node_text,
    statement_children,
)
from ..then_patterns.builder import CYPRESS_CALL
from ..then_patterns.flattener import BodyConverter
from ..then_patterns.renderer import StatementRenderer, one_line
from ..then_patterns.scope import Scope

logger = logging.getLogger(__name__)

SUITE_FUNCTIONS = {
    "describe": "test.describe",
    "context": "test.describe",
    "xdescribe": "test.describe.skip",
    "xcontext": "test.describe.skip",
}
TEST_FUNCTIONS = {
    "it": "test",
    "specify": "test",
    "xit": "test.skip",
    "xspecify": "test.skip",
}
# Hook → (Playwright hook, fixture it receives)
HOOK_FUNCTIONS = {
    "beforeEach": ("test.beforeEach", "page"),
    "afterEach": ("test.afterEach", "page"),
    "before": ("test.beforeAll", "browser"),
    "after": ("test.afterAll", "browser"),
}
_MODIFIERS = frozenset({"only", "skip"})
_CYPRESS_GLOBAL_CALLS = frozenset({"Cypress.on", "Cypress.Commands.overwrite"})
# Definitions become generated helper functions
_COMMAND_DEFINITION = "Cypress.Commands.add"


def split_callee(callee: tree_sitter.Node, source: bytes) -> Tuple[Optional[str], Optional[str]]:
    """``it`` → ("it", None); ``describe.only`` → ("describe", "only")."""
    if callee.type == "identifier":
        return node_text(callee, source), None
    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = node_text(callee.child_by_field_name("property"), source)
        if obj is not None and obj.type == "identifier" and prop in _MODIFIERS:
            return node_text(obj, source), prop
    return None, None


class StructureConverter:
    """Structure hook for the statement renderer.

    Args:
        converter: BodyConverter of the file being converted
        typescript: Whether hoisted page-object variables get type annotations
    """

    def __init__(self, converter: BodyConverter, typescript: bool = True):
        self.converter = converter
        self.typescript = typescript
        self.tests_converted = 0
        self.suites_converted = 0
        self.hooks_converted = 0

    def __call__(self, expr: tree_sitter.Node, renderer: StatementRenderer) -> Optional[List[str]]:
        source = renderer.source
        callee = expr.child_by_field_name("function")
        if callee is None:
            return None
        callee_text = node_text(callee, source)
        if callee_text == _COMMAND_DEFINITION:
            return []
        if callee_text in _CYPRESS_GLOBAL_CALLS:
            renderer.review(f"{callee_text}() has no Playwright equivalent")
            return [f"// TODO: Convert {callee_text}() manually: {one_line(node_text(expr, source))[:80]}"]

        name, modifier = split_callee(callee, source)
        if name is None:
            return None
        args = call_arguments(expr.child_by_field_name("arguments"))
        if name in SUITE_FUNCTIONS:
            return self._suite(name, modifier, args, renderer)
        if name in TEST_FUNCTIONS:
            return self._test(name, modifier, args, renderer)
        if name in HOOK_FUNCTIONS and modifier is None:
            return self._hook(name, args, renderer)
        return None

    # ── Suites ───────────────────────────────────────────────────────

    def _suite(self, name: str, modifier: Optional[str], args: List[tree_sitter.Node], renderer: StatementRenderer) -> Optional[List[str]]:
        callback = next((a for a in args if is_function(a)), None)
        body = function_body(callback) if callback is not None else None
        if not args or body is None:
            return None
        target = SUITE_FUNCTIONS[name] + (f".{modifier}" if modifier and not name.startswith("x") else "")
        self._drop_options(args, renderer, "Suite")
        title = renderer.render(args[0])
        scope = renderer.scope.block()
        statements = statement_children(body) if body.type == "statement_block" else []
        lines = self.suite_lines(statements, scope, renderer)
        self.suites_converted += 1
        return [f"{target}({title}, () => {{"] + _indent(lines) + ["});"]

    def suite_lines(self, statements: List[tree_sitter.Node], scope: Scope, renderer: StatementRenderer) -> List[str]:
        """Lines for a suite (or file) body with page-object construction hoisted."""
        declarations, assignments, rest = self._hoist_page_objects(statements, scope, renderer)
        lines = list(declarations)
        if assignments:
            if declarations:
                lines.append("")
            lines.append("test.beforeEach(async ({ page }) => {")
            lines.extend(_indent(assignments))
            lines.append("});")
            if rest:
                lines.append("")
        saved = renderer.scope
        renderer.scope = scope
        try:
            lines.extend(self.converter.nested_statements(rest, scope))
        finally:
            renderer.scope = saved
        return lines

    def _hoist_page_objects(
        self,
        statements: List[tree_sitter.Node],
        scope: Scope,
        renderer: StatementRenderer,
    ) -> Tuple[List[str], List[str], List[tree_sitter.Node]]:
        source = renderer.source
        classes = renderer.ctx.page_object_classes
        declarations: List[str] = []
        assignments: List[str] = []
        rest: List[tree_sitter.Node] = []
        saved = renderer.scope
        renderer.scope = scope
        try:
            for stmt in statements:
                hoisted = self._page_object_declaration(stmt, source, classes)
                if hoisted is None:
                    rest.append(stmt)
                    continue
                for original, cls, value in hoisted:
                    var = scope.declare(original)
                    scope.bind(original, var)
                    renderer.po_instances[original] = renderer.class_async_methods.get(cls)
                    declarations.append(f"let {var}: {cls};" if self.typescript else f"let {var};")
                    assignments.append(f"{var} = {renderer.render(value)};")
        finally:
            renderer.scope = saved
        return declarations, assignments, rest

    @staticmethod
    def _page_object_declaration(stmt: tree_sitter.Node, source: bytes, classes) -> Optional[List[Tuple[str, str, tree_sitter.Node]]]:
        if stmt.type not in ("lexical_declaration", "variable_declaration"):
            return None
        found = []
        for declarator in (c for c in stmt.named_children if c.type == "variable_declarator"):
            name_node = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name_node is None or name_node.type != "identifier" or value is None or value.type != "new_expression":
                return None
            cls = node_text(value.child_by_field_name("constructor"), source)
            if cls not in classes:
                return None
            found.append((node_text(name_node, source), cls, value))
        return found or None

    # ── Tests and hooks ──────────────────────────────────────────────

    def _test(self, name: str, modifier: Optional[str], args: List[tree_sitter.Node], renderer: StatementRenderer) -> Optional[List[str]]:
        if not args:
            return None
        target = TEST_FUNCTIONS[name] + (f".{modifier}" if modifier and not name.startswith("x") else "")
        title = renderer.render(args[0])
        callback = next((a for a in args[1:] if is_function(a)), None)
        self._drop_options(args, renderer, "Test")
        if callback is None:
            # Pending test
            return [f"test.fixme({title}, async () => {{}});"]
        self.tests_converted += 1
        lines = self._callback_lines(callback, renderer)
        return [f"{target}({title}, async ({{ page }}) => {{"] + _indent(lines) + ["});"]

    def _hook(self, name: str, args: List[tree_sitter.Node], renderer: StatementRenderer) -> Optional[List[str]]:
        callback = next((a for a in args if is_function(a)), None)
        if callback is None:
            return None
        target, fixture = HOOK_FUNCTIONS[name]
        title = renderer.render(args[0]) + ", " if args[0].type in ("string", "template_string") else ""
        lines = self._callback_lines(callback, renderer)
        body = function_body(callback)
        if fixture == "browser" and body is not None and CYPRESS_CALL.search(node_text(body, renderer.source)):
            lines = ["const page = await browser.newPage();"] + lines + ["await page.close();"]
        self.hooks_converted += 1
        return [f"{target}({title}async ({{ {fixture} }}) => {{"] + _indent(lines) + ["});"]

    def _callback_lines(self, callback: tree_sitter.Node, renderer: StatementRenderer) -> List[str]:
        body = function_body(callback)
        if body is None:
            return []
        if callback.type == "function_expression" and "this." in node_text(body, renderer.source):
            renderer.review("Test uses Mocha `this` context (aliases); convert to local variables")
        scope = renderer.scope.block()
        return self.converter.nested_body(body, scope)

    @staticmethod
    def _drop_options(args: List[tree_sitter.Node], renderer: StatementRenderer, what: str) -> None:
        options = [a for a in args[1:] if a.type == "object"]
        if options:
            text = one_line(node_text(options[0], renderer.source))
            renderer.result.warnings.append(f"{what} options {text} are not converted")


def _indent(lines: List[str]) -> List[str]:
    return [f"  {line}" if line else "" for line in lines]

