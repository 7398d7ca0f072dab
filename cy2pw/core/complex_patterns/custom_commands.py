"""Cypress custom commands → helper functions.

``Cypress.Commands.add('login', (email, password) => {...})`` definitions are
collected from support files. In converted tests ``cy.login(a, b)`` becomes
``await login(page, a, b)`` and a matching ``async function login(page, ...)``
helper is generated from the definition body, or as a stub when the
definition is unknown. Commands whose callback only builds a locator become
plain functions returning the Locator so chained actions still work.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

import tree_sitter

from ..ast_parser.nodes import (
    call_arguments,
    function_body,
    function_parameters,
    is_function,
    iter_descendants,
    node_text,
    parameter_name,
    statement_children,
    string_value,
)
from ..ast_parser.utils import SKIP_DIRECTORIES, detect_language, get_parser
from ..constants import DEFAULT_SUPPORT_DIRS
from ..mapping.command_mapper import CommandMapper
from ..mapping.literals import is_identifier
from ..mapping.models import ConvertedStatement, CypressCallExpression, MappingContext
from ..mapping.rules import DEFAULT_RULES, RuleSet
from ..page_objects.analyzer import PageObjectAnalyzer
from ..then_patterns.flattener import BodyConverter, new_scope
from ..then_patterns.models import BodyResult
from .models import CustomCommand

logger = logging.getLogger(__name__)

_DEFINE_CALLEES = frozenset({"Cypress.Commands.add"})
_OVERWRITE_CALLEE = "Cypress.Commands.overwrite"


class CustomCommandRegistry:
    """Custom command definitions known for a project."""

    def __init__(self):
        self.commands: Dict[str, CustomCommand] = {}

    @classmethod
    def from_source(cls, source_text: str, file_path: str = "") -> "CustomCommandRegistry":
        registry = cls()
        registry.add_source(source_text, file_path)
        return registry

    def __contains__(self, name: str) -> bool:
        return name in self.commands

    def __len__(self) -> int:
        return len(self.commands)

    def get(self, name: str) -> Optional[CustomCommand]:
        return self.commands.get(name)

    @property
    def names(self) -> List[str]:
        return sorted(self.commands)

    def add_source(self, source_text: str, file_path: str = "") -> int:
        """Register every ``Cypress.Commands.add`` call in a source file.

        Returns:
            Number of commands registered
        """
        language = detect_language(file_path) or "typescript"
        tree, source = get_parser(language).parse_tree(source_text)
        added = 0
        for node in iter_descendants(tree.root_node):
            if node.type != "call_expression":
                continue
            callee = node_text(node.child_by_field_name("function"), source)
            if callee == _OVERWRITE_CALLEE:
                logger.debug(f"Skipping overwritten built-in command in {file_path or '<source>'}")
                continue
            if callee not in _DEFINE_CALLEES:
                continue
            command = self._definition(node, source, language, file_path)
            if command is not None:
                self.commands[command.name] = command
                added += 1
        return added

    def scan_support_files(self, root: str, support_dirs: Iterable[str] = DEFAULT_SUPPORT_DIRS) -> int:
        """Register commands from every JS/TS file under the support directories of ``root``."""
        added = 0
        for support_dir in support_dirs:
            base = os.path.join(root, support_dir)
            if not os.path.isdir(base):
                continue
            for dirpath, dirnames, filenames in os.walk(base):
                dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRECTORIES)
                for filename in sorted(filenames):
                    path = os.path.join(dirpath, filename)
                    if detect_language(path) is None:
                        continue
                    try:
                        with open(path, "r", encoding="utf-8", errors="replace") as f:
                            added += self.add_source(f.read(), path)
                    except OSError as e:
                        logger.warning(f"Could not read support file {path}: {e}")
        if added:
            logger.info(f"Registered {added} custom commands from {root}")
        return added

    @staticmethod
    def _definition(
        node: tree_sitter.Node,
        source: bytes,
        language: str,
        file_path: str,
    ) -> Optional[CustomCommand]:
        args = call_arguments(node.child_by_field_name("arguments"))
        name = string_value(args[0], source) if args else None
        if not name or not is_identifier(name):
            return None
        callback = next((a for a in args[1:] if is_function(a)), None)
        options = next((a for a in args[1:] if a.type == "object"), None)
        prev_subject = options is not None and "prevSubject" in node_text(options, source)
        params = [node_text(p, source) for p in function_parameters(callback)] if callback is not None else []
        return CustomCommand(
            name=name,
            parameters=params,
            prev_subject=prev_subject,
            file_path=file_path,
            language=language,
            callback=callback,
            source=source,
        )


class CustomCommandHandler:
    """Converts custom command calls and generates their helpers.

    Args:
        registry: Known command definitions
        typescript: Whether helpers are emitted with type annotations
        rules: Rule tables used to convert helper bodies
    """

    def __init__(
        self,
        registry: Optional[CustomCommandRegistry] = None,
        typescript: bool = True,
        rules: RuleSet = DEFAULT_RULES,
    ):
        self.registry = registry or CustomCommandRegistry()
        self.typescript = typescript
        self.rules = rules
        self.analyzer = PageObjectAnalyzer(rules)
        self.used: List[str] = []
        self.warnings: List[str] = []
        self.review_reasons: List[str] = []
        self._locator_helpers: Dict[str, bool] = {}

    # ── Hook ─────────────────────────────────────────────────────────

    def __call__(self, call: CypressCallExpression, ctx: MappingContext) -> Optional[List[ConvertedStatement]]:
        """Custom-command hook for the CommandMapper."""
        args = ", ".join(a.text for a in call.args)
        name = call.command
        if not is_identifier(name):
            return None

        if ctx.in_page_object:
            warning = f"Custom command {name} must be available as a page-object method"
            return [ConvertedStatement(code=f"await this.{name}({args});", requires_await=True, warnings=[warning])]

        if name not in self.used:
            self.used.append(name)
        call_args = ", ".join(p for p in (ctx.page_ref, args) if p)
        if self._returns_locator(name):
            return [ConvertedStatement(code=f"{name}({call_args});")]
        return [ConvertedStatement(code=f"await {name}({call_args});", requires_await=True)]

    # ── Helpers ──────────────────────────────────────────────────────

    def generate_helpers(self, base_ctx: MappingContext) -> List[str]:
        """Helper function sources for every command used so far, in first-use order.

        Helper bodies may use further custom commands; those are generated too.
        """
        helpers: List[str] = []
        index = 0
        while index < len(self.used):
            name = self.used[index]
            index += 1
            command = self.registry.get(name)
            if command is None or not command.is_known:
                helpers.append(self._stub(name))
                self.warnings.append(f"Custom command {name} has no known definition; generated a stub")
                self.review_reasons.append(f"Implement custom command {name}")
                continue
            helpers.append(self._helper(command, base_ctx))
        return helpers

    def _returns_locator(self, name: str) -> bool:
        if name not in self._locator_helpers:
            command = self.registry.get(name)
            self._locator_helpers[name] = bool(
                command is not None
                and command.is_known
                and self.analyzer.is_locator_function(command.callback, command.source)
            )
        return self._locator_helpers[name]

    def _page_param(self) -> str:
        return "page: Page" if self.typescript else "page"

    def _stub(self, name: str) -> str:
        rest = "...args: unknown[]" if self.typescript else "...args"
        return (
            f"async function {name}({self._page_param()}, {rest}) {{\n"
            f"  // TODO: Implement custom command {name}\n"
            f"}}"
        )

    def _helper(self, command: CustomCommand, base_ctx: MappingContext) -> str:
        ctx = MappingContext(
            language=command.language,
            test_id_attribute=base_ctx.test_id_attribute,
            custom_command_hook=self,
            route_handler_hook=base_ctx.route_handler_hook,
        )
        converter = BodyConverter(command.source, ctx, CommandMapper(self.rules))
        scope = new_scope(ctx)
        params = function_parameters(command.callback)
        for param in params:
            name = parameter_name(param, command.source)
            if is_identifier(name):
                scope.reserve(name)
                scope.bind(name, name)

        body = function_body(command.callback)
        locator = self._returns_locator(command.name)
        if body is None:
            lines: List[str] = []
            findings = BodyResult()
        elif body.type == "statement_block":
            findings = converter.convert_statements(statement_children(body), scope, return_mode="keep")
            lines = findings.lines
        elif locator:
            converter.renderer.scope = scope
            lines = [f"return {converter.renderer.render(body)};"]
            findings = converter.renderer.result
        else:
            lines = converter.nested_body(body, scope)
            findings = converter.renderer.result

        self.warnings.extend(findings.warnings)
        self.review_reasons.extend(findings.review_reasons)

        param_texts = [self._page_param()] + [node_text(p, command.source) for p in params]
        keyword = "function" if locator else "async function"
        inner = "\n".join(f"  {line}" if line else "" for line in lines)
        header = f"{keyword} {command.name}({', '.join(param_texts)}) {{"
        return f"{header}\n{inner}\n}}" if inner else f"{header}\n}}"
