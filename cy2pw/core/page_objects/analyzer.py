"""Page-object analyzer.

Finds the classes of a Cypress page-object file and records what the
transformer needs: export form, constructor, properties, and for every
method its role, the Cypress commands it uses, the other methods it calls
and whether it only builds a locator.
"""

import logging
import re
from typing import Dict, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    call_arguments,
    function_body,
    function_parameters,
    is_function,
    node_text,
    statement_children,
    unwind_call_chain,
)
from ..ast_parser.utils import detect_language, get_parser
from ..mapping.rules import DEFAULT_RULES, RuleKind, RuleSet
from ..then_patterns.models import Complexity
from .models import ExportKind, MethodRole, PageObjectMethod, PageObjectModel, PageObjectProperty

logger = logging.getLogger(__name__)

_CLASS_DECLARATION = re.compile(r"\bclass\s+[A-Za-z_$][\w$]*")
_CYPRESS_CALL = re.compile(r"\bcy\s*\.\s*(\w+)")
_CHAINED_CALL = re.compile(r"\.\s*(\w+)\s*\(")
_THIS_CALL = re.compile(r"\bthis\s*\.\s*(\w+)\s*\(")
_THIS_ASSIGNMENT = re.compile(r"\bthis\s*\.\s*(\w+)\s*=[^=]")
_EXTENDS = re.compile(r"extends\s+([\w$.]+)")
_CONTROL_FLOW = re.compile(r"\b(?:if|for|while|switch|try)\b|\.\s*(?:then|each|within)\s*\(")
_MODULE_EXPORTS = re.compile(r"module\.exports\s*=\s*(?:new\s+)?([\w$]+)")

_CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_FIELD_TYPES = frozenset({"public_field_definition", "field_definition"})
_INPUT_COMMANDS = frozenset({"type", "clear", "select", "check", "uncheck", "selectFile"})
_CLICK_COMMANDS = frozenset({"click", "dblclick", "rightclick"})
_LOCATOR_COMMANDS = frozenset({RuleKind.LOCATE, RuleKind.CONTAINS})
_LOCATOR_LINKS = frozenset({RuleKind.TRAVERSE, RuleKind.FILTER})


def is_page_object(source: str) -> bool:
    """True for sources that declare a class and drive Cypress."""
    return bool(_CLASS_DECLARATION.search(source)) and bool(_CYPRESS_CALL.search(source))


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _has_token(node: tree_sitter.Node, token: str) -> bool:
    return any(c.type == token for c in node.children)


class PageObjectAnalyzer:
    """Extracts PageObjectModels from page-object sources.

    Args:
        rules: Rule tables used to tell locator builders from actions
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules

    def analyze(self, source_text: str, file_path: str = "") -> List[PageObjectModel]:
        language = detect_language(file_path) or "typescript"
        tree, source = get_parser(language).parse_tree(source_text)
        return self.analyze_tree(tree.root_node, source, file_path)

    def analyze_tree(self, root: tree_sitter.Node, source: bytes, file_path: str = "") -> List[PageObjectModel]:
        """Models for every class in a parsed file, in source order."""
        models: List[PageObjectModel] = []
        late_exports: Dict[str, ExportKind] = {}

        for stmt in statement_children(root):
            class_node, export_kind = self._class_of(stmt, source, late_exports)
            if class_node is not None:
                models.append(self._analyze_class(class_node, source, export_kind, file_path))

        text = source.decode("utf-8", errors="replace")
        for match in _MODULE_EXPORTS.finditer(text):
            late_exports[match.group(1)] = ExportKind.DEFAULT
        for model in models:
            if model.export_kind == ExportKind.NONE and model.class_name in late_exports:
                model.export_kind = late_exports[model.class_name]

        logger.debug(f"Found {len(models)} page-object classes in {file_path or '<source>'}")
        return models

    # ── Classes ──────────────────────────────────────────────────────

    def _class_of(
        self,
        stmt: tree_sitter.Node,
        source: bytes,
        late_exports: Dict[str, ExportKind],
    ) -> Tuple[Optional[tree_sitter.Node], ExportKind]:
        if stmt.type in _CLASS_TYPES:
            return stmt, ExportKind.NONE
        if stmt.type != "export_statement":
            return None, ExportKind.NONE

        is_default = _has_token(stmt, "default")
        declaration = stmt.child_by_field_name("declaration")
        if declaration is None:
            declaration = next((c for c in stmt.named_children if c.type in _CLASS_TYPES), None)
        if declaration is not None and declaration.type in _CLASS_TYPES:
            return declaration, ExportKind.DEFAULT if is_default else ExportKind.NAMED

        # export default LoginPage; / export { LoginPage };
        value = stmt.child_by_field_name("value")
        if is_default and value is not None and value.type == "identifier":
            late_exports[node_text(value, source)] = ExportKind.DEFAULT
        for clause in (c for c in stmt.named_children if c.type == "export_clause"):
            for spec in clause.named_children:
                name = spec.child_by_field_name("name")
                if name is not None:
                    late_exports.setdefault(node_text(name, source), ExportKind.NAMED)
        return None, ExportKind.NONE

    def _analyze_class(
        self,
        node: tree_sitter.Node,
        source: bytes,
        export_kind: ExportKind,
        file_path: str,
    ) -> PageObjectModel:
        name_node = node.child_by_field_name("name")
        model = PageObjectModel(
            class_name=node_text(name_node, source) if name_node is not None else "AnonymousPage",
            export_kind=export_kind,
            file_path=file_path,
            node=node,
        )
        heritage = next((c for c in node.children if c.type == "class_heritage"), None)
        if heritage is not None:
            match = _EXTENDS.search(node_text(heritage, source))
            model.extends = match.group(1) if match else None

        body = node.child_by_field_name("body")
        members = body.named_children if body is not None else []
        method_nodes = [m for m in members if m.type == "method_definition"]
        method_names = {node_text(m.child_by_field_name("name"), source) for m in method_nodes}

        for member in members:
            if member.type in _FIELD_TYPES:
                self._add_field(model, member, source)
            elif member.type == "method_definition":
                method = self._analyze_method(member, source, method_names)
                if method.name == "constructor":
                    model.has_constructor = True
                    model.constructor_parameters = list(method.parameters)
                    for prop in _unique(_THIS_ASSIGNMENT.findall(method.body)):
                        if all(p.name != prop for p in model.properties):
                            model.properties.append(PageObjectProperty(name=prop))
                    continue
                model.methods.append(method)
                if method.is_getter and method.returns_locator:
                    model.locator_members.add(f"this.{method.name}")
                elif method.returns_locator:
                    model.locator_members.add(f"this.{method.name}()")

        order = [Complexity.LOW, Complexity.MEDIUM, Complexity.HIGH]
        model.complexity = max((m.complexity for m in model.methods), key=order.index, default=Complexity.LOW)
        return model

    def _add_field(self, model: PageObjectModel, member: tree_sitter.Node, source: bytes) -> None:
        name_node = member.child_by_field_name("name") or member.child_by_field_name("property")
        if name_node is None:
            return
        name = node_text(name_node, source)
        type_node = member.child_by_field_name("type")
        type_text = node_text(type_node, source).lstrip(":").strip() if type_node is not None else None
        model.properties.append(PageObjectProperty(name=name, type=type_text))

        value = member.child_by_field_name("value")
        if value is None:
            return
        # emailInput = () => cy.get('#email')
        if is_function(value) and self.is_locator_function(value, source):
            model.locator_members.add(f"this.{name}()")
        # elements = { emailInput: () => cy.get('#email') }
        elif value.type == "object":
            for pair in value.named_children:
                if pair.type != "pair":
                    continue
                key = pair.child_by_field_name("key")
                inner = pair.child_by_field_name("value")
                if key is not None and is_function(inner) and self.is_locator_function(inner, source):
                    model.locator_members.add(f"this.{name}.{node_text(key, source)}()")

    # ── Methods ──────────────────────────────────────────────────────

    def _analyze_method(self, node: tree_sitter.Node, source: bytes, method_names: Set[str]) -> PageObjectMethod:
        name = node_text(node.child_by_field_name("name"), source)
        body = function_body(node)
        body_text = node_text(body, source)
        method = PageObjectMethod(
            name=name,
            parameters=[node_text(p, source) for p in function_parameters(node)],
            body=body_text,
            is_getter=_has_token(node, "get"),
            is_async=_has_token(node, "async"),
            is_static=_has_token(node, "static"),
            node=node,
        )

        commands = _unique(_CYPRESS_CALL.findall(body_text))
        chained = [m for m in _unique(_CHAINED_CALL.findall(body_text)) if m in self.rules.chains]
        method.cypress_commands_used = _unique(commands + chained)
        method.called_method_names = [n for n in _unique(_THIS_CALL.findall(body_text)) if n in method_names]
        method.calls_other_methods = bool(method.called_method_names)
        method.returns_locator = body is not None and self._returns_locator(body, source)
        method.role = self._role(method, body, source, commands)
        method.complexity = self._complexity(body_text)
        return method

    def _role(
        self,
        method: PageObjectMethod,
        body: Optional[tree_sitter.Node],
        source: bytes,
        commands: List[str],
    ) -> MethodRole:
        used = set(method.cypress_commands_used)
        if commands and commands[0] == "visit":
            return MethodRole.VISIT
        if used & _INPUT_COMMANDS:
            return MethodRole.INPUT
        if used & _CLICK_COMMANDS:
            return MethodRole.CLICK
        if body is not None and self._only_this_calls(body, source):
            return MethodRole.COMPOSITE
        return MethodRole.OTHER

    @staticmethod
    def _only_this_calls(body: tree_sitter.Node, source: bytes) -> bool:
        statements = [s for s in statement_children(body) if s.type != "comment"]
        if not statements:
            return False
        for stmt in statements:
            expr = stmt.named_children[0] if stmt.type == "expression_statement" and stmt.named_children else None
            if expr is None or expr.type != "call_expression":
                return False
            root, links = unwind_call_chain(expr, source)
            if root.type != "this" or len(links) != 1:
                return False
        return True

    @staticmethod
    def _complexity(body_text: str) -> Complexity:
        score = len(_CYPRESS_CALL.findall(body_text)) + 2 * len(_CONTROL_FLOW.findall(body_text))
        if score <= 2:
            return Complexity.LOW
        if score <= 5:
            return Complexity.MEDIUM
        return Complexity.HIGH

    def _returns_locator(self, body: tree_sitter.Node, source: bytes) -> bool:
        """``{ return cy.get(...).first(); }`` style bodies that only build a locator."""
        if body.type != "statement_block":
            return self._is_locator_chain(body, source)
        statements = [s for s in statement_children(body) if s.type != "comment"]
        if len(statements) != 1 or statements[0].type != "return_statement":
            return False
        value = [c for c in statements[0].named_children if c.type != "comment"]
        return bool(value) and self._is_locator_chain(value[0], source)

    def is_locator_function(self, node: tree_sitter.Node, source: bytes) -> bool:
        body = function_body(node)
        return body is not None and self._returns_locator(body, source)

    def _is_locator_chain(self, node: tree_sitter.Node, source: bytes) -> bool:
        if node.type != "call_expression":
            return False
        root, links = unwind_call_chain(node, source)
        if not links or node_text(root, source) != "cy":
            return False
        first = self.rules.commands.get(links[0].method)
        if first is None or first.kind not in _LOCATOR_COMMANDS:
            return False
        for link in links[1:]:
            rule = self.rules.chains.get(link.method)
            if rule is None or rule.kind not in _LOCATOR_LINKS:
                return False
            if any(is_function(a) for a in call_arguments(link.arguments)):
                return False
        return True


def analyze(source_text: str, file_path: str = "") -> List[PageObjectModel]:
    """Page-object models of one source file."""
    return PageObjectAnalyzer().analyze(source_text, file_path)
