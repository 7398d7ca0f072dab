"""Render statements and expressions inside flattened callback bodies.

The renderer rebuilds source text node by node and splices in rewrites:
renamed callback bindings, jQuery calls on element bindings, response
property access, ``Cypress.env()``, page-object instantiation and nested
function bodies. Statement-level Cypress chains go through the
CommandMapper.

Output lines are relative: continuation lines of a multi-line statement are
dedented by the statement's own indentation, and the emitter re-indents
everything for its block.
"""

import logging
import re
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    ChainLink,
    call_arguments,
    function_body,
    function_parameters,
    is_async_function,
    is_function,
    line_indent,
    node_text,
    parameter_name,
    string_value,
    unwind_call_chain,
)
from ..mapping.assertions import chai_assertion
from ..mapping.command_mapper import CommandMapper
from ..mapping.extractor import extract_argument, extract_call
from ..mapping.literals import is_identifier, js_string, property_access, unwrap_parens
from ..mapping.models import (
    ChainedCall,
    ConvertedStatement,
    CypressCallExpression,
    MappingContext,
    Subject,
    SubjectKind,
)
from ..mapping.routes import response_accessor
from ..mapping.rules import JQUERY_STATE_CHECKS
from .builder import CYPRESS_CALL, is_callback_link
from .models import BodyResult
from .scope import Scope

if TYPE_CHECKING:
    from .flattener import BodyConverter

logger = logging.getLogger(__name__)

NodeKey = Tuple[int, int, str]
# Custom rewrite for a node; returns None to fall through to the defaults
NodeRewriter = Callable[[tree_sitter.Node, "StatementRenderer"], Optional[str]]
# Statement-level override for calls like describe()/it(); None falls through
StructureHook = Callable[[tree_sitter.Node, "StatementRenderer"], Optional[List[str]]]

_AWAIT = re.compile(r"\bawait\b")
_WRAP_PARENTS = {
    "member_expression": "object",
    "subscript_expression": "object",
    "call_expression": "function",
}
_BODY_PREFIXES = ("response.body", "body")
_TEXT_SETTERS = frozenset({"text", "html"})
_PAIR_SETTERS = frozenset({"attr", "prop", "css"})
_FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})


def node_key(node: tree_sitter.Node) -> NodeKey:
    return (node.start_byte, node.end_byte, node.type)


def dedent_continuation(text: str, base: int) -> str:
    """Strip up to ``base`` columns of indentation from every line but the first."""
    lines = text.split("\n")
    out = [lines[0]]
    for line in lines[1:]:
        strip = 0
        while strip < base and strip < len(line) and line[strip] in " \t":
            strip += 1
        out.append(line[strip:])
    return "\n".join(out)


def indent_block(lines: List[str], indent: int) -> str:
    """Wrap relative body lines in braces for a construct indented by ``indent``."""
    if not lines:
        return "{}"
    pad = " " * (indent + 2)
    inner = "\n".join(pad + line if line else "" for line in lines)
    return "{\n" + inner + "\n" + " " * indent + "}"


def one_line(text: str) -> str:
    return re.sub(r"\s*\n\s*", " ", text.strip())


def chai_chain(path: List[str]) -> Optional[str]:
    """Collapse a Chai property path (``to.not.have.lengthOf``) to chainer form."""
    if not path or path[0] != "to":
        return None
    parts = ["length" if p == "lengthOf" else p for p in path[1:]]
    return ".".join(parts) or None


class _Bindings:
    """Source names (and page-object members) that hold Playwright locators."""

    def __init__(self, renderer: "StatementRenderer"):
        self._renderer = renderer

    def get(self, key, default=None):
        renderer = self._renderer
        if key in renderer.locator_members:
            return renderer.locator_members[key]
        if is_identifier(key):
            resolved = renderer.scope.resolve(key)
            return resolved if resolved in renderer.ctx.locator_vars else default
        head, _, member = key.partition(".")
        if head in renderer.po_instances and member:
            name = member[:-2] if member.endswith("()") else member
            async_methods = renderer.po_instances[head]
            if async_methods is not None and is_identifier(name) and name not in async_methods:
                return f"{renderer.scope.resolve(head)}.{member}"
        return default

    def __getitem__(self, key):
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key):
        return self.get(key) is not None


class StatementRenderer:
    """Turns body statements into Playwright lines for one source file.

    Args:
        source: Source bytes every node belongs to
        ctx: Mapping context of the file being converted
        mapper: CommandMapper used for Cypress chains
        converter: Emitter that converts nested function bodies
    """

    def __init__(
        self,
        source: bytes,
        ctx: MappingContext,
        mapper: CommandMapper,
        converter: "BodyConverter",
    ):
        self.source = source
        self.ctx = ctx
        self.mapper = mapper
        self.converter = converter
        self.scope = Scope()
        self.result = BodyResult()
        self.pending: List[str] = []
        self.manual_review = False
        # Set when the structure hook rendered the current statement
        self.structural = False
        # Page-object support, filled in by the page-object and file converters
        self.async_methods: Set[str] = set()
        self.locator_members: Dict[str, str] = {}
        self.po_instances: Dict[str, Optional[Set[str]]] = {}
        self.class_async_methods: Dict[str, Set[str]] = {}
        self.node_rewriter: Optional[NodeRewriter] = None
        self.structure_hook: Optional[StructureHook] = None
        self._last_subject: Optional[Tuple[NodeKey, Subject]] = None

    # ── State ────────────────────────────────────────────────────────

    def begin(self) -> None:
        self.pending = []
        self.manual_review = False
        self.structural = False

    def take_pending(self) -> List[str]:
        lines, self.pending = self.pending, []
        return lines

    def bindings(self) -> _Bindings:
        return _Bindings(self)

    def review(self, reason: str) -> None:
        self.manual_review = True
        self.result.review_reasons.append(reason)

    def absorb(self, statements: List[ConvertedStatement]) -> List[str]:
        """Collect warnings/imports of mapper statements and return their code."""
        codes = []
        for stmt in statements:
            self.result.warnings.extend(stmt.warnings)
            self.result.imports_needed |= stmt.imports_needed
            if stmt.manual_review:
                self.review(stmt.warnings[0] if stmt.warnings else "Manual review required")
            if stmt.code:
                codes.append(stmt.code)
        return codes

    # ── Expressions ──────────────────────────────────────────────────

    def render(self, node: tree_sitter.Node, overrides: Optional[Dict[NodeKey, str]] = None) -> str:
        """Source text of ``node`` with every rewrite applied."""
        if overrides:
            replacement = overrides.get(node_key(node))
            if replacement is not None:
                return replacement
        rewritten = self._rewrite(node)
        if rewritten is not None:
            return rewritten
        return self.splice(node, overrides)

    def splice(self, node: tree_sitter.Node, overrides: Optional[Dict[NodeKey, str]] = None) -> str:
        """Render the children of ``node`` back into its own source span."""
        if node.child_count == 0:
            return node_text(node, self.source)
        pieces = []
        pos = node.start_byte
        for child in node.children:
            pieces.append(self.source[pos:child.start_byte].decode("utf-8", errors="replace"))
            pieces.append(self.render(child, overrides))
            pos = child.end_byte
        pieces.append(self.source[pos:node.end_byte].decode("utf-8", errors="replace"))
        return "".join(pieces)

    def resolve_value(self, node: tree_sitter.Node) -> Tuple[str, Optional[Subject]]:
        """Render a value expression; Cypress chains also report their subject."""
        self._last_subject = None
        text = self.render(node)
        subject = None
        if self._last_subject is not None and self._last_subject[0] == node_key(node):
            subject = self._last_subject[1]
        return text, subject

    def chain_subject(self, node: tree_sitter.Node) -> Subject:
        """Resolve a ``cy``/binding chain, queueing the statements it emits."""
        call = extract_call(node, self.source, render=self.render, bindings=self.bindings())
        if call is None:
            return Subject(SubjectKind.VALUE, self.render(node))
        return self._resolve(call)

    def links_call(self, locator: str, links: List[ChainLink]) -> CypressCallExpression:
        """A chain of ``links`` applied to an existing locator expression."""
        return CypressCallExpression(
            command="",
            chained_calls=[
                ChainedCall(
                    method=link.method,
                    args=[extract_argument(a, self.source, self.render) for a in call_arguments(link.arguments)],
                )
                for link in links
            ],
            subject_expr=locator,
        )

    def _resolve(self, call: CypressCallExpression) -> Subject:
        resolved = self.mapper.resolve_subject(call, self.ctx)
        self.pending.extend(self.absorb(resolved.statements))
        self.result.warnings.extend(resolved.warnings)
        return resolved.subject

    def _rewrite(self, node: tree_sitter.Node) -> Optional[str]:
        if self.node_rewriter is not None:
            custom = self.node_rewriter(node, self)
            if custom is not None:
                return custom
        kind = node.type
        if kind == "identifier":
            name = node_text(node, self.source)
            resolved = self.scope.resolve(name)
            return resolved if resolved != name else None
        if kind == "shorthand_property_identifier":
            name = node_text(node, self.source)
            resolved = self.scope.resolve(name)
            return f"{name}: {resolved}" if resolved != name else None
        if kind == "call_expression":
            return self._rewrite_call(node)
        if kind == "member_expression":
            return self._rewrite_member(node)
        if kind == "new_expression":
            return self._rewrite_new(node)
        if is_function(node) or kind in _FUNCTION_DECLARATIONS:
            return self._render_function(node)
        return None

    def _awaited(self, node: tree_sitter.Node, expr: str) -> str:
        """Fit an awaited expression into the syntactic slot of ``node``."""
        parent = node.parent
        if parent is None or not expr.startswith("await "):
            return expr
        if parent.type == "await_expression":
            return expr[len("await "):]
        field_name = _WRAP_PARENTS.get(parent.type)
        if field_name is not None:
            holder = parent.child_by_field_name(field_name)
            if holder is not None and node_key(holder) == node_key(node):
                return f"({expr})"
        return expr

    def _is_binding_chain(self, root_text: str, links: List[ChainLink], bindings: _Bindings) -> bool:
        if root_text in bindings:
            return True
        return len(links) > 1 and f"{root_text}.{links[0].method}()" in bindings

    def _chain_value(self, node: tree_sitter.Node, subject: Subject) -> str:
        self._last_subject = (node_key(node), subject)
        if subject.kind == SubjectKind.NONE or not subject.expr:
            return "undefined"
        return self._awaited(node, subject.expr)

    def _rewrite_call(self, node: tree_sitter.Node) -> Optional[str]:
        function = node.child_by_field_name("function")
        if function is None:
            return None
        if node_text(function, self.source) == "Cypress.env":
            return self._cypress_env(node)

        root, links = unwind_call_chain(node, self.source)
        if not links:
            return None
        root_text = node_text(root, self.source)
        if root.type == "identifier" and root_text == "cy":
            if any(is_callback_link(link) for link in links):
                self.review("Callback chain used as a value needs manual conversion")
                self.pending.append("// TODO: Convert callback chain used as a value")
                return self._chain_value(node, Subject(SubjectKind.NONE))
            return self._chain_value(node, self.chain_subject(node))

        bindings = self.bindings()
        if self._is_binding_chain(root_text, links, bindings):
            return self._binding_value(node, root_text, links, bindings)

        if len(links) == 1:
            if root.type == "this" and links[0].method in self.async_methods:
                return self._awaited(node, f"await {self.splice(node)}")
            if root.type == "identifier" and root_text in self.po_instances:
                async_methods = self.po_instances[root_text]
                if async_methods is None or links[0].method in async_methods:
                    return self._awaited(node, f"await {self.splice(node)}")
        return None

    def _binding_value(
        self,
        node: tree_sitter.Node,
        root_text: str,
        links: List[ChainLink],
        bindings: _Bindings,
    ) -> Optional[str]:
        if root_text in bindings:
            locator, chain_links = bindings[root_text], links
        else:
            locator, chain_links = self.render(links[0].call), links[1:]

        if any(is_callback_link(link) for link in chain_links):
            self.review("Callback chain used as a value needs manual conversion")
            return None

        chains = self.mapper.rules.chains
        jquery = self.mapper.rules.jquery
        *prefix, last = chain_links
        if last.method in jquery and all(link.method in chains for link in prefix):
            if prefix:
                subject = self._resolve(self.links_call(locator, prefix))
                if not subject.is_locator:
                    self.review(f"jQuery {last.method}() on a non-element value")
                    return None
                locator = subject.expr
            return self._jquery_value(node, last, locator)

        if all(link.method in chains for link in chain_links):
            return self._chain_value(node, self._resolve(self.links_call(locator, chain_links)))

        unsupported = next(link.method for link in chain_links if link.method not in chains)
        self.review(f"Unsupported jQuery method {unsupported}()")
        return None

    def _jquery_value(self, node: tree_sitter.Node, link: ChainLink, locator: str) -> Optional[str]:
        arg_nodes = call_arguments(link.arguments)
        args = [self.render(a) for a in arg_nodes]
        method = link.method

        if method == "is":
            state = string_value(arg_nodes[0], self.source) if arg_nodes else None
            check = JQUERY_STATE_CHECKS.get(state) if state is not None else None
            if check is not None:
                expr = f"await {locator}.{check}" if "(" in check else f"await {locator}.{check}()"
            elif args:
                expr = f"await {locator}.evaluate((node, selector) => node.matches(selector), {args[0]})"
            else:
                self.review("jQuery is() without a selector")
                return None
            return self._awaited(node, expr)

        if method == "val" and args:
            return self._awaited(node, f"await {locator}.fill({args[0]})")
        if (method in _TEXT_SETTERS and args) or (method in _PAIR_SETTERS and len(args) > 1):
            self.review(f"jQuery {method}() setter needs manual conversion")
            return None

        template = self.mapper.rules.jquery[method]
        if "{args}" in template and not args:
            self.review(f"jQuery {method}() needs manual conversion")
            return None
        return template.format(el=locator, args=", ".join(args))

    def _cypress_env(self, node: tree_sitter.Node) -> str:
        arg_nodes = call_arguments(node.child_by_field_name("arguments"))
        if not arg_nodes:
            return "process.env"
        name = string_value(arg_nodes[0], self.source)
        if name is None:
            return f"process.env[{self.render(arg_nodes[0])}]"
        if len(arg_nodes) > 1:
            self.review("Cypress.env() setter changes process state")
            return f"(process.env[{js_string(name)}] = {self.render(arg_nodes[1])})"
        return property_access("process.env", name) if is_identifier(name) else f"process.env[{js_string(name)}]"

    def _rewrite_member(self, node: tree_sitter.Node) -> Optional[str]:
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is not None and obj.type == "call_expression" and node_text(prop, self.source) == "length":
            return self._call_length(node, obj)

        path: List[str] = []
        current = node
        while current.type == "member_expression":
            path.append(node_text(current.child_by_field_name("property"), self.source))
            current = current.child_by_field_name("object")
        if current is None or current.type != "identifier":
            return None
        path.reverse()
        name = node_text(current, self.source)

        response = self.scope.response(name)
        if response is not None:
            var, body_var = response
            joined = ".".join(path)
            for prefix in _BODY_PREFIXES:
                if body_var and (joined == prefix or joined.startswith(prefix + ".")):
                    return property_access(body_var, joined[len(prefix) + 1:])
            return response_accessor(var, joined)

        if path == ["length"]:
            locator = self.bindings().get(name)
            if locator is not None:
                return self._awaited(node, f"await {locator}.count()")
        return None

    def _call_length(self, node: tree_sitter.Node, obj: tree_sitter.Node) -> Optional[str]:
        """``.length`` of a call result; element sets become ``count()``."""
        root, links = unwind_call_chain(obj, self.source)
        root_text = node_text(root, self.source)
        if not links or (root_text != "cy" and not self._is_binding_chain(root_text, links, self.bindings())):
            return None
        text, subject = self.resolve_value(obj)
        if subject is not None and subject.is_locator:
            return self._awaited(node, f"await {subject.expr}.count()")
        if text.startswith("await "):
            text = f"({text})"
        if subject is None and links[-1].method not in self.mapper.rules.jquery:
            self.review(f"Cannot tell whether {node_text(node, self.source)} counts elements")
            self.pending.append("// TODO: Use await locator.count() if this counts elements")
        return self.splice(node, {node_key(obj): text})

    def _rewrite_new(self, node: tree_sitter.Node) -> Optional[str]:
        constructor = node.child_by_field_name("constructor")
        name = node_text(constructor, self.source)
        if name not in self.ctx.page_object_classes:
            return None
        args = [self.render(a) for a in call_arguments(node.child_by_field_name("arguments"))]
        if args and args[0] == self.ctx.page_ref:
            return None
        return f"new {name}({', '.join([self.ctx.page_ref] + args)})"

    def _render_function(self, node: tree_sitter.Node) -> Optional[str]:
        body = function_body(node)
        if body is None:
            return None
        inner = self.scope.block()
        for param in function_parameters(node):
            name = parameter_name(param, self.source)
            if is_identifier(name):
                inner.reserve(name)
                inner.bind(name, name)

        saved = self.scope
        self.scope = inner
        try:
            if body.type == "statement_block":
                lines = self.converter.nested_body(body, inner, return_mode="keep")
                replacement = indent_block(lines, line_indent(self.source, node.start_byte))
            else:
                replacement = self.render(body)
            text = self.splice(node, {node_key(body): replacement})
        finally:
            self.scope = saved

        if _AWAIT.search(replacement) and not is_async_function(node):
            text = f"async {text}"
        return text

    # ── Statements ───────────────────────────────────────────────────

    def statement_lines(self, node: tree_sitter.Node) -> List[str]:
        """Converted lines for one statement, preceded by any queued statements."""
        self.begin()
        lines = self._statement(node)
        return self._with_pending(lines)

    def expression_lines(self, expr: tree_sitter.Node) -> List[str]:
        """Converted lines for an expression used as a statement (arrow bodies)."""
        self.begin()
        lines = self._expression(expr, None)
        return self._with_pending(lines)

    def _with_pending(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        for code in self.take_pending() + lines:
            if code:
                out.extend(code.split("\n"))
        return out

    def _rendered(self, node: tree_sitter.Node) -> str:
        return dedent_continuation(self.render(node), line_indent(self.source, node.start_byte))

    def _statement(self, node: tree_sitter.Node) -> List[str]:
        kind = node.type
        if kind == "expression_statement":
            named = [c for c in node.named_children if c.type != "comment"]
            if named:
                return self._expression(named[0], node)
        if kind in ("lexical_declaration", "variable_declaration"):
            return self._declaration(node)
        if kind == "return_statement":
            return self._return(node)
        if kind == "empty_statement":
            return []
        return [self._rendered(node)]

    def _expression(self, expr: tree_sitter.Node, stmt: Optional[tree_sitter.Node]) -> List[str]:
        if expr.type == "call_expression":
            if self.structure_hook is not None:
                lines = self.structure_hook(expr, self)
                if lines is not None:
                    self.structural = True
                    # one block so blank lines between suite members survive
                    return ["\n".join(lines)]
            root, links = unwind_call_chain(expr, self.source)
            root_text = node_text(root, self.source)
            bindings = self.bindings()
            if links and root.type == "identifier" and root_text == "cy":
                call = extract_call(expr, self.source, render=self.render, bindings=bindings)
                return self.absorb(self.mapper.convert(call, self.ctx))
            if links and self._is_binding_chain(root_text, links, bindings):
                return self._binding_statement(expr, stmt, root_text, links, bindings)
            loop = self._for_each(expr)
            if loop is not None:
                return loop

        if expr.type in ("call_expression", "member_expression"):
            assertion = self._chai(expr, stmt)
            if assertion is not None:
                return assertion

        text = self._rendered(stmt if stmt is not None else expr).rstrip()
        if not text.endswith(";"):
            text += ";"
        return [text]

    def _binding_statement(
        self,
        expr: tree_sitter.Node,
        stmt: Optional[tree_sitter.Node],
        root_text: str,
        links: List[ChainLink],
        bindings: _Bindings,
    ) -> List[str]:
        chains = self.mapper.rules.chains
        jquery = self.mapper.rules.jquery
        if root_text in bindings:
            locator, chain_links = bindings[root_text], links
        else:
            locator, chain_links = self.render(links[0].call), links[1:]

        if all(link.method in chains for link in chain_links):
            return self.absorb(self.mapper.convert(self.links_call(locator, chain_links), self.ctx))

        *prefix, last = chain_links
        if last.method in jquery and all(link.method in chains for link in prefix):
            value = self.render(expr)
            return [f"{unwrap_parens(value)};"]

        unsupported = next(link.method for link in chain_links if link.method not in chains)
        text = one_line(self._rendered(stmt if stmt is not None else expr))
        if not text.endswith(";"):
            text += ";"
        self.review(f"Unsupported jQuery method {unsupported}()")
        return [f"// TODO: Convert jQuery {unsupported}() call manually: {text}"]

    def _chai(self, expr: tree_sitter.Node, stmt: Optional[tree_sitter.Node]) -> Optional[List[str]]:
        arg_nodes: List[tree_sitter.Node] = []
        current = expr
        if current.type == "call_expression":
            arg_nodes = call_arguments(current.child_by_field_name("arguments"))
            current = current.child_by_field_name("function")
        path: List[str] = []
        while current is not None and current.type == "member_expression":
            path.append(node_text(current.child_by_field_name("property"), self.source))
            current = current.child_by_field_name("object")
        if current is None or current.type != "call_expression":
            return None
        if node_text(current.child_by_field_name("function"), self.source) != "expect":
            return None
        path.reverse()
        chain = chai_chain(path)
        expect_args = call_arguments(current.child_by_field_name("arguments"))
        if chain is None or not expect_args:
            return None

        target_node = expect_args[0]
        target = unwrap_parens(self.render(target_node))
        args = [self.render(a) for a in arg_nodes]
        is_locator = node_text(target_node, self.source) in self.bindings() or target in self.ctx.locator_vars

        code = chai_assertion(target, chain, args, is_locator, self.mapper.rules)
        if code is None and ".be." in f".{chain}":
            code = chai_assertion(target, re.sub(r"(^|\.)be\.", r"\1", chain, count=1), args, is_locator, self.mapper.rules)
        if code is None:
            text = one_line(self._rendered(stmt if stmt is not None else expr))
            self.review(f"Unsupported Chai assertion: {chain}")
            return [f"// TODO: Convert assertion manually: {text}"]
        self.result.imports_needed.add("expect")
        return [code]

    def _for_each(self, expr: tree_sitter.Node) -> Optional[List[str]]:
        """``items.forEach(cb)`` whose callback drives Cypress becomes ``for…of``."""
        function = expr.child_by_field_name("function")
        if function is None or function.type != "member_expression":
            return None
        if node_text(function.child_by_field_name("property"), self.source) != "forEach":
            return None
        args = call_arguments(expr.child_by_field_name("arguments"))
        if len(args) != 1 or not is_function(args[0]):
            return None
        callback = args[0]
        body = function_body(callback)
        if body is None or not CYPRESS_CALL.search(node_text(body, self.source)):
            return None

        iterable = self.render(function.child_by_field_name("object"))
        names = [parameter_name(p, self.source) for p in function_parameters(callback)]
        inner = self.scope.block()
        item = names[0] if names else inner.declare("_item")
        for name in names[:2]:
            inner.reserve(name)
            inner.bind(name, name)
        if len(names) > 1:
            header = f"for (const [{names[1]}, {item}] of {iterable}.entries()) {{"
        else:
            header = f"for (const {item} of {iterable}) {{"
        lines = self.converter.nested_body(body, inner, return_mode="continue")
        return [header] + ["  " + line if line else "" for line in lines] + ["}"]

    def _declaration(self, node: tree_sitter.Node) -> List[str]:
        keyword = node_text(node.children[0], self.source)
        base = line_indent(self.source, node.start_byte)
        out = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            type_node = declarator.child_by_field_name("type")
            value_node = declarator.child_by_field_name("value")

            value_text, subject = (None, None)
            if value_node is not None:
                value_text, subject = self.resolve_value(value_node)

            original = node_text(name_node, self.source)
            if name_node.type == "identifier":
                name = self.scope.declare(original)
                self.scope.bind(original, name)
            else:
                name = self.render(name_node)
                for ident in re.findall(r"[A-Za-z_$][\w$]*", name):
                    self.scope.reserve(ident)

            if subject is not None and subject.is_locator:
                self.ctx.locator_vars.add(name)
            if value_node is not None and value_node.type == "new_expression":
                cls = node_text(value_node.child_by_field_name("constructor"), self.source)
                if cls in self.ctx.page_object_classes:
                    self.po_instances[original] = self.class_async_methods.get(cls)

            line = f"{keyword} {name}{node_text(type_node, self.source)}"
            if value_text is not None:
                line += f" = {value_text}"
            out.append(dedent_continuation(line + ";", base))
        return out

    def _return(self, node: tree_sitter.Node) -> List[str]:
        named = [c for c in node.named_children if c.type != "comment"]
        if not named:
            return ["return;"]
        text, _ = self.resolve_value(named[0])
        return [dedent_continuation(f"return {text};", line_indent(self.source, node.start_byte))]
