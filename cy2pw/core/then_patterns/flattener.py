"""Flatten Cypress callback chains into sequential async/await code.

``.then()``, ``.spread()``, ``.within()``, ``.each()`` and ``should(cb)``
callbacks are unrolled into the enclosing block:

    cy.get('.price').invoke('text').then((text) => {   const text = await page.locator('.price').textContent();
      expect(parseFloat(text)).to.be.above(0)     →    expect(parseFloat(text)).toBeGreaterThan(0);
    })

Work runs on an explicit stack: a callback body is pushed as work items
instead of being converted recursively, so deep nesting is bounded by
MAX_NESTING_DEPTH rather than by the interpreter stack.

Usage:
    pattern = convert_snippet(source_text)
    print(pattern.converted_code)
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import tree_sitter

from ..ast_parser.nodes import (
    PARAMETER_WRAPPERS,
    function_body,
    line_indent,
    node_text,
    parameter_name,
    statement_children,
    unwind_call_chain,
)
from ..ast_parser.utils import get_parser
from ..mapping.command_mapper import CommandMapper
from ..mapping.literals import identifier_for, is_identifier
from ..mapping.models import MappingContext, Subject, SubjectKind
from .builder import CYPRESS_CALL, ChainBuilder
from .models import (
    BodyItem,
    BodyResult,
    CallbackChainNode,
    CompoundBlock,
    Complexity,
    ConvertedThenPattern,
    PatternRecord,
    Statement,
)
from .renderer import StatementRenderer, dedent_continuation, node_key
from .scope import Scope

logger = logging.getLogger(__name__)

_MARKER = "\x00{}\x00"
_MARKER_SPLIT = re.compile("\x00(\\d+)\x00")
_AWAIT = re.compile(r"\bawait\b")
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")

_THEN_METHODS = frozenset({"then", "spread"})
_GLOBAL_SUBJECTS = {SubjectKind.WINDOW: "window", SubjectKind.DOCUMENT: "document"}
_RESPONSE_SUBJECTS = (SubjectKind.RESPONSE, SubjectKind.API_RESPONSE)
_COMPLEXITY_ORDER = [Complexity.LOW, Complexity.MEDIUM, Complexity.HIGH]

# Names generated code relies on; user variables never shadow them
RESERVED_NAMES = ("page", "expect", "test", "context", "browser")


@dataclass
class _Frame:
    """Conversion state for one body being emitted.

    ``return_mode`` says what a ``return`` does here: ``keep`` it, ``thread``
    its value into the next ``.then()``, ``drop`` it (Cypress-only
    sequencing) or turn it into ``continue`` inside a loop.
    """

    scope: Scope
    locator_root: Optional[str] = None
    return_mode: str = "keep"
    return_target: Optional[str] = None
    result_subject: Optional[Subject] = None
    pattern: Optional[PatternRecord] = None
    threads_result: bool = False


def new_scope(ctx: MappingContext) -> Scope:
    """Root scope for a test body with the generated names reserved."""
    scope = Scope()
    for name in RESERVED_NAMES:
        scope.reserve(name)
    scope.reserve(ctx.page_ref.split(".")[-1])
    return scope


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _param_target(param: tree_sitter.Node) -> tree_sitter.Node:
    if param.type in PARAMETER_WRAPPERS:
        return param.child_by_field_name("pattern") or param
    return param


def classify_complexity(chain: CallbackChainNode) -> Complexity:
    """Low: one command; Medium: several; High: nested/continued or network."""
    depth = 0
    calls = 0
    network = False
    stack = [(chain, 1)]
    while stack:
        node, level = stack.pop()
        for offset, link in enumerate(node.links()):
            link_level = level + offset
            depth = max(depth, link_level)
            network = network or link.uses_network
            if link.expression_body is not None:
                calls += 1
            items = list(link.body_statements)
            while items:
                item = items.pop()
                if isinstance(item, CallbackChainNode):
                    stack.append((item, link_level + 1))
                elif isinstance(item, CompoundBlock):
                    for branch in item.branches:
                        items.extend(branch)
                elif item.is_cypress:
                    calls += 1
    if network or depth >= 2:
        return Complexity.HIGH
    if calls > 1:
        return Complexity.MEDIUM
    return Complexity.LOW


class BodyConverter:
    """Converts statement bodies of one source file.

    Callback chains are unrolled, plain statements are rendered with
    binding renames, and Cypress chains go through the CommandMapper.
    Nested function bodies and page-object methods reuse the same
    converter so locator bindings stay consistent across the file.

    Args:
        source: Source bytes every node belongs to
        ctx: Mapping context of the file being converted
        mapper: CommandMapper to use; defaults to the built-in rules
    """

    def __init__(self, source: bytes, ctx: MappingContext, mapper: Optional[CommandMapper] = None):
        self.source = source
        self.ctx = ctx
        self.mapper = mapper or CommandMapper()
        self.renderer = StatementRenderer(source, ctx, self.mapper, self)
        self.builder = ChainBuilder(source)

    # ── Public API ───────────────────────────────────────────────────

    def convert_items(
        self,
        items: List[BodyItem],
        scope: Scope,
        return_mode: str = "keep",
        locator_root: Optional[str] = None,
    ) -> BodyResult:
        """Emit lines for built body items in ``scope``."""
        saved = self._save()
        result = BodyResult()
        self.renderer.result = result
        try:
            frame = _Frame(scope=scope, locator_root=locator_root, return_mode=return_mode)
            result.lines = self._run(items, frame)
        finally:
            self._restore(saved)
        return result

    def convert_statements(
        self,
        statements: List[tree_sitter.Node],
        scope: Scope,
        return_mode: str = "keep",
        locator_root: Optional[str] = None,
    ) -> BodyResult:
        """Build and emit a statement list (function or block body)."""
        items = self.builder.build_body(statements)
        return self.convert_items(items, scope, return_mode, locator_root)

    def nested_body(self, body: tree_sitter.Node, scope: Scope, return_mode: str = "keep") -> List[str]:
        """Lines for a nested function or loop body.

        Findings are merged into the result of the statement being rendered.
        """
        if body.type == "statement_block":
            return self.nested_statements(statement_children(body), scope, return_mode)
        saved = self._save()
        sub = BodyResult()
        self.renderer.result = sub
        try:
            self._enter(_Frame(scope=scope, locator_root=self.ctx.locator_root))
            sub.lines = self.renderer.expression_lines(body)
        finally:
            self._restore(saved)
        return self._merge_nested(sub)

    def nested_statements(
        self,
        statements: List[tree_sitter.Node],
        scope: Scope,
        return_mode: str = "keep",
    ) -> List[str]:
        """Like ``nested_body`` for an explicit statement list."""
        sub = self.convert_statements(statements, scope, return_mode, self.ctx.locator_root)
        return self._merge_nested(sub)

    def _merge_nested(self, sub: BodyResult) -> List[str]:
        self.renderer.result.merge(sub)
        self.renderer.manual_review = self.renderer.manual_review or sub.requires_manual_review
        return sub.lines

    # ── State ────────────────────────────────────────────────────────

    def _save(self) -> tuple:
        r = self.renderer
        return (r.scope, r.pending, r.manual_review, r.result, self.ctx.locator_root, self.ctx.declare)

    def _restore(self, state: tuple) -> None:
        r = self.renderer
        r.scope, r.pending, r.manual_review, r.result, self.ctx.locator_root, self.ctx.declare = state

    def _enter(self, frame: _Frame) -> None:
        self.renderer.scope = frame.scope
        self.ctx.locator_root = frame.locator_root
        self.ctx.declare = frame.scope.declare

    @staticmethod
    def _emit(out: List[str], lines: List[str], indent: int) -> None:
        pad = "  " * indent
        for code in lines:
            for line in code.split("\n"):
                out.append(pad + line if line.strip() else "")

    # ── Work loop ────────────────────────────────────────────────────

    def _run(self, items: List[BodyItem], frame: _Frame, indent: int = 0) -> List[str]:
        out: List[str] = []
        stack: list = [("items", items, frame, indent)]
        while stack:
            entry = stack.pop()
            kind = entry[0]
            if kind == "items":
                _, seq, item_frame, item_indent = entry
                for position in range(len(seq) - 1, -1, -1):
                    stack.append(("item", seq[position], item_frame, item_indent))
                    if position and self._blank_before(seq[position]):
                        stack.append(("lines", [""], item_indent))
            elif kind == "lines":
                _, lines, line_indent_level = entry
                self._emit(out, lines, line_indent_level)
            else:
                self._dispatch(entry, out, stack)
        return out

    def _blank_before(self, item: BodyItem) -> bool:
        """True when the source has an empty line right above ``item``."""
        node = item.chain_node if isinstance(item, CallbackChainNode) else item.node
        line_start = self.source.rfind(b"\n", 0, node.start_byte)
        if line_start <= 0:
            return False
        previous = self.source.rfind(b"\n", 0, line_start) + 1
        return not self.source[previous:line_start].strip()

    def _dispatch(self, entry: tuple, out: List[str], stack: list) -> None:
        kind = entry[0]
        if kind == "item":
            _, item, frame, indent = entry
            node = item.chain_node if isinstance(item, CallbackChainNode) else item.node
        else:
            _, chain, frame, indent = entry[:4]
            item = None
            node = chain.chain_node

        self._enter(frame)
        try:
            if kind == "expr":
                self._expression_body(chain, frame, indent, out)
            elif kind == "after":
                outer, subject = entry[4], entry[5]
                self._after_link(chain, frame, outer, indent, subject, out, stack)
            elif isinstance(item, CallbackChainNode):
                self._start_chain(item, frame, indent, out, stack)
            elif isinstance(item, CompoundBlock):
                self._compound(item, frame, indent, stack)
            else:
                self._statement(item, frame, indent, out)
        except Exception as e:
            self._fail(node, e, indent, out)

    def _fail(self, node: tree_sitter.Node, error: Exception, indent: int, out: List[str]) -> None:
        line_no = node.start_point[0] + 1
        first = node_text(node, self.source).strip().split("\n")[0]
        logger.warning(f"Could not convert statement at line {line_no}: {error}")
        result = self.renderer.result
        result.errors.append(f"Line {line_no}: {error}")
        result.patterns.append(PatternRecord(kind="command", failed=True, manual_review=True))
        self._emit(out, [f"// TODO: Convert manually: {first}"], indent)

    def _record(self, frame: _Frame, manual: bool) -> None:
        if frame.pattern is not None:
            frame.pattern.manual_review = frame.pattern.manual_review or manual
        else:
            self.renderer.result.patterns.append(PatternRecord(kind="command", manual_review=manual))

    # ── Statements and blocks ────────────────────────────────────────

    def _statement(self, item: Statement, frame: _Frame, indent: int, out: List[str]) -> None:
        r = self.renderer
        if item.is_return and frame.return_mode != "keep":
            r.begin()
            self._return(item.node, frame, indent, out)
        else:
            self._emit(out, r.statement_lines(item.node), indent)
        if item.is_cypress and not r.structural:
            self._record(frame, r.manual_review)

    def _return(self, node: tree_sitter.Node, frame: _Frame, indent: int, out: List[str]) -> None:
        r = self.renderer
        if frame.return_mode == "continue":
            self._emit(out, ["continue;"], indent)
            return
        named = [c for c in node.named_children if c.type != "comment"]
        if not named:
            return

        text, subject = r.resolve_value(named[0])
        lines = r.take_pending()
        if frame.return_target is not None:
            lines.append(f"{frame.return_target} = {text};")
        elif frame.threads_result:
            frame.result_subject = subject if subject is not None else Subject(SubjectKind.VALUE, text)
        elif subject is not None:
            # Returned only to sequence Cypress commands; keep awaited side effects
            if subject.expr and not subject.is_locator and _AWAIT.search(subject.expr):
                lines.append(f"{subject.expr};")
        elif named[0].type in ("call_expression", "await_expression"):
            lines.append(f"{text};")
        base = line_indent(self.source, node.start_byte)
        self._emit(out, [dedent_continuation(line, base) for line in lines], indent)

    def _compound(self, item: CompoundBlock, frame: _Frame, indent: int, stack: list) -> None:
        """Emit ``if``/``try``/loop headers around branch bodies converted in place."""
        r = self.renderer
        overrides = {node_key(block): _MARKER.format(i) for i, block in enumerate(item.blocks)}
        r.begin()
        text = dedent_continuation(r.splice(item.node, overrides), line_indent(self.source, item.node.start_byte))
        head_pending = r.take_pending()
        pieces = _MARKER_SPLIT.split(text)[::2]

        entries: list = []
        if head_pending:
            entries.append(("lines", head_pending, indent))
        entries.append(("lines", [pieces[0].rstrip() + " {"], indent))
        for index, branch in enumerate(item.branches):
            child = _Frame(
                scope=frame.scope.block(),
                locator_root=frame.locator_root,
                return_mode=frame.return_mode,
                return_target=frame.return_target,
                pattern=frame.pattern,
            )
            entries.append(("items", branch, child, indent + 1))
            tail = pieces[index + 1].rstrip() if index + 1 < len(pieces) else ""
            closing = "}" + tail
            if index + 1 < len(item.branches):
                closing += " {"
            entries.append(("lines", [closing], indent))
        for entry in reversed(entries):
            stack.append(entry)

    # ── Callback chains ──────────────────────────────────────────────

    def _start_chain(self, chain: CallbackChainNode, frame: _Frame, indent: int, out: List[str], stack: list) -> None:
        r = self.renderer
        record = frame.pattern
        if record is None:
            record = PatternRecord(kind="callback_chain", complexity=classify_complexity(chain))
            r.result.patterns.append(record)
        for link in chain.links():
            if link.requires_manual_review:
                record.manual_review = True
                r.result.review_reasons.extend(link.review_reasons)

        subject = Subject(SubjectKind.NONE)
        if chain.receiver is not None:
            r.begin()
            subject = r.chain_subject(chain.receiver)
            self._emit(out, r.take_pending(), indent)
            record.manual_review = record.manual_review or r.manual_review
        else:
            root, _ = unwind_call_chain(chain.chain_node, self.source)
            locator = r.bindings().get(node_text(root, self.source))
            if locator is not None:
                subject = Subject(SubjectKind.LOCATOR, locator)
        self._open_link(chain, frame, indent, subject, record, out, stack)

    def _open_link(
        self,
        chain: CallbackChainNode,
        frame: _Frame,
        indent: int,
        subject: Subject,
        record: PatternRecord,
        out: List[str],
        stack: list,
    ) -> None:
        r = self.renderer
        self._enter(frame)
        method = chain.link_method
        closing: Optional[str] = None
        body_indent = indent
        consumed = False

        if method in _THEN_METHODS and subject.kind in _GLOBAL_SUBJECTS:
            link_frame, closing, consumed = self._open_evaluate(chain, frame, indent, subject, record, out)
            body_indent = indent + 1
        elif method in _THEN_METHODS:
            link_frame = _Frame(
                scope=frame.scope.frame(),
                locator_root=frame.locator_root,
                return_mode="thread",
                pattern=record,
            )
            following = chain.continuation
            link_frame.threads_result = following is not None and bool(following.binding_name)
            if chain.conditional_return and link_frame.threads_result:
                name = frame.scope.declare(identifier_for(following.binding_name.lstrip("$")))
                self._emit(out, [f"let {name};"], indent)
                link_frame.return_target = name
            self._bind(chain, subject, link_frame, indent, out, spread=method == "spread")
        elif method == "within":
            if not subject.is_locator:
                raise ValueError(".within() needs an element subject")
            name = frame.scope.declare(identifier_for((chain.binding_name or "scope").lstrip("$")))
            self._emit(out, [f"const {name} = {subject.expr};"], indent)
            self.ctx.locator_vars.add(name)
            link_frame = _Frame(scope=frame.scope.frame(), locator_root=name, return_mode="drop", pattern=record)
            if chain.binding_name:
                link_frame.scope.bind(chain.binding_name, name)
        elif method == "each":
            link_frame = _Frame(
                scope=frame.scope.block(),
                locator_root=frame.locator_root,
                return_mode="continue",
                pattern=record,
            )
            self._emit(out, [self._each_header(chain, subject, link_frame)], indent)
            closing, body_indent = "}", indent + 1
        else:
            link_frame = _Frame(
                scope=frame.scope.block(),
                locator_root=frame.locator_root,
                return_mode="drop",
                pattern=record,
            )
            self._emit(out, ["await expect(async () => {"], indent)
            closing, body_indent = "}).toPass();", indent + 1
            r.result.imports_needed.add("expect")
            self._bind(chain, subject, link_frame, body_indent, out)

        stack.append(("after", chain, link_frame, indent, frame, subject))
        if closing:
            stack.append(("lines", [closing], indent))
        if consumed:
            return
        if chain.expression_body is not None:
            stack.append(("expr", chain, link_frame, body_indent))
        else:
            stack.append(("items", chain.body_statements, link_frame, body_indent))

    def _each_header(self, chain: CallbackChainNode, subject: Subject, frame: _Frame) -> str:
        scope = frame.scope
        element = scope.declare(identifier_for((chain.binding_name or "el").lstrip("$")))
        if chain.binding_name:
            scope.bind(chain.binding_name, element)
        if subject.is_locator:
            self.ctx.locator_vars.add(element)
            iterable = f"await {subject.expr}.all()"
            indexed = f"(await {subject.expr}.all()).entries()"
        elif subject.kind != SubjectKind.NONE and subject.expr:
            iterable = subject.expr
            indexed = f"{subject.expr}.entries()"
        else:
            raise ValueError(".each() needs an element or array subject")
        if chain.extra_params:
            index = scope.declare(chain.extra_params[0])
            scope.bind(chain.extra_params[0], index)
            return f"for (const [{index}, {element}] of {indexed}) {{"
        return f"for (const {element} of {iterable}) {{"

    def _open_evaluate(
        self,
        chain: CallbackChainNode,
        frame: _Frame,
        indent: int,
        subject: Subject,
        record: PatternRecord,
        out: List[str],
    ):
        """``cy.window().then(win => ...)`` runs its body inside ``page.evaluate``."""
        r = self.renderer
        global_name = _GLOBAL_SUBJECTS[subject.kind]
        link_frame = _Frame(scope=frame.scope.block(), return_mode="keep", pattern=record)
        if chain.binding_name:
            link_frame.scope.bind(chain.binding_name, global_name)
        body = function_body(chain.callback)
        if CYPRESS_CALL.search(node_text(body, self.source)):
            r.review("Cypress commands inside a window callback need manual conversion")
            record.manual_review = True

        prefix = f"await {self.ctx.page_ref}.evaluate(() => "
        following = chain.continuation
        if following is not None and following.binding_name:
            var = frame.scope.declare(identifier_for(following.binding_name.lstrip("$")))
            prefix = f"const {var} = {prefix}"
            link_frame.result_subject = Subject(SubjectKind.VALUE, var)

        if chain.expression_body is not None:
            self._enter(link_frame)
            r.begin()
            text = r.render(chain.expression_body)
            self._emit(out, r.take_pending() + [f"{prefix}{text});"], indent)
            self._enter(frame)
            return link_frame, None, True
        self._emit(out, [prefix + "{"], indent)
        return link_frame, "});", False

    def _bind(
        self,
        chain: CallbackChainNode,
        subject: Subject,
        frame: _Frame,
        indent: int,
        out: List[str],
        spread: bool = False,
    ) -> None:
        """Bind the callback parameter to the value the previous link yields."""
        r = self.renderer
        lines: List[str] = []
        if not chain.params:
            if subject.expr and not subject.is_locator and _AWAIT.search(subject.expr) and not is_identifier(subject.expr):
                lines.append(f"{subject.expr};")
            self._emit(out, lines, indent)
            return

        name = chain.binding_name or ""
        target = _param_target(chain.params[0])
        destructured = spread or target.type in ("object_pattern", "array_pattern")

        if subject.kind in _RESPONSE_SUBJECTS:
            base = "response" if subject.kind == SubjectKind.RESPONSE else identifier_for(name.lstrip("$"))
            if is_identifier(subject.expr):
                var = subject.expr
            else:
                var = frame.scope.declare(base)
                lines.append(f"const {var} = {subject.expr};")
            if destructured:
                r.review("Destructured response parameter needs manual review")
                lines.append(f"const {node_text(target, self.source)} = {var};")
            else:
                body_var = None
                if self._uses_body(chain, name):
                    body_var = frame.scope.declare(f"{var}Body")
                    lines.append(f"const {body_var} = await {var}.json();")
                frame.scope.bind_response(name, var, body_var)
        elif subject.kind == SubjectKind.NONE or not subject.expr:
            r.review(f"Callback parameter '{name}' has no Playwright value")
            if frame.pattern is not None:
                frame.pattern.manual_review = True
        elif destructured:
            if spread:
                pattern = "[" + ", ".join(parameter_name(p, self.source) for p in chain.params) + "]"
            else:
                pattern = node_text(target, self.source)
            lines.append(f"const {pattern} = {subject.expr};")
            for ident in _IDENTIFIER.findall(pattern):
                frame.scope.reserve(ident)
        elif is_identifier(subject.expr):
            frame.scope.bind(name, subject.expr)
        else:
            var = frame.scope.declare(identifier_for(name.lstrip("$")))
            frame.scope.bind(name, var)
            lines.append(f"const {var} = {subject.expr};")
            if subject.is_locator:
                self.ctx.locator_vars.add(var)
        self._emit(out, lines, indent)

    def _uses_body(self, chain: CallbackChainNode, name: str) -> bool:
        body = node_text(function_body(chain.callback), self.source)
        pattern = rf"(?<![\w$]){re.escape(name)}\s*\.\s*(?:response\s*\.\s*)?body\b"
        return re.search(pattern, body) is not None

    def _expression_body(self, chain: CallbackChainNode, frame: _Frame, indent: int, out: List[str]) -> None:
        r = self.renderer
        expr = chain.expression_body
        if chain.link_method in _THEN_METHODS and frame.threads_result:
            r.begin()
            text, subject = r.resolve_value(expr)
            self._emit(out, r.take_pending(), indent)
            frame.result_subject = subject if subject is not None else Subject(SubjectKind.VALUE, text)
        else:
            self._emit(out, r.expression_lines(expr), indent)
        if CYPRESS_CALL.search(node_text(expr, self.source)):
            self._record(frame, r.manual_review)

    def _after_link(
        self,
        chain: CallbackChainNode,
        link_frame: _Frame,
        outer: _Frame,
        indent: int,
        subject: Subject,
        out: List[str],
        stack: list,
    ) -> None:
        """Apply trailing links and hand the link's result to the continuation."""
        self._enter(outer)
        result = subject
        if chain.link_method in _THEN_METHODS:
            if link_frame.return_target is not None:
                result = Subject(SubjectKind.VALUE, link_frame.return_target)
            elif link_frame.result_subject is not None:
                result = link_frame.result_subject

        if chain.trailing_links:
            r = self.renderer
            r.begin()
            call = r.links_call(result.expr, chain.trailing_links)
            resolved = self.mapper.resolve_subject(call, self.ctx, result)
            codes = r.absorb(resolved.statements)
            r.result.warnings.extend(resolved.warnings)
            self._emit(out, r.take_pending() + codes, indent)
            result = resolved.subject

        if chain.continuation is not None:
            self._open_link(chain.continuation, outer, indent, result, link_frame.pattern, out, stack)


# ── Module-level entry points ────────────────────────────────────────


def _pattern(original: str, result: BodyResult, complexity: Complexity) -> ConvertedThenPattern:
    return ConvertedThenPattern(
        original_code=original,
        converted_code="\n".join(result.lines),
        is_valid=not result.errors,
        requires_manual_review=result.requires_manual_review,
        review_reasons=_unique(result.review_reasons),
        warnings=_unique(result.warnings),
        complexity=complexity,
        imports_needed=set(result.imports_needed),
    )


def flatten(chain: CallbackChainNode, ctx: Optional[MappingContext] = None) -> ConvertedThenPattern:
    """Flatten one built callback chain into sequential Playwright statements."""
    ctx = ctx or MappingContext()
    converter = BodyConverter(chain.source, ctx)
    result = converter.convert_items([chain], new_scope(ctx), return_mode="drop")
    return _pattern(node_text(chain.chain_node, chain.source), result, classify_complexity(chain))


def convert_snippet(
    source_text: str,
    ctx: Optional[MappingContext] = None,
    language: str = "typescript",
) -> ConvertedThenPattern:
    """Convert a snippet of test-body statements.

    Malformed input (unbalanced brackets, syntax errors) is reported as an
    invalid pattern rather than raised.
    """
    tree, source = get_parser(language).parse_tree(source_text)
    if tree.root_node.has_error:
        return ConvertedThenPattern(
            original_code=source_text,
            converted_code="",
            is_valid=False,
            requires_manual_review=True,
            review_reasons=["Snippet does not parse; brackets may be unbalanced"],
        )

    ctx = ctx or MappingContext(language=language)
    converter = BodyConverter(source, ctx)
    try:
        items = converter.builder.build_body(statement_children(tree.root_node))
    except ValueError as e:
        logger.warning(f"Snippet not converted: {e}")
        return ConvertedThenPattern(
            original_code=source_text,
            converted_code="",
            is_valid=False,
            requires_manual_review=True,
            review_reasons=[str(e)],
        )

    result = converter.convert_items(items, new_scope(ctx), return_mode="drop")
    chains = [item for item in items if isinstance(item, CallbackChainNode)]
    complexity = max(
        (classify_complexity(c) for c in chains),
        key=_COMPLEXITY_ORDER.index,
        default=Complexity.LOW,
    )
    return _pattern(source_text, result, complexity)
