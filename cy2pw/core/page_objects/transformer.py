"""Page-object transformer: Cypress page-object classes → Playwright.

Every class gets the Playwright page injected through its constructor and
its method bodies rewritten with ``this.page`` as the page reference.
Methods become ``async`` except getters and locator factories, which keep
returning locators synchronously. Everything outside the class bodies is
left as written.
"""

import dataclasses
import logging
import re
from typing import Dict, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    apply_edits,
    function_body,
    function_parameters,
    line_indent,
    node_text,
    parameter_name,
    statement_children,
)
from ..ast_parser.utils import detect_language, get_parser
from ..mapping.command_mapper import CommandMapper
from ..mapping.literals import is_identifier
from ..mapping.models import MappingContext
from ..mapping.rules import DEFAULT_RULES, RuleSet
from ..then_patterns.flattener import BodyConverter, new_scope
from ..then_patterns.models import BodyResult
from ..then_patterns.renderer import indent_block, node_key
from .analyzer import PageObjectAnalyzer
from .models import PageObjectModel, PageObjectTransformResult

logger = logging.getLogger(__name__)

PAGE_IMPORT_TS = "import { Page } from '@playwright/test';"
PAGE_IMPORT_JS = "/** @typedef {import('@playwright/test').Page} Page */"

_CYPRESS_REFERENCE = re.compile(r"^///\s*<reference\s+types=[\"']cypress[\"']\s*/>\s*$")
_SINGLETON_EXPORT = re.compile(r"(?:module\.exports\s*=|export\s+default)\s*new\s+\w+\s*\(")
_FIELD_TYPES = frozenset({"public_field_definition", "field_definition"})


class PageObjectTransformer:
    """Rewrites page-object files for Playwright.

    Args:
        rules: Rule tables for the CommandMapper
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules
        self.analyzer = PageObjectAnalyzer(rules)

    def transform(
        self,
        source_text: str,
        file_path: str = "",
        ctx: Optional[MappingContext] = None,
    ) -> PageObjectTransformResult:
        """Transform every page-object class in ``source_text``."""
        language = detect_language(file_path) or "typescript"
        tree, source = get_parser(language).parse_tree(source_text)
        root = tree.root_node
        models = self.analyzer.analyze_tree(root, source, file_path)
        result = PageObjectTransformResult(converted_code=source_text, models=models)

        if root.has_error:
            line = get_parser(language).first_error_line(root)
            result.errors.append(f"Page object does not parse (first error at line {line}); brackets may be unbalanced")
            result.success = False
            return result
        if not models:
            result.warnings.append(f"No page-object class found in {file_path or '<source>'}")
            return result

        base_ctx = ctx or MappingContext(language=language)
        po_ctx = dataclasses.replace(
            base_ctx,
            page_ref="this.page",
            language=language,
            in_page_object=True,
            locator_root=None,
            aliases={},
            locator_vars=set(),
            imports_needed=set(),
        )
        converter = BodyConverter(source, po_ctx, CommandMapper(self.rules))
        by_name = {m.class_name: m for m in models}
        typescript = language in ("typescript", "tsx")

        edits: List[Tuple[int, int, str]] = []
        for model in models:
            body = model.node.child_by_field_name("body")
            if body is None:
                continue
            self._prepare(converter, model, by_name)
            try:
                text, body_result = self._class_body(model, body, converter, typescript)
            except ValueError as e:
                logger.warning(f"Could not transform {model.class_name}: {e}")
                result.errors.append(f"{model.class_name}: {e}")
                continue
            edits.append((body.start_byte, body.end_byte, text))
            result.warnings.extend(body_result.warnings)
            result.errors.extend(body_result.errors)
            result.review_reasons.extend(body_result.review_reasons)

        for comment in (c for c in root.named_children if c.type == "comment"):
            if _CYPRESS_REFERENCE.match(node_text(comment, source)):
                end = comment.end_byte + 1 if source[comment.end_byte:comment.end_byte + 1] == b"\n" else comment.end_byte
                edits.append((comment.start_byte, end, ""))

        code = apply_edits(source, edits)
        if "@playwright/test" not in code:
            code = f"{PAGE_IMPORT_TS if typescript else PAGE_IMPORT_JS}\n{code}"
        if _SINGLETON_EXPORT.search(source_text):
            result.warnings.append(
                "Page object is exported as a singleton instance; export the class and construct it with the page in tests"
            )

        result.converted_code = code
        result.warnings = list(dict.fromkeys(result.warnings))
        result.success = not result.errors
        logger.info(f"Transformed {len(models)} page-object classes in {file_path or '<source>'}")
        return result

    # ── Internals ────────────────────────────────────────────────────

    @staticmethod
    def _prepare(converter: BodyConverter, model: PageObjectModel, by_name: Dict[str, PageObjectModel]) -> None:
        """Tell the renderer which members are async and which return locators."""
        async_methods: Set[str] = set()
        locator_members: Set[str] = set()
        current: Optional[PageObjectModel] = model
        seen: Set[str] = set()
        while current is not None and current.class_name not in seen:
            seen.add(current.class_name)
            async_methods |= current.async_methods
            locator_members |= current.locator_members
            current = by_name.get(current.extends) if current.extends else None
        renderer = converter.renderer
        renderer.async_methods = async_methods
        renderer.locator_members = {member: member for member in locator_members}

    def _class_body(
        self,
        model: PageObjectModel,
        body: tree_sitter.Node,
        converter: BodyConverter,
        typescript: bool,
    ) -> Tuple[str, BodyResult]:
        source = converter.source
        renderer = converter.renderer
        collected = BodyResult()
        members = body.named_children
        class_indent = line_indent(source, body.start_byte)
        if members and _starts_line(source, members[0].start_byte):
            member_indent = line_indent(source, members[0].start_byte)
        else:
            member_indent = class_indent + 2
        pad = " " * member_indent

        declared = {
            node_text(m.child_by_field_name("name") or m.child_by_field_name("property"), source)
            for m in members if m.type in _FIELD_TYPES
        }
        injected = []
        if typescript and not model.extends and "page" not in declared:
            injected.append(f"{pad}page: Page;")
        if not model.has_constructor:
            if injected:
                injected.append("")
            param = "page: Page" if typescript else "page"
            first = "super(page);" if model.extends else "this.page = page;"
            injected.extend([f"{pad}constructor({param}) {{", f"{pad}  {first}", f"{pad}}}"])
        edits: List[Tuple[int, int, str]] = []
        if injected:
            opening = body.children[0]
            separator = "\n" if members else ""
            edits.append((opening.end_byte, opening.end_byte, "\n" + "\n".join(injected) + separator))

        for member in members:
            if not _starts_line(source, member.start_byte):
                edits.append((_whitespace_start(source, member.start_byte), member.start_byte, "\n" + pad))
            if member.type == "method_definition":
                text = self._method(member, model, converter, typescript, collected, member_indent)
                edits.append((member.start_byte, member.end_byte, text))
            elif member.type in _FIELD_TYPES and member.child_by_field_name("value") is not None:
                renderer.scope = new_scope(converter.ctx)
                edits.append((member.start_byte, member.end_byte, renderer.render(member)))

        closing = body.children[-1]
        if members and closing.type == "}" and not _starts_line(source, closing.start_byte):
            edits.append((_whitespace_start(source, closing.start_byte), closing.start_byte, "\n" + " " * class_indent))

        shifted = [(start - body.start_byte, end - body.start_byte, text) for start, end, text in edits]
        return apply_edits(source[body.start_byte:body.end_byte], shifted), collected

    def _method(
        self,
        member: tree_sitter.Node,
        model: PageObjectModel,
        converter: BodyConverter,
        typescript: bool,
        collected: BodyResult,
        indent: int,
    ) -> str:
        source = converter.source
        renderer = converter.renderer
        name_node = member.child_by_field_name("name")
        name = node_text(name_node, source)
        body = function_body(member)
        if body is None:
            return node_text(member, source)

        scope = new_scope(converter.ctx)
        params = function_parameters(member)
        for param in params:
            param_name = parameter_name(param, source)
            if is_identifier(param_name):
                scope.reserve(param_name)
                scope.bind(param_name, param_name)

        statements = statement_children(body)
        overrides: Dict[Tuple[int, int, str], str] = {}
        if name == "constructor":
            statements, prologue = self._constructor_prologue(statements, model, source)
            page_param = "page: Page" if typescript else "page"
            param_texts = [page_param] + [node_text(p, source) for p in params]
            params_node = member.child_by_field_name("parameters")
            overrides[node_key(params_node)] = f"({', '.join(param_texts)})"
        else:
            prologue = []

        converted = converter.convert_statements(statements, scope, return_mode="keep")
        collected.merge(converted)
        overrides[node_key(body)] = indent_block(prologue + converted.lines, indent)

        method = model.method(name)
        if method is not None and not method.stays_sync:
            if not method.is_async:
                overrides[node_key(name_node)] = f"async {name}"
            return_type = member.child_by_field_name("return_type")
            if return_type is not None and not node_text(return_type, source).lstrip(": ").startswith("Promise"):
                overrides[node_key(return_type)] = ""
        else:
            return_type = member.child_by_field_name("return_type")
            if return_type is not None and "Chainable" in node_text(return_type, source):
                overrides[node_key(return_type)] = ""

        renderer.scope = scope
        return renderer.splice(member, overrides)

    @staticmethod
    def _constructor_prologue(
        statements: List[tree_sitter.Node],
        model: PageObjectModel,
        source: bytes,
    ) -> Tuple[List[tree_sitter.Node], List[str]]:
        """Leading ``super(page, ...)`` / ``this.page = page`` lines of a constructor."""
        prologue: List[str] = []
        rest = list(statements)
        super_call = None
        for stmt in rest:
            if stmt.type == "expression_statement" and node_text(stmt, source).lstrip().startswith("super("):
                super_call = stmt
                break
        if super_call is not None:
            call = super_call.named_children[0]
            args = call.child_by_field_name("arguments")
            inner = node_text(args, source)[1:-1].strip() if args is not None else ""
            prologue.append(f"super(page{', ' + inner if inner else ''});")
            rest.remove(super_call)
        elif model.extends:
            prologue.append("super(page);")
        if not model.extends:
            prologue.append("this.page = page;")
        return rest, prologue


def transform(source_text: str, file_path: str = "", ctx: Optional[MappingContext] = None) -> PageObjectTransformResult:
    """Transform the page-object classes of one file."""
    return PageObjectTransformer().transform(source_text, file_path, ctx)


def _starts_line(source: bytes, pos: int) -> bool:
    line_start = source.rfind(b"\n", 0, pos) + 1
    return not source[line_start:pos].strip()


def _whitespace_start(source: bytes, pos: int) -> int:
    while pos > 0 and source[pos - 1:pos] in (b" ", b"\t"):
        pos -= 1
    return pos
