"""``cy.intercept`` handler functions → ``page.route`` handlers.

Static responses are handled by the mapping layer. Handler functions need
their bodies rendered like any other callback, with the request object
rewritten: ``req.reply(...)`` → ``route.fulfill(...)``, ``req.continue()``
→ ``route.continue()``, ``req.body`` → ``request.postDataJSON()`` and so on.
"""

import logging
import re
from typing import Callable, List, Optional

import tree_sitter

from ..ast_parser.nodes import call_arguments, function_body, function_parameters, node_text, parameter_name
from ..mapping import routes
from ..mapping.extractor import extract_argument
from ..mapping.literals import is_identifier
from ..mapping.models import ArgKind, ConvertedStatement, CypressCallExpression, MappingContext
from ..then_patterns.flattener import BodyConverter
from ..then_patterns.renderer import NodeRewriter, StatementRenderer

logger = logging.getLogger(__name__)

_ROUTE_CALL = re.compile(r"\broute\s*\.\s*(?:fulfill|continue|abort|fallback)\s*\(")
_REQUEST_USE = re.compile(r"\brequest\b")

# Cypress request properties → Playwright Request accessors
REQUEST_PROPERTIES = {
    "body": "request.postDataJSON()",
    "url": "request.url()",
    "method": "request.method()",
    "headers": "request.headers()",
    "query": "Object.fromEntries(new URL(request.url()).searchParams)",
}


def convert_intercept(call: CypressCallExpression, ctx: MappingContext) -> ConvertedStatement:
    """Convert one ``cy.intercept(...)`` call (with an optional ``.as()``) to a single statement."""
    alias = None
    for chained in call.chained_calls:
        if chained.method == "as" and chained.args and chained.args[0].is_string:
            alias = chained.args[0].value
    statements = routes.convert_intercept(call.args, ctx, alias)
    warnings = [w for stmt in statements for w in stmt.warnings]
    return ConvertedStatement(
        code="\n".join(stmt.code for stmt in statements if stmt.code),
        requires_await=any(stmt.requires_await for stmt in statements),
        imports_needed=set().union(*(stmt.imports_needed for stmt in statements)),
        warnings=warnings,
        manual_review=any(stmt.manual_review for stmt in statements),
    )


class RouteHandlerConverter:
    """Route-handler hook rendering handler bodies with the file's BodyConverter.

    Args:
        converter: BodyConverter of the file being converted
    """

    def __init__(self, converter: BodyConverter):
        self.converter = converter

    def __call__(self, spec: routes.RouteSpec, pattern: str, ctx: MappingContext) -> List[ConvertedStatement]:
        handler = spec.handler.node if spec.handler is not None else None
        if handler is None or spec.handler.kind != ArgKind.FUNCTION:
            code = f"await {ctx.page_ref}.route({pattern}, {spec.handler.text if spec.handler else 'undefined'});"
            return [ConvertedStatement(code=code, requires_await=True)]

        renderer = self.converter.renderer
        source = self.converter.source
        params = function_parameters(handler)
        req = parameter_name(params[0], source) if params else None
        if req is not None and not is_identifier(req):
            req = None

        scope = renderer.scope.block()
        for name in ("route", "request"):
            scope.reserve(name)

        body = function_body(handler)
        saved = renderer.node_rewriter
        renderer.node_rewriter = _request_rewriter(req, saved)
        try:
            lines = self.converter.nested_body(body, scope) if body is not None else []
        finally:
            renderer.node_rewriter = saved

        head: List[str] = []
        if spec.method:
            head.append(f"if (route.request().method() !== '{spec.method}') return route.fallback();")
        if any(_REQUEST_USE.search(line) for line in lines):
            head.append("const request = route.request();")
        if not any(_ROUTE_CALL.search(line) for line in lines):
            lines.append("await route.continue();")

        inner = "\n".join(f"  {line}" if line else "" for line in head + lines)
        code = f"await {ctx.page_ref}.route({pattern}, async (route) => {{\n{inner}\n}});"
        logger.debug(f"Converted intercept handler for {pattern}")
        return [ConvertedStatement(code=code, requires_await=True)]


def _request_rewriter(req: Optional[str], fallback: Optional[NodeRewriter]) -> Callable:
    """Node rewriter replacing uses of the handler's request parameter."""

    def rewrite(node: tree_sitter.Node, renderer: StatementRenderer) -> Optional[str]:
        if req is not None:
            custom = _rewrite_request(node, renderer, req)
            if custom is not None:
                return custom
        if fallback is not None:
            return fallback(node, renderer)
        return None

    return rewrite


def _is_req(node: Optional[tree_sitter.Node], renderer: StatementRenderer, req: str) -> bool:
    return node is not None and node.type == "identifier" and node_text(node, renderer.source) == req


def _rewrite_request(node: tree_sitter.Node, renderer: StatementRenderer, req: str) -> Optional[str]:
    source = renderer.source
    kind = node.type

    if kind == "call_expression":
        function = node.child_by_field_name("function")
        if function is None or function.type != "member_expression":
            return None
        if not _is_req(function.child_by_field_name("object"), renderer, req):
            return None
        method = node_text(function.child_by_field_name("property"), source)
        args = [extract_argument(a, source, renderer.render) for a in call_arguments(node.child_by_field_name("arguments"))]
        return _request_call(method, args, renderer)

    if kind == "member_expression":
        if not _is_req(node.child_by_field_name("object"), renderer, req):
            return None
        prop = node_text(node.child_by_field_name("property"), source)
        return REQUEST_PROPERTIES.get(prop)

    if kind == "assignment_expression":
        left = node.child_by_field_name("left")
        root = left
        while root is not None and root.type in ("member_expression", "subscript_expression"):
            root = root.child_by_field_name("object")
        if not _is_req(root, renderer, req):
            return None
        if left.type == "member_expression" and node_text(left.child_by_field_name("property"), source) == "alias":
            return "// TODO: Alias this route with .as() on the intercept instead of req.alias"
        renderer.review("Request mutation inside intercept handler needs manual conversion")
        return None

    if kind == "identifier" and node_text(node, source) == req:
        return "request"
    return None


def _request_call(method: str, args: list, renderer: StatementRenderer) -> Optional[str]:
    if method == "reply":
        return _reply(args)
    if method == "continue":
        if args:
            renderer.review("Response handler passed to req.continue() needs manual conversion")
            return "// TODO: Modify the response with route.fetch() and route.fulfill()\nawait route.continue()"
        return "await route.continue()"
    if method == "destroy":
        return "await route.abort()"
    if method == "redirect" and args:
        status = args[1].text if len(args) > 1 else "302"
        return f"await route.fulfill({{ status: {status}, headers: {{ location: {args[0].text} }} }})"
    if method == "on":
        renderer.review("req.on() event handlers need manual conversion")
        return "// TODO: Convert req.on() handler manually\nawait route.continue()"
    return None


def _reply(args: list) -> str:
    if not args:
        return "await route.fulfill({})"
    first = args[0]
    if first.kind == ArgKind.NUMBER:
        parts = [f"status: {first.text}"]
        if len(args) > 1:
            body = args[1]
            parts.append(f"body: {body.text}" if body.is_string else f"json: {body.text}")
        if len(args) > 2:
            parts.append(f"headers: {args[2].text}")
        return "await route.fulfill({ " + ", ".join(parts) + " })"

    options, todos, delay, aborts = routes.fulfill_options(first)
    lines = list(todos)
    if delay:
        lines.append(f"await new Promise((resolve) => setTimeout(resolve, {delay}));")
    lines.append("await route.abort()" if aborts else f"await route.fulfill({options})")
    return "\n".join(lines)
