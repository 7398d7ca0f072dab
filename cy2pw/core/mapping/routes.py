"""Network interception and alias-wait translation.

``cy.intercept`` registrations become ``page.route`` calls. Static
responses are fulfilled inline; handler functions are delegated to the
context's route-handler hook because their bodies need full statement
rendering. ``.as(alias)`` metadata recorded here drives the response
predicates generated for ``cy.wait('@alias')``.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from .literals import escape_regex, js_string, property_access
from .models import AliasInfo, ArgKind, Argument, ConvertedStatement, MappingContext

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

GENERIC_RESPONSE_PREDICATE = "(response) => response.url().includes('/api/') && response.status() === 200"

# Cypress interception paths → Playwright Response accessors ({var} = response)
RESPONSE_PATHS = {
    "response.statusCode": "{var}.status()",
    "response.status": "{var}.status()",
    "response.body": "(await {var}.json())",
    "response.headers": "{var}.headers()",
    "response.url": "{var}.url()",
    "request.body": "{var}.request().postDataJSON()",
    "request.headers": "{var}.request().headers()",
    "request.url": "{var}.request().url()",
    "request.method": "{var}.request().method()",
    "statusCode": "{var}.status()",
    "status": "{var}.status()",
    "body": "(await {var}.json())",
    "headers": "{var}.headers()",
    "url": "{var}.url()",
    "response": "{var}",
    "request": "{var}.request()",
}

# Static-response keys → route.fulfill() option names
_FULFILL_KEYS = {
    "statusCode": "status",
    "headers": "headers",
    "contentType": "contentType",
}


@dataclass
class RouteSpec:
    """Parsed ``cy.intercept`` arguments."""

    method: Optional[str]
    url: Optional[Argument]
    response: Optional[Argument] = None
    handler: Optional[Argument] = None

    @property
    def url_value(self) -> Optional[str]:
        if self.url is not None and self.url.is_string:
            return self.url.value
        return None


def parse_intercept_args(args: List[Argument]) -> RouteSpec:
    """Normalize the several ``cy.intercept`` call forms.

    Supports ``(url)``, ``(method, url)``, ``(method, url, response)``,
    ``(url, response)`` and route-matcher objects in place of the URL.
    """
    remaining = list(args)
    method = None
    if len(remaining) >= 2 and remaining[0].is_string and remaining[0].value.upper() in HTTP_METHODS:
        method = remaining.pop(0).value.upper()

    url = remaining.pop(0) if remaining else None
    if url is not None and url.kind == ArgKind.OBJECT:
        matcher = url
        method = method or _string_prop(matcher, "method")
        url = matcher.properties.get("url") or matcher.properties.get("path") or matcher.properties.get("pathname")

    response = None
    handler = None
    if remaining:
        last = remaining[0]
        if last.kind == ArgKind.FUNCTION:
            handler = last
        else:
            response = last
    return RouteSpec(method=method.upper() if method else None, url=url, response=response, handler=handler)


def _string_prop(obj: Argument, key: str) -> Optional[str]:
    prop = obj.properties.get(key)
    if prop is not None and prop.is_string:
        return prop.value
    return None


def route_pattern(url: Optional[Argument]) -> str:
    """Playwright route pattern for a Cypress URL matcher.

    Bare paths match anywhere in the URL, as Cypress does, by gaining a
    ``**`` prefix; full URLs, globs and regexes pass through.
    """
    if url is None:
        return "'**/*'"
    if url.is_string:
        value = url.value
        if value.startswith("/") and not value.startswith("**"):
            return js_string(f"**{value}")
        return js_string(value)
    return url.text


def glob_to_regex(glob: str) -> str:
    """Convert a URL glob to a JS regex literal body."""
    out = []
    i = 0
    while i < len(glob):
        if glob.startswith("**", i):
            out.append(".*")
            i += 2
        elif glob[i] == "*":
            out.append("[^/]*")
            i += 1
        else:
            out.append(escape_regex(glob[i]))
            i += 1
    return "".join(out)


def fulfill_options(response: Argument) -> tuple:
    """Build ``route.fulfill`` options from a Cypress static response.

    Returns:
        (options_text, todo_lines, uses_delay_ms, aborts)
    """
    todos: List[str] = []
    if response.kind != ArgKind.OBJECT:
        if response.is_string:
            return f"{{ body: {response.text} }}", todos, None, False
        return f"{{ json: {response.text} }}", todos, None, False

    props = response.properties
    known_keys = {"statusCode", "body", "fixture", "headers", "delay", "delayMs", "forceNetworkError", "contentType"}
    if not any(key in props for key in known_keys):
        # Plain object literal is the response body itself
        return f"{{ json: {response.text} }}", todos, None, False

    if "forceNetworkError" in props:
        return "", todos, None, True

    parts: List[str] = []
    for key, target in _FULFILL_KEYS.items():
        if key in props:
            parts.append(f"{target}: {props[key].text}")
    if "body" in props:
        body = props["body"]
        if body.is_string:
            parts.append(f"body: {body.text}")
        else:
            parts.append(f"json: {body.text}")
    if "fixture" in props:
        fixture = props["fixture"]
        name = fixture.value if fixture.is_string else fixture.text
        todos.append(f"// TODO: Load fixture file {name}")
        if "body" not in props:
            parts.append("json: {}")
    delay = props.get("delay") or props.get("delayMs")
    return "{ " + ", ".join(parts) + " }" if parts else "{}", todos, delay.text if delay else None, False


def convert_intercept(args: List[Argument], ctx: MappingContext, alias: Optional[str] = None) -> List[ConvertedStatement]:
    """Convert ``cy.intercept(...)`` (plus an optional ``.as`` alias)."""
    spec = parse_intercept_args(args)
    pattern = route_pattern(spec.url)
    warnings: List[str] = []
    page = ctx.page_ref

    if alias:
        ctx.aliases[alias] = AliasInfo(
            name=alias,
            kind="route",
            url=spec.url.text if spec.url is not None else None,
            url_value=spec.url_value,
            method=spec.method,
        )

    method_guard = (
        f"if (route.request().method() !== '{spec.method}') return route.fallback();"
        if spec.method else None
    )

    if spec.handler is not None:
        hook = ctx.route_handler_hook
        if hook is not None:
            return hook(spec, pattern, ctx)
        warnings.append("Dynamic intercept handler needs manual conversion")
        code = (
            f"// TODO: Convert intercept handler manually\n"
            f"await {page}.route({pattern}, async (route) => {{\n"
            f"  await route.continue();\n"
            f"}});"
        )
        return [ConvertedStatement(code=code, requires_await=True, warnings=warnings, manual_review=True)]

    if spec.response is None:
        code = f"await {page}.route({pattern}, (route) => route.continue());"
        return [ConvertedStatement(code=code, requires_await=True)]

    options, todos, delay, aborts = fulfill_options(spec.response)
    body_lines: List[str] = []
    if method_guard:
        body_lines.append(method_guard)
    body_lines.extend(todos)
    if delay:
        body_lines.append(f"await new Promise((resolve) => setTimeout(resolve, {delay}));")
    if aborts:
        body_lines.append("await route.abort();")
    else:
        body_lines.append(f"await route.fulfill({options});")
    if todos:
        warnings.append("Fixture file referenced by intercept must be loaded manually")

    if len(body_lines) == 1 and not aborts:
        code = f"await {page}.route({pattern}, (route) => route.fulfill({options}));"
    else:
        inner = "\n".join(f"  {line}" for line in body_lines)
        code = f"await {page}.route({pattern}, async (route) => {{\n{inner}\n}});"
    return [ConvertedStatement(code=code, requires_await=True, warnings=warnings, manual_review=bool(todos))]


def response_predicate(alias: Optional[AliasInfo]) -> str:
    """``waitForResponse`` predicate for a route alias."""
    if alias is None or alias.kind != "route" or alias.url is None:
        return GENERIC_RESPONSE_PREDICATE
    if alias.url_value is not None:
        value = alias.url_value
        if "*" in value:
            check = f"/{glob_to_regex(value)}/.test(response.url())"
        else:
            check = f"response.url().includes({js_string(value)})"
    elif alias.url.startswith("/"):
        check = f"{alias.url}.test(response.url())"
    else:
        check = f"response.url().includes({alias.url})"
    if alias.method:
        check += f" && response.request().method() === '{alias.method}'"
    return f"(response) => {check}"


def alias_wait_warning(alias_name: str) -> str:
    return (
        f"Alias wait '@{alias_name}' converted to a response predicate; "
        f"manual tightening may be required"
    )


def alias_names(arg: Argument) -> List[str]:
    """Alias names referenced by a ``cy.wait`` argument ('@a' or ['@a', '@b'])."""
    if arg.is_string and isinstance(arg.value, str) and arg.value.startswith("@"):
        return [arg.value[1:]]
    if arg.kind == ArgKind.ARRAY:
        return re.findall(r"""['"]@([\w.-]+)['"]""", arg.text)
    return []


def response_accessor(var: str, path: str) -> str:
    """Playwright expression for an interception/response ``its()`` path."""
    best = None
    for key in RESPONSE_PATHS:
        if (path == key or path.startswith(key + ".")) and (best is None or len(key) > len(best)):
            best = key
    if best is None:
        return property_access(var, path)
    base = RESPONSE_PATHS[best].format(var=var)
    return property_access(base, path[len(best) + 1:])
