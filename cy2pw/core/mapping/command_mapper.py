"""CommandMapper: Cypress call chains → Playwright statements.

A chain is walked link by link while tracking the *subject* it yields
(a locator, the page URL, a response, a plain value). Actions on a locator
emit awaited statements immediately; value-producing links only change the
subject, which is materialized into a ``const`` when a later link needs it.

Usage:
    mapper = CommandMapper()
    statements = mapper.convert(call, MappingContext())
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from .assertions import convert_assertion
from .literals import identifier_for, is_identifier, js_string, property_access, unwrap_parens
from .models import (
    AliasInfo,
    ArgKind,
    Argument,
    ChainedCall,
    ConvertedStatement,
    CypressCallExpression,
    MappingContext,
    ResolvedChain,
    Subject,
    SubjectKind,
)
from .routes import (
    HTTP_METHODS,
    alias_names,
    alias_wait_warning,
    convert_intercept,
    response_accessor,
    response_predicate,
)
from .rules import DEFAULT_RULES, CommandRule, RuleKind, RuleSet
from .selectors import alias_reference, convert_selector

logger = logging.getLogger(__name__)

_KEY_TOKEN = re.compile(r"\{([^{}]+)\}")

_SCROLL_POSITIONS = {
    "top": "0, 0",
    "topLeft": "0, 0",
    "left": "0, window.scrollY",
    "center": "0, document.body.scrollHeight / 2",
    "bottom": "0, document.body.scrollHeight",
    "bottomLeft": "0, document.body.scrollHeight",
    "right": "document.body.scrollWidth, window.scrollY",
    "topRight": "document.body.scrollWidth, 0",
    "bottomRight": "document.body.scrollWidth, document.body.scrollHeight",
}

_HOVER_EVENTS = frozenset({"mouseover", "mouseenter"})

_REQUEST_METHODS = frozenset({"get", "post", "put", "patch", "delete", "head"})


def statement(code: str, warnings: Optional[List[str]] = None, manual_review: bool = False) -> ConvertedStatement:
    """Build a ConvertedStatement, deriving await/import needs from the code."""
    imports = {"expect"} if re.search(r"\bexpect\(", code) else set()
    return ConvertedStatement(
        code=code,
        requires_await=bool(re.search(r"\bawait\b", code)),
        imports_needed=imports,
        warnings=list(warnings or []),
        manual_review=manual_review,
    )


def todo(comment: str, warning: str) -> ConvertedStatement:
    return statement(f"// TODO: {comment}", warnings=[warning], manual_review=True)


def split_type_text(text: str) -> List[Tuple[str, str]]:
    """Split ``.type()`` text into ``("text", s)`` and ``("key", name)`` parts."""
    segments: List[Tuple[str, str]] = []
    pos = 0
    for match in _KEY_TOKEN.finditer(text):
        if match.start() > pos:
            segments.append(("text", text[pos:match.start()]))
        segments.append(("key", match.group(1)))
        pos = match.end()
    if pos < len(text):
        segments.append(("text", text[pos:]))
    return segments


def _as_locator(subject: Subject) -> Optional[str]:
    if subject.kind == SubjectKind.LOCATOR:
        return subject.expr
    # Custom commands may return locators
    if subject.kind == SubjectKind.VALUE and subject.expr:
        return f"({subject.expr})" if subject.expr.startswith("await ") else subject.expr
    return None


def _object_body(arg: Argument) -> str:
    """Inner text of an object literal, without the braces."""
    text = arg.text.strip()
    if text.startswith("{") and text.endswith("}"):
        return text[1:-1].strip().rstrip(",")
    return f"...{text}"


def _merge_options(*parts: str) -> str:
    parts = [p for p in parts if p]
    return "{ " + ", ".join(parts) + " }" if parts else ""


class CommandMapper:
    """Maps Cypress commands and chained calls using a RuleSet.

    Args:
        rules: Rule tables; defaults to the built-in immutable tables
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules
        self._commands: Dict[RuleKind, Callable] = {
            RuleKind.NAVIGATE: self._cmd_navigate,
            RuleKind.LOCATE: self._cmd_locate,
            RuleKind.CONTAINS: self._cmd_contains,
            RuleKind.PAGE_ACTION: self._cmd_page_action,
            RuleKind.PAGE_VALUE: self._cmd_page_value,
            RuleKind.WAIT: self._cmd_wait,
            RuleKind.REQUEST: self._cmd_request,
            RuleKind.FIXTURE: self._cmd_fixture,
            RuleKind.LOG: self._cmd_log,
            RuleKind.WRAP: self._cmd_wrap,
            RuleKind.WINDOW: self._cmd_window,
            RuleKind.DOCUMENT: self._cmd_window,
            RuleKind.VIEWPORT: self._cmd_viewport,
            RuleKind.GO: self._cmd_go,
            RuleKind.CONTEXT_ACTION: self._cmd_context,
            RuleKind.STORAGE: self._cmd_storage,
            RuleKind.FOCUSED: self._cmd_focused,
            RuleKind.SCROLL_TO: self._cmd_scroll_to,
            RuleKind.CLOCK: self._cmd_clock,
            RuleKind.UNSUPPORTED: self._cmd_unsupported,
        }
        self._chains: Dict[RuleKind, Callable] = {
            RuleKind.ACTION: self._chain_action,
            RuleKind.TYPE: self._chain_type,
            RuleKind.SELECT: self._chain_select,
            RuleKind.TRIGGER: self._chain_trigger,
            RuleKind.SUBMIT: self._chain_submit,
            RuleKind.SELECT_FILE: self._chain_select_file,
            RuleKind.TRAVERSE: self._chain_traverse,
            RuleKind.FILTER: self._chain_filter,
            RuleKind.ASSERT: self._chain_assert,
            RuleKind.INVOKE: self._chain_invoke,
            RuleKind.ITS: self._chain_its,
            RuleKind.ALIAS: self._chain_alias,
            RuleKind.WAIT: self._chain_wait,
            RuleKind.CALLBACK: self._chain_callback,
        }

    # ── Public API ───────────────────────────────────────────────────

    def convert(
        self,
        call: CypressCallExpression,
        ctx: MappingContext,
        subject: Optional[Subject] = None,
    ) -> List[ConvertedStatement]:
        """Convert a complete chain used as a statement."""
        resolved = self.resolve_subject(call, ctx, subject)
        statements = list(resolved.statements)
        subject = resolved.subject

        if not statements:
            if subject.kind == SubjectKind.LOCATOR:
                statements.append(statement(f"await {subject.expr}.waitFor();"))
            elif subject.expr and re.search(r"\bawait\b", subject.expr):
                statements.append(statement(f"{subject.expr};"))

        if resolved.warnings:
            if statements:
                statements[0].warnings.extend(resolved.warnings)
            else:
                statements.append(statement("", warnings=resolved.warnings))
        return statements

    def resolve_subject(
        self,
        call: CypressCallExpression,
        ctx: MappingContext,
        subject: Optional[Subject] = None,
    ) -> ResolvedChain:
        """Walk the chain, emitting statements, and return what it yields.

        ``subject`` starts the walk from an already-known value (a callback
        result) instead of the chain's own command.
        """
        out = ResolvedChain()
        chain = list(call.chained_calls)

        if subject is not None:
            out.subject = subject
        elif call.subject_expr is not None:
            out.subject = Subject(SubjectKind.LOCATOR, call.subject_expr)
        else:
            rule = self.rules.commands.get(call.command)
            if rule is None:
                out.subject = self._unknown_command(call, ctx, out)
            elif rule.kind == RuleKind.INTERCEPT:
                alias = None
                if chain and chain[0].method == "as" and chain[0].args and chain[0].args[0].is_string:
                    alias = chain.pop(0).args[0].value
                out.statements.extend(convert_intercept(call.args, ctx, alias=alias))
                out.subject = Subject(SubjectKind.NONE)
            else:
                out.subject = self._commands[rule.kind](call, rule, ctx, out)

        for link in chain:
            rule = self.rules.chains.get(link.method)
            if rule is None:
                out.statements.append(todo(
                    f"Convert unknown command: {link.method}",
                    f"Unknown chained command: {link.method}",
                ))
                continue
            out.subject = self._chains[rule.kind](link, rule, out.subject, ctx, out)
        return out

    # ── Helpers ──────────────────────────────────────────────────────

    def _unknown_command(self, call: CypressCallExpression, ctx: MappingContext, out: ResolvedChain) -> Subject:
        hook = ctx.custom_command_hook
        if hook is not None:
            converted = hook(call, ctx)
            if converted is not None:
                single = converted[0].code if len(converted) == 1 else ""
                if call.chained_calls and single.endswith(";") and "\n" not in single:
                    # Chained custom command: its awaited result becomes the subject
                    out.warnings.extend(converted[0].warnings)
                    return Subject(SubjectKind.VALUE, single[:-1])
                out.statements.extend(converted)
                return Subject(SubjectKind.NONE)
        logger.debug(f"Unknown Cypress command: {call.command}")
        out.statements.append(todo(
            f"Convert unknown command: {call.command}",
            f"Unknown command: {call.command}",
        ))
        return Subject(SubjectKind.NONE)

    def _require_locator(self, link: ChainedCall, subject: Subject, out: ResolvedChain) -> Optional[str]:
        locator = _as_locator(subject)
        if locator is None:
            out.statements.append(todo(
                f"Convert .{link.method}() manually: no element subject",
                f"Chained .{link.method}() has no element subject",
            ))
        return locator

    def _materialize(self, subject: Subject, ctx: MappingContext, out: ResolvedChain, name: str) -> Subject:
        """Bind an awaited subject expression to a const so it is evaluated once."""
        if not subject.expr or is_identifier(subject.expr) or not re.search(r"\bawait\b", subject.expr):
            return subject
        var = ctx.declare(name)
        out.statements.append(statement(f"const {var} = {subject.expr};"))
        return Subject(subject.kind, var, subject.locator, subject.argument)

    # ── cy.<command> ─────────────────────────────────────────────────

    def _cmd_navigate(self, call, rule: CommandRule, ctx, out) -> Subject:
        if not call.args:
            out.statements.append(todo("Convert cy.visit() without a URL", "cy.visit() called without a URL"))
            return Subject(SubjectKind.NONE)
        url = call.args[0]
        if url.kind == ArgKind.OBJECT:
            target = url.properties.get("url")
            url = target if target is not None else url
        out.statements.append(statement(f"await {ctx.page_ref}.{rule.target}({url.text});"))
        return Subject(SubjectKind.NONE)

    def _cmd_locate(self, call, rule, ctx, out) -> Subject:
        if not call.args:
            out.statements.append(todo("Convert cy.get() without a selector", "cy.get() called without a selector"))
            return Subject(SubjectKind.NONE)
        selector = call.args[0]
        alias_name = alias_reference(selector)
        if alias_name is None:
            return Subject(SubjectKind.LOCATOR, convert_selector(selector, ctx))

        alias = ctx.alias(alias_name)
        if alias is None:
            out.warnings.append(f"Alias '@{alias_name}' was not defined before use")
            return Subject(SubjectKind.LOCATOR, identifier_for(alias_name))
        if alias.kind == "route":
            out.warnings.append(alias_wait_warning(alias_name))
            return Subject(SubjectKind.RESPONSE, f"await {ctx.page_ref}.waitForResponse({response_predicate(alias)})")
        kind = SubjectKind.LOCATOR if alias.kind == "element" else SubjectKind.VALUE
        return Subject(kind, alias.variable or identifier_for(alias_name))

    def _cmd_contains(self, call, rule, ctx, out) -> Subject:
        return Subject(SubjectKind.LOCATOR, self._contains_locator(call.args, ctx.scope_ref, ctx, out))

    def _contains_locator(self, args: List[Argument], scope: str, ctx, out) -> str:
        if not args:
            out.statements.append(todo("Convert contains() without text", "contains() called without text"))
            return scope
        if len(args) >= 2 and args[1].kind != ArgKind.OBJECT:
            base = convert_selector(args[0], ctx, scope=scope)
            return f"{base}.filter({{ hasText: {args[1].text} }})"
        return f"{scope}.getByText({args[0].text})"

    def _cmd_page_action(self, call, rule, ctx, out) -> Subject:
        page = ctx.page_ref
        if call.command == "screenshot" and call.args and call.args[0].is_string:
            path = js_string(f"{call.args[0].value}.png")
            out.statements.append(statement(f"await {page}.screenshot({{ path: {path} }});"))
        else:
            out.statements.append(statement(f"await {page}.{rule.target}();"))
        return Subject(SubjectKind.NONE)

    def _cmd_page_value(self, call, rule, ctx, out) -> Subject:
        page = ctx.page_ref
        if call.command == "url":
            return Subject(SubjectKind.URL, f"{page}.url()")
        if call.command == "title":
            return Subject(SubjectKind.TITLE, f"await {page}.title()")
        if call.command == "hash":
            return Subject(SubjectKind.VALUE, f"new URL({page}.url()).hash")
        # location(key?)
        if call.args and call.args[0].is_string:
            return Subject(SubjectKind.VALUE, property_access(f"new URL({page}.url())", call.args[0].value))
        return Subject(SubjectKind.VALUE, f"new URL({page}.url())")

    def _cmd_wait(self, call, rule, ctx, out) -> Subject:
        if not call.args:
            out.statements.append(todo("Convert cy.wait() without arguments", "cy.wait() called without arguments"))
            return Subject(SubjectKind.NONE)
        arg = call.args[0]
        names = alias_names(arg)
        if not names:
            out.statements.append(statement(f"await {ctx.page_ref}.waitForTimeout({arg.text});"))
            return Subject(SubjectKind.NONE)

        out.warnings.extend(alias_wait_warning(name) for name in names)
        waits = [f"{ctx.page_ref}.waitForResponse({response_predicate(ctx.alias(name))})" for name in names]
        if len(waits) == 1:
            return Subject(SubjectKind.RESPONSE, f"await {waits[0]}")
        return Subject(SubjectKind.VALUE, f"await Promise.all([{', '.join(waits)}])")

    def _cmd_request(self, call, rule, ctx, out) -> Subject:
        args = list(call.args)
        method = "GET"
        options: List[str] = []
        if args and args[0].kind == ArgKind.OBJECT:
            props = args[0].properties
            if "method" in props and props["method"].is_string:
                method = props["method"].value.upper()
            url = props.get("url")
            for key, target in (("body", "data"), ("headers", "headers"), ("qs", "params"), ("form", "form"),
                                ("failOnStatusCode", "failOnStatusCode"), ("timeout", "timeout")):
                if key in props:
                    options.append(f"{target}: {props[key].text}")
        else:
            if len(args) >= 2 and args[0].is_string and args[0].value.upper() in HTTP_METHODS:
                method = args.pop(0).value.upper()
            url = args[0] if args else None
            if len(args) >= 2:
                options.append(f"data: {args[1].text}")

        if url is None:
            out.statements.append(todo("Convert cy.request() without a URL", "cy.request() called without a URL"))
            return Subject(SubjectKind.NONE)

        verb = method.lower()
        if verb not in _REQUEST_METHODS:
            options.insert(0, f"method: '{method}'")
            verb = "fetch"
        opts = _merge_options(*options)
        call_args = f"{url.text}, {opts}" if opts else url.text
        return Subject(SubjectKind.API_RESPONSE, f"await {ctx.page_ref}.request.{verb}({call_args})")

    def _cmd_fixture(self, call, rule, ctx, out) -> Subject:
        name = call.args[0].value if call.args and call.args[0].is_string else (call.args[0].text if call.args else "")
        out.statements.append(todo(f"Load fixture file {name}", f"Fixture file {name} must be loaded manually"))
        return Subject(SubjectKind.FIXTURE, "{}")

    def _cmd_log(self, call, rule, ctx, out) -> Subject:
        out.statements.append(statement(f"{rule.target}({', '.join(a.text for a in call.args)});"))
        return Subject(SubjectKind.NONE)

    def _cmd_wrap(self, call, rule, ctx, out) -> Subject:
        if not call.args:
            return Subject(SubjectKind.NONE)
        text = call.args[0].text
        if text in ctx.locator_vars:
            return Subject(SubjectKind.LOCATOR, text)
        return Subject(SubjectKind.VALUE, text)

    def _cmd_window(self, call, rule, ctx, out) -> Subject:
        if rule.kind == RuleKind.DOCUMENT:
            return Subject(SubjectKind.DOCUMENT, "document")
        return Subject(SubjectKind.WINDOW, "window")

    def _cmd_viewport(self, call, rule, ctx, out) -> Subject:
        args = call.args
        if len(args) >= 2 and not args[0].is_string:
            out.statements.append(statement(
                f"await {ctx.page_ref}.setViewportSize({{ width: {args[0].text}, height: {args[1].text} }});"
            ))
        else:
            preset = args[0].text if args else ""
            out.statements.append(todo(
                f"Map viewport preset {preset} to a Playwright device",
                f"Viewport preset {preset} needs a device descriptor",
            ))
        return Subject(SubjectKind.NONE)

    def _cmd_go(self, call, rule, ctx, out) -> Subject:
        direction = call.args[0] if call.args else None
        value = None
        if direction is not None:
            value = direction.value if direction.is_string else direction.text.replace(" ", "")
        if value in ("back", "-1"):
            out.statements.append(statement(f"await {ctx.page_ref}.goBack();"))
        elif value in ("forward", "1"):
            out.statements.append(statement(f"await {ctx.page_ref}.goForward();"))
        else:
            text = direction.text if direction is not None else ""
            out.statements.append(todo(f"Convert cy.go({text}) manually", f"cy.go({text}) has no direct equivalent"))
        return Subject(SubjectKind.NONE)

    def _cmd_context(self, call, rule, ctx, out) -> Subject:
        context = f"{ctx.page_ref}.context()"
        if call.command == "getCookies":
            return Subject(SubjectKind.VALUE, f"await {context}.cookies()")
        if call.command == "getCookie":
            name = call.args[0].text if call.args else "''"
            return Subject(SubjectKind.VALUE, f"(await {context}.cookies()).find((cookie) => cookie.name === {name})")
        if call.command == "setCookie":
            if len(call.args) < 2:
                out.statements.append(todo("Convert cy.setCookie() manually", "cy.setCookie() needs a name and value"))
                return Subject(SubjectKind.NONE)
            name, value = call.args[0].text, call.args[1].text
            out.statements.append(statement(
                f"await {context}.addCookies([{{ name: {name}, value: {value}, url: {ctx.page_ref}.url() }}]);"
            ))
            return Subject(SubjectKind.NONE)
        out.statements.append(statement(f"await {context}.{rule.target}();"))
        return Subject(SubjectKind.NONE)

    def _cmd_storage(self, call, rule, ctx, out) -> Subject:
        out.statements.append(statement(f"await {ctx.page_ref}.evaluate(() => {rule.target});"))
        return Subject(SubjectKind.NONE)

    def _cmd_focused(self, call, rule, ctx, out) -> Subject:
        return Subject(SubjectKind.LOCATOR, f"{ctx.page_ref}.locator('*:focus')")

    def _cmd_scroll_to(self, call, rule, ctx, out) -> Subject:
        args = call.args
        if args and args[0].is_string and args[0].value in _SCROLL_POSITIONS:
            coords = _SCROLL_POSITIONS[args[0].value]
        elif len(args) >= 2 and args[0].kind == ArgKind.NUMBER:
            coords = f"{args[0].text}, {args[1].text}"
        else:
            out.statements.append(todo("Convert cy.scrollTo() manually", "cy.scrollTo() position is not a literal"))
            return Subject(SubjectKind.NONE)
        out.statements.append(statement(f"await {ctx.page_ref}.evaluate(() => window.scrollTo({coords}));"))
        return Subject(SubjectKind.NONE)

    def _cmd_clock(self, call, rule, ctx, out) -> Subject:
        clock = f"{ctx.page_ref}.clock"
        if call.command == "tick":
            amount = call.args[0].text if call.args else "0"
            out.statements.append(statement(f"await {clock}.runFor({amount});"))
        elif call.args and call.args[0].kind != ArgKind.OBJECT:
            out.statements.append(statement(f"await {clock}.install({{ time: {call.args[0].text} }});"))
        else:
            out.statements.append(statement(f"await {clock}.install();"))
        return Subject(SubjectKind.NONE)

    def _cmd_unsupported(self, call, rule, ctx, out) -> Subject:
        out.statements.append(todo(rule.note, f"cy.{call.command}() is not supported: {rule.note}"))
        return Subject(SubjectKind.NONE)

    # ── .<chained>() ─────────────────────────────────────────────────

    def _chain_action(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject
        args = link.args
        options: List[str] = []
        if rule.note:
            options.append(rule.note.strip("{} "))
        if len(args) >= 2 and args[0].kind == ArgKind.NUMBER and args[1].kind == ArgKind.NUMBER:
            options.append(f"position: {{ x: {args[0].text}, y: {args[1].text} }}")
            args = args[2:]
        if args and args[-1].kind == ArgKind.OBJECT:
            body = _object_body(args[-1])
            if body:
                options.append(body)
            args = args[:-1]

        target = locator
        if link.method in ("check", "uncheck") and args and args[0].is_string:
            value_selector = js_string(f'[value="{args[0].value}"]')
            target = f"{locator}.and({ctx.scope_ref}.locator({value_selector}))"
        out.statements.append(statement(f"await {target}.{rule.target}({_merge_options(*options)});"))
        return subject

    def _chain_type(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject
        if not link.args:
            out.statements.append(todo("Convert .type() without text", ".type() called without text"))
            return subject

        text_arg = link.args[0]
        options = link.args[1] if len(link.args) > 1 and link.args[1].kind == ArgKind.OBJECT else None
        delay = options.properties.get("delay") if options is not None else None
        delay_opt = f", {{ delay: {delay.text} }}" if delay is not None else ""

        if not text_arg.is_string:
            method = "pressSequentially" if delay is not None else "fill"
            out.statements.append(statement(f"await {locator}.{method}(String({text_arg.text}){delay_opt});"))
            return subject

        segments = split_type_text(text_arg.value)
        if not segments:
            out.statements.append(statement(f"await {locator}.fill('');"))
            return subject
        for index, (kind, value) in enumerate(segments):
            if kind == "key":
                key = self.rules.keys.get(value.lower())
                if key is None:
                    out.warnings.append(f"Unknown key token {{{value}}} passed through to press()")
                    key = value
                out.statements.append(statement(f"await {locator}.press({js_string(key)});"))
            elif index == 0 and delay is None:
                out.statements.append(statement(f"await {locator}.fill({js_string(value)});"))
            else:
                out.statements.append(statement(f"await {locator}.pressSequentially({js_string(value)}{delay_opt});"))
        return subject

    def _chain_select(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject
        value = link.args[0].text if link.args else "''"
        out.statements.append(statement(f"await {locator}.{rule.target}({value});"))
        return subject

    def _chain_trigger(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject
        if not link.args or not link.args[0].is_string:
            out.statements.append(todo("Convert .trigger() manually", ".trigger() event name is not a literal"))
            return subject
        event = link.args[0].value
        if event in _HOVER_EVENTS:
            out.statements.append(statement(f"await {locator}.hover();"))
            return subject
        extra = [a.text for a in link.args[1:] if a.kind == ArgKind.OBJECT]
        init = f", {extra[0]}" if extra else ""
        out.statements.append(statement(f"await {locator}.{rule.target}({js_string(event)}{init});"))
        return subject

    def _chain_submit(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is not None:
            out.statements.append(statement(f"await {locator}.evaluate((form) => form.requestSubmit());"))
        return subject

    def _chain_select_file(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject
        files = link.args[0].text if link.args else "[]"
        out.statements.append(statement(f"await {locator}.{rule.target}({files});"))
        return subject

    def _chain_traverse(self, link, rule, subject, ctx, out) -> Subject:
        method = link.method
        args = link.args
        if method == "get":
            # A chained cy.get() queries from the root again
            if not args:
                return subject
            return Subject(SubjectKind.LOCATOR, convert_selector(args[0], ctx))

        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject

        if method == "find":
            if not args:
                return subject
            return Subject(SubjectKind.LOCATOR, convert_selector(args[0], ctx, scope=locator))
        if method == "contains":
            return Subject(SubjectKind.LOCATOR, self._contains_locator(args, locator, ctx, out))
        if method in ("first", "last"):
            return Subject(SubjectKind.LOCATOR, f"{locator}.{rule.target}()")
        if method == "eq":
            index = args[0].text if args else "0"
            return Subject(SubjectKind.LOCATOR, f"{locator}.nth({index})")
        if method in ("closest", "parents") and args:
            container = convert_selector(args[0], ctx, scope=ctx.page_ref)
            suffix = ".last()" if method == "closest" else ""
            return Subject(SubjectKind.LOCATOR, f"{container}.filter({{ has: {locator} }}){suffix}")
        if method == "children" and args and args[0].is_string:
            return Subject(SubjectKind.LOCATOR, f"{locator}.locator({js_string(':scope > ' + args[0].value)})")

        traversed = f"{locator}.{rule.target}"
        if args and args[0].kind in (ArgKind.STRING, ArgKind.TEMPLATE, ArgKind.EXPRESSION):
            traversed = f"{traversed}.and({convert_selector(args[0], ctx, scope=ctx.page_ref)})"
        return Subject(SubjectKind.LOCATOR, traversed)

    def _chain_filter(self, link, rule, subject, ctx, out) -> Subject:
        locator = self._require_locator(link, subject, out)
        if locator is None:
            return subject
        if not link.args or not link.args[0].is_string:
            out.statements.append(todo(
                f"Convert .{link.method}() with a callback manually",
                f".{link.method}() argument is not a selector",
            ))
            return subject

        selector = link.args[0].value.strip()
        contains = re.match(r"""^:contains\((?:"([^"]*)"|'([^']*)'|([^)]*))\)$""", selector)
        if contains:
            text = js_string(next(g for g in contains.groups() if g is not None))
            key = "hasText" if link.method == "filter" else "hasNotText"
            return Subject(SubjectKind.LOCATOR, f"{locator}.filter({{ {key}: {text} }})")
        if selector == ":visible":
            visible = "true" if link.method == "filter" else "false"
            return Subject(SubjectKind.LOCATOR, f"{locator}.filter({{ visible: {visible} }})")
        if link.method == "not":
            selector = f":not({selector})"
        return Subject(SubjectKind.LOCATOR, f"{locator}.and({convert_selector(selector, ctx, scope=ctx.page_ref)})")

    def _chain_assert(self, link, rule, subject, ctx, out) -> Subject:
        if not link.args:
            out.statements.append(todo(f"Convert empty .{link.method}() manually", f".{link.method}() has no chainer"))
            return subject
        chainer = link.args[0]
        if chainer.kind == ArgKind.FUNCTION:
            return self._chain_callback(link, rule, subject, ctx, out)
        if subject.kind == SubjectKind.NONE:
            out.statements.append(todo(
                f"Convert assertion manually: {link.method}({chainer.text})",
                "Assertion has no subject",
            ))
            return subject
        if subject.kind in (SubjectKind.RESPONSE, SubjectKind.API_RESPONSE):
            subject = self._materialize(subject, ctx, out, "response")
        converted, next_subject = convert_assertion(subject, chainer, link.args[1:], ctx, self.rules)
        out.statements.append(converted)
        return next_subject

    def _chain_invoke(self, link, rule, subject, ctx, out) -> Subject:
        if not link.args or not link.args[0].is_string:
            out.statements.append(todo("Convert .invoke() manually", ".invoke() method name is not a literal"))
            return subject
        name = link.args[0].value
        extra = link.args[1:]
        extra_text = ", ".join(a.text for a in extra)

        if subject.kind in (SubjectKind.WINDOW, SubjectKind.DOCUMENT):
            call = property_access(subject.expr, name)
            return Subject(SubjectKind.VALUE, f"await {ctx.page_ref}.evaluate(() => {call}({extra_text}))")

        if subject.kind == SubjectKind.LOCATOR:
            locator = subject.expr
            if name == "text":
                return Subject(SubjectKind.TEXT, f"await {locator}.textContent()", locator=locator)
            if name == "val" and not extra:
                return Subject(SubjectKind.INPUT_VALUE, f"await {locator}.inputValue()", locator=locator)
            if name == "val":
                out.statements.append(statement(f"await {locator}.fill(String({extra[0].text}));"))
                return subject
            if name == "attr" and len(extra) == 1:
                return Subject(
                    SubjectKind.ATTRIBUTE,
                    f"await {locator}.getAttribute({extra[0].text})",
                    locator=locator,
                    argument=extra[0].text,
                )
            if name == "attr" and len(extra) >= 2:
                out.statements.append(statement(
                    f"await {locator}.evaluate((el, [name, value]) => el.setAttribute(name, value), "
                    f"[{extra[0].text}, {extra[1].text}]);"
                ))
                return subject
            if name == "removeAttr" and extra:
                out.statements.append(statement(
                    f"await {locator}.evaluate((el, name) => el.removeAttribute(name), {extra[0].text});"
                ))
                return subject
            if name == "show":
                out.statements.append(statement(f"await {locator}.evaluate((el) => {{ el.style.display = ''; }});"))
                return subject
            if name == "hide":
                out.statements.append(statement(f"await {locator}.evaluate((el) => {{ el.style.display = 'none'; }});"))
                return subject
            template = self.rules.jquery.get(name)
            if template and template != "is" and ("{args}" not in template or extra):
                expr = unwrap_parens(template.format(el=locator, args=extra_text))
                return Subject(SubjectKind.VALUE, expr, locator=locator)
            out.statements.append(todo(
                f"Convert .invoke('{name}') manually",
                f"jQuery method {name}() has no Playwright equivalent",
            ))
            return subject

        if subject.kind == SubjectKind.NONE:
            out.statements.append(todo(f"Convert .invoke('{name}') manually", ".invoke() has no subject"))
            return subject
        subject = self._materialize(subject, ctx, out, "value")
        return Subject(SubjectKind.VALUE, f"{property_access(subject.expr, name)}({extra_text})")

    def _chain_its(self, link, rule, subject, ctx, out) -> Subject:
        if not link.args or not link.args[0].is_string:
            out.statements.append(todo("Convert .its() manually", ".its() path is not a literal"))
            return subject
        path = link.args[0].value

        if subject.kind == SubjectKind.LOCATOR:
            if path == "length":
                return Subject(SubjectKind.COUNT, f"await {subject.expr}.count()", locator=subject.expr)
            accessor = property_access("el", path)
            return Subject(SubjectKind.VALUE, f"await {subject.expr}.evaluate((el) => {accessor})")
        if subject.kind in (SubjectKind.RESPONSE, SubjectKind.API_RESPONSE):
            subject = self._materialize(subject, ctx, out, "response")
            return Subject(SubjectKind.VALUE, response_accessor(subject.expr, path))
        if subject.kind in (SubjectKind.WINDOW, SubjectKind.DOCUMENT):
            accessor = property_access(subject.expr, path)
            return Subject(SubjectKind.VALUE, f"await {ctx.page_ref}.evaluate(() => {accessor})")
        if subject.kind == SubjectKind.NONE:
            out.statements.append(todo(f"Convert .its('{path}') manually", ".its() has no subject"))
            return subject
        base = f"({subject.expr})" if subject.expr.startswith("await ") else subject.expr
        return Subject(SubjectKind.VALUE, property_access(base, path))

    def _chain_alias(self, link, rule, subject, ctx, out) -> Subject:
        if not link.args or not link.args[0].is_string:
            out.statements.append(todo("Convert .as() manually", ".as() name is not a literal"))
            return subject
        name = link.args[0].value
        if subject.kind == SubjectKind.NONE or not subject.expr:
            ctx.aliases[name] = AliasInfo(name=name, kind="value")
            return subject

        var = ctx.declare(identifier_for(name))
        out.statements.append(statement(f"const {var} = {subject.expr};"))
        if subject.kind == SubjectKind.LOCATOR:
            ctx.aliases[name] = AliasInfo(name=name, kind="element", variable=var)
            ctx.locator_vars.add(var)
        else:
            ctx.aliases[name] = AliasInfo(name=name, kind="value", variable=var)
        return Subject(subject.kind, var, subject.locator, subject.argument)

    def _chain_wait(self, link, rule, subject, ctx, out) -> Subject:
        if link.args and link.args[0].kind == ArgKind.NUMBER:
            out.statements.append(statement(f"await {ctx.page_ref}.waitForTimeout({link.args[0].text});"))
        else:
            text = link.args[0].text if link.args else ""
            out.statements.append(todo(f"Convert .wait({text}) manually", "Chained .wait() expects a duration"))
        return subject

    def _chain_callback(self, link, rule, subject, ctx, out) -> Subject:
        out.statements.append(todo(
            f"Convert .{link.method}() callback manually",
            f"Callback .{link.method}() reached the command mapper unflattened",
        ))
        return subject
