"""Immutable Cypress → Playwright rule tables.

Every table is a read-only mapping built once at import time and handed to
the CommandMapper through a RuleSet. The mapper owns the behaviour for each
RuleKind; the tables only say which behaviour a name gets and with what
Playwright target.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .models import SubjectKind


class RuleKind(str, Enum):
    """Handler families for commands and chained calls."""

    # cy.<command>
    NAVIGATE = "navigate"
    LOCATE = "locate"
    CONTAINS = "contains"
    PAGE_ACTION = "page_action"
    PAGE_VALUE = "page_value"
    WAIT = "wait"
    INTERCEPT = "intercept"
    REQUEST = "request"
    FIXTURE = "fixture"
    LOG = "log"
    WRAP = "wrap"
    WINDOW = "window"
    DOCUMENT = "document"
    VIEWPORT = "viewport"
    GO = "go"
    CONTEXT_ACTION = "context_action"
    STORAGE = "storage"
    FOCUSED = "focused"
    SCROLL_TO = "scroll_to"
    CLOCK = "clock"
    UNSUPPORTED = "unsupported"
    # .<chained>()
    ACTION = "action"
    TYPE = "type"
    SELECT = "select"
    TRIGGER = "trigger"
    SUBMIT = "submit"
    SELECT_FILE = "select_file"
    TRAVERSE = "traverse"
    FILTER = "filter"
    ASSERT = "assert"
    INVOKE = "invoke"
    ITS = "its"
    ALIAS = "alias"
    CALLBACK = "callback"


@dataclass(frozen=True)
class CommandRule:
    """How one Cypress command or chained method is converted."""

    kind: RuleKind
    target: str = ""
    requires_await: bool = False
    subject: SubjectKind = SubjectKind.NONE
    note: str = ""


@dataclass(frozen=True)
class AssertionRule:
    """One Chai/Cypress chainer and the Playwright matcher it becomes.

    ``args`` is how many of the ``should`` arguments feed the matcher;
    ``special`` names argument shaping the assertion module applies.
    """

    matcher: str
    args: int = 0
    special: Optional[str] = None


def _freeze(table: dict) -> Mapping:
    return MappingProxyType(dict(table))


# ── cy.<command> ────────────────────────────────────────────────────

COMMAND_RULES: Mapping[str, CommandRule] = _freeze({
    "visit": CommandRule(RuleKind.NAVIGATE, "goto", requires_await=True),
    "get": CommandRule(RuleKind.LOCATE, "locator", subject=SubjectKind.LOCATOR),
    "contains": CommandRule(RuleKind.CONTAINS, "getByText", subject=SubjectKind.LOCATOR),
    "reload": CommandRule(RuleKind.PAGE_ACTION, "reload", requires_await=True),
    "screenshot": CommandRule(RuleKind.PAGE_ACTION, "screenshot", requires_await=True),
    "pause": CommandRule(RuleKind.PAGE_ACTION, "pause", requires_await=True),
    "url": CommandRule(RuleKind.PAGE_VALUE, "url", subject=SubjectKind.URL),
    "title": CommandRule(RuleKind.PAGE_VALUE, "title", requires_await=True, subject=SubjectKind.TITLE),
    "location": CommandRule(RuleKind.PAGE_VALUE, "location", subject=SubjectKind.VALUE),
    "hash": CommandRule(RuleKind.PAGE_VALUE, "hash", subject=SubjectKind.VALUE),
    "wait": CommandRule(RuleKind.WAIT, "waitForTimeout", requires_await=True),
    "intercept": CommandRule(RuleKind.INTERCEPT, "route", requires_await=True),
    "route": CommandRule(RuleKind.INTERCEPT, "route", requires_await=True),
    "server": CommandRule(RuleKind.UNSUPPORTED, note="cy.server() is not needed with page.route()"),
    "request": CommandRule(RuleKind.REQUEST, "request", requires_await=True, subject=SubjectKind.API_RESPONSE),
    "fixture": CommandRule(RuleKind.FIXTURE, subject=SubjectKind.FIXTURE),
    "log": CommandRule(RuleKind.LOG, "console.log"),
    "wrap": CommandRule(RuleKind.WRAP, subject=SubjectKind.VALUE),
    "window": CommandRule(RuleKind.WINDOW, subject=SubjectKind.WINDOW),
    "document": CommandRule(RuleKind.DOCUMENT, subject=SubjectKind.DOCUMENT),
    "viewport": CommandRule(RuleKind.VIEWPORT, "setViewportSize", requires_await=True),
    "go": CommandRule(RuleKind.GO, requires_await=True),
    "clearCookies": CommandRule(RuleKind.CONTEXT_ACTION, "clearCookies", requires_await=True),
    "clearAllCookies": CommandRule(RuleKind.CONTEXT_ACTION, "clearCookies", requires_await=True),
    "getCookies": CommandRule(RuleKind.CONTEXT_ACTION, "cookies", requires_await=True, subject=SubjectKind.VALUE),
    "getCookie": CommandRule(RuleKind.CONTEXT_ACTION, "cookies", requires_await=True, subject=SubjectKind.VALUE),
    "setCookie": CommandRule(RuleKind.CONTEXT_ACTION, "addCookies", requires_await=True),
    "clearLocalStorage": CommandRule(RuleKind.STORAGE, "localStorage.clear()", requires_await=True),
    "clearAllLocalStorage": CommandRule(RuleKind.STORAGE, "localStorage.clear()", requires_await=True),
    "clearAllSessionStorage": CommandRule(RuleKind.STORAGE, "sessionStorage.clear()", requires_await=True),
    "focused": CommandRule(RuleKind.FOCUSED, subject=SubjectKind.LOCATOR),
    "scrollTo": CommandRule(RuleKind.SCROLL_TO, requires_await=True),
    "clock": CommandRule(RuleKind.CLOCK, "install", requires_await=True),
    "tick": CommandRule(RuleKind.CLOCK, "runFor", requires_await=True),
    "task": CommandRule(RuleKind.UNSUPPORTED, note="cy.task() runs in the Node process; call the task code directly"),
    "exec": CommandRule(RuleKind.UNSUPPORTED, note="cy.exec() has no page equivalent; use child_process in a fixture"),
    "session": CommandRule(RuleKind.UNSUPPORTED, note="cy.session() maps to storageState in a setup project"),
    "readFile": CommandRule(RuleKind.UNSUPPORTED, note="cy.readFile() maps to fs.readFileSync"),
    "writeFile": CommandRule(RuleKind.UNSUPPORTED, note="cy.writeFile() maps to fs.writeFileSync"),
    "origin": CommandRule(RuleKind.UNSUPPORTED, note="cy.origin() is unnecessary; Playwright navigates across origins"),
    "stub": CommandRule(RuleKind.UNSUPPORTED, note="cy.stub() has no Playwright equivalent"),
    "spy": CommandRule(RuleKind.UNSUPPORTED, note="cy.spy() has no Playwright equivalent"),
})

# ── .<chained>() ─────────────────────────────────────────────────────

CHAIN_RULES: Mapping[str, CommandRule] = _freeze({
    "click": CommandRule(RuleKind.ACTION, "click", requires_await=True),
    "dblclick": CommandRule(RuleKind.ACTION, "dblclick", requires_await=True),
    "rightclick": CommandRule(RuleKind.ACTION, "click", requires_await=True, note="{ button: 'right' }"),
    "check": CommandRule(RuleKind.ACTION, "check", requires_await=True),
    "uncheck": CommandRule(RuleKind.ACTION, "uncheck", requires_await=True),
    "focus": CommandRule(RuleKind.ACTION, "focus", requires_await=True),
    "blur": CommandRule(RuleKind.ACTION, "blur", requires_await=True),
    "clear": CommandRule(RuleKind.ACTION, "clear", requires_await=True),
    "hover": CommandRule(RuleKind.ACTION, "hover", requires_await=True),
    "realHover": CommandRule(RuleKind.ACTION, "hover", requires_await=True),
    "scrollIntoView": CommandRule(RuleKind.ACTION, "scrollIntoViewIfNeeded", requires_await=True),
    "type": CommandRule(RuleKind.TYPE, "fill", requires_await=True),
    "select": CommandRule(RuleKind.SELECT, "selectOption", requires_await=True),
    "trigger": CommandRule(RuleKind.TRIGGER, "dispatchEvent", requires_await=True),
    "submit": CommandRule(RuleKind.SUBMIT, "evaluate", requires_await=True),
    "selectFile": CommandRule(RuleKind.SELECT_FILE, "setInputFiles", requires_await=True),
    "attachFile": CommandRule(RuleKind.SELECT_FILE, "setInputFiles", requires_await=True),
    "find": CommandRule(RuleKind.TRAVERSE, "locator"),
    "get": CommandRule(RuleKind.TRAVERSE, "locator"),
    "first": CommandRule(RuleKind.TRAVERSE, "first"),
    "last": CommandRule(RuleKind.TRAVERSE, "last"),
    "eq": CommandRule(RuleKind.TRAVERSE, "nth"),
    "parent": CommandRule(RuleKind.TRAVERSE, "locator('..')"),
    "parents": CommandRule(RuleKind.TRAVERSE, "locator('xpath=ancestor::*')"),
    "children": CommandRule(RuleKind.TRAVERSE, "locator(':scope > *')"),
    "siblings": CommandRule(RuleKind.TRAVERSE, "locator('xpath=../*')"),
    "next": CommandRule(RuleKind.TRAVERSE, "locator('xpath=following-sibling::*[1]')"),
    "prev": CommandRule(RuleKind.TRAVERSE, "locator('xpath=preceding-sibling::*[1]')"),
    "nextAll": CommandRule(RuleKind.TRAVERSE, "locator('xpath=following-sibling::*')"),
    "prevAll": CommandRule(RuleKind.TRAVERSE, "locator('xpath=preceding-sibling::*')"),
    "closest": CommandRule(RuleKind.TRAVERSE, "closest"),
    "contains": CommandRule(RuleKind.TRAVERSE, "getByText"),
    "filter": CommandRule(RuleKind.FILTER, "filter"),
    "not": CommandRule(RuleKind.FILTER, "not"),
    "should": CommandRule(RuleKind.ASSERT, "expect", requires_await=True),
    "and": CommandRule(RuleKind.ASSERT, "expect", requires_await=True),
    "invoke": CommandRule(RuleKind.INVOKE),
    "its": CommandRule(RuleKind.ITS),
    "as": CommandRule(RuleKind.ALIAS),
    "wait": CommandRule(RuleKind.WAIT, "waitForTimeout", requires_await=True),
    "then": CommandRule(RuleKind.CALLBACK),
    "within": CommandRule(RuleKind.CALLBACK),
    "each": CommandRule(RuleKind.CALLBACK),
    "spread": CommandRule(RuleKind.CALLBACK),
})

# Chained methods whose callback form is handled by the flattener
CALLBACK_METHODS = frozenset({"then", "within", "each", "spread"})

# ── Assertions ───────────────────────────────────────────────────────

LOCATOR_ASSERTIONS: Mapping[str, AssertionRule] = _freeze({
    "be.visible": AssertionRule("toBeVisible"),
    "be.hidden": AssertionRule("toBeHidden"),
    "exist": AssertionRule("toBeAttached"),
    "be.enabled": AssertionRule("toBeEnabled"),
    "be.disabled": AssertionRule("toBeDisabled"),
    "be.checked": AssertionRule("toBeChecked"),
    "be.selected": AssertionRule("toBeChecked"),
    "be.focused": AssertionRule("toBeFocused"),
    "have.focus": AssertionRule("toBeFocused"),
    "be.empty": AssertionRule("toBeEmpty"),
    "have.text": AssertionRule("toHaveText", 1),
    "contain.text": AssertionRule("toContainText", 1),
    "include.text": AssertionRule("toContainText", 1),
    "contain": AssertionRule("toContainText", 1),
    "contains": AssertionRule("toContainText", 1),
    "include": AssertionRule("toContainText", 1),
    "have.value": AssertionRule("toHaveValue", 1),
    "have.length": AssertionRule("toHaveCount", 1),
    "have.class": AssertionRule("toHaveClass", 1, special="class"),
    "have.attr": AssertionRule("toHaveAttribute", 2),
    "have.css": AssertionRule("toHaveCSS", 2),
    "have.id": AssertionRule("toHaveId", 1),
    "have.prop": AssertionRule("toHaveJSProperty", 2),
    "match": AssertionRule("toHaveText", 1),
})

# Count comparisons on a locator have no retrying matcher
LENGTH_COMPARATORS: Mapping[str, str] = _freeze({
    "have.length.greaterThan": "toBeGreaterThan",
    "have.length.gt": "toBeGreaterThan",
    "have.length.above": "toBeGreaterThan",
    "have.length.lessThan": "toBeLessThan",
    "have.length.lt": "toBeLessThan",
    "have.length.below": "toBeLessThan",
    "have.length.gte": "toBeGreaterThanOrEqual",
    "have.length.at.least": "toBeGreaterThanOrEqual",
    "have.length.lte": "toBeLessThanOrEqual",
    "have.length.at.most": "toBeLessThanOrEqual",
})

VALUE_ASSERTIONS: Mapping[str, AssertionRule] = _freeze({
    "eq": AssertionRule("toBe", 1),
    "equal": AssertionRule("toBe", 1),
    "equals": AssertionRule("toBe", 1),
    "deep.equal": AssertionRule("toEqual", 1),
    "deep.eq": AssertionRule("toEqual", 1),
    "eql": AssertionRule("toEqual", 1),
    "include": AssertionRule("toContain", 1),
    "contain": AssertionRule("toContain", 1),
    "contains": AssertionRule("toContain", 1),
    "have.length": AssertionRule("toHaveLength", 1),
    "have.property": AssertionRule("toHaveProperty", 2),
    "match": AssertionRule("toMatch", 1),
    "exist": AssertionRule("toBeDefined"),
    "be.ok": AssertionRule("toBeTruthy"),
    "be.true": AssertionRule("toBe", special="true"),
    "be.false": AssertionRule("toBe", special="false"),
    "be.null": AssertionRule("toBeNull"),
    "be.undefined": AssertionRule("toBeUndefined"),
    "be.NaN": AssertionRule("toBeNaN"),
    "be.empty": AssertionRule("toHaveLength", special="zero"),
    "be.greaterThan": AssertionRule("toBeGreaterThan", 1),
    "be.gt": AssertionRule("toBeGreaterThan", 1),
    "be.above": AssertionRule("toBeGreaterThan", 1),
    "be.lessThan": AssertionRule("toBeLessThan", 1),
    "be.lt": AssertionRule("toBeLessThan", 1),
    "be.below": AssertionRule("toBeLessThan", 1),
    "be.gte": AssertionRule("toBeGreaterThanOrEqual", 1),
    "be.at.least": AssertionRule("toBeGreaterThanOrEqual", 1),
    "be.lte": AssertionRule("toBeLessThanOrEqual", 1),
    "be.at.most": AssertionRule("toBeLessThanOrEqual", 1),
    "be.a": AssertionRule("toBe", 1, special="typeof"),
    "be.an": AssertionRule("toBe", 1, special="typeof"),
    "be.instanceOf": AssertionRule("toBeInstanceOf", 1),
    "be.closeTo": AssertionRule("toBeCloseTo", 2),
})

# Derived locator values keep retrying matchers: {subject kind: {chainer: rule}}
DERIVED_ASSERTIONS: Mapping[SubjectKind, Mapping[str, AssertionRule]] = _freeze({
    SubjectKind.TEXT: _freeze({
        "eq": AssertionRule("toHaveText", 1),
        "equal": AssertionRule("toHaveText", 1),
        "include": AssertionRule("toContainText", 1),
        "contain": AssertionRule("toContainText", 1),
        "match": AssertionRule("toHaveText", 1),
        "be.empty": AssertionRule("toBeEmpty"),
    }),
    SubjectKind.INPUT_VALUE: _freeze({
        "eq": AssertionRule("toHaveValue", 1),
        "equal": AssertionRule("toHaveValue", 1),
        "match": AssertionRule("toHaveValue", 1),
        "be.empty": AssertionRule("toHaveValue", special="empty_string"),
    }),
    SubjectKind.ATTRIBUTE: _freeze({
        "eq": AssertionRule("toHaveAttribute", 1, special="attribute"),
        "equal": AssertionRule("toHaveAttribute", 1, special="attribute"),
        "match": AssertionRule("toHaveAttribute", 1, special="attribute"),
        "exist": AssertionRule("toHaveAttribute", special="attribute"),
    }),
    SubjectKind.COUNT: _freeze({
        "eq": AssertionRule("toHaveCount", 1),
        "equal": AssertionRule("toHaveCount", 1),
        "have.length": AssertionRule("toHaveCount", 1),
    }),
})

PAGE_ASSERTIONS: Mapping[SubjectKind, Mapping[str, AssertionRule]] = _freeze({
    SubjectKind.URL: _freeze({
        "include": AssertionRule("toHaveURL", 1, special="url_include"),
        "contain": AssertionRule("toHaveURL", 1, special="url_include"),
        "contains": AssertionRule("toHaveURL", 1, special="url_include"),
        "eq": AssertionRule("toHaveURL", 1),
        "equal": AssertionRule("toHaveURL", 1),
        "match": AssertionRule("toHaveURL", 1),
    }),
    SubjectKind.TITLE: _freeze({
        "include": AssertionRule("toHaveTitle", 1, special="url_include"),
        "contain": AssertionRule("toHaveTitle", 1, special="url_include"),
        "eq": AssertionRule("toHaveTitle", 1),
        "equal": AssertionRule("toHaveTitle", 1),
        "match": AssertionRule("toHaveTitle", 1),
    }),
})

# ── jQuery methods on callback bindings ──────────────────────────────

JQUERY_RULES: Mapping[str, str] = _freeze({
    "text": "(await {el}.textContent())",
    "val": "(await {el}.inputValue())",
    "html": "(await {el}.innerHTML())",
    "attr": "(await {el}.getAttribute({args}))",
    "prop": "(await {el}.evaluate((node, name) => node[name], {args}))",
    "css": "(await {el}.evaluate((node, name) => getComputedStyle(node).getPropertyValue(name), {args}))",
    "hasClass": "((await {el}.getAttribute('class')) || '').split(/\\s+/).includes({args})",
    "is": "is",
    "width": "((await {el}.boundingBox())?.width ?? 0)",
    "height": "((await {el}.boundingBox())?.height ?? 0)",
    "get": "{el}.nth({args})",
    "index": "(await {el}.evaluate((node) => Array.from(node.parentElement.children).indexOf(node)))",
})

# ``$el.is(':visible')`` style state checks
JQUERY_STATE_CHECKS: Mapping[str, str] = _freeze({
    ":visible": "isVisible",
    ":hidden": "isHidden",
    ":checked": "isChecked",
    ":disabled": "isDisabled",
    ":enabled": "isEnabled",
    ":focus": "evaluate((node) => node === document.activeElement)",
})

# jQuery methods with Cypress chain equivalents route through CHAIN_RULES
JQUERY_CHAIN_METHODS = frozenset({
    "click", "dblclick", "type", "clear", "check", "uncheck", "focus", "blur",
    "select", "trigger", "submit", "find", "first", "last", "eq", "parent",
    "children", "siblings", "next", "prev", "closest", "filter", "not",
    "contains", "should", "and", "invoke", "its", "then", "each", "within",
    "scrollIntoView",
})

# ── Keyboard tokens inside .type('...{enter}') ───────────────────────

KEY_MAP: Mapping[str, str] = _freeze({
    "enter": "Enter",
    "esc": "Escape",
    "escape": "Escape",
    "backspace": "Backspace",
    "del": "Delete",
    "delete": "Delete",
    "tab": "Tab",
    "uparrow": "ArrowUp",
    "downarrow": "ArrowDown",
    "leftarrow": "ArrowLeft",
    "rightarrow": "ArrowRight",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "insert": "Insert",
    "selectall": "ControlOrMeta+a",
    "movetostart": "Home",
    "movetoend": "End",
    "space": "Space",
    "ctrl": "Control",
    "alt": "Alt",
    "shift": "Shift",
    "meta": "Meta",
})


@dataclass(frozen=True)
class RuleSet:
    """Bundle of rule tables injected into the CommandMapper."""

    commands: Mapping[str, CommandRule] = field(default_factory=lambda: COMMAND_RULES)
    chains: Mapping[str, CommandRule] = field(default_factory=lambda: CHAIN_RULES)
    locator_assertions: Mapping[str, AssertionRule] = field(default_factory=lambda: LOCATOR_ASSERTIONS)
    value_assertions: Mapping[str, AssertionRule] = field(default_factory=lambda: VALUE_ASSERTIONS)
    derived_assertions: Mapping[SubjectKind, Mapping[str, AssertionRule]] = field(default_factory=lambda: DERIVED_ASSERTIONS)
    page_assertions: Mapping[SubjectKind, Mapping[str, AssertionRule]] = field(default_factory=lambda: PAGE_ASSERTIONS)
    length_comparators: Mapping[str, str] = field(default_factory=lambda: LENGTH_COMPARATORS)
    jquery: Mapping[str, str] = field(default_factory=lambda: JQUERY_RULES)
    keys: Mapping[str, str] = field(default_factory=lambda: KEY_MAP)

    def is_cypress_command(self, name: str) -> bool:
        return name in self.commands


DEFAULT_RULES = RuleSet()
