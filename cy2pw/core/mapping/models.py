"""Data models for Cypress → Playwright command mapping."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from ..constants import DEFAULT_TEST_ID_ATTRIBUTE


def _identity(name: str) -> str:
    return name


class ArgKind(str, Enum):
    """Shape of one call argument."""

    STRING = "string"
    TEMPLATE = "template"
    NUMBER = "number"
    BOOLEAN = "boolean"
    REGEX = "regex"
    OBJECT = "object"
    ARRAY = "array"
    FUNCTION = "function"
    EXPRESSION = "expression"


@dataclass
class Argument:
    """A literal or opaque expression passed to a Cypress command.

    ``text`` is the rendered expression (bindings already renamed);
    ``value`` holds the Python value of string/number/boolean literals.
    """

    kind: ArgKind
    text: str
    value: Any = None
    properties: Dict[str, "Argument"] = field(default_factory=dict)
    node: Any = None

    @property
    def is_string(self) -> bool:
        return self.kind == ArgKind.STRING or (self.kind == ArgKind.TEMPLATE and self.value is not None)

    @property
    def is_literal(self) -> bool:
        return self.kind in (ArgKind.STRING, ArgKind.NUMBER, ArgKind.BOOLEAN)


@dataclass
class ChainedCall:
    method: str
    args: List[Argument] = field(default_factory=list)


@dataclass
class CypressCallExpression:
    """One ``cy.<command>(...)`` call and everything chained onto it.

    ``subject_expr`` is set when the chain starts from an existing locator
    (``cy.wrap($el)`` or a jQuery binding) rather than from ``cy``.
    """

    command: str
    args: List[Argument] = field(default_factory=list)
    chained_calls: List[ChainedCall] = field(default_factory=list)
    subject_expr: Optional[str] = None
    source_text: str = ""


@dataclass
class ConvertedStatement:
    """One generated Playwright statement."""

    code: str
    requires_await: bool = False
    imports_needed: Set[str] = field(default_factory=set)
    warnings: List[str] = field(default_factory=list)
    manual_review: bool = False


class SubjectKind(str, Enum):
    """What a Cypress chain currently yields."""

    NONE = "none"
    LOCATOR = "locator"
    URL = "url"
    TITLE = "title"
    TEXT = "text"
    INPUT_VALUE = "input_value"
    ATTRIBUTE = "attribute"
    COUNT = "count"
    VALUE = "value"
    RESPONSE = "response"
    API_RESPONSE = "api_response"
    WINDOW = "window"
    DOCUMENT = "document"
    FIXTURE = "fixture"


@dataclass
class Subject:
    """The value a chain yields, as a Playwright expression.

    ``locator`` keeps the backing locator for derived values (text, count,
    attribute) so assertions can stay retrying locator assertions.
    """

    kind: SubjectKind
    expr: str = ""
    locator: Optional[str] = None
    argument: Optional[str] = None  # attribute name for ATTRIBUTE subjects

    @property
    def is_locator(self) -> bool:
        return self.kind == SubjectKind.LOCATOR


@dataclass
class ResolvedChain:
    """Statements emitted while walking a chain, and what it finally yields."""

    statements: List[ConvertedStatement] = field(default_factory=list)
    subject: Subject = field(default_factory=lambda: Subject(SubjectKind.NONE))
    warnings: List[str] = field(default_factory=list)


@dataclass
class AliasInfo:
    """Metadata recorded by ``.as(name)``."""

    name: str
    kind: str  # "route" | "element" | "value" | "request"
    variable: Optional[str] = None
    url: Optional[str] = None  # URL argument text as written
    url_value: Optional[str] = None  # literal URL when known
    method: Optional[str] = None


# Hook signature for custom commands: returns None when the name is unknown
CustomCommandHook = Callable[["CypressCallExpression", "MappingContext"], Optional[List[ConvertedStatement]]]

# Hook for intercepts with handler functions: (spec, route pattern, ctx) -> statements
RouteHandlerHook = Callable[[Any, str, "MappingContext"], List[ConvertedStatement]]


@dataclass
class MappingContext:
    """Per-file state threaded through conversion.

    Owned by a single file conversion; never shared across workers.
    """

    page_ref: str = "page"
    locator_root: Optional[str] = None
    language: str = "typescript"
    test_id_attribute: str = DEFAULT_TEST_ID_ATTRIBUTE  # the only attribute mapped to getByTestId
    aliases: Dict[str, AliasInfo] = field(default_factory=dict)
    custom_command_hook: Optional[CustomCommandHook] = None
    route_handler_hook: Optional[RouteHandlerHook] = None
    declare: Callable[[str], str] = _identity
    locator_vars: Set[str] = field(default_factory=set)
    imports_needed: Set[str] = field(default_factory=set)
    in_page_object: bool = False
    page_object_classes: Set[str] = field(default_factory=set)
    depth: int = 0

    @property
    def scope_ref(self) -> str:
        """Receiver for new locators: the page, or the active ``within`` scope."""
        return self.locator_root or self.page_ref

    def alias(self, name: str) -> Optional[AliasInfo]:
        return self.aliases.get(name.lstrip("@"))
