"""Selector strategy translation.

Literal Cypress selectors are inspected and, where they are exactly one
attribute match, upgraded to Playwright's user-facing locators. Everything
else stays a CSS locator.
"""

import re
from typing import Optional, Union

from .literals import js_string
from .models import Argument, MappingContext

_EXACT_ATTRIBUTE = re.compile(
    r"""^\[\s*([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\]\s"']+))\s*\]$"""
)

# Pseudo selectors Cypress borrows from jQuery, handled as locator methods
_FIRST = re.compile(r"^(.+?):first$")
_LAST = re.compile(r"^(.+?):last$")
_EQ = re.compile(r"^(.+?):eq\((\d+)\)$")
_CONTAINS = re.compile(r"""^(.*?):contains\((?:"([^"]*)"|'([^']*)'|([^)]*))\)$""")

ATTRIBUTE_LOCATORS = {
    "role": "getByRole",
    "aria-label": "getByLabel",
    "placeholder": "getByPlaceholder",
    "title": "getByTitle",
    "alt": "getByAltText",
}


def _first_group(match: "re.Match[str]", start: int) -> str:
    for value in match.groups()[start - 1:]:
        if value is not None:
            return value
    return ""


def attribute_locator(selector: str, scope: str, test_id_attribute: str = "data-testid") -> Optional[str]:
    """Return a user-facing locator for an exact single-attribute selector.

    Preference order: test id, role, aria-label, then placeholder, title
    and alt text.
    """
    match = _EXACT_ATTRIBUTE.match(selector.strip())
    if not match:
        return None
    attribute = match.group(1)
    value = _first_group(match, 2)
    if attribute == test_id_attribute:
        return f"{scope}.getByTestId({js_string(value)})"
    method = ATTRIBUTE_LOCATORS.get(attribute)
    if method:
        return f"{scope}.{method}({js_string(value)})"
    return None


def convert_selector(selector: Union[Argument, str], ctx: MappingContext, scope: Optional[str] = None) -> str:
    """Translate a ``cy.get`` selector into a Playwright locator expression.

    Args:
        selector: The selector argument, or a raw selector string
        ctx: Mapping context (page reference, test-id attribute, within scope)
        scope: Receiver to build on; defaults to the context scope

    Returns:
        Locator expression such as ``page.getByTestId('submit')``
    """
    receiver = scope or ctx.scope_ref
    if isinstance(selector, Argument):
        if not selector.is_string:
            return f"{receiver}.locator({selector.text})"
        value = selector.value
    else:
        value = selector
    return _convert_literal(value.strip(), receiver, ctx.test_id_attribute)


def _convert_literal(value: str, receiver: str, test_id_attribute: str) -> str:
    match = _FIRST.match(value)
    if match:
        return f"{_convert_literal(match.group(1), receiver, test_id_attribute)}.first()"
    match = _LAST.match(value)
    if match:
        return f"{_convert_literal(match.group(1), receiver, test_id_attribute)}.last()"
    match = _EQ.match(value)
    if match:
        return f"{_convert_literal(match.group(1), receiver, test_id_attribute)}.nth({match.group(2)})"
    match = _CONTAINS.match(value)
    if match:
        text = js_string(_first_group(match, 2))
        base = match.group(1).strip()
        if not base:
            return f"{receiver}.getByText({text})"
        return f"{_convert_literal(base, receiver, test_id_attribute)}.filter({{ hasText: {text} }})"

    upgraded = attribute_locator(value, receiver, test_id_attribute)
    if upgraded:
        return upgraded
    return f"{receiver}.locator({js_string(value)})"


def alias_reference(selector: Argument) -> Optional[str]:
    """Alias name for ``cy.get('@name')``, or None."""
    if selector.is_string and isinstance(selector.value, str) and selector.value.startswith("@"):
        return selector.value[1:]
    return None
