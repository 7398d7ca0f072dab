"""Extract Cypress call chains from tree-sitter nodes."""

import logging
from typing import Callable, Dict, Mapping, Optional

import tree_sitter

from ..ast_parser.nodes import call_arguments, is_function, node_text, string_value, unwind_call_chain
from .models import ArgKind, Argument, ChainedCall, CypressCallExpression

logger = logging.getLogger(__name__)

# Renders a node to its (possibly rewritten) expression text
Renderer = Callable[[tree_sitter.Node], str]

_NUMBER_TYPES = ("number",)
_BOOLEAN_TYPES = ("true", "false")


def _number_value(text: str):
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return None


def extract_argument(node: tree_sitter.Node, source: bytes, render: Optional[Renderer] = None) -> Argument:
    """Classify one argument node and capture its rendered text."""
    kind = node.type
    # Callbacks are rendered by the flattener, never inline
    if is_function(node) or render is None:
        text = node_text(node, source)
    else:
        text = render(node)

    if kind == "string":
        return Argument(ArgKind.STRING, text, value=string_value(node, source), node=node)
    if kind == "template_string":
        return Argument(ArgKind.TEMPLATE, text, value=string_value(node, source), node=node)
    if kind in _NUMBER_TYPES:
        return Argument(ArgKind.NUMBER, text, value=_number_value(node_text(node, source)), node=node)
    if kind in _BOOLEAN_TYPES:
        return Argument(ArgKind.BOOLEAN, text, value=kind == "true", node=node)
    if kind == "regex":
        return Argument(ArgKind.REGEX, text, node=node)
    if kind == "array":
        return Argument(ArgKind.ARRAY, text, node=node)
    if is_function(node):
        return Argument(ArgKind.FUNCTION, text, node=node)
    if kind == "object":
        properties: Dict[str, Argument] = {}
        for child in node.named_children:
            if child.type == "pair":
                key_node = child.child_by_field_name("key")
                value_node = child.child_by_field_name("value")
                if key_node is None or value_node is None:
                    continue
                key = string_value(key_node, source)
                if key is None:
                    key = node_text(key_node, source)
                properties[key] = extract_argument(value_node, source, render)
            elif child.type == "shorthand_property_identifier":
                name = node_text(child, source)
                rendered = render(child) if render else name
                # A renamed shorthand renders as "name: renamed"
                value = rendered.split(":", 1)[1].strip() if ":" in rendered else rendered
                properties[name] = Argument(ArgKind.EXPRESSION, value, node=child)
        return Argument(ArgKind.OBJECT, text, properties=properties, node=node)
    return Argument(ArgKind.EXPRESSION, text, node=node)


def extract_call(
    node: tree_sitter.Node,
    source: bytes,
    render: Optional[Renderer] = None,
    bindings: Optional[Mapping[str, str]] = None,
) -> Optional[CypressCallExpression]:
    """Build a CypressCallExpression from a call node.

    Chains rooted at ``cy`` yield the first link as the command. Chains
    rooted at a known locator binding (``bindings`` maps source text to the
    locator expression) yield an empty command with ``subject_expr`` set.

    Args:
        node: A ``call_expression`` node
        source: Source bytes the node belongs to
        render: Optional callback used to render argument expressions
        bindings: Receiver texts that denote locators

    Returns:
        The call expression, or None when the chain is not Cypress
    """
    if node.type != "call_expression":
        return None
    root, links = unwind_call_chain(node, source)
    if not links:
        return None

    def chained(link) -> ChainedCall:
        return ChainedCall(
            method=link.method,
            args=[extract_argument(a, source, render) for a in call_arguments(link.arguments)],
        )

    root_text = node_text(root, source)
    if root.type == "identifier" and root_text == "cy":
        first = links[0]
        return CypressCallExpression(
            command=first.method,
            args=[extract_argument(a, source, render) for a in call_arguments(first.arguments)],
            chained_calls=[chained(link) for link in links[1:]],
            source_text=node_text(node, source),
        )
    if not bindings:
        return None
    if root_text in bindings:
        return CypressCallExpression(
            command="",
            chained_calls=[chained(link) for link in links],
            subject_expr=bindings[root_text],
            source_text=node_text(node, source),
        )
    # Page-object methods that return locators: this.getEmail().type(...)
    method_key = f"{root_text}.{links[0].method}()"
    if len(links) > 1 and method_key in bindings:
        receiver = links[0].call
        return CypressCallExpression(
            command="",
            chained_calls=[chained(link) for link in links[1:]],
            subject_expr=render(receiver) if render is not None else node_text(receiver, source),
            source_text=node_text(node, source),
        )
    return None


def is_cypress_chain(node: tree_sitter.Node, source: bytes) -> bool:
    """True when ``node`` is a call chain rooted at ``cy``."""
    if node.type != "call_expression":
        return False
    root, links = unwind_call_chain(node, source)
    return bool(links) and root.type == "identifier" and node_text(root, source) == "cy"
