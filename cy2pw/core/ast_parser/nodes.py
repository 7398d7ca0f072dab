"""Small helpers over tree-sitter nodes shared by the conversion stages."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import tree_sitter

FUNCTION_NODE_TYPES = frozenset({
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
})

PARAMETER_WRAPPERS = frozenset({"required_parameter", "optional_parameter"})


@dataclass
class ChainLink:
    """One ``.method(args)`` hop of a call chain, root first."""

    method: str
    arguments: Optional[tree_sitter.Node]
    call: tree_sitter.Node


def node_text(node: Optional[tree_sitter.Node], source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def string_value(node: Optional[tree_sitter.Node], source: bytes) -> Optional[str]:
    """Return the literal value of a quote string or a plain template string.

    Returns None for anything that is not a constant string.
    """
    if node is None:
        return None
    if node.type == "string":
        return node_text(node, source)[1:-1]
    if node.type == "template_string":
        if any(c.type == "template_substitution" for c in node.named_children):
            return None
        return node_text(node, source)[1:-1]
    return None


def call_arguments(args_node: Optional[tree_sitter.Node]) -> List[tree_sitter.Node]:
    """Named argument nodes of an ``arguments`` node, comments excluded."""
    if args_node is None:
        return []
    return [c for c in args_node.named_children if c.type != "comment"]


def unwind_call_chain(node: tree_sitter.Node, source: bytes) -> Tuple[tree_sitter.Node, List[ChainLink]]:
    """Split ``a.b(x).c(y)`` into its root node and ordered links.

    The root is whatever sits left of the first called member, typically the
    identifier ``cy``. A bare call like ``describe(...)`` yields itself as the
    root and no links.
    """
    links: List[ChainLink] = []
    current = node
    while current.type == "call_expression":
        function = current.child_by_field_name("function")
        if function is None or function.type != "member_expression":
            break
        prop = function.child_by_field_name("property")
        links.append(ChainLink(
            method=node_text(prop, source),
            arguments=current.child_by_field_name("arguments"),
            call=current,
        ))
        current = function.child_by_field_name("object")
    links.reverse()
    return current, links


def callee_name(call: tree_sitter.Node, source: bytes) -> str:
    """Dotted callee text of a call expression, e.g. ``it.only``."""
    function = call.child_by_field_name("function")
    return node_text(function, source)


def is_function(node: Optional[tree_sitter.Node]) -> bool:
    return node is not None and node.type in FUNCTION_NODE_TYPES


def function_body(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    return node.child_by_field_name("body")


def function_parameters(node: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Parameter nodes of a function, including the bare ``x => ...`` form."""
    single = node.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = node.child_by_field_name("parameters")
    if params is None:
        return []
    return [c for c in params.named_children if c.type != "comment"]


def parameter_name(param: tree_sitter.Node, source: bytes) -> str:
    """Best-effort binding name of one formal parameter."""
    target = param
    if target.type in PARAMETER_WRAPPERS:
        target = target.child_by_field_name("pattern") or target
    if target.type == "assignment_pattern":
        target = target.child_by_field_name("left") or target
    if target.type == "rest_pattern":
        inner = [c for c in target.named_children]
        target = inner[0] if inner else target
    return node_text(target, source)


def is_async_function(node: tree_sitter.Node) -> bool:
    return any(c.type == "async" for c in node.children)


def statement_children(block: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Statements of a ``statement_block`` or ``program``."""
    return [c for c in block.named_children]


def line_indent(source: bytes, byte_pos: int) -> int:
    """Leading whitespace width of the line containing ``byte_pos``."""
    line_start = source.rfind(b"\n", 0, byte_pos) + 1
    width = 0
    while line_start + width < len(source) and source[line_start + width:line_start + width + 1] in (b" ", b"\t"):
        width += 1
    return width


def iter_descendants(node: tree_sitter.Node):
    """Pre-order walk without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def apply_edits(source: bytes, edits: List[Tuple[int, int, str]]) -> str:
    """Replace byte spans of ``source``; edits must not overlap."""
    pieces = []
    pos = 0
    for start, end, text in sorted(edits, key=lambda e: e[0]):
        pieces.append(source[pos:start].decode("utf-8", errors="replace"))
        pieces.append(text)
        pos = end
    pieces.append(source[pos:].decode("utf-8", errors="replace"))
    return "".join(pieces)
