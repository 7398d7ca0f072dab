"""Build CallbackChainNode trees from tree-sitter nodes.

The walk is iterative: every callback body is queued on an explicit work
list instead of recursing, so deeply nested chains cannot exhaust the
interpreter stack. Depth beyond MAX_NESTING_DEPTH raises ValueError, which
callers report as a file-local conversion error.
"""

import logging
import re
from typing import Iterable, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    ChainLink,
    call_arguments,
    function_body,
    function_parameters,
    is_function,
    node_text,
    parameter_name,
    statement_children,
    unwind_call_chain,
)
from ..mapping.rules import CALLBACK_METHODS
from .models import (
    MAX_NESTING_DEPTH,
    BodyItem,
    CallbackChainNode,
    CompoundBlock,
    ConditionalBlock,
    LoopBlock,
    Statement,
)

logger = logging.getLogger(__name__)

LOOP_TYPES = frozenset({"for_statement", "for_in_statement", "while_statement", "do_statement"})
CONDITIONAL_TYPES = frozenset({"if_statement", "try_statement", "statement_block"})

CYPRESS_CALL = re.compile(r"\bcy\s*\.")
_NETWORK = re.compile(r"""\bcy\s*\.\s*(?:intercept|route)\s*\(|\bcy\s*\.\s*wait\s*\(\s*\[?\s*['"`]@""")


def is_callback_link(link: ChainLink) -> bool:
    """True when a chain link passes a callback the flattener must unroll."""
    args = call_arguments(link.arguments)
    if link.method in ("should", "and"):
        return bool(args) and is_function(args[0])
    return link.method in CALLBACK_METHODS and any(is_function(a) for a in args)


def callback_chain_call(
    node: tree_sitter.Node,
    source: bytes,
    binding_names: Iterable[str] = (),
) -> Optional[tree_sitter.Node]:
    """Return the call node if ``node`` is a Cypress chain with a callback link.

    ``node`` may be an expression statement, a return statement or the call
    itself. Chains must be rooted at ``cy`` or at a callback binding.
    """
    target = node
    if target.type in ("expression_statement", "return_statement"):
        named = [c for c in target.named_children if c.type != "comment"]
        if not named:
            return None
        target = named[0]
    if target.type != "call_expression":
        return None
    root, links = unwind_call_chain(target, source)
    if not links:
        return None
    root_name = node_text(root, source)
    if root_name != "cy" and root_name not in binding_names:
        return None
    if any(is_callback_link(link) for link in links):
        return target
    return None


def structural_blocks(node: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Statement blocks (or bare body statements) owned by a compound statement.

    Returned in source order: ``if``/``else if``/``else`` bodies, ``try``/
    ``catch``/``finally`` bodies, loop bodies, or the block itself.
    """
    blocks: List[tree_sitter.Node] = []
    pending = [node]
    while pending:
        current = pending.pop(0)
        kind = current.type
        if kind == "if_statement":
            consequence = current.child_by_field_name("consequence")
            if consequence is not None:
                blocks.append(consequence)
            alternative = current.child_by_field_name("alternative")
            if alternative is not None:
                pending.insert(0, alternative)
        elif kind == "else_clause":
            inner = [c for c in current.named_children if c.type != "comment"]
            if inner and inner[0].type == "if_statement":
                pending.insert(0, inner[0])
            elif inner:
                blocks.append(inner[0])
        elif kind == "try_statement":
            for field_name in ("body", "handler", "finalizer"):
                child = current.child_by_field_name(field_name)
                if child is None:
                    continue
                if child.type == "statement_block":
                    blocks.append(child)
                else:
                    body = child.child_by_field_name("body")
                    if body is not None:
                        blocks.append(body)
        elif kind in LOOP_TYPES:
            body = current.child_by_field_name("body")
            if body is not None:
                blocks.append(body)
        elif kind == "statement_block" and current is node:
            blocks.append(current)
    return blocks


def block_statements(block: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Statements inside a block, or the bare statement itself."""
    if block.type == "statement_block":
        return statement_children(block)
    return [block]


def _returns(body: tree_sitter.Node) -> Tuple[bool, bool]:
    """(top-level return present, return nested in a conditional) for a body."""
    top_level = any(c.type == "return_statement" for c in body.named_children)
    nested = False
    stack = [c for c in body.named_children if c.type != "return_statement"]
    while stack and not nested:
        current = stack.pop()
        if is_function(current) or current.type in ("class_body", "method_definition"):
            continue
        if current.type == "return_statement":
            nested = True
            break
        stack.extend(current.named_children)
    return top_level, nested


class ChainBuilder:
    """Builds body items and callback chains for one source file.

    Args:
        source: Source bytes every node belongs to
        binding_names: Names already bound to Cypress subjects
    """

    def __init__(self, source: bytes, binding_names: Optional[Set[str]] = None):
        self.source = source
        self.binding_names: Set[str] = set(binding_names or ())
        self._pending: List[Tuple[List[tree_sitter.Node], List[BodyItem], int, Set[str]]] = []

    # ── Public API ───────────────────────────────────────────────────

    def build_chain(self, call_node: tree_sitter.Node, depth: int = 1) -> CallbackChainNode:
        """Build the chain rooted at ``call_node`` (a call with a callback link)."""
        head = self._make_chain(call_node, depth, self.binding_names)
        self._drain()
        return head

    def build_body(self, statements: List[tree_sitter.Node], depth: int = 0) -> List[BodyItem]:
        """Build the items of a statement list (function or block body)."""
        items: List[BodyItem] = []
        self._pending.append((list(statements), items, depth, set(self.binding_names)))
        self._drain()
        return items

    # ── Internals ────────────────────────────────────────────────────

    def _drain(self) -> None:
        while self._pending:
            statements, target, depth, names = self._pending.pop()
            for stmt in statements:
                target.append(self._build_item(stmt, depth, names))

    def _build_item(self, stmt: tree_sitter.Node, depth: int, names: Set[str]) -> BodyItem:
        call = callback_chain_call(stmt, self.source, names)
        if call is not None:
            return self._make_chain(call, depth + 1, names)

        if stmt.type in LOOP_TYPES or stmt.type in CONDITIONAL_TYPES:
            blocks = structural_blocks(stmt)
            cls = LoopBlock if stmt.type in LOOP_TYPES else ConditionalBlock
            compound: CompoundBlock = cls(node=stmt, blocks=blocks)
            for block in blocks:
                branch: List[BodyItem] = []
                compound.branches.append(branch)
                self._pending.append((block_statements(block), branch, depth, names))
            return compound

        text = node_text(stmt, self.source)
        return Statement(
            node=stmt,
            is_cypress=bool(CYPRESS_CALL.search(text)),
            is_return=stmt.type == "return_statement",
        )

    def _make_chain(self, call_node: tree_sitter.Node, depth: int, names: Set[str]) -> CallbackChainNode:
        if depth > MAX_NESTING_DEPTH:
            raise ValueError(f"Callback nesting deeper than {MAX_NESTING_DEPTH} levels")

        _, links = unwind_call_chain(call_node, self.source)
        callback_indexes = [i for i, link in enumerate(links) if is_callback_link(link)]
        head: Optional[CallbackChainNode] = None
        previous: Optional[CallbackChainNode] = None
        chain_text = node_text(call_node, self.source)

        for position, index in enumerate(callback_indexes):
            link = links[index]
            args = call_arguments(link.arguments)
            callback = next(a for a in args if is_function(a))
            params = function_parameters(callback)
            param_names = [parameter_name(p, self.source) for p in params]

            receiver = links[index - 1].call if head is None and index > 0 else None
            node = CallbackChainNode(
                receiver_expr=node_text(receiver, self.source) if receiver is not None else "",
                link_method=link.method,
                binding_name=param_names[0] if param_names else None,
                extra_params=param_names[1:],
                nesting_depth=depth,
                receiver=receiver,
                callback=callback,
                params=params,
                chain_node=call_node,
                source=self.source,
            )
            next_index = callback_indexes[position + 1] if position + 1 < len(callback_indexes) else len(links)
            node.trailing_links = [links[i] for i in range(index + 1, next_index)]
            if node.trailing_links and position + 1 < len(callback_indexes):
                node.requires_manual_review = True
                node.review_reasons.append(
                    f"Commands chained between callbacks: {', '.join(l.method for l in node.trailing_links)}"
                )

            body = function_body(callback)
            inner_names = set(names) | {n for n in param_names if n}
            body_text = node_text(body, self.source)
            node.uses_network = bool(_NETWORK.search(body_text)) or (
                receiver is not None and bool(_NETWORK.search(node.receiver_expr))
            )
            if body is not None and body.type == "statement_block":
                node.has_return, node.conditional_return = _returns(body)
                self._pending.append((statement_children(body), node.body_statements, depth, inner_names))
            else:
                node.expression_body = body
                node.has_return = True

            if head is None:
                head = node
            else:
                previous.continuation = node
                node.nesting_depth = previous.nesting_depth
            previous = node

        if head is None:
            raise ValueError(f"No callback link in chain: {chain_text[:60]}")
        return head
