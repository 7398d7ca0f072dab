"""cy2pw callback flattening: nested Cypress callbacks → sequential async/await.

Public API:
    ChainBuilder(source).build_chain(call_node) → CallbackChainNode
    flatten(chain, ctx) → ConvertedThenPattern
    convert_snippet(source_text) → ConvertedThenPattern
    BodyConverter(source, ctx).convert_statements(nodes, scope) → BodyResult
"""

from .builder import ChainBuilder, callback_chain_call, is_callback_link
from .flattener import BodyConverter, classify_complexity, convert_snippet, flatten, new_scope
from .models import (
    MAX_NESTING_DEPTH,
    BodyResult,
    CallbackChainNode,
    Complexity,
    ConditionalBlock,
    ConvertedThenPattern,
    LoopBlock,
    PatternRecord,
    Statement,
)
from .renderer import StatementRenderer, dedent_continuation
from .scope import Scope

__all__ = [
    "ChainBuilder",
    "callback_chain_call",
    "is_callback_link",
    "BodyConverter",
    "classify_complexity",
    "convert_snippet",
    "flatten",
    "new_scope",
    "MAX_NESTING_DEPTH",
    "BodyResult",
    "CallbackChainNode",
    "Complexity",
    "ConditionalBlock",
    "ConvertedThenPattern",
    "LoopBlock",
    "PatternRecord",
    "Statement",
    "StatementRenderer",
    "dedent_continuation",
    "Scope",
]
