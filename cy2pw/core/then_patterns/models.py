"""Data models for callback-chain flattening."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

# Callback nesting beyond this is reported instead of converted
MAX_NESTING_DEPTH = 32


class Complexity(str, Enum):
    """Conversion complexity of a callback chain or page-object method."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Statement:
    """A plain statement inside a callback or block body."""

    node: Any
    is_cypress: bool = False  # contains a cy.* chain
    is_return: bool = False


@dataclass
class CompoundBlock:
    """A statement that owns nested statement blocks.

    ``blocks`` are the block nodes in source order; ``branches`` hold the
    built body of each block, converted in its own scope.
    """

    node: Any
    blocks: List[Any] = field(default_factory=list)
    branches: List[List["BodyItem"]] = field(default_factory=list)


@dataclass
class ConditionalBlock(CompoundBlock):
    """``if``/``else`` (and ``try``/``catch``) with per-branch bodies."""


@dataclass
class LoopBlock(CompoundBlock):
    """``for``, ``for…of``, ``while`` and ``do`` loops."""


@dataclass
class CallbackChainNode:
    """One callback link of a Cypress chain, e.g. ``cy.get(x).then(cb)``.

    The head node of a chain carries ``receiver`` (the call before the
    first callback); later ``.then()`` links hang off ``continuation`` and
    receive the previous link's result instead.
    """

    receiver_expr: str
    link_method: str
    binding_name: Optional[str] = None
    extra_params: List[str] = field(default_factory=list)
    body_statements: List["BodyItem"] = field(default_factory=list)
    nesting_depth: int = 1
    requires_manual_review: bool = False
    review_reasons: List[str] = field(default_factory=list)
    continuation: Optional["CallbackChainNode"] = None
    receiver: Any = None
    callback: Any = None
    params: List[Any] = field(default_factory=list)
    expression_body: Any = None
    chain_node: Any = None
    conditional_return: bool = False
    has_return: bool = False
    uses_network: bool = False
    trailing_links: List[Any] = field(default_factory=list)  # ChainLinks after the callback
    source: bytes = b""

    def links(self) -> List["CallbackChainNode"]:
        """This node and its continuations, in order."""
        result = []
        current: Optional[CallbackChainNode] = self
        while current is not None:
            result.append(current)
            current = current.continuation
        return result


BodyItem = Union[Statement, CallbackChainNode, ConditionalBlock, LoopBlock]


@dataclass
class ConvertedThenPattern:
    """Result of flattening one callback chain (or snippet)."""

    original_code: str
    converted_code: str
    is_valid: bool = True
    requires_manual_review: bool = False
    review_reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    complexity: Complexity = Complexity.LOW
    imports_needed: Set[str] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_code": self.original_code,
            "converted_code": self.converted_code,
            "is_valid": self.is_valid,
            "requires_manual_review": self.requires_manual_review,
            "review_reasons": list(self.review_reasons),
            "warnings": list(self.warnings),
            "complexity": self.complexity.value,
            "imports_needed": sorted(self.imports_needed),
        }


@dataclass
class PatternRecord:
    """Bookkeeping for one converted Cypress construct in a body."""

    kind: str  # "command" | "callback_chain" | "assertion" | "custom_command"
    complexity: Complexity = Complexity.LOW
    failed: bool = False
    manual_review: bool = False


@dataclass
class BodyResult:
    """Lines produced for a statement body plus everything learned on the way."""

    lines: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    review_reasons: List[str] = field(default_factory=list)
    imports_needed: Set[str] = field(default_factory=set)
    patterns: List[PatternRecord] = field(default_factory=list)

    @property
    def requires_manual_review(self) -> bool:
        return bool(self.review_reasons) or any(p.manual_review for p in self.patterns)

    def merge(self, other: "BodyResult") -> None:
        self.warnings.extend(other.warnings)
        self.errors.extend(other.errors)
        self.review_reasons.extend(other.review_reasons)
        self.imports_needed |= other.imports_needed
        self.patterns.extend(other.patterns)
