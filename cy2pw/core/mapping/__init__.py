"""cy2pw command mapping: Cypress commands, selectors and assertions → Playwright.

Public API:
    CommandMapper(rules).convert(call, ctx) → [ConvertedStatement]
    convert_selector(arg, ctx) → str
    convert_assertion(subject, chainer, args, ctx) → (ConvertedStatement, Subject)
    extract_call(node, source) → CypressCallExpression | None
"""

from .assertions import chai_assertion, convert_assertion
from .command_mapper import CommandMapper, split_type_text, statement, todo
from .extractor import extract_argument, extract_call, is_cypress_chain
from .literals import contains_regex, identifier_for, js_string
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
from .routes import RouteSpec, convert_intercept, parse_intercept_args, response_predicate
from .rules import DEFAULT_RULES, RuleKind, RuleSet
from .selectors import convert_selector

__all__ = [
    "CommandMapper",
    "convert_selector",
    "convert_assertion",
    "chai_assertion",
    "convert_intercept",
    "parse_intercept_args",
    "response_predicate",
    "extract_call",
    "extract_argument",
    "is_cypress_chain",
    "split_type_text",
    "statement",
    "todo",
    "contains_regex",
    "identifier_for",
    "js_string",
    "AliasInfo",
    "ArgKind",
    "Argument",
    "ChainedCall",
    "ConvertedStatement",
    "CypressCallExpression",
    "MappingContext",
    "ResolvedChain",
    "RouteSpec",
    "Subject",
    "SubjectKind",
    "DEFAULT_RULES",
    "RuleKind",
    "RuleSet",
]
