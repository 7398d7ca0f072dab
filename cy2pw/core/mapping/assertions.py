"""Assertion translation: ``.should(chainer, ...args)`` → ``expect(...)``.

Locator subjects keep Playwright's retrying web-first matchers. Values read
out of a locator (text, value, attribute, count) are asserted against the
backing locator where a retrying matcher exists; anything else becomes a
plain value expectation.
"""

import logging
from typing import List, Optional, Tuple

from .literals import RUNTIME_REGEX_ESCAPE, contains_regex, word_regex
from .models import ArgKind, Argument, ConvertedStatement, MappingContext, Subject, SubjectKind
from .rules import DEFAULT_RULES, AssertionRule, RuleSet

logger = logging.getLogger(__name__)

_PAGE_SUBJECTS = (SubjectKind.URL, SubjectKind.TITLE)


def _todo(chainer: str, reason: str) -> ConvertedStatement:
    return ConvertedStatement(
        code=f"// TODO: Convert assertion manually: should({chainer})",
        warnings=[f"Assertion '{chainer}' could not be converted: {reason}"],
        manual_review=True,
    )


def _shape_args(rule: AssertionRule, args: List[Argument], subject: Subject) -> Optional[str]:
    """Render the matcher arguments; None when the assertion is malformed."""
    special = rule.special
    if special == "class":
        if not args:
            return None
        first = args[0]
        if first.is_string:
            return word_regex(first.value)
        return f"new RegExp({first.text})"
    if special == "url_include":
        if not args:
            return None
        first = args[0]
        if first.is_string:
            return contains_regex(first.value)
        if first.kind == ArgKind.REGEX:
            return first.text
        return f"new RegExp({RUNTIME_REGEX_ESCAPE.format(value=first.text)})"
    if special == "true":
        return "true"
    if special == "false":
        return "false"
    if special == "zero":
        return "0"
    if special == "empty_string":
        return "''"
    if special == "attribute":
        name = subject.argument or "''"
        return ", ".join([name] + [a.text for a in args[:1]])
    if len(args) < rule.args and rule.args == 1:
        return None
    return ", ".join(a.text for a in args[:rule.args] if a is not None)


def convert_assertion(
    subject: Subject,
    chainer: Argument,
    args: List[Argument],
    ctx: MappingContext,
    rules: RuleSet = DEFAULT_RULES,
) -> Tuple[ConvertedStatement, Subject]:
    """Convert one ``should``/``and`` call.

    Args:
        subject: What the chain yields at this point
        chainer: First ``should`` argument, e.g. ``'be.visible'``
        args: Remaining ``should`` arguments
        ctx: Mapping context
        rules: Rule tables

    Returns:
        The generated statement and the subject the chain yields next
        (``have.attr`` with one argument switches to the attribute value).
    """
    if not chainer.is_string:
        return _todo(chainer.text, "chainer is not a string literal"), subject

    name = chainer.value
    negated = name.startswith("not.")
    base = name[4:] if negated else name
    if base.startswith("to."):
        base = base[3:]
    not_part = ".not" if negated else ""

    if subject.kind == SubjectKind.LOCATOR:
        locator = subject.expr
        comparator = rules.length_comparators.get(base)
        if comparator:
            if not args:
                return _todo(name, "missing length operand"), subject
            code = f"expect(await {locator}.count()){not_part}.{comparator}({args[0].text});"
            return ConvertedStatement(code=code, requires_await=True), subject

        rule = rules.locator_assertions.get(base)
        if rule is None:
            return _todo(name, "no Playwright matcher for this chainer"), subject

        next_subject = subject
        if base in ("have.attr", "have.prop") and len(args) == 1 and not negated:
            next_subject = Subject(
                kind=SubjectKind.ATTRIBUTE,
                expr=f"await {locator}.getAttribute({args[0].text})",
                locator=locator,
                argument=args[0].text,
            )
        shaped = _shape_args(rule, args, subject)
        if shaped is None:
            return _todo(name, "missing expected value"), subject
        code = f"await expect({locator}){not_part}.{rule.matcher}({shaped});"
        return ConvertedStatement(code=code, requires_await=True), next_subject

    if subject.kind in _PAGE_SUBJECTS:
        rule = rules.page_assertions[subject.kind].get(base)
        if rule is not None:
            shaped = _shape_args(rule, args, subject)
            if shaped is None:
                return _todo(name, "missing expected value"), subject
            code = f"await expect({ctx.page_ref}){not_part}.{rule.matcher}({shaped});"
            return ConvertedStatement(code=code, requires_await=True), subject

    derived = rules.derived_assertions.get(subject.kind)
    if derived and subject.locator:
        rule = derived.get(base)
        if rule is not None:
            shaped = _shape_args(rule, args, subject)
            if shaped is not None:
                code = f"await expect({subject.locator}){not_part}.{rule.matcher}({shaped});"
                return ConvertedStatement(code=code, requires_await=True), subject

    rule = rules.value_assertions.get(base)
    if rule is None:
        return _todo(name, "no Playwright matcher for this chainer"), subject

    target = subject.expr
    if rule.special == "typeof":
        target = f"typeof {target}"
    shaped = _shape_args(rule, args, subject)
    if shaped is None:
        return _todo(name, "missing expected value"), subject
    code = f"expect({target}){not_part}.{rule.matcher}({shaped});"
    return ConvertedStatement(code=code, requires_await="await " in target), subject


def chai_assertion(target: str, chain: str, args: List[str], is_locator: bool, rules: RuleSet = DEFAULT_RULES) -> Optional[str]:
    """Convert ``expect(x).to.<chain>(args)`` written in Chai style.

    ``chain`` is the dotted path after ``to``/``to.not`` collapsed to the
    Cypress chainer form (``be.visible``, ``not.have.text``). Returns None
    when no mapping exists.
    """
    negated = chain.startswith("not.")
    base = chain[4:] if negated else chain
    not_part = ".not" if negated else ""
    if is_locator:
        rule = rules.locator_assertions.get(base)
        if rule is not None:
            values = args[:rule.args] if rule.args else []
            if rule.special == "class" and values and values[0].startswith(("'", '"')):
                values = [word_regex(values[0][1:-1])]
            return f"await expect({target}){not_part}.{rule.matcher}({', '.join(values)});"
        return None
    rule = rules.value_assertions.get(base)
    if rule is None:
        return None
    if rule.special in ("true", "false"):
        values = [rule.special]
    elif rule.special == "zero":
        values = ["0"]
    else:
        values = args[:rule.args] if rule.args else []
    subject = f"typeof {target}" if rule.special == "typeof" else target
    return f"expect({subject}){not_part}.{rule.matcher}({', '.join(values)});"

