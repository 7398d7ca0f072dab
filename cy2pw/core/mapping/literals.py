"""JavaScript literal helpers for generated code."""

import re

_REGEX_SPECIAL = re.compile(r"([\\^$.|?*+()\[\]{}/])")

# Runtime escaping for values only known when the test runs
RUNTIME_REGEX_ESCAPE = "String({value}).replace(/[.*+?^${{}}()|[\\]\\\\]/g, '\\\\$&')"


def js_string(value: str) -> str:
    """Quote ``value`` as a single-quoted JS string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def escape_regex(value: str) -> str:
    """Escape ``value`` for use inside a JS regex literal."""
    return _REGEX_SPECIAL.sub(r"\\\1", value)


def contains_regex(value: str) -> str:
    """Anchored regex literal matching any string that contains ``value``."""
    return f"/^.*{escape_regex(value)}.*$/"


def word_regex(value: str) -> str:
    """Regex literal matching ``value`` as one whitespace-separated token."""
    return f"/(?:^|\\s){escape_regex(value)}(?:\\s|$)/"


def is_identifier(text: str) -> bool:
    return re.match(r"^[A-Za-z_$][\w$]*$", text) is not None


def identifier_for(name: str) -> str:
    """camelCase JS identifier derived from an alias or file name."""
    parts = [p for p in re.split(r"[^A-Za-z0-9_$]+", name) if p]
    if not parts:
        return "value"
    ident = parts[0][:1].lower() + parts[0][1:] + "".join(p[:1].upper() + p[1:] for p in parts[1:])
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def property_access(expr: str, path: str) -> str:
    """Append a dotted ``its()`` path to ``expr`` (numeric parts become indexes)."""
    result = expr
    for part in path.split("."):
        if not part:
            continue
        if part.isdigit():
            result += f"[{part}]"
        elif is_identifier(part):
            result += f".{part}"
        else:
            result += f"[{js_string(part)}]"
    return result


def unwrap_parens(expr: str) -> str:
    """Drop one pair of parentheses that encloses the whole expression."""
    if not (expr.startswith("(") and expr.endswith(")")):
        return expr
    depth = 0
    for index, char in enumerate(expr):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and index != len(expr) - 1:
                return expr
    return expr[1:-1]
