"""Literal evaluation and display formatting of HCL values.

python-hcl2 hands back plain Python values for literals. Every other
expression (operators, conditionals, templates, references, function calls)
comes back as source text, usually wrapped in ``${...}``. Quoted strings keep
their backslash escapes. Evaluating "without a context" decodes the literals
and evaluates expression text built only from literals. It rejects anything
that refers to variables, resources or functions.
"""
import json
import re
from typing import Any

from .expressions import evaluate_template

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_WRAPPED = re.compile(r'^\$\{(?P<inner>.*)\}$', re.DOTALL)


def strip_quotes(text: str) -> str:
    """Remove one pair of surrounding double quotes, if present."""
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def unwrap_expression(text: Any) -> Any:
    """Return the inner text of a ``${...}`` wrapped expression, or None."""
    if not isinstance(text, str):
        return None
    match = _WRAPPED.match(text.strip())
    if match is None:
        return None
    return match.group('inner').strip()


def _evaluate_string(text: str, decode_escapes: bool) -> Any:
    # heredocs are the only strings that span lines, and they take no escapes
    return evaluate_template(text, decode_escapes and '\n' not in text)


def evaluate(raw: Any, decode_escapes: bool = False) -> Any:
    """Evaluate a raw parser value with an empty context.

    `decode_escapes` is set for native HCL documents, whose quoted strings
    still carry backslash escapes; JSON strings are already decoded.
    Raises ExpressionEvaluationError when any part of the value refers to
    variables, resources, or function calls.
    """
    if isinstance(raw, str):
        return _evaluate_string(raw, decode_escapes)
    if isinstance(raw, (list, tuple)):
        return [evaluate(item, decode_escapes) for item in raw]
    if isinstance(raw, dict):
        result = {}
        for key, value in raw.items():
            if isinstance(key, str):
                key = _evaluate_string(strip_quotes(key), decode_escapes)
            result[key] = evaluate(value, decode_escapes)
        return result
    return raw


def _format_number(value) -> str:
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return str(value)
        try:
            value = float(value)
        except OverflowError:
            return str(value)
    if value.is_integer() and INT64_MIN <= value <= INT64_MAX:
        return str(int(value))
    return repr(value)


def format_value(value: Any) -> str:
    """Render an evaluated value as its canonical display string. Never raises."""
    if value is None:
        return 'null'
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, (list, tuple)):
        return '[' + ', '.join(format_value(item) for item in value) + ']'
    if isinstance(value, dict):
        pairs = sorted((format_value(k), format_value(v)) for k, v in value.items())
        return '{' + ', '.join(f'{k}: {v}' for k, v in pairs) + '}'

    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        pass
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)
