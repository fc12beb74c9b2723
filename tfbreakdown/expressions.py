"""Evaluation of self-contained HCL expressions and templates.

python-hcl2 renders operators, conditionals and templates back to source
text (``${1 + 2}``, ``a${"b"}``). The evaluator here handles that text when
it is built only from literals. Any identifier other than ``true``,
``false`` and ``null`` is a reference or a function call and raises
ExpressionEvaluationError, as does anything it cannot parse.
"""
import re
from typing import Any, List, Tuple

from .errors import ExpressionEvaluationError

_NUMBER = re.compile(r'\d+(\.\d+)?([eE][+-]?\d+)?')
_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_-]*')
_ESCAPE = re.compile(r'\\(u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|["\\nrt])')
_SIMPLE_ESCAPES = {'n': '\n', 'r': '\r', 't': '\t', '"': '"', '\\': '\\'}
_KEYWORDS = {'true': True, 'false': False, 'null': None}

# binary operators, lowest precedence first
_PRECEDENCE = (
    ('||',),
    ('&&',),
    ('==', '!='),
    ('>=', '<=', '>', '<'),
    ('+', '-'),
    ('*', '/', '%'),
)


def _decode_escape(code: str) -> str:
    if code[0] in 'uU':
        try:
            return chr(int(code[1:], 16))
        except (ValueError, OverflowError) as e:
            raise ExpressionEvaluationError(f'Invalid escape sequence \\{code}') from e
    return _SIMPLE_ESCAPES[code]


def decode_escapes(text: str) -> str:
    """Decode the backslash escapes of a quoted HCL string."""
    return _ESCAPE.sub(lambda match: _decode_escape(match.group(1)), text)


def _kind(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return type(value).__name__


def _number(value: Any):
    if _kind(value) == 'number':
        return value
    if isinstance(value, str):
        for convert in (int, float):
            try:
                return convert(value)
            except ValueError:
                pass
    raise ExpressionEvaluationError(f'A number is required, got {_kind(value)}')


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in ('true', 'false'):
        return value == 'true'
    raise ExpressionEvaluationError(f'A bool is required, got {_kind(value)}')


def _string(value: Any) -> str:
    kind = _kind(value)
    if kind == 'string':
        return value
    if kind == 'bool':
        return 'true' if value else 'false'
    if kind == 'number':
        return repr(value) if isinstance(value, float) and not value.is_integer() else str(int(value))
    raise ExpressionEvaluationError(f'Cannot include a {kind} value in a string template')


class _Evaluator:
    """Recursive-descent evaluator over one piece of expression source."""

    def __init__(self, text: str, decode: bool = True):
        self.text = text
        self.pos = 0
        self.decode = decode

    def fail(self, message: str = 'Unsupported expression'):
        raise ExpressionEvaluationError(f'{message}: {self.text!r}')

    def skip_space(self):
        while self.pos < len(self.text) and self.text[self.pos] in ' \t\r\n':
            self.pos += 1

    def at(self, token: str) -> bool:
        return self.text.startswith(token, self.pos)

    def accept(self, token: str) -> bool:
        self.skip_space()
        if self.at(token):
            self.pos += len(token)
            return True
        return False

    def expect(self, token: str):
        if not self.accept(token):
            self.fail(f'Expected {token!r}')

    def finish(self, value: Any) -> Any:
        self.skip_space()
        if self.pos != len(self.text):
            self.fail()
        return value

    def template(self, terminator: str = '') -> Any:
        """Read template text up to `terminator`, or to the end when it is empty.

        A template made of a single interpolation yields that value unchanged.
        """
        parts: List[Tuple[bool, Any]] = []
        literal: List[str] = []
        while True:
            if self.pos >= len(self.text):
                if terminator:
                    self.fail('Unterminated string')
                break
            if terminator and self.at(terminator):
                self.pos += len(terminator)
                break
            if self.at('$${') or self.at('%%{'):
                literal.append(self.text[self.pos + 1:self.pos + 3])
                self.pos += 3
            elif self.at('%{'):
                self.fail('Template directives are not evaluated')
            elif self.at('${'):
                if literal:
                    parts.append((True, ''.join(literal)))
                    literal = []
                self.pos += 2
                parts.append((False, self.expression()))
                self.expect('}')
            elif self.decode and self.at('\\'):
                match = _ESCAPE.match(self.text, self.pos)
                if match is None:
                    literal.append('\\')
                    self.pos += 1
                else:
                    literal.append(_decode_escape(match.group(1)))
                    self.pos = match.end()
            else:
                literal.append(self.text[self.pos])
                self.pos += 1
        if literal:
            parts.append((True, ''.join(literal)))

        if len(parts) == 1 and not parts[0][0]:
            return parts[0][1]
        return ''.join(_string(value) for _, value in parts)

    def quoted(self) -> Any:
        """Read a quoted string whose opening quote was already consumed."""
        decode, self.decode = self.decode, True
        try:
            return self.template('"')
        finally:
            self.decode = decode

    def expression(self) -> Any:
        condition = self.binary(0)
        if self.accept('?'):
            when_true = self.expression()
            self.expect(':')
            when_false = self.expression()
            return when_true if _bool(condition) else when_false
        return condition

    def binary(self, level: int) -> Any:
        if level == len(_PRECEDENCE):
            return self.unary()
        left = self.binary(level + 1)
        while True:
            operator = next((op for op in _PRECEDENCE[level] if self.accept(op)), None)
            if operator is None:
                return left
            left = self.apply(operator, left, self.binary(level + 1))

    def apply(self, operator: str, left: Any, right: Any) -> Any:
        if operator == '||':
            return _bool(left) or _bool(right)
        if operator == '&&':
            return _bool(left) and _bool(right)
        if operator == '==':
            return _kind(left) == _kind(right) and left == right
        if operator == '!=':
            return not (_kind(left) == _kind(right) and left == right)

        left, right = _number(left), _number(right)
        if operator == '>':
            return left > right
        if operator == '>=':
            return left >= right
        if operator == '<':
            return left < right
        if operator == '<=':
            return left <= right
        if operator == '+':
            return left + right
        if operator == '-':
            return left - right
        if operator == '*':
            return left * right
        if right == 0:
            raise ExpressionEvaluationError('Divide by zero')
        if operator == '/':
            return left / right
        return left % right

    def unary(self) -> Any:
        if self.accept('!'):
            return not _bool(self.unary())
        if self.accept('-'):
            return -_number(self.unary())
        return self.primary()

    def primary(self) -> Any:
        if self.accept('('):
            value = self.expression()
            self.expect(')')
            return value
        if self.accept('"'):
            return self.quoted()
        if self.accept('['):
            return self.tuple()
        if self.accept('{'):
            return self.object()

        match = _NUMBER.match(self.text, self.pos)
        if match:
            self.pos = match.end()
            if match.group(1) or match.group(2):
                return float(match.group(0))
            return int(match.group(0))

        match = _IDENTIFIER.match(self.text, self.pos)
        if match is None:
            self.fail()
        if match.group(0) not in _KEYWORDS or self.text[match.end():match.end() + 1] in ('.', '[', '('):
            self.fail('Variables and function calls are not allowed')
        self.pos = match.end()
        return _KEYWORDS[match.group(0)]

    def tuple(self) -> List[Any]:
        items = []
        while not self.accept(']'):
            items.append(self.expression())
            if not self.accept(','):
                self.expect(']')
                break
        return items

    def object(self) -> dict:
        result = {}
        while not self.accept('}'):
            if self.accept('"'):
                key = self.quoted()
            elif self.accept('('):
                key = self.expression()
                self.expect(')')
            else:
                match = _IDENTIFIER.match(self.text, self.pos)
                if match is None:
                    self.fail('Invalid object key')
                key = match.group(0)
                self.pos = match.end()
            if not (self.accept('=') or self.accept(':')):
                self.fail('Expected "=" or ":"')
            result[_string(key)] = self.expression()
            self.accept(',')
        return result


def evaluate_template(text: str, decode: bool = True) -> Any:
    """Evaluate literal text with `${...}` interpolations over literals only.

    `decode` controls backslash escapes in the literal text; quoted strings
    inside interpolations are always decoded.
    """
    evaluator = _Evaluator(text, decode)
    return evaluator.finish(evaluator.template())
