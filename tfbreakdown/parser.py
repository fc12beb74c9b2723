"""Thin document model over python-hcl2 output.

python-hcl2 returns a nested dict: attributes map straight to values, blocks
are lists of bodies stored under their type, and each label adds one dict
level. With ``with_meta=True`` every block body also carries its line
numbers, which is what tells a nested block apart from an attribute holding
a list of objects and what gives blocks back their source order.
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Tuple, Union

import hcl2

from .errors import DocumentParseError, SchemaMatchError
from .values import evaluate, strip_quotes

START_LINE = '__start_line__'
END_LINE = '__end_line__'
META_KEYS = frozenset({START_LINE, END_LINE})


@dataclass(frozen=True)
class BlockHeader:
    """A block type accepted by :meth:`DocumentBody.partial_content`."""
    type: str
    label_count: int = 0


@dataclass
class Block:
    """A matched block: its type, labels, and nested body."""
    type: str
    labels: List[str]
    body: 'DocumentBody'
    line: int = 0


class Expression:
    """An attribute's raw value as produced by the parser."""

    def __init__(self, name: str, raw: Any, native: bool = True):
        self.name = name
        self.raw = raw
        # native HCL strings still carry their backslash escapes
        self.native = native

    def evaluate(self) -> Any:
        """Evaluate without variables or functions; raises ExpressionEvaluationError."""
        return evaluate(self.raw, decode_escapes=self.native)

    def __repr__(self):
        return f'Expression({self.name!r}, {self.raw!r})'


class DocumentBody:
    """A parsed body: a document root or the inside of a block."""

    def __init__(self, content: Dict[str, Any], with_meta: bool = True):
        self.content = content
        self.with_meta = with_meta

    @property
    def line(self) -> int:
        return self.content.get(START_LINE, 0) if isinstance(self.content, dict) else 0

    def _is_block_body(self, node: Any) -> bool:
        if not isinstance(node, dict):
            return False
        return not self.with_meta or START_LINE in node

    def _is_block_entry(self, node: Any) -> bool:
        # a labeled entry is {label: {label: ... {body}}}
        if self._is_block_body(node) and self.with_meta:
            return True
        if isinstance(node, dict) and len(node) == 1:
            return self._is_block_entry(next(iter(node.values())))
        return False

    def _is_block_list(self, value: Any) -> bool:
        if not self.with_meta:
            return False
        return (isinstance(value, list) and bool(value)
                and all(self._is_block_entry(item) for item in value))

    def _peel(self, node: Any, remaining: int, labels: List[str]) -> Iterator[Tuple[List[str], Dict]]:
        if remaining == 0:
            if self._is_block_body(node):
                yield labels, node
            return
        if not isinstance(node, dict):
            return
        for key, child in node.items():
            if key in META_KEYS:
                continue
            yield from self._peel(child, remaining - 1, labels + [strip_quotes(str(key))])

    def partial_content(self, schema: Sequence[BlockHeader]) -> List[Block]:
        """Return the blocks matching ``schema`` in source order.

        Block types outside the schema and attributes are ignored. Blocks
        whose label count does not match are skipped. Raises SchemaMatchError
        when a schema block type is used as an attribute name.
        """
        if not isinstance(self.content, dict):
            raise SchemaMatchError('Body is not a mapping')

        blocks = []
        for header in schema:
            if header.type not in self.content:
                continue
            entries = self.content[header.type]
            matched = self._is_block_list(entries) if self.with_meta else isinstance(entries, list)
            if not matched:
                raise SchemaMatchError(
                    f'An argument named "{header.type}" is not expected here; '
                    f'did you mean to define a block of type "{header.type}"?')
            for entry in entries:
                for labels, body in self._peel(entry, header.label_count, []):
                    nested = DocumentBody(body, self.with_meta)
                    blocks.append(Block(header.type, labels, nested, nested.line))

        if self.with_meta:
            blocks.sort(key=lambda block: block.line)
        return blocks

    def blocks(self) -> List[str]:
        """Names of the nested block types present in this body."""
        if not isinstance(self.content, dict):
            return []
        return [key for key, value in self.content.items()
                if key not in META_KEYS and self._is_block_list(value)]

    def just_attributes(self, allow_blocks: bool = True) -> Dict[str, Expression]:
        """Return the attributes directly inside this body.

        Nested blocks are skipped, or rejected with SchemaMatchError when
        ``allow_blocks`` is false.
        """
        if not isinstance(self.content, dict):
            raise SchemaMatchError('Body is not a mapping')

        attributes = {}
        for name, raw in self.content.items():
            if name in META_KEYS:
                continue
            if self._is_block_list(raw):
                if not allow_blocks:
                    raise SchemaMatchError(f'Unexpected "{name}" block; blocks are not allowed here')
                continue
            attributes[name] = Expression(name, raw, native=self.with_meta)
        return attributes


class TerraformParser:
    """Parse HCL and JSON configuration documents into :class:`DocumentBody`."""

    def parse(self, content: str) -> DocumentBody:
        """Parse Terraform HCL content."""
        try:
            parsed = hcl2.loads(content, with_meta=True)
        except Exception as e:
            raise DocumentParseError(str(e)) from e
        return DocumentBody(parsed, with_meta=True)

    def parse_json(self, content: str) -> DocumentBody:
        """Parse the JSON encoding of a configuration document."""
        try:
            parsed = json.loads(content)
        except ValueError as e:
            raise DocumentParseError(str(e)) from e
        if not isinstance(parsed, dict):
            raise DocumentParseError('The root of a JSON configuration document must be an object')
        return DocumentBody(parsed, with_meta=False)

    def parse_file(self, path: Union[str, Path]) -> DocumentBody:
        return self.parse(self._read(path))

    def parse_json_file(self, path: Union[str, Path]) -> DocumentBody:
        return self.parse_json(self._read(path))

    @staticmethod
    def _read(path: Union[str, Path]) -> str:
        try:
            with open(path, encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentParseError(f'Failed to read file: {e}') from e
