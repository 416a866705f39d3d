"""Minimal HCL writer producing schema documents.

Attributes that follow each other inside a block are aligned on ``=``, as
``hclwrite`` formats them; a nested block ends the alignment group.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from itertools import groupby
from typing import NamedTuple

INDENT = "  "


class Raw(str):
    """HCL expression written without quotes (references, types, keywords)."""

    __slots__ = ()


type Value = str | int | bool | Raw | Sequence[Value]


class Attribute(NamedTuple):
    """A ``name = value`` line."""

    name: str
    value: Value


@dataclass
class Block:
    """A labelled HCL block holding attributes and nested blocks."""

    type: str
    labels: list[str] = field(default_factory=list)
    body: list[Attribute | Block] = field(default_factory=list)

    def attr(self, name: str, value: Value) -> Block:
        """Append an attribute and return this block for chaining."""
        self.body.append(Attribute(name, value))
        return self

    def block(self, block_type: str, *labels: str) -> Block:
        """Append a nested block and return it."""
        child = Block(block_type, list(labels))
        self.body.append(child)
        return child


def quote(text: str) -> str:
    """Quote a string literal."""
    return json.dumps(text, ensure_ascii=False)


def render_value(value: Value) -> str:
    """Render an attribute value."""
    # bool before int, Raw before str: both are subclasses
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Raw):
        return str(value)
    if isinstance(value, str):
        return quote(value)
    return "[" + ", ".join(render_value(item) for item in value) + "]"


def _render_body(body: list[Attribute | Block], depth: int) -> Iterator[str]:
    pad = INDENT * depth
    for is_attribute, group in groupby(body, key=lambda i: isinstance(i, Attribute)):
        items = list(group)
        if is_attribute:
            width = max(len(item.name) for item in items if isinstance(item, Attribute))
            for item in items:
                if isinstance(item, Attribute):
                    yield f"{pad}{item.name.ljust(width)} = {render_value(item.value)}"
        else:
            for item in items:
                if isinstance(item, Block):
                    yield from _render_block(item, depth)


def _render_block(block: Block, depth: int) -> Iterator[str]:
    pad = INDENT * depth
    header = " ".join([block.type, *(quote(label) for label in block.labels)])
    yield f"{pad}{header} {{"
    yield from _render_body(block.body, depth + 1)
    yield f"{pad}}}"


def dumps(blocks: Iterable[Block]) -> str:
    """Render top-level blocks into a document ending with a newline."""
    lines = [line for block in blocks for line in _render_block(block, 0)]
    return "\n".join(lines) + "\n"
