"""Array type resolver for ``"[Inner]"`` strings and ``list[Inner]`` generics."""

from __future__ import annotations

import collections.abc
import re
import typing
from typing import TYPE_CHECKING, Any, Optional

from oasforge.constants import SchemaTypes
from oasforge.models import Schema
from oasforge.resolvers.base import TypeResolver

if TYPE_CHECKING:
    from oasforge.resolvers.registry import TypeResolverRegistry


_BRACKETED_RE = re.compile(r"^\[\s*(.+?)\s*\]$")

_SEQUENCE_ORIGINS = (
    list,
    set,
    frozenset,
    tuple,
    collections.abc.Sequence,
    collections.abc.Set,
    collections.abc.Iterable,
)


def split_bracketed(token: str) -> Optional[list[str]]:
    """Split ``"[A, B]"`` into ``["A", "B"]``; ``None`` if not bracketed.

    Only top-level commas separate entries, so ``"[[A, B]]"`` yields
    ``["[A, B]"]``.
    """
    match = _BRACKETED_RE.match(token.strip())
    if match is None:
        return None
    parts: list[str] = []
    depth = 0
    current = ""
    for char in match.group(1):
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
            continue
        current += char
    parts.append(current.strip())
    return [part for part in parts if part]


class ArrayResolver(TypeResolver):
    """Resolves single-type array tokens into ``array`` schemas.

    Multi-type brackets such as ``"[String, Integer]"`` are not arrays;
    they are left to the parameter builder, which renders them as one-of
    alternatives.
    """

    name = "array"

    def handles(self, token: Any) -> bool:
        if isinstance(token, str):
            parts = split_bracketed(token)
            return parts is not None and len(parts) == 1
        return typing.get_origin(token) in _SEQUENCE_ORIGINS

    def build_schema(self, token: Any, registry: TypeResolverRegistry) -> Schema:
        return Schema(type=SchemaTypes.ARRAY, items=registry.resolve_or_default(self.item_token(token)))

    @staticmethod
    def item_token(token: Any) -> Any:
        if isinstance(token, str):
            parts = split_bracketed(token) or ["string"]
            return parts[0]
        args = typing.get_args(token)
        return args[0] if args else "string"
