"""Shared pieces of payload introspection.

Introspection turns a *payload type* (an entity class, a declared entity, a
pydantic model) into a named object :class:`~oasforge.models.Schema`. The
pieces here are:

* :class:`PayloadType` -- the capability interface every payload token
  offers: a stable name and an ordered list of :class:`Exposure` fields.
* :class:`IntrospectionContext` -- build-scoped state. It tracks each
  token through ``UNVISITED -> IN_PROGRESS -> COMPLETE``, hands out
  reference stubs for tokens already visited (which is what stops cyclic
  types from recursing forever), owns the canonical-name table, and turns
  arbitrary type tokens into schemas.
* :class:`Introspector` -- template base for introspector strategies.

One context serves one build; contexts are never shared between runs.
"""

from __future__ import annotations

import collections.abc
import enum
import logging
import sys
import types
import typing
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

from oasforge.constants import SchemaTypes
from oasforge.exceptions import CanonicalNameCollisionError
from oasforge.models import Schema, coerce_flag
from oasforge.resolvers.array import split_bracketed

if TYPE_CHECKING:
    from oasforge.introspectors.registry import IntrospectorRegistry
    from oasforge.resolvers.registry import TypeResolverRegistry

logger = logging.getLogger(__name__)

_NIL_NAMES = frozenset({"nil", "null", "none", "nilclass", "nonetype"})

_UNION_ORIGINS = (typing.Union, types.UnionType)

_SEQUENCE_ORIGINS = (list, set, frozenset, tuple, collections.abc.Sequence, collections.abc.Set)


def qualified_name(obj: Any) -> str:
    """``__qualname__`` of *obj* without any ``<locals>.`` segments."""
    name = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or str(obj)
    return name.replace("<locals>.", "")


def describe_token(token: Any) -> str:
    if isinstance(token, type):
        return f"{token.__module__}.{qualified_name(token)}"
    return repr(token)


def is_nil(token: Any) -> bool:
    if token is None or token is type(None):
        return True
    return isinstance(token, str) and token.strip().lower() in _NIL_NAMES


# --- Payload capability interface ---


@dataclass
class Exposure:
    """One declared field of a payload type.

    Attributes:
        name: Internal field name.
        type: Type token of the field value (ignored when ``using`` names a
            payload type).
        alias: Output key to use instead of ``name``.
        using: Payload type of the field value: the type itself, a zero-arg
            callable returning it, or its class name (looked up in the
            module that declares the field).
        is_array: The field holds a list of ``using``/``type`` values.
        merge: Splice the nested type's properties into the parent.
        condition: Inclusion predicate. Any declared condition makes the
            field optional and nullable in the schema.
        documentation: Free-form annotations (``desc``, ``required``,
            ``format``, ``example``, ``values``, ``is_discriminator``,
            ``x-*``...).
    """

    name: Optional[str] = None
    type: Any = None
    alias: Optional[str] = None
    using: Any = None
    is_array: bool = False
    merge: bool = False
    condition: Optional[Callable[..., Any]] = None
    documentation: dict[str, Any] = field(default_factory=dict)
    owner: Any = field(default=None, repr=False, compare=False)

    def __set_name__(self, owner: Any, name: str) -> None:
        if self.name is None:
            self.name = name
        if self.owner is None:
            self.owner = owner

    @property
    def key(self) -> str:
        """Property key in the generated schema."""
        return self.alias or self.documentation.get("as") or self.name or ""

    @property
    def conditional(self) -> bool:
        return self.condition is not None

    @property
    def required(self) -> bool:
        if self.conditional:
            return False
        return coerce_flag(self.documentation.get("required", True))

    @property
    def wants_array(self) -> bool:
        return self.is_array or coerce_flag(self.documentation.get("is_array", False))

    @property
    def is_discriminator(self) -> bool:
        return coerce_flag(self.documentation.get("is_discriminator", False))

    @property
    def type_token(self) -> Any:
        if self.type is not None:
            return self.type
        return self.documentation.get("type")

    def target(self) -> Any:
        """The nested payload type, or the plain type token when there is none."""
        using = self.using
        if using is None:
            return self.type_token
        if isinstance(using, str):
            return self._lookup(using)
        if isinstance(using, type) or isinstance(using, PayloadType):
            return using
        if callable(using):
            return using()
        return using

    def _lookup(self, name: str) -> Any:
        owner = self.owner
        if owner is not None:
            if name in (getattr(owner, "__name__", None), qualified_name(owner)):
                return owner
            module = sys.modules.get(getattr(owner, "__module__", ""), None)
            found = _getattr_path(module, name)
            if found is not None:
                return found
        from oasforge.introspectors.entity import find_entity

        found = find_entity(name)
        if found is None:
            logger.warning("Cannot resolve payload type %r for field %r", name, self.name)
        return found


def _getattr_path(root: Any, dotted: str) -> Any:
    obj = root
    for part in dotted.split("."):
        if obj is None:
            return None
        obj = getattr(obj, part, None)
    return obj


@runtime_checkable
class PayloadType(Protocol):
    """Capabilities the entity introspector relies on.

    The token object itself is the stable identity used for cycle
    detection, so it must be hashable.

    Payload types taking part in polymorphism also provide
    ``schema_parent()`` (the payload type they extend, or ``None``) and
    ``own_exposures()`` (the fields they declare themselves).
    """

    def schema_name(self) -> str: ...

    def exposures(self) -> list[Exposure]: ...


# --- Build-scoped state ---


class IntrospectionState(enum.Enum):
    UNVISITED = "unvisited"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class IntrospectionContext:
    """Per-build introspection state and type-token dispatch.

    Args:
        resolvers: Type resolver chain for primitive tokens. Defaults to
            the process-wide chain in :mod:`oasforge.registries`.
        introspectors: Introspector chain for payload types. Defaults to
            the process-wide chain in :mod:`oasforge.registries`.
    """

    def __init__(
        self,
        resolvers: Optional[TypeResolverRegistry] = None,
        introspectors: Optional[IntrospectorRegistry] = None,
    ) -> None:
        if resolvers is None or introspectors is None:
            from oasforge import registries

            resolvers = resolvers if resolvers is not None else registries.TYPE_RESOLVERS
            introspectors = (
                introspectors if introspectors is not None else registries.INTROSPECTORS
            )
        self.resolvers = resolvers
        self.introspectors = introspectors
        self._states: dict[Any, IntrospectionState] = {}
        self._schemas: dict[Any, Schema] = {}
        self._names: dict[Any, str] = {}
        self._owners: dict[str, Any] = {}

    # --- State machine ---

    def state(self, token: Any) -> IntrospectionState:
        return self._states.get(token, IntrospectionState.UNVISITED)

    def begin(self, token: Any, canonical_name: str) -> Schema:
        """Move *token* to ``IN_PROGRESS`` and return its (empty) schema.

        Raises:
            CanonicalNameCollisionError: If another token already owns
                *canonical_name*.
        """
        owner = self._owners.get(canonical_name)
        if owner is not None and owner is not token:
            raise CanonicalNameCollisionError(
                canonical_name, describe_token(owner), describe_token(token)
            )
        self._owners[canonical_name] = token
        self._names[token] = canonical_name
        self._states[token] = IntrospectionState.IN_PROGRESS
        schema = Schema(type=SchemaTypes.OBJECT, canonical_name=canonical_name)
        self._schemas[token] = schema
        return schema

    def complete(self, token: Any) -> None:
        self._states[token] = IntrospectionState.COMPLETE

    def reference(self, token: Any) -> Schema:
        """A fresh stub pointing at *token*'s canonical name."""
        return Schema(type=SchemaTypes.OBJECT, canonical_name=self._names[token], stub=True)

    def schema_for(self, token: Any) -> Optional[Schema]:
        """The full schema built for *token* (possibly still being filled)."""
        return self._schemas.get(token)

    def definitions(self) -> dict[str, Schema]:
        """Every named schema built so far, in the order introspection began."""
        return {self._names[token]: schema for token, schema in self._schemas.items()}

    # --- Dispatch ---

    def can_introspect(self, token: Any) -> bool:
        try:
            hash(token)
        except TypeError:
            return False
        return self.introspectors.handles(token)

    def introspect(self, token: Any) -> Schema:
        """Build *token* with the first matching introspector.

        Tokens no introspector handles go through the type resolvers.
        """
        introspector = self.introspectors.find(token) if self.can_introspect(token) else None
        if introspector is None:
            return self.resolvers.resolve_or_default(token)
        return introspector.build_schema(token, self)

    def reference_to(self, token: Any) -> Schema:
        """Introspect *token* if needed and return a reference stub to it."""
        self.introspect(token)
        return self.reference(token)

    def schema_for_type(self, token: Any) -> Schema:
        """Turn any type token into a schema.

        * ``None`` -> ``string``
        * a one-element list -> ``array`` of that element
        * a longer list, or ``"[A, B]"`` -> one-of alternatives
        * a payload type -> reference stub (introspecting it on first use)
        * anything else -> the type resolver chain
        """
        if token is None:
            return Schema(type=SchemaTypes.STRING)
        if isinstance(token, str):
            parts = split_bracketed(token)
            if parts is not None and len(parts) > 1:
                return self.multi_type_schema(parts)
        if isinstance(token, (list, tuple)):
            if not token:
                return Schema(type=SchemaTypes.STRING)
            if len(token) == 1:
                return Schema(type=SchemaTypes.ARRAY, items=self.schema_for_type(token[0]))
            return self.multi_type_schema(list(token))

        origin = typing.get_origin(token)
        if origin in _UNION_ORIGINS:
            return self.multi_type_schema(list(typing.get_args(token)))
        if origin in _SEQUENCE_ORIGINS:
            args = typing.get_args(token)
            return Schema(
                type=SchemaTypes.ARRAY,
                items=self.schema_for_type(args[0] if args else None),
            )
        if self.can_introspect(token):
            return self.reference_to(token)
        return self.resolvers.resolve_or_default(token)

    def multi_type_schema(self, tokens: list[Any]) -> Schema:
        """Schema for a value admitting several declared types.

        Each declared type becomes one alternative, in order and without
        deduplication. Primitive alternatives keep only their type. A nil
        member makes the result nullable instead of adding an alternative,
        so ``[String, Nil]`` is just a nullable string.
        """
        concrete = [t for t in tokens if not is_nil(t)]
        nullable = len(concrete) < len(tokens)
        if len(concrete) == 1:
            schema = self.schema_for_type(concrete[0])
            schema.nullable = schema.nullable or nullable
            return schema

        alternatives: list[Schema] = []
        for token in concrete:
            resolved = self.schema_for_type(token)
            if resolved.canonical_name is None:
                resolved = Schema(type=resolved.type, items=resolved.items)
            alternatives.append(resolved)
        return Schema(one_of=alternatives, nullable=nullable)


# --- Introspector strategies ---


class Introspector(ABC):
    """Template base for introspectors.

    :meth:`build_schema` implements the cycle-breaking walk; subclasses
    supply :meth:`handles`, :meth:`canonical_name` and :meth:`populate`.
    """

    name: str = ""
    fallback: bool = False

    @abstractmethod
    def handles(self, token: Any) -> bool: ...

    @abstractmethod
    def canonical_name(self, token: Any) -> str: ...

    @abstractmethod
    def populate(self, token: Any, schema: Schema, context: IntrospectionContext) -> None:
        """Fill *schema* with the properties of *token*."""

    def build_schema(self, token: Any, context: IntrospectionContext) -> Schema:
        """Return *token*'s schema, or a reference stub if it was visited before."""
        if context.state(token) is not IntrospectionState.UNVISITED:
            return context.reference(token)
        schema = context.begin(token, self.canonical_name(token))
        self.populate(token, schema, context)
        context.complete(token)
        return schema

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
