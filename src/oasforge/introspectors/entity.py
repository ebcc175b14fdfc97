"""Declarative entities and the entity introspector.

An entity describes the shape of a payload by exposing fields::

    class Address(Entity):
        street = expose("string")
        zip_code = expose("string", alias="zip")

    class User(Entity):
        __schema_name__ = "API::User"

        id = expose("integer", documentation={"format": "int64"})
        address = expose(using=Address)
        friends = expose(using="User", is_array=True)
        email = expose("string", condition=lambda user, opts: opts.get("admin"))
        audit = expose(using=AuditFields, merge=True)

Fields are collected in declaration order, parents first; a subclass that
redeclares a field replaces it in place. A parent with a field documented
``is_discriminator`` gets a ``discriminator``, and its subclasses render as
``allOf`` the parent reference plus their own fields instead::

    class Pet(Entity):
        pet_type = expose("string", documentation={"is_discriminator": True})

    class Cat(Pet):
        hunting_skill = expose("string")

:class:`DeclaredEntity` builds the same thing at runtime, which is how route
descriptor files define payloads.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Optional

from oasforge.constants import SchemaTypes, extract_extensions
from oasforge.enhancer import enhance_schema
from oasforge.introspectors.base import (
    Exposure,
    IntrospectionContext,
    Introspector,
    PayloadType,
    qualified_name,
)
from oasforge.models import Schema

logger = logging.getLogger(__name__)


def expose(
    type: Any = None,
    *,
    alias: Optional[str] = None,
    using: Any = None,
    is_array: bool = False,
    merge: bool = False,
    condition: Any = None,
    documentation: Optional[dict[str, Any]] = None,
) -> Exposure:
    """Declare an entity field. The attribute name becomes the field name."""
    return Exposure(
        type=type,
        alias=alias,
        using=using,
        is_array=is_array,
        merge=merge,
        condition=condition,
        documentation=dict(documentation or {}),
    )


class Entity:
    """Base class for declarative payload entities.

    Class attributes:
        __schema_name__: Canonical name override. Defaults to the class
            ``__qualname__``. Not inherited.
        __schema_description__: Schema description override. Defaults to
            the first line of the class docstring. Not inherited.
    """

    __schema_name__: ClassVar[Optional[str]] = None
    __schema_description__: ClassVar[Optional[str]] = None
    __exposures__: ClassVar[tuple[Exposure, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        collected: dict[str, Exposure] = {}
        for klass in reversed(cls.__mro__):
            for value in vars(klass).values():
                if isinstance(value, Exposure):
                    collected[value.name or ""] = value
        cls.__exposures__ = tuple(collected.values())

    @classmethod
    def schema_name(cls) -> str:
        return vars(cls).get("__schema_name__") or qualified_name(cls)

    @classmethod
    def schema_description(cls) -> Optional[str]:
        if vars(cls).get("__schema_description__"):
            return vars(cls)["__schema_description__"]
        doc = vars(cls).get("__doc__")
        if not doc or not doc.strip():
            return None
        return doc.strip().splitlines()[0]

    @classmethod
    def exposures(cls) -> list[Exposure]:
        return list(cls.__exposures__)

    @classmethod
    def own_exposures(cls) -> list[Exposure]:
        """Fields declared on this class itself, without inherited ones."""
        return [value for value in vars(cls).values() if isinstance(value, Exposure)]

    @classmethod
    def schema_parent(cls) -> Optional[type[Entity]]:
        """The nearest entity base class, ``None`` for direct subclasses of :class:`Entity`."""
        for base in cls.__bases__:
            if issubclass(base, Entity) and base is not Entity:
                return base
        return None


class DeclaredEntity:
    """A payload type assembled at runtime.

    Args:
        name: Canonical name.
        description: Schema description.
        exposures: Initial fields.
        parent: Payload type this entity extends. Its fields come first,
            and a redeclared field replaces the inherited one in place.
    """

    def __init__(
        self,
        name: str,
        description: Optional[str] = None,
        exposures: Optional[list[Exposure]] = None,
        parent: Any = None,
    ) -> None:
        self.name = name
        self.description = description
        self.parent = parent
        self._exposures: list[Exposure] = list(exposures or [])

    def expose(self, name: str, type: Any = None, **kwargs: Any) -> Exposure:
        exposure = Exposure(name=name, type=type, **kwargs)
        self._exposures.append(exposure)
        return exposure

    def schema_name(self) -> str:
        return self.name

    def schema_description(self) -> Optional[str]:
        return self.description

    def exposures(self) -> list[Exposure]:
        if self.parent is None:
            return list(self._exposures)
        collected = {exposure.name or "": exposure for exposure in self.parent.exposures()}
        for exposure in self._exposures:
            collected[exposure.name or ""] = exposure
        return list(collected.values())

    def own_exposures(self) -> list[Exposure]:
        return list(self._exposures)

    def schema_parent(self) -> Any:
        return self.parent

    def __repr__(self) -> str:
        return f"DeclaredEntity({self.name!r})"


def find_entity(name: str) -> Optional[type[Entity]]:
    """Find an :class:`Entity` subclass by class name or schema name."""
    pending = list(Entity.__subclasses__())
    while pending:
        klass = pending.pop(0)
        if name in (klass.__name__, qualified_name(klass), klass.schema_name()):
            return klass
        pending.extend(klass.__subclasses__())
    return None


class EntityIntrospector(Introspector):
    """Introspects :class:`Entity` subclasses and other :class:`PayloadType` tokens."""

    name = "entity"

    def handles(self, token: Any) -> bool:
        if isinstance(token, type) and issubclass(token, Entity):
            return token is not Entity
        return isinstance(token, PayloadType)

    def canonical_name(self, token: Any) -> str:
        return token.schema_name()

    def populate(self, token: Any, schema: Schema, context: IntrospectionContext) -> None:
        describe = getattr(token, "schema_description", None)
        if callable(describe):
            schema.description = describe()

        parent = _schema_parent(token)
        if (
            parent is not None
            and context.can_introspect(parent)
            and discriminator_key(parent.exposures()) is not None
        ):
            own_fields = _own_exposures(token)
            own = Schema(type=SchemaTypes.OBJECT)
            self._add_properties(own, own_fields, context)
            schema.type = None
            schema.all_of = [context.reference_to(parent), own]
            schema.discriminator = discriminator_key(own_fields)
            return

        exposures = token.exposures()
        schema.discriminator = discriminator_key(exposures)
        self._add_properties(schema, exposures, context)

    def _add_properties(
        self, schema: Schema, exposures: list[Exposure], context: IntrospectionContext
    ) -> None:
        for exposure in exposures:
            if exposure.merge and self._merge(schema, exposure, context):
                continue

            prop = self._property_schema(exposure, context)
            if exposure.conditional:
                prop.nullable = True
            schema.add_property(exposure.key, prop, required=exposure.required)

    def _property_schema(self, exposure: Exposure, context: IntrospectionContext) -> Schema:
        target = exposure.target()
        if target is not None and context.can_introspect(target):
            value = context.reference_to(target)
        else:
            value = context.schema_for_type(exposure.type_token)

        if exposure.wants_array and value.type != SchemaTypes.ARRAY:
            prop = Schema(type=SchemaTypes.ARRAY, items=value)
        else:
            prop = value

        enhance_schema(prop, exposure.documentation)
        prop.extensions.update(extract_extensions(exposure.documentation))
        return prop

    def _merge(self, schema: Schema, exposure: Exposure, context: IntrospectionContext) -> bool:
        target = exposure.target()
        if target is None or not context.can_introspect(target):
            logger.debug("Field %r merges a non-payload type; nesting it instead", exposure.name)
            return False

        context.introspect(target)
        merged = context.schema_for(target)
        if merged is None or merged is schema:
            return True
        for key, prop in list(merged.properties.items()):
            schema.add_property(key, prop, required=key in merged.required)
        return True


def discriminator_key(exposures: list[Exposure]) -> Optional[str]:
    """Key of the first field documented ``is_discriminator``, if any."""
    for exposure in exposures:
        if exposure.is_discriminator:
            return exposure.key
    return None


def _schema_parent(token: Any) -> Any:
    parent = getattr(token, "schema_parent", None)
    return parent() if callable(parent) else None


def _own_exposures(token: Any) -> list[Exposure]:
    own = getattr(token, "own_exposures", None)
    return own() if callable(own) else token.exposures()
