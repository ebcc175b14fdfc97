"""Payload introspection: entities and models to named object schemas.

Public API:

* :class:`Entity`, :func:`expose`, :class:`DeclaredEntity` -- declare payloads.
* :class:`IntrospectionContext` -- per-build state and type dispatch.
* :class:`IntrospectorRegistry`, :func:`default_introspectors`.
* :class:`Introspector` -- base class for custom introspectors.
"""

from oasforge.introspectors.base import (
    Exposure,
    IntrospectionContext,
    IntrospectionState,
    Introspector,
    PayloadType,
)
from oasforge.introspectors.entity import DeclaredEntity, Entity, EntityIntrospector, expose
from oasforge.introspectors.pydantic_model import PydanticIntrospector
from oasforge.introspectors.registry import IntrospectorRegistry, default_introspectors

__all__ = [
    "DeclaredEntity",
    "Entity",
    "EntityIntrospector",
    "Exposure",
    "IntrospectionContext",
    "IntrospectionState",
    "Introspector",
    "IntrospectorRegistry",
    "PayloadType",
    "PydanticIntrospector",
    "default_introspectors",
    "expose",
]
