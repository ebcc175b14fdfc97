"""The introspector chain.

Introspectors are consulted in order; the first whose ``handles`` accepts a
token builds its schema through
:meth:`~oasforge.introspectors.base.Introspector.build_schema`.
"""

from __future__ import annotations

from oasforge.chain import StrategyChain
from oasforge.introspectors.entity import EntityIntrospector
from oasforge.introspectors.pydantic_model import PydanticIntrospector


class IntrospectorRegistry(StrategyChain):
    required_methods = ("handles", "build_schema")
    kind = "introspector"


def default_introspectors() -> IntrospectorRegistry:
    """A fresh chain holding the entity and pydantic introspectors."""
    return IntrospectorRegistry([EntityIntrospector(), PydanticIntrospector()])
