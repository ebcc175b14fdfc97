"""Process-wide registries.

These are the chains used when a caller does not pass its own. Register
custom strategies at startup, before the first build::

    from oasforge import registries

    registries.TYPE_RESOLVERS.register(MoneyResolver(), before="primitive")
    registries.EXPORTERS.register(MyExporter, "oas3-internal")

Builds only read them; mutating a registry while a build runs is not
supported.
"""

from __future__ import annotations

from oasforge.exporter.registry import ExporterRegistry, default_exporters
from oasforge.introspectors.registry import IntrospectorRegistry, default_introspectors
from oasforge.resolvers.registry import TypeResolverRegistry, default_type_resolvers

TYPE_RESOLVERS: TypeResolverRegistry = default_type_resolvers()
INTROSPECTORS: IntrospectorRegistry = default_introspectors()
EXPORTERS: ExporterRegistry = default_exporters()


def reset() -> None:
    """Restore the built-in contents of every registry, in place."""
    TYPE_RESOLVERS.clear()
    for resolver in default_type_resolvers():
        TYPE_RESOLVERS.register(resolver)

    INTROSPECTORS.clear()
    for introspector in default_introspectors():
        INTROSPECTORS.register(introspector)

    EXPORTERS.clear()
    for version, exporter_cls in default_exporters().items():
        EXPORTERS.register(exporter_cls, version)
