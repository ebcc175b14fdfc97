"""Extension discovery through Python entry points.

Third-party packages add type resolvers, introspectors or exporters by
declaring an entry point whose object is a callable taking the matching
registry::

    [project.entry-points."oasforge.type_resolvers"]
    money = "my_package.oasforge:register_money"

    # my_package/oasforge.py
    def register_money(registry):
        registry.register(MoneyResolver(), before="primitive")

Groups:

* ``oasforge.type_resolvers`` -- receives the type resolver chain.
* ``oasforge.introspectors`` -- receives the introspector chain.
* ``oasforge.exporters`` -- receives the exporter registry.

A plugin that fails to load or register is logged and skipped.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

TYPE_RESOLVER_GROUP = "oasforge.type_resolvers"
INTROSPECTOR_GROUP = "oasforge.introspectors"
EXPORTER_GROUP = "oasforge.exporters"

_loaded: set[tuple[str, str]] = set()


def _entry_points(group: str) -> list[importlib.metadata.EntryPoint]:
    return list(importlib.metadata.entry_points().select(group=group))


def load_group(group: str, registry: Any, skip: Optional[set[tuple[str, str]]] = None) -> list[str]:
    """Run every entry point in *group* against *registry*.

    Args:
        group: Entry-point group name.
        registry: The registry handed to each entry point.
        skip: ``(group, name)`` pairs already loaded; updated in place.

    Returns:
        Names of the entry points that registered successfully.
    """
    loaded: list[str] = []
    for ep in _entry_points(group):
        if skip is not None and (group, ep.name) in skip:
            continue
        try:
            register = ep.load()
            register(registry)
        except Exception as exc:
            logger.warning("Failed to load plugin '%s' from %s: %s", ep.name, group, exc)
            continue
        if skip is not None:
            skip.add((group, ep.name))
        logger.debug("Loaded plugin '%s' from %s", ep.name, group)
        loaded.append(ep.name)
    return loaded


def load_plugins(
    resolvers: Optional[Any] = None,
    introspectors: Optional[Any] = None,
    exporters: Optional[Any] = None,
) -> list[str]:
    """Load all plugin groups into the given registries.

    Registries default to the process-wide ones in :mod:`oasforge.registries`.
    Against those, each entry point runs at most once per process.

    Returns:
        ``group:name`` labels of the plugins loaded by this call.
    """
    from oasforge import registries

    use_defaults = resolvers is None and introspectors is None and exporters is None
    targets = (
        (TYPE_RESOLVER_GROUP, resolvers if resolvers is not None else registries.TYPE_RESOLVERS),
        (INTROSPECTOR_GROUP, introspectors if introspectors is not None else registries.INTROSPECTORS),
        (EXPORTER_GROUP, exporters if exporters is not None else registries.EXPORTERS),
    )

    labels: list[str] = []
    for group, registry in targets:
        for name in load_group(group, registry, _loaded if use_defaults else None):
            labels.append(f"{group}:{name}")
    return labels
