"""Decide where a declared parameter lives: path, query, header or body."""

from __future__ import annotations

import logging
from typing import Any

from oasforge.constants import BODY_LOCATIONS, ParameterLocations
from oasforge.models import ParamSpec, RouteDescriptor, coerce_flag

logger = logging.getLogger(__name__)

_OBJECT_TYPE_NAMES = frozenset({"object", "hash", "dict"})


def declared_location(spec: ParamSpec) -> str | None:
    """The explicitly declared location, normalized, or ``None``."""
    raw = spec.location or spec.documentation.get("param_type") or spec.documentation.get("in")
    if not raw:
        return None
    value = str(raw).strip().lower()
    if value in BODY_LOCATIONS:
        return ParameterLocations.BODY
    if value in (ParameterLocations.PATH, ParameterLocations.QUERY, ParameterLocations.HEADER):
        return value
    logger.debug("Unknown parameter location %r, treating as undeclared", raw)
    return None


def resolve_location(
    name: str,
    spec: ParamSpec,
    path_variables: list[str],
    route: RouteDescriptor,
    is_payload: bool = False,
) -> str:
    """Location for parameter *name*.

    In order: ``path`` when *name* is a path variable; the declared
    location; ``body`` when the route names a body or the value is an
    object or payload type; otherwise ``query``. A declared ``path``
    location with no matching template variable degrades to ``query``.
    """
    if name in path_variables:
        return ParameterLocations.PATH

    declared = declared_location(spec)
    if declared == ParameterLocations.PATH:
        logger.debug("Parameter %r declared in path but %s has no such variable", name, route.path)
        return ParameterLocations.QUERY
    if declared is not None:
        return declared

    if route.body_name:
        return ParameterLocations.BODY
    if is_payload or _is_object_type(spec.type):
        return ParameterLocations.BODY
    return ParameterLocations.QUERY


def is_explicit_non_body(spec: ParamSpec) -> bool:
    return declared_location(spec) in (ParameterLocations.QUERY, ParameterLocations.HEADER)


def is_hidden(spec: ParamSpec) -> bool:
    """Hidden parameters are left out. Required parameters are never hidden."""
    if spec.required:
        return False
    hidden = spec.documentation.get("hidden", False)
    if callable(hidden):
        hidden = hidden()
    return coerce_flag(hidden)


def _is_object_type(token: Any) -> bool:
    if token is dict:
        return True
    return isinstance(token, str) and token.strip().lower() in _OBJECT_TYPE_NAMES
