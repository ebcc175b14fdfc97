"""Load route descriptor files from a URL, local file, or stdin.

A descriptor file is JSON or YAML::

    info:
      title: Pet Store
      version: "1.0"
    servers:
      - url: https://api.example.com/v1
    entities:
      Pet:
        description: A pet
        fields:
          id: integer
          name: {type: string, documentation: {desc: Pet name}}
          owner: {using: Person}
          tags: {type: string, is_array: true}
      Person:
        fields:
          name: string
          pets: {using: Pet, is_array: true}
    routes:
      - path: /pets/:id
        method: get
        params:
          id: integer
        entity: Pet

Entity names from the ``entities`` section can be used anywhere a type is
expected (``type``, ``types``, ``using``, ``entity``, and inside ``[Name]``
brackets, ``"[Pet, Integer]"`` included); they are swapped for
:class:`~oasforge.introspectors.entity.DeclaredEntity` tokens. Entities may
refer to themselves and to each other, and ``extends: Pet`` makes an entity
inherit the fields of ``Pet``.

The two public functions are:

* :func:`load_descriptor` -- Read and parse a file into a raw dict.
* :func:`parse_route_set` -- Validate a raw dict into a :class:`~oasforge.models.RouteSet`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from oasforge.exceptions import DescriptorError
from oasforge.introspectors.entity import DeclaredEntity
from oasforge.models import RouteSet
from oasforge.resolvers.array import split_bracketed

logger = logging.getLogger(__name__)

_EXPOSURE_KEYS = ("alias", "is_array", "merge", "documentation")


def load_routes(source: str) -> RouteSet:
    """Load and validate a descriptor in one step."""
    return parse_route_set(load_descriptor(source))


def load_descriptor(source: str) -> dict[str, Any]:
    """Load a route descriptor from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed descriptor as a dictionary.

    Raises:
        DescriptorError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DescriptorError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DescriptorError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a descriptor over HTTP(S).

    Raises:
        DescriptorError: If the URL cannot be fetched or parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DescriptorError(
            f"HTTP {exc.response.status_code} fetching routes from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DescriptorError(f"Failed to fetch routes from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise DescriptorError(f"Route file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptorError(f"Failed to read route file {path}: {exc}") from exc

    if not content.strip():
        raise DescriptorError(f"Route file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hinted as YAML), then falls back to YAML.

    Raises:
        DescriptorError: If the content is neither, or is not a mapping.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DescriptorError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_mapping(result)

    msg = "Failed to parse routes as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DescriptorError(msg)


def _require_mapping(result: Any) -> dict[str, Any]:
    if isinstance(result, list):
        return {"routes": result}
    if not isinstance(result, dict):
        raise DescriptorError(
            "Route file must be a JSON/YAML object (got "
            f"{type(result).__name__ if result is not None else 'empty document'})"
        )
    return result


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def parse_route_set(raw: dict[str, Any]) -> RouteSet:
    """Validate a raw descriptor dict into a :class:`RouteSet`.

    Entities are built in two passes: every name is registered first, then
    fields are attached, so forward, self and mutual references all resolve.

    Raises:
        DescriptorError: If the descriptor is malformed.
    """
    if not isinstance(raw, dict):
        raise DescriptorError(f"Route descriptor must be a mapping, not {type(raw).__name__}")

    data = dict(raw)
    entities = _build_entities(data.pop("entities", None) or {})

    routes = data.get("routes") or []
    if not isinstance(routes, list):
        raise DescriptorError("'routes' must be a list")
    data["routes"] = [_swap_route(route, entities) for route in routes]

    try:
        route_set = RouteSet.model_validate(data)
    except ValidationError as exc:
        raise DescriptorError(f"Invalid route descriptor:\n{exc}") from exc

    logger.debug(
        "Loaded %d routes and %d entities", len(route_set.routes), len(entities)
    )
    return route_set


def _build_entities(section: Any) -> dict[str, DeclaredEntity]:
    if not isinstance(section, dict):
        raise DescriptorError("'entities' must be a mapping of name to definition")

    entities: dict[str, DeclaredEntity] = {}
    for name, definition in section.items():
        definition = definition or {}
        if not isinstance(definition, dict):
            raise DescriptorError(f"Entity '{name}' must be a mapping")
        entities[str(name)] = DeclaredEntity(
            str(definition.get("name") or name), definition.get("description")
        )

    for name, definition in section.items():
        parent = (definition or {}).get("extends")
        if parent is None:
            continue
        if str(parent) not in entities:
            raise DescriptorError(f"Entity '{name}' extends unknown entity '{parent}'")
        entities[str(name)].parent = entities[str(parent)]
    _check_inheritance(entities)

    for name, definition in section.items():
        entity = entities[str(name)]
        fields = (definition or {}).get("fields") or {}
        if not isinstance(fields, dict):
            raise DescriptorError(f"Fields of entity '{name}' must be a mapping")
        for field_name, field_spec in fields.items():
            _expose_field(entity, str(field_name), field_spec, entities)
    return entities


def _expose_field(
    entity: DeclaredEntity,
    name: str,
    spec: Any,
    entities: dict[str, DeclaredEntity],
) -> None:
    if spec is None or isinstance(spec, (str, list)):
        spec = {"type": spec}
    if not isinstance(spec, dict):
        raise DescriptorError(f"Field '{entity.name}.{name}' has an invalid definition: {spec!r}")

    kwargs = {key: spec[key] for key in _EXPOSURE_KEYS if key in spec}
    if "as" in spec and "alias" not in kwargs:
        kwargs["alias"] = spec["as"]
    if "documentation" in kwargs and not isinstance(kwargs["documentation"], dict):
        raise DescriptorError(f"Documentation of '{entity.name}.{name}' must be a mapping")

    condition = spec.get("condition", spec.get("if"))
    if condition is not None and condition is not False:
        kwargs["condition"] = condition

    using = spec.get("using")
    if isinstance(using, str) and using in entities:
        using = entities[using]
    elif using is not None and not isinstance(using, str):
        raise DescriptorError(f"'using' of '{entity.name}.{name}' must be an entity name")
    elif isinstance(using, str):
        logger.warning("Field %s.%s uses unknown entity %r", entity.name, name, using)

    entity.expose(name, _swap_type(spec.get("type"), entities), using=using, **kwargs)


def _swap_route(route: Any, entities: dict[str, DeclaredEntity]) -> Any:
    if not isinstance(route, dict) or not entities:
        return route

    route = dict(route)
    if "entity" in route:
        route["entity"] = _swap_type(route["entity"], entities)

    params = route.get("params")
    if isinstance(params, dict):
        swapped: dict[str, Any] = {}
        for name, spec in params.items():
            if isinstance(spec, dict):
                spec = dict(spec)
                if "type" in spec:
                    spec["type"] = _swap_type(spec["type"], entities)
                if isinstance(spec.get("types"), list):
                    spec["types"] = [_swap_type(item, entities) for item in spec["types"]]
            else:
                spec = _swap_type(spec, entities)
            swapped[name] = spec
        route["params"] = swapped

    responses = route.get("responses")
    if isinstance(responses, list):
        route["responses"] = [
            {**response, "entity": _swap_type(response.get("entity"), entities)}
            if isinstance(response, dict)
            else response
            for response in responses
        ]
    return route


def _swap_type(token: Any, entities: dict[str, DeclaredEntity]) -> Any:
    """Replace entity names in *token* with their declared entities."""
    if isinstance(token, str):
        name = token.strip()
        if name in entities:
            return entities[name]
        parts = split_bracketed(name)
        if parts:
            swapped = [_swap_type(part, entities) for part in parts]
            if any(new is not old for new, old in zip(swapped, parts)):
                return swapped
        return token
    if isinstance(token, list):
        return [_swap_type(item, entities) for item in token]
    return token


def _check_inheritance(entities: dict[str, DeclaredEntity]) -> None:
    for name, entity in entities.items():
        seen = {id(entity)}
        parent = entity.parent
        while parent is not None:
            if id(parent) in seen:
                raise DescriptorError(f"Entity '{name}' extends itself")
            seen.add(id(parent))
            parent = parent.parent
