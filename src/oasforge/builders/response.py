"""Build the responses of an operation from a route's response declarations."""

from __future__ import annotations

import http
import re
from typing import Any, Optional

from oasforge.constants import DEFAULT_MIME_TYPE, DEFAULT_SUCCESS_MESSAGE, SchemaTypes
from oasforge.introspectors.base import IntrospectionContext
from oasforge.models import MediaType, Response, ResponseSpec, RouteDescriptor, Schema, normalize_status


def default_status(route: RouteDescriptor) -> int:
    """``default_status`` if declared, else 201 for POST and 200 otherwise."""
    if route.default_status is not None:
        return route.default_status
    return 201 if route.method == "post" else 200


class ResponseBuilder:
    """Builds :class:`~oasforge.models.Response` nodes for one route.

    Without explicit ``responses`` the route gets a single success
    response carrying its ``entity`` (wrapped in an array when
    ``is_array`` is set). A ``root`` wraps the payload once more, in an
    object with a single property named by :func:`root_key` or by the
    ``root`` string itself.
    """

    def __init__(self, route: RouteDescriptor, context: IntrospectionContext) -> None:
        self.route = route
        self.context = context

    def build(self) -> list[Response]:
        specs = self.route.responses or [self._default_spec()]
        return [self._response(spec) for spec in specs]

    def _default_spec(self) -> ResponseSpec:
        return ResponseSpec(
            code=default_status(self.route),
            message=DEFAULT_SUCCESS_MESSAGE,
            entity=self.route.entity,
            is_array=self.route.is_array,
            root=self.route.root,
        )

    def _response(self, spec: ResponseSpec) -> Response:
        status = normalize_status(spec.code)
        schema = self._schema(spec)
        media_types: list[MediaType] = []
        if schema is not None:
            for mime_type in self.route.produces or [DEFAULT_MIME_TYPE]:
                examples = (spec.examples or {}).get(mime_type)
                media_types.append(MediaType(mime_type=mime_type, schema=schema, examples=examples))
        return Response(
            http_status=status,
            description=spec.message or _default_message(status),
            media_types=media_types,
            headers=_normalize_headers(spec.headers),
            examples=spec.examples,
            extensions=dict(spec.extensions),
        )

    def _schema(self, spec: ResponseSpec) -> Optional[Schema]:
        if spec.entity is None:
            return None
        schema = self.context.schema_for_type(spec.entity)
        if spec.is_array and schema.type != SchemaTypes.ARRAY:
            schema = Schema(type=SchemaTypes.ARRAY, items=schema)
        root = spec.root
        if root is True:
            root = root_key(spec.entity, plural=schema.type == SchemaTypes.ARRAY)
        if isinstance(root, str) and root:
            wrapper = Schema(type=SchemaTypes.OBJECT)
            wrapper.add_property(root, schema)
            return wrapper
        return schema


def _default_message(status: str) -> str:
    if status.startswith("2"):
        return DEFAULT_SUCCESS_MESSAGE
    try:
        return http.HTTPStatus(int(status)).phrase
    except ValueError:
        return ""


def _normalize_headers(headers: dict[str, Any]) -> dict[str, dict[str, Any]]:
    normalized: dict[str, dict[str, Any]] = {}
    for name, value in headers.items():
        if isinstance(value, dict):
            header = dict(value)
            if "desc" in header and "description" not in header:
                header["description"] = header.pop("desc")
            header.setdefault("type", SchemaTypes.STRING)
        else:
            header = {"type": str(value) if value else SchemaTypes.STRING}
        normalized[str(name)] = header
    return normalized


_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_RE = re.compile(r"([a-z\d])([A-Z])")
_NAMESPACE_RE = re.compile(r"::|\.")


def underscore(name: str) -> str:
    """``RootTestApiError`` -> ``root_test_api_error``; ``HTTPStatus`` -> ``http_status``."""
    name = _ACRONYM_RE.sub(r"\1_\2", name.replace("::", "/"))
    return _CAMEL_RE.sub(r"\1_\2", name).replace("-", "_").lower()


def pluralize(word: str) -> str:
    """Naive English plural: ``box`` -> ``boxes``, ``city`` -> ``cities``, ``item`` -> ``items``."""
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


def root_key(entity: Any, plural: bool = False) -> str:
    """Envelope key for *entity*: its underscored short name without an ``Entity`` suffix.

    ``ItemEntity`` -> ``item``, ``API::Entities::ApiError`` -> ``api_error``,
    and ``items`` when *plural*.
    """
    if isinstance(entity, (list, tuple)) and len(entity) == 1:
        entity = entity[0]
    if isinstance(entity, type):
        name = entity.__name__
    else:
        schema_name = getattr(entity, "schema_name", None)
        name = schema_name() if callable(schema_name) else str(entity)
    key = underscore(_NAMESPACE_RE.split(name)[-1])
    if key.endswith("_entity"):
        key = key[: -len("_entity")]
    return pluralize(key) if plural else key
