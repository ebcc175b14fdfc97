"""Shared exporter walk and reference tracking.

:class:`BaseExporter` walks ``API -> Path -> Operation`` and emits the parts
every OpenAPI version agrees on: method-keyed path items and the common
operation fields. Subclasses fill in the rest through hook methods:

* :meth:`BaseExporter.build_document` -- top-level layout and version key.
* :meth:`BaseExporter.build_operation_fields` -- parameters, bodies, responses.
* :meth:`BaseExporter.apply_nullable`, :meth:`BaseExporter.build_one_of`,
  :meth:`BaseExporter.map_type`, :meth:`BaseExporter.wrap_ref` -- how a
  schema is spelled.

Named schemas (those with a ``canonical_name``) are never inlined. The
first time a name comes up, its full definition is rendered into the
definitions container; every occurrence, the first included, is written as
a ``$ref``. Absent values are dropped by :func:`compact` rather than
emitted as ``null``.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Iterator, Optional

from oasforge.constants import SchemaTypes
from oasforge.exceptions import CanonicalNameCollisionError
from oasforge.models import API, Operation, Response, Schema

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_\-]")


def compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is ``None``. The one omission policy for all output."""
    return {key: value for key, value in data.items() if value is not None}


def sanitize_name(canonical_name: str) -> str:
    """``API::Entities::User`` -> ``API_Entities_User``; ``pkg.User`` -> ``pkg_User``."""
    name = canonical_name.replace("<locals>", "").replace("::", "_").replace(".", "_")
    name = _UNSAFE_CHARS_RE.sub("_", name)
    return re.sub(r"_{2,}", "_", name).strip("_") or "Schema"


class RefTracker:
    """Per-document record of emitted definitions.

    Args:
        prefix: ``$ref`` prefix, e.g. ``#/definitions/``.
        catalog: Full schema for each canonical name, used to render a
            definition the first time its name comes up.
    """

    def __init__(self, prefix: str, catalog: Optional[dict[str, Schema]] = None) -> None:
        self.prefix = prefix
        self.catalog: dict[str, Schema] = dict(catalog or {})
        self.definitions: dict[str, Any] = {}
        self._seen: set[str] = set()
        self._owners: dict[str, str] = {}

    def sanitize(self, canonical_name: str) -> str:
        """Sanitized name for *canonical_name*.

        Raises:
            CanonicalNameCollisionError: If a different canonical name
                already sanitized to the same string.
        """
        name = sanitize_name(canonical_name)
        owner = self._owners.setdefault(name, canonical_name)
        if owner != canonical_name:
            raise CanonicalNameCollisionError(name, repr(owner), repr(canonical_name))
        return name

    def ref(self, canonical_name: str) -> str:
        return self.prefix + self.sanitize(canonical_name)

    def is_seen(self, canonical_name: str) -> bool:
        return canonical_name in self._seen

    def reserve(self, canonical_name: str) -> str:
        """Mark *canonical_name* as emitted and hold its slot in definition order."""
        name = self.sanitize(canonical_name)
        self._seen.add(canonical_name)
        self.definitions[name] = None
        return name

    def __contains__(self, canonical_name: str) -> bool:
        return canonical_name in self._seen

    def __len__(self) -> int:
        return len(self._seen)


def iter_schemas(schema: Optional[Schema]) -> Iterator[Schema]:
    """Depth-first walk over *schema* and every schema nested in it."""
    if schema is None:
        return
    stack = [schema]
    visited: set[int] = set()
    while stack:
        current = stack.pop()
        if id(current) in visited:
            continue
        visited.add(id(current))
        yield current
        nested = (
            list(current.all_of) + list(current.properties.values()) + list(current.one_of)
        )
        if current.items is not None:
            nested.append(current.items)
        stack.extend(reversed(nested))


class BaseExporter(ABC):
    """Template-method base for version exporters.

    Args:
        api: The IR to export. It is only read.
    """

    version: ClassVar[str] = ""
    ref_prefix: ClassVar[str] = "#/definitions/"

    def __init__(self, api: API) -> None:
        self.api = api
        self.refs = RefTracker(self.ref_prefix)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def generate(self) -> dict[str, Any]:
        """Export the API as a JSON-compatible dict.

        Raises:
            CanonicalNameCollisionError: If two distinct canonical names
                sanitize to the same definition name.
        """
        self.refs = RefTracker(self.ref_prefix, self.collect_definitions())
        paths = self.build_paths()
        return compact(self.build_document(paths))

    def collect_definitions(self) -> dict[str, Schema]:
        """Full schema per canonical name: the API's own table, then any
        named schema found inline in the operations. Stubs never count."""
        catalog: dict[str, Schema] = {}
        for name, schema in self.api.schemas.items():
            if not schema.stub:
                catalog.setdefault(name, schema)
        for schema in list(self.api.schemas.values()) + list(self._operation_schemas()):
            for nested in iter_schemas(schema):
                if nested.canonical_name and not nested.stub:
                    catalog.setdefault(nested.canonical_name, nested)
        return catalog

    def _operation_schemas(self) -> Iterator[Schema]:
        for _, operation in self.api.operations():
            for param in operation.parameters:
                yield param.schema_
            if operation.request_body is not None:
                for media_type in operation.request_body.media_types:
                    if media_type.schema_ is not None:
                        yield media_type.schema_
            for response in operation.responses.values():
                for media_type in response.media_types:
                    if media_type.schema_ is not None:
                        yield media_type.schema_

    # ------------------------------------------------------------------
    # Shared walk
    # ------------------------------------------------------------------

    def build_paths(self) -> dict[str, Any]:
        paths: dict[str, Any] = {}
        for path in self.api.paths:
            item: dict[str, Any] = {}
            for method, operation in path.operations.items():
                item[method] = self.build_operation(operation)
            if item:
                paths[path.template] = item
        return paths

    def build_operation(self, operation: Operation) -> dict[str, Any]:
        data: dict[str, Any] = {
            "operationId": operation.operation_id,
            "summary": operation.summary,
            "description": operation.description,
            "deprecated": True if operation.deprecated else None,
            "tags": list(operation.tag_names) or None,
        }
        data.update(self.build_operation_fields(operation))
        if operation.security:
            data["security"] = operation.security
        data.update(operation.extensions)
        return compact(data)

    def build_responses(self, operation: Operation) -> dict[str, Any]:
        if not operation.responses:
            return {"200": {"description": "Success"}}
        return {
            code: self.build_response(response) for code, response in operation.responses.items()
        }

    def build_info(self) -> dict[str, Any]:
        return compact(
            {
                "title": self.api.title,
                "version": self.api.version,
                "description": self.api.description,
            }
        )

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def schema_or_ref(self, schema: Schema) -> dict[str, Any]:
        """Render *schema*, as a ``$ref`` when it is named."""
        if schema.canonical_name:
            return self.wrap_ref(self.reference(schema.canonical_name), schema)
        return self.build_schema(schema)

    def reference(self, canonical_name: str) -> dict[str, Any]:
        """``$ref`` to *canonical_name*, rendering its definition on first use."""
        if not self.refs.is_seen(canonical_name):
            name = self.refs.reserve(canonical_name)
            full = self.refs.catalog.get(canonical_name)
            if full is None:
                logger.warning("No definition found for %r; emitting an empty object", canonical_name)
                full = Schema(type=SchemaTypes.OBJECT)
            self.refs.definitions[name] = self.build_schema(full)
        return {"$ref": self.refs.ref(canonical_name)}

    def build_schema(self, schema: Schema) -> dict[str, Any]:
        """Render the body of *schema* (never a ``$ref`` at the top level)."""
        if schema.all_of:
            data = {"allOf": [self.schema_or_ref(part) for part in schema.all_of]}
        elif schema.one_of:
            data = self.build_one_of(schema)
        else:
            schema_type, schema_format = self.map_type(schema.type, schema.format)
            data = {"type": schema_type, "format": schema_format}

        data["description"] = schema.description
        if schema.discriminator:
            data.update(self.build_discriminator(schema.discriminator))
        if schema.type == SchemaTypes.OBJECT and schema.properties:
            data["properties"] = {
                key: self.schema_or_ref(prop) for key, prop in schema.properties.items()
            }
            if schema.required:
                data["required"] = [name for name in schema.required if name in schema.properties]
        if schema.type == SchemaTypes.ARRAY and schema.items is not None:
            data["items"] = self.schema_or_ref(schema.items)
        if schema.enum:
            data["enum"] = list(schema.enum)
        data["default"] = schema.default
        data.update(self.build_example(schema.example))
        data.update(constraint_fields(schema))
        if schema.additional_properties is not None:
            data["additionalProperties"] = schema.additional_properties
        self.apply_nullable(data, schema)
        data.update(schema.extensions)
        return compact(data)

    def build_discriminator(self, property_name: str) -> dict[str, Any]:
        return {"discriminator": {"propertyName": property_name}}

    def build_example(self, example: Any) -> dict[str, Any]:
        return {} if example is None else {"example": example}

    def map_type(self, schema_type: Optional[str], schema_format: Optional[str]) -> tuple[Optional[str], Optional[str]]:
        return schema_type, schema_format

    def wrap_ref(self, ref: dict[str, Any], schema: Schema) -> dict[str, Any]:
        return ref

    # ------------------------------------------------------------------
    # Version hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def build_document(self, paths: dict[str, Any]) -> dict[str, Any]:
        """Assemble the top-level document around the rendered *paths*."""

    @abstractmethod
    def build_operation_fields(self, operation: Operation) -> dict[str, Any]:
        """Version-specific operation keys (parameters, bodies, responses)."""

    @abstractmethod
    def build_response(self, response: Response) -> dict[str, Any]: ...

    @abstractmethod
    def build_one_of(self, schema: Schema) -> dict[str, Any]:
        """Render a multi-type schema."""

    @abstractmethod
    def apply_nullable(self, data: dict[str, Any], schema: Schema) -> None:
        """Mark *data* nullable when *schema* is."""


def constraint_fields(schema: Schema) -> dict[str, Any]:
    return compact(
        {
            "minimum": schema.minimum,
            "maximum": schema.maximum,
            "minLength": schema.min_length,
            "maxLength": schema.max_length,
            "pattern": schema.pattern,
        }
    )
