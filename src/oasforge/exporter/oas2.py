"""OpenAPI 2.0 (Swagger) exporter."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from oasforge.constants import FORM_MIME_TYPES, ParameterLocations, SchemaTypes
from oasforge.exporter.base import BaseExporter, compact, constraint_fields
from oasforge.models import Operation, Parameter, RequestBody, Response, Schema

logger = logging.getLogger(__name__)

_FORM_DATA = "formData"


class OAS2Exporter(BaseExporter):
    """Writes ``swagger: "2.0"`` documents.

    Swagger has no composition keyword, so a multi-type schema keeps its
    first declared type. Nullability is carried by the ``x-nullable``
    vendor extension. Non-body parameters are flat (``type``/``format``
    sit on the parameter itself) and the request body is a single
    ``in: body`` parameter, or one ``in: formData`` parameter per field
    when the operation consumes a form encoding.
    """

    version = "2.0"
    ref_prefix = "#/definitions/"

    def build_document(self, paths: dict[str, Any]) -> dict[str, Any]:
        document: dict[str, Any] = {"swagger": self.version, "info": self.build_info()}
        document.update(self._server_fields())
        document["paths"] = paths
        document["definitions"] = self.refs.definitions or None
        document["securityDefinitions"] = self.api.security_schemes or None
        return document

    def _server_fields(self) -> dict[str, Any]:
        if not self.api.servers:
            return {}
        parts = urlsplit(self.api.servers[0].url)
        base_path = parts.path.rstrip("/")
        return compact(
            {
                "host": parts.netloc or None,
                "basePath": base_path or None,
                "schemes": [parts.scheme] if parts.scheme else None,
            }
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def build_operation_fields(self, operation: Operation) -> dict[str, Any]:
        parameters = [self.build_parameter(param) for param in operation.parameters]
        consumes = list(operation.consumes)
        if operation.request_body is not None:
            body = operation.request_body
            if _is_form(body):
                parameters.extend(self.build_form_parameters(body))
            else:
                parameters.append(self.build_body_parameter(body))
            if not consumes:
                consumes = [media_type.mime_type for media_type in body.media_types]
        return {
            "consumes": consumes or None,
            "produces": list(operation.produces) or None,
            "parameters": parameters or None,
            "responses": self.build_responses(operation),
        }

    def build_parameter(self, param: Parameter) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": param.name,
            "in": param.location,
            "required": param.required,
            "description": param.description,
        }
        schema = param.schema_
        if schema.one_of:
            first = schema.one_of[0]
            if first.canonical_name:
                data["schema"] = self.schema_or_ref(first)
            else:
                first_type, first_format = self.map_type(first.type, first.format)
                data["type"] = first_type
                data["format"] = first_format
                data["schema"] = {"type": first_type}
            if schema.nullable:
                data["x-nullable"] = True
        elif schema.canonical_name or schema.properties:
            data["schema"] = self.schema_or_ref(schema)
        else:
            data.update(self.flat_fields(schema))
            if schema.type == SchemaTypes.ARRAY and param.collection_format:
                data["collectionFormat"] = param.collection_format
        data.update(param.extensions)
        return compact(data)

    def build_body_parameter(self, body: RequestBody) -> dict[str, Any]:
        schema = body.schema_ or Schema(type=SchemaTypes.OBJECT)
        data: dict[str, Any] = {
            "name": body_parameter_name(body),
            "in": ParameterLocations.BODY,
            "required": body.required,
            "description": body.description,
            "schema": self.schema_or_ref(schema),
        }
        data.update(body.extensions)
        return compact(data)

    def build_form_parameters(self, body: RequestBody) -> list[dict[str, Any]]:
        schema = body.schema_ or Schema(type=SchemaTypes.OBJECT)
        params = []
        for name, prop in schema.properties.items():
            data: dict[str, Any] = {
                "name": name,
                "in": _FORM_DATA,
                "required": name in schema.required,
                "description": prop.description,
            }
            data.update(self.flat_fields(prop.one_of[0] if prop.one_of else prop))
            params.append(compact(data))
        return params

    def flat_fields(self, schema: Schema) -> dict[str, Any]:
        """Schema keywords as they sit directly on a non-body parameter."""
        schema_type, schema_format = self.map_type(schema.type, schema.format)
        data: dict[str, Any] = {"type": schema_type or SchemaTypes.STRING, "format": schema_format}
        if schema.type == SchemaTypes.ARRAY and schema.items is not None:
            data["items"] = self.flat_items(schema.items)
        if schema.enum:
            data["enum"] = list(schema.enum)
        data["default"] = schema.default
        data.update(constraint_fields(schema))
        if schema.nullable:
            data["x-nullable"] = True
        data.update(schema.extensions)
        return data

    def flat_items(self, schema: Schema) -> dict[str, Any]:
        if schema.canonical_name or schema.properties:
            return self.schema_or_ref(schema)
        if schema.one_of:
            schema = schema.one_of[0]
        schema_type, schema_format = self.map_type(schema.type, schema.format)
        data: dict[str, Any] = {"type": schema_type or SchemaTypes.STRING, "format": schema_format}
        if schema.type == SchemaTypes.ARRAY and schema.items is not None:
            data["items"] = self.flat_items(schema.items)
        if schema.enum:
            data["enum"] = list(schema.enum)
        return compact(data)

    def build_response(self, response: Response) -> dict[str, Any]:
        schema = response.schema_
        data: dict[str, Any] = {
            "description": response.description,
            "schema": self.schema_or_ref(schema) if schema is not None else None,
            "headers": self.build_headers(response.headers),
            "examples": self._response_examples(response),
        }
        data.update(response.extensions)
        return compact(data)

    @staticmethod
    def build_headers(headers: dict[str, dict[str, Any]]) -> Optional[dict[str, Any]]:
        if not headers:
            return None
        return {
            name: compact(
                {
                    "type": spec.get("type", SchemaTypes.STRING),
                    "format": spec.get("format"),
                    "description": spec.get("description"),
                }
            )
            for name, spec in headers.items()
        }

    @staticmethod
    def _response_examples(response: Response) -> Optional[dict[str, Any]]:
        examples = dict(response.examples or {})
        for media_type in response.media_types:
            if media_type.examples is not None:
                examples.setdefault(media_type.mime_type, media_type.examples)
        return examples or None

    # ------------------------------------------------------------------
    # Schema hooks
    # ------------------------------------------------------------------

    def build_one_of(self, schema: Schema) -> dict[str, Any]:
        first = schema.one_of[0]
        if first.canonical_name:
            return dict(self.schema_or_ref(first))
        first_type, first_format = self.map_type(first.type, first.format)
        return {"type": first_type, "format": first_format}

    def build_discriminator(self, property_name: str) -> dict[str, Any]:
        return {"discriminator": property_name}

    def apply_nullable(self, data: dict[str, Any], schema: Schema) -> None:
        if schema.nullable:
            data["x-nullable"] = True

    def wrap_ref(self, ref: dict[str, Any], schema: Schema) -> dict[str, Any]:
        if schema.nullable:
            return {**ref, "x-nullable": True}
        return ref


def body_parameter_name(body: RequestBody) -> str:
    """``body_name`` if set, else the body's type name, else ``"body"``."""
    if body.body_name:
        return body.body_name
    schema = body.schema_
    if schema is not None and schema.canonical_name:
        return schema.canonical_name.replace("::", "_").replace(".", "_")
    return "body"


def _is_form(body: RequestBody) -> bool:
    return any(media_type.mime_type in FORM_MIME_TYPES for media_type in body.media_types)
