"""OpenAPI 3.0 exporter."""

from __future__ import annotations

import logging
from typing import Any, Optional

from oasforge.constants import ParameterLocations, SchemaTypes
from oasforge.exporter.base import BaseExporter, compact
from oasforge.models import MediaType, Operation, Parameter, RequestBody, Response, Schema

logger = logging.getLogger(__name__)

# collectionFormat -> (style, explode)
_COLLECTION_STYLES: dict[str, tuple[str, bool]] = {
    "csv": ("form", False),
    "multi": ("form", True),
    "ssv": ("spaceDelimited", False),
    "pipes": ("pipeDelimited", False),
    "brackets": ("deepObject", True),
}


class OAS30Exporter(BaseExporter):
    """Writes ``openapi: "3.0.3"`` documents.

    Definitions live under ``components.schemas``. Multi-type schemas
    become ``oneOf`` lists, nullability is the ``nullable`` keyword, and a
    nullable ``$ref`` is wrapped in ``allOf`` because 3.0 ignores siblings
    of ``$ref``.
    """

    version = "3.0.3"
    ref_prefix = "#/components/schemas/"

    def build_document(self, paths: dict[str, Any]) -> dict[str, Any]:
        components = compact(
            {
                "schemas": self.refs.definitions or None,
                "securitySchemes": self.api.security_schemes or None,
            }
        )
        return {
            "openapi": self.version,
            "info": self.build_info(),
            "servers": [
                compact({"url": server.url, "description": server.description})
                for server in self.api.servers
            ]
            or None,
            "paths": paths,
            "components": components or None,
        }

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def build_operation_fields(self, operation: Operation) -> dict[str, Any]:
        parameters = [self.build_parameter(param) for param in operation.parameters]
        request_body = operation.request_body
        return {
            "parameters": parameters or None,
            "requestBody": self.build_request_body(request_body) if request_body else None,
            "responses": self.build_responses(operation),
        }

    def build_parameter(self, param: Parameter) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": param.name,
            "in": param.location,
            "required": param.required,
            "description": param.description,
            "schema": self.schema_or_ref(param.schema_),
        }
        data.update(self._style(param))
        data.update(param.extensions)
        return compact(data)

    @staticmethod
    def _style(param: Parameter) -> dict[str, Any]:
        if not param.collection_format or param.schema_.type != SchemaTypes.ARRAY:
            return {}
        if param.location != ParameterLocations.QUERY:
            return {}
        style = _COLLECTION_STYLES.get(param.collection_format)
        if style is None:
            logger.debug("No 3.x style for collection format %r", param.collection_format)
            return {}
        return {"style": style[0], "explode": style[1]}

    def build_request_body(self, body: RequestBody) -> dict[str, Any]:
        data: dict[str, Any] = {
            "description": body.description,
            "required": True if body.required else None,
            "content": self.build_content(body.media_types),
        }
        data.update(body.extensions)
        return compact(data)

    def build_content(self, media_types: list[MediaType]) -> dict[str, Any]:
        content: dict[str, Any] = {}
        for media_type in media_types:
            entry: dict[str, Any] = {
                "schema": self.schema_or_ref(media_type.schema_)
                if media_type.schema_ is not None
                else None,
                "example": media_type.examples,
            }
            entry.update(media_type.extensions)
            content[media_type.mime_type] = compact(entry)
        return content

    def build_response(self, response: Response) -> dict[str, Any]:
        media_types = list(response.media_types)
        if response.examples:
            media_types = [
                media_type
                if media_type.examples is not None or media_type.mime_type not in response.examples
                else media_type.model_copy(
                    update={"examples": response.examples[media_type.mime_type]}
                )
                for media_type in media_types
            ]
        data: dict[str, Any] = {
            "description": response.description,
            "headers": self.build_headers(response.headers),
            "content": self.build_content(media_types) or None,
        }
        data.update(response.extensions)
        return compact(data)

    def build_headers(self, headers: dict[str, dict[str, Any]]) -> Optional[dict[str, Any]]:
        if not headers:
            return None
        rendered = {}
        for name, spec in headers.items():
            schema_type, schema_format = self.map_type(
                spec.get("type", SchemaTypes.STRING), spec.get("format")
            )
            rendered[name] = compact(
                {
                    "description": spec.get("description"),
                    "schema": compact({"type": schema_type, "format": schema_format}),
                }
            )
        return rendered

    # ------------------------------------------------------------------
    # Schema hooks
    # ------------------------------------------------------------------

    def build_one_of(self, schema: Schema) -> dict[str, Any]:
        return {"oneOf": [self.schema_or_ref(member) for member in schema.one_of]}

    def map_type(
        self, schema_type: Optional[str], schema_format: Optional[str]
    ) -> tuple[Optional[str], Optional[str]]:
        if schema_type == SchemaTypes.FILE:
            return SchemaTypes.STRING, "binary"
        return schema_type, schema_format

    def apply_nullable(self, data: dict[str, Any], schema: Schema) -> None:
        if schema.nullable:
            data["nullable"] = True

    def wrap_ref(self, ref: dict[str, Any], schema: Schema) -> dict[str, Any]:
        if not schema.nullable:
            return ref
        return compact({"allOf": [ref], "nullable": True, "description": schema.description})
