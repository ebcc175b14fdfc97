"""OpenAPI 3.1 exporter."""

from __future__ import annotations

from typing import Any

from oasforge.exporter.base import compact
from oasforge.exporter.oas3 import OAS30Exporter
from oasforge.models import Schema

_NULL = "null"


class OAS31Exporter(OAS30Exporter):
    """Writes ``openapi: "3.1.0"`` documents.

    3.1 schemas are JSON Schema 2020-12: ``nullable`` is gone in favour of
    a ``type`` list containing ``"null"``, ``example`` gives way to an
    ``examples`` array, and a ``$ref`` keeps the description and ``x-``
    extensions of the property it stands for.
    """

    version = "3.1.0"

    def build_example(self, example: Any) -> dict[str, Any]:
        return {} if example is None else {"examples": [example]}

    def apply_nullable(self, data: dict[str, Any], schema: Schema) -> None:
        if not schema.nullable:
            return
        if "oneOf" in data:
            if {"type": _NULL} not in data["oneOf"]:
                data["oneOf"] = [*data["oneOf"], {"type": _NULL}]
            return
        current = data.get("type")
        if current is None:
            return
        types = list(current) if isinstance(current, list) else [current]
        if _NULL not in types:
            types.append(_NULL)
        data["type"] = types

    def wrap_ref(self, ref: dict[str, Any], schema: Schema) -> dict[str, Any]:
        # 2020-12 allows keywords next to $ref, so annotations stay on the reference.
        annotations = {"description": schema.description, **schema.extensions}
        if not schema.nullable:
            return compact({**ref, **annotations})
        return compact({"oneOf": [ref, {"type": _NULL}], **annotations})
