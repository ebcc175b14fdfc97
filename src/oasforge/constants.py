"""Constants shared by the builders and exporters."""

from __future__ import annotations


class SchemaTypes:
    """JSON Schema type names used in the IR."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    FILE = "file"

    ALL = (STRING, INTEGER, NUMBER, BOOLEAN, OBJECT, ARRAY, FILE)


class ParameterLocations:
    """Places a request parameter can live."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"

    ALL = (PATH, QUERY, HEADER, BODY)


class MimeTypes:
    JSON = "application/json"
    FORM_URLENCODED = "application/x-www-form-urlencoded"
    MULTIPART_FORM = "multipart/form-data"


DEFAULT_MIME_TYPE = MimeTypes.JSON

FORM_MIME_TYPES = frozenset({MimeTypes.FORM_URLENCODED, MimeTypes.MULTIPART_FORM})

BODYLESS_HTTP_METHODS = frozenset({"get", "head", "delete"})
"""Methods whose declared body parameters are flattened into the query string."""

VALID_COLLECTION_FORMATS = frozenset({"csv", "ssv", "tsv", "pipes", "multi", "brackets"})

DEFAULT_SUCCESS_MESSAGE = "Success"

EXTENSION_PREFIX = "x-"

# Declared locations (lowercased) that put a parameter in the request body.
BODY_LOCATIONS = frozenset({"body", "formdata", "form", "json"})


def is_extension_key(key: object) -> bool:
    """Return True for vendor extension keys such as ``x-internal``."""
    return isinstance(key, str) and key.startswith(EXTENSION_PREFIX)


def extract_extensions(mapping: dict | None) -> dict:
    """Copy the ``x-`` keys out of *mapping*, preserving their order."""
    if not mapping:
        return {}
    return {key: value for key, value in mapping.items() if is_extension_key(key)}
