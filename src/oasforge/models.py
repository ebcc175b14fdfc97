"""Canonical Pydantic models shared across all oasforge modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**IR models** -- the version-agnostic API description produced by the
builders and consumed by the exporters:
    :class:`Schema`, :class:`Parameter`, :class:`MediaType`,
    :class:`RequestBody`, :class:`Response`, :class:`Operation`,
    :class:`Path`, and :class:`API`.

**Descriptor models** -- the normalized route list handed in by whatever
collects routes from a web framework or a descriptor file:
    :class:`ParamSpec`, :class:`ResponseSpec`, :class:`RouteDescriptor`,
    :class:`ApiInfo`, :class:`ServerInfo`, and :class:`RouteSet`.

**Configuration models** -- :class:`GeneratorConfig`.

IR models are mutated while a build runs (properties and required names are
added as parameters and payload fields are discovered) and are treated as
read-only by the exporters. Descriptor models use ``extra="allow"`` so that
framework-specific keys survive validation.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from oasforge.constants import SchemaTypes


# --- Helpers ---


_TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on"})


def coerce_flag(value: Any) -> bool:
    """Interpret loosely-typed boolean annotations.

    Route annotations come from many hands. Anything that is not clearly true
    counts as false, so a garbled ``required`` never fails a build.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def normalize_status(code: Any) -> str:
    """Normalize an HTTP status code (``200``, ``"201 "``, ``"default"``) to a string."""
    if code is None:
        return "default"
    text = str(code).strip()
    return text or "default"


def _status_sort_key(code: str) -> tuple[int, int, str]:
    if code.isdigit():
        return (0, int(code), "")
    if code == "default":
        return (2, 0, "")
    return (1, 0, code)


# --- IR: Schema ---


class Schema(BaseModel):
    """A JSON Schema node, the recursive centre of the IR.

    A schema carrying a ``canonical_name`` describes a reusable type. Two
    schemas with the same canonical name are the same type for export
    purposes, even when they are distinct objects: the exporters emit one
    definition per name and reference it everywhere else.

    ``all_of`` composes a subtype from its parent's reference and its own
    properties; ``discriminator`` names the property that tells the
    subtypes of a parent apart.

    ``stub`` marks the placeholder handed out while a type is still being
    introspected (or was introspected earlier in the build). Stubs carry
    nothing but the canonical name and are never used as definitions.

    Example::

        Schema(
            type="object",
            canonical_name="Pet",
            properties={"id": Schema(type="integer", format="int64")},
            required=["id"],
        )
    """

    model_config = ConfigDict(populate_by_name=True)

    canonical_name: Optional[str] = None
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    properties: dict[str, Schema] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    items: Optional[Schema] = None
    nullable: bool = False
    one_of: list[Schema] = Field(default_factory=list)
    all_of: list[Schema] = Field(default_factory=list)
    discriminator: Optional[str] = None
    enum: Optional[list[Any]] = None
    default: Any = None
    example: Any = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    additional_properties: Optional[bool] = None
    extensions: dict[str, Any] = Field(default_factory=dict)
    stub: bool = Field(default=False, exclude=True)

    @model_validator(mode="after")
    def _arrays_have_items(self) -> Schema:
        if self.type == SchemaTypes.ARRAY and self.items is None:
            self.items = Schema(type=SchemaTypes.STRING)
        return self

    def add_property(self, name: str, schema: Schema, required: bool = False) -> Schema:
        """Add (or replace) property *name*, keeping insertion order.

        Returns:
            The added property schema.
        """
        self.properties[name] = schema
        if required:
            self.mark_required(name)
        return schema

    def mark_required(self, name: str) -> None:
        if name not in self.required:
            self.required.append(name)

    def unmark_required(self, name: str) -> None:
        if name in self.required:
            self.required.remove(name)

    def is_empty(self) -> bool:
        """True for an object schema with nothing in it."""
        return (
            self.type in (None, SchemaTypes.OBJECT)
            and not self.properties
            and not self.one_of
            and not self.all_of
            and self.canonical_name is None
        )


# --- IR: Operation parts ---


class Parameter(BaseModel):
    """A non-body request parameter (path, query, or header)."""

    model_config = ConfigDict(populate_by_name=True)

    location: str
    name: str
    required: bool = False
    schema_: Schema = Field(default_factory=lambda: Schema(type=SchemaTypes.STRING), alias="schema")
    description: Optional[str] = None
    collection_format: Optional[str] = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class MediaType(BaseModel):
    """One content type of a request body or response."""

    model_config = ConfigDict(populate_by_name=True)

    mime_type: str
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    examples: Optional[Any] = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class RequestBody(BaseModel):
    """The single request body of an operation.

    Several media types describe the same body in different encodings.
    ``body_name`` names the ``in: body`` parameter OpenAPI 2.0 needs.
    """

    description: Optional[str] = None
    required: bool = False
    media_types: list[MediaType] = Field(default_factory=list)
    body_name: Optional[str] = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    @property
    def schema_(self) -> Optional[Schema]:
        """Schema of the first media type."""
        for media_type in self.media_types:
            if media_type.schema_ is not None:
                return media_type.schema_
        return None


class Response(BaseModel):
    """One response of an operation, keyed by its normalized status code."""

    http_status: str
    description: str = ""
    media_types: list[MediaType] = Field(default_factory=list)
    headers: dict[str, dict[str, Any]] = Field(default_factory=dict)
    examples: Optional[dict[str, Any]] = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("http_status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str:
        return normalize_status(value)

    @property
    def schema_(self) -> Optional[Schema]:
        for media_type in self.media_types:
            if media_type.schema_ is not None:
                return media_type.schema_
        return None


class Operation(BaseModel):
    """One HTTP method on one path."""

    http_method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False
    tag_names: list[str] = Field(default_factory=list)
    security: list[dict[str, list[str]]] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: dict[str, Response] = Field(default_factory=dict)
    consumes: list[str] = Field(default_factory=list)
    produces: list[str] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("http_method")
    @classmethod
    def _lower_method(cls, value: str) -> str:
        return value.lower()

    def add_response(self, response: Response) -> Response:
        """Insert *response*, keeping ``responses`` ordered by status code.

        Numeric codes come first in ascending order, then any other codes,
        then ``default``. A second response for the same code replaces the
        first.
        """
        self.responses[response.http_status] = response
        self.responses = dict(
            sorted(self.responses.items(), key=lambda item: _status_sort_key(item[0]))
        )
        return response


class Path(BaseModel):
    """A URL template and the operations registered on it."""

    template: str
    operations: dict[str, Operation] = Field(default_factory=dict)

    def add_operation(self, operation: Operation) -> Operation:
        self.operations[operation.http_method] = operation
        return operation


class API(BaseModel):
    """Root of the IR. One instance per generation run.

    ``schemas`` holds the full definition of every named payload type met
    while building, keyed by canonical name. Operations refer to those
    types through reference stubs.
    """

    title: str = "API"
    version: str = "0.0.1"
    description: Optional[str] = None
    servers: list[ServerInfo] = Field(default_factory=list)
    security_schemes: dict[str, dict[str, Any]] = Field(default_factory=dict)
    paths: list[Path] = Field(default_factory=list)
    schemas: dict[str, Schema] = Field(default_factory=dict)

    def path_for(self, template: str) -> Path:
        """Return the :class:`Path` for *template*, appending a new one if needed."""
        for path in self.paths:
            if path.template == template:
                return path
        path = Path(template=template)
        self.paths.append(path)
        return path

    def operations(self) -> list[tuple[Path, Operation]]:
        """All ``(path, operation)`` pairs in document order."""
        return [(path, op) for path in self.paths for op in path.operations.values()]


# --- Descriptors ---


class ParamSpec(BaseModel):
    """A declared route parameter as handed over by a route supplier.

    ``type`` is any type token the resolver and introspector registries
    understand: a type name such as ``"integer"`` or ``"[String]"``, a Python
    type, an :class:`~oasforge.introspectors.entity.Entity` subclass, or a
    list of tokens (a one-element list means "array of", a longer list means
    "one of these types").

    The ``documentation`` mapping carries free-form annotations: ``desc``,
    ``param_type``/``in``, ``hidden``, ``collection_format``, ``is_array``,
    ``format``, ``example``, ``nullable`` and ``x-*`` extension keys.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    type: Any = None
    types: Optional[list[Any]] = None
    required: bool = False
    location: Optional[str] = None
    description: Optional[str] = None
    values: Any = None
    default: Any = None
    documentation: dict[str, Any] = Field(default_factory=dict)

    @field_validator("required", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("documentation", mode="before")
    @classmethod
    def _documentation_mapping(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @property
    def hidden(self) -> bool:
        return coerce_flag(self.documentation.get("hidden", False))

    @property
    def desc(self) -> Optional[str]:
        return self.description or self.documentation.get("desc") or self.documentation.get(
            "description"
        )


class ResponseSpec(BaseModel):
    """A declared response of a route.

    ``root`` wraps the payload in a one-property object: ``True`` keys it by
    the underscored entity name (pluralized for arrays), a string names the
    key itself.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    code: Any = 200
    message: Optional[str] = None
    entity: Any = None
    is_array: bool = False
    headers: dict[str, Any] = Field(default_factory=dict)
    examples: Optional[dict[str, Any]] = None
    root: Any = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("is_array", mode="before")
    @classmethod
    def _coerce_is_array(cls, value: Any) -> bool:
        return coerce_flag(value)


_PARAM_SHORTHAND_TYPES = (str, list, tuple, type)


class RouteDescriptor(BaseModel):
    """A single route: method, path template, parameters and payloads.

    ``params`` also accepts a bare type token per name as shorthand, so
    ``{"id": "integer"}`` is the same as ``{"id": {"type": "integer"}}``.

    ``path_param_name_map`` renames path template variables to the names of
    the parameters that feed them (``{"item_id": "id"}`` makes the template
    variable ``:item_id`` bind to the declared parameter ``id``).

    ``root`` applies to the default success response; see
    :class:`ResponseSpec`.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    path: str
    method: str = "get"
    params: dict[str, ParamSpec] = Field(default_factory=dict)
    entity: Any = None
    is_array: bool = False
    default_status: Optional[int] = None
    root: Any = None
    responses: list[ResponseSpec] = Field(default_factory=list)
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False
    hidden: bool = False
    security: list[dict[str, list[str]]] = Field(default_factory=list)
    consumes: list[str] = Field(default_factory=list)
    produces: list[str] = Field(default_factory=list)
    body_name: Optional[str] = None
    request_body: bool = False
    path_param_name_map: dict[str, str] = Field(default_factory=dict)
    documentation: dict[str, Any] = Field(default_factory=dict)

    @field_validator("method", mode="before")
    @classmethod
    def _lower_method(cls, value: Any) -> str:
        return str(value or "get").strip().lower()

    @field_validator("params", mode="before")
    @classmethod
    def _expand_shorthand(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        expanded: dict[str, Any] = {}
        for name, spec in value.items():
            if spec is None:
                spec = {}
            elif isinstance(spec, _PARAM_SHORTHAND_TYPES) and not isinstance(spec, dict):
                spec = {"type": spec}
            elif not isinstance(spec, (dict, ParamSpec)):
                spec = {"type": spec}
            expanded[str(name)] = spec
        return expanded

    @field_validator("is_array", "deprecated", "hidden", "request_body", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> bool:
        return coerce_flag(value)

    @property
    def path_variables(self) -> list[str]:
        """Template variable names (``:id`` and ``{id}`` styles) in order."""
        return extract_path_variables(self.path)


_PATH_VARIABLE_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)|\{([A-Za-z_][A-Za-z0-9_]*)\}")
_OPTIONAL_SEGMENT_RE = re.compile(r"\(\.[^)]*\)")


def extract_path_variables(template: str) -> list[str]:
    """Variables of *template*, ignoring optional suffixes such as ``(.:format)``."""
    names: list[str] = []
    for match in _PATH_VARIABLE_RE.finditer(_OPTIONAL_SEGMENT_RE.sub("", template)):
        name = match.group(1) or match.group(2)
        if name not in names:
            names.append(name)
    return names


class ApiInfo(BaseModel):
    title: str = "API"
    version: str = "0.0.1"
    description: Optional[str] = None


class ServerInfo(BaseModel):
    url: str
    description: Optional[str] = None


class RouteSet(BaseModel):
    """Everything a descriptor supplier hands to the generator."""

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    info: ApiInfo = Field(default_factory=ApiInfo)
    servers: list[ServerInfo] = Field(default_factory=list)
    security_schemes: dict[str, dict[str, Any]] = Field(default_factory=dict)
    routes: list[RouteDescriptor] = Field(default_factory=list)


# --- Configuration ---


class GeneratorConfig(BaseModel):
    """Effective generator settings after precedence resolution.

    See :func:`oasforge.config.resolve_config` for where each value can come
    from.
    """

    spec_version: str = Field(default="oas3", description="Exporter version tag")
    title: Optional[str] = Field(default=None, description="Overrides the route file title")
    api_version: Optional[str] = Field(
        default=None, description="Overrides the route file API version"
    )
    description: Optional[str] = None
    servers: list[ServerInfo] = Field(default_factory=list)
    output_format: str = Field(default="json", description="json or yaml")
    indent: int = Field(default=2, ge=0)
    plugins_enabled: bool = True

    @field_validator("output_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "yaml"):
            raise ValueError(f"output_format must be 'json' or 'yaml', not '{value}'")
        return value


API.model_rebuild()
